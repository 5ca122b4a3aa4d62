"""Small FastAPI app exposing health probes and queue depth for the worker process."""
from __future__ import annotations

from fastapi import FastAPI

from link_worker.app.application.worker_pool import WorkerPool
from link_worker.app.config.settings import Settings
from link_worker.app.ports.job_queue import JobQueue
from link_worker.app.routers.health import health_router


def create_health_app(*, settings: Settings, queue: JobQueue, pool: WorkerPool) -> FastAPI:
    app = FastAPI(title="Link Metadata Worker", version="0.1.0")
    app.state.settings = settings
    app.state.queue = queue
    app.state.pool = pool
    app.include_router(health_router)
    return app
