import asyncio

from typing import Any
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger

from link_worker.app.core import SERVICE_NAME

health_router = APIRouter(tags=["Health"])

READINESS_PING_TIMEOUT_DEFAULT = 5.0


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).warning("")


def readiness_ping_timeout_seconds(request: Request) -> float:
    """Read readiness ping timeout from app.state.settings or default."""
    settings = getattr(request.app.state, "settings", None)
    if settings is not None:
        return getattr(settings, "readiness_ping_timeout_seconds", READINESS_PING_TIMEOUT_DEFAULT)
    return READINESS_PING_TIMEOUT_DEFAULT


@health_router.get(
    "/health/live",
    summary="Liveness probe",
    description="Returns 200 if the worker process is running.",
    responses={200: {"description": "Service is alive."}},
)
async def live() -> dict:
    return {"status": "ok"}


@health_router.get(
    "/health/ready",
    summary="Readiness probe",
    description="Returns 200 only when the job queue answers a ping and the worker pool is running.",
    responses={
        200: {"description": "Queue reachable and workers running."},
        503: {"description": "Queue unreachable or workers stopped."},
    },
)
async def ready(request: Request) -> Response:
    queue = getattr(request.app.state, "queue", None)
    pool = getattr(request.app.state, "pool", None)
    if queue is None or pool is None:
        _log("components_not_initialized")
        return Response(status_code=503, content="Not ready")
    if not pool.running:
        _log("workers_not_running")
        return Response(status_code=503, content="Workers not running")

    timeout_s = readiness_ping_timeout_seconds(request)
    try:
        ping_ok = await asyncio.wait_for(queue.ping(), timeout=timeout_s)
    except asyncio.TimeoutError:
        _log("queue_ping_timeout")
        return Response(status_code=503, content="Queue not ready")
    if not ping_ok:
        _log("queue_not_ready")
        return Response(status_code=503, content="Queue not ready")
    return Response(status_code=200, content="OK")


@health_router.get(
    "/queue/depth",
    summary="Queue depth",
    description="Number of pending and in-flight jobs. A growing in-flight count points at crashed workers.",
    responses={
        200: {"description": "Current depths."},
        503: {"description": "Queue unavailable."},
    },
)
async def queue_depth(request: Request) -> Response:
    queue = getattr(request.app.state, "queue", None)
    if queue is None:
        _log("components_not_initialized")
        return Response(status_code=503, content="Queue not available")
    try:
        pending = await queue.pending_depth()
        in_flight = await queue.in_flight_depth()
    except Exception as exc:
        _log("queue_depth_failed", error=str(exc))
        return Response(status_code=503, content="Queue not available")
    return JSONResponse({"pending": pending, "in_flight": in_flight})
