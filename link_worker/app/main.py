import asyncio
import signal
from typing import Any

from loguru import logger

from link_worker.app.composition import WorkerDependencies, create_worker_dependencies
from link_worker.app.config.settings import Settings
from link_worker.app.core import SERVICE_NAME
from link_worker.app.core.logging import configure_logging
from link_worker.app.http_app import create_health_app


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


async def _log_queue_depth(deps: WorkerDependencies) -> None:
    try:
        pending = await deps.queue.pending_depth()
        in_flight = await deps.queue.in_flight_depth()
    except Exception as exc:
        logger.warning("queue depth unavailable: {}", exc)
        return
    _log("queue_depth", pending=pending, in_flight=in_flight)


def _start_health_server(settings: Settings, deps: WorkerDependencies) -> "tuple[Any, asyncio.Task[None]]":
    import uvicorn

    app = create_health_app(settings=settings, queue=deps.queue, pool=deps.pool)
    config = uvicorn.Config(
        app,
        host=settings.health_host,
        port=settings.health_port,
        log_config=None,
        access_log=False,
    )
    server = uvicorn.Server(config)
    _log("health_server_starting", host=settings.health_host, port=settings.health_port)
    return server, asyncio.create_task(server.serve())


async def run_worker(settings: Settings | None = None) -> None:
    settings = settings or Settings()
    deps = create_worker_dependencies(settings)
    shutdown = asyncio.Event()

    def request_shutdown() -> None:
        if not shutdown.is_set():
            _log("shutdown_signal")
            shutdown.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_shutdown)
        except NotImplementedError:
            pass

    server = None
    server_task: asyncio.Task[None] | None = None
    try:
        await deps.connect()
        await _log_queue_depth(deps)
        deps.pool.start()
        if settings.health_port > 0:
            server, server_task = _start_health_server(settings, deps)

        _log("worker_started", worker_count=deps.pool.worker_count)
        waiters = [asyncio.create_task(shutdown.wait())]
        if server_task is not None:
            # uvicorn may take over SIGINT/SIGTERM; its exit also means shut down.
            waiters.append(server_task)
        await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        waiters[0].cancel()

        await deps.pool.stop()
        await _log_queue_depth(deps)
    finally:
        if server is not None and server_task is not None:
            server.should_exit = True
            try:
                await server_task
            except Exception as exc:
                logger.warning("health server stopped with error: {}", exc)
        await deps.close()
        _log("worker_stopped")


def main() -> None:
    settings = Settings()
    configure_logging(settings)
    try:
        asyncio.run(run_worker(settings))
    except KeyboardInterrupt:
        _log("worker_interrupted")
    except Exception as e:
        logger.exception("worker failed: {}", e)
        raise


if __name__ == "__main__":
    main()
