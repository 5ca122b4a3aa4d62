"""Connection retry schedule shared by the Redis and Mongo connection helpers."""
import asyncio
from typing import AsyncIterator, Awaitable, Callable, Tuple, TypeVar

from loguru import logger

from link_worker.app.core import SERVICE_NAME

T = TypeVar("T")


async def exponential_backoff(
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    max_attempts: int,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncIterator[Tuple[int, float]]:
    """Yield (attempt, delay) up to max_attempts times, sleeping `delay` between attempts.

    The caller tries its operation on each yield and breaks out on success. The delay
    grows by `multiplier` per attempt and never exceeds `max_delay`.
    """
    delay = min(initial_delay, max_delay)
    for attempt in range(1, max(1, max_attempts) + 1):
        yield attempt, delay
        if attempt < max_attempts:
            await sleep(delay)
            delay = min(delay * multiplier, max_delay)


async def connect_with_backoff(
    name: str,
    connect: Callable[[], Awaitable[T]],
    *,
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    max_attempts: int,
) -> T:
    """Call `connect` until it succeeds; the last failure is re-raised.

    `connect` must release whatever it opened before raising.
    """
    bound = logger.bind(service_name=SERVICE_NAME, target=name)
    bound.bind(event=f"{name}_connecting").info("")
    last_exc: Exception | None = None
    async for attempt, delay in exponential_backoff(initial_delay, max_delay, multiplier, max_attempts):
        bound.bind(event=f"{name}_connect_attempt", attempt=attempt, delay=delay).info("")
        try:
            client = await connect()
        except Exception as exc:
            last_exc = exc
            bound.warning("{} connect failed: {}", name, exc)
            continue
        bound.bind(event=f"{name}_connected").info("")
        return client
    if last_exc is None:
        raise RuntimeError(f"{name} connect failed")
    raise last_exc
