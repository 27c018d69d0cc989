import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from reading_room.core.config import settings
from reading_room.core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Failures worth another attempt; anything else propagates immediately
_RETRYABLE = (asyncio.TimeoutError, ConnectionError, OperationalError)


async def call_store(
    operation: Callable[[], Awaitable[T]],
    description: str,
    timeout: Optional[float] = None,
    attempts: Optional[int] = None,
    reset: Optional[Callable[[], Awaitable[None]]] = None,
) -> T:
    """Run a data-store call with a per-attempt timeout and bounded retries.

    *operation* is a zero-argument callable returning a fresh awaitable
    each time it is invoked.  *reset* (usually the session's
    ``rollback``) is awaited after every failed attempt so the next one
    starts on a clean transaction.  After the last failed attempt a
    ``StoreUnavailableError`` is raised, chained to the final cause.
    """
    timeout = settings.STORE_TIMEOUT_SECONDS if timeout is None else timeout
    attempts = max(1, settings.STORE_MAX_ATTEMPTS if attempts is None else attempts)

    last_error: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        try:
            return await asyncio.wait_for(operation(), timeout=timeout)
        except _RETRYABLE as exc:
            last_error = exc
            logger.warning(
                "Store call %s failed (attempt %d/%d): %r",
                description,
                attempt,
                attempts,
                exc,
            )
        if reset is not None:
            try:
                await reset()
            except (SQLAlchemyError, ConnectionError, OSError) as exc:
                logger.warning("Could not reset session after %s: %r", description, exc)

    raise StoreUnavailableError(
        f"{description} failed after {attempts} attempt(s)"
    ) from last_error
