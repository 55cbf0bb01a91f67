import logging
import asyncio
from typing import Callable, Optional
from functools import wraps

from sqlalchemy.exc import OperationalError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from db import session_rollback

logger = logging.getLogger(__name__)

# Errors that a fresh attempt can plausibly get past: lock timeouts, unique
# index collisions and optimistic-lock version mismatches.
RETRYABLE_ERRORS = (OperationalError, IntegrityError, StaleDataError)


def _find_session(args: tuple, kwargs: dict) -> Optional[AsyncSession]:
    session = kwargs.get("session")
    if isinstance(session, AsyncSession):
        return session
    for arg in args:
        if isinstance(arg, AsyncSession):
            return arg
    return None


class TransactionManager:
    """
    Retry logic for database operations that lose races: optimistic-lock
    conflicts, unique index collisions and lock timeouts.
    """

    # Retry configuration
    MAX_RETRIES = 3
    RETRY_DELAY_BASE = 0.05  # Base delay in seconds

    @staticmethod
    def with_retry(max_retries: Optional[int] = None, delay_base: Optional[float] = None,
                   retry_on: tuple = RETRYABLE_ERRORS,
                   on_exhausted: Optional[Callable[[Exception, int], Exception]] = None):
        """
        Decorator for automatic retry of database operations with exponential backoff.

        The decorated coroutine must receive its AsyncSession either as the
        `session` keyword or positionally; the session is rolled back before
        every retry so each attempt starts from a clean transaction.

        Args:
            max_retries: Maximum number of retry attempts (0 disables retrying)
            delay_base: Base delay for exponential backoff
            retry_on: Exception types that trigger a retry
            on_exhausted: Builds the exception raised once retries run out,
                from the last error and the number of attempts made
        """
        max_retries = TransactionManager.MAX_RETRIES if max_retries is None else max_retries
        delay_base = TransactionManager.RETRY_DELAY_BASE if delay_base is None else delay_base

        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                last_exception = None
                session = _find_session(args, kwargs)

                for attempt in range(max_retries + 1):
                    try:
                        return await func(*args, **kwargs)
                    except retry_on as e:
                        last_exception = e
                        if session is not None:
                            await session_rollback(session)

                        if attempt == max_retries:
                            logger.error(f"Function {func.__name__} failed after {max_retries} retries: {str(e)}")
                            break

                        # Exponential backoff with jitter
                        delay = delay_base * (2 ** attempt) + (delay_base * 0.1 * attempt)
                        logger.warning(f"Attempt {attempt + 1} failed for {func.__name__}, retrying in {delay:.2f}s: {str(e)}")
                        await asyncio.sleep(delay)

                if on_exhausted is not None:
                    raise on_exhausted(last_exception, max_retries + 1) from last_exception
                raise last_exception

            return wrapper
        return decorator
