"""
Utility functions shared by the services.
"""
import logging
import secrets
from functools import wraps
from typing import Callable, TypeVar, Any

from sqlalchemy.exc import IntegrityError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_random_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from chronos.config import settings

# tenacity hooks log through stdlib logging; structlog renders the records
_retry_logger = logging.getLogger(__name__)

T = TypeVar('T')


def retry_on_conflict(max_attempts: int = None):
    """
    Decorator for retrying an async write that lost a unique-constraint race.

    The wrapped function must roll its session back before re-raising
    IntegrityError so the next attempt starts a clean transaction.

    Args:
        max_attempts: Maximum attempts (default from config)

    Returns:
        Decorated function with retry logic
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempts = max_attempts or settings.vote_conflict_retries
            retrying = retry(
                stop=stop_after_attempt(attempts),
                wait=wait_random_exponential(multiplier=0.05, max=0.5),
                retry=retry_if_exception_type(IntegrityError),
                before_sleep=before_sleep_log(_retry_logger, logging.WARNING),
                reraise=True,
            )
            return await retrying(func)(*args, **kwargs)

        return wrapper

    return decorator


def generate_share_token(length: int = None) -> str:
    """Random lowercase hex token used in invite links."""
    length = length or settings.share_token_length
    return secrets.token_hex((length + 1) // 2)[:length]
