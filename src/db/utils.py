"""
Retry policy for account store calls.

Only reads and absolute writes (``SET x = value``) are retried. Counter
increments and event appends are not: after a lost acknowledgement a retry
would count the same call twice.
"""

import asyncio
import logging
from typing import Any, Callable, TypeVar

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.constants import DEFAULT_DB_RETRY_ATTEMPTS
from src.utils.env_utils import parse_int_env

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

TRANSIENT_DB_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    asyncio.TimeoutError,
    ConnectionError,
)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        f"Transient account store error in {retry_state.fn.__name__} "
        f"(attempt {retry_state.attempt_number}): {type(error).__name__}: {error}"
    )


def with_db_retry(func: F) -> F:
    """Retry an idempotent async repository function on transient errors."""
    return retry(
        stop=stop_after_attempt(parse_int_env("DB_RETRY_ATTEMPTS", DEFAULT_DB_RETRY_ATTEMPTS)),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
        retry=retry_if_exception_type(TRANSIENT_DB_ERRORS),
        before_sleep=_log_retry,
        reraise=True,
    )(func)
