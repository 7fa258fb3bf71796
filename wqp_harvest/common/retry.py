"""Bounded retry wrapper and diagnostic-output gating."""

from __future__ import annotations

import logging
from typing import Any, Callable, MutableMapping, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from wqp_harvest.common.logging import log_event

T = TypeVar("T")

DIAGNOSTICS_LOGGER_NAME = "wqp_harvest.portal"


class QuietLoggerAdapter(logging.LoggerAdapter):
    """Forwards only WARNING and above; informational chatter is dropped."""

    def __init__(self, logger: logging.Logger) -> None:
        super().__init__(logger, {})

    def isEnabledFor(self, level: int) -> bool:
        return level >= logging.WARNING and self.logger.isEnabledFor(level)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return msg, kwargs


def diagnostics_logger(
    verbose: bool,
    name: str = DIAGNOSTICS_LOGGER_NAME,
) -> logging.Logger | logging.LoggerAdapter:
    logger = logging.getLogger(name)
    if verbose:
        return logger
    return QuietLoggerAdapter(logger)


def _log_failed_attempt(logger: logging.Logger | logging.LoggerAdapter) -> Callable[[RetryCallState], None]:
    def _before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome is not None else None
        log_event(
            logger,
            f"attempt {state.attempt_number} failed: {exc!r}",
            level=logging.WARNING,
            event="ATTEMPT_FAIL",
            status="retry",
            attempt=state.attempt_number,
            error_code=getattr(exc, "error_code", type(exc).__name__),
        )

    return _before_sleep


def call_with_retry(
    operation: Callable[[], T],
    *,
    max_tries: int,
    wait_seconds: float = 0.0,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
) -> T:
    """Run ``operation`` up to ``max_tries`` times in total.

    Any exception counts as a failed attempt. Once the budget is spent the
    last exception is re-raised as-is.
    """
    if max_tries < 1:
        raise ValueError(f"max_tries must be >= 1, got {max_tries}")

    retrying = Retrying(
        stop=stop_after_attempt(max_tries),
        wait=wait_fixed(wait_seconds),
        retry=retry_if_exception_type(Exception),
        before_sleep=_log_failed_attempt(logger or logging.getLogger(__name__)),
        reraise=True,
    )
    return retrying(operation)
