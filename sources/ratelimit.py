from __future__ import annotations

import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Mapping, Optional

from tenacity import (
    RetryCallState,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_never,
)
from tenacity.wait import wait_base

from common.errors import RateLimitedError
from common.logger import get_logger

log = get_logger(__name__)


def parse_rate_limit_reset(
    headers: Mapping[str, str], now: Optional[datetime] = None
) -> Optional[datetime]:
    """
    Work out when a rejected request may be retried.

    GitHub sends `x-ratelimit-reset` (epoch seconds) for primary limits and
    `retry-after` (seconds or an HTTP date) for secondary ones.
    """
    now = now or datetime.now(timezone.utc)
    reset = headers.get("x-ratelimit-reset")
    if reset:
        try:
            return datetime.fromtimestamp(int(reset), tz=timezone.utc)
        except ValueError:
            pass

    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return datetime.fromtimestamp(now.timestamp() + float(retry_after), tz=timezone.utc)
        except ValueError:
            try:
                dt = parsedate_to_datetime(retry_after)
            except (TypeError, ValueError):
                return None
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return dt
    return None


class wait_for_rate_limit_reset(wait_base):
    """Sleep until the reset time carried by the last RateLimitedError."""

    def __init__(self, buffer_seconds: float = 1.0, max_wait_seconds: float = 3600.0):
        self.buffer_seconds = buffer_seconds
        self.max_wait_seconds = max_wait_seconds

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        exc = outcome.exception() if outcome is not None else None
        if not isinstance(exc, RateLimitedError):
            return self.buffer_seconds
        delay = (exc.reset_at - datetime.now(timezone.utc)).total_seconds()
        return min(max(delay, 0.0) + self.buffer_seconds, self.max_wait_seconds)


def rate_limit_retry(buffer_seconds: float = 1.0, max_wait_seconds: float = 3600.0):
    """
    Decorator for content-source calls: on RateLimitedError wait for the reset
    and replay the identical request. There is no attempt cap; the reset
    cadence bounds how often we retry.
    """
    return retry(
        retry=retry_if_exception_type(RateLimitedError),
        wait=wait_for_rate_limit_reset(buffer_seconds, max_wait_seconds),
        stop=stop_never,
        before_sleep=before_sleep_log(log, logging.WARNING),
        reraise=True,
    )
