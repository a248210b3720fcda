"""Polling guard for the active pomodoro endpoint."""

import logging
import threading
import time
from collections.abc import Callable

from fastapi import HTTPException

from src.core.config import Constants, settings
from src.core.errors import ErrorCode, ErrorKind


logger = logging.getLogger(__name__)


class ActivePollLimiter:
    """Rejects a second poll from the same user inside the minimum interval.

    Any pomodoro action clears the user's entry so the next poll always passes.
    """

    def __init__(
        self,
        *,
        min_interval_seconds: float = settings.active_poll_min_interval_seconds,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.min_interval_seconds = min_interval_seconds
        self._clock = clock
        self._last_poll: dict[str, float] = {}
        self._lock = threading.Lock()

    def check(self, user_id: str) -> None:
        """Record a poll, raising HTTP 429 if the previous one was too recent.

        Raises:
            HTTPException: If the user polled less than ``min_interval_seconds`` ago
        """
        with self._lock:
            now = self._clock()
            last = self._last_poll.get(user_id)
            if last is not None and now - last < self.min_interval_seconds:
                retry_after = self.min_interval_seconds - (now - last)
                logger.warning(
                    "rate_limit_exceeded",
                    extra={"scope": "active_poll", "user_id": user_id, "retry_after": retry_after},
                )
                raise HTTPException(
                    status_code=Constants.HTTP_TOO_MANY_REQUESTS,
                    detail={
                        "success": False,
                        "error": {
                            "message": "Too many requests. Please wait before polling again.",
                            "code": ErrorCode.ERR_RATE_LIMIT_EXCEEDED,
                            "kind": ErrorKind.INVALID_STATE,
                        },
                    },
                    headers={"Retry-After": str(max(1, round(retry_after)))},
                )
            self._last_poll[user_id] = now

    def clear(self, user_id: str) -> None:
        """Forget the user's last poll."""
        with self._lock:
            self._last_poll.pop(user_id, None)
