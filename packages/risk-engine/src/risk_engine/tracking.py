from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from risk_engine.errors import InvalidArgumentError

DEFAULT_TRACKING_SECONDS = 1800


class TrackingEndReason(str, Enum):
    EXPIRED = "expired"
    STOPPED_BY_USER = "stopped_by_user"


@dataclass(frozen=True)
class TrackingEnd:
    reason: TrackingEndReason
    remaining_seconds: int


class TrackingSession:
    """Countdown for a bounded live-location sharing window.

    Two states: inactive, and active with ``remaining_seconds > 0``. The owner
    calls ``tick`` once per second; expiry and a manual stop produce distinct
    ``TrackingEnd`` signals.
    """

    def __init__(self) -> None:
        self._active = False
        self._remaining_seconds = 0
        self._last_end: TrackingEnd | None = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def remaining_seconds(self) -> int:
        return self._remaining_seconds

    @property
    def last_end(self) -> TrackingEnd | None:
        return self._last_end

    def start(self, duration_seconds: int = DEFAULT_TRACKING_SECONDS) -> None:
        if duration_seconds <= 0:
            raise InvalidArgumentError("duration_seconds must be > 0")
        self._active = True
        self._remaining_seconds = int(duration_seconds)
        self._last_end = None

    def tick(self) -> TrackingEnd | None:
        if not self._active:
            return None
        self._remaining_seconds = max(0, self._remaining_seconds - 1)
        if self._remaining_seconds == 0:
            return self._end(TrackingEndReason.EXPIRED)
        return None

    def advance(self, seconds: int) -> TrackingEnd | None:
        if seconds < 0:
            raise InvalidArgumentError("seconds must be >= 0")
        for _ in range(min(seconds, self._remaining_seconds)):
            ended = self.tick()
            if ended is not None:
                return ended
        return None

    def stop(self) -> TrackingEnd | None:
        if not self._active:
            return None
        return self._end(TrackingEndReason.STOPPED_BY_USER)

    def _end(self, reason: TrackingEndReason) -> TrackingEnd:
        self._active = False
        self._last_end = TrackingEnd(reason=reason, remaining_seconds=self._remaining_seconds)
        return self._last_end
