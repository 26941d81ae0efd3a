from __future__ import annotations

import logging
import time
from collections.abc import Callable

from risk_engine.models import GeoPoint, RiskZone
from risk_engine.proximity import ProximitySession
from risk_engine.tracking import TrackingSession

from guardian_api.repositories.zone_repository import ZoneRepository
from guardian_api.schemas.geo import RiskZoneItem
from guardian_api.schemas.session import ProximityCheckResult, TrackingStatusResult

logger = logging.getLogger(__name__)


class ProximityService:
    """One ``ProximitySession`` per user, created on first use.

    Sessions not touched for ``idle_ttl_seconds`` are dropped, so a returning
    user starts with an empty alerted set.
    """

    def __init__(
        self,
        zone_repository: ZoneRepository,
        proximity_threshold_meters: float = 500.0,
        idle_ttl_seconds: float = 21600.0,
        now_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self._zones = zone_repository
        self._threshold = proximity_threshold_meters
        self._idle_ttl_seconds = idle_ttl_seconds
        self._now_fn = now_fn
        self._sessions: dict[str, ProximitySession] = {}
        self._last_seen: dict[str, float] = {}
        self._last_sweep = now_fn()

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def check(self, user_id: str, position: GeoPoint) -> tuple[ProximityCheckResult, list[RiskZone]]:
        session = self._session(user_id)
        triggered = session.check_proximity(position, self._zones.registry.all_zones())
        for zone in triggered:
            logger.warning(
                "zone_alert",
                extra={
                    "component": "api",
                    "user_id": user_id,
                    "zone_id": zone.id,
                    "level": zone.level.value,
                },
            )
        result = ProximityCheckResult(
            alerts=[RiskZoneItem.from_zone(zone) for zone in triggered],
            alerted_zone_ids=sorted(session.alerted_zone_ids),
        )
        return result, triggered

    def reset(self, user_id: str) -> None:
        self._session(user_id).reset_session()

    def reset_all(self) -> None:
        for session in self._sessions.values():
            session.reset_session()
        logger.info("proximity_sessions_reset", extra={"component": "api", "session_count": len(self._sessions)})

    def _session(self, user_id: str) -> ProximitySession:
        now = self._now_fn()
        self._evict_idle(now)
        self._last_seen[user_id] = now
        session = self._sessions.get(user_id)
        if session is None:
            session = ProximitySession(self._threshold)
            self._sessions[user_id] = session
        return session

    def _evict_idle(self, now: float) -> None:
        if now - self._last_sweep < self._idle_ttl_seconds:
            return
        self._last_sweep = now
        stale = [user_id for user_id, seen in self._last_seen.items() if now - seen >= self._idle_ttl_seconds]
        for user_id in stale:
            del self._sessions[user_id]
            del self._last_seen[user_id]
        if stale:
            logger.info("proximity_sessions_evicted", extra={"component": "api", "session_count": len(stale)})


class _ClockedSession:
    def __init__(self, now: float) -> None:
        self.session = TrackingSession()
        self.last_tick = now


class TrackingService:
    """Per-user tracking countdown driven by wall-clock catch-up.

    Whole seconds elapsed since the previous access are applied with
    ``TrackingSession.advance`` before every read or write. Idle entries are
    evicted once ``idle_ttl_seconds`` have passed and the countdown, if any,
    would have run out.
    """

    def __init__(
        self,
        proximity_service: ProximityService,
        default_duration_seconds: int = 1800,
        idle_ttl_seconds: float = 21600.0,
        now_fn: Callable[[], float] = time.monotonic,
    ) -> None:
        self._proximity = proximity_service
        self._default_duration_seconds = default_duration_seconds
        self._idle_ttl_seconds = idle_ttl_seconds
        self._now_fn = now_fn
        self._sessions: dict[str, _ClockedSession] = {}
        self._last_sweep = now_fn()

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def start(self, user_id: str, duration_seconds: int | None = None) -> TrackingStatusResult:
        clocked = self._catch_up(user_id)
        clocked.session.start(duration_seconds or self._default_duration_seconds)
        self._proximity.reset(user_id)
        logger.info(
            "tracking_started",
            extra={"component": "api", "user_id": user_id, "duration_seconds": clocked.session.remaining_seconds},
        )
        return self._status(clocked)

    def stop(self, user_id: str) -> TrackingStatusResult:
        clocked = self._catch_up(user_id)
        ended = clocked.session.stop()
        if ended is not None:
            logger.info(
                "tracking_ended",
                extra={"component": "api", "user_id": user_id, "reason": ended.reason.value},
            )
        return self._status(clocked)

    def status(self, user_id: str) -> TrackingStatusResult:
        return self._status(self._catch_up(user_id))

    def _catch_up(self, user_id: str) -> _ClockedSession:
        now = self._now_fn()
        self._evict_idle(now)
        clocked = self._sessions.get(user_id)
        if clocked is None:
            clocked = _ClockedSession(now)
            self._sessions[user_id] = clocked
            return clocked
        elapsed = int(now - clocked.last_tick)
        if elapsed <= 0:
            return clocked
        # keep the fractional remainder for the next access
        clocked.last_tick += elapsed
        ended = clocked.session.advance(elapsed)
        if ended is not None:
            logger.info(
                "tracking_ended",
                extra={"component": "api", "user_id": user_id, "reason": ended.reason.value},
            )
        return clocked

    def _evict_idle(self, now: float) -> None:
        if now - self._last_sweep < self._idle_ttl_seconds:
            return
        self._last_sweep = now
        stale = [user_id for user_id, clocked in self._sessions.items() if self._is_stale(clocked, now)]
        for user_id in stale:
            del self._sessions[user_id]
        if stale:
            logger.info("tracking_sessions_evicted", extra={"component": "api", "session_count": len(stale)})

    def _is_stale(self, clocked: _ClockedSession, now: float) -> bool:
        idle = now - clocked.last_tick
        if idle < self._idle_ttl_seconds:
            return False
        return not clocked.session.active or idle >= clocked.session.remaining_seconds

    def _status(self, clocked: _ClockedSession) -> TrackingStatusResult:
        session = clocked.session
        last_end = session.last_end
        return TrackingStatusResult(
            active=session.active,
            remaining_seconds=session.remaining_seconds,
            ended_reason=last_end.reason.value if last_end is not None else None,
        )
