from __future__ import annotations

import json
import logging
from pathlib import Path

from risk_engine.errors import InvalidArgumentError
from risk_engine.models import RiskZone
from risk_engine.records import zones_from_records
from risk_engine.zones import DEFAULT_ZONES, ZoneRegistry

logger = logging.getLogger(__name__)


class ZoneRepository:
    """Holds the current zone snapshot.

    Zones come from a JSON file when ``zones_file`` is set, otherwise from the
    built-in seed set. Readers always get a complete snapshot; ``reload`` and
    ``replace`` swap it in one assignment.
    """

    def __init__(self, zones_file: str | None = None) -> None:
        self._zones_file = zones_file
        self._registry = ZoneRegistry(self._load())

    @property
    def registry(self) -> ZoneRegistry:
        return self._registry

    def reload(self) -> bool:
        """Re-read the zone source. Returns True when the snapshot changed."""
        return self.replace(self._load())

    def replace(self, zones: list[RiskZone]) -> bool:
        updated = self._registry.replace(zones)
        changed = updated != self._registry
        self._registry = updated
        logger.info(
            "zones_loaded",
            extra={"component": "api", "zone_count": len(updated), "changed": changed},
        )
        return changed

    def _load(self) -> list[RiskZone]:
        if not self._zones_file:
            return list(DEFAULT_ZONES)
        path = Path(self._zones_file)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise InvalidArgumentError(f"cannot read zones file {path}: {exc}") from exc
        if isinstance(payload, dict):
            payload = payload.get("zones", [])
        if not isinstance(payload, list):
            raise InvalidArgumentError("zones file must hold a list of zones")
        return zones_from_records(payload)
