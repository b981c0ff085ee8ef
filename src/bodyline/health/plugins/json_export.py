"""Export-file event source.

Reads a JSON or YAML export of a user's events, either a list of records
or a mapping ``{user_id: [records]}``.  Each record looks like::

    {"timestamp": "2025-03-04T07:30:00", "stream": "weight",
     "payload": {"value": 81.2}, "event_id": "w-1"}

Records that cannot even be turned into an event (no parseable timestamp)
are dropped with a warning; value checks happen later in the timeline.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from bodyline.core.exceptions import EventSourceError
from bodyline.health.models import HealthEvent
from bodyline.health.source import BaseEventSource


class JsonExportEventSource(BaseEventSource):
    """Serve events from a JSON/YAML export file."""

    name = "json_export"

    def __init__(self, export_path: str, **config: Any):
        super().__init__(export_path=export_path, **config)
        self.export_path = Path(export_path).expanduser()

    def validate(self) -> bool:
        return self.export_path.is_file()

    def get_config_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "export_path": {
                    "type": "string",
                    "description": "Path to a .json/.yaml event export",
                }
            },
            "required": ["export_path"],
        }

    def fetch_events(self, user_id: str) -> list[HealthEvent]:
        if not self.validate():
            self.stats["errors"] += 1
            raise EventSourceError(f"Export file not found: {self.export_path}")

        raw = self._load()
        if isinstance(raw, dict):
            records = raw.get(user_id, [])
        elif isinstance(raw, list):
            records = raw
        else:
            self.stats["errors"] += 1
            raise EventSourceError(f"Unrecognised export layout in {self.export_path}")

        events = []
        for index, record in enumerate(records):
            event = self._to_event(record, index)
            if event is not None:
                events.append(event)
        return self._record_fetch(events)

    def _load(self) -> Any:
        suffix = self.export_path.suffix.lower()
        try:
            with open(self.export_path) as f:
                if suffix in (".yaml", ".yml"):
                    return yaml.safe_load(f) or []
                return json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            self.stats["errors"] += 1
            raise EventSourceError(f"Could not parse {self.export_path}: {e}") from e

    @staticmethod
    def _to_event(record: Any, index: int) -> HealthEvent | None:
        if not isinstance(record, dict):
            logger.warning(f"Export record #{index} is not a mapping, dropped")
            return None
        timestamp = record.get("timestamp")
        if isinstance(timestamp, str):
            try:
                timestamp = datetime.fromisoformat(timestamp)
            except ValueError:
                logger.warning(f"Export record #{index} has bad timestamp {timestamp!r}, dropped")
                return None
        if isinstance(timestamp, date) and not isinstance(timestamp, datetime):
            timestamp = datetime.combine(timestamp, time())
        if not isinstance(timestamp, datetime):
            logger.warning(f"Export record #{index} has no timestamp, dropped")
            return None
        return HealthEvent(
            timestamp=timestamp,
            stream=record.get("stream", ""),
            payload=dict(record.get("payload") or {}),
            event_id=str(record.get("event_id", "") or ""),
        )
