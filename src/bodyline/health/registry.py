"""
Event-source plugin registry.

Discovers sources at runtime via ``importlib.metadata`` entry points
(group: ``bodyline.event_sources``).  Third-party packages can register
sources in their own ``pyproject.toml``:

    [project.entry-points."bodyline.event_sources"]
    my_sync = "my_package.source:MySyncSource"
"""

from importlib.metadata import entry_points
from typing import Any

from loguru import logger

from .source import EventSource

ENTRY_POINT_GROUP = "bodyline.event_sources"


class EventSourceRegistry:
    """Discover and manage event-source plugins."""

    def __init__(self):
        self._sources: dict[str, type] = {}

    def discover(self) -> dict[str, type]:
        """Scan entry points and return {name: source_class}."""
        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                cls = ep.load()
            except Exception as e:
                logger.warning(f"Failed to load event source '{ep.name}': {e}")
                continue
            if not isinstance(cls, type):
                logger.warning(f"Event source '{ep.name}' is not a class, skipping")
                continue
            self._sources[ep.name] = cls
            logger.debug(f"Discovered event source: {ep.name}")

        return dict(self._sources)

    def register(self, name: str, source_class: type) -> None:
        """Manually register a source (useful for testing)."""
        self._sources[name] = source_class

    def get(self, name: str) -> type | None:
        """Get a registered source class by name."""
        return self._sources.get(name)

    def list_names(self) -> list[str]:
        return list(self._sources.keys())

    def create(self, name: str, **config: Any) -> EventSource:
        """Instantiate a source by name with the given config."""
        cls = self._sources.get(name)
        if cls is None:
            raise KeyError(f"No event source registered as '{name}'. Available: {self.list_names()}")
        return cls(**config)
