"""Shared test fixtures for bodyline."""

import json
import os
import tempfile

import pytest

from bodyline.timeline.config import TimelineConfig


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def config():
    return TimelineConfig()


@pytest.fixture
def export_records():
    # 2025-03-03 is a Monday
    return [
        {"timestamp": "2025-03-05T07:30:00", "stream": "weight", "payload": {"value": 81.0}, "event_id": "w-1"},
        {"timestamp": "2025-03-12T07:30:00", "stream": "weight", "payload": {"value": 80.4}, "event_id": "w-2"},
        {"timestamp": "2025-03-19T07:30:00", "stream": "weight", "payload": {"value": 80.0}, "event_id": "w-3"},
        {"timestamp": "2025-03-13T19:00:00", "stream": "photo", "payload": {"photo_id": "p-1"}, "event_id": "p-1"},
        {"timestamp": "2025-03-14T07:30:00", "stream": "weight", "payload": {"value": 999}, "event_id": "bad"},
    ]


@pytest.fixture
def export_file(tmp_dir, export_records):
    """JSON export keyed by user id."""
    path = os.path.join(tmp_dir, "export.json")
    with open(path, "w") as f:
        json.dump({"me": export_records}, f)
    return path
