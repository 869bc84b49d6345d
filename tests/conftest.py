"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import pytest

from dato_schema_importer.progress import ImportProgress

from fakes import RecordingClient, SequentialIds


@pytest.fixture
def client() -> RecordingClient:
    return RecordingClient(locales=["en", "it"])


@pytest.fixture
def id_generator() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def progress_events() -> list[ImportProgress]:
    return []
