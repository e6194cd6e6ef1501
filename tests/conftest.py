"""Shared fixtures: a client whose calendar lookups are served from JSON."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from berichtsheft import UntisClient

FIXTURES = Path(__file__).parent / "fixtures"
CALENDAR = json.loads((FIXTURES / "calendar_entries.json").read_text(encoding="utf-8"))


def fixture_entries(start, end):
    """Serve the fixture for 2024-05-06 by slot hour, nothing on other days."""
    if start.date().isoformat() != "2024-05-06":
        return []
    return CALENDAR.get(f"{start.hour:02d}", {}).get("calendarEntries") or []


def make_client():
    client = UntisClient(
        server="erato.webuntis.com",
        school="test-school",
        username="azubi",
        password="secret",
        element_id=36686,
    )
    client.token = "token"
    client.tenant_id = "4711"
    return client


@pytest.fixture()
def client():
    """A client with a patched ``fetch_calendar_entries``."""
    client = make_client()
    with patch.object(
        client, "fetch_calendar_entries", side_effect=fixture_entries
    ) as mock_fetch:
        client.mock_fetch = mock_fetch
        yield client
