"""Tests for the command line entry point."""

from unittest.mock import patch

import pytest
from docx import Document

from berichtsheft import AuthenticationError, cli
from conftest import fixture_entries, make_client

ENV = {
    "UNTIS_SERVER": "erato.webuntis.com",
    "UNTIS_SCHOOL": "test-school",
    "UNTIS_USERNAME": "azubi",
    "UNTIS_PASSWORD": "secret",
    "UNTIS_ELEMENT_ID": "36686",
}


@pytest.fixture(autouse=True)
def environment(monkeypatch, tmp_path):
    """Isolate from any real ``.env`` file and write into *tmp_path*."""
    monkeypatch.setattr("berichtsheft.config.load_dotenv", lambda **kw: False)
    for name, value in ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("DOCX_PATH", str(tmp_path))
    monkeypatch.delenv("OUTPUT_FILENAME", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)


def test_reversed_range_makes_no_requests():
    with patch("berichtsheft.cli.UntisClient") as mock_client:
        status = cli.main(["--start", "2024-05-10", "--end", "2024-05-06"])
    assert status == 1
    mock_client.assert_not_called()
    mock_client.from_settings.assert_not_called()


def test_invalid_date_makes_no_requests():
    with patch("berichtsheft.cli.UntisClient") as mock_client:
        status = cli.main(["--start", "06.05.2024", "--end", "2024-05-06"])
    assert status == 1
    mock_client.from_settings.assert_not_called()


def test_missing_configuration(monkeypatch):
    monkeypatch.delenv("UNTIS_PASSWORD")
    assert cli.main(["--start", "2024-05-06", "--end", "2024-05-06"]) == 1


def test_prompts_for_missing_dates(tmp_path):
    client = make_client()
    with (
        patch("berichtsheft.cli.Prompt.ask", side_effect=["2024-05-06", "2024-05-06"]) as ask,
        patch("berichtsheft.cli.UntisClient.from_settings", return_value=client),
        patch.object(client, "connect"),
        patch.object(client, "fetch_calendar_entries", side_effect=fixture_entries),
    ):
        assert cli.main([]) == 0
    assert ask.call_count == 2
    assert (tmp_path / "TeachingContentOverview.docx").exists()


def test_writes_document(tmp_path):
    client = make_client()
    with (
        patch("berichtsheft.cli.UntisClient.from_settings", return_value=client),
        patch.object(client, "connect") as mock_connect,
        patch.object(client, "fetch_calendar_entries", side_effect=fixture_entries),
    ):
        status = cli.main(
            ["--start", "2024-05-06", "--end", "2024-05-07", "--output", "KW19"]
        )

    assert status == 0
    mock_connect.assert_called_once_with()
    texts = [p.text for p in Document(str(tmp_path / "KW19.docx")).paragraphs]
    assert texts[:2] == ["Berichtsheft", "KW19/2024"]
    assert "Dienstag, 7. Mai 2024:" in texts


def test_authentication_failure_writes_nothing(tmp_path):
    client = make_client()
    with (
        patch("berichtsheft.cli.UntisClient.from_settings", return_value=client),
        patch.object(client, "connect", side_effect=AuthenticationError("Failed to login: 401 Unauthorized")),
        patch.object(client, "fetch_calendar_entries") as mock_fetch,
    ):
        status = cli.main(["--start", "2024-05-06", "--end", "2024-05-06"])

    assert status == 1
    mock_fetch.assert_not_called()
    assert list(tmp_path.iterdir()) == []


def test_range_without_lessons_is_written(tmp_path):
    client = make_client()
    with (
        patch("berichtsheft.cli.UntisClient.from_settings", return_value=client),
        patch.object(client, "connect"),
        patch.object(client, "fetch_calendar_entries", return_value=[]),
    ):
        status = cli.main(["--start", "2024-05-11", "--end", "2024-05-12"])

    assert status == 0
    texts = [p.text for p in Document(str(tmp_path / "TeachingContentOverview.docx")).paragraphs]
    assert texts == [
        "Berichtsheft",
        "KW19/2024",
        "Samstag, 11. Mai 2024:",
        "",
        "Sonntag, 12. Mai 2024:",
        "",
    ]
