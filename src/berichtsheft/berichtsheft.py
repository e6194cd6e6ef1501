"""Berichtsheft class module.

Provides the :class:`Berichtsheft` generator, the :class:`CalendarEntry`
and :class:`DayRecord` data classes, and the date helpers used to walk a
date range slot by slot.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Callable, Iterator

import requests
from bs4 import BeautifulSoup
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import RGBColor

from .exceptions import InvalidDateRangeError, NoContentError
from .untis_client import UntisClient

logger = logging.getLogger(__name__)

FIRST_SLOT_HOUR = 7
LAST_SLOT_HOUR = 18
"""Start hour of the last one-hour slot queried per day."""

MISSING_CONTENT = (
    "Kein Lehrstoff durch die Lehrkraft angegeben! Bitte manuell eintragen!"
)
MISSING_CONTENT_MARKER = "Kein Lehrstoff"

SUBJECT_ALIASES = {
    "LF 8: Daten systemübergreifend bereitstellen / OOP (SI+IT nur Grundlagen) "
    "in Python/Java/ Datenbanke": "LF 8: Daten systemübergreifend bereitstellen",
}

SUBJECT_COLOR = RGBColor.from_string("156082")
MISSING_COLOR = RGBColor.from_string("FF0000")
CONTENT_COLOR = RGBColor.from_string("000000")

_WEEKDAYS = (
    "Montag",
    "Dienstag",
    "Mittwoch",
    "Donnerstag",
    "Freitag",
    "Samstag",
    "Sonntag",
)
_MONTHS = (
    "Januar",
    "Februar",
    "März",
    "April",
    "Mai",
    "Juni",
    "Juli",
    "August",
    "September",
    "Oktober",
    "November",
    "Dezember",
)

_MARKUP_RE = re.compile(r"</?[a-zA-Z][a-zA-Z0-9]*(\s[^>]*)?/?>")


def parse_date(text: str) -> date:
    """Parse a ``YYYY-MM-DD`` date.

    :raises InvalidDateRangeError: If *text* is not a valid date.
    """
    try:
        return date.fromisoformat(text.strip())
    except (AttributeError, ValueError) as exc:
        raise InvalidDateRangeError(
            f"Invalid date format {text!r}. Please use a valid date as YYYY-MM-DD."
        ) from exc


def parse_date_range(start: str | date, end: str | date) -> tuple[date, date]:
    """Parse and validate an inclusive date range.

    :raises InvalidDateRangeError: If a date is invalid or *start* is
        after *end*.
    """
    start_date = start if isinstance(start, date) else parse_date(start)
    end_date = end if isinstance(end, date) else parse_date(end)
    if start_date > end_date:
        raise InvalidDateRangeError(
            "Start date must be earlier than or equal to the end date."
        )
    return start_date, end_date


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from *start* to *end*, both inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def hour_slots(day: date) -> Iterator[tuple[datetime, datetime]]:
    """Yield the one-hour ``(start, end)`` slots queried for *day*."""
    for hour in range(FIRST_SLOT_HOUR, LAST_SLOT_HOUR + 1):
        start = datetime.combine(day, time(hour))
        yield start, start + timedelta(hours=1)


def calendar_week(d: date) -> tuple[int, int]:
    """Return the ISO ``(year, week)`` of *d*.

    The week containing the year's first Thursday is week 1, so late
    December days can belong to week 1 of the next year and early January
    days to week 52 or 53 of the previous one.
    """
    iso = d.isocalendar()
    return iso[0], iso[1]


def week_label(d: date) -> str:
    """Return the ``KW<week>/<year>`` label for the week containing *d*."""
    year, week = calendar_week(d)
    return f"KW{week}/{year}"


def format_day_heading(d: date) -> str:
    """Format *d* as a German long date, e.g. ``"Montag, 6. Mai 2024:"``."""
    return f"{_WEEKDAYS[d.weekday()]}, {d.day}. {_MONTHS[d.month - 1]} {d.year}:"


def _plain_text(text: str) -> str:
    """Strip HTML markup from teaching content, leaving plain text as is."""
    if not _MARKUP_RE.search(text):
        return text
    return BeautifulSoup(text, "html.parser").get_text(" ", True)  # type: ignore[call-overload]


def _clock_time(value: str | None) -> str:
    """Return ``HH:MM`` of an ISO timestamp, ``"?"`` when it is missing.

    :raises ValueError: If *value* is not an ISO timestamp.
    """
    if not value:
        return "?"
    if not isinstance(value, str):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value).strftime("%H:%M")


@dataclass
class CalendarEntry:
    """A single lesson returned by the calendar endpoint.

    :param subject: Display name of the subject, already normalized.
    :param status: Lesson status, e.g. ``"REGULAR"`` or ``"CANCELLED"``.
    :param start: Lesson start as sent by the API, an ISO timestamp.
    :param end: Lesson end as sent by the API, an ISO timestamp.
    :param teaching_content: Content entered by the teacher, if any.
    """

    subject: str
    status: str | None = None
    start: str | None = None
    end: str | None = None
    teaching_content: str | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> CalendarEntry | None:
        """Build an entry from a raw ``calendarEntries`` item.

        :returns: ``None`` for entries without a subject long name.
        :raises ValueError: If *raw* or its subject is not a JSON object, or
            the subject name or teaching content is not text.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Calendar entry is not an object: {raw!r}")
        subject = raw.get("subject") or {}
        if not isinstance(subject, dict):
            raise ValueError(f"Calendar entry subject is not an object: {subject!r}")
        subject = subject.get("longName")
        if not subject:
            return None
        if not isinstance(subject, str):
            raise ValueError(f"Subject name is not text: {subject!r}")
        content = raw.get("teachingContent")
        if content is not None and not isinstance(content, str):
            raise ValueError(f"Teaching content is not text: {content!r}")
        return cls(
            subject=SUBJECT_ALIASES.get(subject, subject),
            status=raw.get("status"),
            start=raw.get("startDateTime"),
            end=raw.get("endDateTime"),
            teaching_content=content,
        )

    @property
    def cancelled(self) -> bool:
        return self.status == "CANCELLED"

    def content_line(self) -> str:
        """Return the line this entry contributes to its subject.

        Cancelled lessons render as ``Entfallen (HH:MM - HH:MM)``; lessons
        without content render as :data:`MISSING_CONTENT`.

        :raises ValueError: If a cancelled lesson has a malformed time.
        """
        if self.cancelled:
            return f"Entfallen ({_clock_time(self.start)} - {_clock_time(self.end)})"

        content = _plain_text(self.teaching_content or "")
        return content or MISSING_CONTENT


@dataclass
class DayRecord:
    """Teaching content lines of one day, grouped by subject.

    Both subjects and lines keep first-seen order; lines are stored as
    dict keys so identical text is kept once.
    """

    day: date
    subjects: dict[str, dict[str, None]] = field(default_factory=dict)

    def add(self, subject: str, line: str) -> None:
        self.subjects.setdefault(subject, {})[line] = None

    def add_entry(self, entry: CalendarEntry) -> None:
        self.add(entry.subject, entry.content_line())

    def lines(self, subject: str) -> list[str]:
        return list(self.subjects.get(subject, ()))

    def __bool__(self) -> bool:
        return bool(self.subjects)


def render_document(
    days: list[DayRecord],
    start: date,
    author: str = "",
) -> Document:
    """Lay out *days* as a Word document.

    The document starts with a ``Berichtsheft`` title and the week label
    of *start*. Each day gets an underlined heading, then one coloured
    sub-heading per subject followed by its lines as bullets, then an
    empty paragraph. Lines containing :data:`MISSING_CONTENT_MARKER` are
    red.

    :returns: A :class:`docx.document.Document` ready to save.
    """
    doc = Document()
    doc.core_properties.author = author
    doc.core_properties.title = "TeachingContentOverview"
    doc.core_properties.comments = (
        "A document containing teaching content fetched from WebUntis."
    )

    title = doc.add_paragraph("Berichtsheft", style="Title")
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    label = doc.add_paragraph(week_label(start))
    label.alignment = WD_ALIGN_PARAGRAPH.CENTER

    for record in days:
        heading = doc.add_paragraph(style="Heading 2")
        heading.add_run(format_day_heading(record.day)).underline = True

        for subject, lines in record.subjects.items():
            sub = doc.add_paragraph(style="Heading 3")
            sub.add_run(subject).font.color.rgb = SUBJECT_COLOR

            for line in lines:
                bullet = doc.add_paragraph(style="List Bullet")
                run = bullet.add_run(line)
                run.font.color.rgb = (
                    MISSING_COLOR if MISSING_CONTENT_MARKER in line else CONTENT_COLOR
                )

        doc.add_paragraph("")

    return doc


class Berichtsheft:
    """Collects teaching contents from WebUntis and writes a ``.docx``.

    Each day in the range is queried in fixed one-hour slots from
    :data:`FIRST_SLOT_HOUR` to :data:`LAST_SLOT_HOUR`. A slot that fails
    is logged and left out; the rest of the day is still collected.

    :param client: A connected :class:`UntisClient`.
    :param start: First day, inclusive.
    :param end: Last day, inclusive.
    :param author: Author stored in the document properties.

    Example usage::

        client = UntisClient.from_settings(Settings.from_env())
        client.connect()
        report = Berichtsheft(client, date(2024, 5, 6), date(2024, 5, 10))
        report.write_docx("Berichtsheft.docx")
    """

    def __init__(
        self,
        client: UntisClient,
        start: date,
        end: date,
        author: str = "",
    ) -> None:
        self.start, self.end = parse_date_range(start, end)
        self.client = client
        self.author = author

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days + 1

    def collect_day(self, day: date) -> DayRecord:
        """Query every slot of *day* and group the entries by subject."""
        record = DayRecord(day)
        logger.debug("Fetching lessons for date: %s", day.isoformat())

        for slot_start, slot_end in hour_slots(day):
            try:
                raw_entries = self.client.fetch_calendar_entries(slot_start, slot_end)
            except (requests.RequestException, ValueError) as exc:
                logger.error(
                    "Error fetching teaching content for %s-%s: %s",
                    slot_start.isoformat(),
                    slot_end.strftime("%H:%M"),
                    exc,
                )
                continue

            for raw in raw_entries:
                try:
                    entry = CalendarEntry.from_api(raw)
                    if entry is not None:
                        record.add_entry(entry)
                except ValueError as exc:
                    logger.error("Skipping malformed calendar entry %r: %s", raw, exc)

        return record

    def collect_days(
        self, on_day: Callable[[DayRecord], None] | None = None
    ) -> list[DayRecord]:
        """Collect a :class:`DayRecord` for every day in the range.

        :param on_day: Called with each record once its day is done.
        """
        days: list[DayRecord] = []
        for day in iter_days(self.start, self.end):
            record = self.collect_day(day)
            days.append(record)
            if on_day is not None:
                on_day(record)
        return days

    def build_document(
        self, on_day: Callable[[DayRecord], None] | None = None
    ) -> Document:
        """Collect the range and lay it out as a document.

        Days without lessons keep their heading.

        :raises NoContentError: If there is no day to render.
        """
        days = self.collect_days(on_day)
        if not days:
            raise NoContentError("No valid teaching content to add to the document.")
        return render_document(days, self.start, self.author)

    def write_docx(
        self,
        path: str | Path,
        on_day: Callable[[DayRecord], None] | None = None,
    ) -> Path:
        """Collect the range and write the document to *path*.

        Nothing is written when :meth:`build_document` raises.

        :param path: Destination file path. Parent directories must exist.
        :returns: The path written to.
        """
        doc = self.build_document(on_day)
        path = Path(path)
        doc.save(str(path))
        logger.info("Teaching content exported successfully to %s", path)
        return path
