"""Exports WebUntis teaching contents into a Berichtsheft Word document.

This package exposes these public symbols:

* :class:`Berichtsheft` — collects a date range and writes the ``.docx``.
* :class:`UntisClient` — the WebUntis login and calendar client.
* :class:`CalendarEntry` and :class:`DayRecord` — data classes for lessons
  and the per-day grouping.
* :class:`Settings` — configuration read from the environment.
"""

from .berichtsheft import Berichtsheft, CalendarEntry, DayRecord
from .config import Settings
from .exceptions import (
    AuthenticationError,
    BerichtsheftError,
    ConfigurationError,
    InvalidDateRangeError,
    NoContentError,
)
from .untis_client import UntisClient

__all__ = [
    "AuthenticationError",
    "Berichtsheft",
    "BerichtsheftError",
    "CalendarEntry",
    "ConfigurationError",
    "DayRecord",
    "InvalidDateRangeError",
    "NoContentError",
    "Settings",
    "UntisClient",
]
