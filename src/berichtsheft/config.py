"""Settings loaded from the environment and an optional ``.env`` file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_OUTPUT_FILENAME = "TeachingContentOverview.docx"
DEFAULT_ELEMENT_TYPE = 5


def _is_truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in ("1", "true")


def _clean(value: str | None) -> str | None:
    """Return *value* stripped, or ``None`` when it is blank."""
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class Settings:
    """Connection and output settings.

    :param server: WebUntis host name, e.g. ``"erato.webuntis.com"``.
    :param school: School login name as used in the WebUntis URL.
    :param username: WebUntis user name.
    :param password: WebUntis password.
    :param element_id: Timetable element (class or student) to query.
    :param element_type: WebUntis element type, ``5`` for a student.
    :param output_filename: Name of the generated ``.docx`` file.
    :param output_dir: Directory the file is written to when
        *output_filename* is relative.
    :param author: Author stored in the document properties.
    :param debug: ``True`` to log requests and raw responses.
    """

    server: str
    school: str
    username: str
    password: str
    element_id: int
    element_type: int = DEFAULT_ELEMENT_TYPE
    output_filename: str = DEFAULT_OUTPUT_FILENAME
    output_dir: Path | None = None
    author: str = ""
    debug: bool = False

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        dotenv_path: str | Path | None = None,
    ) -> Settings:
        """Build settings from *environ* (default :data:`os.environ`).

        When *environ* is not given, a ``.env`` file is loaded first so
        its values end up in the process environment.

        :raises ConfigurationError: If a required variable is missing or
            a numeric variable is not an integer.
        """
        if environ is None:
            load_dotenv(dotenv_path=dotenv_path)
            environ = os.environ

        missing = [
            name
            for name in (
                "UNTIS_SERVER",
                "UNTIS_SCHOOL",
                "UNTIS_USERNAME",
                "UNTIS_PASSWORD",
                "UNTIS_ELEMENT_ID",
            )
            if not _clean(environ.get(name))
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required setting(s): {', '.join(missing)}"
            )

        try:
            element_id = int(environ["UNTIS_ELEMENT_ID"])
            element_type = int(
                _clean(environ.get("UNTIS_ELEMENT_TYPE")) or DEFAULT_ELEMENT_TYPE
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid element setting: {exc}") from exc

        output_dir = _clean(environ.get("DOCX_PATH"))

        return cls(
            server=_clean(environ["UNTIS_SERVER"]),
            school=_clean(environ["UNTIS_SCHOOL"]),
            username=_clean(environ["UNTIS_USERNAME"]),
            password=environ["UNTIS_PASSWORD"],
            element_id=element_id,
            element_type=element_type,
            output_filename=_clean(environ.get("OUTPUT_FILENAME"))
            or DEFAULT_OUTPUT_FILENAME,
            output_dir=Path(output_dir) if output_dir else None,
            author=_clean(environ.get("DOCUMENT_AUTHOR")) or "",
            debug=_is_truthy(environ.get("DEBUG")),
        )

    def output_path(self) -> Path:
        """Resolve where the document is written.

        ``.docx`` is appended when missing. An absolute file name wins
        over :attr:`output_dir`; otherwise the file goes into
        :attr:`output_dir`, or the current directory if that is unset.
        """
        filename = self.output_filename
        if not filename.lower().endswith(".docx"):
            filename += ".docx"
        path = Path(filename)
        if path.is_absolute():
            return path
        return (self.output_dir or Path.cwd()) / path
