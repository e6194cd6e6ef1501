"""Command line entry point: ``berichtsheft``."""

from __future__ import annotations

import argparse
import logging
import sys

import requests
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.prompt import Prompt

from .berichtsheft import Berichtsheft, parse_date_range
from .config import Settings
from .exceptions import BerichtsheftError
from .untis_client import UntisClient

logger = logging.getLogger(__name__)

console = Console()

BANNER = """\
Welcome to the Berichtsheft Generator!
This tool fetches teaching contents from WebUntis
and generates a Word document with the data.

Usage:
- Enter the start and end dates when prompted (or pass --start/--end).
- Ensure your WebUntis credentials are set in the .env file.

Features:
- Teaching content grouped by subject and day.
- Automatically formatted Word document.
- Debug mode for detailed logs (set DEBUG=true in .env)."""


def setup_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    # urllib3 would otherwise log every request line, including query strings
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def display_startup_screen() -> None:
    console.print(Panel(BANNER, title="Berichtsheft Generator"))
    console.print(
        "IMPORTANT: Please check the output for undocumented teaching contents "
        "before using the generated Word document!",
        style="red",
    )
    console.print("Ensure all teaching contents are properly documented.", style="red")
    console.print()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="berichtsheft",
        description="Export WebUntis teaching contents into a Berichtsheft .docx file.",
    )
    parser.add_argument("--start", help="first day, YYYY-MM-DD (prompted if omitted)")
    parser.add_argument("--end", help="last day, YYYY-MM-DD (prompted if omitted)")
    parser.add_argument(
        "-o",
        "--output",
        help="output file name; overrides OUTPUT_FILENAME",
    )
    parser.add_argument(
        "--env-file", help="path to a .env file (default: search from cwd)"
    )
    parser.add_argument("--debug", action="store_true", help="enable debug logging")
    return parser


def run(args: argparse.Namespace) -> int:
    """Validate input, fetch the range and write the document.

    Dates are validated before any network request is made.
    """
    settings = Settings.from_env(dotenv_path=args.env_file)
    setup_logging(args.debug or settings.debug)
    if args.output:
        settings.output_filename = args.output

    display_startup_screen()
    start_text = args.start or Prompt.ask("Enter the start date (YYYY-MM-DD)")
    end_text = args.end or Prompt.ask("Enter the end date (YYYY-MM-DD)")
    start, end = parse_date_range(start_text, end_text)
    console.print(f"Fetching data from {start:%d.%m.%Y} to {end:%d.%m.%Y}...")

    client = UntisClient.from_settings(settings)
    try:
        client.connect()
        report = Berichtsheft(client, start, end, author=settings.author)

        with Progress(
            TextColumn("Progress:"),
            BarColumn(),
            TextColumn("{task.percentage:>3.0f}%"),
            MofNCompleteColumn(),
            TextColumn("days"),
            console=console,
        ) as progress:
            task = progress.add_task("days", total=report.total_days)
            path = report.write_docx(
                settings.output_path(),
                on_day=lambda _record: progress.advance(task),
            )
    finally:
        client.close()

    console.print(f"Teaching content exported successfully to {path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except (BerichtsheftError, requests.RequestException) as exc:
        logger.debug("Aborted", exc_info=True)
        console.print(f"Error: {exc}", style="red")
        return 1
    except KeyboardInterrupt:
        console.print("Aborted.", style="red")
        return 130


if __name__ == "__main__":
    sys.exit(main())
