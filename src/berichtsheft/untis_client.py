"""Minimal WebUntis client.

Only the three calls needed to read teaching contents are implemented:
the JSON-RPC login, the REST token endpoint and the calendar entry detail
view.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

import requests

from .exceptions import AuthenticationError

if TYPE_CHECKING:
    from .config import Settings

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
"""Seconds to wait for any single WebUntis response."""

_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_local_datetime(value: datetime) -> str:
    """Format *value* the way the calendar endpoint expects it.

    >>> format_local_datetime(datetime(2024, 5, 6, 7))
    '2024-05-06T07:00:00'
    """
    return value.strftime(_DATETIME_FORMAT)


class UntisClient:
    """Talks to one WebUntis server on behalf of one user.

    :param server: Host name of the WebUntis server.
    :param school: School login name.
    :param username: WebUntis user name.
    :param password: WebUntis password.
    :param element_id: Element whose calendar is read.
    :param element_type: WebUntis element type of *element_id*.
    :param session: Optional :class:`requests.Session` to reuse.

    Example usage::

        client = UntisClient("erato.webuntis.com", "my-school", "me", "secret", 36686)
        client.connect()
        entries = client.fetch_calendar_entries(start, end)
    """

    def __init__(
        self,
        server: str,
        school: str,
        username: str,
        password: str,
        element_id: int,
        element_type: int = 5,
        session: requests.Session | None = None,
    ) -> None:
        self.server = server
        self.school = school
        self.username = username
        self.password = password
        self.element_id = element_id
        self.element_type = element_type
        self.session = session or requests.Session()
        self.tenant_id: str | None = None
        self.token: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> UntisClient:
        """Create a client from a :class:`~berichtsheft.config.Settings`."""
        return cls(
            server=settings.server,
            school=settings.school,
            username=settings.username,
            password=settings.password,
            element_id=settings.element_id,
            element_type=settings.element_type,
        )

    @property
    def base_url(self) -> str:
        return f"https://{self.server}/WebUntis"

    def connect(self) -> None:
        """Log in and fetch the bearer token for the REST API.

        :raises AuthenticationError: If any step of the login fails.
        """
        self.login()
        self.fetch_token()

    def login(self) -> None:
        """Authenticate via JSON-RPC and remember the tenant id.

        The session cookie returned by the server is kept in
        :attr:`session` and sent with every later request.

        :raises AuthenticationError: On a non-2xx status, a JSON-RPC error,
            or when the session or ``Tenant-Id`` cookie is missing.
        """
        payload = {
            "id": "login",
            "method": "authenticate",
            "params": {"user": self.username, "password": self.password},
            "jsonrpc": "2.0",
        }
        resp = self.session.post(
            f"{self.base_url}/jsonrpc.do",
            params={"school": self.school},
            json=payload,
            timeout=REQUEST_TIMEOUT,
        )
        if not resp.ok:
            raise AuthenticationError(
                f"Failed to login: {resp.status_code} {resp.reason}"
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise AuthenticationError("Login response is not valid JSON.") from exc

        error = body.get("error") if isinstance(body, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise AuthenticationError(f"Failed to login: {message}")

        if not self.session.cookies:
            raise AuthenticationError("No session cookie found in the login response.")
        logger.debug("Session cookies: %s", sorted(self.session.cookies.keys()))

        self.tenant_id = self._tenant_id()
        logger.debug("Extracted Tenant-Id: %s", self.tenant_id)

    def _tenant_id(self) -> str:
        """Return the ``Tenant-Id`` cookie value without its quotes."""
        value = self.session.cookies.get("Tenant-Id")
        tenant_id = (value or "").strip().strip('"')
        if not tenant_id:
            raise AuthenticationError("Tenant-Id not found in the cookie.")
        return tenant_id

    def fetch_token(self) -> str:
        """Fetch a bearer token for the REST API.

        WebUntis returns the token as a plain text body.

        :returns: The token, also stored in :attr:`token`.
        :raises AuthenticationError: On a non-2xx status or an empty body.
        """
        resp = self.session.get(
            f"{self.base_url}/api/token/new",
            auth=(self.username, self.password),
            headers={"Accept": "application/json"},
            timeout=REQUEST_TIMEOUT,
        )
        if not resp.ok:
            raise AuthenticationError(
                f"Failed to fetch API token: {resp.status_code} {resp.reason}"
            )

        token = resp.text.strip()
        if not token:
            raise AuthenticationError("API token is empty or invalid.")

        self.token = token
        logger.info("API token was successfully fetched.")
        return token

    def fetch_calendar_entries(
        self, start: datetime, end: datetime
    ) -> list[dict[str, Any]]:
        """Return the calendar entries overlapping ``[start, end)``.

        :param start: Start of the slot, local time.
        :param end: End of the slot, local time.
        :returns: The raw ``calendarEntries`` list, empty when the response
            has none.
        :raises requests.RequestException: On transport errors or a
            non-2xx status.
        :raises ValueError: If the body is not JSON or not shaped like
            ``{"calendarEntries": [...]}``.
        """
        if self.token is None or self.tenant_id is None:
            raise AuthenticationError("Not connected, call connect() first.")

        params = {
            "elementId": self.element_id,
            "elementType": self.element_type,
            "endDateTime": format_local_datetime(end),
            "homeworkOption": "DUE",
            "startDateTime": format_local_datetime(start),
        }
        resp = self.session.get(
            f"{self.base_url}/api/rest/view/v2/calendar-entry/detail",
            params=params,
            headers={
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/json",
                "Tenant-Id": self.tenant_id,
            },
            timeout=REQUEST_TIMEOUT,
        )
        logger.debug("API request URL: %s", resp.url)
        resp.raise_for_status()

        data = resp.json()
        logger.debug("Calendar response: %s", data)
        if not isinstance(data, dict):
            raise ValueError("Calendar response is not a JSON object.")
        entries = data.get("calendarEntries") or []
        if not isinstance(entries, list):
            raise ValueError("calendarEntries is not a JSON array.")
        return entries

    def close(self) -> None:
        self.session.close()
