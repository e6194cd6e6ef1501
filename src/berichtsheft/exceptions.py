"""Exceptions raised by the Berichtsheft generator."""


class BerichtsheftError(Exception):
    """Base class for all errors reported to the user."""


class ConfigurationError(BerichtsheftError):
    """A required setting is missing or malformed."""


class InvalidDateRangeError(BerichtsheftError, ValueError):
    """A date could not be parsed or the range is reversed."""


class AuthenticationError(BerichtsheftError):
    """Login, session cookie or API token could not be obtained."""


class NoContentError(BerichtsheftError):
    """The requested range produced nothing to write."""
