"""SearchPress exceptions.

Runtime failures (unreachable hosts, backend errors, malformed responses)
are reported as values (see ``searchpress.models.response``).  Exceptions
are reserved for invalid wiring detected at construction time.
"""


class SearchPressError(Exception):
    """Base exception for SearchPress errors."""


class ConfigurationError(SearchPressError):
    """Raised when configuration is invalid."""
