"""Perch exception hierarchy.

Shared across the bootstrap, the request pipeline, and the middleware
chain so every module raises and catches the same types.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when the serve configuration is invalid.

    Reported through the reporter and aborts startup before any
    listener is bound.
    """


class TLSProvisioningError(ConfigurationError):
    """Raised when HTTPS was requested but no certificate could be obtained."""


class PortDeclined(PerchError):  # noqa: N818
    """The operator declined the substitute port offered on a conflict.

    Not an error: the bootstrap aborts cleanly and silently.
    """

    def __init__(self, port: int) -> None:
        super().__init__(f"Port {port} is in use and no substitute was accepted")
        self.port = port


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by middleware or the innermost dispatch. The ASGI handler
    catches these and turns them into plain responses.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing in the resolver chain produced a response."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
