"""Immutable HTTP request.

Frozen metadata only: a static site server never reads request bodies.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any
from urllib.parse import quote

from perch.http.headers import Headers
from perch.http.negotiation import accepts, choose_encoding

# Short names accepted by ``Request.accepts`` (mirrors ``req.accepts("html")``
# in the Node ecosystem the build step comes from)
_SHORT_TYPES: dict[str, str] = {
    "html": "text/html",
    "json": "application/json",
    "text": "text/plain",
}

# Characters left unescaped when re-encoding a decoded path (RFC 3986 pchar + "/")
_PATH_SAFE = "/:@!$&'()*+,;=-._~"


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is the percent-decoded path relative to the mount point;
    ``mount`` is the prefix that was stripped from it (``""`` at the
    root). ``raw_path`` is the same path as the client sent it, still
    percent-encoded, or ``""`` when the server did not supply one.
    ``url`` is the encoded path plus query string, which is what
    match-path patterns are tested against.
    """

    method: str
    path: str
    headers: Headers
    query_string: str = ""
    http_version: str = "1.1"
    mount: str = ""
    raw_path: str = ""
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    @property
    def url(self) -> str:
        """Encoded path relative to the mount, plus query string.

        Uses the path as sent when known, so an escaped ``%2F`` stays
        inside its segment. Otherwise the decoded path is re-encoded.
        """
        encoded = self.raw_path or quote(self.path, safe=_PATH_SAFE)
        if self.query_string:
            return f"{encoded}?{self.query_string}"
        return encoded

    @property
    def full_path(self) -> str:
        """Path including the mount prefix (for redirects)."""
        return self.mount + self.path

    def accepts(self, media_type: str) -> bool:
        """True if the ``Accept`` header allows *media_type*.

        Takes a full media type (``"text/html"``) or a short name
        (``"html"``).
        """
        full = _SHORT_TYPES.get(media_type, media_type)
        return accepts(self.headers.get_joined("accept"), full)

    @property
    def preferred_encoding(self) -> str | None:
        """Content coding to compress with, from ``Accept-Encoding``."""
        return choose_encoding(self.headers.get_joined("accept-encoding"))

    def mounted_at(self, prefix: str) -> Request:
        """Return a copy with *prefix* moved from ``path`` to ``mount``.

        The caller has already checked that ``path`` starts with *prefix*.
        """
        rest = self.path[len(prefix) :] or "/"
        raw_rest = ""
        encoded_prefix = quote(prefix, safe=_PATH_SAFE)
        if self.raw_path.startswith(encoded_prefix):
            raw_rest = self.raw_path[len(encoded_prefix) :] or "/"
            # Escaped separator right after the prefix; re-encode instead
            if not raw_rest.startswith("/"):
                raw_rest = ""
        return replace(self, path=rest, raw_path=raw_rest, mount=self.mount + prefix)

    @classmethod
    def from_asgi(cls, scope: dict[str, Any]) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        server = scope.get("server")
        client = scope.get("client")
        raw_path = scope.get("raw_path") or b""
        return cls(
            method=scope["method"],
            path=scope["path"],
            raw_path=raw_path.decode("latin-1").partition("?")[0],
            headers=Headers(tuple(scope.get("headers", ()))),
            query_string=scope.get("query_string", b"").decode("latin-1"),
            http_version=scope.get("http_version", "1.1"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
        )
