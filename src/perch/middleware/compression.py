"""Response compression middleware.

Compresses response bodies with gzip or deflate, negotiated from the
request's ``Accept-Encoding``. Small bodies, already-encoded bodies,
``HEAD`` requests, and content types that do not compress (images,
archives, fonts) pass through untouched.
"""

import gzip
import zlib

from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Next

# Media types (without parameters) that compress well beyond text/*
_COMPRESSIBLE = frozenset(
    {
        "application/javascript",
        "application/json",
        "application/ld+json",
        "application/manifest+json",
        "application/wasm",
        "application/xhtml+xml",
        "application/xml",
        "image/svg+xml",
        "image/x-icon",
    }
)


def is_compressible(content_type: str) -> bool:
    """True if responses of *content_type* are worth compressing."""
    media = content_type.split(";", 1)[0].strip().lower()
    return (
        media.startswith("text/")
        or media in _COMPRESSIBLE
        or media.endswith("+json")
        or media.endswith("+xml")
    )


def _encode(body: bytes, encoding: str, level: int) -> bytes:
    if encoding == "gzip":
        return gzip.compress(body, compresslevel=level, mtime=0)
    return zlib.compress(body, level)


class Compression:
    """Middleware that compresses eligible responses.

    Every compressible response gets ``Vary: Accept-Encoding``, whether
    or not this particular one was compressed, so shared caches keep the
    variants apart.
    """

    __slots__ = ("_level", "_threshold")

    def __init__(self, *, threshold: int = 1024, level: int = 6) -> None:
        self._threshold = threshold
        self._level = level

    async def __call__(self, request: Request, next: Next) -> Response:
        response = await next(request)

        if response.status in (204, 304) or not is_compressible(response.content_type):
            return response
        if "no-transform" in (response.header("Cache-Control") or "").lower():
            return response

        response = response.with_header("Vary", "Accept-Encoding")

        body = response.body_bytes
        if len(body) < self._threshold:
            return response
        if response.header("Content-Encoding", "identity").lower() != "identity":
            return response
        if request.method == "HEAD":
            return response

        encoding = request.preferred_encoding
        if encoding is None:
            return response

        return (
            response.without_header("Content-Encoding")
            .with_body(_encode(body, encoding, self._level))
            .with_header("Content-Encoding", encoding)
        )
