"""File responses with validators and conditional-request handling.

Shared by every layer of the resolver chain that answers with a file
from disk: static files, match-path fallbacks, and the 404 page.
"""

from __future__ import annotations

import mimetypes
import os
from email.utils import formatdate, parsedate_to_datetime
from pathlib import Path

from perch.http.request import Request
from perch.http.response import Response

DEFAULT_CACHE_CONTROL = "public, max-age=0"


def guess_content_type(file_path: Path) -> str:
    """Content type for *file_path*, with a charset for text types."""
    content_type, _ = mimetypes.guess_type(file_path.name)
    if content_type is None:
        return "application/octet-stream"
    if content_type.startswith("text/") or content_type in (
        "application/javascript",
        "application/json",
    ):
        return f"{content_type}; charset=utf-8"
    return content_type


def make_etag(stat: os.stat_result) -> str:
    """Weak validator from size and modification time."""
    mtime_ms = int(stat.st_mtime * 1000)
    return f'W/"{stat.st_size:x}-{mtime_ms:x}"'


def _etag_matches(header: str, etag: str) -> bool:
    if header.strip() == "*":
        return True
    # Weak comparison: W/ prefixes are ignored on both sides
    target = etag.removeprefix("W/")
    return any(tag.strip().removeprefix("W/") == target for tag in header.split(","))


def is_fresh(request: Request, etag: str, mtime: float) -> bool:
    """True if the client's cached copy is still valid.

    ``If-None-Match`` takes precedence over ``If-Modified-Since``
    (RFC 9110 §13.2.2). Unparseable dates are treated as stale.
    """
    if_none_match = request.headers.get_joined("if-none-match")
    if if_none_match is not None:
        return _etag_matches(if_none_match, etag)

    if_modified_since = request.headers.get("if-modified-since")
    if if_modified_since is None:
        return False
    try:
        since = parsedate_to_datetime(if_modified_since)
    except (TypeError, ValueError):
        return False
    return int(mtime) <= int(since.timestamp())


def file_response(
    file_path: Path,
    request: Request,
    *,
    status: int = 200,
    cache_control: str = DEFAULT_CACHE_CONTROL,
) -> Response:
    """Read *file_path* and build a response for *request*.

    Only ``2xx`` responses are checked for freshness, so a ``404`` page is
    never turned into a ``304``. ``OSError`` from stat or read propagates
    to the caller, which decides whether a failure is fatal.
    """
    stat = file_path.stat()
    etag = make_etag(stat)
    last_modified = formatdate(stat.st_mtime, usegmt=True)
    validators = {
        "Cache-Control": cache_control,
        "Last-Modified": last_modified,
        "ETag": etag,
    }

    if 200 <= status < 300 and request.method in ("GET", "HEAD"):
        if is_fresh(request, etag, stat.st_mtime):
            return Response(body=b"", status=304).with_headers(validators)

    body = file_path.read_bytes()
    return Response(
        body=body,
        status=status,
        content_type=guess_content_type(file_path),
    ).with_headers(validators)
