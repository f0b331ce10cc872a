"""Error handling pipeline for perch requests.

Maps HTTPError exceptions and unexpected failures to plain-text
responses. There are no user error handlers: the site's own ``404.html``
is served by the resolver chain before an error is ever raised.
"""

import logging

from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Response

logger = logging.getLogger("perch.server")

_PLAIN = "text/plain; charset=utf-8"


def error_response(exc: HTTPError) -> Response:
    """Plain response for an HTTPError, carrying its headers."""
    resp = Response(body=exc.detail or f"Error {exc.status}", status=exc.status, content_type=_PLAIN)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Map an HTTPError raised inside the chain to a Response."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.full_path, exc.detail)
    return error_response(exc)


def handle_internal_error(exc: Exception, request: Request) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.full_path)
    return Response(body="Internal Server Error", status=500, content_type=_PLAIN)
