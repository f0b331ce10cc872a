"""ASGI handler. Translates ASGI scope/messages to perch types.

The only component that touches raw ASGI directly for HTTP. Converts the
scope to a typed Request, runs it through the resolver chain, and sends
the Response back through ASGI send().
"""

from perch._internal.asgi import Receive, Scope, Send
from perch.errors import HTTPError, NotFound
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Middleware, compose
from perch.server.errors import handle_http_error, handle_internal_error
from perch.server.sender import send_response


async def _pass_through(request: Request) -> Response:
    """End of the chain: nothing resolved the request."""
    raise NotFound(f"Cannot {request.method} {request.full_path}")


async def handle_request(
    scope: Scope,
    receive: Receive,  # noqa: ARG001
    send: Send,
    *,
    middleware: tuple[Middleware, ...],
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope)

    try:
        response = await compose(middleware, _pass_through)(request)
    except HTTPError as exc:
        response = handle_http_error(exc, request)
    except Exception as exc:
        response = handle_internal_error(exc, request)

    await send_response(response, send, head=request.method == "HEAD")
