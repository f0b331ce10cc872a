"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The resolver chain is just a tuple of these,
each either answering the request or handing it to ``next``.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from perch.http.request import Request
from perch.http.response import Response

# The next handler in the middleware chain
Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for perch middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def no_store(request: Request, next: Next) -> Response:
            response = await next(request)
            return response.with_header("Cache-Control", "no-store")

        # Class middleware
        class Fallback:
            async def __call__(self, request: Request, next: Next) -> Response:
                ...
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...


def compose(middleware: tuple[Middleware, ...], endpoint: Next) -> Next:
    """Wrap *middleware* around *endpoint*, first element outermost."""
    handler = endpoint
    for mw in reversed(middleware):

        async def step(request: Request, _mw: Middleware = mw, _next: Next = handler) -> Response:
            return await _mw(request, _next)

        handler = step
    return handler
