"""Mount the resolver chain under a path prefix.

With ``--prefix-paths`` a site built for ``/blog`` is served at
``/blog/...``. The prefix is stripped before the inner layers see the
request, so static lookups and match-path patterns work on site-relative
paths. Requests outside the prefix skip the mounted layers entirely.
"""

from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Middleware, Next, compose


def normalize_prefix(prefix: str | None) -> str:
    """``"blog/"`` -> ``"/blog"``; root (``"/"``, ``""``, None) -> ``""``."""
    stripped = "/" + (prefix or "").strip("/")
    return stripped if stripped != "/" else ""


class PathPrefix:
    """Run *inner* middleware only for requests under *prefix*.

    Usage::

        PathPrefix("/blog", (Compression(), StaticFiles("./public")))
    """

    __slots__ = ("_inner", "_prefix")

    def __init__(self, prefix: str | None, inner: tuple[Middleware, ...]) -> None:
        self._prefix = normalize_prefix(prefix)
        self._inner = inner

    @property
    def prefix(self) -> str:
        return self._prefix or "/"

    def _in_scope(self, path: str) -> bool:
        if not self._prefix:
            return True
        return path == self._prefix or path.startswith(self._prefix + "/")

    async def __call__(self, request: Request, next: Next) -> Response:
        if not self._in_scope(request.path):
            return await next(request)

        mounted = request.mounted_at(self._prefix) if self._prefix else request

        # The end of the inner chain continues outside the mount with the
        # original request.
        async def leave(_: Request) -> Response:
            return await next(request)

        return await compose(self._inner, leave)(mounted)
