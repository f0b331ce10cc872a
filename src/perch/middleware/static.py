"""Static file serving middleware.

First layer of the resolver chain: if the request path names a file under
the static root, serve it. Directories serve their index file. Anything
else falls through to the next handler.
"""

from pathlib import Path

from perch.http.files import DEFAULT_CACHE_CONTROL, file_response
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Next


class StaticFiles:
    """Middleware that serves files from the static root.

    Dotfiles are served like any other file. Read errors on a file that
    exists propagate (the request pipeline answers ``500``); only a
    missing file falls through.

    Security: resolves symlinks and verifies the final path is within
    the configured directory to prevent path traversal.

    Usage::

        site.add_middleware(StaticFiles(directory="./public"))
    """

    __slots__ = ("_cache_control", "_directory", "_index")

    def __init__(
        self,
        directory: str | Path,
        *,
        index: str = "index.html",
        cache_control: str = DEFAULT_CACHE_CONTROL,
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control

    @property
    def directory(self) -> Path:
        return self._directory

    async def __call__(self, request: Request, next: Next) -> Response:
        """Serve a static file or fall through."""
        # Only serve GET and HEAD
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        path = request.path
        if "\x00" in path:
            return Response(body="Bad Request", status=400, content_type="text/plain; charset=utf-8")

        relative = path.lstrip("/")

        # Resolve the file path and check for traversal
        file_path = (self._directory / relative).resolve() if relative else self._directory
        if not file_path.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403, content_type="text/plain; charset=utf-8")

        # Directory: redirect to the trailing-slash URL, then serve its index
        if file_path.is_dir():
            index_path = file_path / self._index
            if not index_path.is_file():
                return await next(request)
            if not path.endswith("/"):
                location = request.full_path + "/"
                if request.query_string:
                    location = f"{location}?{request.query_string}"
                return Response(
                    body="",
                    status=301,
                ).with_header("Location", location)
            file_path = index_path

        if not file_path.is_file():
            return await next(request)

        return file_response(
            file_path,
            request,
            cache_control=self._cache_control,
        )
