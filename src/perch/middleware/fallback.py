"""Client-side routing fallbacks: match paths and the 404 page.

Both layers only answer clients that accept HTML. A browser navigating
to ``/app/settings`` gets the app shell; a script fetching a missing
JSON file gets a plain pass-through instead of an HTML page.
"""

import logging
from pathlib import Path

from perch.http.files import file_response
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Next
from perch.routing.matchpaths import MatchPathEntry, find_matches

logger = logging.getLogger("perch.routing")


def _resolve_under(root: Path, relative: str) -> Path | None:
    """Resolve *relative* under *root*, or None if it escapes the root."""
    try:
        candidate = (root / relative.lstrip("/")).resolve()
    except (OSError, ValueError):
        return None
    if not candidate.is_relative_to(root):
        return None
    return candidate


class MatchPathFallback:
    """Serve ``<path>/index.html`` for the first usable matching match path.

    Entries are tested in table order. An entry whose pattern matches but
    whose ``index.html`` is missing or unreadable is skipped and the scan
    continues; if no entry can be served, the request falls through.
    """

    __slots__ = ("_directory", "_index", "_table")

    def __init__(
        self,
        directory: str | Path,
        table: tuple[MatchPathEntry, ...],
        *,
        index: str = "index.html",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._table = table
        self._index = index

    @property
    def table(self) -> tuple[MatchPathEntry, ...]:
        return self._table

    async def __call__(self, request: Request, next: Next) -> Response:
        if not self._table or not request.accepts("html"):
            return await next(request)

        for entry in find_matches(self._table, request.url):
            target = _resolve_under(self._directory, f"{entry.path.rstrip('/')}/{self._index}")
            if target is None:
                continue
            try:
                return file_response(target, request)
            except OSError as exc:
                logger.debug("Match path %r: cannot serve %s (%s)", entry.match_path, target, exc)
                continue

        return await next(request)


class NotFoundPage:
    """Serve the site's ``404.html`` with status 404 to HTML clients.

    Falls through when the client does not accept HTML or when the page
    itself cannot be read.
    """

    __slots__ = ("_page",)

    def __init__(self, directory: str | Path, page: str = "404.html") -> None:
        self._page = Path(directory).resolve() / page

    async def __call__(self, request: Request, next: Next) -> Response:
        if not request.accepts("html"):
            return await next(request)
        try:
            return file_response(self._page, request, status=404)
        except OSError as exc:
            logger.debug("404 page unavailable: %s", exc)
            return await next(request)
