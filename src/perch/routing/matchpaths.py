"""Match-path table: client-side routes recorded by the site build.

The build writes ``.cache/match-paths.json``, an array of
``{"path": ..., "matchPath": ...}`` objects ordered most-specific first.
The table is read once at startup and never changes afterwards.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from perch.routing.pattern import PatternMatch, match

if TYPE_CHECKING:
    from collections.abc import Iterator

    from perch.reporting import Reporter

logger = logging.getLogger("perch.routing")

MATCH_PATHS_FILE = Path(".cache") / "match-paths.json"


@dataclass(frozen=True, slots=True)
class MatchPathEntry:
    """One client-side route.

    Any URL matching ``match_path`` is answered with
    ``<static root>/<path>/index.html``.
    """

    path: str
    match_path: str

    def match(self, url: str) -> PatternMatch | None:
        return match(self.match_path, url)


def _parse_entries(raw: object, reporter: Reporter) -> tuple[MatchPathEntry, ...]:
    if not isinstance(raw, list):
        reporter.warning("match-paths.json does not contain a JSON array; ignoring it")
        return ()
    entries: list[MatchPathEntry] = []
    for position, item in enumerate(raw):
        if (
            isinstance(item, dict)
            and isinstance(item.get("path"), str)
            and isinstance(item.get("matchPath"), str)
        ):
            entries.append(MatchPathEntry(path=item["path"], match_path=item["matchPath"]))
        else:
            reporter.warning(f"Skipping malformed match-paths.json entry #{position}: {item!r}")
    return tuple(entries)


def load_match_paths(directory: str | Path, reporter: Reporter) -> tuple[MatchPathEntry, ...]:
    """Load the match-path table for the site in *directory*.

    Never raises: a missing or unreadable descriptor yields an empty
    table and a warning, and routing degrades to static files and the
    404 page.
    """
    file_path = Path(directory) / MATCH_PATHS_FILE
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        reporter.warning(str(exc))
        reporter.warning("Could not read match-paths.json from the .cache directory")
        reporter.warning(
            "Client-side routing will not work correctly. "
            "Maybe you need to re-run the site build?"
        )
        return ()

    entries = _parse_entries(raw, reporter)
    logger.debug("Loaded %d match paths from %s", len(entries), file_path)
    return entries


def find_matches(
    table: tuple[MatchPathEntry, ...], url: str
) -> Iterator[MatchPathEntry]:
    """Yield entries whose pattern matches *url*, in table order.

    Lazy, so callers that stop at the first usable entry never test the
    rest of the table.
    """
    for entry in table:
        if entry.match(url) is not None:
            yield entry
