"""Path-template matching for client-side match paths.

Match paths are written for the client-side router the site was built
with, so their syntax is that router's, not perch's own:

    "/app/*"              splat, captures the rest under "*"
    "/files/*rest"        named splat, captures under "rest"
    "/users/:id"          named segment
    "/users/:id/*"        both

Unlike a server router, there is no ranking: ``match`` tests exactly one
pattern, and callers decide ordering.
"""

import re
from dataclasses import dataclass
from urllib.parse import unquote

_PARAM = re.compile(r"^:(.+)")

# Names the client-side router keeps for itself; a pattern using them is
# malformed and never matches.
RESERVED_NAMES = frozenset({"uri", "path"})

_SLASHES = re.compile(r"(^/+|/+$)")


@dataclass(frozen=True, slots=True)
class PatternMatch:
    """Result of a successful match.

    ``uri`` is the portion of the URL the pattern consumed before any
    splat, always with a leading slash.
    """

    params: dict[str, str]
    uri: str


def segmentize(uri: str) -> list[str]:
    """Split a path into segments. ``"/"`` is the single empty segment."""
    return _SLASHES.sub("", uri).split("/")


def _is_splat(segment: str | None) -> bool:
    return bool(segment) and segment[0] == "*"


def match(pattern: str, url: str) -> PatternMatch | None:
    """Test *url* against *pattern*; return captures or None.

    The query string of *url* is ignored. Captured values are
    percent-decoded.
    """
    pathname = url.split("?", 1)[0]
    uri_segments = segmentize(pathname)
    route_segments = segmentize(pattern)
    is_root_uri = uri_segments[0] == ""

    params: dict[str, str] = {}
    max_len = max(len(uri_segments), len(route_segments))
    index = 0
    while index < max_len:
        route_segment = route_segments[index] if index < len(route_segments) else None
        uri_segment = uri_segments[index] if index < len(uri_segments) else None

        if _is_splat(route_segment):
            name = route_segment[1:] or "*"
            params[name] = "/".join(unquote(s) for s in uri_segments[index:])
            break

        if uri_segment is None:
            # URL is shorter than the pattern
            return None

        dynamic = _PARAM.match(route_segment) if route_segment is not None else None
        if dynamic and not is_root_uri:
            name = dynamic.group(1)
            if name in RESERVED_NAMES:
                return None
            params[name] = unquote(uri_segment)
        elif route_segment != uri_segment:
            return None
        index += 1

    return PatternMatch(params=params, uri="/" + "/".join(uri_segments[:index]))
