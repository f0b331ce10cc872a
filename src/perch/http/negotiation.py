"""Proactive content negotiation for request headers.

Answers two questions the resolver chain asks of every request:
does the client take an HTML response (``Accept``), and which content
coding should a compressed response use (``Accept-Encoding``).

Both follow RFC 9110 §12.5: a missing header accepts anything, the
most specific matching range decides, and ``q=0`` means "not
acceptable".
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MediaRange:
    """One entry of an ``Accept`` header."""

    type: str
    subtype: str
    q: float = 1.0

    @property
    def specificity(self) -> int:
        """2 for ``text/html``, 1 for ``text/*``, 0 for ``*/*``."""
        if self.type == "*":
            return 0
        if self.subtype == "*":
            return 1
        return 2

    def matches(self, media_type: str) -> bool:
        main, _, sub = media_type.partition("/")
        if self.type not in ("*", main):
            return False
        return self.subtype in ("*", sub)


def _parse_q(params: list[str]) -> float:
    for param in params:
        name, _, value = param.partition("=")
        if name.strip().lower() == "q":
            try:
                return max(0.0, min(1.0, float(value.strip())))
            except ValueError:
                return 0.0
    return 1.0


def parse_accept(header: str) -> list[MediaRange]:
    """Parse an ``Accept`` header value into media ranges.

    Malformed entries (no ``/``) are skipped.
    """
    ranges: list[MediaRange] = []
    for part in header.split(","):
        part = part.strip()
        if not part:
            continue
        media, *params = part.split(";")
        main, sep, sub = media.strip().lower().partition("/")
        if not sep or not main or not sub:
            continue
        ranges.append(MediaRange(type=main, subtype=sub, q=_parse_q(params)))
    return ranges


def accepts(header: str | None, media_type: str) -> bool:
    """True if a client sending *header* as ``Accept`` takes *media_type*.

    A missing or blank ``Accept`` header accepts everything. A header
    that names only unusable ranges accepts nothing.
    """
    if header is None or not header.strip():
        return True
    best: MediaRange | None = None
    for media_range in parse_accept(header):
        if not media_range.matches(media_type):
            continue
        if best is None or media_range.specificity > best.specificity:
            best = media_range
    return best is not None and best.q > 0


# Codings the compression middleware can produce, in server preference order
SUPPORTED_ENCODINGS: tuple[str, ...] = ("gzip", "deflate")


def choose_encoding(header: str | None) -> str | None:
    """Pick a content coding for a response, or None for identity.

    An explicit entry for a coding takes precedence over ``*``. Among
    codings with equal weight the server order (gzip first) wins.
    """
    if not header:
        return None
    weights: dict[str, float] = {}
    wildcard: float | None = None
    for part in header.split(","):
        part = part.strip()
        if not part:
            continue
        coding, *params = part.split(";")
        coding = coding.strip().lower()
        q = _parse_q(params)
        if coding == "*":
            wildcard = q
        else:
            weights[coding] = q

    best: str | None = None
    best_q = 0.0
    for coding in SUPPORTED_ENCODINGS:
        q = weights.get(coding, wildcard if wildcard is not None else 0.0)
        if q > best_q:
            best, best_q = coding, q
    return best
