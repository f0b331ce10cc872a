"""Client-side route emulation: match-path table and pattern matching."""

from perch.routing.matchpaths import MatchPathEntry, find_matches, load_match_paths
from perch.routing.pattern import PatternMatch, match

__all__ = ["MatchPathEntry", "PatternMatch", "find_matches", "load_match_paths", "match"]
