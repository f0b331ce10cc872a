"""Tests for perch.http.negotiation: Accept and Accept-Encoding."""

import pytest

from perch.http.negotiation import accepts, choose_encoding, parse_accept


class TestParseAccept:
    def test_parses_ranges_and_q(self) -> None:
        ranges = parse_accept("text/html, application/json;q=0.5")
        assert [(r.type, r.subtype, r.q) for r in ranges] == [
            ("text", "html", 1.0),
            ("application", "json", 0.5),
        ]

    def test_skips_malformed(self) -> None:
        assert [r.subtype for r in parse_accept("html, text/plain")] == ["plain"]

    def test_bad_q_is_zero(self) -> None:
        assert parse_accept("text/html;q=abc")[0].q == 0.0


class TestAccepts:
    def test_missing_header_accepts_everything(self) -> None:
        assert accepts(None, "text/html")

    @pytest.mark.parametrize("header", ["", "  "])
    def test_blank_header_accepts_everything(self, header: str) -> None:
        assert accepts(header, "text/html")

    @pytest.mark.parametrize(
        "header",
        [
            "text/html",
            "text/*",
            "*/*",
            "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        ],
    )
    def test_browser_like_headers_accept_html(self, header: str) -> None:
        assert accepts(header, "text/html")

    @pytest.mark.parametrize("header", ["application/json", "image/*", "text/html;q=0", "bogus"])
    def test_rejects_html(self, header: str) -> None:
        assert not accepts(header, "text/html")

    def test_most_specific_range_decides(self) -> None:
        assert not accepts("*/*, text/html;q=0", "text/html")
        assert accepts("text/*;q=0, text/html", "text/html")

    def test_case_insensitive(self) -> None:
        assert accepts("TEXT/HTML", "text/html")


class TestChooseEncoding:
    def test_no_header_is_identity(self) -> None:
        assert choose_encoding(None) is None
        assert choose_encoding("") is None

    def test_prefers_gzip_on_tie(self) -> None:
        assert choose_encoding("deflate, gzip") == "gzip"

    def test_higher_weight_wins(self) -> None:
        assert choose_encoding("gzip;q=0.5, deflate") == "deflate"

    def test_unsupported_only(self) -> None:
        assert choose_encoding("br") is None

    def test_wildcard(self) -> None:
        assert choose_encoding("*") == "gzip"

    def test_explicit_entry_beats_wildcard(self) -> None:
        assert choose_encoding("gzip;q=0, *") == "deflate"

    def test_q_zero_rejects(self) -> None:
        assert choose_encoding("gzip;q=0") is None
