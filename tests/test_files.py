"""Tests for perch.http.files: file responses and validators."""

import os
from pathlib import Path

import pytest

from perch.http.files import file_response, guess_content_type, is_fresh, make_etag
from perch.http.headers import Headers
from perch.http.request import Request


def _request(method: str = "GET", **headers: str) -> Request:
    pairs = {name.replace("_", "-"): value for name, value in headers.items()}
    return Request(method=method, path="/", headers=Headers.from_pairs(pairs))


class TestGuessContentType:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("index.html", "text/html; charset=utf-8"),
            ("style.css", "text/css; charset=utf-8"),
            ("data.json", "application/json; charset=utf-8"),
            ("logo.png", "image/png"),
            ("blob.unknownext", "application/octet-stream"),
        ],
    )
    def test_guess(self, name: str, expected: str) -> None:
        assert guess_content_type(Path(name)) == expected


class TestEtag:
    def test_weak_and_stable(self, tmp_path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("abc")
        etag = make_etag(path.stat())
        assert etag.startswith('W/"3-')
        assert make_etag(path.stat()) == etag

    def test_changes_with_mtime(self, tmp_path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("abc")
        before = make_etag(path.stat())
        os.utime(path, (0, 1_000_000))
        assert make_etag(path.stat()) != before


class TestIsFresh:
    def test_no_validators(self) -> None:
        assert not is_fresh(_request(), 'W/"1-2"', 0.0)

    def test_if_none_match_weak_comparison(self) -> None:
        assert is_fresh(_request(if_none_match='"1-2"'), 'W/"1-2"', 0.0)

    def test_if_none_match_list(self) -> None:
        assert is_fresh(_request(if_none_match='W/"x", W/"1-2"'), 'W/"1-2"', 0.0)

    def test_if_none_match_star(self) -> None:
        assert is_fresh(_request(if_none_match="*"), 'W/"1-2"', 0.0)

    def test_if_none_match_takes_precedence(self) -> None:
        request = _request(
            if_none_match='W/"other"',
            if_modified_since="Thu, 01 Jan 2099 00:00:00 GMT",
        )
        assert not is_fresh(request, 'W/"1-2"', 0.0)

    def test_if_modified_since(self) -> None:
        request = _request(if_modified_since="Thu, 01 Jan 1970 00:16:40 GMT")
        assert is_fresh(request, 'W/"1-2"', 1000.0)
        assert not is_fresh(request, 'W/"1-2"', 1001.0)

    def test_unparseable_date_is_stale(self) -> None:
        assert not is_fresh(_request(if_modified_since="yesterday"), 'W/"1-2"', 0.0)


class TestFileResponse:
    def test_reads_file(self, tmp_path) -> None:
        path = tmp_path / "page.html"
        path.write_text("<p>hi</p>")
        response = file_response(path, _request())
        assert response.status == 200
        assert response.text == "<p>hi</p>"
        assert response.header("ETag") == make_etag(path.stat())

    def test_custom_status_skips_freshness(self, tmp_path) -> None:
        path = tmp_path / "404.html"
        path.write_text("missing")
        etag = make_etag(path.stat())
        response = file_response(path, _request(if_none_match=etag), status=404)
        assert response.status == 404
        assert response.text == "missing"

    def test_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            file_response(tmp_path / "nope.html", _request())
