"""Tests for perch.routing.matchpaths: loading and scanning the table."""

import json

from perch.routing.matchpaths import MatchPathEntry, find_matches, load_match_paths


class TestLoadMatchPaths:
    def test_loads_entries_in_order(self, site_dir, reporter) -> None:
        table = load_match_paths(site_dir, reporter)
        assert table == (
            MatchPathEntry(path="/app", match_path="/app/*"),
            MatchPathEntry(path="/users", match_path="/users/:id"),
        )
        assert reporter.warnings == []

    def test_missing_file_is_empty_table_with_warnings(self, tmp_path, reporter) -> None:
        table = load_match_paths(tmp_path, reporter)
        assert table == ()
        assert "Could not read match-paths.json from the .cache directory" in reporter.warnings
        assert any("re-run the site build" in w for w in reporter.warnings)
        assert reporter.errors == []

    def test_invalid_json(self, tmp_path, reporter) -> None:
        (tmp_path / ".cache").mkdir()
        (tmp_path / ".cache" / "match-paths.json").write_text("{not json")
        assert load_match_paths(tmp_path, reporter) == ()
        assert len(reporter.warnings) == 3

    def test_non_array_ignored(self, tmp_path, reporter, write_match_paths) -> None:
        write_match_paths(tmp_path, {"path": "/app", "matchPath": "/app/*"})
        assert load_match_paths(tmp_path, reporter) == ()
        assert reporter.warnings

    def test_malformed_entries_skipped(self, tmp_path, reporter, write_match_paths) -> None:
        write_match_paths(
            tmp_path,
            [
                {"path": "/a", "matchPath": "/a/*"},
                {"path": "/b"},
                "nonsense",
                {"path": 3, "matchPath": "/c/*"},
                {"path": "/d", "matchPath": "/d/*"},
            ],
        )
        table = load_match_paths(tmp_path, reporter)
        assert [e.path for e in table] == ["/a", "/d"]
        assert len(reporter.warnings) == 3

    def test_extra_fields_ignored(self, tmp_path, reporter) -> None:
        (tmp_path / ".cache").mkdir()
        (tmp_path / ".cache" / "match-paths.json").write_text(
            json.dumps([{"path": "/a", "matchPath": "/a/*", "extra": 1}])
        )
        assert load_match_paths(tmp_path, reporter) == (MatchPathEntry("/a", "/a/*"),)


class TestFindMatches:
    def test_table_order_wins(self) -> None:
        table = (
            MatchPathEntry("/general", "/*"),
            MatchPathEntry("/specific", "/app/*"),
        )
        assert next(find_matches(table, "/app/x")).path == "/general"

    def test_yields_every_match_in_order(self) -> None:
        table = (
            MatchPathEntry("/one", "/app/*"),
            MatchPathEntry("/two", "/nope/*"),
            MatchPathEntry("/three", "/*"),
        )
        assert [e.path for e in find_matches(table, "/app/x")] == ["/one", "/three"]

    def test_no_match(self) -> None:
        table = (MatchPathEntry("/app", "/app/*"),)
        assert list(find_matches(table, "/other")) == []

    def test_lazy(self) -> None:
        calls: list[str] = []

        class Counting(MatchPathEntry):
            def match(self, url):  # type: ignore[override]
                calls.append(self.path)
                return super().match(url)

        table = (Counting("/a", "/*"), Counting("/b", "/*"))
        assert next(find_matches(table, "/x")).path == "/a"
        assert calls == ["/a"]
