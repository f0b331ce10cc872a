"""Shared fixtures: a built site on disk."""

import json
from pathlib import Path

import pytest


class RecordingReporter:
    """Reporter that keeps every message for assertions."""

    def __init__(self) -> None:
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self.infos.append(msg % args if args else msg)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self.warnings.append(msg % args if args else msg)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self.errors.append(msg % args if args else msg)


def _write_match_paths(site: Path, entries: object) -> None:
    cache = site / ".cache"
    cache.mkdir(exist_ok=True)
    (cache / "match-paths.json").write_text(json.dumps(entries))


@pytest.fixture
def write_match_paths():
    """Replace a site's match-path descriptor."""
    return _write_match_paths


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def site_dir(tmp_path: Path) -> Path:
    """A built site: public/ tree, match paths, package.json."""
    site = tmp_path / "site"
    public = site / "public"
    public.mkdir(parents=True)

    (public / "index.html").write_text("<h1>Home</h1>")
    (public / "404.html").write_text("<h1>Page not found</h1>")
    (public / "app.js").write_text("console.log('hello');")
    (public / "style.css").write_text("body { color: red; }\n" * 100)
    (public / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 2048)
    (public / "data.json").write_text('{"ok": true}')
    (public / ".well-known").mkdir()
    (public / ".well-known" / "security.txt").write_text("Contact: admin@example.com")

    about = public / "about"
    about.mkdir()
    (about / "index.html").write_text("<h1>About</h1>")

    (public / "empty").mkdir()

    app_shell = public / "app"
    app_shell.mkdir()
    (app_shell / "index.html").write_text("<h1>App shell</h1>")

    users = public / "users"
    users.mkdir()
    (users / "index.html").write_text("<h1>User profile</h1>")

    _write_match_paths(
        site,
        [
            {"path": "/app", "matchPath": "/app/*"},
            {"path": "/users", "matchPath": "/users/:id"},
        ],
    )
    (site / "package.json").write_text(json.dumps({"name": "my-site"}))
    return site
