"""Serve configuration.

ServeConfig is a frozen dataclass. The CLI builds one from program arguments; the
bootstrap derives a new one (``dataclasses.replace``) when the port
changes, never mutating it.

SiteInfo is what the site's own build configuration contributes: its
display name and the path prefix it was built for.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perch.reporting import Reporter

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 9000
UNNAMED_SITE = "(Unnamed package)"

# Build configuration files read from the site directory
PACKAGE_FILE = "package.json"
SITE_CONFIG_FILE = "site-config.json"


@dataclass(frozen=True, slots=True)
class ServeConfig:
    """Resolved startup parameters. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ServeConfig(directory="./my-site", port=8080, https=True)
    """

    # Site
    directory: str | Path = "."

    # Listener
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    # Mount under the site's configured pathPrefix
    prefix_paths: bool = False

    # TLS (optional). cert_file and key_file go together.
    https: bool = False
    cert_file: str | None = None
    key_file: str | None = None
    ca_file: str | None = None

    # Open the local URL in a browser once listening
    open: bool = False

    @property
    def site_dir(self) -> Path:
        return Path(self.directory).resolve()

    @property
    def static_root(self) -> Path:
        return self.site_dir / "public"

    @property
    def protocol(self) -> str:
        return "https" if self.https else "http"


@dataclass(frozen=True, slots=True)
class SiteInfo:
    """What the site's build configuration says about itself."""

    name: str = UNNAMED_SITE
    path_prefix: str = ""

    def mount_prefix(self, prefix_paths: bool) -> str:
        """The prefix to mount under: ``path_prefix`` only with *prefix_paths*."""
        if prefix_paths and self.path_prefix:
            return self.path_prefix
        return "/"


def _read_json_object(path: Path, reporter: Reporter) -> dict[str, object]:
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        reporter.warning(f"Could not read {path.name}: {exc}")
        return {}
    if not isinstance(data, dict):
        reporter.warning(f"{path.name} does not contain a JSON object; ignoring it")
        return {}
    return data


def load_site_info(directory: str | Path, reporter: Reporter) -> SiteInfo:
    """Read the site's name and path prefix from its build configuration.

    ``name`` comes from ``package.json``, ``pathPrefix`` from
    ``site-config.json``. Missing files and fields fall back to defaults.
    """
    site_dir = Path(directory)
    package = _read_json_object(site_dir / PACKAGE_FILE, reporter)
    site_config = _read_json_object(site_dir / SITE_CONFIG_FILE, reporter)

    name = package.get("name")
    prefix = site_config.get("pathPrefix")
    return SiteInfo(
        name=name if isinstance(name, str) and name else UNNAMED_SITE,
        path_prefix=prefix if isinstance(prefix, str) else "",
    )
