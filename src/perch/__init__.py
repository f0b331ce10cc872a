"""Perch: serve a built static site with client-side route fallbacks.

Files under ``public/`` are served as-is. Requests that match no file are
resolved against the site's match-path table, so a URL like
``/app/settings`` can be answered with ``/app/index.html`` and left to the
client-side router.

Basic usage::

    from perch import ServeConfig, serve

    serve(ServeConfig(directory="./my-site", port=9000))

As a plain ASGI app::

    from perch import Site

    site = Site("./my-site")
"""

__version__ = "0.1.0"
__all__ = [
    "BootState",
    "Bootstrap",
    "ConfigurationError",
    "HTTPError",
    "MatchPathEntry",
    "Middleware",
    "Next",
    "NotFound",
    "PerchError",
    "PortDeclined",
    "Request",
    "Response",
    "ServeConfig",
    "Site",
    "SiteInfo",
    "TLSProvisioningError",
    "serve",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "Site":
        from perch.app import Site

        return Site

    if name in ("ServeConfig", "SiteInfo"):
        from perch import config as _config

        return getattr(_config, name)

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Response":
        from perch.http.response import Response

        return Response

    if name in ("Middleware", "Next"):
        from perch.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "MatchPathEntry":
        from perch.routing.matchpaths import MatchPathEntry

        return MatchPathEntry

    if name in ("BootState", "Bootstrap", "serve"):
        from perch.server import bootstrap as _boot

        return getattr(_boot, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "NotFound",
        "PerchError",
        "PortDeclined",
        "TLSProvisioningError",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
