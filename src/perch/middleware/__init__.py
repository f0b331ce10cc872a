"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

The resolver chain a ``Site`` assembles, outermost first:
    CORSMiddleware -- CORS headers on every response, preflight answers
    PathPrefix -- Mount the layers below under the site's path prefix
    Compression -- gzip/deflate negotiated from Accept-Encoding
    StaticFiles -- Serve files that exist under the static root
    MatchPathFallback -- Client-side routes from .cache/match-paths.json
    NotFoundPage -- The site's 404.html for HTML clients
"""

from perch.middleware.compression import Compression
from perch.middleware.cors import CORSConfig, CORSMiddleware
from perch.middleware.fallback import MatchPathFallback, NotFoundPage
from perch.middleware.prefix import PathPrefix
from perch.middleware.protocol import Middleware, Next, compose
from perch.middleware.static import StaticFiles

__all__ = [
    "CORSConfig",
    "CORSMiddleware",
    "Compression",
    "MatchPathFallback",
    "Middleware",
    "Next",
    "NotFoundPage",
    "PathPrefix",
    "StaticFiles",
    "compose",
]
