"""Perch site application.

A ``Site`` is the ASGI application for one built site directory. It
loads the match-path table once, assembles the resolver chain, and
runs lifecycle hooks through the ASGI lifespan protocol.

Extra middleware may be added during setup. The chain is frozen on
the first request (or lifespan startup) and never changes afterwards.
"""

import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import invoke
from perch.middleware.compression import Compression
from perch.middleware.cors import CORSConfig, CORSMiddleware
from perch.middleware.fallback import MatchPathFallback, NotFoundPage
from perch.middleware.prefix import PathPrefix
from perch.middleware.protocol import Middleware
from perch.middleware.static import StaticFiles
from perch.reporting import Reporter, default_reporter
from perch.routing.matchpaths import MatchPathEntry, load_match_paths
from perch.server.handler import handle_request


class Site:
    """The perch application for one site directory.

    Usage::

        site = Site("./my-site")
        # hand ``site`` to any ASGI server

    The static root is ``<directory>/public``; the match-path table is
    read from ``<directory>/.cache/match-paths.json`` right here, once.
    """

    __slots__ = (
        "_extra_middleware",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_shutdown_hooks",
        "_startup_hooks",
        "cors",
        "directory",
        "match_paths",
        "path_prefix",
        "static_root",
    )

    def __init__(
        self,
        directory: str | Path,
        *,
        path_prefix: str = "/",
        cors: CORSConfig | None = None,
        reporter: Reporter | None = None,
        match_paths: tuple[MatchPathEntry, ...] | None = None,
    ) -> None:
        self.directory = Path(directory).resolve()
        self.static_root = self.directory / "public"
        self.path_prefix = path_prefix
        self.cors = cors or CORSConfig()
        if match_paths is None:
            match_paths = load_match_paths(self.directory, reporter or default_reporter())
        self.match_paths: tuple[MatchPathEntry, ...] = match_paths
        self._extra_middleware: list[Middleware] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._middleware: tuple[Middleware, ...] = ()
        self._frozen = False
        self._freeze_lock = threading.Lock()

    # -- Setup --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add middleware outside the resolver chain (after CORS)."""
        self._check_not_frozen()
        self._extra_middleware.append(middleware)

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook run at ASGI lifespan startup (sync or async)."""
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register a hook run at ASGI lifespan shutdown (sync or async).

        The server triggers shutdown on SIGINT/SIGTERM, so this is where
        process-exit work belongs.
        """
        self._shutdown_hooks.append(func)
        return func

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        """The frozen chain, outermost first."""
        self._ensure_frozen()
        return self._middleware

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await handle_request(scope, receive, send, middleware=self._middleware)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        self._ensure_frozen()

        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._middleware = self._build_chain()
            self._frozen = True

    def _build_chain(self) -> tuple[Middleware, ...]:
        resolver: tuple[Middleware, ...] = (
            Compression(),
            StaticFiles(self.static_root),
            MatchPathFallback(self.static_root, self.match_paths),
            NotFoundPage(self.static_root),
        )
        return (
            CORSMiddleware(self.cors),
            *self._extra_middleware,
            PathPrefix(self.path_prefix, resolver),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the site after it has started serving."
            raise RuntimeError(msg)
