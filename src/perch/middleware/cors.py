"""CORS middleware.

A built static site is public content, so the default configuration
allows every origin and stamps the CORS headers on every response,
including those for requests without an ``Origin`` header (caches and
CDNs in front of the server then store one variant).
"""

from dataclasses import dataclass

from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Next
from perch.server.errors import error_response


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    Defaults suit a static site: any origin, the simple request headers,
    read-only methods::

        CORSConfig(allow_origins=("https://example.com",))
    """

    allow_origins: tuple[str, ...] = ("*",)
    allow_methods: tuple[str, ...] = ("GET", "HEAD", "OPTIONS")
    allow_headers: tuple[str, ...] = ("Origin", "X-Requested-With", "Content-Type", "Accept")
    max_age: int = 600  # 10 minutes


class CORSMiddleware:
    """Adds CORS headers to responses and answers preflight requests.

    With a wildcard origin the headers go on every response. With an
    explicit allow list they go only on responses to listed origins,
    echoing the origin and adding ``Vary: Origin``.

    Usage::

        site.add_middleware(CORSMiddleware(CORSConfig()))
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    @property
    def _wildcard(self) -> bool:
        return "*" in self.config.allow_origins

    def _add_cors_headers(self, response: Response, origin: str | None) -> Response:
        cfg = self.config
        if self._wildcard:
            response = response.with_header("Access-Control-Allow-Origin", "*")
        elif origin is not None and origin in cfg.allow_origins:
            response = response.with_header("Access-Control-Allow-Origin", origin)
            response = response.with_header("Vary", "Origin")
        else:
            return response

        if cfg.allow_headers:
            response = response.with_header(
                "Access-Control-Allow-Headers",
                ", ".join(cfg.allow_headers),
            )
        return response

    def _preflight_response(self, origin: str) -> Response:
        response = Response(body="", status=204)
        response = self._add_cors_headers(response, origin)
        response = response.with_header(
            "Access-Control-Allow-Methods",
            ", ".join(self.config.allow_methods),
        )
        return response.with_header("Access-Control-Max-Age", str(self.config.max_age))

    async def __call__(self, request: Request, next: Next) -> Response:
        origin = request.headers.get("origin")

        if (
            request.method == "OPTIONS"
            and origin is not None
            and request.headers.get("access-control-request-method") is not None
            and (self._wildcard or origin in self.config.allow_origins)
        ):
            return self._preflight_response(origin)

        try:
            response = await next(request)
        except HTTPError as exc:
            # Error responses carry the headers too
            response = error_response(exc)
        return self._add_cors_headers(response, origin)
