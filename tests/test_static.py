"""Tests for static file serving middleware."""

import os

import pytest

from perch.app import Site
from perch.http.headers import Headers
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.static import StaticFiles
from perch.testing import TestClient


async def _fallthrough(request: Request) -> Response:
    return Response("next", status=418)


def _get(path: str, method: str = "GET") -> Request:
    return Request(method=method, path=path, headers=Headers())


class TestStaticFileServing:
    @pytest.mark.asyncio
    async def test_serves_exact_file_bytes(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            response = await client.get("/app.js")
        assert response.status == 200
        assert response.body_bytes == (site_dir / "public" / "app.js").read_bytes()
        assert "javascript" in response.content_type

    @pytest.mark.asyncio
    async def test_serves_binary_file(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            response = await client.get("/logo.png")
        assert response.status == 200
        assert response.content_type == "image/png"
        assert response.body_bytes == (site_dir / "public" / "logo.png").read_bytes()

    @pytest.mark.asyncio
    async def test_root_serves_index(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            response = await client.get("/")
        assert response.status == 200
        assert response.text == "<h1>Home</h1>"

    @pytest.mark.asyncio
    async def test_directory_with_slash_serves_index(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            response = await client.get("/about/")
        assert response.status == 200
        assert response.text == "<h1>About</h1>"

    @pytest.mark.asyncio
    async def test_directory_without_slash_redirects(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            response = await client.get("/about?x=1")
        assert response.status == 301
        assert response.header("location") == "/about/?x=1"

    @pytest.mark.asyncio
    async def test_dotfiles_allowed(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            response = await client.get("/.well-known/security.txt")
        assert response.status == 200
        assert "Contact" in response.text

    @pytest.mark.asyncio
    async def test_encoded_path(self, site_dir) -> None:
        (site_dir / "public" / "with space.txt").write_text("spaced")
        async with TestClient(Site(site_dir)) as client:
            response = await client.get("/with space.txt")
        assert response.status == 200
        assert response.text == "spaced"

    @pytest.mark.asyncio
    async def test_head_has_headers_without_body(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            response = await client.head("/app.js")
        size = (site_dir / "public" / "app.js").stat().st_size
        assert response.status == 200
        assert response.body_bytes == b""
        assert response.header("content-length") == str(size)


class TestValidators:
    @pytest.mark.asyncio
    async def test_etag_and_last_modified(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            response = await client.get("/app.js")
        assert response.header("etag", "").startswith('W/"')
        assert response.header("last-modified") is not None
        assert response.header("cache-control") == "public, max-age=0"

    @pytest.mark.asyncio
    async def test_if_none_match_returns_304(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            first = await client.get("/app.js")
            second = await client.get("/app.js", headers={"If-None-Match": first.header("etag")})
        assert second.status == 304
        assert second.body_bytes == b""

    @pytest.mark.asyncio
    async def test_if_modified_since_returns_304(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            first = await client.get("/app.js")
            second = await client.get(
                "/app.js", headers={"If-Modified-Since": first.header("last-modified")}
            )
        assert second.status == 304

    @pytest.mark.asyncio
    async def test_stale_etag_returns_200(self, site_dir) -> None:
        async with TestClient(Site(site_dir)) as client:
            response = await client.get("/app.js", headers={"If-None-Match": 'W/"stale"'})
        assert response.status == 200


class TestFallThrough:
    @pytest.mark.asyncio
    async def test_missing_file_calls_next(self, site_dir) -> None:
        mw = StaticFiles(site_dir / "public")
        response = await mw(_get("/nope.css"), _fallthrough)
        assert response.status == 418

    @pytest.mark.asyncio
    async def test_directory_without_index_calls_next(self, site_dir) -> None:
        mw = StaticFiles(site_dir / "public")
        response = await mw(_get("/empty/"), _fallthrough)
        assert response.status == 418

    @pytest.mark.asyncio
    async def test_post_calls_next(self, site_dir) -> None:
        mw = StaticFiles(site_dir / "public")
        response = await mw(_get("/app.js", method="POST"), _fallthrough)
        assert response.status == 418


class TestSecurity:
    @pytest.mark.asyncio
    async def test_traversal_forbidden(self, site_dir) -> None:
        (site_dir / "secret.txt").write_text("secret")
        mw = StaticFiles(site_dir / "public")
        response = await mw(_get("/../secret.txt"), _fallthrough)
        assert response.status == 403

    @pytest.mark.asyncio
    async def test_symlink_out_of_root_forbidden(self, site_dir, tmp_path) -> None:
        outside = tmp_path / "outside.txt"
        outside.write_text("outside")
        os.symlink(outside, site_dir / "public" / "link.txt")
        mw = StaticFiles(site_dir / "public")
        response = await mw(_get("/link.txt"), _fallthrough)
        assert response.status == 403

    @pytest.mark.asyncio
    async def test_null_byte_rejected(self, site_dir) -> None:
        mw = StaticFiles(site_dir / "public")
        response = await mw(_get("/app.js\x00.txt"), _fallthrough)
        assert response.status == 400
