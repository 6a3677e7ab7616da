from __future__ import annotations

import aiohttp
import pytest
from aiohttp import test_utils, web

from hotpush._redact import redact_for_log
from hotpush._transport import HttpTransport
from hotpush.exceptions import HotPushTransportError


def _app() -> web.Application:
    async def version(request: web.Request) -> web.Response:
        return web.json_response({"timestamp": 3, "files": [], "auth": request.headers.get("Authorization")})

    async def missing(_: web.Request) -> web.Response:
        return web.Response(status=404, text="not here")

    async def garbage(_: web.Request) -> web.Response:
        return web.Response(text="<html>")

    async def undecodable(_: web.Request) -> web.Response:
        return web.Response(body=b'\xff\xfe{"timestamp": 1}', content_type="application/json")

    app = web.Application()
    app.router.add_get("/version.json", version)
    app.router.add_get("/missing.json", missing)
    app.router.add_get("/garbage.json", garbage)
    app.router.add_get("/undecodable.json", undecodable)
    return app


@pytest.mark.asyncio
async def test_get_json_success_and_headers() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = HttpTransport(session, timeout=5)
        payload = await transport.get_json(str(server.make_url("/version.json")), {"Authorization": "Bearer t"})

    assert payload == {"timestamp": 3, "files": [], "auth": "Bearer t"}


@pytest.mark.asyncio
async def test_get_json_bad_status() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = HttpTransport(session, timeout=5)
        with pytest.raises(HotPushTransportError) as excinfo:
            await transport.get_json(str(server.make_url("/missing.json")))

    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_get_json_invalid_body() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = HttpTransport(session, timeout=5)
        with pytest.raises(HotPushTransportError, match="Invalid JSON"):
            await transport.get_json(str(server.make_url("/garbage.json")))


@pytest.mark.asyncio
async def test_get_json_undecodable_body() -> None:
    async with test_utils.TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = HttpTransport(session, timeout=5)
        with pytest.raises(HotPushTransportError, match="Undecodable") as excinfo:
            await transport.get_json(str(server.make_url("/undecodable.json")))

    assert excinfo.value.status_code == 200


@pytest.mark.asyncio
async def test_get_json_connection_error() -> None:
    async with aiohttp.ClientSession() as session:
        transport = HttpTransport(session, timeout=5)
        with pytest.raises(HotPushTransportError, match="failed"):
            await transport.get_json("http://127.0.0.1:1/version.json")


def test_redact_headers() -> None:
    redacted = redact_for_log({"Authorization": "Bearer secret", "Accept": "application/json", "X-Api-Key": "k"})

    assert redacted == {"Authorization": "<redacted>", "Accept": "application/json", "X-Api-Key": "<redacted>"}
    assert redact_for_log("x" * 300).endswith("<truncated>")
