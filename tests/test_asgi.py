"""Tests for telegraphy.asgi — the RPC endpoint and its status mapping."""

import json
from typing import Any

import httpx
import pytest

from telegraphy import (
    AuthenticationError,
    BearerAuth,
    Route,
    RouterApp,
    ServerConfig,
    feature,
    http_cable,
    make_remote,
    make_route,
    make_router,
    transform,
)
from telegraphy import schema as s
from telegraphy._internal.asgi import HTTPScope
from telegraphy.asgi import bearer_token


def _make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope dict."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "POST",
        "path": "/rpc",
        "raw_path": b"/rpc",
        "query_string": b"",
        "root_path": "",
        "headers": [(b"content-type", b"application/json")],
    }
    base.update(overrides)
    return base


async def _call(app: RouterApp, body: bytes, *, chunks: int = 1, **scope: object) -> tuple[int, dict, Any]:
    """Drive *app* with one request and return ``(status, headers, json_body)``."""
    size = max(1, -(-len(body) // chunks))
    parts = [body[i:i + size] for i in range(0, len(body), size)] or [b""]
    messages = [
        {"type": "http.request", "body": part, "more_body": index < len(parts) - 1}
        for index, part in enumerate(parts)
    ]
    sent: list[dict[str, Any]] = []

    async def receive() -> dict[str, Any]:
        return messages.pop(0)

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    await app(_make_scope(**scope), receive, send)

    start, body_message = sent
    headers = {k.decode(): v.decode() for k, v in start["headers"]}
    return start["status"], headers, json.loads(body_message["body"])


def _envelope(feature_name: str, method: str, payload: Any) -> bytes:
    return json.dumps({"feature": feature_name, "method": method, "input": payload}).encode()


@pytest.fixture
def app(crew_route: Route[Any], ship: Any) -> RouterApp:
    return RouterApp(make_router([crew_route]), context=lambda scope: ship)


class TestHTTPScope:
    def test_from_scope(self) -> None:
        parsed = HTTPScope.from_scope(_make_scope(method="post", headers=[(b"X-Token", b"abc")]))
        assert parsed.method == "POST"
        assert parsed.path == "/rpc"
        assert parsed.headers == ((b"X-Token", b"abc"),)
        assert parsed.header("x-token") == "abc"
        assert parsed.header("missing") is None

    def test_defaults_for_missing_keys(self) -> None:
        parsed = HTTPScope.from_scope({"type": "http"})
        assert parsed.method == "GET"
        assert parsed.path == "/"
        assert parsed.root_path == ""
        assert parsed.headers == ()


class TestBearerToken:
    @pytest.mark.parametrize(
        ("headers", "expected"),
        [
            ([(b"Authorization", b"Bearer secret")], "secret"),
            ([(b"authorization", b"bearer  spaced ")], "spaced"),
            ([(b"authorization", b"Basic dXNlcg==")], None),
            ([(b"authorization", b"Bearer ")], None),
            ([], None),
        ],
    )
    def test_bearer_token(self, headers: list[tuple[bytes, bytes]], expected: str | None) -> None:
        assert bearer_token(_make_scope(headers=headers)) == expected


class TestSuccess:
    @pytest.mark.asyncio
    async def test_dispatch(self, app: RouterApp) -> None:
        status, headers, body = await _call(app, _envelope("crew", "getOfficer", {"id": 1}))
        assert status == 200
        assert headers["content-type"] == "application/json"
        assert body == {"id": 1, "name": "Picard", "rank": "Captain"}

    @pytest.mark.asyncio
    async def test_chunked_body(self, app: RouterApp) -> None:
        status, _, body = await _call(app, _envelope("crew", "getOfficer", {"id": 1}), chunks=4)
        assert status == 200
        assert body["name"] == "Picard"

    @pytest.mark.asyncio
    async def test_root_path_stripped(self, app: RouterApp) -> None:
        status, _, _ = await _call(
            app, _envelope("crew", "getOfficer", {"id": 1}), path="/api/rpc", root_path="/api"
        )
        assert status == 200

    @pytest.mark.asyncio
    async def test_custom_path(self, crew_route: Route[Any], ship: Any) -> None:
        app = RouterApp(make_router([crew_route]), context=lambda scope: ship, config=ServerConfig(path="/api"))
        status, _, _ = await _call(app, _envelope("crew", "getOfficer", {"id": 1}), path="/api")
        assert status == 200

    @pytest.mark.asyncio
    async def test_async_context_receives_scope(self, crew_route: Route[Any], ship: Any) -> None:
        seen: list[str] = []

        async def context(scope: dict[str, Any]) -> Any:
            seen.append(scope["path"])
            return ship

        app = RouterApp(make_router([crew_route]), context=context)
        status, _, _ = await _call(app, _envelope("crew", "getOfficer", {"id": 1}))

        assert status == 200
        assert seen == ["/rpc"]


class TestErrors:
    @pytest.mark.asyncio
    async def test_wrong_path(self, app: RouterApp) -> None:
        status, _, body = await _call(app, b"{}", path="/other")
        assert status == 404
        assert body["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_wrong_method(self, app: RouterApp) -> None:
        status, headers, body = await _call(app, b"", method="GET")
        assert status == 405
        assert headers["allow"] == "POST"
        assert body["error"]["code"] == "METHOD_NOT_ALLOWED"

    @pytest.mark.asyncio
    async def test_body_too_large(self, crew_route: Route[Any]) -> None:
        app = RouterApp(make_router([crew_route]), config=ServerConfig(max_content_length=16))
        status, _, body = await _call(app, _envelope("crew", "getOfficer", {"id": 1}))
        assert status == 413
        assert body["error"]["code"] == "PAYLOAD_TOO_LARGE"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [b"", b"{not json", b"\xff"])
    async def test_parse_error(self, app: RouterApp, raw: bytes) -> None:
        status, _, body = await _call(app, raw)
        assert status == 400
        assert body["error"]["code"] == "PARSE_ERROR"

    @pytest.mark.asyncio
    async def test_invalid_envelope(self, app: RouterApp) -> None:
        status, _, body = await _call(app, b'{"method": "getOfficer"}')
        assert status == 400
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["issues"] == [{"path": ["feature"], "message": "Required field is missing"}]

    @pytest.mark.asyncio
    async def test_invalid_input(self, app: RouterApp) -> None:
        status, _, body = await _call(app, _envelope("crew", "getOfficer", {"id": "one"}))
        assert status == 400
        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["issues"][0]["path"] == ["id"]

    @pytest.mark.asyncio
    async def test_unknown_feature(self, app: RouterApp) -> None:
        status, _, body = await _call(app, _envelope("billing", "charge", {}))
        assert status == 404
        assert body["error"] == {"code": "NOT_FOUND", "message": "Feature 'billing' not found"}

    @pytest.mark.asyncio
    async def test_unauthenticated(self, crew_route: Route[Any]) -> None:
        def context(scope: dict[str, Any]) -> Any:
            raise AuthenticationError("Missing session")

        app = RouterApp(make_router([crew_route]), context=context)
        status, _, body = await _call(app, _envelope("crew", "getOfficer", {"id": 1}))
        assert status == 401
        assert body["error"] == {"code": "UNAUTHENTICATED", "message": "Missing session"}

    @pytest.mark.asyncio
    async def test_internal_error_hidden(self, app: RouterApp, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("ERROR", logger="telegraphy.asgi"):
            status, _, body = await _call(app, _envelope("crew", "getOfficer", {"id": 42}))

        assert status == 500
        assert body["error"] == {"code": "INTERNAL", "message": "Internal Server Error"}
        assert any(record.exc_info for record in caplog.records)

    @pytest.mark.asyncio
    async def test_invalid_output_is_server_fault(self, crew: Any, caplog: pytest.LogCaptureFixture) -> None:
        app = RouterApp(make_router([make_route(crew, lambda ctx: {"getOfficer": lambda data: {"id": 1}})]))

        with caplog.at_level("ERROR", logger="telegraphy.asgi"):
            status, _, body = await _call(app, _envelope("crew", "getOfficer", {"id": 1}))

        assert status == 500
        assert body["error"] == {"code": "INTERNAL", "message": "Internal Server Error"}
        assert "crew.getOfficer" in caplog.text

    @pytest.mark.asyncio
    async def test_invalid_output_detail_in_debug(self, crew: Any) -> None:
        route = make_route(crew, lambda ctx: {"getOfficer": lambda data: {"id": 1}})
        app = RouterApp(make_router([route]), config=ServerConfig(debug=True))

        status, _, body = await _call(app, _envelope("crew", "getOfficer", {"id": 1}))

        assert status == 500
        assert body["error"]["message"].startswith("Invalid output for crew.getOfficer (server)")

    @pytest.mark.asyncio
    async def test_internal_error_debug(self, crew_route: Route[Any], ship: Any) -> None:
        app = RouterApp(make_router([crew_route]), context=lambda scope: ship, config=ServerConfig(debug=True))
        status, _, body = await _call(app, _envelope("crew", "getOfficer", {"id": 42}))
        assert status == 500
        assert body["error"]["message"] == "Officer 42 not found"


class TestLifespan:
    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, app: RouterApp) -> None:
        incoming = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        sent: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            return incoming.pop(0)

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)

        assert [m["type"] for m in sent] == ["lifespan.startup.complete", "lifespan.shutdown.complete"]


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_http_cable_against_router_app(self) -> None:
        profiles = {1: {"id": 1, "name": "Alice", "email": "alice@example.com"}}
        user = feature("user", {
            "getProfile": transform(s.obj({"id": s.number})).to(s.obj({"id": s.number, "name": s.string})),
        })

        def context(scope: dict[str, Any]) -> dict[str, Any]:
            if bearer_token(scope) != "secret":
                raise AuthenticationError("Invalid token")
            return profiles

        router = make_router([make_route(user, lambda db: {"getProfile": lambda data: db[data["id"]]})])
        transport = httpx.ASGITransport(app=RouterApp(router, context=context))
        remote = make_remote(user, http_cable("http://testserver/rpc", BearerAuth(token="secret"), transport=transport))

        assert await remote.getProfile({"id": 1}) == {"id": 1, "name": "Alice"}
