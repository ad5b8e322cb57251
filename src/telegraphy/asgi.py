"""ASGI endpoint serving a ``Router`` over HTTP.

Receives envelope POSTs at a single path (default ``/rpc``), builds the
per-request context, dispatches through the router and answers with
the route's JSON text. Pairs with ``telegraphy.http.http_cable``::

    app = RouterApp(router, context=lambda scope: AppContext(db=db))

Errors become a JSON error body ``{"error": {"code": ..., "message": ...}}``:

    ============================  ======  ======================
    failure                       status  code
    ============================  ======  ======================
    unreadable / non-JSON body    400     PARSE_ERROR
    ValidationError (input)       400     VALIDATION_ERROR
    ValidationError (output)      500     INTERNAL
    AuthenticationError           401     UNAUTHENTICATED
    NotFound                      404     NOT_FOUND
    wrong path                    404     NOT_FOUND
    wrong HTTP method             405     METHOD_NOT_ALLOWED
    body too large                413     PAYLOAD_TOO_LARGE
    anything else                 500     INTERNAL
    ============================  ======  ======================

Unexpected exceptions are logged with their traceback; their message is
only sent to the client when ``ServerConfig.debug`` is set.
"""

import json as json_module
import logging
from collections.abc import Callable
from typing import Any

from telegraphy._internal.asgi import HTTPScope, Receive, Scope, Send
from telegraphy._internal.invoke import invoke
from telegraphy.config import ServerConfig
from telegraphy.errors import AuthenticationError, NotFound, ValidationError
from telegraphy.router import Router

logger = logging.getLogger("telegraphy.asgi")


class _BodyTooLarge(Exception):  # noqa: N818
    pass


class RouterApp:
    """ASGI application exposing *router* at ``config.path``.

    *context* builds the per-request context from the raw ASGI scope
    (sync or async). Without it, routes receive ``None``.
    """

    __slots__ = ("config", "context", "router")

    def __init__(
        self,
        router: Router[Any],
        *,
        context: Callable[[Scope], Any] | None = None,
        config: ServerConfig | None = None,
    ) -> None:
        self.router = router
        self.context = context
        self.config = config or ServerConfig()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await _handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return
        await handle_rpc(
            scope,
            receive,
            send,
            router=self.router,
            context=self.context,
            config=self.config,
        )


def bearer_token(scope: Scope) -> str | None:
    """Return the token of a ``Authorization: Bearer ...`` request header, if any.

    The counterpart of ``http_cable``'s header, for context builders::

        def context(scope):
            user = sessions.get(bearer_token(scope))
            if user is None:
                raise AuthenticationError("Invalid token")
            return AppContext(user=user)
    """
    header = HTTPScope.from_scope(scope).header("authorization")
    if header is None:
        return None
    scheme, _, token = header.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


async def handle_rpc(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router[Any],
    context: Callable[[Scope], Any] | None = None,
    config: ServerConfig | None = None,
) -> None:
    """Handle one HTTP request carrying an envelope."""
    config = config or ServerConfig()
    http = HTTPScope.from_scope(scope)

    path = http.path
    if http.root_path and path.startswith(http.root_path):
        path = path[len(http.root_path):] or "/"
    if path.rstrip("/") != config.path.rstrip("/"):
        await _send_error(send, 404, "NOT_FOUND", f"No RPC endpoint at {http.path!r}")
        return

    if http.method != "POST":
        await _send_error(
            send,
            405,
            "METHOD_NOT_ALLOWED",
            "Method not allowed. Use POST.",
            headers=[(b"allow", b"POST")],
        )
        return

    try:
        body = await _read_body(receive, limit=config.max_content_length)
    except _BodyTooLarge:
        await _send_error(
            send,
            413,
            "PAYLOAD_TOO_LARGE",
            f"Request body exceeds {config.max_content_length} bytes",
        )
        return

    try:
        payload = json_module.loads(body)
    except (json_module.JSONDecodeError, UnicodeDecodeError):
        await _send_error(send, 400, "PARSE_ERROR", "Request body is not valid JSON")
        return

    try:
        ctx = await invoke(context, scope) if context is not None else None
        result = await router.dispatch(ctx, payload)
    except ValidationError as exc:
        if exc.phase == "output":
            logger.exception("Implementation returned invalid output: %s", exc.target)
            message = str(exc) if config.debug else "Internal Server Error"
            await _send_error(send, 500, "INTERNAL", message)
            return
        await _send_error(send, 400, "VALIDATION_ERROR", str(exc), issues=_issues(exc))
        return
    except AuthenticationError as exc:
        await _send_error(send, 401, "UNAUTHENTICATED", str(exc))
        return
    except NotFound as exc:
        await _send_error(send, 404, "NOT_FOUND", str(exc))
        return
    except Exception as exc:
        logger.exception("RPC call failed: %s %s", http.method, http.path)
        message = str(exc) if config.debug else "Internal Server Error"
        await _send_error(send, 500, "INTERNAL", message)
        return

    await _send(send, status=200, body=result.encode("utf-8"))


def _issues(exc: ValidationError) -> list[dict[str, Any]]:
    return [{"path": list(issue.path), "message": issue.message} for issue in exc.issues]


# -- ASGI helpers --


async def _handle_lifespan(receive: Receive, send: Send) -> None:
    """Acknowledge startup and shutdown; the router needs no setup."""
    while True:
        message = await receive()
        if message["type"] == "lifespan.startup":
            await send({"type": "lifespan.startup.complete"})
        elif message["type"] == "lifespan.shutdown":
            await send({"type": "lifespan.shutdown.complete"})
            return


async def _read_body(receive: Receive, *, limit: int) -> bytes:
    """Read the full request body from ASGI receive, up to *limit* bytes."""
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        body = message.get("body", b"")
        if body:
            size += len(body)
            if size > limit:
                raise _BodyTooLarge
            chunks.append(body)
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


async def _send_error(
    send: Send,
    status: int,
    code: str,
    message: str,
    *,
    issues: list[dict[str, Any]] | None = None,
    headers: list[tuple[bytes, bytes]] | None = None,
) -> None:
    error: dict[str, Any] = {"code": code, "message": message}
    if issues:
        error["issues"] = issues
    payload = json_module.dumps({"error": error}).encode("utf-8")
    await _send(send, status=status, body=payload, headers=headers)


async def _send(
    send: Send,
    *,
    status: int,
    body: bytes,
    headers: list[tuple[bytes, bytes]] | None = None,
) -> None:
    """Send a JSON response over ASGI."""
    await send({
        "type": "http.response.start",
        "status": status,
        "headers": [
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode("latin-1")),
            *(headers or []),
        ],
    })
    await send({
        "type": "http.response.body",
        "body": body,
    })
