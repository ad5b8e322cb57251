"""Cables — the client-side transport contract.

A cable is any async callable ``(feature, method, input) -> result``.
It receives input that the remote proxy has already validated and
returns the raw, unvalidated result from the other side. It must raise
on transport or authentication failure.

Two cables ship with telegraphy:

- ``telegraphy.http.http_cable`` — authenticated JSON POST over httpx
- ``local_cable`` — in-process, straight into a ``Router``

``local_cable`` pushes every call through the same JSON encode/decode
steps a network hop would, so code developed against it behaves the
same once the cable is swapped for a real one.
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from telegraphy._internal.invoke import invoke
from telegraphy.envelope import Envelope, decode, encode

if TYPE_CHECKING:
    from telegraphy.router import Router


class Cable(Protocol):
    """Transport capability used by ``Remote``."""

    async def __call__(self, feature: str, method: str, input: Any, /) -> Any: ...


def local_cable(router: "Router[Any]", ctx: Any = None, *, context: Callable[[], Any] | None = None) -> Cable:
    """Wire a remote directly to *router* in the same process.

    *ctx* is handed to the router unchanged on every call, even when it
    is callable. Pass *context* instead to build a fresh context per
    call (sync or async, no arguments).
    """

    async def cable(feature: str, method: str, input: Any) -> Any:
        call_ctx = await invoke(context) if context is not None else ctx
        payload = decode(encode(Envelope(feature=feature, method=method, input=input).to_dict()))
        result = await router.dispatch(call_ctx, payload)
        return decode(result)

    return cable
