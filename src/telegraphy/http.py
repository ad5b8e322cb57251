"""Authenticated JSON-over-HTTP cable.

Posts each envelope to a single endpoint with a bearer token and
returns the decoded JSON body. Envelopes go through the same codec as
``local_cable``, so dataclass and enum inputs encode identically::

    auth = BearerAuth()
    cable = http_cable("https://api.example.com/rpc", auth)
    crew = make_remote(crew_feature, cable)

    auth.token = await login()
    officer = await crew.getOfficer({"id": 1})

An ``httpx.AsyncClient`` is created per call, so the cable holds no
connection state. Pass ``transport`` (e.g. ``httpx.MockTransport`` or
``httpx.ASGITransport``) to call without a network.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from telegraphy.cable import Cable
from telegraphy.config import CableConfig
from telegraphy.envelope import Envelope, encode
from telegraphy.errors import AuthenticationError, ConfigurationError, TransportError

logger = logging.getLogger("telegraphy.http")


class TokenSource(Protocol):
    """Anything holding the current bearer token (``None`` when logged out)."""

    token: str | None


@dataclass(slots=True)
class BearerAuth:
    """Mutable token holder shared between a login flow and its cables."""

    token: str | None = None


def http_cable(
    endpoint: str | CableConfig | None,
    auth: TokenSource,
    *,
    timeout: float | None = None,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Cable:
    """Build a cable that POSTs envelopes to *endpoint*.

    *endpoint* may be a URL or a ``CableConfig``; explicit ``timeout``
    and ``headers`` override the config's values.

    Raises ``ConfigurationError`` immediately if no endpoint is set.
    Each call raises ``AuthenticationError`` before any I/O when
    ``auth.token`` is empty, and ``TransportError`` for network failures
    or non-success responses.
    """
    config = endpoint if isinstance(endpoint, CableConfig) else CableConfig(endpoint=endpoint)
    if not config.endpoint:
        msg = "Backend endpoint is not set"
        raise ConfigurationError(msg)

    url = config.endpoint
    call_timeout = config.timeout if timeout is None else timeout
    extra_headers = {**dict(config.headers), **(headers or {})}

    async def cable(feature: str, method: str, input: Any) -> Any:
        token = auth.token
        if not token:
            msg = "User not authenticated, cannot call cable without a token"
            raise AuthenticationError(msg)

        request_headers = {
            **extra_headers,
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
        }
        body = encode(Envelope(feature=feature, method=method, input=input).to_dict())

        logger.debug("POST %s %s.%s", url, feature, method)
        try:
            async with httpx.AsyncClient(transport=transport, timeout=call_timeout) as client:
                response = await client.post(url, content=body.encode("utf-8"), headers=request_headers)
        except httpx.RequestError as exc:
            logger.warning("Request for %s.%s failed: %s", feature, method, exc)
            raise TransportError(feature=feature, method=method, detail=str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            code, detail = _error_details(response)
            logger.warning("%s.%s returned %d: %s", feature, method, response.status_code, detail)
            raise TransportError(
                feature=feature,
                method=method,
                status=response.status_code,
                detail=detail,
                code=code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise TransportError(
                feature=feature,
                method=method,
                status=response.status_code,
                detail=f"Response body is not valid JSON: {exc}",
            ) from exc

    return cable


def _error_details(response: httpx.Response) -> tuple[str | None, str]:
    """Pull ``(code, message)`` from a telegraphy error body, else the reason phrase."""
    reason = response.reason_phrase or str(response.status_code)
    try:
        body = response.json()
    except ValueError:
        return None, reason
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("code"), error.get("message") or reason
    if isinstance(error, str):
        return None, error
    return None, reason
