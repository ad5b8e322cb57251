"""Cable and server configuration.

Both configs are frozen dataclasses, immutable after creation.
Nothing is read from the environment; wiring belongs to the application.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CableConfig:
    """HTTP cable configuration.

    ``endpoint`` is required by ``http_cable`` but defaults to ``None``
    so a config can be assembled before the endpoint is known::

        config = CableConfig(endpoint="https://api.example.com/rpc", timeout=10.0)
    """

    endpoint: str | None = None
    timeout: float = 30.0
    headers: tuple[tuple[str, str], ...] = ()  # Extra request headers, sent on every call


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """ASGI endpoint configuration."""

    path: str = "/rpc"
    max_content_length: int = 1024 * 1024  # 1 MB
    debug: bool = False  # Expose unexpected exception messages in error responses
