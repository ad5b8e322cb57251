"""Telegraphy — typed feature dispatch over pluggable cables.

Define a feature once, serve it from a router, call it through a cable.
Both ends validate against the same schemas.

Basic usage::

    from telegraphy import feature, make_remote, make_route, make_router, transform
    from telegraphy import schema as s

    crew = feature("crew", {
        "getOfficer": transform(s.obj({"id": s.integer})).to(
            s.obj({"id": s.integer, "name": s.string, "rank": s.string})
        ),
    })

    # Server
    router = make_router({"crew": make_route(crew, CrewImpl)})
    app = RouterApp(router, context=build_context)

    # Client
    remote = make_remote(crew, http_cable("https://api.example.com/rpc", auth))
    officer = await remote.getOfficer({"id": 1})
"""

__version__ = "0.1.0"
__all__ = [
    "AuthenticationError",
    "BearerAuth",
    "Cable",
    "CableConfig",
    "CallableDef",
    "ConfigurationError",
    "Envelope",
    "Feature",
    "MethodNotDeclared",
    "NotFound",
    "Remote",
    "Route",
    "Router",
    "RouterApp",
    "SchemaError",
    "ServerConfig",
    "TelegraphyError",
    "TransportError",
    "ValidationError",
    "bearer_token",
    "feature",
    "http_cable",
    "local_cable",
    "make_remote",
    "make_route",
    "make_router",
    "transform",
]

_ERRORS = (
    "AuthenticationError",
    "ConfigurationError",
    "MethodNotDeclared",
    "NotFound",
    "SchemaError",
    "TelegraphyError",
    "TransportError",
    "ValidationError",
)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import telegraphy`` fast and leaves httpx unimported until
    the HTTP cable is actually used.
    """
    if name in ("CallableDef", "Feature", "feature", "transform"):
        from telegraphy import features as _features

        return getattr(_features, name)

    if name in ("Remote", "make_remote"):
        from telegraphy import remote as _remote

        return getattr(_remote, name)

    if name in ("Route", "make_route"):
        from telegraphy import route as _route

        return getattr(_route, name)

    if name in ("Router", "make_router"):
        from telegraphy import router as _router

        return getattr(_router, name)

    if name in ("Cable", "local_cable"):
        from telegraphy import cable as _cable

        return getattr(_cable, name)

    if name == "Envelope":
        from telegraphy.envelope import Envelope

        return Envelope

    if name in ("BearerAuth", "http_cable"):
        from telegraphy import http as _http

        return getattr(_http, name)

    if name in ("RouterApp", "bearer_token"):
        from telegraphy import asgi as _asgi

        return getattr(_asgi, name)

    if name in ("CableConfig", "ServerConfig"):
        from telegraphy import config as _config

        return getattr(_config, name)

    if name in _ERRORS:
        from telegraphy import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
