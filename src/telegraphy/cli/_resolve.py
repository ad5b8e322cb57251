"""Router import resolution — resolves ``"module:attribute"`` strings to routers."""

import importlib
from typing import Any

from telegraphy.asgi import RouterApp
from telegraphy.router import Router


def resolve_router(import_string: str) -> Router[Any]:
    """Resolve an import string to a telegraphy ``Router``.

    Accepts ``"module:attribute"`` format. When the attribute portion
    is omitted, defaults to ``"router"``. A ``RouterApp`` resolves to the
    router it serves, and any other callable is treated as a zero-argument
    factory.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a ``Router``.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "router"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if isinstance(obj, RouterApp):
        obj = obj.router
    elif callable(obj) and not isinstance(obj, Router):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, Router):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a telegraphy.Router instance"
        raise TypeError(msg)

    return obj
