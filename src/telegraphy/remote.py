"""Remote proxy — a feature's methods, callable from the client side.

``make_remote(feature, cable)`` builds one async method per declared
method name, up front. Each call validates its argument, crosses the
cable exactly once, and validates what comes back::

    crew = make_remote(crew_feature, http_cable(endpoint, auth))
    officer = await crew.getOfficer({"id": 1})

Methods are reachable as attributes, by item (``crew["getOfficer"]``)
or through ``crew.call("getOfficer", arg)``. Only declared names exist:
asking for anything else by item or ``call`` raises
``MethodNotDeclared`` without touching the cable.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from telegraphy.cable import Cable
from telegraphy.errors import MethodNotDeclared
from telegraphy.features import CallableDef, Feature
from telegraphy.schema import checked

logger = logging.getLogger("telegraphy.remote")


@dataclass(frozen=True, slots=True)
class RemoteMethod:
    """One bound remote method: validate input, call the cable, validate output."""

    feature: str
    name: str
    contract: CallableDef
    cable: Cable

    async def __call__(self, arg: Any) -> Any:
        data = checked(
            self.contract.input,
            arg,
            side="client",
            phase="input",
            feature=self.feature,
            method=self.name,
        )
        logger.debug("Calling %s.%s", self.feature, self.name)
        result = await self.cable(self.feature, self.name, data)
        return checked(
            self.contract.output,
            result,
            side="client",
            phase="output",
            feature=self.feature,
            method=self.name,
        )


class Remote:
    """Client-side view of a feature.

    Declared methods become attributes, except names that would shadow
    this class's own API (``call``, ``feature``, ``methods``) or that
    start with an underscore; those stay reachable by item and ``call``.
    """

    __slots__ = ("__dict__", "_feature", "_methods")

    def __init__(self, feature: Feature, cable: Cable) -> None:
        self._feature = feature
        self._methods = MappingProxyType({
            name: RemoteMethod(feature=feature.name, name=name, contract=callable_def, cable=cable)
            for name, callable_def in feature.schema.items()
        })
        for name, method in self._methods.items():
            if name.startswith("_") or hasattr(type(self), name):
                continue
            self.__dict__[name] = method

    @property
    def feature(self) -> Feature:
        return self._feature

    @property
    def methods(self) -> tuple[str, ...]:
        return tuple(self._methods)

    async def call(self, method: str, arg: Any) -> Any:
        """Call *method* by name."""
        return await self[method](arg)

    def __getitem__(self, method: str) -> RemoteMethod:
        try:
            return self._methods[method]
        except KeyError:
            raise MethodNotDeclared(self._feature.name, method) from None

    def __contains__(self, method: object) -> bool:
        return method in self._methods

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def __repr__(self) -> str:
        return f"<Remote {self._feature.name!r} methods={list(self._methods)!r}>"


def make_remote(feature: Feature, cable: Cable) -> Remote:
    """Build the client-side proxy for *feature* over *cable*."""
    return Remote(feature, cable)
