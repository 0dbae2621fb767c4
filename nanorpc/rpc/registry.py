"""In-memory method registry: method name -> handler + options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from loguru import logger

from nanorpc.utils.exceptions import DuplicateMethodError

Handler = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class MethodOptions:
    # Prepend the calling connection id to the handler arguments.
    identity: bool = False


@dataclass(frozen=True, slots=True)
class MethodRegistration:
    name: str
    handler: Handler
    options: MethodOptions = MethodOptions()


class MethodRegistry:
    """Name-unique table of RPC handlers. There is no unregistration."""

    def __init__(self):
        self._methods: dict[str, MethodRegistration] = {}

    def register(self, name: str, handler: Handler, options: MethodOptions | None = None) -> MethodRegistration:
        if name in self._methods:
            raise DuplicateMethodError(name)
        registration = MethodRegistration(name=name, handler=handler, options=options or MethodOptions())
        self._methods[name] = registration
        logger.debug("Registered RPC method {} identity={}", name, registration.options.identity)
        return registration

    def lookup(self, name: str) -> MethodRegistration | None:
        return self._methods.get(name)

    def names(self) -> list[str]:
        return sorted(self._methods)

    def __contains__(self, name: object) -> bool:
        return name in self._methods

    def __len__(self) -> int:
        return len(self._methods)
