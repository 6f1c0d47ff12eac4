"""Capability Registry.

Process-wide catalog of capabilities, keyed by identifier. Populated once at
startup by a fixed sequence of `register` calls and read-only afterwards, so
it can be shared across sessions without locking.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from splitui.capabilities.types import CapabilityDescriptor
from splitui.foundation.errors import DuplicateIdentifier, descriptor_error

if TYPE_CHECKING:
    from splitui.models.protocol import Tool

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-z][a-z0-9_]*$")


class CapabilityRegistry:
    """Registry of available capabilities.

    Insertion order is preserved and is observable: it is the order of the
    compiled tool list sent to the model.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CapabilityDescriptor] = {}

    def register(self, descriptor: CapabilityDescriptor) -> None:
        """Add a capability to the registry.

        Raises:
            InvalidDescriptor: Empty or non-snake_case identifier, duplicate
                field names, or a required field that is not declared.
            DuplicateIdentifier: The identifier is already registered. The
                registry is left unchanged.
        """
        identifier = descriptor.identifier
        if not identifier:
            raise descriptor_error("", "identifier must be non-empty")
        if not _IDENTIFIER.match(identifier):
            raise descriptor_error(identifier, "identifier must be a snake_case token")

        names = descriptor.field_names
        if len(set(names)) != len(names):
            dupes = sorted({n for n in names if names.count(n) > 1})
            raise descriptor_error(identifier, f"duplicate field names: {', '.join(dupes)}")

        dangling = [name for name in descriptor.required if name not in names]
        if dangling:
            raise descriptor_error(
                identifier, f"required fields not declared: {', '.join(dangling)}"
            )

        if identifier in self._entries:
            raise DuplicateIdentifier(context={"identifier": identifier})

        self._entries[identifier] = descriptor
        logger.debug("Registered capability %s (%d fields)", identifier, len(names))

    def lookup(self, identifier: str) -> CapabilityDescriptor | None:
        """Get a capability by identifier, or None if not registered."""
        return self._entries.get(identifier)

    def list_all(self) -> Iterator[CapabilityDescriptor]:
        """Iterate over all capabilities in registration order.

        Each call returns a fresh iterator. Calling `register` while an
        iterator is live is undefined behavior.
        """
        yield from self._entries.values()

    def compile_tools(self) -> tuple[Tool, ...]:
        """Compile the current contents into a model-callable tool list."""
        from splitui.capabilities.compiler import compile_tools

        return compile_tools(self)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"CapabilityRegistry({list(self._entries)!r})"

    @classmethod
    def from_descriptors(cls, descriptors: Iterable[CapabilityDescriptor]) -> CapabilityRegistry:
        """Create a registry by registering `descriptors` in order."""
        registry = cls()
        for descriptor in descriptors:
            registry.register(descriptor)
        return registry

    @classmethod
    def default(cls) -> CapabilityRegistry:
        """Create registry with the built-in capability catalog."""
        from splitui.capabilities.catalog import BUILTIN_CAPABILITIES

        return cls.from_descriptors(BUILTIN_CAPABILITIES)
