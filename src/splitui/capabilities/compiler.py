"""Tool compiler: registry contents -> model-callable tool list.

Pure functions of the registry's current contents. Output order follows
registration order and field declaration order, so compiling twice with no
intervening registration produces identical output, byte for byte once
serialized with `dump_tools`.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from splitui.models.protocol import Tool

if TYPE_CHECKING:
    from splitui.capabilities.registry import CapabilityRegistry
    from splitui.capabilities.types import CapabilityDescriptor

logger = logging.getLogger(__name__)


def compile_descriptor(descriptor: CapabilityDescriptor) -> Tool:
    """Compile one capability into a tool specification."""
    properties: dict[str, Any] = {f.name: f.to_json_schema() for f in descriptor.fields}
    parameters: dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "required": list(descriptor.required),
    }
    return Tool(
        name=descriptor.identifier,
        description=descriptor.description,
        parameters=parameters,
    )


def compile_tools(registry: CapabilityRegistry) -> tuple[Tool, ...]:
    """Compile every registered capability, in registration order.

    An empty registry compiles to an empty tuple.
    """
    tools = tuple(compile_descriptor(d) for d in registry.list_all())
    logger.debug("Compiled %d tools", len(tools))
    return tools


def dump_tools(tools: tuple[Tool, ...], *, indent: int | None = None) -> str:
    """Serialize tools in the Anthropic shape, preserving order."""
    return json.dumps([t.to_dict() for t in tools], indent=indent, ensure_ascii=False)
