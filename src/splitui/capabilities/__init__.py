"""Capability catalog: schema types, registry and tool compiler.

The built-in catalog lives in `splitui.capabilities.catalog`; it is not
imported here because it pulls in the presentation views.
"""

from splitui.capabilities.compiler import compile_descriptor, compile_tools, dump_tools
from splitui.capabilities.registry import CapabilityRegistry
from splitui.capabilities.types import CapabilityDescriptor, FieldKind, SchemaField

__all__ = [
    "CapabilityDescriptor",
    "CapabilityRegistry",
    "FieldKind",
    "SchemaField",
    "compile_descriptor",
    "compile_tools",
    "dump_tools",
]
