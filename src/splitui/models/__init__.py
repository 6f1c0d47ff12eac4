"""Model transport: provider-agnostic protocol and adapters.

The heavy adapters (anthropic, httpx) are imported lazily by `create_model`.
"""

from splitui.models.factory import create_model, resolve_provider
from splitui.models.mock import MockModel, declined, invocation
from splitui.models.protocol import (
    GenerateOptions,
    GenerateResult,
    Message,
    ModelProtocol,
    TokenUsage,
    Tool,
    ToolCall,
    ToolChoice,
    sanitize_llm_content,
)

__all__ = [
    "GenerateOptions",
    "GenerateResult",
    "Message",
    "MockModel",
    "ModelProtocol",
    "TokenUsage",
    "Tool",
    "ToolCall",
    "ToolChoice",
    "create_model",
    "declined",
    "invocation",
    "resolve_provider",
    "sanitize_llm_content",
]
