"""Model protocol - provider-agnostic LLM interface.

The dispatch core only ever sees `GenerateResult`: either it carries a tool
call (the model picked a capability) or it does not.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# C0 control characters other than tab, newline and carriage return
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


# =============================================================================
# Output sanitization
# =============================================================================


def sanitize_llm_content(text: str | None) -> str | None:
    """Strip control characters from model text; None passes through."""
    if text is None:
        return None
    cleaned, removed = _CONTROL_CHARS.subn("", text)
    if removed:
        logger.debug("Stripped %d control characters from model output", removed)
    return cleaned


def _sanitize_value(value: Any) -> Any:
    match value:
        case str():
            return sanitize_llm_content(value)
        case dict():
            return sanitize_arguments(value)
        case list():
            return [_sanitize_value(item) for item in value]
        case _:
            return value


def sanitize_arguments(arguments: dict[str, Any]) -> dict[str, Any]:
    """Sanitize every string inside tool-call arguments, at any depth.

    Field values extracted by the model end up in forms and stored records,
    so they get the same treatment as reply text.
    """
    return {key: _sanitize_value(value) for key, value in arguments.items()}


# =============================================================================
# Conversation and tools
# =============================================================================


@dataclass(frozen=True, slots=True)
class Message:
    """One turn of conversation history."""

    role: Literal["system", "user", "assistant"]
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True, slots=True)
class Tool:
    """A tool offered to the model, compiled from one capability."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema object

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the wire shape the proxy and Anthropic both accept."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool invocation returned by the model."""

    id: str
    name: str
    arguments: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "arguments": self.arguments}


ToolChoice = Literal["auto", "none", "required"] | str | None


# =============================================================================
# Generation
# =============================================================================


@dataclass(frozen=True, slots=True)
class GenerateOptions:
    temperature: float | None = None
    max_tokens: int | None = None
    system_prompt: str | None = None


@dataclass(frozen=True, slots=True)
class TokenUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True, slots=True)
class GenerateResult:
    """What a provider returned for one request.

    `tool_calls` is the invocation signal: empty means the model declined
    to select a capability.
    """

    content: str | None
    model: str
    tool_calls: tuple[ToolCall, ...] = ()
    usage: TokenUsage | None = None
    finish_reason: str | None = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    @property
    def text(self) -> str:
        return self.content or ""


@runtime_checkable
class ModelProtocol(Protocol):
    """What the transport needs from a provider.

    Implementations: AnthropicModel, BedrockModel, BedrockBearerModel, HttpModel,
    MockModel.
    """

    @property
    def model_id(self) -> str: ...

    async def generate(
        self,
        prompt: str | tuple[Message, ...],
        *,
        tools: tuple[Tool, ...] | None = None,
        tool_choice: ToolChoice = None,
        options: GenerateOptions | None = None,
    ) -> GenerateResult:
        """Run one request.

        Args:
            prompt: A single user prompt, or the conversation as Messages.
            tools: Compiled capability tools; None for a plain reply.
            tool_choice: "auto", "none", "required", or a tool name to force.
            options: Sampling, token limit and system prompt.
        """
        ...
