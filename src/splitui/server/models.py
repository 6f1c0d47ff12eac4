"""Request and response models for the proxy API.

All models inherit from CamelModel, so JSON uses camelCase while Python
uses snake_case.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

UserText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


class CamelModel(BaseModel):
    """Base model with camelCase JSON serialization."""

    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


# ═══════════════════════════════════════════════════════════════
# GENERATION
# ═══════════════════════════════════════════════════════════════


class MessageModel(CamelModel):
    role: Literal["system", "user", "assistant"]
    content: str | None = None


class ToolModel(CamelModel):
    """A tool in the Anthropic shape (`input_schema` is also accepted)."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict)


class GenerateRequest(CamelModel):
    messages: list[MessageModel] = Field(min_length=1)
    tools: list[ToolModel] = Field(default_factory=list)
    tool_choice: str | None = None
    system: str | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=1.0)


class ToolCallModel(CamelModel):
    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class GenerateResponse(CamelModel):
    content: str | None = None
    model: str
    tool_calls: list[ToolCallModel] = Field(default_factory=list)
    finish_reason: str | None = None


# ═══════════════════════════════════════════════════════════════
# INTENT ENDPOINTS
# ═══════════════════════════════════════════════════════════════


class DetectIntentRequest(CamelModel):
    user_message: UserText
    conversation_history: list[str] = Field(default_factory=list)


class IntentModel(CamelModel):
    name: str
    confidence: float
    entities: dict[str, Any] = Field(default_factory=dict)
    dropped_fields: list[str] = Field(default_factory=list)
    """Fields the model sent that could not be coerced to their declared kind."""


class DetectIntentResponse(CamelModel):
    intent: IntentModel | None = None


class GenerateReplyRequest(CamelModel):
    user_message: UserText
    conversation_history: list[str] = Field(default_factory=list)


class GenerateReplyResponse(CamelModel):
    response: str


# ═══════════════════════════════════════════════════════════════
# MISC
# ═══════════════════════════════════════════════════════════════


class HealthResponse(CamelModel):
    status: Literal["ok"] = "ok"
    provider: str
    model: str
    timestamp: str


class ErrorResponse(CamelModel):
    error: str
    message: str
    error_id: str | None = None
