"""Scripted mock model for tests and offline demos."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from splitui.models.protocol import (
    GenerateOptions,
    GenerateResult,
    Message,
    TokenUsage,
    Tool,
    ToolCall,
    ToolChoice,
    sanitize_llm_content,
)


def invocation(name: str, arguments: dict | None = None, call_id: str = "call_1") -> GenerateResult:
    """Build a result in which the model invokes one tool."""
    return GenerateResult(
        content=None,
        model="mock-model",
        tool_calls=(ToolCall(id=call_id, name=name, arguments=dict(arguments or {})),),
        finish_reason="tool_use",
    )


def declined(text: str | None = None) -> GenerateResult:
    """Build a result in which the model calls no tool."""
    return GenerateResult(content=text, model="mock-model", finish_reason="end_turn")


@dataclass(slots=True)
class MockModel:
    """Mock model with scripted intent and reply responses.

    Calls made with tools are answered from `intents` in order; calls without
    tools are answered from `replies`. An exhausted script falls back to a
    declined intent or an echo reply. An `Exception` in either script is
    raised instead of returned.

    Example:
        mock = MockModel(
            intents=[invocation("add_task", {"title": "buy milk"})],
            replies=["Sure, adding that."],
        )
    """

    intents: list[GenerateResult | Exception] = field(default_factory=list)
    replies: list[str | Exception] = field(default_factory=list)
    latency: float = 0.0
    """Seconds to sleep before answering each call."""

    _call_count: int = field(default=0, init=False)
    _prompts: list[str | tuple[Message, ...]] = field(default_factory=list, init=False)
    _tools_provided: list[tuple[Tool, ...] | None] = field(default_factory=list, init=False)
    closed: bool = field(default=False, init=False)

    @property
    def model_id(self) -> str:
        return "mock-model"

    @property
    def call_count(self) -> int:
        """Number of times generate was called."""
        return self._call_count

    @property
    def prompts(self) -> list[str | tuple[Message, ...]]:
        """All prompts received."""
        return self._prompts

    @property
    def tools_provided(self) -> list[tuple[Tool, ...] | None]:
        """Tools provided in each call."""
        return self._tools_provided

    async def aclose(self) -> None:
        self.closed = True

    async def generate(
        self,
        prompt: str | tuple[Message, ...],
        *,
        tools: tuple[Tool, ...] | None = None,
        tool_choice: ToolChoice = None,
        options: GenerateOptions | None = None,
    ) -> GenerateResult:
        """Return the next scripted response."""
        self._prompts.append(prompt)
        self._tools_provided.append(tools)
        self._call_count += 1

        if self.latency:
            await asyncio.sleep(self.latency)

        if tools:
            scripted = self.intents.pop(0) if self.intents else declined()
            if isinstance(scripted, Exception):
                raise scripted
            return scripted

        text = self.replies.pop(0) if self.replies else None
        if isinstance(text, Exception):
            raise text
        if text is None:
            if isinstance(prompt, str):
                prompt_text = prompt
            else:
                prompt_text = (prompt[-1].content or "") if prompt else ""
            text = f"Mock response to: {prompt_text[:50]}"

        return GenerateResult(
            content=sanitize_llm_content(text),
            model=self.model_id,
            usage=TokenUsage(
                prompt_tokens=0,
                completion_tokens=len(text.split()),
                total_tokens=len(text.split()),
            ),
            finish_reason="end_turn",
        )

