"""Claude adapters: the Anthropic API directly, or through AWS Bedrock.

Both speak the Messages API, so they share request building and response
parsing; only client construction differs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from splitui.foundation.errors import from_anthropic_error
from splitui.models.protocol import (
    GenerateOptions,
    GenerateResult,
    Message,
    TokenUsage,
    Tool,
    ToolCall,
    ToolChoice,
    sanitize_arguments,
    sanitize_llm_content,
)

if TYPE_CHECKING:
    from anthropic import AsyncAnthropic, AsyncAnthropicBedrock

logger = logging.getLogger(__name__)

_TOOL_CHOICES: dict[str, dict[str, str]] = {
    "auto": {"type": "auto"},
    "none": {"type": "none"},
    "required": {"type": "any"},
}


def to_anthropic_messages(
    prompt: str | tuple[Message, ...],
) -> tuple[list[dict[str, str]], str | None]:
    """Split a prompt into Messages API turns and a system prompt.

    Empty turns are skipped and consecutive turns from one role are joined,
    since the API requires strict user/assistant alternation.
    """
    if isinstance(prompt, str):
        return [{"role": "user", "content": prompt}], None

    system: str | None = None
    turns: list[dict[str, str]] = []
    for msg in prompt:
        if msg.role == "system":
            system = msg.content
        elif not msg.content:
            continue
        elif turns and turns[-1]["role"] == msg.role:
            turns[-1]["content"] = f"{turns[-1]['content']}\n\n{msg.content}"
        else:
            turns.append({"role": msg.role, "content": msg.content})
    return turns, system


def to_anthropic_tool_choice(tool_choice: ToolChoice) -> dict[str, str] | None:
    """Map a protocol tool choice; any other string forces that tool."""
    if tool_choice is None:
        return None
    return _TOOL_CHOICES.get(tool_choice, {"type": "tool", "name": tool_choice})


def parse_response(response: Any) -> GenerateResult:
    """Turn a Messages API response into a GenerateResult."""
    texts: list[str] = []
    calls: list[ToolCall] = []
    for block in response.content:
        match block.type:
            case "text":
                texts.append(block.text)
            case "tool_use":
                arguments = block.input if isinstance(block.input, dict) else {}
                calls.append(ToolCall(block.id, block.name, sanitize_arguments(arguments)))

    usage = getattr(response, "usage", None)
    return GenerateResult(
        content=sanitize_llm_content("".join(texts)) if texts else None,
        model=response.model,
        tool_calls=tuple(calls),
        usage=TokenUsage(
            prompt_tokens=usage.input_tokens,
            completion_tokens=usage.output_tokens,
            total_tokens=usage.input_tokens + usage.output_tokens,
        ) if usage is not None else None,
        finish_reason=response.stop_reason,
    )


@dataclass
class AnthropicModel:
    """Claude through the Anthropic API.

    The SDK is imported on first use so that the mock and http providers
    work without it being configured.
    """

    model: str = "claude-sonnet-4-5-20250929"
    api_key: str | None = None
    max_tokens: int = 1024
    timeout: float = 60.0
    _client: AsyncAnthropic | AsyncAnthropicBedrock | None = field(default=None, init=False)

    provider = "anthropic"

    @property
    def model_id(self) -> str:
        return self.model

    def _get_client(self) -> AsyncAnthropic | AsyncAnthropicBedrock:
        if self._client is None:
            from anthropic import AsyncAnthropic

            self._client = AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def _request(
        self,
        prompt: str | tuple[Message, ...],
        tools: tuple[Tool, ...] | None,
        tool_choice: ToolChoice,
        opts: GenerateOptions,
    ) -> dict[str, Any]:
        messages, system = to_anthropic_messages(prompt)
        request: dict[str, Any] = {
            "model": self.model,
            "max_tokens": opts.max_tokens or self.max_tokens,
            "messages": messages,
        }
        # An explicit system prompt beats one found in the history
        if opts.system_prompt or system:
            request["system"] = opts.system_prompt or system
        if opts.temperature is not None:
            request["temperature"] = opts.temperature
        if tools:
            request["tools"] = [t.to_dict() for t in tools]
            if choice := to_anthropic_tool_choice(tool_choice):
                request["tool_choice"] = choice
        return request

    async def generate(
        self,
        prompt: str | tuple[Message, ...],
        *,
        tools: tuple[Tool, ...] | None = None,
        tool_choice: ToolChoice = None,
        options: GenerateOptions | None = None,
    ) -> GenerateResult:
        """Send one Messages API request.

        Raises:
            TransportFailure: When the API call fails for any reason.
        """
        request = self._request(prompt, tools, tool_choice, options or GenerateOptions())
        try:
            response = await self._get_client().messages.create(**request)
        except Exception as e:
            logger.warning("%s request failed: %s", self.provider, e)
            raise from_anthropic_error(e, self.model, provider=self.provider) from e
        return parse_response(response)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


@dataclass
class BedrockModel(AnthropicModel):
    """Claude served through AWS Bedrock.

    Credentials come from the standard AWS chain (environment, profile,
    instance role); only the region is configured here.
    """

    model: str = "anthropic.claude-sonnet-4-5-20250929-v1:0"
    aws_region: str = "us-east-1"

    provider = "bedrock"

    def _get_client(self) -> AsyncAnthropic | AsyncAnthropicBedrock:
        if self._client is None:
            from anthropic import AsyncAnthropicBedrock

            self._client = AsyncAnthropicBedrock(aws_region=self.aws_region, timeout=self.timeout)
        return self._client
