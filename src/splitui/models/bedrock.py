"""Bedrock with an API key (bearer token) instead of IAM credentials.

Bedrock API keys are sent as `Authorization: Bearer <token>` to the plain
InvokeModel endpoint, so this adapter skips the AWS SDK and posts the
Messages API body with httpx:

    POST https://bedrock-runtime.{region}.amazonaws.com/model/{model}/invoke
    {"anthropic_version": "bedrock-2023-05-31", "max_tokens": ..., "messages": [...]}
    -> Anthropic Messages API response JSON
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from splitui.foundation.errors import ErrorCode, TransportFailure, from_http_error
from splitui.models.anthropic import BedrockModel
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
    import httpx

logger = logging.getLogger(__name__)

BEDROCK_ANTHROPIC_VERSION = "bedrock-2023-05-31"
BEARER_TOKEN_VAR = "AWS_BEARER_TOKEN_BEDROCK"


def parse_invoke_body(data: dict[str, Any], model: str) -> GenerateResult:
    """Turn an InvokeModel JSON body into a GenerateResult."""
    texts: list[str] = []
    calls: list[ToolCall] = []
    for block in data.get("content") or ():
        if not isinstance(block, dict):
            continue
        match block.get("type"):
            case "text":
                texts.append(str(block.get("text", "")))
            case "tool_use" if block.get("name"):
                arguments = block.get("input")
                calls.append(ToolCall(
                    id=str(block.get("id", "")),
                    name=str(block["name"]),
                    arguments=sanitize_arguments(arguments) if isinstance(arguments, dict) else {},
                ))

    usage = data.get("usage")
    if isinstance(usage, dict):
        prompt_tokens = int(usage.get("input_tokens", 0))
        completion_tokens = int(usage.get("output_tokens", 0))
        token_usage = TokenUsage(
            prompt_tokens, completion_tokens, prompt_tokens + completion_tokens
        )
    else:
        token_usage = None

    return GenerateResult(
        content=sanitize_llm_content("".join(texts)) if texts else None,
        model=str(data.get("model") or model),
        tool_calls=tuple(calls),
        usage=token_usage,
        finish_reason=data.get("stop_reason"),
    )


@dataclass
class BedrockBearerModel(BedrockModel):
    """Claude on Bedrock, authenticated with a Bedrock API key."""

    bearer_token: str = ""
    _http: httpx.AsyncClient | None = field(default=None, init=False)

    @property
    def endpoint(self) -> str:
        model = quote(self.model, safe="")
        return f"https://bedrock-runtime.{self.aws_region}.amazonaws.com/model/{model}/invoke"

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            import httpx

            self._http = httpx.AsyncClient(
                timeout=httpx.Timeout(timeout=self.timeout, connect=10.0),
            )
        return self._http

    async def generate(
        self,
        prompt: str | tuple[Message, ...],
        *,
        tools: tuple[Tool, ...] | None = None,
        tool_choice: ToolChoice = None,
        options: GenerateOptions | None = None,
    ) -> GenerateResult:
        """Send one InvokeModel request.

        Raises:
            TransportFailure: On connection errors, non-2xx statuses, or a
                body that is not a Messages API response.
        """
        import httpx

        body = self._request(prompt, tools, tool_choice, options or GenerateOptions())
        # The model goes in the URL; Bedrock rejects it in the body
        del body["model"]
        body["anthropic_version"] = BEDROCK_ANTHROPIC_VERSION

        try:
            response = await self._get_http().post(
                self.endpoint,
                json=body,
                headers={
                    "Authorization": f"Bearer {self.bearer_token}",
                    "Accept": "application/json",
                },
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Bedrock returned %s for %s", status, self.model)
            raise from_http_error(e, self.endpoint, status=status, env_var=BEARER_TOKEN_VAR) from e
        except httpx.HTTPError as e:
            logger.warning("Bedrock request failed: %s", e)
            raise from_http_error(e, self.endpoint, env_var=BEARER_TOKEN_VAR) from e

        try:
            data = response.json()
        except ValueError as e:
            raise TransportFailure(
                code=ErrorCode.MODEL_RESPONSE_INVALID,
                context={"provider": self.provider, "detail": "body is not JSON"},
                cause=e,
            ) from e
        if not isinstance(data, dict):
            raise TransportFailure(
                code=ErrorCode.MODEL_RESPONSE_INVALID,
                context={"provider": self.provider, "detail": "expected a JSON object"},
            )
        return parse_invoke_body(data, self.model)

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
        await super().aclose()
