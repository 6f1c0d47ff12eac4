"""HTTP proxy model adapter.

Talks to a running `splitui serve` instance so provider credentials never
leave the server. The proxy runs the real model and returns a
`GenerateResult` in camelCase JSON:

    POST {base_url}/api/generate
    {"messages": [...], "tools": [...], "toolChoice": "auto", "system": "...", "maxTokens": 1024}
    -> {"content": "...", "model": "...", "toolCalls": [...], "finishReason": "..."}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from splitui.foundation.errors import ErrorCode, TransportFailure, from_http_error
from splitui.models.protocol import (
    GenerateOptions,
    GenerateResult,
    Message,
    Tool,
    ToolCall,
    ToolChoice,
    sanitize_arguments,
    sanitize_llm_content,
)

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


@dataclass
class HttpModel:
    """Model adapter that forwards generation to the SplitUI proxy server."""

    base_url: str = "http://localhost:3001"
    model: str = "proxy"
    max_tokens: int = 1024
    request_timeout: float = 60.0
    _client: httpx.AsyncClient | None = field(default=None, init=False)

    @property
    def model_id(self) -> str:
        return f"http/{self.model}"

    @property
    def endpoint(self) -> str:
        return self.base_url.rstrip("/") + "/api/generate"

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx client."""
        if self._client is None:
            import httpx

            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(timeout=self.request_timeout, connect=10.0),
            )
        return self._client

    def _build_payload(
        self,
        prompt: str | tuple[Message, ...],
        tools: tuple[Tool, ...] | None,
        tool_choice: ToolChoice,
        opts: GenerateOptions,
    ) -> dict[str, Any]:
        if isinstance(prompt, str):
            messages = [Message(role="user", content=prompt)]
        else:
            messages = list(prompt)

        payload: dict[str, Any] = {
            "messages": [m.to_dict() for m in messages],
            "maxTokens": opts.max_tokens or self.max_tokens,
        }
        if tools:
            payload["tools"] = [t.to_dict() for t in tools]
        if tool_choice is not None:
            payload["toolChoice"] = tool_choice
        if opts.system_prompt:
            payload["system"] = opts.system_prompt
        if opts.temperature is not None:
            payload["temperature"] = opts.temperature
        return payload

    async def generate(
        self,
        prompt: str | tuple[Message, ...],
        *,
        tools: tuple[Tool, ...] | None = None,
        tool_choice: ToolChoice = None,
        options: GenerateOptions | None = None,
    ) -> GenerateResult:
        """Forward a generation request to the proxy.

        Raises:
            TransportFailure: On connection errors, non-2xx statuses, or a
                body that is not a generation result.
        """
        import httpx

        payload = self._build_payload(prompt, tools, tool_choice, options or GenerateOptions())

        try:
            response = await self._get_client().post(self.endpoint, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("Proxy returned %s for %s", status, self.endpoint)
            raise from_http_error(e, self.endpoint, status=status) from e
        except httpx.HTTPError as e:
            logger.warning("Proxy request failed: %s", e)
            raise from_http_error(e, self.endpoint) from e

        try:
            data = response.json()
        except ValueError as e:
            raise TransportFailure(
                code=ErrorCode.MODEL_RESPONSE_INVALID,
                context={"provider": self.endpoint, "detail": "body is not JSON"},
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise TransportFailure(
                code=ErrorCode.MODEL_RESPONSE_INVALID,
                context={"provider": self.endpoint, "detail": "expected a JSON object"},
            )

        return self._parse_result(data)

    def _parse_result(self, data: dict[str, Any]) -> GenerateResult:
        tool_calls = []
        for raw in data.get("toolCalls") or ():
            if not isinstance(raw, dict) or not raw.get("name"):
                continue
            arguments = raw.get("arguments")
            tool_calls.append(ToolCall(
                id=str(raw.get("id", "")),
                name=str(raw["name"]),
                arguments=sanitize_arguments(arguments) if isinstance(arguments, dict) else {},
            ))

        return GenerateResult(
            content=sanitize_llm_content(data.get("content")),
            model=str(data.get("model") or self.model),
            tool_calls=tuple(tool_calls),
            finish_reason=data.get("finishReason"),
        )

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
