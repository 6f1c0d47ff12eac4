"""Proxy API routes.

Provider credentials stay on the server; clients (the `http` model
provider, or a browser front end) only ever see these endpoints.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from splitui.capabilities.registry import CapabilityRegistry
from splitui.dispatch.normalizer import normalize
from splitui.foundation.errors import ErrorCode, SplitUIError
from splitui.models.protocol import GenerateOptions, Message, ModelProtocol, Tool
from splitui.server.models import (
    DetectIntentRequest,
    DetectIntentResponse,
    ErrorResponse,
    GenerateReplyRequest,
    GenerateReplyResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
    IntentModel,
    ToolCallModel,
)
from splitui.session.transport import IntentTransport

logger = logging.getLogger(__name__)

router = APIRouter(tags=["proxy"])

_STATUS_BY_CODE = {
    ErrorCode.MODEL_AUTH_FAILED: 401,
    ErrorCode.MODEL_RATE_LIMITED: 429,
    ErrorCode.MODEL_TIMEOUT: 504,
}


def error_response(error: SplitUIError) -> JSONResponse:
    """Map a transport or dispatch error to an HTTP error.

    Unrecognized codes, including an unregistered capability picked by the
    backend model, are reported as 502.
    """
    status = _STATUS_BY_CODE.get(error.code, 502)
    body = ErrorResponse(error=error.code.name.lower(), message=error.message, error_id=error.error_id)
    return JSONResponse(body.model_dump(by_alias=True), status_code=status)


def _model(request: Request) -> ModelProtocol:
    return request.app.state.model


def _registry(request: Request) -> CapabilityRegistry:
    return request.app.state.registry


def _history(lines: list[str]) -> tuple[Message, ...]:
    # Plain-string history alternates, starting with the user
    return tuple(
        Message(role="user" if i % 2 == 0 else "assistant", content=line)
        for i, line in enumerate(lines)
    )


# ═══════════════════════════════════════════════════════════════
# ROUTES
# ═══════════════════════════════════════════════════════════════


@router.get("/health")
async def health(request: Request) -> HealthResponse:
    return HealthResponse(
        provider=request.app.state.provider,
        model=_model(request).model_id,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/api/tools")
async def list_tools(request: Request) -> list[dict]:
    """The compiled tool list, in registration order."""
    return [t.to_dict() for t in _registry(request).compile_tools()]


@router.post("/api/generate", response_model=GenerateResponse)
async def generate(body: GenerateRequest, request: Request) -> GenerateResponse | JSONResponse:
    """Run one generation against the configured backend model."""
    messages = tuple(Message(role=m.role, content=m.content) for m in body.messages)
    tools = tuple(
        Tool(name=t.name, description=t.description, parameters=t.input_schema)
        for t in body.tools
    )
    try:
        result = await _model(request).generate(
            messages,
            tools=tools or None,
            tool_choice=body.tool_choice,
            options=GenerateOptions(
                temperature=body.temperature,
                max_tokens=body.max_tokens,
                system_prompt=body.system,
            ),
        )
    except SplitUIError as e:
        logger.warning("Generation failed: %s", e)
        return error_response(e)

    return GenerateResponse(
        content=result.content,
        model=result.model,
        tool_calls=[
            ToolCallModel(id=tc.id, name=tc.name, arguments=tc.arguments)
            for tc in result.tool_calls
        ],
        finish_reason=result.finish_reason,
    )


@router.post("/api/detect-intent", response_model=DetectIntentResponse)
async def detect_intent(
    body: DetectIntentRequest, request: Request
) -> DetectIntentResponse | JSONResponse:
    """Detect which capability, if any, a message invokes.

    Entities are the normalized field values: undeclared keys are dropped
    and values are coerced to their declared kinds.
    """
    registry = _registry(request)
    transport = IntentTransport(_model(request))
    try:
        result = await transport.detect(
            body.user_message,
            _history(body.conversation_history),
            registry.compile_tools(),
        )
        record = normalize(result, registry)
    except SplitUIError as e:
        logger.warning("Intent detection failed: %s", e)
        return error_response(e)

    if not record.is_selection:
        return DetectIntentResponse(intent=None)

    return DetectIntentResponse(
        intent=IntentModel(
            name=record.capability_id,
            confidence=record.certainty,
            entities=dict(record.extracted_data),
            dropped_fields=[f.field_name for f in record.coercion_failures],
        )
    )


@router.post("/api/generate-response", response_model=GenerateReplyResponse)
async def generate_response(
    body: GenerateReplyRequest, request: Request
) -> GenerateReplyResponse | JSONResponse:
    """Generate the conversational reply for a message."""
    transport = IntentTransport(_model(request))
    try:
        text = await transport.reply(body.user_message, _history(body.conversation_history))
    except SplitUIError as e:
        logger.warning("Reply generation failed: %s", e)
        return error_response(e)
    return GenerateReplyResponse(response=text)
