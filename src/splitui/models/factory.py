"""Model creation utilities."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import TYPE_CHECKING

from splitui.foundation.config import PROVIDERS, ModelConfig
from splitui.foundation.errors import ErrorCode, config_error
from splitui.models.bedrock import BEARER_TOKEN_VAR

if TYPE_CHECKING:
    from splitui.models.protocol import ModelProtocol

logger = logging.getLogger(__name__)

AWS_KEY_VARS = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY")
ANTHROPIC_KEY_VAR = "ANTHROPIC_API_KEY"


def resolve_provider(provider: str, environ: Mapping[str, str] | None = None) -> str:
    """Turn `auto` into a concrete provider; others pass through.

    Detection order: a Bedrock API key, then AWS IAM keys (both select
    bedrock), then an Anthropic API key.

    Raises:
        SplitUIError: CONFIG_INVALID when `auto` finds no credentials.
    """
    if provider != "auto":
        return provider

    env = os.environ if environ is None else environ
    if env.get(BEARER_TOKEN_VAR) or all(env.get(var) for var in AWS_KEY_VARS):
        resolved = "bedrock"
    elif env.get(ANTHROPIC_KEY_VAR):
        resolved = "anthropic"
    else:
        raise config_error(
            ErrorCode.CONFIG_INVALID,
            key="model.provider",
            detail=(
                f"no credentials to detect a provider from; set {BEARER_TOKEN_VAR}, "
                f"{' and '.join(AWS_KEY_VARS)}, or {ANTHROPIC_KEY_VAR}"
            ),
        )
    logger.debug("Detected provider %s from credentials", resolved)
    return resolved


def create_model(
    config: ModelConfig | None = None,
    *,
    provider: str | None = None,
    model_name: str | None = None,
) -> ModelProtocol:
    """Create a model instance from config, with optional CLI overrides.

    Raises:
        SplitUIError: CONFIG_INVALID for an unknown provider or when `auto`
            finds no credentials, CONFIG_ENV_MISSING when the anthropic
            provider has no API key.
    """
    cfg = config or ModelConfig()
    provider = resolve_provider(provider or cfg.provider)

    match provider:
        case "mock":
            from splitui.models.mock import MockModel

            return MockModel()

        case "anthropic":
            from splitui.models.anthropic import AnthropicModel

            api_key = os.environ.get(ANTHROPIC_KEY_VAR)
            if not api_key:
                raise config_error(ErrorCode.CONFIG_ENV_MISSING, var=ANTHROPIC_KEY_VAR)
            return AnthropicModel(
                model=model_name or cfg.model,
                api_key=api_key,
                max_tokens=cfg.max_tokens,
                timeout=cfg.request_timeout,
            )

        case "bedrock" if token := os.environ.get(BEARER_TOKEN_VAR):
            from splitui.models.bedrock import BedrockBearerModel

            return BedrockBearerModel(
                model=model_name or cfg.bedrock_model,
                aws_region=cfg.aws_region,
                max_tokens=cfg.max_tokens,
                timeout=cfg.request_timeout,
                bearer_token=token,
            )

        case "bedrock":
            from splitui.models.anthropic import BedrockModel

            return BedrockModel(
                model=model_name or cfg.bedrock_model,
                aws_region=cfg.aws_region,
                max_tokens=cfg.max_tokens,
                timeout=cfg.request_timeout,
            )

        case "http":
            from splitui.models.http import HttpModel

            return HttpModel(
                base_url=cfg.base_url,
                model=model_name or "proxy",
                max_tokens=cfg.max_tokens,
                request_timeout=cfg.request_timeout,
            )

        case _:
            raise config_error(
                ErrorCode.CONFIG_INVALID,
                key="model.provider",
                detail=f"unknown provider '{provider}' (available: {', '.join(PROVIDERS)})",
            )
