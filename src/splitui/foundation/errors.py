"""SplitUI Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Recovery hints
- Context for debugging

Registration errors (1xxx) abort startup. Per-turn errors (2xxx, 3xxx) are
caught at the session boundary and turned into a chat message.
"""


from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Registry errors
        2xxx - Dispatch errors
        3xxx - Transport errors
        4xxx - Configuration errors
        5xxx - Store errors
    """

    # 1xxx - Registry Errors
    DUPLICATE_IDENTIFIER = 1001
    INVALID_DESCRIPTOR = 1002

    # 2xxx - Dispatch Errors
    UNKNOWN_CAPABILITY = 2001
    RENDER_HANDLE_INVALID = 2003

    # 3xxx - Transport Errors
    TRANSPORT_FAILED = 3001
    MODEL_AUTH_FAILED = 3002
    MODEL_RATE_LIMITED = 3003
    MODEL_PROVIDER_UNAVAILABLE = 3004
    MODEL_TIMEOUT = 3005
    MODEL_RESPONSE_INVALID = 3006

    # 4xxx - Configuration Errors
    CONFIG_INVALID = 4001
    CONFIG_ENV_MISSING = 4002

    # 5xxx - Store Errors
    RECORD_NOT_FOUND = 5001

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "registry",
            2: "dispatch",
            3: "transport",
            4: "config",
            5: "store",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether the session can keep going after this error."""
        non_recoverable = {
            ErrorCode.DUPLICATE_IDENTIFIER,
            ErrorCode.INVALID_DESCRIPTOR,
            ErrorCode.MODEL_AUTH_FAILED,
            ErrorCode.CONFIG_INVALID,
        }
        return self not in non_recoverable


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Registry errors
    ErrorCode.DUPLICATE_IDENTIFIER: "Capability '{identifier}' is already registered.",
    ErrorCode.INVALID_DESCRIPTOR: "Invalid capability descriptor '{identifier}': {detail}",

    # Dispatch errors
    ErrorCode.UNKNOWN_CAPABILITY: "Model selected unknown capability '{identifier}'.",
    ErrorCode.RENDER_HANDLE_INVALID: "Capability '{identifier}' has no usable view: {detail}",

    # Transport errors
    ErrorCode.TRANSPORT_FAILED: "Request to {provider} failed: {detail}",
    ErrorCode.MODEL_AUTH_FAILED: "Authentication failed for {provider}. Check your credentials.",
    ErrorCode.MODEL_RATE_LIMITED: "Rate limited by {provider}.",
    ErrorCode.MODEL_PROVIDER_UNAVAILABLE: "Provider '{provider}' is unavailable.",
    ErrorCode.MODEL_TIMEOUT: "Request to {provider} timed out.",
    ErrorCode.MODEL_RESPONSE_INVALID: "Invalid response from {provider}: {detail}",

    # Config errors
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
    ErrorCode.CONFIG_ENV_MISSING: "Environment variable '{var}' not set.",

    # Store errors
    ErrorCode.RECORD_NOT_FOUND: "Record not found: {record_id}",
}


# Recovery hints
RECOVERY_HINTS: dict[ErrorCode, list[str]] = {
    ErrorCode.DUPLICATE_IDENTIFIER: [
        "Give each capability a unique snake_case identifier",
        "Check that the catalog is not registered twice at startup",
    ],
    ErrorCode.INVALID_DESCRIPTOR: [
        "Every required field must be declared in the descriptor's fields",
        "Enumerated fields need at least one allowed value",
    ],
    ErrorCode.UNKNOWN_CAPABILITY: [
        "Make sure the model only receives the compiled tool list",
    ],
    ErrorCode.MODEL_AUTH_FAILED: [
        "Set the API key environment variable ({env_var})",
        "Check if your API key is valid and not expired",
    ],
    ErrorCode.MODEL_RATE_LIMITED: [
        "Wait a moment before sending another message",
    ],
    ErrorCode.MODEL_PROVIDER_UNAVAILABLE: [
        "Check that the proxy server is running (splitui serve)",
        "Verify the configured base_url",
    ],
    ErrorCode.CONFIG_ENV_MISSING: [
        "Set the environment variable: export {var}=<value>",
    ],
}


# Non-technical chat messages per category of failure
USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.UNKNOWN_CAPABILITY: "I couldn't work out what to do with that. Could you rephrase it?",
    ErrorCode.MODEL_AUTH_FAILED: "Authentication failed. Please check your API key.",
    ErrorCode.MODEL_RATE_LIMITED: "Rate limit exceeded. Please wait a moment and try again.",
    ErrorCode.MODEL_PROVIDER_UNAVAILABLE: "Network error. Please check your connection.",
    ErrorCode.MODEL_TIMEOUT: "Network error. Please check your connection.",
}

_DEFAULT_USER_MESSAGE = "Sorry, I encountered an error."


class SplitUIError(Exception):
    """Base error type for all SplitUI errors.

    Example:
        >>> err = SplitUIError(
        ...     code=ErrorCode.DUPLICATE_IDENTIFIER,
        ...     context={"identifier": "add_task"},
        ... )
        >>> print(err)
        [SU-1001] Capability 'add_task' is already registered.
    """

    default_code: ErrorCode | None = None

    def __init__(
        self,
        code: ErrorCode | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        resolved = code if code is not None else self.default_code
        if resolved is None:
            raise TypeError(f"{type(self).__name__} requires an error code")
        self.code = resolved
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            return template

    @property
    def recovery_hints(self) -> list[str]:
        """Get recovery suggestions for this error."""
        formatted = []
        for hint in RECOVERY_HINTS.get(self.code, []):
            try:
                formatted.append(hint.format(**self.context))
            except KeyError:
                formatted.append(hint)
        return formatted

    @property
    def user_message(self) -> str:
        """Non-technical text suitable for the chat transcript."""
        return USER_MESSAGES.get(self.code, _DEFAULT_USER_MESSAGE)

    @property
    def is_recoverable(self) -> bool:
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'SU-2001')."""
        return f"SU-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging/API responses."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "recovery_hints": self.recovery_hints,
            "context": self.context,
        }


class DuplicateIdentifier(SplitUIError):
    """A capability identifier was registered twice."""

    default_code = ErrorCode.DUPLICATE_IDENTIFIER


class InvalidDescriptor(SplitUIError):
    """A capability descriptor is structurally malformed."""

    default_code = ErrorCode.INVALID_DESCRIPTOR


class UnknownCapability(SplitUIError):
    """The transport selected an identifier absent from the registry."""

    default_code = ErrorCode.UNKNOWN_CAPABILITY


class TransportFailure(SplitUIError):
    """The model could not be reached or answered with garbage."""

    default_code = ErrorCode.TRANSPORT_FAILED


# Convenience factory functions

def descriptor_error(identifier: str, detail: str) -> InvalidDescriptor:
    """Create an INVALID_DESCRIPTOR error."""
    return InvalidDescriptor(context={"identifier": identifier, "detail": detail})


def config_error(
    code: ErrorCode,
    key: str = "",
    var: str = "",
    detail: str = "",
) -> SplitUIError:
    """Create a configuration error."""
    return SplitUIError(
        code=code,
        context={"key": key, "var": var, "detail": detail},
    )


# Error translation from external exceptions

def from_anthropic_error(exc: Exception, model: str, provider: str = "anthropic") -> TransportFailure:
    """Translate Anthropic client exceptions to TransportFailure."""
    exc_type = type(exc).__name__.lower()
    message = str(exc)
    lowered = message.lower()
    context: dict[str, Any] = {"model": model, "provider": provider, "detail": message}

    if "ratelimit" in exc_type or "rate limit" in lowered or "429" in message:
        code = ErrorCode.MODEL_RATE_LIMITED
    elif "auth" in exc_type or "401" in message or "invalid api key" in lowered:
        code = ErrorCode.MODEL_AUTH_FAILED
        context["env_var"] = "ANTHROPIC_API_KEY"
    elif "timeout" in exc_type or "timeout" in lowered:
        code = ErrorCode.MODEL_TIMEOUT
    elif "overloaded" in lowered or "connection" in exc_type or "connection" in lowered:
        code = ErrorCode.MODEL_PROVIDER_UNAVAILABLE
    else:
        code = ErrorCode.TRANSPORT_FAILED

    return TransportFailure(code=code, context=context, cause=exc)


def from_http_error(
    exc: Exception,
    url: str,
    status: int | None = None,
    env_var: str = "ANTHROPIC_API_KEY",
) -> TransportFailure:
    """Translate httpx exceptions or HTTP error statuses to TransportFailure.

    `env_var` names the credential to check when the status is 401 or 403.
    """
    exc_type = type(exc).__name__.lower()
    context: dict[str, Any] = {"provider": url, "detail": str(exc), "env_var": env_var}

    if status == 401 or status == 403:
        code = ErrorCode.MODEL_AUTH_FAILED
    elif status == 429:
        code = ErrorCode.MODEL_RATE_LIMITED
    elif "timeout" in exc_type:
        code = ErrorCode.MODEL_TIMEOUT
    elif "connect" in exc_type or "network" in exc_type:
        code = ErrorCode.MODEL_PROVIDER_UNAVAILABLE
    else:
        code = ErrorCode.TRANSPORT_FAILED

    return TransportFailure(code=code, context=context, cause=exc)
