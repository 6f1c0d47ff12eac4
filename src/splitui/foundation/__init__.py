"""Foundation domain - errors, logging and configuration.

Everything else in splitui imports from here; nothing here imports the
rest of the package.
"""

from splitui.foundation.config import (
    DispatchConfig,
    ModelConfig,
    ServerConfig,
    SplitUIConfig,
    StoreConfig,
    get_config,
    load_config,
    reset_config,
)
from splitui.foundation.errors import (
    DuplicateIdentifier,
    ErrorCode,
    InvalidDescriptor,
    SplitUIError,
    TransportFailure,
    UnknownCapability,
)
from splitui.foundation.logging import configure_logging

__all__ = [
    # Config
    "DispatchConfig",
    "ModelConfig",
    "ServerConfig",
    "SplitUIConfig",
    "StoreConfig",
    "get_config",
    "load_config",
    "reset_config",
    # Errors
    "DuplicateIdentifier",
    "ErrorCode",
    "InvalidDescriptor",
    "SplitUIError",
    "TransportFailure",
    "UnknownCapability",
    # Logging
    "configure_logging",
]
