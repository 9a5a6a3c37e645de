"""Core relying-party flow implementation."""

from franceconnect.core.exceptions import (
    ConfigurationError,
    OIDCError,
    ProviderError,
    SecurityError,
    StorageError,
    TransportError,
)
from franceconnect.core.logging import (
    HTTPExchange,
    LoggingClient,
    LogLevel,
    ProtocolLogger,
    configure_logging,
    get_protocol_logger,
    redact_sensitive,
    set_protocol_logger,
)

__all__ = [
    "ConfigurationError",
    "OIDCError",
    "ProviderError",
    "SecurityError",
    "StorageError",
    "TransportError",
    "HTTPExchange",
    "LoggingClient",
    "LogLevel",
    "ProtocolLogger",
    "configure_logging",
    "get_protocol_logger",
    "redact_sensitive",
    "set_protocol_logger",
]
