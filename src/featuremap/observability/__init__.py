"""Public observability primitives: JSON-lines logging for stdlib and structlog loggers."""

from featuremap.observability.logging import (
    LoggingConfig,
    StructuredLoggingHandle,
    setup_logging,
    setup_structured_logging,
)

__all__ = [
    "LoggingConfig",
    "StructuredLoggingHandle",
    "setup_logging",
    "setup_structured_logging",
]
