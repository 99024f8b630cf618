"""Core modules for configuration, logging and errors."""

from core.config import (
    AppConfig,
    ConfigurationError,
    IngestConfig,
    MatchingConfig,
    StorageConfig,
    get_config,
    load_config_from_env,
    reset_config,
)
from core.exceptions import (
    ClassificationError,
    IngestionError,
    MatchingError,
    ReconciliationError,
    SheetParseError,
    UploadNotFoundError,
    ValidationError,
)
from core.logging_config import (
    LogContext,
    clear_context,
    generate_upload_id,
    get_logger,
    setup_logging,
)

__all__ = [
    "AppConfig",
    "ConfigurationError",
    "IngestConfig",
    "MatchingConfig",
    "StorageConfig",
    "get_config",
    "load_config_from_env",
    "reset_config",
    "ClassificationError",
    "IngestionError",
    "MatchingError",
    "ReconciliationError",
    "SheetParseError",
    "UploadNotFoundError",
    "ValidationError",
    "LogContext",
    "clear_context",
    "generate_upload_id",
    "get_logger",
    "setup_logging",
]
