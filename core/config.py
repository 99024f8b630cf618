"""Centralized configuration management with validation."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass


@dataclass
class StorageConfig:
    """Storage/persistence configuration."""
    database_path: str = "data/service_reports.db"
    db_timeout_seconds: float = 30.0

    def validate(self) -> List[str]:
        """Validate storage configuration, return list of errors."""
        errors = []
        # Ensure parent directory exists or can be created
        db_parent = Path(self.database_path).parent
        if str(db_parent) != "." and not db_parent.exists():
            try:
                db_parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                errors.append(f"Cannot create database directory: {e}")
        if self.db_timeout_seconds <= 0:
            errors.append("DB_TIMEOUT_SECONDS must be positive")
        return errors


@dataclass
class IngestConfig:
    """Spreadsheet ingestion settings."""
    column_aliases_path: Optional[str] = None
    max_upload_rows: int = 100000
    validation_sample_rows: int = 3

    def validate(self) -> List[str]:
        errors = []
        if self.column_aliases_path and not Path(self.column_aliases_path).exists():
            errors.append(f"COLUMN_ALIASES_PATH does not exist: {self.column_aliases_path}")
        if self.max_upload_rows < 1:
            errors.append("MAX_UPLOAD_ROWS must be at least 1")
        if self.validation_sample_rows < 1:
            errors.append("VALIDATION_SAMPLE_ROWS must be at least 1")
        return errors


@dataclass
class MatchingConfig:
    """VIN matching settings."""
    # "today" and "tomorrow" are evaluated in this zone
    timezone: str = "Asia/Kolkata"

    def validate(self) -> List[str]:
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return [f"Unknown MATCHING_TIMEZONE: {self.timezone}"]
        return []


@dataclass
class AppConfig:
    """Main application configuration."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    ingest: IngestConfig = field(default_factory=IngestConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)

    log_level: str = "INFO"
    log_format: str = "text"  # "json" or "text"

    def validate(self) -> None:
        """Validate all configuration, raise ConfigurationError if invalid."""
        errors = []
        errors.extend(self.storage.validate())
        errors.extend(self.ingest.validate())
        errors.extend(self.matching.validate())

        if self.log_format not in ("json", "text"):
            errors.append(f"Unknown LOG_FORMAT: {self.log_format}")

        if errors:
            raise ConfigurationError("Configuration errors:\n  - " + "\n  - ".join(errors))

    def __repr__(self) -> str:
        return (f"AppConfig(\n  storage={self.storage},\n  ingest={self.ingest},\n  "
                f"matching={self.matching},\n  log_level={self.log_level}, "
                f"log_format={self.log_format}\n)")


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables."""
    load_dotenv()

    config = AppConfig(
        storage=StorageConfig(
            database_path=os.getenv("DATABASE_PATH", "data/service_reports.db"),
            db_timeout_seconds=float(os.getenv("DB_TIMEOUT_SECONDS", "30")),
        ),
        ingest=IngestConfig(
            column_aliases_path=os.getenv("COLUMN_ALIASES_PATH") or None,
            max_upload_rows=int(os.getenv("MAX_UPLOAD_ROWS", "100000")),
            validation_sample_rows=int(os.getenv("VALIDATION_SAMPLE_ROWS", "3")),
        ),
        matching=MatchingConfig(
            timezone=os.getenv("MATCHING_TIMEZONE", "Asia/Kolkata"),
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("LOG_FORMAT", "text").lower(),
    )

    return config


# Singleton config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config_from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None
