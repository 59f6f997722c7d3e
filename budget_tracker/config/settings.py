"""
Configuration Management for Budget Tracker

Every tunable is read from the environment (or .env) through
pydantic-settings, one settings class per concern.

DESIGN DECISION: Sub-settings are built on access, not at import.
The app starts with nothing configured; Google Sheets and Gemini are
only required by the backends that use them.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration (optional cloud backend)."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    store_sheet_name: str = Field(
        default="BudgetTrackerStore",
        description="Name of the worksheet holding key/value rows"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """A missing file only warns; the local backend never reads it."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before selecting the google_sheets backend."
            )
        return v


class GeminiSettings(BaseSettings):
    """External advisor (Gemini) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    # A key saved from the Settings page takes precedence over this one
    api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use"
    )
    max_tokens: int = Field(
        default=1024,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Model temperature"
    )


class ClassifierSettings(BaseSettings):
    """Hyperparameters of the transaction category classifier."""

    model_config = SettingsConfigDict(
        env_prefix="CLASSIFIER_",
        extra="ignore"
    )

    max_sequence_length: int = Field(default=20, ge=1)
    min_vocabulary_size: int = Field(
        default=100,
        ge=2,
        description="Lower bound for the embedding table size"
    )
    embedding_dim: int = Field(default=32, ge=1)
    lstm_units: int = Field(default=64, ge=1)
    dense_units: int = Field(default=32, ge=1)
    dropout_rate: float = Field(default=0.3, ge=0.0, lt=1.0)
    epochs: int = Field(default=10, ge=1)
    batch_size: int = Field(default=32, ge=1)
    validation_split: float = Field(default=0.2, ge=0.0, lt=1.0)
    min_training_samples: int = Field(
        default=3,
        ge=1,
        description="Training is refused below this many labelled samples"
    )
    auto_train_threshold: int = Field(
        default=5,
        ge=0,
        description="Train at startup when more transactions than this exist"
    )


class AppSettings(BaseSettings):
    """
    Storage, logging and form validation settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode (console log rendering)"
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Storage
    storage_backend: Literal["local", "memory", "google_sheets"] = Field(
        default="local",
        description="Key-value store used for persistence"
    )
    data_dir: Path = Field(
        default=Path(".budget_tracker"),
        description="Directory used by the local file store"
    )
    storage_quota_bytes: Optional[int] = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Maximum bytes the local store may hold (None = unlimited)"
    )

    # Validation thresholds
    large_amount_threshold: float = Field(
        default=100000.0,
        gt=0,
        description="Amounts above this produce a warning"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Entry point to the per-concern settings classes.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Each property re-reads the environment

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def classifier(self) -> ClassifierSettings:
        return ClassifierSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings. Tests call `get_settings.cache_clear()`
    after changing the environment.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Which optional services are configured.

    Returns {name: ok} plus "{name}_error" entries describing what is
    missing, as shown on the Settings page.
    """
    results = {}

    settings = get_settings()

    try:
        _ = settings.google_sheets
        results["google_sheets"] = True
    except Exception as e:
        results["google_sheets"] = False
        results["google_sheets_error"] = str(e)

    try:
        gemini = settings.gemini
        results["gemini"] = bool(gemini.api_key)
        if not gemini.api_key:
            results["gemini_error"] = "No API key configured"
    except Exception as e:
        results["gemini"] = False
        results["gemini_error"] = str(e)

    try:
        _ = settings.classifier
        results["classifier"] = True
    except Exception as e:
        results["classifier"] = False
        results["classifier_error"] = str(e)

    try:
        _ = settings.app
        results["app"] = True
    except Exception as e:
        results["app"] = False
        results["app_error"] = str(e)

    return results
