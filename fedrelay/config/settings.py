from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fedrelay.core.types import BaselineMismatchPolicy


class Settings(BaseSettings):
    """Runtime settings, read from ``FEDRELAY_*`` environment variables."""

    storage_root: str = Field(
        default="http://localhost:3000/fedrelay/",
        description="Root URL under which global models are stored",
    )
    learning_rate: float = Field(
        default=0.1,
        gt=0.0,
        le=1.0,
        description="Interpolation weight of new updates against the baseline",
    )
    max_retries: int = Field(
        default=3, ge=1, description="Maximum attempts to persist a model"
    )
    retry_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Base delay in seconds for linear retry backoff",
    )
    save_history: bool = Field(
        default=True, description="Append an audit record per aggregation"
    )
    backup_enabled: bool = Field(
        default=True, description="Keep a local copy of each merged model"
    )
    history_dir: Path = Field(
        default=Path("./aggregation_history"),
        description="Directory for audit records and model backups",
    )
    max_backups: int = Field(
        default=10,
        ge=0,
        description="Backups kept per model, 0 keeps all of them",
    )
    baseline_mismatch: BaselineMismatchPolicy = Field(
        default=BaselineMismatchPolicy.STRICT,
        description="Handling of a stored baseline with a different length",
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="Timeout for storage requests"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Log level"
    )
    log_json: bool = Field(
        default=False, description="Emit console logs as JSON lines"
    )
    log_file: Path | None = Field(
        default=None, description="Optional JSON log file"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FEDRELAY_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("storage_root")
    @classmethod
    def validate_storage_root(cls, v: str) -> str:
        if not v.endswith("/"):
            v = f"{v}/"
        return v


@lru_cache()
def get_settings() -> Settings:
    return Settings()


def get_config_summary(settings: Settings) -> str:
    """Human-readable configuration summary."""
    yes_no = {True: "Yes", False: "No"}
    return "\n".join(
        [
            "fedrelay configuration:",
            "-----------------------",
            f"Storage root: {settings.storage_root}",
            "",
            "Aggregation settings:",
            f"- Learning rate: {settings.learning_rate}",
            f"- Baseline mismatch: {settings.baseline_mismatch.value}",
            f"- Max retries: {settings.max_retries}",
            f"- Save history: {yes_no[settings.save_history]}",
            f"- History directory: {settings.history_dir}",
            f"- Backup models: {yes_no[settings.backup_enabled]}",
            f"- Max backups: {settings.max_backups}",
        ]
    )
