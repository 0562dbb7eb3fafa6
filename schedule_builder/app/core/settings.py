from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from schedule_builder.app.models.categories import (
    DEFAULT_CATEGORY_PATTERNS,
    DEFAULT_CHILD_CATEGORIES,
    DEFAULT_PARENT_CATEGORIES,
    CategoryTable,
)
from schedule_builder.app.models.pipeline import PipelineOptions

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Traversal
    max_depth: int = 10
    walker_batch_size: int = 100
    discovery_batch_size: int = 50

    # Source readiness
    source_retry_attempts: int = 10
    source_retry_interval_s: float = 0.5

    # Categories (JSON in env, e.g. CHILD_CATEGORIES='["Windows","Doors"]')
    parent_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_PARENT_CATEGORIES))
    child_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_CHILD_CATEGORIES))
    category_patterns: Dict[str, List[str]] = Field(default_factory=lambda: {k: list(v) for k, v in DEFAULT_CATEGORY_PATTERNS.items()})

    # Selections used when a caller does not pass any
    default_parent_selection: List[str] = Field(default_factory=list)
    default_child_selection: List[str] = Field(default_factory=list)

    # HTTP service
    host: str = "0.0.0.0"
    port: int = 8000

    # Output
    # defaulted to a relative path from this file if not set in env
    out_dir: Path = Path(__file__).resolve().parents[2] / "data" / "out"
    log_level: LogLevel = "INFO"

    def category_table(self) -> CategoryTable:
        return CategoryTable(
            parent_categories=self.parent_categories,
            child_categories=self.child_categories,
            patterns=self.category_patterns,
        )

    def pipeline_options(self) -> PipelineOptions:
        return PipelineOptions(
            max_depth=self.max_depth,
            walker_batch_size=self.walker_batch_size,
            discovery_batch_size=self.discovery_batch_size,
        )

    def ensure_out_dir(self) -> None:
        self.out_dir.mkdir(parents=True, exist_ok=True)


def get_settings() -> Settings:
    return Settings()
