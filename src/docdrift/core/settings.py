"""Configuration settings for docdrift."""

import os
import sys
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_data_dir() -> Path:
    """Get platform-specific default data directory."""
    app_name = "docdrift"

    if sys.platform == "win32":
        base = os.environ.get("LOCALAPPDATA")
        if not base:
            base = Path.home() / "AppData" / "Local"
        return Path(base) / app_name
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app_name
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME")
        if xdg_data_home:
            return Path(xdg_data_home) / app_name
        return Path.home() / ".local" / "share" / app_name


def get_default_config_dir() -> Path:
    """Get platform-specific default config directory."""
    if sys.platform in ("win32", "darwin"):
        return get_default_data_dir()

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "docdrift"
    return Path.home() / ".config" / "docdrift"


class ScoringPolicy(BaseModel):
    """Point values and thresholds of the significance scorer.

    Defaults are empirically chosen; override any of them with
    ``DOCDRIFT_SCORING__<FIELD>`` environment variables.
    """

    structural_change: int = 40
    semantic_change: int = 25
    comments_only: int = 5
    whitespace_only: int = 1

    hunks_large: int = Field(default=15, description="Bonus when more than 10 hunks changed")
    hunks_medium: int = Field(default=10, description="Bonus when more than 5 hunks changed")
    hunks_small: int = Field(default=5, description="Bonus when more than 1 hunk changed")

    namespace_changed: int = 20
    type_added_or_removed: int = 15
    extends_changed: int = 20
    implements_changed: int = 15
    method_added_or_removed: int = 10
    method_modified: int = 8
    property_added_or_removed: int = 5
    property_modified: int = 3
    modifiers_changed: int = 15
    interfaces_changed: int = 25
    functions_changed: int = 20
    imports_changed: int = 10

    severity_major: int = 30
    severity_minor: int = 15
    severity_minimal: int = 5

    documented_symbol_bonus: int = 5

    high_threshold: int = 70
    medium_threshold: int = 40
    low_threshold: int = 20


class Settings(BaseSettings):
    """Application settings with support for .env files."""

    model_config = SettingsConfigDict(
        env_file=[
            get_default_config_dir() / ".env",
            ".env",
        ],
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="DOCDRIFT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database_path: Path | None = None

    docs_path: Path = Field(default=Path("docs/code"), description="Directory generated Markdown is written to")
    watch_paths: list[str] = Field(default_factory=list, description="Only files under these prefixes are watched")
    extensions: list[str] = Field(default_factory=lambda: ["php", "py"])
    exclude_suffixes: list[str] = Field(default_factory=lambda: [".blade.php"])
    strip_prefixes: list[str] = Field(
        default_factory=lambda: ["app/", "src/"], description="Leading path segments dropped from doc paths"
    )

    watch_interval: float = Field(default=5.0, description="Seconds between poll-loop passes")
    max_workers: int = Field(default=1, description="Files evaluated concurrently within a pass")
    lock_timeout: float = 2.0

    intelligent_analysis: bool = Field(
        default=True, description="Score changes before regenerating; when off, every changed file regenerates"
    )
    track_documented_symbols: bool = True
    document_private_members: bool = Field(
        default=True, description="Include protected and private members in docs and the symbol registry"
    )
    cache_analyses: bool = True

    generator_command: str = Field(
        default="", description="External command producing Markdown from stdin; empty uses the skeleton generator"
    )
    default_model: str = "gpt-4.1-nano"
    estimated_output_tokens: int = 500

    debug_mode: bool = False

    scoring: ScoringPolicy = Field(default_factory=ScoringPolicy)

    @field_validator("database_path", mode="before")
    @classmethod
    def validate_database_path(cls, v: str | Path | None) -> Path | None:
        """Convert string paths to Path objects."""
        if v is None:
            return None
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("extensions", mode="after")
    @classmethod
    def strip_extension_dots(cls, v: list[str]) -> list[str]:
        return [ext.lstrip(".").lower() for ext in v]

    @property
    def resolved_database_path(self) -> Path:
        """Get the resolved database path, using default if not set."""
        if self.database_path is not None:
            return self.database_path.resolve()

        return get_default_data_dir() / "docdrift.db"


settings = Settings()
