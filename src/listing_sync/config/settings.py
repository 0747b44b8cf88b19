"""Runtime configuration for listing ingestion and synchronisation.

Relies on pydantic-settings so that environment variables (prefixed with ``LISTING_``)
can override defaults.
"""
from __future__ import annotations

from pathlib import Path
from typing import Annotated, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from listing_sync.forms.decoder import (
    DEFAULT_BOOLEAN_MARKERS,
    DEFAULT_NUMERIC_MARKERS,
    DEFAULT_TEXT_FIELDS,
    FieldCoercion,
)
from listing_sync.listings.pricing import DEFAULT_CHECK_IN_CHARGE, DEFAULT_PRICE
from listing_sync.utils.numbers import Number, parse_number


def _split_markers(value: object, name: str) -> Tuple[str, ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(item).strip() for item in value if str(item).strip())
    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",")]
        return tuple(part for part in parts if part)
    raise TypeError(f"{name} must be provided as a comma-separated string or list")


class Settings(BaseSettings):
    """Captures runtime configuration for the listing pipeline."""

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("data/logs"))

    sqlite_path: Path = Field(
        default=Path("data/listings.sqlite3"), description="SQLite database holding properties and hotels"
    )
    sqlite_busy_timeout_ms: int = Field(default=2000, description="busy_timeout pragma in milliseconds")
    sqlite_journal_mode: str | None = Field(default="wal")
    sqlite_synchronous: str | None = Field(default="normal")

    boolean_field_markers: Annotated[Tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_BOOLEAN_MARKERS,
        description="Field-name fragments decoded as checkbox booleans",
    )
    numeric_field_markers: Annotated[Tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_NUMERIC_MARKERS,
        description="Field-name fragments decoded as numbers",
    )
    text_fields: Annotated[Tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_TEXT_FIELDS,
        description="Exact field names that are never coerced",
    )

    default_price: Number = Field(
        default=DEFAULT_PRICE, description="Headline price used when no package is priced"
    )
    default_check_in_charge: Number = Field(
        default=DEFAULT_CHECK_IN_CHARGE, description="Check-in charge used when no package is priced"
    )
    default_star_rating: int = Field(default=4)
    listing_id_prefix: str = Field(default="PROP")

    model_config = SettingsConfigDict(
        env_prefix="LISTING_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    @field_validator("log_dir", "sqlite_path", mode="before")
    def _expand_path(cls, value: str | Path) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        return Path(value).expanduser()

    @field_validator("boolean_field_markers", mode="before")
    def _parse_boolean_markers(cls, value: object) -> Tuple[str, ...]:
        return _split_markers(value, "boolean_field_markers")

    @field_validator("numeric_field_markers", mode="before")
    def _parse_numeric_markers(cls, value: object) -> Tuple[str, ...]:
        return _split_markers(value, "numeric_field_markers")

    @field_validator("text_fields", mode="before")
    def _parse_text_fields(cls, value: object) -> Tuple[str, ...]:
        return _split_markers(value, "text_fields")

    @field_validator("default_price", "default_check_in_charge", mode="before")
    def _parse_sentinel(cls, value: object) -> Number:
        # Integral values stay ints: 999, not 999.0.
        number = parse_number(value)
        if number is None:
            raise ValueError("pricing defaults must be finite numbers")
        return number

    @field_validator("sqlite_busy_timeout_ms")
    def _validate_timeout(cls, value: int) -> int:
        if value < 0:
            raise ValueError("sqlite_busy_timeout_ms must not be negative")
        return value

    def ensure_directories(self) -> None:
        """Create directories that must exist at runtime."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.sqlite_path.parent.mkdir(parents=True, exist_ok=True)

    def field_coercion(self) -> FieldCoercion:
        return FieldCoercion(
            boolean_markers=self.boolean_field_markers,
            numeric_markers=self.numeric_field_markers,
            text_fields=self.text_fields,
        )
