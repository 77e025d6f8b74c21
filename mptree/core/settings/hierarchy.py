"""Materialized path hierarchy settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BackendChoice = Literal["auto", "native", "emulated"]


class HierarchySettings(BaseSettings):
    """How tree queries are translated for the connected database.

    Environment variables use TREE_ prefix.
    Example: TREE_BACKEND=emulated, TREE_NATIVE_EXTENSION=ltree
    """

    backend: BackendChoice = Field(
        default="auto",
        description=(
            "Path column backend (auto|native|emulated). 'auto' uses ltree on "
            "PostgreSQL when the extension is installed and string emulation elsewhere."
        ),
    )

    native_extension: str = Field(
        default="ltree",
        min_length=1,
        max_length=63,
        description="PostgreSQL extension providing the native path type.",
    )

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        """Normalize backend choice to lowercase."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    model_config = SettingsConfigDict(
        env_prefix="TREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )
