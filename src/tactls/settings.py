"""Shared settings loaded from environment / .env file, plus client settings."""

from __future__ import annotations

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the Tact language server process.

    Values are read from environment variables and from a ``.env`` file
    in the working directory.  Client-side settings pushed through
    ``workspace/didChangeConfiguration`` override the validation options
    at runtime (see :class:`TactClientSettings`).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Shared
    log_level: str = "INFO"

    # Validation
    enabled_as_you_type_check: bool = False
    validation_delay_ms: int = Field(default=1500, ge=0)
    validate_on_change: bool = False
    surface_imported_errors: bool = False

    # Compiler
    compiler_command: str | None = None  # e.g. "tact --check {file}"; None = built-in check
    compiler_timeout_seconds: float = 30.0

    # Transport
    lsp_transport: Literal["stdio", "tcp"] = "stdio"
    lsp_host: str = "127.0.0.1"
    lsp_port: int = 2087


class TactClientSettings(BaseModel):
    """The ``tact`` section of the editor configuration.

    Field names follow the VS Code extension (camelCase).  Every field is
    optional so a partial payload only touches what it names.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    enabled_as_you_type_check: bool | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "enabledAsYouTypeCompilationErrorCheck",
            "enabledAsYouTypeCheck",
            "enabled_as_you_type_check",
        ),
    )
    validation_delay_ms: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices(
            "validationDelay", "validationDelayMs", "validation_delay_ms"
        ),
    )
    validate_on_change: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("validateOnChange", "validate_on_change"),
    )
    surface_imported_errors: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("surfaceImportedErrors", "surface_imported_errors"),
    )


class ClientSettings(BaseModel):
    """Top-level ``workspace/didChangeConfiguration`` payload."""

    model_config = ConfigDict(extra="ignore")

    tact: TactClientSettings = TactClientSettings()
