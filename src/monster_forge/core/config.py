"""Configuration management for monster-forge.

Settings are loaded with pydantic-settings from environment variables and an
optional ``.env`` file. The derivation engine never reads settings on its own:
entry points fetch them once and pass them down, so that two derivations
running side by side cannot observe each other's configuration.

Example:
    >>> from monster_forge.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.derivation.max_include_depth
    16

Environment Variables:
    MONSTER_FORGE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    MONSTER_FORGE_LOG_JSON: Emit JSON log lines instead of console output
    MONSTER_FORGE_DERIVATION_MAX_INCLUDE_DEPTH: Maximum include nesting
    MONSTER_FORGE_DERIVATION_CHALLENGE_RATING_ITERATIONS: Fixed-point bound
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from monster_forge.core.constants import DIRECTIVE_FORMAT_VERSION
from monster_forge.core.exceptions import ConfigurationError


class DerivationSettings(BaseSettings):
    """Configuration for the directive interpreter.

    Attributes:
        format_version: Directive format version this build accepts.
        max_include_depth: Maximum nesting of ``include`` directives.
        challenge_rating_iterations: Upper bound on the passes used to settle
            proficiency bonus and computed challenge rating.
        strict_expectations: Raise when an ``expect_challenge_rating``,
            ``expect_weapon_attack`` or ``expect_weapon_effect`` directive is
            not met instead of only logging a warning.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONSTER_FORGE_DERIVATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    format_version: float = Field(
        default=DIRECTIVE_FORMAT_VERSION,
        gt=0,
        description="Directive format version",
    )
    max_include_depth: int = Field(
        default=16,
        ge=1,
        le=64,
        description="Maximum include nesting",
    )
    challenge_rating_iterations: int = Field(
        default=8,
        ge=1,
        le=16,
        description="Bound on challenge rating fixed-point passes",
    )
    strict_expectations: bool = Field(
        default=True,
        description="Fail when an expected challenge rating or weapon is not met",
    )

    @model_validator(mode="after")
    def validate_format_version(self) -> "DerivationSettings":
        """Ensure the configured format version is one this build can read.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If the version is newer than the engine.
        """
        if self.format_version > DIRECTIVE_FORMAT_VERSION:
            raise ConfigurationError(
                f"format_version ({self.format_version}) is newer than the "
                f"supported version ({DIRECTIVE_FORMAT_VERSION})",
                config_key="format_version",
            )
        return self


class Settings(BaseSettings):
    """Main application settings.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        log_json: Emit JSON log lines.
        derivation: Directive interpreter settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONSTER_FORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="monster-forge",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON log lines",
    )

    derivation: DerivationSettings = Field(default_factory=DerivationSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    Example:
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Reloads from environment
    """
    get_settings.cache_clear()


__all__ = [
    "DerivationSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
