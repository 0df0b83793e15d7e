"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        MonsterForgeError: Base exception for all errors.
        ParseDiceError / ParseDiceExpressionError: Dice notation errors.
        DirectiveSyntaxError: Malformed directive documents.
        InterpolationError: Authored text that cannot be interpolated.
        CreatureError: Derivation failures.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        configure_logging_from_settings: Set up logging from Settings.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
        unbind_context: Drop keys from the logging context.
"""

from __future__ import annotations

from monster_forge.core.config import (
    DerivationSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from monster_forge.core.exceptions import (
    ActionNotFoundError,
    ChallengeRatingNotAsExpectedError,
    WeaponNotAsExpectedError,
    ConfigurationError,
    CreatureError,
    CreatureHasNoNameError,
    DiceNotationError,
    DirectiveSyntaxError,
    FeatureInterpolationError,
    IncludeCycleError,
    IncludeError,
    InterpolationError,
    InvalidDieFaceError,
    InvalidDirectiveError,
    MonsterForgeError,
    ParseDiceError,
    ParseDiceExpressionError,
    ParseError,
    VersionNotSupportedError,
    WeaponNotFoundError,
)
from monster_forge.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    unbind_context,
)


__all__ = [
    # Base exception
    "MonsterForgeError",
    # Parse level
    "ParseError",
    "DiceNotationError",
    "ParseDiceError",
    "InvalidDieFaceError",
    "ParseDiceExpressionError",
    "DirectiveSyntaxError",
    # Interpolation level
    "InterpolationError",
    # Derivation level
    "CreatureError",
    "CreatureHasNoNameError",
    "InvalidDirectiveError",
    "VersionNotSupportedError",
    "IncludeError",
    "IncludeCycleError",
    "ActionNotFoundError",
    "WeaponNotFoundError",
    "ChallengeRatingNotAsExpectedError",
    "WeaponNotAsExpectedError",
    "FeatureInterpolationError",
    "ConfigurationError",
    # Configuration
    "Settings",
    "DerivationSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
    "unbind_context",
]
