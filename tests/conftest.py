"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the monster-forge test suite.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from monster_forge.core.config import Settings
    from monster_forge.engine.interpreter import CreatureInterpreter, MappingResolver


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from monster_forge.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "MONSTER_FORGE_DEBUG": "true",
        "MONSTER_FORGE_LOG_LEVEL": "DEBUG",
        "MONSTER_FORGE_DERIVATION_MAX_INCLUDE_DEPTH": "4",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def settings() -> Settings:
    """Provide default settings independent of the environment."""
    from monster_forge.core.config import DerivationSettings, Settings

    return Settings(derivation=DerivationSettings())


@pytest.fixture
def lenient_settings() -> Settings:
    """Provide settings that only warn on an unmet challenge rating."""
    from monster_forge.core.config import DerivationSettings, Settings

    return Settings(derivation=DerivationSettings(strict_expectations=False))


# =============================================================================
# Document Fixtures
# =============================================================================


def make_document(*entries: Any) -> str:
    """Serialize directive entries into a version 1.0 document."""
    return json.dumps([{"version": [1.0]}, *entries])


@pytest.fixture
def document() -> Callable[..., str]:
    """Provide a factory that wraps directive entries into a document."""
    return make_document


@pytest.fixture
def goblin_entries() -> list[Any]:
    """Provide the directive entries of a goblin.

    Returns:
        Compact directive entries, without the version directive.
    """
    return [
        {"name": "Goblin"},
        "small",
        {"type": "humanoid"},
        {"subtype": "goblinoid"},
        {"alignment": "neutral_evil"},
        {"str": 8},
        {"dex": 14},
        {"int": 10},
        {"wis": 8},
        {"cha": 8},
        {"armor": ["leather"]},
        "shield",
        {"hit_dice_count": 2},
        {"skills": ["stealth"]},
        {"darkvision": 60},
        {"languages": ["Common", "Goblin"]},
        {
            "feature": {
                "name": "Nimble Escape",
                "description": (
                    "${Subj} can take the Disengage or Hide action as a bonus action "
                    "on each of ${posspro} turns."
                ),
            }
        },
        {"weapon": "scimitar"},
        {"weapon": "shortbow"},
    ]


@pytest.fixture
def goblin_document(goblin_entries: list[Any]) -> str:
    """Provide the goblin as JSON document text."""
    return make_document(*goblin_entries)


# =============================================================================
# Interpreter Fixtures
# =============================================================================


@pytest.fixture
def resolver() -> MappingResolver:
    """Provide an include resolver with a few shared documents."""
    from monster_forge.engine.interpreter import MappingResolver

    return MappingResolver(
        {
            "goblinoid": make_document(
                "small",
                {"type": "humanoid"},
                {"subtype": "goblinoid"},
                {"darkvision": 60},
            ),
            "keen_senses": make_document(
                {
                    "feature": {
                        "name": "Keen $<sense>",
                        "description": "${Subj} has advantage on Wisdom (Perception) checks.",
                    }
                },
            ),
        }
    )


@pytest.fixture
def interpreter(settings: Settings, resolver: MappingResolver) -> CreatureInterpreter:
    """Provide an interpreter with the shared resolver and default settings."""
    from monster_forge.engine.interpreter import CreatureInterpreter

    return CreatureInterpreter(resolver, settings)
