"""monster-forge - creature directives to derived stat blocks.

Authors describe a creature as an ordered list of terse directives (size,
ability scores, armor, attacks, features). monster-forge applies them,
derives everything that follows from the rules (armor class, hit points,
attack bonuses, multiattack wording, challenge rating) and interpolates the
authored prose into structured text ready for an external renderer.

Example:
    >>> from monster_forge import create_stat_block
    >>> block = create_stat_block('''[
    ...     {"version": [1.0]},
    ...     {"name": "Goblin"},
    ...     "small",
    ...     {"type": "humanoid"},
    ...     {"subtype": "goblinoid"},
    ...     {"alignment": "neutral_evil"},
    ...     {"dex": 14},
    ...     {"armor": ["leather"]},
    ...     "shield",
    ...     {"hit_dice_count": 2},
    ...     {"weapon": "scimitar"}
    ... ]''')
    >>> block.armor_class
    '15 (leather armor, shield)'

Modules:
    core: Configuration, logging, constants and exceptions.
    models: Pydantic V2 models for directives, creatures and stat blocks.
    engine: Dice, interpolation, derivation and the directive interpreter.
"""

from __future__ import annotations

# Core
from monster_forge.core.config import Settings, get_settings
from monster_forge.core.exceptions import (
    CreatureError,
    InterpolationError,
    MonsterForgeError,
    ParseError,
)
from monster_forge.core.logging import (
    configure_logging,
    configure_logging_from_settings,
    get_logger,
)

# Engine (imported before models, which depend on engine.dice)
from monster_forge.engine.dice import DiceExpression, parse_dice_expression, roll
from monster_forge.engine.interpolation import interpolate
from monster_forge.engine.interpreter import (
    CreatureInterpreter,
    IncludeResolver,
    MappingResolver,
    ValidationReport,
    create_stat_block,
    validate_document,
)

# Models
from monster_forge.models.creature import Creature, DerivedCreature
from monster_forge.models.stat_block import StatBlock
from monster_forge.models.structured_text import StructuredText


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "MonsterForgeError",
    "ParseError",
    "InterpolationError",
    "CreatureError",
    "Settings",
    "get_settings",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    # Engine
    "DiceExpression",
    "parse_dice_expression",
    "roll",
    "interpolate",
    "CreatureInterpreter",
    "IncludeResolver",
    "MappingResolver",
    "ValidationReport",
    "create_stat_block",
    "validate_document",
    # Models
    "Creature",
    "DerivedCreature",
    "StatBlock",
    "StructuredText",
]
