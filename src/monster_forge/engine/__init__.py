"""Derivation engine for monster-forge.

Submodules:
    dice: Dice expression parsing, averages, arithmetic and rolling (d20).
    tokenizer: Tokens of the interpolation language.
    interpolation: Compiles and evaluates authored text into structured text.
    derivation: Armor class, hit points, attacks and challenge rating.
    stat_block: Projection of a derived creature into display strings.
    interpreter: Applies directive documents and runs the pipeline.

Example:
    >>> from monster_forge.engine import parse_dice_expression
    >>> parse_dice_expression("2d6 + 3").average_value
    10
"""

from __future__ import annotations

# =============================================================================
# Dice
# =============================================================================
# Must load first: the models package imports it while this package initializes
from monster_forge.engine.dice import (
    DiceExpression,
    DiceRoll,
    DiceRoller,
    DiceTerm,
    Die,
    parse_dice_expression,
    roll,
)

# =============================================================================
# Interpolation
# =============================================================================
from monster_forge.engine.tokenizer import Token, TokenKind, TokenizerMode, tokenize
from monster_forge.engine.interpolation import (
    escape_text,
    interpolate,
    interpolate_plain,
)

# =============================================================================
# Derivation
# =============================================================================
from monster_forge.engine.derivation import (
    CHALLENGE_TABLE,
    ability_modifier,
    compute_challenge_rating,
    derive,
    format_challenge_rating,
    proficiency_bonus,
)
from monster_forge.engine.stat_block import project

# =============================================================================
# Interpreter
# =============================================================================
from monster_forge.engine.interpreter import (
    CreatureInterpreter,
    IncludeResolver,
    MappingResolver,
    ValidationReport,
    create_stat_block,
    validate_document,
)


__all__ = [
    # Dice
    "Die",
    "DiceTerm",
    "DiceExpression",
    "DiceRoll",
    "DiceRoller",
    "parse_dice_expression",
    "roll",
    # Interpolation
    "Token",
    "TokenKind",
    "TokenizerMode",
    "tokenize",
    "escape_text",
    "interpolate",
    "interpolate_plain",
    # Derivation
    "CHALLENGE_TABLE",
    "ability_modifier",
    "compute_challenge_rating",
    "derive",
    "format_challenge_rating",
    "proficiency_bonus",
    "project",
    # Interpreter
    "CreatureInterpreter",
    "IncludeResolver",
    "MappingResolver",
    "ValidationReport",
    "create_stat_block",
    "validate_document",
]
