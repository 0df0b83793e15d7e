"""Pydantic V2 models for monster-forge.

Submodules:
    enums: Abilities, skills, sizes, damage types and other closed sets.
    structured_text: Styled spans and blocks produced by interpolation.
    attacks: Attack rolls, hit effects, riders, usage limits and weapons.
    directives: The directive union and the directive document parser.
    creature: The mutable creature and its derived statistics.
    stat_block: The frozen, display-ready stat block.

Example:
    >>> from monster_forge.models import parse_directive_document
    >>> directives = parse_directive_document('[{"version": [1.0]}, {"dex": 14}]')
    >>> directives[1].ability
    <Ability.DEX: 'dex'>
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from monster_forge.models.enums import (
    Ability,
    Alignment,
    ArmorKind,
    Condition,
    CreatureType,
    DamageType,
    NonmagicalVariant,
    Pronouns,
    Size,
    Skill,
    SpellcastingStyle,
    UsageKind,
)

# =============================================================================
# Structured Text
# =============================================================================
from monster_forge.models.structured_text import (
    BlockKind,
    Span,
    SpanStyle,
    StructuredText,
    TextBlock,
    plain_text,
)

# =============================================================================
# Attacks
# =============================================================================
from monster_forge.models.attacks import (
    Attack,
    AttackEffect,
    AttackKind,
    BonusSource,
    DamageEffect,
    FixedDamageEffect,
    OrEffect,
    Rider,
    RiderJoin,
    SaveEffect,
    SpecialEffect,
    Usage,
    Weapon,
)

# =============================================================================
# Directives
# =============================================================================
from monster_forge.models.directives import (
    DIRECTIVE_MODELS,
    Directive,
    parse_directive_document,
)

# =============================================================================
# Creature and Stat Block
# =============================================================================
from monster_forge.models.creature import (
    Action,
    Creature,
    DerivedCreature,
    DerivedStats,
    Feature,
    NamedText,
)
from monster_forge.models.stat_block import StatBlock


__all__ = [
    # Enumerations
    "Ability",
    "Alignment",
    "ArmorKind",
    "Condition",
    "CreatureType",
    "DamageType",
    "NonmagicalVariant",
    "Pronouns",
    "Size",
    "Skill",
    "SpellcastingStyle",
    "UsageKind",
    # Structured text
    "BlockKind",
    "Span",
    "SpanStyle",
    "StructuredText",
    "TextBlock",
    "plain_text",
    # Attacks
    "Attack",
    "AttackEffect",
    "AttackKind",
    "BonusSource",
    "DamageEffect",
    "FixedDamageEffect",
    "OrEffect",
    "Rider",
    "RiderJoin",
    "SaveEffect",
    "SpecialEffect",
    "Usage",
    "Weapon",
    # Directives
    "DIRECTIVE_MODELS",
    "Directive",
    "parse_directive_document",
    # Creature
    "Action",
    "Creature",
    "DerivedCreature",
    "DerivedStats",
    "Feature",
    "NamedText",
    "StatBlock",
]
