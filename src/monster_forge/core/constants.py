"""Application-wide constants for monster-forge.

Rule constants that the reference ruleset leaves open to interpretation are
pinned here so that they are explicit and covered by tests.
"""

from __future__ import annotations

# =============================================================================
# Directive Format
# =============================================================================

DIRECTIVE_FORMAT_VERSION = 1.0
"""Version of the directive document format understood by this build."""

# =============================================================================
# Ability Scores
# =============================================================================

MIN_ABILITY_SCORE = 1
"""Minimum ability score (1 is barely functioning)."""

MONSTER_ABILITY_SCORE_CAP = 30
"""Maximum ability score for monsters."""

DEFAULT_ABILITY_SCORE = 10
"""Score used for any ability the directives never set."""

# =============================================================================
# Dice
# =============================================================================

CANONICAL_DIE_FACES = (4, 6, 8, 10, 12, 20, 100)
"""The only die sizes the dice parser accepts."""

MAX_DICE_COUNT = 999
"""Largest count accepted for a single dice term."""

# =============================================================================
# Hit Points
# =============================================================================

ROUND_HIT_DIE_AVERAGE_PER_DIE = True
"""Floor each hit die's average before multiplying by the hit dice count.

With this set a creature with six d6 hit dice gets ``6 * 3`` base hit points
rather than ``floor(6 * 3.5)``. The constitution modifier is added per die
afterwards and the result is never lower than MIN_HIT_POINTS.
"""

MIN_HIT_POINTS = 1
"""Derived hit points never drop below this value."""

DEFAULT_HIT_DICE_COUNT = 1
"""Hit dice count used when the directives never set one."""

# =============================================================================
# Armor
# =============================================================================

BASE_ARMOR_CLASS = 10
"""Armor class of an unarmored creature before its dexterity modifier."""

SHIELD_ARMOR_BONUS = 2
"""Armor class added by a shield."""

MEDIUM_ARMOR_DEX_CAP = 2
"""Largest dexterity modifier medium armor lets through."""

# =============================================================================
# Challenge Rating
# =============================================================================

CHALLENGE_RATING_ROUND_HALF_UP = True
"""When the averaged offensive and defensive ratings sit exactly between two
tabled values, pick the higher one."""

ARMOR_CLASS_STEP = 2
"""Armor class (or attack bonus / save DC) difference worth one CR step."""

CHALLENGE_RATINGS = (
    "0",
    "1/8",
    "1/4",
    "1/2",
    *(str(rating) for rating in range(1, 31)),
)
"""Tabled challenge ratings, lowest first."""

# =============================================================================
# Senses
# =============================================================================

PASSIVE_PERCEPTION_BASE = 10
"""Base of the passive Perception score."""


__all__ = [
    "DIRECTIVE_FORMAT_VERSION",
    "MIN_ABILITY_SCORE",
    "MONSTER_ABILITY_SCORE_CAP",
    "DEFAULT_ABILITY_SCORE",
    "CANONICAL_DIE_FACES",
    "MAX_DICE_COUNT",
    "ROUND_HIT_DIE_AVERAGE_PER_DIE",
    "MIN_HIT_POINTS",
    "DEFAULT_HIT_DICE_COUNT",
    "BASE_ARMOR_CLASS",
    "SHIELD_ARMOR_BONUS",
    "MEDIUM_ARMOR_DEX_CAP",
    "CHALLENGE_RATING_ROUND_HALF_UP",
    "ARMOR_CLASS_STEP",
    "CHALLENGE_RATINGS",
    "PASSIVE_PERCEPTION_BASE",
]
