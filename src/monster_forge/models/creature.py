"""Creature model accumulated by the directive interpreter.

The interpreter applies directives to a mutable ``Creature`` one at a time.
Once every directive has been applied, the derivation pass computes the
secondary statistics and attaches them as a frozen ``DerivedStats``; the
interpreter then hands out a read-only ``DerivedCreature`` snapshot.

Example:
    >>> creature = Creature(name="Goblin", size=Size.SMALL)
    >>> creature.scores[Ability.DEX] = 14
    >>> creature.hit_die
    <Die.D6: 6>
"""

from __future__ import annotations

from fractions import Fraction

from pydantic import BaseModel, ConfigDict, Field

from monster_forge.core.constants import DEFAULT_ABILITY_SCORE, DEFAULT_HIT_DICE_COUNT
from monster_forge.core.exceptions import CreatureError
from monster_forge.engine.dice import Die
from monster_forge.models.attacks import Attack, AttackEffect, Dice, Rider, Usage, Weapon
from monster_forge.models.directives import (
    ChallengeValue,
    HitDieValue,
    InnateSpellcastingDirective,
    LegendaryAction,
    SpellcastingDirective,
    WeaponAttackDirective,
    WeaponEffectDirective,
)
from monster_forge.models.enums import (
    Ability,
    ArmorKind,
    Condition,
    CreatureType,
    DamageType,
    NonmagicalVariant,
    Pronouns,
    Size,
    Skill,
)
from monster_forge.models.structured_text import StructuredText


# =============================================================================
# Authored Entries
# =============================================================================


class Feature(BaseModel):
    """A named trait or reaction with authored text.

    Attributes:
        name: Name printed as the paragraph heading.
        description: Authored interpolation text.
        usage: Optional usage limit shown after the name.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str = Field(min_length=1, description="Feature name")
    description: str = Field(description="Authored text")
    usage: Usage | None = Field(default=None, description="Usage limit")


class Action(BaseModel):
    """An action: free text, a standard weapon, or a custom attack.

    Weapon and attack actions generate their text from the attack and effect
    unless ``description`` overrides it.

    Attributes:
        name: Action name.
        description: Authored text; generated for attacks when None.
        usage: Optional usage limit.
        weapon: Standard weapon this action uses.
        magic: Magic bonus of the weapon.
        attack: The attack roll; for weapons, an override of the computed one.
        effect: What happens on a hit; for weapons, an override as well.
        riders: Extra effects after the main one.
        multiattack: How many times the action is used in a multiattack.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    name: str = Field(min_length=1, description="Action name")
    description: str | None = Field(default=None, description="Authored text")
    usage: Usage | None = Field(default=None, description="Usage limit")
    weapon: Weapon | None = Field(default=None, description="Standard weapon")
    magic: int = Field(default=0, description="Magic bonus")
    attack: Attack | None = Field(default=None, description="Attack roll")
    effect: AttackEffect | None = Field(default=None, description="Hit effect")
    riders: list[Rider] = Field(default_factory=list, description="Rider effects")
    multiattack: int = Field(default=0, ge=0, description="Uses per multiattack")


class NamedText(BaseModel):
    """An interpolated entry ready for display."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    text: StructuredText


# =============================================================================
# Derived Statistics
# =============================================================================


class DerivedStats(BaseModel):
    """Secondary statistics computed once all directives are applied.

    Attributes:
        challenge_rating: Pinned or computed challenge rating.
        proficiency_bonus: Proficiency bonus for that rating.
        armor_class: Final armor class.
        armor_description: Parenthetical for the armor class line.
        hit_dice: Hit dice expression including the constitution bonus.
        hit_points: Final hit points.
        features: Interpolated features in authored order.
        actions: Interpolated actions, multiattack first.
        reactions: Interpolated reactions.
        legendary_intro: Interpolated paragraph introducing legendary actions.
        legendary_actions: Interpolated legendary action entries.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    challenge_rating: ChallengeValue
    proficiency_bonus: int
    armor_class: int
    armor_description: str | None = None
    hit_dice: Dice
    hit_points: int
    features: tuple[NamedText, ...] = ()
    actions: tuple[NamedText, ...] = ()
    reactions: tuple[NamedText, ...] = ()
    legendary_intro: StructuredText | None = None
    legendary_actions: tuple[NamedText, ...] = ()


# =============================================================================
# Creature
# =============================================================================


def _default_scores() -> dict[Ability, int]:
    return {ability: DEFAULT_ABILITY_SCORE for ability in Ability}


class Creature(BaseModel):
    """Mutable creature state built up by the interpreter.

    Scalar fields follow last-write-wins; list fields keep authored order.
    ``derived`` stays None until the derivation pass runs.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    # Identity
    name: str | None = Field(default=None, description="Creature name")
    source: str | None = Field(default=None, description="Source book or document")
    subject_name: str | None = Field(default=None, description="Override for ${subj}")
    capitalized_subject_name: str | None = Field(default=None, description="Override for ${Subj}")
    possessive_name: str | None = Field(default=None, description="Override for ${poss}")
    capitalized_possessive_name: str | None = Field(
        default=None, description="Override for ${Poss}"
    )
    pronouns: Pronouns = Field(default=Pronouns.IT, description="Pronoun set")
    size: Size = Field(default=Size.MEDIUM, description="Size")
    creature_type: CreatureType | None = Field(default=None, description="Creature type")
    custom_type: str | None = Field(default=None, description="Free-text creature type")
    subtype: str | None = Field(default=None, description="Subtype, e.g. goblinoid")
    group: str | None = Field(default=None, description="Group name, e.g. swarm")
    alignment: str = Field(default="unaligned", description="Alignment as printed")

    # Defense
    hit_die_override: HitDieValue | None = Field(default=None, description="Hit die override")
    hit_dice_count: int = Field(default=DEFAULT_HIT_DICE_COUNT, ge=1, description="Hit dice")
    hit_points_override: int | None = Field(default=None, ge=1, description="Pinned hit points")
    armor: ArmorKind | None = Field(default=None, description="Armor worn")
    armor_bonus: int = Field(default=0, description="Natural/custom armor bonus")
    armor_description: str | None = Field(default=None, description="Armor wording override")
    extra_armor_bonus: int = Field(default=0, description="Bonus from armor_bonus directives")
    armor_class_override: int | None = Field(default=None, ge=0, description="Pinned AC")
    armor_class_description: str | None = Field(default=None, description="Pinned AC wording")
    shield: bool = Field(default=False, description="Carries a shield")

    # Movement
    speeds: dict[str, int] = Field(
        default_factory=lambda: {"walk": 30}, description="Speeds in feet by mode"
    )
    hover: bool = Field(default=False, description="Flying creature can hover")
    speed_notes: str | None = Field(default=None, description="Parenthetical after speeds")

    # Abilities
    scores: dict[Ability, int] = Field(default_factory=_default_scores, description="Scores")
    saves: list[Ability] = Field(default_factory=list, description="Proficient saves")
    skills: dict[Skill, int] = Field(
        default_factory=dict, description="Skill proficiency multiplier (1 or 2)"
    )

    # Damage and conditions
    vulnerabilities: list[DamageType] = Field(default_factory=list)
    resistances: list[DamageType] = Field(default_factory=list)
    immunities: list[DamageType] = Field(default_factory=list)
    nonmagical_resistance: NonmagicalVariant | None = None
    nonmagical_immunity: NonmagicalVariant | None = None
    custom_vulnerabilities: list[str] = Field(default_factory=list)
    custom_resistances: list[str] = Field(default_factory=list)
    custom_immunities: list[str] = Field(default_factory=list)
    condition_immunities: list[Condition] = Field(default_factory=list)

    # Senses and languages
    senses: dict[str, int] = Field(default_factory=dict, description="Senses in feet by name")
    blind_beyond: bool = Field(default=False, description="Blind beyond blindsight radius")
    languages: list[str] = Field(default_factory=list)
    unspoken_languages: list[str] = Field(default_factory=list)
    telepathy: int | None = Field(default=None, ge=0)

    # Challenge
    challenge_rating_override: ChallengeValue | None = None
    expected_challenge_rating: ChallengeValue | None = None
    weapon_expectations: list[WeaponAttackDirective | WeaponEffectDirective] = Field(
        default_factory=list, description="Expected weapon attacks and effects"
    )

    # Actions and traits
    actions: list[Action] = Field(default_factory=list)
    multiattack_description: str | None = None
    features: list[Feature] = Field(default_factory=list)
    reactions: list[Feature] = Field(default_factory=list)
    legendary_action_count: int = Field(default=3, ge=1)
    legendary_description: str | None = None
    legendary_actions: list[LegendaryAction] = Field(default_factory=list)
    spellcasting: SpellcastingDirective | None = None
    innate_spellcasting: InnateSpellcastingDirective | None = None

    derived: DerivedStats | None = None

    @property
    def hit_die(self) -> Die:
        """Hit die: the override if set, otherwise the size's die."""
        return self.hit_die_override or self.size.hit_die

    @property
    def type_name(self) -> str:
        """Creature type as printed."""
        if self.custom_type:
            return self.custom_type
        if self.creature_type is not None:
            return self.creature_type.value
        return "creature"

    def score(self, ability: Ability) -> int:
        return self.scores[ability]

    def find_action(self, name: str) -> Action | None:
        """Find an action by name, case-insensitively."""
        wanted = name.casefold()
        for action in self.actions:
            if action.name.casefold() == wanted:
                return action
        return None

    def find_weapon(self, weapon: Weapon) -> Action | None:
        """Find the first action that uses a standard weapon."""
        for action in self.actions:
            if action.weapon is weapon:
                return action
        return None

    @property
    def challenge_rating(self) -> Fraction | None:
        """Derived challenge rating, once derivation has run."""
        return self.derived.challenge_rating if self.derived else None

    def freeze(self) -> DerivedCreature:
        """Return a read-only deep copy of this creature.

        Raises:
            CreatureError: If the creature has not been derived yet.
        """
        if self.derived is None:
            raise CreatureError("Creature must be derived before freezing", creature=self.name)
        snapshot = self.model_copy(deep=True)
        return DerivedCreature.model_construct(
            _fields_set=snapshot.model_fields_set, **dict(snapshot)
        )


class DerivedCreature(Creature):
    """A creature whose derivation has completed; assignment raises."""

    model_config = ConfigDict(extra="forbid", frozen=True)


__all__ = [
    "Feature",
    "Action",
    "NamedText",
    "DerivedStats",
    "Creature",
    "DerivedCreature",
]
