"""Enumeration types for monster-forge.

This module defines the closed vocabularies used by directives and the
derived creature: abilities, skills, sizes, creature types, alignments,
damage types, conditions, armor kinds, pronoun sets and usage limits.

Enums accept a few alternate spellings on lookup (``"str"`` for strength,
``"chaotic evil"`` for ``chaotic_evil``) so that directive documents can use
the wording that reads naturally.
"""

from __future__ import annotations

from enum import StrEnum

from monster_forge.engine.dice import Die


def _normalize(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip().lower().replace(" ", "_").replace("-", "_")


class Ability(StrEnum):
    """The six ability scores."""

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @classmethod
    def _missing_(cls, value: object) -> Ability | None:
        normalized = _normalize(value)
        for member in cls:
            if normalized in (member.value, member.name.lower()):
                return member
        return None

    @property
    def full_name(self) -> str:
        """Get the full name of the ability.

        Returns:
            Full ability name (e.g., 'Strength' for STR).
        """
        return self.value.capitalize()

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation.

        Returns:
            Three-letter abbreviation (e.g., 'STR').
        """
        return self.name

    @property
    def short_name(self) -> str:
        """Abbreviation as printed in a saving throw line (e.g., 'Dex')."""
        return self.name.capitalize()

    @property
    def variable(self) -> str:
        """Interpolation variable holding the modifier (e.g., 'dex')."""
        return self.name.lower()


class Skill(StrEnum):
    """Skills and their associated abilities.

    Declaration order is alphabetical by display name, which is the order
    skills are listed in a stat block.
    """

    ACROBATICS = "acrobatics"
    ANIMAL_HANDLING = "animal_handling"
    ARCANA = "arcana"
    ATHLETICS = "athletics"
    DECEPTION = "deception"
    HISTORY = "history"
    INSIGHT = "insight"
    INTIMIDATION = "intimidation"
    INVESTIGATION = "investigation"
    MEDICINE = "medicine"
    NATURE = "nature"
    PERCEPTION = "perception"
    PERFORMANCE = "performance"
    PERSUASION = "persuasion"
    RELIGION = "religion"
    SLEIGHT_OF_HAND = "sleight_of_hand"
    STEALTH = "stealth"
    SURVIVAL = "survival"

    @classmethod
    def _missing_(cls, value: object) -> Skill | None:
        normalized = _normalize(value)
        for member in cls:
            if normalized == member.value:
                return member
        return None

    @property
    def ability(self) -> Ability:
        """Get the ability score used for this skill.

        Returns:
            The Ability enum value associated with this skill.
        """
        skill_abilities: dict[Skill, Ability] = {
            Skill.ATHLETICS: Ability.STR,
            Skill.ACROBATICS: Ability.DEX,
            Skill.SLEIGHT_OF_HAND: Ability.DEX,
            Skill.STEALTH: Ability.DEX,
            Skill.ARCANA: Ability.INT,
            Skill.HISTORY: Ability.INT,
            Skill.INVESTIGATION: Ability.INT,
            Skill.NATURE: Ability.INT,
            Skill.RELIGION: Ability.INT,
            Skill.ANIMAL_HANDLING: Ability.WIS,
            Skill.INSIGHT: Ability.WIS,
            Skill.MEDICINE: Ability.WIS,
            Skill.PERCEPTION: Ability.WIS,
            Skill.SURVIVAL: Ability.WIS,
            Skill.DECEPTION: Ability.CHA,
            Skill.INTIMIDATION: Ability.CHA,
            Skill.PERFORMANCE: Ability.CHA,
            Skill.PERSUASION: Ability.CHA,
        }
        return skill_abilities[self]

    @property
    def display_name(self) -> str:
        """Get the skill name as printed (e.g., 'Sleight of Hand')."""
        words = self.value.split("_")
        return " ".join(word if word == "of" else word.capitalize() for word in words)


class Alignment(StrEnum):
    """Alignments, including the 'any ...' forms used for monsters."""

    ANY_ALIGNMENT = "any_alignment"
    ANY_NON_GOOD = "any_non_good"
    ANY_NON_EVIL = "any_non_evil"
    ANY_NON_LAWFUL = "any_non_lawful"
    ANY_NON_CHAOTIC = "any_non_chaotic"
    ANY_GOOD = "any_good"
    ANY_EVIL = "any_evil"
    ANY_LAWFUL = "any_lawful"
    ANY_CHAOTIC = "any_chaotic"
    LAWFUL_GOOD = "lawful_good"
    NEUTRAL_GOOD = "neutral_good"
    CHAOTIC_GOOD = "chaotic_good"
    LAWFUL_NEUTRAL = "lawful_neutral"
    NEUTRAL = "neutral"
    CHAOTIC_NEUTRAL = "chaotic_neutral"
    LAWFUL_EVIL = "lawful_evil"
    NEUTRAL_EVIL = "neutral_evil"
    CHAOTIC_EVIL = "chaotic_evil"
    UNALIGNED = "unaligned"

    @classmethod
    def _missing_(cls, value: object) -> Alignment | None:
        normalized = _normalize(value)
        if normalized == "true_neutral":
            return cls.NEUTRAL
        for member in cls:
            if normalized == member.value:
                return member
        return None

    @property
    def display_name(self) -> str:
        """Get the alignment as printed (e.g., 'any non-good')."""
        if self.value.startswith("any_non_"):
            return f"any non-{self.value.removeprefix('any_non_')}"
        return self.value.replace("_", " ")


class DamageType(StrEnum):
    """Damage types, declared in stat block listing order."""

    BLUDGEONING = "bludgeoning"
    PIERCING = "piercing"
    SLASHING = "slashing"
    COLD = "cold"
    FIRE = "fire"
    THUNDER = "thunder"
    RADIANT = "radiant"
    FORCE = "force"
    LIGHTNING = "lightning"
    POISON = "poison"
    ACID = "acid"
    NECROTIC = "necrotic"
    PSYCHIC = "psychic"

    @classmethod
    def _missing_(cls, value: object) -> DamageType | None:
        normalized = _normalize(value)
        for member in cls:
            if normalized == member.value:
                return member
        return None


class NonmagicalVariant(StrEnum):
    """Qualifiers for resistance to nonmagical weapon damage."""

    NONMAGICAL = "nonmagical"
    NOT_SILVERED = "not_silvered"
    NOT_ADAMANTINE = "not_adamantine"

    @property
    def description(self) -> str:
        """Stat block wording for this qualifier."""
        descriptions = {
            NonmagicalVariant.NONMAGICAL: (
                "bludgeoning, piercing, and slashing from nonmagical attacks"
            ),
            NonmagicalVariant.NOT_SILVERED: (
                "bludgeoning, piercing, and slashing from nonmagical attacks "
                "that aren't silvered"
            ),
            NonmagicalVariant.NOT_ADAMANTINE: (
                "bludgeoning, piercing, and slashing from nonmagical attacks "
                "that aren't adamantine"
            ),
        }
        return descriptions[self]


class Condition(StrEnum):
    """Conditions that can affect creatures."""

    BLINDED = "blinded"
    CHARMED = "charmed"
    DEAFENED = "deafened"
    EXHAUSTION = "exhaustion"
    FRIGHTENED = "frightened"
    GRAPPLED = "grappled"
    INCAPACITATED = "incapacitated"
    INVISIBLE = "invisible"
    PARALYZED = "paralyzed"
    PETRIFIED = "petrified"
    POISONED = "poisoned"
    PRONE = "prone"
    RESTRAINED = "restrained"
    STUNNED = "stunned"
    UNCONSCIOUS = "unconscious"


class Size(StrEnum):
    """Creature sizes."""

    TINY = "tiny"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    HUGE = "huge"
    GARGANTUAN = "gargantuan"

    @property
    def display_name(self) -> str:
        """Capitalized size (e.g., 'Small')."""
        return self.value.capitalize()

    @property
    def hit_die(self) -> Die:
        """Get the hit die for creatures of this size.

        Returns:
            The die rolled per hit die (e.g., d8 for Medium).
        """
        hit_dice = {
            Size.TINY: Die.D4,
            Size.SMALL: Die.D6,
            Size.MEDIUM: Die.D8,
            Size.LARGE: Die.D10,
            Size.HUGE: Die.D12,
            Size.GARGANTUAN: Die.D20,
        }
        return hit_dice[self]

    @property
    def weapon_dice_multiplier(self) -> int:
        """Multiplier applied to the dice count of a manufactured weapon."""
        multipliers = {
            Size.LARGE: 2,
            Size.HUGE: 3,
            Size.GARGANTUAN: 4,
        }
        return multipliers.get(self, 1)


class CreatureType(StrEnum):
    """Creature types."""

    ABERRATION = "aberration"
    BEAST = "beast"
    CELESTIAL = "celestial"
    CONSTRUCT = "construct"
    DRAGON = "dragon"
    ELEMENTAL = "elemental"
    FEY = "fey"
    FIEND = "fiend"
    GIANT = "giant"
    HUMANOID = "humanoid"
    MONSTROSITY = "monstrosity"
    OOZE = "ooze"
    PLANT = "plant"
    UNDEAD = "undead"


class ArmorKind(StrEnum):
    """Kinds of armor a creature can wear.

    ``natural`` and ``custom`` take a bonus on top of the dexterity
    modifier; every other kind follows the equipment table.
    """

    PADDED = "padded"
    LEATHER = "leather"
    STUDDED_LEATHER = "studded_leather"
    HIDE = "hide"
    CHAIN_SHIRT = "chain_shirt"
    SCALE_MAIL = "scale_mail"
    BREASTPLATE = "breastplate"
    HALF_PLATE = "half_plate"
    RING_MAIL = "ring_mail"
    CHAIN_MAIL = "chain_mail"
    SPLINT = "splint"
    PLATE = "plate"
    NATURAL = "natural"
    CUSTOM = "custom"

    @classmethod
    def _missing_(cls, value: object) -> ArmorKind | None:
        normalized = _normalize(value)
        for member in cls:
            if normalized == member.value:
                return member
        return None

    @property
    def description(self) -> str:
        """Default wording in the armor class line."""
        descriptions = {
            ArmorKind.PADDED: "padded armor",
            ArmorKind.LEATHER: "leather armor",
            ArmorKind.STUDDED_LEATHER: "studded leather armor",
            ArmorKind.HIDE: "hide armor",
            ArmorKind.CHAIN_SHIRT: "chain shirt",
            ArmorKind.SCALE_MAIL: "scale mail",
            ArmorKind.BREASTPLATE: "breastplate",
            ArmorKind.HALF_PLATE: "half plate",
            ArmorKind.RING_MAIL: "ring mail",
            ArmorKind.CHAIN_MAIL: "chain mail",
            ArmorKind.SPLINT: "splint",
            ArmorKind.PLATE: "plate",
            ArmorKind.NATURAL: "natural armor",
            ArmorKind.CUSTOM: "armor",
        }
        return descriptions[self]


class Pronouns(StrEnum):
    """Pronoun sets used when interpolating a creature's text."""

    IT = "it"
    HE = "he"
    SHE = "she"
    THEY = "they"

    @property
    def forms(self) -> dict[str, str]:
        """Get the lowercase pronoun forms.

        Returns:
            Mapping of ``subject``, ``object``, ``possessive`` and
            ``reflexive`` to the pronoun in that case.
        """
        table = {
            Pronouns.IT: ("it", "it", "its", "itself"),
            Pronouns.HE: ("he", "him", "his", "himself"),
            Pronouns.SHE: ("she", "her", "her", "herself"),
            Pronouns.THEY: ("they", "them", "their", "themselves"),
        }
        subject, obj, possessive, reflexive = table[self]
        return {
            "subject": subject,
            "object": obj,
            "possessive": possessive,
            "reflexive": reflexive,
        }


class UsageKind(StrEnum):
    """How often a feature or action can be used."""

    RECHARGE = "recharge"
    PER_DAY = "per_day"
    PER_TURN = "per_turn"
    REST = "rest"


class SpellcastingStyle(StrEnum):
    """Spell slot progression of a spellcasting class."""

    FULL = "full"
    HALF = "half"
    THIRD = "third"


__all__ = [
    "Ability",
    "Skill",
    "Alignment",
    "DamageType",
    "NonmagicalVariant",
    "Condition",
    "Size",
    "CreatureType",
    "ArmorKind",
    "Pronouns",
    "UsageKind",
    "SpellcastingStyle",
]
