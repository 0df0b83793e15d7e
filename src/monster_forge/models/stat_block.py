"""Finished stat block record.

``StatBlock`` is the flat, frozen hand-off to an external renderer: every
line is already formatted and every block of prose is structured text. The
JSON dump of this model is the whole renderer contract.

Example:
    >>> block = interpreter.create(document)
    >>> block.armor_class
    '15 (leather armor, shield)'
    >>> block.model_dump(mode="json")["hit_points"]
    '6 (2d6)'
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from monster_forge.models.creature import NamedText
from monster_forge.models.structured_text import StructuredText


class StatBlock(BaseModel):
    """A derived creature projected into display strings.

    Optional lines are None when the creature has nothing to show there.

    Attributes:
        name: Creature name.
        size: Size as printed, e.g. ``Small``.
        creature_type: Type as printed, e.g. ``humanoid``.
        subtype: Subtype shown in parentheses after the type.
        group: Listing group; not part of the printed block.
        alignment: Alignment as printed.
        size_type_alignment: The italic line under the name.
        armor_class: ``15 (leather armor, shield)``.
        hit_points: ``6 (2d6)``.
        speed: ``30 ft., climb 30 ft.``.
        strength: Ability display, ``14 (+2)``.
        saving_throws: ``Dex +4, Wis +2``.
        skills: ``Perception +2, Stealth +6``.
        damage_vulnerabilities: Vulnerabilities line.
        damage_resistances: Resistances line.
        damage_immunities: Immunities line.
        condition_immunities: Condition immunities line.
        senses: Senses ending with passive Perception.
        languages: Languages line.
        challenge_rating: ``1/4 (50 XP)``.
        proficiency_bonus: ``+2``.
        features: Traits in order, spellcasting last.
        actions: Actions, multiattack first.
        reactions: Reactions.
        legendary_intro: Paragraph introducing legendary actions.
        legendary_actions: Legendary action entries.
        source: Source book or document.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(description="Creature name")
    size: str = Field(description="Size as printed")
    creature_type: str = Field(description="Creature type as printed")
    subtype: str | None = Field(default=None, description="Subtype")
    group: str | None = Field(default=None, description="Listing group")
    alignment: str = Field(description="Alignment as printed")
    size_type_alignment: str = Field(description="Size, type and alignment line")

    armor_class: str = Field(description="Armor class line")
    hit_points: str = Field(description="Hit points line")
    speed: str = Field(description="Speed line")

    strength: str
    dexterity: str
    constitution: str
    intelligence: str
    wisdom: str
    charisma: str

    saving_throws: str | None = None
    skills: str | None = None
    damage_vulnerabilities: str | None = None
    damage_resistances: str | None = None
    damage_immunities: str | None = None
    condition_immunities: str | None = None
    senses: str = Field(description="Senses line")
    languages: str | None = None
    challenge_rating: str = Field(description="Challenge line with experience points")
    proficiency_bonus: str = Field(description="Proficiency bonus, signed")

    features: tuple[NamedText, ...] = ()
    actions: tuple[NamedText, ...] = ()
    reactions: tuple[NamedText, ...] = ()
    legendary_intro: StructuredText | None = None
    legendary_actions: tuple[NamedText, ...] = ()

    source: str | None = None


__all__ = [
    "StatBlock",
]
