"""Projection of a derived creature into a flat stat block.

Every function here is a pure mapping from creature state to display
strings; nothing is computed that the derivation pass did not already
settle, apart from the skill, save and perception bonuses that follow
directly from it.
"""

from __future__ import annotations

from monster_forge.core.exceptions import CreatureError
from monster_forge.engine.derivation import (
    ability_modifier,
    format_challenge_rating,
    passive_perception,
    saving_throw_bonus,
    skill_bonus,
)
from monster_forge.models.creature import Creature, DerivedStats
from monster_forge.models.enums import Ability, DamageType, NonmagicalVariant
from monster_forge.models.stat_block import StatBlock


# Standard modes print in this order; walking speed carries no label
_SPEED_ORDER = ("walk", "burrow", "climb", "fly", "swim")
_SENSE_ORDER = ("blindsight", "darkvision", "tremorsense", "truesight")


def and_join(items: list[str]) -> str:
    """Join with commas and a final "and", e.g. ``"a, b, and c"``."""
    if len(items) <= 2:
        return " and ".join(items)
    return ", ".join(items[:-1]) + ", and " + items[-1]


def ability_display(score: int) -> str:
    """``"14 (+2)"``"""
    return f"{score} ({ability_modifier(score):+d})"


def size_type_alignment(creature: Creature) -> str:
    """``"Small humanoid (goblinoid), neutral evil"``"""
    line = f"{creature.size.display_name} {creature.type_name}"
    if creature.subtype:
        line += f" ({creature.subtype})"
    return f"{line}, {creature.alignment}"


def armor_class_line(derived: DerivedStats) -> str:
    if derived.armor_description:
        return f"{derived.armor_class} ({derived.armor_description})"
    return str(derived.armor_class)


def speed_line(creature: Creature) -> str:
    """Speeds as printed, e.g. ``"30 ft., fly 60 ft. (hover), swim 30 ft."``."""
    parts = [f"{creature.speeds.get('walk', 0)} ft."]
    ordered = [mode for mode in _SPEED_ORDER[1:] if mode in creature.speeds]
    ordered += [mode for mode in creature.speeds if mode not in _SPEED_ORDER]
    for mode in ordered:
        part = f"{mode} {creature.speeds[mode]} ft."
        if mode == "fly" and creature.hover:
            part += " (hover)"
        parts.append(part)
    line = ", ".join(parts)
    if creature.speed_notes:
        line += f" ({creature.speed_notes})"
    return line


def saving_throws_line(creature: Creature, proficiency: int) -> str | None:
    saves = [
        f"{ability.short_name} {saving_throw_bonus(creature, ability, proficiency):+d}"
        for ability in Ability
        if ability in creature.saves
    ]
    return ", ".join(saves) or None


def skills_line(creature: Creature, proficiency: int) -> str | None:
    skills = sorted(creature.skills, key=lambda skill: skill.display_name)
    return (
        ", ".join(
            f"{skill.display_name} {skill_bonus(creature, skill, proficiency):+d}"
            for skill in skills
        )
        or None
    )


def damage_line(
    damage_types: list[DamageType],
    custom: list[str],
    nonmagical: NonmagicalVariant | None = None,
) -> str | None:
    """A damage line; the nonmagical clause follows a semicolon.

    Example:
        ``"fire, poison; bludgeoning, piercing, and slashing from nonmagical attacks"``
    """
    listed = [damage.value for damage in DamageType if damage in damage_types]
    groups = [", ".join(listed)] if listed else []
    groups += custom
    if nonmagical is not None:
        groups.append(nonmagical.description)
    return "; ".join(groups) or None


def senses_line(creature: Creature, proficiency: int) -> str:
    """Senses followed by passive Perception, which is always present."""
    parts = []
    ordered = [sense for sense in _SENSE_ORDER if sense in creature.senses]
    ordered += [sense for sense in creature.senses if sense not in _SENSE_ORDER]
    for sense in ordered:
        part = f"{sense} {creature.senses[sense]} ft."
        if sense == "blindsight" and creature.blind_beyond:
            part += " (blind beyond this radius)"
        parts.append(part)
    parts.append(f"passive Perception {passive_perception(creature, proficiency)}")
    return ", ".join(parts)


def languages_line(creature: Creature) -> str | None:
    parts = list(creature.languages)
    if creature.unspoken_languages:
        parts.append(f"understands {and_join(creature.unspoken_languages)} but can't speak")
    if creature.telepathy is not None:
        parts.append(f"telepathy {creature.telepathy} ft.")
    return ", ".join(parts) or None


def project(creature: Creature) -> StatBlock:
    """Map a derived creature to its stat block.

    Raises:
        CreatureError: If the derivation pass has not run.
    """
    derived = creature.derived
    if derived is None or creature.name is None:
        raise CreatureError("Creature must be derived before projection", creature=creature.name)
    proficiency = derived.proficiency_bonus
    scores = {ability: ability_display(creature.score(ability)) for ability in Ability}

    return StatBlock(
        name=creature.name,
        size=creature.size.display_name,
        creature_type=creature.type_name,
        subtype=creature.subtype,
        group=creature.group,
        alignment=creature.alignment,
        size_type_alignment=size_type_alignment(creature),
        armor_class=armor_class_line(derived),
        hit_points=derived.hit_dice.display(derived.hit_points),
        speed=speed_line(creature),
        strength=scores[Ability.STR],
        dexterity=scores[Ability.DEX],
        constitution=scores[Ability.CON],
        intelligence=scores[Ability.INT],
        wisdom=scores[Ability.WIS],
        charisma=scores[Ability.CHA],
        saving_throws=saving_throws_line(creature, proficiency),
        skills=skills_line(creature, proficiency),
        damage_vulnerabilities=damage_line(
            creature.vulnerabilities, creature.custom_vulnerabilities
        ),
        damage_resistances=damage_line(
            creature.resistances, creature.custom_resistances, creature.nonmagical_resistance
        ),
        damage_immunities=damage_line(
            creature.immunities, creature.custom_immunities, creature.nonmagical_immunity
        ),
        condition_immunities=", ".join(c.value for c in creature.condition_immunities) or None,
        senses=senses_line(creature, proficiency),
        languages=languages_line(creature),
        challenge_rating=format_challenge_rating(derived.challenge_rating),
        proficiency_bonus=f"{proficiency:+d}",
        features=derived.features,
        actions=derived.actions,
        reactions=derived.reactions,
        legendary_intro=derived.legendary_intro,
        legendary_actions=derived.legendary_actions,
        source=creature.source,
    )


__all__ = [
    "and_join",
    "ability_display",
    "size_type_alignment",
    "armor_class_line",
    "speed_line",
    "saving_throws_line",
    "skills_line",
    "damage_line",
    "senses_line",
    "languages_line",
    "project",
]
