"""Secondary statistic derivation.

Given a creature with every directive applied, this module computes what the
directives leave implicit: ability modifiers, proficiency bonus, armor class,
hit points, attack text, multiattack wording, spellcasting text and the
challenge rating. Everything here is a pure function of the creature; the
same creature always derives the same numbers and text.

Challenge rating follows the monster creation table: a defensive rating from
effective hit points adjusted by armor class, an offensive rating from damage
per round adjusted by attack bonus or save DC, averaged and rounded to the
nearest tabled rating. Attack bonuses depend on proficiency, which depends on
the rating, so the computation repeats until the rating settles.
"""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Any

from monster_forge.core.config import DerivationSettings
from monster_forge.core.constants import (
    ARMOR_CLASS_STEP,
    BASE_ARMOR_CLASS,
    CHALLENGE_RATING_ROUND_HALF_UP,
    MEDIUM_ARMOR_DEX_CAP,
    MIN_HIT_POINTS,
    PASSIVE_PERCEPTION_BASE,
    ROUND_HIT_DIE_AVERAGE_PER_DIE,
    SHIELD_ARMOR_BONUS,
)
from monster_forge.core.exceptions import (
    CreatureHasNoNameError,
    FeatureInterpolationError,
    InterpolationError,
)
from monster_forge.core.logging import get_logger
from monster_forge.engine.dice import DiceExpression
from monster_forge.engine.interpolation import escape_text, interpolate
from monster_forge.models.attacks import (
    Attack,
    AttackEffect,
    BonusSource,
    SaveEffect,
    Usage,
    Weapon,
    average_damage,
    describe_hit,
    number_word,
)
from monster_forge.models.creature import Action, Creature, DerivedStats, NamedText
from monster_forge.models.directives import InnateSpellcastingDirective, SpellcastingDirective
from monster_forge.models.enums import Ability, ArmorKind, Skill, SpellcastingStyle
from monster_forge.models.structured_text import StructuredText


logger = get_logger(__name__)


# =============================================================================
# Abilities and Proficiency
# =============================================================================


def ability_modifier(score: int) -> int:
    """Modifier for an ability score: ``(score - 10) // 2``.

    Example:
        >>> ability_modifier(8)
        -1
    """
    return (score - 10) // 2


def proficiency_bonus(challenge_rating: Fraction) -> int:
    """Proficiency bonus for a challenge rating (2 up to CR 4, 9 at CR 29-30)."""
    if challenge_rating < 5:
        return 2
    whole = challenge_rating.numerator // challenge_rating.denominator
    return (whole - 1) // 4 + 2


def modifiers(creature: Creature) -> dict[str, int]:
    """Modifier variables ``str`` .. ``cha`` plus ``atk`` (best of str/dex)."""
    result = {ability.variable: ability_modifier(creature.score(ability)) for ability in Ability}
    # ties go to dexterity
    stronger = creature.score(Ability.STR) > creature.score(Ability.DEX)
    result["atk"] = result["str"] if stronger else result["dex"]
    return result


def saving_throw_bonus(creature: Creature, ability: Ability, proficiency: int) -> int:
    bonus = ability_modifier(creature.score(ability))
    if ability in creature.saves:
        bonus += proficiency
    return bonus


def skill_bonus(creature: Creature, skill: Skill, proficiency: int) -> int:
    """Skill bonus; expertise doubles the proficiency bonus."""
    multiplier = creature.skills.get(skill, 0)
    return ability_modifier(creature.score(skill.ability)) + proficiency * multiplier


def passive_perception(creature: Creature, proficiency: int) -> int:
    return PASSIVE_PERCEPTION_BASE + skill_bonus(creature, Skill.PERCEPTION, proficiency)


def spellcasting_ability(creature: Creature) -> Ability:
    """Ability behind ``spell_atk`` and ``spell_dc``.

    Class spellcasting wins over innate spellcasting; a creature with neither
    falls back to charisma.
    """
    if creature.spellcasting is not None:
        return creature.spellcasting.ability
    if creature.innate_spellcasting is not None:
        return creature.innate_spellcasting.ability
    return Ability.CHA


def spell_attack_bonus(creature: Creature, proficiency: int) -> int:
    for casting in (creature.spellcasting, creature.innate_spellcasting):
        if casting is not None and casting.attack_bonus is not None:
            return casting.attack_bonus
    return proficiency + ability_modifier(creature.score(spellcasting_ability(creature)))


def spell_save_dc(creature: Creature, proficiency: int) -> int:
    for casting in (creature.spellcasting, creature.innate_spellcasting):
        if casting is not None and casting.save_dc is not None:
            return casting.save_dc
    return 8 + proficiency + ability_modifier(creature.score(spellcasting_ability(creature)))


# =============================================================================
# Armor Class and Hit Points
# =============================================================================


# kind -> (base, dexterity cap); None means no cap, 0 means dexterity is ignored
ARMOR_TABLE: dict[ArmorKind, tuple[int, int | None]] = {
    ArmorKind.PADDED: (11, None),
    ArmorKind.LEATHER: (11, None),
    ArmorKind.STUDDED_LEATHER: (12, None),
    ArmorKind.HIDE: (12, MEDIUM_ARMOR_DEX_CAP),
    ArmorKind.CHAIN_SHIRT: (13, MEDIUM_ARMOR_DEX_CAP),
    ArmorKind.SCALE_MAIL: (14, MEDIUM_ARMOR_DEX_CAP),
    ArmorKind.BREASTPLATE: (14, MEDIUM_ARMOR_DEX_CAP),
    ArmorKind.HALF_PLATE: (15, MEDIUM_ARMOR_DEX_CAP),
    ArmorKind.RING_MAIL: (14, 0),
    ArmorKind.CHAIN_MAIL: (16, 0),
    ArmorKind.SPLINT: (17, 0),
    ArmorKind.PLATE: (18, 0),
    ArmorKind.NATURAL: (BASE_ARMOR_CLASS, None),
    ArmorKind.CUSTOM: (BASE_ARMOR_CLASS, None),
}


def armor_class(creature: Creature) -> tuple[int, str | None]:
    """Armor class and the parenthetical that explains it.

    Returns:
        ``(15, "leather armor, shield")``; the description is None for an
        unarmored creature without a shield.
    """
    if creature.armor_class_override is not None:
        return creature.armor_class_override, creature.armor_class_description

    dexterity = ability_modifier(creature.score(Ability.DEX))
    if creature.armor is None:
        value = BASE_ARMOR_CLASS + dexterity
        parts: list[str] = []
    else:
        base, cap = ARMOR_TABLE[creature.armor]
        if cap == 0:
            dexterity = 0
        elif cap is not None:
            dexterity = min(dexterity, cap)
        value = base + dexterity + creature.armor_bonus
        parts = [creature.armor_description or creature.armor.description]
    if creature.shield:
        value += SHIELD_ARMOR_BONUS
        parts.append("shield")
    value += creature.extra_armor_bonus
    return value, ", ".join(parts) or None


def hit_dice(creature: Creature) -> DiceExpression:
    """Hit dice with the constitution bonus, e.g. ``6d6 + 6``."""
    count = creature.hit_dice_count
    constitution = ability_modifier(creature.score(Ability.CON))
    return DiceExpression.single(count, creature.hit_die, count * constitution)


def hit_points(creature: Creature) -> int:
    """Hit points: the override, or the hit dice average.

    Each die contributes its average rounded down; the constitution modifier
    is added per die and the total never drops below the minimum.
    """
    if creature.hit_points_override is not None:
        return creature.hit_points_override
    count = creature.hit_dice_count
    constitution = ability_modifier(creature.score(Ability.CON))
    if ROUND_HIT_DIE_AVERAGE_PER_DIE:
        base = count * creature.hit_die.floor_average
    else:
        base = int(count * creature.hit_die.average)
    return max(base + count * constitution, MIN_HIT_POINTS)


# =============================================================================
# Challenge Rating Table
# =============================================================================


@dataclass(frozen=True)
class ChallengeRow:
    """One row of the monster statistics by challenge rating table."""

    rating: Fraction
    experience: int
    armor_class: int
    max_hit_points: int
    attack_bonus: int
    max_damage: int
    save_dc: int

    @property
    def proficiency(self) -> int:
        return proficiency_bonus(self.rating)

    @property
    def label(self) -> str:
        return str(self.rating)


def _row(rating: str, xp: int, ac: int, hp: int, attack: int, damage: int, dc: int) -> ChallengeRow:
    return ChallengeRow(Fraction(rating), xp, ac, hp, attack, damage, dc)


CHALLENGE_TABLE: tuple[ChallengeRow, ...] = (
    _row("0", 10, 13, 6, 3, 1, 13),
    _row("1/8", 25, 13, 35, 3, 3, 13),
    _row("1/4", 50, 13, 49, 3, 5, 13),
    _row("1/2", 100, 13, 70, 3, 8, 13),
    _row("1", 200, 13, 85, 3, 14, 13),
    _row("2", 450, 13, 100, 3, 20, 13),
    _row("3", 700, 13, 115, 4, 26, 13),
    _row("4", 1100, 14, 130, 5, 32, 14),
    _row("5", 1800, 15, 145, 6, 38, 15),
    _row("6", 2300, 15, 160, 6, 44, 15),
    _row("7", 2900, 15, 175, 6, 50, 15),
    _row("8", 3900, 16, 190, 7, 56, 16),
    _row("9", 5000, 16, 205, 7, 62, 16),
    _row("10", 5900, 17, 220, 7, 68, 16),
    _row("11", 7200, 17, 235, 8, 74, 17),
    _row("12", 8400, 17, 250, 8, 80, 17),
    _row("13", 10000, 18, 265, 8, 86, 18),
    _row("14", 11500, 18, 280, 8, 92, 18),
    _row("15", 13000, 18, 295, 8, 98, 18),
    _row("16", 15000, 18, 310, 9, 104, 18),
    _row("17", 18000, 19, 325, 10, 110, 19),
    _row("18", 20000, 19, 340, 10, 116, 19),
    _row("19", 22000, 19, 355, 10, 122, 19),
    _row("20", 25000, 19, 400, 10, 140, 19),
    _row("21", 33000, 19, 445, 11, 158, 20),
    _row("22", 41000, 19, 490, 11, 176, 20),
    _row("23", 50000, 19, 535, 11, 194, 20),
    _row("24", 62000, 19, 580, 12, 212, 21),
    _row("25", 75000, 19, 625, 12, 230, 21),
    _row("26", 90000, 19, 670, 12, 248, 21),
    _row("27", 105000, 19, 715, 13, 266, 22),
    _row("28", 120000, 19, 760, 13, 284, 22),
    _row("29", 135000, 19, 805, 13, 302, 22),
    _row("30", 155000, 19, 850, 14, 320, 23),
)
"""Expected statistics per challenge rating, lowest first."""

_ROW_BY_RATING = {row.rating: row for row in CHALLENGE_TABLE}


def challenge_row(challenge_rating: Fraction) -> ChallengeRow:
    """Table row for a tabled rating.

    Raises:
        KeyError: If the rating is not tabled.
    """
    return _ROW_BY_RATING[challenge_rating]


def experience_points(challenge_rating: Fraction) -> int:
    return challenge_row(challenge_rating).experience


def format_challenge_rating(challenge_rating: Fraction) -> str:
    """Challenge line text, e.g. ``"1/4 (50 XP)"`` or ``"4 (1,100 XP)"``."""
    return f"{challenge_rating} ({experience_points(challenge_rating):,} XP)"


def nearest_rating(value: Fraction) -> Fraction:
    """Round a value to the nearest tabled rating.

    Halves round up when CHALLENGE_RATING_ROUND_HALF_UP is set, down otherwise.

    Example:
        >>> nearest_rating(Fraction(5, 2))
        Fraction(3, 1)
    """
    direction = 1 if CHALLENGE_RATING_ROUND_HALF_UP else -1
    return min(
        (row.rating for row in CHALLENGE_TABLE),
        key=lambda rating: (abs(rating - value), -direction * rating),
    )


def _clamp_index(index: int) -> int:
    return max(0, min(index, len(CHALLENGE_TABLE) - 1))


def _steps(actual: int, expected: int) -> int:
    # int() truncates toward zero: every full step above or below counts
    return int(Fraction(actual - expected, ARMOR_CLASS_STEP))


# =============================================================================
# Attacks
# =============================================================================


def weapon_attack(
    weapon: Weapon, action: Action, creature: Creature
) -> tuple[Attack, AttackEffect]:
    """Attack roll and hit effect of a standard weapon action.

    The weapon is resolved against the creature's current size so that a
    size change after the weapon directive still scales the dice. An attack
    or effect set on the action replaces the computed one.
    """
    attack = action.attack if action.attack is not None else weapon.attack(action.magic)
    effect = action.effect
    if effect is None:
        effect = weapon.effect(creature.size, action.magic)
    return attack, effect


def resolve_attack(action: Action, creature: Creature) -> tuple[Attack, AttackEffect] | None:
    """Attack roll and hit effect of an action, or None for non-attacks."""
    if action.weapon is not None:
        return weapon_attack(action.weapon, action, creature)
    if action.attack is not None and action.effect is not None:
        return action.attack, action.effect
    return None


def attack_description(action: Action, creature: Creature) -> str | None:
    """Generated interpolation text for an attack action."""
    resolved = resolve_attack(action, creature)
    if resolved is None:
        return None
    attack, effect = resolved
    hit = describe_hit(effect, tuple(action.riders), attack.default_bonus)
    return f"{attack.describe()} ${{italic(}}Hit:${{)}} {hit}"


def _to_hit(attack: Attack, values: dict[str, int], proficiency: int, spell_attack: int) -> int:
    if isinstance(attack.bonus, int):
        return attack.bonus + attack.magic
    if attack.bonus is BonusSource.SPELL:
        return spell_attack + attack.magic
    variable = attack.bonus.variable(attack.default_bonus)
    modifier = values.get(variable, 0) if variable else 0
    return modifier + proficiency + attack.magic


def multiattack_text(creature: Creature) -> str | None:
    """Synthesized multiattack text, or None when fewer than two attacks are made.

    Example:
        ``"${Subj} makes two attacks: one with ${posspro} scimitar and one
        with ${posspro} shortbow."``
    """
    entries = [
        (action, action.multiattack)
        for action in creature.actions
        if action.multiattack > 0 and resolve_attack(action, creature) is not None
    ]
    total = sum(count for _, count in entries)
    if total < 2:
        return None
    names = [
        escape_text(action.weapon.display_name.lower() if action.weapon else action.name.lower())
        for action, _ in entries
    ]
    if len(entries) == 1:
        return f"${{Subj}} makes {number_word(total)} {names[0]} attacks."
    clauses = [
        f"{number_word(count)} with ${{posspro}} {name}"
        for (_, count), name in zip(entries, names)
    ]
    if len(clauses) == 2:
        joined = " and ".join(clauses)
    else:
        joined = ", ".join(clauses[:-1]) + ", and " + clauses[-1]
    return f"${{Subj}} makes {number_word(total)} attacks: {joined}."


# =============================================================================
# Challenge Rating Computation
# =============================================================================


def _effective_hit_point_multiplier(creature: Creature, estimate: Fraction) -> Fraction:
    immune = creature.nonmagical_immunity is not None or len(creature.immunities) >= 3
    resistant = creature.nonmagical_resistance is not None or len(creature.resistances) >= 3
    if not immune and not resistant:
        return Fraction(1)
    if estimate <= 4:
        resistance, immunity = Fraction(2), Fraction(2)
    elif estimate <= 10:
        resistance, immunity = Fraction(3, 2), Fraction(2)
    elif estimate <= 16:
        resistance, immunity = Fraction(5, 4), Fraction(3, 2)
    else:
        resistance, immunity = Fraction(1), Fraction(5, 4)
    return immunity if immune else resistance


def defensive_rating(creature: Creature, estimate: Fraction) -> Fraction:
    """Rating from effective hit points, adjusted by armor class."""
    effective = hit_points(creature) * _effective_hit_point_multiplier(creature, estimate)
    index = next(
        (i for i, row in enumerate(CHALLENGE_TABLE) if effective <= row.max_hit_points),
        len(CHALLENGE_TABLE) - 1,
    )
    ac, _ = armor_class(creature)
    index = _clamp_index(index + _steps(ac, CHALLENGE_TABLE[index].armor_class))
    return CHALLENGE_TABLE[index].rating


def _attack_profiles(
    creature: Creature, proficiency: int
) -> list[tuple[Action, Fraction, int, bool]]:
    values = modifiers(creature)
    spell_attack = spell_attack_bonus(creature, proficiency)
    save_dc = spell_save_dc(creature, proficiency)
    profiles = []
    for action in creature.actions:
        resolved = resolve_attack(action, creature)
        if resolved is None:
            continue
        attack, effect = resolved
        damage = average_damage(effect, tuple(action.riders), values, attack.default_bonus)
        if isinstance(effect, SaveEffect):
            profiles.append((action, damage, effect.dc or save_dc, True))
        else:
            to_hit = _to_hit(attack, values, proficiency, spell_attack)
            profiles.append((action, damage, to_hit, False))
    return profiles


def offensive_rating(creature: Creature, proficiency: int) -> Fraction:
    """Rating from damage per round, adjusted by attack bonus or save DC.

    Damage per round is the larger of the multiattack total and the best
    single attack; a creature without attacks rates 0.
    """
    profiles = _attack_profiles(creature, proficiency)
    if not profiles:
        return CHALLENGE_TABLE[0].rating
    best = max(profiles, key=lambda profile: profile[1])
    multiattack = sum(damage * action.multiattack for action, damage, _, _ in profiles)
    damage_per_round = max(best[1], multiattack)
    index = next(
        (i for i, row in enumerate(CHALLENGE_TABLE) if damage_per_round <= row.max_damage),
        len(CHALLENGE_TABLE) - 1,
    )
    _, _, accuracy, is_save = best
    row = CHALLENGE_TABLE[index]
    expected = row.save_dc if is_save else row.attack_bonus
    index = _clamp_index(index + _steps(accuracy, expected))
    return CHALLENGE_TABLE[index].rating


def compute_challenge_rating(creature: Creature, *, iterations: int) -> Fraction:
    """Compute the challenge rating, iterating until proficiency settles.

    Args:
        creature: Creature with all directives applied.
        iterations: Maximum number of passes.

    Returns:
        A tabled challenge rating.
    """
    rating = Fraction(0)
    for iteration in range(iterations):
        proficiency = proficiency_bonus(rating)
        defensive = defensive_rating(creature, rating)
        offensive = offensive_rating(creature, proficiency)
        computed = nearest_rating((defensive + offensive) / 2)
        logger.debug(
            "Challenge rating pass",
            iteration=iteration,
            defensive=str(defensive),
            offensive=str(offensive),
            rating=str(computed),
        )
        if computed == rating:
            break
        rating = computed
    return rating


# =============================================================================
# Spellcasting
# =============================================================================


# caster level -> slots for spell levels 1..n
FULL_CASTER_SLOTS: tuple[tuple[int, ...], ...] = (
    (2,),
    (3,),
    (4, 2),
    (4, 3),
    (4, 3, 2),
    (4, 3, 3),
    (4, 3, 3, 1),
    (4, 3, 3, 2),
    (4, 3, 3, 3, 1),
    (4, 3, 3, 3, 2),
    (4, 3, 3, 3, 2, 1),
    (4, 3, 3, 3, 2, 1),
    (4, 3, 3, 3, 2, 1, 1),
    (4, 3, 3, 3, 2, 1, 1),
    (4, 3, 3, 3, 2, 1, 1, 1),
    (4, 3, 3, 3, 2, 1, 1, 1),
    (4, 3, 3, 3, 2, 1, 1, 1, 1),
    (4, 3, 3, 3, 3, 1, 1, 1, 1),
    (4, 3, 3, 3, 3, 2, 1, 1, 1),
    (4, 3, 3, 3, 3, 2, 2, 1, 1),
)

HALF_CASTER_SLOTS: tuple[tuple[int, ...], ...] = (
    (),
    (2,),
    (3,),
    (3,),
    (4, 2),
    (4, 2),
    (4, 3),
    (4, 3),
    (4, 3, 2),
    (4, 3, 2),
    (4, 3, 3),
    (4, 3, 3),
    (4, 3, 3, 1),
    (4, 3, 3, 1),
    (4, 3, 3, 2),
    (4, 3, 3, 2),
    (4, 3, 3, 3, 1),
    (4, 3, 3, 3, 1),
    (4, 3, 3, 3, 2),
    (4, 3, 3, 3, 2),
)

THIRD_CASTER_SLOTS: tuple[tuple[int, ...], ...] = (
    (),
    (),
    (2,),
    (3,),
    (3,),
    (3,),
    (4, 2),
    (4, 2),
    (4, 2),
    (4, 3),
    (4, 3),
    (4, 3),
    (4, 3, 2),
    (4, 3, 2),
    (4, 3, 2),
    (4, 3, 3),
    (4, 3, 3),
    (4, 3, 3),
    (4, 3, 3, 1),
    (4, 3, 3, 1),
)

_SLOT_TABLES = {
    SpellcastingStyle.FULL: FULL_CASTER_SLOTS,
    SpellcastingStyle.HALF: HALF_CASTER_SLOTS,
    SpellcastingStyle.THIRD: THIRD_CASTER_SLOTS,
}


def spell_slots(style: SpellcastingStyle, caster_level: int) -> dict[int, int]:
    """Spell slots by spell level for a caster level (1-20)."""
    row = _SLOT_TABLES[style][caster_level - 1]
    return {level: count for level, count in enumerate(row, start=1) if count}


def ordinal(number: int) -> str:
    """``1st``, ``2nd``, ``3rd``, ``11th``..."""
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def _spell_list(spells: list[str]) -> str:
    return ", ".join(f"${{italic(}}{escape_text(spell)}${{)}}" for spell in spells)


def spellcasting_text(spellcasting: SpellcastingDirective) -> str:
    """Interpolation text for the Spellcasting feature body."""
    ability = spellcasting.ability.full_name
    text = (
        f"${{Subj}} is a {ordinal(spellcasting.level)}-level spellcaster. "
        f"${{Posspro}} spellcasting ability is {ability} "
        "(spell save DC ${spell_dc}, ${+spell_atk} to hit with spell attacks). "
        f"${{Subj}} has the following {escape_text(spellcasting.class_name.lower())} "
        "spells prepared:"
    )
    slots = spellcasting.slots or spell_slots(spellcasting.style, spellcasting.level)
    if spellcasting.cantrips:
        text += f"${{sub(}}Cantrips (at will):${{)}}{_spell_list(spellcasting.cantrips)}"
    for level in sorted(spellcasting.spells):
        count = slots.get(level, 0)
        plural = "slot" if count == 1 else "slots"
        text += (
            f"${{sub(}}{ordinal(level)} level ({count} {plural}):${{)}}"
            f"{_spell_list(spellcasting.spells[level])}"
        )
    return text


def innate_spellcasting_text(innate: InnateSpellcastingDirective) -> str:
    """Interpolation text for the Innate Spellcasting feature body."""
    dc = str(innate.save_dc) if innate.save_dc is not None else (
        f"${{8 + prof + {innate.ability.variable}}}"
    )
    components = innate.components or "requiring no material components"
    text = (
        f"${{Poss}} innate spellcasting ability is {innate.ability.full_name} "
        f"(spell save DC {dc}). ${{Subj}} can innately cast the following spells, "
        f"{escape_text(components)}:"
    )
    if innate.at_will:
        text += f"${{sub(}}At will:${{)}}{_spell_list(innate.at_will)}"
    for uses in sorted(innate.per_day, reverse=True):
        spells = innate.per_day[uses]
        each = " each" if len(spells) > 1 else ""
        text += f"${{sub(}}{uses}/day{each}:${{)}}{_spell_list(spells)}"
    return text


# =============================================================================
# Variables and Text
# =============================================================================


def subject_names(creature: Creature) -> dict[str, str]:
    """The ``subj``/``Subj``/``poss``/``Poss`` variables.

    Defaults are "the goblin", "The goblin", "the goblin's", "The goblin's";
    a lowercase override also supplies the capitalized form.
    """
    name = creature.name or ""
    subject = creature.subject_name or f"the {name.lower()}"
    capitalized = creature.capitalized_subject_name or subject[:1].upper() + subject[1:]
    possessive = creature.possessive_name or f"{subject}'s"
    capitalized_possessive = (
        creature.capitalized_possessive_name or possessive[:1].upper() + possessive[1:]
    )
    return {
        "subj": subject,
        "Subj": capitalized,
        "poss": possessive,
        "Poss": capitalized_possessive,
    }


def build_variables(
    creature: Creature,
    *,
    proficiency: int,
    armor_class_value: int,
    hit_dice_value: DiceExpression,
    hit_points_value: int,
) -> dict[str, Any]:
    """The closed variable mapping creature text is interpolated against."""
    values: dict[str, Any] = {"name": creature.name or ""}
    values.update(subject_names(creature))
    forms = creature.pronouns.forms
    for variable, form in (
        ("subjpro", "subject"),
        ("objpro", "object"),
        ("posspro", "possessive"),
        ("refpro", "reflexive"),
    ):
        values[variable] = forms[form]
        values[variable.capitalize()] = forms[form].capitalize()
    values.update(
        {
            "size": creature.size.value,
            "type": creature.type_name,
            "subtype": creature.subtype or "",
            "group": creature.group or "",
            "alignment": creature.alignment,
            "hit_dice": hit_dice_value,
            "hit_points": hit_points_value,
            "armor_class": armor_class_value,
            "prof": proficiency,
            "spell_atk": spell_attack_bonus(creature, proficiency),
            "spell_dc": spell_save_dc(creature, proficiency),
        }
    )
    for ability in Ability:
        values[ability.value] = creature.score(ability)
        values[f"{ability.variable}_save"] = saving_throw_bonus(creature, ability, proficiency)
    values.update(modifiers(creature))
    return values


def _heading(name: str, usage: Usage | None = None, extra: str | None = None) -> str:
    label = escape_text(name)
    notes = [note for note in (usage.label if usage else None, extra) if note]
    if notes:
        label += f" ({'; '.join(notes)})"
    return f"{label}."


def _interpolate(
    creature_name: str,
    name: str,
    text: str,
    variables: dict[str, Any],
) -> StructuredText:
    try:
        return interpolate(
            creature_name,
            text,
            context_label=name,
            paragraph_mode=True,
            capitalize_first=True,
            variables=variables,
        )
    except InterpolationError as exc:
        raise FeatureInterpolationError(
            f"Text of '{name}' could not be interpolated: {exc.message}",
            feature=name,
            cause=exc,
            details={"creature": creature_name},
        ) from exc


def _entry(
    creature_name: str,
    name: str,
    body: str,
    variables: dict[str, Any],
    *,
    usage: Usage | None = None,
    sub: bool = False,
    extra: str | None = None,
) -> NamedText:
    command = "sub" if sub else "par"
    text = f"${{{command}(}}{_heading(name, usage, extra)}${{)}}{body}"
    return NamedText(name=name, text=_interpolate(creature_name, name, text, variables))


LEGENDARY_INTRO = (
    "${Subj} can take {count} legendary actions, choosing from the options below. "
    "Only one legendary action can be used at a time and only at the end of another "
    "creature's turn. ${Subj} regains spent legendary actions at the start of "
    "${posspro} turn."
)


def derive(creature: Creature, settings: DerivationSettings) -> DerivedStats:
    """Run the derivation pass.

    Args:
        creature: Creature with all directives applied.
        settings: Derivation settings.

    Returns:
        The derived statistics and interpolated text.

    Raises:
        CreatureHasNoNameError: If no name was set.
        FeatureInterpolationError: If any authored or generated text fails to
            interpolate.
    """
    if not creature.name:
        raise CreatureHasNoNameError("Creature has no name")
    name = creature.name

    ac, ac_description = armor_class(creature)
    dice = hit_dice(creature)
    hp = hit_points(creature)
    if creature.challenge_rating_override is not None:
        rating = creature.challenge_rating_override
    else:
        rating = compute_challenge_rating(
            creature, iterations=settings.challenge_rating_iterations
        )
    proficiency = proficiency_bonus(rating)
    variables = build_variables(
        creature,
        proficiency=proficiency,
        armor_class_value=ac,
        hit_dice_value=dice,
        hit_points_value=hp,
    )

    features = [
        _entry(name, feature.name, feature.description, variables, usage=feature.usage)
        for feature in creature.features
    ]
    if creature.innate_spellcasting is not None:
        features.append(
            _entry(
                name,
                "Innate Spellcasting",
                innate_spellcasting_text(creature.innate_spellcasting),
                variables,
            )
        )
    if creature.spellcasting is not None:
        features.append(
            _entry(name, "Spellcasting", spellcasting_text(creature.spellcasting), variables)
        )

    actions = []
    multiattack = creature.multiattack_description or multiattack_text(creature)
    if multiattack:
        actions.append(_entry(name, "Multiattack", multiattack, variables))
    for action in creature.actions:
        body = action.description or attack_description(action, creature) or ""
        actions.append(_entry(name, action.name, body, variables, usage=action.usage))

    reactions = [
        _entry(name, reaction.name, reaction.description, variables, usage=reaction.usage)
        for reaction in creature.reactions
    ]

    legendary_intro = None
    legendary = []
    if creature.legendary_actions:
        intro = creature.legendary_description or LEGENDARY_INTRO.replace(
            "{count}", number_word(creature.legendary_action_count)
        )
        legendary_intro = _interpolate(name, "Legendary Actions", intro, variables)
        for entry in creature.legendary_actions:
            cost = f"Costs {entry.cost} Actions" if entry.cost > 1 else None
            legendary.append(
                _entry(name, entry.name, entry.description, variables, sub=True, extra=cost)
            )

    logger.info(
        "Creature derived",
        creature=name,
        challenge_rating=str(rating),
        armor_class=ac,
        hit_points=hp,
    )
    return DerivedStats(
        challenge_rating=rating,
        proficiency_bonus=proficiency,
        armor_class=ac,
        armor_description=ac_description,
        hit_dice=dice,
        hit_points=hp,
        features=tuple(features),
        actions=tuple(actions),
        reactions=tuple(reactions),
        legendary_intro=legendary_intro,
        legendary_actions=tuple(legendary),
    )


__all__ = [
    "ability_modifier",
    "proficiency_bonus",
    "modifiers",
    "saving_throw_bonus",
    "skill_bonus",
    "passive_perception",
    "spellcasting_ability",
    "spell_attack_bonus",
    "spell_save_dc",
    "ARMOR_TABLE",
    "armor_class",
    "hit_dice",
    "hit_points",
    "ChallengeRow",
    "CHALLENGE_TABLE",
    "challenge_row",
    "experience_points",
    "format_challenge_rating",
    "nearest_rating",
    "resolve_attack",
    "weapon_attack",
    "attack_description",
    "multiattack_text",
    "defensive_rating",
    "offensive_rating",
    "compute_challenge_rating",
    "FULL_CASTER_SLOTS",
    "HALF_CASTER_SLOTS",
    "THIRD_CASTER_SLOTS",
    "spell_slots",
    "ordinal",
    "spellcasting_text",
    "innate_spellcasting_text",
    "subject_names",
    "build_variables",
    "LEGENDARY_INTRO",
    "derive",
]
