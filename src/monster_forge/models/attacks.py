"""Attack, damage effect, weapon and usage models.

An attack action is built from two parts: the attack roll (``Attack``: kind,
reach/range, target, to-hit bonus source) and what happens on a hit
(an ``AttackEffect`` plus optional riders). Both parts produce interpolation
source text, so the final numbers are computed from the creature's
variables when the text is interpolated::

    ${italic(}Melee Weapon Attack:${)} ${+str + prof} to hit, reach 5 ft.,
    one target. ${italic(}Hit:${)} ${1d6 + str} slashing damage.

Standard weapons come from a fixed equipment table and scale their damage
dice with the wielder's size.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from fractions import Fraction
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    model_validator,
)

from monster_forge.core.exceptions import DiceNotationError
from monster_forge.engine.dice import DiceExpression, DiceTerm, Die, parse_dice_expression
from monster_forge.models.enums import Ability, DamageType, Size, UsageKind


# =============================================================================
# Validators and Type Definitions
# =============================================================================


def _validate_dice(value: Any) -> DiceExpression:
    if isinstance(value, DiceExpression):
        return value
    if isinstance(value, str):
        try:
            return parse_dice_expression(value)
        except DiceNotationError as exc:
            raise ValueError(f"Invalid dice expression {value!r}: {exc.message}") from exc
    raise ValueError(f"Expected dice notation, got {type(value).__name__}")


Dice = Annotated[
    DiceExpression,
    PlainValidator(_validate_dice),
    PlainSerializer(lambda expression: expression.render(), return_type=str),
]
"""A DiceExpression field that validates from and serializes to notation."""

NUMBER_WORDS = (
    "zero",
    "one",
    "two",
    "three",
    "four",
    "five",
    "six",
    "seven",
    "eight",
    "nine",
    "ten",
)


def number_word(count: int) -> str:
    """Spell out small counts ('two'); larger ones stay numeric."""
    if 0 <= count < len(NUMBER_WORDS):
        return NUMBER_WORDS[count]
    return str(count)


# =============================================================================
# Attack Roll
# =============================================================================


class BonusSource(StrEnum):
    """Where an attack's bonus comes from.

    ``default`` picks strength for melee, dexterity for ranged and the best
    of the two for attacks that can be both.
    """

    DEFAULT = "default"
    STR = "str"
    DEX = "dex"
    CON = "con"
    INT = "int"
    WIS = "wis"
    CHA = "cha"
    BEST = "best"
    SPELL = "spell"
    NONE = "none"

    @classmethod
    def _missing_(cls, value: object) -> BonusSource | None:
        if isinstance(value, str):
            try:
                return cls(Ability(value).variable)
            except ValueError:
                return None
        return None

    def variable(self, default: str) -> str | None:
        """Interpolation variable for the ability modifier, if any."""
        if self is BonusSource.DEFAULT:
            return default
        if self is BonusSource.BEST:
            return "atk"
        if self in (BonusSource.SPELL, BonusSource.NONE):
            return None
        return self.value

    def to_hit_expression(self, default: str) -> str:
        """Expression for the to-hit bonus (modifier plus proficiency)."""
        if self is BonusSource.SPELL:
            return "spell_atk"
        if self is BonusSource.NONE:
            return "prof"
        return f"{self.variable(default)} + prof"


FixedOrSource = Union[int, BonusSource]


def _to_hit(bonus: FixedOrSource, default: str) -> str:
    if isinstance(bonus, int):
        return str(bonus)
    return bonus.to_hit_expression(default)


def _with_bonus(base: str, bonus: FixedOrSource, default: str) -> str:
    if isinstance(bonus, int):
        return f"{base} + {bonus}" if bonus else base
    variable = bonus.variable(default)
    return f"{base} + {variable}" if variable else base


def _magic_suffix(magic: int) -> str:
    if magic > 0:
        return f" + {magic}"
    if magic < 0:
        return f" - {-magic}"
    return ""


class AttackKind(StrEnum):
    """The word that qualifies 'Attack' in the attack line."""

    WEAPON = "weapon"
    SPELL = "spell"
    NATURAL = "natural"

    @property
    def label(self) -> str:
        return "Spell" if self is AttackKind.SPELL else "Weapon"


class Attack(BaseModel):
    """The attack roll part of an attack action.

    Attributes:
        kind: Weapon, spell or natural attack.
        bonus: Source of the to-hit bonus, or a fixed to-hit value.
        magic: Flat bonus added to the attack roll.
        reach: Reach in feet; set for melee attacks.
        range: Normal range in feet; set for ranged attacks.
        long_range: Long range in feet; only used with ``range``.
        target: Phrase naming the target.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: AttackKind | None = AttackKind.WEAPON
    bonus: FixedOrSource = BonusSource.DEFAULT
    magic: int = 0
    reach: int | None = Field(default=None, ge=0)
    range: int | None = Field(default=None, ge=0)
    long_range: int | None = Field(default=None, ge=0)
    target: str = "one target"

    @property
    def is_melee(self) -> bool:
        return self.reach is not None

    @property
    def is_ranged(self) -> bool:
        return self.range is not None

    @property
    def default_bonus(self) -> str:
        """Modifier variable used when the bonus source is ``default``."""
        if self.is_melee and not self.is_ranged:
            return "str"
        if self.is_ranged and not self.is_melee:
            return "dex"
        return "atk"

    def _distance(self) -> str:
        ranged = None
        if self.range is not None:
            if self.long_range is not None:
                ranged = f"range {self.range}/{self.long_range} ft."
            else:
                ranged = f"range {self.range} ft."
        if self.reach is not None and ranged:
            return f"reach {self.reach} ft. or {ranged}, {self.target}"
        if self.reach is not None:
            return f"reach {self.reach} ft., {self.target}"
        if ranged:
            return f"{ranged}, {self.target}"
        return self.target

    def describe(self) -> str:
        """Interpolation source for the attack line, ending with a period."""
        if self.is_melee and self.is_ranged:
            mode = "Melee or Ranged "
        elif self.is_melee:
            mode = "Melee "
        elif self.is_ranged:
            mode = "Ranged "
        else:
            mode = ""
        kind = f"{self.kind.label} " if self.kind else ""
        to_hit = _to_hit(self.bonus, self.default_bonus) + _magic_suffix(self.magic)
        return f"${{italic(}}{mode}{kind}Attack:${{)}} ${{+{to_hit}}} to hit, {self._distance()}."


# =============================================================================
# Effects
# =============================================================================


class _Effect(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def describe(self, default_bonus: str) -> str:
        raise NotImplementedError

    def damage_parts(self) -> list[tuple[DiceExpression | int, FixedOrSource]]:
        """Damage dealt when the effect lands, as (base, bonus source) pairs."""
        return []


class DamageEffect(_Effect):
    """Rolled damage of one type."""

    effect: Literal["damage"] = "damage"
    dice: Dice
    damage_type: DamageType
    bonus: FixedOrSource = BonusSource.DEFAULT

    def describe(self, default_bonus: str) -> str:
        expression = _with_bonus(self.dice.render(), self.bonus, default_bonus)
        return f"${{{expression}}} {self.damage_type.value} damage"

    def damage_parts(self) -> list[tuple[DiceExpression | int, FixedOrSource]]:
        return [(self.dice, self.bonus)]


class FixedDamageEffect(_Effect):
    """A fixed amount of damage, as for an unarmed strike."""

    effect: Literal["fixed_damage"] = "fixed_damage"
    amount: int = Field(ge=0)
    damage_type: DamageType
    bonus: FixedOrSource = BonusSource.DEFAULT

    def describe(self, default_bonus: str) -> str:
        expression = _with_bonus(str(self.amount), self.bonus, default_bonus)
        return f"${{{expression}}} {self.damage_type.value} damage"

    def damage_parts(self) -> list[tuple[DiceExpression | int, FixedOrSource]]:
        return [(self.amount, self.bonus)]


class SpecialEffect(_Effect):
    """Free text, worded so that it can follow 'Hit:' (e.g. 'the target is grappled')."""

    effect: Literal["special"] = "special"
    text: str

    def describe(self, default_bonus: str) -> str:
        return self.text


class OrEffect(_Effect):
    """Two damage results where the second applies under a condition."""

    effect: Literal["or"] = "or"
    dice: Dice
    damage_type: DamageType
    alternate_dice: Dice
    alternate_damage_type: DamageType | None = None
    condition: str
    bonus: FixedOrSource = BonusSource.DEFAULT

    def describe(self, default_bonus: str) -> str:
        first = _with_bonus(self.dice.render(), self.bonus, default_bonus)
        second = _with_bonus(self.alternate_dice.render(), self.bonus, default_bonus)
        alternate_type = self.alternate_damage_type or self.damage_type
        return (
            f"${{{first}}} {self.damage_type.value} damage, or "
            f"${{{second}}} {alternate_type.value} damage {self.condition}"
        )

    def damage_parts(self) -> list[tuple[DiceExpression | int, FixedOrSource]]:
        return [(self.dice, self.bonus)]


class SaveEffect(_Effect):
    """Damage that a saving throw avoids or halves.

    Attributes:
        dc: Save DC; when omitted the creature's ``spell_dc`` is used.
        half: Whether a successful save halves the damage.
        area: Word the effect for every target in an area.
    """

    effect: Literal["save"] = "save"
    ability: Ability
    dice: Dice
    damage_type: DamageType
    dc: int | None = Field(default=None, ge=1)
    bonus: FixedOrSource = BonusSource.NONE
    half: bool = True
    area: bool = False

    def describe(self, default_bonus: str) -> str:
        subject = "Each target in the area" if self.area else "The target"
        dc = str(self.dc) if self.dc is not None else "${spell_dc}"
        damage = _with_bonus(self.dice.render(), self.bonus, default_bonus)
        text = (
            f"{subject} must make a DC {dc} {self.ability.full_name} saving throw, "
            f"taking ${{{damage}}} {self.damage_type.value} damage on a failed save"
        )
        if self.half:
            text += ", or half as much damage on a successful one"
        return text

    def damage_parts(self) -> list[tuple[DiceExpression | int, FixedOrSource]]:
        return [(self.dice, self.bonus)]


AttackEffect = Annotated[
    Union[DamageEffect, FixedDamageEffect, SpecialEffect, OrEffect, SaveEffect],
    Field(discriminator="effect"),
]
"""Any effect, discriminated on its ``effect`` tag."""


class RiderJoin(StrEnum):
    """How a rider is joined to the effect before it."""

    AND = "and"
    PLUS = "plus"
    ADDITIONAL = "additional"


class Rider(BaseModel):
    """An extra effect appended as its own clause."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    join: RiderJoin = RiderJoin.PLUS
    effect: AttackEffect

    @model_validator(mode="before")
    @classmethod
    def accept_bare_effect(cls, data: Any) -> Any:
        """Allow a rider written as just an effect (joined with 'plus')."""
        if isinstance(data, dict) and isinstance(data.get("effect"), str):
            return {"effect": data}
        return data


def describe_hit(effect: AttackEffect, riders: tuple[Rider, ...], default_bonus: str) -> str:
    """Interpolation source for the hit clause, ending with a period.

    Example:
        ``"${1d6 + str} piercing damage plus ${1d6} poison damage."``
    """
    text = effect.describe(default_bonus)
    for rider in riders:
        clause = rider.effect.describe(default_bonus)
        if rider.join is RiderJoin.AND:
            text += f", and {clause}"
        elif rider.join is RiderJoin.PLUS:
            text += f" plus {clause}"
        else:
            text += f". {clause}"
    return f"{text}."


# =============================================================================
# Usage Limits
# =============================================================================


class Usage(BaseModel):
    """How often a feature or action can be used.

    Attributes:
        kind: Recharge roll, uses per day, uses per turn or rest recharge.
        value: The recharge threshold (5 for 'Recharge 5-6') or use count.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: UsageKind
    value: int | None = Field(default=None, ge=1)

    @model_validator(mode="before")
    @classmethod
    def accept_shorthand(cls, data: Any) -> Any:
        """Accept ``"rest"`` and single-key forms such as ``{"recharge": 5}``."""
        if isinstance(data, str):
            return {"kind": data}
        if isinstance(data, dict) and len(data) == 1:
            ((key, value),) = data.items()
            if key != "kind" and key in {kind.value for kind in UsageKind}:
                return {"kind": key, "value": value}
        return data

    @model_validator(mode="after")
    def check_value(self) -> "Usage":
        """Ensure counted usages have a count and recharge stays on a d6."""
        if self.kind is not UsageKind.REST and self.value is None:
            raise ValueError(f"usage '{self.kind.value}' requires a value")
        if self.kind is UsageKind.RECHARGE and self.value is not None and self.value > 6:
            raise ValueError("recharge value must be between 1 and 6")
        return self

    @property
    def label(self) -> str:
        """Parenthetical shown after the feature name."""
        if self.kind is UsageKind.RECHARGE:
            return "Recharge 6" if self.value == 6 else f"Recharge {self.value}-6"
        if self.kind is UsageKind.PER_DAY:
            return f"{self.value}/Day"
        if self.kind is UsageKind.PER_TURN:
            return f"{self.value}/Turn"
        return "Recharges after a Short or Long Rest"


# =============================================================================
# Weapons
# =============================================================================


VERSATILE_CONDITION = "if used with two hands to make a melee attack"


@dataclass(frozen=True)
class WeaponProfile:
    """Equipment table row for a standard weapon."""

    display_name: str
    bonus: BonusSource
    damage_type: DamageType
    die: Die | None
    dice_count: int = 1
    reach: int | None = 5
    range: int | None = None
    long_range: int | None = None
    versatile_die: Die | None = None
    fixed_damage: bool = False
    target: str = "one target"


class Weapon(StrEnum):
    """Standard weapons."""

    UNARMED_STRIKE = "unarmed_strike"
    CLUB = "club"
    DAGGER = "dagger"
    GREATCLUB = "greatclub"
    HANDAXE = "handaxe"
    JAVELIN = "javelin"
    LIGHT_HAMMER = "light_hammer"
    MACE = "mace"
    QUARTERSTAFF = "quarterstaff"
    SICKLE = "sickle"
    SPEAR = "spear"
    LIGHT_CROSSBOW = "light_crossbow"
    DART = "dart"
    SHORTBOW = "shortbow"
    SLING = "sling"
    BATTLEAXE = "battleaxe"
    FLAIL = "flail"
    GLAIVE = "glaive"
    GREATAXE = "greataxe"
    GREATSWORD = "greatsword"
    HALBERD = "halberd"
    LANCE = "lance"
    LONGSWORD = "longsword"
    MAUL = "maul"
    MORNINGSTAR = "morningstar"
    PIKE = "pike"
    RAPIER = "rapier"
    SCIMITAR = "scimitar"
    SHORTSWORD = "shortsword"
    TRIDENT = "trident"
    WAR_PICK = "war_pick"
    WARHAMMER = "warhammer"
    WHIP = "whip"
    BLOWGUN = "blowgun"
    HAND_CROSSBOW = "hand_crossbow"
    HEAVY_CROSSBOW = "heavy_crossbow"
    LONGBOW = "longbow"
    NET = "net"

    @classmethod
    def _missing_(cls, value: object) -> Weapon | None:
        if isinstance(value, str):
            normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def profile(self) -> WeaponProfile:
        return WEAPON_TABLE[self]

    @property
    def display_name(self) -> str:
        return self.profile.display_name

    def attack(self, magic: int = 0) -> Attack:
        """Build the attack roll for this weapon."""
        profile = self.profile
        return Attack(
            kind=AttackKind.WEAPON,
            bonus=profile.bonus,
            magic=magic,
            reach=profile.reach,
            range=profile.range,
            long_range=profile.long_range,
            target=profile.target,
        )

    def effect(self, size: Size, magic: int = 0) -> AttackEffect:
        """Build the hit effect for this weapon wielded by a creature of ``size``.

        Manufactured weapon dice are multiplied by the size's weapon dice
        multiplier; fixed damage grows by it instead.
        """
        profile = self.profile
        multiplier = size.weapon_dice_multiplier
        if profile.fixed_damage:
            return FixedDamageEffect(
                amount=max(multiplier + magic, 1),
                damage_type=profile.damage_type,
                bonus=profile.bonus if self is Weapon.UNARMED_STRIKE else BonusSource.NONE,
            )
        if profile.die is None:
            return SpecialEffect(
                text=(
                    "The target is ${italic(}restrained${)} until it is freed. A creature can "
                    f"use its action to make a DC {10 + magic} Strength check, freeing itself "
                    "or another creature within its reach on a success. Dealing "
                    f"{5 + magic} slashing damage to the net (AC {10 + magic}) also frees the "
                    "creature without harming it, ending the effect and destroying the net"
                )
            )
        dice = DiceExpression((DiceTerm(profile.dice_count * multiplier, profile.die),), magic)
        if profile.versatile_die is not None:
            alternate = DiceExpression(
                (DiceTerm(profile.dice_count * multiplier, profile.versatile_die),), magic
            )
            return OrEffect(
                dice=dice,
                damage_type=profile.damage_type,
                alternate_dice=alternate,
                condition=VERSATILE_CONDITION,
                bonus=profile.bonus,
            )
        return DamageEffect(dice=dice, damage_type=profile.damage_type, bonus=profile.bonus)

    def action_name(self, magic: int = 0) -> str:
        """Action name, with the magic bonus when there is one ('Longsword +1')."""
        return f"{self.display_name} {magic:+d}" if magic else self.display_name


_S, _D, _B = BonusSource.STR, BonusSource.DEX, BonusSource.BEST
_BLUDGEONING = DamageType.BLUDGEONING
_PIERCING = DamageType.PIERCING
_SLASHING = DamageType.SLASHING

WEAPON_TABLE: dict[Weapon, WeaponProfile] = {
    Weapon.UNARMED_STRIKE: WeaponProfile(
        "Unarmed Strike", _S, _BLUDGEONING, None, fixed_damage=True
    ),
    Weapon.CLUB: WeaponProfile("Club", _S, _BLUDGEONING, Die.D4),
    Weapon.DAGGER: WeaponProfile("Dagger", _B, _PIERCING, Die.D4, range=20, long_range=60),
    Weapon.GREATCLUB: WeaponProfile("Greatclub", _S, _BLUDGEONING, Die.D8),
    Weapon.HANDAXE: WeaponProfile("Handaxe", _S, _SLASHING, Die.D6, range=20, long_range=60),
    Weapon.JAVELIN: WeaponProfile("Javelin", _S, _PIERCING, Die.D6, range=30, long_range=120),
    Weapon.LIGHT_HAMMER: WeaponProfile(
        "Light Hammer", _S, _BLUDGEONING, Die.D4, range=20, long_range=60
    ),
    Weapon.MACE: WeaponProfile("Mace", _S, _BLUDGEONING, Die.D6),
    Weapon.QUARTERSTAFF: WeaponProfile(
        "Quarterstaff", _S, _BLUDGEONING, Die.D6, versatile_die=Die.D8
    ),
    Weapon.SICKLE: WeaponProfile("Sickle", _S, _SLASHING, Die.D4),
    Weapon.SPEAR: WeaponProfile(
        "Spear", _S, _PIERCING, Die.D6, range=20, long_range=60, versatile_die=Die.D8
    ),
    Weapon.LIGHT_CROSSBOW: WeaponProfile(
        "Light Crossbow", _D, _PIERCING, Die.D8, reach=None, range=80, long_range=320
    ),
    Weapon.DART: WeaponProfile("Dart", _B, _PIERCING, Die.D4, reach=None, range=20, long_range=60),
    Weapon.SHORTBOW: WeaponProfile(
        "Shortbow", _D, _PIERCING, Die.D6, reach=None, range=80, long_range=320
    ),
    Weapon.SLING: WeaponProfile(
        "Sling", _D, _BLUDGEONING, Die.D4, reach=None, range=30, long_range=120
    ),
    Weapon.BATTLEAXE: WeaponProfile("Battleaxe", _S, _SLASHING, Die.D8, versatile_die=Die.D10),
    Weapon.FLAIL: WeaponProfile("Flail", _S, _BLUDGEONING, Die.D8),
    Weapon.GLAIVE: WeaponProfile("Glaive", _S, _SLASHING, Die.D10, reach=10),
    Weapon.GREATAXE: WeaponProfile("Greataxe", _S, _SLASHING, Die.D12),
    Weapon.GREATSWORD: WeaponProfile("Greatsword", _S, _SLASHING, Die.D6, dice_count=2),
    Weapon.HALBERD: WeaponProfile("Halberd", _S, _SLASHING, Die.D10, reach=10),
    Weapon.LANCE: WeaponProfile("Lance", _S, _PIERCING, Die.D12, reach=10),
    Weapon.LONGSWORD: WeaponProfile("Longsword", _S, _SLASHING, Die.D8, versatile_die=Die.D10),
    Weapon.MAUL: WeaponProfile("Maul", _S, _BLUDGEONING, Die.D6, dice_count=2),
    Weapon.MORNINGSTAR: WeaponProfile("Morningstar", _S, _PIERCING, Die.D8),
    Weapon.PIKE: WeaponProfile("Pike", _S, _PIERCING, Die.D10, reach=10),
    Weapon.RAPIER: WeaponProfile("Rapier", _B, _PIERCING, Die.D8),
    Weapon.SCIMITAR: WeaponProfile("Scimitar", _B, _SLASHING, Die.D6),
    Weapon.SHORTSWORD: WeaponProfile("Shortsword", _B, _PIERCING, Die.D6),
    Weapon.TRIDENT: WeaponProfile(
        "Trident", _S, _PIERCING, Die.D6, range=20, long_range=60, versatile_die=Die.D8
    ),
    Weapon.WAR_PICK: WeaponProfile("War Pick", _S, _PIERCING, Die.D8),
    Weapon.WARHAMMER: WeaponProfile(
        "Warhammer", _S, _BLUDGEONING, Die.D8, versatile_die=Die.D10
    ),
    Weapon.WHIP: WeaponProfile("Whip", _B, _SLASHING, Die.D4, reach=10),
    Weapon.BLOWGUN: WeaponProfile(
        "Blowgun", _D, _PIERCING, None, reach=None, range=25, long_range=100, fixed_damage=True
    ),
    Weapon.HAND_CROSSBOW: WeaponProfile(
        "Hand Crossbow", _D, _PIERCING, Die.D6, reach=None, range=30, long_range=120
    ),
    Weapon.HEAVY_CROSSBOW: WeaponProfile(
        "Heavy Crossbow", _D, _PIERCING, Die.D10, reach=None, range=100, long_range=400
    ),
    Weapon.LONGBOW: WeaponProfile(
        "Longbow", _D, _PIERCING, Die.D8, reach=None, range=150, long_range=600
    ),
    Weapon.NET: WeaponProfile(
        "Net",
        _D,
        _BLUDGEONING,
        None,
        reach=None,
        range=5,
        long_range=15,
        target="one Large or smaller creature that is not formless",
    ),
}
"""Equipment table: bonus source, damage, reach and range per weapon."""


def average_damage(
    effect: AttackEffect,
    riders: tuple[Rider, ...],
    modifier_for: dict[str, int],
    default_bonus: str,
) -> Fraction:
    """Average damage of a hit, including damaging riders.

    Args:
        effect: The primary effect.
        riders: Additional effects.
        modifier_for: Values of the modifier variables (``str``, ``atk`` ...).
        default_bonus: Variable used for the ``default`` bonus source.
    """
    total = Fraction(0)
    for part in (effect, *(rider.effect for rider in riders)):
        for base, bonus in part.damage_parts():
            amount = base.average if isinstance(base, DiceExpression) else Fraction(base)
            if isinstance(bonus, int):
                amount += bonus
            else:
                variable = bonus.variable(default_bonus)
                if variable is not None:
                    amount += modifier_for.get(variable, 0)
            total += max(amount, Fraction(0))
    return total


__all__ = [
    "Dice",
    "number_word",
    "BonusSource",
    "AttackKind",
    "Attack",
    "DamageEffect",
    "FixedDamageEffect",
    "SpecialEffect",
    "OrEffect",
    "SaveEffect",
    "AttackEffect",
    "RiderJoin",
    "Rider",
    "describe_hit",
    "Usage",
    "Weapon",
    "WeaponProfile",
    "WEAPON_TABLE",
    "VERSATILE_CONDITION",
    "average_damage",
]
