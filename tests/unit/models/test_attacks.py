"""Tests for attack, effect, usage and weapon models."""

from __future__ import annotations

from fractions import Fraction

import pytest
from pydantic import ValidationError

from monster_forge.engine.dice import parse_dice_expression
from monster_forge.models.attacks import (
    Attack,
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
    average_damage,
    describe_hit,
    number_word,
)
from monster_forge.models.enums import Ability, Size, UsageKind


class TestAttack:
    """Tests for the attack roll line."""

    def test_melee(self) -> None:
        """Test a melee weapon attack uses strength."""
        attack = Attack(reach=5)

        assert attack.default_bonus == "str"
        assert attack.describe() == (
            "${italic(}Melee Weapon Attack:${)} ${+str + prof} to hit, reach 5 ft., one target."
        )

    def test_ranged(self) -> None:
        """Test a ranged attack uses dexterity and long range."""
        attack = Attack(range=80, long_range=320)

        assert attack.default_bonus == "dex"
        assert "range 80/320 ft., one target" in attack.describe()
        assert attack.describe().startswith("${italic(}Ranged Weapon Attack:")

    def test_melee_or_ranged(self) -> None:
        """Test thrown weapons use the better ability."""
        attack = Attack(reach=5, range=20, long_range=60)

        assert attack.default_bonus == "atk"
        assert "reach 5 ft. or range 20/60 ft., one target" in attack.describe()

    def test_spell_attack(self) -> None:
        """Test spell attacks use the spell attack bonus."""
        attack = Attack(kind="spell", bonus="spell", range=120)

        assert attack.describe().startswith("${italic(}Ranged Spell Attack:${)} ${+spell_atk}")

    def test_fixed_bonus_and_magic(self) -> None:
        """Test a fixed bonus plus a magic bonus."""
        assert "${+7 + 1}" in Attack(reach=5, bonus=7, magic=1).describe()

    def test_bonus_source_accepts_ability_names(self) -> None:
        """Test full ability names map to bonus sources."""
        assert BonusSource("strength") is BonusSource.STR


class TestEffects:
    """Tests for hit effects and riders."""

    def test_damage(self) -> None:
        """Test rolled damage with the default bonus."""
        effect = DamageEffect(dice="1d6", damage_type="slashing")

        assert effect.describe("str") == "${1d6 + str} slashing damage"

    def test_fixed_damage(self) -> None:
        """Test fixed damage without a bonus."""
        effect = FixedDamageEffect(amount=1, damage_type="piercing", bonus="none")

        assert effect.describe("dex") == "${1} piercing damage"

    def test_or_effect(self) -> None:
        """Test versatile wording."""
        effect = OrEffect(
            dice="1d8",
            damage_type="slashing",
            alternate_dice="1d10",
            condition="if used with two hands",
        )

        assert effect.describe("str") == (
            "${1d8 + str} slashing damage, or ${1d10 + str} slashing damage if used with two hands"
        )

    def test_save_effect(self) -> None:
        """Test a saving throw effect falls back to spell_dc."""
        effect = SaveEffect(ability="dex", dice="8d6", damage_type="fire", area=True)

        assert effect.describe("str") == (
            "Each target in the area must make a DC ${spell_dc} Dexterity saving throw, "
            "taking ${8d6} fire damage on a failed save, or half as much damage on a "
            "successful one"
        )

    def test_riders(self) -> None:
        """Test rider joins."""
        poison = Rider(effect=DamageEffect(dice="1d6", damage_type="poison", bonus="none"))
        grapple = Rider(
            join=RiderJoin.ADDITIONAL, effect=SpecialEffect(text="The target is grappled")
        )
        bite = DamageEffect(dice="1d8", damage_type="piercing")

        assert describe_hit(bite, (poison, grapple), "str") == (
            "${1d8 + str} piercing damage plus ${1d6} poison damage. The target is grappled."
        )

    def test_rider_accepts_bare_effect(self) -> None:
        """Test a rider can be written as just its effect."""
        rider = Rider.model_validate({"effect": "damage", "dice": "1d4", "damage_type": "fire"})

        assert rider.join is RiderJoin.PLUS
        assert isinstance(rider.effect, DamageEffect)

    def test_rider_keeps_model_and_nested_effects(self) -> None:
        """Test effect instances and nested effect objects are not wrapped again."""
        poison = DamageEffect(dice="1d6", damage_type="poison")
        from_model = Rider(effect=poison)
        from_dict = Rider.model_validate(
            {"join": "and", "effect": {"effect": "special", "text": "The target is prone"}}
        )

        assert from_model.effect == poison
        assert from_dict.join is RiderJoin.AND
        assert from_dict.effect == SpecialEffect(text="The target is prone")

    def test_invalid_dice(self) -> None:
        """Test dice fields validate notation."""
        with pytest.raises(ValidationError):
            DamageEffect(dice="1d7", damage_type="fire")

    def test_dice_serialize_as_notation(self) -> None:
        """Test dice dump back to notation."""
        effect = DamageEffect(dice="2d6 + 1", damage_type="fire")

        assert effect.model_dump(mode="json")["dice"] == "2d6 + 1"

    def test_average_damage(self) -> None:
        """Test modifier and rider damage are included."""
        bite = DamageEffect(dice="1d8", damage_type="piercing")
        poison = Rider(effect=DamageEffect(dice="2d6", damage_type="poison", bonus="none"))

        assert average_damage(bite, (poison,), {"str": 3}, "str") == Fraction(29, 2)

    def test_average_damage_never_negative(self) -> None:
        """Test a large penalty floors at zero."""
        effect = DamageEffect(dice="1d4", damage_type="bludgeoning")

        assert average_damage(effect, (), {"str": -5}, "str") == 0


class TestUsage:
    """Tests for usage limits."""

    @pytest.mark.parametrize(
        ("data", "label"),
        [
            ({"recharge": 5}, "Recharge 5-6"),
            ({"recharge": 6}, "Recharge 6"),
            ({"per_day": 3}, "3/Day"),
            ({"per_turn": 1}, "1/Turn"),
            ("rest", "Recharges after a Short or Long Rest"),
        ],
    )
    def test_label(self, data: object, label: str) -> None:
        """Test shorthand forms and their labels."""
        assert Usage.model_validate(data).label == label

    def test_counted_usage_needs_value(self) -> None:
        """Test per-day usage without a count."""
        with pytest.raises(ValidationError):
            Usage(kind=UsageKind.PER_DAY)

    def test_recharge_stays_on_a_d6(self) -> None:
        """Test recharge values above 6."""
        with pytest.raises(ValidationError):
            Usage(kind=UsageKind.RECHARGE, value=7)


class TestWeapon:
    """Tests for the standard weapon table."""

    def test_lookup(self) -> None:
        """Test natural spellings resolve."""
        assert Weapon("Light Crossbow") is Weapon.LIGHT_CROSSBOW
        assert Weapon("war-pick") is Weapon.WAR_PICK

    def test_every_weapon_has_a_profile(self) -> None:
        """Test the equipment table is complete."""
        assert all(weapon.profile.display_name for weapon in Weapon)

    def test_scimitar(self) -> None:
        """Test a finesse weapon uses the better ability."""
        attack = Weapon.SCIMITAR.attack()
        effect = Weapon.SCIMITAR.effect(Size.SMALL)

        assert attack.bonus is BonusSource.BEST
        assert attack.reach == 5
        assert isinstance(effect, DamageEffect)
        assert effect.dice == parse_dice_expression("1d6")

    def test_size_scaling(self) -> None:
        """Test huge wielders triple the dice."""
        effect = Weapon.GREATSWORD.effect(Size.HUGE)

        assert effect.dice.render() == "6d6"

    def test_versatile(self) -> None:
        """Test versatile weapons use the or-effect."""
        effect = Weapon.LONGSWORD.effect(Size.MEDIUM, magic=1)

        assert isinstance(effect, OrEffect)
        assert effect.dice.render() == "1d8 + 1"
        assert effect.alternate_dice.render() == "1d10 + 1"

    def test_unarmed_strike(self) -> None:
        """Test unarmed strikes deal fixed damage."""
        effect = Weapon.UNARMED_STRIKE.effect(Size.MEDIUM)

        assert isinstance(effect, FixedDamageEffect)
        assert effect.amount == 1

    def test_net(self) -> None:
        """Test the net restrains instead of dealing damage."""
        assert isinstance(Weapon.NET.effect(Size.MEDIUM), SpecialEffect)

    def test_action_name(self) -> None:
        """Test magic weapons show their bonus."""
        assert Weapon.LONGSWORD.action_name() == "Longsword"
        assert Weapon.LONGSWORD.action_name(2) == "Longsword +2"


class TestNumberWord:
    """Tests for number_word."""

    def test_words(self) -> None:
        """Test small counts are spelled out."""
        assert number_word(2) == "two"
        assert number_word(10) == "ten"
        assert number_word(12) == "12"


class TestSaveEffectDefaults:
    """Tests for SaveEffect defaults."""

    def test_no_bonus_by_default(self) -> None:
        """Test save damage adds no modifier unless asked."""
        effect = SaveEffect(ability=Ability.CON, dice="2d6", damage_type="poison", dc=11)

        assert effect.describe("str").startswith("The target must make a DC 11 Constitution")
        assert average_damage(effect, (), {"str": 4}, "str") == 7
