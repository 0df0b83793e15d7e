"""Tests for secondary statistic derivation."""

from __future__ import annotations

from fractions import Fraction
from typing import Any

import pytest

from monster_forge.core.config import DerivationSettings
from monster_forge.core.exceptions import CreatureHasNoNameError, FeatureInterpolationError
from monster_forge.engine.derivation import (
    CHALLENGE_TABLE,
    ability_modifier,
    armor_class,
    attack_description,
    compute_challenge_rating,
    defensive_rating,
    derive,
    format_challenge_rating,
    hit_dice,
    hit_points,
    modifiers,
    multiattack_text,
    nearest_rating,
    offensive_rating,
    ordinal,
    passive_perception,
    proficiency_bonus,
    skill_bonus,
    spell_attack_bonus,
    spell_save_dc,
    spell_slots,
    subject_names,
)
from monster_forge.engine.dice import parse_dice_expression
from monster_forge.models.attacks import Attack, DamageEffect, Weapon
from monster_forge.models.creature import Action, Creature, Feature
from monster_forge.models.enums import (
    Ability,
    ArmorKind,
    DamageType,
    NonmagicalVariant,
    Size,
    Skill,
    SpellcastingStyle,
)
from monster_forge.models.structured_text import Span, SpanStyle


def make_creature(**fields: Any) -> Creature:
    """Build a creature, merging partial ability scores into the defaults."""
    scores = fields.pop("scores", {})
    creature = Creature(**fields)
    creature.scores.update(scores)
    return creature


def make_goblin() -> Creature:
    return make_creature(
        name="Goblin",
        size=Size.SMALL,
        scores={Ability.STR: 8, Ability.DEX: 14, Ability.WIS: 8, Ability.CHA: 8},
        armor=ArmorKind.LEATHER,
        shield=True,
        hit_dice_count=2,
        skills={Skill.STEALTH: 1},
        features=[
            Feature(
                name="Nimble Escape",
                description=(
                    "${Subj} can take the Disengage or Hide action as a bonus action "
                    "on each of ${posspro} turns."
                ),
            )
        ],
        actions=[
            Action(name="Scimitar", weapon=Weapon.SCIMITAR),
            Action(name="Shortbow", weapon=Weapon.SHORTBOW),
        ],
    )


class TestAbilities:
    """Tests for modifiers, proficiency and bonuses."""

    @pytest.mark.parametrize(
        ("score", "modifier"),
        [(1, -5), (8, -1), (9, -1), (10, 0), (11, 0), (14, 2), (20, 5), (30, 10)],
    )
    def test_ability_modifier(self, score: int, modifier: int) -> None:
        """Test modifiers round toward negative infinity."""
        assert ability_modifier(score) == modifier

    @pytest.mark.parametrize(
        ("rating", "bonus"),
        [
            (Fraction(0), 2),
            (Fraction(1, 4), 2),
            (Fraction(4), 2),
            (Fraction(5), 3),
            (Fraction(8), 3),
            (Fraction(9), 4),
            (Fraction(17), 6),
            (Fraction(30), 9),
        ],
    )
    def test_proficiency_bonus(self, rating: Fraction, bonus: int) -> None:
        """Test proficiency grows every four ratings from CR 5."""
        assert proficiency_bonus(rating) == bonus

    def test_modifier_variables(self) -> None:
        """Test atk is the better of str and dex."""
        values = modifiers(make_goblin())

        assert values["str"] == -1
        assert values["dex"] == 2
        assert values["atk"] == 2

    def test_atk_prefers_dexterity_on_tie(self) -> None:
        """Test equal scores resolve to dexterity."""
        creature = make_creature(scores={Ability.STR: 16, Ability.DEX: 16})

        assert modifiers(creature)["atk"] == modifiers(creature)["dex"]

    def test_skill_expertise(self) -> None:
        """Test expertise doubles proficiency."""
        creature = make_creature(scores={Ability.DEX: 14}, skills={Skill.STEALTH: 2})

        assert skill_bonus(creature, Skill.STEALTH, 2) == 6
        assert skill_bonus(creature, Skill.ACROBATICS, 2) == 2

    def test_passive_perception(self) -> None:
        """Test passive Perception is 10 plus the Perception bonus."""
        creature = make_creature(scores={Ability.WIS: 14}, skills={Skill.PERCEPTION: 1})

        assert passive_perception(creature, 2) == 14

    def test_spell_bonuses_fall_back_to_charisma(self) -> None:
        """Test spell_atk and spell_dc without spellcasting use charisma."""
        creature = make_creature(scores={Ability.CHA: 14})

        assert spell_attack_bonus(creature, 2) == 4
        assert spell_save_dc(creature, 2) == 12


class TestArmorClass:
    """Tests for armor class derivation."""

    def test_unarmored(self) -> None:
        """Test 10 plus dexterity and no description."""
        assert armor_class(make_creature(scores={Ability.DEX: 13})) == (11, None)

    def test_light_armor_and_shield(self) -> None:
        """Test leather plus dexterity plus shield."""
        assert armor_class(make_goblin()) == (15, "leather armor, shield")

    def test_medium_armor_caps_dexterity(self) -> None:
        """Test medium armor lets at most +2 through."""
        creature = make_creature(scores={Ability.DEX: 18}, armor=ArmorKind.HALF_PLATE)

        assert armor_class(creature) == (17, "half plate")

    def test_heavy_armor_ignores_dexterity(self) -> None:
        """Test heavy armor ignores dexterity entirely."""
        creature = make_creature(scores={Ability.DEX: 8}, armor=ArmorKind.CHAIN_MAIL)

        assert armor_class(creature) == (16, "chain mail")

    def test_natural_armor_bonus(self) -> None:
        """Test natural armor adds its bonus to 10 plus dexterity."""
        creature = make_creature(
            scores={Ability.DEX: 12}, armor=ArmorKind.NATURAL, armor_bonus=3
        )

        assert armor_class(creature) == (14, "natural armor")

    def test_override(self) -> None:
        """Test a pinned armor class wins."""
        creature = make_creature(
            armor=ArmorKind.PLATE,
            armor_class_override=21,
            armor_class_description="plate, ring of protection",
        )

        assert armor_class(creature) == (21, "plate, ring of protection")


class TestHitPoints:
    """Tests for hit dice and hit points."""

    def test_small_creature(self) -> None:
        """Test six d6 hit dice with a constitution bonus."""
        creature = make_creature(size=Size.SMALL, hit_dice_count=6, scores={Ability.CON: 12})

        assert hit_dice(creature).render() == "6d6 + 6"
        assert hit_points(creature) == 24

    def test_average_floored_per_die(self) -> None:
        """Test each die contributes its floored average."""
        assert hit_points(make_goblin()) == 6

    def test_minimum(self) -> None:
        """Test hit points never drop below one."""
        creature = make_creature(size=Size.TINY, scores={Ability.CON: 1})

        assert hit_points(creature) == 1

    def test_override(self) -> None:
        """Test pinned hit points win."""
        assert hit_points(make_creature(hit_points_override=55)) == 55

    def test_hit_die_follows_size(self) -> None:
        """Test the hit die tracks the current size."""
        creature = make_creature(size=Size.LARGE, hit_dice_count=3)

        assert hit_dice(creature).render() == "3d10"


class TestChallengeRating:
    """Tests for the challenge rating table and computation."""

    def test_table_is_ordered(self) -> None:
        """Test the table runs from CR 0 to CR 30."""
        ratings = [row.rating for row in CHALLENGE_TABLE]

        assert ratings == sorted(ratings)
        assert ratings[0] == 0
        assert ratings[-1] == 30

    @pytest.mark.parametrize(
        ("value", "rating"),
        [
            (Fraction(5, 16), Fraction(1, 4)),
            (Fraction(3, 16), Fraction(1, 4)),
            (Fraction(5, 2), Fraction(3)),
            (Fraction(0), Fraction(0)),
            (Fraction(40), Fraction(30)),
        ],
    )
    def test_nearest_rating(self, value: Fraction, rating: Fraction) -> None:
        """Test rounding to the nearest tabled rating, ties upward."""
        assert nearest_rating(value) == rating

    def test_format(self) -> None:
        """Test the challenge line wording."""
        assert format_challenge_rating(Fraction(1, 4)) == "1/4 (50 XP)"
        assert format_challenge_rating(Fraction(4)) == "4 (1,100 XP)"

    def test_defensive_rating_armor_adjustment(self) -> None:
        """Test each two points of AC above the row move one step."""
        assert defensive_rating(make_goblin(), Fraction(0)) == Fraction(1, 8)

    def test_defensive_rating_resistances(self) -> None:
        """Test resistances raise effective hit points."""
        plain = make_creature(hit_points_override=30, armor_class_override=13)
        resistant = make_creature(
            hit_points_override=30,
            armor_class_override=13,
            nonmagical_resistance=NonmagicalVariant.NONMAGICAL,
        )

        assert defensive_rating(plain, Fraction(0)) == Fraction(1, 8)
        assert defensive_rating(resistant, Fraction(0)) == Fraction(1, 2)

    def test_offensive_rating(self) -> None:
        """Test damage per round and attack bonus."""
        assert offensive_rating(make_goblin(), 2) == Fraction(1, 2)

    def test_offensive_rating_accuracy_adjustment(self) -> None:
        """Test a high attack bonus raises the rating."""
        creature = make_creature(
            actions=[
                Action(
                    name="Claw",
                    attack=Attack(reach=5, bonus=9),
                    effect=DamageEffect(
                        dice=parse_dice_expression("1d4"),
                        damage_type=DamageType.SLASHING,
                        bonus=0,
                    ),
                )
            ]
        )

        assert offensive_rating(creature, 2) == Fraction(1)

    def test_no_attacks(self) -> None:
        """Test a creature without attacks rates 0 offensively."""
        assert offensive_rating(make_creature(), 2) == Fraction(0)

    def test_goblin(self) -> None:
        """Test the goblin settles at CR 1/4."""
        assert compute_challenge_rating(make_goblin(), iterations=8) == Fraction(1, 4)


class TestAttackText:
    """Tests for generated attack and multiattack text."""

    def test_weapon_attack_text(self) -> None:
        """Test a weapon action generates interpolation source."""
        creature = make_goblin()

        text = attack_description(creature.actions[0], creature)

        assert text == (
            "${italic(}Melee Weapon Attack:${)} ${+atk + prof} to hit, reach 5 ft., "
            "one target. ${italic(}Hit:${)} ${1d6 + atk} slashing damage."
        )

    def test_weapon_scales_with_size(self) -> None:
        """Test a large wielder doubles weapon dice."""
        creature = make_creature(
            size=Size.LARGE, actions=[Action(name="Greataxe", weapon=Weapon.GREATAXE)]
        )

        assert "${2d12 + str}" in attack_description(creature.actions[0], creature)

    def test_non_attack(self) -> None:
        """Test free-text actions have no generated text."""
        creature = make_creature(actions=[Action(name="Roar", description="It roars.")])

        assert attack_description(creature.actions[0], creature) is None

    def test_multiattack_two_weapons(self) -> None:
        """Test multiattack text naming two weapons."""
        creature = make_goblin()
        for action in creature.actions:
            action.multiattack = 1

        assert multiattack_text(creature) == (
            "${Subj} makes two attacks: one with ${posspro} scimitar "
            "and one with ${posspro} shortbow."
        )

    def test_multiattack_one_weapon(self) -> None:
        """Test multiattack text for repeated use of one weapon."""
        creature = make_goblin()
        creature.actions[0].multiattack = 3

        assert multiattack_text(creature) == "${Subj} makes three scimitar attacks."

    def test_no_multiattack(self) -> None:
        """Test fewer than two attacks produce no multiattack."""
        creature = make_goblin()
        creature.actions[0].multiattack = 1

        assert multiattack_text(creature) is None


class TestSpellcasting:
    """Tests for spell slot tables and ordinals."""

    def test_full_caster_slots(self) -> None:
        """Test a 5th-level full caster."""
        assert spell_slots(SpellcastingStyle.FULL, 5) == {1: 4, 2: 3, 3: 2}

    def test_first_level_half_caster_has_none(self) -> None:
        """Test half casters gain slots at level 2."""
        assert spell_slots(SpellcastingStyle.HALF, 1) == {}
        assert spell_slots(SpellcastingStyle.HALF, 2) == {1: 2}

    def test_twentieth_level(self) -> None:
        """Test the last row of the table is reachable."""
        assert spell_slots(SpellcastingStyle.FULL, 20)[9] == 1

    @pytest.mark.parametrize(
        ("number", "text"),
        [(1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (11, "11th"), (13, "13th"), (21, "21st")],
    )
    def test_ordinal(self, number: int, text: str) -> None:
        """Test ordinal suffixes."""
        assert ordinal(number) == text


class TestSubjectNames:
    """Tests for the subject name variables."""

    def test_defaults(self) -> None:
        """Test names derived from the creature name."""
        assert subject_names(make_goblin()) == {
            "subj": "the goblin",
            "Subj": "The goblin",
            "poss": "the goblin's",
            "Poss": "The goblin's",
        }

    def test_proper_name(self) -> None:
        """Test an overriding subject name feeds the other forms."""
        names = subject_names(make_creature(name="Tiamat", subject_name="Tiamat"))

        assert names["Subj"] == "Tiamat"
        assert names["poss"] == "Tiamat's"


class TestDerive:
    """Tests for the full derivation pass."""

    def test_goblin(self) -> None:
        """Test derived numbers and interpolated text for the goblin."""
        derived = derive(make_goblin(), DerivationSettings())

        assert derived.challenge_rating == Fraction(1, 4)
        assert derived.proficiency_bonus == 2
        assert derived.armor_class == 15
        assert derived.hit_points == 6
        assert derived.hit_dice.render() == "2d6"

        escape = derived.features[0]
        assert escape.name == "Nimble Escape"
        assert escape.text[0].body[0].content.startswith("The goblin can take")

        scimitar = derived.actions[0]
        assert scimitar.text[0].heading == (
            Span(style=SpanStyle.BOLD_ITALIC, content="Scimitar."),
        )
        assert scimitar.text[0].body == (
            Span(style=SpanStyle.ITALIC, content="Melee Weapon Attack:"),
            Span(content=" +4 to hit, reach 5 ft., one target. "),
            Span(style=SpanStyle.ITALIC, content="Hit:"),
            Span(content=" 5 (1d6 + 2) slashing damage."),
        )

    def test_pinned_challenge_rating(self) -> None:
        """Test an override skips the computation and sets proficiency."""
        creature = make_goblin()
        creature.challenge_rating_override = Fraction(5)

        derived = derive(creature, DerivationSettings())

        assert derived.challenge_rating == Fraction(5)
        assert derived.proficiency_bonus == 3

    def test_multiattack_comes_first(self) -> None:
        """Test the synthesized multiattack leads the actions."""
        creature = make_goblin()
        creature.actions[0].multiattack = 2

        derived = derive(creature, DerivationSettings())

        assert [action.name for action in derived.actions] == [
            "Multiattack",
            "Scimitar",
            "Shortbow",
        ]

    def test_requires_name(self) -> None:
        """Test derivation needs a name."""
        with pytest.raises(CreatureHasNoNameError):
            derive(make_creature(), DerivationSettings())

    def test_bad_feature_text(self) -> None:
        """Test interpolation failures name the feature."""
        creature = make_goblin()
        creature.features.append(Feature(name="Broken", description="${nope}"))

        with pytest.raises(FeatureInterpolationError) as exc_info:
            derive(creature, DerivationSettings())

        assert exc_info.value.feature == "Broken"
        assert exc_info.value.details["kind"] == "unknown_variable"
