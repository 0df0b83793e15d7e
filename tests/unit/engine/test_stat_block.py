"""Tests for stat block projection."""

from __future__ import annotations

import pytest

from monster_forge.core.exceptions import CreatureError
from monster_forge.engine.interpreter import CreatureInterpreter
from monster_forge.engine.stat_block import (
    ability_display,
    and_join,
    damage_line,
    languages_line,
    project,
    saving_throws_line,
    senses_line,
    size_type_alignment,
    skills_line,
    speed_line,
)
from monster_forge.models.creature import Creature
from monster_forge.models.enums import (
    Ability,
    CreatureType,
    DamageType,
    NonmagicalVariant,
    Size,
    Skill,
)


class TestFormatting:
    """Tests for small formatting helpers."""

    @pytest.mark.parametrize(
        ("items", "text"),
        [
            ([], ""),
            (["Abyssal"], "Abyssal"),
            (["Abyssal", "Infernal"], "Abyssal and Infernal"),
            (["a", "b", "c"], "a, b, and c"),
        ],
    )
    def test_and_join(self, items: list[str], text: str) -> None:
        """Test list joining with a serial comma."""
        assert and_join(items) == text

    @pytest.mark.parametrize(
        ("score", "text"), [(14, "14 (+2)"), (8, "8 (-1)"), (10, "10 (+0)"), (30, "30 (+10)")]
    )
    def test_ability_display(self, score: int, text: str) -> None:
        """Test scores show a signed modifier."""
        assert ability_display(score) == text

    def test_size_type_alignment(self) -> None:
        """Test the line under the name."""
        creature = Creature(
            size=Size.SMALL,
            creature_type=CreatureType.HUMANOID,
            subtype="goblinoid",
            alignment="neutral evil",
        )

        assert size_type_alignment(creature) == "Small humanoid (goblinoid), neutral evil"

    def test_size_type_alignment_defaults(self) -> None:
        """Test a creature with no type set."""
        assert size_type_alignment(Creature(size=Size.TINY)) == "Tiny creature, unaligned"


class TestLines:
    """Tests for the individual stat block lines."""

    def test_speed(self) -> None:
        """Test walking speed first, then the other modes in order."""
        creature = Creature(speeds={"walk": 30, "swim": 30, "fly": 60}, hover=True)

        assert speed_line(creature) == "30 ft., fly 60 ft. (hover), swim 30 ft."

    def test_speed_without_walking(self) -> None:
        """Test walking speed is printed even when absent."""
        creature = Creature(speeds={"fly": 30}, speed_notes="in bat form")

        assert speed_line(creature) == "0 ft., fly 30 ft. (in bat form)"

    def test_saving_throws(self) -> None:
        """Test saves list in ability order."""
        creature = Creature(saves=[Ability.WIS, Ability.DEX])
        creature.scores.update({Ability.DEX: 14, Ability.WIS: 12})

        assert saving_throws_line(creature, 2) == "Dex +4, Wis +3"
        assert saving_throws_line(Creature(), 2) is None

    def test_skills(self) -> None:
        """Test skills list alphabetically."""
        creature = Creature(skills={Skill.STEALTH: 1, Skill.PERCEPTION: 1})
        creature.scores[Ability.DEX] = 14

        assert skills_line(creature, 2) == "Perception +2, Stealth +4"
        assert skills_line(Creature(), 2) is None

    def test_damage_line(self) -> None:
        """Test damage types in listing order and the nonmagical clause."""
        line = damage_line(
            [DamageType.FIRE, DamageType.BLUDGEONING], [], NonmagicalVariant.NONMAGICAL
        )

        assert line == (
            "bludgeoning, fire; bludgeoning, piercing, and slashing from nonmagical attacks"
        )

    def test_damage_line_custom(self) -> None:
        """Test custom text follows a semicolon."""
        assert damage_line([DamageType.POISON], ["damage from spells"]) == (
            "poison; damage from spells"
        )
        assert damage_line([], []) is None

    def test_senses(self) -> None:
        """Test senses in order, then passive Perception."""
        creature = Creature(senses={"darkvision": 60, "blindsight": 10}, blind_beyond=True)

        assert senses_line(creature, 2) == (
            "blindsight 10 ft. (blind beyond this radius), darkvision 60 ft., "
            "passive Perception 10"
        )

    def test_languages(self) -> None:
        """Test spoken, understood and telepathic languages."""
        creature = Creature(
            languages=["Common"],
            unspoken_languages=["Abyssal", "Infernal"],
            telepathy=120,
        )

        assert languages_line(creature) == (
            "Common, understands Abyssal and Infernal but can't speak, telepathy 120 ft."
        )
        assert languages_line(Creature()) is None


class TestProject:
    """Tests for the full projection."""

    def test_requires_derivation(self) -> None:
        """Test an underived creature cannot be projected."""
        with pytest.raises(CreatureError):
            project(Creature(name="Goblin"))

    def test_goblin(self, interpreter: CreatureInterpreter, goblin_document: str) -> None:
        """Test every line of the goblin's stat block."""
        block = interpreter.create(goblin_document)

        assert block.name == "Goblin"
        assert block.size_type_alignment == "Small humanoid (goblinoid), neutral evil"
        assert block.armor_class == "15 (leather armor, shield)"
        assert block.hit_points == "6 (2d6)"
        assert block.speed == "30 ft."
        assert block.strength == "8 (-1)"
        assert block.dexterity == "14 (+2)"
        assert block.saving_throws is None
        assert block.skills == "Stealth +4"
        assert block.senses == "darkvision 60 ft., passive Perception 9"
        assert block.languages == "Common, Goblin"
        assert block.challenge_rating == "1/4 (50 XP)"
        assert block.proficiency_bonus == "+2"
        assert [entry.name for entry in block.features] == ["Nimble Escape"]
        assert [entry.name for entry in block.actions] == ["Scimitar", "Shortbow"]

    def test_json_form(self, interpreter: CreatureInterpreter, goblin_document: str) -> None:
        """Test the JSON dump uses style and block tags."""
        dumped = interpreter.create(goblin_document).model_dump(mode="json")

        heading = dumped["actions"][0]["text"][0]["heading"]
        assert heading == [{"style": "bold-italic", "content": "Scimitar."}]
        assert dumped["actions"][0]["text"][0]["block"] == "paragraph"
