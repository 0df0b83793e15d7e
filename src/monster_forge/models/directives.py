"""Directive models and the directive document parser.

A creature is described by an ordered list of directives. Each directive is
a small pydantic model tagged by its ``directive`` field; together they form
the ``Directive`` discriminated union.

Documents are JSON lists whose first entry is the format version. Entries
may be written compactly::

    [
        {"version": [1.0]},
        {"name": "Goblin"},
        "small",
        {"dex": 14},
        {"armor": ["leather"]},
        {"skills": ["stealth"]},
        {"weapon": {"weapon": "scimitar", "multiattack": 1}}
    ]

A bare string is a directive without payload; a scalar fills the first
field; a list fills the fields in declaration order; an object names them.
"""

from __future__ import annotations

import json
from fractions import Fraction
from typing import Annotated, Any, ClassVar, Literal, Union, get_args

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from monster_forge.core.constants import (
    CHALLENGE_RATINGS,
    MIN_ABILITY_SCORE,
    MONSTER_ABILITY_SCORE_CAP,
)
from monster_forge.core.exceptions import (
    DiceNotationError,
    DirectiveSyntaxError,
    InvalidDirectiveError,
)
from monster_forge.engine.dice import Die
from monster_forge.models.attacks import Attack, AttackEffect, Rider, Usage, Weapon
from monster_forge.models.enums import (
    Ability,
    Alignment,
    ArmorKind,
    Condition,
    CreatureType,
    DamageType,
    NonmagicalVariant,
    Pronouns,
    Size,
    Skill,
    SpellcastingStyle,
)


# =============================================================================
# Field Types
# =============================================================================


def _validate_challenge_rating(value: Any) -> Fraction:
    if isinstance(value, bool):
        raise ValueError("challenge rating must be a number or fraction")
    try:
        rating = Fraction(str(value).strip()) if not isinstance(value, Fraction) else value
    except (ValueError, ZeroDivisionError) as exc:
        raise ValueError(f"invalid challenge rating {value!r}") from exc
    if str(rating) not in CHALLENGE_RATINGS:
        raise ValueError(f"{value!r} is not a tabled challenge rating")
    return rating


ChallengeValue = Annotated[
    Fraction,
    PlainValidator(_validate_challenge_rating),
    PlainSerializer(str, return_type=str),
]
"""A tabled challenge rating; accepts ``"1/4"``, ``0.25`` or ``2``."""


def _validate_die(value: Any) -> Die:
    if isinstance(value, Die):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return Die(value)
        except ValueError as exc:
            raise ValueError(f"invalid die face {value}") from exc
    if isinstance(value, str):
        try:
            return Die.parse(value)
        except DiceNotationError as exc:
            raise ValueError(exc.message) from exc
    raise ValueError(f"expected a die such as 'd8', got {value!r}")


HitDieValue = Annotated[
    Die,
    PlainValidator(_validate_die),
    PlainSerializer(str, return_type=str),
]

AbilityScore = Annotated[int, Field(ge=MIN_ABILITY_SCORE, le=MONSTER_ABILITY_SCORE_CAP)]
Distance = Annotated[int, Field(ge=0)]


def _as_list(value: Any) -> Any:
    if isinstance(value, (str, int)):
        return [value]
    return value


class _Directive(BaseModel):
    """Base class for all directives."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    sequence_payload: ClassVar[bool] = False
    """A list payload fills the single list field instead of positional fields."""


# =============================================================================
# Format
# =============================================================================


class VersionDirective(_Directive):
    """Directive format version range the document was written for."""

    directive: Literal["version"] = "version"
    minimum: float = Field(gt=0)
    maximum: float | None = Field(default=None, gt=0)


class IncludeDirective(_Directive):
    """Splice another document, expanding ``$<name>`` with the arguments."""

    directive: Literal["include"] = "include"
    reference: str = Field(min_length=1)
    arguments: dict[str, str | int] = Field(default_factory=dict)


# =============================================================================
# Identity
# =============================================================================


class NameDirective(_Directive):
    directive: Literal["name"] = "name"
    name: str = Field(min_length=1)


class SourceDirective(_Directive):
    directive: Literal["source"] = "source"
    source: str


class SubjectNameDirective(_Directive):
    """Override one of the ways text refers to the creature.

    ``subject_name`` sets ``${subj}``; the capitalized variants set
    ``${Subj}`` and ``${Poss}``. When only the lowercase form is given the
    capitalized one is derived from it.
    """

    directive: Literal[
        "subject_name",
        "capitalized_subject_name",
        "possessive_name",
        "capitalized_possessive_name",
    ]
    name: str = Field(min_length=1)


class PronounsDirective(_Directive):
    directive: Literal["pronouns"] = "pronouns"
    pronouns: Pronouns


class SizeDirective(_Directive):
    directive: Literal["size"] = "size"
    size: Size


class SizeShortcutDirective(_Directive):
    directive: Literal["tiny", "small", "medium", "large", "huge", "gargantuan"]

    @property
    def size(self) -> Size:
        return Size(self.directive)


class TypeDirective(_Directive):
    directive: Literal["type"] = "type"
    creature_type: CreatureType


class CustomTypeDirective(_Directive):
    directive: Literal["custom_type"] = "custom_type"
    name: str = Field(min_length=1)


class SubtypeDirective(_Directive):
    directive: Literal["subtype"] = "subtype"
    subtype: str


class GroupDirective(_Directive):
    """Listing group the creature is filed under, such as ``Demons``; not printed."""

    directive: Literal["group"] = "group"
    group: str


class AlignmentDirective(_Directive):
    directive: Literal["alignment"] = "alignment"
    alignment: Alignment


class CustomAlignmentDirective(_Directive):
    directive: Literal["custom_alignment"] = "custom_alignment"
    alignment: str = Field(min_length=1)


# =============================================================================
# Defense
# =============================================================================


class HitDieDirective(_Directive):
    """Override the size-based hit die."""

    directive: Literal["hit_die"] = "hit_die"
    die: HitDieValue


class HitDiceCountDirective(_Directive):
    directive: Literal["hit_dice_count"] = "hit_dice_count"
    count: int = Field(ge=1)


class HitPointsDirective(_Directive):
    """Pin hit points instead of deriving them from the hit dice."""

    directive: Literal["hit_points"] = "hit_points"
    hit_points: int = Field(ge=1)


class ArmorDirective(_Directive):
    directive: Literal["armor"] = "armor"
    kind: ArmorKind
    bonus: int = 0
    description: str | None = None


class ArmorBonusDirective(_Directive):
    directive: Literal["armor_bonus"] = "armor_bonus"
    bonus: int


class ArmorClassDirective(_Directive):
    """Pin armor class outright."""

    directive: Literal["armor_class"] = "armor_class"
    armor_class: int = Field(ge=0)
    description: str | None = None


class ShieldDirective(_Directive):
    directive: Literal["shield", "no_shield"]


# =============================================================================
# Movement
# =============================================================================


class MovementDirective(_Directive):
    directive: Literal["walk", "swim", "fly", "burrow", "climb"]
    distance: Distance


class HoverDirective(_Directive):
    directive: Literal["hover"] = "hover"


class SpeedDirective(_Directive):
    """A movement mode outside the standard ones."""

    directive: Literal["speed"] = "speed"
    name: str = Field(min_length=1)
    distance: Distance


class SpeedNotesDirective(_Directive):
    directive: Literal["speed_notes"] = "speed_notes"
    notes: str


# =============================================================================
# Abilities
# =============================================================================


class AbilityScoreDirective(_Directive):
    directive: Literal["str", "dex", "con", "int", "wis", "cha"]
    score: AbilityScore

    @property
    def ability(self) -> Ability:
        return Ability(self.directive)


class SavesDirective(_Directive):
    directive: Literal["saves", "remove_saves"]
    abilities: list[Ability]

    sequence_payload: ClassVar[bool] = True

    @field_validator("abilities", mode="before")
    @classmethod
    def accept_single(cls, value: Any) -> Any:
        return _as_list(value)


class SkillsDirective(_Directive):
    """Add proficiency, expertise (double proficiency) or remove skills."""

    directive: Literal["skills", "expertise", "remove_skills"]
    skills: list[Skill]

    sequence_payload: ClassVar[bool] = True

    @field_validator("skills", mode="before")
    @classmethod
    def accept_single(cls, value: Any) -> Any:
        return _as_list(value)


# =============================================================================
# Damage and Conditions
# =============================================================================


class DamageTypesDirective(_Directive):
    """Vulnerability, resistance or immunity to damage types; ``all`` expands."""

    directive: Literal["vulnerability", "resistance", "immunity"]
    damage_types: list[DamageType]

    sequence_payload: ClassVar[bool] = True

    @field_validator("damage_types", mode="before")
    @classmethod
    def expand_all(cls, value: Any) -> Any:
        """Accept a single type, and ``all`` for every damage type."""
        value = _as_list(value)
        if isinstance(value, list) and "all" in value:
            return list(DamageType)
        return value


class NonmagicalDirective(_Directive):
    directive: Literal["nonmagical_resistance", "nonmagical_immunity"]
    variant: NonmagicalVariant = NonmagicalVariant.NONMAGICAL


class CustomDamageDirective(_Directive):
    """Free text appended to the damage lines."""

    directive: Literal["custom_vulnerability", "custom_resistance", "custom_immunity"]
    text: str = Field(min_length=1)


class ConditionImmunityDirective(_Directive):
    directive: Literal["condition_immunity"] = "condition_immunity"
    conditions: list[Condition]

    sequence_payload: ClassVar[bool] = True

    @field_validator("conditions", mode="before")
    @classmethod
    def accept_single(cls, value: Any) -> Any:
        return _as_list(value)


# =============================================================================
# Senses and Languages
# =============================================================================


class SenseShortcutDirective(_Directive):
    directive: Literal["darkvision", "truesight", "tremorsense"]
    distance: Distance


class BlindsightDirective(_Directive):
    directive: Literal["blindsight"] = "blindsight"
    distance: Distance
    blind_beyond: bool = False


class SenseDirective(_Directive):
    directive: Literal["sense"] = "sense"
    name: str = Field(min_length=1)
    distance: Distance


class LanguagesDirective(_Directive):
    """Spoken languages, or languages understood but not spoken."""

    directive: Literal["languages", "unspoken_languages"]
    languages: list[str]

    sequence_payload: ClassVar[bool] = True

    @field_validator("languages", mode="before")
    @classmethod
    def accept_single(cls, value: Any) -> Any:
        return _as_list(value)


class TelepathyDirective(_Directive):
    directive: Literal["telepathy"] = "telepathy"
    distance: Distance


# =============================================================================
# Challenge
# =============================================================================


class ChallengeRatingDirective(_Directive):
    """Pin the challenge rating, or state the rating derivation should reach."""

    directive: Literal["challenge_rating", "expect_challenge_rating"]
    value: ChallengeValue


class ChallengeShortcutDirective(_Directive):
    directive: Literal["no_challenge", "half_challenge", "quarter_challenge", "eighth_challenge"]

    @property
    def value(self) -> Fraction:
        values = {
            "no_challenge": Fraction(0),
            "half_challenge": Fraction(1, 2),
            "quarter_challenge": Fraction(1, 4),
            "eighth_challenge": Fraction(1, 8),
        }
        return values[self.directive]


# =============================================================================
# Actions
# =============================================================================


class WeaponDirective(_Directive):
    """Arm the creature with a standard weapon."""

    directive: Literal["weapon"] = "weapon"
    weapon: Weapon
    magic: int = 0
    multiattack: int = Field(default=0, ge=0)
    riders: list[Rider] = Field(default_factory=list)


class AttackDirective(_Directive):
    """A fully specified attack action such as a bite or a claw."""

    directive: Literal["attack"] = "attack"
    name: str = Field(min_length=1)
    attack: Attack
    effect: AttackEffect
    riders: list[Rider] = Field(default_factory=list)
    usage: Usage | None = None
    multiattack: int = Field(default=0, ge=0)


class RemoveWeaponDirective(_Directive):
    directive: Literal["remove_weapon"] = "remove_weapon"
    weapon: Weapon


class WeaponAttackDirective(_Directive):
    """Replace, or check, the attack roll computed for a standard weapon."""

    directive: Literal["override_weapon_attack", "expect_weapon_attack"]
    weapon: Weapon
    attack: Attack


class WeaponEffectDirective(_Directive):
    """Replace, or check, the hit effect computed for a standard weapon."""

    directive: Literal["override_weapon_effect", "expect_weapon_effect"]
    weapon: Weapon
    effect: AttackEffect


class ActionDirective(_Directive):
    directive: Literal["action"] = "action"
    name: str = Field(min_length=1)
    description: str
    usage: Usage | None = None


class OverrideActionDescriptionDirective(_Directive):
    """Replace the generated text of an existing action or weapon."""

    directive: Literal["override_action_description"] = "override_action_description"
    name: str = Field(min_length=1)
    description: str


class RemoveNamedDirective(_Directive):
    directive: Literal[
        "remove_action", "remove_feature", "remove_reaction", "remove_legendary_action"
    ]
    name: str = Field(min_length=1)


class MultiattackDirective(_Directive):
    """Replace the synthesized multiattack text."""

    directive: Literal["multiattack"] = "multiattack"
    description: str


# =============================================================================
# Traits
# =============================================================================


class FeatureDirective(_Directive):
    """A trait or reaction with authored text."""

    directive: Literal["feature", "reaction"]
    name: str = Field(min_length=1)
    description: str
    usage: Usage | None = None


class LegendaryAction(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    description: str
    cost: int = Field(default=1, ge=1)


class LegendaryActionsDirective(_Directive):
    directive: Literal["legendary_actions"] = "legendary_actions"
    count: int = Field(default=3, ge=1)
    actions: list[LegendaryAction] = Field(default_factory=list)
    description: str | None = None


# =============================================================================
# Magic
# =============================================================================


class SpellcastingDirective(_Directive):
    """Class spellcasting with spell slots by level.

    ``spells`` maps spell level to spell names; ``slots`` overrides the slot
    table for the caster level and style.
    """

    directive: Literal["spellcasting"] = "spellcasting"
    ability: Ability
    level: int = Field(ge=1, le=20)
    class_name: str = Field(min_length=1)
    style: SpellcastingStyle = SpellcastingStyle.FULL
    cantrips: list[str] = Field(default_factory=list)
    spells: dict[int, list[str]] = Field(default_factory=dict)
    slots: dict[int, int] | None = None
    save_dc: int | None = Field(default=None, ge=1)
    attack_bonus: int | None = None

    @field_validator("spells", "slots")
    @classmethod
    def check_spell_levels(cls, value: dict[int, Any] | None) -> dict[int, Any] | None:
        """Spell levels run from 1 to 9."""
        if value is not None and any(level < 1 or level > 9 for level in value):
            raise ValueError("spell levels must be between 1 and 9")
        return value


class InnateSpellcastingDirective(_Directive):
    """Innate spellcasting: at-will spells and spells usable N times per day."""

    directive: Literal["innate_spellcasting"] = "innate_spellcasting"
    ability: Ability
    at_will: list[str] = Field(default_factory=list)
    per_day: dict[int, list[str]] = Field(default_factory=dict)
    save_dc: int | None = Field(default=None, ge=1)
    attack_bonus: int | None = None
    components: str | None = None


# =============================================================================
# Union and Document Parsing
# =============================================================================


Directive = Annotated[
    Union[
        VersionDirective,
        IncludeDirective,
        NameDirective,
        SourceDirective,
        SubjectNameDirective,
        PronounsDirective,
        SizeDirective,
        SizeShortcutDirective,
        TypeDirective,
        CustomTypeDirective,
        SubtypeDirective,
        GroupDirective,
        AlignmentDirective,
        CustomAlignmentDirective,
        HitDieDirective,
        HitDiceCountDirective,
        HitPointsDirective,
        ArmorDirective,
        ArmorBonusDirective,
        ArmorClassDirective,
        ShieldDirective,
        MovementDirective,
        HoverDirective,
        SpeedDirective,
        SpeedNotesDirective,
        AbilityScoreDirective,
        SavesDirective,
        SkillsDirective,
        DamageTypesDirective,
        NonmagicalDirective,
        CustomDamageDirective,
        ConditionImmunityDirective,
        SenseShortcutDirective,
        BlindsightDirective,
        SenseDirective,
        LanguagesDirective,
        TelepathyDirective,
        ChallengeRatingDirective,
        ChallengeShortcutDirective,
        WeaponDirective,
        AttackDirective,
        RemoveWeaponDirective,
        WeaponAttackDirective,
        WeaponEffectDirective,
        ActionDirective,
        OverrideActionDescriptionDirective,
        RemoveNamedDirective,
        MultiattackDirective,
        FeatureDirective,
        LegendaryActionsDirective,
        SpellcastingDirective,
        InnateSpellcastingDirective,
    ],
    Field(discriminator="directive"),
]
"""Any directive, discriminated on its ``directive`` tag."""

DIRECTIVE_ADAPTER: TypeAdapter[Any] = TypeAdapter(Directive)

DIRECTIVE_MODELS: dict[str, type[_Directive]] = {
    tag: model
    for model in get_args(get_args(Directive)[0])
    for tag in get_args(model.model_fields["directive"].annotation)
}
"""Directive model class for every tag."""

_RANGE_ERRORS = frozenset(
    {
        "greater_than",
        "greater_than_equal",
        "less_than",
        "less_than_equal",
        "too_short",
        "string_too_short",
        "value_error",
    }
)


def _payload_fields(model: type[_Directive]) -> list[str]:
    return [name for name in model.model_fields if name != "directive"]


def normalize_entry(entry: Any, *, source: str | None = None, index: int | None = None) -> Any:
    """Turn one compact document entry into a tagged mapping.

    Args:
        entry: A bare tag string or a single-key object.
        source: Document name for errors.
        index: Entry position for errors.

    Returns:
        A mapping with a ``directive`` key, ready for validation.

    Raises:
        DirectiveSyntaxError: If the entry shape or tag is not recognized.
    """
    if isinstance(entry, str):
        tag, payload = entry, None
    elif isinstance(entry, dict) and len(entry) == 1:
        ((tag, payload),) = entry.items()
    else:
        raise DirectiveSyntaxError(
            "Directive must be a tag or an object with a single tag key",
            source=source,
            index=index,
        )

    model = DIRECTIVE_MODELS.get(tag)
    if model is None:
        raise DirectiveSyntaxError(f"Unknown directive '{tag}'", source=source, index=index)

    fields = _payload_fields(model)
    if payload is None:
        return {"directive": tag}
    if isinstance(payload, dict):
        return {"directive": tag, **payload}
    if isinstance(payload, list) and not model.sequence_payload:
        if len(payload) > len(fields):
            raise DirectiveSyntaxError(
                f"Directive '{tag}' takes at most {len(fields)} values, got {len(payload)}",
                source=source,
                index=index,
            )
        return {"directive": tag, **dict(zip(fields, payload))}
    if not fields:
        raise DirectiveSyntaxError(
            f"Directive '{tag}' takes no value", source=source, index=index
        )
    return {"directive": tag, fields[0]: payload}


def validate_entry(entry: Any, *, source: str | None = None, index: int | None = None) -> Any:
    """Validate one compact entry into a Directive.

    Raises:
        DirectiveSyntaxError: For unknown tags, missing or extra fields and
            wrongly typed values.
        InvalidDirectiveError: For values outside a directive's legal range.
    """
    normalized = normalize_entry(entry, source=source, index=index)
    try:
        return DIRECTIVE_ADAPTER.validate_python(normalized)
    except ValidationError as exc:
        errors = exc.errors()
        first = errors[0]
        location = ".".join(str(part) for part in first["loc"][1:])
        message = f"Directive '{normalized['directive']}': {location or 'value'}: {first['msg']}"
        context = {"source": source, "index": index} if source else {"index": index}
        if all(error["type"] in _RANGE_ERRORS for error in errors):
            raise InvalidDirectiveError(
                message,
                directive=normalized["directive"],
                invalid_value=first.get("input"),
                details=context,
            ) from exc
        raise DirectiveSyntaxError(message, source=source, index=index) from exc


def parse_directive_document(text: str | list[Any], source: str = "<document>") -> list[Any]:
    """Parse a directive document.

    Args:
        text: JSON text, or an already decoded list of entries.
        source: Name of the document, used in errors.

    Returns:
        The validated directives, beginning with the version directive.

    Raises:
        DirectiveSyntaxError: If the JSON is invalid, the document is not a
            list, the version is not the first entry or an entry is malformed.
        InvalidDirectiveError: If a directive value is out of range.
    """
    if isinstance(text, str):
        try:
            entries = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DirectiveSyntaxError(
                f"Invalid JSON: {exc.msg}",
                source=source,
                details={"line": exc.lineno, "column": exc.colno},
            ) from exc
    else:
        entries = text

    if not isinstance(entries, list):
        raise DirectiveSyntaxError("Directive document must be a list", source=source)
    if not entries:
        raise DirectiveSyntaxError("Directive document is empty", source=source)

    directives = [validate_entry(entry, source=source, index=i) for i, entry in enumerate(entries)]
    for index, directive in enumerate(directives):
        is_version = isinstance(directive, VersionDirective)
        if index == 0 and not is_version:
            raise DirectiveSyntaxError(
                "Document must start with a version directive", source=source, index=0
            )
        if index > 0 and is_version:
            raise DirectiveSyntaxError(
                "Version directive may only appear first", source=source, index=index
            )
    return directives


__all__ = [
    "ChallengeValue",
    "Directive",
    "DIRECTIVE_ADAPTER",
    "DIRECTIVE_MODELS",
    "VersionDirective",
    "IncludeDirective",
    "NameDirective",
    "SourceDirective",
    "SubjectNameDirective",
    "PronounsDirective",
    "SizeDirective",
    "SizeShortcutDirective",
    "TypeDirective",
    "CustomTypeDirective",
    "SubtypeDirective",
    "GroupDirective",
    "AlignmentDirective",
    "CustomAlignmentDirective",
    "HitDieDirective",
    "HitDiceCountDirective",
    "HitPointsDirective",
    "ArmorDirective",
    "ArmorBonusDirective",
    "ArmorClassDirective",
    "ShieldDirective",
    "MovementDirective",
    "HoverDirective",
    "SpeedDirective",
    "SpeedNotesDirective",
    "AbilityScoreDirective",
    "SavesDirective",
    "SkillsDirective",
    "DamageTypesDirective",
    "NonmagicalDirective",
    "CustomDamageDirective",
    "ConditionImmunityDirective",
    "SenseShortcutDirective",
    "BlindsightDirective",
    "SenseDirective",
    "LanguagesDirective",
    "TelepathyDirective",
    "ChallengeRatingDirective",
    "ChallengeShortcutDirective",
    "WeaponDirective",
    "AttackDirective",
    "RemoveWeaponDirective",
    "WeaponAttackDirective",
    "WeaponEffectDirective",
    "ActionDirective",
    "OverrideActionDescriptionDirective",
    "RemoveNamedDirective",
    "MultiattackDirective",
    "FeatureDirective",
    "LegendaryAction",
    "LegendaryActionsDirective",
    "SpellcastingDirective",
    "InnateSpellcastingDirective",
    "normalize_entry",
    "validate_entry",
    "parse_directive_document",
]
