"""Directive interpreter.

The interpreter applies an ordered directive list to a fresh ``Creature``,
splicing included documents as it goes, then runs the derivation pass and
checks any challenge rating expectation. Scalar directives overwrite the
previous value; list directives append in authored order.

Example:
    >>> interpreter = CreatureInterpreter()
    >>> block = interpreter.create('[{"version": [1.0]}, {"name": "Rat"}, "tiny"]')
    >>> block.size_type_alignment
    'Tiny creature, unaligned'
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from monster_forge.core.config import Settings, get_settings
from monster_forge.core.exceptions import (
    ActionNotFoundError,
    ChallengeRatingNotAsExpectedError,
    DirectiveSyntaxError,
    IncludeCycleError,
    IncludeError,
    InterpolationError,
    InvalidDirectiveError,
    MonsterForgeError,
    ParseError,
    VersionNotSupportedError,
    WeaponNotAsExpectedError,
    WeaponNotFoundError,
)
from monster_forge.core.logging import bind_context, get_logger, unbind_context
from monster_forge.engine.derivation import derive, weapon_attack
from monster_forge.engine.interpolation import interpolate_plain
from monster_forge.engine.stat_block import project
from monster_forge.models.attacks import Weapon
from monster_forge.models.creature import Action, Creature, DerivedCreature, Feature
from monster_forge.models.directives import (
    AbilityScoreDirective,
    ActionDirective,
    AlignmentDirective,
    ArmorBonusDirective,
    ArmorClassDirective,
    ArmorDirective,
    AttackDirective,
    BlindsightDirective,
    ChallengeRatingDirective,
    ChallengeShortcutDirective,
    ConditionImmunityDirective,
    CustomAlignmentDirective,
    CustomDamageDirective,
    CustomTypeDirective,
    DamageTypesDirective,
    FeatureDirective,
    GroupDirective,
    HitDiceCountDirective,
    HitDieDirective,
    HitPointsDirective,
    HoverDirective,
    IncludeDirective,
    InnateSpellcastingDirective,
    LanguagesDirective,
    LegendaryActionsDirective,
    MovementDirective,
    MultiattackDirective,
    NameDirective,
    NonmagicalDirective,
    OverrideActionDescriptionDirective,
    PronounsDirective,
    RemoveNamedDirective,
    RemoveWeaponDirective,
    SavesDirective,
    SenseDirective,
    SenseShortcutDirective,
    ShieldDirective,
    SizeDirective,
    SizeShortcutDirective,
    SkillsDirective,
    SourceDirective,
    SpeedDirective,
    SpeedNotesDirective,
    SpellcastingDirective,
    SubjectNameDirective,
    SubtypeDirective,
    TelepathyDirective,
    TypeDirective,
    VersionDirective,
    WeaponAttackDirective,
    WeaponDirective,
    WeaponEffectDirective,
    parse_directive_document,
)
from monster_forge.models.stat_block import StatBlock


logger = get_logger(__name__)

DirectiveDocument = str | Sequence[Any]
"""JSON text, a decoded list of entries, or already parsed directives."""


# =============================================================================
# Include Resolution
# =============================================================================


class IncludeResolver(Protocol):
    """Supplies the raw text of an included document.

    Implementations raise ``LookupError`` for an unknown reference and
    ``OSError`` when the text cannot be read.
    """

    def resolve(self, reference: str) -> str: ...


class MappingResolver:
    """Include resolver backed by an in-memory mapping of reference to text.

    Example:
        >>> resolver = MappingResolver({"goblinoid": '[{"version": [1.0]}, "small"]'})
        >>> resolver.resolve("goblinoid")
        '[{"version": [1.0]}, "small"]'
    """

    def __init__(self, documents: Mapping[str, str] | None = None) -> None:
        self._documents: dict[str, str] = dict(documents or {})

    def add(self, reference: str, text: str) -> None:
        self._documents[reference] = text

    def resolve(self, reference: str) -> str:
        try:
            return self._documents[reference]
        except KeyError:
            raise LookupError(f"Unknown include reference '{reference}'") from None


# =============================================================================
# Validation Report
# =============================================================================


class ValidationReport(BaseModel):
    """Outcome of validating a directive document.

    Attributes:
        errors: The fatal error, if derivation failed.
        warnings: Problems that did not stop derivation.
        challenge_rating: Derived challenge rating when derivation succeeded.
    """

    model_config = ConfigDict(extra="forbid")

    errors: list[str] = Field(default_factory=list, description="Fatal errors")
    warnings: list[str] = Field(default_factory=list, description="Non-fatal problems")
    challenge_rating: str | None = Field(default=None, description="Derived rating")

    @property
    def valid(self) -> bool:
        return not self.errors


# =============================================================================
# Interpreter
# =============================================================================


_DAMAGE_FIELDS = {
    "vulnerability": "vulnerabilities",
    "resistance": "resistances",
    "immunity": "immunities",
    "custom_vulnerability": "custom_vulnerabilities",
    "custom_resistance": "custom_resistances",
    "custom_immunity": "custom_immunities",
}

_PLACEHOLDER_NAME = "creature"


def _append_unique(items: list[Any], values: Sequence[Any]) -> None:
    for value in values:
        if value not in items:
            items.append(value)


def _remove_named(entries: list[Any], name: str) -> bool:
    """Remove the first entry with the given name, ignoring case."""
    wanted = name.casefold()
    for index, entry in enumerate(entries):
        if entry.name.casefold() == wanted:
            del entries[index]
            return True
    return False


class CreatureInterpreter:
    """Applies directive documents to creatures and derives them.

    The interpreter holds no per-creature state: every call builds a fresh
    ``Creature``, so one interpreter may serve any number of documents.

    Attributes:
        resolver: Supplies included documents; includes fail without one.
        settings: Application settings; defaults to ``get_settings()``.
    """

    def __init__(
        self,
        resolver: IncludeResolver | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the interpreter.

        Args:
            resolver: Optional include resolver.
            settings: Optional settings; loaded once here when omitted.
        """
        self.resolver = resolver
        self.settings = settings or get_settings()
        self._handlers: dict[type[BaseModel], Callable[[Any, Creature], None]] = {
            NameDirective: self._apply_name,
            SourceDirective: self._apply_source,
            SubjectNameDirective: self._apply_subject_name,
            PronounsDirective: self._apply_pronouns,
            SizeDirective: self._apply_size,
            SizeShortcutDirective: self._apply_size,
            TypeDirective: self._apply_type,
            CustomTypeDirective: self._apply_custom_type,
            SubtypeDirective: self._apply_subtype,
            GroupDirective: self._apply_group,
            AlignmentDirective: self._apply_alignment,
            CustomAlignmentDirective: self._apply_custom_alignment,
            HitDieDirective: self._apply_hit_die,
            HitDiceCountDirective: self._apply_hit_dice_count,
            HitPointsDirective: self._apply_hit_points,
            ArmorDirective: self._apply_armor,
            ArmorBonusDirective: self._apply_armor_bonus,
            ArmorClassDirective: self._apply_armor_class,
            ShieldDirective: self._apply_shield,
            MovementDirective: self._apply_movement,
            HoverDirective: self._apply_hover,
            SpeedDirective: self._apply_speed,
            SpeedNotesDirective: self._apply_speed_notes,
            AbilityScoreDirective: self._apply_ability_score,
            SavesDirective: self._apply_saves,
            SkillsDirective: self._apply_skills,
            DamageTypesDirective: self._apply_damage_types,
            NonmagicalDirective: self._apply_nonmagical,
            CustomDamageDirective: self._apply_custom_damage,
            ConditionImmunityDirective: self._apply_condition_immunity,
            SenseShortcutDirective: self._apply_sense_shortcut,
            BlindsightDirective: self._apply_blindsight,
            SenseDirective: self._apply_sense,
            LanguagesDirective: self._apply_languages,
            TelepathyDirective: self._apply_telepathy,
            ChallengeRatingDirective: self._apply_challenge_rating,
            ChallengeShortcutDirective: self._apply_challenge_shortcut,
            AttackDirective: self._apply_attack,
            RemoveWeaponDirective: self._apply_remove_weapon,
            ActionDirective: self._apply_action,
            OverrideActionDescriptionDirective: self._apply_override_description,
            RemoveNamedDirective: self._apply_remove_named,
            MultiattackDirective: self._apply_multiattack,
            FeatureDirective: self._apply_feature,
            LegendaryActionsDirective: self._apply_legendary_actions,
            SpellcastingDirective: self._apply_spellcasting,
            InnateSpellcastingDirective: self._apply_innate_spellcasting,
            WeaponDirective: self._apply_weapon,
            WeaponAttackDirective: self._apply_weapon_attack,
            WeaponEffectDirective: self._apply_weapon_effect,
        }

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def build(
        self, document: DirectiveDocument, reference: str | None = None
    ) -> DerivedCreature:
        """Apply a document to a new creature and derive it.

        Args:
            document: The directive document.
            reference: Name of the document, used for include cycle detection
                and in errors.

        Returns:
            A read-only snapshot of the creature with ``derived`` populated.

        Raises:
            MonsterForgeError: The first parse, directive or derivation error.
        """
        creature = self._apply_document(document, reference)
        self._derive(creature)
        self._check_expectations(creature, strict=self.settings.derivation.strict_expectations)
        return creature.freeze()

    def create(self, document: DirectiveDocument, reference: str | None = None) -> StatBlock:
        """Build a creature and project it into a finished stat block.

        Raises:
            MonsterForgeError: The first parse, directive or derivation error.
        """
        return project(self.build(document, reference))

    def validate(
        self, document: DirectiveDocument, reference: str | None = None
    ) -> ValidationReport:
        """Run the pipeline and report problems instead of raising.

        A missing name and unmet challenge rating or weapon expectations are
        reported as warnings; any other failure is reported as the single
        error that stopped derivation.
        """
        report = ValidationReport()
        try:
            creature = self._apply_document(document, reference)
            if not creature.name:
                report.warnings.append("Creature has no name")
                creature.name = _PLACEHOLDER_NAME
            self._derive(creature)
            mismatches = self._check_expectations(creature, strict=False)
        except MonsterForgeError as exc:
            logger.info("Validation failed", error=exc.message, reference=reference)
            report.errors.append(str(exc))
            return report
        report.warnings.extend(mismatches)
        report.challenge_rating = str(creature.challenge_rating)
        return report

    # -------------------------------------------------------------------------
    # Document Handling
    # -------------------------------------------------------------------------

    def _load(self, document: DirectiveDocument, source: str) -> list[Any]:
        """Parse a document unless it is already a list of directives."""
        if isinstance(document, str):
            return parse_directive_document(document, source=source)
        entries = list(document)
        if entries and all(isinstance(entry, BaseModel) for entry in entries):
            if not isinstance(entries[0], VersionDirective):
                raise DirectiveSyntaxError(
                    "Document must start with a version directive", source=source, index=0
                )
            return entries
        return parse_directive_document(entries, source=source)

    def _check_version(self, directive: VersionDirective) -> None:
        supported = self.settings.derivation.format_version
        too_new = directive.minimum > supported
        too_old = directive.maximum is not None and directive.maximum < supported
        if too_new or too_old:
            raise VersionNotSupportedError(
                "The document cannot be loaded with this directive format version "
                f"({supported})",
                supported_version=supported,
                details={"minimum": directive.minimum, "maximum": directive.maximum},
            )

    def _apply_document(self, document: DirectiveDocument, reference: str | None) -> Creature:
        creature = Creature()
        directives = self._load(document, reference or "<document>")
        chain = (reference,) if reference else ()
        self._apply_all(directives, creature, chain, depth=0)
        return creature

    def _apply_all(
        self,
        directives: Sequence[Any],
        creature: Creature,
        chain: tuple[str, ...],
        *,
        depth: int,
    ) -> None:
        for directive in directives:
            if isinstance(directive, VersionDirective):
                self._check_version(directive)
            elif isinstance(directive, IncludeDirective):
                self._include(directive, creature, chain, depth=depth + 1)
            else:
                logger.debug("Applying directive", directive=directive.directive)
                self._handlers[type(directive)](directive, creature)

    def _include(
        self,
        directive: IncludeDirective,
        creature: Creature,
        chain: tuple[str, ...],
        *,
        depth: int,
    ) -> None:
        """Splice an included document into the creature.

        Raises:
            IncludeCycleError: If the reference is already being resolved.
            IncludeError: If the depth limit is exceeded, no resolver is
                configured, or the document cannot be read, expanded or
                parsed.
        """
        reference = directive.reference
        nested = [*chain, reference]
        if reference in chain:
            raise IncludeCycleError(
                f"Include cycle: {' -> '.join(nested)}", reference=reference, chain=nested
            )
        limit = self.settings.derivation.max_include_depth
        if depth > limit:
            raise IncludeError(
                f"Includes nested deeper than {limit}", reference=reference, chain=nested
            )
        if self.resolver is None:
            raise IncludeError("No include resolver configured", reference=reference, chain=nested)

        try:
            text = self.resolver.resolve(reference)
        except (LookupError, OSError) as exc:
            raise IncludeError(
                f"Could not resolve include '{reference}': {exc}",
                reference=reference,
                chain=nested,
            ) from exc
        try:
            expanded = interpolate_plain(
                text, directive.arguments, context_label=f"include {reference}"
            )
            directives = parse_directive_document(expanded, source=reference)
        except (InterpolationError, ParseError, InvalidDirectiveError) as exc:
            raise IncludeError(
                f"Included document '{reference}' is invalid: {exc.message}",
                reference=reference,
                chain=nested,
            ) from exc

        logger.info("Including document", reference=reference, depth=depth)
        self._apply_all(directives, creature, tuple(nested), depth=depth)

    # -------------------------------------------------------------------------
    # Derivation
    # -------------------------------------------------------------------------

    def _derive(self, creature: Creature) -> None:
        bind_context(creature=creature.name)
        try:
            creature.derived = derive(creature, self.settings.derivation)
        finally:
            unbind_context("creature")

    def _check_expectations(self, creature: Creature, *, strict: bool) -> list[str]:
        """Compare derived values with the document's expectations.

        Returns:
            Descriptions of the unmet expectations, in directive order with
            the challenge rating first.

        Raises:
            ChallengeRatingNotAsExpectedError: On a rating mismatch when ``strict``.
            WeaponNotAsExpectedError: On a weapon mismatch when ``strict``.
            WeaponNotFoundError: If an expected weapon was removed later.
        """
        mismatches = [self._check_challenge_rating(creature, strict=strict)]
        for directive in creature.weapon_expectations:
            mismatches.append(self._check_weapon(directive, creature, strict=strict))
        return [mismatch for mismatch in mismatches if mismatch]

    def _check_challenge_rating(self, creature: Creature, *, strict: bool) -> str | None:
        expected = creature.expected_challenge_rating
        actual = creature.challenge_rating
        if expected is None or actual is None or expected == actual:
            return None
        message = f"Challenge rating {actual} is not the expected {expected}"
        if strict:
            raise ChallengeRatingNotAsExpectedError(
                message, expected=str(expected), actual=str(actual), creature=creature.name
            )
        logger.warning(
            "Challenge rating not as expected",
            creature=creature.name,
            expected=str(expected),
            actual=str(actual),
        )
        return message

    def _check_weapon(
        self,
        directive: WeaponAttackDirective | WeaponEffectDirective,
        creature: Creature,
        *,
        strict: bool,
    ) -> str | None:
        action = self._weapon_action(directive.weapon, creature, directive.directive)
        attack, effect = weapon_attack(directive.weapon, action, creature)
        if isinstance(directive, WeaponAttackDirective):
            aspect, expected, actual = "attack", directive.attack, attack
        else:
            aspect, expected, actual = "effect", directive.effect, effect
        if expected == actual:
            return None
        weapon = directive.weapon.display_name
        message = f"{weapon} {aspect} is not as expected"
        if strict:
            raise WeaponNotAsExpectedError(
                message,
                weapon=weapon,
                aspect=aspect,
                creature=creature.name,
                details={
                    "expected": expected.model_dump(mode="json"),
                    "actual": actual.model_dump(mode="json"),
                },
            )
        logger.warning(
            "Weapon not as expected", creature=creature.name, weapon=weapon, aspect=aspect
        )
        return message

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------

    def _apply_name(self, directive: NameDirective, creature: Creature) -> None:
        creature.name = directive.name

    def _apply_source(self, directive: SourceDirective, creature: Creature) -> None:
        creature.source = directive.source

    def _apply_subject_name(self, directive: SubjectNameDirective, creature: Creature) -> None:
        # Tags match the creature field names
        setattr(creature, directive.directive, directive.name)

    def _apply_pronouns(self, directive: PronounsDirective, creature: Creature) -> None:
        creature.pronouns = directive.pronouns

    def _apply_size(
        self, directive: SizeDirective | SizeShortcutDirective, creature: Creature
    ) -> None:
        creature.size = directive.size

    def _apply_type(self, directive: TypeDirective, creature: Creature) -> None:
        creature.creature_type = directive.creature_type
        creature.custom_type = None

    def _apply_custom_type(self, directive: CustomTypeDirective, creature: Creature) -> None:
        creature.custom_type = directive.name

    def _apply_subtype(self, directive: SubtypeDirective, creature: Creature) -> None:
        creature.subtype = directive.subtype

    def _apply_group(self, directive: GroupDirective, creature: Creature) -> None:
        creature.group = directive.group

    def _apply_alignment(self, directive: AlignmentDirective, creature: Creature) -> None:
        creature.alignment = directive.alignment.display_name

    def _apply_custom_alignment(
        self, directive: CustomAlignmentDirective, creature: Creature
    ) -> None:
        creature.alignment = directive.alignment

    # -------------------------------------------------------------------------
    # Defense
    # -------------------------------------------------------------------------

    def _apply_hit_die(self, directive: HitDieDirective, creature: Creature) -> None:
        creature.hit_die_override = directive.die

    def _apply_hit_dice_count(self, directive: HitDiceCountDirective, creature: Creature) -> None:
        creature.hit_dice_count = directive.count

    def _apply_hit_points(self, directive: HitPointsDirective, creature: Creature) -> None:
        creature.hit_points_override = directive.hit_points

    def _apply_armor(self, directive: ArmorDirective, creature: Creature) -> None:
        creature.armor = directive.kind
        creature.armor_bonus = directive.bonus
        creature.armor_description = directive.description

    def _apply_armor_bonus(self, directive: ArmorBonusDirective, creature: Creature) -> None:
        creature.extra_armor_bonus = directive.bonus

    def _apply_armor_class(self, directive: ArmorClassDirective, creature: Creature) -> None:
        creature.armor_class_override = directive.armor_class
        creature.armor_class_description = directive.description

    def _apply_shield(self, directive: ShieldDirective, creature: Creature) -> None:
        creature.shield = directive.directive == "shield"

    # -------------------------------------------------------------------------
    # Movement
    # -------------------------------------------------------------------------

    def _apply_movement(self, directive: MovementDirective, creature: Creature) -> None:
        creature.speeds[directive.directive] = directive.distance

    def _apply_hover(self, directive: HoverDirective, creature: Creature) -> None:
        creature.hover = True

    def _apply_speed(self, directive: SpeedDirective, creature: Creature) -> None:
        creature.speeds[directive.name] = directive.distance

    def _apply_speed_notes(self, directive: SpeedNotesDirective, creature: Creature) -> None:
        creature.speed_notes = directive.notes

    # -------------------------------------------------------------------------
    # Abilities
    # -------------------------------------------------------------------------

    def _apply_ability_score(self, directive: AbilityScoreDirective, creature: Creature) -> None:
        creature.scores[directive.ability] = directive.score

    def _apply_saves(self, directive: SavesDirective, creature: Creature) -> None:
        if directive.directive == "saves":
            _append_unique(creature.saves, directive.abilities)
        else:
            creature.saves = [a for a in creature.saves if a not in directive.abilities]

    def _apply_skills(self, directive: SkillsDirective, creature: Creature) -> None:
        for skill in directive.skills:
            if directive.directive == "remove_skills":
                creature.skills.pop(skill, None)
            else:
                creature.skills[skill] = 2 if directive.directive == "expertise" else 1

    # -------------------------------------------------------------------------
    # Damage and Conditions
    # -------------------------------------------------------------------------

    def _apply_damage_types(self, directive: DamageTypesDirective, creature: Creature) -> None:
        field = _DAMAGE_FIELDS[directive.directive]
        _append_unique(getattr(creature, field), directive.damage_types)

    def _apply_nonmagical(self, directive: NonmagicalDirective, creature: Creature) -> None:
        if directive.directive == "nonmagical_resistance":
            creature.nonmagical_resistance = directive.variant
        else:
            creature.nonmagical_immunity = directive.variant

    def _apply_custom_damage(self, directive: CustomDamageDirective, creature: Creature) -> None:
        getattr(creature, _DAMAGE_FIELDS[directive.directive]).append(directive.text)

    def _apply_condition_immunity(
        self, directive: ConditionImmunityDirective, creature: Creature
    ) -> None:
        _append_unique(creature.condition_immunities, directive.conditions)

    # -------------------------------------------------------------------------
    # Senses and Languages
    # -------------------------------------------------------------------------

    def _apply_sense_shortcut(self, directive: SenseShortcutDirective, creature: Creature) -> None:
        creature.senses[directive.directive] = directive.distance

    def _apply_blindsight(self, directive: BlindsightDirective, creature: Creature) -> None:
        creature.senses["blindsight"] = directive.distance
        creature.blind_beyond = directive.blind_beyond

    def _apply_sense(self, directive: SenseDirective, creature: Creature) -> None:
        creature.senses[directive.name] = directive.distance

    def _apply_languages(self, directive: LanguagesDirective, creature: Creature) -> None:
        if directive.directive == "languages":
            _append_unique(creature.languages, directive.languages)
        else:
            _append_unique(creature.unspoken_languages, directive.languages)

    def _apply_telepathy(self, directive: TelepathyDirective, creature: Creature) -> None:
        creature.telepathy = directive.distance

    # -------------------------------------------------------------------------
    # Challenge
    # -------------------------------------------------------------------------

    def _apply_challenge_rating(
        self, directive: ChallengeRatingDirective, creature: Creature
    ) -> None:
        if directive.directive == "challenge_rating":
            creature.challenge_rating_override = directive.value
        else:
            creature.expected_challenge_rating = directive.value

    def _apply_challenge_shortcut(
        self, directive: ChallengeShortcutDirective, creature: Creature
    ) -> None:
        creature.challenge_rating_override = directive.value

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def _apply_weapon(self, directive: WeaponDirective, creature: Creature) -> None:
        creature.actions.append(
            Action(
                name=directive.weapon.action_name(directive.magic),
                weapon=directive.weapon,
                magic=directive.magic,
                riders=list(directive.riders),
                multiattack=directive.multiattack,
            )
        )

    def _apply_attack(self, directive: AttackDirective, creature: Creature) -> None:
        creature.actions.append(
            Action(
                name=directive.name,
                attack=directive.attack,
                effect=directive.effect,
                riders=list(directive.riders),
                usage=directive.usage,
                multiattack=directive.multiattack,
            )
        )

    def _apply_remove_weapon(self, directive: RemoveWeaponDirective, creature: Creature) -> None:
        for index, action in enumerate(creature.actions):
            if action.weapon is directive.weapon:
                del creature.actions[index]
                return
        raise WeaponNotFoundError(
            f"Cannot remove weapon '{directive.weapon.display_name}': creature does not have it",
            action=directive.weapon.display_name,
            creature=creature.name,
        )

    @staticmethod
    def _weapon_action(weapon: Weapon, creature: Creature, directive: str) -> Action:
        action = creature.find_weapon(weapon)
        if action is None:
            raise WeaponNotFoundError(
                f"Cannot apply {directive} to '{weapon.display_name}': creature does not have it",
                action=weapon.display_name,
                creature=creature.name,
            )
        return action

    def _apply_weapon_attack(self, directive: WeaponAttackDirective, creature: Creature) -> None:
        action = self._weapon_action(directive.weapon, creature, directive.directive)
        if directive.directive == "expect_weapon_attack":
            creature.weapon_expectations.append(directive)
            return
        # Overrides regenerate the text, dropping an earlier description override
        action.attack = directive.attack
        action.description = None

    def _apply_weapon_effect(self, directive: WeaponEffectDirective, creature: Creature) -> None:
        action = self._weapon_action(directive.weapon, creature, directive.directive)
        if directive.directive == "expect_weapon_effect":
            creature.weapon_expectations.append(directive)
            return
        action.effect = directive.effect
        action.description = None

    def _apply_action(self, directive: ActionDirective, creature: Creature) -> None:
        creature.actions.append(
            Action(name=directive.name, description=directive.description, usage=directive.usage)
        )

    def _apply_override_description(
        self, directive: OverrideActionDescriptionDirective, creature: Creature
    ) -> None:
        if directive.name.casefold() == "multiattack":
            creature.multiattack_description = directive.description
            return
        action = creature.find_action(directive.name)
        if action is None:
            raise ActionNotFoundError(
                f"Cannot override description of '{directive.name}': no such action",
                action=directive.name,
                creature=creature.name,
            )
        action.description = directive.description

    def _apply_remove_named(self, directive: RemoveNamedDirective, creature: Creature) -> None:
        name = directive.name
        if directive.directive == "remove_action":
            found = _remove_named(creature.actions, name)
        elif directive.directive == "remove_reaction":
            found = _remove_named(creature.reactions, name)
        elif directive.directive == "remove_legendary_action":
            found = _remove_named(creature.legendary_actions, name)
        else:
            found = self._remove_feature(creature, name)
        if not found:
            raise ActionNotFoundError(
                f"Cannot {directive.directive.replace('_', ' ')} '{name}': not found",
                action=name,
                creature=creature.name,
            )

    @staticmethod
    def _remove_feature(creature: Creature, name: str) -> bool:
        # Spellcasting traits are removable by their printed names
        wanted = name.casefold()
        if wanted == "spellcasting" and creature.spellcasting is not None:
            creature.spellcasting = None
            return True
        if wanted == "innate spellcasting" and creature.innate_spellcasting is not None:
            creature.innate_spellcasting = None
            return True
        return _remove_named(creature.features, name)

    def _apply_multiattack(self, directive: MultiattackDirective, creature: Creature) -> None:
        creature.multiattack_description = directive.description

    # -------------------------------------------------------------------------
    # Traits and Magic
    # -------------------------------------------------------------------------

    def _apply_feature(self, directive: FeatureDirective, creature: Creature) -> None:
        feature = Feature(
            name=directive.name, description=directive.description, usage=directive.usage
        )
        if directive.directive == "feature":
            creature.features.append(feature)
        else:
            creature.reactions.append(feature)

    def _apply_legendary_actions(
        self, directive: LegendaryActionsDirective, creature: Creature
    ) -> None:
        creature.legendary_action_count = directive.count
        creature.legendary_actions.extend(directive.actions)
        if directive.description is not None:
            creature.legendary_description = directive.description

    def _apply_spellcasting(self, directive: SpellcastingDirective, creature: Creature) -> None:
        creature.spellcasting = directive

    def _apply_innate_spellcasting(
        self, directive: InnateSpellcastingDirective, creature: Creature
    ) -> None:
        creature.innate_spellcasting = directive


# =============================================================================
# Entry Points
# =============================================================================


def create_stat_block(
    document: DirectiveDocument,
    resolver: IncludeResolver | None = None,
    *,
    reference: str | None = None,
    settings: Settings | None = None,
) -> StatBlock:
    """Derive a finished stat block from a directive document.

    Args:
        document: JSON text or a list of directive entries.
        resolver: Supplies included documents.
        reference: Name of the document, for errors and cycle detection.
        settings: Settings to use instead of the cached application settings.

    Returns:
        The frozen stat block.

    Raises:
        MonsterForgeError: The first error met while deriving the creature.

    Example:
        >>> block = create_stat_block('[{"version": [1.0]}, {"name": "Goblin"}, "small"]')
        >>> block.hit_points
        '3 (1d6)'
    """
    return CreatureInterpreter(resolver, settings).create(document, reference)


def validate_document(
    document: DirectiveDocument,
    resolver: IncludeResolver | None = None,
    *,
    reference: str | None = None,
    settings: Settings | None = None,
) -> ValidationReport:
    """Check a directive document without requiring a complete creature."""
    return CreatureInterpreter(resolver, settings).validate(document, reference)


__all__ = [
    "DirectiveDocument",
    "IncludeResolver",
    "MappingResolver",
    "ValidationReport",
    "CreatureInterpreter",
    "create_stat_block",
    "validate_document",
]
