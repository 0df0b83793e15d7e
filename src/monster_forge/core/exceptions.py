"""Custom exception hierarchy for monster-forge.

Every error raised by the derivation engine inherits from MonsterForgeError,
so hosts can catch a single type at their boundary while still getting the
domain-specific context (expression, position, feature name, include chain)
attached to each failure.

Errors fall into three levels that mirror the pipeline:

    parse level:          ParseDiceError, ParseDiceExpressionError,
                          DirectiveSyntaxError
    interpolation level:  InterpolationError
    derivation level:     CreatureError and its subclasses

Example:
    >>> from monster_forge.core.exceptions import ParseDiceError
    >>> raise ParseDiceError("Unknown die face", expression="2d7", position=2)
"""

from __future__ import annotations

from typing import Any


class MonsterForgeError(Exception):
    """Base exception for all monster-forge errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception.

        Returns:
            String representation suitable for debugging.
        """
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Parse Level Exceptions
# =============================================================================


class ParseError(MonsterForgeError):
    """Base exception for malformed input rejected before interpretation."""


class DiceNotationError(ParseError):
    """Base exception for dice text that cannot be parsed."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        position: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice text that caused the error.
            position: Zero-based character offset of the offending term.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression is not None:
            combined_details["expression"] = expression
        if position is not None:
            combined_details["position"] = position
        self.expression = expression
        self.position = position
        super().__init__(message, details=combined_details)


class ParseDiceError(DiceNotationError):
    """Raised when a single dice term is malformed.

    This covers a zero count and a term that is missing its ``d``
    separator or its sides.
    """


class InvalidDieFaceError(ParseDiceError):
    """Raised when a dice term names a die outside the canonical faces."""


class ParseDiceExpressionError(DiceNotationError):
    """Raised when dice terms are combined incorrectly.

    Typical causes are a dangling operator, an empty expression, or text
    left over after the last term.
    """


class DirectiveSyntaxError(ParseError):
    """Raised when a directive document cannot be parsed.

    Unknown tags, wrong payload arity and invalid JSON all end up here,
    before any directive is applied.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        index: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize directive syntax error with document context.

        Args:
            message: Human-readable error description.
            source: Name of the document being parsed.
            index: Position of the offending entry in the directive list.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if source:
            combined_details["source"] = source
        if index is not None:
            combined_details["index"] = index
        super().__init__(message, details=combined_details)


# =============================================================================
# Interpolation Level Exceptions
# =============================================================================


class InterpolationError(MonsterForgeError):
    """Raised when authored text cannot be interpolated.

    The ``kind`` attribute names the failure (``unknown_variable``,
    ``unterminated_markup``, ``cant_multiply_dice``, ...) so callers and
    tests can branch on it without parsing the message.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        line: int | None = None,
        column: int | None = None,
        context_label: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize interpolation error with position context.

        Args:
            message: Human-readable error description.
            kind: Machine-readable error category.
            line: One-based line of the offending token.
            column: One-based column of the offending token.
            context_label: Label of the text being interpolated.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        combined_details["kind"] = kind
        if line is not None:
            combined_details["line"] = line
        if column is not None:
            combined_details["column"] = column
        if context_label:
            combined_details["context"] = context_label
        self.kind = kind
        self.line = line
        self.column = column
        self.context_label = context_label
        super().__init__(message, details=combined_details)


# =============================================================================
# Derivation Level Exceptions
# =============================================================================


class CreatureError(MonsterForgeError):
    """Base exception for failures while building or deriving a creature.

    All creature errors are terminal: no partial stat block is produced.
    """

    def __init__(
        self,
        message: str,
        *,
        creature: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize creature error with creature context.

        Args:
            message: Human-readable error description.
            creature: Name of the creature being derived, if known.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if creature:
            combined_details["creature"] = creature
        super().__init__(message, details=combined_details)


class CreatureHasNoNameError(CreatureError):
    """Raised when derivation starts without a ``name`` directive."""


class InvalidDirectiveError(CreatureError):
    """Raised when a directive carries a value outside its legal range."""

    def __init__(
        self,
        message: str,
        *,
        directive: str | None = None,
        invalid_value: Any | None = None,
        creature: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid directive error with field context.

        Args:
            message: Human-readable error description.
            directive: Tag of the offending directive.
            invalid_value: The value that failed validation.
            creature: Name of the creature being derived, if known.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if directive:
            combined_details["directive"] = directive
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, creature=creature, details=combined_details)


class VersionNotSupportedError(CreatureError):
    """Raised when a document requires a different directive format version."""

    def __init__(
        self,
        message: str,
        *,
        supported_version: float | None = None,
        creature: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize version error with the supported version.

        Args:
            message: Human-readable error description.
            supported_version: The directive format version this build reads.
            creature: Name of the creature being derived, if known.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if supported_version is not None:
            combined_details["supported_version"] = supported_version
        super().__init__(message, creature=creature, details=combined_details)


class IncludeError(CreatureError):
    """Raised when an included document cannot be resolved or applied."""

    def __init__(
        self,
        message: str,
        *,
        reference: str | None = None,
        chain: list[str] | None = None,
        creature: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize include error with the reference chain.

        Args:
            message: Human-readable error description.
            reference: The include reference that failed.
            chain: References being resolved when the failure happened,
                outermost first.
            creature: Name of the creature being derived, if known.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if reference:
            combined_details["reference"] = reference
        if chain:
            combined_details["chain"] = chain
        self.reference = reference
        self.chain = chain or []
        super().__init__(message, creature=creature, details=combined_details)


class IncludeCycleError(IncludeError):
    """Raised when a document includes itself directly or transitively."""


class ActionNotFoundError(CreatureError):
    """Raised when a directive references an action that does not exist."""

    def __init__(
        self,
        message: str,
        *,
        action: str | None = None,
        creature: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize action lookup error.

        Args:
            message: Human-readable error description.
            action: Name of the missing action.
            creature: Name of the creature being derived, if known.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if action:
            combined_details["action"] = action
        super().__init__(message, creature=creature, details=combined_details)


class WeaponNotFoundError(ActionNotFoundError):
    """Raised when a directive references a weapon the creature lacks."""


class ChallengeRatingNotAsExpectedError(CreatureError):
    """Raised when the final challenge rating differs from the expected one."""

    def __init__(
        self,
        message: str,
        *,
        expected: str | None = None,
        actual: str | None = None,
        creature: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize expectation error with both ratings.

        Args:
            message: Human-readable error description.
            expected: The challenge rating the document expected.
            actual: The challenge rating actually derived.
            creature: Name of the creature being derived, if known.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expected is not None:
            combined_details["expected"] = expected
        if actual is not None:
            combined_details["actual"] = actual
        super().__init__(message, creature=creature, details=combined_details)


class WeaponNotAsExpectedError(CreatureError):
    """Raised when a weapon's attack or effect differs from the expected one."""

    def __init__(
        self,
        message: str,
        *,
        weapon: str | None = None,
        aspect: str | None = None,
        creature: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize expectation error with the weapon checked.

        Args:
            message: Human-readable error description.
            weapon: Display name of the weapon.
            aspect: ``attack`` or ``effect``.
            creature: Name of the creature being derived, if known.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if weapon:
            combined_details["weapon"] = weapon
        if aspect:
            combined_details["aspect"] = aspect
        super().__init__(message, creature=creature, details=combined_details)


class FeatureInterpolationError(CreatureError):
    """Raised when the text of a feature, action or reaction fails to interpolate.

    The original InterpolationError is chained as ``__cause__`` and its
    position is copied into the details.
    """

    def __init__(
        self,
        message: str,
        *,
        feature: str | None = None,
        cause: InterpolationError | None = None,
        creature: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize feature interpolation error.

        Args:
            message: Human-readable error description.
            feature: Name of the feature whose text failed.
            cause: The underlying interpolation error.
            creature: Name of the creature being derived, if known.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if feature:
            combined_details["feature"] = feature
        if cause is not None:
            combined_details["kind"] = cause.kind
            if cause.line is not None:
                combined_details["line"] = cause.line
                combined_details["column"] = cause.column
        self.feature = feature
        super().__init__(message, creature=creature, details=combined_details)


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(MonsterForgeError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "MonsterForgeError",
    # Parse level
    "ParseError",
    "DiceNotationError",
    "ParseDiceError",
    "InvalidDieFaceError",
    "ParseDiceExpressionError",
    "DirectiveSyntaxError",
    # Interpolation level
    "InterpolationError",
    # Derivation level
    "CreatureError",
    "CreatureHasNoNameError",
    "InvalidDirectiveError",
    "VersionNotSupportedError",
    "IncludeError",
    "IncludeCycleError",
    "ActionNotFoundError",
    "WeaponNotFoundError",
    "ChallengeRatingNotAsExpectedError",
    "WeaponNotAsExpectedError",
    "FeatureInterpolationError",
    # Configuration
    "ConfigurationError",
]
