"""Dice notation parsing and evaluation.

Stat blocks never roll dice: they print a fixed average next to the
expression it came from, as in "7 (2d6)". This module parses dice notation
into an immutable DiceExpression, computes its exact rational average, and
renders it back to a canonical string that survives re-parsing unchanged.

Supported notation::

    2d6 + 3          dice plus a constant
    d8               count defaults to 1
    1d8 - 1d4 + 2    several dice terms
    -1d6 + 10        leading minus
    (1d6 × 2)        factored term ('*' is accepted for '×')
    (1d6 ÷ 2)        factored term ('/' is accepted for '÷')

Die faces are limited to 4, 6, 8, 10, 12, 20 and 100.

Rolling (for previews only) delegates to the d20 library.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from enum import IntEnum
from fractions import Fraction

import d20

from monster_forge.core.constants import CANONICAL_DIE_FACES, MAX_DICE_COUNT
from monster_forge.core.exceptions import (
    InvalidDieFaceError,
    ParseDiceError,
    ParseDiceExpressionError,
)
from monster_forge.core.logging import get_logger


logger = get_logger(__name__)


class Die(IntEnum):
    """The canonical die faces."""

    D4 = 4
    D6 = 6
    D8 = 8
    D10 = 10
    D12 = 12
    D20 = 20
    D100 = 100

    @property
    def sides(self) -> int:
        """Number of faces on the die."""
        return int(self.value)

    @property
    def average(self) -> Fraction:
        """Exact average of a single roll: ``(sides + 1) / 2``."""
        return Fraction(self.sides + 1, 2)

    @property
    def floor_average(self) -> int:
        """Average of a single roll rounded down."""
        return (self.sides + 1) // 2

    @classmethod
    def from_sides(cls, sides: int) -> Die:
        """Look up a die by its number of faces.

        Raises:
            ValueError: If ``sides`` is not a canonical face.
        """
        return cls(sides)

    @classmethod
    def parse(cls, text: str) -> Die:
        """Parse a die string such as ``"d8"``.

        Raises:
            ParseDiceError: If the text is not ``d`` followed by a number.
            InvalidDieFaceError: If the number is not a canonical face.
        """
        stripped = text.strip().lower()
        if not stripped.startswith("d") or not stripped[1:].isdigit():
            raise ParseDiceError("Expected a die such as 'd8'", expression=text, position=0)
        sides = int(stripped[1:])
        if sides not in CANONICAL_DIE_FACES:
            raise InvalidDieFaceError(
                f"Invalid die face d{sides}",
                expression=text,
                position=1,
            )
        return cls(sides)

    def __str__(self) -> str:
        return f"d{self.sides}"


def _render_factor(factor: Fraction) -> str:
    if factor.denominator == 1:
        return f"× {factor.numerator}"
    if factor.numerator == 1:
        return f"÷ {factor.denominator}"
    return f"× {factor.numerator}/{factor.denominator}"


@dataclass(frozen=True)
class DiceTerm:
    """A count of one die, scaled by a rational factor.

    Attributes:
        count: Number of dice rolled (always at least 1).
        die: The die rolled.
        factor: Multiplier applied to the rolled sum.
    """

    count: int
    die: Die
    factor: Fraction = Fraction(1)

    @property
    def average(self) -> Fraction:
        """Exact average contribution of this term."""
        return self.count * self.die.average * self.factor

    @property
    def dice(self) -> str:
        """The ``XdY`` part of the term."""
        return f"{self.count}d{self.die.sides}"

    def scaled(self, factor: Fraction) -> DiceTerm:
        """Return the term with its factor multiplied by ``factor``."""
        return DiceTerm(self.count, self.die, self.factor * factor)

    def render(self, *, leading: bool) -> str:
        """Render the term for the canonical expression string.

        Args:
            leading: True for the first term, which carries no joining
                operator.
        """
        if self.factor == 1:
            return self.dice if leading else f" + {self.dice}"
        if self.factor == -1:
            return f"-{self.dice}" if leading else f" - {self.dice}"
        factored = f"({self.dice} {_render_factor(abs(self.factor))})"
        if self.factor < 0:
            return f"-{factored}" if leading else f" - {factored}"
        return factored if leading else f" + {factored}"

    def to_d20(self) -> str:
        """Render the term in the d20 library's notation, without sign."""
        magnitude = abs(self.factor)
        notation = self.dice
        if magnitude.numerator != 1:
            notation = f"{notation}*{magnitude.numerator}"
        if magnitude.denominator != 1:
            notation = f"({notation})//{magnitude.denominator}"
        return notation


@dataclass(frozen=True)
class DiceExpression:
    """An immutable dice formula: a sum of dice terms plus a constant.

    Attributes:
        terms: Dice terms in source order.
        addend: Constant offset.

    Example:
        >>> expr = parse_dice_expression("2d6 + 3")
        >>> expr.average
        Fraction(10, 1)
        >>> expr.display()
        '10 (2d6 + 3)'
    """

    terms: tuple[DiceTerm, ...]
    addend: int = 0

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def single(cls, count: int, die: Die, addend: int = 0) -> DiceExpression:
        """Build ``{count}d{die} + addend``."""
        return cls((DiceTerm(count, die),), addend)

    @classmethod
    def parse(cls, text: str) -> DiceExpression:
        """Parse dice notation. See parse_dice_expression."""
        return parse_dice_expression(text)

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    @property
    def average(self) -> Fraction:
        """Exact rational average of the expression."""
        return sum((term.average for term in self.terms), Fraction(0)) + self.addend

    @property
    def average_value(self) -> int:
        """Average rounded to the nearest integer, ties rounding down."""
        return math.ceil(self.average - Fraction(1, 2))

    @property
    def is_negative(self) -> bool:
        """True when the leading term is subtracted."""
        return bool(self.terms) and self.terms[0].factor < 0

    def render(self) -> str:
        """Render the canonical expression string."""
        parts = [term.render(leading=index == 0) for index, term in enumerate(self.terms)]
        if not parts:
            return str(self.addend)
        if self.addend > 0:
            parts.append(f" + {self.addend}")
        elif self.addend < 0:
            parts.append(f" - {-self.addend}")
        return "".join(parts)

    def display(self, average: int | None = None) -> str:
        """Render as ``"avg (expr)"``.

        Args:
            average: Value to show instead of the computed average, used when
                hit points are rounded per die or overridden.
        """
        shown = self.average_value if average is None else average
        return f"{shown} ({self.render()})"

    def __str__(self) -> str:
        return self.render()

    # -------------------------------------------------------------------------
    # Arithmetic
    # -------------------------------------------------------------------------

    def multiply(self, factor: int | Fraction) -> DiceExpression:
        """Scale every term and the addend by ``factor``."""
        scale = Fraction(factor)
        addend = self.addend * scale
        return DiceExpression(
            tuple(term.scaled(scale) for term in self.terms),
            math.floor(addend),
        )

    def divide(self, divisor: int, *, round_up: bool = False) -> DiceExpression:
        """Divide every term by ``divisor``.

        Dice terms keep an exact rational factor; the constant addend is
        rounded down, or up when ``round_up`` is set.

        Raises:
            ZeroDivisionError: If ``divisor`` is zero.
        """
        scale = Fraction(1, divisor)
        addend = Fraction(self.addend, 1) * scale
        rounded = math.ceil(addend) if round_up else math.floor(addend)
        return DiceExpression(tuple(term.scaled(scale) for term in self.terms), rounded)

    def negate(self) -> DiceExpression:
        """Return the expression multiplied by -1."""
        return self.multiply(-1)

    def add(self, amount: int) -> DiceExpression:
        """Add a constant."""
        return DiceExpression(self.terms, self.addend + amount)

    def subtract(self, amount: int) -> DiceExpression:
        """Subtract a constant."""
        return DiceExpression(self.terms, self.addend - amount)

    def add_dice(self, other: DiceExpression) -> DiceExpression:
        """Add another expression.

        Terms with the same die and factor merge by adding their counts,
        so ``2d6 + 1d6`` becomes ``3d6``; anything else is appended.
        """
        terms = list(self.terms)
        for incoming in other.terms:
            for index, existing in enumerate(terms):
                if existing.die == incoming.die and existing.factor == incoming.factor:
                    terms[index] = DiceTerm(
                        existing.count + incoming.count, existing.die, existing.factor
                    )
                    break
            else:
                terms.append(incoming)
        return DiceExpression(tuple(terms), self.addend + other.addend)

    def subtract_dice(self, other: DiceExpression) -> DiceExpression:
        """Subtract another expression; ``2d4 - 1d4`` is not ``1d4``."""
        return self.add_dice(other.negate())

    def with_extra_dice(self, count: int) -> DiceExpression:
        """Add ``count`` more dice of the leading term's kind."""
        if not self.terms:
            return self
        head = self.terms[0]
        return self.add_dice(DiceExpression((DiceTerm(count, head.die, head.factor),)))

    def to_d20(self) -> str:
        """Render in the notation understood by the d20 library."""
        notation = ""
        for index, term in enumerate(self.terms):
            sign = "-" if term.factor < 0 else "+"
            if index == 0:
                notation = f"-{term.to_d20()}" if sign == "-" else term.to_d20()
            else:
                notation += f"{sign}{term.to_d20()}"
        if self.addend or not notation:
            notation += f"{self.addend:+d}" if notation else str(self.addend)
        return notation


# =============================================================================
# Parser
# =============================================================================


@dataclass
class _DiceParser:
    """Recursive-descent parser over the characters of a dice expression."""

    text: str
    index: int = 0
    terms: list[DiceTerm] = field(default_factory=list)
    addend: int = 0

    def parse(self) -> DiceExpression:
        self._skip_whitespace()
        if self._at_end():
            raise ParseDiceExpressionError(
                "Empty dice expression", expression=self.text, position=0
            )
        sign = 1
        if self._peek() == "-":
            sign = -1
            self.index += 1
            self._skip_whitespace()
        self._term(sign, after=None)
        while True:
            self._skip_whitespace()
            if self._at_end():
                break
            operator = self._peek()
            if operator not in "+-":
                raise ParseDiceExpressionError(
                    f"Expected '+' or '-' but found {operator!r}",
                    expression=self.text,
                    position=self.index,
                )
            self.index += 1
            self._skip_whitespace()
            self._term(1 if operator == "+" else -1, after=operator)
        if not self.terms:
            raise ParseDiceExpressionError(
                "Dice expression contains no dice", expression=self.text, position=0
            )
        return DiceExpression(tuple(self.terms), self.addend)

    def _term(self, sign: int, *, after: str | None) -> None:
        if self._at_end():
            raise ParseDiceExpressionError(
                f"Expected a term after {after!r}" if after else "Expected a term",
                expression=self.text,
                position=self.index,
            )
        char = self._peek()
        if char == "(":
            self.terms.append(self._factored().scaled(Fraction(sign)))
        elif char.isdigit() or char in "dD":
            start = self.index
            count = self._integer() if char.isdigit() else None
            if self._at_end() or self._peek() not in "dD":
                if count is None:
                    raise ParseDiceError(
                        "Expected a dice term", expression=self.text, position=start
                    )
                if not self._at_end() and self._peek().isalpha():
                    raise ParseDiceError(
                        "Expected 'd' between count and sides",
                        expression=self.text,
                        position=self.index,
                    )
                self.addend += sign * count
                return
            term = self._dice(count, start)
            self.terms.append(term.scaled(Fraction(sign)))
        else:
            raise ParseDiceExpressionError(
                f"Expected a term after {after!r}" if after else "Expected a term",
                expression=self.text,
                position=self.index,
            )

    def _dice(self, count: int | None, start: int) -> DiceTerm:
        # positioned on the 'd'
        self.index += 1
        if self._at_end() or not self._peek().isdigit():
            raise ParseDiceError(
                "Expected number of sides after 'd'",
                expression=self.text,
                position=self.index,
            )
        sides_position = self.index
        sides = self._integer()
        if count is None:
            count = 1
        if count == 0:
            raise ParseDiceError(
                "Dice count must be at least 1", expression=self.text, position=start
            )
        if count > MAX_DICE_COUNT:
            raise ParseDiceError(
                f"Dice count must be at most {MAX_DICE_COUNT}",
                expression=self.text,
                position=start,
            )
        if sides not in CANONICAL_DIE_FACES:
            raise InvalidDieFaceError(
                f"Invalid die face d{sides}",
                expression=self.text,
                position=sides_position,
            )
        return DiceTerm(count, Die(sides))

    def _factored(self) -> DiceTerm:
        # '(' dice ('×' | '*' | '÷' | '/') '-'? integer ('/' integer)? ')'
        self.index += 1
        self._skip_whitespace()
        start = self.index
        if self._at_end() or not (self._peek().isdigit() or self._peek() in "dD"):
            raise ParseDiceExpressionError(
                "Expected dice after '('", expression=self.text, position=self.index
            )
        count = self._integer() if self._peek().isdigit() else None
        if self._at_end() or self._peek() not in "dD":
            raise ParseDiceError(
                "Expected 'd' between count and sides", expression=self.text, position=self.index
            )
        term = self._dice(count, start)
        self._skip_whitespace()
        operator = self._peek() if not self._at_end() else ""
        if operator not in ("×", "*", "÷", "/"):
            raise ParseDiceExpressionError(
                "Expected '×' or '÷' after dice in parentheses",
                expression=self.text,
                position=self.index,
            )
        self.index += 1
        self._skip_whitespace()
        factor = self._signed_fraction()
        if operator in ("÷", "/"):
            if factor == 0:
                raise ParseDiceExpressionError(
                    "Division by zero in factored dice", expression=self.text, position=self.index
                )
            factor = 1 / factor
        self._skip_whitespace()
        if self._at_end() or self._peek() != ")":
            raise ParseDiceExpressionError(
                "Expected ')' after factored dice", expression=self.text, position=self.index
            )
        self.index += 1
        return term.scaled(factor)

    def _signed_fraction(self) -> Fraction:
        negative = False
        if not self._at_end() and self._peek() == "-":
            negative = True
            self.index += 1
        if self._at_end() or not self._peek().isdigit():
            raise ParseDiceExpressionError(
                "Expected a number as factor", expression=self.text, position=self.index
            )
        value = Fraction(self._integer())
        if not self._at_end() and self._peek() == "/":
            self.index += 1
            if self._at_end() or not self._peek().isdigit():
                raise ParseDiceExpressionError(
                    "Expected a denominator", expression=self.text, position=self.index
                )
            denominator = self._integer()
            if denominator == 0:
                raise ParseDiceExpressionError(
                    "Division by zero in factor", expression=self.text, position=self.index
                )
            value /= denominator
        return -value if negative else value

    def _integer(self) -> int:
        start = self.index
        while not self._at_end() and self._peek().isdigit():
            self.index += 1
        return int(self.text[start : self.index])

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek().isspace():
            self.index += 1

    def _peek(self) -> str:
        return self.text[self.index]

    def _at_end(self) -> bool:
        return self.index >= len(self.text)


def parse_dice_expression(text: str) -> DiceExpression:
    """Parse dice notation into a DiceExpression.

    Args:
        text: Dice notation such as ``"2d6 + 3"``.

    Returns:
        The parsed, immutable expression.

    Raises:
        ParseDiceError: A single term is malformed (zero count, missing
            ``d`` or sides).
        InvalidDieFaceError: A term uses a die outside the canonical faces.
        ParseDiceExpressionError: Terms are combined incorrectly (empty
            text, dangling operator, stray characters).

    Example:
        >>> parse_dice_expression("d8+2").render()
        '1d8 + 2'
    """
    return _DiceParser(text).parse()


# =============================================================================
# Rolling
# =============================================================================


@dataclass(frozen=True)
class DiceRoll:
    """Result of rolling a dice expression.

    Attributes:
        expression: Canonical form of the expression rolled.
        total: The rolled total.
        detail: The d20 library's breakdown of individual dice.
    """

    expression: str
    total: int
    detail: str


class DiceRoller:
    """Roll dice expressions through the d20 library.

    Example:
        >>> roller = DiceRoller(seed=42)
        >>> roller.roll("2d6 + 3").total
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll(self, expression: DiceExpression | str) -> DiceRoll:
        """Roll an expression.

        Args:
            expression: A parsed expression or dice notation.

        Returns:
            The roll result.

        Raises:
            ParseDiceError: If ``expression`` is text that does not parse.
        """
        parsed = parse_dice_expression(expression) if isinstance(expression, str) else expression
        result = d20.roll(parsed.to_d20())
        logger.debug("Dice rolled", expression=parsed.render(), total=result.total)
        return DiceRoll(expression=parsed.render(), total=result.total, detail=str(result))


def roll(expression: DiceExpression | str, seed: int | None = None) -> DiceRoll:
    """Roll an expression once with a fresh roller.

    Example:
        >>> roll("1d20 + 5", seed=7).expression
        '1d20 + 5'
    """
    return DiceRoller(seed=seed).roll(expression)


__all__ = [
    "Die",
    "DiceTerm",
    "DiceExpression",
    "DiceRoll",
    "DiceRoller",
    "parse_dice_expression",
    "roll",
]
