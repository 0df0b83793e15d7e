"""Text interpolation engine.

Authored prose is compiled into a list of stack operations and evaluated
against a closed mapping of variables. The result is structured text: blocks
of styled spans rather than a flat string.

Expression grammar (inside ``${ ... }``)::

    directive      = command | ')' | expression
    command        = ('bold' | 'italic' | 'par' | 'sub') '(' expression* [')']
    expression     = additive ['then' expression 'else' expression]
    additive       = multiplicative (('+' | '-') multiplicative)*
    multiplicative = unary (('*' | '/<' | '/>') unary)*
    unary          = ('-' | '+' | '$')* term
    term           = string | number | dice | identifier | '(' expression ')'

Values are strings, numbers and dice. Unary ``+`` marks a value for signed
display (``+5``), ``$`` turns a number or dice into its display string, and
dice display as ``"avg (expr)"``.

Example:
    >>> blocks = interpolate("Goblin", "${Subj} hits.", variables={"Subj": "The goblin"})
    >>> blocks[0].body[0].content
    'The goblin hits.'
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Union

from monster_forge.core.exceptions import InterpolationError
from monster_forge.core.logging import get_logger
from monster_forge.engine.dice import DiceExpression
from monster_forge.engine.tokenizer import Token, TokenKind, TokenizerMode, tokenize
from monster_forge.models.structured_text import (
    BlockKind,
    Span,
    SpanStyle,
    StructuredText,
    TextBlock,
    merge_spans,
)


if TYPE_CHECKING:
    from collections.abc import Mapping


logger = get_logger(__name__)


# =============================================================================
# Values
# =============================================================================


@dataclass(frozen=True)
class StringValue:
    """A text value."""

    text: str

    def display(self) -> str:
        return self.text


@dataclass(frozen=True)
class NumberValue:
    """An integer, optionally displayed with an explicit sign."""

    value: int
    signed: bool = False

    def display(self) -> str:
        return f"{self.value:+d}" if self.signed else str(self.value)


@dataclass(frozen=True)
class DiceValue:
    """A dice expression, displayed as its average followed by the formula."""

    expression: DiceExpression
    signed: bool = False

    def display(self) -> str:
        text = self.expression.display()
        if self.signed and not self.expression.is_negative and self.expression.average_value >= 0:
            return f"+{text}"
        return text


InterpolationValue = Union[StringValue, NumberValue, DiceValue]
"""Any value an expression can produce."""


def to_value(raw: Any, *, name: str | None = None) -> InterpolationValue:
    """Convert a plain Python value into an interpolation value.

    Strings, ints and DiceExpressions are wrapped; interpolation values pass
    through unchanged.

    Args:
        raw: The value to convert.
        name: Variable name, reported in the error.

    Raises:
        InterpolationError: With kind ``unsupported_value`` for any other type.
    """
    if isinstance(raw, (StringValue, NumberValue, DiceValue)):
        return raw
    if isinstance(raw, str):
        return StringValue(raw)
    if isinstance(raw, int) and not isinstance(raw, bool):
        return NumberValue(raw)
    if isinstance(raw, DiceExpression):
        return DiceValue(raw)
    details = {"variable": name} if name else None
    raise InterpolationError(
        f"Cannot interpolate value of type {type(raw).__name__}",
        kind="unsupported_value",
        details=details,
    )


def _is_truthy(value: InterpolationValue) -> bool:
    if isinstance(value, StringValue):
        return bool(value.text)
    if isinstance(value, NumberValue):
        return value.value != 0
    return True


# =============================================================================
# Operations
# =============================================================================


class OpCode(StrEnum):
    """Stack machine instructions."""

    PUSH = "push"
    GET_VARIABLE = "get_variable"
    NEGATE = "negate"
    STRINGIFY = "stringify"
    SIGN = "sign"
    MULTIPLY = "multiply"
    FLOOR_DIVIDE = "floor_divide"
    CEILING_DIVIDE = "ceiling_divide"
    ADD = "add"
    SUBTRACT = "subtract"
    CHOOSE = "choose"
    APPEND = "append"
    APPEND_TEXT = "append_text"
    START_BOLD = "start_bold"
    END_BOLD = "end_bold"
    START_ITALIC = "start_italic"
    END_ITALIC = "end_italic"
    START_PARAGRAPH = "start_paragraph"
    START_SUB_PARAGRAPH = "start_sub_paragraph"
    END_HEADING = "end_heading"
    PARAGRAPH_BREAK = "paragraph_break"


@dataclass(frozen=True)
class Operation:
    """One instruction with the source position it was compiled from."""

    code: OpCode
    argument: Any = None
    line: int = 1
    column: int = 1


_BINARY_OPERATORS = {
    TokenKind.PLUS: OpCode.ADD,
    TokenKind.MINUS: OpCode.SUBTRACT,
    TokenKind.ASTERISK: OpCode.MULTIPLY,
    TokenKind.FLOOR_DIVIDE: OpCode.FLOOR_DIVIDE,
    TokenKind.CEILING_DIVIDE: OpCode.CEILING_DIVIDE,
}

_UNARY_OPERATORS = {
    TokenKind.MINUS: OpCode.NEGATE,
    TokenKind.PLUS: OpCode.SIGN,
    TokenKind.DOLLAR: OpCode.STRINGIFY,
}

# open structure -> the instruction that closes it
_COMMAND_CLOSERS = {
    "bold": OpCode.END_BOLD,
    "italic": OpCode.END_ITALIC,
    "par": OpCode.END_HEADING,
    "sub": OpCode.END_HEADING,
}


@dataclass
class _OpenStructure:
    name: str
    markup: bool
    line: int
    column: int


# =============================================================================
# Compiler
# =============================================================================


@dataclass
class _Compiler:
    """Recursive-descent compiler from tokens to operations."""

    tokens: list[Token]
    context_label: str | None
    structured: bool
    position: int = 0
    operations: list[Operation] = field(default_factory=list)
    open_structures: list[_OpenStructure] = field(default_factory=list)

    def compile(self) -> list[Operation]:
        while self._current.kind is not TokenKind.END:
            token = self._current
            if token.kind is TokenKind.TEXT:
                self._emit(OpCode.APPEND_TEXT, token.value, token)
                self._advance()
            elif token.kind in (TokenKind.BOLD_MARK, TokenKind.ITALIC_MARK):
                self._markup(token)
                self._advance()
            elif token.kind is TokenKind.PARAGRAPH_BREAK:
                if self.open_structures:
                    raise self._unterminated(self.open_structures[-1])
                self._emit(OpCode.PARAGRAPH_BREAK, None, token)
                self._advance()
            elif token.kind is TokenKind.OPEN_DIRECTIVE:
                self._advance()
                self._directive()
            else:
                raise self._error(f"Unexpected token {token.kind.value}", "unexpected_token", token)
        if self.open_structures:
            raise self._unterminated(self.open_structures[-1])
        return self.operations

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    def _directive(self) -> None:
        token = self._current
        if token.kind is TokenKind.COMMAND:
            self._advance()
            self._command(token)
        elif token.kind is TokenKind.CLOSE_PAREN:
            self._advance()
            self._close(token)
        else:
            self._expression()
            self._emit(OpCode.APPEND, None, token)
        self._expect(TokenKind.CLOSE_DIRECTIVE, "Expected end of expression")

    def _command(self, token: Token) -> None:
        if not self.structured:
            raise self._error(
                f"'{token.value}(' cannot be used in plain text",
                "unexpected_structured_text",
                token,
            )
        name = token.value
        if name in ("par", "sub"):
            if self.open_structures:
                raise self._error(
                    f"'{name}(' cannot start inside another structure",
                    "nested_markup",
                    token,
                )
            code = OpCode.START_PARAGRAPH if name == "par" else OpCode.START_SUB_PARAGRAPH
        else:
            self._ensure_not_open(name, token)
            code = OpCode.START_BOLD if name == "bold" else OpCode.START_ITALIC
        self._emit(code, None, token)
        self.open_structures.append(_OpenStructure(name, False, token.line, token.column))
        # inline arguments, e.g. ${italic("Hit:")}
        while self._current.kind not in (TokenKind.CLOSE_PAREN, TokenKind.CLOSE_DIRECTIVE):
            argument = self._current
            self._expression()
            self._emit(OpCode.APPEND, None, argument)
        if self._current.kind is TokenKind.CLOSE_PAREN:
            close = self._current
            self._advance()
            self._close(close)

    def _close(self, token: Token) -> None:
        if not self.open_structures:
            raise self._error("')' does not close anything", "unexpected_close", token)
        top = self.open_structures[-1]
        if top.markup:
            raise self._unterminated(top)
        self.open_structures.pop()
        self._emit(_COMMAND_CLOSERS[top.name], None, token)

    def _markup(self, token: Token) -> None:
        name = "bold" if token.kind is TokenKind.BOLD_MARK else "italic"
        top = self.open_structures[-1] if self.open_structures else None
        if top is not None and top.markup and top.name == name:
            self.open_structures.pop()
            self._emit(OpCode.END_BOLD if name == "bold" else OpCode.END_ITALIC, None, token)
            return
        self._ensure_not_open(name, token)
        self._emit(OpCode.START_BOLD if name == "bold" else OpCode.START_ITALIC, None, token)
        self.open_structures.append(_OpenStructure(name, True, token.line, token.column))

    def _ensure_not_open(self, name: str, token: Token) -> None:
        if any(structure.name == name for structure in self.open_structures):
            raise self._error(f"Text is already {name}", "nested_markup", token)

    # -------------------------------------------------------------------------
    # Expressions
    # -------------------------------------------------------------------------

    def _expression(self) -> None:
        self._additive()
        if self._current.kind is TokenKind.THEN:
            token = self._current
            self._advance()
            self._expression()
            self._expect(TokenKind.ELSE, "Expected 'else' after 'then' branch")
            self._expression()
            self._emit(OpCode.CHOOSE, None, token)

    def _additive(self) -> None:
        self._multiplicative()
        while self._current.kind in (TokenKind.PLUS, TokenKind.MINUS):
            token = self._current
            self._advance()
            self._multiplicative()
            self._emit(_BINARY_OPERATORS[token.kind], None, token)

    def _multiplicative(self) -> None:
        self._unary()
        while self._current.kind in (
            TokenKind.ASTERISK,
            TokenKind.FLOOR_DIVIDE,
            TokenKind.CEILING_DIVIDE,
        ):
            token = self._current
            self._advance()
            self._unary()
            self._emit(_BINARY_OPERATORS[token.kind], None, token)

    def _unary(self) -> None:
        pending: list[Token] = []
        while self._current.kind in _UNARY_OPERATORS:
            pending.append(self._current)
            self._advance()
        self._term()
        for token in reversed(pending):
            self._emit(_UNARY_OPERATORS[token.kind], None, token)

    def _term(self) -> None:
        token = self._current
        if token.kind is TokenKind.STRING:
            self._emit(OpCode.PUSH, StringValue(token.value), token)
        elif token.kind is TokenKind.NUMBER:
            self._emit(OpCode.PUSH, NumberValue(token.value), token)
        elif token.kind is TokenKind.DICE:
            self._emit(OpCode.PUSH, DiceValue(token.value), token)
        elif token.kind is TokenKind.IDENTIFIER:
            self._emit(OpCode.GET_VARIABLE, token.value, token)
        elif token.kind is TokenKind.OPEN_PAREN:
            self._advance()
            self._expression()
            self._expect(TokenKind.CLOSE_PAREN, "Expected ')'")
            return
        else:
            raise self._error("Expected an expression", "expected_expression", token)
        self._advance()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @property
    def _current(self) -> Token:
        return self.tokens[self.position]

    def _advance(self) -> None:
        if self._current.kind is not TokenKind.END:
            self.position += 1

    def _expect(self, kind: TokenKind, message: str) -> None:
        if self._current.kind is not kind:
            raise self._error(message, "expected_token", self._current)
        self._advance()

    def _emit(self, code: OpCode, argument: Any, token: Token) -> None:
        self.operations.append(Operation(code, argument, token.line, token.column))

    def _error(self, message: str, kind: str, token: Token) -> InterpolationError:
        return InterpolationError(
            message,
            kind=kind,
            line=token.line,
            column=token.column,
            context_label=self.context_label,
        )

    def _unterminated(self, structure: _OpenStructure) -> InterpolationError:
        return InterpolationError(
            f"'{structure.name}' is never closed",
            kind="unterminated_markup",
            line=structure.line,
            column=structure.column,
            context_label=self.context_label,
        )


# =============================================================================
# Evaluator
# =============================================================================


@dataclass
class _Evaluator:
    """Runs compiled operations and assembles blocks."""

    variables: Mapping[str, InterpolationValue]
    context_label: str | None
    capitalize_first: bool
    stack: list[InterpolationValue] = field(default_factory=list)
    blocks: list[TextBlock] = field(default_factory=list)
    spans: list[Span] = field(default_factory=list)
    heading: list[Span] | None = None
    text: list[str] = field(default_factory=list)
    block_kind: BlockKind = BlockKind.PARAGRAPH
    in_heading: bool = False
    bold: bool = False
    italic: bool = False
    at_start: bool = True

    def run(self, operations: list[Operation]) -> StructuredText:
        for operation in operations:
            self._step(operation)
        self._end_block()
        return tuple(self.blocks)

    def run_plain(self, operations: list[Operation]) -> str:
        for operation in operations:
            self._step(operation)
        return "".join(self.text)

    def _step(self, op: Operation) -> None:
        code = op.code
        if code is OpCode.PUSH:
            self.stack.append(op.argument)
        elif code is OpCode.GET_VARIABLE:
            if op.argument not in self.variables:
                raise self._error(f"Unknown variable '{op.argument}'", "unknown_variable", op)
            self.stack.append(self.variables[op.argument])
        elif code is OpCode.NEGATE:
            self.stack.append(self._negate(self.stack.pop(), op))
        elif code is OpCode.SIGN:
            self.stack.append(self._sign(self.stack.pop(), op))
        elif code is OpCode.STRINGIFY:
            self.stack.append(self._stringify(self.stack.pop(), op))
        elif code in (
            OpCode.ADD,
            OpCode.SUBTRACT,
            OpCode.MULTIPLY,
            OpCode.FLOOR_DIVIDE,
            OpCode.CEILING_DIVIDE,
        ):
            rhs = self.stack.pop()
            lhs = self.stack.pop()
            self.stack.append(self._binary(code, lhs, rhs, op))
        elif code is OpCode.CHOOSE:
            otherwise = self.stack.pop()
            then = self.stack.pop()
            condition = self.stack.pop()
            self.stack.append(then if _is_truthy(condition) else otherwise)
        elif code is OpCode.APPEND:
            self._append(self.stack.pop().display(), interpolated=True)
        elif code is OpCode.APPEND_TEXT:
            self._append(op.argument, interpolated=False)
        elif code is OpCode.START_BOLD:
            self._end_span()
            self.bold = True
        elif code is OpCode.END_BOLD:
            self._end_span()
            self.bold = False
        elif code is OpCode.START_ITALIC:
            self._end_span()
            self.italic = True
        elif code is OpCode.END_ITALIC:
            self._end_span()
            self.italic = False
        elif code in (OpCode.START_PARAGRAPH, OpCode.START_SUB_PARAGRAPH):
            self._end_block()
            self.block_kind = (
                BlockKind.PARAGRAPH if code is OpCode.START_PARAGRAPH else BlockKind.SUB_PARAGRAPH
            )
            self.in_heading = True
        elif code is OpCode.END_HEADING:
            self._end_span()
            self.heading = self.spans or None
            self.spans = []
            self.in_heading = False
            # the body after a run-in heading starts the sentence again
            self.at_start = True
        elif code is OpCode.PARAGRAPH_BREAK:
            self._end_block()

    def _append(self, content: str, *, interpolated: bool) -> None:
        if not content:
            return
        if self.at_start and interpolated and self.capitalize_first:
            content = content[0].upper() + content[1:]
        self.at_start = False
        self.text.append(content)

    def _style(self) -> SpanStyle:
        if self.in_heading:
            if self.block_kind is BlockKind.PARAGRAPH:
                return SpanStyle.BOLD_ITALIC
            return SpanStyle.combine(bold=True, italic=self.italic)
        return SpanStyle.combine(bold=self.bold, italic=self.italic)

    def _end_span(self) -> None:
        if self.text:
            self.spans.append(Span(style=self._style(), content="".join(self.text)))
            self.text = []

    def _end_block(self) -> None:
        self._end_span()
        if self.heading or self.spans:
            self.blocks.append(
                TextBlock(
                    block=self.block_kind,
                    heading=merge_spans(self.heading) if self.heading else None,
                    body=merge_spans(self.spans),
                )
            )
        self.heading = None
        self.spans = []
        self.in_heading = False
        self.bold = False
        self.italic = False

    # -------------------------------------------------------------------------
    # Value arithmetic
    # -------------------------------------------------------------------------

    def _negate(self, value: InterpolationValue, op: Operation) -> InterpolationValue:
        if isinstance(value, NumberValue):
            return NumberValue(-value.value, value.signed)
        if isinstance(value, DiceValue):
            return DiceValue(value.expression.negate(), value.signed)
        raise self._error("Can't negate a string", "cant_negate_string", op)

    def _sign(self, value: InterpolationValue, op: Operation) -> InterpolationValue:
        if isinstance(value, NumberValue):
            return NumberValue(value.value, True)
        if isinstance(value, DiceValue):
            return DiceValue(value.expression, True)
        raise self._error("Can't sign a string", "cant_sign_string", op)

    def _stringify(self, value: InterpolationValue, op: Operation) -> InterpolationValue:
        if isinstance(value, StringValue):
            raise self._error("Value is already a string", "string_already_stringified", op)
        return StringValue(value.display())

    def _binary(
        self,
        code: OpCode,
        lhs: InterpolationValue,
        rhs: InterpolationValue,
        op: Operation,
    ) -> InterpolationValue:
        if code is OpCode.ADD:
            return self._add(lhs, rhs, op)
        if code is OpCode.SUBTRACT:
            return self._subtract(lhs, rhs, op)
        if code is OpCode.MULTIPLY:
            return self._multiply(lhs, rhs, op)
        return self._divide(lhs, rhs, op, round_up=code is OpCode.CEILING_DIVIDE)

    def _add(
        self, lhs: InterpolationValue, rhs: InterpolationValue, op: Operation
    ) -> InterpolationValue:
        if isinstance(lhs, StringValue) and isinstance(rhs, StringValue):
            return StringValue(lhs.text + rhs.text)
        if isinstance(lhs, StringValue) or isinstance(rhs, StringValue):
            raise self._error(
                "Strings can only be concatenated with strings",
                "cant_concatenate_non_strings",
                op,
            )
        if isinstance(lhs, NumberValue) and isinstance(rhs, NumberValue):
            return NumberValue(lhs.value + rhs.value, lhs.signed)
        if isinstance(lhs, DiceValue) and isinstance(rhs, DiceValue):
            return DiceValue(lhs.expression.add_dice(rhs.expression), lhs.signed)
        if isinstance(lhs, DiceValue):
            return DiceValue(lhs.expression.add(rhs.value), lhs.signed)
        return DiceValue(rhs.expression.add(lhs.value), lhs.signed)

    def _subtract(
        self, lhs: InterpolationValue, rhs: InterpolationValue, op: Operation
    ) -> InterpolationValue:
        if isinstance(lhs, StringValue) or isinstance(rhs, StringValue):
            raise self._error("Can't subtract strings", "cant_subtract_strings", op)
        if isinstance(lhs, NumberValue) and isinstance(rhs, NumberValue):
            return NumberValue(lhs.value - rhs.value, lhs.signed)
        if isinstance(lhs, DiceValue) and isinstance(rhs, DiceValue):
            return DiceValue(lhs.expression.subtract_dice(rhs.expression), lhs.signed)
        if isinstance(lhs, DiceValue):
            return DiceValue(lhs.expression.subtract(rhs.value), lhs.signed)
        return DiceValue(rhs.expression.negate().add(lhs.value), lhs.signed)

    def _multiply(
        self, lhs: InterpolationValue, rhs: InterpolationValue, op: Operation
    ) -> InterpolationValue:
        if isinstance(lhs, StringValue) or isinstance(rhs, StringValue):
            raise self._error("Can't multiply strings", "cant_multiply_strings", op)
        if isinstance(lhs, DiceValue) and isinstance(rhs, DiceValue):
            raise self._error("Can't multiply dice by dice", "cant_multiply_dice", op)
        if isinstance(lhs, NumberValue) and isinstance(rhs, NumberValue):
            return NumberValue(lhs.value * rhs.value, lhs.signed)
        if isinstance(lhs, DiceValue):
            return DiceValue(lhs.expression.multiply(rhs.value), lhs.signed)
        return DiceValue(rhs.expression.multiply(lhs.value), lhs.signed)

    def _divide(
        self,
        lhs: InterpolationValue,
        rhs: InterpolationValue,
        op: Operation,
        *,
        round_up: bool,
    ) -> InterpolationValue:
        if isinstance(lhs, StringValue) or isinstance(rhs, StringValue):
            raise self._error("Can't divide strings", "cant_divide_strings", op)
        if isinstance(rhs, DiceValue):
            raise self._error("Can't divide by dice", "cant_divide_by_dice", op)
        if rhs.value == 0:
            raise self._error("Division by zero", "division_by_zero", op)
        if isinstance(lhs, NumberValue):
            value = -(-lhs.value // rhs.value) if round_up else lhs.value // rhs.value
            return NumberValue(value, lhs.signed)
        return DiceValue(lhs.expression.divide(rhs.value, round_up=round_up), lhs.signed)

    def _error(self, message: str, kind: str, op: Operation) -> InterpolationError:
        return InterpolationError(
            message,
            kind=kind,
            line=op.line,
            column=op.column,
            context_label=self.context_label,
        )


# =============================================================================
# Public API
# =============================================================================


def _prepare_variables(variables: Mapping[str, Any] | None) -> dict[str, InterpolationValue]:
    return {name: to_value(value, name=name) for name, value in (variables or {}).items()}


def escape_text(text: str) -> str:
    """Escape literal text so it can be embedded in authored text unchanged.

    Example:
        >>> escape_text("Bite *special*")
        'Bite \\*special\\*'
    """
    return text.replace("\\", "\\\\").replace("$", "\\$").replace("*", "\\*")


def compile_text(
    text: str,
    *,
    mode: TokenizerMode = TokenizerMode.STAT_BLOCK,
    paragraph_mode: bool = False,
    context_label: str | None = None,
) -> list[Operation]:
    """Compile text into stack operations without evaluating it.

    Useful for validating authored text before any creature exists.

    Raises:
        InterpolationError: If the text does not tokenize or parse.
    """
    tokens = tokenize(text, mode=mode, paragraph_mode=paragraph_mode, context_label=context_label)
    compiler = _Compiler(
        tokens,
        context_label=context_label,
        structured=mode is TokenizerMode.STAT_BLOCK,
    )
    return compiler.compile()


def interpolate(
    subject_name: str,
    raw_text: str,
    context_label: str | None = None,
    paragraph_mode: bool = False,
    capitalize_first: bool = False,
    *,
    variables: Mapping[str, Any] | None = None,
) -> StructuredText:
    """Interpolate authored text into structured text.

    Args:
        subject_name: Name of the creature the text describes, used in log
            events and error labels.
        raw_text: The authored text.
        context_label: Label of the text (e.g. ``"feature: Nimble Escape"``)
            attached to any error.
        paragraph_mode: Treat blank lines as paragraph breaks.
        capitalize_first: Upper-case the first letter when the output
            starts with an interpolated value.
        variables: The closed set of variables the text may reference.
            Values may be str, int, DiceExpression or interpolation values.

    Returns:
        A tuple of text blocks.

    Raises:
        InterpolationError: On any tokenize, parse or evaluation failure.
    """
    label = context_label or subject_name
    operations = compile_text(raw_text, paragraph_mode=paragraph_mode, context_label=label)
    evaluator = _Evaluator(
        variables=_prepare_variables(variables),
        context_label=label,
        capitalize_first=capitalize_first,
    )
    result = evaluator.run(operations)
    logger.debug("Text interpolated", subject=subject_name, context=label, blocks=len(result))
    return result


def interpolate_plain(
    text: str,
    variables: Mapping[str, Any] | None = None,
    *,
    context_label: str | None = None,
) -> str:
    """Expand ``$<expr>`` expressions in text, producing a plain string.

    Used to fill arguments into an included directive document before it is
    parsed. ``${...}`` sequences are left in place for later interpolation,
    and structure commands are rejected.

    Raises:
        InterpolationError: On any tokenize, parse or evaluation failure.
    """
    operations = compile_text(text, mode=TokenizerMode.INCLUDE, context_label=context_label)
    evaluator = _Evaluator(
        variables=_prepare_variables(variables),
        context_label=context_label,
        capitalize_first=False,
    )
    return evaluator.run_plain(operations)


__all__ = [
    "StringValue",
    "NumberValue",
    "DiceValue",
    "InterpolationValue",
    "OpCode",
    "Operation",
    "to_value",
    "escape_text",
    "compile_text",
    "interpolate",
    "interpolate_plain",
]
