"""Tokenizer for the text interpolation language.

Authored text alternates between literal text and embedded expressions::

    ${Subj} makes ${+str + prof} attacks with **bold** and *italic* text.

Two modes exist. In stat block mode expressions open with ``${`` and close
with ``}``, and the ``**``/``*`` markup delimiters and blank-line paragraph
breaks are recognized. In include mode expressions open with ``$<`` and
close with ``>``; everything else is literal text, so a ``${...}`` written
inside an included document passes through untouched.

Every token carries the one-based line and column where it starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from monster_forge.core.exceptions import DiceNotationError, InterpolationError
from monster_forge.engine.dice import DiceExpression, parse_dice_expression


if TYPE_CHECKING:
    from collections.abc import Iterator


class TokenizerMode(StrEnum):
    """Which delimiters open and close an embedded expression."""

    STAT_BLOCK = "stat_block"
    INCLUDE = "include"

    @property
    def opener(self) -> str:
        """Character following ``$`` that opens an expression."""
        return "{" if self is TokenizerMode.STAT_BLOCK else "<"

    @property
    def closer(self) -> str:
        """Character that closes an expression."""
        return "}" if self is TokenizerMode.STAT_BLOCK else ">"


class TokenKind(StrEnum):
    """Token categories."""

    # text mode
    TEXT = "text"
    BOLD_MARK = "bold_mark"
    ITALIC_MARK = "italic_mark"
    PARAGRAPH_BREAK = "paragraph_break"
    OPEN_DIRECTIVE = "open_directive"
    CLOSE_DIRECTIVE = "close_directive"

    # expression mode
    IDENTIFIER = "identifier"
    NUMBER = "number"
    DICE = "dice"
    STRING = "string"
    COMMAND = "command"
    THEN = "then"
    ELSE = "else"
    PLUS = "plus"
    MINUS = "minus"
    ASTERISK = "asterisk"
    FLOOR_DIVIDE = "floor_divide"
    CEILING_DIVIDE = "ceiling_divide"
    OPEN_PAREN = "open_paren"
    CLOSE_PAREN = "close_paren"
    DOLLAR = "dollar"

    END = "end"


COMMANDS = frozenset({"bold", "italic", "par", "sub"})
"""Identifiers that open a structure when followed by ``(``."""

KEYWORDS = {"then": TokenKind.THEN, "else": TokenKind.ELSE}

_SINGLE_CHARACTER_TOKENS = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.ASTERISK,
    "(": TokenKind.OPEN_PAREN,
    ")": TokenKind.CLOSE_PAREN,
    "$": TokenKind.DOLLAR,
}

_TEXT_ESCAPES = frozenset("$*\\")


@dataclass(frozen=True)
class Token:
    """A single token.

    Attributes:
        kind: Token category.
        value: Text for TEXT/IDENTIFIER/STRING/COMMAND, an int for NUMBER,
            a DiceExpression for DICE, otherwise None.
        line: One-based line of the first character.
        column: One-based column of the first character.
    """

    kind: TokenKind
    value: Any = None
    line: int = 1
    column: int = 1


class Tokenizer:
    """Character-level scanner producing Token objects.

    Example:
        >>> [t.kind for t in Tokenizer("Hi ${name}!")]
        [<TokenKind.TEXT: 'text'>, <TokenKind.OPEN_DIRECTIVE: ...>, ...]
    """

    def __init__(
        self,
        text: str,
        *,
        mode: TokenizerMode = TokenizerMode.STAT_BLOCK,
        paragraph_mode: bool = False,
        context_label: str | None = None,
    ) -> None:
        """Initialize the tokenizer.

        Args:
            text: Source text.
            mode: Delimiter set and whether markup is recognized.
            paragraph_mode: Treat blank lines as paragraph breaks.
            context_label: Label used in error messages.
        """
        self.text = text
        self.mode = mode
        self.paragraph_mode = paragraph_mode and mode is TokenizerMode.STAT_BLOCK
        self.markup = mode is TokenizerMode.STAT_BLOCK
        # Include mode leaves JSON backslash escapes alone
        self.escapes = _TEXT_ESCAPES if self.markup else frozenset("$")
        self.context_label = context_label
        self._index = 0
        self._line = 1
        self._column = 1

    def __iter__(self) -> Iterator[Token]:
        in_expression = False
        while not self._at_end():
            if in_expression:
                token = self._expression_token()
                if token is None:
                    continue
                if token.kind is TokenKind.CLOSE_DIRECTIVE:
                    in_expression = False
                yield token
            else:
                for token in self._text_tokens():
                    if token.kind is TokenKind.OPEN_DIRECTIVE:
                        in_expression = True
                    yield token
                    if in_expression:
                        break
        if in_expression:
            raise self._error(
                "Expression is missing its closing delimiter", "unterminated_directive"
            )
        yield Token(TokenKind.END, None, self._line, self._column)

    # -------------------------------------------------------------------------
    # Text mode
    # -------------------------------------------------------------------------

    def _text_tokens(self) -> Iterator[Token]:
        buffer: list[str] = []
        line, column = self._line, self._column

        def flush() -> Iterator[Token]:
            if buffer:
                yield Token(TokenKind.TEXT, "".join(buffer), line, column)
                buffer.clear()

        while not self._at_end():
            char = self._peek()
            if char == "\\" and self._peek(1) in self.escapes:
                self._advance()
                buffer.append(self._advance())
            elif char == "$" and self._peek(1) == self.mode.opener:
                yield from flush()
                start_line, start_column = self._line, self._column
                self._advance()
                self._advance()
                yield Token(TokenKind.OPEN_DIRECTIVE, None, start_line, start_column)
                return
            elif self.markup and char == "*":
                yield from flush()
                start_line, start_column = self._line, self._column
                self._advance()
                if self._peek() == "*":
                    self._advance()
                    yield Token(TokenKind.BOLD_MARK, None, start_line, start_column)
                else:
                    yield Token(TokenKind.ITALIC_MARK, None, start_line, start_column)
                line, column = self._line, self._column
            elif self.paragraph_mode and char == "\n" and self._blank_line_ahead():
                yield from flush()
                start_line, start_column = self._line, self._column
                while not self._at_end() and self._peek().isspace():
                    self._advance()
                yield Token(TokenKind.PARAGRAPH_BREAK, None, start_line, start_column)
                line, column = self._line, self._column
            else:
                buffer.append(self._advance())
        yield from flush()

    def _blank_line_ahead(self) -> bool:
        # a newline, optional horizontal whitespace, then another newline
        offset = 1
        while True:
            char = self._peek(offset)
            if char == "\n":
                return True
            if char in (" ", "\t", "\r"):
                offset += 1
                continue
            return False

    # -------------------------------------------------------------------------
    # Expression mode
    # -------------------------------------------------------------------------

    def _expression_token(self) -> Token | None:
        char = self._peek()
        if char.isspace():
            self._advance()
            return None
        line, column = self._line, self._column
        if char == self.mode.closer:
            self._advance()
            return Token(TokenKind.CLOSE_DIRECTIVE, None, line, column)
        if char.isalpha() or char == "_":
            return self._word(line, column)
        if char.isdigit():
            return self._number_or_dice(line, column)
        if char == '"':
            return Token(TokenKind.STRING, self._string(), line, column)
        if char == "/":
            self._advance()
            following = self._peek()
            if following == "<":
                self._advance()
                return Token(TokenKind.FLOOR_DIVIDE, None, line, column)
            if following == ">":
                self._advance()
                return Token(TokenKind.CEILING_DIVIDE, None, line, column)
            raise self._error(
                "'/' must be followed by '<' (floor) or '>' (ceiling)",
                "unexpected_character",
                line,
                column,
            )
        if char in _SINGLE_CHARACTER_TOKENS:
            self._advance()
            return Token(_SINGLE_CHARACTER_TOKENS[char], None, line, column)
        raise self._error(f"Unexpected character {char!r}", "unexpected_character", line, column)

    def _word(self, line: int, column: int) -> Token:
        start = self._index
        while not self._at_end() and (self._peek().isalnum() or self._peek() == "_"):
            self._advance()
        word = self.text[start : self._index]
        if word in KEYWORDS:
            return Token(KEYWORDS[word], word, line, column)
        if word in COMMANDS and self._peek() == "(":
            self._advance()
            return Token(TokenKind.COMMAND, word, line, column)
        return Token(TokenKind.IDENTIFIER, word, line, column)

    def _number_or_dice(self, line: int, column: int) -> Token:
        start = self._index
        while not self._at_end() and self._peek().isdigit():
            self._advance()
        if self._peek() not in ("d", "D"):
            return Token(TokenKind.NUMBER, int(self.text[start : self._index]), line, column)
        self._advance()
        while not self._at_end() and self._peek().isdigit():
            self._advance()
        literal = self.text[start : self._index]
        try:
            dice: DiceExpression = parse_dice_expression(literal)
        except DiceNotationError as exc:
            raise self._error(
                f"Invalid dice literal {literal!r}: {exc.message}", "invalid_dice", line, column
            ) from exc
        return Token(TokenKind.DICE, dice, line, column)

    def _string(self) -> str:
        line, column = self._line, self._column
        self._advance()
        result: list[str] = []
        while not self._at_end():
            char = self._advance()
            if char == "\\" and self._peek() in ('"', "\\"):
                result.append(self._advance())
            elif char == '"':
                return "".join(result)
            else:
                result.append(char)
        raise self._error("String literal is not terminated", "unterminated_string", line, column)

    # -------------------------------------------------------------------------
    # Character access
    # -------------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> str:
        index = self._index + offset
        return self.text[index] if index < len(self.text) else ""

    def _advance(self) -> str:
        char = self.text[self._index]
        self._index += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return char

    def _at_end(self) -> bool:
        return self._index >= len(self.text)

    def _error(
        self,
        message: str,
        kind: str,
        line: int | None = None,
        column: int | None = None,
    ) -> InterpolationError:
        return InterpolationError(
            message,
            kind=kind,
            line=self._line if line is None else line,
            column=self._column if column is None else column,
            context_label=self.context_label,
        )


def tokenize(
    text: str,
    *,
    mode: TokenizerMode = TokenizerMode.STAT_BLOCK,
    paragraph_mode: bool = False,
    context_label: str | None = None,
) -> list[Token]:
    """Tokenize a full text.

    Args:
        text: Source text.
        mode: Delimiter set (stat block or include).
        paragraph_mode: Treat blank lines as paragraph breaks.
        context_label: Label used in error messages.

    Returns:
        All tokens, ending with a single END token.

    Raises:
        InterpolationError: On an unexpected character, an unterminated
            string or expression, or an invalid dice literal.
    """
    return list(
        Tokenizer(text, mode=mode, paragraph_mode=paragraph_mode, context_label=context_label)
    )


__all__ = [
    "COMMANDS",
    "KEYWORDS",
    "Token",
    "TokenKind",
    "Tokenizer",
    "TokenizerMode",
    "tokenize",
]
