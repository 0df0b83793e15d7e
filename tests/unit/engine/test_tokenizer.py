"""Tests for the interpolation tokenizer."""

from __future__ import annotations

import pytest

from monster_forge.core.exceptions import InterpolationError
from monster_forge.engine.dice import parse_dice_expression
from monster_forge.engine.tokenizer import Token, TokenKind, TokenizerMode, tokenize


def kinds(tokens: list[Token]) -> list[TokenKind]:
    return [token.kind for token in tokens]


class TestTextMode:
    """Tests for literal text, markup and paragraph breaks."""

    def test_plain_text(self) -> None:
        """Test text without directives is a single token."""
        tokens = tokenize("The goblin hides.")

        assert kinds(tokens) == [TokenKind.TEXT, TokenKind.END]
        assert tokens[0].value == "The goblin hides."

    def test_directive(self) -> None:
        """Test a directive splits the text."""
        tokens = tokenize("Hi ${name}!")

        assert kinds(tokens) == [
            TokenKind.TEXT,
            TokenKind.OPEN_DIRECTIVE,
            TokenKind.IDENTIFIER,
            TokenKind.CLOSE_DIRECTIVE,
            TokenKind.TEXT,
            TokenKind.END,
        ]
        assert tokens[2].value == "name"

    def test_markup(self) -> None:
        """Test bold and italic delimiters."""
        tokens = tokenize("**bold** and *italic*")

        assert kinds(tokens) == [
            TokenKind.BOLD_MARK,
            TokenKind.TEXT,
            TokenKind.BOLD_MARK,
            TokenKind.TEXT,
            TokenKind.ITALIC_MARK,
            TokenKind.TEXT,
            TokenKind.ITALIC_MARK,
            TokenKind.END,
        ]

    def test_escapes(self) -> None:
        """Test escaped dollar, asterisk and backslash are literal."""
        tokens = tokenize(r"costs \$5 \*each\* \\ done")

        assert kinds(tokens) == [TokenKind.TEXT, TokenKind.END]
        assert tokens[0].value == r"costs $5 *each* \ done"

    def test_unknown_escape_kept(self) -> None:
        """Test a backslash before any other character stays."""
        assert tokenize(r"a\nb")[0].value == r"a\nb"

    def test_paragraph_break(self) -> None:
        """Test blank lines split paragraphs in paragraph mode."""
        tokens = tokenize("One.\n\nTwo.", paragraph_mode=True)

        assert kinds(tokens) == [
            TokenKind.TEXT,
            TokenKind.PARAGRAPH_BREAK,
            TokenKind.TEXT,
            TokenKind.END,
        ]
        assert tokens[2].value == "Two."

    def test_blank_line_is_text_without_paragraph_mode(self) -> None:
        """Test blank lines stay literal by default."""
        tokens = tokenize("One.\n\nTwo.")

        assert kinds(tokens) == [TokenKind.TEXT, TokenKind.END]

    def test_positions(self) -> None:
        """Test tokens carry one-based line and column."""
        tokens = tokenize("ab\ncd ${x}")

        open_directive = tokens[1]
        assert open_directive.kind is TokenKind.OPEN_DIRECTIVE
        assert (open_directive.line, open_directive.column) == (2, 4)
        assert (tokens[2].line, tokens[2].column) == (2, 6)


class TestExpressionMode:
    """Tests for tokens inside a directive."""

    def test_operators_and_literals(self) -> None:
        """Test numbers, dice, strings and operators."""
        tokens = tokenize('${+str + 2d6 /< 2 /> 3 * "x"}')

        assert kinds(tokens)[1:-2] == [
            TokenKind.PLUS,
            TokenKind.IDENTIFIER,
            TokenKind.PLUS,
            TokenKind.DICE,
            TokenKind.FLOOR_DIVIDE,
            TokenKind.NUMBER,
            TokenKind.CEILING_DIVIDE,
            TokenKind.NUMBER,
            TokenKind.ASTERISK,
            TokenKind.STRING,
        ]
        assert tokens[4].value == parse_dice_expression("2d6")
        assert tokens[6].value == 2
        assert tokens[10].value == "x"

    def test_keywords(self) -> None:
        """Test then and else are keywords."""
        tokens = tokenize("${a then b else c}")

        assert TokenKind.THEN in kinds(tokens)
        assert TokenKind.ELSE in kinds(tokens)

    def test_commands(self) -> None:
        """Test block commands need an opening parenthesis."""
        tokens = tokenize("${italic(}Hit:${)}")

        assert tokens[1].kind is TokenKind.COMMAND
        assert tokens[1].value == "italic"
        assert TokenKind.CLOSE_PAREN in kinds(tokens)

    def test_command_name_without_paren_is_identifier(self) -> None:
        """Test a command word alone is an ordinary identifier."""
        assert tokenize("${bold}")[1].kind is TokenKind.IDENTIFIER

    def test_string_escapes(self) -> None:
        """Test quotes and backslashes can be escaped in strings."""
        assert tokenize(r'${"say \"hi\""}')[1].value == 'say "hi"'

    def test_dollar(self) -> None:
        """Test the stringify operator."""
        assert tokenize("${$hit_dice}")[1].kind is TokenKind.DOLLAR

    def test_unterminated_directive(self) -> None:
        """Test a missing closing brace."""
        with pytest.raises(InterpolationError) as exc_info:
            tokenize("${name")

        assert exc_info.value.kind == "unterminated_directive"

    def test_unterminated_string(self) -> None:
        """Test a string without its closing quote."""
        with pytest.raises(InterpolationError) as exc_info:
            tokenize('${"open}')

        assert exc_info.value.kind == "unterminated_string"

    def test_unexpected_character(self) -> None:
        """Test characters outside the grammar."""
        with pytest.raises(InterpolationError) as exc_info:
            tokenize("${a % b}")

        assert exc_info.value.kind == "unexpected_character"
        assert exc_info.value.column == 5

    def test_bare_slash(self) -> None:
        """Test division needs a rounding direction."""
        with pytest.raises(InterpolationError, match="floor"):
            tokenize("${a / 2}")

    def test_invalid_dice_literal(self) -> None:
        """Test dice errors surface as interpolation errors."""
        with pytest.raises(InterpolationError) as exc_info:
            tokenize("${1d7}", context_label="Bite")

        assert exc_info.value.kind == "invalid_dice"
        assert exc_info.value.context_label == "Bite"


class TestIncludeMode:
    """Tests for the include delimiters."""

    def test_include_opener(self) -> None:
        """Test $< opens an expression and ${ is literal."""
        tokens = tokenize("Keen $<sense> ${Subj}", mode=TokenizerMode.INCLUDE)

        assert kinds(tokens) == [
            TokenKind.TEXT,
            TokenKind.OPEN_DIRECTIVE,
            TokenKind.IDENTIFIER,
            TokenKind.CLOSE_DIRECTIVE,
            TokenKind.TEXT,
            TokenKind.END,
        ]
        assert tokens[4].value == " ${Subj}"

    def test_markup_is_literal(self) -> None:
        """Test asterisks are plain text in include mode."""
        tokens = tokenize("**x**", mode=TokenizerMode.INCLUDE)

        assert kinds(tokens) == [TokenKind.TEXT, TokenKind.END]

    def test_json_escapes_untouched(self) -> None:
        """Test backslash escapes other than the dollar pass through."""
        tokens = tokenize(r'"a \"b\" \\ \$c"', mode=TokenizerMode.INCLUDE)

        assert tokens[0].value == r'"a \"b\" \\ $c"'
