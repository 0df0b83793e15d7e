"""Tests for the text interpolation engine."""

from __future__ import annotations

from typing import Any

import pytest

from monster_forge.core.exceptions import InterpolationError
from monster_forge.engine.dice import parse_dice_expression
from monster_forge.engine.interpolation import (
    DiceValue,
    NumberValue,
    OpCode,
    StringValue,
    compile_text,
    escape_text,
    interpolate,
    interpolate_plain,
    to_value,
)
from monster_forge.models.structured_text import BlockKind, Span, SpanStyle, plain_text


VARIABLES: dict[str, Any] = {
    "Subj": "The goblin",
    "subj": "the goblin",
    "Subjpro": "It",
    "subjpro": "it",
    "posspro": "its",
    "str": 2,
    "prof": 2,
    "subtype": "goblinoid",
    "group": "",
    "hit_dice": parse_dice_expression("2d6"),
}


def render(text: str, **kwargs: Any) -> str:
    """Interpolate and flatten to a plain string."""
    return plain_text(interpolate("Goblin", text, variables=VARIABLES, **kwargs))


def error_kind(text: str, **kwargs: Any) -> str:
    with pytest.raises(InterpolationError) as exc_info:
        interpolate("Goblin", text, variables=VARIABLES, **kwargs)
    return exc_info.value.kind


class TestVariables:
    """Tests for variable lookup and capitalization."""

    def test_subject(self) -> None:
        """Test a variable is substituted into one normal span."""
        blocks = interpolate("Goblin", "${Subj} hits.", variables=VARIABLES)

        assert len(blocks) == 1
        assert blocks[0].block is BlockKind.PARAGRAPH
        assert blocks[0].heading is None
        assert blocks[0].body == (Span(style=SpanStyle.NORMAL, content="The goblin hits."),)

    def test_capitalized_and_lowercase_are_distinct(self) -> None:
        """Test Subjpro and subjpro are separate variables."""
        assert render("${Subjpro} bites.") == "It bites."
        assert render("${subjpro} bites.") == "it bites."

    def test_capitalize_first(self) -> None:
        """Test the first interpolated value can be upper-cased."""
        assert render("${subjpro} bites.", capitalize_first=True) == "It bites."

    def test_capitalize_first_leaves_literal_text(self) -> None:
        """Test literal text at the start is never changed."""
        assert render("then ${subjpro} bites.", capitalize_first=True) == "then it bites."

    def test_capitalize_only_at_start(self) -> None:
        """Test later values keep their authored case."""
        assert render("${subjpro} sees ${subjpro}.", capitalize_first=True) == "It sees it."

    def test_unknown_variable(self) -> None:
        """Test an unknown name reports its position."""
        with pytest.raises(InterpolationError) as exc_info:
            interpolate("Goblin", "Hi ${foo}", variables=VARIABLES)

        assert exc_info.value.kind == "unknown_variable"
        assert exc_info.value.line == 1
        assert exc_info.value.column == 6
        assert exc_info.value.context_label == "Goblin"

    def test_context_label(self) -> None:
        """Test the context label is attached to errors."""
        with pytest.raises(InterpolationError) as exc_info:
            interpolate("Goblin", "${foo}", context_label="Bite", variables=VARIABLES)

        assert exc_info.value.context_label == "Bite"

    def test_no_variables(self) -> None:
        """Test the variable set is closed."""
        with pytest.raises(InterpolationError):
            interpolate("Goblin", "${Subj}")


class TestExpressions:
    """Tests for expression evaluation."""

    def test_signed_attack_bonus(self) -> None:
        """Test unary plus marks a number for signed display."""
        assert render("${+str + prof} to hit") == "+4 to hit"

    def test_negative_numbers(self) -> None:
        """Test negation and subtraction."""
        assert render("${-str}") == "-2"
        assert render("${+(str - 5)}") == "-3"

    def test_integer_division(self) -> None:
        """Test floor and ceiling division."""
        assert render("${7 /< 2} ${7 /> 2} ${2 * 3}") == "3 4 6"

    def test_dice_with_modifier(self) -> None:
        """Test dice display their average and formula."""
        assert render("${1d6 + str} slashing") == "5 (1d6 + 2) slashing"

    def test_signed_dice(self) -> None:
        """Test signed dice display with a plus sign."""
        assert render("${+2d6}") == "+7 (2d6)"

    def test_dice_addition_merges(self) -> None:
        """Test adding dice of the same kind merges them."""
        assert render("${1d6 + 1d6}") == "7 (2d6)"
        assert render("${1d8 + 1d6}") == "8 (1d8 + 1d6)"

    def test_dice_variable(self) -> None:
        """Test dice variables display like dice literals."""
        assert render("${hit_dice}") == "7 (2d6)"

    def test_stringify_and_concatenate(self) -> None:
        """Test $ turns values into strings that concatenate."""
        assert render('${$prof + "!"}') == "2!"
        assert render('${$hit_dice + " hit dice"}') == "7 (2d6) hit dice"

    def test_conditional(self) -> None:
        """Test then/else picks a branch by truthiness."""
        text = '${subtype then "(" + subtype + ")" else "none"}'
        assert render(text) == "(goblinoid)"
        assert render('${group then "yes" else "no"}') == "no"
        assert render("${0 then 1 else 2}") == "2"

    def test_conditional_needs_else(self) -> None:
        """Test a then branch without else."""
        assert error_kind("${prof then 1}") == "expected_token"

    @pytest.mark.parametrize(
        ("text", "kind"),
        [
            ('${"a" * 2}', "cant_multiply_strings"),
            ("${1d6 * 1d6}", "cant_multiply_dice"),
            ("${2 /< 1d6}", "cant_divide_by_dice"),
            ('${"a" + 1}', "cant_concatenate_non_strings"),
            ('${"a" - "b"}', "cant_subtract_strings"),
            ('${-"a"}', "cant_negate_string"),
            ('${+"a"}', "cant_sign_string"),
            ('${$"a"}', "string_already_stringified"),
            ("${1 /< 0}", "division_by_zero"),
            ("${}", "expected_expression"),
        ],
    )
    def test_type_errors(self, text: str, kind: str) -> None:
        """Test invalid operations raise with a specific kind."""
        assert error_kind(text) == kind


class TestStructure:
    """Tests for markup, blocks and spans."""

    def test_bold_markup(self) -> None:
        """Test ** produces a bold span."""
        blocks = interpolate("Goblin", "Deals **fire** damage", variables=VARIABLES)

        assert blocks[0].body == (
            Span(content="Deals "),
            Span(style=SpanStyle.BOLD, content="fire"),
            Span(content=" damage"),
        )

    def test_nested_markup(self) -> None:
        """Test bold inside italic combines styles."""
        blocks = interpolate("Goblin", "*a **b** c*", variables=VARIABLES)

        assert [span.style for span in blocks[0].body] == [
            SpanStyle.ITALIC,
            SpanStyle.BOLD_ITALIC,
            SpanStyle.ITALIC,
        ]

    def test_italic_command(self) -> None:
        """Test the italic command styles enclosed text."""
        blocks = interpolate("Goblin", "${italic(}Hit:${)} 5", variables=VARIABLES)

        assert blocks[0].body == (
            Span(style=SpanStyle.ITALIC, content="Hit:"),
            Span(content=" 5"),
        )

    def test_inline_command_argument(self) -> None:
        """Test a command can take its content as an argument."""
        blocks = interpolate("Goblin", '${bold("Note:")} text', variables=VARIABLES)

        assert blocks[0].body[0] == Span(style=SpanStyle.BOLD, content="Note:")

    def test_paragraph_heading(self) -> None:
        """Test par( starts a paragraph with a bold-italic heading."""
        text = "${par(}Nimble Escape.${)}${subj} can hide."
        blocks = interpolate("Goblin", text, capitalize_first=True, variables=VARIABLES)

        assert len(blocks) == 1
        assert blocks[0].heading == (
            Span(style=SpanStyle.BOLD_ITALIC, content="Nimble Escape."),
        )
        assert blocks[0].body == (Span(content="The goblin can hide."),)
        assert blocks[0].plain_text == "Nimble Escape. The goblin can hide."

    def test_sub_paragraph(self) -> None:
        """Test sub( starts a sub-paragraph with a bold heading."""
        blocks = interpolate(
            "Goblin", "Spells:${sub(}At will:${)} light", variables=VARIABLES
        )

        assert [block.block for block in blocks] == [
            BlockKind.PARAGRAPH,
            BlockKind.SUB_PARAGRAPH,
        ]
        assert blocks[1].heading == (Span(style=SpanStyle.BOLD, content="At will:"),)
        assert blocks[1].body == (Span(content=" light"),)

    def test_paragraph_mode(self) -> None:
        """Test blank lines split blocks only in paragraph mode."""
        assert len(interpolate("Goblin", "One.\n\nTwo.", paragraph_mode=True)) == 2
        assert len(interpolate("Goblin", "One.\n\nTwo.")) == 1

    def test_adjacent_spans_merge(self) -> None:
        """Test consecutive spans in one style merge."""
        blocks = interpolate("Goblin", "a${subtype}b", variables=VARIABLES)

        assert blocks[0].body == (Span(content="agoblinoidb"),)

    def test_empty_text(self) -> None:
        """Test empty text produces no blocks."""
        assert interpolate("Goblin", "") == ()

    @pytest.mark.parametrize(
        ("text", "kind"),
        [
            ("**bold", "unterminated_markup"),
            ("${bold(}x", "unterminated_markup"),
            ("${)}", "unexpected_close"),
            ("**a *b** c*", "nested_markup"),
            ("**${par(}x${)}**", "nested_markup"),
            ("${bold(}${bold(}x${)}${)}", "nested_markup"),
        ],
    )
    def test_structure_errors(self, text: str, kind: str) -> None:
        """Test malformed structure raises with a specific kind."""
        assert error_kind(text) == kind

    def test_paragraph_break_inside_markup(self) -> None:
        """Test a paragraph cannot end inside markup."""
        assert error_kind("**a\n\nb**", paragraph_mode=True) == "unterminated_markup"

    def test_deterministic(self) -> None:
        """Test the same input always gives the same output."""
        text = "${par(}Bite.${)}${italic(}Hit:${)} ${1d6 + str} piercing."
        first = interpolate("Goblin", text, variables=VARIABLES)
        second = interpolate("Goblin", text, variables=VARIABLES)

        assert first == second


class TestPlainInterpolation:
    """Tests for include-mode interpolation."""

    def test_expands_include_expressions(self) -> None:
        """Test $<...> is expanded and ${...} is left alone."""
        variables = {"sense": "Smell", "count": 2}
        result = interpolate_plain("Keen $<sense>: ${Subj} $<count>", variables)

        assert result == "Keen Smell: ${Subj} 2"

    def test_unknown_argument(self) -> None:
        """Test include arguments are a closed set too."""
        with pytest.raises(InterpolationError) as exc_info:
            interpolate_plain("$<missing>", {}, context_label="include keen")

        assert exc_info.value.kind == "unknown_variable"
        assert exc_info.value.context_label == "include keen"

    def test_structure_commands_rejected(self) -> None:
        """Test block commands are not allowed in plain text."""
        with pytest.raises(InterpolationError) as exc_info:
            interpolate_plain("$<bold(>x", {})

        assert exc_info.value.kind == "unexpected_structured_text"


class TestHelpers:
    """Tests for value conversion, escaping and compilation."""

    def test_to_value(self) -> None:
        """Test Python values are wrapped."""
        assert to_value("x") == StringValue("x")
        assert to_value(3) == NumberValue(3)
        assert to_value(parse_dice_expression("1d6")) == DiceValue(parse_dice_expression("1d6"))

    @pytest.mark.parametrize("raw", [True, 1.5, None])
    def test_to_value_rejects_other_types(self, raw: Any) -> None:
        """Test unsupported values raise an interpolation error."""
        with pytest.raises(InterpolationError) as exc_info:
            to_value(raw, name="bonus")

        assert exc_info.value.kind == "unsupported_value"
        assert exc_info.value.details["variable"] == "bonus"

    def test_unsupported_variable_fails_interpolation(self) -> None:
        """Test a bad variable surfaces as an interpolation error."""
        with pytest.raises(InterpolationError) as exc_info:
            interpolate("Goblin", "${speed} ft.", variables={"speed": 30.5})

        assert exc_info.value.kind == "unsupported_value"

    def test_escape_text(self) -> None:
        """Test escaped text interpolates back to itself."""
        original = "Costs $5, *not* a \\ bargain"

        assert escape_text("Bite *special*") == "Bite \\*special\\*"
        assert render(escape_text(original)) == original

    def test_compile_text(self) -> None:
        """Test compilation without evaluation."""
        operations = compile_text("Hi ${name}")

        assert [op.code for op in operations] == [
            OpCode.APPEND_TEXT,
            OpCode.GET_VARIABLE,
            OpCode.APPEND,
        ]
        assert operations[1].argument == "name"
