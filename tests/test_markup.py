"""
Tests for markup parsing module.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from docrecast.utils.markup import (
    Block,
    BlockType,
    InlineSpan,
    MarkupParser,
    SpanStyle,
    parse_markup,
    plain_text,
    tokenize_inline,
)


class TestLineClassification:
    """Test block classification of single lines."""

    @pytest.fixture
    def parser(self):
        return MarkupParser()

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5, 6])
    def test_heading_levels(self, parser, level):
        """Each heading marker maps to its own level."""
        block = parser.classify_line("#" * level + " Title")

        assert block.block_type == BlockType.HEADING
        assert block.level == level
        assert block.text == "Title"

    def test_level_six_is_not_a_partial_match(self, parser):
        """'###### x' is level 6, never a shorter heading."""
        block = parser.classify_line("###### x")
        assert block.level == 6
        assert block.text == "x"

    def test_not_headings(self, parser):
        assert parser.classify_line("####### too deep").block_type == BlockType.PARAGRAPH
        assert parser.classify_line("#hashtag").block_type == BlockType.PARAGRAPH

    @pytest.mark.parametrize("line", ["---", "***", "___", "----------"])
    def test_rules(self, parser, line):
        block = parser.classify_line(line)

        assert block.block_type == BlockType.RULE
        assert block.marker == line

    def test_short_dashes_are_paragraph(self, parser):
        assert parser.classify_line("--").block_type == BlockType.PARAGRAPH

    def test_mixed_rule_is_not_rule(self, parser):
        assert parser.classify_line("-*-").block_type == BlockType.PARAGRAPH

    def test_quote(self, parser):
        block = parser.classify_line("> quoted *text*")

        assert block.block_type == BlockType.QUOTE
        assert block.text == "quoted *text*"
        assert parser.classify_line(">no space").block_type == BlockType.PARAGRAPH

    def test_bullets(self, parser):
        for line in ("- item", "* item"):
            block = parser.classify_line(line)
            assert block.block_type == BlockType.BULLET_ITEM
            assert block.text == "item"

    def test_ordered_item(self, parser):
        """The numeric prefix is stripped and not kept as a value."""
        block = parser.classify_line("12. Twelfth item")

        assert block.block_type == BlockType.ORDERED_ITEM
        assert block.text == "Twelfth item"
        assert block.marker == "12. "

    def test_ordered_requires_whitespace(self, parser):
        assert parser.classify_line("1.Item").block_type == BlockType.PARAGRAPH

    def test_blank(self, parser):
        assert parser.classify_line("").block_type == BlockType.BLANK
        assert parser.classify_line("  \t").block_type == BlockType.BLANK

    def test_paragraph(self, parser):
        block = parser.classify_line("Just some text.")

        assert block.block_type == BlockType.PARAGRAPH
        assert block.marker == ""
        assert block.source == "Just some text."

    def test_limited_heading_levels(self):
        parser = MarkupParser(heading_levels=2)

        assert parser.classify_line("## Two").level == 2
        assert parser.classify_line("### Three").block_type == BlockType.PARAGRAPH

    def test_invalid_heading_levels(self):
        with pytest.raises(ValueError):
            MarkupParser(heading_levels=0)


class TestParse:
    """Test whole-document parsing."""

    SAMPLE = (
        "# Report\n"
        "\n"
        "Intro with **bold** text.\n"
        "---\n"
        "> A quote\n"
        "- first\n"
        "* second\n"
        "3. third\n"
        "1. fourth\n"
    )

    def test_one_block_per_line(self):
        document = parse_markup(self.SAMPLE)

        assert len(document) == len(self.SAMPLE.split("\n"))
        assert [b.block_type for b in document] == [
            BlockType.HEADING,
            BlockType.BLANK,
            BlockType.PARAGRAPH,
            BlockType.RULE,
            BlockType.QUOTE,
            BlockType.BULLET_ITEM,
            BlockType.BULLET_ITEM,
            BlockType.ORDERED_ITEM,
            BlockType.ORDERED_ITEM,
            BlockType.BLANK,
        ]

    def test_to_markup_reproduces_source(self):
        markup = "## A\n  \n12.\tTabbed\n*** \n***\ntext\r\n"
        assert parse_markup(markup).to_markup() == markup

    def test_empty_input(self):
        document = parse_markup("")

        assert len(document) == 1
        assert document[0].block_type == BlockType.BLANK

    def test_blocks_of_type(self):
        document = parse_markup(self.SAMPLE)
        assert len(document.blocks_of_type(BlockType.ORDERED_ITEM)) == 2

    def test_to_dict(self):
        data = parse_markup("# Title\ntext").to_dict()

        assert data["blocks"][0] == {"type": "heading", "text": "Title", "level": 1}
        assert data["blocks"][1] == {"type": "paragraph", "text": "text"}


class TestInlineTokenizer:
    """Test inline span tokenization."""

    def test_precedence(self):
        """Longest markers win and plain text fills the gaps."""
        spans = tokenize_inline("***a*** and *b* and **c**")

        assert spans == [
            InlineSpan("a", SpanStyle.BOLD_ITALIC),
            InlineSpan(" and ", SpanStyle.PLAIN),
            InlineSpan("b", SpanStyle.ITALIC),
            InlineSpan(" and ", SpanStyle.PLAIN),
            InlineSpan("c", SpanStyle.BOLD),
        ]

    def test_plain_only(self):
        assert tokenize_inline("nothing special") == [InlineSpan("nothing special")]

    def test_empty(self):
        assert tokenize_inline("") == []

    def test_inline_code_unwrapped(self):
        """Code spans keep their text but lose the backticks."""
        assert tokenize_inline("run `make *all*` now") == [
            InlineSpan("run make "),
            InlineSpan("all", SpanStyle.ITALIC),
            InlineSpan(" now"),
        ]

    def test_unmatched_marker(self):
        assert tokenize_inline("2 * 3 = 6") == [InlineSpan("2 * 3 = 6")]

    def test_span_flags(self):
        assert InlineSpan("x", SpanStyle.BOLD_ITALIC).bold is True
        assert InlineSpan("x", SpanStyle.BOLD_ITALIC).italic is True
        assert InlineSpan("x", SpanStyle.BOLD).italic is False
        assert InlineSpan("x").bold is False

    def test_plain_text(self):
        assert plain_text("**Bold** and *it* and `code`") == "Bold and it and code"

    def test_block_spans_are_lazy(self):
        """Blocks keep raw text; spans come from the tokenizer on demand."""
        block = Block(BlockType.PARAGRAPH, "**x**")

        assert block.text == "**x**"
        assert block.spans() == [InlineSpan("x", SpanStyle.BOLD)]
        assert block.plain_text() == "x"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
