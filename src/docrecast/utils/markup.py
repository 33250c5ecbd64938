"""
Markup parsing module for document reconstruction.

Provides:
- Block model for the line-oriented markup dialect (headings, rules,
  quotes, bullet and ordered items, paragraphs, blanks)
- Line classification into blocks
- Inline tokenization into plain, italic, bold and bold+italic spans

Line classification and inline tokenization are independent passes: blocks
keep their raw text and spans are produced only when a block is rendered.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List

logger = logging.getLogger(__name__)


# ============================================================================
# Patterns
# ============================================================================

MAX_HEADING_LEVEL = 6

_RULE = re.compile(r"^(-{3,}|\*{3,}|_{3,})$")
_ORDERED_PREFIX = re.compile(r"^\d+\.\s")
_INLINE_CODE = re.compile(r"`([^`]+)`")
# Longest marker first so ***x*** is never read as * + **x** + *
_EMPHASIS = re.compile(r"(\*\*\*(.+?)\*\*\*)|(\*\*(.+?)\*\*)|(\*(.+?)\*)")

QUOTE_PREFIX = "> "
BULLET_PREFIXES = ("- ", "* ")


# ============================================================================
# Data Classes and Enums
# ============================================================================

class BlockType(Enum):
    """Types of markup blocks."""
    HEADING = "heading"
    RULE = "rule"
    QUOTE = "quote"
    BULLET_ITEM = "bullet_item"
    ORDERED_ITEM = "ordered_item"
    PARAGRAPH = "paragraph"
    BLANK = "blank"


class SpanStyle(Enum):
    """Emphasis styles of inline spans."""
    PLAIN = "plain"
    ITALIC = "italic"
    BOLD = "bold"
    BOLD_ITALIC = "bold_italic"


@dataclass(frozen=True)
class InlineSpan:
    """A run of text sharing one emphasis style."""
    text: str
    style: SpanStyle = SpanStyle.PLAIN

    @property
    def bold(self) -> bool:
        return self.style in (SpanStyle.BOLD, SpanStyle.BOLD_ITALIC)

    @property
    def italic(self) -> bool:
        return self.style in (SpanStyle.ITALIC, SpanStyle.BOLD_ITALIC)


@dataclass(frozen=True)
class Block:
    """
    One line-level unit of markup.

    ``marker`` is the exact source prefix that was recognized (for rules and
    blanks, the whole line), so ``marker + text`` is the original line.
    """
    block_type: BlockType
    text: str = ""
    level: int = 0
    marker: str = ""

    @property
    def source(self) -> str:
        return self.marker + self.text

    def spans(self) -> List[InlineSpan]:
        return tokenize_inline(self.text)

    def plain_text(self) -> str:
        return "".join(span.text for span in self.spans())

    def to_dict(self):
        result = {"type": self.block_type.value, "text": self.text}
        if self.block_type == BlockType.HEADING:
            result["level"] = self.level
        return result


@dataclass
class MarkupDocument:
    """Ordered sequence of blocks parsed from one markup string."""
    blocks: List[Block] = field(default_factory=list)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)

    def __getitem__(self, index: int) -> Block:
        return self.blocks[index]

    def blocks_of_type(self, block_type: BlockType) -> List[Block]:
        return [b for b in self.blocks if b.block_type == block_type]

    def to_markup(self) -> str:
        return "\n".join(block.source for block in self.blocks)

    def to_dict(self):
        return {"blocks": [b.to_dict() for b in self.blocks]}


# ============================================================================
# Inline Tokenizer
# ============================================================================

def tokenize_inline(text: str) -> List[InlineSpan]:
    """
    Split text into emphasis spans.

    Inline code spans are replaced by their inner text first (code styling
    is not kept). Text between emphasis matches becomes plain spans; empty
    spans are skipped.

    Args:
        text: Raw block text

    Returns:
        List of InlineSpan in reading order
    """
    text = _INLINE_CODE.sub(r"\1", text)

    spans: List[InlineSpan] = []
    position = 0

    while position < len(text):
        match = _EMPHASIS.search(text, position)
        if match is None:
            break

        if match.start() > position:
            spans.append(InlineSpan(text[position:match.start()]))

        if match.group(1):
            spans.append(InlineSpan(match.group(2), SpanStyle.BOLD_ITALIC))
        elif match.group(3):
            spans.append(InlineSpan(match.group(4), SpanStyle.BOLD))
        else:
            spans.append(InlineSpan(match.group(6), SpanStyle.ITALIC))

        position = match.end()

    if position < len(text):
        spans.append(InlineSpan(text[position:]))

    return spans


def plain_text(text: str) -> str:
    """Strip inline markers, keeping only the underlying text."""
    return "".join(span.text for span in tokenize_inline(text))


# ============================================================================
# Markup Parser
# ============================================================================

class MarkupParser:
    """
    Classify markup lines into blocks.

    Parsing is total: any line that matches no construct becomes a
    paragraph.
    """

    def __init__(self, heading_levels: int = MAX_HEADING_LEVEL):
        if not 1 <= heading_levels <= MAX_HEADING_LEVEL:
            raise ValueError(f"heading_levels must be in 1..{MAX_HEADING_LEVEL}")
        # Deepest first, since "#" is a prefix of every heading marker
        self._heading_prefixes = [
            ("#" * level + " ", level) for level in range(heading_levels, 0, -1)
        ]

    def parse(self, markup: str) -> MarkupDocument:
        """
        Parse a markup string into a document.

        Args:
            markup: Markup text; lines are split on "\\n"

        Returns:
            MarkupDocument with exactly one block per line
        """
        blocks = [self.classify_line(line) for line in markup.split("\n")]
        logger.debug(f"Parsed {len(blocks)} blocks")
        return MarkupDocument(blocks)

    def classify_line(self, line: str) -> Block:
        for prefix, level in self._heading_prefixes:
            if line.startswith(prefix):
                return Block(BlockType.HEADING, line[len(prefix):], level, prefix)

        if _RULE.match(line):
            return Block(BlockType.RULE, marker=line)

        if line.startswith(QUOTE_PREFIX):
            return Block(BlockType.QUOTE, line[len(QUOTE_PREFIX):], marker=QUOTE_PREFIX)

        for prefix in BULLET_PREFIXES:
            if line.startswith(prefix):
                return Block(BlockType.BULLET_ITEM, line[len(prefix):], marker=prefix)

        match = _ORDERED_PREFIX.match(line)
        if match:
            return Block(BlockType.ORDERED_ITEM, line[match.end():], marker=match.group(0))

        if not line.strip():
            return Block(BlockType.BLANK, marker=line)

        return Block(BlockType.PARAGRAPH, line)


def parse_markup(markup: str, heading_levels: int = MAX_HEADING_LEVEL) -> MarkupDocument:
    """Parse markup text into a MarkupDocument."""
    return MarkupParser(heading_levels).parse(markup)
