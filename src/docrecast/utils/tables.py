"""
Table detection and transcoding module for document reconstruction.

Provides:
- Detection of tabular regions in loosely formatted extracted text
- Row/cell splitting for tab, pipe and space-aligned tables
- Header inference heuristics
- Conversion of tables (text regions or HTML fragments) to enumerated lists
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

START_SENTINEL = "[TABLE START]"
END_SENTINEL = "[TABLE END]"
FALLBACK_TITLE = "Data Table"

_TERMINAL_PUNCTUATION = re.compile(r"[.!?]$")
_WHITESPACE_RUN = re.compile(r"\s+")
_ENUMERATED_ITEM = re.compile(r"^\d+\.\s")
_MARKDOWN_SEPARATOR_CELL = re.compile(r"^:?-{3,}:?$")
_HTML_TABLE = re.compile(r"<table[^>]*>.*?</table>", re.IGNORECASE | re.DOTALL)
_HTML_ROW = re.compile(r"<tr[\s>]", re.IGNORECASE)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class TableRegion:
    """A contiguous run of tabular lines found in raw text."""
    rows: List[List[str]]
    start_line: int
    end_line: int
    has_header: bool = False
    lines: List[str] = field(default_factory=list)

    @property
    def source_range(self) -> Tuple[int, int]:
        return (self.start_line, self.end_line)

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    @property
    def num_cols(self) -> int:
        return max((len(row) for row in self.rows), default=0)

    @property
    def content(self) -> str:
        return "\n".join(self.lines)

    def to_dict(self):
        return {
            "start_line": self.start_line,
            "end_line": self.end_line,
            "has_header": self.has_header,
            "num_rows": self.num_rows,
            "num_cols": self.num_cols,
            "rows": self.rows,
        }


# ============================================================================
# Line Classification
# ============================================================================

def is_tabular_line(
    line: str,
    min_tabs: int = 2,
    min_pipes: int = 2,
    min_space_run: int = 3,
    min_space_fields: int = 3
) -> bool:
    """
    Check whether a single line looks like a table row.

    A line is tabular if it has enough tab characters, enough pipe
    characters, or splits into enough fields on long whitespace runs.
    The pipe rule ignores lines that already look like enumerated list
    items, so transcoded output is not picked up a second time.

    Args:
        line: Raw text line
        min_tabs: Minimum number of tab characters
        min_pipes: Minimum number of pipe characters
        min_space_run: Length of a whitespace run that separates fields
        min_space_fields: Minimum number of fields after splitting on runs

    Returns:
        True if the line matches one of the tabular heuristics
    """
    stripped = line.strip()
    if not stripped:
        return False

    if stripped.count("\t") >= min_tabs:
        return True

    if stripped.count("|") >= min_pipes and not _ENUMERATED_ITEM.match(stripped):
        return True

    space_run = re.compile(r"\s{%d,}" % min_space_run)
    if space_run.search(stripped):
        fields = [f for f in space_run.split(stripped) if f.strip()]
        if len(fields) >= min_space_fields:
            return True

    return False


def split_row(
    line: str,
    min_space_run: int = 3,
    min_tabs: int = 2,
    min_pipes: int = 2
) -> List[str]:
    """
    Split a raw tabular line into normalized cells.

    The delimiter follows the rule that makes the line tabular: tabs when
    there are at least ``min_tabs``, then pipes (outer pipes of
    markdown-style rows are dropped), then runs of whitespace or single
    tabs. Whitespace inside every cell is collapsed to single spaces.
    """
    stripped = line.strip()

    if stripped.count("\t") >= min_tabs:
        cells = stripped.split("\t")
    elif stripped.count("|") >= min_pipes:
        cells = stripped.split("|")
        if cells and not cells[0].strip():
            cells = cells[1:]
        if cells and not cells[-1].strip():
            cells = cells[:-1]
    else:
        cells = re.split(r"\s*\t\s*|\s{%d,}" % min_space_run, stripped)

    return [clean_cell(cell) for cell in cells]


def is_separator_row(cells: Sequence[str]) -> bool:
    """Check for a markdown header separator row like ``|---|:---:|``."""
    non_empty = [c for c in cells if c]
    return bool(non_empty) and all(_MARKDOWN_SEPARATOR_CELL.match(c) for c in non_empty)


def clean_cell(text: str) -> str:
    """Collapse whitespace runs inside a cell to single spaces."""
    return _WHITESPACE_RUN.sub(" ", text).strip()


# ============================================================================
# Region Detection
# ============================================================================

def detect_table_regions(
    lines: Union[str, Sequence[str]],
    min_lines: int = 2,
    min_tabs: int = 2,
    min_pipes: int = 2,
    min_space_run: int = 3,
    min_space_fields: int = 3
) -> List[TableRegion]:
    """
    Find tabular regions in raw text.

    Lines are scanned in order while tracking whether we are inside a
    candidate table. Blank lines inside a candidate are tolerated; the first
    non-blank, non-tabular line closes it. Candidates shorter than
    ``min_lines`` tabular lines are discarded as false positives and stay
    ordinary prose.

    Args:
        lines: Text or sequence of lines (not modified)
        min_lines: Minimum number of tabular lines for a region
        min_tabs: See ``is_tabular_line``
        min_pipes: See ``is_tabular_line``
        min_space_run: See ``is_tabular_line``
        min_space_fields: See ``is_tabular_line``

    Returns:
        List of TableRegion in source order
    """
    if isinstance(lines, str):
        lines = lines.split("\n")

    regions: List[TableRegion] = []
    accumulated: List[str] = []
    start = 0
    last = 0
    in_table = False

    def close() -> None:
        if len(accumulated) >= min_lines:
            rows = [
                split_row(row_line, min_space_run, min_tabs, min_pipes)
                for row_line in accumulated
            ]
            rows = [r for r in rows if not is_separator_row(r)]
            regions.append(TableRegion(
                rows=rows,
                start_line=start,
                end_line=last,
                lines=list(accumulated)
            ))
            logger.debug(f"Table region at lines {start}-{last} ({len(rows)} rows)")
        elif accumulated:
            logger.debug(f"Discarded single tabular line at {start} as prose")

    index = 0
    while index < len(lines):
        line = lines[index]
        tabular = is_tabular_line(
            line,
            min_tabs=min_tabs,
            min_pipes=min_pipes,
            min_space_run=min_space_run,
            min_space_fields=min_space_fields
        )

        if tabular:
            if not in_table:
                in_table = True
                accumulated = []
                start = index
            accumulated.append(line.strip())
            last = index
        elif in_table and not line.strip():
            pass
        elif in_table:
            close()
            in_table = False
            accumulated = []

        index += 1

    if in_table:
        close()

    return regions


# ============================================================================
# Header Inference
# ============================================================================

def _average_length(row: Sequence[str]) -> float:
    if not row:
        return 0.0
    return sum(len(cell) for cell in row) / len(row)


def detect_header(
    rows: Sequence[Sequence[str]],
    length_ratio: float = 0.7,
    max_cell_length: int = 50
) -> bool:
    """
    Guess whether the first row of a table is a header.

    The first row is a header when its average cell length is clearly
    shorter than the second row's, or otherwise when every first-row cell
    is short and does not end like a sentence.
    """
    if not rows:
        return False

    first_row = rows[0]

    if len(rows) > 1:
        if _average_length(first_row) < _average_length(rows[1]) * length_ratio:
            return True

    return all(
        len(cell) < max_cell_length and not _TERMINAL_PUNCTUATION.search(cell)
        for cell in first_row
    )


def table_title(
    header_row: Sequence[str],
    max_length: int = 50,
    fallback: str = FALLBACK_TITLE
) -> str:
    """Build a title from the non-empty header cells."""
    title = ", ".join(cell for cell in header_row if cell.strip())
    return fallback if len(title) > max_length else title


# ============================================================================
# HTML Parsing
# ============================================================================

def parse_html_table_rows(html: str) -> List[List[str]]:
    """
    Parse the rows of an HTML table fragment.

    Every ``<tr>`` contributes the text of its ``<th>``/``<td>`` cells;
    ``<br>`` becomes a space, entities are decoded and whitespace collapsed.
    Rows without cells are dropped.
    """
    soup = BeautifulSoup(html, "html.parser")
    for br in soup.find_all("br"):
        br.replace_with(" ")

    rows = []
    for tr in soup.find_all("tr"):
        cells = [clean_cell(c.get_text()) for c in tr.find_all(["th", "td"])]
        if cells:
            rows.append(cells)

    return rows


# ============================================================================
# Transcoder
# ============================================================================

class TableTranscoder:
    """
    Convert tables to header-qualified enumerated lists.

    Cell content is kept intact apart from whitespace collapse. Empty cells
    are dropped from list items and rows without any content are omitted.
    """

    def __init__(
        self,
        length_ratio: float = 0.7,
        max_cell_length: int = 50,
        max_title_length: int = 50,
        fallback_title: str = FALLBACK_TITLE,
        min_space_run: int = 3,
        min_tabs: int = 2,
        min_pipes: int = 2
    ):
        self.length_ratio = length_ratio
        self.max_cell_length = max_cell_length
        self.max_title_length = max_title_length
        self.fallback_title = fallback_title
        self.min_space_run = min_space_run
        self.min_tabs = min_tabs
        self.min_pipes = min_pipes

    def detect_header(self, rows: Sequence[Sequence[str]]) -> bool:
        return detect_header(rows, self.length_ratio, self.max_cell_length)

    def rows_to_list(
        self,
        rows: Sequence[Sequence[str]],
        has_header: Optional[bool] = None
    ) -> str:
        """
        Render table rows as an enumerated list.

        Args:
            rows: Table rows (ragged rows allowed)
            has_header: Force header handling; inferred when None

        Returns:
            List text ending with a newline, or "" for an empty table
        """
        if not rows:
            return ""

        if has_header is None:
            has_header = self.detect_header(rows)

        header_row = list(rows[0]) if has_header else None
        data_rows = rows[1:] if has_header else rows

        result = []
        if header_row is not None:
            title = table_title(header_row, self.max_title_length, self.fallback_title)
            result.append(f"**Table: {title}**\n")

        for index, row in enumerate(data_rows):
            if header_row is not None:
                items = []
                for col, cell in enumerate(row):
                    if not cell.strip():
                        continue
                    label = header_row[col] if col < len(header_row) and header_row[col] else f"Column {col + 1}"
                    items.append(f"{label}: {cell}")
            else:
                items = [cell for cell in row if cell.strip()]

            if items:
                result.append(f"{index + 1}. {' | '.join(items)}")

        return "\n".join(result) + "\n"

    def region_to_list(self, region: TableRegion) -> str:
        """Transcode a detected text region, recording the header guess on it."""
        region.has_header = self.detect_header(region.rows)
        logger.debug(
            f"Region {region.start_line}-{region.end_line}: header={region.has_header}"
        )
        return self.rows_to_list(region.rows, region.has_header)

    def text_to_list(self, text: str) -> str:
        """Transcode a block of delimited text lines as a single table."""
        rows = [
            split_row(line, self.min_space_run, self.min_tabs, self.min_pipes)
            for line in text.split("\n") if line.strip()
        ]
        rows = [r for r in rows if not is_separator_row(r)]
        return self.rows_to_list(rows)

    def html_to_list(self, table_html: str) -> str:
        """Transcode an HTML ``<table>`` fragment."""
        return self.rows_to_list(parse_html_table_rows(table_html))

    def to_list(self, table: Union[TableRegion, str]) -> str:
        if isinstance(table, TableRegion):
            return self.region_to_list(table)
        if _HTML_ROW.search(table):
            return self.html_to_list(table)
        return self.text_to_list(table)


# ============================================================================
# Document-level Rewriting
# ============================================================================

def convert_all_tables(html: str, transcoder: Optional[TableTranscoder] = None) -> str:
    """Replace every ``<table>`` element in an HTML string with its list form."""
    transcoder = transcoder or TableTranscoder()
    count = 0

    def replace(match) -> str:
        nonlocal count
        count += 1
        return transcoder.html_to_list(match.group(0))

    result = _HTML_TABLE.sub(replace, html)
    logger.debug(f"Converted {count} HTML table(s)")
    return result


def rewrite_text_tables(
    text: str,
    wrap: bool = True,
    transcoder: Optional[TableTranscoder] = None,
    start_sentinel: str = START_SENTINEL,
    end_sentinel: str = END_SENTINEL,
    **detect_kwargs
) -> str:
    """
    Rewrite detected table regions in place as enumerated lists.

    Args:
        text: Raw extracted text
        wrap: Surround each rewritten region with sentinel lines
        transcoder: Transcoder to use (default settings if None)
        start_sentinel: Line placed before a rewritten region
        end_sentinel: Line placed after a rewritten region
        **detect_kwargs: Thresholds forwarded to ``detect_table_regions``

    Returns:
        Text with every region replaced; other lines are untouched
    """
    transcoder = transcoder or TableTranscoder()
    lines = text.split("\n")
    regions = detect_table_regions(lines, **detect_kwargs)

    if not regions:
        return text

    output: List[str] = []
    cursor = 0
    for region in regions:
        output.extend(lines[cursor:region.start_line])
        if wrap:
            output.append(start_sentinel)
        output.extend(transcoder.region_to_list(region).rstrip("\n").split("\n"))
        if wrap:
            output.append(end_sentinel)
        cursor = region.end_line + 1
    output.extend(lines[cursor:])

    logger.info(f"Rewrote {len(regions)} table region(s)")
    return "\n".join(output)
