"""
Export module for document reconstruction.

Provides:
- Plain text export (markers stripped, summary banner)
- Markdown export (markup re-emitted with a YAML preamble)
- DOCX export (using python-docx)
- File naming and multi-topic saving
"""

import io
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import yaml

from ..config import ExportConfig
from .io import ensure_dir, sanitize_filename, save_bytes
from .markup import Block, BlockType, MarkupDocument

logger = logging.getLogger(__name__)

# python-docx rejects longer core property values
CORE_PROPERTY_LIMIT = 255

_XML_INVALID = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


# ============================================================================
# Formats and Errors
# ============================================================================

class UnsupportedFormatError(ValueError):
    """Raised when an export format is not one of the supported targets."""


class ExportFormat(Enum):
    """Supported export targets."""
    PLAIN_TEXT = "txt"
    LIGHT_MARKUP = "md"
    RICH_DOCUMENT = "docx"

    @property
    def label(self) -> str:
        return {"txt": "text", "md": "markdown", "docx": "docx"}[self.value]

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @classmethod
    def parse(cls, value: Union[str, "ExportFormat"]) -> "ExportFormat":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if key in (member.value, member.name.lower(), member.label):
                    return member
        raise UnsupportedFormatError(f"Unsupported export format: {value!r}")


def resolve_format(fmt: Union[str, ExportFormat], source_path: Union[str, Path, None] = None) -> ExportFormat:
    """
    Resolve "original" against the source file's extension.

    DOCX sources stay DOCX; anything else becomes markdown.
    """
    if isinstance(fmt, str) and fmt.strip().lower() == "original":
        suffix = Path(source_path).suffix.lower() if source_path else ""
        return ExportFormat.RICH_DOCUMENT if suffix == ".docx" else ExportFormat.LIGHT_MARKUP
    return ExportFormat.parse(fmt)


@dataclass
class DocumentProperties:
    """Descriptive metadata attached to a rich document."""
    title: str = ""
    subject: str = ""
    description: str = ""
    comment: str = ""

    @classmethod
    def from_summary(cls, summary: str, title: str = "Optimized Document") -> "DocumentProperties":
        return cls(title=title, subject=summary, description=summary, comment=summary)


# ============================================================================
# Plain Text Exporter
# ============================================================================

class PlainTextExporter:
    """Export document to plain text with all markers stripped."""

    def __init__(self, separator_width: int = 80, rule_width: int = 80):
        self.separator_width = separator_width
        self.rule_width = rule_width

    def render(self, document: MarkupDocument, summary: str) -> bytes:
        """
        Render the summary banner followed by the stripped body.

        Ordered items are renumbered from 1 within each run of consecutive
        items; blank lines do not break a run.
        """
        lines = []
        number = 0

        for block in document:
            if block.block_type == BlockType.ORDERED_ITEM:
                number += 1
                lines.append(f"{number}. {block.plain_text()}")
                continue
            if block.block_type != BlockType.BLANK:
                number = 0
            lines.append(self._block_to_text(block))

        body = "\n".join(lines)
        banner = f"SUMMARY: {summary}\n{'=' * self.separator_width}\n\n"
        return (banner + body).encode("utf-8")

    def _block_to_text(self, block: Block) -> str:
        if block.block_type == BlockType.RULE:
            return "-" * self.rule_width
        if block.block_type == BlockType.BULLET_ITEM:
            return f"- {block.plain_text()}"
        if block.block_type == BlockType.BLANK:
            return ""
        return block.plain_text()

    def export(self, document: MarkupDocument, output_path: Union[str, Path], summary: str) -> Path:
        path = save_bytes(self.render(document, summary), output_path)
        logger.info(f"Exported text to: {path}")
        return path


# ============================================================================
# Markdown Exporter
# ============================================================================

PREAMBLE_DELIMITER = "---"


class MarkdownExporter:
    """Export document to markup with a YAML metadata preamble."""

    def render(self, document: MarkupDocument, summary: str) -> bytes:
        """Render the preamble followed by the markup exactly as parsed."""
        front_matter = yaml.safe_dump(
            {"description": summary},
            allow_unicode=True,
            sort_keys=False,
            default_flow_style=False,
            width=float("inf")
        )
        preamble = f"{PREAMBLE_DELIMITER}\n{front_matter}{PREAMBLE_DELIMITER}\n\n"
        return (preamble + document.to_markup()).encode("utf-8")

    def export(self, document: MarkupDocument, output_path: Union[str, Path], summary: str) -> Path:
        path = save_bytes(self.render(document, summary), output_path)
        logger.info(f"Exported Markdown to: {path}")
        return path


def split_preamble(markdown: str) -> Tuple[Dict[str, Any], str]:
    """
    Split rendered markdown into its preamble metadata and body.

    Text without a preamble is returned unchanged with empty metadata.
    """
    opening = f"{PREAMBLE_DELIMITER}\n"
    closing = f"\n{PREAMBLE_DELIMITER}\n\n"
    if not markdown.startswith(opening):
        return {}, markdown

    end = markdown.find(closing, len(opening) - 1)
    if end == -1:
        return {}, markdown

    metadata = yaml.safe_load(markdown[len(opening):end + 1]) or {}
    return metadata, markdown[end + len(closing):]


# ============================================================================
# DOCX Exporter
# ============================================================================

class DocxExporter:
    """Export document to DOCX format using python-docx."""

    def __init__(
        self,
        template_path: Optional[str] = None,
        document_title: str = "Optimized Document",
        rule_text: str = "═" * 59,
        rule_spacing_pt: float = 10.0,
        quote_indent_inches: float = 0.5
    ):
        self.template_path = template_path
        self.document_title = document_title
        self.rule_text = rule_text
        self.rule_spacing_pt = rule_spacing_pt
        self.quote_indent_inches = quote_indent_inches

    def render(
        self,
        document: MarkupDocument,
        summary: str,
        properties: Optional[DocumentProperties] = None
    ) -> bytes:
        """
        Build the DOCX package in memory.

        Args:
            document: Parsed markup document
            summary: Summary stored in the descriptive metadata
            properties: Explicit metadata (built from summary if None)

        Returns:
            DOCX file contents
        """
        try:
            from docx import Document as DocxDocument
        except ImportError:
            raise ImportError(
                "python-docx is required for DOCX export. "
                "Install with: pip install python-docx"
            )

        if self.template_path and Path(self.template_path).exists():
            doc = DocxDocument(self.template_path)
        else:
            doc = DocxDocument()

        for block in document:
            self._add_block_to_docx(doc, block)

        self._set_properties(doc, properties or DocumentProperties.from_summary(summary, self.document_title))

        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()

    def export(self, document: MarkupDocument, output_path: Union[str, Path], summary: str) -> Path:
        path = save_bytes(self.render(document, summary), output_path)
        logger.info(f"Exported DOCX to: {path}")
        return path

    def _add_block_to_docx(self, doc: Any, block: Block):
        """Add a block to the DOCX document."""
        from docx.shared import Inches, Pt

        block_type = block.block_type

        if block_type == BlockType.HEADING:
            p = doc.add_heading(level=block.level)
            self._add_runs(p, block)

        elif block_type == BlockType.RULE:
            p = doc.add_paragraph(self.rule_text)
            p.paragraph_format.space_before = Pt(self.rule_spacing_pt)
            p.paragraph_format.space_after = Pt(self.rule_spacing_pt)

        elif block_type == BlockType.QUOTE:
            p = doc.add_paragraph()
            p.paragraph_format.left_indent = Inches(self.quote_indent_inches)
            self._add_runs(p, block, force_italic=True)

        elif block_type == BlockType.BULLET_ITEM:
            p = doc.add_paragraph(style="List Bullet")
            self._add_runs(p, block)

        elif block_type == BlockType.ORDERED_ITEM:
            # Every "List Number" paragraph shares the template's single numbering
            p = doc.add_paragraph(style="List Number")
            self._add_runs(p, block)

        elif block_type == BlockType.BLANK:
            doc.add_paragraph("")

        else:
            p = doc.add_paragraph()
            self._add_runs(p, block)

    def _add_runs(self, paragraph: Any, block: Block, force_italic: bool = False):
        for span in block.spans():
            run = paragraph.add_run(_xml_safe(span.text))
            if span.bold:
                run.bold = True
            if span.italic or force_italic:
                run.italic = True

    def _set_properties(self, doc: Any, properties: DocumentProperties):
        core = doc.core_properties
        core.title = _core_value(properties.title)
        core.subject = _core_value(properties.subject)

        # dc:description is exposed by python-docx as "comments"
        comments = properties.description
        if properties.comment and properties.comment != properties.description:
            comments = f"{comments}\n\n{properties.comment}" if comments else properties.comment
        core.comments = _core_value(comments)


def _xml_safe(text: str) -> str:
    return _XML_INVALID.sub("", text)


def _core_value(text: str) -> str:
    text = _xml_safe(text or "")
    if len(text) > CORE_PROPERTY_LIMIT:
        logger.debug(f"Truncating core property from {len(text)} characters")
        text = text[:CORE_PROPERTY_LIMIT]
    return text


# ============================================================================
# Rendering Entry Point
# ============================================================================

def get_exporter(fmt: Union[str, ExportFormat], config: Optional[ExportConfig] = None):
    """Create the exporter for a format."""
    config = config or ExportConfig()
    fmt = ExportFormat.parse(fmt)

    if fmt == ExportFormat.PLAIN_TEXT:
        return PlainTextExporter(separator_width=config.separator_width)
    if fmt == ExportFormat.LIGHT_MARKUP:
        return MarkdownExporter()
    return DocxExporter(
        template_path=config.docx_template or None,
        document_title=config.document_title,
        rule_text=config.rule_text,
        rule_spacing_pt=config.rule_spacing_pt,
        quote_indent_inches=config.quote_indent_inches
    )


def render(
    document: MarkupDocument,
    fmt: Union[str, ExportFormat],
    summary: str,
    config: Optional[ExportConfig] = None
) -> bytes:
    """
    Serialize a parsed document to one of the export targets.

    Args:
        document: Parsed markup document
        fmt: "txt", "md", "docx" or an ExportFormat
        summary: Summary embedded as banner, preamble or metadata

    Returns:
        Artifact bytes

    Raises:
        UnsupportedFormatError: If fmt is not a supported target
    """
    return get_exporter(fmt, config).render(document, summary)


# ============================================================================
# Multi-File Exporter
# ============================================================================

@dataclass
class Topic:
    """A topic-split part of a source document."""
    name: str
    description: str = ""


class DocumentExporter:
    """Convenience class for writing rendered documents next to each other."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        config: Optional[ExportConfig] = None
    ):
        self.output_dir = Path(output_dir)
        self.config = config or ExportConfig()

    def output_path(
        self,
        source_path: Union[str, Path],
        fmt: ExportFormat,
        suffix: Optional[str] = None
    ) -> Path:
        stem = Path(source_path).stem
        suffix = self.config.output_suffix if suffix is None else suffix
        return self.output_dir / f"{stem}{suffix}{fmt.extension}"

    def save(
        self,
        source_path: Union[str, Path],
        document: MarkupDocument,
        summary: str,
        fmt: Union[str, ExportFormat, None] = None
    ) -> Path:
        """
        Render and write ``<stem>_optimized.<ext>``.

        Args:
            source_path: Original file the document came from
            document: Parsed markup document
            summary: Summary to embed
            fmt: Target format; "original" or None uses the configured default

        Returns:
            Path of the written file
        """
        fmt = resolve_format(fmt or self.config.default_format, source_path)
        ensure_dir(self.output_dir)

        path = self.output_path(source_path, fmt)
        get_exporter(fmt, self.config).export(document, path, summary)
        return path

    def save_split(
        self,
        source_path: Union[str, Path],
        topics: Sequence[Topic],
        documents: Sequence[MarkupDocument],
        fmt: Union[str, ExportFormat, None] = None
    ) -> List[Path]:
        """Write one file per topic, named after the sanitized topic name."""
        if len(topics) != len(documents):
            raise ValueError(
                f"Got {len(topics)} topics but {len(documents)} documents"
            )

        fmt = resolve_format(fmt or self.config.default_format, source_path)
        ensure_dir(self.output_dir)
        exporter = get_exporter(fmt, self.config)

        saved = []
        for topic, document in zip(topics, documents):
            name = sanitize_filename(topic.name, self.config.max_filename_length)
            path = self.output_path(source_path, fmt, suffix=f"_{name}")
            exporter.export(document, path, topic.description)
            saved.append(path)

        return saved
