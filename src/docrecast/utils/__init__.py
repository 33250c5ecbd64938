"""
Utility modules for the document reconstruction pipeline.
"""

from .io import load_text, save_bytes, save_json, ensure_dir, sanitize_filename
from .tables import (
    TableRegion, TableTranscoder, detect_table_regions, detect_header,
    convert_all_tables, rewrite_text_tables
)
from .markup import (
    Block, BlockType, InlineSpan, SpanStyle, MarkupDocument, MarkupParser,
    parse_markup, tokenize_inline
)
from .export import (
    ExportFormat, UnsupportedFormatError, DocumentProperties, render,
    PlainTextExporter, MarkdownExporter, DocxExporter, DocumentExporter, Topic
)
from .assembler import DocumentAssembler, ConversionJob, ConversionResult

__all__ = [
    # IO
    "load_text", "save_bytes", "save_json", "ensure_dir", "sanitize_filename",
    # Tables
    "TableRegion", "TableTranscoder", "detect_table_regions", "detect_header",
    "convert_all_tables", "rewrite_text_tables",
    # Markup
    "Block", "BlockType", "InlineSpan", "SpanStyle", "MarkupDocument",
    "MarkupParser", "parse_markup", "tokenize_inline",
    # Export
    "ExportFormat", "UnsupportedFormatError", "DocumentProperties", "render",
    "PlainTextExporter", "MarkdownExporter", "DocxExporter", "DocumentExporter",
    "Topic",
    # Assembly
    "DocumentAssembler", "ConversionJob", "ConversionResult",
]
