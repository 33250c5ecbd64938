"""
Document assembler module for document reconstruction.

Provides:
- Conversion result data model
- Pipeline orchestration (table normalization, rewriting, parsing, export)
- Bounded concurrent batch conversion
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..config import PipelineConfig
from .export import ExportFormat, render
from .markup import MarkupDocument, MarkupParser
from .tables import TableTranscoder, convert_all_tables, rewrite_text_tables

logger = logging.getLogger(__name__)

Rewriter = Callable[[str], str]


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class ConversionJob:
    """One independent markup-to-artifact conversion."""
    markup: str
    fmt: Union[str, ExportFormat]
    summary: str = ""


@dataclass
class ConversionResult:
    """Result of converting one document."""
    document: MarkupDocument
    format: ExportFormat
    data: bytes
    summary: str = ""
    processing_time_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format.value,
            "summary": self.summary,
            "num_blocks": len(self.document),
            "num_bytes": len(self.data),
            "processing_time_seconds": round(self.processing_time_seconds, 3),
        }


# ============================================================================
# Document Assembler
# ============================================================================

class DocumentAssembler:
    """
    Orchestrates the reconstruction of one or more documents.

    Raw text goes through table normalization, then the caller's rewriting
    step, then markup parsing and export. Every call works on its own data,
    so one assembler can serve concurrent conversions.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        rewriter: Optional[Rewriter] = None
    ):
        self.config = config or PipelineConfig()
        self.rewriter = rewriter

        header = self.config.header
        self.transcoder = TableTranscoder(
            length_ratio=header.length_ratio,
            max_cell_length=header.max_cell_length,
            max_title_length=header.max_title_length,
            fallback_title=header.fallback_title,
            min_space_run=self.config.detection.min_space_run,
            min_tabs=self.config.detection.min_tabs,
            min_pipes=self.config.detection.min_pipes
        )
        self.parser = MarkupParser(self.config.export.heading_levels)

    def prepare_text(self, text: str) -> str:
        """Rewrite tabular regions of raw text as enumerated lists."""
        detection = self.config.detection
        return rewrite_text_tables(
            text,
            wrap=detection.wrap_sentinels,
            transcoder=self.transcoder,
            start_sentinel=detection.start_sentinel,
            end_sentinel=detection.end_sentinel,
            **detection.detect_kwargs()
        )

    def prepare_html(self, html: str) -> str:
        """Replace HTML tables with enumerated lists."""
        return convert_all_tables(html, self.transcoder)

    def parse(self, markup: str) -> MarkupDocument:
        return self.parser.parse(markup)

    def convert(
        self,
        markup: str,
        fmt: Union[str, ExportFormat],
        summary: str = ""
    ) -> ConversionResult:
        """
        Parse markup and render it to the requested format.

        Raises:
            UnsupportedFormatError: If fmt is not a supported target
        """
        start_time = time.time()
        fmt = ExportFormat.parse(fmt)

        document = self.parse(markup)
        data = render(document, fmt, summary, self.config.export)

        elapsed = time.time() - start_time
        logger.debug(f"Converted {len(document)} blocks to {fmt.value} in {elapsed:.3f}s")

        return ConversionResult(
            document=document,
            format=fmt,
            data=data,
            summary=summary,
            processing_time_seconds=elapsed
        )

    def process(
        self,
        text: str,
        fmt: Union[str, ExportFormat],
        summary: str = "",
        is_html: bool = False
    ) -> ConversionResult:
        """
        Run the full pipeline on raw extracted text or HTML.

        Without a rewriter the normalized text is used as markup directly.
        """
        prepared = self.prepare_html(text) if is_html else self.prepare_text(text)
        markup = self.rewriter(prepared) if self.rewriter else prepared
        return self.convert(markup, fmt, summary)

    def convert_batch(
        self,
        jobs: Sequence[ConversionJob],
        max_workers: Optional[int] = None
    ) -> List[ConversionResult]:
        """
        Convert independent documents concurrently.

        Args:
            jobs: Conversions to run
            max_workers: Concurrency limit (config.max_workers if None)

        Returns:
            Results in the same order as jobs
        """
        if not jobs:
            return []

        workers = max(1, max_workers or self.config.max_workers)
        logger.info(f"Converting {len(jobs)} document(s) with {workers} worker(s)")

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self.convert, job.markup, job.fmt, job.summary)
                for job in jobs
            ]
            return [future.result() for future in futures]
