"""
Configuration and constants for the document reconstruction pipeline.

This module provides:
- Logging setup
- Table detection and header inference thresholds
- Export settings for the plain text, markup and DOCX targets
- Environment overrides
"""

import os
from dataclasses import dataclass, field
import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger("docrecast")


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logging the way the command line tools expect."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class DetectionConfig:
    """Tabular region detection configuration."""
    min_lines: int = 2  # Minimum tabular lines per region
    min_tabs: int = 2
    min_pipes: int = 2
    min_space_run: int = 3
    min_space_fields: int = 3
    # Sentinels let the rewriting step recognize a transcoded table
    wrap_sentinels: bool = True
    start_sentinel: str = "[TABLE START]"
    end_sentinel: str = "[TABLE END]"

    def detect_kwargs(self):
        return {
            "min_lines": self.min_lines,
            "min_tabs": self.min_tabs,
            "min_pipes": self.min_pipes,
            "min_space_run": self.min_space_run,
            "min_space_fields": self.min_space_fields,
        }


@dataclass
class HeaderConfig:
    """Table header inference configuration."""
    length_ratio: float = 0.7
    max_cell_length: int = 50
    max_title_length: int = 50
    fallback_title: str = "Data Table"


@dataclass
class ExportConfig:
    """Export configuration."""
    # txt, md, docx, or original (docx sources stay docx, others become md)
    default_format: str = "original"
    heading_levels: int = 6
    # Plain text settings
    separator_width: int = 80
    # DOCX settings
    docx_template: str = ""
    document_title: str = "Optimized Document"
    rule_text: str = "═" * 59
    rule_spacing_pt: float = 10.0
    quote_indent_inches: float = 0.5
    # File naming
    output_suffix: str = "_optimized"
    max_filename_length: int = 50


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    header: HeaderConfig = field(default_factory=HeaderConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Independent conversions run at once in batch mode
    max_workers: int = 3
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    export_format = os.environ.get("DOC_RECAST_EXPORT_FORMAT")
    if export_format:
        config.export.default_format = export_format.lower()

    max_workers = os.environ.get("DOC_RECAST_MAX_WORKERS")
    if max_workers:
        try:
            config.max_workers = max(1, int(max_workers))
        except ValueError:
            logger.warning(f"Ignoring invalid DOC_RECAST_MAX_WORKERS: {max_workers!r}")

    if os.environ.get("DOC_RECAST_NO_SENTINELS", "").lower() == "true":
        config.detection.wrap_sentinels = False

    if os.environ.get("DOC_RECAST_DEBUG", "").lower() == "true":
        config.debug_mode = True

    return config
