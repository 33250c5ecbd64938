#!/usr/bin/env python
"""
Command-line interface for the Document Reconstruction Engine.

Usage:
    docrecast --input <markup_or_text> [--output <output_dir>] [options]

Examples:
    # Export rewritten markup as DOCX
    docrecast --input notes.md --output ./output --format docx --summary "Team notes"

    # Show extracted text with its tables rewritten as lists
    docrecast --input extracted.txt --tables-only
"""

import argparse
import logging
import sys
import time
from pathlib import Path

from . import __version__
from .config import get_config, setup_logging

logger = logging.getLogger("docrecast")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="docrecast",
        description="Document Reconstruction Engine - Rebuild structured documents from extracted text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Export markup as a Word document:
    docrecast --input notes.md --output ./output --format docx

  Keep the source format (docx stays docx, anything else becomes markdown):
    docrecast --input report.md --output ./output --format original

  Rewrite tables in extracted text without sentinel markers:
    docrecast --input extracted.txt --tables-only --no-sentinels
        """
    )

    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Input markup, text or HTML file"
    )

    parser.add_argument(
        "--output", "-o",
        default=".",
        help="Output directory for generated files (default: current directory)"
    )

    parser.add_argument(
        "--format", "-f",
        default=None,
        choices=["txt", "md", "docx", "original"],
        help="Output format (default: DOC_RECAST_EXPORT_FORMAT or original)"
    )

    parser.add_argument(
        "--summary", "-s",
        default="",
        help="Summary embedded as banner, preamble or document metadata"
    )

    parser.add_argument(
        "--tables-only",
        action="store_true",
        help="Print the input with its tables rewritten as lists and exit"
    )

    parser.add_argument(
        "--no-sentinels",
        action="store_true",
        help="Do not wrap rewritten tables in [TABLE START]/[TABLE END] lines"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Re-raise unexpected errors with a traceback"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def run_pipeline(args, config) -> int:
    """Run table normalization or markup export for one input file."""
    from .utils.io import load_text, detect_input_type
    from .utils.assembler import DocumentAssembler
    from .utils.export import DocumentExporter

    start_time = time.time()

    input_path = Path(args.input)
    input_type = detect_input_type(input_path)
    logger.info(f"Input type detected: {input_type}")

    if input_type not in ("text", "html"):
        logger.error(f"Unsupported input type: {input_path.suffix or input_type}")
        return 1

    text = load_text(input_path)
    assembler = DocumentAssembler(config)

    if args.tables_only:
        if input_type == "html":
            prepared = assembler.prepare_html(text)
        else:
            prepared = assembler.prepare_text(text)
        sys.stdout.write(prepared)
        return 0

    if input_type == "html":
        text = assembler.prepare_html(text)

    document = assembler.parse(text)
    exporter = DocumentExporter(args.output, config.export)
    output_path = exporter.save(input_path, document, args.summary, args.format)

    elapsed = time.time() - start_time

    if not args.quiet:
        print("\n" + "=" * 60)
        print("DOCUMENT RECONSTRUCTION COMPLETE")
        print("=" * 60)
        print(f"Source: {input_path}")
        print(f"Output: {output_path}")
        print(f"Blocks: {len(document)}")
        print(f"Processing time: {elapsed:.2f}s")
        print("=" * 60)

    return 0


def main(argv=None):
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args(argv)

    setup_logging()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    config = get_config()
    if args.no_sentinels:
        config.detection.wrap_sentinels = False
    if args.debug:
        config.debug_mode = True

    try:
        exit_code = run_pipeline(args, config)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if config.debug_mode:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
