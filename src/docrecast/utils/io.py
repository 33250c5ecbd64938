"""
I/O utilities for the document reconstruction pipeline.

Handles:
- Text loading
- Artifact saving
- JSON serialization
- Directory and filename management
"""

import json
import logging
import re
from dataclasses import asdict, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)


# ============================================================================
# Text Loading
# ============================================================================

def load_text(text_path: Union[str, Path], encoding: str = "utf-8") -> str:
    """
    Load a UTF-8 text, markup or HTML file.

    Args:
        text_path: Path to the file
        encoding: Text encoding

    Returns:
        File contents with universal newlines left untouched

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    text_path = Path(text_path)
    if not text_path.exists():
        raise FileNotFoundError(f"Input file not found: {text_path}")

    with open(text_path, "r", encoding=encoding, newline="") as f:
        return f.read()


def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the kind of input file.

    Returns:
        "html", "docx", "text" or "unknown"
    """
    suffix = Path(input_path).suffix.lower()

    if suffix in (".html", ".htm"):
        return "html"
    if suffix == ".docx":
        return "docx"
    if suffix in (".txt", ".md", ".markdown", ""):
        return "text"
    return "unknown"


# ============================================================================
# Saving
# ============================================================================

def save_bytes(data: bytes, output_path: Union[str, Path]) -> Path:
    """Write bytes to a file, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "wb") as f:
        f.write(data)

    logger.debug(f"Wrote {len(data)} bytes to {output_path}")
    return output_path


class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles dataclasses, enums and paths."""

    def default(self, obj):
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(data: Any, json_path: Union[str, Path], indent: int = 2) -> Path:
    """Save data to a JSON file."""
    json_path = Path(json_path)
    json_path.parent.mkdir(parents=True, exist_ok=True)

    with open(json_path, "w", encoding="utf-8") as f:
        json.dump(data, f, cls=EnhancedJSONEncoder, indent=indent, ensure_ascii=False)

    return json_path


# ============================================================================
# Directory and Filename Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Create a directory if it doesn't exist and return it."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def sanitize_filename(name: str, max_length: int = 50) -> str:
    """
    Turn a free-form name into a filename fragment.

    Lowercases, replaces runs of anything but ``a-z0-9`` with a dash, trims
    leading/trailing dashes and cuts to ``max_length`` characters.
    """
    sanitized = re.sub(r"[^a-z0-9]+", "-", name.lower())
    sanitized = re.sub(r"^-|-$", "", sanitized)
    return sanitized[:max_length]
