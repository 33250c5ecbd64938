"""
Document Reconstruction Engine
==============================

Rebuilds structured documents from loosely formatted extracted text.

Main components:
- Table region detection in raw text
- Table transcoding to enumerated lists (text and HTML tables)
- Markup parsing into blocks and inline spans
- Multi-format export (plain text, Markdown, DOCX)
"""

__version__ = "1.0.0"
__author__ = "Document Reconstruction Team"
