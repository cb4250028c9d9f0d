"""Script ingestion module - parse source documents into Scripts."""

from .parser import FileFormat, detect_format, parse_document
from .tex import TexParser, parse_tex, plain_text

__all__ = [
    "FileFormat",
    "TexParser",
    "detect_format",
    "parse_document",
    "parse_tex",
    "plain_text",
]
