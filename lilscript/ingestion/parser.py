"""Main document parser - delegates to format-specific parsers."""

from enum import Enum
from pathlib import Path

from ..config import ParserConfig
from ..errors import UnknownFormat, UnsupportedDirection
from ..models import Script
from .tex import parse_tex


class FileFormat(str, Enum):
    """Script formats known to the converter."""

    TEX = "tex"
    MARKDOWN = "md"
    PDF = "pdf"


_SUFFIXES = {
    ".tex": FileFormat.TEX,
    ".md": FileFormat.MARKDOWN,
    ".markdown": FileFormat.MARKDOWN,
    ".pdf": FileFormat.PDF,
}


def detect_format(path: str | Path) -> FileFormat:
    """Determine the file format from a path's extension.

    Raises:
        UnknownFormat: If the extension is missing or not recognized.
    """
    suffix = Path(path).suffix.lower()
    if not suffix:
        raise UnknownFormat(f"Invalid file extension: could not be determined for {path}")

    try:
        return _SUFFIXES[suffix]
    except KeyError:
        raise UnknownFormat(
            f"Invalid file extension {suffix!r}: should be .tex / .md"
        ) from None


def parse_document(
    text: str,
    source_format: FileFormat,
    config: ParserConfig | None = None,
) -> Script:
    """Parse a document of the given format into a Script.

    Args:
        text: The raw document contents.
        source_format: The format the text is written in.
        config: Optional parser configuration.

    Returns:
        The parsed Script.

    Raises:
        UnsupportedDirection: If the format has no parser yet.
        UnbalancedGroup: If a LaTeX group is never closed.
    """
    if source_format == FileFormat.TEX:
        return parse_tex(text, config)
    raise UnsupportedDirection(source_format.value, "script")
