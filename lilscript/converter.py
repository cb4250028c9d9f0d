"""Conversion between script formats.

Only LaTeX -> Markdown is implemented. Every other direction of the format
matrix raises ``UnsupportedDirection`` before any input is read.
"""

import logging
from pathlib import Path

from .config import Config
from .errors import ParseError, UnsupportedDirection
from .export import export_document
from .ingestion import FileFormat, detect_format, parse_document
from .models import Script

logger = logging.getLogger(__name__)

SUPPORTED_DIRECTIONS = {(FileFormat.TEX, FileFormat.MARKDOWN)}


def check_direction(source: FileFormat, target: FileFormat) -> None:
    """Raise UnsupportedDirection unless source -> target is implemented."""
    if (source, target) not in SUPPORTED_DIRECTIONS:
        raise UnsupportedDirection(source.value, target.value)


def read_document(path: str | Path) -> str:
    """Read a UTF-8 source document.

    Raises:
        OSError: If the file cannot be opened.
        ParseError: If the file is not valid UTF-8.
    """
    path = Path(path)
    logger.debug("Reading from: %s", path)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ParseError(f"{path} is not valid UTF-8 text: {e}") from e


def convert(
    text: str,
    source: FileFormat,
    target: FileFormat,
    config: Config | None = None,
) -> str:
    """Convert document text from one format to another.

    Args:
        text: The source document.
        source: Format of ``text``.
        target: Desired output format.
        config: Optional configuration.

    Returns:
        The rendered output text.
    """
    return convert_script(text, source, target, config)[1]


def convert_script(
    text: str,
    source: FileFormat,
    target: FileFormat,
    config: Config | None = None,
) -> tuple[Script, str]:
    """Like ``convert``, but also return the intermediate Script."""
    config = config or Config()
    check_direction(source, target)

    script = parse_document(text, source, config.parser)
    logger.info("Parsed %d blocks", len(script.blocks))
    return script, export_document(script, target, config.markdown)


def convert_file(
    infile: str | Path,
    outfile: str | Path,
    config: Config | None = None,
) -> Script:
    """Convert ``infile`` to ``outfile``, choosing formats by extension.

    Nothing is written if reading, parsing or rendering fails.

    Returns:
        The Script parsed from ``infile``.
    """
    infile = Path(infile)
    outfile = Path(outfile)
    source = detect_format(infile)
    target = detect_format(outfile)
    logger.debug("%s -> %s", source.value, target.value)
    check_direction(source, target)

    text = read_document(infile)
    script, output = convert_script(text, source, target, config)

    outfile.parent.mkdir(parents=True, exist_ok=True)
    outfile.write_text(output, encoding="utf-8")
    logger.info("Wrote %s", outfile)
    return script
