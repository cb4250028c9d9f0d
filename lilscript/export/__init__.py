"""Script export module - render Scripts into output formats."""

from ..config import MarkdownConfig
from ..errors import UnsupportedDirection
from ..ingestion.parser import FileFormat
from ..models import Script
from .markdown import MarkdownExporter, export_markdown


def export_document(
    script: Script,
    target_format: FileFormat,
    config: MarkdownConfig | None = None,
) -> str:
    """Render a Script in the given format.

    Raises:
        UnsupportedDirection: If the format has no exporter yet.
    """
    if target_format == FileFormat.MARKDOWN:
        return export_markdown(script, config)
    raise UnsupportedDirection("script", target_format.value)


__all__ = ["MarkdownExporter", "export_document", "export_markdown"]
