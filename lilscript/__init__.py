"""
lilscript: ASMR role-play script conversion.

Parses LaTeX-formatted scripts into a format-independent ``Script`` model,
renders them as Markdown, and reports spoken-word counts and speech density.
"""

from .analysis import WordStats, analyze, analyze_sections, count_words
from .config import Config, MarkdownConfig, ParserConfig, load_config
from .converter import convert, convert_file
from .errors import (
    ConfigError,
    ExportError,
    LilscriptError,
    ParseError,
    UnbalancedGroup,
    UnknownFormat,
    UnsupportedDirection,
)
from .export import export_markdown
from .ingestion import FileFormat, parse_tex
from .models import (
    Character,
    Direction,
    DirectionType,
    Script,
    ScriptHeader,
    SectionBreak,
    SeriesEntry,
    SpanKind,
    SpokenLine,
    TextSpan,
)

# Short names for the core pipeline: parse -> export / analyze
parse = parse_tex
export = export_markdown

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "parse",
    "export",
    "analyze",
    "analyze_sections",
    "count_words",
    "convert",
    "convert_file",
    "parse_tex",
    "export_markdown",
    # Models
    "Script",
    "ScriptHeader",
    "SeriesEntry",
    "Character",
    "SpokenLine",
    "Direction",
    "DirectionType",
    "SectionBreak",
    "TextSpan",
    "SpanKind",
    "WordStats",
    "FileFormat",
    # Config
    "Config",
    "ParserConfig",
    "MarkdownConfig",
    "load_config",
    # Errors
    "LilscriptError",
    "ParseError",
    "ConfigError",
    "UnbalancedGroup",
    "UnsupportedDirection",
    "ExportError",
    "UnknownFormat",
]
