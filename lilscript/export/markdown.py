"""
Markdown exporter.

Renders a ``Script`` as Markdown:

    # Title

    - **Author:** lilellia
    - **Tags:** [F4M] [Comfort]

    > Summary text

    ## Part One

    **Mira:** Hey, you made it *(softly)* I was **worried**.

    > *[door closes]*

Each block becomes one paragraph. The speaker prefix is only repeated when
the speaker changes or a new section starts.
"""

import re
from typing import Optional

from ..config import MarkdownConfig
from ..errors import ExportError
from ..models import (
    Block,
    Direction,
    DirectionType,
    Script,
    ScriptHeader,
    SectionBreak,
    SpanKind,
    SpokenLine,
    TextSpan,
)

CHARACTER_SEPARATOR = "∼"

# Text at the start of a paragraph that Markdown would read as block syntax.
_BLOCK_MARKER_RE = re.compile(r"^(?:#{1,6}(?=\s|$)|>|[-+*](?=\s|$)|`{3,}|~{3,})")
_THEMATIC_BREAK_RE = re.compile(r"^([-*_])(?:\s*\1){2,}\s*$")
_ORDERED_ITEM_RE = re.compile(r"^(\d{1,9})([.)])(?=\s|$)")
_INLINE_SPECIAL_RE = re.compile(r"([*\[\]])")


def escape_block_start(text: str) -> str:
    """Backslash-escape a leading heading, quote, list or rule marker.

    Examples:
        >>> escape_block_start("# not a heading")
        '\\\\# not a heading'
        >>> escape_block_start("1. not a list")
        '1\\\\. not a list'
    """
    if _BLOCK_MARKER_RE.match(text) or _THEMATIC_BREAK_RE.match(text):
        return "\\" + text
    return _ORDERED_ITEM_RE.sub(r"\1\\\2", text, count=1)


def escape_inline(text: str) -> str:
    """Backslash-escape characters that would break a direction's ``*[...]*`` wrapper."""
    return _INLINE_SPECIAL_RE.sub(r"\\\1", text)


def render_span(span: TextSpan, in_direction: bool = False) -> str:
    """Render one inline span.

    Inside a direction the whole line is already italic, so cues drop their
    asterisks: ``(cue)`` instead of ``*(cue)*``. Direction text is escaped so
    it cannot close the ``*[...]*`` wrapper early.
    """
    contents = escape_inline(span.contents) if in_direction else span.contents
    if span.kind == SpanKind.EMPHASIS:
        return f"**{contents}**"
    if span.kind == SpanKind.CUE:
        return f"({contents})" if in_direction else f"*({contents})*"
    return contents


def render_direction(block: Direction) -> str:
    inner = "".join(render_span(span, in_direction=True) for span in block.spans)
    if block.direction_type == DirectionType.SFX:
        return f"> *[sfx: {inner}]*"
    if block.direction_type == DirectionType.LISTENER:
        return f"> *« {inner} »*"
    return f"> *[{inner}]*"


def render_spoken(block: SpokenLine, show_speaker: bool = True) -> str:
    text = "".join(render_span(span) for span in block.spans)
    if show_speaker and block.speaker:
        return f"**{block.speaker}:** {text}"
    return escape_block_start(text)


class MarkdownExporter:
    """Renders Scripts as Markdown documents."""

    def __init__(self, config: MarkdownConfig | None = None):
        self.config = config or MarkdownConfig()

    def export(self, script: Script) -> str:
        """Render a whole script.

        Args:
            script: The parsed script.

        Returns:
            Markdown text, blocks separated by one blank line.

        Raises:
            ExportError: If a block cannot be rendered.
        """
        parts: list[str] = []
        try:
            if self.config.include_header:
                parts.extend(self.render_header(script.header))
            if self.config.include_formatting_guide:
                parts.extend(self.render_formatting_guide())
            parts.extend(self.render_blocks(script.blocks))
        except (TypeError, ValueError) as e:
            raise ExportError(f"Could not render script as Markdown: {e}") from e

        if not parts:
            return ""
        return "\n\n".join(parts) + "\n"

    def render_header(self, header: ScriptHeader) -> list[str]:
        parts: list[str] = []
        if header.title:
            parts.append(f"# {header.title}")

        meta: list[str] = []
        if header.author:
            meta.append(f"- **Author:** {header.author}")
        if header.series:
            meta.append(f"- **Series:** {header.series}")
        if header.tags:
            meta.append("- **Tags:** " + " ".join(f"[{tag}]" for tag in header.tags))
        if header.date:
            meta.append(f"- **Date:** {header.date.isoformat()}")
        if meta:
            parts.append("\n".join(meta))

        if header.summary:
            parts.append(f"> {header.summary}")

        if header.characters:
            lines = [f"{self._heading_prefix()} Characters"]
            for character in header.characters:
                if character.description:
                    lines.append(
                        f"- **{character.name}** {CHARACTER_SEPARATOR} {character.description}"
                    )
                else:
                    lines.append(f"- **{character.name}**")
            parts.append("\n".join(lines))

        return parts

    def render_formatting_guide(self) -> list[str]:
        """Example rendering of every convention used in the body."""
        examples: list[Block] = [
            SpokenLine(text="spoken text"),
            SpokenLine(spans=[TextSpan.emphasis("emphasis")]),
            SpokenLine(spans=[TextSpan.cue("tone cue, suggested")]),
            Direction(text="stage direction"),
            Direction(text="sound effect", direction_type=DirectionType.SFX),
            Direction(
                text="example listener dialogue, not intended to be voiced",
                direction_type=DirectionType.LISTENER,
            ),
        ]
        parts = [f"{self._heading_prefix()} Formatting guide"]
        parts.extend(self.render_block(block) for block in examples)
        parts.append(self.config.divider)
        return parts

    def render_blocks(self, blocks: tuple[Block, ...]) -> list[str]:
        parts: list[str] = []
        last_speaker: Optional[str] = None
        for block in blocks:
            if isinstance(block, SpokenLine):
                show = block.speaker is not None and block.speaker != last_speaker
                parts.append(render_spoken(block, show_speaker=show))
                last_speaker = block.speaker
            else:
                if isinstance(block, SectionBreak):
                    last_speaker = None
                parts.append(self.render_block(block))
        return parts

    def render_block(self, block: Block) -> str:
        """Render a single block, always with its speaker prefix."""
        if isinstance(block, SpokenLine):
            return render_spoken(block)
        if isinstance(block, Direction):
            return render_direction(block)
        if isinstance(block, SectionBreak):
            if block.label:
                return f"{self._heading_prefix()} {block.label}"
            return self.config.divider
        raise ExportError(f"Unknown block type: {type(block).__name__}")

    def _heading_prefix(self) -> str:
        return "#" * self.config.section_level


def export_markdown(script: Script, config: MarkdownConfig | None = None) -> str:
    """Render a Script as Markdown text."""
    return MarkdownExporter(config).export(script)
