"""
Core data models for a parsed role-play script.

Includes models for:
- Script header metadata (title, author, series, tags, characters, variables)
- Content blocks (spoken lines, directions, section breaks)
- Inline text spans within a block
"""

import datetime
import re
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# TEXT SPANS
# ============================================================================


class SpanKind(str, Enum):
    """Kind of inline text span."""

    NORMAL = "normal"
    EMPHASIS = "emphasis"
    CUE = "cue"  # inline direction, never spoken


class TextSpan(BaseModel):
    """A run of text within a block, with its inline formatting."""

    model_config = ConfigDict(frozen=True)

    kind: SpanKind = SpanKind.NORMAL
    contents: str

    @classmethod
    def normal(cls, contents: str) -> "TextSpan":
        return cls(kind=SpanKind.NORMAL, contents=contents)

    @classmethod
    def emphasis(cls, contents: str) -> "TextSpan":
        return cls(kind=SpanKind.EMPHASIS, contents=contents)

    @classmethod
    def cue(cls, contents: str) -> "TextSpan":
        return cls(kind=SpanKind.CUE, contents=contents)

    @property
    def is_cue(self) -> bool:
        return self.kind == SpanKind.CUE


def join_spans(spans: list[Any], drop_cues: bool = False) -> str:
    """Concatenate span contents into plain text.

    A cue is always a separate word: a space is inserted wherever a cue meets
    its neighbour without whitespace. With ``drop_cues`` each cue is replaced
    by a single space, leaving only the words that are voiced.
    """
    parts: list[str] = []
    previous_cue = False
    for span in spans:
        if not isinstance(span, TextSpan):
            span = TextSpan.model_validate(span)
        contents = " " if drop_cues and span.is_cue else span.contents
        if (
            parts
            and (span.is_cue or previous_cue)
            and not parts[-1][-1:].isspace()
            and not contents[:1].isspace()
        ):
            parts.append(" ")
        parts.append(contents)
        previous_cue = span.is_cue
    return "".join(parts)


# ============================================================================
# BLOCKS
# ============================================================================


class _TextBlock(BaseModel):
    """
    Shared shape of blocks that carry text.

    A block may be built from ``text`` alone (a single normal span is
    derived) or from ``spans`` (``text`` is derived with ``join_spans``).
    Spans carry their own surrounding whitespace.
    """

    model_config = ConfigDict(frozen=True)

    text: str = ""
    spans: list[TextSpan] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _derive_text_and_spans(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)
        spans = data.get("spans")
        if spans:
            if not data.get("text"):
                data["text"] = join_spans(spans)
        else:
            text = data.get("text") or ""
            data["text"] = text
            data["spans"] = [TextSpan.normal(text.strip())] if text.strip() else []
        return data

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("block text must not be empty")
        return value


class SpokenLine(_TextBlock):
    """A line of dialogue intended to be read aloud."""

    kind: Literal["spoken"] = "spoken"
    speaker: Optional[str] = None


class DirectionType(str, Enum):
    """What a non-spoken annotation describes."""

    STAGE = "stage"
    SFX = "sfx"
    LISTENER = "listener"  # the listener's lines, not intended to be voiced


class Direction(_TextBlock):
    """Stage direction, sound cue, or other non-spoken annotation."""

    kind: Literal["direction"] = "direction"
    direction_type: DirectionType = DirectionType.STAGE


class SectionBreak(BaseModel):
    """A structural divider, optionally labeled."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["section"] = "section"
    label: Optional[str] = None


Block = Annotated[
    Union[SpokenLine, Direction, SectionBreak],
    Field(discriminator="kind"),
]


# ============================================================================
# HEADER MODELS
# ============================================================================


_SERIES_RE = re.compile(r"^(.*?) \(Part (\d+)\)$")
_NO_SERIES = ("", "—", "\\textemdash")


class SeriesEntry(BaseModel):
    """The series a script belongs to, with its part index."""

    model_config = ConfigDict(frozen=True)

    title: str
    part: int

    @classmethod
    def from_tex(cls, value: str) -> Optional["SeriesEntry"]:
        """Parse ``Title (Part N)``; anything else means no series."""
        value = value.strip()
        if value in _NO_SERIES:
            return None

        match = _SERIES_RE.match(value)
        if match is None:
            return None
        return cls(title=match.group(1), part=int(match.group(2)))

    def __str__(self) -> str:
        return f"{self.title} (Part {self.part})"


class Character(BaseModel):
    """A character appearing in the script."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""


class ScriptHeader(BaseModel):
    """
    Best-effort script metadata.

    Every field is optional; a script with no recognizable header simply
    has an empty one.
    """

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    author: Optional[str] = None
    series: Optional[SeriesEntry] = None
    tags: list[str] = Field(default_factory=list)
    summary: Optional[str] = None
    date: Optional[datetime.date] = None
    characters: list[Character] = Field(default_factory=list)
    variables: dict[str, str] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (
            self.title
            or self.author
            or self.series
            or self.tags
            or self.summary
            or self.date
            or self.characters
        )


# ============================================================================
# SCRIPT
# ============================================================================


class Script(BaseModel):
    """The complete parsed script: header plus ordered content blocks."""

    model_config = ConfigDict(frozen=True)

    header: ScriptHeader = Field(default_factory=ScriptHeader)
    blocks: tuple[Block, ...] = ()

    @property
    def speakers(self) -> list[str]:
        """Distinct speakers in order of first appearance."""
        seen: list[str] = []
        for block in self.blocks:
            if isinstance(block, SpokenLine) and block.speaker and block.speaker not in seen:
                seen.append(block.speaker)
        return seen
