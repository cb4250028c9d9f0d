"""
Word counts and speech density.

Spoken words are the words a performer actually voices: the text of spoken
lines, minus any inline cues. Everything else (directions, sound effects,
listener lines, cues) is unspoken. Speech density is the spoken share of all
words.
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .models import Block, Direction, Script, SectionBreak, SpokenLine, join_spans


def count_words(text: str) -> int:
    """Count whitespace-separated tokens containing a letter or digit.

    Examples:
        >>> count_words("This isn't some text, is it?")
        6
        >>> count_words("hyphenated-words-count-once ...")
        1
    """
    return sum(1 for token in text.split() if any(char.isalnum() for char in token))


class WordStats(BaseModel):
    """Spoken and total word counts for a script or part of one."""

    spoken_words: int = Field(default=0, ge=0)
    total_words: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _spoken_within_total(self) -> "WordStats":
        if self.spoken_words > self.total_words:
            raise ValueError("spoken_words cannot exceed total_words")
        return self

    @property
    def unspoken_words(self) -> int:
        return self.total_words - self.spoken_words

    @property
    def density(self) -> float:
        """Proportion of words that are spoken; 0.0 when there are no words."""
        if self.total_words == 0:
            return 0.0
        return self.spoken_words / self.total_words

    def __add__(self, other: "WordStats") -> "WordStats":
        return WordStats(
            spoken_words=self.spoken_words + other.spoken_words,
            total_words=self.total_words + other.total_words,
        )

    def format(self, decimals: int = 2) -> str:
        if self.total_words == 0:
            density = "———%"
        else:
            density = f"{100 * self.density:.{decimals}f}%"
        return (
            f"{self.spoken_words:,} spoken + {self.unspoken_words:,} unspoken "
            f"-> {self.total_words:,} total (ρ = {density})"
        )

    def __str__(self) -> str:
        return self.format()


def block_stats(block: Block) -> WordStats:
    """Word counts for a single block."""
    if isinstance(block, SpokenLine):
        spoken = count_words(join_spans(block.spans, drop_cues=True))
        total = count_words(join_spans(block.spans))
        return WordStats(spoken_words=spoken, total_words=total)
    if isinstance(block, Direction):
        return WordStats(total_words=count_words(block.text))
    return WordStats()


def analyze(script: Script) -> WordStats:
    """Word counts and speech density for a whole script."""
    stats = WordStats()
    for block in script.blocks:
        stats = stats + block_stats(block)
    return stats


def analyze_sections(script: Script) -> list[tuple[Optional[str], WordStats]]:
    """Word counts per section, in order.

    Content before the first section break is reported under ``None``; it is
    omitted when there is none.
    """
    sections: list[tuple[Optional[str], WordStats]] = []
    label: Optional[str] = None
    current = WordStats()
    seen_content = False

    for block in script.blocks:
        if isinstance(block, SectionBreak):
            if seen_content:
                sections.append((label, current))
            label = block.label
            current = WordStats()
            seen_content = True
            continue
        current = current + block_stats(block)
        seen_content = True

    if seen_content:
        sections.append((label, current))
    return sections
