"""LaTeX script parser.

Turns the LaTeX source of a role-play script into a ``Script``. This is not a
TeX engine: it recognizes the small command vocabulary these scripts use
(containers such as ``\\spoken`` and ``\\stagedir``, inline cues, emphasis,
sectioning and header commands) and folds everything else down to plain text.

Parsing happens in three passes over "logical lines" (physical lines joined
until every ``{`` group is closed):

1. tokenize each logical line into text and commands
2. collect header metadata from every line, wherever it appears
3. classify each body line into blocks, carrying the speaker forward
"""

import datetime
import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from ..config import ParserConfig
from ..errors import UnbalancedGroup
from ..models import (
    Block,
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

logger = logging.getLogger(__name__)

_COMMAND_NAME_RE = re.compile(r"[A-Za-z@]+\*?")
_LENGTH_ARG_RE = re.compile(r"\[\s*-?[\d.]+\s*[a-z]*\s*\]")
_BRACKET_CUE_RE = re.compile(r"\[([^\[\]]*)\]")
_TAG_RE = re.compile(r"\[(.*?)\]")
_WHITESPACE_RE = re.compile(r"\s+")

ESCAPED_CHARACTERS = "$&%#_{}"

# Commands that stand for a piece of text.
SYMBOL_COMMANDS = {
    "ldots": "...",
    "textellipsis": "...",
    "dots": "...",
    "kaosmile": "^_^",
    "Tilde": "∼",
    "textemdash": "—",
    "textendash": "–",
    "textasciitilde": "~",
    "LaTeX": "LaTeX",
    "TeX": "TeX",
}

DEFINITION_COMMANDS = ("newcommand", "renewcommand", "providecommand")
TITLE_VARIABLE = "SceneName"

HEADER_COMMANDS = {
    "title",
    "author",
    "scriptAuthor",
    "scriptSeries",
    "scriptTags",
    "summary",
    "scriptDate",
    "date",
    "character",
    *DEFINITION_COMMANDS,
}

_DATE_FORMATS = ("%Y-%m-%d", "%d %B %Y", "%B %d, %Y", "%d/%m/%Y")


# ============================================================================
# Lines and tokens
# ============================================================================


@dataclass
class Command:
    """A command with its optional ``[...]`` and ``{...}`` arguments."""

    name: str
    args: list[list["Node"]] = field(default_factory=list)
    optional: Optional[list["Node"]] = None


Node = Union[str, Command]


@dataclass
class LogicalLine:
    """One or more physical lines joined until every ``{`` group is closed."""

    number: int
    text: str


def strip_comment(line: str) -> str:
    """Remove an unescaped ``%`` and everything after it."""
    i = 0
    while i < len(line):
        char = line[i]
        if char == "\\":
            i += 2
            continue
        if char == "%":
            return line[:i]
        i += 1
    return line


def logical_lines(raw_text: str) -> Iterator[LogicalLine]:
    """Yield the non-blank logical lines of a document.

    Comments are stripped first. A physical line that leaves a ``{`` group
    open is joined with the following lines until the group closes.

    Raises:
        UnbalancedGroup: If the input ends while a group is still open.
    """
    buffer: list[str] = []
    start = 0
    open_line = 0
    depth = 0

    for number, physical in enumerate(raw_text.splitlines(), start=1):
        line = strip_comment(physical)
        if not buffer:
            start = number
        buffer.append(line)

        i = 0
        while i < len(line):
            char = line[i]
            if char == "\\":
                i += 2
                continue
            if char == "{":
                if depth == 0:
                    open_line = number
                depth += 1
            elif char == "}" and depth > 0:
                depth -= 1
            i += 1

        if depth == 0:
            text = "\n".join(buffer)
            buffer = []
            if text.strip():
                yield LogicalLine(number=start, text=text)

    if depth > 0:
        raise UnbalancedGroup(open_line)


class _Tokenizer:
    """Splits the text of one logical line into text and command nodes."""

    def __init__(self, text: str, line: int):
        self.text = text
        self.line = line
        self.pos = 0

    def parse(self) -> list[Node]:
        return self._nodes(closing=False)

    def _nodes(self, closing: bool) -> list[Node]:
        nodes: list[Node] = []
        buffer: list[str] = []

        def flush() -> None:
            if buffer:
                nodes.append("".join(buffer))
                buffer.clear()

        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == "\\":
                node = self._command()
                if isinstance(node, Command):
                    flush()
                    nodes.append(node)
                else:
                    buffer.append(node)
            elif char == "{":
                # bare group: keep its contents inline
                self.pos += 1
                flush()
                nodes.extend(self._nodes(closing=True))
            elif char == "}":
                self.pos += 1
                if closing:
                    flush()
                    return nodes
                logger.warning("Line %d: dropping unmatched '}'", self.line)
            elif char == "~":
                buffer.append(" ")
                self.pos += 1
            else:
                buffer.append(char)
                self.pos += 1

        flush()
        return nodes

    def _command(self) -> Node:
        self.pos += 1  # the backslash
        if self.pos >= len(self.text):
            return ""

        match = _COMMAND_NAME_RE.match(self.text, self.pos)
        if match is None:
            symbol = self.text[self.pos]
            self.pos += 1
            if symbol in ESCAPED_CHARACTERS:
                return symbol
            if symbol == "\\":
                # line break, possibly with a spacing argument: \\[2pt]
                length = _LENGTH_ARG_RE.match(self.text, self.pos)
                if length:
                    self.pos = length.end()
                return " "
            if symbol.isspace() or symbol in ",;:":
                return " "
            return ""

        name = match.group().rstrip("*")
        self.pos = match.end()
        command = Command(name=name)

        while self.pos < len(self.text):
            char = self.text[self.pos]
            if char == "{":
                self.pos += 1
                command.args.append(self._nodes(closing=True))
            elif (
                char == "["
                and command.optional is None
                and name not in SYMBOL_COMMANDS
                and (not command.args or name in DEFINITION_COMMANDS)
            ):
                optional = self._optional_argument()
                if optional is None:
                    break
                command.optional = optional
            else:
                break

        if name in SYMBOL_COMMANDS:
            return SYMBOL_COMMANDS[name]
        return command

    def _optional_argument(self) -> Optional[list[Node]]:
        """Parse ``[...]`` at the cursor, or return None and leave the cursor."""
        depth = 0
        for end in range(self.pos + 1, len(self.text)):
            char = self.text[end]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth < 0:
                    return None
            elif char == "]" and depth == 0:
                inner = _Tokenizer(self.text[self.pos + 1 : end], self.line).parse()
                self.pos = end + 1
                return inner
        return None


def tokenize(text: str, line: int = 1) -> list[Node]:
    """Tokenize one logical line of LaTeX into text and command nodes."""
    return _Tokenizer(_normalize_quotes(text), line).parse()


def _normalize_quotes(text: str) -> str:
    return text.replace("``", '"').replace("''", '"').replace("`", "'")


def _walk_commands(nodes: list[Node]) -> Iterator[Command]:
    for node in nodes:
        if isinstance(node, Command):
            yield node
            for arg in node.args:
                yield from _walk_commands(arg)


# ============================================================================
# Spans
# ============================================================================


def _split_bracket_cues(text: str) -> list[TextSpan]:
    spans: list[TextSpan] = []
    last = 0
    for match in _BRACKET_CUE_RE.finditer(text):
        if match.start() > last:
            spans.append(TextSpan.normal(text[last : match.start()]))
        spans.append(TextSpan.cue(match.group(1)))
        last = match.end()
    if last < len(text):
        spans.append(TextSpan.normal(text[last:]))
    return spans


def _finish_spans(spans: list[TextSpan]) -> list[TextSpan]:
    """Collapse whitespace, merge adjacent normal text and trim the ends."""
    merged: list[TextSpan] = []
    for span in spans:
        contents = _WHITESPACE_RE.sub(" ", span.contents)
        if span.kind != SpanKind.NORMAL:
            contents = contents.strip()
        if not contents:
            continue

        previous = merged[-1] if merged else None
        if previous is not None and previous.kind == SpanKind.NORMAL and span.kind == SpanKind.NORMAL:
            joined = _WHITESPACE_RE.sub(" ", previous.contents + contents)
            merged[-1] = TextSpan.normal(joined)
            continue
        if previous is not None and previous.kind != SpanKind.NORMAL and span.kind != SpanKind.NORMAL:
            merged.append(TextSpan.normal(" "))
        merged.append(TextSpan(kind=span.kind, contents=contents))

    while merged and merged[0].kind == SpanKind.NORMAL and not merged[0].contents.strip():
        merged.pop(0)
    while merged and merged[-1].kind == SpanKind.NORMAL and not merged[-1].contents.strip():
        merged.pop()
    if merged and merged[0].kind == SpanKind.NORMAL:
        merged[0] = TextSpan.normal(merged[0].contents.lstrip())
    if merged and merged[-1].kind == SpanKind.NORMAL:
        merged[-1] = TextSpan.normal(merged[-1].contents.rstrip())
    return merged


def _clean(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def parse_date(value: str) -> Optional[datetime.date]:
    """Parse a header date; unrecognized formats yield None."""
    value = value.strip()
    if not value:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    logger.warning("Could not parse script date: %r", value)
    return None


def parse_tags(value: str) -> list[str]:
    """Parse ``[tag] [tag]`` (or comma-separated) tags without brackets."""
    tags = _TAG_RE.findall(value)
    if not tags and value.strip():
        tags = value.split(",")
    return [tag.strip() for tag in tags if tag.strip()]


# ============================================================================
# Parser
# ============================================================================


@dataclass
class _ParseState:
    """Per-document state; never shared between parse calls."""

    variables: dict[str, str] = field(default_factory=dict)
    characters: set[str] = field(default_factory=set)
    speaker: Optional[str] = None


class TexParser:
    """Parses LaTeX role-play scripts into ``Script`` objects."""

    def __init__(self, config: ParserConfig | None = None):
        self.config = config or ParserConfig()
        self._speaker_re = re.compile(self.config.speaker_pattern)
        self._structural = (
            set(self.config.section_commands)
            | set(self.config.divider_commands)
            | set(self.config.container_commands)
        )
        self._ignored = set(self.config.noise_commands) | HEADER_COMMANDS
        self._known_inline = (
            set(self.config.cue_commands) | set(self.config.emphasis_commands) | {"href"}
        )

    def parse(self, raw_text: str) -> Script:
        """Parse a whole document.

        Args:
            raw_text: The LaTeX source.

        Returns:
            The parsed, immutable Script.

        Raises:
            UnbalancedGroup: If a ``{`` group is still open at end of input.
        """
        lines = list(logical_lines(_normalize_quotes(raw_text)))
        tokenized = [(line, _Tokenizer(line.text, line.number).parse()) for line in lines]

        state = _ParseState()
        header = self._collect_header(tokenized, state)

        start, end = self._body_range(lines)
        skipped = [line.number for line, nodes in tokenized[:start] if self._has_content(nodes)]
        if skipped:
            logger.warning(
                "Skipping %d line(s) of text before the script body (first at line %d)",
                len(skipped),
                skipped[0],
            )
        blocks: list[Block] = []
        for line, nodes in tokenized[start:end]:
            blocks.extend(self._line_blocks(line, nodes, state))

        logger.debug(
            "Parsed %d blocks from %d logical lines (body: lines %d-%d)",
            len(blocks),
            len(lines),
            start,
            end,
        )
        return Script(header=header, blocks=blocks)

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def _collect_header(
        self, tokenized: list[tuple[LogicalLine, list[Node]]], state: _ParseState
    ) -> ScriptHeader:
        commands = [command for _, nodes in tokenized for command in _walk_commands(nodes)]

        # fill-in variables first, so header values can reference them
        for command in commands:
            if command.name not in DEFINITION_COMMANDS or len(command.args) < 2:
                continue
            target = self._definition_target(command)
            if target is None or command.optional is not None:
                continue
            state.variables[target] = self._plain(command.args[1], state)

        fields: dict = {"tags": [], "characters": []}
        for command in commands:
            name = command.name
            if name not in HEADER_COMMANDS or not command.args:
                continue

            if name in DEFINITION_COMMANDS:
                if self._definition_target(command) == TITLE_VARIABLE and len(command.args) > 1:
                    fields["title"] = self._plain(command.args[1], state) or None
                continue

            value = self._plain(command.args[0], state)
            if name == "title":
                fields["title"] = value or None
            elif name in ("author", "scriptAuthor"):
                fields["author"] = value or None
            elif name == "scriptSeries":
                fields["series"] = SeriesEntry.from_tex(value)
            elif name == "scriptTags":
                fields["tags"].extend(parse_tags(value))
            elif name == "summary":
                fields["summary"] = value or None
            elif name in ("date", "scriptDate"):
                fields["date"] = parse_date(value)
            elif name == "character" and value:
                description = self._plain(command.args[1], state) if len(command.args) > 1 else ""
                fields["characters"].append(Character(name=value, description=description))

        state.characters = {character.name for character in fields["characters"]}
        variables = {k: v for k, v in state.variables.items() if k != TITLE_VARIABLE}
        return ScriptHeader(variables=variables, **fields)

    def _definition_target(self, command: Command) -> Optional[str]:
        for node in command.args[0]:
            if isinstance(node, Command):
                if node.name in self._structural or node.name in self._known_inline:
                    return None
                return node.name
        return None

    # ------------------------------------------------------------------
    # Body
    # ------------------------------------------------------------------

    def _body_range(self, lines: list[LogicalLine]) -> tuple[int, int]:
        start = 0
        for marker in self.config.body_markers:
            found = next((i for i, line in enumerate(lines) if marker in line.text), None)
            if found is not None:
                start = found
                break

        end = len(lines)
        for i, line in enumerate(lines[start:], start=start):
            if any(marker in line.text for marker in self.config.end_markers):
                end = i + 1
                break
        return start, end

    def _has_content(self, nodes: list[Node]) -> bool:
        return any(
            (isinstance(node, str) and node.strip())
            or (isinstance(node, Command) and node.name in self._structural)
            for node in nodes
        )

    def _line_blocks(self, line: LogicalLine, nodes: list[Node], state: _ParseState) -> list[Block]:
        blocks: list[Block] = []
        loose: list[Node] = []
        for node in nodes:
            if isinstance(node, Command) and node.name in self._structural:
                blocks.extend(self._loose_blocks(loose, line, state))
                loose = []
                block = self._structural_block(node, state)
                if block is not None:
                    blocks.append(block)
            else:
                loose.append(node)
        blocks.extend(self._loose_blocks(loose, line, state))
        return blocks

    def _structural_block(self, command: Command, state: _ParseState) -> Optional[Block]:
        name = command.name
        if name in self.config.divider_commands:
            return SectionBreak()
        if name in self.config.section_commands:
            label = self._plain(command.args[0], state) if command.args else ""
            return SectionBreak(label=label or None)

        kind = self.config.container_commands[name]
        spans = self._spans(command.args[0] if command.args else [], state)
        if kind == "spoken":
            speaker = self._plain(command.optional, state) if command.optional else ""
            return self._spoken_line(spans, speaker or None, state)
        if not spans:
            return None
        return Direction(spans=spans, direction_type=DirectionType(kind))

    def _loose_blocks(self, nodes: list[Node], line: LogicalLine, state: _ParseState) -> list[Block]:
        meaningful = [
            node
            for node in nodes
            if (isinstance(node, str) and node.strip())
            or (isinstance(node, Command) and node.name not in self._ignored)
        ]
        if not meaningful:
            return []

        first = meaningful[0]
        if isinstance(first, Command):
            if len(meaningful) == 1 and first.name in self.config.direction_line_commands:
                spans = self._spans(first.args[0] if first.args else [], state)
                return [Direction(spans=spans)] if spans else []
            if (
                first.args
                and first.name not in self._known_inline
                and first.name not in state.variables
            ):
                logger.warning(
                    "Line %d: could not identify block kind for command \\%s; treating it as text",
                    line.number,
                    first.name,
                )

        spans = self._spans(nodes, state)
        if not spans:
            return []
        if len(spans) == 1 and spans[0].is_cue:
            return [Direction(text=spans[0].contents)]

        block = self._spoken_line(spans, None, state)
        return [block] if block is not None else []

    def _spoken_line(
        self, spans: list[TextSpan], speaker: Optional[str], state: _ParseState
    ) -> Optional[SpokenLine]:
        if speaker is None and spans and spans[0].kind == SpanKind.NORMAL:
            match = self._speaker_re.match(spans[0].contents)
            if match and self._is_speaker(match.group("speaker").strip(), state):
                speaker = match.group("speaker").strip()
                rest = TextSpan.normal(spans[0].contents[match.end() :])
                spans = _finish_spans([rest, *spans[1:]])

        if speaker:
            state.speaker = speaker
        else:
            speaker = state.speaker

        if not "".join(span.contents for span in spans).strip():
            return None
        return SpokenLine(speaker=speaker, spans=spans)

    @staticmethod
    def _is_speaker(name: str, state: _ParseState) -> bool:
        return not state.characters or name in state.characters

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def _raw_spans(self, nodes: list[Node], state: _ParseState, brackets: bool) -> list[TextSpan]:
        spans: list[TextSpan] = []
        for node in nodes:
            if isinstance(node, str):
                spans.extend(_split_bracket_cues(node) if brackets else [TextSpan.normal(node)])
                continue

            name = node.name
            first = node.args[0] if node.args else []
            if name in self.config.cue_commands:
                spans.append(TextSpan.cue(self._plain(first, state)))
            elif name in self.config.emphasis_commands:
                spans.append(TextSpan.emphasis(self._plain(first, state)))
            elif name == "href" and len(node.args) >= 2:
                text = self._plain(node.args[1], state)
                url = self._plain(first, state)
                spans.append(TextSpan.normal(f"[{text}]({url})"))
            elif name in state.variables:
                spans.append(TextSpan.normal(state.variables[name]))
                if node.optional:
                    spans.extend(self._optional_spans(node.optional, state, brackets))
            elif name in self._ignored:
                continue
            else:
                logger.debug("Folding unrecognized command \\%s into text", name)
                if node.optional:
                    spans.extend(self._optional_spans(node.optional, state, brackets))
                for arg in node.args:
                    spans.extend(self._raw_spans(arg, state, brackets))
        return spans

    def _optional_spans(self, optional: list[Node], state: _ParseState, brackets: bool) -> list[TextSpan]:
        """A ``[...]`` that no command claims is kept the way loose brackets are."""
        text = self._plain(optional, state)
        if brackets:
            return [TextSpan.cue(text)]
        return [TextSpan.normal(f"[{text}]")]

    def _spans(self, nodes: list[Node], state: _ParseState) -> list[TextSpan]:
        return _finish_spans(self._raw_spans(nodes, state, brackets=True))

    def _plain(self, nodes: list[Node], state: _ParseState) -> str:
        return _clean("".join(span.contents for span in self._raw_spans(nodes, state, brackets=False)))


def plain_text(source: str) -> str:
    """Render a LaTeX fragment as plain text.

    Examples:
        >>> plain_text(r"This is some text\\textellipsis{} and some more text.")
        'This is some text... and some more text.'
    """
    parser = TexParser()
    return parser._plain(tokenize(source), _ParseState())


def parse_tex(raw_text: str, config: ParserConfig | None = None) -> Script:
    """Parse LaTeX source into a Script.

    Args:
        raw_text: The LaTeX source of a script.
        config: Optional parser vocabulary; defaults are used when omitted.

    Returns:
        The parsed Script.

    Raises:
        UnbalancedGroup: If a ``{`` group is never closed.
    """
    return TexParser(config).parse(raw_text)
