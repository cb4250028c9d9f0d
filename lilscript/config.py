"""Configuration loading and management."""

import os
import re
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError

CONFIG_ENV_VAR = "LILSCRIPT_CONFIG"
DEFAULT_CONFIG_NAME = "lilscript.yaml"


class ParserConfig(BaseModel):
    """LaTeX command vocabulary recognized by the parser."""

    # The body starts at the first marker found, tried in this order.
    body_markers: list[str] = Field(
        default_factory=lambda: ["\\clearpage", "\\begin{document}"]
    )
    # Lines after the first end marker are ignored.
    end_markers: list[str] = Field(default_factory=lambda: ["\\end{document}"])
    section_commands: list[str] = Field(
        default_factory=lambda: ["part", "chapter", "section", "subsection", "subsubsection"]
    )
    divider_commands: list[str] = Field(default_factory=lambda: ["scenebreak", "divider"])
    # command name -> block kind
    container_commands: dict[str, Literal["spoken", "stage", "sfx", "listener"]] = Field(
        default_factory=lambda: {
            "spoken": "spoken",
            "stagedir": "stage",
            "sfx": "sfx",
            "listener": "listener",
        }
    )
    cue_commands: list[str] = Field(default_factory=lambda: ["direct"])
    emphasis_commands: list[str] = Field(
        default_factory=lambda: ["ul", "underline", "textbf", "emph", "textit"]
    )
    # A line made of exactly one of these becomes a stage direction.
    direction_line_commands: list[str] = Field(
        default_factory=lambda: ["direct", "emph", "textit"]
    )
    noise_commands: list[str] = Field(
        default_factory=lambda: [
            "documentclass",
            "usepackage",
            "begin",
            "end",
            "maketitle",
            "clearpage",
            "newpage",
            "pagebreak",
            "noindent",
            "vspace",
            "hspace",
            "smallskip",
            "medskip",
            "bigskip",
            "centering",
            "pagestyle",
            "thispagestyle",
            "setlength",
            "input",
            "include",
            "tableofcontents",
            "label",
        ]
    )
    # One or two capitalised words; when the header declares characters, only
    # their names are accepted.
    speaker_pattern: str = r"^(?P<speaker>[A-Z][\w.\-]*(?: [A-Z][\w.\-]*)?):\s+"

    @field_validator("speaker_pattern")
    @classmethod
    def _valid_speaker_pattern(cls, value: str) -> str:
        try:
            pattern = re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid speaker_pattern: {e}") from e
        if "speaker" not in pattern.groupindex:
            raise ValueError("speaker_pattern needs a named group 'speaker'")
        return value


class MarkdownConfig(BaseModel):
    """Markdown rendering options."""

    divider: str = "---"
    section_level: int = Field(default=2, ge=1, le=6)
    include_header: bool = True
    include_formatting_guide: bool = False


class Config(BaseModel):
    """Main application configuration."""

    parser: ParserConfig = Field(default_factory=ParserConfig)
    markdown: MarkdownConfig = Field(default_factory=MarkdownConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Config":
        """Load configuration from a YAML file.

        Raises:
            ConfigError: If the file is not valid YAML or not a valid config.
        """
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise ConfigError(f"Could not read config {path}: {e}") from e

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config {path}: expected a mapping at the top level")

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config {path}: {e}") from e

    def to_yaml(self, path: Path | str) -> None:
        """Save configuration to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.model_dump()
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False)


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file or use defaults.

    Without an explicit path, ``$LILSCRIPT_CONFIG`` is tried first and then
    ``lilscript.yaml`` in the working directory.
    """
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        candidates = [Path(env_path)] if env_path else []
        candidates.append(Path(DEFAULT_CONFIG_NAME))
        for candidate in candidates:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is not None:
        return Config.from_yaml(config_path)

    return Config()
