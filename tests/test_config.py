"""Tests for configuration loading."""

import pytest
import yaml
from pydantic import ValidationError

from lilscript.config import CONFIG_ENV_VAR, Config, MarkdownConfig, ParserConfig, load_config
from lilscript.errors import ConfigError
from lilscript.ingestion import parse_tex
from lilscript.models import Direction, DirectionType


class TestDefaults:
    """Tests for default configuration values."""

    def test_default_config(self, test_config):
        assert test_config.markdown.divider == "---"
        assert test_config.markdown.section_level == 2
        assert test_config.markdown.include_header is True
        assert test_config.parser.container_commands["stagedir"] == "stage"
        assert "direct" in test_config.parser.cue_commands

    def test_section_level_bounds(self):
        with pytest.raises(ValidationError):
            MarkdownConfig(section_level=7)

    def test_unknown_container_kind_rejected(self):
        with pytest.raises(ValidationError):
            ParserConfig(container_commands={"aside": "whisper"})


class TestYaml:
    """Tests for YAML round-tripping."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert Config.from_yaml(tmp_path / "nope.yaml") == Config()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert Config.from_yaml(path) == Config()

    def test_partial_file(self, tmp_path):
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"markdown": {"divider": "***"}}), encoding="utf-8")
        config = Config.from_yaml(path)
        assert config.markdown.divider == "***"
        assert config.markdown.section_level == 2

    def test_round_trip(self, tmp_path):
        config = Config(markdown=MarkdownConfig(section_level=3, include_formatting_guide=True))
        path = tmp_path / "nested" / "lilscript.yaml"
        config.to_yaml(path)
        assert Config.from_yaml(path) == config


class TestLoadConfig:
    """Tests for config file discovery."""

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("markdown:\n  section_level: 4\n", encoding="utf-8")
        assert load_config(path).markdown.section_level == 4

    def test_environment_variable(self, tmp_path, monkeypatch):
        path = tmp_path / "from_env.yaml"
        path.write_text("markdown:\n  divider: '~~~'\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().markdown.divider == "~~~"

    def test_working_directory_file(self, tmp_path, monkeypatch):
        (tmp_path / "lilscript.yaml").write_text("markdown:\n  include_header: false\n", encoding="utf-8")
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert load_config().markdown.include_header is False

    def test_defaults_when_nothing_found(self, tmp_path, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert load_config() == Config()


class TestParserVocabulary:
    """Tests for parser behavior driven by configuration."""

    def test_custom_container_from_yaml(self, tmp_path):
        path = tmp_path / "vocab.yaml"
        path.write_text(
            "parser:\n"
            "  container_commands:\n"
            "    spoken: spoken\n"
            "    noise: sfx\n",
            encoding="utf-8",
        )
        config = load_config(path)
        (block,) = parse_tex(r"\noise{thunder}", config.parser).blocks
        assert isinstance(block, Direction)
        assert block.direction_type == DirectionType.SFX

    def test_custom_speaker_pattern(self):
        config = ParserConfig(speaker_pattern=r"^(?P<speaker>\w+)\s*>\s*")
        (block,) = parse_tex("Mira > hello", config).blocks
        assert block.speaker == "Mira"
        assert block.text == "hello"

    @pytest.mark.parametrize("pattern", ["(", r"^\w+:\s+"])
    def test_bad_speaker_pattern_rejected(self, pattern):
        """Patterns must compile and capture a named ``speaker`` group."""
        with pytest.raises(ValidationError):
            ParserConfig(speaker_pattern=pattern)


class TestBadConfigFiles:
    """Tests for config files that cannot be used."""

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("markdown: [\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Could not read config"):
            Config.from_yaml(path)

    def test_top_level_must_be_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- markdown\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="mapping"):
            Config.from_yaml(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("markdown:\n  section_level: 9\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="section_level"):
            Config.from_yaml(path)

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "binary.yaml"
        path.write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(ConfigError):
            Config.from_yaml(path)
