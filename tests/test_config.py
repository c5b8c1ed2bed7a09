"""Tests for analyzer configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from ptrequality.config import AnalyzerConfig, ConfigError, load_config, parse_bool


class TestAnalyzerConfig:
    def test_defaults(self):
        assert AnalyzerConfig().check_is is True

    def test_frozen(self):
        config = AnalyzerConfig()
        with pytest.raises(ValidationError):
            config.check_is = False

    def test_with_flag_returns_copy(self):
        config = AnalyzerConfig()
        off = config.with_flag("check-is", "false")
        assert off.check_is is False
        assert config.check_is is True

    def test_field_name_accepted(self):
        assert AnalyzerConfig().with_flag("check_is", False).check_is is False

    def test_unknown_flag(self):
        with pytest.raises(ConfigError, match="unknown flag"):
            AnalyzerConfig().with_flag("check-as", "true")


class TestParseBool:
    def test_go_spellings(self):
        for text in ("1", "t", "T", "TRUE", "true", "True"):
            assert parse_bool(text) is True
        for text in ("0", "f", "F", "FALSE", "false", "False"):
            assert parse_bool(text) is False

    def test_rejects_other_words(self):
        for text in ("yes", "no", "on", ""):
            with pytest.raises(ConfigError, match="invalid boolean"):
                parse_bool(text, "check-is")


class TestLoadConfig:
    def test_flag_spelling(self, tmp_path):
        path = tmp_path / "ptrequality.yaml"
        path.write_text("check-is: false\n")
        assert load_config(path).check_is is False

    def test_string_value(self, tmp_path):
        path = tmp_path / "ptrequality.yaml"
        path.write_text('check_is: "F"\n')
        assert load_config(path).check_is is False

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "ptrequality.yaml"
        path.write_text("")
        assert load_config(path) == AnalyzerConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "ptrequality.yaml"
        path.write_text("check-is: [\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "ptrequality.yaml"
        path.write_text("- check-is\n")
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_config(path)

    def test_non_boolean_value(self, tmp_path):
        path = tmp_path / "ptrequality.yaml"
        path.write_text("check-is: 3\n")
        with pytest.raises(ConfigError, match="expected a boolean"):
            load_config(path)
