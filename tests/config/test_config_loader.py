# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the config loader.

  1. Valid YAML loads into a frozen config object
  2. Missing required fields raise ConfigValidationError
  3. Unknown fields and bad bucket settings raise ConfigValidationError
  4. Broken or missing files raise ConfigLoadError
"""

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from relattn.config.exceptions import ConfigError, ConfigLoadError, ConfigValidationError
from relattn.config.loader import load_config, parse_config


class TestLoadValidConfig:
    def test_loads_global_section(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.global_config.project_name == "relattn-test"
        assert config.global_config.seed == 42
        assert config.global_config.log_level == "DEBUG"

    def test_loads_attention_section(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.attention is not None
        assert config.attention.hidden_size == 64
        assert config.attention.position_buckets == 16
        assert config.attention.pos_att_type == ["p2c", "c2p"]
        assert config.attention.share_att_key is False

    def test_attention_section_is_optional(self, tmp_path: Path) -> None:
        config_file = tmp_path / "global_only.yaml"
        config_file.write_text('global:\n  config_version: "1.0.0"\n', encoding="utf-8")
        config = load_config(config_file)
        assert config.attention is None

    def test_config_is_frozen(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(ValidationError):
            config.global_config.seed = 1  # type: ignore[misc]


class TestLoadErrors:
    def test_missing_required_field(self, invalid_config_file: Path) -> None:
        with pytest.raises(ConfigValidationError, match="config_version"):
            load_config(invalid_config_file)

    def test_broken_yaml(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError, match="Invalid YAML"):
            load_config(broken_yaml_file)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_directory_is_not_a_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)

    def test_non_mapping_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(config_file)

    def test_unknown_field(self, tmp_path: Path) -> None:
        config_file = tmp_path / "extra.yaml"
        config_file.write_text(
            textwrap.dedent("""\
                global:
                  config_version: "1.0.0"
                  surprise: true
            """),
            encoding="utf-8",
        )
        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_degenerate_buckets(self, tmp_path: Path) -> None:
        config_file = tmp_path / "buckets.yaml"
        config_file.write_text(
            textwrap.dedent("""\
                global:
                  config_version: "1.0.0"
                attention:
                  config_version: "1.0.0"
                  position_buckets: 8
                  max_relative_positions: 5
            """),
            encoding="utf-8",
        )
        with pytest.raises(ConfigValidationError, match="max_position"):
            load_config(config_file)

    def test_errors_share_base_class(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigError):
            load_config(broken_yaml_file)


class TestParseConfig:
    def test_parses_dict(self) -> None:
        config = parse_config({"global": {"config_version": "2.0.0", "seed": 3}})
        assert config.global_config.config_version == "2.0.0"
        assert config.global_config.seed == 3

    def test_reports_source(self) -> None:
        with pytest.raises(ConfigValidationError, match="inline"):
            parse_config({"global": {}}, source="inline")
