# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for relattn tests.

Config files are written to tmp_path; tests that need other values write
their own files.
"""

import textwrap
from pathlib import Path

import pytest


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """A valid config with both the global and attention sections."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "relattn-test"
          seed: 42
          log_level: "DEBUG"
        attention:
          config_version: "1.0.0"
          hidden_size: 64
          num_attention_heads: 4
          position_buckets: 16
          max_relative_positions: 64
          pos_att_type: ["p2c", "c2p"]
          share_att_key: false
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (missing config_version)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "relattn-test"
          seed: 42
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file
