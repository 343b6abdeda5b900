# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the pydantic schemas: defaults, normalization and cross-field rules.
"""

import pytest
from pydantic import ValidationError

from relattn.config.schema import AttentionConfig, GlobalConfig


class TestGlobalConfig:
    def test_defaults(self) -> None:
        config = GlobalConfig(config_version="1.0.0")
        assert config.project_name == "relattn"
        assert config.seed == 42
        assert config.log_level == "INFO"
        assert config.log_file is None

    def test_log_level_is_normalized(self) -> None:
        assert GlobalConfig(config_version="1.0.0", log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError):
            GlobalConfig(config_version="1.0.0", log_level="LOUD")

    def test_negative_seed(self) -> None:
        with pytest.raises(ValidationError):
            GlobalConfig(config_version="1.0.0", seed=-1)


class TestAttentionConfig:
    def test_defaults_are_valid(self) -> None:
        config = AttentionConfig(config_version="1.0.0")
        assert config.hidden_size == 768
        assert config.num_attention_heads == 12
        assert config.position_buckets == 256
        assert config.pos_att_type == ["p2c", "c2p"]
        assert config.norm_rel_ebd == "layer_norm"

    def test_heads_must_divide_hidden(self) -> None:
        with pytest.raises(ValidationError, match="divisible"):
            AttentionConfig(config_version="1.0.0", hidden_size=100, num_attention_heads=12)

    def test_pos_att_type_normalized(self) -> None:
        config = AttentionConfig(config_version="1.0.0", pos_att_type=["C2P"])
        assert config.pos_att_type == ["c2p"]

    def test_unknown_pos_att_type(self) -> None:
        with pytest.raises(ValidationError, match="pos_att_type"):
            AttentionConfig(config_version="1.0.0", pos_att_type=["p2p"])

    def test_unknown_rel_norm(self) -> None:
        with pytest.raises(ValidationError):
            AttentionConfig(config_version="1.0.0", norm_rel_ebd="batch_norm")

    def test_bucket_size_too_small(self) -> None:
        with pytest.raises(ValidationError, match="bucket_size"):
            AttentionConfig(config_version="1.0.0", position_buckets=1, max_relative_positions=64)

    def test_bucket_check_uses_fallback_max(self) -> None:
        """max_relative_positions < 1 falls back to max_position_embeddings."""
        with pytest.raises(ValidationError, match="max_position"):
            AttentionConfig(
                config_version="1.0.0",
                position_buckets=16,
                max_relative_positions=-1,
                max_position_embeddings=9,
            )

    def test_disabled_buckets_skip_check(self) -> None:
        config = AttentionConfig(
            config_version="1.0.0", position_buckets=0, max_relative_positions=2
        )
        assert config.position_buckets == 0

    def test_no_relative_attention_skips_check(self) -> None:
        config = AttentionConfig(
            config_version="1.0.0",
            relative_attention=False,
            position_buckets=8,
            max_relative_positions=3,
        )
        assert config.relative_attention is False

    def test_frozen(self) -> None:
        config = AttentionConfig(config_version="1.0.0")
        with pytest.raises(ValidationError):
            config.hidden_size = 1024  # type: ignore[misc]
