# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for relattn.

Every config section is a frozen pydantic model:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked

Cross-field rules that would otherwise surface deep inside a forward pass
(heads not dividing the hidden size, bucket parameters that make the log
scale degenerate) are checked here, at load time.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from relattn.model.exceptions import BucketConfigError
from relattn.model.relative_position import bucketing_enabled, check_bucket_params

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_VALID_POS_ATT_TYPES = ("c2p", "p2c")
_VALID_REL_NORMS = ("none", "layer_norm")


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings: reproducibility (seed), observability
    (log_level, log_file) and project identity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(default="relattn", description="Human-readable project identifier")
    seed: int = Field(
        default=42,
        ge=0,
        description="Random seed for weight initialization and dropout",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_VALID_LOG_LEVELS}, got '{value}'")
        return upper


class AttentionConfig(BaseModel):
    """
    Disentangled attention settings. Defaults follow the DeBERTa-v3 base
    checkpoint layout.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    hidden_size: int = Field(default=768, ge=1, description="Model hidden dimension")
    num_attention_heads: int = Field(default=12, ge=1, description="Number of attention heads")
    attention_probs_dropout_prob: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Dropout on attention probabilities"
    )
    hidden_dropout_prob: float = Field(
        default=0.1, ge=0.0, le=1.0, description="Dropout on relative embeddings"
    )
    relative_attention: bool = Field(
        default=True, description="Add the disentangled relative position bias"
    )
    position_buckets: int = Field(
        default=256,
        description="Log bucket count; zero or negative keeps raw distances",
    )
    max_relative_positions: int = Field(
        default=-1,
        description="Largest relative distance; below 1 falls back to max_position_embeddings",
    )
    max_position_embeddings: int = Field(default=512, ge=1, description="Maximum sequence length")
    pos_att_type: list[str] = Field(
        default_factory=lambda: ["p2c", "c2p"],
        description="Relative terms to add: any of 'c2p', 'p2c'",
    )
    share_att_key: bool = Field(
        default=True,
        description="Project relative embeddings with the content query/key projections",
    )
    norm_rel_ebd: str = Field(
        default="layer_norm", description="'layer_norm' or 'none' for the relative embeddings"
    )
    layer_norm_eps: float = Field(default=1e-7, gt=0.0, description="LayerNorm epsilon")
    init_std: float = Field(default=0.02, gt=0.0, description="Std of normal weight init")

    @field_validator("pos_att_type")
    @classmethod
    def _check_pos_att_type(cls, value: list[str]) -> list[str]:
        normalized = [v.strip().lower() for v in value]
        unknown = [v for v in normalized if v not in _VALID_POS_ATT_TYPES]
        if unknown:
            raise ValueError(f"Unknown pos_att_type entries {unknown}; allowed: {_VALID_POS_ATT_TYPES}")
        return normalized

    @field_validator("norm_rel_ebd")
    @classmethod
    def _check_norm_rel_ebd(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in _VALID_REL_NORMS:
            raise ValueError(f"norm_rel_ebd must be one of {_VALID_REL_NORMS}, got '{value}'")
        return normalized

    @model_validator(mode="after")
    def _check_geometry(self) -> "AttentionConfig":
        if self.hidden_size % self.num_attention_heads != 0:
            raise ValueError(
                f"hidden_size ({self.hidden_size}) must be divisible by "
                f"num_attention_heads ({self.num_attention_heads})"
            )
        if self.relative_attention:
            max_relative = self.max_relative_positions
            if max_relative < 1:
                max_relative = self.max_position_embeddings
            if bucketing_enabled(self.position_buckets, max_relative):
                try:
                    check_bucket_params(self.position_buckets, max_relative)
                except BucketConfigError as err:
                    raise ValueError(str(err)) from err
        return self


class RelAttnConfig(BaseModel):
    """
    Top-level config container.

    A YAML file may hold just ``global:``; the attention section stays None
    until a caller that builds modules asks for it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    attention: Optional[AttentionConfig] = Field(default=None)
