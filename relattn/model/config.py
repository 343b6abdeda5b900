# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Model-side configuration for disentangled attention.

This is a plain data object (not pydantic) because it is read inside torch
modules on every forward pass. Validation of user input happens in
config/schema.py; construction still rejects bucket parameters and
norm_rel_ebd values the modules cannot use. The few derived values the modules
need (resolved maximum relative distance, embedding span) are computed here once.
"""

from enum import Enum
from typing import Iterable

from relattn.model.relative_position import bucketing_enabled, check_bucket_params

_VALID_REL_NORMS = ("none", "layer_norm")


class PositionAttentionType(str, Enum):
    """Relative terms that can be added to the content-to-content score."""

    C2P = "c2p"  # content query attends to relative position keys
    P2C = "p2c"  # relative position queries attend to content keys


def parse_pos_att_types(values: Iterable[str]) -> tuple[PositionAttentionType, ...]:
    """
    Parse position attention type names, dropping duplicates but keeping order.

    Raises:
        ValueError: On an unknown name.
    """
    parsed: list[PositionAttentionType] = []
    for value in values:
        att_type = PositionAttentionType(value.strip().lower())
        if att_type not in parsed:
            parsed.append(att_type)
    return tuple(parsed)


class DisentangledAttentionConfig:
    """
    Configuration for DisentangledSelfAttention and RelativeEmbedding.

    Args:
        hidden_size: Model hidden dimension.
        num_attention_heads: Number of attention heads; must divide hidden_size.
        attention_probs_dropout_prob: Dropout on attention probabilities.
        hidden_dropout_prob: Dropout on the relative embeddings.
        relative_attention: Whether relative position bias is used at all.
        position_buckets: Log bucket count; <= 0 keeps raw distances.
        max_relative_positions: Largest relative distance; < 1 falls back
            to max_position_embeddings.
        max_position_embeddings: Maximum sequence length.
        pos_att_type: Enabled relative terms, e.g. ("p2c", "c2p").
        share_att_key: Reuse the content projections for relative embeddings.
        norm_rel_ebd: "layer_norm" to normalize the relative embeddings.
        layer_norm_eps: Epsilon for that LayerNorm.
        init_std: Standard deviation for weight initialization.
        seed: Seed for deterministic initialization.
    """

    __slots__ = (
        "hidden_size",
        "num_attention_heads",
        "attention_probs_dropout_prob",
        "hidden_dropout_prob",
        "relative_attention",
        "position_buckets",
        "max_relative_positions",
        "max_position_embeddings",
        "pos_att_type",
        "share_att_key",
        "norm_rel_ebd",
        "layer_norm_eps",
        "init_std",
        "seed",
    )

    def __init__(
        self,
        hidden_size: int,
        num_attention_heads: int,
        attention_probs_dropout_prob: float = 0.1,
        hidden_dropout_prob: float = 0.1,
        relative_attention: bool = True,
        position_buckets: int = 256,
        max_relative_positions: int = -1,
        max_position_embeddings: int = 512,
        pos_att_type: Iterable[str] = ("p2c", "c2p"),
        share_att_key: bool = True,
        norm_rel_ebd: str = "layer_norm",
        layer_norm_eps: float = 1e-7,
        init_std: float = 0.02,
        seed: int = 42,
    ) -> None:
        if hidden_size % num_attention_heads != 0:
            raise ValueError(
                f"hidden_size ({hidden_size}) is not a multiple of "
                f"num_attention_heads ({num_attention_heads})"
            )
        self.hidden_size = hidden_size
        self.num_attention_heads = num_attention_heads
        self.attention_probs_dropout_prob = attention_probs_dropout_prob
        self.hidden_dropout_prob = hidden_dropout_prob
        self.relative_attention = relative_attention
        self.position_buckets = position_buckets
        self.max_relative_positions = max_relative_positions
        self.max_position_embeddings = max_position_embeddings
        self.pos_att_type = parse_pos_att_types(pos_att_type)
        self.share_att_key = share_att_key
        self.norm_rel_ebd = norm_rel_ebd.strip().lower()
        self.layer_norm_eps = layer_norm_eps
        self.init_std = init_std
        self.seed = seed

        if self.norm_rel_ebd not in _VALID_REL_NORMS:
            raise ValueError(
                f"norm_rel_ebd must be one of {_VALID_REL_NORMS}, got '{norm_rel_ebd}'"
            )
        max_relative = self.resolved_max_relative_positions
        if relative_attention and bucketing_enabled(position_buckets, max_relative):
            check_bucket_params(position_buckets, max_relative)

    @property
    def head_dim(self) -> int:
        """Dimension per attention head."""
        return self.hidden_size // self.num_attention_heads

    @property
    def resolved_max_relative_positions(self) -> int:
        """Maximum relative distance after the max_position_embeddings fallback."""
        if self.max_relative_positions < 1:
            return self.max_position_embeddings
        return self.max_relative_positions

    @property
    def pos_ebd_size(self) -> int:
        """Attention span: half the number of rows in the relative embedding table."""
        if self.position_buckets > 0:
            return self.position_buckets
        return self.resolved_max_relative_positions

    def has_type(self, att_type: PositionAttentionType) -> bool:
        return att_type in self.pos_att_type

    @property
    def scale_factor(self) -> int:
        """1 for content-to-content plus one per enabled relative term."""
        return 1 + len(self.pos_att_type)
