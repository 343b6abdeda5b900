# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Position embeddings.

RelativeEmbedding holds the table that DisentangledSelfAttention projects
into positional keys and queries, one row per shifted relative distance in
[0, 2 * span). It also builds the relative position matrix once per forward
pass so a stack of attention layers can share it.

LearnedPositionalEmbedding is the absolute, offset-by-two scheme used by
BART-style encoders and decoders.
"""

import torch
import torch.nn as nn

from relattn.model.config import DisentangledAttentionConfig
from relattn.model.relative_position import build_relative_position


class RelativeEmbedding(nn.Module):
    """
    Relative position embedding table with optional LayerNorm.

    Args:
        config: Attention configuration; relative_attention must be enabled.
    """

    def __init__(self, config: DisentangledAttentionConfig) -> None:
        super().__init__()
        if not config.relative_attention:
            raise ValueError("RelativeEmbedding requires relative_attention=True")
        self.position_buckets = config.position_buckets
        self.max_relative_positions = config.resolved_max_relative_positions
        self.pos_ebd_size = config.pos_ebd_size
        self.rel_embeddings = nn.Embedding(self.pos_ebd_size * 2, config.hidden_size)

        self.layer_norm: nn.LayerNorm | None = None
        if config.norm_rel_ebd == "layer_norm":
            self.layer_norm = nn.LayerNorm(
                config.hidden_size, eps=config.layer_norm_eps, elementwise_affine=True
            )

    def get_rel_embedding(self) -> torch.Tensor:
        """Return the (optionally normalized) table of shape (2 * span, hidden)."""
        rel_embeddings = self.rel_embeddings.weight
        if self.layer_norm is not None:
            rel_embeddings = self.layer_norm(rel_embeddings)
        return rel_embeddings

    def get_rel_pos(
        self,
        hidden_states: torch.Tensor,
        query_states: torch.Tensor | None = None,
        relative_pos: torch.Tensor | None = None,
    ) -> torch.Tensor:
        """
        Return ``relative_pos`` unchanged, or build it from the sequence lengths.

        Args:
            hidden_states: Key input of shape (batch, key_len, hidden).
            query_states: Optional query input; defaults to hidden_states.
            relative_pos: Precomputed positions to pass through.

        Returns:
            Relative positions of shape (1, query_len, key_len) when built here.
        """
        if relative_pos is not None:
            return relative_pos
        query_len = query_states.size(-2) if query_states is not None else hidden_states.size(-2)
        return build_relative_position(
            query_len,
            hidden_states.size(-2),
            bucket_size=self.position_buckets,
            max_position=self.max_relative_positions,
            device=hidden_states.device,
        )

    def forward(self) -> torch.Tensor:
        return self.get_rel_embedding()


class LearnedPositionalEmbedding(nn.Module):
    """
    Learned absolute position embeddings with a fixed offset of 2.

    The first two rows are reserved, so position p reads row p + 2 and the
    table holds ``num_embeddings + 2`` rows.

    Args:
        num_embeddings: Maximum number of positions.
        embedding_dim: Embedding dimension.
        padding_idx: Padding token id, kept for reference by callers.
    """

    offset = 2

    def __init__(self, num_embeddings: int, embedding_dim: int, padding_idx: int = 1) -> None:
        super().__init__()
        self.padding_idx = padding_idx
        self.embedding = nn.Embedding(num_embeddings + self.offset, embedding_dim)

    @property
    def weight(self) -> nn.Parameter:
        return self.embedding.weight

    def forward(self, input_ids: torch.Tensor, past_key_values_length: int = 0) -> torch.Tensor:
        """
        Embed the positions of ``input_ids``.

        Args:
            input_ids: Token ids of shape (batch, seq_len); only the shape is used.
            past_key_values_length: Number of positions already consumed, so
                incremental decoding continues from the right position.

        Returns:
            Tensor of shape (seq_len, embedding_dim), broadcastable over batch.
        """
        seq_len = input_ids.shape[1]
        positions = torch.arange(
            past_key_values_length,
            past_key_values_length + seq_len,
            dtype=torch.long,
            device=input_ids.device,
        )
        return self.embedding(positions + self.offset)
