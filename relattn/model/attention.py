# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Disentangled self-attention (DeBERTa-v2).

Attention scores are the sum of up to three terms, each scaled by
sqrt(head_dim * scale_factor):

  1. content-to-content:  Q_i . K_j
  2. content-to-position: Q_i . Pk[delta(i, j)]         ("c2p")
  3. position-to-content: K_j . Pq[delta(j, i)]         ("p2c")

where Pk / Pq are the relative embeddings projected with the key / query
projections (or dedicated pos_key_proj / pos_query_proj when keys are not
shared) and delta is the bucketed relative distance shifted into
[0, 2 * span).

Head-split tensors are kept flattened as (batch * heads, seq_len, head_dim)
so every score term is a single bmm.
"""

import logging

import torch
import torch.nn as nn

from relattn.model.config import DisentangledAttentionConfig, PositionAttentionType
from relattn.model.functional import expand_attention_mask, masked_softmax
from relattn.model.relative_position import (
    build_relative_position,
    normalize_relative_position,
)

logger = logging.getLogger(__name__)


class DisentangledSelfAttention(nn.Module):
    """
    Multi-head self-attention with disentangled relative position bias.

    The optional positional projections are resolved once here: with
    ``share_att_key`` both stay None and the content projections are reused;
    otherwise ``pos_key_proj`` exists only when c2p is enabled and
    ``pos_query_proj`` only when p2c is enabled.

    Args:
        config: Attention configuration.
    """

    def __init__(self, config: DisentangledAttentionConfig) -> None:
        super().__init__()
        self.num_attention_heads = config.num_attention_heads
        self.head_dim = config.head_dim
        self.pos_att_type = config.pos_att_type
        self.scale_factor = config.scale_factor
        self.share_att_key = config.share_att_key
        self.relative_attention = config.relative_attention

        self.query_proj = nn.Linear(config.hidden_size, config.hidden_size)
        self.key_proj = nn.Linear(config.hidden_size, config.hidden_size)
        self.value_proj = nn.Linear(config.hidden_size, config.hidden_size)

        self.pos_key_proj: nn.Linear | None = None
        self.pos_query_proj: nn.Linear | None = None
        self.pos_dropout: nn.Dropout | None = None
        self.position_buckets = -1
        self.max_relative_positions = -1
        self.pos_ebd_size = 0

        if self.relative_attention:
            self.position_buckets = config.position_buckets
            self.max_relative_positions = config.resolved_max_relative_positions
            self.pos_ebd_size = config.pos_ebd_size
            self.pos_dropout = nn.Dropout(config.hidden_dropout_prob)
            if not self.share_att_key:
                if config.has_type(PositionAttentionType.C2P):
                    self.pos_key_proj = nn.Linear(config.hidden_size, config.hidden_size)
                if config.has_type(PositionAttentionType.P2C):
                    self.pos_query_proj = nn.Linear(config.hidden_size, config.hidden_size)

        self.dropout = nn.Dropout(config.attention_probs_dropout_prob)

    def transpose_for_scores(self, x: torch.Tensor) -> torch.Tensor:
        """(batch, seq_len, hidden) -> (batch * heads, seq_len, head_dim)."""
        new_shape = x.size()[:-1] + (self.num_attention_heads, -1)
        x = x.view(new_shape)
        return x.permute(0, 2, 1, 3).contiguous().view(-1, x.size(1), x.size(-1))

    def _scale(self, head_dim: int, dtype: torch.dtype) -> torch.Tensor:
        scale = torch.sqrt(torch.tensor(head_dim, dtype=torch.float) * self.scale_factor)
        return scale.to(dtype=dtype)

    def forward(
        self,
        hidden_states: torch.Tensor,
        attention_mask: torch.Tensor | None = None,
        output_attentions: bool = False,
        query_states: torch.Tensor | None = None,
        relative_pos: torch.Tensor | None = None,
        rel_embeddings: torch.Tensor | None = None,
    ) -> torch.Tensor | tuple[torch.Tensor, torch.Tensor]:
        """
        Compute disentangled self-attention.

        Args:
            hidden_states: Key/value input of shape (batch, key_len, hidden).
            attention_mask: Keep-mask of shape (batch, seq_len),
                (batch, query_len, key_len) or (batch, 1, query_len, key_len).
            output_attentions: Also return attention probabilities.
            query_states: Optional query input (batch, query_len, hidden);
                defaults to hidden_states.
            relative_pos: Optional precomputed relative positions of rank 2,
                3 or 4; built from the sequence lengths when omitted.
            rel_embeddings: Relative embedding table (2 * span, hidden).
                Required when relative attention is enabled.

        Returns:
            Context of shape (batch, query_len, hidden), and when
            ``output_attentions`` also the probabilities of shape
            (batch, heads, query_len, key_len).

        Raises:
            ValueError: If relative attention is on and no embeddings are given.
            RelativePositionShapeError: If ``relative_pos`` has a bad rank.
        """
        if query_states is None:
            query_states = hidden_states

        query_layer = self.transpose_for_scores(self.query_proj(query_states))
        key_layer = self.transpose_for_scores(self.key_proj(hidden_states))
        value_layer = self.transpose_for_scores(self.value_proj(hidden_states))

        scale = self._scale(query_layer.size(-1), query_layer.dtype)
        attention_scores = torch.bmm(query_layer, key_layer.transpose(-1, -2) / scale)

        if self.relative_attention:
            if rel_embeddings is None:
                raise ValueError("rel_embeddings are required when relative_attention is enabled")
            rel_embeddings = self.pos_dropout(rel_embeddings)
            rel_att = self.disentangled_attention_bias(
                query_layer, key_layer, relative_pos, rel_embeddings
            )
            attention_scores = attention_scores + rel_att

        attention_scores = attention_scores.view(
            -1, self.num_attention_heads, attention_scores.size(-2), attention_scores.size(-1)
        )
        mask = expand_attention_mask(attention_mask) if attention_mask is not None else None
        attention_probs = masked_softmax(attention_scores, mask, dim=-1)
        attention_probs = self.dropout(attention_probs)

        context_layer = torch.bmm(
            attention_probs.view(-1, attention_probs.size(-2), attention_probs.size(-1)),
            value_layer,
        )
        context_layer = (
            context_layer.view(
                -1, self.num_attention_heads, context_layer.size(-2), context_layer.size(-1)
            )
            .permute(0, 2, 1, 3)
            .contiguous()
        )
        context_layer = context_layer.view(context_layer.size()[:-2] + (-1,))

        if output_attentions:
            return context_layer, attention_probs
        return context_layer

    def _expand_positions(
        self, positions: torch.Tensor, batch_size: int, rows: int, cols: int
    ) -> torch.Tensor:
        """(b, h, rows, cols) with b in {1, batch} and h in {1, heads} -> (batch * heads, rows, cols)."""
        return positions.expand(batch_size, self.num_attention_heads, rows, cols).reshape(
            -1, rows, cols
        )

    def disentangled_attention_bias(
        self,
        query_layer: torch.Tensor,
        key_layer: torch.Tensor,
        relative_pos: torch.Tensor | None,
        rel_embeddings: torch.Tensor,
    ) -> torch.Tensor:
        """
        Sum of the enabled c2p / p2c terms for every (query, key) pair.

        Args:
            query_layer: (batch * heads, query_len, head_dim).
            key_layer: (batch * heads, key_len, head_dim).
            relative_pos: Optional relative positions, rank 2, 3 or 4.
            rel_embeddings: (2 * span, hidden) relative embeddings.

        Returns:
            Bias of shape (batch * heads, query_len, key_len).
        """
        query_len = query_layer.size(-2)
        key_len = key_layer.size(-2)
        batch_size = query_layer.size(0) // self.num_attention_heads

        if relative_pos is None:
            relative_pos = build_relative_position(
                query_len,
                key_len,
                bucket_size=self.position_buckets,
                max_position=self.max_relative_positions,
                device=query_layer.device,
            )
        relative_pos = normalize_relative_position(relative_pos)
        relative_pos = relative_pos.long().to(query_layer.device)

        att_span = self.pos_ebd_size
        rel_embeddings = rel_embeddings[0 : att_span * 2, :].unsqueeze(0)

        key_proj = self.pos_key_proj if self.pos_key_proj is not None else self.key_proj
        query_proj = self.pos_query_proj if self.pos_query_proj is not None else self.query_proj

        score = torch.zeros(
            query_layer.size(0), query_len, key_len, dtype=query_layer.dtype, device=query_layer.device
        )

        if PositionAttentionType.C2P in self.pos_att_type:
            pos_key_layer = self.transpose_for_scores(key_proj(rel_embeddings)).repeat(
                batch_size, 1, 1
            )
            c2p_att = torch.bmm(query_layer, pos_key_layer.transpose(-1, -2))
            c2p_pos = torch.clamp(relative_pos + att_span, 0, att_span * 2 - 1)
            c2p_att = torch.gather(
                c2p_att, dim=-1, index=self._expand_positions(c2p_pos, batch_size, query_len, key_len)
            )
            score = score + c2p_att / self._scale(pos_key_layer.size(-1), c2p_att.dtype)

        if PositionAttentionType.P2C in self.pos_att_type:
            pos_query_layer = self.transpose_for_scores(query_proj(rel_embeddings)).repeat(
                batch_size, 1, 1
            )
            if key_len != query_len:
                # Rows are keys here, so distances are key position minus query position.
                r_pos = build_relative_position(
                    key_len,
                    query_len,
                    bucket_size=self.position_buckets,
                    max_position=self.max_relative_positions,
                    device=query_layer.device,
                )
                r_pos = normalize_relative_position(r_pos)
            else:
                r_pos = relative_pos
            p2c_pos = torch.clamp(-r_pos + att_span, 0, att_span * 2 - 1)
            p2c_att = torch.bmm(key_layer, pos_query_layer.transpose(-1, -2))
            p2c_att = torch.gather(
                p2c_att, dim=-1, index=self._expand_positions(p2c_pos, batch_size, key_len, query_len)
            ).transpose(-1, -2)
            score = score + p2c_att / self._scale(pos_query_layer.size(-1), p2c_att.dtype)

        logger.debug(
            "disentangled_bias",
            extra={
                "query_len": query_len,
                "key_len": key_len,
                "att_span": att_span,
                "pos_att_type": [t.value for t in self.pos_att_type],
            },
        )
        return score
