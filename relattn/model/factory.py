# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Builders and presets for disentangled attention modules.

Every module is built from a DisentangledAttentionConfig and initialized
deterministically from its seed. Presets mirror the DeBERTa-v3 family; only
the sizes differ between them.
"""

import logging
from typing import Callable

import torch.nn as nn

from relattn.config.exceptions import ConfigError
from relattn.config.schema import RelAttnConfig
from relattn.model.attention import DisentangledSelfAttention
from relattn.model.config import DisentangledAttentionConfig
from relattn.model.embedding import RelativeEmbedding
from relattn.model.init.weights import init_weights

logger = logging.getLogger(__name__)


def config_from_schema(config: RelAttnConfig) -> DisentangledAttentionConfig:
    """
    Construct the model-side config from a validated RelAttnConfig.

    Raises:
        ConfigError: If the attention section is missing.
    """
    attn = config.attention
    if attn is None:
        raise ConfigError("An 'attention' section is required to build attention modules")

    return DisentangledAttentionConfig(
        hidden_size=attn.hidden_size,
        num_attention_heads=attn.num_attention_heads,
        attention_probs_dropout_prob=attn.attention_probs_dropout_prob,
        hidden_dropout_prob=attn.hidden_dropout_prob,
        relative_attention=attn.relative_attention,
        position_buckets=attn.position_buckets,
        max_relative_positions=attn.max_relative_positions,
        max_position_embeddings=attn.max_position_embeddings,
        pos_att_type=attn.pos_att_type,
        share_att_key=attn.share_att_key,
        norm_rel_ebd=attn.norm_rel_ebd,
        layer_norm_eps=attn.layer_norm_eps,
        init_std=attn.init_std,
        seed=config.global_config.seed,
    )


def _initialized(module: nn.Module, config: DisentangledAttentionConfig) -> nn.Module:
    init_weights(module, seed=config.seed, init_std=config.init_std)
    return module


def build_attention(config: DisentangledAttentionConfig) -> DisentangledSelfAttention:
    """Build and initialize a DisentangledSelfAttention layer."""
    logger.info(
        "building_attention",
        extra={
            "hidden_size": config.hidden_size,
            "num_attention_heads": config.num_attention_heads,
            "relative_attention": config.relative_attention,
            "position_buckets": config.position_buckets,
            "max_relative_positions": config.resolved_max_relative_positions,
            "pos_att_type": [t.value for t in config.pos_att_type],
            "share_att_key": config.share_att_key,
        },
    )
    return _initialized(DisentangledSelfAttention(config), config)


def build_relative_embedding(config: DisentangledAttentionConfig) -> RelativeEmbedding:
    """Build and initialize the relative embedding table for ``config``."""
    logger.info(
        "building_relative_embedding",
        extra={"pos_ebd_size": config.pos_ebd_size, "norm_rel_ebd": config.norm_rel_ebd},
    )
    return _initialized(RelativeEmbedding(config), config)


# ── Preset Configurations ──────────────────────────────────────────────────


def xsmall_config(seed: int = 42) -> DisentangledAttentionConfig:
    """DeBERTa-v3-xsmall attention: 384 hidden, 6 heads."""
    return DisentangledAttentionConfig(hidden_size=384, num_attention_heads=6, seed=seed)


def small_config(seed: int = 42) -> DisentangledAttentionConfig:
    """DeBERTa-v3-small attention: 768 hidden, 12 heads."""
    return DisentangledAttentionConfig(hidden_size=768, num_attention_heads=12, seed=seed)


def base_config(seed: int = 42) -> DisentangledAttentionConfig:
    """DeBERTa-v3-base attention; same layer shape as small, deeper stack."""
    return DisentangledAttentionConfig(hidden_size=768, num_attention_heads=12, seed=seed)


def large_config(seed: int = 42) -> DisentangledAttentionConfig:
    """DeBERTa-v3-large attention: 1024 hidden, 16 heads."""
    return DisentangledAttentionConfig(hidden_size=1024, num_attention_heads=16, seed=seed)


PRESETS: dict[str, Callable[..., DisentangledAttentionConfig]] = {
    "xsmall": xsmall_config,
    "small": small_config,
    "base": base_config,
    "large": large_config,
}


def build_from_preset(
    preset: str,
    seed: int = 42,
) -> tuple[DisentangledSelfAttention, RelativeEmbedding]:
    """
    Build an attention layer and its relative embedding from a named preset.

    Raises:
        ValueError: If the preset name is not recognized.
    """
    config_fn = PRESETS.get(preset)
    if config_fn is None:
        raise ValueError(f"Unknown preset '{preset}'. Available: {list(PRESETS.keys())}")
    config = config_fn(seed=seed)
    return build_attention(config), build_relative_embedding(config)
