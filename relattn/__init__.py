# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
relattn: relative position components for disentangled attention.

Log-bucketed relative positions, DeBERTa-v2 style disentangled
self-attention and learned position embeddings, all on plain torch tensors.
"""

__version__ = "0.1.0"
