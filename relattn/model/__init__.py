# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
relattn model package.

DeBERTa-v2 style relative position components:
  - log-bucketed relative position matrices
  - disentangled self-attention (c2p + p2c bias)
  - relative and learned absolute position embeddings
"""
