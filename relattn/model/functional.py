# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Small tensor primitives shared by the relative position and attention code.
"""

import torch


def select(mask: torch.Tensor, a: torch.Tensor | int | float, b: torch.Tensor | int | float) -> torch.Tensor:
    """
    Element-wise ``a`` where ``mask`` is true, ``b`` elsewhere.

    Scalars are promoted to tensors matching the dtype and device of the
    tensor operand, so integer inputs stay integer.

    Args:
        mask: Boolean tensor, broadcastable against ``a`` and ``b``.
        a: Values taken where ``mask`` is true.
        b: Values taken where ``mask`` is false.

    Returns:
        Tensor with the broadcast shape of the three inputs.
    """
    if not isinstance(a, torch.Tensor) and not isinstance(b, torch.Tensor):
        raise TypeError("select() needs at least one tensor operand")
    if not isinstance(a, torch.Tensor):
        a = torch.tensor(a, dtype=b.dtype, device=b.device)
    elif not isinstance(b, torch.Tensor):
        b = torch.tensor(b, dtype=a.dtype, device=a.device)
    return torch.where(mask, a, b)


def expand_attention_mask(attention_mask: torch.Tensor) -> torch.Tensor:
    """
    Bring an attention mask to the 4D ``(batch, 1, query, key)`` layout.

    A 2D ``(batch, seq_len)`` padding mask becomes a pairwise mask where
    position (i, j) is kept only if both tokens are real. 3D masks gain a
    head axis and 4D masks pass through.
    """
    if attention_mask.dim() == 2:
        extended = attention_mask.unsqueeze(1).unsqueeze(2)
        return extended * extended.squeeze(-2).unsqueeze(-1)
    if attention_mask.dim() == 3:
        return attention_mask.unsqueeze(1)
    if attention_mask.dim() == 4:
        return attention_mask
    raise ValueError(f"Expected attention mask of dimensions 2, 3 or 4, got {attention_mask.dim()}")


def masked_softmax(scores: torch.Tensor, mask: torch.Tensor | None, dim: int = -1) -> torch.Tensor:
    """
    Softmax that gives exactly zero probability to masked positions.

    Rows that are fully masked come out as all zeros instead of NaN.

    Args:
        scores: Attention scores.
        mask: Keep-mask broadcastable to ``scores`` (non-zero means keep),
              or None for a plain softmax.
        dim: Dimension to normalize over.
    """
    if mask is None:
        return torch.softmax(scores, dim=dim)
    reverse_mask = ~mask.to(torch.bool)
    output = scores.masked_fill(reverse_mask, torch.finfo(scores.dtype).min)
    output = torch.softmax(output, dim=dim)
    return output.masked_fill(reverse_mask, 0.0)
