# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Relative position matrices for disentangled attention.

For a query of length Q and a key of length K the attention bias is indexed
by the signed distance ``i - j`` between query position i and key position j.
Long sequences compress that distance with log buckets:

  - |i - j| <= bucket_size // 2  keeps the exact distance
  - farther distances are mapped onto a logarithmic scale that reaches
    ``bucket_size`` at ``max_position``, keeping the sign

Both functions are pure: every call allocates a fresh tensor and nothing is
cached at module level.
"""

import logging

import torch

from relattn.model.exceptions import BucketConfigError, RelativePositionShapeError
from relattn.model.functional import select

logger = logging.getLogger(__name__)


def bucketing_enabled(bucket_size: int, max_position: int) -> bool:
    """Log bucketing is applied only when both parameters are positive."""
    return bucket_size > 0 and max_position > 0


def check_bucket_params(bucket_size: int, max_position: int) -> None:
    """
    Reject bucket parameters that would take the log of zero or divide by it.

    Args:
        bucket_size: Total bucket count; the exact region is ``bucket_size // 2``.
        max_position: Largest distance the log scale is calibrated for.

    Raises:
        BucketConfigError: If ``bucket_size <= 1`` or
            ``max_position <= bucket_size // 2 + 1``.
    """
    if bucket_size <= 1:
        raise BucketConfigError(
            f"bucket_size must be at least 2 to enable log buckets, got {bucket_size}"
        )
    mid = bucket_size // 2
    if max_position <= mid + 1:
        raise BucketConfigError(
            f"max_position must be greater than bucket_size // 2 + 1 = {mid + 1}, "
            f"got {max_position}"
        )


def make_log_bucket_position(
    relative_pos: torch.Tensor,
    bucket_size: int,
    max_position: int,
) -> torch.Tensor:
    """
    Map signed relative distances onto log-spaced buckets.

    Args:
        relative_pos: Integer tensor of signed distances, any shape.
        bucket_size: Total bucket count (must be >= 2).
        max_position: Distance that maps to the outermost bucket.

    Returns:
        Long tensor of the same shape holding the bucket indices.

    Raises:
        BucketConfigError: If the parameters fail ``check_bucket_params``.
    """
    check_bucket_params(bucket_size, max_position)

    sign = torch.sign(relative_pos)
    mid = bucket_size // 2
    near = (relative_pos < mid) & (relative_pos > -mid)
    abs_pos = select(near, mid - 1, torch.abs(relative_pos))
    log_scale = torch.log(torch.tensor((max_position - 1) / mid))
    log_pos = torch.ceil(torch.log(abs_pos / mid) / log_scale * (mid - 1)) + mid
    bucket_pos = select(abs_pos <= mid, relative_pos.type_as(log_pos), log_pos * sign)
    return bucket_pos.to(torch.long)


def build_relative_position(
    query_size: int,
    key_size: int,
    bucket_size: int = -1,
    max_position: int = -1,
    device: torch.device | None = None,
) -> torch.Tensor:
    """
    Build the relative position matrix between a query and a key sequence.

    Args:
        query_size: Query sequence length.
        key_size: Key sequence length.
        bucket_size: Position bucket count; ``<= 0`` disables bucketing.
        max_position: Maximum relative distance; ``<= 0`` disables bucketing.
        device: Device for the returned tensor.

    Returns:
        Long tensor of shape (1, query_size, key_size) where
        ``[0, i, j]`` is the (bucketed) distance ``i - j``.

    Raises:
        ValueError: If either length is not positive.
        BucketConfigError: If bucketing is enabled with invalid parameters.
    """
    if query_size < 1 or key_size < 1:
        raise ValueError(
            f"query_size and key_size must be positive, got {query_size} and {key_size}"
        )

    q_ids = torch.arange(0, query_size, device=device)
    k_ids = torch.arange(0, key_size, device=device)
    rel_pos_ids = q_ids[:, None] - k_ids[None, :]

    if bucketing_enabled(bucket_size, max_position):
        rel_pos_ids = make_log_bucket_position(rel_pos_ids, bucket_size, max_position)

    rel_pos_ids = rel_pos_ids.to(torch.long)[:query_size, :]
    return rel_pos_ids.unsqueeze(0)


def normalize_relative_position(relative_pos: torch.Tensor) -> torch.Tensor:
    """
    Bring relative positions to the 4D ``(batch, heads, query, key)`` layout.

    2D ``(Q, K)`` inputs become ``(1, 1, Q, K)`` and 3D ``(B, Q, K)`` inputs
    become ``(B, 1, Q, K)`` so they broadcast over batch and heads.

    Raises:
        RelativePositionShapeError: For any rank other than 2, 3 or 4.
    """
    rank = relative_pos.dim()
    if rank == 2:
        return relative_pos.unsqueeze(0).unsqueeze(0)
    if rank == 3:
        return relative_pos.unsqueeze(1)
    if rank == 4:
        return relative_pos
    logger.debug("bad_relative_position_rank", extra={"shape": tuple(relative_pos.shape)})
    raise RelativePositionShapeError(
        f"Expected relative position of dimensions 2, 3 or 4, got {rank}"
    )
