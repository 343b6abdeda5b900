# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Errors raised by the relative position code.

The two failure kinds are deliberately unrelated: a bad bucket setup is a
configuration error and should stop the model from being built, while a
relative position tensor of the wrong rank is a caller mistake that can be
caught and corrected at the call site.
"""

from relattn.config.exceptions import ConfigError


class BucketConfigError(ConfigError):
    """Raised when bucket_size / max_position cannot produce finite log buckets."""


class RelativePositionShapeError(ValueError):
    """Raised when externally supplied relative positions are not rank 2, 3 or 4."""
