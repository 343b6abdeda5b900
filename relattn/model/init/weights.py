# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Deterministic weight initialization.

All parameters are drawn from a single torch.Generator seeded from the
config, so two modules built from the same config start out identical no
matter what the global RNG state is.
"""

import torch
import torch.nn as nn


def init_weights(module: nn.Module, seed: int, init_std: float = 0.02) -> None:
    """
    Initialize every submodule of ``module`` in place.

    Linear and Embedding weights get N(0, init_std), biases get zeros and
    LayerNorm gets unit scale with zero shift. Modules are visited in
    registration order, which fixes the sequence of draws from the generator.

    Args:
        module: The nn.Module to initialize.
        seed: Seed for the dedicated Generator.
        init_std: Standard deviation for normal initialization.
    """
    generator = torch.Generator()
    generator.manual_seed(seed)

    with torch.no_grad():
        for submodule in module.modules():
            if isinstance(submodule, (nn.Linear, nn.Embedding)):
                # Draw on CPU so the generator works for any parameter device.
                values = torch.empty(submodule.weight.shape).normal_(
                    0.0, init_std, generator=generator
                )
                submodule.weight.copy_(values)
                bias = getattr(submodule, "bias", None)
                if bias is not None:
                    bias.zero_()
            elif isinstance(submodule, nn.LayerNorm):
                if submodule.weight is not None:
                    submodule.weight.fill_(1.0)
                if submodule.bias is not None:
                    submodule.bias.zero_()
