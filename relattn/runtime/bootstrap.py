# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for applications built on relattn.

  1. Check the interpreter version
  2. Seed every source of randomness
  3. Configure the JSON logger for the whole ``relattn`` namespace

After bootstrap, module construction and dropout are reproducible.
"""

import logging
import os
import platform
import random
import sys
from pathlib import Path

import torch

from relattn.config.schema import GlobalConfig
from relattn.logging.logger import get_logger

MINIMUM_PYTHON = (3, 11)


def check_minimum_python() -> None:
    """
    Raises:
        RuntimeError: If the interpreter is older than MINIMUM_PYTHON.
    """
    current = tuple(sys.version_info[:2])
    if current < MINIMUM_PYTHON:
        raise RuntimeError(
            f"relattn requires Python >= {MINIMUM_PYTHON[0]}.{MINIMUM_PYTHON[1]}, "
            f"but you're running {current[0]}.{current[1]}."
        )


def set_deterministic_seed(seed: int) -> None:
    """
    Seed Python's ``random``, hash seed and torch (CPU and, when present, CUDA).

    On CUDA, cuDNN is switched to deterministic kernels and autotuning is
    disabled so repeated runs pick the same algorithms.
    """
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
        torch.backends.cudnn.deterministic = True
        torch.backends.cudnn.benchmark = False


def bootstrap(config: GlobalConfig) -> logging.Logger:
    """
    Put the process into a known state and return the package logger.

    Args:
        config: The validated global configuration.
    """
    check_minimum_python()
    set_deterministic_seed(config.seed)

    log_file = Path(config.log_file) if config.log_file else None
    logger = get_logger("relattn", log_level=config.log_level, log_file=log_file)
    logger.info(
        "bootstrap_complete",
        extra={
            "project_name": config.project_name,
            "config_version": config.config_version,
            "seed": config.seed,
            "python_version": platform.python_version(),
            "torch_version": torch.__version__,
        },
    )
    return logger
