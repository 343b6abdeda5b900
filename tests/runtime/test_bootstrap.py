# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the runtime bootstrap: seeding, logger setup, version check.
"""

import json
import logging
import os
import random
import sys

import pytest
import torch

from relattn.config.schema import GlobalConfig
from relattn.runtime.bootstrap import bootstrap, check_minimum_python, set_deterministic_seed


@pytest.fixture(autouse=True)
def _reset_package_logger() -> None:
    yield  # type: ignore[misc]
    logger = logging.getLogger("relattn")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


class TestSeeding:
    def test_same_seed_same_draws(self) -> None:
        set_deterministic_seed(123)
        a = torch.rand(4)
        set_deterministic_seed(123)
        b = torch.rand(4)
        assert torch.equal(a, b)

    def test_sets_python_hash_seed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PYTHONHASHSEED", raising=False)
        set_deterministic_seed(5)
        assert os.environ["PYTHONHASHSEED"] == "5"

    def test_same_seed_same_python_random(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PYTHONHASHSEED", raising=False)
        set_deterministic_seed(11)
        a = [random.random() for _ in range(3)]
        set_deterministic_seed(11)
        assert a == [random.random() for _ in range(3)]


class TestBootstrap:
    def test_returns_configured_logger(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = bootstrap(GlobalConfig(config_version="1.0.0", seed=7, log_level="DEBUG"))
        assert logger.name == "relattn"
        assert logger.level == logging.DEBUG
        parsed = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert parsed["msg"] == "bootstrap_complete"
        assert parsed["seed"] == 7

    def test_seeds_torch(self) -> None:
        bootstrap(GlobalConfig(config_version="1.0.0", seed=9))
        a = torch.rand(3)
        torch.manual_seed(9)
        assert torch.equal(a, torch.rand(3))

    def test_library_records_reach_package_logger(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        bootstrap(GlobalConfig(config_version="1.0.0", log_level="DEBUG"))
        capsys.readouterr()
        logging.getLogger("relattn.model.factory").info("child", extra={"k": 1})
        parsed = json.loads(capsys.readouterr().out.strip())
        assert parsed["module"] == "relattn.model.factory"
        assert parsed["k"] == 1

    def test_log_file(self, tmp_path) -> None:
        log_file = tmp_path / "run.log"
        bootstrap(GlobalConfig(config_version="1.0.0", log_file=str(log_file)))
        assert "bootstrap_complete" in log_file.read_text(encoding="utf-8")


class TestPythonVersion:
    def test_current_interpreter_passes(self) -> None:
        check_minimum_python()

    def test_old_interpreter_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "version_info", (3, 9, 0, "final", 0))
        with pytest.raises(RuntimeError, match="3.11"):
            check_minimum_python()
