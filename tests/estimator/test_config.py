"""Tests for estimator/config.py: Configuration and TensorBoardConfig."""

import pytest

from estimator import Configuration, TensorBoardConfig


class TestConfiguration:

    def test_defaults(self):
        cfg = Configuration()
        assert cfg.working_dir is None
        assert cfg.is_chief is True
        assert cfg.random_seed is None
        assert cfg.keep_checkpoint_max == 5

    @pytest.mark.parametrize("kwargs", [
        {"random_seed": -1},
        {"save_checkpoint_steps": 0},
        {"keep_checkpoint_max": 0},
        {"device": "cpu", "device_fn": lambda name: "cpu"},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            Configuration(**kwargs)

    def test_device_function_from_device(self):
        fn = Configuration(device="cpu").device_function()
        assert fn("any/op") == "cpu"

    def test_device_function_defaults_to_unplaced(self):
        assert Configuration().device_function()("op") is None

    def test_device_fn_takes_precedence(self):
        def device_fn(name):
            return "cpu" if name.startswith("train") else None
        fn = Configuration(device_fn=device_fn).device_function()
        assert fn("train/x") == "cpu"
        assert fn("infer/x") is None


class TestTensorBoardConfig:

    def test_command(self):
        cmd = TensorBoardConfig(log_dir="/tmp/logs", port=7000).command()
        assert cmd[0] == "tensorboard"
        assert cmd[cmd.index("--logdir") + 1] == "/tmp/logs"
        assert cmd[cmd.index("--port") + 1] == "7000"

    @pytest.mark.parametrize("kwargs", [
        {"log_dir": ""},
        {"log_dir": "x", "port": 0},
        {"log_dir": "x", "reload_interval": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            TensorBoardConfig(**kwargs)
