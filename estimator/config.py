"""Estimator configuration dataclasses.

``Configuration`` carries everything the estimator needs from its
environment: the working directory (checkpoints and summaries), the
chief/worker role, the random seed and the device placement policy.
``TensorBoardConfig`` is only consulted when a TensorBoard hook is wanted.
"""

from dataclasses import dataclass
from typing import Callable


@dataclass
class Configuration:
    """Runtime configuration for an estimator."""
    working_dir: str | None = None
    is_chief: bool = True
    random_seed: int | None = None

    # Device placement: either a fixed device for every op, or a function
    # mapping an op name to a device (None leaves the op unplaced).
    device: str | None = None
    device_fn: Callable[[str], str | None] | None = None

    # Checkpointing (only active when working_dir is set)
    save_checkpoint_steps: int | None = 1000
    keep_checkpoint_max: int = 5
    restore_latest_checkpoint: bool = True

    def __post_init__(self):
        if self.random_seed is not None and self.random_seed < 0:
            raise ValueError(f"random_seed must be >= 0, got {self.random_seed}")
        if self.save_checkpoint_steps is not None and self.save_checkpoint_steps <= 0:
            raise ValueError(
                f"save_checkpoint_steps must be > 0 or None, got {self.save_checkpoint_steps}"
            )
        if self.keep_checkpoint_max <= 0:
            raise ValueError(f"keep_checkpoint_max must be > 0, got {self.keep_checkpoint_max}")
        if self.device is not None and self.device_fn is not None:
            raise ValueError("Specify at most one of device and device_fn")

    def device_function(self) -> Callable[[str], str | None]:
        """Return the placement function used when building ops."""
        if self.device_fn is not None:
            return self.device_fn
        device = self.device
        return lambda op_name: device


@dataclass
class TensorBoardConfig:
    """Where and how to launch TensorBoard for a training run."""
    log_dir: str
    host: str = "localhost"
    port: int = 6006
    reload_interval: int = 5

    def __post_init__(self):
        if not self.log_dir:
            raise ValueError("log_dir must be a non-empty path")
        if not 0 < self.port < 65536:
            raise ValueError(f"port must be in 1..65535, got {self.port}")
        if self.reload_interval <= 0:
            raise ValueError(f"reload_interval must be > 0, got {self.reload_interval}")

    def command(self) -> list[str]:
        return [
            "tensorboard",
            "--logdir", self.log_dir,
            "--host", self.host,
            "--port", str(self.port),
            "--reload_interval", str(self.reload_interval),
        ]
