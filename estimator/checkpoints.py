"""Checkpoint save/restore for an estimator's model and graph counters.

Checkpoints are written with ``torch.save`` to
``<directory>/checkpoint_<step>.pt`` and contain the model state (module and
optimizer), the global counters, RNG states and environment metadata.
"""

from __future__ import annotations

import os
import platform
import random
import re

import numpy as np
import torch

from console import EstimatorConsole

from .engine import CounterKey, Graph
from .model import Model

_CHECKPOINT_RE = re.compile(r'^checkpoint_(\d+)\.pt$')


def _get_rng_states() -> dict:
    """Capture current RNG states for all relevant backends."""
    states = {
        'torch': torch.random.get_rng_state(),
        'python': random.getstate(),
        'numpy': np.random.get_state(),
    }
    if torch.cuda.is_available():
        states['torch_cuda'] = torch.cuda.get_rng_state_all()
    return states


def _set_rng_states(states: dict):
    torch.random.set_rng_state(states['torch'])
    random.setstate(states['python'])
    np.random.set_state(states['numpy'])
    if 'torch_cuda' in states and torch.cuda.is_available():
        torch.cuda.set_rng_state_all(states['torch_cuda'])


def get_environment_info() -> dict:
    """Environment metadata embedded in every checkpoint."""
    info = {
        'torch_version': torch.__version__,
        'cuda_available': torch.cuda.is_available(),
        'python_version': platform.python_version(),
        'platform': platform.platform(),
    }
    if torch.cuda.is_available():
        info['cuda_version'] = torch.version.cuda
        info['gpu_name'] = torch.cuda.get_device_name(0)
    return info


class Saver:
    """Saves and restores checkpoints of a model and its graph counters.

    Keeps at most ``keep_max`` checkpoints in ``directory``; older ones are
    deleted after each save.
    """

    def __init__(self, directory: str, model: Model, graph: Graph, keep_max: int = 5):
        self.directory = directory
        self.model = model
        self.graph = graph
        self.keep_max = keep_max

    def checkpoints(self) -> list[tuple[int, str]]:
        """All checkpoints in the directory as (step, path), oldest first."""
        if not os.path.isdir(self.directory):
            return []
        found = []
        for fname in os.listdir(self.directory):
            match = _CHECKPOINT_RE.match(fname)
            if match:
                found.append((int(match.group(1)), os.path.join(self.directory, fname)))
        return sorted(found)

    def latest(self) -> str | None:
        """Path of the most recent checkpoint, or None."""
        found = self.checkpoints()
        return found[-1][1] if found else None

    def save(self, step: int | None = None) -> str:
        """Write a checkpoint for ``step`` (default: the current global step)."""
        if step is None:
            step = self.graph.counter_state().get(CounterKey.GLOBAL_STEP.value, 0)
        os.makedirs(self.directory, exist_ok=True)
        path = os.path.join(self.directory, f'checkpoint_{step}.pt')
        torch.save({
            'step': step,
            'model': self.model.state_dict(),
            'counters': self.graph.counter_state(),
            'rng_states': _get_rng_states(),
            'environment': get_environment_info(),
        }, path)
        self._prune()
        return path

    def _prune(self):
        found = self.checkpoints()
        for _, path in found[:max(0, len(found) - self.keep_max)]:
            os.remove(path)

    def restore(self, path: str | None = None) -> int | None:
        """Restore a checkpoint (default: the latest).

        Returns the restored step, or None when there is nothing to restore.
        """
        path = path or self.latest()
        if path is None:
            return None
        checkpoint = torch.load(path, map_location='cpu', weights_only=False)
        self.model.load_state_dict(checkpoint['model'])
        self.graph.load_counter_state(checkpoint['counters'])
        if 'rng_states' in checkpoint:
            _set_rng_states(checkpoint['rng_states'])
        EstimatorConsole().print_notification(
            f"Restored checkpoint [path]{path}[/path] at step "
            f"[value.count]{checkpoint['step']}[/value.count]"
        )
        return checkpoint['step']
