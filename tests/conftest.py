"""Shared fixtures for estimator unit tests."""

import pytest
import torch
import torch.nn as nn
import torch.nn.functional as F
from torch.optim import SGD

from estimator import (
    Accuracy, Configuration, Hook, HookPoint, InMemoryEstimator, Mean, SessionRunArgs,
    StopCriteria, SupervisedModel,
)


# ---- Console singleton: force NULL mode before any test touches it ----

@pytest.fixture(autouse=True, scope="session")
def _silence_console():
    """Initialize EstimatorConsole in NULL mode to suppress all output during tests.

    Session-scoped so the singleton is set once and stays NULL for the
    entire test run. Tests of the console itself re-initialize it with a
    different config and restore NULL mode afterwards.
    """
    from console import ConsoleConfig, ConsoleMode, EstimatorConsole
    EstimatorConsole(ConsoleConfig(mode=ConsoleMode.NULL))


# ---- Instrumented hook ----

class CountingHook(Hook):
    """Hook that counts every callback it receives."""

    hook_points = frozenset(HookPoint)

    def __init__(self, name="counting", fetches=None):
        self.name = name
        self.fetches = fetches
        self.counts = {
            'begin': 0, 'after_session_creation': 0,
            'before_run': 0, 'after_run': 0, 'end': 0,
        }
        self.values = []

    def begin(self):
        self.counts['begin'] += 1

    def after_session_creation(self, session):
        self.counts['after_session_creation'] += 1

    def before_run(self, ctx):
        self.counts['before_run'] += 1
        if self.fetches is not None:
            return SessionRunArgs(fetches=self.fetches)
        return None

    def after_run(self, ctx, values):
        self.counts['after_run'] += 1
        self.values.append(values)

    def end(self, session):
        self.counts['end'] += 1


@pytest.fixture
def counting_hook():
    """Factory for CountingHook instances."""
    return CountingHook


# ---- Tiny model fixtures ----

@pytest.fixture
def tiny_module():
    """4->4->2 classifier, 30 params, microseconds per forward."""
    torch.manual_seed(42)
    return nn.Sequential(
        nn.Linear(4, 4),
        nn.ReLU(),
        nn.Linear(4, 2),
    )


@pytest.fixture
def tiny_model(tiny_module):
    """SupervisedModel wrapping tiny_module with cross-entropy and SGD."""
    return SupervisedModel(
        tiny_module,
        loss_fn=F.cross_entropy,
        optimizer_fn=lambda params: SGD(params, lr=0.01),
    )


def _batch(batch_size=2):
    return torch.randn(batch_size, 4), torch.randint(0, 2, (batch_size,))


@pytest.fixture
def make_batches():
    """Factory: list of ``n`` (features, labels) batches."""
    def _make(n, batch_size=2):
        torch.manual_seed(0)
        return [_batch(batch_size) for _ in range(n)]
    return _make


@pytest.fixture
def infinite_batches():
    """Factory: generator yielding (features, labels) batches forever."""
    def _make(batch_size=2):
        while True:
            yield _batch(batch_size)
    return _make


@pytest.fixture
def make_estimator(tiny_model):
    """Factory for InMemoryEstimator instances around tiny_model.

    Defaults to unlimited stop criteria (so finite datasets run to
    exhaustion), accuracy + loss evaluation metrics, and no working
    directory.
    """
    def _make(configuration=None, **kwargs):
        kwargs.setdefault('stop_criteria', StopCriteria.none())
        kwargs.setdefault('evaluation_metrics', [Accuracy(), Mean('loss', F.cross_entropy)])
        return InMemoryEstimator(
            tiny_model,
            configuration=configuration if configuration is not None else Configuration(),
            **kwargs,
        )
    return _make
