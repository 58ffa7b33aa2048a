"""Tests for InMemoryEstimator.infer."""

import pytest
import torch

from estimator import (
    DeadSessionError, Hook, HookPoint, InferenceIterator, StopCriteria, UnavailableError,
)


class RaiseBeforeRun(Hook):
    """Raises ``error`` from ``before_run`` on the ``at``-th run."""

    hook_points = frozenset({HookPoint.BEFORE_RUN})

    def __init__(self, error, at=1):
        self.name = "raise_before_run"
        self.error = error
        self.at = at
        self.runs = 0

    def before_run(self, ctx):
        self.runs += 1
        if self.runs == self.at:
            raise self.error
        return None


class TestSingleBatch:

    def test_tensor_input_returns_output(self, make_estimator):
        estimator = make_estimator()
        output = estimator.infer(lambda: torch.randn(3, 4))
        assert isinstance(output, torch.Tensor)
        assert output.shape == (3, 2)

    def test_does_not_advance_global_step(self, make_estimator):
        estimator = make_estimator()
        estimator.infer(lambda: torch.randn(1, 4))
        assert estimator.global_step == 0


class TestIterator:

    def test_yields_input_output_pairs(self, make_estimator):
        estimator = make_estimator()
        inputs = [torch.randn(2, 4) for _ in range(3)]
        results = estimator.infer(lambda: inputs)
        assert isinstance(results, InferenceIterator)
        pairs = list(results)
        assert len(pairs) == 3
        for given, (seen, output) in zip(inputs, pairs):
            assert torch.equal(given, seen)
            assert output.shape == (2, 2)

    def test_labels_are_dropped(self, make_estimator, make_batches):
        estimator = make_estimator()
        pairs = list(estimator.infer(lambda: make_batches(2)))
        assert len(pairs) == 2
        assert pairs[0][0].shape == (2, 4)

    def test_lazy_consumption(self, make_estimator):
        estimator = make_estimator()
        pulled = []

        def source():
            for i in range(3):
                pulled.append(i)
                yield torch.randn(1, 4)

        results = estimator.infer(source)
        assert pulled == []
        next(results)
        assert pulled == [0]

    def test_exhausted_iterator_stays_exhausted(self, make_estimator):
        estimator = make_estimator()
        results = estimator.infer(lambda: [torch.randn(1, 4)])
        assert len(list(results)) == 1
        with pytest.raises(StopIteration):
            next(results)

    def test_infer_ignores_stop_criteria(self, make_estimator):
        estimator = make_estimator(stop_criteria=StopCriteria.steps(1))
        inputs = [torch.randn(1, 4) for _ in range(4)]
        assert len(list(estimator.infer(lambda: inputs))) == 4
        assert estimator.stopper.criteria == StopCriteria.steps(1)


class TestStaleIterator:

    def test_new_call_ends_previous_iterator(self, make_estimator, make_batches):
        estimator = make_estimator()
        inputs = [torch.randn(1, 4) for _ in range(5)]
        first = estimator.infer(lambda: inputs)
        next(first)
        batches = make_batches(2)
        estimator.train(lambda: batches)
        with pytest.raises(StopIteration):
            next(first)
        assert estimator.global_step == 2

    def test_abandoned_iterator_does_not_leak_into_training(self, make_estimator, make_batches):
        estimator = make_estimator(stop_criteria=StopCriteria.steps(1))
        first = estimator.infer(lambda: [torch.randn(1, 4) for _ in range(5)])
        next(first)
        batches = make_batches(4)
        estimator.train(lambda: batches)
        assert estimator.global_step == 1

    def test_second_infer_restarts_from_its_own_data(self, make_estimator):
        estimator = make_estimator()
        first = estimator.infer(lambda: [torch.randn(1, 4) for _ in range(5)])
        next(first)
        second = list(estimator.infer(lambda: [torch.randn(1, 4) for _ in range(2)]))
        assert len(second) == 2
        assert list(first) == []


class TestHookExclusivity:

    def test_only_infer_hooks_run(self, make_estimator, counting_hook):
        train_hook = counting_hook("train")
        infer_hook = counting_hook("infer")
        eval_hook = counting_hook("eval")
        estimator = make_estimator(
            train_hooks=[train_hook], infer_hooks=[infer_hook], evaluate_hooks=[eval_hook],
        )
        list(estimator.infer(lambda: [torch.randn(1, 4) for _ in range(3)]))
        assert infer_hook.counts['after_run'] == 3
        assert train_hook.counts['before_run'] == 0
        assert eval_hook.counts['before_run'] == 0
        assert train_hook in estimator.session.hooks
        assert eval_hook in estimator.session.hooks

    def test_hooks_restored_between_pulls(self, make_estimator, counting_hook):
        train_hook = counting_hook("train")
        estimator = make_estimator(train_hooks=[train_hook])
        results = estimator.infer(lambda: [torch.randn(1, 4) for _ in range(3)])
        next(results)
        assert train_hook in estimator.session.hooks


class TestFailures:

    def test_fatal_error_kills_session(self, make_estimator, make_batches, counting_hook):
        observer = counting_hook("train")
        estimator = make_estimator(
            stop_criteria=StopCriteria.steps(3),
            train_hooks=[observer],
            infer_hooks=[RaiseBeforeRun(ValueError("bad input"), at=2)],
        )
        results = estimator.infer(lambda: [torch.randn(1, 4) for _ in range(4)])
        next(results)
        with pytest.raises(ValueError, match="bad input"):
            next(results)
        assert estimator.session.is_dead
        assert observer.counts['end'] == 0
        assert estimator.stopper.criteria == StopCriteria.steps(3)
        with pytest.raises(StopIteration):
            next(results)
        batches = make_batches(2)
        with pytest.raises(DeadSessionError):
            estimator.train(lambda: batches)
        with pytest.raises(DeadSessionError):
            estimator.infer(lambda: [torch.randn(1, 4)])

    def test_recoverable_error_keeps_session(self, make_estimator, counting_hook):
        train_hook = counting_hook("train")
        eval_hook = counting_hook("eval")
        estimator = make_estimator(
            stop_criteria=StopCriteria.steps(3),
            train_hooks=[train_hook],
            infer_hooks=[RaiseBeforeRun(UnavailableError("gone"), at=2)],
            evaluate_hooks=[eval_hook],
        )
        results = estimator.infer(lambda: [torch.randn(1, 4) for _ in range(4)])
        next(results)
        with pytest.raises(UnavailableError):
            next(results)
        assert not estimator.session.is_dead
        assert train_hook in estimator.session.hooks
        assert eval_hook in estimator.session.hooks
        assert estimator.stopper.criteria == StopCriteria.steps(3)
        assert len(list(estimator.infer(lambda: [torch.randn(1, 4) for _ in range(2)]))) == 2
