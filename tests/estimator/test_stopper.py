"""Tests for estimator/stopper.py: Stopper."""

import time

from estimator import StopCriteria, Stopper
from estimator.engine import CounterKey, Graph, GraphKeys
from estimator.monitored_session import MonitoredSession


def _graph_with_counters():
    graph = Graph()
    step = graph.counter(CounterKey.GLOBAL_STEP)
    epoch = graph.counter(CounterKey.GLOBAL_EPOCH)
    return graph, step, epoch


def _run_until_stop(session, target, limit=100):
    runs = 0
    while not session.should_stop and runs < limit:
        session.run(targets=target)
        runs += 1
    return runs


class TestStepLimits:

    def test_stops_after_max_steps(self):
        graph, step, _ = _graph_with_counters()
        session = MonitoredSession(graph, [Stopper(StopCriteria.steps(3))])
        assert _run_until_stop(session, step.increment) == 3

    def test_restart_counting_counts_from_reset(self):
        graph, step, _ = _graph_with_counters()
        step.value = 10
        stopper = Stopper(StopCriteria.steps(2))
        session = MonitoredSession(graph, [stopper])
        assert _run_until_stop(session, step.increment) == 2
        assert step.value == 12

    def test_absolute_counting(self):
        graph, step, _ = _graph_with_counters()
        step.value = 3
        criteria = StopCriteria(
            max_steps=5, max_epochs=None, restart_counting=False,
            abs_loss_change_tol=None, rel_loss_change_tol=None,
        )
        session = MonitoredSession(graph, [Stopper(criteria)])
        assert _run_until_stop(session, step.increment) == 2

    def test_reset_resynchronizes_start(self):
        graph, step, _ = _graph_with_counters()
        stopper = Stopper(StopCriteria.steps(2))
        session = MonitoredSession(graph, [stopper])
        _run_until_stop(session, step.increment)
        session.reset_should_stop()
        stopper.reset(session.raw_session)
        assert _run_until_stop(session, step.increment) == 2
        assert step.value == 4


class TestEpochAndTime:

    def test_stops_on_epochs(self):
        graph, step, epoch = _graph_with_counters()
        criteria = StopCriteria(max_steps=None, max_epochs=1, abs_loss_change_tol=None,
                                rel_loss_change_tol=None)
        session = MonitoredSession(graph, [Stopper(criteria)])
        session.run(targets=step.increment)
        assert not session.should_stop
        session.run(targets=epoch.increment)
        assert session.should_stop

    def test_stops_on_seconds(self, monkeypatch):
        graph, step, _ = _graph_with_counters()
        criteria = StopCriteria(max_steps=None, max_epochs=None, max_seconds=5,
                                abs_loss_change_tol=None, rel_loss_change_tol=None)
        stopper = Stopper(criteria)
        session = MonitoredSession(graph, [stopper])
        session.run(targets=step.increment)
        assert not session.should_stop
        now = time.time()
        monkeypatch.setattr(time, 'time', lambda: now + 10)
        session.run(targets=step.increment)
        assert session.should_stop


class TestLossTolerance:

    def _loss_graph(self, losses):
        graph, step, _ = _graph_with_counters()
        values = iter(losses)
        loss = graph.create_op("loss", lambda: next(values))
        graph.add_to_collection(GraphKeys.LOSSES, loss)
        return graph, step

    def test_stops_after_consecutive_small_changes(self):
        graph, step = self._loss_graph([1.0, 0.5, 0.5, 0.5, 0.5])
        criteria = StopCriteria(max_steps=None, max_epochs=None, abs_loss_change_tol=1e-3,
                                rel_loss_change_tol=None, max_step_below_tol=2)
        session = MonitoredSession(graph, [Stopper(criteria)])
        assert _run_until_stop(session, step.increment, limit=5) == 4

    def test_large_change_resets_streak(self):
        graph, step = self._loss_graph([1.0, 1.0, 2.0, 2.0, 2.0])
        criteria = StopCriteria(max_steps=None, max_epochs=None, abs_loss_change_tol=1e-3,
                                rel_loss_change_tol=None, max_step_below_tol=2)
        session = MonitoredSession(graph, [Stopper(criteria)])
        assert _run_until_stop(session, step.increment, limit=4) == 4
        assert not session.should_stop
        session.run(targets=step.increment)
        assert session.should_stop

    def test_loss_ignored_while_watching_eval_step(self):
        graph, step = self._loss_graph([1.0] * 10)
        eval_step = graph.counter(CounterKey.EVAL_STEP, local=True)
        criteria = StopCriteria(max_steps=None, max_epochs=None, abs_loss_change_tol=1e-3,
                                rel_loss_change_tol=None, max_step_below_tol=1)
        stopper = Stopper(criteria, counter=CounterKey.EVAL_STEP)
        session = MonitoredSession(graph, [stopper])
        assert _run_until_stop(session, eval_step.increment, limit=5) == 5


class TestUnlimited:

    def test_unlimited_requests_no_fetches(self):
        graph, step, _ = _graph_with_counters()
        stopper = Stopper(StopCriteria.none())
        session = MonitoredSession(graph, [stopper])
        assert _run_until_stop(session, step.increment, limit=20) == 20

    def test_update_criteria(self):
        stopper = Stopper(StopCriteria.none())
        stopper.update_criteria(StopCriteria.steps(4))
        assert stopper.criteria.max_steps == 4

    def test_reset_switches_counter(self):
        graph, _, _ = _graph_with_counters()
        graph.counter(CounterKey.EVAL_STEP, local=True)
        session = MonitoredSession(graph, [])
        stopper = Stopper(StopCriteria.steps(1))
        stopper.reset(session.raw_session, CounterKey.EVAL_STEP)
        assert stopper.counter_key == CounterKey.EVAL_STEP
