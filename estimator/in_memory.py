"""
InMemoryEstimator: train / infer / evaluate against one long-lived session.

The model's training, inference and evaluation sub-graphs are built once, at
construction, and the monitored session is kept alive across calls, so no
state is reloaded between ``train``, ``infer`` and ``evaluate``.

Each mode call follows the same sequence:

1. remove the other modes' hooks from the session;
2. install a fresh dataset initializer (unfreezing the graph if needed) and
   make it the session's only additional local init op;
3. with hooks disabled: run the initializer, switch the stopper to the
   call's criteria and reset it;
4. clear should-stop and run steps until the stopper (or exhaustion of the
   data) stops the loop;
5. restore the default criteria and re-add the removed hooks.

A fatal error restores the default criteria, closes the session without
running hook ``end`` callbacks and re-raises; the estimator is then dead and
every further call raises ``DeadSessionError``.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Callable, Iterable

import torch

from console import EstimatorConsole

from .config import Configuration, TensorBoardConfig
from .engine import CounterKey, DatasetIterator, GraphKeys, Op, op_scope
from .errors import DeadSessionError, InvalidConfigurationError, RECOVERABLE_ERRORS
from .estimator import Estimator
from .freeze import unfrozen
from .hooks import Hook, HookRegistry
from .metrics import Metric
from .model import Model
from .mode_hooks import ModeHooks
from .monitored_session import SessionScaffold, StepOutcome
from .results import EvaluationResult
from .sinks import MetricSink
from .stop_criteria import StopCriteria
from .stopper import Stopper


class InMemoryEstimator(Estimator):
    """Estimator that keeps its session in memory between calls.

    Args:
        model: The model to build ops from.
        configuration: Runtime configuration.
        stop_criteria: Default training stop criteria.
        train_hooks: Hooks active while training.
        train_chief_only_hooks: Hooks active while training on the chief only.
        infer_hooks: Hooks active while inferring.
        evaluate_hooks: Hooks active while evaluating.
        tensorboard_config: When given, TensorBoard is launched by a
            chief-only training hook.
        evaluation_metrics: Metrics computed by ``evaluate``.
        summary_sinks: Extra sinks for evaluation results.
    """

    def __init__(
        self,
        model: Model,
        configuration: Configuration | None = None,
        stop_criteria: StopCriteria | None = None,
        train_hooks: Iterable[Hook] = (),
        train_chief_only_hooks: Iterable[Hook] = (),
        infer_hooks: Iterable[Hook] = (),
        evaluate_hooks: Iterable[Hook] = (),
        tensorboard_config: TensorBoardConfig | None = None,
        evaluation_metrics: Iterable[Metric] = (),
        summary_sinks: Iterable[MetricSink] = (),
    ):
        super().__init__(model, configuration, stop_criteria, summary_sinks)
        self.evaluation_metrics = list(evaluation_metrics)
        names = [m.name for m in self.evaluation_metrics]
        if len(set(names)) != len(names):
            raise InvalidConfigurationError(f"Evaluation metric names must be unique, got {names}")

        self.stopper = Stopper(self.stop_criteria)
        self._hooks = ModeHooks(
            self.stopper,
            train=train_hooks,
            train_chief_only=train_chief_only_hooks,
            infer=infer_hooks,
            evaluate=evaluate_hooks,
        )
        self._generation = 0

        cfg = self.configuration
        graph = self.graph
        with op_scope(graph, "estimator", cfg.device_function()):
            if cfg.random_seed is not None:
                graph.set_random_seed(cfg.random_seed)
            with op_scope(graph, "train"):
                self._global_epoch = graph.counter(CounterKey.GLOBAL_EPOCH)
                self._global_step = graph.counter(CounterKey.GLOBAL_STEP)
                with op_scope(graph, "model"):
                    train = model.build_train_ops(graph)
            with op_scope(graph, "infer"), op_scope(graph, "model"):
                infer = model.build_infer_ops(graph)
            with op_scope(graph, "evaluate"):
                with op_scope(graph, "model"):
                    evaluate = model.build_eval_ops(graph, self.evaluation_metrics)
                eval_step = graph.counter(CounterKey.EVAL_STEP, local=True)
                pulls = [evaluate.input] if evaluate.input is not None else []
                self._eval_update_op = graph.group(
                    "update", [*pulls, *evaluate.metrics.updates.values(), eval_step.increment],
                )
                self._eval_reset_op = graph.group(
                    "reset", [*evaluate.metrics.resets.values(), eval_step.reset],
                )

        self._train = dataclasses.replace(train, configuration=cfg)
        self._infer = dataclasses.replace(infer, configuration=cfg)
        self._evaluate = dataclasses.replace(evaluate, configuration=cfg)
        self._hooks.bind(self._train, self._infer, self._evaluate)

        graph.add_to_collection(GraphKeys.LOSSES, self._train.loss)
        self._hooks.add_train(HookRegistry.get('nan_checker')())
        if tensorboard_config is not None:
            self._hooks.add_train(HookRegistry.get('tensorboard')(tensorboard_config), chief_only=True)

        scaffold = SessionScaffold(
            saver=self.get_or_create_saver(),
            restore_latest=cfg.restore_latest_checkpoint,
        )
        self.session = self.monitored_training_session(
            hooks=[self.stopper, *self._hooks.train, *self._hooks.infer, *self._hooks.evaluate],
            chief_only_hooks=self._hooks.train_chief_only,
            scaffold=scaffold,
        )
        graph.freeze()

    # --- Introspection ---

    @property
    def global_step(self) -> int:
        return self._global_step.value

    @property
    def global_epoch(self) -> int:
        return self._global_epoch.value

    @property
    def train_hooks(self) -> list[Hook]:
        return self._hooks.current_train(self.configuration.is_chief)

    @property
    def infer_hooks(self) -> list[Hook]:
        return list(self._hooks.infer)

    @property
    def evaluate_hooks(self) -> list[Hook]:
        return list(self._hooks.evaluate)

    # --- Shared mode plumbing ---

    def _check_session(self):
        if self.session.is_dead:
            raise DeadSessionError(
                "The estimator's session was closed after a fatal error; "
                "create a new estimator"
            )

    def _begin_mode(self) -> int:
        self._generation += 1
        return self._generation

    def _install_initializer(
        self,
        iterator: DatasetIterator,
        dataset: Any,
        extra: Iterable[Op] = (),
    ) -> Op:
        """Create the dataset initializer for this call and make it the only
        additional local init op."""
        with unfrozen(self.graph), op_scope(self.graph, device_fn=self.configuration.device_function()):
            initializer = iterator.create_initializer(dataset)
            extra = list(extra)
            if extra:
                initializer = self.graph.group(f"{iterator.name}/initialize_all", [initializer, *extra])
        self.session.scaffold.set_local_init_ops([initializer])
        return initializer

    def _start_loop(self, initializer: Op, criteria: StopCriteria, counter: CounterKey):
        with self.session.hooks_disabled():
            self.session.run(targets=initializer)
            self.stopper.update_criteria(criteria)
            self.stopper.reset(self.session, counter=counter)
        self.session.reset_should_stop()

    def _restore(self, hooks: list[Hook]):
        self.stopper.update_criteria(self.stop_criteria)
        self.session.add_hooks(hooks)

    def _kill(self, error: BaseException):
        """Fatal path: restore the default criteria, close the session
        without hook ``end`` callbacks and re-raise."""
        EstimatorConsole().print_error(f"Fatal error, closing session: {type(error).__name__}")
        self.stopper.update_criteria(self.stop_criteria)
        self.session.close_without_hook_end()
        raise error

    def _fail(self, error: BaseException, hooks: list[Hook]):
        """Handle a failure raised during a train or infer call.

        Recoverable errors leave the session usable: criteria and hooks are
        restored before re-raising. Anything else kills the session.
        """
        if isinstance(error, RECOVERABLE_ERRORS):
            self._restore(hooks)
            raise error
        self._kill(error)

    def _handle_interrupt(self, hooks: list[Hook]):
        EstimatorConsole().print_warning("Interrupted; restoring hook state")
        self._restore(hooks)

    # --- Train ---

    def train(
        self,
        data: Callable[[], Iterable],
        stop_criteria: StopCriteria | None = None,
    ):
        """Train until the stop criteria are met or ``data()`` is exhausted.

        Args:
            data: Zero-argument factory returning a fresh iterable of
                ``(features, labels)`` batches.
            stop_criteria: Criteria for this call; defaults to the
                estimator's ``stop_criteria``.
        """
        self._check_session()
        criteria = stop_criteria if stop_criteria is not None else self.stop_criteria
        self._begin_mode()
        other_hooks = [*self._hooks.infer, *self._hooks.evaluate]
        self.session.remove_hooks(other_hooks)
        console = EstimatorConsole()
        error = None
        try:
            initializer = self._install_initializer(self._train.input_iterator, data())
            self._start_loop(initializer, criteria, CounterKey.GLOBAL_STEP)
            total = criteria.max_steps
            if total is not None and not criteria.restart_counting:
                total = max(total - self.global_step, 0)
            console.create_progress_task("train", "Training", total=total)
            try:
                while not self.session.should_stop:
                    result = self.session.try_run(targets=self._train.train_op)
                    if result.outcome is StepOutcome.CONTINUE:
                        console.update_progress_task("train")
                    elif result.outcome is StepOutcome.EXHAUSTED:
                        self.session.set_should_stop(True)
                        with self.session.hooks_disabled():
                            self.session.run(targets=self._global_epoch.increment)
                    else:
                        error = result.error
                        break
            finally:
                console.remove_progress_task("train")
        except KeyboardInterrupt:
            self._handle_interrupt(other_hooks)
            raise
        except Exception as e:
            error = e
        if error is not None:
            self._fail(error, other_hooks)

        console.print_debug(
            f"Training stopped at step [value.count]{self.global_step}[/value.count]"
        )
        self._restore(other_hooks)

    # --- Infer ---

    def infer(self, input_fn: Callable[[], Any]):
        """Run the model on the data produced by ``input_fn``.

        If ``input_fn()`` returns a ``torch.Tensor``, it is treated as a
        single batch and its output is returned directly. Otherwise an
        ``InferenceIterator`` over ``(input, output)`` pairs is returned;
        outputs are computed lazily as the iterator is consumed.
        """
        self._check_session()
        data = input_fn()
        single = isinstance(data, torch.Tensor)
        if single:
            data = [data]
        generation = self._begin_mode()
        other_hooks = [*self._hooks.current_train(self.configuration.is_chief), *self._hooks.evaluate]
        self.session.remove_hooks(other_hooks)
        error = None
        try:
            initializer = self._install_initializer(self._infer.input_iterator, data)
            self._start_loop(initializer, StopCriteria.none(), CounterKey.GLOBAL_STEP)
        except KeyboardInterrupt:
            self._handle_interrupt(other_hooks)
            raise
        except Exception as e:
            error = e
        if error is not None:
            self._fail(error, other_hooks)
        self.session.add_hooks(other_hooks)

        iterator = InferenceIterator(self, generation, other_hooks)
        if single:
            _, output = next(iterator)
            iterator.close()
            return output
        return iterator

    # --- Evaluate ---

    def _resolve_metrics(self, metrics: list[Metric] | None) -> list[Metric]:
        if metrics is None:
            return list(self.evaluation_metrics)
        configured = self._evaluate.metrics.values
        unknown = [m.name for m in metrics if m.name not in configured]
        if unknown:
            raise InvalidConfigurationError(
                f"Metrics {unknown} are not among this estimator's evaluation_metrics"
            )
        return list(metrics)

    def evaluate(
        self,
        data: Callable[[], Iterable],
        metrics: list[Metric] | None = None,
        max_steps: int | None = None,
        save_summaries: bool = True,
        name: str | None = None,
    ) -> EvaluationResult:
        """Evaluate the model on ``data()``.

        Args:
            data: Zero-argument factory returning a fresh iterable of
                ``(features, labels)`` batches.
            metrics: Subset of ``evaluation_metrics`` to report; all by default.
            max_steps: Number of batches to evaluate; unbounded (until
                exhaustion) when None.
            save_summaries: Persist the results under the working directory.
            name: Evaluation name; results go to ``eval_<name>/``.

        Returns:
            The metric values and the global step they were computed at, or
            ``EvaluationResult.empty()`` if the evaluation was interrupted by
            a recoverable error.

        Raises:
            InvalidConfigurationError: If ``save_summaries`` is set without a
                working directory, or ``metrics`` were not configured. Raised
                before the session is touched.
        """
        self._check_session()
        if save_summaries and self.working_dir is None:
            raise InvalidConfigurationError(
                "Saving evaluation summaries requires a working directory; "
                "set Configuration.working_dir or pass save_summaries=False"
            )
        if max_steps is not None and max_steps <= 0:
            raise InvalidConfigurationError(f"max_steps must be > 0 or None, got {max_steps}")
        metrics = self._resolve_metrics(metrics)

        self._begin_mode()
        other_hooks = [*self._hooks.current_train(self.configuration.is_chief), *self._hooks.infer]
        self.session.remove_hooks(other_hooks)
        criteria = StopCriteria.steps(max_steps) if max_steps is not None else StopCriteria.none()
        value_ops = {m.name: self._evaluate.metrics.values[m.name] for m in metrics}
        console = EstimatorConsole()
        evaluation = None
        error = None
        try:
            initializer = self._install_initializer(
                self._evaluate.input_iterator, data(), extra=[self._eval_reset_op],
            )
            self._start_loop(initializer, criteria, CounterKey.EVAL_STEP)
            console.print_debug("Starting evaluation.")
            with self.session.hooks_disabled():
                step = self.session.run(fetches=self._global_step.read)
            console.create_progress_task("evaluate", "Evaluating", total=max_steps)
            try:
                while not self.session.should_stop:
                    result = self.session.try_run(targets=self._eval_update_op)
                    if result.outcome is StepOutcome.CONTINUE:
                        console.update_progress_task("evaluate")
                    elif result.outcome is StepOutcome.EXHAUSTED:
                        self.session.set_should_stop(True)
                    else:
                        error = result.error
                        break
            finally:
                console.remove_progress_task("evaluate")
            if error is None:
                evaluation = EvaluationResult(step, self.session.run(fetches=value_ops))
        except KeyboardInterrupt:
            self._handle_interrupt(other_hooks)
            raise
        except Exception as e:
            error = e

        if isinstance(error, RECOVERABLE_ERRORS):
            console.print_warning(
                f"Evaluation interrupted ({type(error).__name__}); no results this round"
            )
            self.session.close()
            evaluation = EvaluationResult.empty()
        elif error is not None:
            self._kill(error)
        console.print_debug("Finished evaluation.")

        if save_summaries and not evaluation.is_empty:
            console.print_debug("Saving evaluation results.")
            try:
                self.save_evaluation_summaries(evaluation.step, metrics, evaluation.values, name)
            except Exception as e:
                error = e
            if error is not None:
                self._kill(error)
        self._restore(other_hooks)
        return evaluation

    def close(self):
        """Close the session gracefully (hook ``end`` callbacks run)."""
        if not self.session.is_dead:
            self.session.close()
        super().close()


class InferenceIterator:
    """Lazy, single-pass iterator over ``(input, output)`` pairs.

    Each ``next`` runs one inference step with the training and evaluation
    hooks removed. The iterator ends when the data is exhausted, or when a
    newer ``train``/``infer``/``evaluate`` call has started on the same
    estimator. Abandoning it early is harmless: the next call reinitializes.
    """

    def __init__(self, estimator: InMemoryEstimator, generation: int, other_hooks: list[Hook]):
        self._estimator = estimator
        self._generation = generation
        self._other_hooks = other_hooks
        self._done = False

    def __iter__(self):
        return self

    def _is_stale(self) -> bool:
        return self._estimator._generation != self._generation

    def close(self):
        """Stop the iterator and restore the default stop criteria."""
        if self._done:
            return
        self._done = True
        if not self._is_stale() and not self._estimator.session.is_dead:
            self._estimator.stopper.update_criteria(self._estimator.stop_criteria)

    def __next__(self):
        est = self._estimator
        if self._done:
            raise StopIteration
        if self._is_stale() or est.session.should_stop:
            self.close()
            raise StopIteration
        est._check_session()

        est.session.remove_hooks(self._other_hooks)
        try:
            result = est.session.try_run(fetches=(est._infer.input, est._infer.output))
        finally:
            est.session.add_hooks(self._other_hooks)

        if result.outcome is StepOutcome.EXHAUSTED:
            est.session.set_should_stop(True)
            self.close()
            raise StopIteration
        if result.outcome is StepOutcome.FATAL:
            self._done = True
            est._fail(result.error, self._other_hooks)
        return result.values
