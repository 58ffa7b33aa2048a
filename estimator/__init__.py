"""In-memory estimator: train / infer / evaluate against one persistent session."""

from .errors import (
    AbortedError,
    DeadSessionError,
    EstimatorError,
    GraphFrozenError,
    InvalidConfigurationError,
    NaNLossError,
    OutOfRangeError,
    RecoverableError,
    SessionClosedError,
    UnavailableError,
)
from .config import Configuration, TensorBoardConfig
from .engine import CounterKey, DatasetIterator, Graph, GraphKeys, Op, Session, op_scope
from .stop_criteria import StopCriteria
from .checkpoints import Saver
from .hooks import Hook, HookPoint, HookRegistry, ModelDependentHook, SessionRunArgs, StepContext
from .model import EvalMetricOps, Model, ModelInstance, SupervisedModel
from .metrics import Accuracy, Mean, Metric
from .monitored_session import MonitoredSession, SessionScaffold, StepOutcome, StepResult
from .stopper import Stopper
from .freeze import unfrozen
from .results import EvaluationResult
from .summaries import EvaluationSummaryWriter
from .estimator import Estimator
from .in_memory import InMemoryEstimator, InferenceIterator

__all__ = [
    'AbortedError',
    'DeadSessionError',
    'EstimatorError',
    'GraphFrozenError',
    'InvalidConfigurationError',
    'NaNLossError',
    'OutOfRangeError',
    'RecoverableError',
    'SessionClosedError',
    'UnavailableError',
    'Configuration',
    'TensorBoardConfig',
    'CounterKey',
    'DatasetIterator',
    'Graph',
    'GraphKeys',
    'Op',
    'Session',
    'op_scope',
    'StopCriteria',
    'Saver',
    'Hook',
    'HookPoint',
    'HookRegistry',
    'ModelDependentHook',
    'SessionRunArgs',
    'StepContext',
    'EvalMetricOps',
    'Model',
    'ModelInstance',
    'SupervisedModel',
    'Accuracy',
    'Mean',
    'Metric',
    'MonitoredSession',
    'SessionScaffold',
    'StepOutcome',
    'StepResult',
    'Stopper',
    'unfrozen',
    'EvaluationResult',
    'EvaluationSummaryWriter',
    'Estimator',
    'InMemoryEstimator',
    'InferenceIterator',
]
