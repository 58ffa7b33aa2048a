"""
Session hooks shipped with the estimator.

Every hook registers itself with ``HookRegistry`` so it can be built by
name::

    from estimator import HookRegistry

    hooks = HookRegistry.build(['loss_logger'], {'loss_logger': {'every_n_steps': 10}})
"""

from .nan_checker import NaNChecker
from .loss_logger import LossLogger
from .checkpoint_saver import CheckpointSaver
from .tensorboard import TensorBoardHook

__all__ = [
    'NaNChecker',
    'LossLogger',
    'CheckpointSaver',
    'TensorBoardHook',
]
