"""TensorBoard launcher hook."""

import subprocess

from console import EstimatorConsole
from estimator.config import TensorBoardConfig
from estimator.hooks import Hook, HookPoint, HookRegistry


@HookRegistry.register
class TensorBoardHook(Hook):
    """Launch TensorBoard when the session starts; terminate it at session end.

    Requires the ``tensorboard`` executable on PATH; when it is missing a
    warning is printed and training proceeds without it.
    """

    name = "tensorboard"
    description = "Launches a TensorBoard server for the training run"
    hook_points = frozenset({HookPoint.SESSION_START, HookPoint.SESSION_END})

    def __init__(self, config: TensorBoardConfig):
        self.config = config
        self._process = None

    def after_session_creation(self, session):
        if self._process is not None and self._process.poll() is None:
            return
        console = EstimatorConsole()
        try:
            self._process = subprocess.Popen(
                self.config.command(),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            console.print_warning("TensorBoard executable not found; not launching it")
            self._process = None
            return
        console.print_notification(
            f"TensorBoard running at [path]http://{self.config.host}:{self.config.port}[/path]"
        )

    def end(self, session):
        if self._process is None:
            return
        self._process.terminate()
        try:
            self._process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            self._process.kill()
        self._process = None
