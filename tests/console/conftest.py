"""Console test fixtures: capture console output for assertion."""

import io
from dataclasses import replace

import pytest
from rich.console import Console

from console.config import ConsoleMode
from console.estconsole import EstimatorConsole
from console.themes import EstimatorTheme


@pytest.fixture
def capture_console():
    """Swap EstimatorConsole to NORMAL mode with a StringIO buffer.

    Yields a callable that returns the captured output as a string.
    Restores the original NULL-mode console on teardown.
    """
    console = EstimatorConsole()
    original_console = console._console
    original_mode = console._mode
    original_cfg = console._cfg

    buffer = io.StringIO()
    console._console = Console(
        file=buffer, width=120, highlight=False, no_color=True,
        theme=EstimatorTheme(),
    )
    console._mode = ConsoleMode.NORMAL
    console._cfg = replace(original_cfg, show_time=False)

    def get_output():
        return buffer.getvalue()

    yield get_output

    # Restore original state
    console._console = original_console
    console._mode = original_mode
    console._cfg = original_cfg
