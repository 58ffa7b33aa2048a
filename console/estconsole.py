import sys
import time
from zoneinfo import ZoneInfo

from rich.console import Console, RenderableType
from rich.progress import (
    BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn,
)
from rich.style import Style

from .config import ConsoleConfig, ConsoleMode
from .content import ContentItem
from .themes import EstimatorTheme


class EstimatorConsole:
    """
    Process-wide console used for every message the estimator emits.

    The console is a singleton: every ``EstimatorConsole()`` call returns the
    same instance, so library code can grab it anywhere without plumbing a
    logger through constructors. Passing a ``ConsoleConfig`` that differs
    from the active one re-initializes the singleton.

    Modes:

    - NORMAL: styled output to the terminal.
    - LOGGING: unstyled output appended to ``ConsoleConfig.log_file``.
    - SILENT: progress bars only; text output is suppressed.
    - NULL: nothing at all (used by the test suite).

    Debug messages (``print_debug``) are only rendered when
    ``ConsoleConfig.verbose`` is set.

    :ivar _instance: Singleton instance.
    :ivar _console: The underlying Rich console, or None before initialization.
    :ivar _cfg: Active configuration.
    :ivar _mode: Active console mode.
    :ivar _progress_bar: Rich progress bar, created lazily by the first task.
    :ivar _progress_tasks: Task name -> bookkeeping dict for open progress tasks.
    """
    _instance = None
    _console: Console | None = None
    _cfg: ConsoleConfig | None = None
    _log_file_handle = None
    _mode: ConsoleMode | None = None
    _progress_bar: Progress | None = None
    _progress_tasks: dict = {}
    _tz_info: ZoneInfo | None = None

    def __new__(cls, cfg: ConsoleConfig | None = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize(cfg)
        elif cfg is not None and cls._instance._cfg != cfg:
            cls._instance._initialize(cfg)
        return cls._instance

    def _initialize(self, cfg: ConsoleConfig | None = None):
        """
        (Re-)initialize the console for the given configuration.

        :param cfg: Console configuration; defaults to ``ConsoleConfig()``.
        :raises ValueError: When LOGGING mode is requested without a ``log_file``.
        :raises RuntimeError: When the log file cannot be opened.
        """
        if self._log_file_handle:
            self._log_file_handle.close()
            self._log_file_handle = None
        self._progress_bar = None
        self._progress_tasks = {}

        self._cfg = cfg if cfg is not None else ConsoleConfig()
        self._mode = self._cfg.mode
        self._tz_info = ZoneInfo(self._cfg.timezone) if self._cfg.timezone else None
        theme = EstimatorTheme()

        if self._mode == ConsoleMode.NULL:
            self._console = Console(quiet=True)
            return

        if self._mode == ConsoleMode.LOGGING:
            if not self._cfg.log_file:
                raise ValueError("log_file must be specified in ConsoleConfig for logging mode")
            try:
                self._log_file_handle = open(self._cfg.log_file, "a+", encoding="utf-8")
            except OSError as e:
                raise RuntimeError(f"Failed to open log file {self._cfg.log_file}: {e}") from e
            self._console = Console(
                file=self._log_file_handle,
                theme=theme,
                force_terminal=False,
                no_color=True,
            )
            return

        if self._mode in (ConsoleMode.NORMAL, ConsoleMode.SILENT):
            no_color = not self._cfg.use_colors
            self._console = Console(
                theme=theme,
                no_color=no_color,
                color_system=None if no_color else self._cfg.color_system.value,
                highlight=False,
                style=None if no_color else Style(bgcolor=EstimatorTheme.BACKGROUND),
                stderr=False,
            )
            return

        raise ValueError(f"Unsupported console mode: {self._mode}")

    def _should_do_terminal(self) -> bool:
        return self._mode in (ConsoleMode.NORMAL, ConsoleMode.SILENT)

    def _should_do_print(self) -> bool:
        return self._mode not in (ConsoleMode.NULL, ConsoleMode.SILENT)

    # --- Messages ---

    def print(self, content: str | ContentItem | RenderableType = "", style: str | None = None):
        """
        Print a message, a prepared ``ContentItem``, or a Rich renderable.

        Strings are timestamped (when ``show_time`` is set) and may carry
        theme markup such as ``[path]...[/path]``.
        """
        if isinstance(content, ContentItem):
            self._print_message(content)
            return
        if hasattr(content, '__rich_console__') or hasattr(content, '__rich__'):
            self._print_message(ContentItem(type="renderable", content=content))
            return
        self._print_message(ContentItem(type="text", content=content, style=style, time=time.time()))

    def print_notification(self, content: str):
        self._print_message(ContentItem(type="notification", content=content, time=time.time()))

    def print_warning(self, content: str):
        self._print_message(ContentItem(type="warning", content=content, time=time.time()))

    def print_error(self, content: str):
        self._print_message(ContentItem(type="error", content=content, time=time.time()))

    def print_complete(self, content: str):
        self._print_message(ContentItem(type="complete", content=content, time=time.time()))

    def print_debug(self, content: str):
        """Print a debug message; dropped unless ``ConsoleConfig.verbose`` is set."""
        if not self._cfg.verbose:
            return
        self._print_message(ContentItem(type="debug", content=content, time=time.time()))

    def _print_message(self, item: ContentItem):
        if not self._should_do_print():
            return
        if not self._cfg.show_time and not item.is_renderable:
            item = ContentItem(type=item.type, content=item.content, style=item.style)
        self._console.print(item.render(self._cfg.time_format, self._tz_info))

    # --- Progress ---

    def _create_progress_bar(self):
        self._progress_bar = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(bar_width=None),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self._console,
            transient=True,
            expand=True,
        )
        self._progress_bar.start()

    def create_progress_task(self, task_name: str, task_desc: str, total: float | None = None):
        """Open a named progress task; a no-op outside terminal modes."""
        if not self._should_do_terminal():
            return
        if self._progress_bar is None:
            self._create_progress_bar()
        task_id = self._progress_bar.add_task(task_desc, total=total)
        self._progress_tasks[task_name] = {"id": task_id, "total": total, "completed": 0}

    def update_progress_task(self, task_name: str, advance: float = 1, **kwargs) -> bool:
        """Advance a named progress task. Returns False if the task is unknown."""
        task = self._progress_tasks.get(task_name)
        if task is None or self._progress_bar is None:
            return False
        task["completed"] += advance
        self._progress_bar.update(task["id"], advance=advance, **kwargs)
        return True

    def remove_progress_task(self, task_name: str) -> bool:
        """Close a named progress task; stops the bar when it was the last one."""
        task = self._progress_tasks.pop(task_name, None)
        if task is None or self._progress_bar is None:
            return False
        self._progress_bar.remove_task(task["id"])
        if not self._progress_tasks:
            self._progress_bar.stop()
            self._progress_bar = None
        return True

    def has_progress_task(self, task_name: str) -> bool:
        return task_name in self._progress_tasks

    # --- Introspection ---

    @property
    def mode(self) -> ConsoleMode:
        return self._mode

    def __repr__(self):
        return f"EstimatorConsole(mode={self._mode}, file={getattr(self._console, 'file', sys.stdout)!r})"
