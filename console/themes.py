from rich.style import Style
from rich.theme import Theme


class EstimatorTheme(Theme):
    """
    Dark theme used by every message the estimator prints.

    Colors are grouped by role: message kinds (notification, warning, error,
    complete, debug), timestamps, progress bars, and the semantic roles used
    in markup throughout the code base (``metric.value``, ``hook.name``,
    ``path``, ``detail``...).

    :ivar BLUE: Light blue used for notifications.
    :ivar GREEN: Green used for completion markers.
    :ivar YELLOW: Yellow used for warnings.
    :ivar RED: Red used for errors.
    :ivar MED_GREY: Muted grey for details and debug output.
    :ivar BACKGROUND: Base background color for the theme.
    """
    BLUE = '#61AFEF'
    RICH_BLUE = '#4B6BFF'
    CYAN = '#56B6C2'
    GREEN = '#98C379'
    YELLOW = '#E5C07B'
    RED = '#E06C75'
    ORANGE = '#D19A66'
    MED_GREY = '#8A8F98'
    PURPLE = '#663399'
    DARK_PURPLE = '#4B0082'
    LAVENDER = '#B87FD9'
    MAGENTA = '#BE50AE'
    PINK = '#FF69B4'
    BACKGROUND = '#282C34'
    DEFAULT_TEXT = '#F8E8EC'

    def __init__(self):
        super().__init__({
            "default": Style(color=self.DEFAULT_TEXT),
            "text": Style(color=self.DEFAULT_TEXT),
            "header": Style(color=self.PURPLE),

            # Content type styles
            "notification.icon": Style(color=self.PURPLE),
            "notification.content": Style(color=self.BLUE),
            "complete.icon": Style(color=self.GREEN),
            "complete.content": Style(color=self.BLUE),
            "warning.icon": Style(color=self.ORANGE),
            "warning.content": Style(color=self.YELLOW),
            "error.icon": Style(color=self.RED),
            "error.content": Style(color=self.RED),
            "debug.icon": Style(color=self.DARK_PURPLE),
            "debug.content": Style(color=self.MED_GREY),

            # Time display
            "time.numbers": Style(color=self.ORANGE),
            "time.brackets": Style(color=self.DARK_PURPLE),

            # Progress
            "bar.complete": Style(color=self.RICH_BLUE),
            "bar.finished": Style(color=self.GREEN),
            "bar.pulse": Style(color=self.PINK),
            "progress.description": Style(color=self.RICH_BLUE),
            "progress.elapsed": Style(color=self.YELLOW),
            "progress.percentage": Style(color=self.RICH_BLUE),
            "progress.remaining": Style(color=self.PINK),
            "progress.spinner": Style(color=self.PINK),

            # Estimator semantic styles
            "metric.improved": Style(color=self.GREEN, bold=True),
            "metric.degraded": Style(color=self.RED, bold=True),
            "metric.value": Style(color=self.CYAN),
            "metric.label": Style(color=self.MED_GREY),
            "mode": Style(color=self.MAGENTA),
            "success": Style(color=self.GREEN, bold=True),
            "label": Style(color=self.MED_GREY),
            "status": Style(color=self.MED_GREY),
            "detail": Style(color=self.MED_GREY),
            "path": Style(color=self.GREEN),
            "value.count": Style(color=self.CYAN, bold=True),
            "table.header": Style(color=self.MED_GREY, bold=True),
            "hook.name": Style(color=self.GREEN, bold=True),
            "divider": Style(color=self.MED_GREY),
        })
