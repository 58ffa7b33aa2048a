from .config import ConsoleConfig, ConsoleMode, ColorSystem, TimeFormat
from .themes import EstimatorTheme
from .utils import apply_style
from .content import ContentItem
from .estconsole import EstimatorConsole

__all__ = [
    "EstimatorConsole",
    "ConsoleConfig",
    "ConsoleMode",
    "ColorSystem",
    "TimeFormat",
    "EstimatorTheme",
    "ContentItem",
    "apply_style",
]
