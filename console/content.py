import datetime
from dataclasses import dataclass
from typing import Any, Literal

from rich.console import RenderableType
from rich.text import Text

from .config import TimeFormat
from .utils import apply_style

ICONS = {
    "notification": "◆",
    "warning": "▲",
    "error": "✖",
    "complete": "✔",
    "debug": "·",
}

ContentType = Literal[
    "text", "notification", "warning", "error", "complete", "debug", "renderable",
]


@dataclass
class ContentItem:
    """
    A single message handed to the console.

    Text messages are rendered as ``[time] icon content`` where the icon and
    content styles come from the message type (``warning.icon``,
    ``warning.content``...). Rich renderables (tables, panels) are passed
    through untouched.

    :ivar type: The kind of message; selects the icon and content style.
    :ivar content: Markup string or Rich renderable.
    :ivar time: Unix timestamp of the message, or None to omit the time prefix.
    :ivar style: Optional style override for plain text messages.
    """
    type: ContentType = "text"
    content: Any = ""
    time: float | None = None
    style: str | None = None

    @property
    def is_renderable(self) -> bool:
        return self.type == "renderable"

    def render(self, time_format: TimeFormat, tz_info=None) -> str | RenderableType:
        if self.is_renderable:
            return self.content

        parts = []
        if self.time is not None:
            stamp = datetime.datetime.fromtimestamp(self.time, tz=tz_info).strftime(time_format.value)
            parts.append(
                apply_style("[", "time.brackets")
                + apply_style(stamp, "time.numbers")
                + apply_style("]", "time.brackets")
            )

        icon = ICONS.get(self.type)
        if icon is not None:
            parts.append(apply_style(icon, f"{self.type}.icon"))
            parts.append(apply_style(str(self.content), f"{self.type}.content"))
        elif self.style:
            parts.append(apply_style(str(self.content), self.style))
        else:
            parts.append(str(self.content))

        return " ".join(parts)

    def plain(self, time_format: TimeFormat, tz_info=None) -> str:
        """Render to an unstyled string (used by tests and log files)."""
        rendered = self.render(time_format, tz_info)
        if isinstance(rendered, str):
            return Text.from_markup(rendered).plain
        return str(rendered)
