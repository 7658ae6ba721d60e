# src/flex_dashboard/view/text.py

from __future__ import annotations

from ..notify.notifier import Popup
from .renderer import Color, ViewModel

_ANSI = {
    Color.GREEN: "\033[92m",
    Color.RED: "\033[91m",
    Color.BLUE: "\033[94m",
}
_RESET = "\033[0m"

BAR_WIDTH = 20


def _paint(text: str, color: Color, enabled: bool) -> str:
    if not enabled:
        return text
    return f"{_ANSI[color]}{text}{_RESET}"


def progress_bar(percent: int, width: int = BAR_WIDTH) -> str:
    filled = max(0, min(width, round(percent * width / 100)))
    return "[" + "#" * filled + "-" * (width - filled) + "]"


def format_view(view: ViewModel, *, color: bool = False) -> str:
    lines = [
        "FLEX TIME: "
        + _paint(view.flex_label, view.flex_color, color)
        + " | DEBT: "
        + _paint(view.debt_label, view.debt_color, color),
    ]

    if view.placeholder is not None:
        lines.append(f"  {view.placeholder}")
    for i, row in enumerate(view.rows, start=1):
        mark = "x" if row.completed else " "
        lines.append(f"  {i:>2}. [{mark}] {row.name}  ({row.time_label})")

    bar = _paint(progress_bar(view.progress_percent), view.progress_color, color)
    lines.append(f"  {bar} {view.progress_percent}%  {view.progress_label}")
    return "\n".join(lines)


def format_popup(popup: Popup, *, color: bool = False) -> str:
    return _paint(f"[{popup.title}]", popup.color, color) + f" {popup.body}"
