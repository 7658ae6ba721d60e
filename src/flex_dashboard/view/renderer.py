# src/flex_dashboard/view/renderer.py

from __future__ import annotations

"""
View renderer.

render(tasks, ledger) is a pure function: same input, same ViewModel.
Presenters can compare consecutive view-models to skip redundant redraws.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from ..ledger.ledger import Ledger
from ..tasks.task_models import Task

EMPTY_PLACEHOLDER = "No tasks currently assigned. Add one below!"
NO_DEADLINE = "No deadline"


class Color(StrEnum):
    GREEN = "neon-green"
    RED = "neon-red"
    BLUE = "neon-blue"


@dataclass(slots=True, frozen=True)
class TaskRow:
    id: str
    name: str
    time: str
    completed: bool

    @property
    def time_label(self) -> str:
        return self.time or NO_DEADLINE


@dataclass(slots=True, frozen=True)
class ViewModel:
    rows: tuple[TaskRow, ...]
    placeholder: str | None

    completed_count: int
    total_count: int
    progress_percent: int
    progress_label: str
    progress_color: Color

    flex_label: str
    flex_color: Color
    debt_label: str
    debt_color: Color

    @property
    def all_complete(self) -> bool:
        return self.total_count > 0 and self.completed_count == self.total_count


def _percent(completed: int, total: int) -> int:
    if total == 0:
        return 0
    # Half-up, not banker's rounding: 1/8 shows as 13%.
    return int(math.floor(completed / total * 100 + 0.5))


def render(tasks: Sequence[Task], ledger: Ledger) -> ViewModel:
    rows = tuple(TaskRow(id=t.id, name=t.name, time=t.time, completed=t.completed) for t in tasks)
    total = len(rows)
    completed = sum(1 for r in rows if r.completed)
    all_done = total > 0 and completed == total

    flex = ledger.flex_time_minutes
    debt = ledger.screen_time_debt_minutes

    return ViewModel(
        rows=rows,
        placeholder=EMPTY_PLACEHOLDER if total == 0 else None,
        completed_count=completed,
        total_count=total,
        progress_percent=_percent(completed, total),
        progress_label=f"{completed}/{total} Tasks Completed",
        progress_color=Color.BLUE if all_done else Color.GREEN,
        flex_label=f"{flex} min",
        flex_color=Color.GREEN if flex >= 0 else Color.RED,
        debt_label=f"{debt} min",
        debt_color=Color.RED if debt > 0 else Color.GREEN,
    )
