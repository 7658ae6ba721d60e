# tests/test_renderer.py

from __future__ import annotations

import pytest

from flex_dashboard.ledger.ledger import Ledger
from flex_dashboard.tasks.task_models import Task
from flex_dashboard.view.renderer import EMPTY_PLACEHOLDER, Color, render
from flex_dashboard.view.text import format_view, progress_bar


def _tasks(n: int, done: int) -> list[Task]:
    return [
        Task(id=str(i), name=f"task {i}", time="7:00 AM" if i % 2 else "", completed=i < done, created_at=float(i))
        for i in range(n)
    ]


def test_render_is_deterministic() -> None:
    tasks = _tasks(3, 1)
    assert render(tasks, Ledger(60, 0)) == render(list(tasks), Ledger(60, 0))


@pytest.mark.parametrize(
    ("n", "done", "percent"),
    [(8, 1, 13), (3, 1, 33), (3, 2, 67), (2, 1, 50), (4, 4, 100), (5, 0, 0)],
)
def test_progress_percent_rounds_half_up(n: int, done: int, percent: int) -> None:
    assert render(_tasks(n, done), Ledger(0, 0)).progress_percent == percent


def test_empty_list_shows_placeholder() -> None:
    view = render([], Ledger(60, 0))

    assert view.rows == ()
    assert view.placeholder == EMPTY_PLACEHOLDER
    assert view.progress_percent == 0
    assert view.progress_label == "0/0 Tasks Completed"
    assert view.progress_color is Color.GREEN
    assert not view.all_complete


def test_all_complete_turns_progress_blue() -> None:
    view = render(_tasks(2, 2), Ledger(60, 0))
    assert view.all_complete
    assert view.progress_color is Color.BLUE
    assert view.placeholder is None


def test_balance_colors() -> None:
    view = render([], Ledger(-5, 12))
    assert view.flex_label == "-5 min"
    assert view.flex_color is Color.RED
    assert view.debt_label == "12 min"
    assert view.debt_color is Color.RED

    view = render([], Ledger(0, 0))
    assert view.flex_color is Color.GREEN
    assert view.debt_color is Color.GREEN


def test_rows_keep_order_and_default_time_label() -> None:
    view = render(_tasks(2, 0), Ledger(0, 0))
    assert [r.id for r in view.rows] == ["0", "1"]
    assert view.rows[0].time_label == "No deadline"
    assert view.rows[1].time_label == "7:00 AM"


def test_format_view_plain_text() -> None:
    text = format_view(render(_tasks(2, 1), Ledger(30, 5)))

    assert "FLEX TIME: 30 min | DEBT: 5 min" in text
    assert " 1. [x] task 0  (No deadline)" in text
    assert " 2. [ ] task 1  (7:00 AM)" in text
    assert "50%  1/2 Tasks Completed" in text
    assert "\033[" not in text


def test_progress_bar_bounds() -> None:
    assert progress_bar(0, width=4) == "[----]"
    assert progress_bar(100, width=4) == "[####]"
    assert progress_bar(50, width=4) == "[##--]"
