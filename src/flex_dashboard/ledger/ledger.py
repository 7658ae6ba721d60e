# src/flex_dashboard/ledger/ledger.py

from __future__ import annotations

"""
Flex-time ledger.

Two balances and their transition rules:
- flex time: earned minutes, may go negative (a deficit), never clamped
- screen-time debt: overage minutes owed against future rewards, never negative

Everything here is pure. Callers persist the result and surface failures.
"""

from dataclasses import dataclass
from typing import Any

from ..core.ports import SERVER_TIMESTAMP

INITIAL_FLEX_MINUTES = 60
DAILY_REWARD_MINUTES = 30

# Profile document fields.
FLEX_FIELD = "flexTimeMinutes"
DEBT_FIELD = "screenTimeDebtMinutes"
LAST_UPDATED_FIELD = "lastUpdated"
LAST_REWARD_FIELD = "lastReward"
LAST_DEDUCTION_FIELD = "lastDeduction"
# Set once the default routine has been written (or found unnecessary) for this user.
DEFAULTS_SEEDED_FIELD = "defaultsSeeded"

# Field names written by the first (browser) release of the dashboard.
_LEGACY_FLEX_FIELD = "flexTime"
_LEGACY_DEBT_FIELD = "screenTimeDebt"


@dataclass(slots=True, frozen=True)
class Ledger:
    flex_time_minutes: int
    screen_time_debt_minutes: int


@dataclass(slots=True, frozen=True)
class RewardResult:
    new_flex_time: int
    new_debt: int
    debt_cleared: int


@dataclass(slots=True, frozen=True)
class DeductionResult:
    new_flex_time: int
    new_debt: int


def initial_state(flex_minutes: int = INITIAL_FLEX_MINUTES) -> Ledger:
    """Ledger for a user with no profile document yet."""
    return Ledger(flex_time_minutes=int(flex_minutes), screen_time_debt_minutes=0)


def apply_reward(ledger: Ledger, reward_amount: int) -> RewardResult:
    """
    Credit a reward, paying down debt first.

    debt_cleared = min(reward, debt); only the remainder reaches flex time.
    Precondition (checked by the caller): every task is completed and there is at least one.
    """
    debt = max(0, ledger.screen_time_debt_minutes)
    debt_cleared = min(reward_amount, debt)
    net_reward = reward_amount - debt_cleared
    return RewardResult(
        new_flex_time=ledger.flex_time_minutes + net_reward,
        new_debt=debt - debt_cleared,
        debt_cleared=debt_cleared,
    )


def apply_deduction(ledger: Ledger, minutes: int) -> DeductionResult:
    """Charge an overage: flex time drops and debt grows by the same amount."""
    return DeductionResult(
        new_flex_time=ledger.flex_time_minutes - minutes,
        new_debt=ledger.screen_time_debt_minutes + minutes,
    )


def is_reward_eligible(completed: int, total: int) -> bool:
    return total > 0 and completed == total


# ---- profile document mapping ----


def _as_int(raw: Any) -> int:
    if raw is None or isinstance(raw, bool):
        return 0
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0


def ledger_from_profile(data: dict[str, Any]) -> Ledger:
    """Read balances from a profile document; missing or null fields read as 0."""
    flex = data.get(FLEX_FIELD, data.get(_LEGACY_FLEX_FIELD))
    debt = data.get(DEBT_FIELD, data.get(_LEGACY_DEBT_FIELD))
    return Ledger(flex_time_minutes=_as_int(flex), screen_time_debt_minutes=_as_int(debt))


def initial_profile(ledger: Ledger, *, defaults_seeded: bool = False) -> dict[str, Any]:
    return {
        FLEX_FIELD: ledger.flex_time_minutes,
        DEBT_FIELD: ledger.screen_time_debt_minutes,
        DEFAULTS_SEEDED_FIELD: bool(defaults_seeded),
        LAST_UPDATED_FIELD: SERVER_TIMESTAMP,
    }


def profile_defaults_seeded(data: dict[str, Any] | None) -> bool:
    return bool(data and data.get(DEFAULTS_SEEDED_FIELD))


def reward_update(result: RewardResult) -> dict[str, Any]:
    return {
        FLEX_FIELD: result.new_flex_time,
        DEBT_FIELD: result.new_debt,
        LAST_REWARD_FIELD: SERVER_TIMESTAMP,
    }


def deduction_update(result: DeductionResult) -> dict[str, Any]:
    return {
        FLEX_FIELD: result.new_flex_time,
        DEBT_FIELD: result.new_debt,
        LAST_DEDUCTION_FIELD: SERVER_TIMESTAMP,
    }
