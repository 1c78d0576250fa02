"""Streak coin accrual and purchase settlement."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from forest.errors import InsufficientFundsError

COINS_PER_HOUR = 10
STREAK_EXPONENT = 1.2
TREE_COST = 200

ALLOW_NEGATIVE = 'allow'
CLAMP_NEGATIVE = 'clamp'
BASELINE_POLICIES = (ALLOW_NEGATIVE, CLAMP_NEGATIVE)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


def streak_coins(total_hours: float) -> int:
    # Future relapse timestamps (clock skew) accrue nothing.
    if total_hours <= 0:
        return 0
    return math.floor(COINS_PER_HOUR * total_hours ** STREAK_EXPONENT)


@dataclass
class Balance:
    baseline: int
    streak: int

    @property
    def total(self) -> int:
        return self.baseline + self.streak

    def to_dict(self) -> dict[str, int]:
        return {
            'coinsAtLastRelapse': self.baseline,
            'streakCoins': self.streak,
            'totalCoins': self.total,
        }


@dataclass
class Settlement:
    before: Balance
    cost: int
    final_balance: int
    new_baseline: int


def available_coins(coins_at_last_relapse: int, last_relapse: datetime, now: datetime) -> Balance:
    streak = streak_coins(hours_between(last_relapse, now))
    return Balance(baseline=int(coins_at_last_relapse), streak=streak)


def settle_purchase(
    coins_at_last_relapse: int,
    last_relapse: datetime,
    now: datetime,
    cost: int = TREE_COST,
    baseline_policy: str = ALLOW_NEGATIVE,
) -> Settlement:
    """Charge ``cost`` against the balance accrued up to ``now``.

    The streak clock (``last_relapse``) is left alone; only the baseline moves,
    so recomputing the balance at the same instant gives ``final_balance``.
    With the ``clamp`` policy a baseline that would go below zero is floored
    at zero instead, which forgives the part of the cost paid from streak coins.
    """
    if cost <= 0:
        raise ValueError('cost must be positive')
    if baseline_policy not in BASELINE_POLICIES:
        raise ValueError(f'Unknown baseline policy: {baseline_policy}')

    balance = available_coins(coins_at_last_relapse, last_relapse, now)
    if balance.total < cost:
        raise InsufficientFundsError()

    final_balance = balance.total - cost
    new_baseline = final_balance - balance.streak
    if baseline_policy == CLAMP_NEGATIVE:
        new_baseline = max(0, new_baseline)

    return Settlement(before=balance, cost=cost, final_balance=final_balance, new_baseline=new_baseline)
