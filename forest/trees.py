"""Tree records and timestamp helpers shared by the store and the views."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from forest.errors import ValidationError


class TreeStatus(str, Enum):
    GROWING = 'growing'
    MATURED = 'matured'


def utcnow() -> datetime:
    # Naive UTC, matching what DATETIME columns hand back.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f'Unreadable timestamp: {value!r}') from e
    else:
        raise ValueError(f'Unreadable timestamp: {value!r}')
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def isoformat(dt: datetime) -> str:
    return dt.isoformat(timespec='milliseconds') + 'Z'


def parse_purchase(body) -> tuple[str, float]:
    """Pull ``treeId`` and ``growthHours`` out of a purchase request body."""
    if not isinstance(body, dict):
        raise ValidationError()
    tree_type = body.get('treeId')
    growth_hours = body.get('growthHours')

    if not isinstance(tree_type, str) or not tree_type.strip():
        raise ValidationError()
    if isinstance(growth_hours, bool) or not isinstance(growth_hours, (int, float)):
        raise ValidationError()
    try:
        growth_hours = float(growth_hours)
    except OverflowError as e:
        raise ValidationError('Growth duration is too long.') from e
    if not math.isfinite(growth_hours) or growth_hours <= 0:
        raise ValidationError('Growth duration must be a positive number of hours.')
    return tree_type.strip(), growth_hours


@dataclass
class Tree:
    id: int | None
    tree_type: str
    status: TreeStatus
    purchase_date: datetime
    mature_date: datetime

    @classmethod
    def planted(cls, tree_type: str, growth_hours: float, now: datetime) -> 'Tree':
        try:
            mature_date = now + timedelta(hours=growth_hours)
        except OverflowError as e:
            raise ValidationError('Growth duration is too long.') from e
        return cls(
            id=None,
            tree_type=tree_type,
            status=TreeStatus.GROWING,
            purchase_date=now,
            mature_date=mature_date,
        )

    @classmethod
    def from_row(cls, row: dict) -> 'Tree':
        return cls(
            id=row['id'],
            tree_type=row['treeType'],
            status=TreeStatus(row['status']),
            purchase_date=as_datetime(row['purchaseDate']),
            mature_date=as_datetime(row['matureDate']),
        )

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'treeType': self.tree_type,
            'status': self.status.value,
            'purchaseDate': isoformat(self.purchase_date),
            'matureDate': isoformat(self.mature_date),
        }
