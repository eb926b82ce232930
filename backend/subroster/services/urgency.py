from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum


class UrgencyLevel(str, Enum):
    urgent = "urgent"
    warning = "warning"
    normal = "normal"
    no_deadline = "no_deadline"
    replaced = "replaced"


URGENCY_PRIORITY: dict[UrgencyLevel, int] = {
    UrgencyLevel.urgent: 0,
    UrgencyLevel.warning: 1,
    UrgencyLevel.normal: 2,
    UrgencyLevel.no_deadline: 3,
    UrgencyLevel.replaced: 4,
}


@dataclass(frozen=True)
class Urgency:
    level: UrgencyLevel
    days_remaining: int | None = None
    deadline: date | None = None

    @property
    def sort_value(self) -> int:
        """Lower is more urgent."""
        base = URGENCY_PRIORITY[self.level] * 1000
        if self.days_remaining is None:
            return base + 999
        return base + self.days_remaining


def replacement_urgency(
    absence_start: date,
    replacement_after_days: Decimal | float | int | None,
    *,
    replaced: bool = False,
    today: date | None = None,
) -> Urgency:
    """How pressing it is to staff an absence at a school with the given replacement delay."""
    if replaced:
        return Urgency(UrgencyLevel.replaced)
    if replacement_after_days is None:
        return Urgency(UrgencyLevel.no_deadline)
    try:
        delay = float(replacement_after_days)
    except (TypeError, ValueError):
        return Urgency(UrgencyLevel.no_deadline)
    if math.isnan(delay):
        return Urgency(UrgencyLevel.no_deadline)

    deadline = absence_start + timedelta(days=math.ceil(delay))
    days_remaining = (deadline - (today or date.today())).days
    if days_remaining < 0:
        level = UrgencyLevel.urgent
    elif days_remaining <= 1:
        level = UrgencyLevel.warning
    else:
        level = UrgencyLevel.normal
    return Urgency(level, days_remaining, deadline)


def overall_urgency(items: Iterable[Urgency]) -> Urgency:
    """The worst urgency; at equal level the one with fewer days remaining wins."""
    worst: Urgency | None = None
    for item in items:
        if worst is None:
            worst = item
            continue
        if URGENCY_PRIORITY[item.level] < URGENCY_PRIORITY[worst.level]:
            worst = item
        elif (
            item.level == worst.level
            and item.days_remaining is not None
            and (worst.days_remaining is None or item.days_remaining < worst.days_remaining)
        ):
            worst = item
    return worst or Urgency(UrgencyLevel.no_deadline)
