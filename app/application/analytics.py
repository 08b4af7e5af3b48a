"""
Subscription spend analytics - pure read-layer over record snapshots

No storage access, no clock: every function takes the records and, where
dates matter, an explicit "today". Dates are compared at day granularity
(UTC calendar date of the stored instant).

Only chargeable subscriptions (active, trial) count toward totals.
Reminders (overdue / due soon) consider active subscriptions only.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable, Protocol, Sequence

from app.domain.subscription import DEFAULT_CATEGORY, BillingCycle, parse_billing_cycle
from app.domain.subscription_status import SubscriptionStatus, is_chargeable, parse_status

DEFAULT_TOP_LIMIT = 10
DEFAULT_DUE_SOON_DAYS = 30
DEFAULT_URGENT_DAYS = 7
DEFAULT_UPCOMING_DAYS = 7

_MONTHS_PER_CYCLE = {
    BillingCycle.MONTHLY: 1,
    BillingCycle.QUARTERLY: 3,
    BillingCycle.YEARLY: 12,
}


class ChargeableRecord(Protocol):
    cost: float
    billing_cycle: Any
    next_payment_date: Any
    status: Any
    category: str | None


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start, end] window; a None bound is open."""
    start: date | datetime | None = None
    end: date | datetime | None = None

    def contains(self, value: date | datetime) -> bool:
        day = as_day(value)
        if self.start is not None and day < as_day(self.start):
            return False
        if self.end is not None and day > as_day(self.end):
            return False
        return True


@dataclass(frozen=True)
class Reminder:
    record: Any
    days_until: int
    urgent: bool = False

    @property
    def days_overdue(self) -> int:
        return max(-self.days_until, 0)


@dataclass(frozen=True)
class ReminderBoard:
    overdue: list[Reminder] = field(default_factory=list)
    due_soon: list[Reminder] = field(default_factory=list)

    @property
    def urgent(self) -> list[Reminder]:
        return [r for r in self.due_soon if r.urgent]


@dataclass(frozen=True)
class SpendSummary:
    monthly_total: float
    yearly_total: float
    average_monthly: float
    chargeable_count: int
    upcoming_count: int


# ============================================================================
# Helpers
# ============================================================================


def as_day(value: date | datetime) -> date:
    """Calendar date of a date or instant; aware instants are taken in UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def _instant_key(value: date | datetime) -> datetime:
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until(payment_date: date | datetime, today: date | datetime) -> int:
    """Whole days from today to the payment date; negative when overdue."""
    return (as_day(payment_date) - as_day(today)).days


def _cycle(value: Any) -> BillingCycle:
    cycle = parse_billing_cycle(value)
    if cycle is None:
        raise ValueError(f"Unknown billing cycle: {value!r}")
    return cycle


def _is_active(record: ChargeableRecord) -> bool:
    return parse_status(record.status) == SubscriptionStatus.ACTIVE


def _by_payment_date(records: Iterable[ChargeableRecord]) -> list:
    return sorted(records, key=lambda r: _instant_key(r.next_payment_date))


# ============================================================================
# Normalization
# ============================================================================


def monthly_equivalent(cost: float, billing_cycle: BillingCycle | str) -> float:
    """
    Cost normalized to one month

    Example:
        >>> monthly_equivalent(120, "yearly")
        10.0
    """
    return cost / _MONTHS_PER_CYCLE[_cycle(billing_cycle)]


def yearly_equivalent(cost: float, billing_cycle: BillingCycle | str) -> float:
    """Cost normalized to one year (12, 4 or 1 payments)."""
    return cost * (12 / _MONTHS_PER_CYCLE[_cycle(billing_cycle)])


def chargeable(records: Iterable[ChargeableRecord]) -> list:
    return [r for r in records if is_chargeable(r.status)]


# ============================================================================
# Totals and breakdowns
# ============================================================================


def monthly_total(records: Iterable[ChargeableRecord]) -> float:
    return sum((monthly_equivalent(r.cost, r.billing_cycle) for r in chargeable(records)), 0.0)


def yearly_total(records: Iterable[ChargeableRecord]) -> float:
    return sum((yearly_equivalent(r.cost, r.billing_cycle) for r in chargeable(records)), 0.0)


def category_breakdown(records: Iterable[ChargeableRecord]) -> dict[str, float]:
    """Monthly-equivalent spend per category; a missing category counts as "other"."""
    breakdown: dict[str, float] = {}
    for r in chargeable(records):
        category = (r.category or "").strip() or DEFAULT_CATEGORY
        breakdown[category] = breakdown.get(category, 0.0) + monthly_equivalent(r.cost, r.billing_cycle)
    return breakdown


def top_by_monthly_cost(records: Iterable[ChargeableRecord], n: int = DEFAULT_TOP_LIMIT) -> list:
    """Most expensive chargeable records by monthly cost; ties keep input order."""
    if n <= 0:
        return []
    ranked = sorted(
        chargeable(records),
        key=lambda r: monthly_equivalent(r.cost, r.billing_cycle),
        reverse=True,
    )
    return ranked[:n]


# ============================================================================
# Scheduling
# ============================================================================


def date_range_filter(records: Iterable[ChargeableRecord], date_range: DateRange | None) -> list:
    """Restrict records to a payment-date window; None or an open range keeps everything."""
    if date_range is None:
        return list(records)
    return [r for r in records if date_range.contains(r.next_payment_date)]


def due_within(
    records: Iterable[ChargeableRecord],
    start: date | datetime,
    end: date | datetime,
) -> list:
    """Chargeable records with a payment date in [start, end], inclusive."""
    window = DateRange(start, end)
    return [r for r in chargeable(records) if window.contains(r.next_payment_date)]


def overdue(records: Iterable[ChargeableRecord], today: date | datetime) -> list:
    """Active records whose payment date has passed, oldest first."""
    return _by_payment_date(
        r for r in chargeable(records)
        if _is_active(r) and days_until(r.next_payment_date, today) < 0
    )


def due_soon(
    records: Iterable[ChargeableRecord],
    today: date | datetime,
    horizon_days: int = DEFAULT_DUE_SOON_DAYS,
) -> list:
    """Active records due between today and today + horizon_days, soonest first."""
    return _by_payment_date(
        r for r in chargeable(records)
        if _is_active(r) and 0 <= days_until(r.next_payment_date, today) <= horizon_days
    )


def upcoming_within(
    records: Iterable[ChargeableRecord],
    today: date | datetime,
    days: int = DEFAULT_UPCOMING_DAYS,
) -> int:
    """Number of chargeable payments falling in the next `days` days (today included)."""
    start = as_day(today)
    return len(due_within(records, start, start + timedelta(days=days)))


def build_reminders(
    records: Sequence[ChargeableRecord],
    today: date | datetime,
    horizon_days: int = DEFAULT_DUE_SOON_DAYS,
    urgent_within_days: int = DEFAULT_URGENT_DAYS,
) -> ReminderBoard:
    """Overdue and due-soon reminders; due-soon items within urgent_within_days are flagged urgent."""
    late = [
        Reminder(record=r, days_until=days_until(r.next_payment_date, today))
        for r in overdue(records, today)
    ]
    soon = []
    for r in due_soon(records, today, horizon_days):
        days = days_until(r.next_payment_date, today)
        soon.append(Reminder(record=r, days_until=days, urgent=days <= urgent_within_days))
    return ReminderBoard(overdue=late, due_soon=soon)


def summarize(
    records: Sequence[ChargeableRecord],
    today: date | datetime,
    upcoming_days: int = DEFAULT_UPCOMING_DAYS,
) -> SpendSummary:
    """Dashboard numbers in one pass over the snapshot."""
    yearly = yearly_total(records)
    return SpendSummary(
        monthly_total=monthly_total(records),
        yearly_total=yearly,
        average_monthly=yearly / 12,
        chargeable_count=len(chargeable(records)),
        upcoming_count=upcoming_within(records, today, upcoming_days),
    )
