"""
Analytics API endpoints - spend totals, category breakdown, top list, reminders
"""
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.api.deps import get_currency_formatter, get_subscription_service
from app.api.errors import bad_request, error_response
from app.api.v1.subscriptions import SubscriptionResponse
from app.application import analytics
from app.application.subscriptions import SubscriptionService
from app.config import get_settings
from app.utils.money import CurrencyFormatter, is_supported_currency


router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])


# === Response models ===

class SummaryResponse(BaseModel):
    currency: str
    monthly_total: float
    yearly_total: float
    average_monthly: float
    chargeable_count: int
    upcoming_count: int
    monthly_total_formatted: str
    yearly_total_formatted: str
    average_monthly_formatted: str


class CategorySpend(BaseModel):
    category: str
    monthly_cost: float
    share: float  # 0..1 of the monthly total


class TopSubscription(BaseModel):
    subscription: SubscriptionResponse
    monthly_cost: float


class ReminderItem(BaseModel):
    subscription: SubscriptionResponse
    days_until: int
    days_overdue: int
    urgent: bool


class RemindersResponse(BaseModel):
    overdue: list[ReminderItem]
    due_soon: list[ReminderItem]
    urgent_count: int


# === Helpers ===

def _load(
    service: SubscriptionService,
    date_from: date | None,
    date_to: date | None,
):
    """Snapshot of all subscriptions, optionally narrowed to a payment-date window."""
    result = service.snapshot()
    if not result.ok:
        return result, []
    return result, analytics.date_range_filter(
        result.records, analytics.DateRange(date_from, date_to)
    )


def _today(today: date | None) -> date:
    return today or datetime.now(timezone.utc).date()


def _reminder_item(reminder: analytics.Reminder) -> ReminderItem:
    return ReminderItem(
        subscription=SubscriptionResponse.from_record(reminder.record),
        days_until=reminder.days_until,
        days_overdue=reminder.days_overdue,
        urgent=reminder.urgent,
    )


# === Endpoints ===

@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    currency: str | None = None,
    today: date | None = None,
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    service: SubscriptionService = Depends(get_subscription_service),
    formatter: CurrencyFormatter = Depends(get_currency_formatter),
):
    """Monthly and yearly totals over chargeable subscriptions"""
    settings = get_settings()
    currency = (currency or settings.DEFAULT_CURRENCY).upper()
    if not is_supported_currency(currency):
        return bad_request(f"Unsupported currency: {currency}", "INVALID_CURRENCY")

    result, records = _load(service, date_from, date_to)
    if not result.ok:
        return error_response(result)

    summary = analytics.summarize(records, _today(today), settings.UPCOMING_WITHIN_DAYS)
    return SummaryResponse(
        currency=currency,
        monthly_total=summary.monthly_total,
        yearly_total=summary.yearly_total,
        average_monthly=summary.average_monthly,
        chargeable_count=summary.chargeable_count,
        upcoming_count=summary.upcoming_count,
        monthly_total_formatted=formatter.format(summary.monthly_total, currency),
        yearly_total_formatted=formatter.format(summary.yearly_total, currency),
        average_monthly_formatted=formatter.format(summary.average_monthly, currency),
    )


@router.get("/categories", response_model=list[CategorySpend])
def get_category_breakdown(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Monthly-equivalent spend per category, largest first"""
    result, records = _load(service, date_from, date_to)
    if not result.ok:
        return error_response(result)

    breakdown = analytics.category_breakdown(records)
    total = sum(breakdown.values())
    return [
        CategorySpend(
            category=category,
            monthly_cost=cost,
            share=cost / total if total else 0.0,
        )
        for category, cost in sorted(breakdown.items(), key=lambda item: item[1], reverse=True)
    ]


@router.get("/top", response_model=list[TopSubscription])
def get_top_subscriptions(
    n: int | None = Query(None, ge=1, le=100),
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    service: SubscriptionService = Depends(get_subscription_service),
):
    result, records = _load(service, date_from, date_to)
    if not result.ok:
        return error_response(result)

    limit = n or get_settings().TOP_SUBSCRIPTIONS_LIMIT
    return [
        TopSubscription(
            subscription=SubscriptionResponse.from_record(r),
            monthly_cost=analytics.monthly_equivalent(r.cost, r.billing_cycle),
        )
        for r in analytics.top_by_monthly_cost(records, limit)
    ]


@router.get("/reminders", response_model=RemindersResponse)
def get_reminders(
    today: date | None = None,
    horizon_days: int | None = Query(None, ge=0, le=366),
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Overdue and upcoming payments"""
    settings = get_settings()
    result, records = _load(service, date_from, date_to)
    if not result.ok:
        return error_response(result)

    board = analytics.build_reminders(
        records,
        _today(today),
        horizon_days=settings.DUE_SOON_HORIZON_DAYS if horizon_days is None else horizon_days,
        urgent_within_days=settings.URGENT_WITHIN_DAYS,
    )
    return RemindersResponse(
        overdue=[_reminder_item(r) for r in board.overdue],
        due_soon=[_reminder_item(r) for r in board.due_soon],
        urgent_count=len(board.urgent),
    )
