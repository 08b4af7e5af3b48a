"""
FastAPI dependencies (DB session, services)
"""
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.application.subscriptions import SubscriptionService
from app.infrastructure.db.repository import SubscriptionRepository
from app.infrastructure.db.session import get_db as _get_db
from app.utils.money import CurrencyFormatter


# Re-export get_db for routers
get_db = _get_db


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    """
    Subscription service bound to the request session

    Usage:
        @router.get("/")
        def list_subscriptions(service: SubscriptionService = Depends(get_subscription_service)):
            ...
    """
    return SubscriptionService(SubscriptionRepository(db))


def get_currency_formatter(request: Request) -> CurrencyFormatter:
    """Formatter created at application start (see create_app)."""
    return request.app.state.currency_formatter
