"""
Seed sample subscriptions.
Run:  python seed_test_data.py
"""
import logging
from datetime import datetime, timedelta, timezone

from app.application.subscriptions import SubscriptionService
from app.infrastructure.db.repository import SubscriptionRepository
from app.infrastructure.db.session import get_session_factory

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def in_days(now: datetime, days: int) -> str:
    return (now + timedelta(days=days)).isoformat()


def sample_subscriptions(now: datetime) -> list[dict]:
    return [
        {
            "name": "Netflix", "cost": 15.99, "billingCycle": "monthly",
            "nextPaymentDate": in_days(now, 15), "category": "streaming",
            "description": "Premium streaming service for movies and TV shows",
        },
        {
            "name": "Spotify", "cost": 9.99, "billingCycle": "monthly",
            "nextPaymentDate": in_days(now, 20), "category": "streaming",
            "description": "Music streaming service with premium features",
        },
        {
            "name": "AWS Cloud", "cost": 25.00, "billingCycle": "monthly",
            "nextPaymentDate": in_days(now, 10), "category": "cloud",
            "description": "Cloud computing and storage services",
        },
        {
            "name": "Domain Registration", "cost": 12.00, "billingCycle": "yearly",
            "nextPaymentDate": in_days(now, 180), "category": "domain",
            "description": "Annual domain name registration and renewal",
        },
        {
            "name": "Adobe Creative Cloud", "cost": 52.99, "billingCycle": "monthly",
            "nextPaymentDate": in_days(now, 5), "category": "software",
            "description": "Suite of creative applications",
        },
        {
            "name": "GitHub Pro", "cost": 4.00, "billingCycle": "monthly",
            "nextPaymentDate": in_days(now, 25), "category": "software",
            "description": "Professional developer tools and advanced repository features",
        },
    ]


def main() -> int:
    db = get_session_factory()()
    try:
        service = SubscriptionService(SubscriptionRepository(db))
        now = datetime.now(timezone.utc)
        failed = 0
        for data in sample_subscriptions(now):
            result = service.create(data)
            if not result.ok:
                failed += 1
                logger.error("Seed %s failed: %s (%s)", data["name"], result.error, result.code.value)
        logger.info("Seeded %d subscription(s)", len(sample_subscriptions(now)) - failed)
        return 1 if failed else 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
