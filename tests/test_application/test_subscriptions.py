"""Tests for the subscription lifecycle service: create, update, delete, get, list."""
import pytest
from datetime import datetime, timezone

from app.application.subscriptions import OperationResult, SubscriptionService
from app.domain.subscription import BillingCycle, SubscriptionErrorCode, SubscriptionInput
from app.domain.subscription_status import SubscriptionStatus
from app.infrastructure.db.models import SubscriptionModel
from app.infrastructure.db.repository import StorageError

NETFLIX = {
    "name": "Netflix",
    "cost": 15.99,
    "billingCycle": "monthly",
    "nextPaymentDate": "2024-01-16T00:00:00.000Z",
    "category": "streaming",
}


def _create(service, **overrides) -> OperationResult:
    data = dict(NETFLIX)
    data.update(overrides)
    result = service.create(data)
    assert result.ok, result.error
    return result


class BrokenRepository:
    """Every call fails the way a lost database connection would."""

    def _fail(self, *args, **kwargs):
        raise StorageError("connection lost")

    insert = find_by_id = update = delete = list = _fail


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class TestCreate:
    def test_create_netflix(self, service, clock):
        result = _create(service)
        record = result.record
        assert record.id > 0
        assert record.name == "Netflix"
        assert record.cost == 15.99
        assert record.billing_cycle is BillingCycle.MONTHLY
        assert record.status is SubscriptionStatus.ACTIVE
        assert record.next_payment_date == datetime(2024, 1, 16, tzinfo=timezone.utc)
        assert record.created_at == clock.now
        assert record.updated_at == clock.now

    def test_ids_are_unique(self, service):
        first = _create(service).record
        second = _create(service, name="Spotify").record
        assert first.id != second.id

    def test_validation_error_returned_not_raised(self, service):
        result = service.create({**NETFLIX, "cost": -5})
        assert not result.ok
        assert result.code == SubscriptionErrorCode.INVALID_COST
        assert result.record is None
        assert service.list().records == ()

    def test_accepts_subscription_input(self, service):
        result = service.create(SubscriptionInput.from_mapping(NETFLIX))
        assert result.ok

    def test_storage_failure_is_internal_error(self, clock):
        service = SubscriptionService(BrokenRepository(), clock=clock)
        result = service.create(NETFLIX)
        assert result.code == SubscriptionErrorCode.INTERNAL_ERROR
        assert result.error_body() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


class TestUpdate:
    def test_partial_update_keeps_other_fields(self, service):
        created = _create(service).record
        result = service.update(created.id, {"cost": "17.99"})
        assert result.ok
        assert result.record.cost == 17.99
        assert result.record.name == "Netflix"
        assert result.record.category == "streaming"

    def test_updated_at_refreshed(self, service, clock):
        created = _create(service).record
        later = clock.advance(hours=2)
        updated = service.update(created.id, {"name": "Netflix Premium"}).record
        assert updated.updated_at == later
        assert updated.created_at == created.created_at

    def test_null_clears_category(self, service):
        created = _create(service).record
        updated = service.update(created.id, {"category": None}).record
        assert updated.category is None

    def test_cancelled_cannot_reactivate(self, service):
        created = _create(service, status="cancelled").record
        result = service.update(created.id, {"status": "active"})
        assert result.code == SubscriptionErrorCode.INVALID_STATUS_TRANSITION
        assert result.allowed == (SubscriptionStatus.EXPIRED,)
        assert result.error_body()["allowed"] == ["expired"]
        assert service.get(created.id).record.status is SubscriptionStatus.CANCELLED

    def test_cancelled_to_expired(self, service):
        created = _create(service, status="cancelled").record
        result = service.update(created.id, {"status": "expired"})
        assert result.ok
        assert result.record.status is SubscriptionStatus.EXPIRED

    def test_rejected_transition_writes_nothing(self, service):
        created = _create(service, status="expired").record
        result = service.update(created.id, {"status": "paused", "name": "Renamed"})
        assert not result.ok
        assert service.get(created.id).record.name == "Netflix"

    def test_trial_lifecycle(self, service):
        created = _create(service, status="trial").record
        assert service.update(created.id, {"status": "active"}).ok
        assert service.update(created.id, {"status": "paused"}).ok
        assert service.update(created.id, {"status": "cancelled"}).ok
        assert service.update(created.id, {"status": "trial"}).code == \
            SubscriptionErrorCode.INVALID_STATUS_TRANSITION

    @pytest.mark.parametrize("bad_id", ["abc", "0", "-1", "1.5", "", None])
    def test_invalid_id(self, service, bad_id):
        assert service.update(bad_id, {"name": "x"}).code == SubscriptionErrorCode.INVALID_ID

    def test_not_found(self, service):
        assert service.update(999, {"name": "x"}).code == SubscriptionErrorCode.NOT_FOUND

    def test_string_id_accepted(self, service):
        created = _create(service).record
        assert service.update(str(created.id), {"cost": 20}).ok


# ---------------------------------------------------------------------------
# Delete / get
# ---------------------------------------------------------------------------


class TestDeleteAndGet:
    def test_delete_returns_snapshot(self, service):
        created = _create(service).record
        result = service.delete(created.id)
        assert result.ok
        assert result.record == created
        assert service.get(created.id).code == SubscriptionErrorCode.NOT_FOUND

    def test_delete_missing(self, service):
        result = service.delete(12345)
        assert result.code == SubscriptionErrorCode.NOT_FOUND
        assert service.get(12345).record is None

    def test_delete_invalid_id(self, service):
        assert service.delete("x").code == SubscriptionErrorCode.INVALID_ID

    def test_get_existing(self, service):
        created = _create(service).record
        assert service.get(created.id).record == created

    def test_get_storage_failure(self, clock):
        service = SubscriptionService(BrokenRepository(), clock=clock)
        assert service.get(1).code == SubscriptionErrorCode.INTERNAL_ERROR

    def test_corrupt_row_is_internal_error(self, service, db_session):
        created = _create(service).record
        row = db_session.get(SubscriptionModel, created.id)
        row.status = "archived"
        db_session.commit()

        assert service.get(created.id).code == SubscriptionErrorCode.INTERNAL_ERROR
        assert service.update(created.id, {"cost": 1}).code == SubscriptionErrorCode.INTERNAL_ERROR
        assert service.list().code == SubscriptionErrorCode.INTERNAL_ERROR

    def test_create_with_out_of_range_input(self, service):
        assert service.create({**NETFLIX, "cost": 10**400}).code == SubscriptionErrorCode.INVALID_COST
        result = service.create({**NETFLIX, "nextPaymentDate": "9999-12-31T23:00:00-05:00"})
        assert result.code == SubscriptionErrorCode.INVALID_NEXT_PAYMENT_DATE


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------


@pytest.fixture
def catalog(service):
    _create(service, name="Netflix", category="streaming")
    _create(service, name="Spotify", category="streaming", description="Music service")
    _create(service, name="AWS Cloud", category="cloud", billingCycle="quarterly", status="paused")
    _create(service, name="Domain", category="domain", billingCycle="yearly", status="trial")
    return service


class TestList:
    def test_ordered_by_id(self, catalog):
        names = [r.name for r in catalog.list().records]
        assert names == ["Netflix", "Spotify", "AWS Cloud", "Domain"]

    def test_search_name_and_description(self, catalog):
        assert [r.name for r in catalog.list(search="net").records] == ["Netflix"]
        assert [r.name for r in catalog.list(search="MUSIC").records] == ["Spotify"]

    def test_filters(self, catalog):
        assert [r.name for r in catalog.list(status="Paused").records] == ["AWS Cloud"]
        assert [r.name for r in catalog.list(category="streaming").records] == ["Netflix", "Spotify"]
        assert [r.name for r in catalog.list(billing_cycle="YEARLY").records] == ["Domain"]

    def test_pagination(self, catalog):
        page = catalog.list(limit=2, offset=1).records
        assert [r.name for r in page] == ["Spotify", "AWS Cloud"]

    def test_limit_defaults_and_cap(self, service):
        for i in range(105):
            _create(service, name=f"Sub {i}")
        assert len(service.list().records) == 50
        assert len(service.list(limit=0).records) == 50
        assert len(service.list(limit=500).records) == 100

    def test_invalid_status_filter(self, catalog):
        assert catalog.list(status="archived").code == SubscriptionErrorCode.INVALID_STATUS

    def test_invalid_billing_cycle_filter(self, catalog):
        assert catalog.list(billing_cycle="weekly").code == SubscriptionErrorCode.INVALID_BILLING_CYCLE

    def test_snapshot_is_unpaginated(self, catalog):
        assert len(catalog.snapshot().records) == 4

    def test_list_storage_failure(self, clock):
        service = SubscriptionService(BrokenRepository(), clock=clock)
        assert service.list().code == SubscriptionErrorCode.INTERNAL_ERROR
        assert service.snapshot().code == SubscriptionErrorCode.INTERNAL_ERROR
