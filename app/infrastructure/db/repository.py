"""
Subscription repository - storage interface over SQLAlchemy

Returns immutable SubscriptionRecord snapshots, never live ORM rows.
Every mutation commits; database errors are rolled back and re-raised as
StorageError so callers do not depend on SQLAlchemy exceptions. Rows holding
an unknown status or billing cycle also surface as StorageError.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.subscription import BillingCycle, SubscriptionRecord
from app.domain.subscription_status import SubscriptionStatus
from app.infrastructure.db.models import SubscriptionModel


class StorageError(RuntimeError):
    pass


class RecordNotFoundError(LookupError):
    def __init__(self, sub_id: int):
        super().__init__(f"Subscription {sub_id} not found")
        self.sub_id = sub_id


@dataclass(frozen=True)
class SubscriptionFilter:
    search: str | None = None
    status: SubscriptionStatus | None = None
    category: str | None = None
    billing_cycle: BillingCycle | None = None
    limit: int | None = None
    offset: int = 0


_WRITABLE_FIELDS = (
    "name", "cost", "billing_cycle", "next_payment_date",
    "category", "description", "status", "created_at", "updated_at",
)


def _utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _column_value(value: Any) -> Any:
    if isinstance(value, (SubscriptionStatus, BillingCycle)):
        return value.value
    return value


def _to_record(row: SubscriptionModel) -> SubscriptionRecord:
    try:
        billing_cycle = BillingCycle(row.billing_cycle)
        status = SubscriptionStatus(row.status)
    except ValueError as exc:
        raise StorageError(f"Subscription {row.id} has a corrupt stored value: {exc}") from exc
    return SubscriptionRecord(
        id=row.id,
        name=row.name,
        cost=float(row.cost),
        billing_cycle=billing_cycle,
        next_payment_date=_utc(row.next_payment_date),
        status=status,
        created_at=_utc(row.created_at),
        updated_at=_utc(row.updated_at),
        category=row.category,
        description=row.description,
    )


class SubscriptionRepository:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc

    def _get_row(self, sub_id: int) -> SubscriptionModel | None:
        try:
            return self.db.get(SubscriptionModel, sub_id)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc

    def insert(self, fields: dict[str, Any]) -> SubscriptionRecord:
        """Insert a new row; the database assigns the id."""
        row = SubscriptionModel(**{
            key: _column_value(value) for key, value in fields.items() if key in _WRITABLE_FIELDS
        })
        self.db.add(row)
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        self._commit()
        return _to_record(row)

    def find_by_id(self, sub_id: int) -> SubscriptionRecord | None:
        row = self._get_row(sub_id)
        return _to_record(row) if row else None

    def update(self, sub_id: int, fields: dict[str, Any]) -> SubscriptionRecord:
        """
        Apply field changes to an existing row

        Raises:
            RecordNotFoundError: if the id does not exist
        """
        row = self._get_row(sub_id)
        if row is None:
            raise RecordNotFoundError(sub_id)
        for key, value in fields.items():
            if key in _WRITABLE_FIELDS:
                setattr(row, key, _column_value(value))
        self._commit()
        return _to_record(row)

    def delete(self, sub_id: int) -> SubscriptionRecord:
        """
        Hard delete

        Returns:
            Snapshot of the deleted row

        Raises:
            RecordNotFoundError: if the id does not exist
        """
        row = self._get_row(sub_id)
        if row is None:
            raise RecordNotFoundError(sub_id)
        snapshot = _to_record(row)
        self.db.delete(row)
        self._commit()
        return snapshot

    def list(self, filters: SubscriptionFilter | None = None) -> list[SubscriptionRecord]:
        """Filtered rows ordered by id; limit=None returns everything."""
        filters = filters or SubscriptionFilter()
        stmt = select(SubscriptionModel)

        if filters.search:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(or_(
                SubscriptionModel.name.ilike(pattern),
                SubscriptionModel.description.ilike(pattern),
            ))
        if filters.status is not None:
            stmt = stmt.where(SubscriptionModel.status == _column_value(filters.status))
        if filters.category:
            stmt = stmt.where(SubscriptionModel.category == filters.category)
        if filters.billing_cycle is not None:
            stmt = stmt.where(SubscriptionModel.billing_cycle == _column_value(filters.billing_cycle))

        stmt = stmt.order_by(SubscriptionModel.id)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        if filters.offset:
            stmt = stmt.offset(filters.offset)

        try:
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(str(exc)) from exc
        return [_to_record(row) for row in rows]
