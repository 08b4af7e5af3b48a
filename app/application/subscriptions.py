"""
Subscription lifecycle - the only path that creates, changes or removes subscriptions.

Every operation returns an OperationResult; validation, policy and storage
failures are turned into error codes here and never raised to the caller.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from app.config import get_settings
from app.domain.subscription import (
    SubscriptionDraft,
    SubscriptionErrorCode,
    SubscriptionInput,
    SubscriptionRecord,
    SubscriptionValidationError,
    parse_billing_cycle,
    validate_create,
    validate_update,
)
from app.domain.subscription_status import (
    SUBSCRIPTION_STATUS_ORDER,
    SubscriptionStatus,
    parse_status,
)
from app.infrastructure.db.repository import (
    RecordNotFoundError,
    StorageError,
    SubscriptionFilter,
    SubscriptionRepository,
)
from app.utils.validation import parse_positive_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    record: SubscriptionRecord | None = None
    records: tuple[SubscriptionRecord, ...] = ()
    error: str | None = None
    code: SubscriptionErrorCode | None = None
    allowed: tuple[SubscriptionStatus, ...] = ()

    @property
    def ok(self) -> bool:
        return self.code is None

    @classmethod
    def failure(
        cls,
        code: SubscriptionErrorCode,
        error: str,
        allowed: tuple[SubscriptionStatus, ...] = (),
    ) -> "OperationResult":
        return cls(error=error, code=code, allowed=allowed)

    @classmethod
    def from_validation_error(cls, exc: SubscriptionValidationError) -> "OperationResult":
        return cls.failure(exc.code, exc.message, exc.allowed)

    def error_body(self) -> dict[str, Any]:
        """Error payload for the presentation layer: {error, code[, allowed]}."""
        body: dict[str, Any] = {"error": self.error, "code": self.code.value if self.code else None}
        if self.allowed:
            body["allowed"] = [s.value for s in self.allowed]
        return body


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_subscription_id(value: Any) -> int | None:
    return parse_positive_int(value)


def _as_input(data: SubscriptionInput | Mapping[str, Any]) -> SubscriptionInput:
    if isinstance(data, SubscriptionInput):
        return data
    return SubscriptionInput.from_mapping(data)


def _invalid_id() -> OperationResult:
    return OperationResult.failure(SubscriptionErrorCode.INVALID_ID, "Valid ID is required")


def _not_found() -> OperationResult:
    return OperationResult.failure(SubscriptionErrorCode.NOT_FOUND, "Subscription not found")


def _internal_error() -> OperationResult:
    return OperationResult.failure(SubscriptionErrorCode.INTERNAL_ERROR, "Internal server error")


class SubscriptionService:
    """
    Create / update / delete / read subscriptions against the repository

    Args:
        repository: storage interface
        clock: source of "now" for createdAt/updatedAt stamps
    """

    def __init__(
        self,
        repository: SubscriptionRepository,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.clock = clock

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, data: SubscriptionInput | Mapping[str, Any]) -> OperationResult:
        try:
            draft: SubscriptionDraft = validate_create(_as_input(data))
        except SubscriptionValidationError as exc:
            return OperationResult.from_validation_error(exc)

        now = self.clock()
        fields = draft.as_fields()
        fields["created_at"] = now
        fields["updated_at"] = now

        try:
            record = self.repository.insert(fields)
        except StorageError:
            logger.exception("Subscription create failed")
            return _internal_error()

        logger.info("Subscription created id=%d status=%s", record.id, record.status.value)
        return OperationResult(record=record)

    def update(self, sub_id: Any, data: SubscriptionInput | Mapping[str, Any]) -> OperationResult:
        """
        Partial update; only fields present in data are changed

        Status changes are checked against the stored status before anything
        is written.
        """
        parsed_id = parse_subscription_id(sub_id)
        if parsed_id is None:
            return _invalid_id()

        try:
            existing = self.repository.find_by_id(parsed_id)
        except StorageError:
            logger.exception("Subscription lookup failed for id=%d", parsed_id)
            return _internal_error()
        if existing is None:
            return _not_found()

        try:
            changes = validate_update(_as_input(data), current_status=existing.status)
        except SubscriptionValidationError as exc:
            if exc.code == SubscriptionErrorCode.INVALID_STATUS_TRANSITION:
                logger.info("Rejected status transition for id=%d: %s", parsed_id, exc.message)
            return OperationResult.from_validation_error(exc)

        changes["updated_at"] = self.clock()

        try:
            record = self.repository.update(parsed_id, changes)
        except RecordNotFoundError:
            return _not_found()
        except StorageError:
            logger.exception("Subscription update failed for id=%d", parsed_id)
            return _internal_error()

        logger.info("Subscription updated id=%d status=%s", record.id, record.status.value)
        return OperationResult(record=record)

    def delete(self, sub_id: Any) -> OperationResult:
        """Hard delete; the result carries the deleted snapshot."""
        parsed_id = parse_subscription_id(sub_id)
        if parsed_id is None:
            return _invalid_id()

        try:
            record = self.repository.delete(parsed_id)
        except RecordNotFoundError:
            return _not_found()
        except StorageError:
            logger.exception("Subscription delete failed for id=%d", parsed_id)
            return _internal_error()

        logger.info("Subscription deleted id=%d", record.id)
        return OperationResult(record=record)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, sub_id: Any) -> OperationResult:
        parsed_id = parse_subscription_id(sub_id)
        if parsed_id is None:
            return _invalid_id()
        try:
            record = self.repository.find_by_id(parsed_id)
        except StorageError:
            logger.exception("Subscription lookup failed for id=%d", parsed_id)
            return _internal_error()
        if record is None:
            return _not_found()
        return OperationResult(record=record)

    def list(
        self,
        search: str | None = None,
        status: Any = None,
        category: str | None = None,
        billing_cycle: Any = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> OperationResult:
        """
        Filtered, paginated listing

        limit defaults to LIST_DEFAULT_LIMIT and is capped at LIST_MAX_LIMIT;
        an unknown status or billing cycle filter is rejected.
        """
        settings = get_settings()

        status_filter = None
        if status is not None and status != "":
            status_filter = parse_status(status)
            if status_filter is None:
                labels = ", ".join(s.label for s in SUBSCRIPTION_STATUS_ORDER)
                return OperationResult.failure(
                    SubscriptionErrorCode.INVALID_STATUS, f"Status must be one of: {labels}"
                )

        cycle_filter = None
        if billing_cycle is not None and billing_cycle != "":
            cycle_filter = parse_billing_cycle(billing_cycle)
            if cycle_filter is None:
                return OperationResult.failure(
                    SubscriptionErrorCode.INVALID_BILLING_CYCLE,
                    "Billing cycle must be one of: monthly, quarterly, yearly",
                )

        if limit is None or limit < 1:
            limit = settings.LIST_DEFAULT_LIMIT
        limit = min(limit, settings.LIST_MAX_LIMIT)
        offset = max(offset or 0, 0)

        filters = SubscriptionFilter(
            search=search.strip() if search and search.strip() else None,
            status=status_filter,
            category=category.strip() if category and category.strip() else None,
            billing_cycle=cycle_filter,
            limit=limit,
            offset=offset,
        )
        try:
            records = self.repository.list(filters)
        except StorageError:
            logger.exception("Subscription listing failed")
            return _internal_error()
        return OperationResult(records=tuple(records))

    def snapshot(self) -> OperationResult:
        """All subscriptions, unpaginated - input for analytics."""
        try:
            records = self.repository.list(SubscriptionFilter())
        except StorageError:
            logger.exception("Subscription snapshot failed")
            return _internal_error()
        return OperationResult(records=tuple(records))
