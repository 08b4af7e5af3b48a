"""
Subscription domain: record shape, raw input and validation

Validation is pure. Create-mode requires name, cost, billing cycle and next
payment date; update-mode validates only the fields present in the input
and checks the status transition against the currently stored status.
"""
from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from app.domain.subscription_status import (
    DEFAULT_STATUS,
    SUBSCRIPTION_STATUS_ORDER,
    SubscriptionStatus,
    allowed_transitions,
    can_transition,
    parse_status,
)
from app.utils.validation import parse_amount, parse_instant


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


DEFAULT_CATEGORY = "other"


class SubscriptionErrorCode(str, Enum):
    MISSING_NAME = "MISSING_NAME"
    INVALID_NAME = "INVALID_NAME"
    MISSING_COST = "MISSING_COST"
    INVALID_COST = "INVALID_COST"
    MISSING_BILLING_CYCLE = "MISSING_BILLING_CYCLE"
    INVALID_BILLING_CYCLE = "INVALID_BILLING_CYCLE"
    MISSING_NEXT_PAYMENT_DATE = "MISSING_NEXT_PAYMENT_DATE"
    INVALID_NEXT_PAYMENT_DATE = "INVALID_NEXT_PAYMENT_DATE"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    INVALID_ID = "INVALID_ID"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SubscriptionValidationError(ValueError):
    """Rejected input; code tells the caller which field and why."""

    def __init__(
        self,
        code: SubscriptionErrorCode,
        message: str,
        allowed: tuple[SubscriptionStatus, ...] = (),
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.allowed = allowed


def parse_billing_cycle(value: Any) -> BillingCycle | None:
    if isinstance(value, BillingCycle):
        return value
    if not isinstance(value, str):
        return None
    try:
        return BillingCycle(value.strip().lower())
    except ValueError:
        return None


# ============================================================================
# Records
# ============================================================================


@dataclass(frozen=True)
class SubscriptionRecord:
    """Stored subscription snapshot."""
    id: int
    name: str
    cost: float
    billing_cycle: BillingCycle
    next_payment_date: datetime
    status: SubscriptionStatus
    created_at: datetime
    updated_at: datetime
    category: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Presentation shape (camelCase keys, ISO timestamps)."""
        return {
            "id": self.id,
            "name": self.name,
            "cost": self.cost,
            "billingCycle": self.billing_cycle.value,
            "nextPaymentDate": self.next_payment_date.isoformat(),
            "category": self.category,
            "description": self.description,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


# ============================================================================
# Raw input (tri-state)
# ============================================================================


class _Unset:
    """Marker for a field that was not sent at all (as opposed to sent as null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

# camelCase keys of the presentation contract
_FIELD_ALIASES = {
    "billingCycle": "billing_cycle",
    "nextPaymentDate": "next_payment_date",
}


@dataclass(frozen=True)
class SubscriptionInput:
    """
    Untrusted subscription fields

    Each field is UNSET (omitted), None (explicitly cleared) or a raw value.
    """
    name: Any = UNSET
    cost: Any = UNSET
    billing_cycle: Any = UNSET
    next_payment_date: Any = UNSET
    category: Any = UNSET
    description: Any = UNSET
    status: Any = UNSET

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SubscriptionInput":
        """Build from a dict; keys may be snake_case or camelCase, unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _FIELD_ALIASES.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values)

    def provided(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}


@dataclass(frozen=True)
class SubscriptionDraft:
    """Validated fields of a new subscription (no id, no timestamps yet)."""
    name: str
    cost: float
    billing_cycle: BillingCycle
    next_payment_date: datetime
    status: SubscriptionStatus = DEFAULT_STATUS
    category: str | None = None
    description: str | None = None

    def as_fields(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


# ============================================================================
# Validation
# ============================================================================


_BILLING_CYCLES_TEXT = ", ".join(c.value for c in BillingCycle)
_STATUS_LABELS_TEXT = ", ".join(s.label for s in SUBSCRIPTION_STATUS_ORDER)


def _is_missing(value: Any) -> bool:
    return value is UNSET or value is None or (isinstance(value, str) and not value.strip())


def _clean_optional_text(value: Any) -> str | None:
    """Trimmed text, or None for null/blank (clears the field)."""
    if value is None:
        return None
    text = value.strip() if isinstance(value, str) else str(value).strip()
    return text or None


def _validate_cost(value: Any) -> float:
    cost = parse_amount(value)
    if cost is None or cost <= 0:
        raise SubscriptionValidationError(
            SubscriptionErrorCode.INVALID_COST, "Cost must be a positive number"
        )
    return cost


def _validate_billing_cycle(value: Any) -> BillingCycle:
    cycle = parse_billing_cycle(value)
    if cycle is None:
        raise SubscriptionValidationError(
            SubscriptionErrorCode.INVALID_BILLING_CYCLE,
            f"Billing cycle must be one of: {_BILLING_CYCLES_TEXT}",
        )
    return cycle


def _validate_next_payment_date(value: Any) -> datetime:
    instant = parse_instant(value)
    if instant is None:
        raise SubscriptionValidationError(
            SubscriptionErrorCode.INVALID_NEXT_PAYMENT_DATE,
            "Next payment date must be a valid ISO datetime string",
        )
    return instant


def _validate_status(value: Any) -> SubscriptionStatus:
    status = parse_status(value)
    if status is None:
        raise SubscriptionValidationError(
            SubscriptionErrorCode.INVALID_STATUS,
            f"Status must be one of: {_STATUS_LABELS_TEXT}",
        )
    return status


def validate_create(data: SubscriptionInput) -> SubscriptionDraft:
    """
    Validate input for a new subscription

    Required fields are checked for presence first, then for value.

    Raises:
        SubscriptionValidationError: with the code of the first rejected field
    """
    if _is_missing(data.name):
        raise SubscriptionValidationError(SubscriptionErrorCode.MISSING_NAME, "Name is required")
    if not isinstance(data.name, str):
        raise SubscriptionValidationError(SubscriptionErrorCode.INVALID_NAME, "Name must be a string")
    if data.cost is UNSET or data.cost is None:
        raise SubscriptionValidationError(SubscriptionErrorCode.MISSING_COST, "Cost is required")
    if _is_missing(data.billing_cycle):
        raise SubscriptionValidationError(
            SubscriptionErrorCode.MISSING_BILLING_CYCLE, "Billing cycle is required"
        )
    if _is_missing(data.next_payment_date):
        raise SubscriptionValidationError(
            SubscriptionErrorCode.MISSING_NEXT_PAYMENT_DATE, "Next payment date is required"
        )

    cost = _validate_cost(data.cost)
    billing_cycle = _validate_billing_cycle(data.billing_cycle)
    next_payment_date = _validate_next_payment_date(data.next_payment_date)

    status = DEFAULT_STATUS
    if data.status is not UNSET and data.status is not None:
        status = _validate_status(data.status)

    category = None if data.category is UNSET else _clean_optional_text(data.category)
    description = None if data.description is UNSET else _clean_optional_text(data.description)

    return SubscriptionDraft(
        name=data.name.strip(),
        cost=cost,
        billing_cycle=billing_cycle,
        next_payment_date=next_payment_date,
        status=status,
        category=category,
        description=description,
    )


def validate_update(
    data: SubscriptionInput,
    current_status: SubscriptionStatus | str | None = None,
) -> dict[str, Any]:
    """
    Validate a partial update

    Args:
        data: fields to change; UNSET fields are left untouched,
            None clears category/description
        current_status: stored status, baseline for the transition check

    Returns:
        Normalized changes keyed by record field name

    Raises:
        SubscriptionValidationError: INVALID_STATUS_TRANSITION carries the
            allowed next statuses
    """
    changes: dict[str, Any] = {}

    if data.name is not UNSET:
        if not isinstance(data.name, str) or not data.name.strip():
            raise SubscriptionValidationError(SubscriptionErrorCode.INVALID_NAME, "Name cannot be empty")
        changes["name"] = data.name.strip()

    if data.cost is not UNSET:
        changes["cost"] = _validate_cost(data.cost)

    if data.billing_cycle is not UNSET:
        changes["billing_cycle"] = _validate_billing_cycle(data.billing_cycle)

    if data.next_payment_date is not UNSET:
        changes["next_payment_date"] = _validate_next_payment_date(data.next_payment_date)

    if data.category is not UNSET:
        changes["category"] = _clean_optional_text(data.category)

    if data.description is not UNSET:
        changes["description"] = _clean_optional_text(data.description)

    if data.status is not UNSET:
        next_status = _validate_status(data.status)
        if current_status is not None and not can_transition(current_status, next_status):
            current = parse_status(current_status)
            current_label = current.label if current else str(current_status)
            allowed = tuple(allowed_transitions(current)) if current else ()
            allowed_text = ", ".join(s.label for s in allowed) or current_label
            raise SubscriptionValidationError(
                SubscriptionErrorCode.INVALID_STATUS_TRANSITION,
                f"Status cannot change from {current_label} to {next_status.label}. "
                f"Allowed next statuses: {allowed_text}",
                allowed=allowed,
            )
        changes["status"] = next_status

    return changes
