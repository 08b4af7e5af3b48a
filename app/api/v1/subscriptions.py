"""
Subscription API endpoints
"""
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import get_subscription_service
from app.api.errors import error_response
from app.application.subscriptions import SubscriptionService
from app.domain.subscription import SubscriptionInput, SubscriptionRecord
from app.domain.subscription_status import CHARGEABLE_STATUSES, status_vocabulary


router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])


# === Request/Response models ===

class SubscriptionPayload(BaseModel):
    """
    Raw subscription fields

    Values are not coerced here: the domain validator owns the rules and the
    error codes. Omitted fields stay unset, explicit nulls are kept.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Any = None
    cost: Any = None
    billing_cycle: Any = Field(default=None, alias="billingCycle")
    next_payment_date: Any = Field(default=None, alias="nextPaymentDate")
    category: Any = None
    description: Any = None
    status: Any = None

    def to_input(self) -> SubscriptionInput:
        return SubscriptionInput.from_mapping(self.model_dump(exclude_unset=True))


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    cost: float
    billing_cycle: str = Field(alias="billingCycle")
    next_payment_date: datetime = Field(alias="nextPaymentDate")
    category: str | None = None
    description: str | None = None
    status: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_record(cls, record: SubscriptionRecord) -> "SubscriptionResponse":
        return cls(
            id=record.id,
            name=record.name,
            cost=record.cost,
            billing_cycle=record.billing_cycle.value,
            next_payment_date=record.next_payment_date,
            category=record.category,
            description=record.description,
            status=record.status.value,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class DeleteSubscriptionResponse(BaseModel):
    message: str
    subscription: SubscriptionResponse


class StatusOption(BaseModel):
    value: str
    label: str
    chargeable: bool
    next: list[str]


class StatusVocabularyResponse(BaseModel):
    statuses: list[StatusOption]
    chargeable: list[str]


# === Endpoints ===

@router.get("/statuses", response_model=StatusVocabularyResponse)
def list_statuses():
    """Statuses with labels and permitted next statuses (for forms)"""
    return StatusVocabularyResponse(
        statuses=[StatusOption(**item) for item in status_vocabulary()],
        chargeable=sorted(s.value for s in CHARGEABLE_STATUSES),
    )


@router.get("/", response_model=list[SubscriptionResponse])
def list_subscriptions(
    search: str | None = None,
    status_filter: str | None = Query(None, alias="status"),
    category: str | None = None,
    billing_cycle: str | None = Query(None, alias="billingCycle"),
    limit: int | None = None,
    offset: int | None = None,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """List subscriptions: search, filters, pagination"""
    result = service.list(
        search=search,
        status=status_filter,
        category=category,
        billing_cycle=billing_cycle,
        limit=limit,
        offset=offset,
    )
    if not result.ok:
        return error_response(result)
    return [SubscriptionResponse.from_record(r) for r in result.records]


@router.get("/{sub_id}", response_model=SubscriptionResponse)
def get_subscription(
    sub_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
):
    result = service.get(sub_id)
    if not result.ok:
        return error_response(result)
    return SubscriptionResponse.from_record(result.record)


@router.post("/", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
def create_subscription(
    req: SubscriptionPayload,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Create a subscription (status defaults to active)"""
    result = service.create(req.to_input())
    if not result.ok:
        return error_response(result)
    return SubscriptionResponse.from_record(result.record)


@router.put("/{sub_id}", response_model=SubscriptionResponse)
def update_subscription(
    sub_id: str,
    req: SubscriptionPayload,
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Partial update; a status change is checked against the transition table"""
    result = service.update(sub_id, req.to_input())
    if not result.ok:
        return error_response(result)
    return SubscriptionResponse.from_record(result.record)


@router.delete("/{sub_id}", response_model=DeleteSubscriptionResponse)
def delete_subscription(
    sub_id: str,
    service: SubscriptionService = Depends(get_subscription_service),
):
    result = service.delete(sub_id)
    if not result.ok:
        return error_response(result)
    return DeleteSubscriptionResponse(
        message="Subscription deleted successfully",
        subscription=SubscriptionResponse.from_record(result.record),
    )
