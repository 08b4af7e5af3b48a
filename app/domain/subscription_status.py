"""
Subscription status lifecycle

Statuses and allowed transitions (self-transition is always allowed):

    trial     -> active, cancelled
    active    -> paused, cancelled, expired
    paused    -> cancelled, expired
    cancelled -> expired
    expired   -> cancelled

cancelled and expired may swap with each other but never lead back to
trial, active or paused. Only chargeable statuses (active, trial) count
toward spend totals.
"""
from enum import Enum
from typing import Any


class SubscriptionStatus(str, Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def label(self) -> str:
        return SUBSCRIPTION_STATUS_LABELS[self]


DEFAULT_STATUS = SubscriptionStatus.ACTIVE

# Display order for forms and the status vocabulary
SUBSCRIPTION_STATUS_ORDER = (
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.PAUSED,
    SubscriptionStatus.CANCELLED,
    SubscriptionStatus.TRIAL,
    SubscriptionStatus.EXPIRED,
)

SUBSCRIPTION_STATUS_LABELS: dict[SubscriptionStatus, str] = {
    SubscriptionStatus.ACTIVE: "Active",
    SubscriptionStatus.PAUSED: "Paused",
    SubscriptionStatus.CANCELLED: "Cancelled",
    SubscriptionStatus.TRIAL: "Trial",
    SubscriptionStatus.EXPIRED: "Expired",
}

SUBSCRIPTION_STATUS_TRANSITIONS: dict[SubscriptionStatus, tuple[SubscriptionStatus, ...]] = {
    SubscriptionStatus.TRIAL: (SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED),
    SubscriptionStatus.ACTIVE: (
        SubscriptionStatus.PAUSED,
        SubscriptionStatus.CANCELLED,
        SubscriptionStatus.EXPIRED,
    ),
    SubscriptionStatus.PAUSED: (SubscriptionStatus.CANCELLED, SubscriptionStatus.EXPIRED),
    SubscriptionStatus.CANCELLED: (SubscriptionStatus.EXPIRED,),
    SubscriptionStatus.EXPIRED: (SubscriptionStatus.CANCELLED,),
}

CHARGEABLE_STATUSES = frozenset({SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIAL})


def _check_tables() -> None:
    """Every status must have a label, a display slot and a transition entry."""
    statuses = set(SubscriptionStatus)
    for name, table in (
        ("labels", set(SUBSCRIPTION_STATUS_LABELS)),
        ("order", set(SUBSCRIPTION_STATUS_ORDER)),
        ("transitions", set(SUBSCRIPTION_STATUS_TRANSITIONS)),
    ):
        if table != statuses:
            missing = ", ".join(sorted(s.value for s in statuses - table))
            raise RuntimeError(f"Subscription status {name} table is incomplete: {missing}")


_check_tables()


def parse_status(value: Any) -> SubscriptionStatus | None:
    """
    Normalize raw input to a status

    Strings are trimmed and matched case-insensitively.

    Returns:
        SubscriptionStatus or None if value is not a known status
    """
    if isinstance(value, SubscriptionStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return SubscriptionStatus(value.strip().lower())
    except ValueError:
        return None


def is_valid_status(value: Any) -> bool:
    return parse_status(value) is not None


def is_chargeable(value: Any) -> bool:
    return parse_status(value) in CHARGEABLE_STATUSES


def can_transition(current: Any, next_status: Any) -> bool:
    """True for a self-transition or an edge of the transition table; False for unknown statuses."""
    cur = parse_status(current)
    nxt = parse_status(next_status)
    if cur is None or nxt is None:
        return False
    return cur == nxt or nxt in SUBSCRIPTION_STATUS_TRANSITIONS[cur]


def permitted_next_options(current: Any = None) -> list[SubscriptionStatus]:
    """
    Statuses a subscription may take next, current one first

    Args:
        current: current status, or None when not yet known (new record form)

    Returns:
        Full status list in display order when current is unset,
        [] when current is not a known status
    """
    if current is None or current == "":
        return list(SUBSCRIPTION_STATUS_ORDER)
    cur = parse_status(current)
    if cur is None:
        return []
    return [cur, *SUBSCRIPTION_STATUS_TRANSITIONS[cur]]


def allowed_transitions(current: Any) -> list[SubscriptionStatus]:
    """Statuses reachable from current, excluding current itself."""
    return [s for s in permitted_next_options(current) if s != parse_status(current)]


def status_vocabulary() -> list[dict[str, Any]]:
    """Status values with labels and permitted next statuses, for forms."""
    return [
        {
            "value": status.value,
            "label": status.label,
            "chargeable": status in CHARGEABLE_STATUSES,
            "next": [s.value for s in permitted_next_options(status)],
        }
        for status in SUBSCRIPTION_STATUS_ORDER
    ]
