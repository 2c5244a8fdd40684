"""Order status state machine.

Orders move strictly forward through ``FORWARD_SEQUENCE`` one stage at a
time. Any non-terminal order may instead be REJECTED. DELIVERED and REJECTED
are terminal. Every accepted transition appends to the order's history; the
history is never rewritten.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from havens.core.exceptions import IllegalTransitionError, OrderClosedError
from havens.models.order import Order, OrderStatus, OrderStatusEvent

logger = logging.getLogger(__name__)

FORWARD_SEQUENCE = (
    OrderStatus.PENDING,
    OrderStatus.ACCEPTED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.OUT_FOR_DELIVERY,
    OrderStatus.DELIVERED,
)

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.REJECTED})

SYSTEM_ACTOR = "System"


def is_terminal(status: OrderStatus) -> bool:
    return OrderStatus(status) in TERMINAL_STATUSES


def next_forward_status(status: OrderStatus) -> Optional[OrderStatus]:
    status = OrderStatus(status)
    if status in TERMINAL_STATUSES:
        return None
    return FORWARD_SEQUENCE[FORWARD_SEQUENCE.index(status) + 1]


def allowed_transitions(status: OrderStatus) -> List[OrderStatus]:
    """Statuses reachable from ``status`` in one step (empty when terminal)."""
    forward = next_forward_status(status)
    if forward is None:
        return []
    return [forward, OrderStatus.REJECTED]


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return OrderStatus(requested) in allowed_transitions(current)


def check_transition(current: OrderStatus, requested: OrderStatus) -> None:
    current = OrderStatus(current)
    requested = OrderStatus(requested)
    if current in TERMINAL_STATUSES:
        raise OrderClosedError(current, requested)
    if not can_transition(current, requested):
        raise IllegalTransitionError(current, requested)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def start_history(order: Order) -> None:
    """Put a new order in PENDING with its first history entry."""
    now = _now()
    order.status = OrderStatus.PENDING
    order.history.append(
        OrderStatusEvent(status=OrderStatus.PENDING, changed_at=now, updated_by=SYSTEM_ACTOR)
    )


def apply_transition(order: Order, requested: OrderStatus, actor: str) -> OrderStatusEvent:
    """Move ``order`` to ``requested`` and record it.

    Raises IllegalTransitionError (or OrderClosedError for terminal orders)
    and leaves the order untouched when the move is not allowed.
    """
    check_transition(order.status, requested)
    now = _now()
    previous = order.status
    event = OrderStatusEvent(status=OrderStatus(requested), changed_at=now, updated_by=actor)
    order.status = OrderStatus(requested)
    order.updated_at = now
    order.history.append(event)
    logger.info(f"Order {order.id}: {previous.value} -> {order.status.value} by {actor}")
    return event
