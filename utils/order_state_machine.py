"""
Order State Machine for order status transitions and audit logging.

The forward path is pending -> confirmed -> processing -> shipped -> delivered,
and cancelled is reachable from every non-final status. Vendors and admins
may still set any status (orders are corrected by hand in practice), so the
machine is advisory: a move outside the map is accepted but logged as a
warning, while moves on the map are logged at info level.
"""

import logging
from typing import Dict, List, Optional, Set

from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus

logger = logging.getLogger(__name__)


class OrderStatusTransition:
    """Represents a valid status transition with metadata"""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus, description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.description = description

    def __repr__(self):
        return f"{self.from_status.value} -> {self.to_status.value}"


class OrderStateMachine:
    """
    Finite state machine for order status transitions.

    Valid status transitions:
    - PENDING -> CONFIRMED -> PROCESSING -> SHIPPED -> DELIVERED
    - PENDING / CONFIRMED / PROCESSING / SHIPPED -> CANCELLED

    Final statuses: DELIVERED, CANCELLED
    """

    VALID_TRANSITIONS: List[OrderStatusTransition] = [
        OrderStatusTransition(OrderStatus.PENDING, OrderStatus.CONFIRMED, "Order accepted by vendor"),
        OrderStatusTransition(OrderStatus.CONFIRMED, OrderStatus.PROCESSING, "Order is being prepared"),
        OrderStatusTransition(OrderStatus.PROCESSING, OrderStatus.SHIPPED, "Order handed to carrier"),
        OrderStatusTransition(OrderStatus.SHIPPED, OrderStatus.DELIVERED, "Order delivered to customer"),
        OrderStatusTransition(OrderStatus.PENDING, OrderStatus.CANCELLED, "Order cancelled before confirmation"),
        OrderStatusTransition(OrderStatus.CONFIRMED, OrderStatus.CANCELLED, "Confirmed order cancelled"),
        OrderStatusTransition(OrderStatus.PROCESSING, OrderStatus.CANCELLED, "Order cancelled while processing"),
        OrderStatusTransition(OrderStatus.SHIPPED, OrderStatus.CANCELLED, "Order cancelled in transit"),
    ]

    FINAL_STATUSES: Set[OrderStatus] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

    # Payment status forced by entering a status
    PAYMENT_STATUS_ON_ENTRY: Dict[OrderStatus, PaymentStatus] = {
        OrderStatus.DELIVERED: PaymentStatus.PAID,
        OrderStatus.CANCELLED: PaymentStatus.REFUNDED,
    }

    _transition_map: Dict[OrderStatus, Set[OrderStatus]] = {}
    _transition_descriptions: Dict[tuple, str] = {}

    @classmethod
    def _build_transition_map(cls):
        """Build internal transition maps for performance"""
        if cls._transition_map:
            return  # Already built

        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_status, set()).add(transition.to_status)
            cls._transition_descriptions[(transition.from_status, transition.to_status)] = transition.description

    @classmethod
    def parse_status(cls, value: str) -> Optional[OrderStatus]:
        """Return the OrderStatus for a raw value, or None when it names no status."""
        try:
            return OrderStatus(value.strip().lower())
        except (ValueError, AttributeError):
            return None

    @classmethod
    def is_valid_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """
        Check if a status transition is on the forward map.

        Staying in the same status counts as valid (no-op).
        """
        cls._build_transition_map()
        if from_status == to_status:
            return True
        return to_status in cls._transition_map.get(from_status, set())

    @classmethod
    def get_valid_transitions(cls, from_status: OrderStatus) -> List[OrderStatus]:
        cls._build_transition_map()
        return sorted(cls._transition_map.get(from_status, set()), key=lambda s: s.value)

    @classmethod
    def get_transition_description(cls, from_status: OrderStatus, to_status: OrderStatus) -> str:
        cls._build_transition_map()
        return cls._transition_descriptions.get(
            (from_status, to_status),
            f"Transition from {from_status.value} to {to_status.value}"
        )

    @classmethod
    def is_final_status(cls, status: OrderStatus) -> bool:
        """
        Check if a status is final (no transitions on the map leave it).
        """
        return status in cls.FINAL_STATUSES

    @classmethod
    def payment_status_for(cls, status: OrderStatus) -> Optional[PaymentStatus]:
        """Payment status that entering `status` forces, if any."""
        return cls.PAYMENT_STATUS_ON_ENTRY.get(status)

    @classmethod
    def validate_and_log_transition(cls, order_id: int, from_status: OrderStatus, to_status: OrderStatus,
                                    actor_id: Optional[int] = None, actor_role: Optional[str] = None) -> bool:
        """
        Log a status transition and report whether it follows the forward map.

        The transition is never refused here; callers apply it either way.

        Returns:
            True if the transition is on the map, False if it was accepted off-map
        """
        performer = f"{actor_role or 'user'} {actor_id}" if actor_id is not None else "system"

        if not cls.is_valid_transition(from_status, to_status):
            if cls.is_final_status(from_status):
                logger.warning(
                    f"ORDER_STATUS_OVERRIDE: Order {order_id} leaves final status "
                    f"{from_status.value} -> {to_status.value} by {performer}"
                )
            else:
                logger.warning(
                    f"ORDER_STATUS_OVERRIDE: Order {order_id} off-path move "
                    f"{from_status.value} -> {to_status.value} by {performer}"
                )
            return False

        transition_desc = cls.get_transition_description(from_status, to_status)
        logger.info(
            f"ORDER_STATUS_TRANSITION: Order {order_id} {from_status.value} -> {to_status.value} "
            f"by {performer}: {transition_desc}"
        )
        return True
