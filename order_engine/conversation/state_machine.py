"""
Finite state machine for the order-taking conversation.

Defines the order stages and explicit transitions with triggers. The
machine does not own the stage: it reads and writes ``session.stage``, so
the persisted session is always the single source of truth between turns.

Usage:
    sm = OrderStateMachine(session)
    session.add_to_cart(product, 2)
    sm.transition(TransitionTrigger.ITEM_ADDED)
    assert session.stage == OrderStage.BUILDING_CART
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from order_engine.schemas.session_schema import OrderStage, Session

logger = logging.getLogger(__name__)


class TransitionTrigger(str, Enum):
    """Events that cause stage transitions."""
    ITEM_ADDED = "item_added"
    WEB_CART_LOADED = "web_cart_loaded"
    CART_CLOSED = "cart_closed"
    UNRECOGNIZED = "unrecognized"
    NAME_CAPTURED = "name_captured"
    PHONE_CAPTURED = "phone_captured"
    ADDRESS_CAPTURED = "address_captured"
    ZONE_RESOLVED = "zone_resolved"
    ZONE_UNRESOLVED = "zone_unresolved"
    ALT_DECLINED = "alt_declined"
    ORDER_FINALIZED = "order_finalized"
    RESET = "reset"


def _has_cart(session: Session) -> bool:
    return bool(session.cart)


def _has_zone(session: Session) -> bool:
    return session.shipping.shipping_label is not None


def _ready_to_finalize(session: Session) -> bool:
    return _has_cart(session) and _has_zone(session)


@dataclass
class Transition:
    """A single valid stage transition."""
    from_state: OrderStage
    to_state: OrderStage
    trigger: TransitionTrigger
    guard: Optional[Callable[[Session], bool]] = None


class InvalidTransitionError(Exception):
    """Raised when a transition is not valid from the current stage."""


TERMINAL_STAGES = frozenset({OrderStage.COMPLETED, OrderStage.CANCELLED})
BROWSING_STAGES = frozenset({OrderStage.IDLE, OrderStage.BUILDING_CART})


class OrderStateMachine:
    """
    Deterministic stage machine over an order session.

    Every transition must be explicitly defined. A trigger with no matching
    transition (or whose guard fails on the session) is rejected with an
    error listing the triggers allowed from the current stage.
    """

    TRANSITIONS: list[Transition] = [
        # --- Browsing ---
        *[
            Transition(stage, OrderStage.BUILDING_CART, TransitionTrigger.ITEM_ADDED, _has_cart)
            for stage in (OrderStage.IDLE, OrderStage.BUILDING_CART)
        ],
        *[
            Transition(stage, OrderStage.COLLECT_NAME, TransitionTrigger.WEB_CART_LOADED, _has_cart)
            for stage in (OrderStage.IDLE, OrderStage.BUILDING_CART)
        ],
        *[
            Transition(stage, OrderStage.COLLECT_NAME, TransitionTrigger.CART_CLOSED, _has_cart)
            for stage in (OrderStage.IDLE, OrderStage.BUILDING_CART)
        ],
        *[
            Transition(stage, OrderStage.IDLE, TransitionTrigger.UNRECOGNIZED)
            for stage in (OrderStage.IDLE, OrderStage.BUILDING_CART)
        ],

        # --- Shipping details, one field per turn ---
        Transition(OrderStage.COLLECT_NAME, OrderStage.COLLECT_PHONE,
                   TransitionTrigger.NAME_CAPTURED),
        Transition(OrderStage.COLLECT_PHONE, OrderStage.COLLECT_ADDRESS,
                   TransitionTrigger.PHONE_CAPTURED),
        Transition(OrderStage.COLLECT_ADDRESS, OrderStage.COLLECT_CITY,
                   TransitionTrigger.ADDRESS_CAPTURED),

        # --- Delivery coverage ---
        Transition(OrderStage.COLLECT_CITY, OrderStage.COLLECT_EXTRA,
                   TransitionTrigger.ZONE_RESOLVED, _has_zone),
        Transition(OrderStage.COLLECT_CITY, OrderStage.AWAIT_ALT_CITY,
                   TransitionTrigger.ZONE_UNRESOLVED),
        Transition(OrderStage.AWAIT_ALT_CITY, OrderStage.COLLECT_EXTRA,
                   TransitionTrigger.ZONE_RESOLVED, _has_zone),
        Transition(OrderStage.AWAIT_ALT_CITY, OrderStage.AWAIT_ALT_CITY,
                   TransitionTrigger.ZONE_UNRESOLVED),
        Transition(OrderStage.AWAIT_ALT_CITY, OrderStage.CANCELLED,
                   TransitionTrigger.ALT_DECLINED),

        # --- Finalize ---
        Transition(OrderStage.COLLECT_EXTRA, OrderStage.COMPLETED,
                   TransitionTrigger.ORDER_FINALIZED, _ready_to_finalize),

        # --- Reset, from anywhere ---
        *[Transition(stage, OrderStage.IDLE, TransitionTrigger.RESET) for stage in OrderStage],
    ]

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def current_state(self) -> OrderStage:
        return self._session.stage

    def _find(self, trigger: TransitionTrigger) -> Optional[Transition]:
        for t in self.TRANSITIONS:
            if t.from_state == self._session.stage and t.trigger == trigger:
                if t.guard is not None and not t.guard(self._session):
                    continue
                return t
        return None

    def can_transition(self, trigger: TransitionTrigger) -> bool:
        return self._find(trigger) is not None

    def transition(self, trigger: TransitionTrigger) -> OrderStage:
        """
        Execute a stage transition on the session.

        Args:
            trigger: The event triggering the transition.

        Returns:
            The new order stage.

        Raises:
            InvalidTransitionError: If no valid transition exists.
        """
        t = self._find(trigger)
        if t is None:
            valid = [trig.value for trig in self.get_valid_triggers()]
            raise InvalidTransitionError(
                f"No valid transition from '{self._session.stage.value}' "
                f"with trigger '{trigger.value}'. Valid triggers: {valid}"
            )

        old_state = self._session.stage
        self._session.stage = t.to_state
        if trigger == TransitionTrigger.RESET:
            self._session.clear()

        logger.debug(
            "Stage transition: %s -> %s (trigger: %s)",
            old_state.value, t.to_state.value, trigger.value,
        )
        return t.to_state

    def get_valid_triggers(self) -> list[TransitionTrigger]:
        """Return all triggers valid from the current stage, ignoring guards."""
        triggers: list[TransitionTrigger] = []
        for t in self.TRANSITIONS:
            if t.from_state == self._session.stage and t.trigger not in triggers:
                triggers.append(t.trigger)
        return triggers

    def is_terminal(self) -> bool:
        """Check if the order has reached a terminal stage."""
        return self._session.stage in TERMINAL_STAGES
