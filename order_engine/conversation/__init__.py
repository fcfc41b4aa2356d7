from order_engine.conversation.order_session import OrderEngine
from order_engine.conversation.signals import SignalDetector, TurnSignals
from order_engine.conversation.slot_manager import SlotManager
from order_engine.conversation.state_machine import (
    InvalidTransitionError,
    OrderStage,
    OrderStateMachine,
    TransitionTrigger,
)

__all__ = [
    "OrderEngine",
    "OrderStateMachine",
    "OrderStage",
    "TransitionTrigger",
    "InvalidTransitionError",
    "SlotManager",
    "SignalDetector",
    "TurnSignals",
]
