"""
Shipping-detail slot filling.

After the cart is closed, the delivery data is asked for one field per
turn: name, phone, address, city and optional extra indications. Each
collecting stage owns exactly one slot; the only validation is that the
answer is not blank, since customers write names, phones and addresses in
every imaginable format.

Usage:
    manager = SlotManager(session)
    success, msg = manager.set_slot("name", "Laura Gómez")
    manager.clear_slot("extra")
"""

import logging
from dataclasses import dataclass
from typing import Optional

from order_engine.conversation.state_machine import TransitionTrigger
from order_engine.schemas.session_schema import OrderStage, Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotDefinition:
    """Schema for a single shipping field to collect."""

    name: str
    display_name: str
    stage: OrderStage
    prompt_hint: str
    trigger: Optional[TransitionTrigger] = None


class SlotManager:
    """Reads and writes the shipping fields of one session."""

    SLOT_DEFINITIONS: list[SlotDefinition] = [
        SlotDefinition(
            name="name",
            display_name="nombre",
            stage=OrderStage.COLLECT_NAME,
            prompt_hint="¿A nombre de quién va el pedido?",
            trigger=TransitionTrigger.NAME_CAPTURED,
        ),
        SlotDefinition(
            name="phone",
            display_name="celular",
            stage=OrderStage.COLLECT_PHONE,
            prompt_hint="¿A qué número de celular te podemos contactar?",
            trigger=TransitionTrigger.PHONE_CAPTURED,
        ),
        SlotDefinition(
            name="address",
            display_name="dirección",
            stage=OrderStage.COLLECT_ADDRESS,
            prompt_hint="¿Cuál es la dirección de entrega? (calle, número, barrio o unidad)",
            trigger=TransitionTrigger.ADDRESS_CAPTURED,
        ),
        SlotDefinition(
            name="city",
            display_name="ciudad",
            stage=OrderStage.COLLECT_CITY,
            prompt_hint="¿En qué municipio o vereda es la entrega?",
        ),
        SlotDefinition(
            name="extra",
            display_name="indicaciones",
            stage=OrderStage.COLLECT_EXTRA,
            prompt_hint=(
                "¿Alguna indicación adicional para la entrega (punto de referencia, "
                "horario)? Si no, escríbeme *no*."
            ),
            trigger=TransitionTrigger.ORDER_FINALIZED,
        ),
    ]

    def __init__(self, session: Session) -> None:
        self._session = session

    def _get_definition(self, name: str) -> SlotDefinition:
        for defn in self.SLOT_DEFINITIONS:
            if defn.name == name:
                return defn
        raise ValueError(f"Unknown slot: {name}")

    @classmethod
    def definition_for_stage(cls, stage: OrderStage) -> Optional[SlotDefinition]:
        """Return the slot collected while in ``stage``, if any."""
        for defn in cls.SLOT_DEFINITIONS:
            if defn.stage == stage:
                return defn
        return None

    def set_slot(self, name: str, raw_value: Optional[str]) -> tuple[bool, str]:
        """
        Store a slot value on the session's shipping details.

        Returns:
            (success, message), success=False when the value is blank.
        """
        defn = self._get_definition(name)
        value = (raw_value or "").strip()
        if not value:
            logger.debug("Slot '%s' left empty", name)
            return False, defn.prompt_hint
        setattr(self._session.shipping, name, value)
        logger.debug("Slot '%s' captured", name)
        return True, f"{defn.display_name}: {value}"

    def clear_slot(self, name: str) -> None:
        self._get_definition(name)
        setattr(self._session.shipping, name, None)
