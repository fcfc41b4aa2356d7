"""
Turn handler for the order-taking chat.

OrderEngine ties the pieces together for one incoming message:

    load session -> detect signals -> dispatch on stage -> save session

Each stage has its own handler. Every product name and price in a reply is
taken from the catalog; when a lookup finds nothing the reply says so
instead of guessing. Collaborator failures (store, notification channel)
are logged and never surface to the customer as errors.
"""

from typing import Optional

from order_engine.config import settings
from order_engine.conversation.signals import SignalDetector, TurnSignals
from order_engine.conversation.slot_manager import SlotManager
from order_engine.conversation.state_machine import (
    BROWSING_STAGES,
    InvalidTransitionError,
    OrderStateMachine,
    TransitionTrigger,
)
from order_engine.logging_context import get_user_logger, set_user_id
from order_engine.prompts.reply_templates import (
    CANCELLED_REMINDER,
    CANCELLED_REPLY,
    COMPLETED_REMINDER,
    EMPTY_CART_REPLY,
    RESET_REPLY,
    build_alt_address_reply,
    build_close_cart_reply,
    build_help_reply,
    build_item_added_reply,
    build_not_available_reply,
    build_order_confirmation,
    build_shipping_reply,
    build_web_cart_reply,
    build_web_cart_unavailable_reply,
)
from order_engine.schemas.catalog_schema import Product
from order_engine.schemas.order_schema import OrderSummary
from order_engine.schemas.session_schema import Animal, CartLine, OrderStage, Session
from order_engine.tools.catalog import CatalogIndex
from order_engine.tools.notifications import NotificationSink
from order_engine.tools.session_store import SessionStore
from order_engine.tools.shipping import resolve_shipping
from order_engine.tools.web_cart import WebCartParseResult, parse_web_cart
from order_engine.utils import format_cop

logger = get_user_logger(__name__)


class OrderEngine:
    """Conversational order-taking over a catalog, a session store and a notification sink."""

    def __init__(
        self,
        catalog: CatalogIndex,
        store: SessionStore,
        sink: NotificationSink,
        session_ttl_seconds: int = settings.session.ttl_seconds,
        business_name: str = settings.business.name,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._sink = sink
        self._ttl = session_ttl_seconds
        self._business_name = business_name
        self._signals = SignalDetector()

    async def handle_message(self, user_id: str, raw_text: Optional[str]) -> str:
        """Process one customer message and return the reply text."""
        set_user_id(user_id)
        text = raw_text or ""
        signals = self._signals.detect(text)

        if signals.reset:
            await self._delete(user_id)
            logger.info("Session reset on request")
            return RESET_REPLY

        session = await self._load(user_id)
        machine = OrderStateMachine(session)

        if not signals.normalized:
            reply = self._prompt_for_stage(session)
        else:
            try:
                reply = await self._dispatch(session, machine, text, signals)
            except InvalidTransitionError as exc:
                logger.error("Rejected transition: %s", exc)
                reply = self._prompt_for_stage(session)

        await self._save(user_id, session)
        return reply

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    async def _load(self, user_id: str) -> Session:
        try:
            return await self._store.get(user_id)
        except Exception:
            logger.exception("Session read failed, starting a fresh session")
            return Session()

    async def _save(self, user_id: str, session: Session) -> None:
        try:
            await self._store.set(user_id, session, self._ttl)
        except Exception:
            logger.exception("Session write failed; reply is still sent")

    async def _delete(self, user_id: str) -> None:
        try:
            await self._store.delete(user_id)
        except Exception:
            logger.exception("Session delete failed")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _dispatch(
        self, session: Session, machine: OrderStateMachine, text: str, signals: TurnSignals
    ) -> str:
        stage = session.stage
        if machine.is_terminal():
            return COMPLETED_REMINDER if stage == OrderStage.COMPLETED else CANCELLED_REMINDER
        if stage in BROWSING_STAGES:
            return self._handle_browsing(session, machine, text, signals)
        if stage in (OrderStage.COLLECT_CITY, OrderStage.AWAIT_ALT_CITY):
            return self._handle_city(session, machine, text, signals)
        if stage == OrderStage.COLLECT_EXTRA:
            return await self._handle_extra(session, machine, text, signals)
        return self._handle_slot(session, machine, text)

    def _prompt_for_stage(self, session: Session) -> str:
        stage = session.stage
        if stage in BROWSING_STAGES:
            return build_help_reply(self._business_name, session.cart)
        if stage == OrderStage.AWAIT_ALT_CITY:
            return build_alt_address_reply(session.shipping.city or "")
        if stage == OrderStage.COMPLETED:
            return COMPLETED_REMINDER
        if stage == OrderStage.CANCELLED:
            return CANCELLED_REMINDER
        slot = SlotManager.definition_for_stage(stage)
        return slot.prompt_hint if slot else build_help_reply(self._business_name, session.cart)

    # ------------------------------------------------------------------
    # Browsing: products, pasted carts, closing the cart
    # ------------------------------------------------------------------

    def _handle_browsing(
        self, session: Session, machine: OrderStateMachine, text: str, signals: TurnSignals
    ) -> str:
        if signals.animal != Animal.UNKNOWN:
            session.animal = signals.animal

        parsed = parse_web_cart(text)
        if parsed is not None and parsed.items:
            return self._load_web_cart(session, machine, parsed)

        if signals.closing:
            if not session.cart:
                machine.transition(TransitionTrigger.UNRECOGNIZED)
                return EMPTY_CART_REPLY
            machine.transition(TransitionTrigger.CART_CLOSED)
            logger.info("Cart closed with %d lines", len(session.cart))
            return build_close_cart_reply(session.cart, self._prompt_for_stage(session))

        matches = self._catalog.search_strict(text)
        if matches:
            product = matches[0].product
            line = session.add_to_cart(product, signals.quantity)
            machine.transition(TransitionTrigger.ITEM_ADDED)
            logger.info(
                "Added %d x %s (similarity %.2f)",
                signals.quantity, product.id, matches[0].similarity,
            )
            return build_item_added_reply(line, signals.quantity, session.cart)

        machine.transition(TransitionTrigger.UNRECOGNIZED)
        terms = self._catalog.query_terms(text)
        if terms:
            logger.info("No catalog match for %s", terms)
            return build_not_available_reply(terms, session.cart)
        return build_help_reply(self._business_name, session.cart)

    def _resolve_pasted_name(self, name: str) -> Optional[Product]:
        matches = self._catalog.search_strict(name) or self._catalog.search_loose(name)
        return matches[0].product if matches else None

    def _load_web_cart(
        self, session: Session, machine: OrderStateMachine, parsed: WebCartParseResult
    ) -> str:
        lines: list[CartLine] = []
        unavailable: list[str] = []
        for item in parsed.items:
            product = self._resolve_pasted_name(item.name)
            if product is None:
                unavailable.append(item.name)
                continue
            existing = next((ln for ln in lines if ln.product_id == product.id), None)
            if existing is not None:
                existing.quantity += item.quantity
                continue
            lines.append(CartLine(
                product_id=product.id,
                name=product.name,
                price=product.price,
                quantity=item.quantity,
            ))

        if not lines:
            machine.transition(TransitionTrigger.UNRECOGNIZED)
            logger.info("Pasted cart had no catalog products: %s", unavailable)
            return build_web_cart_unavailable_reply(unavailable)

        session.replace_cart(lines)
        session.notes = ""
        if unavailable:
            session.add_note("No disponibles en catálogo: " + ", ".join(unavailable))
        if parsed.declared_total is not None and parsed.declared_total != session.subtotal:
            session.add_note(
                f"Total pegado {format_cop(parsed.declared_total)} difiere del subtotal "
                f"calculado {format_cop(session.subtotal)}"
            )

        machine.transition(TransitionTrigger.WEB_CART_LOADED)
        logger.info(
            "Web cart loaded: %d lines, %d unavailable", len(lines), len(unavailable)
        )
        return build_web_cart_reply(
            session.cart, unavailable, parsed.declared_total, self._prompt_for_stage(session)
        )

    # ------------------------------------------------------------------
    # Shipping details
    # ------------------------------------------------------------------

    def _handle_slot(self, session: Session, machine: OrderStateMachine, text: str) -> str:
        slot = SlotManager.definition_for_stage(session.stage)
        if slot is None or slot.trigger is None:
            raise InvalidTransitionError(f"No slot is collected in stage '{session.stage.value}'")
        success, message = SlotManager(session).set_slot(slot.name, text)
        if not success:
            return message
        machine.transition(slot.trigger)
        return self._prompt_for_stage(session)

    def _handle_city(
        self, session: Session, machine: OrderStateMachine, text: str, signals: TurnSignals
    ) -> str:
        city = text.strip()
        info = resolve_shipping(city)
        if info is None:
            if session.stage == OrderStage.AWAIT_ALT_CITY and signals.negation:
                machine.transition(TransitionTrigger.ALT_DECLINED)
                logger.info("Order cancelled: no delivery coverage for %s", session.shipping.city)
                return CANCELLED_REPLY
            session.shipping.city = city
            machine.transition(TransitionTrigger.ZONE_UNRESOLVED)
            logger.info("No delivery zone for %r", city)
            return build_alt_address_reply(city)

        session.shipping.city = city
        session.shipping.shipping_cost = info.cost
        session.shipping.shipping_label = info.label
        machine.transition(TransitionTrigger.ZONE_RESOLVED)
        logger.info("Delivery zone %s (%s)", info.key, info.cost)
        return build_shipping_reply(info, self._prompt_for_stage(session))

    async def _handle_extra(
        self, session: Session, machine: OrderStateMachine, text: str, signals: TurnSignals
    ) -> str:
        slots = SlotManager(session)
        if self._signals.negation.is_bare_refusal(signals.normalized):
            slots.clear_slot("extra")
        else:
            slots.set_slot("extra", text)

        order = OrderSummary.from_session(session)
        machine.transition(TransitionTrigger.ORDER_FINALIZED)
        logger.info(
            "Order completed: %d lines, subtotal %d, total %d",
            len(order.lines), order.subtotal, order.total,
        )
        try:
            await self._sink.send_order(order)
        except Exception:
            logger.exception("Order notification failed; order stays completed")
        return build_order_confirmation(order)
