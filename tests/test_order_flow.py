"""End-to-end order conversations through OrderEngine."""

import pytest

from order_engine.prompts.reply_templates import (
    CANCELLED_REMINDER,
    CANCELLED_REPLY,
    COMPLETED_REMINDER,
    EMPTY_CART_REPLY,
    RESET_REPLY,
)
from order_engine.schemas.session_schema import Animal, OrderStage
from tests.conftest import (
    USER_ID,
    FailingNotificationSink,
    FailingSessionStore,
    chat,
    checkout,
    make_engine,
)

PASTED_CART = """Churu Atún - Cantidad: 2 - Precio unitario: $12.000 - Subtotal: $24.000
Dogurmet Adulto Carne 3 kg - Cantidad: 1 - Precio unitario: $45.000 - Subtotal: $45.000
Snack Dentastix Perro Mediano - Cantidad: 2 - Precio unitario: $15.500 - Subtotal: $31.000
Arena Aglomerante - Cantidad: 1 - Precio unitario: $32.000
Total a pagar: $100.000"""


class TestFreeformCart:
    @pytest.mark.asyncio
    async def test_item_from_chat_message(self, engine, memory_store):
        reply = await engine.handle_message(USER_ID, "quiero 2 churu para mi gato")
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.BUILDING_CART
        assert [(line.name, line.quantity, line.price) for line in session.cart] == [
            ("Churu Atún", 2, 12000),
        ]
        assert session.animal == Animal.CAT
        assert "Churu Atún" in reply
        assert "$12.000" in reply

    @pytest.mark.asyncio
    async def test_same_product_accumulates(self, engine, memory_store):
        await chat(engine, ["quiero 2 churu atun", "y otro churu atun"])
        session = await memory_store.get(USER_ID)
        assert len(session.cart) == 1
        assert session.cart[0].quantity == 3

    @pytest.mark.asyncio
    async def test_unknown_product_is_reported_unavailable(self, engine, memory_store):
        reply = await engine.handle_message(USER_ID, "tienen royal canin?")
        assert "no lo tenemos" in reply
        assert "royal canin" in reply
        assert "Churu" not in reply
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.IDLE
        assert session.cart == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text,asked", [
        ("quiero churu salmon", "churu salmon"),
        ("quiero 2 dogurmet cachorro salmon", "dogurmet cachorro salmon"),
    ])
    async def test_unstocked_variant_is_reported_unavailable(
        self, engine, memory_store, text, asked
    ):
        reply = await engine.handle_message(USER_ID, text)
        assert "no lo tenemos" in reply
        assert asked in reply
        assert "Agregué" not in reply
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.IDLE
        assert session.cart == []

    @pytest.mark.asyncio
    async def test_pet_count_does_not_set_item_quantity(self, engine, memory_store):
        await engine.handle_message(USER_ID, "quiero churu atun para mis dos gatos")
        session = await memory_store.get(USER_ID)
        assert [(line.product_id, line.quantity) for line in session.cart] == [("churu-atun", 1)]
        assert session.animal == Animal.CAT

    @pytest.mark.asyncio
    async def test_miss_keeps_existing_cart(self, engine, memory_store):
        await chat(engine, ["churu atun", "tienen royal canin?"])
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.IDLE
        assert len(session.cart) == 1

    @pytest.mark.asyncio
    async def test_greeting_gets_help(self, engine):
        reply = await engine.handle_message(USER_ID, "hola")
        assert "Perrote y Gatote" in reply

    @pytest.mark.asyncio
    async def test_closing_with_empty_cart(self, engine, memory_store):
        assert await engine.handle_message(USER_ID, "nada mas") == EMPTY_CART_REPLY
        assert (await memory_store.get(USER_ID)).stage == OrderStage.IDLE

    @pytest.mark.asyncio
    async def test_closing_moves_to_shipping_questions(self, engine, memory_store):
        replies = await chat(engine, ["churu atun", "eso es todo"])
        assert "¿A nombre de quién va el pedido?" in replies[-1]
        assert (await memory_store.get(USER_ID)).stage == OrderStage.COLLECT_NAME


class TestWebCart:
    @pytest.mark.asyncio
    async def test_pasted_cart_replaces_cart(self, engine, memory_store):
        await engine.handle_message(USER_ID, "quiero churu pollo")
        await engine.handle_message(USER_ID, PASTED_CART)
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.COLLECT_NAME
        assert [line.product_id for line in session.cart] == [
            "churu-atun", "dogurmet-adulto", "prod-5",
        ]
        assert session.subtotal == 100000
        assert session.notes == ""

    @pytest.mark.asyncio
    async def test_prices_come_from_catalog(self, engine, memory_store):
        text = "Churu Atún - Cantidad: 2 - Precio unitario: $1.000 - Subtotal: $2.000\n" \
               "Total a pagar: $2.000"
        reply = await engine.handle_message(USER_ID, text)
        session = await memory_store.get(USER_ID)
        assert session.cart[0].price == 12000
        assert session.subtotal == 24000
        assert "$2.000" in session.notes
        assert "$24.000" in reply

    @pytest.mark.asyncio
    async def test_unavailable_pasted_item_is_noted(self, engine, memory_store):
        text = (
            "Churu Pollo - Cantidad: 1 - Precio unitario: $12.000 - Subtotal: $12.000\n"
            "Juguete Pelota Luminosa - Cantidad: 1 - Precio unitario: $9.000 - Subtotal: $9.000"
        )
        reply = await engine.handle_message(USER_ID, text)
        session = await memory_store.get(USER_ID)
        assert len(session.cart) == 1
        assert "Juguete Pelota Luminosa" in session.notes
        assert "Juguete Pelota Luminosa" in reply

    @pytest.mark.asyncio
    async def test_nothing_resolvable_stays_idle(self, engine, memory_store):
        text = "Juguete Pelota Luminosa - Cantidad: 1 - Precio unitario: $9.000 - Subtotal: $9.000"
        reply = await engine.handle_message(USER_ID, text)
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.IDLE
        assert session.cart == []
        assert "Juguete Pelota Luminosa" in reply

    @pytest.mark.asyncio
    async def test_loose_match_resolves_pasted_name(self, engine, memory_store):
        text = "Churuto - Cantidad: 3 - Precio unitario: $12.000 - Subtotal: $36.000"
        await engine.handle_message(USER_ID, text)
        session = await memory_store.get(USER_ID)
        assert session.cart[0].product_id == "churu-atun"
        assert session.cart[0].quantity == 3


class TestCheckout:
    @pytest.mark.asyncio
    async def test_full_order_is_priced_and_notified(self, engine, memory_store, memory_sink):
        await engine.handle_message(USER_ID, "dogurmet adulto")
        replies = await checkout(engine, city="vivo en Rionegro centro")
        assert len(memory_sink.orders) == 1
        order = memory_sink.orders[0]
        assert order.subtotal == 45000
        assert order.shipping_cost == 9000
        assert order.total == 54000
        assert order.shipping_label == "Rionegro urbano"
        assert order.customer_name == "Laura Gómez"
        assert order.extra is None
        assert "$54.000" in replies[-1]
        assert (await memory_store.get(USER_ID)).stage == OrderStage.COMPLETED

    @pytest.mark.asyncio
    async def test_extra_indications_are_kept(self, engine, memory_sink):
        await engine.handle_message(USER_ID, "churu atun")
        await checkout(engine, extra="timbrar en la portería")
        assert memory_sink.orders[0].extra == "timbrar en la portería"

    @pytest.mark.asyncio
    async def test_vereda_is_quoted(self, engine, memory_sink):
        await engine.handle_message(USER_ID, "churu atun")
        replies = await checkout(engine, city="Vereda Abreo")
        order = memory_sink.orders[0]
        assert order.shipping_cost is None
        assert order.total == order.subtotal == 12000
        assert "por cotizar" in replies[-1]

    @pytest.mark.asyncio
    async def test_completed_order_gets_reminder(self, engine, memory_sink):
        await engine.handle_message(USER_ID, "churu atun")
        await checkout(engine)
        assert await engine.handle_message(USER_ID, "hola") == COMPLETED_REMINDER
        assert len(memory_sink.orders) == 1

    @pytest.mark.asyncio
    async def test_empty_message_reprompts_current_question(self, engine, memory_store):
        await chat(engine, ["churu atun", "nada mas", "Laura"])
        reply = await engine.handle_message(USER_ID, "   ")
        assert reply == "¿A qué número de celular te podemos contactar?"
        assert (await memory_store.get(USER_ID)).stage == OrderStage.COLLECT_PHONE


class TestNoCoverage:
    @pytest.mark.asyncio
    async def test_declined_alternate_cancels_without_notifying(
        self, engine, memory_store, memory_sink
    ):
        await engine.handle_message(USER_ID, "churu atun")
        replies = await checkout(engine, city="Villavicencio", extra="no")
        assert "Villavicencio" in replies[-2]
        assert replies[-1] == CANCELLED_REPLY
        assert (await memory_store.get(USER_ID)).stage == OrderStage.CANCELLED
        assert memory_sink.orders == []
        assert await engine.handle_message(USER_ID, "hola") == CANCELLED_REMINDER

    @pytest.mark.asyncio
    async def test_alternate_city_keeps_address(self, engine, memory_store):
        await engine.handle_message(USER_ID, "churu atun")
        await chat(engine, ["nada mas", "Laura", "3001234567", "Calle 45", "Villavicencio",
                            "Bogotá", "Marinilla"])
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.COLLECT_EXTRA
        assert session.shipping.city == "Marinilla"
        assert session.shipping.address == "Calle 45"
        assert session.shipping.shipping_cost == 17000


class TestReset:
    @pytest.mark.asyncio
    async def test_reset_clears_everything(self, engine, memory_store):
        await chat(engine, ["churu atun", "nada mas", "Laura"])
        assert await engine.handle_message(USER_ID, "Nuevo pedido") == RESET_REPLY
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.IDLE
        assert session.cart == []
        assert session.shipping.name is None

    @pytest.mark.asyncio
    async def test_reset_after_completed_order(self, engine, memory_store, memory_sink):
        await engine.handle_message(USER_ID, "churu atun")
        await checkout(engine)
        await engine.handle_message(USER_ID, "reiniciar")
        await engine.handle_message(USER_ID, "churu pollo")
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.BUILDING_CART
        assert [line.product_id for line in session.cart] == ["churu-pollo"]

    @pytest.mark.asyncio
    async def test_sessions_are_per_user(self, engine, memory_store):
        await engine.handle_message("user-a", "churu atun")
        await engine.handle_message("user-b", "nuevo pedido")
        assert len((await memory_store.get("user-a")).cart) == 1


class TestCollaboratorFailures:
    @pytest.mark.asyncio
    async def test_notification_failure_keeps_order_completed(self, catalog, memory_store):
        sink = FailingNotificationSink()
        engine = make_engine(catalog, memory_store, sink)
        await engine.handle_message(USER_ID, "churu atun")
        replies = await checkout(engine)
        assert sink.attempts == 1
        assert "Tu pedido quedó registrado" in replies[-1]
        assert (await memory_store.get(USER_ID)).stage == OrderStage.COMPLETED

    @pytest.mark.asyncio
    async def test_store_failure_degrades_to_fresh_session(self, catalog, memory_sink):
        engine = make_engine(catalog, FailingSessionStore(), memory_sink)
        reply = await engine.handle_message(USER_ID, "quiero 2 churu atun")
        assert "Churu Atún" in reply

    @pytest.mark.asyncio
    async def test_rejected_transition_reprompts(self, engine, memory_store, memory_sink):
        memory_store.put_raw(
            USER_ID, '{"cart": [{"productId": "churu-atun", "qty": 1}], "stage": "collect_extra"}'
        )
        reply = await engine.handle_message(USER_ID, "no")
        assert "indicación adicional" in reply
        assert memory_sink.orders == []
        assert (await memory_store.get(USER_ID)).stage == OrderStage.COLLECT_EXTRA

    @pytest.mark.asyncio
    async def test_legacy_session_is_upgraded(self, engine, memory_store):
        memory_store.put_raw(
            USER_ID,
            '{"cart": [{"productId": "churu-atun", "name": "Churu Atún", "price": 12000, "qty": 2}],'
            ' "animal": "gato", "stage": "ready-to-confirm", "shipping": null}',
        )
        await engine.handle_message(USER_ID, "nada mas")
        session = await memory_store.get(USER_ID)
        assert session.stage == OrderStage.COLLECT_NAME
        assert session.animal == Animal.CAT
        assert session.cart[0].quantity == 2
