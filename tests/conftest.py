"""Shared test fixtures and helpers."""

from typing import Any, Optional

import pytest

from order_engine.config import SearchConfig
from order_engine.conversation.order_session import OrderEngine
from order_engine.conversation.signals import SignalDetector
from order_engine.schemas.order_schema import OrderSummary
from order_engine.schemas.session_schema import Session
from order_engine.tools.catalog import CatalogIndex
from order_engine.tools.notifications import MemoryNotificationSink, NotificationSink
from order_engine.tools.session_store import MemorySessionStore

USER_ID = "test:573001112233"

PRODUCT_RECORDS: list[dict[str, Any]] = [
    {"id": "churu-atun", "name": "Churu Atún", "brand": "Inaba", "price": 12000},
    {"id": "churu-pollo", "name": "Churu Pollo", "brand": "Inaba", "price": 12000},
    {"id": "dogurmet-adulto", "name": "Dogurmet Adulto Carne 3 kg", "brand": "Dogurmet",
     "price": 45000},
    {"id": "hills-adulto", "name": "Hills Science Diet Adulto Razas Pequeñas 2 kg",
     "brand": "Hill's", "price": 98000},
    {"nombre": "Arena Aglomerante Lavanda 4 kg", "marca": "Cat Litter", "precio": "$32.000"},
    {"nombre": "Snack Dentastix Perro Mediano", "marca": "Pedigree", "precio": "15.500"},
]


class FailingNotificationSink(NotificationSink):
    """Sink whose delivery always fails, counting attempts."""

    def __init__(self) -> None:
        self.attempts = 0

    async def send_order(self, order: OrderSummary) -> None:
        self.attempts += 1
        raise RuntimeError("notification channel down")


class FailingSessionStore(MemorySessionStore):
    """Store whose reads and writes raise, as an unreachable backend would."""

    async def get(self, user_id: str) -> Session:
        raise ConnectionError("store unreachable")

    async def set(self, user_id: str, session: Session, ttl_seconds: int) -> None:
        raise ConnectionError("store unreachable")


@pytest.fixture
def search_config():
    return SearchConfig(
        max_results=5, strict_similarity=0.80, threshold=0.5, distance=3, min_token_length=3
    )


@pytest.fixture
def catalog(search_config):
    return CatalogIndex.from_records(PRODUCT_RECORDS, search_config)


@pytest.fixture
def memory_store():
    return MemorySessionStore()


@pytest.fixture
def memory_sink():
    sink = MemoryNotificationSink()
    yield sink
    sink.reset()


@pytest.fixture
def signal_detector():
    return SignalDetector()


@pytest.fixture
def engine(catalog, memory_store, memory_sink):
    return make_engine(catalog, memory_store, memory_sink)


def make_engine(
    catalog: CatalogIndex,
    store: MemorySessionStore,
    sink: NotificationSink,
    ttl_seconds: int = 3600,
) -> OrderEngine:
    """Helper to build an engine over test collaborators."""
    return OrderEngine(
        catalog=catalog,
        store=store,
        sink=sink,
        session_ttl_seconds=ttl_seconds,
        business_name="Perrote y Gatote",
    )


async def chat(engine: OrderEngine, messages: list[str], user_id: str = USER_ID) -> list[str]:
    """Send messages in order and return the replies."""
    return [await engine.handle_message(user_id, message) for message in messages]


async def checkout(
    engine: OrderEngine,
    city: str = "Rionegro",
    extra: str = "no",
    user_id: Optional[str] = None,
) -> list[str]:
    """Walk a session with a filled cart through the shipping questions."""
    return await chat(
        engine,
        ["nada mas", "Laura Gómez", "3001234567", "Calle 45 # 52-10", city, extra],
        user_id or USER_ID,
    )
