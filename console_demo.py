"""
Offline console demo: runs a full order conversation without Redis or Telegram.

Uses the real catalog, shipping table, web-cart parser and order engine
with an in-memory session store and notification sink. No network calls.

Usage:
    python console_demo.py
    python console_demo.py --scenario web_cart
    python console_demo.py --scenario no_coverage
"""

import argparse
import asyncio
from typing import Optional

from order_engine.config import settings
from order_engine.conversation.order_session import OrderEngine
from order_engine.tools.catalog import CatalogIndex, load_catalog
from order_engine.tools.notifications import MemoryNotificationSink
from order_engine.tools.session_store import MemorySessionStore

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_USER_ID = "console:573000000000"


class ConsoleSession:
    """Drives the order engine from the terminal."""

    # Pre-scripted scenarios for --scenario flag
    SCENARIOS: dict[str, list[str]] = {
        "chat": [
            "hola",
            "quiero 2 churu atun para mi gato",
            "y una arena lavanda",
            "nada mas",
            "Laura Gómez",
            "3001234567",
            "Calle 45 # 52-10, apto 301",
            "Rionegro centro",
            "timbrar en la portería",
        ],
        "web_cart": [
            "Dogurmet Adulto Carne 3 kg - Cantidad: 1 - Precio unitario: $45.000 - Subtotal: $45.000\n"
            "Churu Pollo - Cantidad: 2 - Precio unitario: $12.000 - Subtotal: $24.000\n"
            "Juguete Pelota Luminosa - Cantidad: 1 - Precio unitario: $9.000 - Subtotal: $9.000\n"
            "Total a pagar: $78.000",
            "Andrés Restrepo",
            "3109876543",
            "Vereda Abreo, finca La Esperanza",
            "vereda abreo",
            "no",
        ],
        "no_coverage": [
            "necesito un hills para mi perrito",
            "eso es todo",
            "Camila",
            "3015550000",
            "Carrera 40 # 33-20",
            "Villavicencio",
            "no",
        ],
    }

    MAX_INPUT_LENGTH = 2000

    def __init__(self, catalog: Optional[CatalogIndex] = None) -> None:
        self.sink = MemoryNotificationSink()
        self.store = MemorySessionStore()
        self.engine = OrderEngine(
            catalog=catalog if catalog is not None else load_catalog(),
            store=self.store,
            sink=self.sink,
        )

    def agent_say(self, text: str) -> None:
        print(f"{GREEN}{BOLD}[{settings.business.bot_name}]{RESET} {GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    async def _turn(self, text: str) -> None:
        reply = await self.engine.handle_message(DEMO_USER_ID, text)
        self.agent_say(reply)
        session = await self.store.get(DEMO_USER_ID)
        self.system_log(f"Stage: {session.stage.value} | cart lines: {len(session.cart)}")

    def _banner(self, title: str) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  PET SHOP ORDER ENGINE - {title}{RESET}")
        print(f"{BOLD}  Business: {settings.business.name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print()

    async def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.SCENARIOS.get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        self._banner(f"Scenario: {scenario}")
        for step in steps:
            print(f"\n{BLUE}[Cliente] {RESET}{step}")
            await self._turn(step)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{DIM}  Orders notified: {len(self.sink.orders)}{RESET}")
        for order in self.sink.orders:
            print(f"{DIM}  Order total: {order.total} ({order.shipping_label}){RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    async def run(self) -> None:
        self._banner("Console Demo")
        print(f"{DIM}  Type 'quit' to exit, 'nuevo pedido' to start over{RESET}")

        while True:
            user_input = (await asyncio.to_thread(input, f"\n{BLUE}[Cliente] {RESET}")).strip()
            if user_input.lower() in ("quit", "exit", "q"):
                print(f"\n{DIM}Session ended.{RESET}")
                return
            if len(user_input) > self.MAX_INPUT_LENGTH:
                print(f"{YELLOW}Message too long, please keep it under "
                      f"{self.MAX_INPUT_LENGTH} characters.{RESET}")
                continue
            await self._turn(user_input)


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline console demo")
    parser.add_argument(
        "--scenario",
        choices=sorted(ConsoleSession.SCENARIOS),
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        asyncio.run(session.run_scenario(args.scenario))
    else:
        asyncio.run(session.run())


if __name__ == "__main__":
    main()
