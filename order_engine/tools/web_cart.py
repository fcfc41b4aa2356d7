"""
Parser for shopping carts pasted from the web storefront.

Customers who build their cart on the website paste the summary into the
chat, one product per line, e.g.::

    Churu Atún x4 - Cantidad: 2 - Precio unitario: $12.000 - Subtotal: $24.000
    Total a pagar: $24.000

Only the line items are trusted for *what* was ordered; prices and totals
are always recomputed from the catalog.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from order_engine.utils import parse_currency

logger = logging.getLogger(__name__)

QUANTITY_MARKER = r"\b(?:cantidad|cant|qty)\b\.?"
UNIT_PRICE_MARKER = (
    r"\b(?:precio\s+unitario|valor\s+unitario|precio\s+por\s+unidad|precio\s+c/u|p\s*/\s*u|precio)\b"
)
SUBTOTAL_MARKER = r"\bsub\s*-?\s*total\b"
GRAND_TOTAL_MARKER = r"\btotal\s+(?:a\s+pagar|del\s+pedido)\b"
_AMOUNT = r"\$?\s*\d[\d.,]*"

_MARKERS = [
    re.compile(QUANTITY_MARKER, re.IGNORECASE),
    re.compile(UNIT_PRICE_MARKER, re.IGNORECASE),
    re.compile(SUBTOTAL_MARKER, re.IGNORECASE),
]
_GRAND_TOTAL = re.compile(
    rf"{GRAND_TOTAL_MARKER}\s*[:=]?\s*(?P<total>{_AMOUNT})", re.IGNORECASE
)
_LINE = re.compile(
    rf"^(?P<name>.+?)\s*{QUANTITY_MARKER}\s*[:=x]?\s*(?P<qty>\d+)"
    rf".*?{UNIT_PRICE_MARKER}\s*[:=]?\s*(?P<unit>{_AMOUNT})"
    rf".*?{SUBTOTAL_MARKER}\s*[:=]?\s*(?P<sub>{_AMOUNT})",
    re.IGNORECASE,
)
_LEADING_BULLET = re.compile(r"^\s*(?:[-*•·]+|\d+\s*[.)])\s*")
_TRAILING_SEPARATORS = re.compile(r"[\s\-–—|:,;·•(]+$")

MIN_MARKERS = 2


@dataclass(frozen=True)
class WebCartItem:
    """One line item as written in the pasted cart."""

    name: str
    quantity: int
    unit_price: int
    subtotal: int


@dataclass
class WebCartParseResult:
    """Items in input order plus the pasted grand total, if any."""

    items: list[WebCartItem] = field(default_factory=list)
    declared_total: Optional[int] = None


def looks_like_web_cart(text: str) -> bool:
    """Tell a pasted cart apart from a chat message that happens to hold numbers."""
    if not text:
        return False
    if _GRAND_TOTAL.search(text):
        return True
    present = sum(1 for marker in _MARKERS if marker.search(text))
    return present >= MIN_MARKERS


def _parse_line(line: str) -> Optional[WebCartItem]:
    match = _LINE.search(line)
    if not match:
        return None
    name = _LEADING_BULLET.sub("", match.group("name"))
    name = _TRAILING_SEPARATORS.sub("", name).strip()
    quantity = int(match.group("qty"))
    unit_price = parse_currency(match.group("unit"))
    subtotal = parse_currency(match.group("sub"))
    if not name or quantity < 1 or unit_price is None or subtotal is None:
        return None
    return WebCartItem(name=name, quantity=quantity, unit_price=unit_price, subtotal=subtotal)


def parse_web_cart(text: str) -> Optional[WebCartParseResult]:
    """Extract line items from pasted cart text.

    Returns None when the text does not look like a cart at all. Lines that
    lack any of name, quantity, unit price or subtotal are skipped, so a
    partially garbled paste still yields the lines that survived.
    """
    if not looks_like_web_cart(text):
        return None

    result = WebCartParseResult()
    for line in text.splitlines():
        if not line.strip():
            continue
        item = _parse_line(line)
        if item is None:
            logger.debug("Skipping unparseable cart line: %r", line[:80])
            continue
        result.items.append(item)

    total_match = _GRAND_TOTAL.search(text)
    if total_match:
        result.declared_total = parse_currency(total_match.group("total"))

    logger.info(
        "Parsed web cart: %d items, declared total %s", len(result.items), result.declared_total
    )
    return result
