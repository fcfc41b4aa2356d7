"""Reply and notification text built from session and order data.

Every product name and price that reaches the customer comes from the
catalog through these builders, never from free-form generation.
"""

import re
from typing import Optional, Sequence, Union

from order_engine.schemas.order_schema import OrderLine, OrderSummary
from order_engine.schemas.session_schema import CartLine
from order_engine.tools.shipping import ShippingInfo
from order_engine.utils import format_cop

RESET_REPLY = "Listo, empezamos una conversación nueva. Cuéntame, ¿en qué te ayudo?"
EMPTY_CART_REPLY = (
    "Todavía no tienes productos en tu pedido. Dime qué producto buscas y te lo agrego."
)
ANYTHING_ELSE = "¿Deseas agregar algo más? Si ya es todo, escríbeme *nada más*."


def build_cart_lines(cart: Sequence[Union[CartLine, OrderLine]]) -> list[str]:
    """One bullet per cart line with unit price and line subtotal."""
    return [
        f"• {line.quantity} x {line.name} → {format_cop(line.price)} c/u "
        f"(Sub: {format_cop(line.subtotal)})"
        for line in cart
    ]


def build_cart_summary(cart: Sequence[CartLine]) -> str:
    subtotal = sum(line.subtotal for line in cart)
    lines = ["🛒 Tu pedido:"]
    lines.extend(build_cart_lines(cart))
    lines.append(f"Subtotal productos: {format_cop(subtotal)}")
    return "\n".join(lines)


def build_help_reply(business_name: str, cart: Sequence[CartLine]) -> str:
    text = (
        f"¡Hola! Soy el asesor de {business_name}. Escríbeme el producto que necesitas "
        "(por ejemplo: *2 churu atún*) o pega aquí el carrito de la página web."
    )
    if cart:
        text += "\n\n" + build_cart_summary(cart) + "\n\n" + ANYTHING_ELSE
    return text


def build_item_added_reply(line: CartLine, added: int, cart: Sequence[CartLine]) -> str:
    return (
        f"Agregué {added} x {line.name} ({format_cop(line.price)} c/u) a tu pedido. ✅\n\n"
        + build_cart_summary(cart)
        + "\n\n"
        + ANYTHING_ELSE
    )


def build_not_available_reply(terms: Sequence[str], cart: Sequence[CartLine]) -> str:
    asked = " ".join(terms)
    text = (
        f"Lo siento, no encuentro «{asked}» en nuestro catálogo, así que no lo tenemos "
        "disponible. ¿Quieres que te ayude con otro producto?"
    )
    if cart:
        text += "\n\n" + build_cart_summary(cart)
    return text


def build_web_cart_reply(
    cart: Sequence[CartLine],
    unavailable: Sequence[str],
    declared_total: Optional[int],
    next_prompt: str,
) -> str:
    parts = ["Recibí el pedido que copiaste de la página. 🙌", build_cart_summary(cart)]
    if unavailable:
        parts.append(
            "Estos productos no están en nuestro catálogo y no los incluí: "
            + ", ".join(unavailable)
            + "."
        )
    subtotal = sum(line.subtotal for line in cart)
    if declared_total is not None and declared_total != subtotal:
        parts.append(
            f"Ojo: el total pegado era {format_cop(declared_total)}, pero con los precios "
            f"actuales del catálogo el subtotal es {format_cop(subtotal)}."
        )
    parts.append(next_prompt)
    return "\n\n".join(parts)


def build_web_cart_unavailable_reply(unavailable: Sequence[str]) -> str:
    return (
        "Revisé el pedido que pegaste, pero ninguno de estos productos está en nuestro "
        "catálogo: " + ", ".join(unavailable) + ". ¿Te ayudo a buscar alternativas?"
    )


def build_close_cart_reply(cart: Sequence[CartLine], next_prompt: str) -> str:
    return "Perfecto. " + build_cart_summary(cart) + "\n\n" + next_prompt


def build_shipping_reply(info: ShippingInfo, next_prompt: str) -> str:
    if info.requires_quote:
        text = (
            f"Para {info.label} el domicilio se cobra por kilómetro, así que lo "
            "cotizamos y te confirmamos el valor."
        )
    else:
        text = f"El domicilio a {info.label} cuesta {format_cop(info.cost or 0)}."
    return text + "\n\n" + next_prompt


def build_alt_address_reply(city: str) -> str:
    return (
        f"Por ahora no tenemos cobertura de domicilio en «{city}». 😔 ¿Tienes otra "
        "dirección en el Oriente Antioqueño o el Área Metropolitana donde podamos "
        "entregarte? Si no, escríbeme *no*."
    )


CANCELLED_REPLY = (
    "Entiendo. Cancelé el pedido porque no tenemos cobertura en tu zona. "
    "Si más adelante quieres pedir, escríbeme *nuevo pedido*."
)
COMPLETED_REMINDER = (
    "Tu pedido ya quedó registrado y lo estamos preparando. "
    "Si quieres hacer otro, escríbeme *nuevo pedido*."
)
CANCELLED_REMINDER = "Este pedido fue cancelado. Para empezar otro, escríbeme *nuevo pedido*."


def build_order_confirmation(order: OrderSummary) -> str:
    lines = ["¡Listo! Tu pedido quedó registrado. 🐾", ""]
    lines.extend(build_cart_lines(order.lines))
    lines.append("")
    lines.append(f"Subtotal productos: {format_cop(order.subtotal)}")
    if order.requires_shipping_quote:
        lines.append(f"Envío ({order.shipping_label}): por cotizar")
    elif order.shipping_cost is not None:
        lines.append(f"Envío ({order.shipping_label}): {format_cop(order.shipping_cost)}")
    lines.append(f"Total: {format_cop(order.total)}")
    lines.append("")
    lines.append(f"Enviaremos tu pedido a {order.address or 'N/D'}, {order.city or 'N/D'}.")
    return "\n".join(lines)


_MARKDOWN_SPECIALS = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    """Backslash-escape Telegram Markdown markers in free text."""
    return _MARKDOWN_SPECIALS.sub(r"\\\1", text)


def build_order_notification(order: OrderSummary, business_name: str = "Perrote y Gatote") -> str:
    """Staff-facing order text for the notification channel.

    Only the header is Markdown; every customer or catalog value is escaped,
    so a stray ``_`` or ``*`` in an address cannot break the message.
    """
    esc = escape_markdown
    lines = [f"🧾 *Nuevo pedido {esc(business_name)}*", ""]
    lines.append("👤 Nombre: " + esc(order.customer_name or "N/D"))
    lines.append("📱 Teléfono: " + esc(order.phone or "N/D"))
    lines.append("📍 Ciudad: " + esc(order.city or "N/D"))
    lines.append("🏠 Dirección: " + esc(order.address or "N/D"))
    if order.extra:
        lines.append("ℹ️ Indicaciones: " + esc(order.extra))
    lines.append("")
    lines.append("📦 Productos:")
    lines.extend(esc(line) for line in build_cart_lines(order.lines))
    lines.append("")
    lines.append("🛒 Subtotal productos: " + format_cop(order.subtotal))
    if order.requires_shipping_quote:
        lines.append(f"🚚 Envío ({esc(order.shipping_label or 'N/D')}): por cotizar")
    elif order.shipping_cost is not None:
        lines.append(
            f"🚚 Envío ({esc(order.shipping_label or 'N/D')}): " + format_cop(order.shipping_cost)
        )
    lines.append("💰 Total: " + format_cop(order.total))
    if order.notes:
        lines.append("")
        lines.append("📝 Notas: " + esc(order.notes))
    return "\n".join(lines)
