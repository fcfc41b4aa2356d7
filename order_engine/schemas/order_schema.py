"""Finalized order payload handed to the notification channel."""

from typing import Optional

from pydantic import BaseModel, Field

from order_engine.schemas.session_schema import Animal, Session


class OrderLine(BaseModel):
    """One priced line of a finalized order."""
    name: str
    price: int
    quantity: int
    subtotal: int


class OrderSummary(BaseModel):
    """Validated order data delivered to the notification sink."""
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    extra: Optional[str] = None
    animal: Animal = Animal.UNKNOWN
    lines: list[OrderLine] = Field(default_factory=list)
    subtotal: int = 0
    shipping_cost: Optional[int] = None
    shipping_label: Optional[str] = None
    total: int = 0
    notes: str = ""

    @property
    def requires_shipping_quote(self) -> bool:
        return self.shipping_label is not None and self.shipping_cost is None

    @classmethod
    def from_session(cls, session: Session) -> "OrderSummary":
        """Price the session's cart from catalog prices and add shipping."""
        lines = [
            OrderLine(
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                subtotal=line.subtotal,
            )
            for line in session.cart
        ]
        subtotal = sum(line.subtotal for line in lines)
        shipping = session.shipping
        return cls(
            customer_name=shipping.name,
            phone=shipping.phone,
            address=shipping.address,
            city=shipping.city,
            extra=shipping.extra,
            animal=session.animal,
            lines=lines,
            subtotal=subtotal,
            shipping_cost=shipping.shipping_cost,
            shipping_label=shipping.shipping_label,
            total=subtotal + (shipping.shipping_cost or 0),
            notes=session.notes,
        )
