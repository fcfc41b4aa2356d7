"""Per-user order session aggregate.

The session is persisted whole after every turn and read back whole at the
start of the next one. Every field has an explicit default and every read
goes through validation, so sessions written by older deployments (camelCase
keys, ``qty`` instead of ``quantity``, Spanish animal names, missing fields)
come back in the current shape.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from order_engine.schemas.catalog_schema import Product


class OrderStage(str, Enum):
    """Named points of progress in the order-taking conversation."""

    IDLE = "idle"
    BUILDING_CART = "building_cart"
    COLLECT_NAME = "collect_name"
    COLLECT_PHONE = "collect_phone"
    COLLECT_ADDRESS = "collect_address"
    COLLECT_CITY = "collect_city"
    AWAIT_ALT_CITY = "await_alt_city"
    COLLECT_EXTRA = "collect_extra"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Animal(str, Enum):
    DOG = "dog"
    CAT = "cat"
    UNKNOWN = "unknown"


_LEGACY_ANIMALS = {"perro": Animal.DOG, "gato": Animal.CAT}


class CartLine(BaseModel):
    """One product in the cart with its accumulated quantity."""

    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(validation_alias=AliasChoices("product_id", "productId", "id"))
    name: str = ""
    price: int = 0
    quantity: int = Field(default=1, validation_alias=AliasChoices("quantity", "qty"))

    @field_validator("price", mode="before")
    @classmethod
    def _price_default(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("quantity", mode="before")
    @classmethod
    def _at_least_one(cls, value: Any) -> int:
        try:
            quantity = int(value)
        except (TypeError, ValueError):
            return 1
        return max(quantity, 1)

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


class ShippingDetails(BaseModel):
    """Delivery data collected one field per turn."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    extra: Optional[str] = None
    shipping_cost: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("shipping_cost", "shippingCost")
    )
    shipping_label: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("shipping_label", "shippingLabel")
    )


class Session(BaseModel):
    """Everything the engine remembers about one chat user."""

    cart: list[CartLine] = Field(default_factory=list)
    animal: Animal = Animal.UNKNOWN
    shipping: ShippingDetails = Field(default_factory=ShippingDetails)
    stage: OrderStage = OrderStage.IDLE
    notes: str = ""

    @field_validator("cart", mode="before")
    @classmethod
    def _cart_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("shipping", mode="before")
    @classmethod
    def _shipping_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("animal", mode="before")
    @classmethod
    def _normalize_animal(cls, value: Any) -> Animal:
        if isinstance(value, Animal):
            return value
        if value is None:
            return Animal.UNKNOWN
        text = str(value).strip().lower()
        if text in _LEGACY_ANIMALS:
            return _LEGACY_ANIMALS[text]
        try:
            return Animal(text)
        except ValueError:
            return Animal.UNKNOWN

    @field_validator("stage", mode="before")
    @classmethod
    def _normalize_stage(cls, value: Any) -> OrderStage:
        if isinstance(value, OrderStage):
            return value
        text = str(value or "").strip().lower().replace("-", "_")
        try:
            return OrderStage(text)
        except ValueError:
            # Stage names from superseded session layouts restart the order.
            return OrderStage.IDLE

    @field_validator("notes", mode="before")
    @classmethod
    def _notes_default(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @property
    def subtotal(self) -> int:
        return sum(line.subtotal for line in self.cart)

    def add_to_cart(self, product: Product, quantity: int = 1) -> CartLine:
        """Merge a product into the cart, accumulating quantity by product id."""
        quantity = max(quantity, 1)
        for line in self.cart:
            if line.product_id == product.id:
                line.quantity += quantity
                return line
        line = CartLine(
            product_id=product.id, name=product.name, price=product.price, quantity=quantity
        )
        self.cart.append(line)
        return line

    def replace_cart(self, lines: list[CartLine]) -> None:
        self.cart = list(lines)

    def add_note(self, note: str) -> None:
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def clear(self) -> None:
        """Drop the cart and any in-progress shipping details."""
        self.cart = []
        self.shipping = ShippingDetails()
        self.notes = ""
