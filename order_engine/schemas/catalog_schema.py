"""Product catalog data models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from order_engine.utils import parse_currency


class Product(BaseModel):
    """A sellable catalog item. Immutable once the catalog is loaded."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    brand: str = ""
    price: int = 0
    description: str = ""
    images: tuple[str, ...] = Field(default_factory=tuple)

    @classmethod
    def from_record(cls, record: dict[str, Any], index: int) -> "Product":
        """Build a product from a raw record using either naming scheme.

        The storefront export uses English keys (``name``, ``price``...)
        while the hand-maintained sheet uses Spanish ones (``nombre``,
        ``precio``...). Missing optional fields fall back to empty values.
        """
        raw_price = record.get("price")
        if raw_price is None:
            raw_price = record.get("precio")
        images = record.get("images") or record.get("imagenes") or []
        if isinstance(images, str):
            images = [images]
        return cls(
            id=str(record.get("id") or f"prod-{index}"),
            name=str(record.get("name") or record.get("nombre") or ""),
            brand=str(record.get("brand") or record.get("marca") or ""),
            price=parse_currency(raw_price) or 0,
            description=str(record.get("description") or record.get("descripcion") or ""),
            images=tuple(str(i) for i in images),
        )
