"""
Delivery zones and rates from the Rionegro store.

Lookup is by substring containment of each zone alias inside the normalized
customer text, so "vivo cerca a Rionegro centro" finds Rionegro. The first
zone in table order with a contained alias wins, which is why the more
specific zones (airport, Fontibón, veredas) are listed before Rionegro.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from order_engine.tools.normalizer import normalize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShippingZone:
    """One delivery destination and every way customers write it."""

    key: str
    label: str
    region: str
    aliases: tuple[str, ...]
    cost: Optional[int]


@dataclass(frozen=True)
class ShippingInfo:
    """Resolved shipping rate. ``cost`` is None when the trip must be quoted."""

    key: str
    label: str
    region: str
    cost: Optional[int]

    @property
    def requires_quote(self) -> bool:
        return self.cost is None


ORIENTE = "Oriente Antioqueño"
METROPOLITANA = "Área Metropolitana"

SHIPPING_ZONES: list[ShippingZone] = [
    ShippingZone("aeropuerto", "Aeropuerto JMC", ORIENTE,
                 ("aeropuerto", "jmc", "jose maria cordova", "jose maria cordoba"), 25000),
    ShippingZone("fontibon", "Rionegro - Fontibón", ORIENTE, ("fontibon",), 10000),
    ShippingZone("vereda", "Vereda (tarifa por kilómetro)", ORIENTE, ("vereda",), None),
    ShippingZone("rionegro", "Rionegro urbano", ORIENTE, ("rionegro",), 9000),
    ShippingZone("el-retiro", "El Retiro", ORIENTE, ("el retiro", "retiro"), 30000),
    ShippingZone("guarne", "Guarne", ORIENTE, ("guarne",), 35000),
    ShippingZone("la-ceja", "La Ceja", ORIENTE, ("la ceja", "ceja"), 30000),
    ShippingZone("el-santuario", "El Santuario", ORIENTE, ("el santuario", "santuario"), 30000),
    ShippingZone("marinilla", "Marinilla", ORIENTE, ("marinilla",), 17000),
    ShippingZone("el-carmen", "El Carmen de Viboral", ORIENTE,
                 ("carmen de viboral", "el carmen", "carmen"), 22000),
    ShippingZone("medellin", "Medellín", METROPOLITANA, ("medellin",), 20000),
    ShippingZone("bello", "Bello", METROPOLITANA, ("bello",), 20000),
    ShippingZone("envigado", "Envigado", METROPOLITANA, ("envigado",), 22000),
    ShippingZone("itagui", "Itagüí", METROPOLITANA, ("itagui",), 22000),
]


def resolve_shipping(
    text: Optional[str], zones: Optional[list[ShippingZone]] = None
) -> Optional[ShippingInfo]:
    """Find the shipping rate for a city/zone mention. Returns None if we don't deliver there."""
    normalized = normalize_text(text)
    if not normalized:
        return None
    for zone in zones if zones is not None else SHIPPING_ZONES:
        for alias in zone.aliases:
            if normalize_text(alias) in normalized:
                logger.debug("Zone '%s' matched alias '%s'", zone.key, alias)
                return ShippingInfo(
                    key=zone.key, label=zone.label, region=zone.region, cost=zone.cost
                )
    return None
