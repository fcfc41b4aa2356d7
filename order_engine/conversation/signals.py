"""
Keyword signals read from each customer message.

Four independent detectors, each looking for a different intent:
1. ResetDetector    : explicit request to start over
2. ClosingDetector  : "nothing else", the cart is done
3. NegationDetector : declines an offer (e.g. an alternate address)
4. AnimalDetector   : which pet the customer is shopping for

These are composed into a SignalDetector that runs once per turn.
Every check compares against normalized text, so accents, capitals and
punctuation in the customer's message never change the outcome.
"""

import logging
import re
from dataclasses import dataclass

from order_engine.schemas.session_schema import Animal
from order_engine.tools.catalog import CAT_WORDS, DOG_WORDS
from order_engine.tools.normalizer import normalize_text

logger = logging.getLogger(__name__)

SPANISH_NUMBERS: dict[str, int] = {
    "un": 1, "una": 1, "uno": 1, "dos": 2, "tres": 3, "cuatro": 4, "cinco": 5,
    "seis": 6, "siete": 7, "ocho": 8, "nueve": 9, "diez": 10,
}
MAX_QUANTITY = 999
# Numbers followed by one of these are sizes ("hills 7 kg"), not quantities.
SIZE_UNITS = frozenset({
    "kg", "kilo", "kilos", "g", "gr", "grs", "gramos", "lb", "lbs", "libras", "ml", "oz",
})
PUPPY_WORDS = frozenset({"cachorro", "cachorra", "cachorros", "cachorras", "cachorrito"})
PET_WORDS = CAT_WORDS | DOG_WORDS | PUPPY_WORDS


@dataclass
class TurnSignals:
    """Everything keyword-based detected in one message."""
    normalized: str
    reset: bool = False
    closing: bool = False
    negation: bool = False
    animal: Animal = Animal.UNKNOWN
    quantity: int = 1


def _has_phrase(normalized: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}\b", normalized) is not None


class ResetDetector:
    """Only a message made of the keyword alone resets the conversation."""

    RESET_KEYWORDS = ["reset", "reiniciar", "borrar chat", "nuevo chat", "nuevo pedido"]

    def is_reset(self, normalized: str) -> bool:
        return normalized in self.RESET_KEYWORDS


class ClosingDetector:
    """Detects that the customer has nothing more to add to the cart."""

    CLOSING_PHRASES = [
        "nada mas", "no mas", "eso es todo", "es todo", "solo eso", "seria todo",
        "listo", "ya", "no", "finalizar", "terminar pedido", "confirmar pedido",
    ]
    # Phrases long enough to close the cart even when followed by more words,
    # e.g. "nada mas gracias".
    PREFIX_PHRASES = [
        "nada mas", "no mas", "eso es todo", "es todo", "solo eso", "seria todo",
        "finalizar", "terminar pedido", "confirmar pedido",
    ]

    def is_closing(self, normalized: str) -> bool:
        if normalized in self.CLOSING_PHRASES:
            return True
        return any(
            normalized == phrase or normalized.startswith(phrase + " ")
            for phrase in self.PREFIX_PHRASES
        )


class NegationDetector:
    """Detects a refusal, e.g. when offered to give another delivery city."""

    NEGATION_KEYWORDS = [
        "no", "nop", "nope", "negativo", "ninguna", "ninguno", "cancelar", "cancela",
        "olvidalo", "no tengo", "no gracias", "dejalo asi",
    ]

    BARE_REFUSALS = ["no", "nop", "nope", "ninguna", "ninguno", "nada", "no gracias", "negativo"]

    def is_negation(self, normalized: str) -> bool:
        if not normalized:
            return False
        first_word = normalized.split()[0]
        if first_word in ("no", "nop", "nope", "negativo"):
            return True
        return any(_has_phrase(normalized, kw) for kw in self.NEGATION_KEYWORDS)

    def is_bare_refusal(self, normalized: str) -> bool:
        """The whole message is just a "no", with nothing else to keep."""
        return normalized in self.BARE_REFUSALS


class AnimalDetector:
    """Maps pet mentions to the animal the customer is buying for."""

    CAT_KEYWORDS = CAT_WORDS
    DOG_KEYWORDS = DOG_WORDS | PUPPY_WORDS

    def detect(self, normalized: str) -> Animal:
        words = set(normalized.split())
        if words & self.CAT_KEYWORDS:
            return Animal.CAT
        if words & self.DOG_KEYWORDS:
            return Animal.DOG
        return Animal.UNKNOWN


def detect_quantity(normalized: str) -> int:
    """First standalone integer or Spanish number word, defaulting to 1.

    A number followed by a size unit is a package size, and one followed by
    a pet word counts animals, not items.

    Examples:
        >>> detect_quantity("quiero 2 churu")
        2
        >>> detect_quantity("dame tres bolsas")
        3
        >>> detect_quantity("churu x4")
        1
        >>> detect_quantity("hills 7 kg")
        1
        >>> detect_quantity("churu atun para mis dos gatos")
        1
    """
    words = normalized.split()
    for position, word in enumerate(words):
        following = words[position + 1] if position + 1 < len(words) else ""
        if following in SIZE_UNITS or following in PET_WORDS:
            continue
        if word.isdigit():
            value = int(word)
            if value >= 1:
                return min(value, MAX_QUANTITY)
            continue
        if word in SPANISH_NUMBERS:
            return SPANISH_NUMBERS[word]
    return 1


class SignalDetector:
    """Runs every detector over one message."""

    def __init__(self) -> None:
        self.reset = ResetDetector()
        self.closing = ClosingDetector()
        self.negation = NegationDetector()
        self.animal = AnimalDetector()

    def detect(self, raw_text: str) -> TurnSignals:
        normalized = normalize_text(raw_text)
        signals = TurnSignals(
            normalized=normalized,
            reset=self.reset.is_reset(normalized),
            closing=self.closing.is_closing(normalized),
            negation=self.negation.is_negation(normalized),
            animal=self.animal.detect(normalized),
            quantity=detect_quantity(normalized),
        )
        logger.debug("Turn signals: %s", signals)
        return signals
