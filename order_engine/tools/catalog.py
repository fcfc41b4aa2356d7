"""
Product catalog loading and fuzzy search.

The catalog is read once at startup into a CatalogIndex, which is read-only
afterwards and safe to share between concurrent sessions.

Matching metric
---------------
Query and product text go through ``normalize_query`` and are split into
tokens. Only *distinctive* tokens take part: at least ``min_token_length``
characters, not purely numeric, not a stopword (chat filler and generic pet
words such as "quiero", "para", "gato").

    token_similarity(a, b) = 1 - levenshtein(a, b) / max(len(a), len(b))

A token pair counts only if its edit distance is <= ``distance`` and its
normalized distance (1 - similarity) is <= ``threshold``. Each query token
scores its best counted pair against the product's name and brand tokens
(0 when none counts), and the product's similarity is the mean of those
scores, so a word the product lacks ("churu salmon") pulls it down. Its
coverage is the share of its name tokens matched by the query. Results are
ranked by similarity, then coverage, then name.

Strict search additionally drops results below ``strict_similarity``
(0.80): in open chat, claiming we stock something we don't is worse than
not recognizing a product. Loose search keeps every counted result, for
pasted web carts whose names are known to resemble catalog entries.
"""

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from order_engine.config import SearchConfig, settings
from order_engine.schemas.catalog_schema import Product
from order_engine.tools.normalizer import normalize_query

logger = logging.getLogger(__name__)

# Generic pet words name the animal, not a product. "cachorro" is not one:
# product names use it to tell puppy formulas apart.
CAT_WORDS: frozenset[str] = frozenset({
    "gato", "gata", "gatos", "gatas", "gatito", "gatita", "gatitos", "gatitas",
    "felino", "felina", "felinos", "michi", "michis",
})
DOG_WORDS: frozenset[str] = frozenset({
    "perro", "perra", "perros", "perras", "perrito", "perrita", "perritos", "perritas",
    "canino", "canina", "caninos",
})

STOPWORDS: frozenset[str] = frozenset({
    # chat filler
    "hola", "buenas", "buenos", "dias", "tardes", "noches", "gracias", "favor",
    "porfa", "porfavor", "quiero", "quisiera", "necesito", "busco", "tienes",
    "tienen", "tiene", "hay", "venden", "vende", "manejan", "dame", "regalame",
    "mandame", "enviame", "comprar", "pedir", "pedido", "llevar", "precio",
    "cuanto", "vale", "cuesta", "valor", "tambien", "otro", "otra", "otros",
    "otras", "mas", "nada", "algo", "unidades", "unidad", "und", "uds", "por",
    "para", "con", "sin", "los", "las", "del", "una", "uno", "unos", "unas",
    "que", "como", "este", "esta", "ese", "esa", "eso", "mis", "tus", "sus",
    "mascota", "mascotas", "comida", "alimento", "concentrado",
    # quantities and packaging
    "dos", "tres", "cuatro", "cinco", "seis", "siete", "ocho", "nueve", "diez",
    "bolsa", "bolsas", "paquete", "paquetes", "sobre", "sobres", "caja", "cajas",
    "bulto", "bultos", "kilo", "kilos", "gramos", "libra", "libras",
}) | CAT_WORDS | DOG_WORDS


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insert, delete, substitute, all cost 1)."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            ))
        previous = current
    return previous[-1]


def token_similarity(a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if not longest:
        return 0.0
    return 1.0 - levenshtein(a, b) / longest


@dataclass(frozen=True)
class SearchMatch:
    """A product paired with how well it matched a query."""

    product: Product
    similarity: float
    coverage: float


@dataclass(frozen=True)
class _IndexedProduct:
    product: Product
    name_tokens: tuple[str, ...]
    brand_tokens: tuple[str, ...]


class CatalogIndex:
    """Searchable, read-only view over the product catalog."""

    def __init__(self, products: Sequence[Product], config: Optional[SearchConfig] = None) -> None:
        self._config = config or settings.search
        self._products: tuple[Product, ...] = tuple(products)
        self._by_id: dict[str, Product] = {p.id: p for p in self._products}
        self._entries: tuple[_IndexedProduct, ...] = tuple(
            _IndexedProduct(
                product=p,
                name_tokens=self._distinctive_tokens(p.name),
                brand_tokens=self._distinctive_tokens(p.brand),
            )
            for p in self._products
        )
        logger.info("Catalog index built with %d products", len(self._products))

    @classmethod
    def from_records(
        cls, records: Sequence[dict[str, Any]], config: Optional[SearchConfig] = None
    ) -> "CatalogIndex":
        return cls([Product.from_record(r, idx) for idx, r in enumerate(records)], config)

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    def __len__(self) -> int:
        return len(self._products)

    def get(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(product_id)

    def _distinctive_tokens(self, text: str) -> tuple[str, ...]:
        tokens = []
        for token in normalize_query(text).split():
            if len(token) < self._config.min_token_length:
                continue
            if token.isdigit() or token in STOPWORDS:
                continue
            if token not in tokens:
                tokens.append(token)
        return tuple(tokens)

    def query_terms(self, raw_text: str) -> tuple[str, ...]:
        """Distinctive tokens of a query; empty means nothing to look up."""
        return self._distinctive_tokens(raw_text or "")

    def _pair_similarity(self, query_token: str, product_token: str) -> float:
        if query_token == product_token:
            return 1.0
        if levenshtein(query_token, product_token) > self._config.distance:
            return 0.0
        similarity = token_similarity(query_token, product_token)
        if 1.0 - similarity > self._config.threshold:
            return 0.0
        return similarity

    def _score(self, terms: tuple[str, ...], entry: _IndexedProduct) -> Optional[SearchMatch]:
        product_tokens = entry.name_tokens + entry.brand_tokens
        if not product_tokens:
            return None
        term_scores = [
            max(self._pair_similarity(q, token) for token in product_tokens) for q in terms
        ]
        if not any(term_scores):
            return None
        matched_name_tokens = sum(
            1 for token in entry.name_tokens
            if any(self._pair_similarity(q, token) > 0 for q in terms)
        )
        coverage = matched_name_tokens / len(entry.name_tokens) if entry.name_tokens else 0.0
        return SearchMatch(
            product=entry.product,
            similarity=sum(term_scores) / len(term_scores),
            coverage=coverage,
        )

    def _rank(self, raw_text: str) -> list[SearchMatch]:
        if not raw_text or not raw_text.strip():
            return []
        terms = self.query_terms(raw_text)
        if not terms:
            return []
        matches = [m for m in (self._score(terms, e) for e in self._entries) if m is not None]
        matches.sort(key=lambda m: (-m.similarity, -m.coverage, m.product.name))
        return matches

    def search_strict(self, raw_text: str, max_results: Optional[int] = None) -> list[SearchMatch]:
        """Best-first matches with similarity >= the strict floor, capped to K."""
        limit = max_results or self._config.max_results
        floor = self._config.strict_similarity
        return [m for m in self._rank(raw_text) if m.similarity >= floor][:limit]

    def search_loose(self, raw_text: str, max_results: Optional[int] = None) -> list[SearchMatch]:
        """Best-first top-K matches with no similarity floor."""
        limit = max_results or self._config.max_results
        return self._rank(raw_text)[:limit]


def load_catalog(path: Optional[str] = None, config: Optional[SearchConfig] = None) -> CatalogIndex:
    """Load the product JSON file and build the search index.

    A missing file yields an empty catalog (every lookup then reports the
    product as unavailable); a malformed file is a deployment error and
    raises.
    """
    json_path = path or settings.catalog.path
    if not os.path.exists(json_path):
        logger.warning("Catalog file not found at %s; starting with no products", json_path)
        return CatalogIndex([], config)

    with open(json_path, encoding="utf-8") as fh:
        records = json.load(fh)
    if not isinstance(records, list):
        raise ValueError(f"Catalog file {json_path} must contain a JSON array of products")

    index = CatalogIndex.from_records(records, config)
    logger.info("Loaded %d products from %s", len(index), json_path)
    return index
