"""Keyword search index over store products."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Set

from .criteria import Criteria
from .database import Database
from .models import Language, MerchantStore, Product

logger = logging.getLogger("salesmanager.search")

_WORD_PATTERN = re.compile(r"\w+", re.UNICODE)
MIN_TERM_LENGTH = 2


def tokenize(text: str) -> List[str]:
    """Split ``text`` into lower-cased index terms, dropping very short words."""

    return [word for word in _WORD_PATTERN.findall(text.lower()) if len(word) >= MIN_TERM_LENGTH]


def product_terms(product: Product) -> Dict[str, Set[str]]:
    """Build the per-language term sets indexed for ``product``."""

    terms: Dict[str, Set[str]] = {}
    sku = product.sku.strip().lower()
    for language_code, name in product.names.items():
        language_terms = set(tokenize(name))
        language_terms.update(tokenize(product.descriptions.get(language_code, "")))
        if sku:
            language_terms.add(sku)
            language_terms.update(tokenize(sku))
        terms[language_code] = language_terms
    return terms


@dataclass(frozen=True)
class SearchHit:
    product: Product
    score: int


@dataclass(frozen=True)
class SearchResult:
    total: int
    hits: List[SearchHit]


class SearchFacade:
    def __init__(self, database: Database) -> None:
        self._database = database

    def index_product(self, store: MerchantStore, product: Product) -> None:
        self._database.replace_search_terms(store.id, product.id, product_terms(product))
        logger.debug("Indexed product %s for store %s", product.sku, store.code)

    def reindex_store(self, store: MerchantStore) -> int:
        """Rebuild the index for every product of ``store``; returns the product count."""

        self._database.clear_search_terms(store.id)
        products = self._database.list_all_products(store.id)
        for product in products:
            self._database.replace_search_terms(store.id, product.id, product_terms(product))
        logger.info("Rebuilt search index for store %s (%d products)", store.code, len(products))
        return len(products)

    def search(self, store: MerchantStore, language: Language, query: str, criteria: Criteria) -> SearchResult:
        """Rank products by the number of query terms they match."""

        terms = _unique(tokenize(query))
        if not terms:
            return SearchResult(total=0, hits=[])
        ranked, total = self._database.search_products(
            store.id,
            language.code,
            terms,
            offset=criteria.start_index,
            limit=criteria.max_count,
        )
        products = self._database.get_products(store.id, [product_id for product_id, _ in ranked])
        hits = [
            SearchHit(product=products[product_id], score=score)
            for product_id, score in ranked
            if product_id in products
        ]
        return SearchResult(total=total, hits=hits)

    def autocomplete(self, store: MerchantStore, language: Language, prefix: str, limit: int = 10) -> List[str]:
        normalized = prefix.strip().lower()
        if not normalized or limit <= 0:
            return []
        return self._database.autocomplete_terms(store.id, language.code, normalized, limit)


def _unique(terms: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    ordered: List[str] = []
    for term in terms:
        if term not in seen:
            seen.add(term)
            ordered.append(term)
    return ordered


__all__ = ["SearchFacade", "SearchHit", "SearchResult", "product_terms", "tokenize"]
