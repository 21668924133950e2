"""Language and locale resolution for store requests."""
from __future__ import annotations

import logging
from typing import Optional

from .models import Language, MerchantStore

logger = logging.getLogger("salesmanager.languages")


def resolve_language(store: MerchantStore, requested: Optional[str]) -> Language:
    """Return the requested language when the store supports it, else its default."""

    if requested:
        code = requested.strip().lower().replace("-", "_").split("_", 1)[0]
        for language in store.languages:
            if language.code == code:
                return language
        logger.debug("Store %s does not support language '%s'; using default", store.code, requested)
    return store.default_language


def store_locale(store: MerchantStore, language: Optional[Language] = None) -> str:
    """Build a ``<lang>_<COUNTRY>`` locale string for ``store``."""

    selected = language or store.default_language
    return f"{selected.code}_{store.country.upper()}"


__all__ = ["resolve_language", "store_locale"]
