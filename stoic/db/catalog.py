# =============================================================================
# File:        stoic/db/catalog.py
# Purpose:     Katalog sačuvanih upita po drajveru i ključu
# Author:      Aleksandar Popović
# Created:     2025-08-25
# Updated:     2025-09-02
# =============================================================================

from __future__ import annotations
from typing import Any, Dict, Iterable, Optional, Sequence

from stoic.db.drivers import lookup_driver
from stoic.db.query import PdoStoredQuery


class QueryCatalog:
    """
    Upiti sačuvani za kasniju upotrebu, grupisani po ključu drajvera.
    Katalog se eksplicitno prosleđuje PdoHelper-ima koji ga dele; bez toga
    svaki helper ima svoj.
    """

    def __init__(self):
        self._queries: Dict[str, Dict[str, PdoStoredQuery]] = {}

    def store_query(self, driver: Any, key: str, query: str, arguments: Optional[Dict[str, int]] = None) -> bool:
        """False ako drajver nije poznat ili ključ već postoji (bez prepisivanja)."""
        info = lookup_driver(driver)
        if info is None:
            return False

        bucket = self._queries.setdefault(info.key, {})
        if key in bucket:
            return False

        bucket[key] = PdoStoredQuery.build(key, query, arguments)
        return True

    def store_queries(self, driver: Any, queries: Optional[Iterable[Sequence[Any]]] = None) -> None:
        """queries: [(key, query, {':arg': tip}), ...]; treći element je opcion."""
        for entry in queries or []:
            arguments = entry[2] if len(entry) > 2 else None
            self.store_query(driver, entry[0], entry[1], arguments)

    def get(self, driver_key: str, key: str) -> Optional[PdoStoredQuery]:
        return self._queries.get(driver_key, {}).get(key)

    def has(self, driver_key: str, key: str) -> bool:
        return self.get(driver_key, key) is not None

    def keys(self, driver_key: str):
        return list(self._queries.get(driver_key, {}).keys())

    def clear(self) -> None:
        self._queries.clear()
