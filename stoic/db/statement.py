# =============================================================================
# File:        stoic/db/statement.py
# Purpose:     Pripremljeni statement iznad DB-API kursora (bind/execute/fetch)
# Author:      Aleksandar Popović
# Created:     2025-08-25
# Updated:     2025-09-02
# =============================================================================

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional

from stoic.db.drivers import build_params, compile_placeholders
from stoic.db.query import FetchMode, ParamType, coerce_param

if TYPE_CHECKING:
    from stoic.db.pdo_helper import PdoHelper


class PdoStatement:
    """
    SQL sa :name placeholder-ima; prevodi se u paramstyle drajvera tek pri izvršavanju.
    Greške drajvera se beleže na helper-u i prosleđuju dalje.
    """

    def __init__(self, helper: "PdoHelper", query: str, fetch_mode: FetchMode = FetchMode.ASSOC):
        self._helper = helper
        self.query_string = query
        self.fetch_mode = fetch_mode
        self._sql, self._names = compile_placeholders(query, helper.paramstyle)
        self._bound: Dict[str, Any] = {}
        self._types: Dict[str, int] = {}
        self._cursor = None

    def bind_value(self, name: str, value: Any, param_type: Optional[int] = ParamType.STR) -> bool:
        key = name.lstrip(":")
        self._bound[key] = coerce_param(value, param_type)
        self._types[key] = int(param_type) if param_type is not None else -1
        return True

    def bound_arguments(self) -> List[List[Any]]:
        return [[f":{k}", v, self._types.get(k, -1)] for k, v in self._bound.items()]

    def execute(self, params: Optional[Dict[str, Any]] = None) -> bool:
        values = dict(self._bound)
        for k, v in (params or {}).items():
            values[k.lstrip(":")] = v

        args = build_params(self._helper.paramstyle, self._names, values)
        # ponovno izvršavanje: prethodni kursor se zatvara pre novog
        self.close()
        cursor = self._helper.native.cursor()
        try:
            cursor.execute(self._sql, args)
        except self._helper.error_types as ex:
            cursor.close()
            self._helper.record_error(ex, self.query_string, self.bound_arguments())
            raise

        self._cursor = cursor
        self._helper.after_execute(cursor, self.query_string)
        return True

    # --- rezultati ---
    def _columns(self) -> List[str]:
        if self._cursor is None or not self._cursor.description:
            return []
        return [d[0] for d in self._cursor.description]

    def _shape(self, row, mode: FetchMode):
        if row is None:
            return None
        mode = FetchMode.try_get_enum(mode) or self.fetch_mode
        if mode is FetchMode.NUM:
            return tuple(row)
        named = dict(zip(self._columns(), row))
        if mode is FetchMode.BOTH:
            named.update({i: v for i, v in enumerate(row)})
        return named

    def fetch(self, mode: Optional[FetchMode] = None):
        """Sledeći red ili None kada redova nema."""
        if self._cursor is None or self._cursor.description is None:
            return None
        return self._shape(self._cursor.fetchone(), mode or self.fetch_mode)

    def fetch_all(self, mode: Optional[FetchMode] = None) -> list:
        if self._cursor is None or self._cursor.description is None:
            return []
        return [self._shape(r, mode or self.fetch_mode) for r in self._cursor.fetchall()]

    def row_count(self) -> int:
        """rowcount drajvera; za SELECT mnogi drajveri vraćaju -1."""
        if self._cursor is None:
            return 0
        return self._cursor.rowcount if self._cursor.rowcount is not None else -1

    def column_count(self) -> int:
        return len(self._columns())

    def close(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None

    def __iter__(self) -> Iterator[Any]:
        while True:
            row = self.fetch()
            if row is None:
                return
            yield row
