# =============================================================================
# File:        stoic/utilities/string_helper.py
# Purpose:     Nosač string vrednosti (None dozvoljen) sa poređenjem/proverama
# Author:      Aleksandar Popović
# Created:     2025-08-20
# Updated:     2025-08-28
# =============================================================================

from __future__ import annotations
from typing import Any, Optional


class StringHelper:
    def __init__(self, data: Any = None):
        if isinstance(data, StringHelper):
            data = data.data()
        self._data: Optional[str] = None if data is None else str(data)

    def data(self) -> Optional[str]:
        return self._data

    def length(self) -> int:
        return len(self._data) if self._data is not None else 0

    def is_empty_or_null(self) -> bool:
        return self._data is None or self._data == ""

    def is_empty_or_null_or_whitespace(self) -> bool:
        return self._data is None or self._data.strip() == ""

    def lower(self) -> "StringHelper":
        return StringHelper(self._data.lower() if self._data is not None else None)

    def compare(self, other: Any, length: Optional[int] = None, case_insensitive: bool = False) -> int:
        """strcmp stil: <0, 0 ili >0."""
        left = self._data or ""
        right = other.data() if isinstance(other, StringHelper) else ("" if other is None else str(other))
        if case_insensitive:
            left, right = left.lower(), right.lower()
        if length is not None:
            left, right = left[:length], right[:length]
        return (left > right) - (left < right)

    def starts_with(self, prefix: str, case_insensitive: bool = False) -> bool:
        if self._data is None:
            return False
        if case_insensitive:
            return self._data.lower().startswith(prefix.lower())
        return self._data.startswith(prefix)

    def ends_with(self, suffix: str, case_insensitive: bool = False) -> bool:
        if self._data is None:
            return False
        if case_insensitive:
            return self._data.lower().endswith(suffix.lower())
        return self._data.endswith(suffix)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, StringHelper):
            return self._data == other._data
        if other is None or isinstance(other, str):
            return self._data == other
        return NotImplemented

    def __hash__(self):
        return hash(self._data)

    def __str__(self) -> str:
        return self._data or ""

    def __repr__(self) -> str:
        return f"StringHelper({self._data!r})"
