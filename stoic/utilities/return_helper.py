# =============================================================================
# File:        stoic/utilities/return_helper.py
# Purpose:     Agregator ishoda operacije (status + poruke + rezultati)
# Author:      Aleksandar Popović
# Created:     2025-08-20
# Updated:     2025-08-28
# =============================================================================

from __future__ import annotations
from typing import Any, Iterable, List, Optional


class ReturnHelper:
    """Počinje neutralno (status None); operacija ga jednom označi kao good/bad."""

    def __init__(self):
        self._status: Optional[bool] = None
        self._messages: List[str] = []
        self._results: List[Any] = []

    def make_good(self) -> None:
        self._status = True

    def make_bad(self) -> None:
        self._status = False

    def is_good(self) -> bool:
        return self._status is True

    def is_bad(self) -> bool:
        return self._status is False

    def add_message(self, message: str) -> None:
        self._messages.append(str(message))

    def add_messages(self, messages: Iterable[str]) -> None:
        for message in messages:
            self.add_message(message)

    def has_messages(self) -> bool:
        return len(self._messages) > 0

    def get_messages(self) -> List[str]:
        return list(self._messages)

    def add_result(self, result: Any) -> None:
        self._results.append(result)

    def has_results(self) -> bool:
        return len(self._results) > 0

    def get_results(self) -> List[Any]:
        return list(self._results)

    def __bool__(self) -> bool:
        return self.is_good()

    def __repr__(self) -> str:
        return f"ReturnHelper(status={self._status!r}, messages={self._messages!r})"
