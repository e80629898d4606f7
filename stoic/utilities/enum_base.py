# =============================================================================
# File:        stoic/utilities/enum_base.py
# Purpose:     Imenovane celobrojne konstante sa lookup/compare helperima
# Author:      Aleksandar Popović
# Created:     2025-08-20
# Updated:     2025-09-02
# =============================================================================

from __future__ import annotations
from enum import IntEnum
from typing import Any, Optional


class EnumBase(IntEnum):
    """
    Bazna klasa za enumeracije. Konstrukcija sa nedefinisanom vrednošću baca
    ValueError; "nerazrešeno" stanje se predstavlja sa None (vidi allow_none).
    """

    @classmethod
    def from_string(cls, name: str, allow_none: bool = False, case_sensitive: bool = False) -> Optional["EnumBase"]:
        if name is not None:
            wanted = str(name).strip()
            for member in cls:
                if member.name == wanted or (not case_sensitive and member.name.lower() == wanted.lower()):
                    return member
        if allow_none:
            return None
        raise ValueError(f"{name!r} nije validno ime za {cls.__name__}")

    @classmethod
    def try_get_enum(cls, value: Any) -> Optional["EnumBase"]:
        """Prihvata instancu, int ili ime; vraća člana ili None."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return cls(value) if cls.valid_value(value) else None
        if isinstance(value, str):
            text = value.strip()
            if text.lstrip("-").isdigit():
                return cls.try_get_enum(int(text))
            return cls.from_string(text, allow_none=True)
        return None

    @classmethod
    def valid_name(cls, name: str, case_sensitive: bool = False) -> bool:
        return cls.from_string(name, allow_none=True, case_sensitive=case_sensitive) is not None

    @classmethod
    def valid_value(cls, value: Any) -> bool:
        return any(int(member) == value for member in cls) if isinstance(value, int) else False

    def get_name(self) -> str:
        return self.name

    def get_value(self) -> int:
        return int(self)

    def is_(self, value: Any) -> bool:
        other = type(self).try_get_enum(value)
        return other is not None and other is self

    def is_in(self, *values: Any) -> bool:
        return any(self.is_(v) for v in values)

    def to_json(self) -> dict:
        return {"name": self.name, "value": int(self)}
