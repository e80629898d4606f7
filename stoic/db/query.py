# =============================================================================
# File:        stoic/db/query.py
# Purpose:     Exceptions DB sloja + tipovi parametara + zapisi upita/grešaka
# Author:      Aleksandar Popović
# Created:     2025-08-12
# Updated:     2025-09-02
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from stoic.handlers.error_handler import ErrorHandler
from stoic.utilities.enum_base import EnumBase


# ---------- Exceptions ----------
class DBError(Exception):
    """Bazna greška DB sloja."""
    pass


class UnsupportedDriverError(DBError, ValueError):
    """DSN prefiks ili konekcija ne odgovara nijednom poznatom drajveru."""
    pass


class InvalidFieldError(DBError, ValueError):
    """Neispravna definicija polja modela ili duplo registrovanje."""
    pass


class ClassPropertyNotFoundException(DBError):
    """Ključ iz izvora za from_array() nema odgovarajuće polje."""
    pass


# ---------- Tipovi parametara / fetch ----------
class ParamType(EnumBase):
    """Tip vezanog parametra (vrednosti prate PDO::PARAM_* radi kompatibilnosti)."""
    NULL = 0
    INT = 1
    STR = 2
    LOB = 3
    BOOL = 5


class FetchMode(EnumBase):
    ASSOC = 2
    NUM = 3
    BOTH = 4


def coerce_param(value: Any, param_type: Optional[int]) -> Any:
    """Primenjuje tip parametra na vrednost pre slanja drajveru."""
    if value is None or param_type is None:
        return value
    ptype = ParamType.try_get_enum(param_type)
    if ptype is None:
        return value
    if ptype is ParamType.NULL:
        return None
    if ptype is ParamType.INT:
        try:
            return int(value)
        except (TypeError, ValueError):
            return value
    if ptype is ParamType.BOOL:
        return bool(value)
    if ptype is ParamType.STR:
        return value if isinstance(value, str) else str(value)
    return value


# ---------- Zapisi ----------
@dataclass
class PdoQuery:
    """Zapis izvršenog upita; arguments je lista [ime, vrednost, tip]."""
    query: str
    arguments: List[List[Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"query": self.query, "arguments": [list(a) for a in self.arguments]}


@dataclass
class PdoError:
    """Izuzetak drajvera zajedno sa upitom koji ga je izazvao."""
    exception: BaseException
    query: PdoQuery

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": str(self.exception),
            "stackTrace": ErrorHandler.get_traceback(self.exception),
            "query": self.query.to_dict(),
        }


@dataclass(frozen=True)
class PdoStoredArgument:
    name: str
    type: int = -1


@dataclass
class PdoStoredQuery:
    """Upit sačuvan za ponovnu upotrebu, sa deklarisanim argumentima."""
    key: str
    query: str
    arguments: Dict[str, PdoStoredArgument] = field(default_factory=dict)

    @classmethod
    def build(cls, key: str, query: str, arguments: Optional[Dict[str, int]] = None) -> "PdoStoredQuery":
        args = {}
        for name, ptype in (arguments or {}).items():
            args[name] = PdoStoredArgument(name, int(ptype))
        return cls(key=key, query=query, arguments=args)
