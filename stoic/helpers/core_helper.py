# ========================================================================
# File:       stoic/helpers/core_helper.py
# Purpose:    Bezbedni pozivi + datum/vreme helperi za DB format
# Author:     Aleksandar Popović
# Created:    2025-08-07
# Updated:    2025-09-02
# ========================================================================

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Callable, Optional

DB_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def safe_call(func: Callable, *args, **kwargs):
    """
    Poziva funkciju i guta izuzetke (samo za sporedne kanale kao što je log).
    Greška se ispiše na stdout, tok programa se ne menja.
    """
    try:
        return func(*args, **kwargs)
    except Exception as e:
        print(f"❌ safe_call({getattr(func, '__name__', func)}) neuspešan: {e}")
        return None


def now_local() -> datetime:
    return datetime.now()


def format_db_datetime(value: datetime) -> str:
    return value.strftime(DB_DATETIME_FORMAT)


def parse_db_datetime(value: Any, tz: Optional[timezone] = None) -> datetime:
    """
    Pretvara vrednost iz baze (string, datetime ili timestamp) u datetime.
    Ako je zadat tz, a vrednost nema zonu, zona se dodeljuje (ne konvertuje).
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value, tz or timezone.utc)
    else:
        text = str(value).strip()
        if text == "" or text.lower() == "now":
            dt = datetime.now(tz) if tz else datetime.now()
        else:
            try:
                dt = datetime.strptime(text, DB_DATETIME_FORMAT)
            except ValueError:
                dt = datetime.fromisoformat(text)

    if tz is not None and dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt
