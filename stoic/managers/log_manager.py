# ============================================================================
# File:       stoic/managers/log_manager.py
# Purpose:    LogManager: logger koji se prosleđuje DB klasama
# Author:     Aleksandar Popovic
# Created:    2025-08-07
# Updated:    2025-09-02 (instance umesto klasnog stanja, {KEY} kontekst)
# ============================================================================

from __future__ import annotations
import re
from typing import Any, Dict, List, Optional, Tuple

from stoic.handlers.error_handler import ErrorHandler
from stoic.handlers.log_handler import LogHandler
from stoic.helpers.core_helper import safe_call

_PLACEHOLDER = re.compile(r"\{([A-Za-z0-9_.]+)\}")


class LogManager:
    """
    Jedna instanca po aplikaciji; DB klase je dele, ne poseduju je.
    Svaki unos se pamti u memoriji i delegira LogHandler-u.
    """

    def __init__(self):
        self._log_entries: List[Tuple[str, str]] = []

    @staticmethod
    def interpolate(message: str, context: Optional[Dict[str, Any]] = None) -> str:
        if not context:
            return message

        def _sub(match):
            key = match.group(1)
            if key not in context:
                return match.group(0)
            value = context[key]
            if isinstance(value, BaseException):
                return ErrorHandler.format_error(value)
            return str(value)

        return _PLACEHOLDER.sub(_sub, message)

    def create(self, level: str, message: str, context: Optional[Dict[str, Any]] = None):
        """
        Centralni ulaz za log. Pamti u memoriji i delegira LogHandler-u.
        Ako odgovarajuća metoda ne postoji na LogHandler-u, koristi _write fallback.
        """
        level_upper = (level or "").upper()
        level_lower = level_upper.lower()
        text = self.interpolate(str(message), context)

        self._log_entries.append((level_upper, text))

        method = getattr(LogHandler, level_lower, None)
        if callable(method):
            safe_call(method, text)
            return

        safe_call(LogHandler._write, level_upper, text)

    def read(self, last_only: bool = False, level: Optional[str] = None):
        entries = self._log_entries
        if level:
            entries = [e for e in entries if e[0] == level.upper()]
        if last_only:
            return entries[-1] if entries else None
        return list(entries)

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [text for _, text in self.read(level=level)]

    def delete(self, index: int = None):
        if index is None:
            self._log_entries.clear()
        elif 0 <= index < len(self._log_entries):
            self._log_entries.pop(index)

    # === Shortcut/proxy metode ===

    def debug(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.create("DEBUG", message, context)

    def info(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.create("INFO", message, context)

    def notice(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.create("NOTICE", message, context)

    def warning(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.create("WARNING", message, context)

    def success(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.create("SUCCESS", message, context)

    def error(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.create("ERROR", message, context)

    def critical(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.create("CRITICAL", message, context)
