# =============================================================================
# File:        stoic/db/base_db_class.py
# Purpose:     Bazna klasa koja obezbeđuje PdoHelper, LogManager i meta
#              podatke o klasi
# Author:      Aleksandar Popović
# Created:     2025-08-20
# Updated:     2025-09-02
# =============================================================================

from __future__ import annotations
from typing import Any, Callable, Optional

from stoic.db.pdo_helper import PdoHelper
from stoic.managers.log_manager import LogManager
from stoic.utilities.return_helper import ReturnHelper


class BaseDbClass:
    """
    db može biti PdoHelper ili sirova DB-API konekcija (tada se automatski
    omota u PdoHelper). Logger se deli; ako nije prosleđen, pravi se novi.
    """

    def __init__(self, db: Any, log: Optional[LogManager] = None):
        self.db = db if isinstance(db, PdoHelper) else PdoHelper(instance=db)
        self.log = log if log is not None else LogManager()
        self.class_name = f"{type(self).__module__}.{type(self).__qualname__}"
        self.short_class_name = type(self).__name__

        self._initialize()

    def _initialize(self) -> None:
        """Opcioni hook posle konstruktora."""
        return None

    def try_pdo_except(self, fn: Callable[[], Any], error_prefix: str) -> Any:
        """Izvršava fn; greške drajvera loguje sa prefiksom i vraća None."""
        try:
            return fn()
        except self.db.error_types as ex:
            self.log.error(f"{error_prefix}: {{ERROR}}", {"ERROR": ex})
        return None

    def log_return_helper_messages(self, rh: ReturnHelper, default_message: str) -> None:
        """Sve poruke iz ReturnHelper-a idu u error log; bez poruka loguje se default."""
        if not rh.has_messages() and not (default_message or "").strip():
            raise ValueError("Cannot log ReturnHelper without messages or a default message")

        if rh.has_messages():
            for message in rh.get_messages():
                self.log.error(message)
            return

        self.log.error(default_message)
