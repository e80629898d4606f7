# ========================================================================
# File:       stoic/handlers/error_handler.py
# Purpose:    Formatira izuzetke za log i zapise grešaka (PdoError)
# Author:     Aleksandar Popović
# Created:    2025-08-07
# Updated:    2025-09-02
# ========================================================================

import traceback


class ErrorHandler:
    @staticmethod
    def format_error(error: BaseException) -> str:
        return f"{type(error).__name__}: {str(error)}"

    @staticmethod
    def get_traceback(error: BaseException) -> str:
        """Traceback vezan za sam izuzetak (radi i van except bloka)."""
        return "".join(traceback.format_exception(type(error), error, error.__traceback__))
