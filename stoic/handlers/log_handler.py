# ============================================================================
# File:       stoic/handlers/log_handler.py
# Purpose:    Pisanje logova na osnovu nivoa (DEBUG, INFO, ERROR, ...)
# Author:     Aleksandar Popović
# Created:    2025-08-07
# Updated:    2025-09-02 (LOG_LEVEL prag, opcioni fajl, LOG_ECHO)
# ============================================================================

import os
from datetime import datetime
from stoic.config.env import EnvLoader

LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "SUCCESS": 25,
    "NOTICE": 25,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


class LogHandler:
    """
    Nizak sloj: formatira liniju i upisuje je u LOG_FILE_PATH (ako je zadat).
    Bez LOG_FILE_PATH poruke ostaju samo u memoriji LogManager-a.
    """

    @staticmethod
    def log_file_path():
        return EnvLoader.get("LOG_FILE_PATH", None)

    @staticmethod
    def min_level() -> int:
        name = (EnvLoader.get("LOG_LEVEL", "info") or "info").strip().upper()
        return LEVELS.get(name, LEVELS["INFO"])

    @staticmethod
    def format_line(level: str, message: str) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        return f"[{level.upper()}] {timestamp} - {message}\n"

    @staticmethod
    def _ensure_log_dir(path: str):
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        except Exception as e:
            print(f"❌ Ne mogu kreirati log direktorijum: {e}")

    @staticmethod
    def _write(level, message):
        if LEVELS.get(level.upper(), LEVELS["INFO"]) < LogHandler.min_level():
            return
        try:
            log_entry = LogHandler.format_line(level, message)
            if EnvLoader.get_bool("LOG_ECHO", False):
                print(log_entry, end="")
            path = LogHandler.log_file_path()
            if not path:
                return
            LogHandler._ensure_log_dir(path)
            with open(path, "a", encoding="utf-8") as f:
                f.write(log_entry)
        except Exception as e:
            print(f"❌ Neuspelo logovanje: {e}")

    @staticmethod
    def debug(message):
        LogHandler._write("DEBUG", message)

    @staticmethod
    def info(message):
        LogHandler._write("INFO", message)

    @staticmethod
    def notice(message):
        LogHandler._write("NOTICE", message)

    @staticmethod
    def warning(message):
        LogHandler._write("WARNING", message)

    @staticmethod
    def success(message):
        LogHandler._write("SUCCESS", message)

    @staticmethod
    def error(message):
        LogHandler._write("ERROR", message)

    @staticmethod
    def critical(message):
        LogHandler._write("CRITICAL", message)
