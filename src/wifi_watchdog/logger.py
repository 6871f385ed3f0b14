# ─── Standard library imports ───
import os
import sys
import time
import logging
import logging.handlers
from typing import Optional

# ─── Project imports ───
from .config import Config


# ─── Format configuration constants ───
LOG_LEVEL_EMOJIS = {
    logging.DEBUG: "🧱",
    logging.INFO: "🟢",
    logging.WARNING: "⚠️ ",
    logging.ERROR: "❌",
    logging.CRITICAL: "🔥",
}

LEVEL_NAME_MAP = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}

# Numeric levels accepted from LOG_LEVEL (0=debug ... 3=error)
NUMERIC_LEVELS = {
    "0": logging.DEBUG,
    "1": logging.INFO,
    "2": logging.WARNING,
    "3": logging.ERROR,
}

SYSLOG_SOCKET = "/dev/log"


# ─── Formatters ───
class ShortLevelFormatter(logging.Formatter):
    """
    Formatter exposing `%(shortlevel)s` (WARN/FATAL) without mutating
    the shared record's levelname.
    """
    def format(self, record: logging.LogRecord) -> str:
        record.shortlevel = LEVEL_NAME_MAP.get(record.levelname, record.levelname)
        return super().format(record)


class UTCFormatter(ShortLevelFormatter):
    """Timestamped lines for the append-only log file (UTC, ISO 8601)."""
    converter = time.gmtime


class EmojiFormatter(ShortLevelFormatter):
    def format(self, record: logging.LogRecord) -> str:
        """
        Formatter that prepends an emoji per
        log level and shortens log level names.
        """
        record.levelemoji = LOG_LEVEL_EMOJIS.get(record.levelno, "")
        return super().format(record)


# ─── Public logging setup API ───
def parse_level(value: Optional[str], default: int = logging.INFO) -> int:
    """
    Map a LOG_LEVEL value to a logging level.

    Accepts level names (DEBUG, INFO, WARN, WARNING, ERROR) or the
    numeric form 0-3. Anything else falls back to `default`.
    """
    if value is None:
        return default

    text = value.strip().upper()
    if text in NUMERIC_LEVELS:
        return NUMERIC_LEVELS[text]
    if text == "WARN":
        return logging.WARNING

    level = logging.getLevelName(text)
    return level if isinstance(level, int) else default


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: Optional[bool] = None,
    use_syslog: bool = True,
) -> None:
    """
    Configure global logging for the daemon.

    Handlers:
      - append-only log file with UTC timestamps
      - system log (best-effort, skipped when no syslog socket exists)
      - emoji console output when attached to a terminal
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as exc:
            print(
                f"Cannot open log file {log_file} ({exc}); continuing without it",
                file=sys.stderr,
            )
        else:
            file_handler.setFormatter(UTCFormatter(
                fmt="%(asctime)s [%(shortlevel)s] %(name)s → %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%SZ",
            ))
            root.addHandler(file_handler)

    if use_syslog and os.path.exists(SYSLOG_SOCKET):
        try:
            syslog_handler = logging.handlers.SysLogHandler(
                address=SYSLOG_SOCKET,
                facility=logging.handlers.SysLogHandler.LOG_DAEMON,
            )
        except OSError:
            pass   # journald/rsyslog not running
        else:
            syslog_handler.setFormatter(ShortLevelFormatter(
                fmt=f"{Config.SCRIPT_NAME}: [%(shortlevel)s] %(message)s",
            ))
            root.addHandler(syslog_handler)

    if console is None:
        console = sys.stderr.isatty()

    if console:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(EmojiFormatter(
            fmt="%(asctime)s %(levelemoji)s %(name)s:%(funcName)s → %(message)s",
            datefmt="%H:%M:%S",
        ))
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """
    Return a namespaced logger for any module.
    """
    return logging.getLogger(f"{name}")
