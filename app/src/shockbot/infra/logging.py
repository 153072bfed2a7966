import logging
import sys
import time
from typing import Any, Dict, Optional

logger = logging.getLogger("shockbot")

LOG_FORMAT = "[%(asctime)s] [%(filename)s:%(lineno)d] %(message)s"

_LOG_START_TIME = time.time()


def setup_logging(level: str = "INFO", log_file: Optional[str] = "output.log") -> None:
    """Log to stdout and, when log_file is set, append to that file as well.

    Third-party loggers (discord, aiohttp) stay at WARNING; the bot's own
    logger follows ``level``.
    """
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(format=LOG_FORMAT, level=logging.WARNING, handlers=handlers, force=True)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def _fmt_val(v: Any) -> str:
    if v is None:
        return "-"
    if isinstance(v, (int, float)):
        return str(v)
    s = str(v)
    if any(ch in s for ch in [' ', '=', '\n', '\t']):
        s = s.replace('\n', '↵')[:400]
        return f'"{s}"'
    return s[:400]


def log_event(event: str, **fields: Any) -> None:
    """Structured event logging.
    Format: key=value space separated single line for easy grep & ingestion.
    Automatically injects uptime_s since process start.
    """
    uptime = time.time() - _LOG_START_TIME
    base: Dict[str, Any] = {"event": event, "uptime_s": f"{uptime:.1f}"}
    base.update(fields)
    parts = []
    for k, v in base.items():
        parts.append(f"{k}={_fmt_val(v)}")
    logger.info(' '.join(parts))


__all__ = ["logger", "log_event", "setup_logging"]
