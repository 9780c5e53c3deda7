import logging
import sys
from typing import Optional

_INITIALIZED = False


def init_logging(level: Optional[str] = None) -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return

    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(log_level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        root.addHandler(handler)

    _INITIALIZED = True
