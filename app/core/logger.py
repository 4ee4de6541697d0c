# app/core/logger.py
import logging
from core.config import settings

logger = logging.getLogger("glacier-cli")
logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
logger.propagate = False

# Console handler with a simple, structured-ish format
_console = logging.StreamHandler()
_console.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
_console.setFormatter(logging.Formatter(
    fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S%z",
))
logger.addHandler(_console)

# botocore is chatty at DEBUG; keep it quiet unless explicitly debugging
logging.getLogger("botocore").setLevel(logging.DEBUG if settings.DEBUG else logging.WARNING)
