import logging
from rich.logging import RichHandler

from . import config

_configured = False

def configure_logging(level: str | None = None):
    """Route stdlib logging through rich. Safe to call more than once."""
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    _configured = True
