import logging
import sys

from portfolio_ledger.config import get_settings


def setup_logging(level: str | int | None = None) -> None:
    """Configure logging to output to stdout with proper formatting.

    Safe to call again to change the level; the stdout handler is only added once.
    """
    root_logger = logging.getLogger()
    if not any(getattr(h, "stream", None) is sys.stdout for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    root_logger.setLevel(level or get_settings().log_level)

    # The solver logs every fallback at DEBUG
    logging.getLogger("portfolio_ledger.xirr").setLevel(logging.INFO)
