import logging

from rich.logging import RichHandler

from utils import config

ROOT_LOGGER = "storefront"


class CenteredFormatter(logging.Formatter):
    """Centers the short module name in a column as wide as the longest seen so far."""

    def __init__(self, fmt=None, datefmt=None, style="%", initial_width=12):
        super().__init__(fmt, datefmt, style)
        self.width = initial_width

    def format(self, record):
        short = record.name.removeprefix(f"{ROOT_LOGGER}.")
        self.width = max(self.width, len(short))
        record.short_name = short.center(self.width)
        return super().format(record)


def _root() -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    if not logger.handlers:
        level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
        handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(CenteredFormatter("[%(short_name)s]  %(message)s"))
        handler.setLevel(level)
        logger.setLevel(level)
        logger.addHandler(handler)
        logger.propagate = False
        logger.debug(f"Logging at {logging.getLevelName(level)}")
    return logger


def get_logger(name=None) -> logging.Logger:
    """
    Return a child of the storefront logger, e.g. ``storefront.orders``.

    All children share one RichHandler installed on first use.
    """
    root = _root()
    if not name or name == ROOT_LOGGER:
        return root
    return root.getChild(name.removeprefix(f"{ROOT_LOGGER}."))
