import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: int = logging.WARNING, console: Console | None = None) -> logging.Logger:
    """Configures logging for the application."""
    logger = logging.getLogger()  # Root logger
    logger.setLevel(level)

    # Clear existing handlers before adding a new one
    while logger.hasHandlers() and logger.handlers:
        logger.removeHandler(logger.handlers[0])

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)

    return logger
