"""Logging setup for the CLI.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the CLI entry point.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_ROOT = "repolens"


def configure_logging(verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Attach a RichHandler to the ``repolens`` logger (stderr).

    WARNING and above by default, DEBUG with *verbose*. Calling it again only
    adjusts the level.
    """
    logger = logging.getLogger(_ROOT)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    return logger
