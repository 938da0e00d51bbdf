"""
Logging setup for reviewgate.

Modules log through ``logging.getLogger(__name__)``; this installs a Rich
handler on the package logger so rule diagnostics render readably in a
terminal and in the Actions log.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "reviewgate"


def configure_logging(
    verbose: bool = False,
    quiet: bool = False,
    console: Console | None = None,
) -> logging.Logger:
    """
    Attach a RichHandler to the reviewgate logger.

    Calling this again replaces the previous handler rather than stacking.

    Args:
        verbose: Log at DEBUG instead of INFO
        quiet: Only log errors, for machine-readable output
        console: Console to write to (stderr by default)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    if quiet:
        logger.setLevel(logging.ERROR)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger
