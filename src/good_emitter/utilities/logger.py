from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LIBRARY_LOGGER = "good_emitter"

DEFAULT_FORMAT = "%(levelname)s %(name)s - %(message)s"


def configure_library_logging(
    level: int = logging.INFO,
    *,
    use_rich: bool = False,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Attach a handler to the ``good_emitter`` logger unless it already has one.

    Leak advisories, delayed-listener failures and plain-mode traces are all
    logged below this logger. Records still propagate to the root logger.

    Args:
        level: Level for the library logger
        use_rich: Render records with ``rich.logging.RichHandler`` on stderr
        fmt: Format string for the plain ``StreamHandler``

    Returns:
        The configured library logger
    """
    library_logger = logging.getLogger(LIBRARY_LOGGER)
    library_logger.setLevel(level)
    if library_logger.handlers:
        return library_logger

    if use_rich:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True), show_path=False, markup=False
        )
        handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))

    library_logger.addHandler(handler)
    return library_logger
