"""Logging configuration helpers."""

import logging


def configure_logging(level: int = logging.WARNING) -> None:
    """Configure the global logging output format and default level."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def verbosity_to_level(verbose: int) -> int:
    """Map the number of -v flags to a logging level."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING
