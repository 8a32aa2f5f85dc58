"""Per-module loggers for girderpy (girderpy.api, girderpy.browser, ...)."""

import logging


def get_logger(name: str) -> logging.Logger:
    """
    Return the named girderpy logger.

    Records go up to the root logger, so an application's own
    ``logging.basicConfig()`` (or the CLI's ``--verbose``) decides where they
    end up. A library imported into a program with no logging configured
    stays at WARNING, which keeps per-request DEBUG lines out of its output.
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    if not logging.getLogger().handlers:
        logger.setLevel(logging.WARNING)

    return logger
