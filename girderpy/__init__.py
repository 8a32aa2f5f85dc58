"""
Girderpy - Async Python client for browsing Girder data servers.

Usage:
    >>> from girderpy import GirderClient
    >>>
    >>> async with GirderClient("https://girder.example.com/api/v1", api_key="...") as girder:
    ...     listing = await girder.home()
    ...     for node in listing.rows:
    ...         print(node)
"""
import logging
from .client import GirderClient

# Configuration
from .core.api import (
    APIConfig,
    SSLConfig,
    TimeoutConfig,
    RetryConfig,
    AsyncAPIClient,
    AsyncAuthService
)

# Browsing
from .core.browser import FolderFetcher, NavigationState
from .core.download import Downloader
from .core.models import (
    NodeRef,
    NodeType,
    ItemMode,
    FolderListing,
    CurrentUser,
    ROOT_NODE,
    USERS_NODE,
    COLLECTIONS_NODE
)
from .core.exceptions import (
    GirderException,
    GirderHTTPError,
    GirderResponseError,
    GirderAuthError,
    GirderDownloadError,
    ItemModeError,
    NavigationError
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for girderpy modules.

    Sets the level of every girderpy logger and keeps propagation on, so
    output shows up wherever the root logger is configured to write.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'girderpy',
        'girderpy.api',
        'girderpy.auth',
        'girderpy.browser',
        'girderpy.download',
        'girderpy.client',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'GirderClient',
    'FolderFetcher',
    'NavigationState',
    'Downloader',
    'NodeRef',
    'NodeType',
    'ItemMode',
    'FolderListing',
    'CurrentUser',
    'ROOT_NODE',
    'USERS_NODE',
    'COLLECTIONS_NODE',
    'APIConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'AsyncAPIClient',
    'AsyncAuthService',
    'GirderException',
    'GirderHTTPError',
    'GirderResponseError',
    'GirderAuthError',
    'GirderDownloadError',
    'ItemModeError',
    'NavigationError',
    'setup_logging',
]
