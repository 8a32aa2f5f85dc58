"""Girder API module."""
from .errors import HTTPStatusCodes, describe_error, GirderHTTPError, GirderResponseError
from .events import EventEmitter
from .config import APIConfig, SSLConfig, TimeoutConfig, RetryConfig, TOKEN_HEADER
from .async_client import (
    AsyncAPIClient,
    parse_child_set,
    parse_root_path,
    parse_current_user
)
from .async_auth import AsyncAuthService, AuthResult, extract_token

__all__ = [
    # Async client
    'AsyncAPIClient',
    'parse_child_set',
    'parse_root_path',
    'parse_current_user',

    # Authentication
    'AsyncAuthService',
    'AuthResult',
    'extract_token',

    # Configuration
    'APIConfig',
    'SSLConfig',
    'TimeoutConfig',
    'RetryConfig',
    'TOKEN_HEADER',

    # Errors
    'HTTPStatusCodes',
    'describe_error',
    'GirderHTTPError',
    'GirderResponseError',

    # Events
    'EventEmitter',
]
