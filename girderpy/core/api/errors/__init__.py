"""Girder API errors and exceptions."""
from .api_errors import HTTPStatusCodes, describe_error
from ...exceptions import GirderHTTPError, GirderResponseError

__all__ = [
    'HTTPStatusCodes',
    'describe_error',
    'GirderHTTPError',
    'GirderResponseError',
]
