"""
Custom exceptions for Girder browsing operations.

This module defines the exception classes raised by the API client,
the folder fetcher and the download pipeline.
"""
from typing import Optional


class GirderException(Exception):
    """Base exception for all Girder-related errors."""
    
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            status: HTTP status code (if available)
        """
        self.message = message
        self.status = status
        super().__init__(message)


class GirderHTTPError(GirderException):
    """Exception raised for non-2xx responses and connection failures."""
    
    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body: str = ''
    ) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message (server message when available)
            status: HTTP status code, None for connection failures
            body: Raw response body for diagnostics
        """
        self.body = body
        super().__init__(message, status)


class GirderResponseError(GirderException):
    """Exception raised when a response is missing an expected field."""
    pass


class GirderAuthError(GirderException):
    """Exception raised for authentication-related errors."""
    pass


class ItemModeError(GirderException, ValueError):
    """Exception raised for an unknown item classification mode."""
    pass


class NavigationError(GirderException, ValueError):
    """Exception raised when a node cannot be listed, e.g. a file."""
    pass


class GirderDownloadError(GirderException):
    """Exception raised when a download cannot be completed."""
    pass
