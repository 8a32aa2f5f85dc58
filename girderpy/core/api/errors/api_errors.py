"""Girder API status descriptions and error message extraction."""
import json
from typing import Dict, Optional


class HTTPStatusCodes:
    """HTTP status codes commonly returned by Girder."""
    
    STATUS_CODES: Dict[int, str] = {
        400: 'Bad Request: the request was invalid or is not ready yet.',
        401: 'Unauthorized: missing or invalid Girder token.',
        403: 'Forbidden: you do not have access to this resource.',
        404: 'Not Found: the requested resource does not exist.',
        405: 'Method Not Allowed',
        409: 'Conflict',
        500: 'Internal Server Error',
        502: 'Bad Gateway',
        503: 'Service Unavailable',
        504: 'Gateway Timeout',
    }
    
    @classmethod
    def get_message(cls, status: int) -> str:
        """Gets description for status code."""
        return cls.STATUS_CODES.get(status, f"HTTP error {status}")


def describe_error(status: Optional[int], body: str) -> str:
    """
    Build a human-readable message for a failed Girder request.
    
    Girder reports errors as ``{"message": ..., "type": ...}``; the server
    message is used when present, otherwise the raw body, otherwise the
    generic status description.
    
    Args:
        status: HTTP status code, None for connection failures
        body: Raw response body
        
    Returns:
        Error message
    """
    server_message = None
    if body:
        try:
            data = json.loads(body)
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get('message'), str):
            server_message = data['message']
        else:
            server_message = body.strip()
    
    if status is None:
        return server_message or 'Connection failed'
    
    prefix = f"HTTP {status}"
    if server_message:
        return f"{prefix}: {server_message}"
    return f"{prefix}: {HTTPStatusCodes.get_message(status)}"
