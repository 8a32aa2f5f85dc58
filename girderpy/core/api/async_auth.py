"""
Async authentication service.

Exchanges a Girder API key (or login/password) for a Girder token.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

import aiohttp

from .async_client import AsyncAPIClient
from ..exceptions import GirderAuthError, GirderException
from ..logging import get_logger


TOKEN_COOKIE = 'girderToken'
DEFAULT_TOKEN_DURATION = 90  # days


@dataclass
class AuthResult:
    """Authentication result."""
    token: str
    user_id: Optional[str] = None
    login: Optional[str] = None
    expires: Optional[str] = None


def extract_token(data: Any, cookies: Dict[str, str]) -> Optional[str]:
    """Read the token from the girderToken cookie, else from authToken.token."""
    token = cookies.get(TOKEN_COOKIE)
    if token:
        return token
    if isinstance(data, dict):
        auth_token = data.get('authToken')
        if isinstance(auth_token, dict) and isinstance(auth_token.get('token'), str):
            return auth_token['token']
    return None


def _auth_result(token: str, data: Any) -> AuthResult:
    user = data.get('user') if isinstance(data, dict) else None
    auth_token = data.get('authToken') if isinstance(data, dict) else None
    return AuthResult(
        token=token,
        user_id=user.get('_id') if isinstance(user, dict) else None,
        login=user.get('login') if isinstance(user, dict) else None,
        expires=auth_token.get('expires') if isinstance(auth_token, dict) else None
    )


class AsyncAuthService:
    """
    Asynchronous authentication service.

    On success the token is set on the client, so every later request is
    authenticated.
    """

    def __init__(self, client: AsyncAPIClient):
        """
        Initialize auth service.

        Args:
            client: Async API client
        """
        self._client = client
        self._logger = get_logger('girderpy.auth')

    async def authenticate_api_key(
        self,
        api_key: str,
        duration: int = DEFAULT_TOKEN_DURATION
    ) -> AuthResult:
        """
        Exchange an API key for a token.

        Args:
            api_key: Girder API key
            duration: Token lifetime in days

        Returns:
            AuthResult with the token

        Raises:
            GirderAuthError: If authentication fails
        """
        try:
            data, cookies = await self._client.request_with_cookies(
                'POST',
                'api_key/token',
                data={'key': api_key, 'duration': str(duration)}
            )
        except GirderException as e:
            self._logger.error(f"API key authentication failed: {e}")
            raise GirderAuthError(f"API key authentication failed: {e}", e.status) from e

        return self._finish(data, cookies)

    async def authenticate_password(self, login: str, password: str) -> AuthResult:
        """
        Authenticate with login and password (HTTP Basic).

        Raises:
            GirderAuthError: If authentication fails
        """
        try:
            data, cookies = await self._client.request_with_cookies(
                'GET',
                'user/authentication',
                auth=aiohttp.BasicAuth(login, password)
            )
        except GirderException as e:
            self._logger.error(f"Password authentication failed: {e}")
            raise GirderAuthError(f"Password authentication failed: {e}", e.status) from e

        return self._finish(data, cookies)

    def _finish(self, data: Any, cookies: Dict[str, str]) -> AuthResult:
        token = extract_token(data, cookies)
        if not token:
            raise GirderAuthError("Girder response did not set girderToken")

        self._client.token = token
        result = _auth_result(token, data)
        self._logger.info(f"Authenticated{f' as {result.login}' if result.login else ''}")
        return result

    async def logout(self):
        """Invalidate the token on the server and forget it locally."""
        try:
            await self._client.request('DELETE', 'user/authentication')
        finally:
            self._client.token = None
