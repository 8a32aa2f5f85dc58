"""
Async Girder API client.

One coroutine per REST endpoint used by the browser. Every call issues a
single GET and either returns the parsed payload or raises; nothing is
retried except file downloads.
"""
import json
import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urljoin

import aiofiles
import aiohttp

from .config import APIConfig
from .errors import describe_error
from ..exceptions import GirderHTTPError, GirderResponseError
from ..logging import get_logger
from ..models import ChildSet, CurrentUser, NodeRef, NodeType


REDIRECT_STATUSES = (301, 302, 303, 307, 308)
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# "list everything"; Girder treats limit=0 as unlimited
UNLIMITED = {'limit': '0'}


def _string_field(entry: Any, key: str, error: str) -> str:
    """Return entry[key] if it is a string, else raise GirderResponseError."""
    if not isinstance(entry, dict):
        raise GirderResponseError(error)
    value = entry.get(key)
    if not isinstance(value, str):
        raise GirderResponseError(error)
    return value


def parse_child_set(data: Any, what: str, noun: str, name_field: str = 'name') -> ChildSet:
    """
    Parse a JSON array of Girder documents into an id -> name mapping.

    Args:
        data: Decoded JSON response
        what: Operation name used in the error message ('listItems')
        noun: Document kind used in field errors ('item')
        name_field: Field holding the display name ('login' for users)

    Raises:
        GirderResponseError: If the response is not an array or a field is missing
    """
    if not isinstance(data, list):
        raise GirderResponseError(f"Invalid response to {what}.")

    children: ChildSet = {}
    for entry in data:
        node_id = _string_field(entry, '_id', f"Unable to extract {noun} id.")
        name = _string_field(entry, name_field, f"Unable to extract {noun} {name_field}.")
        children[node_id] = name
    return children


def parse_root_path(data: Any) -> List[NodeRef]:
    """
    Parse a rootpath response into node references, outermost first.

    Each ancestor is wrapped under an ``object`` key carrying ``_modelType``,
    ``_id`` and ``name`` (``login`` for users).
    """
    if not isinstance(data, list):
        raise GirderResponseError("Invalid response to getRootPath.")

    root_path = []
    for entry in data:
        obj = entry.get('object') if isinstance(entry, dict) else None
        if not isinstance(obj, dict):
            raise GirderResponseError("Object key is missing.")

        model_type = _string_field(obj, '_modelType', "Unable to extract model type.")
        try:
            node_type = NodeType.parse(model_type)
        except ValueError:
            raise GirderResponseError(f"Unexpected model type: {model_type}")

        node_id = _string_field(obj, '_id', "Unable to extract id.")
        name_field = 'login' if node_type is NodeType.USER else 'name'
        name = _string_field(obj, name_field, "Unable to extract name.")
        root_path.append(NodeRef(name=name, id=node_id, type=node_type))
    return root_path


def parse_current_user(data: Any) -> CurrentUser:
    """Parse the /user/me response."""
    if not isinstance(data, dict):
        raise GirderResponseError("Invalid response to getCurrentUser.")
    login = _string_field(data, 'login', "Unable to extract login.")
    user_id = _string_field(data, '_id', "Unable to extract user id.")
    return CurrentUser(id=user_id, login=login)


class AsyncAPIClient:
    """
    Asynchronous Girder API client.

    Features:
    - Full async/await support
    - Configurable SSL and timeouts
    - Connection pooling through a single aiohttp session
    - Token settable at any time (late authentication)

    Example:
        >>> config = APIConfig(api_url='https://girder.example.com/api/v1')
        >>> async with AsyncAPIClient(config) as client:
        ...     users = await client.list_users()
    """

    def __init__(self, config: Optional[APIConfig] = None):
        """
        Initialize async API client.

        Args:
            config: API configuration (uses defaults if not provided)
        """
        self._config = config or APIConfig.default()
        self._session: Optional[aiohttp.ClientSession] = None
        self._logger = get_logger('girderpy.api')

    @property
    def config(self) -> APIConfig:
        """Get current configuration."""
        return self._config

    @property
    def api_url(self) -> str:
        return self._config.api_url

    @api_url.setter
    def api_url(self, value: str):
        self._config.api_url = value.rstrip('/')

    @property
    def token(self) -> Optional[str]:
        """Girder token sent with every request."""
        return self._config.token

    @token.setter
    def token(self, value: Optional[str]):
        self._config.token = value

    async def __aenter__(self) -> 'AsyncAPIClient':
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure session is created and open."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                **self._config.get_connector_kwargs()
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                **self._config.get_session_kwargs()
            )
        return self._session

    async def close(self):
        """Close client and release resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> Tuple[str, Dict[str, str]]:
        """Send one request; returns the body text and the cookies it set."""
        session = await self._ensure_session()
        url = self._config.url(path)
        headers = {**self._config.auth_headers(), **kwargs.pop('headers', {})}

        self._logger.debug(f"{method} {url} params={params}")

        try:
            async with session.request(
                method, url, params=params, headers=headers, **kwargs
            ) as response:
                body = await response.text()
                self._logger.debug(
                    f"Response {response.status}: {body[:1000] if len(body) > 1000 else body}"
                )
                if response.status >= 400:
                    raise GirderHTTPError(
                        describe_error(response.status, body),
                        status=response.status,
                        body=body
                    )
                cookies = {name: morsel.value for name, morsel in response.cookies.items()}
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.error(f"Network error: {e}")
            raise GirderHTTPError(f"Network error: {e}") from e

        return body, cookies

    @staticmethod
    def _decode(body: str, method: str, path: str) -> Any:
        try:
            return json.loads(body)
        except ValueError:
            raise GirderResponseError(f"Invalid JSON in response to {method} {path}")

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> Any:
        """
        Make a request to the Girder API and decode the JSON response.

        Args:
            method: HTTP method
            path: Endpoint path relative to the API URL
            params: Query string parameters
            **kwargs: Passed through to aiohttp (data, auth, ...)

        Returns:
            Decoded JSON response

        Raises:
            GirderHTTPError: On connection failure or non-2xx status
            GirderResponseError: If the body is not valid JSON
        """
        body, _ = await self._send(method, path, params, **kwargs)
        return self._decode(body, method, path)

    async def request_with_cookies(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        **kwargs
    ) -> Tuple[Any, Dict[str, str]]:
        """Like request(), also returning the cookies set by the response."""
        body, cookies = await self._send(method, path, params, **kwargs)
        return self._decode(body, method, path), cookies

    async def get(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """GET a JSON document."""
        return await self.request('GET', path, params=params)

    # Endpoint methods

    async def list_folders(self, parent_id: str, parent_type: Union[str, NodeType]) -> ChildSet:
        """
        List the folders directly under a user, collection or folder.

        Args:
            parent_id: Parent id
            parent_type: 'user', 'collection' or 'folder'

        Returns:
            Mapping of folder id to folder name
        """
        parent_type = NodeType.parse(parent_type).value
        data = await self.get('folder', {
            'parentId': parent_id,
            'parentType': parent_type,
            **UNLIMITED
        })
        return parse_child_set(data, 'listFolders', 'folder')

    async def list_items(self, folder_id: str) -> ChildSet:
        """List the items in a folder."""
        data = await self.get('item', {'folderId': folder_id, **UNLIMITED})
        return parse_child_set(data, 'listItems', 'item')

    async def list_files(self, item_id: str) -> ChildSet:
        """List the files in an item."""
        data = await self.get(f'item/{item_id}/files', dict(UNLIMITED))
        return parse_child_set(data, 'listFiles', 'file')

    async def list_users(self) -> ChildSet:
        """List all users (id -> login)."""
        data = await self.get('user', dict(UNLIMITED))
        return parse_child_set(data, 'listUsers', 'user', name_field='login')

    async def list_collections(self) -> ChildSet:
        """List all collections."""
        data = await self.get('collection', dict(UNLIMITED))
        return parse_child_set(data, 'listCollections', 'collection')

    async def get_current_user(self) -> CurrentUser:
        """Get the user the token belongs to."""
        data = await self.get('user/me')
        return parse_current_user(data)

    async def get_root_path(self, node_id: str, node_type: Union[str, NodeType]) -> List[NodeRef]:
        """
        Get the ancestors of a folder or item, outermost first.

        The node itself is not part of the result.
        """
        node_type = NodeType.parse(node_type).value
        data = await self.get(f'{node_type}/{node_id}/rootpath')
        return parse_root_path(data)

    async def download_file(
        self,
        file_id: str,
        dest: Union[str, Path],
        progress_callback: Optional[Callable[[int], None]] = None
    ) -> Path:
        """
        Download a file's content to ``dest``.

        Girder answers 400 while a file is not ready, so HTTP 400 is retried
        up to ``RetryConfig.download_retries`` times. A redirect (e.g. to an
        assetstore URL) is followed manually, at most once, without the
        Girder token.

        Args:
            file_id: File id
            dest: Destination file path
            progress_callback: Optional callback(downloaded_bytes)

        Returns:
            Path to the downloaded file
        """
        dest = Path(dest)
        url = self._config.url(f'file/{file_id}/download')
        retry_count = 0

        while True:
            try:
                return await self._download_once(url, dest, progress_callback)
            except GirderHTTPError as e:
                if e.status is None or not self._config.retry.should_retry(e.status, retry_count):
                    raise
                retry_count += 1
                self._logger.warning(
                    f"Retrying download of {file_id} after HTTP {e.status}, attempt {retry_count}"
                )
                await asyncio.sleep(self._config.retry.base_delay)

    async def _download_once(
        self,
        url: str,
        dest: Path,
        progress_callback: Optional[Callable[[int], None]]
    ) -> Path:
        """Single download attempt, following at most max_redirects redirects."""
        session = await self._ensure_session()
        headers = self._config.auth_headers()
        target = url

        try:
            for _ in range(self._config.retry.max_redirects + 1):
                async with session.get(target, headers=headers, allow_redirects=False) as response:
                    if response.status in REDIRECT_STATUSES:
                        location = response.headers.get('Location')
                        if not location:
                            raise GirderHTTPError(
                                "Redirect without a Location header", status=response.status
                            )
                        target = urljoin(str(response.url), location)
                        # the redirect target is not a Girder endpoint
                        headers = {}
                        self._logger.debug(f"Following download redirect to {target}")
                        continue

                    if response.status >= 400:
                        body = await response.text()
                        raise GirderHTTPError(
                            describe_error(response.status, body),
                            status=response.status,
                            body=body
                        )

                    dest.parent.mkdir(parents=True, exist_ok=True)
                    downloaded = 0
                    async with aiofiles.open(dest, 'wb') as f:
                        async for chunk in response.content.iter_chunked(DOWNLOAD_CHUNK_SIZE):
                            await f.write(chunk)
                            downloaded += len(chunk)
                            if progress_callback:
                                progress_callback(downloaded)
                    return dest
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self._logger.error(f"Network error during download: {e}")
            raise GirderHTTPError(f"Network error: {e}") from e

        raise GirderHTTPError("Too many redirects")
