"""
GirderClient - High-level async client for browsing a Girder server.

Example:
    >>> async with GirderClient("https://girder.example.com/api/v1", api_key="...") as girder:
    ...     listing = await girder.home()
    ...     for node in listing.rows:
    ...         print(node)
"""
from pathlib import Path
from typing import Callable, List, Optional, Union

from .core.api import (
    AsyncAPIClient,
    AsyncAuthService,
    AuthResult,
    APIConfig,
)
from .core.browser import FolderFetcher
from .core.download import Downloader
from .core.exceptions import GirderException
from .core.logging import get_logger
from .core.models import CurrentUser, FolderListing, ItemMode, NodeRef, ROOT_NODE


class GirderClient:
    """
    High-level async client for a Girder server.

    Wraps the API client, the folder fetcher and the downloader behind a
    shell-like interface (ls, cd, up, pwd, download).

    Authentication:
        >>> GirderClient(url, api_key="...")   # exchanged for a token on enter
        >>> GirderClient(url, token="...")     # used as is
        >>> GirderClient(url)                  # anonymous

    With custom configuration:
        >>> config = APIConfig.insecure()
        >>> client = GirderClient(config=config, item_mode="bumping")
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
        token: Optional[str] = None,
        config: Optional[APIConfig] = None,
        item_mode: Union[str, ItemMode] = ItemMode.ITEMS_ARE_FILES,
        custom_root: Optional[NodeRef] = None,
        progress_callback: Optional[Callable[[str], None]] = None
    ):
        """
        Initialize Girder client.

        Args:
            api_url: Girder API URL, e.g. https://host/api/v1
            api_key: API key to exchange for a token
            token: Existing Girder token
            config: Optional API configuration
            item_mode: How items are presented ('files', 'folders', 'bumping')
            custom_root: Optional node browsing is restricted to
            progress_callback: Receives "Downloading <name> ..." messages
        """
        self._config = config or APIConfig.default()
        if api_url:
            self._config.api_url = api_url.rstrip('/')
        if token:
            self._config.token = token

        self._api_key = api_key
        self._api = AsyncAPIClient(self._config)
        self._auth = AsyncAuthService(self._api)
        self._auth_result: Optional[AuthResult] = None
        self._fetcher = FolderFetcher(self._api, item_mode=item_mode, custom_root=custom_root)
        self._downloader = Downloader(self._api, progress_callback=progress_callback)
        self._logger = get_logger('girderpy.client')

    # =========================================================================
    # Context manager
    # =========================================================================

    async def __aenter__(self) -> 'GirderClient':
        """Enter async context - opens the session and authenticates."""
        await self._api.__aenter__()
        try:
            if self._api_key:
                await self.login(self._api_key)
        except GirderException:
            await self.close()
            raise
        self._logger.info(f"Connected to {self._config.api_url}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context - cleanup."""
        await self.close()

    async def close(self):
        """Close the client and release resources."""
        await self._fetcher.close()
        await self._api.close()

    # =========================================================================
    # Authentication
    # =========================================================================

    async def login(self, api_key: str) -> AuthResult:
        """Exchange an API key for a token."""
        self._auth_result = await self._auth.authenticate_api_key(api_key)
        return self._auth_result

    async def logout(self):
        """Invalidate the current token."""
        await self._auth.logout()
        self._auth_result = None

    @property
    def is_logged_in(self) -> bool:
        return self._api.token is not None

    @property
    def api(self) -> AsyncAPIClient:
        return self._api

    @property
    def fetcher(self) -> FolderFetcher:
        return self._fetcher

    @property
    def downloader(self) -> Downloader:
        return self._downloader

    async def me(self) -> CurrentUser:
        """Get the authenticated user."""
        return await self._api.get_current_user()

    # =========================================================================
    # Navigation
    # =========================================================================

    def set_item_mode(self, mode: Union[str, ItemMode]):
        """Change how items are presented from the next listing on."""
        self._fetcher.item_mode = mode

    async def _navigate(self, navigation: Callable) -> FolderListing:
        """Run a fetcher navigation, turning a failure into an exception."""
        failures: List[str] = []
        self._fetcher.on('fetch_failed', failures.append)
        try:
            listing = await navigation()
        finally:
            self._fetcher.off('fetch_failed', failures.append)

        if listing is None:
            if failures:
                self._logger.debug(f"Navigation failed: {failures[-1]!r}")
                raise GirderException(failures[-1])
            raise GirderException("Another navigation is in progress")
        return listing

    async def cd(self, node: NodeRef) -> FolderListing:
        """
        Navigate to a node.

        Raises:
            GirderException: If the listing could not be fetched
        """
        return await self._navigate(lambda: self._fetcher.navigate_to(node))

    async def ls(self, node: Optional[NodeRef] = None) -> FolderListing:
        """List a node (default: the current node, or root)."""
        target = node or self._fetcher.current_node or ROOT_NODE
        return await self.cd(target)

    async def home(self) -> FolderListing:
        """Navigate to the authenticated user's home."""
        return await self._navigate(self._fetcher.navigate_home)

    async def up(self) -> Optional[FolderListing]:
        """Navigate to the parent node; None when already at the top."""
        if not self._fetcher.root_path:
            return None
        return await self._navigate(self._fetcher.go_up)

    def pwd(self) -> str:
        """Root path plus current node, names joined by '/'."""
        current = self._fetcher.current_node
        if current is None:
            return "/"
        path = [node for node in self._fetcher.root_path + [current] if node != ROOT_NODE]
        return "/" + "/".join(node.name for node in path)

    # =========================================================================
    # Download
    # =========================================================================

    async def download(self, node: NodeRef, dest: Union[str, Path] = ".") -> List[Path]:
        """
        Download a file, item or folder into ``dest``.

        Returns:
            Paths of the downloaded files
        """
        return await self._downloader.download(node, dest)
