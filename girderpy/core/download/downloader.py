"""
Download pipeline.

Downloads a file, every file of an item, or a folder tree into a local
directory. Items land directly in their folder's directory; each
subfolder gets a directory of its own.
"""
from pathlib import Path
from typing import Callable, List, Optional, Union

from ..api.async_client import AsyncAPIClient
from ..exceptions import GirderDownloadError, GirderException
from ..logging import get_logger
from ..models import NodeRef, NodeType


def safe_name(name: str) -> str:
    """Make a Girder name usable as a single path component."""
    cleaned = name.replace('/', '_').replace('\\', '_').strip()
    if cleaned in ('', '.', '..'):
        return '_'
    return cleaned


class Downloader:
    """
    Downloads Girder files, items and folders.

    Transfers run one after another. Errors propagate as
    GirderDownloadError with the failing name attached.

    Example:
        >>> downloader = Downloader(api, progress_callback=print)
        >>> await downloader.download(folder_node, "./data")
    """

    def __init__(
        self,
        api: AsyncAPIClient,
        progress_callback: Optional[Callable[[str], None]] = None
    ):
        self._api = api
        self._progress_callback = progress_callback
        self._logger = get_logger('girderpy.download')

    def _report(self, message: str):
        self._logger.info(message)
        if self._progress_callback:
            self._progress_callback(message)

    async def download_file(
        self,
        file_id: str,
        name: str,
        dest_dir: Union[str, Path]
    ) -> Path:
        """
        Download one file into ``dest_dir``.

        Returns:
            Path of the written file
        """
        dest = Path(dest_dir) / safe_name(name)
        self._report(f"Downloading {name} ...")
        try:
            return await self._api.download_file(file_id, dest)
        except GirderException as e:
            raise GirderDownloadError(f"Failed to download {name}: {e}", e.status) from e

    async def download_item(self, item_id: str, dest_dir: Union[str, Path]) -> List[Path]:
        """Download every file of an item into ``dest_dir``."""
        try:
            files = await self._api.list_files(item_id)
        except GirderException as e:
            raise GirderDownloadError(
                f"Failed to list files of item {item_id}: {e}", e.status
            ) from e

        paths = []
        for file_id, name in sorted(files.items(), key=lambda entry: (entry[1], entry[0])):
            paths.append(await self.download_file(file_id, name, dest_dir))
        return paths

    async def download_folder(self, folder_id: str, dest_dir: Union[str, Path]) -> List[Path]:
        """
        Download a folder tree into ``dest_dir``.

        The items of the folder are written to ``dest_dir`` itself, each
        subfolder to ``dest_dir/<subfolder name>``, recursively.
        """
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)

        try:
            items = await self._api.list_items(folder_id)
            folders = await self._api.list_folders(folder_id, NodeType.FOLDER)
        except GirderException as e:
            raise GirderDownloadError(
                f"Failed to list folder {folder_id}: {e}", e.status
            ) from e

        paths = []
        for item_id, _ in sorted(items.items(), key=lambda entry: (entry[1], entry[0])):
            paths.extend(await self.download_item(item_id, dest_dir))

        for subfolder_id, name in sorted(folders.items(), key=lambda entry: (entry[1], entry[0])):
            paths.extend(await self.download_folder(subfolder_id, dest_dir / safe_name(name)))

        self._logger.debug(f"Folder {folder_id}: {len(paths)} files downloaded")
        return paths

    async def download(self, node: NodeRef, dest_dir: Union[str, Path]) -> List[Path]:
        """
        Download whatever ``node`` refers to.

        A folder becomes ``dest_dir/<folder name>``; items and files are
        written directly into ``dest_dir``.

        Raises:
            GirderDownloadError: If the node type cannot be downloaded
        """
        if node.type is NodeType.FILE:
            return [await self.download_file(node.id, node.name, dest_dir)]
        if node.type is NodeType.ITEM:
            Path(dest_dir).mkdir(parents=True, exist_ok=True)
            return await self.download_item(node.id, dest_dir)
        if node.type is NodeType.FOLDER:
            return await self.download_folder(node.id, Path(dest_dir) / safe_name(node.name))
        raise GirderDownloadError(f"Cannot download a {node.type.value} node")
