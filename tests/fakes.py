"""Test doubles shared by the unit tests."""
import asyncio
from typing import Any, Dict, List, Optional, Tuple

from girderpy.core.models import ChildSet, CurrentUser, NodeRef


API_TOKEN = 'test-token'
API_KEY = 'test-api-key'


async def settle(rounds: int = 10):
    """Let pending tasks and their done callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeGirderAPI:
    """
    Scripted stand-in for AsyncAPIClient.

    Responses come from plain dictionaries. A call can be held until the
    test releases it, which fixes the order in which results arrive.
    """

    def __init__(self):
        self.folders: Dict[str, ChildSet] = {}
        self.items: Dict[str, ChildSet] = {}
        self.files: Dict[str, ChildSet] = {}
        self.users: ChildSet = {}
        self.collections: ChildSet = {}
        self.root_paths: Dict[str, List[NodeRef]] = {}
        self.current_user: Optional[CurrentUser] = None
        self.errors: Dict[Tuple[str, Optional[str]], Exception] = {}
        self.calls: List[Tuple[str, Optional[str]]] = []
        self._gates: Dict[Tuple[str, Optional[str]], asyncio.Event] = {}

    def hold(self, method: str, key: Optional[str] = None):
        """Block ``method`` (for ``key``) until release() is called."""
        self._gates[(method, key)] = asyncio.Event()

    def release(self, method: str, key: Optional[str] = None):
        self._gates[(method, key)].set()

    def fail(self, method: str, key: Optional[str], error: Exception):
        self.errors[(method, key)] = error

    def called(self, method: str) -> List[Optional[str]]:
        return [key for name, key in self.calls if name == method]

    async def _respond(self, method: str, key: Optional[str], value: Any) -> Any:
        self.calls.append((method, key))
        gate = self._gates.get((method, key))
        if gate is not None:
            await gate.wait()
        error = self.errors.get((method, key))
        if error is not None:
            raise error
        return value

    async def list_folders(self, parent_id, parent_type):
        return dict(await self._respond('list_folders', parent_id, self.folders.get(parent_id, {})))

    async def list_items(self, folder_id):
        return dict(await self._respond('list_items', folder_id, self.items.get(folder_id, {})))

    async def list_files(self, item_id):
        return dict(await self._respond('list_files', item_id, self.files.get(item_id, {})))

    async def list_users(self):
        return dict(await self._respond('list_users', None, self.users))

    async def list_collections(self):
        return dict(await self._respond('list_collections', None, self.collections))

    async def get_current_user(self):
        return await self._respond('get_current_user', None, self.current_user)

    async def get_root_path(self, node_id, node_type):
        return list(await self._respond('get_root_path', node_id, self.root_paths.get(node_id, [])))

