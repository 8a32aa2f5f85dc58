"""
Folder information fetcher.

Given a node, issues the subset of list/rootpath requests that applies to
its type, joins their results and emits one consolidated listing (or one
error). Only one fetch runs at a time; navigation requests made while a
fetch is in flight are dropped.
"""
import asyncio
import functools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Set, Union

from ..api.events import EventEmitter
from ..exceptions import GirderException, NavigationError
from ..logging import get_logger
from ..models import (
    ChildSet,
    COLLECTIONS_NODE,
    FolderListing,
    ItemMode,
    NodeRef,
    NodeType,
    ROOT_NODE,
    USERS_NODE,
    child_set_to_nodes,
    sort_nodes,
)
from .root_path import complete_root_path, resolve_root_path


class Subrequest(Enum):
    """Requests joined by a standard fetch."""
    FOLDERS = 'folders'
    ITEMS = 'items'
    FILES = 'files'
    ROOT_PATH = 'rootPath'


FOLDERS_ERROR = "An error occurred while getting folders:\n"
ITEMS_ERROR = "An error occurred while getting items:\n"
FILES_ERROR = "An error occurred while getting files:\n"
ROOT_PATH_ERROR = "An error occurred while updating the root path:\n"
USERS_ERROR = "An error occurred while getting users:\n"
COLLECTIONS_ERROR = "An error occurred while getting collections:\n"
CURRENT_USER_ERROR = "Failed to get information about current user:\n"
ITEM_CONTENTS_ERROR = "Failed to get one of the item's contents:\n"

# Parent types that can contain folders
FOLDER_PARENT_TYPES = (NodeType.USER, NodeType.COLLECTION, NodeType.FOLDER)


@dataclass
class NavigationState:
    """Mutable navigation state of one browsing session."""
    current_node: Optional[NodeRef] = None
    previous_node: Optional[NodeRef] = None
    current_root_path: List[NodeRef] = field(default_factory=list)
    current_folders: ChildSet = field(default_factory=dict)
    current_items: ChildSet = field(default_factory=dict)
    current_files: ChildSet = field(default_factory=dict)
    previous_folders: ChildSet = field(default_factory=dict)
    previous_items: ChildSet = field(default_factory=dict)
    fetch_in_progress: bool = False
    pending: Set[Subrequest] = field(default_factory=set)
    error_occurred: bool = False
    generation: int = 0
    # item ids whose files are still being listed (file bumping)
    bump_pending: Set[str] = field(default_factory=set)

    def copy(self) -> 'NavigationState':
        """Copy with independent containers."""
        return NavigationState(
            current_node=self.current_node,
            previous_node=self.previous_node,
            current_root_path=list(self.current_root_path),
            current_folders=dict(self.current_folders),
            current_items=dict(self.current_items),
            current_files=dict(self.current_files),
            previous_folders=dict(self.previous_folders),
            previous_items=dict(self.previous_items),
            fetch_in_progress=self.fetch_in_progress,
            pending=set(self.pending),
            error_occurred=self.error_occurred,
            generation=self.generation,
            bump_pending=set(self.bump_pending),
        )


class FolderFetcher:
    """
    Fetches the contents and root path of a node.

    Events:
        listing_ready(listing: FolderListing)
        fetch_failed(message: str)

    Example:
        >>> fetcher = FolderFetcher(api, item_mode=ItemMode.ITEMS_ARE_FOLDERS)
        >>> fetcher.on('fetch_failed', print)
        >>> listing = await fetcher.navigate_to(ROOT_NODE)
    """

    def __init__(
        self,
        api,
        item_mode: Union[str, ItemMode] = ItemMode.ITEMS_ARE_FILES,
        custom_root: Optional[NodeRef] = None
    ):
        """
        Initialize fetcher.

        Args:
            api: AsyncAPIClient (or anything with the same list coroutines)
            item_mode: How items are presented
            custom_root: Optional node to restrict the root path to

        Raises:
            ItemModeError: If item_mode is unknown
        """
        self._api = api
        self._item_mode = ItemMode.parse(item_mode)
        self._custom_root = custom_root
        self._state = NavigationState()
        self._events = EventEmitter()
        self._logger = get_logger('girderpy.browser')

        # Per-fetch bookkeeping
        self._tasks: Set[asyncio.Task] = set()
        self._done: Optional[asyncio.Future] = None
        self._saved: Optional[NavigationState] = None
        self._fetch_mode = self._item_mode

    # Configuration

    @property
    def api(self):
        return self._api

    @property
    def item_mode(self) -> ItemMode:
        return self._item_mode

    @item_mode.setter
    def item_mode(self, value: Union[str, ItemMode]):
        # Applies from the next fetch on
        self._item_mode = ItemMode.parse(value)

    @property
    def custom_root(self) -> Optional[NodeRef]:
        return self._custom_root

    @custom_root.setter
    def custom_root(self, value: Optional[NodeRef]):
        self._custom_root = value

    # State

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def current_node(self) -> Optional[NodeRef]:
        return self._state.current_node

    @property
    def root_path(self) -> List[NodeRef]:
        return list(self._state.current_root_path)

    @property
    def fetch_in_progress(self) -> bool:
        return self._state.fetch_in_progress

    # Events

    def on(self, event: str, callback: Callable) -> 'FolderFetcher':
        """Register an event handler ('listing_ready' or 'fetch_failed')."""
        self._events.on(event, callback)
        return self

    def off(self, event: str, callback: Optional[Callable] = None) -> 'FolderFetcher':
        """Remove an event handler."""
        self._events.off(event, callback)
        return self

    # Navigation

    async def navigate_to(self, target: NodeRef) -> Optional[FolderListing]:
        """
        Fetch the folders, files and root path of ``target``.

        Emits ``listing_ready`` or ``fetch_failed`` exactly once per fetch.

        Args:
            target: Node to navigate to

        Returns:
            The listing, or None if the fetch failed or was dropped because
            another fetch is in progress

        Raises:
            NavigationError: If ``target`` is a file
        """
        if not target.type.is_navigable:
            raise NavigationError(f"Cannot list the contents of {target}")
        if self._state.fetch_in_progress:
            self._logger.debug(f"Fetch in progress, ignoring navigation to {target}")
            return None

        done = self._begin(target)

        if target.type is NodeType.ROOT:
            self._fetch_root()
        elif target.type is NodeType.USERS:
            self._spawn(
                self._api.list_users(),
                functools.partial(self._on_top_level, NodeType.USER),
                USERS_ERROR
            )
        elif target.type is NodeType.COLLECTIONS:
            self._spawn(
                self._api.list_collections(),
                functools.partial(self._on_top_level, NodeType.COLLECTION),
                COLLECTIONS_ERROR
            )
        else:
            self._fetch_standard(target)

        try:
            return await done
        except asyncio.CancelledError:
            if self._state.fetch_in_progress:
                self._abort()
            raise

    async def navigate_home(self) -> Optional[FolderListing]:
        """Navigate to the authenticated user's home."""
        if self._state.fetch_in_progress:
            self._logger.debug("Fetch in progress, ignoring navigation home")
            return None

        self._state.fetch_in_progress = True
        try:
            user = await self._api.get_current_user()
        except GirderException as e:
            self._state.fetch_in_progress = False
            message = CURRENT_USER_ERROR + str(e)
            self._logger.warning(message)
            self._events.emit('fetch_failed', message)
            return None
        finally:
            self._state.fetch_in_progress = False

        return await self.navigate_to(user.as_node())

    async def refresh(self) -> Optional[FolderListing]:
        """Fetch the current node again."""
        return await self.navigate_to(self._state.current_node or ROOT_NODE)

    async def go_up(self) -> Optional[FolderListing]:
        """Navigate to the parent of the current node, if there is one."""
        if not self._state.current_root_path:
            return None
        return await self.navigate_to(self._state.current_root_path[-1])

    async def close(self):
        """Cancel any in-flight requests."""
        if self._state.fetch_in_progress:
            self._abort()
        await asyncio.gather(*self._tasks, return_exceptions=True)

    # Fetch lifecycle

    def _begin(self, target: NodeRef) -> asyncio.Future:
        state = self._state
        self._saved = state.copy()

        state.fetch_in_progress = True
        state.error_occurred = False
        state.generation += 1
        state.pending.clear()
        state.bump_pending.clear()

        state.previous_node = state.current_node
        state.previous_folders = state.current_folders
        state.previous_items = state.current_items
        state.current_node = target
        state.current_folders = {}
        state.current_items = {}
        state.current_files = {}

        self._fetch_mode = self._item_mode
        self._done = asyncio.get_running_loop().create_future()
        self._logger.debug(f"Fetch {state.generation}: navigating to {target}")
        return self._done

    def _spawn(
        self,
        coro: Awaitable[Any],
        on_result: Callable[[Any], None],
        error_prefix: str,
        subrequest: Optional[Subrequest] = None
    ) -> None:
        """Run a request as a task tagged with the current fetch generation."""
        if subrequest is not None:
            self._state.pending.add(subrequest)

        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(
            functools.partial(self._on_task_done, self._state.generation, on_result, error_prefix)
        )

    def _on_task_done(
        self,
        generation: int,
        on_result: Callable[[Any], None],
        error_prefix: str,
        task: asyncio.Task
    ) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return

        error = task.exception()
        state = self._state
        if generation != state.generation or state.error_occurred or not state.fetch_in_progress:
            # Result of an abandoned fetch
            return

        if error is not None:
            if not isinstance(error, GirderException):
                self._logger.error(f"Unexpected error during fetch: {error!r}", exc_info=error)
            self._fail(error_prefix + str(error))
            return

        on_result(task.result())

    def _complete(self, subrequest: Subrequest) -> None:
        self._state.pending.discard(subrequest)
        self._finish_if_ready()

    def _finish_if_ready(self) -> None:
        """Emit the listing once nothing is pending; safe to call repeatedly."""
        state = self._state
        if state.pending or state.error_occurred or not state.fetch_in_progress:
            return
        self._succeed(self._build_listing())

    def _succeed(self, listing: FolderListing) -> None:
        state = self._state
        state.fetch_in_progress = False
        state.pending.clear()
        self._saved = None

        self._logger.debug(
            f"Fetch {state.generation} done: {len(listing.folders)} folders, "
            f"{len(listing.files)} files"
        )
        if self._done is not None and not self._done.done():
            self._done.set_result(listing)
        self._events.emit('listing_ready', listing)

    def _fail(self, message: str) -> None:
        self._state.error_occurred = True
        self._cancel_tasks()
        self._restore()

        self._logger.warning(message)
        if self._done is not None and not self._done.done():
            self._done.set_result(None)
        self._events.emit('fetch_failed', message)

    def _abort(self) -> None:
        """Abandon the current fetch without emitting anything."""
        self._state.error_occurred = True
        self._cancel_tasks()
        self._restore()
        if self._done is not None and not self._done.done():
            self._done.set_result(None)

    def _restore(self) -> None:
        """Roll navigation back to before the failed fetch."""
        state = self._state
        saved = self._saved
        if saved is not None:
            state.current_node = saved.current_node
            state.previous_node = saved.previous_node
            state.current_root_path = saved.current_root_path
            state.current_folders = saved.current_folders
            state.current_items = saved.current_items
            state.current_files = saved.current_files
            state.previous_folders = saved.previous_folders
            state.previous_items = saved.previous_items
        self._saved = None
        state.pending.clear()
        state.bump_pending.clear()
        state.fetch_in_progress = False

    def _cancel_tasks(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    # Virtual levels

    def _fetch_root(self) -> None:
        state = self._state
        state.current_root_path = []
        self._succeed(FolderListing(
            parent=state.current_node,
            folders=[COLLECTIONS_NODE, USERS_NODE],
            files=[],
            root_path=[]
        ))

    def _on_top_level(self, node_type: NodeType, children: ChildSet) -> None:
        """Users or Collections listed: every entry is a navigable folder."""
        state = self._state
        root_path = complete_root_path(state.current_node, [], self._custom_root)
        state.current_root_path = root_path
        self._succeed(FolderListing(
            parent=state.current_node,
            folders=child_set_to_nodes(children, node_type),
            files=[],
            root_path=list(root_path)
        ))

    # Standard case

    def _fetch_standard(self, target: NodeRef) -> None:
        state = self._state

        if target.type in FOLDER_PARENT_TYPES:
            self._spawn(
                self._api.list_folders(target.id, target.type.value),
                self._on_folders,
                FOLDERS_ERROR,
                Subrequest.FOLDERS
            )

        if target.type is NodeType.FOLDER:
            self._spawn(
                self._api.list_items(target.id),
                self._on_items,
                ITEMS_ERROR,
                Subrequest.ITEMS
            )

        if target.type is NodeType.ITEM:
            self._spawn(
                self._api.list_files(target.id),
                self._on_files,
                FILES_ERROR,
                Subrequest.FILES
            )

        rule, root_path = resolve_root_path(
            target,
            state.previous_node,
            state.current_root_path,
            state.previous_folders,
            state.previous_items,
            self._custom_root
        )
        self._logger.debug(f"Root path rule: {rule.value}")

        if rule.needs_network:
            state.current_root_path = []
            self._spawn(
                self._api.get_root_path(target.id, target.type.value),
                self._on_root_path,
                ROOT_PATH_ERROR,
                Subrequest.ROOT_PATH
            )
        else:
            state.current_root_path = root_path

        # Nothing issued means nothing to wait for
        self._finish_if_ready()

    def _on_folders(self, folders: ChildSet) -> None:
        self._state.current_folders = dict(folders)
        self._complete(Subrequest.FOLDERS)

    def _on_files(self, files: ChildSet) -> None:
        self._state.current_files.update(files)
        self._complete(Subrequest.FILES)

    def _on_root_path(self, root_path: List[NodeRef]) -> None:
        state = self._state
        state.current_root_path = complete_root_path(
            state.current_node, root_path, self._custom_root
        )
        self._complete(Subrequest.ROOT_PATH)

    def _on_items(self, items: ChildSet) -> None:
        state = self._state
        state.current_items = dict(items)

        if self._fetch_mode is not ItemMode.ITEMS_ARE_FOLDERS_WITH_FILE_BUMPING or not items:
            self._complete(Subrequest.ITEMS)
            return

        # ITEMS stays pending until every item's files are known.
        # One request per item, unbatched.
        state.bump_pending = set(items)
        for item_id in items:
            self._spawn(
                self._api.list_files(item_id),
                functools.partial(self._on_item_files, item_id),
                ITEM_CONTENTS_ERROR
            )

    def _on_item_files(self, item_id: str, files: ChildSet) -> None:
        state = self._state
        state.bump_pending.discard(item_id)

        if len(files) == 1:
            file_id, file_name = next(iter(files.items()))
            if file_name == state.current_items.get(item_id):
                # A lone file named like its item stands in for the item
                del state.current_items[item_id]
                state.current_files[file_id] = file_name

        if not state.bump_pending:
            self._complete(Subrequest.ITEMS)

    def _build_listing(self) -> FolderListing:
        state = self._state
        folders = child_set_to_nodes(state.current_folders, NodeType.FOLDER)
        items = child_set_to_nodes(state.current_items, NodeType.ITEM)
        files = child_set_to_nodes(state.current_files, NodeType.FILE)

        if self._fetch_mode.items_are_folders:
            folders = sort_nodes(folders + items)
        else:
            files = sort_nodes(items + files)

        return FolderListing(
            parent=state.current_node,
            folders=folders,
            files=files,
            root_path=list(state.current_root_path)
        )
