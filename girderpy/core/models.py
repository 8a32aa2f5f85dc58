"""
Data models for Girder browsing.

Uses dataclasses and enums for the node references exchanged between the
API client, the folder fetcher and callers.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Union

from .exceptions import ItemModeError


# id -> display name, as returned by the list endpoints
ChildSet = Dict[str, str]


class NodeType(Enum):
    """Type of a node in the Girder hierarchy (values are Girder model names)."""
    ROOT = 'root'
    USERS = 'Users'
    COLLECTIONS = 'Collections'
    USER = 'user'
    COLLECTION = 'collection'
    FOLDER = 'folder'
    ITEM = 'item'
    FILE = 'file'

    @property
    def is_virtual(self) -> bool:
        """Virtual nodes have no id and no server-side counterpart."""
        return self in (NodeType.ROOT, NodeType.USERS, NodeType.COLLECTIONS)

    @property
    def is_navigable(self) -> bool:
        """Files are leaves; every other type can be listed."""
        return self is not NodeType.FILE

    @classmethod
    def parse(cls, value: Union[str, 'NodeType']) -> 'NodeType':
        """Parse a node type from its value ('folder') or name ('FOLDER')."""
        if isinstance(value, cls):
            return value
        for node_type in cls:
            if value == node_type.value or str(value).upper() == node_type.name:
                return node_type
        raise ValueError(f"Unknown node type: {value!r}")


@dataclass(frozen=True, eq=False)
class NodeRef:
    """
    Reference to a node: display name, id and type.

    Real nodes are identified by (id, type); virtual nodes by type alone,
    so a renamed folder still matches its entry in a cached root path.
    """
    name: str
    id: str
    type: NodeType

    @property
    def is_virtual(self) -> bool:
        return self.type.is_virtual

    def _identity(self):
        if self.type.is_virtual:
            return (self.type,)
        return (self.id, self.type)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NodeRef):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def __str__(self) -> str:
        return f"{self.type.value}:{self.name}"

    def to_dict(self) -> Dict[str, str]:
        """Convert to the {'name', 'id', 'type'} mapping."""
        return {'name': self.name, 'id': self.id, 'type': self.type.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NodeRef':
        """Create from a {'name', 'id', 'type'} mapping."""
        return cls(
            name=data.get('name', ''),
            id=data.get('id', ''),
            type=NodeType.parse(data['type'])
        )


ROOT_NODE = NodeRef('root', '', NodeType.ROOT)
USERS_NODE = NodeRef('Users', '', NodeType.USERS)
COLLECTIONS_NODE = NodeRef('Collections', '', NodeType.COLLECTIONS)


class ItemMode(Enum):
    """How items are presented: as files, as folders, or folders with file bumping."""
    ITEMS_ARE_FILES = 'files'
    ITEMS_ARE_FOLDERS = 'folders'
    ITEMS_ARE_FOLDERS_WITH_FILE_BUMPING = 'bumping'

    @property
    def items_are_folders(self) -> bool:
        return self is not ItemMode.ITEMS_ARE_FILES

    @classmethod
    def parse(cls, value: Union[str, 'ItemMode']) -> 'ItemMode':
        """
        Parse an item mode from an ItemMode, its value or its name.

        Raises:
            ItemModeError: If the mode is unknown
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            for mode in cls:
                if lowered in (mode.value, mode.name.lower()):
                    return mode
        raise ItemModeError(f"Unknown item mode: {value!r}")


def sort_nodes(nodes: Iterable[NodeRef]) -> List[NodeRef]:
    """Sort by name, then id; str ordering matches UTF-8 byte ordering."""
    return sorted(nodes, key=lambda node: (node.name, node.id))


def child_set_to_nodes(children: ChildSet, node_type: NodeType) -> List[NodeRef]:
    """Turn an id -> name mapping into sorted node references."""
    return sort_nodes(
        NodeRef(name=name, id=node_id, type=node_type)
        for node_id, name in children.items()
    )


@dataclass
class FolderListing:
    """Consolidated listing of a node: its folders, files and root path."""
    parent: NodeRef
    folders: List[NodeRef] = field(default_factory=list)
    files: List[NodeRef] = field(default_factory=list)
    root_path: List[NodeRef] = field(default_factory=list)

    @property
    def rows(self) -> Iterator[NodeRef]:
        """Folders first, then files."""
        yield from self.folders
        yield from self.files

    def __len__(self) -> int:
        return len(self.folders) + len(self.files)

    def find(self, name: str) -> Union[NodeRef, None]:
        """Find a row by name (folders take precedence)."""
        for node in self.rows:
            if node.name == name:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to plain dictionaries."""
        return {
            'parent': self.parent.to_dict(),
            'folders': [node.to_dict() for node in self.folders],
            'files': [node.to_dict() for node in self.files],
            'root_path': [node.to_dict() for node in self.root_path],
        }


@dataclass
class CurrentUser:
    """The authenticated user."""
    id: str
    login: str

    def as_node(self) -> NodeRef:
        """The user's home node."""
        return NodeRef(name=self.login, id=self.id, type=NodeType.USER)
