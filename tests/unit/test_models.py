"""Tests for node models."""
import pytest

from girderpy.core.exceptions import ItemModeError
from girderpy.core.models import (
    COLLECTIONS_NODE,
    CurrentUser,
    FolderListing,
    ItemMode,
    NodeRef,
    NodeType,
    ROOT_NODE,
    USERS_NODE,
    child_set_to_nodes,
    sort_nodes,
)


class TestNodeType:
    """Test suite for NodeType."""

    def test_virtual(self):
        """Test only root, Users and Collections are virtual."""
        virtual = {node_type for node_type in NodeType if node_type.is_virtual}

        assert virtual == {NodeType.ROOT, NodeType.USERS, NodeType.COLLECTIONS}

    @pytest.mark.parametrize('value', ['folder', 'FOLDER', NodeType.FOLDER])
    def test_parse(self, value):
        """Test parsing by value, name or member."""
        assert NodeType.parse(value) is NodeType.FOLDER

    def test_parse_unknown(self):
        """Test an unknown type raises ValueError."""
        with pytest.raises(ValueError):
            NodeType.parse('assetstore')

    def test_navigable(self):
        """Test every type but files can be listed."""
        assert not NodeType.FILE.is_navigable
        assert all(node_type.is_navigable for node_type in NodeType if node_type is not NodeType.FILE)


class TestNodeRef:
    """Test suite for NodeRef identity."""

    def test_real_nodes_compare_by_id_and_type(self):
        """Test names do not take part in equality."""
        assert NodeRef('old', 'x', NodeType.FOLDER) == NodeRef('new', 'x', NodeType.FOLDER)
        assert NodeRef('a', 'x', NodeType.FOLDER) != NodeRef('a', 'x', NodeType.ITEM)

    def test_virtual_nodes_compare_by_type(self):
        """Test virtual nodes are equal whatever their name or id."""
        assert NodeRef('Users', 'whatever', NodeType.USERS) == USERS_NODE
        assert USERS_NODE != COLLECTIONS_NODE

    def test_hash_matches_equality(self):
        """Test equal nodes collapse in a set."""
        nodes = {NodeRef('a', 'x', NodeType.FOLDER), NodeRef('b', 'x', NodeType.FOLDER), ROOT_NODE}

        assert len(nodes) == 2

    def test_dict_conversion(self):
        """Test conversion to and from plain dictionaries."""
        node = NodeRef('Data', 'f1', NodeType.FOLDER)

        assert node.to_dict() == {'name': 'Data', 'id': 'f1', 'type': 'folder'}
        assert NodeRef.from_dict(node.to_dict()) == node

    def test_str(self):
        assert str(NodeRef('Data', 'f1', NodeType.FOLDER)) == 'folder:Data'


class TestItemMode:
    """Test suite for ItemMode parsing."""

    @pytest.mark.parametrize('value, expected', [
        ('files', ItemMode.ITEMS_ARE_FILES),
        ('folders', ItemMode.ITEMS_ARE_FOLDERS),
        ('bumping', ItemMode.ITEMS_ARE_FOLDERS_WITH_FILE_BUMPING),
        ('ITEMS_ARE_FOLDERS_WITH_FILE_BUMPING', ItemMode.ITEMS_ARE_FOLDERS_WITH_FILE_BUMPING),
        (ItemMode.ITEMS_ARE_FOLDERS, ItemMode.ITEMS_ARE_FOLDERS),
    ])
    def test_parse(self, value, expected):
        assert ItemMode.parse(value) is expected

    def test_parse_unknown(self):
        """Test an unknown mode raises ItemModeError, also a ValueError."""
        with pytest.raises(ItemModeError):
            ItemMode.parse('sideways')
        with pytest.raises(ValueError):
            ItemMode.parse(3)

    def test_items_are_folders(self):
        assert not ItemMode.ITEMS_ARE_FILES.items_are_folders
        assert ItemMode.ITEMS_ARE_FOLDERS.items_are_folders
        assert ItemMode.ITEMS_ARE_FOLDERS_WITH_FILE_BUMPING.items_are_folders


class TestSorting:
    """Test suite for row ordering."""

    def test_byte_order(self):
        """Test uppercase sorts before lowercase and ASCII before accents."""
        nodes = child_set_to_nodes({'1': 'b', '2': 'B', '3': 'é', '4': 'a'}, NodeType.FOLDER)

        assert [node.name for node in nodes] == ['B', 'a', 'b', 'é']

    def test_ties_broken_by_id(self):
        nodes = sort_nodes([
            NodeRef('same', '2', NodeType.FILE),
            NodeRef('same', '1', NodeType.FILE),
        ])

        assert [node.id for node in nodes] == ['1', '2']

    def test_child_set_types(self):
        """Test every node gets the requested type."""
        nodes = child_set_to_nodes({'u1': 'alice'}, NodeType.USER)

        assert nodes == [NodeRef('alice', 'u1', NodeType.USER)]


class TestFolderListing:
    """Test suite for FolderListing."""

    @pytest.fixture
    def listing(self):
        return FolderListing(
            parent=NodeRef('Data', 'f1', NodeType.FOLDER),
            folders=[NodeRef('Sub', 'f2', NodeType.FOLDER)],
            files=[NodeRef('notes.txt', 'i1', NodeType.ITEM)],
            root_path=[ROOT_NODE],
        )

    def test_rows_folders_first(self, listing):
        assert [node.name for node in listing.rows] == ['Sub', 'notes.txt']
        assert len(listing) == 2

    def test_find(self, listing):
        assert listing.find('notes.txt').id == 'i1'
        assert listing.find('missing') is None

    def test_to_dict(self, listing):
        data = listing.to_dict()

        assert data['parent']['id'] == 'f1'
        assert data['files'] == [{'name': 'notes.txt', 'id': 'i1', 'type': 'item'}]
        assert data['root_path'] == [{'name': 'root', 'id': '', 'type': 'root'}]


class TestCurrentUser:
    def test_as_node(self):
        """Test the user's home node is a user node named by login."""
        node = CurrentUser(id='u1', login='alice').as_node()

        assert node == NodeRef('alice', 'u1', NodeType.USER)
        assert node.name == 'alice'
