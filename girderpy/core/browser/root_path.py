"""
Root path (breadcrumb) resolution.

Pure functions deciding the ancestor chain of a node. Most navigations
move one level up or down from the current position, so the chain can
usually be derived from what is already known; only otherwise is the
rootpath endpoint queried.
"""
from enum import Enum
from typing import List, Optional, Tuple

from ..models import (
    ChildSet,
    COLLECTIONS_NODE,
    NodeRef,
    NodeType,
    ROOT_NODE,
    USERS_NODE,
)


class RootPathRule(Enum):
    """Which rule produced a root path."""
    UNCHANGED = 'unchanged'        # same node again
    ANCESTOR = 'ancestor'          # moved up to a node already in the path
    TOP_LEVEL = 'top_level'        # user or collection, nothing to fetch
    CHILD_FOLDER = 'child_folder'  # moved down into a listed folder
    CHILD_ITEM = 'child_item'      # moved down into a listed item
    NETWORK = 'network'            # must ask the server

    @property
    def needs_network(self) -> bool:
        return self is RootPathRule.NETWORK


def prepend_virtual_ancestors(target: NodeRef, root_path: List[NodeRef]) -> List[NodeRef]:
    """
    Prepend root and the Users or Collections level to a real root path.

    Root is added unless the target is root itself. Users is added when the
    path starts at a user or the target is a user; Collections likewise for
    collections. Never both.
    """
    prefix: List[NodeRef] = []
    if target.type is not NodeType.ROOT:
        prefix.append(ROOT_NODE)

    top_type = root_path[0].type if root_path else None
    if top_type is NodeType.USER or target.type is NodeType.USER:
        prefix.append(USERS_NODE)
    elif top_type is NodeType.COLLECTION or target.type is NodeType.COLLECTION:
        prefix.append(COLLECTIONS_NODE)

    return prefix + list(root_path)


def trim_to_custom_root(root_path: List[NodeRef], custom_root: Optional[NodeRef]) -> List[NodeRef]:
    """Drop entries before the custom root; empty if it is not in the path."""
    if custom_root is None:
        return list(root_path)
    trimmed = list(root_path)
    while trimmed and trimmed[0] != custom_root:
        trimmed.pop(0)
    return trimmed


def complete_root_path(
    target: NodeRef,
    root_path: List[NodeRef],
    custom_root: Optional[NodeRef] = None
) -> List[NodeRef]:
    """Finish a freshly built path: virtual ancestors, then custom root trimming."""
    return trim_to_custom_root(prepend_virtual_ancestors(target, root_path), custom_root)


def resolve_root_path(
    target: NodeRef,
    previous_node: Optional[NodeRef],
    current_root_path: List[NodeRef],
    previous_folders: ChildSet,
    previous_items: ChildSet,
    custom_root: Optional[NodeRef] = None
) -> Tuple[RootPathRule, Optional[List[NodeRef]]]:
    """
    Derive the root path of ``target`` locally when possible.

    Args:
        target: Node being navigated to
        previous_node: Node the current path and listings belong to
        current_root_path: Root path of ``previous_node``
        previous_folders: Folders listed under ``previous_node``
        previous_items: Items listed under ``previous_node``
        custom_root: Optional node browsing is restricted to

    Returns:
        (rule, path); path is None when the rule is NETWORK
    """
    if previous_node is not None and target == previous_node:
        return RootPathRule.UNCHANGED, list(current_root_path)

    if target in current_root_path:
        index = current_root_path.index(target)
        return RootPathRule.ANCESTOR, list(current_root_path[:index])

    if target.type not in (NodeType.FOLDER, NodeType.ITEM):
        return RootPathRule.TOP_LEVEL, complete_root_path(target, [], custom_root)

    if previous_node is None:
        return RootPathRule.NETWORK, None

    if target.type is NodeType.FOLDER and target.id in previous_folders:
        return RootPathRule.CHILD_FOLDER, list(current_root_path) + [previous_node]

    if target.type is NodeType.ITEM and target.id in previous_items:
        return RootPathRule.CHILD_ITEM, list(current_root_path) + [previous_node]

    return RootPathRule.NETWORK, None
