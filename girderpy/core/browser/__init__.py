"""
Browser module for navigating a Girder server.

Fetches the folders, files and root path of a node and keeps the
navigation state of one browsing session.
"""
from .fetcher import (
    FolderFetcher,
    NavigationState,
    Subrequest,
    FOLDERS_ERROR,
    ITEMS_ERROR,
    FILES_ERROR,
    ROOT_PATH_ERROR,
    USERS_ERROR,
    COLLECTIONS_ERROR,
    CURRENT_USER_ERROR,
    ITEM_CONTENTS_ERROR,
)
from .root_path import (
    RootPathRule,
    resolve_root_path,
    complete_root_path,
    prepend_virtual_ancestors,
    trim_to_custom_root,
)

__all__ = [
    # Fetcher
    'FolderFetcher',
    'NavigationState',
    'Subrequest',

    # Root path
    'RootPathRule',
    'resolve_root_path',
    'complete_root_path',
    'prepend_virtual_ancestors',
    'trim_to_custom_root',

    # Error message prefixes
    'FOLDERS_ERROR',
    'ITEMS_ERROR',
    'FILES_ERROR',
    'ROOT_PATH_ERROR',
    'USERS_ERROR',
    'COLLECTIONS_ERROR',
    'CURRENT_USER_ERROR',
    'ITEM_CONTENTS_ERROR',
]
