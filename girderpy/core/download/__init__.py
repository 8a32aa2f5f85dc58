"""Download module for Girder files, items and folders."""
from .downloader import Downloader, safe_name

__all__ = [
    'Downloader',
    'safe_name',
]
