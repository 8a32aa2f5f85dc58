"""
Download - Fetch a whole folder tree to a local directory
"""
import asyncio
import os
import sys

from girderpy import GirderClient


async def main():
    if len(sys.argv) < 2:
        print("Usage: python 03_download.py <folder id> [destination]")
        return

    folder_id = sys.argv[1]
    dest = sys.argv[2] if len(sys.argv) > 2 else "."

    async with GirderClient(
        os.environ.get("GIRDER_API_URL", "http://localhost:8080/api/v1"),
        api_key=os.environ.get("GIRDER_API_KEY"),
        progress_callback=print
    ) as girder:
        # Items land in dest, subfolders become directories below it
        paths = await girder.downloader.download_folder(folder_id, dest)
        print(f"\nDownloaded {len(paths)} files")


if __name__ == "__main__":
    asyncio.run(main())
