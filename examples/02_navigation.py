"""
Navigation - Walk the hierarchy with the folder fetcher and its events
"""
import asyncio
import os

from girderpy import (
    APIConfig,
    AsyncAPIClient,
    AsyncAuthService,
    FolderFetcher,
    ItemMode,
    ROOT_NODE,
    setup_logging,
)


def show(listing):
    breadcrumb = " / ".join(node.name for node in listing.root_path + [listing.parent])
    print(f"\n[{breadcrumb}]")
    for node in listing.folders:
        print(f"  {node.name}/")
    for node in listing.files:
        print(f"  {node.name}")


async def main():
    setup_logging()
    config = APIConfig.from_env()

    async with AsyncAPIClient(config) as api:
        if os.environ.get("GIRDER_API_KEY"):
            await AsyncAuthService(api).authenticate_api_key(os.environ["GIRDER_API_KEY"])

        # Items with a single file of the same name show up as that file
        fetcher = FolderFetcher(api, item_mode=ItemMode.ITEMS_ARE_FOLDERS_WITH_FILE_BUMPING)
        fetcher.on("listing_ready", show)
        fetcher.on("fetch_failed", lambda message: print(f"\nError: {message}"))

        # Root -> Collections -> first collection -> first folder
        listing = await fetcher.navigate_to(ROOT_NODE)
        for _ in range(3):
            if listing is None or not listing.folders:
                break
            listing = await fetcher.navigate_to(listing.folders[0])

        # Back up one level; the root path is reused, no extra request
        await fetcher.go_up()

        await fetcher.close()


if __name__ == "__main__":
    asyncio.run(main())
