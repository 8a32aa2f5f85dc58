"""
Basic usage - Log in with an API key and list your home folder
"""
import asyncio
import os

from girderpy import GirderClient


async def main():
    api_url = os.environ.get("GIRDER_API_URL", "http://localhost:8080/api/v1")
    api_key = os.environ["GIRDER_API_KEY"]

    async with GirderClient(api_url, api_key=api_key) as girder:
        user = await girder.me()
        print(f"Connected as {user.login}")

        home = await girder.home()
        print(f"\n{girder.pwd()}:")
        for node in home.rows:
            print(f"  {node}")


if __name__ == "__main__":
    asyncio.run(main())
