"""Girder CLI - Main commands."""
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.tree import Tree

from girderpy import (
    GirderClient,
    GirderException,
    NodeRef,
    NodeType,
    ItemMode,
    ROOT_NODE,
    USERS_NODE,
    COLLECTIONS_NODE
)
from girderpy.core.models import FolderListing

app = typer.Typer(
    name="girder",
    help="Browse and download from a Girder data server",
    add_completion=False
)
console = Console()


@dataclass
class Settings:
    """Connection options shared by every command."""
    api_url: str
    api_key: Optional[str]
    token: Optional[str]
    item_mode: ItemMode


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def make_client(settings: Settings, **kwargs) -> GirderClient:
    return GirderClient(
        settings.api_url,
        api_key=settings.api_key,
        token=settings.token,
        item_mode=settings.item_mode,
        **kwargs
    )


def parse_node(node_type: str, node_id: Optional[str]) -> NodeRef:
    """Build a node reference from command line arguments."""
    try:
        parsed = NodeType.parse(node_type)
    except ValueError:
        console.print(f"[red]Unknown node type: {node_type}[/red]")
        raise typer.Exit(1)

    if parsed.is_virtual:
        return {
            NodeType.ROOT: ROOT_NODE,
            NodeType.USERS: USERS_NODE,
            NodeType.COLLECTIONS: COLLECTIONS_NODE,
        }[parsed]

    if not node_id:
        console.print(f"[red]A {parsed.value} needs an id[/red]")
        raise typer.Exit(1)
    return NodeRef(name=node_id, id=node_id, type=parsed)


def print_listing(listing: FolderListing):
    """Print breadcrumb and rows of a listing."""
    breadcrumb = " / ".join(node.name for node in listing.root_path + [listing.parent])
    console.print(f"[bold]{breadcrumb}[/bold]")

    table = Table()
    table.add_column("Type", style="cyan")
    table.add_column("Name")
    table.add_column("Id", style="dim")

    for node in listing.folders:
        table.add_row(node.type.value, f"[blue]{node.name}/[/blue]", node.id)
    for node in listing.files:
        table.add_row(node.type.value, node.name, node.id)

    console.print(table)


@app.callback()
def main_options(
    ctx: typer.Context,
    api_url: str = typer.Option(
        "http://localhost:8080/api/v1", "--api-url", envvar="GIRDER_API_URL", help="Girder API URL"
    ),
    api_key: str = typer.Option(None, "--api-key", envvar="GIRDER_API_KEY", help="Girder API key"),
    token: str = typer.Option(None, "--token", envvar="GIRDER_TOKEN", help="Girder token"),
    item_mode: str = typer.Option(
        "files", "--item-mode", "-m", help="How items are shown: files, folders or bumping"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Connection options."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(name)s: %(message)s",
            handlers=[RichHandler(console=console, show_path=False)]
        )

    try:
        mode = ItemMode.parse(item_mode)
    except GirderException as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    ctx.obj = Settings(api_url=api_url, api_key=api_key, token=token, item_mode=mode)


@app.command()
def whoami(ctx: typer.Context):
    """Show the authenticated user."""
    async def show_user():
        try:
            async with make_client(ctx.obj) as girder:
                user = await girder.me()
        except GirderException as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

        console.print(f"Login: {user.login}")
        console.print(f"User ID: {user.id}")

    run_async(show_user())


@app.command()
def home(ctx: typer.Context):
    """List the authenticated user's home."""
    async def list_home():
        try:
            async with make_client(ctx.obj) as girder:
                listing = await girder.home()
        except GirderException as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

        print_listing(listing)

    run_async(list_home())


@app.command()
def ls(
    ctx: typer.Context,
    node_type: str = typer.Argument("root", help="root, Users, Collections, user, collection, folder or item"),
    node_id: str = typer.Argument(None, help="Id of the node"),
):
    """List a node (default: root)."""
    node = parse_node(node_type, node_id)

    async def list_node():
        try:
            async with make_client(ctx.obj) as girder:
                listing = await girder.ls(node)
        except GirderException as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

        print_listing(listing)

    run_async(list_node())


@app.command()
def tree(
    ctx: typer.Context,
    node_type: str = typer.Argument(..., help="Type of the node"),
    node_id: str = typer.Argument(None, help="Id of the node"),
    depth: int = typer.Option(2, "--depth", "-d", help="Levels to expand"),
):
    """Show a node and its descendants as a tree."""
    node = parse_node(node_type, node_id)

    async def expand(girder: GirderClient, parent: NodeRef, branch: Tree, level: int):
        listing = await girder.cd(parent)
        for folder in listing.folders:
            child = branch.add(f"[blue]{folder.name}/[/blue] [dim]{folder.id}[/dim]")
            if level < depth:
                await expand(girder, folder, child, level + 1)
        for file in listing.files:
            branch.add(f"{file.name} [dim]{file.id}[/dim]")

    async def show_tree():
        root = Tree(f"[bold]{node.name}[/bold]")
        try:
            async with make_client(ctx.obj) as girder:
                await expand(girder, node, root, 1)
        except GirderException as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)

        console.print(root)

    run_async(show_tree())


@app.command()
def get(
    ctx: typer.Context,
    node_type: str = typer.Argument(..., help="file, item or folder"),
    node_id: str = typer.Argument(..., help="Id of the node"),
    dest: Path = typer.Argument(Path("."), help="Destination directory"),
    name: str = typer.Option(None, "--name", "-n", help="Local name of a downloaded file"),
):
    """Download a file, item or folder."""
    node = parse_node(node_type, node_id)

    async def do_download():
        with console.status("Connecting...") as status:
            def on_progress(message: str):
                status.update(message)

            try:
                async with make_client(ctx.obj, progress_callback=on_progress) as girder:
                    if node.type is NodeType.FOLDER:
                        # Name unknown here, download straight into dest
                        paths = await girder.downloader.download_folder(node.id, dest)
                    elif node.type is NodeType.FILE:
                        paths = [await girder.downloader.download_file(node.id, name or node.id, dest)]
                    else:
                        paths = await girder.download(node, dest)
            except GirderException as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)

        for path in paths:
            console.print(f"[green]Downloaded:[/green] {path}")

    run_async(do_download())


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
