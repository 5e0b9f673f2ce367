"""Main CLI entry point for TuneForge administration."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, NoReturn

import click
from rich.console import Console
from rich.table import Table

from tuneforge import __version__
from tuneforge.core.config import get_settings
from tuneforge.core.exceptions import TuneForgeError
from tuneforge.core.models import ROLES

if TYPE_CHECKING:
    from backend.services.auth_service import AuthService
    from backend.services.media_service import MediaService
    from backend.services.playlist_service import PlaylistService
    from backend.services.song_service import SongService
    from backend.services.user_service import UserService

console = Console()


# Lazy-loaded services; importing them pulls in the Firestore client


def get_auth_service() -> AuthService:
    from backend.services.auth_service import get_auth_service as factory

    return factory()


def get_user_service() -> UserService:
    from backend.services.user_service import get_user_service as factory

    return factory()


def get_song_service() -> SongService:
    from backend.services.song_service import get_song_service as factory

    return factory()


def get_playlist_service() -> PlaylistService:
    from backend.services.playlist_service import get_playlist_service as factory

    return factory()


def get_media_service() -> MediaService:
    from backend.services.media_service import get_media_service as factory

    return factory()


def _fail(error: TuneForgeError) -> NoReturn:
    console.print(f"[red]Error:[/red] {error}")
    raise SystemExit(1)


@click.group()
@click.version_option(version=__version__, prog_name="tuneforge")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """TuneForge - music streaming administration."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
def init() -> None:
    """Create media directories and show the active configuration."""
    settings = get_settings()
    created = get_media_service().ensure_directories()

    table = Table(title="TuneForge Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Environment", settings.environment)
    table.add_row("Project", settings.google_cloud_project or "(not set)")
    table.add_row("Firestore database", settings.firestore_database)
    table.add_row("Media root", settings.media_root)
    table.add_row("JWT secret", "configured" if settings.jwt_secret else "[red]missing[/red]")
    console.print(table)

    for path in created:
        console.print(f"[dim]Media directory ready: {path}[/dim]")
    console.print("[green]Initialization complete[/green]")


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


@cli.group()
def users() -> None:
    """User management commands."""
    pass


@users.command(name="create-admin")
@click.argument("username")
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Account password")
@click.option("--first-name", default="Admin", help="First name")
@click.option("--last-name", default="User", help="Last name")
def create_admin(username: str, email: str, password: str, first_name: str, last_name: str) -> None:
    """Create an account with the admin role."""
    if len(password) < 6:
        console.print("[red]Error:[/red] Password must be at least 6 characters long")
        raise SystemExit(1)

    async def run() -> str:
        user = await get_auth_service().register(username, email, password, first_name, last_name)
        await get_user_service().set_role(user.id, "admin")
        return user.id

    try:
        with console.status(f"Creating admin '{username}'..."):
            user_id = asyncio.run(run())
    except TuneForgeError as e:
        _fail(e)

    console.print(f"[green]Admin user created:[/green] {username} ({user_id})")


@users.command()
@click.argument("user_id")
@click.argument("role", type=click.Choice(ROLES))
def promote(user_id: str, role: str) -> None:
    """Change a user's role."""
    try:
        user = asyncio.run(get_user_service().set_role(user_id, role))
    except TuneForgeError as e:
        _fail(e)

    console.print(f"[green]{user.username}[/green] is now [cyan]{role}[/cyan]")


@users.command(name="list")
@click.option("--limit", "-l", default=20, help="Number of results")
@click.option("--search", "-s", default=None, help="Search username, email or name")
def list_users(limit: int, search: str | None) -> None:
    """List the newest users."""
    with console.status("Fetching users..."):
        results, total = asyncio.run(get_user_service().list_users(limit=limit, search=search))

    if not results:
        console.print("[yellow]No users found[/yellow]")
        return

    table = Table(title="Users")
    table.add_column("ID", style="dim")
    table.add_column("Username", style="cyan")
    table.add_column("Email")
    table.add_column("Role", style="magenta")
    table.add_column("Plan")
    table.add_column("Active", justify="center")

    for user in results:
        table.add_row(
            user.id,
            user.username,
            user.email,
            user.role,
            user.subscription.type,
            "yes" if user.is_active else "no",
        )

    console.print(table)
    console.print(f"[dim]Showing {len(results)} of {total} users[/dim]")


# -----------------------------------------------------------------------------
# Songs
# -----------------------------------------------------------------------------


@cli.group()
def songs() -> None:
    """Song catalog commands."""
    pass


@songs.command()
@click.option("--limit", "-l", default=10, help="Number of results")
def trending(limit: int) -> None:
    """Show the most played songs."""
    with console.status("Fetching trending songs..."):
        results = asyncio.run(get_song_service().get_trending(limit=limit))

    if not results:
        console.print("[yellow]No songs found[/yellow]")
        return

    table = Table(title="Trending Songs")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Artist", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Genre")
    table.add_column("Plays", justify="right", style="magenta")

    for i, song in enumerate(results, 1):
        table.add_row(str(i), song.artist, song.title, song.genre, str(song.play_count))

    console.print(table)


@songs.command()
@click.argument("query")
@click.option("--limit", "-l", default=20, help="Number of results")
def search(query: str, limit: int) -> None:
    """Search the catalog by title, artist, album or tags."""
    with console.status(f"Searching for '{query}'..."):
        results, total = asyncio.run(
            get_song_service().list_songs(
                search=query,
                sort="popular",
                include_premium=True,
                limit=limit,
            )
        )

    if not results:
        console.print(f"[yellow]No results found for '{query}'[/yellow]")
        return

    table = Table(title=f"Search Results: {query}")
    table.add_column("ID", style="dim")
    table.add_column("Artist", style="cyan")
    table.add_column("Title", style="green")
    table.add_column("Premium", justify="center")

    for song in results:
        table.add_row(song.id, song.artist, song.title, "yes" if song.is_premium else "")

    console.print(table)
    console.print(f"[dim]Found {total} songs[/dim]")


# -----------------------------------------------------------------------------
# Stats
# -----------------------------------------------------------------------------


@cli.command()
def stats() -> None:
    """Show dashboard statistics."""

    async def collect() -> tuple[dict[str, int], dict[str, int], dict[str, int], dict[str, int]]:
        song_service = get_song_service()
        return (
            await get_user_service().get_stats(),
            await song_service.get_stats(),
            await get_playlist_service().get_stats(),
            await song_service.get_genre_counts(),
        )

    with console.status("Fetching stats..."):
        user_stats, song_stats, playlist_stats, genres = asyncio.run(collect())

    console.print("\n[bold]TuneForge Stats[/bold]")
    console.print(f"  Users:         [cyan]{user_stats['total']:,}[/cyan] ({user_stats['active']:,} active)")
    console.print(f"  Premium users: [cyan]{user_stats['premium']:,}[/cyan]")
    console.print(f"  Songs:         [cyan]{song_stats['total']:,}[/cyan] ({song_stats['active']:,} active)")
    console.print(f"  Playlists:     [cyan]{playlist_stats['total']:,}[/cyan] ({playlist_stats['public']:,} public)")

    if genres:
        table = Table(title="Songs by Genre")
        table.add_column("Genre", style="cyan")
        table.add_column("Songs", justify="right", style="magenta")
        for genre, count in genres.items():
            table.add_row(genre, str(count))
        console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
