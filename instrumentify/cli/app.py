"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional

import aiohttp
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from instrumentify import __version__
from instrumentify.api.auth import SpotifyAuthenticator, extract_authorization_code
from instrumentify.api.client import SpotifyAPIClient
from instrumentify.core.pipeline import PlaylistSession
from instrumentify.core.resolver import SourceResolver
from instrumentify.exceptions import (
    AuthenticationError,
    InstrumentifyError,
    PlaylistError,
)
from instrumentify.inference.invoker import InferenceInvoker, get_onnx_providers
from instrumentify.inference.selector import ModelSelector, choose_tier
from instrumentify.media.downloader import Downloader, close_connection_pool
from instrumentify.models.config import QUALITY_CHOICES, AppConfig
from instrumentify.models.track import Track
from instrumentify.sources import default_providers
from instrumentify.storage.config_manager import ConfigManager
from instrumentify.storage.writer import ResultWriter
from instrumentify.utils.path import parse_playlist_url
from instrumentify.web.client_id_fetcher import ClientIdFetcher, SoundCloudCredentials

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_hardware_table,
    print_resolution_table,
    print_summary_panel,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("instrumentify")

app = typer.Typer(
    name="instrumentify",
    help=(
        "Find legal downloads for a Spotify playlist and strip the vocals on"
        " your own machine. Use 'instrumentify <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

_USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64; rv:128.0) Gecko/20100101 Firefox/128.0"


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "instrumentify"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _load_config(**cli_options) -> AppConfig:
    return ConfigManager(CONFIG_FILE).load_config(cli_options)


def _fail(error: Exception) -> None:
    console.print(format_error_with_suggestions(error))
    raise typer.Exit(code=1) from error


@asynccontextmanager
async def open_playlist_session(config: AppConfig) -> AsyncIterator[PlaylistSession]:
    """Wires providers, resolver, downloader, selector and invoker for one session."""
    timeout = aiohttp.ClientTimeout(total=30, connect=10)
    async with aiohttp.ClientSession(
        timeout=timeout, headers={"User-Agent": _USER_AGENT}
    ) as http:
        credentials = SoundCloudCredentials(
            config.soundcloud_client_id,
            ClientIdFetcher(http),
            cache_discovered=config.cache_client_id,
        )
        downloader = Downloader(max_workers=config.max_workers)
        session = PlaylistSession(
            resolver=SourceResolver(
                default_providers(http, credentials, config.jamendo_client_id)
            ),
            fetcher=downloader,
            selector=ModelSelector(
                config.model_url_tiny,
                config.model_url_medium,
                gpu_override=config.gpu_descriptor,
            ),
            invoker=InferenceInvoker(Path(config.config_path) / "models", downloader),
        )
        try:
            yield session
        finally:
            await close_connection_pool()


async def fetch_playlist(config: AppConfig, url: str) -> List[Track]:
    """Reads the tracks of the playlist at ``url`` with the saved token."""
    playlist_id = parse_playlist_url(url)
    if not playlist_id:
        raise PlaylistError(f"Not a Spotify playlist URL: {url}")
    if not config.is_authenticated:
        raise AuthenticationError(
            "Please log in with Spotify first (run 'instrumentify login')."
        )
    async with SpotifyAPIClient(config.token) as client:
        tracks = await client.fetch_playlist_tracks(playlist_id)
    log.info(f"Playlist [cyan]{playlist_id}[/cyan] has {len(tracks)} tracks.")
    return tracks


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Instrumentify CLI"""
    if version:
        console.print(f"[bold]instrumentify[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    logging.getLogger("instrumentify").setLevel("DEBUG" if verbose >= 2 else "INFO")

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]instrumentify init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config = _load_config()
        print_config(CONFIG_FILE, config.model_dump(exclude={"config_path"}))
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    spotify_client_id: str = typer.Option(
        ..., "--spotify-client-id", help="Client ID from the Spotify developer dashboard."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Redirect URI registered for the Spotify app."
    ),
    soundcloud_client_id: Optional[str] = typer.Option(
        None,
        "--soundcloud-client-id",
        help="SoundCloud client_id. Discovered from soundcloud.com when omitted.",
    ),
    jamendo_client_id: Optional[str] = typer.Option(
        None, "--jamendo-client-id", help="Jamendo API client_id."
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration without asking."
    ),
):
    """Create the configuration file."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {
        key: value
        for key, value in {
            "spotify_client_id": spotify_client_id,
            "redirect_uri": redirect_uri,
            "soundcloud_client_id": soundcloud_client_id,
            "jamendo_client_id": jamendo_client_id,
        }.items()
        if value is not None
    }
    try:
        ConfigManager(CONFIG_FILE).save_config(settings)
    except InstrumentifyError as e:
        _fail(e)
    console.print(f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")
    console.print("Next: [cyan]instrumentify login[/cyan]")


@app.command()
def login(
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the authorization URL instead of opening it."
    ),
):
    """Log in with Spotify (authorization code with PKCE)."""
    try:
        config_manager = ConfigManager(CONFIG_FILE)
        config = config_manager.load_config()
        authenticator = SpotifyAuthenticator(
            config.spotify_client_id, config.redirect_uri
        )
    except InstrumentifyError as e:
        _fail(e)

    authorize_url = authenticator.build_authorize_url()
    console.print("\nOpen this URL and approve access:\n")
    console.print(f"[cyan]{escape(authorize_url)}[/cyan]\n")
    if not no_browser:
        typer.launch(authorize_url)

    redirected = typer.prompt("Paste the URL you were redirected to")
    try:
        code = extract_authorization_code(redirected)
        if not code:
            raise AuthenticationError("The pasted URL does not contain a 'code'.")
        token = asyncio.run(authenticator.exchange_code(code))
        config_manager.save_token(token)
    except InstrumentifyError as e:
        _fail(e)
    console.print("[bold green]✓ Logged in. Token saved.[/bold green]")


@app.command()
def resolve(
    title: str = typer.Argument(..., help="Track title."),
    artist: str = typer.Argument(..., help="Track artist."),
):
    """Find a legal download for a single track."""

    async def _resolve_async() -> Optional[str]:
        async with open_playlist_session(_load_config()) as session:
            return await session.resolver.resolve(title, artist)

    try:
        url = asyncio.run(_resolve_async())
    except InstrumentifyError as e:
        _fail(e)

    if url:
        console.print(f"[green]✓[/green] {escape(url)}")
    else:
        console.print("[red]❌ No legal source found[/red]")
        raise typer.Exit(code=1)


@app.command()
def playlist(
    url: str = typer.Argument(..., help="Spotify playlist URL."),
):
    """List a playlist's tracks and where each one can be downloaded."""

    async def _playlist_async():
        config = _load_config()
        tracks = await fetch_playlist(config, url)
        async with open_playlist_session(config) as session:
            with console.status("Searching legal sources..."):
                return await session.process_playlist(tracks)

    try:
        sources = asyncio.run(_playlist_async())
    except InstrumentifyError as e:
        _fail(e)
    print_resolution_table(sources)


@app.command(name="process")
def process_command(
    url: str = typer.Argument(..., help="Spotify playlist URL."),
    quality: Optional[str] = typer.Option(
        None,
        "-q",
        "--quality",
        help=f"Separation model: {', '.join(QUALITY_CHOICES)} (default from config).",
    ),
    tracks: Optional[List[int]] = typer.Option(  # noqa: B008
        None,
        "-t",
        "--track",
        help="Playlist number of a track to process (repeatable). Default: all.",
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Archive path (default: ./<archive_name>)."
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "-d",
        "--output-dir",
        help="Also save each instrumental here as soon as it is ready.",
        file_okay=False,
    ),
    workers: Optional[int] = typer.Option(
        None, "-w", "--workers", help="Simultaneous downloads per host."
    ),
):
    """Make instrumentals for a playlist and download them as one ZIP."""

    async def _process_async():
        config = _load_config(quality=quality, max_workers=workers)
        playlist_tracks = await fetch_playlist(config, url)
        async with open_playlist_session(config) as session:
            if output_dir is not None:
                session.writer = ResultWriter(output_dir)
            with console.status("Searching legal sources..."):
                await session.process_playlist(playlist_tracks)
            print_resolution_table(session.sources)

            positions = None
            if tracks:
                positions = []
                for number in tracks:
                    if number - 1 in session.tasks:
                        positions.append(number - 1)
                    else:
                        log.warning(
                            f"[yellow]Track #{number} has no legal source; skipping.[/yellow]"
                        )

            if (positions is None and not session.tasks) or positions == []:
                log.warning("[yellow]No tracks to process.[/yellow]")
            else:
                log.info(f"Separating with quality '[bold]{config.quality}[/bold]'...")
                await session.process_all(config.quality, positions)

            destination = output or Path.cwd() / config.archive_name
            archive_path = await session.archive_all(destination)
            return session, archive_path

    try:
        session, archive_path = asyncio.run(_process_async())
    except InstrumentifyError as e:
        _fail(e)

    print_summary_panel(session.stats, session.collector, archive_path)
    if archive_path is None:
        console.print("[yellow]No instrumentals were produced, so no archive was written.[/yellow]")
        raise typer.Exit(code=1)


@app.command()
def hardware():
    """Show the hardware signals used by the 'auto' quality setting."""
    try:
        config = _load_config()
    except InstrumentifyError as e:
        _fail(e)
    selector = ModelSelector(
        config.model_url_tiny, config.model_url_medium, gpu_override=config.gpu_descriptor
    )
    signals = selector.signals
    print_hardware_table(
        signals,
        choose_tier(signals.gpu_descriptor, signals.cpu_cores),
        get_onnx_providers(),
    )
