"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from instrumentify.inference.selector import HardwareSignals
from instrumentify.models.stats import SessionStats
from instrumentify.models.track import ResolvedSource
from instrumentify.storage.collector import ResultCollector
from instrumentify.utils.formatting import (
    format_duration,
    format_size,
    format_track_length,
    shorten_url,
)

_SECRET_KEYS = ("token", "soundcloud_client_id", "jamendo_client_id")


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "AuthenticationError": [
            "• Run `instrumentify login` to get a fresh Spotify token.",
            "• Check the client ID and redirect URI with `instrumentify --show-config`.",
        ],
        "ConfigurationError": [
            "• Run `instrumentify init --force` to rewrite the configuration.",
        ],
        "PlaylistError": [
            "• Use a playlist share link like https://open.spotify.com/playlist/<id>.",
            "• Private playlists need the account that owns them.",
        ],
        "InvalidQualityError": [
            "• Choose one of: auto, tiny, medium.",
        ],
        "InferenceError": [
            "• Check that the model URLs in the configuration point to ONNX files.",
            "• Try `--quality tiny` on machines with little memory.",
        ],
        "CircuitBreakerError": [
            "• Spotify failed repeatedly and calls are paused.",
            "• Check your internet connection and try again in a minute.",
        ],
        "ClientResponseError": [
            "• A network connection issue occurred.",
            "• Please try again in a few minutes.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    lines = []
    for key, value in sorted(config_data.items()):
        if key in _SECRET_KEYS and value:
            value = "[hidden]"
        lines.append(f"{key} = {escape(str(value))}")

    console.print(
        Panel(
            "\n".join(lines),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_resolution_table(sources: Sequence[ResolvedSource]):
    """Lists every playlist track with its resolved source, or why it has none."""
    console = Console()
    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Track", style="cyan")
    table.add_column("Length", justify="right", style="dim")
    table.add_column("Source")

    for source in sources:
        track = source.track
        if source.resolved:
            status = (
                f"[green]{escape(source.provider or '')}[/green] "
                f"[dim]{escape(shorten_url(source.source_url))}[/dim]"
            )
        else:
            status = "[red]❌ No legal source found[/red]"
        table.add_row(
            str(track.position + 1),
            escape(track.label),
            format_track_length(track.duration_ms),
            status,
        )

    console.print(table)


def print_hardware_table(signals: HardwareSignals, tier: str, providers: list[str]):
    """Shows what the auto quality setting sees and what it would pick."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_row("GPU:", escape(signals.gpu_descriptor))
    table.add_row("CPU Cores:", str(signals.cpu_cores))
    table.add_row("ONNX Providers:", ", ".join(providers))
    table.add_row("Auto Quality:", f"[bold]{tier}[/bold]")
    console.print(Panel(table, title="Hardware", border_style="cyan", expand=False))


def print_summary_panel(
    stats: SessionStats,
    collector: ResultCollector,
    archive_path: Optional[Path],
):
    """Displays the final summary of a processing session."""
    console = Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "🔎 Resolved:",
        f"[green]{stats.tracks_resolved}[/green] / {stats.tracks_total}",
    )
    if stats.providers_used:
        stats_table.add_row(
            "Providers:",
            ", ".join(
                f"{escape(name)} ({count})"
                for name, count in sorted(stats.providers_used.items())
            ),
        )
    stats_table.add_row(
        "✓ Processed:", f"[bold green]{stats.tracks_processed}[/bold green]"
    )
    if stats.tracks_failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.tracks_failed}[/bold red]")

    stats_table.add_row("", "")
    stats_table.add_row("Collected:", f"[cyan]{len(collector)} files[/cyan]")
    stats_table.add_row(
        "Total Size:", f"[cyan]{format_size(stats.total_size_processed)}[/cyan]"
    )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(stats.elapsed)}[/blue]")
    if archive_path:
        stats_table.add_row("Archive:", f"[dim]{escape(str(archive_path))}[/dim]")

    console.print()
    console.print(
        Panel(
            stats_table,
            title="🎵 [bold]Session Complete[/bold]",
            border_style="green" if archive_path else "yellow",
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
