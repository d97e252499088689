# ABOUTME: Rich table and panel builders for extraction results and diagnostics
# ABOUTME: Level cards coloured by difficulty, failure panels, rate limiter and logging status tables

from typing import Any

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from level_scout.core.models import (
    ExtractionFailure,
    ExtractionResult,
    ExtractionStage,
    ExtractionSuccess,
    FailureKind,
    LevelRecord,
)

DIFFICULTY_STYLES = {
    "NA": "grey50",
    "Auto": "yellow",
    "Easy": "green",
    "Normal": "cyan",
    "Hard": "dark_orange",
    "Harder": "red",
    "Insane": "magenta",
    "Easy Demon": "dark_red",
    "Medium Demon": "dark_red",
    "Hard Demon": "dark_red",
    "Insane Demon": "dark_red",
    "Extreme Demon": "dark_red",
}

STAGE_LABELS = {
    ExtractionStage.PATTERN: "pattern matching",
    ExtractionStage.SEMANTIC: "AI analysis",
    ExtractionStage.NAME_SEARCH: "level name search",
}

GDBROWSER_LEVEL_URL = "https://gdbrowser.com/{level_id}"


def format_number(value: int | None) -> str:
    """Abbreviate large counts with K/M suffixes."""
    if not value:
        return "0"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(value)


def _truncate(text: str, length: int) -> str:
    return text[:length] + "..." if len(text) > length else text


def create_key_value_table(
    title: str,
    data: dict[str, str],
    title_style: str = "bold cyan",
    key_style: str = "bold blue",
    value_style: str = "green",
    box_style=ROUNDED,
    caption: str | None = None,
) -> Table:
    """Create a key-value table.

    Args:
        title: Table title with emoji/styling
        data: Dictionary of key-value pairs to display
        title_style: Style for the table title
        key_style: Style for the key column
        value_style: Style for the value column
        box_style: Border style for the table
        caption: Optional footer line

    Returns:
        Formatted Rich table ready for printing
    """
    table = Table(
        title=f"[{title_style}]{title}[/{title_style}]",
        caption=caption,
        box=box_style,
        show_header=True,
        header_style="bold magenta",
        border_style="cyan",
        title_justify="left",
        caption_justify="left",
        expand=False,
    )

    table.add_column("Field", style=key_style, no_wrap=False)
    table.add_column("Value", style=value_style, no_wrap=False)

    for key, value in data.items():
        table.add_row(key, str(value))

    return table


def create_level_table(level: LevelRecord, stage: ExtractionStage, video_title: str | None = None) -> Table:
    """Create a level card for a validated extraction."""
    difficulty_style = DIFFICULTY_STYLES.get(level.difficulty, "blue")

    level_data = {
        "🎮 Level": f"[bold]{escape(level.name)}[/bold]",
        "🛠️ Creator": escape(level.author),
        "💀 Difficulty": f"[{difficulty_style}]{level.difficulty}[/{difficulty_style}]",
        "⭐ Stars": str(level.stars),
        "⬇️ Downloads": format_number(level.downloads),
        "👍 Likes": format_number(level.likes),
        "⏱️ Length": level.length,
        "🔗 Link": GDBROWSER_LEVEL_URL.format(level_id=level.id),
    }
    if level.song_name:
        song = f"{level.song_name} by {level.song_author}" if level.song_author else level.song_name
        level_data["🎵 Song"] = escape(song)
    if level.description:
        level_data["📝 Description"] = escape(_truncate(level.description, 200))

    title = escape(_truncate(video_title, 100) if video_title else level.name)
    return create_key_value_table(
        title=f"📺 {title}",
        data=level_data,
        title_style="bold yellow",
        key_style="bold blue",
        value_style="white",
        caption=f"ID: {level.id} | Found via {STAGE_LABELS[stage]}",
    )


def create_failure_panel(failure: ExtractionFailure) -> Panel:
    """Create a panel explaining why no level was found."""
    if failure.kind == FailureKind.VIDEO_NOT_FOUND:
        message = "Could not retrieve video information from YouTube. The video may be private or deleted."
    else:
        title = failure.metadata.title if failure.metadata else None
        where = f'in "{escape(title)}"' if title else "in this video"
        message = f"Could not find a valid Geometry Dash level ID {where}.\n\nTip: Try sharing the level ID directly!"

    return Panel(message, title="❌ Level Not Found", border_style="red")


def render_result(console: Console, result: ExtractionResult) -> None:
    """Print an extraction result as a level card or a failure panel."""
    if isinstance(result, ExtractionSuccess):
        print_rich_table(console, create_level_table(result.level, result.stage, result.metadata.title))
        if result.reasoning:
            confidence = result.confidence.value if result.confidence else "unknown"
            console.print(f"[dim]🤖 {confidence} confidence - {escape(result.reasoning)}[/dim]")
        if result.searched_names:
            console.print(f"[dim]🔎 Searched names: {escape(', '.join(result.searched_names))}[/dim]")
    else:
        console.print(create_failure_panel(result))


def create_candidates_table(candidates: list[str], variations: dict[str, list[str]]) -> Table:
    """Offline view of pattern candidates and name variations for a piece of text."""
    data = {"🔢 Candidates": ", ".join(candidates) or "[dim]none[/dim]"}
    for name, names in variations.items():
        data[f"🔤 {name}"] = ", ".join(names)

    return create_key_value_table(title="🧪 Pattern Analysis", data=data, key_style="cyan", value_style="white")


def create_rate_limits_table(statuses: list[dict[str, Any]]) -> Table:
    """Create a table of rate limiter configuration and live state."""
    table = Table(
        title="[bold cyan]🚦 Rate Limits[/bold cyan]",
        box=SIMPLE,
        header_style="bold magenta",
        title_justify="left",
    )
    for name, style in [
        ("Dependency", "cyan"),
        ("Tokens", "green"),
        ("In Flight", "yellow"),
        ("Max Concurrent", "white"),
        ("Min Interval (s)", "white"),
        ("Window (s)", "white"),
    ]:
        table.add_column(name, style=style)

    for status in statuses:
        table.add_row(
            status["name"],
            f"{status['tokens']}/{status['capacity']}",
            str(status["in_flight"]),
            str(status["max_concurrent"]),
            f"{status['min_interval']:g}",
            f"{status['window_seconds']:g}",
        )

    return table


def create_logging_status_table(status: dict[str, Any]) -> Table:
    """Create a logging configuration status table.

    Args:
        status: Logging status dictionary

    Returns:
        Styled logging configuration table
    """
    logging_data = {
        "🔧 Mode": status["mode"].title(),
        "📁 Log Directory": status["log_directory"] or "N/A (production mode)",
        "🔇 Suppressed Libraries": ", ".join(status["third_party_suppressed"]),
    }

    # Add log files if they exist
    if status["log_files"]["main"]:
        logging_data["📝 Main Log"] = status["log_files"]["main"]
    if status["log_files"]["json"]:
        logging_data["📊 JSON Log"] = status["log_files"]["json"]
    if status["log_files"]["errors"]:
        logging_data["🚨 Error Log"] = status["log_files"]["errors"]

    return create_key_value_table(
        title="🔍 Logging Configuration",
        data=logging_data,
        title_style="bold green",
        key_style="blue",
        value_style="white",
    )


def print_rich_table(console: Console, table: Table) -> None:
    """Print a rich table with consistent spacing and style.

    Args:
        console: Rich console instance
        table: Configured table to print
    """
    console.print()  # Add spacing before
    console.print(table)
    console.print()  # Add spacing after
