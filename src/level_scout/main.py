# ABOUTME: Main CLI application entry point using asyncclick for native async support
# ABOUTME: Provides commands for video lookups, message scans, offline pattern checks and diagnostics

import json as jsonlib

import asyncclick as click
from rich.console import Console
from rich.panel import Panel

from level_scout.config import get_config
from level_scout.core.dispatcher import MessageDispatcher
from level_scout.core.models import ExtractionSuccess
from level_scout.core.pipeline import LevelExtractionPipeline
from level_scout.extraction.names import generate_name_variations
from level_scout.extraction.patterns import extract_potential_level_ids
from level_scout.extraction.video.parser import parse_video_reference
from level_scout.utils.logging import (
    LoggingMode,
    configure_logging,
    get_logging_status,
    with_pipeline_context,
    with_video_context,
)
from level_scout.utils.rate_limit import RateLimiterRegistry
from level_scout.utils.rich_tables import (
    create_candidates_table,
    create_logging_status_table,
    create_rate_limits_table,
    print_rich_table,
    render_result,
)

console = Console()


@click.command()
@click.argument("video")
@click.pass_context
async def lookup(ctx, video: str):
    """
    🔍 Find the Geometry Dash level shown in a YouTube video.

    VIDEO may be a video ID or any YouTube URL. Runs pattern matching,
    AI analysis and level name search until a level validates.
    """
    await _lookup_async(video, ctx.obj["json_output"])


async def _lookup_async(video: str, json_output: bool):
    video_id = parse_video_reference(video)
    if video_id is None:
        raise click.BadParameter(f"Not a YouTube video ID or URL: {video}", param_hint="VIDEO")

    with with_video_context(video_id) as logger:
        logger.info("Starting lookup")
        pipeline = LevelExtractionPipeline.from_config()

        try:
            if json_output:
                result = await pipeline.extract_level(video_id)
                click.echo(result.model_dump_json())
                return

            with console.status(f"🎮 Looking up level for video {video_id}"):
                result = await pipeline.extract_level(video_id)
            render_result(console, result)
        finally:
            await pipeline.close()


@click.command()
@click.argument("text")
@click.option("--author", help="Message author, recorded in logs")
@click.pass_context
async def scan(ctx, text: str, author: str | None):
    """
    💬 Handle a chat message: look up every YouTube video it links.

    At most LEVEL_SCOUT_MAX_VIDEOS_PER_MESSAGE videos are processed,
    concurrently, and reported in the order they appear.
    """
    await _scan_async(text, author, ctx.obj["json_output"])


async def _scan_async(text: str, author: str | None, json_output: bool):
    config = get_config()
    with with_pipeline_context("message_scan", author=author) as logger:
        pipeline = LevelExtractionPipeline.from_config(config)
        dispatcher = MessageDispatcher(pipeline, max_videos_per_message=config.max_videos_per_message)

        try:
            outcomes = await dispatcher.handle_message(text, author=author)
        finally:
            await pipeline.close()

        found = sum(1 for outcome in outcomes if isinstance(outcome.result, ExtractionSuccess))
        logger.info("Message scan complete", videos=len(outcomes), found=found)

        if json_output:
            payload = [
                {"video_id": outcome.video_id, "result": outcome.result.model_dump(mode="json")}
                for outcome in outcomes
            ]
            click.echo(jsonlib.dumps(payload))
            return

        if not outcomes:
            console.print("[yellow]No YouTube links found in message.[/yellow]")
            return

        console.print(
            Panel.fit(
                f"💬 [bold cyan]Message Scan[/bold cyan]\nVideos: {len(outcomes)} | Levels found: {found}",
                border_style="magenta",
            )
        )
        for outcome in outcomes:
            console.print(f"\n🎬 [bold cyan]{outcome.video_id}[/bold cyan]")
            render_result(console, outcome.result)


@click.command()
@click.argument("text")
@click.option("--name", "names", multiple=True, help="Level name to expand into search variations")
@click.pass_context
def patterns(ctx, text: str, names: tuple[str, ...]):
    """
    🧪 Show level ID candidates found in TEXT without calling any API.
    """
    candidates = extract_potential_level_ids(text, limit=get_config().max_pattern_candidates)
    variations = {name: generate_name_variations(name) for name in names}

    if ctx.obj["json_output"]:
        click.echo(jsonlib.dumps({"candidates": candidates, "variations": variations}))
        return

    print_rich_table(console, create_candidates_table(candidates, variations))


@click.command()
@click.pass_context
def limits(ctx):
    """
    🚦 Show the configured rate limits for each external service.
    """
    statuses = RateLimiterRegistry.from_config(get_config()).status()

    if ctx.obj["json_output"]:
        click.echo(jsonlib.dumps(statuses))
        return

    print_rich_table(console, create_rate_limits_table(statuses))


def _initialize_logging(json_output: bool, log_level: str | None = None, log_file: str | None = None) -> None:
    """Initialize logging configuration."""
    try:
        config = get_config()
        mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE

        # Use config defaults when CLI parameters are not provided
        final_log_level = log_level or config.log_level
        final_log_file = log_file or (str(config.log_file) if config.log_file else None)

        configure_logging(mode=mode, log_level=final_log_level, log_file=final_log_file)
    except (FileNotFoundError, PermissionError, OSError):
        # Log directory unavailable, fall back to the requested file or console only
        mode = LoggingMode.PRODUCTION if json_output else LoggingMode.INTERACTIVE
        configure_logging(mode=mode, log_level=log_level or "INFO", log_file=log_file)


@click.command(name="logging-status")
def logging_status():
    """
    📊 Show current logging configuration and status.
    """
    status = get_logging_status()
    logging_table = create_logging_status_table(status)
    print_rich_table(console, logging_table)


@click.group(invoke_without_command=True)
@click.option("--json", is_flag=True, help="Output JSON results and structured JSON logs instead of rich interface")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--log-file", help="Custom log file path")
@click.pass_context
def app(ctx, json: bool, log_level: str | None, log_file: str | None):
    """
    🎮 Level Scout - Geometry Dash level finder for YouTube videos

    Identify the level played in a YouTube video from its metadata using
    pattern matching, AI analysis and GDBrowser name search.
    """
    # Store global options in context for commands to access
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json

    # Initialize logging once here instead of in each command
    _initialize_logging(json, log_level, log_file)

    # Show help if no command provided
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Add commands to the main group
app.add_command(lookup)
app.add_command(scan)
app.add_command(patterns)
app.add_command(limits)
app.add_command(logging_status)


if __name__ == "__main__":
    app()
