"""Main entry point for the novelpilot command line."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import typer
from rich.table import Table

from novelpilot import __version__
from novelpilot.config.settings import ConfigurationError, Settings
from novelpilot.core.errors import NovelPilotError
from novelpilot.core.logging import get_logger, resolve_json_logs, setup_logging
from novelpilot.extraction import envelope_source, extract_content, parse_envelope
from novelpilot.hooks import HookManager
from novelpilot.hooks.implementations import ExtractionStatsHook, LoggingHook
from novelpilot.http import HTTPClientFactory, install_interceptor
from novelpilot.services import (
    AutopilotProgress,
    AutopilotResult,
    AutopilotWriter,
    OpenRouterClient,
)

from .helpers import bold, error, get_console, warning


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        get_console().print(f"novelpilot {__version__}", style="version")
        raise typer.Exit()


app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

logger = get_logger(__name__)


@app.callback()
def app_main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Override the configured log level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """novelpilot - auto-pilot novel writing over OpenRouter chat completions."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["log_level"] = log_level


def _load_settings(ctx: typer.Context) -> Settings:
    """Load settings for a command and configure logging from them."""
    obj: dict[str, Any] = ctx.obj or {}
    overrides: dict[str, Any] = {}
    if obj.get("log_level"):
        overrides["logging"] = {"level": obj["log_level"]}

    try:
        settings = Settings.from_config(config_path=obj.get("config_path"), **overrides)
    except ConfigurationError as e:
        get_console(stderr=True).print(error(str(e)))
        raise typer.Exit(1) from e

    setup_logging(
        json_logs=resolve_json_logs(settings.logging.format),
        log_level_name=settings.logging.level,
        log_file=settings.logging.file,
    )
    return settings


def _read_payload(path: Path | None) -> Any:
    """Read a payload from a file or stdin, decoding JSON when possible."""
    raw = path.read_text(encoding="utf-8") if path else sys.stdin.read()
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@app.command()
def extract(
    ctx: typer.Context,
    path: Path | None = typer.Argument(
        None,
        help="File holding an upstream response; stdin when omitted",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
    show_source: bool = typer.Option(
        False, "--show-source", help="Print where the content was found"
    ),
) -> None:
    """Extract the generated text from a chat-completion response."""
    _load_settings(ctx)
    try:
        payload = _read_payload(path)
    except UnicodeDecodeError as e:
        origin = path or "stdin"
        get_console(stderr=True).print(error(f"Cannot read {origin}: not UTF-8 text"))
        raise typer.Exit(1) from e

    content = extract_content(payload)
    if not content:
        get_console(stderr=True).print(
            warning("No content could be extracted: unrecognized response format")
        )
        raise typer.Exit(1)

    if show_source:
        source = envelope_source(parse_envelope(payload))
        get_console(stderr=True).print(f"source: {bold(source)}")
    typer.echo(content)


def _print_progress(progress: AutopilotProgress) -> None:
    get_console(stderr=True).print(
        f"[{progress.status}] {progress.message}", style="progress", markup=False
    )


async def _run_autopilot(
    settings: Settings,
    prompt: str,
    model: str,
    target_words: int | None,
    max_iterations: int | None,
) -> tuple[AutopilotResult, ExtractionStatsHook]:
    stats = ExtractionStatsHook()
    hook_manager = HookManager()
    hook_manager.register(stats)
    if settings.logging.level == "DEBUG":
        hook_manager.register(LoggingHook())

    async with HTTPClientFactory.managed_client(settings=settings) as client:
        interceptor = await install_interceptor(
            client, settings=settings, hook_manager=hook_manager
        )
        writer = AutopilotWriter(
            OpenRouterClient(interceptor, settings.openrouter), settings.autopilot
        )
        result = await writer.run(
            model,
            prompt,
            target_word_count=target_words,
            max_iterations=max_iterations,
            on_progress=_print_progress,
        )
    return result, stats


@app.command()
def autopilot(
    ctx: typer.Context,
    prompt: str = typer.Argument(..., help="Opening prompt for the story"),
    model: str | None = typer.Option(
        None, "--model", "-m", help="OpenRouter model (settings default when omitted)"
    ),
    target_words: int | None = typer.Option(
        None, "--target-words", "-w", min=1, help="Stop once the story has this many words"
    ),
    max_iterations: int | None = typer.Option(
        None, "--max-iterations", "-n", min=1, help="Maximum number of completions"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the story to this file instead of stdout"
    ),
) -> None:
    """Write a story in rounds until it reaches the target word count."""
    settings = _load_settings(ctx)
    model = model or settings.openrouter.default_model

    try:
        result, stats = asyncio.run(
            _run_autopilot(settings, prompt, model, target_words, max_iterations)
        )
    except (NovelPilotError, ConfigurationError) as e:
        logger.error("autopilot_failed", error=str(e), error_type=type(e).__name__)
        get_console(stderr=True).print(error(str(e)))
        raise typer.Exit(1) from e

    if output:
        output.write_text(result.content, encoding="utf-8")
    else:
        typer.echo(result.content)

    table = Table(title="Auto-pilot summary")
    table.add_column("Iteration", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Tokens", justify="right")
    for item in result.results:
        table.add_row(str(item.iteration), str(item.word_count), str(item.tokens.total))

    console = get_console(stderr=True)
    console.print(table)
    console.print(
        f"{bold(str(result.total_word_count))} words in {result.iterations} iterations"
        f" - target {'reached' if result.target_reached else 'not reached'}"
    )
    snapshot = stats.snapshot()
    if snapshot["extraction_failed"] or snapshot["decode_failed"]:
        console.print(
            warning(
                f"{snapshot['extraction_failed'] + snapshot['decode_failed']} responses "
                "could not be read"
            )
        )


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Print the effective configuration as JSON (secrets masked)."""
    settings = _load_settings(ctx)
    typer.echo(json.dumps(settings.model_dump_safe(), indent=2))


def main() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    sys.exit(app())
