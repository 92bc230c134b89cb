"""CLI interface for gh-snake-overlay."""

import json
import logging
import os
import random
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .assets.resolver import is_external_url
from .compile_pipeline import (
    compile_overlay,
    compile_overlay_with_assets,
    derive_asset_seed,
    encode_overlay,
    load_overlay_input,
)
from .config import ConfigError
from .constants import DEFAULT_ASSET_TIMEOUT
from .output import resolve_output_provider, supported_output_formats
from .output.base import CompiledOverlay

# Load environment variables from .env file
load_dotenv()

console = Console()
err_console = Console(stderr=True)
SUPPORTED_OUTPUT_FORMATS_TEXT = ", ".join(supported_output_formats()).upper()

ASSET_TIMEOUT_ENV = "SNAKE_OVERLAY_ASSET_TIMEOUT"
FRAME_DURATION_ENV = "SNAKE_OVERLAY_FRAME_DURATION"


class CLIError(Exception):
    """Base exception for CLI errors with user-friendly messages."""
    pass


def main(
    input_file: str = typer.Argument(None, help="JSON file with contributions, path and config"),
    config_file: str = typer.Option(
        None,
        "--config",
        "-c",
        help="JSON file whose options override the input's config",
    ),
    out: str = typer.Option(
        "overlay.txt",
        "--output",
        "-out",
        "-o",
        help=f"Write the compiled overlay ({SUPPORTED_OUTPUT_FORMATS_TEXT})",
    ),
    frame_duration: int | None = typer.Option(
        None,
        "--frame-duration",
        help=f"Milliseconds per path step (default from {FRAME_DURATION_ENV} or the config)",
    ),
    seed: int | None = typer.Option(
        None,
        "--seed",
        help="Seed for wildcard frame selection (derived from the input by default)",
    ),
    embed_assets: bool = typer.Option(
        True,
        "--embed-assets/--no-embed-assets",
        help="Fetch images and embed them as data URIs",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """
    Compile a snake path over a contribution grid into keyframe styles and markup.

    Examples:
      # Compile to a paste-ready style block and fragments
      gh-snake-overlay input.json -o overlay.txt

      # Machine-readable output without fetching images
      gh-snake-overlay input.json -o overlay.json --no-embed-assets
    """
    _configure_logging(verbose)
    try:
        if not input_file:
            raise CLIError("Input file is required")

        payload = _load_json_file(input_file)
        override: dict[str, Any] = {}
        if config_file:
            override.update(_load_json_file(config_file))
        configured = "animationFrameDurationMs" in {**(payload.get("config") or {}), **override}
        frame_override = _frame_duration_override(frame_duration, configured)
        if frame_override is not None:
            override["animationFrameDurationMs"] = frame_override

        try:
            grid, steps, config = load_overlay_input(payload, override)
        except ConfigError as e:
            raise CLIError(f"Invalid config: {e}")
        except (ValueError, KeyError, TypeError) as e:
            raise CLIError(f"Invalid input in '{input_file}': {e}")

        console.print(
            f"[bold blue]Compiling {len(steps)} steps over a "
            f"{grid.width}x{grid.height} grid...[/bold blue]"
        )

        base_dir = Path(input_file).resolve().parent
        if embed_assets:
            rng = random.Random(seed if seed is not None else derive_asset_seed(payload))
            overlay = compile_overlay_with_assets(
                grid,
                steps,
                config,
                list_folder=_folder_lister(base_dir),
                rng=rng,
                timeout=_asset_timeout(),
                base_dir=base_dir,
            )
        else:
            overlay = compile_overlay(grid, steps, config)

        _report_display_errors(overlay)
        _write_output(overlay, out)

    except CLIError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_json_file(file_path: str) -> dict[str, Any]:
    """Load a JSON object from a file."""
    console.print(f"[bold blue]Loading {file_path}...[/bold blue]")
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise CLIError(f"File '{file_path}' not found")
    except json.JSONDecodeError as e:
        raise CLIError(f"Invalid JSON in '{file_path}': {e}")
    if not isinstance(data, dict):
        raise CLIError(f"'{file_path}' must contain a JSON object")
    return data


def _frame_duration_override(frame_duration: int | None, configured: bool) -> float | None:
    if frame_duration is not None:
        if frame_duration <= 0:
            raise CLIError("--frame-duration must be a positive number of milliseconds")
        return float(frame_duration)
    if configured:
        return None
    raw = os.getenv(FRAME_DURATION_ENV)
    if not raw:
        return None
    return _positive_env_number(FRAME_DURATION_ENV, raw)


def _asset_timeout() -> float:
    raw = os.getenv(ASSET_TIMEOUT_ENV)
    if not raw:
        return DEFAULT_ASSET_TIMEOUT
    return _positive_env_number(ASSET_TIMEOUT_ENV, raw)


def _positive_env_number(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise CLIError(f"{name} must be a number (got '{raw}')")
    if value <= 0:
        raise CLIError(f"{name} must be positive (got '{raw}')")
    return value


def _folder_lister(base_dir: Path) -> Callable[[str], Sequence[str]]:
    """List file names of local image folders; remote folders cannot be listed."""

    def list_folder(folder: str) -> Sequence[str]:
        if is_external_url(folder):
            return []
        path = Path(folder)
        if not path.is_absolute():
            path = base_dir / path
        if not path.is_dir():
            return []
        return sorted(entry.name for entry in path.iterdir() if entry.is_file())

    return list_folder


def _report_display_errors(overlay: CompiledOverlay) -> None:
    for error in overlay.display_errors:
        console.print(f"[yellow]Warning:[/yellow] {error}")


def _write_output(overlay: CompiledOverlay, output_path: str) -> None:
    try:
        provider = resolve_output_provider(output_path)
    except ValueError as e:
        raise CLIError(str(e))

    encoded = encode_overlay(overlay, output_path, provider=provider)
    console.print(f"[bold blue]Saving to {output_path}...[/bold blue]")
    try:
        provider.write(encoded)
    except OSError as e:
        raise CLIError(f"Failed to save file '{output_path}': {e}")
    console.print(
        f"[green]✓[/green] {len(overlay.fragments)} fragments, "
        f"{overlay.duration_ms}ms loop saved to {output_path}"
    )


app = typer.Typer()
app.command()(main)

if __name__ == "__main__":
    app()
