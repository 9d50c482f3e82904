"""
Main CLI application for PagePal.

Provides the command-line interface for:
- Extracting page text (structured or simple)
- Capturing page viewports to PNG files
- Managing configuration
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pagepal import __version__
from pagepal.browser import open_browser_page
from pagepal.capture import CaptureSurface, CompositeVisualPayload, ViewportCaptureController
from pagepal.config import Settings, get_default_config_path, load_config
from pagepal.core.exceptions import BrowserError, PagePalError
from pagepal.dom import PageDocument, parse_html
from pagepal.service import GET_PAGE_TEXT, TEXT_MODES, PageAcquisitionService
from pagepal.utils.logging import get_logger, setup_logging

# Initialize Typer app
app = typer.Typer(
    name="pagepal",
    help="PagePal - Extract machine-readable context from web pages",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)


class StaticPage:
    """Page source for a local HTML file; supports text extraction only."""

    def __init__(self, document: PageDocument) -> None:
        self.document = document

    async def snapshot(self) -> PageDocument:
        return self.document

    def capture_surface(self) -> CaptureSurface:
        raise BrowserError("Local documents cannot be captured")


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]PagePal[/bold blue] v{__version__}")
        raise typer.Exit()


def _settings(ctx: typer.Context) -> Settings:
    obj = ctx.ensure_object(dict)
    settings = obj.get("settings")
    if settings is None:
        settings = load_config(obj.get("config_file"))
        obj["settings"] = settings
    return settings


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
        exists=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """
    PagePal - Turn web pages into text and screenshots for question answering.

    Use 'pagepal --help' for command list.
    """
    obj = ctx.ensure_object(dict)
    config_file = config_file or get_default_config_path()
    obj["config_file"] = config_file

    try:
        settings = load_config(config_file)
    except PagePalError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)
    obj["settings"] = settings

    setup_logging(settings.logging, level="DEBUG" if verbose else None)


# =============================================================================
# text
# =============================================================================


@app.command()
def text(
    ctx: typer.Context,
    url: Optional[str] = typer.Argument(
        None,
        help="URL of the page to extract",
    ),
    mode: str = typer.Option(
        "structured",
        "--mode",
        "-m",
        help="Extraction mode: structured or simple",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the full response as JSON",
    ),
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        help="Read a local HTML file instead of loading the URL",
        exists=True,
        dir_okay=False,
    ),
) -> None:
    """
    Extract the text of a page.

    Examples:
        pagepal text https://example.com
        pagepal text --file page.html --mode simple --json
    """
    if mode not in TEXT_MODES:
        console.print(f"[red]Error:[/red] unknown mode '{mode}'")
        raise typer.Exit(2)
    if url is None and file is None:
        console.print("[red]Error:[/red] give a URL or --file")
        raise typer.Exit(2)

    settings = _settings(ctx)
    message = {"action": GET_PAGE_TEXT, "mode": mode}

    try:
        if file is not None:
            response = asyncio.run(_text_from_file(file, url, message, settings))
        else:
            response = asyncio.run(_text_from_url(url, message, settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        raise typer.Exit(1)
    except PagePalError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(response, indent=2, ensure_ascii=False))
    elif response.get("success"):
        typer.echo(response["text"])

    if not response.get("success"):
        if not as_json:
            console.print(f"[red]Error:[/red] {response.get('error')}")
        raise typer.Exit(1)


async def _text_from_file(
    path: Path,
    url: Optional[str],
    message: dict[str, Any],
    settings: Settings,
) -> dict[str, Any]:
    html = path.read_text(encoding="utf-8", errors="replace")
    document = parse_html(html, url or path.resolve().as_uri())
    service = PageAcquisitionService(StaticPage(document), settings)
    return await service.handle(message)


async def _text_from_url(
    url: str,
    message: dict[str, Any],
    settings: Settings,
) -> dict[str, Any]:
    async with open_browser_page(settings.browser, url) as page:
        service = PageAcquisitionService(page, settings)
        return await service.handle(message)


# =============================================================================
# visual
# =============================================================================


@app.command()
def visual(
    ctx: typer.Context,
    url: str = typer.Argument(
        ...,
        help="URL of the page to capture",
    ),
    mode: str = typer.Option(
        "auto_scroll",
        "--mode",
        "-m",
        help="Capture mode: auto_scroll or current_viewport",
    ),
    output: Path = typer.Option(
        ...,
        "--output",
        "-o",
        help="Directory for viewport PNGs and composite.json",
        file_okay=False,
    ),
) -> None:
    """
    Capture a page as a sequence of viewport screenshots.

    Example:
        pagepal visual https://example.com --output ./shots
    """
    if mode not in ("auto_scroll", "current_viewport"):
        console.print(f"[red]Error:[/red] unknown mode '{mode}'")
        raise typer.Exit(2)

    settings = _settings(ctx)

    try:
        with console.status(f"[bold green]Capturing {url}..."):
            payload = asyncio.run(_capture(url, mode, settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user[/yellow]")
        raise typer.Exit(1)
    except PagePalError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    written = write_payload(payload, output)
    _show_capture_summary(payload, written)


async def _capture(url: str, mode: str, settings: Settings) -> CompositeVisualPayload:
    async with open_browser_page(settings.browser, url) as page:
        controller = ViewportCaptureController(page.capture_surface(), settings.capture)
        try:
            if mode == "auto_scroll":
                return await controller.auto_scroll_and_capture()
            await controller.capture_current_viewport()
            return await controller.generate_composite_image()
        finally:
            await controller.close()


def write_payload(payload: CompositeVisualPayload, output: Path) -> list[Path]:
    """
    Write each viewport as a PNG plus a composite.json index.

    Returns:
        Paths of the PNG files, in scroll order
    """
    output.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    index: list[dict[str, Any]] = []
    for position, viewport in enumerate(payload.viewports):
        path = output / f"viewport_{position:03d}_{viewport.scroll_offset}.png"
        path.write_bytes(viewport.image)
        written.append(path)
        index.append({
            "scrollY": viewport.scroll_offset,
            "screenshot": path.name,
            "viewportHeight": viewport.viewport_height,
        })

    composite = {"viewports": index, "pageInfo": payload.page_info.to_dict()}
    (output / "composite.json").write_text(
        json.dumps(composite, indent=2, ensure_ascii=False), encoding="utf-8")

    return written


def _show_capture_summary(payload: CompositeVisualPayload, written: list[Path]) -> None:
    info = payload.page_info

    table = Table(title=info.title or info.url, show_header=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Offset", justify="right")
    table.add_column("File", style="cyan")

    for i, (viewport, path) in enumerate(zip(payload.viewports, written), 1):
        table.add_row(str(i), str(viewport.scroll_offset), str(path))

    console.print(table)
    console.print(
        f"[green]✓[/green] {len(written)} viewports, page height {info.total_height}px")


# =============================================================================
# config
# =============================================================================


@app.command()
def config(
    ctx: typer.Context,
    show: bool = typer.Option(
        False,
        "--show",
        "-s",
        help="Show current configuration",
    ),
    init: bool = typer.Option(
        False,
        "--init",
        help="Create default configuration file",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path for config file",
    ),
) -> None:
    """
    Configuration management.

    View or initialize configuration files.

    Examples:
        pagepal config --show
        pagepal config --init --output ./pagepal.yaml
    """
    if init:
        _init_config(output)
    elif show:
        _show_config(_settings(ctx))
    else:
        console.print(
            "Use --show to view config or --init to create default config")


def _show_config(settings: Settings) -> None:
    """Show current configuration."""
    config_dict = settings.model_dump(mode="json")

    console.print(Panel(
        "[bold]Current Configuration[/bold]",
        border_style="blue",
    ))

    for section, values in config_dict.items():
        console.print(f"\n[bold cyan]{section}:[/bold cyan]")
        if isinstance(values, dict):
            for key, value in values.items():
                console.print(f"  {key}: [dim]{escape(str(value))}[/dim]")
        else:
            console.print(f"  {values}")


def _init_config(output: Optional[Path]) -> None:
    """Create default configuration file."""
    config_dict = Settings().model_dump(mode="json")

    output_path = output or Path("pagepal.yaml")

    if output_path.exists():
        if not typer.confirm(f"File {output_path} exists. Overwrite?"):
            raise typer.Exit(0)

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

    console.print(f"[green]✓[/green] Configuration saved to: {output_path}")


if __name__ == "__main__":
    app()
