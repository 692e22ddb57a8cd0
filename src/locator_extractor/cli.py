"""Typer CLI interface for Locator Extractor."""

import asyncio
import os
import signal
import sys
from typing import List, Optional

import httpx
import typer
import uvicorn
from rich.console import Console
from rich.panel import Panel

from .exceptions import LocatorExtractorError

app = typer.Typer(
    name="locator-extractor",
    help="Locator Extractor - capture page elements and synthesize stable locators",
    add_completion=False,
)
console = Console()

LEVEL_STYLES = {
    "DEBUG": "dim",
    "INFO": "cyan",
    "WARN": "yellow",
    "ERROR": "red",
    "SUCCESS": "green",
}


async def check_service_running(port: int) -> bool:
    """Check if service is already running on port."""
    try:
        async with httpx.AsyncClient() as client:
            resp = await client.get(f"http://localhost:{port}/health", timeout=2.0)
            return resp.status_code == 200
    except httpx.HTTPError:
        return False


def print_event(event) -> None:
    """Log sink that renders session events on the console."""
    style = LEVEL_STYLES.get(event["level"], "white")
    console.print(f"[{style}]{event['level']:<7}[/{style}] {event['message']}")


async def run_extraction(options, wait_for_user: bool) -> None:
    from .session_controller import SessionController

    controller = SessionController(log_sink=print_event)
    await controller.launch(options)
    try:
        if wait_for_user:
            await asyncio.to_thread(
                input, "Press Enter to stop and save the captured elements...\n"
            )
    finally:
        result = await controller.stop()

    if result is None:
        console.print("[yellow]Nothing was saved.[/yellow]")
        return
    prompt_line = f"\n📝 Prompts: {result.prompt_path}" if result.prompt_path else ""
    console.print(
        Panel.fit(
            f"[bold]Extraction complete[/bold]\n\n"
            f"🔢 Unique locators: {result.total}\n"
            f"👁  Visible / hidden: {result.visible} / {result.hidden}\n"
            f"💾 JSON: {result.json_path}{prompt_line}",
            border_style="green",
        )
    )


@app.command()
def extract(
    url: str = typer.Argument(..., help="Page to open"),
    filter: Optional[List[str]] = typer.Option(
        None, "--filter", "-f", help="Filter fragment (tag, .class, #id, [attr=value]); repeatable"
    ),
    headless: bool = typer.Option(False, "--headless", help="Run Chromium headless"),
    auto_scan: bool = typer.Option(
        False, "--auto-scan", help="Scan the page right after it loads"
    ),
    include_hidden: bool = typer.Option(
        False, "--include-hidden", help="Also capture non-visible elements"
    ),
    use_cdp: bool = typer.Option(
        False, "--cdp", help="Enrich records through a DevTools session"
    ),
    prompts: bool = typer.Option(False, "--prompts", help="Write a prompt file"),
    framework: Optional[str] = typer.Option(
        None, "--framework", help="Prompt framework (playwright, selenium, cypress, robot, bdd, custom)"
    ),
    prompt_kind: Optional[str] = typer.Option(
        None, "--prompt-kind", help="locator, action or assertion"
    ),
    output_dir: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory"),
    no_wait: bool = typer.Option(
        False, "--no-wait", help="Stop right after launch (use with --auto-scan)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Open a page, capture elements and save the locator inventory."""
    from pydantic import ValidationError

    from .config import settings
    from .logging_config import setup_logging
    from .models.session import LaunchOptions

    setup_logging(level="WARNING", debug=debug)

    overrides = {
        "automation_framework": framework,
        "prompt_kind": prompt_kind,
        "output_dir": output_dir,
    }
    try:
        options = LaunchOptions(
            url=url,
            filter=filter or None,
            headless=headless or settings.HEADLESS,
            auto_scan=auto_scan,
            include_hidden=include_hidden,
            use_cdp=use_cdp or settings.USE_CDP,
            generate_prompts=prompts,
            **{k: v for k, v in overrides.items() if v is not None},
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] {e.errors()[0]['msg']}")
        raise typer.Exit(1)

    console.print(
        Panel.fit(
            f"[bold]Locator Extractor[/bold]\n\n"
            f"🌐 URL: {options.url}\n"
            f"🔍 Filter: {', '.join(filter) if filter else 'none'}\n"
            f"📁 Output: {options.output_dir}\n"
            f"🖱  Capture: Ctrl/Cmd + Click",
            border_style="blue",
        )
    )

    try:
        asyncio.run(run_extraction(options, wait_for_user=not no_wait))
    except LocatorExtractorError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        if e.detail:
            console.print(f"[dim]{e.detail}[/dim]")
        raise typer.Exit(1)


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, "--port", help="HTTP/WebSocket port"),
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    reload: bool = typer.Option(
        False, "--reload", help="Enable auto-reload (dev mode)"
    ),
):
    """Start the Locator Extractor service."""
    from .config import settings

    port = port or settings.PORT
    host = host or settings.HOST

    # Set before the app module imports settings
    os.environ["DEBUG"] = "true" if debug else "false"

    # Check if already running
    if asyncio.run(check_service_running(port)):
        console.print(f"[red]Error:[/red] Service already running on port {port}")
        raise typer.Exit(1)

    # Setup signal handlers for graceful shutdown
    def signal_handler(sig, frame):
        console.print("\n[yellow]Shutting down gracefully...[/yellow]")
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    console.print(
        Panel.fit(
            f"[bold]Locator Extractor Service[/bold]\n\n"
            f"🌐 HTTP: http://{host}:{port}\n"
            f"📡 WebSocket: ws://{host}:{port}/ws\n"
            f"📁 Output: {settings.OUTPUT_DIR}\n"
            f"🔍 Debug: {'enabled' if debug else 'disabled'}",
            border_style="green",
        )
    )

    uvicorn.run(
        "locator_extractor.main:app",
        host=host,
        port=port,
        log_level="debug" if debug else "info",
        reload=reload,
        access_log=debug,
    )


if __name__ == "__main__":
    app()
