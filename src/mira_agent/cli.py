"""CLI entry point for mira-agent."""

import argparse

import uvicorn
from rich.console import Console

from mira_agent.config import Settings
from mira_agent.core.logging import enable_file_logging, set_log_level
from mira_agent.server import build_components, create_app

console = Console()


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="MIRA agent backend - chat agent with remote browser control"
    )
    parser.add_argument("--host", type=str, default=None, help="Listen address (default: $HOST or 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Listen port (default: $PORT or 3000)")
    parser.add_argument(
        "--log-level",
        type=str,
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    parser.add_argument("--log-file", type=str, default=None, help="Also write logs to this file")
    parser.add_argument(
        "--disable-browser",
        action="store_true",
        help="Turn off remote browser control (same as DISABLE_BROWSER=1)",
    )

    args = parser.parse_args()

    settings = Settings.from_env()
    overrides: dict[str, object] = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.disable_browser:
        overrides["browser_disabled"] = True
    if overrides:
        settings = settings.model_copy(update=overrides)

    set_log_level(args.log_level)
    if args.log_file:
        enable_file_logging(args.log_file)

    try:
        components = build_components(settings)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from e

    console.print("[bold cyan]MIRA Agent[/bold cyan] - chat agent with remote browser control")
    console.print(f"Model: [dim]{settings.model}[/dim] via [dim]{settings.model_base_url}[/dim]")
    console.print(f"Browser: [dim]{settings.browser_mode}[/dim]")
    console.print(f"Listening on [green]http://{settings.host}:{settings.port}[/green]")

    uvicorn.run(create_app(components), host=settings.host, port=settings.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
