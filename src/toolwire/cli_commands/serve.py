"""``toolwire serve`` — run the server on stdin/stdout."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from toolwire.cli_commands._output import configure_logging, err_console


@click.command()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False), default=None, help="Server YAML config file.")
@click.option("--name", default=None, help="Server display name.")
@click.option("--timeout", type=float, default=None, help="Per-call handler timeout in seconds.")
@click.option("--no-builtin", is_flag=True, help="Do not register the builtin tools.")
@click.option("--no-ai", is_flag=True, help="Do not register the AI tools.")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default="info",
    help="Log level (logs go to stderr).",
)
@click.option("--telemetry", is_flag=True, help="Export OpenTelemetry spans to stderr.")
def serve(
    config_path: str | None,
    name: str | None,
    timeout: float | None,
    no_builtin: bool,
    no_ai: bool,
    log_level: str,
    telemetry: bool,
) -> None:
    """Serve the default catalog over stdio until EOF or a termination signal."""
    from toolwire.catalog import register_default_catalog
    from toolwire.protocol.errors import ToolwireError
    from toolwire.server.config import ServerConfig, ServerConfigLoader
    from toolwire.server.lifecycle import serve_stdio
    from toolwire.server.server import McpServer

    configure_logging(log_level)

    try:
        config = ServerConfigLoader(Path(config_path)).load() if config_path else ServerConfig()
        config = config.with_overrides(
            name=name,
            timeout=timeout,
            builtin_tools=False if no_builtin else None,
            ai_tools=False if no_ai else None,
            telemetry=True if telemetry else None,
        )
    except ToolwireError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    if config.telemetry:
        from toolwire.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(service_name=config.name)
        except ImportError as exc:
            err_console.print(f"[yellow]Telemetry disabled:[/yellow] {exc}")

    server = McpServer(config)
    try:
        register_default_catalog(server, builtin=config.builtin_tools, ai=config.ai_tools)
    except ToolwireError as exc:
        err_console.print(f"[red]Registration error:[/red] {exc}")
        sys.exit(1)

    try:
        asyncio.run(serve_stdio(server))
    except ToolwireError as exc:
        err_console.print(f"[red]Server error:[/red] {exc}")
        sys.exit(1)
