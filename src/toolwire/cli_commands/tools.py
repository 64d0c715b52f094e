"""``toolwire tools`` — list the tools ``serve`` would expose."""

from __future__ import annotations

import click

from toolwire.cli_commands._output import console, print_json, print_tools_table


@click.command()
@click.option("--no-builtin", is_flag=True, help="Leave out the builtin tools.")
@click.option("--no-ai", is_flag=True, help="Leave out the AI tools.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
def tools(no_builtin: bool, no_ai: bool, fmt: str) -> None:
    """List the default catalog's tools and their schemas."""
    from toolwire.catalog import register_default_catalog
    from toolwire.server.server import McpServer

    server = register_default_catalog(McpServer(), builtin=not no_builtin, ai=not no_ai)
    listing = [info.model_dump(by_alias=True) for info in server.tools.list()]

    if fmt == "json":
        print_json(listing)
        return
    if not listing:
        console.print("[yellow]No tools registered.[/yellow]")
        return
    print_tools_table(listing)
