"""Shared CLI output formatters."""

from __future__ import annotations

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console()
# stdout carries the protocol stream while serving; diagnostics go here.
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Route stdlib logging to stderr through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def print_tools_table(tools: list[dict[str, Any]]) -> None:
    """Pretty-print tool metadata as a table."""
    table = Table(title="Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Required")
    table.add_column("Description")

    for tool in tools:
        schema = tool.get("inputSchema", {})
        table.add_row(
            tool.get("name", "?"),
            ", ".join(schema.get("required", [])) or "-",
            _truncate(tool.get("description", "")),
        )

    console.print(table)


def print_providers_table(providers: dict[str, dict[str, Any]]) -> None:
    """Pretty-print the provider catalog as a table."""
    table = Table(title="Model Providers")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Auth")
    table.add_column("Default model")
    table.add_column("Models")

    for provider_id, info in providers.items():
        table.add_row(
            provider_id,
            info["name"],
            info["auth_type"],
            info["default_model"],
            _truncate(", ".join(info["models"])),
        )

    console.print(table)


def print_models_table(provider_id: str, info: dict[str, Any]) -> None:
    """Pretty-print one provider's models with their limits."""
    console.print(f"\n[bold]{info['name']}[/bold] ({provider_id})")
    console.print(f"  {info['description']}")
    console.print(f"  Base URL: {info['base_url']}")
    console.print(f"  Auth: {info['auth_type']}\n")

    table = Table(title="Models")
    table.add_column("Model", style="cyan")
    table.add_column("Context", justify="right")
    table.add_column("Max tokens", justify="right")
    table.add_column("Default")

    for model, limits in info["models"].items():
        table.add_row(
            model,
            str(limits["context"]),
            str(limits["max_tokens"]),
            "*" if model == info["default_model"] else "",
        )

    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
