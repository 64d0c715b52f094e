"""``toolwire providers`` — show the model provider catalog."""

from __future__ import annotations

import sys

import click

from toolwire.cli_commands._output import console, print_json, print_models_table, print_providers_table


@click.command()
@click.argument("provider", required=False)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
def providers(provider: str | None, fmt: str) -> None:
    """List supported providers, or show PROVIDER's models.

    No credentials or network access are needed.
    """
    from toolwire.providers.factory import ModelProviderFactory

    factory = ModelProviderFactory()

    if provider is None:
        catalog = factory.all_providers_info()
        if fmt == "json":
            print_json(catalog)
        else:
            print_providers_table(catalog)
        return

    if not factory.is_supported(provider):
        supported = ", ".join(factory.supported_providers())
        console.print(f"[red]Unsupported provider:[/red] {provider} (supported: {supported})")
        sys.exit(1)

    info = factory.provider_info(provider)
    if fmt == "json":
        print_json(info)
    else:
        print_models_table(provider, info)
