"""toolwire CLI entrypoint."""

from __future__ import annotations

import click

from toolwire import __version__


@click.group()
@click.version_option(version=__version__, prog_name="toolwire")
def main() -> None:
    """toolwire — JSON-RPC tool server with pluggable AI model providers."""


# Register subcommands
from toolwire.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
