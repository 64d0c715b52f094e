"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import toolwire

    assert toolwire.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from toolwire.cli import main

    assert callable(main)


def test_lazy_import_from_toolwire() -> None:
    import toolwire

    assert toolwire.McpServer is not None
    assert toolwire.ModelProviderFactory is not None


def test_layer_imports() -> None:
    from toolwire.protocol import StdioTransport, ToolwireError
    from toolwire.providers import ModelProviderFactory, ProviderConfig
    from toolwire.server import McpServer, ServerConfig

    assert issubclass(ToolwireError, Exception)
    assert StdioTransport is not None
    assert McpServer is not None
    assert ServerConfig is not None
    assert ModelProviderFactory is not None
    assert ProviderConfig is not None
