"""Tests for ``toolwire tools`` CLI command."""

from __future__ import annotations

import json

from click.testing import CliRunner

from toolwire.cli import main


class TestToolsCommand:
    def test_table(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools"])

        assert result.exit_code == 0
        assert "read_file" in result.output
        assert "ai_chat" in result.output

    def test_json(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "--format", "json", "--no-ai"])

        assert result.exit_code == 0
        listing = json.loads(result.output)
        names = [tool["name"] for tool in listing]
        assert "execute_command" in names
        assert "ai_chat" not in names
        assert listing[0]["inputSchema"]["type"] == "object"

    def test_nothing_registered(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["tools", "--no-builtin", "--no-ai"])

        assert result.exit_code == 0
        assert "No tools registered" in result.output
