"""Tests for the default resources, prompts and the catalog bundle."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

import pytest

from toolwire.catalog import register_default_catalog
from toolwire.catalog.prompts import code_review, generate_docs
from toolwire.catalog.resources import project_info, read_file_resource, system_status
from toolwire.protocol.errors import ConfigurationError, ResourceNotFoundError
from toolwire.protocol.models import JsonRpcRequest
from toolwire.server.server import McpServer


class TestResources:
    def test_project_info_reads_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\nversion = "1.2.3"\n')
        info = project_info("project://info", root=tmp_path)
        assert info["name"] == "toolwire"
        assert info["pyproject"]["name"] == "demo"
        assert info["pyproject"]["version"] == "1.2.3"

    def test_project_info_without_pyproject(self, tmp_path: Path) -> None:
        assert "pyproject" not in project_info("project://info", root=tmp_path)

    def test_system_status(self) -> None:
        status = system_status("system://status")
        assert status["disk_total"] >= status["disk_free"]

    def test_file_resource(self, tmp_path: Path) -> None:
        target = tmp_path / "a.txt"
        target.write_text("content")
        assert read_file_resource(f"file://{target}") == "content"

    def test_file_resource_percent_encoded(self, tmp_path: Path) -> None:
        target = tmp_path / "a b.txt"
        target.write_text("spaced")
        assert read_file_resource("file://" + quote(str(target))) == "spaced"

    def test_file_resource_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ResourceNotFoundError):
            read_file_resource(f"file://{tmp_path}/missing")


class TestPrompts:
    def test_code_review_focus(self) -> None:
        [message] = code_review({"code": "x = 1", "focus": "security"})
        assert message["role"] == "user"
        text = message["content"][0]["text"]
        assert "```python\nx = 1\n```" in text
        assert "security" in text

    def test_generate_docs_language(self) -> None:
        [message] = generate_docs({"code": "fn main() {}", "language": "rust", "type": "readme"})
        text = message["content"][0]["text"]
        assert "rust" in text
        assert "README" in text


class TestDefaultCatalog:
    def test_counts(self) -> None:
        server = register_default_catalog(McpServer())
        assert len(server.tools) == 10
        assert len(server.resources) == 3
        assert len(server.prompts) == 2

    def test_without_builtin_and_ai(self) -> None:
        server = register_default_catalog(McpServer(), builtin=False, ai=False)
        assert len(server.tools) == 0
        assert len(server.resources) == 3

    def test_user_cannot_shadow_builtin(self) -> None:
        server = register_default_catalog(McpServer())
        with pytest.raises(ConfigurationError, match="Duplicate tool"):
            server.register_tool("read_file", print)

    async def test_file_template_over_dispatch(self, tmp_path: Path) -> None:
        target = tmp_path / "hello.txt"
        target.write_text("hi there")
        server = register_default_catalog(McpServer(), ai=False)
        response = await server.handle_request(
            JsonRpcRequest(id=1, method="resources/read", params={"uri": f"file://{target}"})
        )
        assert response.result is not None
        assert response.result["contents"][0]["text"] == "hi there"

    async def test_code_review_over_dispatch(self) -> None:
        server = register_default_catalog(McpServer(), ai=False)
        response = await server.handle_request(
            JsonRpcRequest(id=1, method="prompts/get", params={"name": "code_review", "arguments": {"code": "pass"}})
        )
        assert response.result is not None
        [message] = response.result["messages"]
        assert message["role"] == "user"
        assert "pass" in message["content"][0]["text"]
