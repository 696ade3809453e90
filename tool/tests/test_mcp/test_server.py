"""
Server テスト — MCP サーバーのツール定義・統合テスト

FastMCP サーバーがツールを公開し、クライアント経由の呼び出しで
スクリプトが生成されることを検証する。
"""

from __future__ import annotations

import pytest
from fastmcp import Client

from replaykit.config import RecorderConfig
from replaykit.mcp.server import SERVER_NAME, create_server
from replaykit.types import ScriptType

_TOOL_NAMES = {
    "replaykit_generate",
    "replaykit_describe",
    "replaykit_resolve",
    "replaykit_script_types",
}


# ---------------------------------------------------------------------------
# サーバー生成テスト
# ---------------------------------------------------------------------------

class TestCreateServer:
    """create_server() のテスト。"""

    def test_server_has_name(self):
        server = create_server(RecorderConfig())
        assert server.name == SERVER_NAME == "replaykit"

    def test_config_is_loaded_when_omitted(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert create_server() is not None


# ---------------------------------------------------------------------------
# ツール呼び出しテスト
# ---------------------------------------------------------------------------

class TestServerTools:
    """クライアント経由のツール一覧・呼び出しテスト。"""

    @pytest.fixture
    def server(self):
        return create_server(RecorderConfig(script_type=ScriptType.CYPRESS))

    @pytest.mark.asyncio
    async def test_tools_are_registered(self, server):
        async with Client(server) as client:
            tools = await client.list_tools()
        assert {t.name for t in tools} == _TOOL_NAMES

    @pytest.mark.asyncio
    async def test_generate_uses_configured_dialect(self, server):
        """script_type 省略時はサーバー設定の方言で生成すること。"""
        async with Client(server) as client:
            result = await client.call_tool("replaykit_generate", {
                "actions": [{"type": "load", "url": "https://x.test"}],
                "include_boilerplate": False,
            })
        assert result.content[0].text == "cy.visit('https://x.test');"

    @pytest.mark.asyncio
    async def test_script_types(self, server):
        async with Client(server) as client:
            result = await client.call_tool("replaykit_script_types", {})
        assert "playwright-python" in result.content[0].text
