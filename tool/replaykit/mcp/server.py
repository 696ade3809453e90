"""
replaykit MCP Server — スクリプト生成・セレクタ解決サーバー

FastMCP を使用して、AI エージェントが記録済みアクションから
自動化スクリプトを生成したり、HTML 要素のセレクタ候補を調べたりできる
MCP サーバーを提供する。

ツール本体は tools モジュールに定義し、本モジュールは登録のみを担当する。
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastmcp import FastMCP

from ..config import RecorderConfig, load_config
from . import tools

logger = logging.getLogger(__name__)

SERVER_NAME = "replaykit"


def create_server(config: Optional[RecorderConfig] = None) -> FastMCP:
    """replaykit MCP サーバーを生成する。

    Args:
        config: レコーダー設定。None の場合は設定ファイルと環境変数から読み込む。

    Returns:
        設定済みの FastMCP サーバーインスタンス
    """
    if config is None:
        config = load_config()

    mcp = FastMCP(SERVER_NAME)

    @mcp.tool
    def replaykit_generate(
        actions: list[dict[str, Any]],
        script_type: Optional[str] = None,
        include_boilerplate: bool = True,
    ) -> str:
        """Generate an automation script from recorded actions.

        Args:
            actions: Recorded actions (each with a "type" field)
            script_type: playwright / puppeteer / cypress / playwright-python.
                None uses the server config.
            include_boilerplate: Wrap the statements in a runnable script

        Returns:
            Generated source code, or an error message
        """
        return tools.generate_tool(
            actions,
            script_type=script_type or config.script_type.value,
            include_boilerplate=include_boilerplate,
        )

    @mcp.tool
    def replaykit_describe(
        actions: list[dict[str, Any]],
        script_type: Optional[str] = None,
    ) -> str:
        """Summarize recorded actions, one line per action (passwords masked).

        Args:
            actions: Recorded actions
            script_type: Dialect used to display selectors. None uses config.

        Returns:
            Numbered summary lines, or an error message
        """
        return tools.describe_tool(
            actions, script_type=script_type or config.script_type.value,
        )

    @mcp.tool
    def replaykit_resolve(
        html: str,
        css: str,
        script_type: Optional[str] = None,
    ) -> str:
        """Resolve selector candidates for the first element matching a CSS selector.

        Args:
            html: HTML document
            css: CSS selector of the target element
            script_type: Dialect used to pick the best selector. None uses config.

        Returns:
            JSON with "selectors" and "best", or an error message
        """
        return tools.resolve_tool(
            html,
            css,
            script_type=script_type or config.script_type.value,
            test_id_attributes=list(config.test_id_attributes),
        )

    @mcp.tool
    def replaykit_script_types() -> str:
        """List the supported script dialects.

        Returns:
            One dialect name per line
        """
        return tools.script_types_tool()

    logger.info("MCP サーバーを生成しました: %s", SERVER_NAME)
    return mcp
