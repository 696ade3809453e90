"""
replaykit MCP Server パッケージ

AI エージェントが記録済みアクションからスクリプトを生成し、
HTML 要素のセレクタを調べるための MCP (Model Context Protocol) サーバーを提供する。

主な構成:
  - server: FastMCP サーバー本体（ツール登録）
  - tools: ツール本体（generate / describe / resolve / script_types）
"""

from __future__ import annotations


def create_server(config=None):  # type: ignore[no-untyped-def]
    """replaykit MCP サーバーを生成する（遅延インポート）。

    `python -m replaykit.mcp` 実行時に fastmcp の import を
    サーバー生成まで遅延させる。

    Args:
        config: RecorderConfig インスタンス（None で設定ファイル・環境変数から読み込み）

    Returns:
        設定済みの FastMCP サーバーインスタンス
    """
    from .server import create_server as _create
    return _create(config=config)


__all__ = [
    "create_server",
]
