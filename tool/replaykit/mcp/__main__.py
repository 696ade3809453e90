"""
replaykit MCP Server CLI エントリポイント

python -m replaykit.mcp で MCP サーバーを起動する。

使用例:
  python -m replaykit.mcp                              # デフォルト設定で起動
  python -m replaykit.mcp --script-type cypress        # 既定の方言を変更

環境変数:
  REPLAYKIT_SCRIPT_TYPE=puppeteer                      # 既定の方言
  REPLAYKIT_TEST_ID_ATTRIBUTES=data-testid,data-qa     # テスト ID 属性
"""

from __future__ import annotations

import argparse

from ..config import apply_overrides, load_config
from .server import create_server

_parser = argparse.ArgumentParser(
    description="replaykit MCP Server - script generation from recorded actions",
)
_parser.add_argument(
    "--script-type", type=str, default=None,
    help="Default script dialect (playwright / puppeteer / cypress / playwright-python)",
)
_parser.add_argument(
    "--config", type=str, default=None,
    help="Project config file (default: replaykit.yaml)",
)
_args = _parser.parse_args()

# 設定ファイル → 環境変数 → CLI 引数の順で設定を構築
_config = apply_overrides(load_config(_args.config), script_type=_args.script_type)

# サーバー生成・起動
server = create_server(config=_config)
server.run()
