"""
replaykit — ブラウザ操作の記録と自動化スクリプト生成

ブラウザ上のユーザー操作を型付きのアクションログとして記録し、
Playwright / Puppeteer / Cypress / Playwright (Python) のスクリプトを生成する。

主な構成:
  - selectors: DOM 要素のセレクタ解決
  - actions: アクションのモデル・分類・ログ
  - codegen: スクリプト生成
  - recorder: 記録セッションとブラウザキャプチャ
  - cli / mcp: コマンドライン・MCP サーバー
"""

from __future__ import annotations

from .actions import ActionLog, RawEvent, classify, describe_action
from .codegen import UnsupportedActionError, generate
from .selectors import best_selector, resolve
from .types import ActionType, ScriptType

__version__ = "0.1.0"

__all__ = [
    "ActionLog",
    "ActionType",
    "RawEvent",
    "ScriptType",
    "UnsupportedActionError",
    "best_selector",
    "classify",
    "describe_action",
    "generate",
    "resolve",
]
