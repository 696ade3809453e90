"""
codegen パッケージ — アクションログからの自動化スクリプト生成

主な構成:
  - generator: generate() / render_statements() と UnsupportedActionError
  - dialect: 方言定義（ActionType → テンプレート関数の表）
  - playwright / puppeteer / cypress / playwright_python: 各方言のテンプレート
  - templates/*.j2: 方言ごとのボイラープレート
"""

from __future__ import annotations

from .generator import (
    DIALECTS,
    UnsupportedActionError,
    generate,
    get_dialect,
    render_statements,
)

__all__ = [
    "DIALECTS",
    "UnsupportedActionError",
    "generate",
    "get_dialect",
    "render_statements",
]
