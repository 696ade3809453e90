"""
共通型定義 — 操作種別・スクリプト方言・セレクタ集合

actions / selectors / codegen の各パッケージから参照される基本型を定義する。
"""

from __future__ import annotations

import enum

# セレクタ種別名 → セレクタ文字列
SelectorSet = dict[str, str]


class ActionType(str, enum.Enum):
    """記録される操作の種別。"""

    CLICK = "click"
    HOVER = "hover"
    INPUT = "input"
    KEYDOWN = "keydown"
    LOAD = "load"
    RESIZE = "resize"
    WHEEL = "wheel"
    FULL_SCREENSHOT = "fullScreenshot"
    AWAIT_TEXT = "awaitText"
    DRAG_AND_DROP = "dragAndDrop"


class ScriptType(str, enum.Enum):
    """コード生成の対象となる自動化ライブラリの方言。"""

    PLAYWRIGHT = "playwright"
    PUPPETEER = "puppeteer"
    CYPRESS = "cypress"
    PLAYWRIGHT_PYTHON = "playwright-python"
