"""
セレクタランキング — スクリプト方言ごとの最適セレクタ選択

SelectorSet の候補から、対象スクリプト方言で表現可能な
最も優先度の高いセレクタを選択し、方言のセレクタ文字列に整形する。

優先順位:
  - Playwright (JS / Python): id, testId, text, role, attr, href, css, fullCss
  - Puppeteer / Cypress: id, testId, attr, href, css, fullCss
  - input / keydown アクションでは text と role を使用しない
    （入力中に内容が変わるため）
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from ..types import ActionType, ScriptType, SelectorSet
from .resolver import quote_css_string

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# 方言ごとのセレクタ種別優先順位
# ---------------------------------------------------------------------------

_PLAYWRIGHT_ORDER = ("id", "testId", "text", "role", "attr", "href", "css", "fullCss")
_CSS_ORDER = ("id", "testId", "attr", "href", "css", "fullCss")

STRATEGY_ORDER: dict[ScriptType, tuple[str, ...]] = {
    ScriptType.PLAYWRIGHT: _PLAYWRIGHT_ORDER,
    ScriptType.PLAYWRIGHT_PYTHON: _PLAYWRIGHT_ORDER,
    ScriptType.PUPPETEER: _CSS_ORDER,
    ScriptType.CYPRESS: _CSS_ORDER,
}

# 要素の内容に依存するセレクタ種別
_CONTENT_STRATEGIES = frozenset({"text", "role"})

# 内容に依存するセレクタを使わないアクション種別
_CONTENT_UNSTABLE_ACTIONS = frozenset({ActionType.INPUT, ActionType.KEYDOWN})


# ---------------------------------------------------------------------------
# パブリック API
# ---------------------------------------------------------------------------

def rank_selectors(
    selectors: SelectorSet,
    script_type: Union[ScriptType, str],
    action_type: Union[ActionType, str, None] = None,
    has_only_text: bool = True,
) -> list[tuple[str, str]]:
    """方言で使用可能なセレクタ候補を優先順位順に並べる。

    Args:
        selectors: セレクタ候補集合
        script_type: 対象スクリプト方言
        action_type: アクション種別（None の場合は click として扱う）
        has_only_text: 対象要素が hasOnlyText かどうか

    Returns:
        (セレクタ種別, 方言向けセレクタ文字列) のリスト
    """
    script_type = ScriptType(script_type)
    action = ActionType(action_type) if action_type is not None else ActionType.CLICK

    ranked: list[tuple[str, str]] = []
    for strategy in STRATEGY_ORDER[script_type]:
        value = selectors.get(strategy)
        if not value:
            continue
        if strategy in _CONTENT_STRATEGIES and action in _CONTENT_UNSTABLE_ACTIONS:
            continue
        if strategy == "text" and not has_only_text:
            continue
        ranked.append((strategy, format_selector(strategy, value)))
    return ranked


def best_selector(
    selectors: SelectorSet,
    script_type: Union[ScriptType, str],
    action_type: Union[ActionType, str, None] = None,
    has_only_text: bool = True,
) -> Optional[str]:
    """方言で使用可能な最も優先度の高いセレクタ文字列を返す。

    候補がない場合は None を返す。
    """
    ranked = rank_selectors(selectors, script_type, action_type, has_only_text)
    if not ranked:
        logger.debug("使用可能なセレクタがありません: %s", selectors)
        return None
    return ranked[0][1]


def best_selector_for_action(action: Any, script_type: Union[ScriptType, str]) -> Optional[str]:
    """要素アクションに対する最適セレクタを返す。

    要素を対象としないアクション（load 等）の場合は None を返す。
    """
    selectors = getattr(action, "selectors", None)
    if not selectors:
        return None
    return best_selector(
        selectors,
        script_type,
        action_type=action.type,
        has_only_text=getattr(action, "hasOnlyText", False),
    )


def format_selector(strategy: str, value: str) -> str:
    """セレクタ種別に応じて、セレクタ文字列として使用できる形に整形する。

    text 種別は Playwright のテキストエンジン形式（text="..."）に変換し、
    それ以外は記録時の文字列をそのまま返す。
    """
    if strategy == "text":
        return f"text={quote_css_string(value)}"
    return value
