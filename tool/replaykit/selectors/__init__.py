"""
selectors パッケージ — DOM 要素のセレクタ解決

記録対象の DOM 要素からセレクタ候補集合（SelectorSet）を生成し、
スクリプト方言ごとに最適なセレクタを選択する。

主な構成:
  - dom: BeautifulSoup 文書上の要素操作
  - resolver: SelectorSet の生成（resolve）
  - ranking: 方言ごとの最適セレクタ選択（best_selector）
"""

from __future__ import annotations

from .dom import (
    OVERLAY_ROOT_ID,
    element_by_path,
    has_only_text,
    is_element_from_overlay,
    normalize_target,
    parse_document,
)
from .ranking import best_selector, best_selector_for_action, rank_selectors
from .resolver import DEFAULT_TEST_ID_ATTRIBUTES, resolve

__all__ = [
    "DEFAULT_TEST_ID_ATTRIBUTES",
    "OVERLAY_ROOT_ID",
    "best_selector",
    "best_selector_for_action",
    "element_by_path",
    "has_only_text",
    "is_element_from_overlay",
    "normalize_target",
    "parse_document",
    "rank_selectors",
    "resolve",
]
