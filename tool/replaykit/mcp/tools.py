"""
MCP ツール実装 — コード生成・アクション表示・セレクタ解決

MCP サーバーに登録するツールの本体を、ブラウザやサーバーに依存しない
関数として定義する。エラーは例外ではなく "Error: ..." で始まる
メッセージとして返す（AI エージェントが読める形で失敗を伝える）。
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import soupsieve as sv
from pydantic import ValidationError

from ..actions.describe import describe_action
from ..actions.log import ActionLog
from ..codegen.generator import UnsupportedActionError, generate
from ..selectors.dom import has_only_text, parse_document
from ..selectors.ranking import best_selector
from ..selectors.resolver import DEFAULT_TEST_ID_ATTRIBUTES, resolve
from ..types import ScriptType

logger = logging.getLogger(__name__)


def _script_type(value: str) -> Optional[ScriptType]:
    try:
        return ScriptType(value)
    except ValueError:
        return None


def _unknown_script_type(value: str) -> str:
    names = ", ".join(t.value for t in ScriptType)
    return f"Error: Unknown script type '{value}'. Available: {names}"


def generate_tool(
    actions: list[dict[str, Any]],
    script_type: str = ScriptType.PLAYWRIGHT.value,
    include_boilerplate: bool = True,
) -> str:
    """アクションのリストからスクリプトを生成する。"""
    kind = _script_type(script_type)
    if kind is None:
        return _unknown_script_type(script_type)
    try:
        log = ActionLog.from_list(actions)
        return generate(log, include_boilerplate=include_boilerplate, script_type=kind)
    except ValidationError as exc:
        return f"Error: Invalid actions ({exc.error_count()} validation errors): {exc}"
    except UnsupportedActionError as exc:
        return f"Error: {exc}"


def describe_tool(
    actions: list[dict[str, Any]],
    script_type: str = ScriptType.PLAYWRIGHT.value,
) -> str:
    """アクションのリストを1行ずつのサマリーにする（パスワードはマスク）。"""
    kind = _script_type(script_type)
    if kind is None:
        return _unknown_script_type(script_type)
    try:
        log = ActionLog.from_list(actions)
    except ValidationError as exc:
        return f"Error: Invalid actions ({exc.error_count()} validation errors): {exc}"
    if len(log) == 0:
        return "No actions"
    return "\n".join(
        f"{i}. {describe_action(action, kind)}" for i, action in enumerate(log, 1)
    )


def resolve_tool(
    html: str,
    css: str,
    script_type: str = ScriptType.PLAYWRIGHT.value,
    test_id_attributes: Optional[list[str]] = None,
) -> str:
    """HTML 中の要素のセレクタ候補と最適セレクタを JSON で返す。"""
    kind = _script_type(script_type)
    if kind is None:
        return _unknown_script_type(script_type)

    document = parse_document(html)
    try:
        element = document.select_one(css)
    except sv.SelectorSyntaxError as exc:
        return f"Error: Invalid CSS selector '{css}': {exc}"
    if element is None:
        return f"Error: No element matches '{css}'"

    attributes = tuple(test_id_attributes or DEFAULT_TEST_ID_ATTRIBUTES)
    selectors = resolve(element, test_id_attributes=attributes)
    best = best_selector(selectors, kind, has_only_text=has_only_text(element))
    return json.dumps({"selectors": selectors, "best": best}, ensure_ascii=False)


def script_types_tool() -> str:
    """対応スクリプト方言の一覧を返す。"""
    return "\n".join(t.value for t in ScriptType)
