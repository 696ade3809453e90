"""
アクション表示 — 記録済みアクションの1行サマリー

オーバーレイの「Last Action」欄やアクション一覧に表示する文字列を生成する。
パスワード入力の値は '*' * 文字数 でマスクし、平文を表示しない。
"""

from __future__ import annotations

from typing import Any, Union

from ..selectors.ranking import best_selector_for_action
from .schema import ActionType, ScriptType


def describe_action(
    action: Any, script_type: Union[ScriptType, str] = ScriptType.PLAYWRIGHT,
) -> str:
    """アクションの表示用サマリーを返す。

    Args:
        action: 表示対象のアクション
        script_type: セレクタ表示に使用する方言

    Returns:
        1行のサマリー文字列
    """
    kind = ActionType(action.type)

    if kind is ActionType.CLICK:
        return f"Click on {_target(action, script_type)}"

    if kind is ActionType.HOVER:
        return f"Hover over {_target(action, script_type)}"

    if kind is ActionType.INPUT:
        return f'Fill "{masked_value(action)}" on {_target(action, script_type)}'

    if kind is ActionType.KEYDOWN:
        return f"Press {action.key} on {action.tagName.lower()}"

    if kind is ActionType.LOAD:
        return f'Load "{action.url}"'

    if kind is ActionType.RESIZE:
        return f"Resize window to {action.width} x {action.height}"

    if kind is ActionType.WHEEL:
        return f"Scroll wheel by X:{_num(action.deltaX)}, Y:{_num(action.deltaY)}"

    if kind is ActionType.FULL_SCREENSHOT:
        return "Take full page screenshot"

    if kind is ActionType.AWAIT_TEXT:
        return f'Wait for text "{action.text}"'

    return (
        f"Drag n Drop from ({_num(action.sourceX)}, {_num(action.sourceY)}) "
        f"to ({_num(action.targetX)}, {_num(action.targetY)})"
    )


def masked_value(action: Any) -> str:
    """表示用の入力値を返す（パスワードは文字数分の '*'）。"""
    value = action.secret_value()
    if action.isPassword:
        return "*" * len(value)
    return value


def _target(action: Any, script_type: Union[ScriptType, str]) -> str:
    selector = best_selector_for_action(action, script_type) or ""
    return f"{action.tagName.lower()} {selector}".rstrip()


def _num(value: float) -> str:
    """整数値の float を整数表記にする。"""
    if float(value).is_integer():
        return str(int(value))
    return str(value)
