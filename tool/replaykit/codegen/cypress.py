"""
Cypress 方言 — cy コマンドチェーンによるステートメント生成

Cypress はコマンドごとに自動で待機するため、遷移待ちは生成しない。
"""

from __future__ import annotations

from typing import Any

from ..types import ActionType, ScriptType
from .dialect import Dialect, RenderContext
from .strings import js_string, number

# cy.type() の特殊キー表記
_SPECIAL_KEYS = {
    "Enter": "{enter}",
    "Escape": "{esc}",
    "ArrowUp": "{uparrow}",
    "ArrowDown": "{downarrow}",
    "ArrowLeft": "{leftarrow}",
    "ArrowRight": "{rightarrow}",
    "Backspace": "{backspace}",
    "Delete": "{del}",
    "Home": "{home}",
    "End": "{end}",
    "PageUp": "{pageup}",
    "PageDown": "{pagedown}",
}


def _typed_text(value: str) -> str:
    # cy.type() は { を特殊キーの開始として解釈する
    return value.replace("{", "{{}")


def click(action: Any, ctx: RenderContext) -> str:
    return f"cy.get({js_string(ctx.selector)}).click();"


def hover(action: Any, ctx: RenderContext) -> str:
    return f"cy.get({js_string(ctx.selector)}).trigger('mouseover');"


def fill(action: Any, ctx: RenderContext) -> str:
    value = action.secret_value()
    target = f"cy.get({js_string(ctx.selector)})"
    if action.tagName == "SELECT":
        return f"{target}.select({js_string(value)});"
    if not value:
        return f"{target}.clear();"
    return f"{target}.clear().type({js_string(_typed_text(value))});"


def keydown(action: Any, ctx: RenderContext) -> str:
    target = f"cy.get({js_string(ctx.selector)})"
    sequence = _SPECIAL_KEYS.get(action.key)
    if sequence is None:
        # cy.type() で表現できないキー（Tab 等）はイベントを直接発火する
        return f"{target}.trigger('keydown', {{ key: {js_string(action.key)} }});"
    return f"{target}.type({js_string(sequence)});"


def load(action: Any, ctx: RenderContext) -> str:
    return f"cy.visit({js_string(action.url)});"


def resize(action: Any, ctx: RenderContext) -> str:
    return f"cy.viewport({action.width}, {action.height});"


def wheel(action: Any, ctx: RenderContext) -> str:
    return (
        f"cy.window().then((win) => win.scrollBy("
        f"{number(action.deltaX)}, {number(action.deltaY)}));"
    )


def full_screenshot(action: Any, ctx: RenderContext) -> str:
    name = js_string(f"screenshot-{ctx.screenshot_index}")
    return f"cy.screenshot({name}, {{ capture: 'fullPage' }});"


def await_text(action: Any, ctx: RenderContext) -> str:
    return f"cy.contains({js_string(action.text)});"


def drag_and_drop(action: Any, ctx: RenderContext) -> str:
    return "\n".join([
        "cy.get('body')",
        f"  .trigger('mousedown', {{ clientX: {number(action.sourceX)}, "
        f"clientY: {number(action.sourceY)} }})",
        f"  .trigger('mousemove', {{ clientX: {number(action.targetX)}, "
        f"clientY: {number(action.targetY)} }})",
        f"  .trigger('mouseup', {{ clientX: {number(action.targetX)}, "
        f"clientY: {number(action.targetY)} }});",
    ])


DIALECT = Dialect(
    script_type=ScriptType.CYPRESS,
    templates={
        ActionType.CLICK: click,
        ActionType.HOVER: hover,
        ActionType.INPUT: fill,
        ActionType.KEYDOWN: keydown,
        ActionType.LOAD: load,
        ActionType.RESIZE: resize,
        ActionType.WHEEL: wheel,
        ActionType.FULL_SCREENSHOT: full_screenshot,
        ActionType.AWAIT_TEXT: await_text,
        ActionType.DRAG_AND_DROP: drag_and_drop,
    },
    boilerplate="cypress.js.j2",
    indent=4,
)
