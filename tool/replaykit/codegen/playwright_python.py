"""
Playwright (Python) 方言 — sync API の Locator によるステートメント生成

Playwright codegen の Python 出力と同じ書式で生成する。
"""

from __future__ import annotations

from typing import Any

from ..selectors.ranking import format_selector
from ..types import ActionType, ScriptType
from .dialect import Dialect, RenderContext
from .strings import number, py_string


def _locator(ctx: RenderContext) -> str:
    return f"page.locator({py_string(ctx.selector)})"


def _with_navigation(call: str, ctx: RenderContext) -> str:
    if ctx.causes_navigation:
        return f"with page.expect_navigation():\n    {call}"
    return call


def click(action: Any, ctx: RenderContext) -> str:
    return _with_navigation(f"{_locator(ctx)}.click()", ctx)


def hover(action: Any, ctx: RenderContext) -> str:
    return f"{_locator(ctx)}.hover()"


def fill(action: Any, ctx: RenderContext) -> str:
    value = py_string(action.secret_value())
    if action.tagName == "SELECT":
        return f"{_locator(ctx)}.select_option({value})"
    return f"{_locator(ctx)}.fill({value})"


def keydown(action: Any, ctx: RenderContext) -> str:
    return _with_navigation(f"{_locator(ctx)}.press({py_string(action.key)})", ctx)


def load(action: Any, ctx: RenderContext) -> str:
    return f"page.goto({py_string(action.url)})"


def resize(action: Any, ctx: RenderContext) -> str:
    return f'page.set_viewport_size({{"width": {action.width}, "height": {action.height}}})'


def wheel(action: Any, ctx: RenderContext) -> str:
    return f"page.mouse.wheel({number(action.deltaX)}, {number(action.deltaY)})"


def full_screenshot(action: Any, ctx: RenderContext) -> str:
    path = py_string(f"screenshot-{ctx.screenshot_index}.png")
    return f"page.screenshot(path={path}, full_page=True)"


def await_text(action: Any, ctx: RenderContext) -> str:
    return f"page.wait_for_selector({py_string(format_selector('text', action.text))})"


def drag_and_drop(action: Any, ctx: RenderContext) -> str:
    return "\n".join([
        f"page.mouse.move({number(action.sourceX)}, {number(action.sourceY)})",
        "page.mouse.down()",
        f"page.mouse.move({number(action.targetX)}, {number(action.targetY)})",
        "page.mouse.up()",
    ])


DIALECT = Dialect(
    script_type=ScriptType.PLAYWRIGHT_PYTHON,
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
    boilerplate="playwright.py.j2",
    indent=4,
)
