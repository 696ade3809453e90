"""
Puppeteer 方言 — page / keyboard / mouse API によるステートメント生成
"""

from __future__ import annotations

from typing import Any

from ..types import ActionType, ScriptType
from .dialect import Dialect, RenderContext
from .strings import js_string, number


def _with_navigation(call: str, ctx: RenderContext) -> str:
    if ctx.causes_navigation:
        return f"await Promise.all([page.waitForNavigation(), {call}]);"
    return f"await {call};"


def click(action: Any, ctx: RenderContext) -> str:
    return _with_navigation(f"page.click({js_string(ctx.selector)})", ctx)


def hover(action: Any, ctx: RenderContext) -> str:
    return f"await page.hover({js_string(ctx.selector)});"


def fill(action: Any, ctx: RenderContext) -> str:
    value = js_string(action.secret_value())
    if action.tagName == "SELECT":
        return f"await page.select({js_string(ctx.selector)}, {value});"
    return f"await page.type({js_string(ctx.selector)}, {value});"


def keydown(action: Any, ctx: RenderContext) -> str:
    return "\n".join([
        f"await page.focus({js_string(ctx.selector)});",
        _with_navigation(f"page.keyboard.press({js_string(action.key)})", ctx),
    ])


def load(action: Any, ctx: RenderContext) -> str:
    return f"await page.goto({js_string(action.url)});"


def resize(action: Any, ctx: RenderContext) -> str:
    return f"await page.setViewport({{ width: {action.width}, height: {action.height} }});"


def wheel(action: Any, ctx: RenderContext) -> str:
    return (
        f"await page.mouse.wheel({{ deltaX: {number(action.deltaX)}, "
        f"deltaY: {number(action.deltaY)} }});"
    )


def full_screenshot(action: Any, ctx: RenderContext) -> str:
    path = js_string(f"screenshot-{ctx.screenshot_index}.png")
    return f"await page.screenshot({{ path: {path}, fullPage: true }});"


def await_text(action: Any, ctx: RenderContext) -> str:
    return (
        "await page.waitForFunction("
        "(text) => document.body.innerText.includes(text), {}, "
        f"{js_string(action.text)});"
    )


def drag_and_drop(action: Any, ctx: RenderContext) -> str:
    return "\n".join([
        f"await page.mouse.move({number(action.sourceX)}, {number(action.sourceY)});",
        "await page.mouse.down();",
        f"await page.mouse.move({number(action.targetX)}, {number(action.targetY)});",
        "await page.mouse.up();",
    ])


DIALECT = Dialect(
    script_type=ScriptType.PUPPETEER,
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
    boilerplate="puppeteer.js.j2",
    indent=2,
)
