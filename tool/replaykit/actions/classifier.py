"""
アクション分類器 — 生のブラウザイベントを Action に変換・統合

ブラウザから届いた生イベントを、記録すべき Action に変換する。
分類は (状態, イベント) → (新しい状態, 判定結果) の純粋な状態遷移関数として実装し、
ブラウザなしでテストできる。

判定結果:
  - IGNORE: 記録しない（対象要素なし、オーバーレイ上の操作、意味のないイベント）
  - APPEND: 新しい Action をログ末尾に追加
  - AMEND: ログ末尾の Action を差し替える（連続イベントの統合）

統合ルール:
  - 同一要素への連続した input は最終値を持つ1件に統合
  - 連続した hover は最後のホバー対象に統合
  - 連続した wheel は移動量を合算
  - 連続した resize は最後のサイズに統合
  - hover の直後の click は統合しない（独立した操作として記録）
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional

from bs4 import Tag
from pydantic import ValidationError

from ..selectors.dom import (
    OVERLAY_ROOT_ID,
    attribute,
    has_only_text,
    is_element_from_overlay,
    normalize_target,
)
from ..selectors.resolver import DEFAULT_TEST_ID_ATTRIBUTES, resolve
from .schema import (
    ActionType,
    AwaitTextAction,
    ClickAction,
    DragAndDropAction,
    FullScreenshotAction,
    HoverAction,
    InputAction,
    KeydownAction,
    LoadAction,
    ResizeAction,
    WheelAction,
)

logger = logging.getLogger(__name__)

# keydown として記録するキー（文字キーは input として記録される）
DEFAULT_RECORDED_KEYS: frozenset[str] = frozenset({
    "Enter",
    "Tab",
    "Escape",
    "ArrowUp",
    "ArrowDown",
    "ArrowLeft",
    "ArrowRight",
})

# click で記録済みのため input を記録しない input 種別
_TOGGLE_INPUT_TYPES = frozenset({"checkbox", "radio"})


# ---------------------------------------------------------------------------
# イベント・状態・判定結果
# ---------------------------------------------------------------------------

class EventKind(str, enum.Enum):
    """ブラウザから届く生イベントの種別。"""

    CLICK = "click"
    HOVER = "hover"
    INPUT = "input"
    KEYDOWN = "keydown"
    WHEEL = "wheel"
    RESIZE = "resize"
    LOAD = "load"
    DRAG_AND_DROP = "dragAndDrop"
    FULL_SCREENSHOT = "fullScreenshot"
    AWAIT_TEXT = "awaitText"


_ELEMENT_EVENTS = frozenset({
    EventKind.CLICK,
    EventKind.HOVER,
    EventKind.INPUT,
    EventKind.KEYDOWN,
})


@dataclass(frozen=True)
class RawEvent:
    """ブラウザから届いた生イベント。

    Attributes:
        kind: イベント種別
        timestamp: 発生時刻（ミリ秒）
        target: 対象要素（要素イベントの場合）
        value: 入力値（input）
        key: キー名（keydown）
        url: ページ URL（load）
        width: ウィンドウ幅（resize）
        height: ウィンドウ高さ（resize）
        delta_x: 横方向スクロール量（wheel）
        delta_y: 縦方向スクロール量（wheel）
        source: ドラッグ開始座標（dragAndDrop）
        destination: ドロップ座標（dragAndDrop）
        text: 待機対象テキスト（awaitText）
    """

    kind: EventKind
    timestamp: int = 0
    target: Optional[Tag] = None
    value: Optional[str] = None
    key: Optional[str] = None
    url: Optional[str] = None
    width: int = 0
    height: int = 0
    delta_x: float = 0
    delta_y: float = 0
    source: Optional[tuple[float, float]] = None
    destination: Optional[tuple[float, float]] = None
    text: Optional[str] = None


@dataclass(frozen=True)
class ClassifierState:
    """分類器の状態。

    tail は直近に記録（または差し替え）した Action で、統合判定に使用する。
    """

    tail: Optional[Any] = None
    overlay_id: str = OVERLAY_ROOT_ID
    test_id_attributes: tuple[str, ...] = DEFAULT_TEST_ID_ATTRIBUTES
    recorded_keys: frozenset[str] = field(default=DEFAULT_RECORDED_KEYS)


class Decision(enum.Enum):
    """イベントに対する判定。"""

    IGNORE = "ignore"
    APPEND = "append"
    AMEND = "amend"


@dataclass(frozen=True)
class Outcome:
    """分類結果。

    Attributes:
        decision: 判定
        action: 追加または差し替える Action（IGNORE の場合は None）
        reason: IGNORE の理由（ログ出力用）
    """

    decision: Decision
    action: Optional[Any] = None
    reason: str = ""


def _ignore(reason: str) -> Outcome:
    return Outcome(decision=Decision.IGNORE, reason=reason)


# ---------------------------------------------------------------------------
# パブリック API
# ---------------------------------------------------------------------------

def classify(state: ClassifierState, event: RawEvent) -> tuple[ClassifierState, Outcome]:
    """生イベントを分類し、新しい状態と判定結果を返す。

    副作用を持たない。ログへの反映は呼び出し元（記録セッション）が行う。

    Args:
        state: 現在の分類器状態
        event: 生イベント

    Returns:
        (新しい分類器状態, 判定結果)
    """
    kind = EventKind(event.kind)
    try:
        if kind in _ELEMENT_EVENTS:
            outcome = _classify_element_event(state, event, kind)
        else:
            outcome = _classify_page_event(state, event, kind)
    except ValidationError as exc:
        outcome = _ignore(f"不正なイベント値: {exc.error_count()} 件の検証エラー")

    if outcome.decision is Decision.IGNORE:
        logger.debug("イベントを無視しました: %s (%s)", kind.value, outcome.reason)
        return state, outcome

    logger.debug("イベントを分類しました: %s → %s", kind.value, outcome.decision.value)
    return replace(state, tail=outcome.action), outcome


def last_meaningful_action(actions: Iterable[Any]) -> Optional[Any]:
    """末尾から load 以外の直近の Action を探して返す。

    記録開始時のページ読み込みではなく、ユーザー操作を表示するために使う。
    load しかない場合は None を返す。
    """
    for action in reversed(list(actions)):
        if action.type != ActionType.LOAD.value:
            return action
    return None


# ---------------------------------------------------------------------------
# 要素イベント
# ---------------------------------------------------------------------------

def _classify_element_event(
    state: ClassifierState, event: RawEvent, kind: EventKind,
) -> Outcome:
    """click / hover / input / keydown を分類する。"""
    target = event.target
    if target is None:
        return _ignore("対象要素がありません")

    if is_element_from_overlay(target, state.overlay_id):
        return _ignore("オーバーレイ上の操作です")

    if kind in (EventKind.CLICK, EventKind.HOVER):
        target = normalize_target(target)

    input_type = _input_type(target)
    if kind is EventKind.INPUT and input_type in _TOGGLE_INPUT_TYPES:
        return _ignore("チェックボックス / ラジオは click として記録済みです")

    if kind is EventKind.KEYDOWN and event.key not in state.recorded_keys:
        return _ignore(f"記録対象外のキーです: {event.key}")

    selectors = resolve(target, test_id_attributes=state.test_id_attributes)
    if not selectors:
        return _ignore("セレクタを解決できません")

    common = {
        "timestamp": event.timestamp,
        "tagName": target.name.upper(),
        "selectors": selectors,
        "hasOnlyText": has_only_text(target),
    }
    tail = state.tail

    if kind is EventKind.CLICK:
        return Outcome(Decision.APPEND, ClickAction(**common))

    if kind is EventKind.HOVER:
        action = HoverAction(**common)
        if isinstance(tail, HoverAction):
            return Outcome(Decision.AMEND, action)
        return Outcome(Decision.APPEND, action)

    if kind is EventKind.INPUT:
        action = InputAction(
            **common,
            value=event.value or "",
            isPassword=input_type == "password",
            inputType=input_type,
        )
        if _is_same_field(tail, action):
            return Outcome(Decision.AMEND, action)
        return Outcome(Decision.APPEND, action)

    return Outcome(Decision.APPEND, KeydownAction(**common, key=event.key))


def _input_type(element: Tag) -> Optional[str]:
    """input 要素の type 属性（小文字）を返す。input 以外は None。"""
    if element.name != "input":
        return None
    return (attribute(element, "type") or "text").lower()


def _is_same_field(tail: Optional[Any], action: InputAction) -> bool:
    """直前の Action が同一入力欄への input かどうかを判定する。"""
    return (
        isinstance(tail, InputAction)
        and tail.tagName == action.tagName
        and tail.inputType == action.inputType
        and tail.selectors == action.selectors
    )


# ---------------------------------------------------------------------------
# ページイベント
# ---------------------------------------------------------------------------

def _classify_page_event(
    state: ClassifierState, event: RawEvent, kind: EventKind,
) -> Outcome:
    """load / resize / wheel / dragAndDrop / fullScreenshot / awaitText を分類する。"""
    tail = state.tail
    timestamp = event.timestamp

    if kind is EventKind.LOAD:
        if not event.url:
            return _ignore("URL がありません")
        return Outcome(Decision.APPEND, LoadAction(timestamp=timestamp, url=event.url))

    if kind is EventKind.RESIZE:
        action = ResizeAction(timestamp=timestamp, width=event.width, height=event.height)
        if isinstance(tail, ResizeAction):
            return Outcome(Decision.AMEND, action)
        return Outcome(Decision.APPEND, action)

    if kind is EventKind.WHEEL:
        if not event.delta_x and not event.delta_y:
            return _ignore("スクロール量がありません")
        if isinstance(tail, WheelAction):
            merged = WheelAction(
                timestamp=timestamp,
                deltaX=tail.deltaX + event.delta_x,
                deltaY=tail.deltaY + event.delta_y,
            )
            return Outcome(Decision.AMEND, merged)
        return Outcome(
            Decision.APPEND,
            WheelAction(timestamp=timestamp, deltaX=event.delta_x, deltaY=event.delta_y),
        )

    if kind is EventKind.FULL_SCREENSHOT:
        return Outcome(Decision.APPEND, FullScreenshotAction(timestamp=timestamp))

    if kind is EventKind.AWAIT_TEXT:
        text = (event.text or "").strip()
        if not text:
            return _ignore("待機テキストが空です")
        return Outcome(Decision.APPEND, AwaitTextAction(timestamp=timestamp, text=text))

    # dragAndDrop
    if event.source is None or event.destination is None:
        return _ignore("ドラッグ座標がありません")
    return Outcome(
        Decision.APPEND,
        DragAndDropAction(
            timestamp=timestamp,
            sourceX=event.source[0],
            sourceY=event.source[1],
            targetX=event.destination[0],
            targetY=event.destination[1],
        ),
    )
