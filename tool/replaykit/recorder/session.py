"""
RecordingSession — 記録セッションのライフサイクル管理

イベントソース（Playwright キャプチャやテスト用のフェイク）から届く生イベントを
分類器に通し、アクションログへ反映する。ログが変わるたびに
コールバック（on_action）とストアへの書き出しを行う。

主な機能:
  - イベントリスナーの登録・解除（deregister は冪等）
  - 記録の一時停止・再開
  - マウス移動に追従するセレクタプレビュー（Throttle で頻度制限）
  - ストアからの記録再開（on_initialized）
  - 記録終了（end_recording は冪等、ストアの finished 通知でも発火）

with 文で使用すると、ブロックを抜けたときに必ず記録を終了する。
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import time
from typing import Any, Callable, Optional, Protocol, Union

from bs4 import Tag

from ..actions.classifier import (
    ClassifierState,
    Decision,
    EventKind,
    Outcome,
    RawEvent,
    classify,
)
from ..actions.log import ActionLog
from ..selectors.dom import (
    OVERLAY_ROOT_ID,
    has_only_text,
    is_element_from_overlay,
    normalize_target,
)
from ..selectors.ranking import best_selector
from ..selectors.resolver import DEFAULT_TEST_ID_ATTRIBUTES, resolve
from ..types import ScriptType, SelectorSet
from .store import (
    RECORDING_KEY,
    RECORDING_STATE_KEY,
    STATE_ACTIVE,
    STATE_FINISHED,
    Changes,
    InMemoryStore,
)
from .throttle import Throttle

logger = logging.getLogger(__name__)

# マウス移動（セレクタプレビュー用）のリスナー種別
PREVIEW_KIND = "mousemove"

EventHandler = Callable[[Any], None]
# プレビュー対象要素を遅延取得する関数（スロットル後にのみ DOM を解析する）
TargetFactory = Callable[[], Optional[Tag]]
ActionCallback = Callable[[Any, tuple[Any, ...]], None]
PreviewCallback = Callable[[Optional[str], SelectorSet], None]


class EventSource(Protocol):
    """生イベントを配信するイベントソース。"""

    def add_listener(self, kind: str, handler: EventHandler) -> None:
        ...

    def remove_listener(self, kind: str, handler: EventHandler) -> None:
        ...


class SessionState(enum.Enum):
    """記録セッションの状態。"""

    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"
    FINISHED = "finished"


# ---------------------------------------------------------------------------
# RecordingSession 本体
# ---------------------------------------------------------------------------

class RecordingSession:
    """1回の記録を管理するセッション。"""

    def __init__(
        self,
        source: EventSource,
        store: Optional[InMemoryStore] = None,
        *,
        script_type: Union[ScriptType, str] = ScriptType.PLAYWRIGHT,
        overlay_id: str = OVERLAY_ROOT_ID,
        test_id_attributes: tuple[str, ...] = DEFAULT_TEST_ID_ATTRIBUTES,
        throttle_interval: float = 0.1,
        on_action: Optional[ActionCallback] = None,
        on_initialized: Optional[ActionCallback] = None,
        on_preview: Optional[PreviewCallback] = None,
        on_end: Optional[Callable[[ActionLog], None]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """RecordingSession を初期化する。

        Args:
            source: 生イベントのイベントソース
            store: 記録状態を共有するストア（None でプロセス内ストア）
            script_type: プレビューに使用するスクリプト方言
            overlay_id: 記録 UI のルート要素 ID（この配下の操作は記録しない）
            test_id_attributes: テスト ID として扱う属性名
            throttle_interval: セレクタプレビューの最小間隔（秒）
            on_action: ログ変更時に (アクション, ログ全体) で呼ばれる
            on_initialized: 記録再開時に (直近の操作, ログ全体) で1回呼ばれる
            on_preview: プレビュー時に (最適セレクタ, セレクタ候補) で呼ばれる
            on_end: 記録終了時に封印済みログで呼ばれる
            clock: 現在時刻（秒）を返す関数
        """
        self._source = source
        self._store = store if store is not None else InMemoryStore()
        self._script_type = ScriptType(script_type)
        self._overlay_id = overlay_id
        self._test_id_attributes = tuple(test_id_attributes)
        self._on_action = on_action
        self._on_initialized = on_initialized
        self._on_preview = on_preview
        self._on_end = on_end
        self._clock = clock

        self._state = SessionState.IDLE
        self._log = ActionLog()
        self._classifier = self._new_classifier_state(None)
        self._throttle = Throttle(self._deliver_preview, interval=throttle_interval, clock=clock)
        self._handlers: dict[str, EventHandler] = {}
        self._last_timestamp = 0

    # -------------------------------------------------------------------
    # 参照
    # -------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """現在のセッション状態を返す。"""
        return self._state

    @property
    def log(self) -> ActionLog:
        """アクションログを返す。"""
        return self._log

    @property
    def store(self) -> InMemoryStore:
        return self._store

    @property
    def is_recording(self) -> bool:
        """イベントを記録中かどうかを返す。"""
        return self._state == SessionState.RECORDING

    @property
    def is_finished(self) -> bool:
        return self._state == SessionState.FINISHED

    # -------------------------------------------------------------------
    # ライフサイクル
    # -------------------------------------------------------------------

    def start(self, resume: bool = True) -> None:
        """記録を開始する。

        resume が True で、ストアに記録中（active）のログが残っている場合は
        そのログから記録を再開し、on_initialized を1回呼ぶ。

        Raises:
            RuntimeError: 既に開始済みの場合
        """
        if self._state != SessionState.IDLE:
            raise RuntimeError(f"記録セッションは開始済みです（状態: {self._state.value}）")

        resumed = resume and self._store.get(RECORDING_STATE_KEY) == STATE_ACTIVE
        if resumed:
            self._log = ActionLog.from_list(self._store.get(RECORDING_KEY))
            self._classifier = self._new_classifier_state(self._log.tail)
            self._last_timestamp = max((a.timestamp for a in self._log), default=0)
        else:
            self._store.set(RECORDING_KEY, [])
            self._store.set(RECORDING_STATE_KEY, STATE_ACTIVE)

        self._register()
        self._state = SessionState.RECORDING

        if resumed:
            logger.info("記録を再開しました（%d 件）", len(self._log))
            if self._on_initialized is not None:
                self._on_initialized(self._log.last_meaningful(), self._log.actions)
        else:
            logger.info("記録を開始しました")

    def pause(self, paused: bool = True) -> None:
        """記録を一時停止（paused=True）または再開（paused=False）する。"""
        if self._state == SessionState.RECORDING and paused:
            self._state = SessionState.PAUSED
            logger.info("記録を一時停止しました")
        elif self._state == SessionState.PAUSED and not paused:
            self._state = SessionState.RECORDING
            logger.info("記録を再開しました")

    def deregister(self) -> None:
        """全リスナーを解除し、保留中のプレビューを破棄する。2回目以降は何もしない。"""
        self._throttle.cancel()
        if not self._handlers:
            return
        for kind, handler in self._handlers.items():
            self._source.remove_listener(kind, handler)
        self._handlers = {}
        self._store.remove_listener(self._on_store_changed)
        logger.debug("イベントリスナーを解除しました")

    def end_recording(self) -> None:
        """記録を終了し、ログを封印する。2回目以降の呼び出しは何もしない。

        開始済みのセッションでは、終了時点のログをストアに書き戻す。
        """
        if self._state == SessionState.FINISHED:
            return
        started = self._state != SessionState.IDLE
        self.deregister()
        self._state = SessionState.FINISHED
        self._log.seal()
        if started:
            self._store.set(RECORDING_KEY, self._log.to_list(reveal_secrets=True))
        self._store.set(RECORDING_STATE_KEY, STATE_FINISHED)
        logger.info("記録を終了しました（%d 件）", len(self._log))
        if self._on_end is not None:
            self._on_end(self._log)

    def poll(self) -> None:
        """保留中のプレビューを配信し、ストアの外部変更を取り込む。

        記録ループから定期的に呼び出す。
        """
        if self._state == SessionState.FINISHED:
            return
        self._throttle.poll()
        self._store.poll()

    def __enter__(self) -> "RecordingSession":
        if self._state == SessionState.IDLE:
            self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.end_recording()

    # -------------------------------------------------------------------
    # イベント処理
    # -------------------------------------------------------------------

    def handle_event(self, event: RawEvent) -> Outcome:
        """生イベントを分類し、ログに反映する。

        タイムスタンプはイベントソースの値ではなくセッションの時計で付け直す
        （ログ内で減少しない）。

        Returns:
            分類結果（記録中でない場合は IGNORE）
        """
        if self._state != SessionState.RECORDING:
            logger.debug("記録中でないためイベントを無視しました: %s", event.kind)
            return Outcome(decision=Decision.IGNORE, reason=f"状態: {self._state.value}")

        event = dataclasses.replace(event, timestamp=self._stamp())
        self._classifier, outcome = classify(self._classifier, event)
        if self._log.apply(outcome):
            self._store.set(RECORDING_KEY, self._log.to_list(reveal_secrets=True))
            if self._on_action is not None:
                self._on_action(outcome.action, self._log.actions)
        return outcome

    def on_full_screenshot(self) -> Outcome:
        """記録 UI からのフルページスクリーンショット要求を記録する。"""
        return self.handle_event(
            RawEvent(kind=EventKind.FULL_SCREENSHOT)
        )

    def on_await_text(self, text: str) -> Outcome:
        """記録 UI からのテキスト待機要求を記録する。"""
        return self.handle_event(
            RawEvent(kind=EventKind.AWAIT_TEXT, text=text)
        )

    def preview(self, target: TargetFactory) -> None:
        """マウス移動に追従したセレクタプレビューを要求する（頻度制限あり）。"""
        if self._state != SessionState.RECORDING or self._on_preview is None:
            return
        self._throttle(target)

    # -------------------------------------------------------------------
    # 内部処理
    # -------------------------------------------------------------------

    def _register(self) -> None:
        for kind in EventKind:
            self._handlers[kind.value] = self.handle_event
        self._handlers[PREVIEW_KIND] = self.preview
        for kind, handler in self._handlers.items():
            self._source.add_listener(kind, handler)
        self._store.add_listener(self._on_store_changed)

    def _on_store_changed(self, changes: Changes) -> None:
        change = changes.get(RECORDING_STATE_KEY)
        if change is None:
            return
        old, new = change
        if new == STATE_FINISHED and old != new:
            logger.info("ストアから記録終了の通知を受け取りました")
            self.end_recording()

    def _deliver_preview(self, target: TargetFactory) -> None:
        if self._state != SessionState.RECORDING or self._on_preview is None:
            return
        element = normalize_target(target())
        if element is None or is_element_from_overlay(element, self._overlay_id):
            return
        selectors = resolve(element, test_id_attributes=self._test_id_attributes)
        if not selectors:
            return
        best = best_selector(
            selectors, self._script_type, has_only_text=has_only_text(element),
        )
        self._on_preview(best, selectors)

    def _new_classifier_state(self, tail: Optional[Any]) -> ClassifierState:
        return ClassifierState(
            tail=tail,
            overlay_id=self._overlay_id,
            test_id_attributes=self._test_id_attributes,
        )

    def _stamp(self) -> int:
        self._last_timestamp = max(int(self._clock() * 1000), self._last_timestamp)
        return self._last_timestamp
