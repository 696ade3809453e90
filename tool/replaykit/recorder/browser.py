"""
BrowserCapture — Playwright によるブラウザ操作キャプチャ

Playwright sync API でブラウザを起動し、ページに記録用 JavaScript
（injected.js）を注入してユーザー操作を捕捉する。
ページ側から送られたペイロードは、送信時点の DOM スナップショット（outerHTML）と
対象要素のパスから BeautifulSoup 上の要素を復元し、生イベントとして
登録済みリスナー（RecordingSession）に配信する。

主な機能:
  - ブラウザ起動とページへのスクリプト注入（ページ遷移時に再注入）
  - ペイロード → RawEvent 変換（event_from_payload）
  - 記録 UI（オーバーレイ）からの操作（終了・スクリーンショット等）の転送
  - 記録ループ（ブラウザが閉じられるか記録が終了するまで）
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from bs4 import Tag

from ..actions.classifier import EventKind, RawEvent
from ..selectors.dom import (
    OVERLAY_ROOT_ID,
    element_by_path,
    is_element_from_overlay,
    parse_document,
    remove_overlay,
)
from .session import PREVIEW_KIND, EventHandler

if TYPE_CHECKING:
    from .session import RecordingSession

logger = logging.getLogger(__name__)

# 注入スクリプトのパス
_INJECTED_JS_PATH = Path(__file__).parent / "injected.js"

# ページ側に公開するコールバック関数名
BINDING_NAME = "__replaykit_on_event"

# 記録 UI からの操作種別
CONTROL_KIND = "control"


# ---------------------------------------------------------------------------
# ペイロード変換
# ---------------------------------------------------------------------------

def target_from_payload(
    payload: dict[str, Any], overlay_id: str = OVERLAY_ROOT_ID,
) -> Optional[Tag]:
    """ペイロードの DOM スナップショットから対象要素を復元する。

    要素パスはオーバーレイを含む DOM 上のものなので、要素を特定してから
    オーバーレイを取り除く。対象がオーバーレイ配下の場合は取り除かずに返す。

    Args:
        payload: ページ側から送信されたペイロード
        overlay_id: 記録 UI のルート要素 ID

    Returns:
        対象要素。html / path がない場合やパスが一致しない場合は None
    """
    html = payload.get("html")
    path = payload.get("path")
    if not html or path is None:
        return None
    document = parse_document(html)
    element = element_by_path(document, [int(i) for i in path])
    if element is not None and not is_element_from_overlay(element, overlay_id):
        remove_overlay(document, overlay_id)
    return element


def event_from_payload(
    payload: dict[str, Any], overlay_id: str = OVERLAY_ROOT_ID,
) -> Optional[RawEvent]:
    """ページ側のペイロードを RawEvent に変換する。

    Returns:
        RawEvent。未知の種別の場合は None
    """
    try:
        kind = EventKind(payload.get("kind"))
    except ValueError:
        logger.debug("未知のイベント種別: %s", payload.get("kind"))
        return None

    return RawEvent(
        kind=kind,
        timestamp=int(payload.get("timestamp") or 0),
        target=target_from_payload(payload, overlay_id),
        value=payload.get("value"),
        key=payload.get("key"),
        url=payload.get("url"),
        width=int(payload.get("width") or 0),
        height=int(payload.get("height") or 0),
        delta_x=float(payload.get("deltaX") or 0),
        delta_y=float(payload.get("deltaY") or 0),
        source=_point(payload.get("source")),
        destination=_point(payload.get("destination")),
        text=payload.get("text"),
    )


def _point(value: Any) -> Optional[tuple[float, float]]:
    if not value or len(value) != 2:
        return None
    return (float(value[0]), float(value[1]))


# ---------------------------------------------------------------------------
# BrowserCapture 本体
# ---------------------------------------------------------------------------

class BrowserCapture:
    """Playwright ブラウザを対象とするイベントソース。

    使用例::

        capture = BrowserCapture(channel="chrome")
        session = RecordingSession(capture, store)
        capture.run("https://example.com", session)
    """

    def __init__(
        self,
        overlay_id: str = OVERLAY_ROOT_ID,
        channel: str = "chromium",
        viewport: tuple[int, int] = (1280, 720),
        headed: bool = True,
        poll_interval_ms: int = 50,
    ) -> None:
        """BrowserCapture を初期化する。

        Args:
            overlay_id: 記録 UI のルート要素 ID
            channel: ブラウザチャンネル（chromium / chrome / msedge）
            viewport: ビューポートサイズ (幅, 高さ)
            headed: True でブラウザウィンドウを表示
            poll_interval_ms: 記録ループのポーリング間隔（ミリ秒）
        """
        self._overlay_id = overlay_id
        self._channel = channel
        self._viewport = viewport
        self._headed = headed
        self._poll_interval_ms = poll_interval_ms
        self._listeners: dict[str, list[EventHandler]] = {}
        self._session: Optional[RecordingSession] = None
        self._injected_js = _INJECTED_JS_PATH.read_text(encoding="utf-8")
        self._pages: set[int] = set()
        self._current_page: Any = None

    # -------------------------------------------------------------------
    # EventSource
    # -------------------------------------------------------------------

    def add_listener(self, kind: str, handler: EventHandler) -> None:
        handlers = self._listeners.setdefault(kind, [])
        if handler not in handlers:
            handlers.append(handler)

    def remove_listener(self, kind: str, handler: EventHandler) -> None:
        handlers = self._listeners.get(kind, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self) -> int:
        """登録済みリスナーの総数を返す。"""
        return sum(len(handlers) for handlers in self._listeners.values())

    # -------------------------------------------------------------------
    # 記録ループ
    # -------------------------------------------------------------------

    def run(self, url: str, session: RecordingSession, resume: bool = False) -> None:
        """ブラウザを起動し、記録が終了するまで操作を捕捉する。

        ブラウザ（最初のページ）が閉じられるか、記録 UI または
        ストア経由で記録が終了されると戻る。

        Args:
            url: 記録開始 URL
            session: イベントを受け取る記録セッション
            resume: True でストアに残る記録から再開する
        """
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import sync_playwright

        self.attach(session)

        with sync_playwright() as pw:
            launch_kwargs: dict = {"headless": not self._headed}
            if self._channel != "chromium":
                launch_kwargs["channel"] = self._channel

            browser = pw.chromium.launch(**launch_kwargs)
            context = browser.new_context(
                viewport={"width": self._viewport[0], "height": self._viewport[1]},
            )
            # 新しいページが作成されるたびにスクリプトを注入
            context.on("page", self.setup_page)

            page = context.new_page()
            self.setup_page(page)
            self._current_page = page

            # 開始・遷移に失敗した場合も記録を終了する
            try:
                session.start(resume=resume)
                page.goto(url)
                logger.info("記録開始: %s", url)
                logger.info("操作を記録中... ブラウザを閉じると記録が終了します。")
                try:
                    while not session.is_finished and not page.is_closed():
                        session.poll()
                        page.wait_for_timeout(self._poll_interval_ms)
                except PlaywrightError as exc:
                    # 記録中にページが閉じられた
                    logger.debug("記録ループを終了します: %s", exc)
            finally:
                session.end_recording()
                self.attach(None)
                self._current_page = None
                try:
                    browser.close()
                except PlaywrightError as exc:
                    logger.warning("ブラウザの終了中にエラーが発生しました: %s", exc)

    def attach(self, session: Optional[RecordingSession]) -> None:
        """記録 UI からの操作を転送する記録セッションを設定する。"""
        self._session = session

    def setup_page(self, page: Any) -> None:
        """ページにコールバック関数と記録用スクリプトを設定する。

        Args:
            page: Playwright の Page オブジェクト
        """
        from playwright.sync_api import Error as PlaywrightError

        # context の page イベントと明示呼び出しの二重設定を防ぐ
        if id(page) in self._pages:
            return
        self._pages.add(id(page))

        try:
            page.expose_function(BINDING_NAME, self.on_payload)
        except PlaywrightError as exc:
            logger.debug("コールバック関数は公開済みです: %s", exc)

        # ページ遷移時に load を記録し、スクリプトを再注入
        page.on("load", lambda loaded: self._on_load(loaded))

    def show_preview(self, selector: Optional[str], selectors: Any = None) -> None:
        """記録 UI にセレクタプレビューを表示する。

        RecordingSession の on_preview コールバックとして使用する。
        """
        from playwright.sync_api import Error as PlaywrightError

        page = self._current_page
        if page is None or page.is_closed():
            return
        try:
            page.evaluate(
                "(text) => window.__replaykitShowPreview && window.__replaykitShowPreview(text)",
                selector or "",
            )
        except PlaywrightError as exc:
            logger.debug("プレビューを表示できません: %s", exc)

    def _on_load(self, page: Any) -> None:
        self._current_page = page
        self._emit(
            EventKind.LOAD.value,
            RawEvent(kind=EventKind.LOAD, url=page.url),
        )
        self._inject_script(page)

    def _inject_script(self, page: Any) -> None:
        from playwright.sync_api import Error as PlaywrightError

        try:
            page.evaluate(self._injected_js, self._overlay_id)
        except PlaywrightError as exc:
            logger.debug("スクリプト注入をスキップ: %s", exc)

    # -------------------------------------------------------------------
    # ペイロード処理
    # -------------------------------------------------------------------

    def on_payload(self, data_json: str) -> None:
        """ページ側から送信されたペイロードを処理する。

        Args:
            data_json: JSON 形式のペイロード
        """
        try:
            payload = json.loads(data_json)
        except json.JSONDecodeError:
            logger.warning("不正なペイロード: %s", data_json[:200])
            return
        if not isinstance(payload, dict):
            logger.warning("不正なペイロード: %s", data_json[:200])
            return

        kind = payload.get("kind")
        if kind == CONTROL_KIND:
            self._on_control(payload)
            return
        if kind == PREVIEW_KIND:
            # DOM の解析はスロットル通過後にのみ行う
            def factory() -> Optional[Tag]:
                return target_from_payload(payload, self._overlay_id)

            self._emit(PREVIEW_KIND, factory)
            return

        event = event_from_payload(payload, self._overlay_id)
        if event is not None:
            self._emit(event.kind.value, event)

    def _on_control(self, payload: dict[str, Any]) -> None:
        session = self._session
        if session is None:
            return
        command = payload.get("command")
        logger.debug("記録 UI の操作: %s", command)
        if command == "end":
            session.end_recording()
        elif command == "screenshot":
            session.on_full_screenshot()
        elif command == "awaitText":
            session.on_await_text(payload.get("text") or "")
        elif command == "pause":
            session.pause(True)
        elif command == "resume":
            session.pause(False)
        else:
            logger.warning("未知の記録 UI 操作: %s", command)

    def _emit(self, kind: str, event: Any) -> None:
        for handler in list(self._listeners.get(kind, [])):
            handler(event)
