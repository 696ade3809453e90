"""
テスト共通フィクスチャ・Hypothesis ストラテジー定義

全テストモジュールで共有する HTML 文書・アクション・イベントソースのフィクスチャと
データ生成器を提供する。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest
from hypothesis import strategies as st

from replaykit.actions.schema import (
    ClickAction,
    FullScreenshotAction,
    InputAction,
    LoadAction,
)
from replaykit.selectors.dom import parse_document


# ---------------------------------------------------------------------------
# サンプル HTML
# ---------------------------------------------------------------------------

SAMPLE_HTML = """\
<html>
  <head><title>Sample</title></head>
  <body>
    <header>
      <a href="/home"><span>Home</span></a>
      <a href="/about">About</a>
    </header>
    <main id="content">
      <h1>Search</h1>
      <form>
        <input data-testid="q" type="text" name="query">
        <input type="password" name="password">
        <input type="checkbox" name="remember">
        <select name="lang"><option>en</option><option>ja</option></select>
        <button id="go" type="submit">Go</button>
        <button type="button">Cancel</button>
      </form>
      <ul>
        <li>One</li>
        <li>Two</li>
        <li>Two</li>
      </ul>
      <div class="card"><p>First</p><p>Second</p></div>
    </main>
    <div id="overlay-controls">
      <button>End</button>
    </div>
  </body>
</html>
"""


@pytest.fixture
def document():
    """サンプル HTML を解析した文書。"""
    return parse_document(SAMPLE_HTML)


@pytest.fixture
def find(document) -> Callable[[str], Any]:
    """CSS セレクタで文書内の最初の要素を返す関数。"""

    def _find(css: str):
        element = document.select_one(css)
        assert element is not None, f"要素が見つかりません: {css}"
        return element

    return _find


# ---------------------------------------------------------------------------
# サンプルアクション
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_actions() -> list[Any]:
    """load → click → input → screenshot の最小フロー。"""
    return [
        LoadAction(url="https://x.test"),
        ClickAction(
            tagName="BUTTON",
            selectors={"id": "#go", "css": "button", "fullCss": "html > body > button"},
        ),
        InputAction(
            tagName="INPUT",
            selectors={"testId": '[data-testid="q"]', "css": "input", "fullCss": "html > body > input"},
            value="foo",
            inputType="text",
        ),
        FullScreenshotAction(),
    ]


# ---------------------------------------------------------------------------
# フェイクのイベントソース
# ---------------------------------------------------------------------------

class FakeEventSource:
    """テスト用のイベントソース。リスナーの登録状況を記録する。"""

    def __init__(self) -> None:
        self.listeners: dict[str, list[Callable[[Any], None]]] = {}

    def add_listener(self, kind: str, handler: Callable[[Any], None]) -> None:
        self.listeners.setdefault(kind, []).append(handler)

    def remove_listener(self, kind: str, handler: Callable[[Any], None]) -> None:
        self.listeners[kind].remove(handler)

    def emit(self, kind: str, event: Any) -> None:
        for handler in list(self.listeners.get(kind, [])):
            handler(event)

    def count(self) -> int:
        return sum(len(handlers) for handlers in self.listeners.values())


@pytest.fixture
def source() -> FakeEventSource:
    return FakeEventSource()


class FakeClock:
    """手動で進める時計（秒）。"""

    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """一時ディレクトリを提供する pytest フィクスチャ。"""
    return tmp_path


# ---------------------------------------------------------------------------
# Hypothesis ストラテジー
# ---------------------------------------------------------------------------

def make_identifier_strategy():
    """id / data-testid 属性値として使える識別子のストラテジー。"""
    return st.from_regex(r"[a-z][a-z0-9_-]{0,15}", fullmatch=True)


def make_text_strategy():
    """生成コードに埋め込む任意テキスト（引用符・改行・バックスラッシュを含む）。"""
    return st.text(
        alphabet=st.characters(
            whitelist_categories=("L", "N", "P", "Zs"),
            whitelist_characters="'\"\\\n{}",
        ),
        min_size=1,
        max_size=40,
    )


def make_input_values_strategy():
    """同一入力欄への連続入力値（1件以上）。"""
    return st.lists(st.text(max_size=20), min_size=1, max_size=8)
