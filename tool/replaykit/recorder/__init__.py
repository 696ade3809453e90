"""
recorder パッケージ — ブラウザ操作の記録

主な構成:
  - session: 記録セッション（RecordingSession）
  - throttle: セレクタプレビューの頻度制限（Throttle）
  - store: 記録状態の共有ストア（InMemoryStore / FileStore）
  - browser: Playwright によるキャプチャ（BrowserCapture）
"""

from __future__ import annotations

from .browser import BrowserCapture, event_from_payload
from .session import EventSource, RecordingSession, SessionState
from .store import FileStore, InMemoryStore
from .throttle import Throttle

__all__ = [
    "BrowserCapture",
    "EventSource",
    "FileStore",
    "InMemoryStore",
    "RecordingSession",
    "SessionState",
    "Throttle",
    "event_from_payload",
]
