"""
Throttle — 呼び出し頻度の制限（先頭 + 末尾呼び出し保証）

マウス移動に追従するセレクタプレビューのように、高頻度のイベントで
重い処理（セレクタ解決）を呼ぶ箇所に使用する。

  - 前回の実行から interval 秒以上経過していれば即座に実行する（先頭呼び出し）
  - 間隔内の呼び出しは最新の引数だけを保留し、poll() で間隔経過後に実行する
    （末尾呼び出し。最後に静止した位置を取りこぼさない）
  - cancel() で保留中の呼び出しを破棄する（記録終了後の配信を防ぐ）

タイマースレッドは使わず、記録ループから poll() を呼ぶ協調型のスケジューラとする。
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Throttle:
    """先頭・末尾呼び出しを保証するスロットル。"""

    def __init__(
        self,
        func: Callable[..., Any],
        interval: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Throttle を初期化する。

        Args:
            func: 頻度を制限する関数
            interval: 最小実行間隔（秒）
            clock: 現在時刻（秒）を返す関数
        """
        if interval < 0:
            raise ValueError(f"interval は 0 以上を指定してください: {interval}")
        self._func = func
        self._interval = interval
        self._clock = clock
        self._last_run: Optional[float] = None
        self._pending: Optional[tuple[tuple[Any, ...], dict[str, Any]]] = None
        self._cancelled = False

    @property
    def pending(self) -> bool:
        """保留中の末尾呼び出しがあるかどうかを返す。"""
        return self._pending is not None

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        if self._cancelled:
            return
        now = self._clock()
        if self._last_run is None or now - self._last_run >= self._interval:
            self._run(now, args, kwargs)
            return
        # 間隔内は最新の引数だけを保留する
        self._pending = (args, kwargs)

    def poll(self) -> bool:
        """間隔が経過していれば保留中の呼び出しを実行する。

        Returns:
            呼び出しを実行した場合 True
        """
        if self._cancelled or self._pending is None:
            return False
        now = self._clock()
        if self._last_run is not None and now - self._last_run < self._interval:
            return False
        args, kwargs = self._pending
        self._run(now, args, kwargs)
        return True

    def cancel(self) -> None:
        """保留中の呼び出しを破棄し、以降の呼び出しを無効にする。"""
        if self._pending is not None:
            logger.debug("保留中の呼び出しを破棄しました")
        self._pending = None
        self._cancelled = True

    def _run(self, now: float, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        self._pending = None
        self._last_run = now
        self._func(*args, **kwargs)
