"""
RecordingStore — 記録状態を共有するキー・バリューストア

記録中のアクションログと記録状態（recordingState）を、
記録セッションとは別の UI（CLI の stop コマンド等）から参照・変更できるように保持する。
値の変更はリスナーに通知され、記録終了（finished）の通知を受けた
セッションは記録を終了する。

主な構成:
  - InMemoryStore: プロセス内ストア（テスト・単一プロセス用）
  - FileStore: YAML ファイルに永続化するストア（プロセス間共有用）
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

logger = logging.getLogger(__name__)

# ストアのキー
RECORDING_KEY = "recording"
RECORDING_STATE_KEY = "recordingState"

# recordingState の値
STATE_ACTIVE = "active"
STATE_FINISHED = "finished"

# 変更通知: {キー: (旧値, 新値)}
Changes = dict[str, tuple[Any, Any]]
ChangeListener = Callable[[Changes], None]


class InMemoryStore:
    """プロセス内のキー・バリューストア。"""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})
        self._listeners: list[ChangeListener] = []

    def get(self, key: str, default: Any = None) -> Any:
        """値を取得する。"""
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """値を設定し、変更があればリスナーに通知する。"""
        old = self._data.get(key)
        self._data[key] = value
        self._after_set(key, old, value)

    def add_listener(self, listener: ChangeListener) -> None:
        """変更通知リスナーを登録する。"""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        """変更通知リスナーを解除する。未登録の場合は何もしない。"""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def poll(self) -> None:
        """外部からの変更を取り込む（InMemoryStore では何もしない）。"""

    def _after_set(self, key: str, old: Any, new: Any) -> None:
        if old != new:
            self._notify({key: (old, new)})

    def _notify(self, changes: Changes) -> None:
        # 値が変わっていない通知は送らない
        changes = {k: v for k, v in changes.items() if v[0] != v[1]}
        if not changes:
            return
        for listener in list(self._listeners):
            listener(changes)


class FileStore(InMemoryStore):
    """YAML ファイルに永続化するキー・バリューストア。

    set() は最新のファイル内容に対象キーだけを反映して書き出すため、
    他プロセスが書いた別のキーを上書きしない。poll() はファイルを再読み込みして
    他プロセスによる変更をリスナーに通知する。書き込みは一時ファイル経由で置き換える。
    """

    def __init__(self, path: Path) -> None:
        """FileStore を初期化する。

        Args:
            path: 保存先 YAML ファイルパス

        Raises:
            ValueError: ファイルの形式が不正な場合
        """
        super().__init__()
        self.path = Path(path)
        self._yaml = YAML()
        self._yaml.default_flow_style = False
        self._data = self._load()

    def set(self, key: str, value: Any) -> None:
        current = self._reload()
        external = {
            k: v for k, v in _diff(self._data, current).items() if k != key
        }
        old = self._data.get(key)
        current[key] = value
        self._data = current
        self._save()
        if old != value:
            external[key] = (old, value)
        self._notify(external)

    def poll(self) -> None:
        """ファイルを再読み込みし、変更されたキーをリスナーに通知する。"""
        current = self._reload()
        changes = _diff(self._data, current)
        self._data = current
        if changes:
            logger.debug("ストアの外部変更を検出しました: %s", sorted(changes))
            self._notify(changes)

    def _reload(self) -> dict[str, Any]:
        """ファイルを読み直す。読めない場合は警告してメモリ上の値を使う。"""
        try:
            return self._load()
        except (YAMLError, ValueError) as exc:
            logger.warning("ストアファイルを読み込めません: %s (%s)", self.path, exc)
            return dict(self._data)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = self._yaml.load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"ストアファイルの形式が不正です: {self.path}")
        return _plain(data)

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                self._yaml.dump(self._data, f)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def _diff(old: dict[str, Any], new: dict[str, Any]) -> Changes:
    """2つのマッピング間で値が変わったキーを返す。"""
    changes: Changes = {}
    for key in set(old) | set(new):
        if old.get(key) != new.get(key):
            changes[key] = (old.get(key), new.get(key))
    return changes


def _plain(value: Any) -> Any:
    """ruamel.yaml のコンテナ型を素の dict / list に変換する。"""
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
