"""
ActionLog — 記録セッションの追記専用アクションログ

記録順（= 再生順）に Action を保持する。
記録中は末尾への追加と末尾要素の差し替えのみを許し、
途中の要素の削除・並べ替えは行わない。記録終了時に封印（seal）され、
以降はコード生成や一覧表示のための読み取り専用データとなる。
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Optional

from .classifier import Decision, Outcome, last_meaningful_action
from .schema import dump_actions, load_actions

logger = logging.getLogger(__name__)


class ActionLogSealedError(RuntimeError):
    """封印済みのログを変更しようとした場合のエラー。"""


class ActionLog:
    """追記専用のアクションログ。"""

    def __init__(self, actions: Iterable[Any] = ()) -> None:
        """ActionLog を初期化する。

        Args:
            actions: 初期アクション（記録再開時に使用）
        """
        self._actions: list[Any] = list(actions)
        self._sealed = False

    # -------------------------------------------------------------------
    # 参照
    # -------------------------------------------------------------------

    @property
    def sealed(self) -> bool:
        """封印済みかどうかを返す。"""
        return self._sealed

    @property
    def actions(self) -> tuple[Any, ...]:
        """記録済みアクションのスナップショットを返す。"""
        return tuple(self._actions)

    @property
    def tail(self) -> Optional[Any]:
        """末尾のアクションを返す。空の場合は None。"""
        return self._actions[-1] if self._actions else None

    def last_meaningful(self) -> Optional[Any]:
        """load 以外の直近のアクションを返す。"""
        return last_meaningful_action(self._actions)

    def __iter__(self) -> Iterator[Any]:
        return iter(tuple(self._actions))

    def __len__(self) -> int:
        return len(self._actions)

    def __getitem__(self, index: int) -> Any:
        return self._actions[index]

    # -------------------------------------------------------------------
    # 変更
    # -------------------------------------------------------------------

    def append(self, action: Any) -> None:
        """末尾にアクションを追加する。"""
        self._ensure_writable()
        self._actions.append(action)

    def amend_tail(self, action: Any) -> None:
        """末尾のアクションを差し替える。

        Raises:
            IndexError: ログが空の場合
        """
        self._ensure_writable()
        if not self._actions:
            raise IndexError("空のログの末尾は差し替えられません")
        self._actions[-1] = action

    def apply(self, outcome: Outcome) -> bool:
        """分類結果をログに反映する。

        Returns:
            ログが変更された場合 True
        """
        if outcome.decision is Decision.APPEND:
            self.append(outcome.action)
            return True
        if outcome.decision is Decision.AMEND and self._actions:
            self.amend_tail(outcome.action)
            return True
        if outcome.decision is Decision.AMEND:
            # 再開直後などで末尾がない場合は追加として扱う
            self.append(outcome.action)
            return True
        return False

    def seal(self) -> None:
        """ログを封印する。2回目以降の呼び出しは何もしない。"""
        if self._sealed:
            return
        self._sealed = True
        logger.info("アクションログを封印しました（%d 件）", len(self._actions))

    def _ensure_writable(self) -> None:
        if self._sealed:
            raise ActionLogSealedError("封印済みのアクションログは変更できません")

    # -------------------------------------------------------------------
    # 永続化
    # -------------------------------------------------------------------

    def to_list(self, reveal_secrets: bool = False) -> list[dict[str, Any]]:
        """JSON 互換の辞書リストに変換する。

        Args:
            reveal_secrets: True の場合、パスワード値を平文で出力する
        """
        return dump_actions(self._actions, reveal_secrets=reveal_secrets)

    @classmethod
    def from_list(cls, data: Optional[list[Any]]) -> "ActionLog":
        """辞書リストから ActionLog を復元する。

        Raises:
            pydantic.ValidationError: 不正なアクションが含まれる場合
        """
        return cls(load_actions(data or []))
