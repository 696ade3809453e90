"""
actions パッケージ — 記録アクションのモデル・分類・ログ

主な構成:
  - schema: Action の Pydantic モデルと TypeAdapter
  - classifier: 生イベント → Action の分類と統合（classify）
  - log: 追記専用のアクションログ（ActionLog）
  - describe: 表示用サマリー（describe_action）
"""

from __future__ import annotations

from .classifier import (
    ClassifierState,
    Decision,
    EventKind,
    Outcome,
    RawEvent,
    classify,
    last_meaningful_action,
)
from .describe import describe_action
from .log import ActionLog, ActionLogSealedError
from .schema import ActionType, ScriptType

__all__ = [
    "ActionLog",
    "ActionLogSealedError",
    "ActionType",
    "ClassifierState",
    "Decision",
    "EventKind",
    "Outcome",
    "RawEvent",
    "ScriptType",
    "classify",
    "describe_action",
    "last_meaningful_action",
]
