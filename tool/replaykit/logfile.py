"""
アクションログファイルの読み込み

記録済みのアクションログ（ストアファイル等）を YAML ファイルから読み込む。
読み込みは次の2形式に対応する（JSON も YAML として読み込める）:
  - アクションのリスト
  - ストアファイル形式（recording キーにアクションのリストを持つマッピング）
"""

from __future__ import annotations

import logging
from pathlib import Path

from ruamel.yaml import YAML

from .actions.log import ActionLog
from .recorder.store import RECORDING_KEY

logger = logging.getLogger(__name__)


def read_log(path: Path) -> ActionLog:
    """ファイルからアクションログを読み込む。

    Args:
        path: アクションログファイル（YAML / JSON）

    Returns:
        封印済みのアクションログ

    Raises:
        FileNotFoundError: ファイルが存在しない場合
        ValueError: ファイルの形式が不正な場合
        pydantic.ValidationError: 不正なアクションが含まれる場合
    """
    path = Path(path)
    yaml = YAML(typ="safe")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.load(f)

    if isinstance(data, dict):
        data = data.get(RECORDING_KEY)
    if data is None:
        data = []
    if not isinstance(data, list):
        raise ValueError(f"アクションログの形式が不正です: {path}")

    log = ActionLog.from_list(data)
    log.seal()
    logger.debug("アクションログを読み込みました: %s（%d 件）", path, len(log))
    return log

