"""
レコーダー設定 — 設定ファイル・環境変数・CLI 引数からの設定読み込み

CLI 引数 > 環境変数 > 設定ファイル（replaykit.yaml）> デフォルト値
の優先順位で適用される。不正な値は警告を出して無視し、下位の値を維持する。

環境変数一覧:
  REPLAYKIT_SCRIPT_TYPE       : 生成するスクリプト方言（デフォルト: playwright）
  REPLAYKIT_OVERLAY_ID        : 記録 UI のルート要素 ID（デフォルト: overlay-controls）
  REPLAYKIT_THROTTLE_MS       : セレクタプレビューの最小間隔（デフォルト: 100）
  REPLAYKIT_TEST_ID_ATTRIBUTES: テスト ID 属性名（カンマ区切り）
  REPLAYKIT_STORE             : 記録状態ストアのパス（デフォルト: .replaykit/store.yaml）
  REPLAYKIT_HEADED            : ブラウザ表示モード（true/false, デフォルト: true）
  REPLAYKIT_VIEWPORT          : ビューポートサイズ（WIDTHxHEIGHT, デフォルト: 1280x720）
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from ruamel.yaml import YAML

from .selectors.dom import OVERLAY_ROOT_ID
from .selectors.resolver import DEFAULT_TEST_ID_ATTRIBUTES
from .types import ScriptType

logger = logging.getLogger(__name__)

# プロジェクト設定ファイル名
DEFAULT_CONFIG_FILE = "replaykit.yaml"

# ---------------------------------------------------------------------------
# 環境変数キー定数
# ---------------------------------------------------------------------------

_ENV_SCRIPT_TYPE = "REPLAYKIT_SCRIPT_TYPE"
_ENV_OVERLAY_ID = "REPLAYKIT_OVERLAY_ID"
_ENV_THROTTLE_MS = "REPLAYKIT_THROTTLE_MS"
_ENV_TEST_ID_ATTRIBUTES = "REPLAYKIT_TEST_ID_ATTRIBUTES"
_ENV_STORE = "REPLAYKIT_STORE"
_ENV_HEADED = "REPLAYKIT_HEADED"
_ENV_VIEWPORT = "REPLAYKIT_VIEWPORT"


# ---------------------------------------------------------------------------
# 設定データクラス
# ---------------------------------------------------------------------------

@dataclass
class RecorderConfig:
    """レコーダーの実行時設定。

    Attributes:
        script_type: 生成するスクリプト方言
        overlay_id: 記録 UI のルート要素 ID
        throttle_ms: セレクタプレビューの最小間隔（ミリ秒）
        test_id_attributes: テスト ID として扱う属性名（優先順）
        store_path: 記録状態ストアのパス
        headed: ブラウザ表示モード（True=表示, False=ヘッドレス）
        channel: ブラウザチャンネル（chromium / chrome / msedge）
        viewport_width: ビューポート幅
        viewport_height: ビューポート高さ
    """

    script_type: ScriptType = ScriptType.PLAYWRIGHT
    overlay_id: str = OVERLAY_ROOT_ID
    throttle_ms: int = 100
    test_id_attributes: tuple[str, ...] = DEFAULT_TEST_ID_ATTRIBUTES
    store_path: str = ".replaykit/store.yaml"
    headed: bool = True
    channel: str = "chromium"
    viewport_width: int = 1280
    viewport_height: int = 720

    @property
    def throttle_interval(self) -> float:
        """セレクタプレビューの最小間隔（秒）を返す。"""
        return self.throttle_ms / 1000

    @property
    def viewport(self) -> tuple[int, int]:
        return (self.viewport_width, self.viewport_height)


# ---------------------------------------------------------------------------
# 値の変換
# ---------------------------------------------------------------------------

def _parse_bool(value: Any) -> bool:
    """文字列を bool に変換する。

    Args:
        value: "true", "1", "yes" → True、それ以外 → False

    Returns:
        変換結果
    """
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("true", "1", "yes")


def parse_viewport(value: str) -> tuple[int, int]:
    """WIDTHxHEIGHT 形式の文字列をビューポートサイズに変換する。

    Raises:
        ValueError: 形式が不正な場合
    """
    try:
        w, h = str(value).lower().split("x")
        width, height = int(w), int(h)
    except ValueError:
        raise ValueError(f"ビューポートの形式が不正です: {value} (WIDTHxHEIGHT)") from None
    if width <= 0 or height <= 0:
        raise ValueError(f"ビューポートのサイズは正の整数で指定してください: {value}")
    return width, height


def _parse_attributes(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = [str(v) for v in value]
    attributes = tuple(item.strip() for item in items if item.strip())
    if not attributes:
        raise ValueError("テスト ID 属性名が空です")
    return attributes


def _apply_value(config: RecorderConfig, key: str, value: Any, source: str) -> None:
    """1つの設定値を検証して適用する。不正な値は警告して無視する。"""
    try:
        if key == "script_type":
            config.script_type = ScriptType(value)
        elif key == "overlay_id":
            if not str(value):
                raise ValueError("空の ID は指定できません")
            config.overlay_id = str(value)
        elif key == "throttle_ms":
            throttle_ms = int(value)
            if throttle_ms < 0:
                raise ValueError("0 以上を指定してください")
            config.throttle_ms = throttle_ms
        elif key == "test_id_attributes":
            config.test_id_attributes = _parse_attributes(value)
        elif key == "store":
            config.store_path = str(value)
        elif key == "headed":
            config.headed = _parse_bool(value)
        elif key == "channel":
            config.channel = str(value)
        elif key == "viewport":
            config.viewport_width, config.viewport_height = parse_viewport(value)
        else:
            logger.warning("未知の設定項目を無視します: %s (%s)", key, source)
    except (TypeError, ValueError) as exc:
        logger.warning("%s の値が不正です: %s=%r (%s)", source, key, value, exc)


# ---------------------------------------------------------------------------
# 読み込み
# ---------------------------------------------------------------------------

def load_config_file(path: Path) -> dict[str, Any]:
    """設定ファイル（YAML）を読み込む。

    ファイルが存在しない場合は空の辞書を返す。

    Raises:
        ValueError: トップレベルがマッピングでない場合
    """
    path = Path(path)
    if not path.exists():
        return {}
    yaml = YAML(typ="safe")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"設定ファイルの形式が不正です: {path}")
    return dict(data)


def apply_file_settings(config: RecorderConfig, data: Mapping[str, Any]) -> RecorderConfig:
    """設定ファイルの内容を適用する。"""
    for key, value in data.items():
        _apply_value(config, str(key), value, DEFAULT_CONFIG_FILE)
    return config


def apply_env(config: RecorderConfig, env: Optional[Mapping[str, str]] = None) -> RecorderConfig:
    """環境変数を適用する。設定されていない環境変数は無視する。"""
    env = os.environ if env is None else env
    mapping = {
        _ENV_SCRIPT_TYPE: "script_type",
        _ENV_OVERLAY_ID: "overlay_id",
        _ENV_THROTTLE_MS: "throttle_ms",
        _ENV_TEST_ID_ATTRIBUTES: "test_id_attributes",
        _ENV_STORE: "store",
        _ENV_HEADED: "headed",
        _ENV_VIEWPORT: "viewport",
    }
    for env_key, key in mapping.items():
        if env_key in env:
            _apply_value(config, key, env[env_key], env_key)
    return config


def apply_overrides(config: RecorderConfig, **overrides: Any) -> RecorderConfig:
    """CLI 引数を適用する。None の引数は指定なしとして無視する。"""
    for key, value in overrides.items():
        if value is not None:
            _apply_value(config, key, value, f"--{key.replace('_', '-')}")
    return config


def load_config(
    path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> RecorderConfig:
    """設定ファイルと環境変数から RecorderConfig を生成する。

    Args:
        path: 設定ファイルのパス（None でカレントディレクトリの replaykit.yaml）
        env: 環境変数（None で os.environ）

    Returns:
        読み込んだ設定
    """
    config = RecorderConfig()
    apply_file_settings(config, load_config_file(Path(path or DEFAULT_CONFIG_FILE)))
    apply_env(config, env)
    logger.debug("設定を読み込みました: %s", config)
    return config
