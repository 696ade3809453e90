"""
RecorderConfig テスト — 設定ファイル・環境変数・CLI 引数からの設定読み込み

優先順位（CLI > 環境変数 > 設定ファイル > デフォルト）と
不正な値の扱いを検証する。
"""

from __future__ import annotations

from pathlib import Path

import pytest

from replaykit.config import (
    RecorderConfig,
    _parse_bool,
    apply_env,
    apply_overrides,
    load_config,
    load_config_file,
    parse_viewport,
)
from replaykit.types import ScriptType


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# デフォルト値
# ---------------------------------------------------------------------------

class TestDefaults:
    """RecorderConfig のデフォルト値テスト。"""

    def test_defaults(self):
        config = RecorderConfig()
        assert config.script_type is ScriptType.PLAYWRIGHT
        assert config.overlay_id == "overlay-controls"
        assert config.test_id_attributes[0] == "data-testid"
        assert config.headed is True
        assert config.viewport == (1280, 720)

    def test_throttle_interval_in_seconds(self):
        assert RecorderConfig(throttle_ms=250).throttle_interval == 0.25

    def test_missing_file_uses_defaults(self, tmp_dir):
        config = load_config(tmp_dir / "replaykit.yaml", env={})
        assert config == RecorderConfig()


# ---------------------------------------------------------------------------
# 値の変換
# ---------------------------------------------------------------------------

class TestParsers:
    """値変換ヘルパーのテスト。"""

    @pytest.mark.parametrize("value", ["true", "True", "1", "yes", True])
    def test_truthy_values(self, value):
        assert _parse_bool(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "", False])
    def test_falsy_values(self, value):
        assert _parse_bool(value) is False

    def test_parse_viewport(self):
        assert parse_viewport("1920x1080") == (1920, 1080)
        assert parse_viewport("800X600") == (800, 600)

    @pytest.mark.parametrize("value", ["1920", "axb", "0x100", "100x-1", "1x2x3"])
    def test_invalid_viewport(self, value):
        with pytest.raises(ValueError):
            parse_viewport(value)


# ---------------------------------------------------------------------------
# 設定ファイル
# ---------------------------------------------------------------------------

class TestConfigFile:
    """replaykit.yaml の読み込みテスト。"""

    def test_file_settings(self, tmp_dir):
        path = _write(tmp_dir / "replaykit.yaml", (
            "script_type: cypress\n"
            "throttle_ms: 50\n"
            "test_id_attributes: [data-qa, data-test]\n"
            "viewport: 1024x768\n"
            "headed: false\n"
        ))
        config = load_config(path, env={})
        assert config.script_type is ScriptType.CYPRESS
        assert config.throttle_ms == 50
        assert config.test_id_attributes == ("data-qa", "data-test")
        assert config.viewport == (1024, 768)
        assert config.headed is False

    def test_empty_file(self, tmp_dir):
        path = _write(tmp_dir / "replaykit.yaml", "")
        assert load_config_file(path) == {}

    def test_non_mapping_file_is_rejected(self, tmp_dir):
        path = _write(tmp_dir / "replaykit.yaml", "- a\n- b\n")
        with pytest.raises(ValueError):
            load_config_file(path)

    def test_invalid_values_are_ignored(self, tmp_dir, caplog):
        """不正な値や未知の項目は警告して無視すること。"""
        path = _write(tmp_dir / "replaykit.yaml", (
            "script_type: selenium\n"
            "throttle_ms: -5\n"
            "unknown_key: 1\n"
            "overlay_id: my-overlay\n"
        ))
        config = load_config(path, env={})
        assert config.script_type is ScriptType.PLAYWRIGHT
        assert config.throttle_ms == 100
        assert config.overlay_id == "my-overlay"
        assert "unknown_key" in caplog.text
        assert "script_type" in caplog.text


# ---------------------------------------------------------------------------
# 環境変数・CLI 引数
# ---------------------------------------------------------------------------

class TestPrecedence:
    """優先順位のテスト。"""

    def test_env_settings(self):
        config = apply_env(RecorderConfig(), {
            "REPLAYKIT_SCRIPT_TYPE": "puppeteer",
            "REPLAYKIT_TEST_ID_ATTRIBUTES": "data-qa, data-cy",
            "REPLAYKIT_HEADED": "false",
            "REPLAYKIT_STORE": "/tmp/store.yaml",
        })
        assert config.script_type is ScriptType.PUPPETEER
        assert config.test_id_attributes == ("data-qa", "data-cy")
        assert config.headed is False
        assert config.store_path == "/tmp/store.yaml"

    def test_env_overrides_file(self, tmp_dir):
        path = _write(tmp_dir / "replaykit.yaml", "script_type: cypress\nthrottle_ms: 50\n")
        config = load_config(path, env={"REPLAYKIT_SCRIPT_TYPE": "puppeteer"})
        assert config.script_type is ScriptType.PUPPETEER
        assert config.throttle_ms == 50

    def test_invalid_env_keeps_file_value(self, tmp_dir):
        path = _write(tmp_dir / "replaykit.yaml", "throttle_ms: 50\n")
        config = load_config(path, env={"REPLAYKIT_THROTTLE_MS": "fast"})
        assert config.throttle_ms == 50

    def test_overrides_win(self, tmp_dir):
        """CLI 引数が環境変数より優先されること。None は指定なしとして扱う。"""
        config = load_config(
            tmp_dir / "replaykit.yaml",
            env={"REPLAYKIT_SCRIPT_TYPE": "puppeteer", "REPLAYKIT_VIEWPORT": "800x600"},
        )
        apply_overrides(config, script_type="playwright-python", viewport=None)
        assert config.script_type is ScriptType.PLAYWRIGHT_PYTHON
        assert config.viewport == (800, 600)

    def test_empty_attributes_are_rejected(self):
        config = apply_overrides(RecorderConfig(), test_id_attributes=" , ")
        assert config.test_id_attributes == RecorderConfig().test_id_attributes
