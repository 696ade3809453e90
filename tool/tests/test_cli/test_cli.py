"""
CLI テスト — typer.testing.CliRunner を使用した CLI コマンドのテスト

ブラウザは起動せず、アクションログ・HTML・ストアファイルを一時ディレクトリに
用意してコマンドの出力と終了コードを検証する。
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from conftest import SAMPLE_HTML
from replaykit.cli import app
from replaykit.recorder.store import RECORDING_STATE_KEY, STATE_ACTIVE, STATE_FINISHED, FileStore

runner = CliRunner()


# ---------------------------------------------------------------------------
# ヘルパー: サンプルのアクションログ
# ---------------------------------------------------------------------------

LOG_YAML = """\
- type: load
  url: https://x.test
- type: click
  tagName: BUTTON
  selectors:
    id: "#go"
    css: form > button
    fullCss: html > body > form > button
- type: input
  tagName: INPUT
  selectors:
    attr: input[name="password"]
    css: input
    fullCss: html > body > input
  value: s3cret
  isPassword: true
  inputType: password
"""


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch):
    """カレントディレクトリの replaykit.yaml や環境変数の影響を受けないようにする。"""
    monkeypatch.chdir(tmp_path)
    for key in ("REPLAYKIT_SCRIPT_TYPE", "REPLAYKIT_STORE", "REPLAYKIT_TEST_ID_ATTRIBUTES"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    path = tmp_path / "flow.yaml"
    path.write_text(LOG_YAML, encoding="utf-8")
    return path


# ===========================================================================
# generate コマンド
# ===========================================================================

class TestGenerateCommand:
    """generate コマンドのテスト。"""

    def test_generate_to_stdout(self, log_file):
        result = runner.invoke(app, ["generate", str(log_file), "--no-boilerplate"])
        assert result.exit_code == 0
        assert result.output.splitlines() == [
            "await page.goto('https://x.test');",
            "await page.click('#go');",
            "await page.fill('input[name=\"password\"]', 's3cret');",
        ]

    def test_generate_with_boilerplate(self, log_file):
        result = runner.invoke(app, ["generate", str(log_file), "-t", "puppeteer"])
        assert result.exit_code == 0
        assert "require('puppeteer')" in result.output
        assert "await page.click('#go');" in result.output

    def test_generate_to_file(self, log_file, tmp_path):
        output = tmp_path / "out" / "flow.cy.js"
        result = runner.invoke(
            app, ["generate", str(log_file), "--script-type", "cypress", "-o", str(output)],
        )
        assert result.exit_code == 0
        assert "スクリプトを出力しました" in result.output
        assert "cy.get('#go').click();" in output.read_text(encoding="utf-8")

    def test_script_type_from_config_file(self, log_file, isolated_cwd):
        (isolated_cwd / "replaykit.yaml").write_text("script_type: cypress\n", encoding="utf-8")
        result = runner.invoke(app, ["generate", str(log_file), "--no-boilerplate"])
        assert result.exit_code == 0
        assert result.output.startswith("cy.visit('https://x.test');")

    def test_store_file_is_accepted(self, tmp_path):
        """ストアファイル形式（recording キー）も読み込めること。"""
        path = tmp_path / "store.yaml"
        path.write_text(
            "recordingState: finished\nrecording:\n  - type: load\n    url: https://x.test\n",
            encoding="utf-8",
        )
        result = runner.invoke(app, ["generate", str(path), "--no-boilerplate"])
        assert result.exit_code == 0
        assert result.output.strip() == "await page.goto('https://x.test');"

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["generate", str(tmp_path / "none.yaml")])
        assert result.exit_code == 1
        assert "エラー" in result.output

    def test_invalid_log(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- type: teleport\n", encoding="utf-8")
        result = runner.invoke(app, ["generate", str(path)])
        assert result.exit_code == 1

    def test_unknown_script_type(self, log_file):
        """不正な方言は警告して無視し、既定の方言で生成すること。"""
        result = runner.invoke(app, ["generate", str(log_file), "-t", "selenium", "--no-boilerplate"])
        assert result.exit_code == 0
        assert "await page.goto('https://x.test');" in result.output


# ===========================================================================
# actions コマンド
# ===========================================================================

class TestActionsCommand:
    """actions コマンドのテスト。"""

    def test_lists_actions_with_masked_password(self, log_file):
        result = runner.invoke(app, ["actions", str(log_file)])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == '  1. Load "https://x.test"'
        assert lines[1] == "  2. Click on button #go"
        assert lines[2] == '  3. Fill "******" on input input[name="password"]'
        assert "s3cret" not in result.output

    def test_empty_log(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("[]\n", encoding="utf-8")
        result = runner.invoke(app, ["actions", str(path)])
        assert result.exit_code == 0
        assert "アクションがありません" in result.output


# ===========================================================================
# selectors コマンド
# ===========================================================================

class TestSelectorsCommand:
    """selectors コマンドのテスト。"""

    @pytest.fixture
    def html_file(self, tmp_path) -> Path:
        path = tmp_path / "page.html"
        path.write_text(SAMPLE_HTML, encoding="utf-8")
        return path

    def test_shows_candidates_and_best(self, html_file):
        result = runner.invoke(app, ["selectors", str(html_file), "#go"])
        assert result.exit_code == 0
        assert f"{'id':8s} #go" in result.output
        assert "最適セレクタ (playwright): #go" in result.output

    def test_text_selector_for_playwright(self, html_file):
        result = runner.invoke(app, ["selectors", str(html_file), "h1"])
        assert result.exit_code == 0
        assert 'text="Search"' in result.output

    def test_element_not_found(self, html_file):
        result = runner.invoke(app, ["selectors", str(html_file), "#missing"])
        assert result.exit_code == 1
        assert "要素が見つかりません" in result.output


# ===========================================================================
# stop / script-types コマンド
# ===========================================================================

class TestStopCommand:
    """stop コマンドのテスト。"""

    def test_notifies_finished(self, tmp_path):
        path = tmp_path / "store.yaml"
        FileStore(path).set(RECORDING_STATE_KEY, STATE_ACTIVE)

        result = runner.invoke(app, ["stop", "--store", str(path)])
        assert result.exit_code == 0
        assert "記録終了を通知しました" in result.output
        assert FileStore(path).get(RECORDING_STATE_KEY) == STATE_FINISHED

    def test_recorded_actions_are_kept(self, tmp_path):
        """stop は recordingState だけを更新すること。"""
        path = tmp_path / "store.yaml"
        recorder_side = FileStore(path)
        recorder_side.set(RECORDING_STATE_KEY, STATE_ACTIVE)
        recorder_side.set("recording", [{"type": "load", "url": "https://x.test"}])

        result = runner.invoke(app, ["stop", "--store", str(path)])
        assert result.exit_code == 0
        assert FileStore(path).get("recording") == [{"type": "load", "url": "https://x.test"}]

    def test_already_finished(self, tmp_path):
        path = tmp_path / "store.yaml"
        FileStore(path).set(RECORDING_STATE_KEY, STATE_FINISHED)
        result = runner.invoke(app, ["stop", "--store", str(path)])
        assert result.exit_code == 0
        assert "既に終了しています" in result.output


class TestScriptTypesCommand:

    def test_lists_dialects(self):
        result = runner.invoke(app, ["script-types"])
        assert result.exit_code == 0
        assert result.output.split() == [
            "playwright", "puppeteer", "cypress", "playwright-python",
        ]


# ===========================================================================
# record コマンド
# ===========================================================================

class TestRecordCommand:
    """record コマンドのテスト（ブラウザ起動はモックで代替）。"""

    def test_empty_recording(self, tmp_path):
        with patch("replaykit.recorder.browser.BrowserCapture.run") as run:
            result = runner.invoke(
                app, ["record", "https://x.test", "--store", str(tmp_path / "store.yaml")],
            )
        assert result.exit_code == 0
        run.assert_called_once()
        assert "操作が記録されませんでした" in result.output

    def test_recorded_actions_are_generated(self, tmp_path):
        """記録ループ中に届いたイベントからスクリプトが生成されること。"""
        def fake_run(self, url, session, resume=False):
            session.start(resume=resume)
            self.on_payload('{"kind": "load", "url": "%s"}' % url)
            session.on_full_screenshot()
            session.end_recording()

        output = tmp_path / "flow.spec.js"
        with patch("replaykit.recorder.browser.BrowserCapture.run", fake_run):
            result = runner.invoke(app, [
                "record", "https://x.test",
                "--store", str(tmp_path / "store.yaml"),
                "-o", str(output),
            ])
        assert result.exit_code == 0, result.output
        script = output.read_text(encoding="utf-8")
        assert "await page.goto('https://x.test');" in script
        assert "fullPage: true" in script
