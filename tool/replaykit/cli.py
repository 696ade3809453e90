"""
CLI エントリポイント — Typer ベースのコマンドラインインターフェース

replaykit コマンドとして以下のサブコマンドを提供する:
  - record: ブラウザ操作の記録とスクリプト生成
  - generate: アクションログからスクリプト生成
  - actions: アクションログの一覧表示
  - selectors: HTML 要素のセレクタ候補表示
  - stop: 記録中のセッションを終了
  - script-types: 対応スクリプト方言の一覧
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .actions.describe import describe_action
from .codegen.generator import generate as generate_script
from .config import RecorderConfig, apply_overrides, load_config
from .logfile import read_log
from .recorder.store import RECORDING_STATE_KEY, STATE_FINISHED, FileStore
from .types import ScriptType

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Typer アプリ定義
# ---------------------------------------------------------------------------

app = typer.Typer(
    help=(
        "replaykit — ブラウザ操作を記録して自動化スクリプトを生成するツール\n\n"
        "基本の流れ:\n"
        "  1. replaykit record URL -o flow.spec.js   操作を記録（ブラウザが開きます）\n"
        "  2. replaykit generate LOG --script-type cypress  別の方言で再生成\n\n"
        "詳しくは各コマンドに --help を付けてください。"
    ),
    no_args_is_help=True,
)

_SCRIPT_TYPE_HELP = "スクリプト方言 (" + " / ".join(t.value for t in ScriptType) + ")"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="デバッグログを表示する"),
) -> None:
    """ログ出力を設定する。"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(**overrides: Optional[object]) -> RecorderConfig:
    return apply_overrides(load_config(), **overrides)


# ---------------------------------------------------------------------------
# record コマンド
# ---------------------------------------------------------------------------

@app.command()
def record(
    url: str = typer.Argument(..., help="記録対象の URL"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="生成スクリプトの出力先ファイルパス",
    ),
    script_type: Optional[str] = typer.Option(
        None, "--script-type", "-t", help=_SCRIPT_TYPE_HELP,
    ),
    channel: Optional[str] = typer.Option(
        None, "--channel", "-c",
        help="ブラウザチャンネル (chromium / chrome / msedge)",
    ),
    viewport: Optional[str] = typer.Option(
        None, "--viewport", help="ビューポートサイズ (WIDTHxHEIGHT)",
    ),
    store: Optional[Path] = typer.Option(
        None, "--store", help="記録状態ストアのパス",
    ),
    resume: bool = typer.Option(
        False, "--resume/--no-resume", help="ストアに残る記録中のログから再開する",
    ),
    headed: Optional[bool] = typer.Option(
        None, "--headed/--headless", help="ブラウザ表示モード（デフォルト: 表示）",
    ),
) -> None:
    """ブラウザ操作を記録し、自動化スクリプトを生成する。

    ブラウザを閉じるか、記録 UI の End ボタンまたは stop コマンドで
    記録が終了します。
    """
    from .recorder.browser import BrowserCapture
    from .recorder.session import RecordingSession

    try:
        config = _load_config(
            script_type=script_type,
            channel=channel,
            viewport=viewport,
            store=str(store) if store is not None else None,
            headed=headed,
        )

        capture = BrowserCapture(
            overlay_id=config.overlay_id,
            channel=config.channel,
            viewport=config.viewport,
            headed=config.headed,
        )

        def on_action(action: object, actions: tuple) -> None:
            typer.echo(f"  [{len(actions)}] {describe_action(action, config.script_type)}")

        def on_initialized(last_action: object, actions: tuple) -> None:
            summary = describe_action(last_action, config.script_type) if last_action else "なし"
            typer.echo(f"記録を再開しました（{len(actions)} 件, 直近の操作: {summary}）")

        session = RecordingSession(
            capture,
            FileStore(Path(config.store_path)),
            script_type=config.script_type,
            overlay_id=config.overlay_id,
            test_id_attributes=config.test_id_attributes,
            throttle_interval=config.throttle_interval,
            on_action=on_action,
            on_initialized=on_initialized,
            on_preview=capture.show_preview,
        )

        typer.echo(f"URL: {url}")
        typer.echo("ブラウザを閉じると記録が終了します。\n")
        capture.run(url, session, resume=resume)

        if len(session.log) == 0:
            typer.echo("操作が記録されませんでした。")
            return

        script = generate_script(
            session.log, include_boilerplate=True, script_type=config.script_type,
        )
        _write_or_echo(script, output)
    except typer.Exit:
        raise
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# generate コマンド
# ---------------------------------------------------------------------------

@app.command()
def generate(
    log_file: Path = typer.Argument(..., help="アクションログファイル（YAML / JSON / ストアファイル）"),
    script_type: Optional[str] = typer.Option(
        None, "--script-type", "-t", help=_SCRIPT_TYPE_HELP,
    ),
    boilerplate: bool = typer.Option(
        True, "--boilerplate/--no-boilerplate", help="実行可能なスクリプトの骨格で包む",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="出力先ファイルパス（省略時は標準出力）",
    ),
) -> None:
    """アクションログから自動化スクリプトを生成する。"""
    try:
        config = _load_config(script_type=script_type)
        log = read_log(log_file)
        script = generate_script(
            log, include_boilerplate=boilerplate, script_type=config.script_type,
        )
        _write_or_echo(script, output)
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# actions コマンド
# ---------------------------------------------------------------------------

@app.command()
def actions(
    log_file: Path = typer.Argument(..., help="アクションログファイル"),
    script_type: Optional[str] = typer.Option(
        None, "--script-type", "-t", help=_SCRIPT_TYPE_HELP,
    ),
) -> None:
    """アクションログを1行ずつ表示する（パスワードはマスク）。"""
    try:
        config = _load_config(script_type=script_type)
        log = read_log(log_file)
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)

    if len(log) == 0:
        typer.echo("アクションがありません。")
        return
    for i, action in enumerate(log, 1):
        typer.echo(f"{i:3d}. {describe_action(action, config.script_type)}")


# ---------------------------------------------------------------------------
# selectors コマンド
# ---------------------------------------------------------------------------

@app.command()
def selectors(
    html_file: Path = typer.Argument(..., help="HTML ファイル"),
    css: str = typer.Argument(..., help="対象要素を指定する CSS セレクタ"),
    script_type: Optional[str] = typer.Option(
        None, "--script-type", "-t", help=_SCRIPT_TYPE_HELP,
    ),
) -> None:
    """HTML 中の要素のセレクタ候補と最適セレクタを表示する。"""
    from .selectors.dom import has_only_text, parse_document
    from .selectors.ranking import best_selector
    from .selectors.resolver import resolve

    try:
        config = _load_config(script_type=script_type)
        document = parse_document(html_file.read_text(encoding="utf-8"))
        element = document.select_one(css)
        if element is None:
            typer.echo(f"エラー: 要素が見つかりません: {css}", err=True)
            raise typer.Exit(code=1)

        candidates = resolve(element, test_id_attributes=config.test_id_attributes)
        for strategy, value in candidates.items():
            typer.echo(f"{strategy:8s} {value}")
        best = best_selector(
            candidates, config.script_type, has_only_text=has_only_text(element),
        )
        typer.echo(f"\n最適セレクタ ({config.script_type.value}): {best}")
    except typer.Exit:
        raise
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# stop コマンド
# ---------------------------------------------------------------------------

@app.command()
def stop(
    store: Optional[Path] = typer.Option(None, "--store", help="記録状態ストアのパス"),
) -> None:
    """記録中のセッションに記録終了を通知する。"""
    try:
        config = _load_config(store=str(store) if store is not None else None)
        file_store = FileStore(Path(config.store_path))
        if file_store.get(RECORDING_STATE_KEY) == STATE_FINISHED:
            typer.echo("記録は既に終了しています。")
            return
        file_store.set(RECORDING_STATE_KEY, STATE_FINISHED)
        typer.echo(f"記録終了を通知しました: {config.store_path}")
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# script-types コマンド
# ---------------------------------------------------------------------------

@app.command("script-types")
def script_types() -> None:
    """対応しているスクリプト方言を一覧表示する。"""
    for script_type in ScriptType:
        typer.echo(script_type.value)


# ---------------------------------------------------------------------------
# 内部ヘルパー
# ---------------------------------------------------------------------------

def _write_or_echo(script: str, output: Optional[Path]) -> None:
    """スクリプトをファイルに書き出す。出力先がなければ標準出力に表示する。"""
    if output is None:
        typer.echo(script)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(script if script.endswith("\n") else script + "\n", encoding="utf-8")
    typer.echo(f"スクリプトを出力しました: {output}")
