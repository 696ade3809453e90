"""
コードジェネレータ — アクションログから自動化スクリプトを生成

封印済みのアクションログとスクリプト方言を受け取り、
ログの順序どおりに1アクション1ステートメントで描画する。
ボイラープレート指定時は、方言ごとの Jinja2 テンプレート
（templates/*.j2）で実行可能なスクリプトの骨格に埋め込む。

生成は (アクションログ, 方言) の純粋関数であり、
同じ入力に対しては常にバイト単位で同一の出力を返す。
タイムスタンプは生成コードに含めない。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..selectors.ranking import best_selector_for_action
from ..types import ActionType, ScriptType
from . import cypress, playwright, playwright_python, puppeteer
from .dialect import Dialect, RenderContext

logger = logging.getLogger(__name__)

# テンプレートディレクトリのパス
_TEMPLATES_DIR = Path(__file__).parent / "templates"

# 遷移を引き起こしうる操作（直後に load が続く場合に遷移待ちを生成する）
_NAVIGATING_ACTIONS = frozenset({ActionType.CLICK, ActionType.KEYDOWN})

DIALECTS: dict[ScriptType, Dialect] = {
    ScriptType.PLAYWRIGHT: playwright.DIALECT,
    ScriptType.PUPPETEER: puppeteer.DIALECT,
    ScriptType.CYPRESS: cypress.DIALECT,
    ScriptType.PLAYWRIGHT_PYTHON: playwright_python.DIALECT,
}


# ---------------------------------------------------------------------------
# エラー定義
# ---------------------------------------------------------------------------

class UnsupportedActionError(Exception):
    """方言がアクション種別を描画できない場合のエラー。

    ステートメントを黙って省略すると誤ったスクリプトになるため、
    生成全体を失敗させる。
    """

    def __init__(self, action_type: Union[ActionType, str], script_type: Union[ScriptType, str]) -> None:
        self.action_type = ActionType(action_type)
        self.script_type = ScriptType(script_type)
        super().__init__(
            f"アクション種別 '{self.action_type.value}' は "
            f"方言 '{self.script_type.value}' で生成できません"
        )


# ---------------------------------------------------------------------------
# パブリック API
# ---------------------------------------------------------------------------

def generate(
    actions: Iterable[Any],
    include_boilerplate: bool = False,
    script_type: Union[ScriptType, str] = ScriptType.PLAYWRIGHT,
) -> str:
    """アクションログからスクリプトのソースコードを生成する。

    Args:
        actions: アクションログ（記録順）
        include_boilerplate: True の場合、実行可能なスクリプトの骨格で包む
        script_type: 対象スクリプト方言

    Returns:
        生成されたソースコード

    Raises:
        UnsupportedActionError: 方言が描画できないアクションが含まれる場合
    """
    dialect = get_dialect(script_type)
    statements = render_statements(actions, dialect.script_type)
    body = "\n".join(statements)

    if not include_boilerplate:
        return body

    return _render_boilerplate(dialect, statements)


def render_statements(
    actions: Iterable[Any],
    script_type: Union[ScriptType, str],
) -> list[str]:
    """アクションごとのステートメント（複数行可）をリストで返す。

    Args:
        actions: アクションログ（記録順）
        script_type: 対象スクリプト方言

    Returns:
        アクションと同じ順序・同じ件数のステートメントのリスト

    Raises:
        UnsupportedActionError: 方言が描画できないアクションが含まれる場合
    """
    dialect = get_dialect(script_type)
    action_list = list(actions)

    statements: list[str] = []
    screenshot_count = 0
    for index, action in enumerate(action_list):
        kind = ActionType(action.type)
        template = dialect.templates.get(kind)
        if template is None:
            raise UnsupportedActionError(kind, dialect.script_type)

        if kind is ActionType.FULL_SCREENSHOT:
            screenshot_count += 1

        ctx = RenderContext(
            selector=_selector_for(action, dialect.script_type),
            causes_navigation=_causes_navigation(action_list, index),
            screenshot_index=screenshot_count,
        )
        statements.append(template(action, ctx))

    logger.debug(
        "%d 件のステートメントを生成しました（%s）",
        len(statements), dialect.script_type.value,
    )
    return statements


def get_dialect(script_type: Union[ScriptType, str]) -> Dialect:
    """方言定義を返す。

    Raises:
        ValueError: 未知の方言名の場合
    """
    return DIALECTS[ScriptType(script_type)]


# ---------------------------------------------------------------------------
# ヘルパー関数
# ---------------------------------------------------------------------------

def _selector_for(action: Any, script_type: ScriptType) -> Optional[str]:
    """要素アクションのセレクタを選択する。要素アクション以外は None。"""
    if not getattr(action, "selectors", None):
        return None
    selector = best_selector_for_action(action, script_type)
    if selector is None:
        raise UnsupportedActionError(action.type, script_type)
    return selector


def _causes_navigation(actions: list[Any], index: int) -> bool:
    """直後に load が記録されている遷移系の操作かどうかを判定する。"""
    if ActionType(actions[index].type) not in _NAVIGATING_ACTIONS:
        return False
    if index + 1 >= len(actions):
        return False
    return ActionType(actions[index + 1].type) is ActionType.LOAD


def _render_boilerplate(dialect: Dialect, statements: list[str]) -> str:
    """ステートメントを方言のボイラープレートに埋め込む。"""
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    template = env.get_template(dialect.boilerplate)
    prefix = " " * dialect.indent
    body = "\n".join(
        "\n".join(prefix + line if line else line for line in statement.splitlines())
        for statement in statements
    )
    return template.render(body=body)
