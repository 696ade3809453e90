"""
方言定義 — アクション種別ごとのステートメントテンプレート表

各スクリプト方言は ActionType → テンプレート関数 の表と、
ボイラープレート用の Jinja2 テンプレート名を持つ。
テンプレート関数は (アクション, 描画コンテキスト) から
1ステートメント分のソースコード（複数行可）を返す純粋関数。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..types import ActionType, ScriptType


@dataclass(frozen=True)
class RenderContext:
    """テンプレート関数に渡す描画コンテキスト。

    Attributes:
        selector: 方言向けに選択済みのセレクタ（要素アクション以外は None）
        causes_navigation: 直後に load が記録されているか
        screenshot_index: このスクリーンショットの通し番号（1始まり）
    """

    selector: Optional[str] = None
    causes_navigation: bool = False
    screenshot_index: int = 0


Template = Callable[[Any, RenderContext], str]


@dataclass(frozen=True)
class Dialect:
    """スクリプト方言の定義。

    Attributes:
        script_type: 方言
        templates: ActionType → テンプレート関数
        boilerplate: ボイラープレートの Jinja2 テンプレート名
        indent: ボイラープレート内のステートメントのインデント幅
    """

    script_type: ScriptType
    templates: dict[ActionType, Template] = field(default_factory=dict)
    boilerplate: str = ""
    indent: int = 2

    def missing(self) -> list[ActionType]:
        """テンプレートが定義されていないアクション種別を返す。"""
        return [kind for kind in ActionType if kind not in self.templates]
