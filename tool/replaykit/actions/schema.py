"""
アクションスキーマ定義 — 記録されたブラウザ操作の Pydantic v2 モデル

記録セッションで捕捉した操作を、type をディスクリミネータとする
タグ付き Union として表現する。各モデルは immutable（frozen）であり、
末尾アクションの修正は model_copy() による差し替えで行う。

主な定義（ActionType / ScriptType は types モジュール）:
  - ClickAction 〜 DragAndDropAction: 操作種別ごとのモデル
  - Action / ActionListAdapter: Union 型と一括検証用 TypeAdapter
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    SerializationInfo,
    TypeAdapter,
    field_serializer,
    model_validator,
)

from ..types import ActionType, ScriptType, SelectorSet


# ---------------------------------------------------------------------------
# 共通ベースモデル
# ---------------------------------------------------------------------------

class BaseAction(BaseModel):
    """全アクション共通のフィールド。

    timestamp は記録時刻（ミリ秒）であり、コード生成には使用しない。
    """

    model_config = ConfigDict(frozen=True)

    timestamp: int = Field(default=0, ge=0, description="記録時刻（ミリ秒）")


class ElementAction(BaseAction):
    """DOM 要素を対象とするアクションの共通フィールド。"""

    tagName: str = Field(..., min_length=1, description="対象要素のタグ名（大文字）")
    selectors: SelectorSet = Field(
        ...,
        min_length=1,
        description="セレクタ種別 → セレクタ文字列（記録時に確定）",
    )
    hasOnlyText: bool = Field(
        default=False,
        description="子要素を持たず、空でないテキストのみを持つ要素か",
    )

    @model_validator(mode="after")
    def _check_selectors(self) -> "ElementAction":
        # 値が空文字列だけのセレクタ集合は解決不能として扱う
        if not any(v for v in self.selectors.values()):
            raise ValueError("selectors に解決可能なセレクタが含まれていません")
        return self


# ---------------------------------------------------------------------------
# 要素操作アクション
# ---------------------------------------------------------------------------

class ClickAction(ElementAction):
    """要素のクリック。"""

    type: Literal["click"] = "click"


class HoverAction(ElementAction):
    """要素へのマウスオーバー。"""

    type: Literal["hover"] = "hover"


class InputAction(ElementAction):
    """フォーム要素への値入力。

    isPassword が True の場合、value は SecretStr として保持され、
    repr / str / 通常の JSON 出力ではマスクされる。
    コード生成時は secret_value() で実際の値を取り出す。
    """

    type: Literal["input"] = "input"
    value: Union[str, SecretStr] = Field(default="", description="入力値")
    isPassword: bool = Field(default=False, description="パスワード入力欄か")
    inputType: Optional[str] = Field(default=None, description="input 要素の type 属性")

    @model_validator(mode="before")
    @classmethod
    def _wrap_secret(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("isPassword"):
            value = data.get("value", "")
            if not isinstance(value, SecretStr):
                data = {**data, "value": SecretStr(str(value))}
        return data

    @field_serializer("value")
    def _serialize_value(self, value: Union[SecretStr, str], info: SerializationInfo) -> str:
        if isinstance(value, SecretStr):
            context = info.context or {}
            if context.get("reveal_secrets"):
                return value.get_secret_value()
            return str(value)
        return value

    def secret_value(self) -> str:
        """マスクされていない実際の入力値を返す。"""
        if isinstance(self.value, SecretStr):
            return self.value.get_secret_value()
        return self.value


class KeydownAction(ElementAction):
    """要素上でのキー押下。"""

    type: Literal["keydown"] = "keydown"
    key: str = Field(..., min_length=1, description="キー名（Enter, Tab 等）")


# ---------------------------------------------------------------------------
# ページ操作アクション
# ---------------------------------------------------------------------------

class LoadAction(BaseAction):
    """ページの読み込み（ナビゲーション）。"""

    type: Literal["load"] = "load"
    url: str = Field(..., min_length=1, description="読み込まれた URL")


class ResizeAction(BaseAction):
    """ウィンドウサイズの変更。"""

    type: Literal["resize"] = "resize"
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class WheelAction(BaseAction):
    """マウスホイールによるスクロール。"""

    type: Literal["wheel"] = "wheel"
    deltaX: float = 0
    deltaY: float = 0


class FullScreenshotAction(BaseAction):
    """ページ全体のスクリーンショット取得。"""

    type: Literal["fullScreenshot"] = "fullScreenshot"


class AwaitTextAction(BaseAction):
    """指定テキストが表示されるまでの待機。"""

    type: Literal["awaitText"] = "awaitText"
    text: str = Field(..., min_length=1)


class DragAndDropAction(BaseAction):
    """座標指定のドラッグ＆ドロップ。"""

    type: Literal["dragAndDrop"] = "dragAndDrop"
    sourceX: float
    sourceY: float
    targetX: float
    targetY: float


# ---------------------------------------------------------------------------
# Union 型
# ---------------------------------------------------------------------------

Action = Annotated[
    Union[
        ClickAction,
        HoverAction,
        InputAction,
        KeydownAction,
        LoadAction,
        ResizeAction,
        WheelAction,
        FullScreenshotAction,
        AwaitTextAction,
        DragAndDropAction,
    ],
    Field(discriminator="type"),
]
"""全アクション種別の Union 型（type フィールドで判別）。"""

ELEMENT_ACTION_TYPES = frozenset({
    ActionType.CLICK,
    ActionType.HOVER,
    ActionType.INPUT,
    ActionType.KEYDOWN,
})

ActionAdapter: TypeAdapter[Any] = TypeAdapter(Action)
ActionListAdapter: TypeAdapter[Any] = TypeAdapter(list[Action])


def dump_actions(actions: list[Any], reveal_secrets: bool = False) -> list[dict[str, Any]]:
    """アクションリストを JSON 互換の辞書リストに変換する。

    Args:
        actions: 変換対象のアクションリスト
        reveal_secrets: True の場合、パスワード値を平文で出力する

    Returns:
        辞書のリスト
    """
    return ActionListAdapter.dump_python(
        list(actions),
        mode="json",
        context={"reveal_secrets": reveal_secrets},
    )


def load_actions(data: list[Any]) -> list[Any]:
    """辞書リストからアクションリストを検証付きで復元する。

    Raises:
        pydantic.ValidationError: 不正なアクションが含まれる場合
    """
    return ActionListAdapter.validate_python(data or [])


def action_type_of(action: Any) -> ActionType:
    """アクションの種別を ActionType として返す。"""
    return ActionType(action.type)


def is_element_action(action: Any) -> bool:
    """DOM 要素を対象とするアクションかどうかを返す。"""
    return action_type_of(action) in ELEMENT_ACTION_TYPES
