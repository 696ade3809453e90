"""
DOM ヘルパー — BeautifulSoup 文書上の要素操作

ブラウザから受け取った HTML スナップショットを BeautifulSoup で解析し、
セレクタ解決やイベント分類で必要となる要素操作を提供する。

主な機能:
  - HTML 文書の解析（html.parser）
  - 要素パス（documentElement からの子要素インデックス列）による要素検索
  - innerText 相当のテキスト取得と hasOnlyText 判定
  - オーバーレイ配下の要素判定と除去、リンククリック時の対象要素の正規化
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional, Sequence

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# レコーダー自身のコントロールバーのルート要素 ID
OVERLAY_ROOT_ID = "overlay-controls"

_WHITESPACE = re.compile(r"\s+")


def parse_document(html: str) -> BeautifulSoup:
    """HTML 文字列を解析して文書オブジェクトを返す。"""
    return BeautifulSoup(html or "", "html.parser")


def is_element(node: object) -> bool:
    """node が文書ルートではない要素（Tag）かどうかを返す。"""
    return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)


def element_children(node: Tag) -> list[Tag]:
    """テキストノード等を除いた子要素のリストを返す。"""
    return [child for child in node.children if isinstance(child, Tag)]


def document_of(element: Tag) -> Tag:
    """要素が属する文書のルート（BeautifulSoup オブジェクト）を返す。"""
    node = element
    while node.parent is not None:
        node = node.parent
    return node


def root_element(document: Tag) -> Optional[Tag]:
    """文書の最上位要素（通常は html 要素）を返す。"""
    children = element_children(document)
    return children[0] if children else None


def element_by_path(document: Tag, path: Sequence[int]) -> Optional[Tag]:
    """子要素インデックス列から要素を検索する。

    path はブラウザ側で documentElement から対象要素まで辿った
    子要素インデックスの列。空の path は documentElement を表す。

    Args:
        document: 解析済みの文書
        path: 子要素インデックスの列

    Returns:
        見つかった要素。パスが文書構造と一致しない場合は None
    """
    node = root_element(document)
    for index in path:
        if node is None:
            return None
        children = element_children(node)
        if index < 0 or index >= len(children):
            logger.debug("要素パスが文書構造と一致しません: %s", list(path))
            return None
        node = children[index]
    return node


def element_path(element: Tag) -> list[int]:
    """要素の子要素インデックス列（element_by_path の逆）を返す。"""
    path: list[int] = []
    node = element
    while is_element(node.parent):
        siblings = element_children(node.parent)
        path.insert(0, next(i for i, s in enumerate(siblings) if s is node))
        node = node.parent
    return path


def attribute(element: Tag, name: str) -> Optional[str]:
    """属性値を文字列で返す。複数値属性は空白区切りで連結する。"""
    value = element.get(name)
    if value is None:
        return None
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def inner_text(element: Tag) -> str:
    """空白を正規化した要素のテキスト内容を返す。"""
    return _WHITESPACE.sub(" ", element.get_text(" ")).strip()


def has_only_text(element: Optional[Tag]) -> bool:
    """子要素を持たず、空でないテキストを持つ要素かどうかを返す。"""
    if element is None:
        return False
    return not element_children(element) and bool(inner_text(element))


def ancestors(element: Tag) -> Iterable[Tag]:
    """要素自身を含む祖先要素を内側から順に返す。"""
    node: object = element
    while is_element(node):
        yield node  # type: ignore[misc]
        node = node.parent  # type: ignore[attr-defined]


def is_element_from_overlay(
    element: Optional[Tag], overlay_id: str = OVERLAY_ROOT_ID,
) -> bool:
    """要素がレコーダーのオーバーレイ配下にあるかどうかを返す。

    element.closest('#overlay-controls') に相当する判定を行う。
    """
    if element is None:
        return False
    return any(node.get("id") == overlay_id for node in ancestors(element))


def remove_overlay(document: Tag, overlay_id: str = OVERLAY_ROOT_ID) -> int:
    """文書からオーバーレイのサブツリーを取り除く。セレクタ解決の前に呼ぶ。

    Returns:
        取り除いたサブツリーの数
    """
    overlays = document.find_all(id=overlay_id)
    for overlay in overlays:
        overlay.decompose()
    return len(overlays)


def normalize_target(element: Optional[Tag]) -> Optional[Tag]:
    """操作対象要素を正規化する。

    直接の親要素がリンク（a 要素）の場合は、遷移の意図を反映するため
    リンク要素を対象とする。
    """
    if element is None:
        return None
    parent = element.parent
    if is_element(parent) and parent.name == "a":
        return parent
    return element
