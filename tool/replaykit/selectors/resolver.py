"""
セレクタリゾルバ — DOM 要素からセレクタ候補集合（SelectorSet）を生成

記録時点の DOM 状態だけを入力とする純粋関数として、
対象要素を再生時にも特定できるセレクタ候補を生成する。
生成した SelectorSet は記録時に確定し、コード生成時に再計算しない。

生成するセレクタ種別（優先順位順）:
  - id: 文書内で一意な id 属性（#id）
  - testId: data-testid 等のテスト用属性（[data-testid="..."]）
  - text: 子要素を持たない要素のテキスト内容
  - role: ARIA ロール + アクセシブルネームの完全一致（Playwright role エンジン形式）
  - attr: aria-label / name / placeholder / title / alt 属性
  - href: リンクの href 属性
  - css: 一意に特定できる最短の CSS パス
  - fullCss: ルートからの絶対 CSS パス（常に生成）
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

import soupsieve as sv
from bs4 import Tag

from ..types import SelectorSet
from .dom import (
    attribute,
    document_of,
    element_children,
    has_only_text,
    inner_text,
    is_element,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 定数
# ---------------------------------------------------------------------------

DEFAULT_TEST_ID_ATTRIBUTES: tuple[str, ...] = (
    "data-testid",
    "data-test-id",
    "data-test",
    "data-qa",
    "data-cy",
)

# attr セレクタとして試行する属性（優先順位順）
_LABEL_ATTRIBUTES = ("aria-label", "name", "placeholder", "title", "alt")

# タグ名から推定する暗黙の ARIA ロール
_IMPLICIT_ROLES = {
    "button": "button",
    "select": "combobox",
    "textarea": "textbox",
    "img": "img",
    "h1": "heading",
    "h2": "heading",
    "h3": "heading",
    "h4": "heading",
    "h5": "heading",
    "h6": "heading",
    "li": "listitem",
    "option": "option",
    "nav": "navigation",
    "dialog": "dialog",
}

# input 要素の type 属性から推定する ARIA ロール
_INPUT_ROLES = {
    "button": "button",
    "submit": "button",
    "reset": "button",
    "image": "button",
    "checkbox": "checkbox",
    "radio": "radio",
    "range": "slider",
    "number": "spinbutton",
    "search": "searchbox",
    "text": "textbox",
    "email": "textbox",
    "tel": "textbox",
    "url": "textbox",
}

# テキストセレクタとして採用するテキストの最大長
_MAX_TEXT_LENGTH = 80


# ---------------------------------------------------------------------------
# パブリック API
# ---------------------------------------------------------------------------

def resolve(
    element: Optional[Tag],
    *,
    test_id_attributes: Sequence[str] = DEFAULT_TEST_ID_ATTRIBUTES,
) -> SelectorSet:
    """DOM 要素からセレクタ候補集合を生成する。

    副作用を持たない純粋関数。要素が None または文書から切り離されている場合は
    空の辞書を返す（呼び出し元はイベントを破棄する）。

    Args:
        element: 対象要素
        test_id_attributes: testId として扱う属性名（優先順位順）

    Returns:
        セレクタ種別 → セレクタ文字列の辞書（優先順位順に格納）
    """
    if element is None or not is_element(element):
        return {}

    document = document_of(element)
    selectors: SelectorSet = {}

    id_selector = _id_selector(element, document)
    if id_selector:
        selectors["id"] = id_selector

    test_id = _test_id_selector(element, document, test_id_attributes)
    if test_id:
        selectors["testId"] = test_id

    text = _text_candidate(element, document)
    if text:
        selectors["text"] = text

    role = _role_selector(element, document)
    if role:
        selectors["role"] = role

    attr = _attribute_selector(element, document)
    if attr:
        selectors["attr"] = attr

    href = _href_selector(element, document)
    if href:
        selectors["href"] = href

    selectors["css"] = _minimal_css_path(element, document)
    selectors["fullCss"] = _full_css_path(element)

    logger.debug("セレクタ候補を生成しました: %s", selectors)
    return selectors


def implicit_role(element: Tag) -> Optional[str]:
    """要素の ARIA ロール（明示的な role 属性、なければ暗黙のロール）を返す。"""
    explicit = attribute(element, "role")
    if explicit:
        return explicit.split()[0]

    if element.name == "a":
        return "link" if element.get("href") is not None else None

    if element.name == "input":
        input_type = (attribute(element, "type") or "text").lower()
        return _INPUT_ROLES.get(input_type)

    return _IMPLICIT_ROLES.get(element.name)


def accessible_name(element: Tag) -> str:
    """要素のアクセシブルネームを簡易的に算出する。

    aria-label → テキスト内容 → alt / value（ボタン型 input）の順に参照する。
    """
    label = attribute(element, "aria-label")
    if label and label.strip():
        return label.strip()

    text = inner_text(element)
    if text:
        return text

    if element.name == "img":
        return (attribute(element, "alt") or "").strip()

    if element.name == "input" and implicit_role(element) == "button":
        return (attribute(element, "value") or "").strip()

    return ""


# ---------------------------------------------------------------------------
# 各セレクタ種別の生成
# ---------------------------------------------------------------------------

def _id_selector(element: Tag, document: Tag) -> Optional[str]:
    """文書内で一意な id 属性から #id 形式のセレクタを生成する。"""
    element_id = attribute(element, "id")
    if not element_id or not element_id.strip():
        return None

    selector = f"#{sv.escape(element_id)}"
    if _is_unique_match(document, selector, element):
        return selector
    return None


def _test_id_selector(
    element: Tag, document: Tag, test_id_attributes: Sequence[str],
) -> Optional[str]:
    """テスト用属性から属性セレクタを生成する。"""
    for name in test_id_attributes:
        value = attribute(element, name)
        if not value:
            continue
        selector = f"[{name}={quote_css_string(value)}]"
        if _is_unique_match(document, selector, element):
            return selector
    return None


def _text_candidate(element: Tag, document: Tag) -> Optional[str]:
    """hasOnlyText な要素のテキストを、文書内で一意な場合に返す。"""
    if not has_only_text(element):
        return None

    text = inner_text(element)
    if len(text) > _MAX_TEXT_LENGTH:
        return None

    folded = text.casefold()
    if _count_elements(
        document,
        lambda el: has_only_text(el) and inner_text(el).casefold() == folded,
    ) != 1:
        return None
    return text


def _role_selector(element: Tag, document: Tag) -> Optional[str]:
    """ロールとアクセシブルネームが一意な場合に role セレクタを生成する。"""
    role = implicit_role(element)
    if not role:
        return None

    name = accessible_name(element)
    if not name or len(name) > _MAX_TEXT_LENGTH:
        return None

    if _count_elements(
        document,
        lambda el: implicit_role(el) == role and accessible_name(el) == name,
    ) != 1:
        return None
    # 名前は完全一致（s フラグ）
    return f"role={role}[name={quote_css_string(name)}s]"


def _attribute_selector(element: Tag, document: Tag) -> Optional[str]:
    """ラベル系属性から一意な属性セレクタを生成する。"""
    for name in _LABEL_ATTRIBUTES:
        value = attribute(element, name)
        if not value:
            continue
        selector = f"{element.name}[{name}={quote_css_string(value)}]"
        if _is_unique_match(document, selector, element):
            return selector
    return None


def _href_selector(element: Tag, document: Tag) -> Optional[str]:
    """リンク要素の href 属性から一意な属性セレクタを生成する。"""
    if element.name != "a":
        return None
    href = attribute(element, "href")
    if not href:
        return None
    selector = f"a[href={quote_css_string(href)}]"
    if _is_unique_match(document, selector, element):
        return selector
    return None


def _minimal_css_path(element: Tag, document: Tag) -> str:
    """要素を一意に特定できる最短の CSS パスを生成する。

    要素から祖先方向へ tag:nth-of-type(k) のステップを積み上げ、
    文書内で対象要素だけに一致した時点で確定する。
    途中で一意な id を持つ祖先に到達した場合は、その祖先を起点とする。
    """
    steps: list[str] = []
    node = element
    while is_element(node):
        if node is not element:
            anchor = _id_selector(node, document)
            if anchor:
                candidate = " > ".join([anchor, *steps])
                if _is_unique_match(document, candidate, element):
                    return candidate

        steps.insert(0, _css_step(node))
        candidate = " > ".join(steps)
        if _is_unique_match(document, candidate, element):
            return candidate
        node = node.parent

    return " > ".join(steps)


def _full_css_path(element: Tag) -> str:
    """ルート要素から対象要素までの絶対 CSS パスを生成する。"""
    steps: list[str] = []
    node = element
    while is_element(node):
        steps.insert(0, _css_step(node))
        node = node.parent
    return " > ".join(steps)


def _css_step(node: Tag) -> str:
    """CSS パスの1ステップ（同名の兄弟要素がある場合は nth-of-type 付き）。"""
    parent = node.parent
    if parent is None:
        return node.name

    same_tag = [child for child in element_children(parent) if child.name == node.name]
    if len(same_tag) <= 1:
        return node.name

    # Tag の == は構造比較のため、同一性で位置を求める
    position = next(i for i, child in enumerate(same_tag) if child is node) + 1
    return f"{node.name}:nth-of-type({position})"


# ---------------------------------------------------------------------------
# ヘルパー関数
# ---------------------------------------------------------------------------

def quote_css_string(value: str) -> str:
    """CSS の文字列リテラル（ダブルクォート）として値をクォートする。"""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\a ")
    return f'"{escaped}"'


def _is_unique_match(document: Tag, selector: str, element: Tag) -> bool:
    """セレクタが文書内で対象要素だけに一致するかどうかを返す。"""
    try:
        found = document.select(selector, limit=2)
    except sv.SelectorSyntaxError:
        logger.debug("CSS セレクタとして解釈できません: %s", selector)
        return False
    return len(found) == 1 and found[0] is element


def _count_elements(document: Tag, predicate: Callable[[Tag], bool]) -> int:
    """述語を満たす要素数を数える（2件目で打ち切る）。"""
    count = 0
    for el in document.find_all(True):
        if predicate(el):
            count += 1
            if count > 1:
                break
    return count
