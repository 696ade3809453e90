"""
セレクタ解決テスト — resolve() が生成するセレクタ候補集合の検証

BeautifulSoup で解析した HTML 上の要素に対して、
各セレクタ種別（id, testId, text, role, attr, href, css, fullCss）が
一意性の条件に従って生成されることを検証する。
"""

from __future__ import annotations

from hypothesis import given, settings

from conftest import make_identifier_strategy
from replaykit.selectors.dom import parse_document
from replaykit.selectors.resolver import (
    accessible_name,
    implicit_role,
    quote_css_string,
    resolve,
)


# ---------------------------------------------------------------------------
# id / testId
# ---------------------------------------------------------------------------

class TestIdStrategies:
    """id / testId セレクタのテスト。"""

    def test_unique_id(self, find):
        """一意な id は #id 形式になること。"""
        selectors = resolve(find("#go"))
        assert selectors["id"] == "#go"

    def test_duplicate_id_is_skipped(self):
        """重複した id は採用しないこと。"""
        doc = parse_document('<div><p id="x">a</p><p id="x">b</p></div>')
        selectors = resolve(doc.select("p")[0])
        assert "id" not in selectors

    def test_id_is_escaped(self):
        """CSS で特別な意味を持つ文字を含む id はエスケープされること。"""
        doc = parse_document('<div><span id="a:b">x</span></div>')
        element = doc.find("span")
        selector = resolve(element)["id"]
        assert selector != "#a:b"
        assert doc.select(selector) == [element]

    def test_test_id_attribute(self, find):
        """data-testid 属性から属性セレクタが生成されること。"""
        selectors = resolve(find('[data-testid="q"]'))
        assert selectors["testId"] == '[data-testid="q"]'

    def test_custom_test_id_attributes(self):
        """設定したテスト ID 属性のみが使われること。"""
        doc = parse_document('<div><b data-qa="save">Save</b></div>')
        element = doc.find("b")
        assert resolve(element)["testId"] == '[data-qa="save"]'
        assert "testId" not in resolve(element, test_id_attributes=("data-testid",))

    @given(element_id=make_identifier_strategy())
    @settings(max_examples=30)
    def test_generated_ids_select_the_element(self, element_id):
        """任意の識別子の id セレクタが対象要素だけに一致すること。"""
        doc = parse_document(
            f'<div><button id="{element_id}">x</button><button>y</button></div>'
        )
        element = doc.find("button")
        selector = resolve(element)["id"]
        assert doc.select(selector) == [element]


# ---------------------------------------------------------------------------
# text / role / attr / href
# ---------------------------------------------------------------------------

class TestContentStrategies:
    """テキスト・ロール・属性系セレクタのテスト。"""

    def test_leaf_text(self, find):
        """子要素を持たない要素のテキストが候補になること。"""
        selectors = resolve(find("li"))
        assert selectors["text"] == "One"

    def test_duplicate_text_is_skipped(self, find, document):
        """同じテキストの要素が複数ある場合は text を採用しないこと。"""
        second = document.select("li")[1]
        assert "text" not in resolve(second)

    def test_no_text_for_container(self, find):
        """子要素を持つ要素は text を採用しないこと。"""
        assert "text" not in resolve(find("div.card"))

    def test_role_with_name(self, find):
        """ロールとアクセシブルネームから role セレクタが生成されること。"""
        selectors = resolve(find("#go"))
        assert selectors["role"] == 'role=button[name="Go"s]'

    def test_link_role_and_href(self, document):
        """リンクには role=link と href セレクタが生成されること。"""
        link = document.find("a", href="/home")
        selectors = resolve(link)
        assert selectors["role"] == 'role=link[name="Home"s]'
        assert selectors["href"] == 'a[href="/home"]'
        assert "text" not in selectors

    def test_role_name_is_exact(self):
        """名前が部分一致する別のリンクがあっても、完全一致の role セレクタで区別すること。"""
        doc = parse_document(
            '<div><a href="/a"><span>Home</span></a><a href="/b"><span>Home page</span></a></div>'
        )
        home, home_page = doc.select("a")
        assert resolve(home)["role"] == 'role=link[name="Home"s]'
        assert resolve(home_page)["role"] == 'role=link[name="Home page"s]'

    def test_role_name_is_case_sensitive(self):
        doc = parse_document("<div><button>Save</button><button>save</button></div>")
        first = doc.find("button")
        assert resolve(first)["role"] == 'role=button[name="Save"s]'

    def test_label_attribute(self, find):
        """name 属性から属性セレクタが生成されること。"""
        selectors = resolve(find('input[type="password"]'))
        assert selectors["attr"] == 'input[name="password"]'


# ---------------------------------------------------------------------------
# css / fullCss
# ---------------------------------------------------------------------------

class TestCssPaths:
    """CSS パスのテスト。"""

    def test_minimal_css_path(self, find):
        """最短で一意になる CSS パスが生成されること。"""
        selectors = resolve(find("#go"))
        assert selectors["css"] == "form > button:nth-of-type(1)"

    def test_nth_of_type(self, document):
        """同名の兄弟要素の位置が nth-of-type で表されること。"""
        third = document.select("li")[2]
        assert resolve(third)["css"] == "li:nth-of-type(3)"

    def test_anchor_on_unique_id_ancestor(self):
        """一意な id を持つ祖先を起点にすること。"""
        doc = parse_document('<div id="a"><span>x</span></div><div><span>y</span></div>')
        element = doc.find("span")
        assert resolve(element)["css"] == "#a > span"

    def test_full_css_path(self, find):
        """fullCss がルート要素からの絶対パスであること。"""
        selectors = resolve(find("#go"))
        assert selectors["fullCss"] == "html > body > main > form > button:nth-of-type(1)"

    def test_css_paths_select_the_element(self, document):
        """css / fullCss が対象要素だけに一致すること。"""
        for element in document.find_all(True):
            selectors = resolve(element)
            assert document.select(selectors["css"]) == [element]
            assert document.select(selectors["fullCss"]) == [element]


# ---------------------------------------------------------------------------
# その他
# ---------------------------------------------------------------------------

class TestResolveEdgeCases:
    """resolve() の境界ケースのテスト。"""

    def test_none_returns_empty(self):
        """要素がない場合は空の辞書を返すこと。"""
        assert resolve(None) == {}

    def test_full_css_always_present(self, document):
        """全要素で fullCss が生成されること。"""
        for element in document.find_all(True):
            assert resolve(element)["fullCss"]

    def test_priority_order_of_keys(self, find):
        """候補が優先順位順に格納されること。"""
        keys = list(resolve(find("#go")))
        assert keys == ["id", "text", "role", "css", "fullCss"]


class TestHelpers:
    """ヘルパー関数のテスト。"""

    def test_implicit_roles(self, find):
        assert implicit_role(find("#go")) == "button"
        assert implicit_role(find("select")) == "combobox"
        assert implicit_role(find('input[type="checkbox"]')) == "checkbox"
        assert implicit_role(find("div.card")) is None

    def test_accessible_name_prefers_aria_label(self):
        doc = parse_document('<button aria-label="Close">x</button>')
        assert accessible_name(doc.find("button")) == "Close"

    def test_quote_css_string(self):
        assert quote_css_string('a"b') == '"a\\"b"'
        assert quote_css_string("a\\b") == '"a\\\\b"'
