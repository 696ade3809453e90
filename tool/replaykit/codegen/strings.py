"""
文字列リテラル生成ヘルパー — 生成コードに埋め込む値のエスケープ
"""

from __future__ import annotations


def js_string(s: str) -> str:
    """JavaScript のシングルクォート文字列リテラルを返す。

    Args:
        s: 埋め込む文字列

    Returns:
        クォート済みの文字列リテラル
    """
    escaped = (
        s.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
    return f"'{escaped}'"


def py_string(s: str) -> str:
    """Python のダブルクォート文字列リテラルを返す。"""
    return f'"{_escape_string(s)}"'


def number(value: float) -> str:
    """数値リテラルを返す（整数値の float は整数表記）。"""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _escape_string(s: str) -> str:
    """Python 文字列リテラル用にエスケープする。"""
    return (
        s.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
