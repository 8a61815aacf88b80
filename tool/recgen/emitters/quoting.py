"""
文字列リテラル生成 — 各言語のソースに埋め込む文字列のエスケープ

生成コード中の文字列は元の値に完全に復元できること（往復一致）を保証する。

  - JavaScript: シングルクォート。バッククォートと " はエスケープしない
  - Python / C#: ダブルクォート。制御文字は \\uXXXX
  - Java: ダブルクォート。\\u はソース解析前に展開されるため制御文字は 8 進エスケープ
"""

from __future__ import annotations

from typing import Callable

_COMMON_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# JavaScript の文字列リテラル内では改行として扱われる文字
_LINE_SEPARATORS = ("\u2028", "\u2029")


def _is_control(ch: str) -> bool:
    code = ord(ch)
    return code < 0x20 or code == 0x7F


def _escape(value: str, quote: str, control: Callable[[str], str]) -> str:
    out: list[str] = []
    for ch in value:
        if ch in _COMMON_ESCAPES:
            out.append(_COMMON_ESCAPES[ch])
        elif ch == quote:
            out.append("\\" + quote)
        elif _is_control(ch) or ch in _LINE_SEPARATORS:
            out.append(control(ch))
        else:
            out.append(ch)
    return quote + "".join(out) + quote


def _unicode_escape(ch: str) -> str:
    return f"\\u{ord(ch):04x}"


def _octal_escape(ch: str) -> str:
    if ord(ch) > 0xFF:
        # U+2028 / U+2029 は Java の文字列内ではそのまま書ける
        return ch
    return f"\\{ord(ch):03o}"


def quote_js(value: str) -> str:
    """JavaScript のシングルクォート文字列リテラルを生成する。

    例: Hello'"`<改行>World → 'Hello\\'"`\\nWorld'
    """
    return _escape(value, "'", _unicode_escape)


def quote_python(value: str) -> str:
    """Python のダブルクォート文字列リテラルを生成する。"""
    return _escape(value, '"', _unicode_escape)


def quote_csharp(value: str) -> str:
    """C# の通常（非逐語）文字列リテラルを生成する。"""
    return _escape(value, '"', _unicode_escape)


def quote_java(value: str) -> str:
    """Java の文字列リテラルを生成する。"""
    return _escape(value, '"', _octal_escape)
