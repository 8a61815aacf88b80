"""
Snapshot — 操作時点の DOM / アクセシビリティスナップショット

ブラウザ側から受け取った要素一覧を保持し、SelectorResolver が
候補セレクタの一意性を判定するための検索機能を提供する。

主な機能:
  - 要素 ref による検索
  - 親子関係の参照
  - 構造 CSS パスの生成（常に一意）
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from pydantic import BaseModel, Field, PrivateAttr

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """連続空白を1つにまとめ、前後の空白を除去する。"""
    return _WHITESPACE.sub(" ", text).strip()


# ---------------------------------------------------------------------------
# DomElement
# ---------------------------------------------------------------------------

class DomElement(BaseModel):
    """スナップショット内の1要素。

    Attributes:
        ref: スナップショット内で一意な要素参照
        tag: タグ名（小文字）
        attributes: HTML 属性
        role: ARIA ロール（暗黙ロール含む）
        name: アクセシブルネーム
        text: 可視テキスト（空白正規化済み）
        label: 関連付けられた label 要素のテキスト
        parent: 親要素の ref（ルート要素は None）
        checked: チェックボックス / ラジオの状態
        value: 入力要素の現在値
        files: file input に設定されたファイル名
        selected: select 要素で選択中の値
    """

    ref: str
    tag: str
    attributes: dict[str, str] = Field(default_factory=dict)
    role: Optional[str] = None
    name: str = ""
    text: str = ""
    label: Optional[str] = None
    parent: Optional[str] = None
    checked: Optional[bool] = None
    value: Optional[str] = None
    files: list[str] = Field(default_factory=list)
    selected: list[str] = Field(default_factory=list)

    @property
    def input_type(self) -> str:
        """input 要素の type 属性（小文字）。未指定時は "text"。"""
        if self.tag != "input":
            return ""
        return self.attributes.get("type", "text").lower()

    @property
    def is_text_field(self) -> bool:
        """テキスト入力を受け付ける要素かどうかを返す。"""
        if self.tag == "textarea":
            return True
        if self.tag == "input":
            return self.input_type not in {
                "checkbox", "radio", "file", "button", "submit",
                "reset", "image", "hidden", "range", "color",
            }
        return self.attributes.get("contenteditable", "false").lower() in ("", "true")

    @property
    def is_toggle(self) -> bool:
        """チェックボックス / ラジオかどうかを返す。"""
        return self.input_type in ("checkbox", "radio") or self.role in ("checkbox", "radio", "switch")

    @property
    def is_file_input(self) -> bool:
        """file input かどうかを返す。"""
        return self.input_type == "file"

    @property
    def is_select(self) -> bool:
        """select 要素かどうかを返す。"""
        return self.tag == "select"


# ---------------------------------------------------------------------------
# DomSnapshot
# ---------------------------------------------------------------------------

class DomSnapshot(BaseModel):
    """操作時点の要素一覧。

    elements はドキュメント順に並んでいる前提とする。
    """

    elements: list[DomElement] = Field(default_factory=list)

    _index: dict[str, DomElement] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        self._index = {elem.ref: elem for elem in self.elements}

    def get(self, ref: Optional[str]) -> Optional[DomElement]:
        """ref で要素を検索する。見つからない場合は None。"""
        if ref is None:
            return None
        return self._index.get(ref)

    def __contains__(self, ref: object) -> bool:
        return ref in self._index

    def __len__(self) -> int:
        return len(self.elements)

    def children(self, ref: Optional[str]) -> list[DomElement]:
        """指定要素の子要素をドキュメント順で返す。ref=None はルート要素群。"""
        return [elem for elem in self.elements if elem.parent == ref]

    def count(self, predicate: Callable[[DomElement], bool]) -> int:
        """条件を満たす要素数を返す。"""
        return sum(1 for elem in self.elements if predicate(elem))

    def structural_path(self, ref: str) -> str:
        """要素の構造 CSS パスを生成する。

        同じタグの兄弟が複数ある階層では :nth-of-type(n) を付与するため、
        スナップショット内で常に一意となる。

        Args:
            ref: 対象要素の ref

        Returns:
            "html > body > form > input:nth-of-type(2)" 形式の CSS パス

        Raises:
            KeyError: ref がスナップショットに存在しない場合
        """
        elem = self._index[ref]
        parts: list[str] = []
        seen: set[str] = set()

        current: Optional[DomElement] = elem
        while current is not None and current.ref not in seen:
            seen.add(current.ref)
            siblings = [s for s in self.children(current.parent) if s.tag == current.tag]
            part = current.tag
            if len(siblings) > 1:
                part += f":nth-of-type({siblings.index(current) + 1})"
            parts.append(part)
            current = self.get(current.parent)

        return " > ".join(reversed(parts))
