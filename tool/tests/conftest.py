"""
テスト共通フィクスチャ・Hypothesis ストラテジー定義

全テストモジュールで共有するフィクスチャとデータ生成器を提供する。
DOM スナップショットは html > body 配下に要素を並べた最小構成で組み立てる。
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from hypothesis import strategies as st

from recgen.model.aliases import AliasTable
from recgen.recorder.snapshot import DomSnapshot


# ---------------------------------------------------------------------------
# スナップショット生成ヘルパー
# ---------------------------------------------------------------------------

def build_snapshot(*elements: dict) -> DomSnapshot:
    """body 直下に要素を並べたスナップショットを生成する。

    parent を明示した要素はその親の下に置く。
    """
    items: list[dict] = [
        {"ref": "html", "tag": "html"},
        {"ref": "body", "tag": "body", "parent": "html"},
    ]
    for element in elements:
        items.append({"parent": "body", **element})
    return DomSnapshot.model_validate({"elements": items})


class StepClock:
    """呼ばれるたびに step 秒進む時計。"""

    def __init__(self, step: float = 0.01, start: float = 0.0) -> None:
        self.step = step
        self.now = start

    def __call__(self) -> float:
        self.now += self.step
        return self.now


# ---------------------------------------------------------------------------
# pytest フィクスチャ
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """一時ディレクトリを提供する pytest フィクスチャ。"""
    return tmp_path


@pytest.fixture
def snapshot_factory() -> Callable[..., DomSnapshot]:
    """build_snapshot を返すフィクスチャ。"""
    return build_snapshot


@pytest.fixture
def root_aliases() -> AliasTable:
    """ルートページ（page）だけが開いているエイリアス表。"""
    return AliasTable(pages={"p1": "page"}, root="page")


@pytest.fixture
def button_snapshot() -> DomSnapshot:
    """<button onclick="alert()">click me</button> だけのページ。"""
    return build_snapshot(
        {"ref": "b1", "tag": "button", "role": "button", "name": "click me", "text": "click me",
         "attributes": {"onclick": "alert()"}},
    )


@pytest.fixture
def form_snapshot() -> DomSnapshot:
    """テキスト欄・チェックボックス・file input・select を持つフォーム。"""
    return build_snapshot(
        {"ref": "form", "tag": "form"},
        {"ref": "name", "tag": "input", "parent": "form", "role": "textbox", "name": "Name",
         "label": "Name", "attributes": {"id": "name"}},
        {"ref": "agree", "tag": "input", "parent": "form", "role": "checkbox", "name": "Agree",
         "label": "Agree", "attributes": {"type": "checkbox"}, "checked": True},
        {"ref": "file", "tag": "input", "parent": "form",
         "attributes": {"type": "file", "multiple": ""}, "files": ["file-to-upload.txt"]},
        {"ref": "color", "tag": "select", "parent": "form", "role": "combobox",
         "attributes": {"name": "color"}, "selected": ["red"]},
    )


# ---------------------------------------------------------------------------
# Hypothesis ストラテジー
# ---------------------------------------------------------------------------

# 文字列リテラルのエスケープで問題になりやすい文字
_TRICKY_CHARS = [
    "'", '"', "`", "\\", "\n", "\r", "\t", "\x00", "\x08", "\x1b", "\x7f",
    "\u2028", "\u2029", "$", "{", "}", "%", "#", "あ", "\U0001f600",
]


def tricky_text_strategy() -> st.SearchStrategy[str]:
    """クォート・バックスラッシュ・改行・制御文字を多く含む文字列を生成する。"""
    return st.lists(
        st.one_of(
            st.sampled_from(_TRICKY_CHARS),
            st.characters(blacklist_categories=("Cs",)),
        ),
        max_size=30,
    ).map("".join)


def css_ident_strategy() -> st.SearchStrategy[str]:
    """CSS 識別子として有効な文字列を生成する。"""
    return st.from_regex(r"[a-z][a-z0-9_-]{0,10}", fullmatch=True)
