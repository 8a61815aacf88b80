"""
セレクタ記述子 — 言語非依存の要素特定情報

記録時に SelectorResolver が算出し、各言語エミッタが
それぞれの構文（get_by_role / getByRole / GetByRole 等）へ翻訳する。

主な機能:
  - testId / role(+name) / label / placeholder / text / css の記述子モデル
  - strategy タグによる種別判定
  - ログ・コメント用の説明文字列生成
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# 単一セレクタ定義
# ---------------------------------------------------------------------------

class _SelectorBase(BaseModel):
    """記述子の共通設定。コミット後に変更されないよう frozen とする。"""

    model_config = ConfigDict(frozen=True)


class TestIdSelector(_SelectorBase):
    """テスト専用属性（data-testid 等）によるセレクタ。

    最も安定したセレクタ種別。UI 変更の影響を受けにくい。
    """

    __test__ = False

    strategy: Literal["testId"] = "testId"
    test_id: str = Field(..., description="テスト ID 属性の値")


class RoleSelector(_SelectorBase):
    """ARIA ロール + アクセシブルネームによるセレクタ。

    exact を True にすると name の完全一致で検索する。
    """

    strategy: Literal["role"] = "role"
    role: str = Field(..., description="ARIA ロール名（button, textbox, link 等）")
    name: Optional[str] = Field(default=None, description="アクセシブルネーム")
    exact: bool = Field(default=False, description="name の完全一致検索")


class LabelSelector(_SelectorBase):
    """フォーム要素に関連付けられたラベルテキストによるセレクタ。"""

    strategy: Literal["label"] = "label"
    label: str = Field(..., description="ラベルテキスト")


class PlaceholderSelector(_SelectorBase):
    """input / textarea の placeholder 属性によるセレクタ。"""

    strategy: Literal["placeholder"] = "placeholder"
    placeholder: str = Field(..., description="プレースホルダーテキスト")


class TextSelector(_SelectorBase):
    """可視テキスト内容によるセレクタ。"""

    strategy: Literal["text"] = "text"
    text: str = Field(..., description="テキスト内容")


class CssSelector(_SelectorBase):
    """CSS セレクタ。属性ベースと構造パスの両方をこの型で表す。

    structural が True の場合は構造パス（最終手段）で生成されたことを示す。
    """

    strategy: Literal["css"] = "css"
    css: str = Field(..., description="CSS セレクタ文字列")
    structural: bool = Field(default=False, description="構造パスによるフォールバックか")


Selector = Union[
    TestIdSelector,
    RoleSelector,
    LabelSelector,
    PlaceholderSelector,
    TextSelector,
    CssSelector,
]
"""全セレクタ種別の Union 型。strategy フィールドで判別する。"""

DiscriminatedSelector = Annotated[Selector, Field(discriminator="strategy")]
"""pydantic モデルのフィールド型として使う判別付き Union。"""


# ---------------------------------------------------------------------------
# ヘルパー関数
# ---------------------------------------------------------------------------

def describe_selector(selector: Optional[Selector]) -> str:
    """セレクタの人間可読な説明文字列を生成する。

    ログやプレースホルダーコメントで使用する。

    Args:
        selector: 説明対象のセレクタ（None 可）

    Returns:
        セレクタの説明文字列
    """
    if selector is None:
        return "(none)"
    if isinstance(selector, TestIdSelector):
        return f"testId='{selector.test_id}'"
    if isinstance(selector, RoleSelector):
        if selector.name is not None:
            suffix = ", exact" if selector.exact else ""
            return f"role='{selector.role}', name='{selector.name}'{suffix}"
        return f"role='{selector.role}'"
    if isinstance(selector, LabelSelector):
        return f"label='{selector.label}'"
    if isinstance(selector, PlaceholderSelector):
        return f"placeholder='{selector.placeholder}'"
    if isinstance(selector, TextSelector):
        return f"text='{selector.text}'"
    if isinstance(selector, CssSelector):
        return f"css='{selector.css}'"
    return f"unknown({type(selector).__name__})"
