"""
AliasTable — ページエイリアス表の不変スナップショット

PageAliasRegistry の状態をエミッタへ渡すための値オブジェクト。
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ROOT_ALIAS = "page"


class AliasTable(BaseModel):
    """ページ ID → エイリアスの対応表。

    Attributes:
        pages: ページ ID からエイリアスへの対応（割り当て順）
        root: 初期ページのエイリアス。初期ページが無い場合は None
        released: close 済みのページ ID
    """

    model_config = ConfigDict(frozen=True)

    pages: dict[str, str] = Field(default_factory=dict)
    root: Optional[str] = None
    released: tuple[str, ...] = ()

    @property
    def has_root(self) -> bool:
        """初期ページが存在するかどうかを返す。"""
        return self.root is not None

    @property
    def aliases(self) -> list[str]:
        """割り当て順のエイリアス一覧を返す。"""
        return list(self.pages.values())
