"""
エミッタレジストリ — 出力言語エミッタの登録・検索・一覧

言語エミッタは同一のインターフェース（LanguageEmitter Protocol）で管理し、
安定したタグ（"python", "javascript" 等）で検索する。

主な構成:
  - LanguageEmitter Protocol: エミッタの共通インターフェース
  - UnknownTargetError: 未登録タグの検索
  - EmitterRegistry: エミッタの登録・検索・一覧
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, Protocol, Sequence, runtime_checkable

if TYPE_CHECKING:
    from ..model.actions import Action
    from ..model.aliases import AliasTable

logger = logging.getLogger(__name__)


class UnknownTargetError(KeyError):
    """未登録の出力言語タグが指定された。"""

    def __init__(self, tag: str, registered: Sequence[str] = ()) -> None:
        self.tag = tag
        self.registered = tuple(registered)
        super().__init__(tag)

    def __str__(self) -> str:
        return f"出力言語 '{self.tag}' は未登録です。登録済み: {', '.join(self.registered)}"


# ---------------------------------------------------------------------------
# LanguageEmitter Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class LanguageEmitter(Protocol):
    """言語エミッタの共通インターフェース。

    render() は純粋関数であり、同じ入力には常に同じ文字列を返すこと。

    Attributes:
        tag: 安定した識別タグ（例: "python-async"）
        name: 表示名（例: "Python Async"）
    """

    tag: str
    name: str

    def render(self, actions: Sequence[Action], aliases: AliasTable) -> str:
        """確定済みアクション列からソースコード全体を生成する。

        Args:
            actions: コミット順のアクション列
            aliases: ページエイリアス表

        Returns:
            ヘッダー・本体・フッターを含むソースコード
        """
        ...


# ---------------------------------------------------------------------------
# EmitterRegistry 本体
# ---------------------------------------------------------------------------

class EmitterRegistry:
    """言語エミッタの登録・検索・一覧を管理するレジストリ。

    使用例::

        registry = EmitterRegistry()
        registry.register(PythonEmitter())
        emitter = registry.get("python")
        registry.tags()  # -> ["python"]
    """

    def __init__(self) -> None:
        """空のレジストリを初期化する。"""
        self._emitters: dict[str, LanguageEmitter] = {}

    def register(self, emitter: LanguageEmitter) -> None:
        """エミッタを登録する。

        同じタグのエミッタが既に登録されている場合は上書きする（警告を出力）。

        Raises:
            TypeError: emitter が LanguageEmitter Protocol を満たさない場合
        """
        if not isinstance(emitter, LanguageEmitter):
            raise TypeError(
                f"emitter は LanguageEmitter Protocol を満たす必要があります: "
                f"{type(emitter).__name__}"
            )

        if emitter.tag in self._emitters:
            logger.warning(
                "出力言語 '%s' のエミッタを上書きします（既存: %s → 新規: %s）",
                emitter.tag,
                type(self._emitters[emitter.tag]).__name__,
                type(emitter).__name__,
            )

        self._emitters[emitter.tag] = emitter
        logger.debug("出力言語 '%s' を登録しました: %s", emitter.tag, type(emitter).__name__)

    def get(self, tag: str) -> LanguageEmitter:
        """タグでエミッタを取得する。

        Raises:
            UnknownTargetError: 指定タグのエミッタが未登録の場合
        """
        if tag not in self._emitters:
            raise UnknownTargetError(tag, self.tags())
        return self._emitters[tag]

    def tags(self) -> list[str]:
        """登録順のタグ一覧を返す。"""
        return list(self._emitters)

    def __contains__(self, tag: object) -> bool:
        return tag in self._emitters

    def __iter__(self) -> Iterator[LanguageEmitter]:
        return iter(list(self._emitters.values()))

    def __len__(self) -> int:
        return len(self._emitters)
