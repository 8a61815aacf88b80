"""
OutputMultiplexer — 全言語の生成結果の保持と変更通知

アクションログが更新されるたびに全エミッタで再生成し、
言語タグ → GeneratedSource の対応表を丸ごと差し替える。
購読者は差し替え後の表だけを受け取るため、言語間で状態が食い違うことはない。

主な機能:
  - update(): 全言語の再生成と差し替え、変更があれば購読者へ通知
  - subscribe(): 変更通知の購読（解除関数を返す）
  - get_output() / sources(): 現在の生成結果の参照
  - wait_for_text(): 指定文字列が出力に現れるまで非同期に待機
  - freeze(): 記録終了後の更新を無視する
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence

from .emitters import EmitterRegistry, UnknownTargetError, create_default_registry
from .model.actions import Action
from .model.aliases import AliasTable

logger = logging.getLogger(__name__)

Subscriber = Callable[[Mapping[str, "GeneratedSource"]], None]


@dataclass(frozen=True)
class GeneratedSource:
    """1言語分の生成結果。

    Attributes:
        tag: 言語タグ
        name: 表示名
        text: 生成されたソースコード
    """

    tag: str
    name: str
    text: str


@dataclass
class _Waiter:
    tag: str
    substring: str
    future: asyncio.Future


class OutputMultiplexer:
    """全言語の生成結果を保持し、変更を購読者へ通知する。

    使用例::

        output = OutputMultiplexer()
        unsubscribe = output.subscribe(lambda sources: print(sources["python"].text))
        output.update(log.snapshot(), registry.snapshot())
        unsubscribe()
    """

    def __init__(self, registry: Optional[EmitterRegistry] = None) -> None:
        """OutputMultiplexer を初期化する。空のログで全言語を一度生成する。

        Args:
            registry: 使用するエミッタレジストリ（省略時は標準7言語）
        """
        self._registry = registry if registry is not None else create_default_registry()
        self._sources: Mapping[str, GeneratedSource] = self._render_all((), AliasTable())
        self._subscribers: list[Subscriber] = []
        self._waiters: list[_Waiter] = []
        self._frozen = False

    # -------------------------------------------------------------------
    # 生成と通知
    # -------------------------------------------------------------------

    @property
    def frozen(self) -> bool:
        """凍結済みかどうかを返す。"""
        return self._frozen

    def update(self, actions: Sequence[Action], aliases: AliasTable) -> bool:
        """全言語を再生成して差し替える。

        Args:
            actions: 確定済みアクション列
            aliases: ページエイリアス表

        Returns:
            いずれかの言語の出力が変化した場合 True
        """
        if self._frozen:
            logger.debug("凍結済みのため出力の更新を無視しました")
            return False

        rendered = self._render_all(actions, aliases)
        changed = any(rendered[tag].text != self._sources[tag].text for tag in rendered)
        self._sources = rendered
        if not changed:
            return False

        logger.debug("出力を更新しました（%d 件のアクション）", len(actions))
        self._notify()
        return True

    def _render_all(self, actions: Sequence[Action], aliases: AliasTable) -> Mapping[str, GeneratedSource]:
        snapshot = tuple(actions)
        return MappingProxyType({
            emitter.tag: GeneratedSource(emitter.tag, emitter.name, emitter.render(snapshot, aliases))
            for emitter in self._registry
        })

    def _notify(self) -> None:
        sources = self._sources
        for callback in list(self._subscribers):
            try:
                callback(sources)
            except Exception:
                logger.exception("出力の購読者でエラーが発生しました: %r", callback)

        for waiter in list(self._waiters):
            if waiter.future.done():
                self._waiters.remove(waiter)
                continue
            source = sources.get(waiter.tag)
            if source is not None and waiter.substring in source.text:
                waiter.future.set_result(source)
                self._waiters.remove(waiter)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """変更通知を購読する。

        Args:
            callback: 差し替え後の対応表を受け取る関数

        Returns:
            購読を解除する関数（複数回呼んでもよい）
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def freeze(self) -> None:
        """以降の update() を無視する。"""
        if not self._frozen:
            self._frozen = True
            logger.info("出力を凍結しました")

    # -------------------------------------------------------------------
    # 参照
    # -------------------------------------------------------------------

    def tags(self) -> list[str]:
        """登録順の言語タグ一覧を返す。"""
        return list(self._sources)

    def sources(self) -> Mapping[str, GeneratedSource]:
        """現在の言語タグ → GeneratedSource の対応表を返す。"""
        return self._sources

    def get_output(self, tag: str) -> GeneratedSource:
        """言語タグの現在の生成結果を返す。

        Raises:
            UnknownTargetError: 未登録のタグの場合
        """
        source = self._sources.get(tag)
        if source is None:
            raise UnknownTargetError(tag, self.tags())
        return source

    async def wait_for_text(self, tag: str, substring: str, timeout: Optional[float] = None) -> GeneratedSource:
        """指定言語の出力に文字列が現れるまで待機する。

        Args:
            tag: 言語タグ
            substring: 待機する文字列
            timeout: 最大待機時間（秒）。None は無制限

        Returns:
            文字列を含む生成結果

        Raises:
            UnknownTargetError: 未登録のタグの場合
            asyncio.TimeoutError: timeout 内に現れなかった場合
        """
        source = self.get_output(tag)
        if substring in source.text:
            return source

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        waiter = _Waiter(tag, substring, future)
        self._waiters.append(waiter)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)
