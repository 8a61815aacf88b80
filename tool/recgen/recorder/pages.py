"""
PageAliasRegistry — ページエイリアスの割り当て・管理

ページ ID を参照するアクションがコミットされた順に page, page1, page2, ... のエイリアスを割り当てる。
割り当てはセッション内で単調増加し、close 後もエイリアスは再利用しない。
"""

from __future__ import annotations

import logging

from ..model.actions import Action, ActionKind, SignalKind
from ..model.aliases import ROOT_ALIAS, AliasTable

logger = logging.getLogger(__name__)


class PageAliasRegistry:
    """ページ ID とエイリアスの対応を管理するレジストリ。

    呼び出しは RecordingSession の単一コンシューマから直列に行われるため、
    割り当て順はコミット順と一致する。

    使用例::

        registry = PageAliasRegistry()
        registry.allocate("page-1")   # -> "page"
        registry.allocate("page-2")   # -> "page1"
        registry.release("page-1")
    """

    def __init__(self) -> None:
        """空のレジストリを初期化する。"""
        self._aliases: dict[str, str] = {}
        self._released: set[str] = set()
        self._counter = 0
        self._download_counter = 0

    def allocate(self, page_id: str) -> str:
        """ページにエイリアスを割り当てる。

        最初のページには "page"、以降は "page1", "page2", ... を割り当てる。

        Args:
            page_id: ページの内部 ID

        Returns:
            割り当てたエイリアス

        Raises:
            ValueError: 同じページ ID に二度割り当てようとした場合
        """
        if page_id in self._aliases:
            raise ValueError(
                f"ページ '{page_id}' には既にエイリアス '{self._aliases[page_id]}' が割り当て済みです"
            )

        alias = ROOT_ALIAS if self._counter == 0 else f"{ROOT_ALIAS}{self._counter}"
        self._counter += 1
        self._aliases[page_id] = alias
        logger.info("ページエイリアスを割り当てました: %s -> %s", page_id, alias)
        return alias

    def resolve(self, page_id: str) -> str:
        """ページのエイリアスを返す。

        Args:
            page_id: ページの内部 ID

        Returns:
            割り当て済みのエイリアス

        Raises:
            KeyError: 未割り当て、または close 済みのページの場合
        """
        if page_id not in self._aliases:
            raise KeyError(f"未登録のページです: {page_id}")
        if page_id in self._released:
            raise KeyError(f"close 済みのページです: {page_id}")
        return self._aliases[page_id]

    def release(self, page_id: str) -> None:
        """ページを close 済みとしてマークする。エイリアスは再利用しない。

        Args:
            page_id: ページの内部 ID
        """
        if page_id not in self._aliases:
            logger.debug("未登録のページの release を無視します: %s", page_id)
            return
        self._released.add(page_id)
        logger.info("ページを解放しました: %s (%s)", page_id, self._aliases[page_id])

    def is_open(self, page_id: str) -> bool:
        """ページが割り当て済みかつ close されていないかを返す。"""
        return page_id in self._aliases and page_id not in self._released

    def next_download_alias(self) -> str:
        """ダウンロード用の変数名（download, download1, ...）を払い出す。"""
        alias = "download" if self._download_counter == 0 else f"download{self._download_counter}"
        self._download_counter += 1
        return alias

    def snapshot(self) -> AliasTable:
        """現時点のエイリアス表を返す。"""
        root = ROOT_ALIAS if ROOT_ALIAS in self._aliases.values() else None
        return AliasTable(
            pages=dict(self._aliases),
            root=root,
            released=tuple(pid for pid in self._aliases if pid in self._released),
        )

    # -------------------------------------------------------------------
    # コミット時のエイリアス解決
    # -------------------------------------------------------------------

    def bind(self, action: Action) -> Action:
        """コミットするアクションのページ ID をエイリアスに置き換える。

        初出のページ ID にはその場でエイリアスを割り当てるため、
        割り当て順はコミット順と一致する。download シグナルの変数名も
        ここで払い出す。closePage はエイリアス解決後にページを解放する。

        Args:
            action: page_alias / popup_alias にページ ID を持つ Action

        Returns:
            エイリアスに置き換えた Action
        """
        alias = self._bind_page(action.page_alias)

        signals = []
        for sig in action.signals:
            if sig.kind == SignalKind.POPUP and sig.popup_alias is not None:
                sig = sig.model_copy(update={"popup_alias": self._bind_page(sig.popup_alias)})
            elif sig.kind == SignalKind.DOWNLOAD and sig.download_alias is None:
                sig = sig.model_copy(update={"download_alias": self.next_download_alias()})
            signals.append(sig)

        bound = action.model_copy(update={"page_alias": alias, "signals": tuple(signals)})
        if action.kind == ActionKind.CLOSE_PAGE:
            self.release(action.page_alias)
        return bound

    def _bind_page(self, page_id: str) -> str:
        """ページ ID のエイリアスを返す。未割り当てなら割り当てる。"""
        if page_id in self._aliases:
            return self._aliases[page_id]
        return self.allocate(page_id)
