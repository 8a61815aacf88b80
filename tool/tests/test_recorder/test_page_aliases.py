"""
PageAliasRegistry テスト — ページエイリアス割り当ての単体テスト
"""

from __future__ import annotations

import pytest

from recgen.model.actions import Action, ActionKind, Signal, SignalKind
from recgen.recorder.pages import PageAliasRegistry


class TestPageAliasRegistry:
    """PageAliasRegistry のテスト。"""

    def test_allocation_order(self):
        """開いた順に page, page1, page2 を割り当てること。"""
        registry = PageAliasRegistry()
        assert registry.allocate("a") == "page"
        assert registry.allocate("b") == "page1"
        assert registry.allocate("c") == "page2"

    def test_aliases_not_reused_after_close(self):
        """close 後もエイリアスを再利用しないこと。"""
        registry = PageAliasRegistry()
        registry.allocate("a")
        registry.allocate("b")
        registry.release("b")
        assert registry.allocate("c") == "page2"

    def test_double_allocation_rejected(self):
        """同じページへの二重割り当ては ValueError になること。"""
        registry = PageAliasRegistry()
        registry.allocate("a")
        with pytest.raises(ValueError):
            registry.allocate("a")

    def test_resolve_released_page(self):
        """close 済みページの resolve は KeyError になること。"""
        registry = PageAliasRegistry()
        registry.allocate("a")
        registry.release("a")
        assert registry.is_open("a") is False
        with pytest.raises(KeyError):
            registry.resolve("a")

    def test_release_unknown_is_ignored(self):
        """未登録ページの release は無視されること。"""
        registry = PageAliasRegistry()
        registry.release("nope")
        assert registry.snapshot().released == ()

    def test_download_aliases(self):
        """ダウンロード変数は download, download1, ... と払い出すこと。"""
        registry = PageAliasRegistry()
        assert [registry.next_download_alias() for _ in range(3)] == ["download", "download1", "download2"]

    def test_snapshot(self):
        """snapshot() は割り当て順の対応表とルートページを返すこと。"""
        registry = PageAliasRegistry()
        registry.allocate("a")
        registry.allocate("b")
        registry.release("a")

        table = registry.snapshot()
        assert table.aliases == ["page", "page1"]
        assert table.root == "page"
        assert table.released == ("a",)

    def test_snapshot_without_pages(self):
        """ページが無い場合は root が None であること。"""
        assert PageAliasRegistry().snapshot().has_root is False


class TestBind:
    """コミット時のエイリアス解決のテスト。"""

    def test_aliases_follow_commit_order(self):
        """ページ ID が初めてコミットされた順にエイリアスを割り当てること。"""
        registry = PageAliasRegistry()
        popup = Signal(kind=SignalKind.POPUP, popup_alias="p3")
        click = Action(kind=ActionKind.CLICK, page_alias="p1", signals=(popup,))
        opened = Action(kind=ActionKind.OPEN_PAGE, page_alias="p2")

        first = registry.bind(Action(kind=ActionKind.OPEN_PAGE, page_alias="p1"))
        second = registry.bind(click)
        third = registry.bind(opened)

        assert first.page_alias == "page"
        assert second.page_alias == "page"
        assert second.signal(SignalKind.POPUP).popup_alias == "page1"
        assert third.page_alias == "page2"

    def test_download_numbered_at_commit(self):
        """download シグナルの変数名をコミット順に払い出すこと。"""
        registry = PageAliasRegistry()
        signal = Signal(kind=SignalKind.DOWNLOAD)
        actions = [
            registry.bind(Action(kind=ActionKind.WAIT_FOR_DOWNLOAD, page_alias="p1", signals=(signal,)))
            for _ in range(2)
        ]
        assert [a.signal(SignalKind.DOWNLOAD).download_alias for a in actions] == ["download", "download1"]

    def test_close_page_releases(self):
        """closePage はエイリアスを解決してからページを解放すること。"""
        registry = PageAliasRegistry()
        registry.bind(Action(kind=ActionKind.OPEN_PAGE, page_alias="p1"))
        closed = registry.bind(Action(kind=ActionKind.CLOSE_PAGE, page_alias="p1"))
        assert closed.page_alias == "page"
        assert registry.is_open("p1") is False
        assert registry.snapshot().released == ("p1",)
