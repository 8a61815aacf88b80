"""
RecordingSession テスト — キュー処理・停止・異常終了の検証

start() せずに stop() した場合は投入済みイベントを stop() 内で処理するため、
時刻依存の挙動は StepClock で決定的に検証する。
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from conftest import StepClock
from recgen.config import RecorderConfig
from recgen.model.actions import ActionKind, SignalKind
from recgen.recorder.events import (
    ClickEvent,
    MouseMoveEvent,
    PageClosedEvent,
    PageOpenedEvent,
)
from recgen.recorder.session import RecordingSession, SessionHaltedError, SessionState


def kinds(session: RecordingSession) -> list[ActionKind]:
    return [a.kind for a in session.log]


# ---------------------------------------------------------------------------
# 停止と凍結
# ---------------------------------------------------------------------------

class TestStop:
    """stop() のテスト。"""

    @pytest.mark.asyncio
    async def test_stop_processes_queued_events(self, button_snapshot):
        """start() 前に投入したイベントも stop() で処理されること。"""
        session = RecordingSession(clock=StepClock())
        session.post(PageOpenedEvent(page_id="p1"))
        session.post(ClickEvent(page_id="p1", element="b1", snapshot=button_snapshot))

        await session.stop()

        assert kinds(session) == [ActionKind.OPEN_PAGE, ActionKind.CLICK]
        assert session.state == SessionState.STOPPED
        assert session.log.frozen is True
        assert session.output.frozen is True

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        """stop() を複数回呼んでも安全であること。"""
        session = RecordingSession()
        await session.stop()
        await session.stop()
        assert session.state == SessionState.STOPPED

    @pytest.mark.asyncio
    async def test_post_after_stop_rejected(self):
        """停止後のイベント投入は SessionHaltedError になること。"""
        session = RecordingSession()
        await session.stop()
        with pytest.raises(SessionHaltedError):
            session.post(PageOpenedEvent(page_id="p1"))

    @pytest.mark.asyncio
    async def test_output_unchanged_after_stop(self):
        """停止後は出力が変化しないこと。"""
        session = RecordingSession()
        session.post(PageOpenedEvent(page_id="p1"))
        await session.stop()
        before = session.output.get_output("python").text

        assert session.output.update((), session.aliases) is False
        assert session.output.get_output("python").text == before

    @pytest.mark.asyncio
    async def test_sync_timeout_warning(self, snapshot_factory):
        """待機中のシグナルが来ないまま時間切れになると警告を通知すること。"""
        snapshot = snapshot_factory(
            {"ref": "a", "tag": "a", "role": "link", "name": "Download",
             "attributes": {"href": "/file", "download": ""}},
        )
        received: list[str] = []
        session = RecordingSession(
            RecorderConfig(sync_timeout_ms=100),
            clock=StepClock(step=1.0),
            on_warning=received.append,
        )
        session.post(PageOpenedEvent(page_id="p1"))
        session.post(ClickEvent(page_id="p1", element="a", snapshot=snapshot, awaiting=SignalKind.DOWNLOAD))
        session.post(MouseMoveEvent(page_id="p1"))
        await session.stop()

        click = session.log.last
        assert click is not None and click.incomplete_signals == (SignalKind.DOWNLOAD,)
        assert len(received) == 1
        assert session.warnings == received
        assert "expected download did not occur" in session.output.get_output("javascript").text


# ---------------------------------------------------------------------------
# コンシューマタスク
# ---------------------------------------------------------------------------

class TestConsumer:
    """start() 後のキュー処理のテスト。"""

    @pytest.mark.asyncio
    async def test_drain_waits_for_processing(self):
        """drain() は投入済みイベントの処理完了まで待つこと。"""
        session = RecordingSession()
        await session.start()
        assert session.state == SessionState.RECORDING

        session.post(PageOpenedEvent(page_id="p1"))
        session.post(PageOpenedEvent(page_id="p2"))
        await session.drain()

        assert kinds(session) == [ActionKind.OPEN_PAGE, ActionKind.OPEN_PAGE]
        assert "const page1 = await context.newPage();" in session.output.get_output("javascript").text
        await session.stop()
        assert session.state == SessionState.STOPPED

    @pytest.mark.asyncio
    async def test_start_twice_is_ignored(self):
        """二重の start() は無視されること。"""
        session = RecordingSession()
        await session.start()
        await session.start()
        await session.stop()
        assert session.state == SessionState.STOPPED

    @pytest.mark.asyncio
    async def test_signal_window_expiry_commits(self, button_snapshot):
        """待ち窓が閉じるとイベントが無くてもクリックが確定すること。"""
        session = RecordingSession(RecorderConfig(signal_window_ms=50))
        await session.start()
        session.post(PageOpenedEvent(page_id="p1"))
        session.post(ClickEvent(page_id="p1", element="b1", snapshot=button_snapshot))

        source = await session.output.wait_for_text("javascript", "click me", timeout=5)
        assert "await page.getByRole('button', { name: 'click me' }).click();" in source.text
        await session.stop()

    @pytest.mark.asyncio
    async def test_wait_for_text_timeout(self):
        """現れない文字列の待機は TimeoutError になること。"""
        session = RecordingSession()
        with pytest.raises(asyncio.TimeoutError):
            await session.output.wait_for_text("python", "never", timeout=0.05)

    @pytest.mark.asyncio
    async def test_events_after_close_dropped(self):
        """close 済みページのイベントは破棄されること。"""
        session = RecordingSession()
        session.post(PageOpenedEvent(page_id="p1"))
        session.post(PageClosedEvent(page_id="p1"))
        session.post(PageClosedEvent(page_id="p1"))
        await session.stop()
        assert kinds(session) == [ActionKind.OPEN_PAGE, ActionKind.CLOSE_PAGE]


# ---------------------------------------------------------------------------
# 異常終了
# ---------------------------------------------------------------------------

class TestFailure:
    """処理中の例外でセッションが FAILED になることのテスト。"""

    @pytest.mark.asyncio
    async def test_consumer_error_fails_session(self):
        """コンシューマ内の例外でセッションが FAILED になり、以降の投入を拒否すること。"""
        session = RecordingSession()
        session._normalizer.normalize = MagicMock(side_effect=RuntimeError("boom"))
        await session.start()
        session.post(PageOpenedEvent(page_id="p1"))
        await session.drain()

        assert session.state == SessionState.FAILED
        assert isinstance(session.error, RuntimeError)
        with pytest.raises(SessionHaltedError):
            session.post(PageOpenedEvent(page_id="p2"))

        await session.stop()
        assert session.state == SessionState.FAILED
        assert session.output.frozen is True

    @pytest.mark.asyncio
    async def test_inline_error_fails_session(self):
        """stop() 内での処理中の例外でも FAILED になること。"""
        session = RecordingSession()
        session._normalizer.normalize = MagicMock(side_effect=ValueError("bad"))
        session.post(PageOpenedEvent(page_id="p1"))
        await session.stop()
        assert session.state == SessionState.FAILED
        assert len(session.log) == 0
