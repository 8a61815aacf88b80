"""
RecordingSession — 記録セッションの管理

ブラウザ側から届く生イベントを単一のキューで直列化し、
正規化 → マージ → コミット → 全言語の再生成 を1つのコンシューマタスクで行う。

主な機能:
  - post(): イベントの投入（別スレッドからも安全）
  - start() / run(): コンシューマタスクの起動
  - drain(): 投入済みイベントの処理完了を待機
  - stop(): 未確定操作の確定、ログと出力の凍結（冪等）
  - セッション状態の追跡（不変条件違反等の異常で FAILED）
"""

from __future__ import annotations

import asyncio
import enum
import logging
import threading
import time
from typing import Callable, Optional

from ..config import RecorderConfig
from ..model.action_log import ActionLog
from ..model.actions import Action
from ..model.aliases import AliasTable
from ..output import OutputMultiplexer
from .events import RawEvent
from .merger import ActionMerger
from .normalizer import EventNormalizer
from .pages import PageAliasRegistry
from .selector import SelectorResolver

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# セッション状態
# ---------------------------------------------------------------------------

class SessionState(enum.Enum):
    """記録セッションの状態。"""

    IDLE = "idle"
    RECORDING = "recording"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


class SessionHaltedError(RuntimeError):
    """停止済み、または異常終了したセッションにイベントを投入した。"""


# キュー終端の目印
_STOP = object()


# ---------------------------------------------------------------------------
# RecordingSession 本体
# ---------------------------------------------------------------------------

class RecordingSession:
    """1回の記録セッション。

    使用例::

        session = RecordingSession(RecorderConfig())
        await session.start()
        session.post(PageOpenedEvent(page_id="p1"))
        await session.drain()
        await session.stop()
        print(session.output.get_output("python").text)
    """

    def __init__(
        self,
        config: Optional[RecorderConfig] = None,
        *,
        output: Optional[OutputMultiplexer] = None,
        clock: Callable[[], float] = time.monotonic,
        on_warning: Optional[Callable[[str], None]] = None,
    ) -> None:
        """RecordingSession を初期化する。

        Args:
            config: 記録設定（省略時はデフォルト値）
            output: 出力先（省略時は標準7言語の OutputMultiplexer）
            clock: 現在時刻を返す関数（秒）
            on_warning: 同期待ちの打ち切り等の警告を受け取る関数
        """
        self._config = config if config is not None else RecorderConfig()
        self._output = output if output is not None else OutputMultiplexer()
        self._clock = clock
        self._on_warning = on_warning

        self._log = ActionLog()
        self._registry = PageAliasRegistry()
        self._normalizer = EventNormalizer(SelectorResolver(self._config.test_id_attribute))
        self._merger = ActionMerger(
            signal_window=self._config.signal_window,
            sync_timeout=self._config.sync_timeout,
            on_warning=self._warn,
        )

        self._state = SessionState.IDLE
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[int] = None
        self._task: Optional[asyncio.Task] = None
        self._warnings: list[str] = []
        self._error: Optional[BaseException] = None

    # -------------------------------------------------------------------
    # プロパティ
    # -------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """現在のセッション状態を返す。"""
        return self._state

    @property
    def config(self) -> RecorderConfig:
        return self._config

    @property
    def log(self) -> ActionLog:
        """確定済みアクションのログを返す。"""
        return self._log

    @property
    def output(self) -> OutputMultiplexer:
        """全言語の生成結果を返す。"""
        return self._output

    @property
    def aliases(self) -> AliasTable:
        """現時点のページエイリアス表を返す。"""
        return self._registry.snapshot()

    @property
    def warnings(self) -> list[str]:
        """記録中に発生した警告の一覧を返す。"""
        return list(self._warnings)

    @property
    def error(self) -> Optional[BaseException]:
        """FAILED となった原因の例外を返す。"""
        return self._error

    # -------------------------------------------------------------------
    # イベント投入
    # -------------------------------------------------------------------

    def post(self, event: RawEvent) -> None:
        """生イベントをキューに投入する。

        イベントループのスレッド以外から呼ばれた場合は
        call_soon_threadsafe 経由で投入する。

        Raises:
            SessionHaltedError: 停止済み、または FAILED のセッションの場合
        """
        if self._state in (SessionState.STOPPING, SessionState.STOPPED, SessionState.FAILED):
            raise SessionHaltedError(f"セッションは {self._state.value} 状態のためイベントを受け付けません")

        loop = self._loop
        if loop is not None and threading.get_ident() != self._loop_thread:
            loop.call_soon_threadsafe(self._queue.put_nowait, event)
        else:
            self._queue.put_nowait(event)

    # -------------------------------------------------------------------
    # ライフサイクル
    # -------------------------------------------------------------------

    async def start(self) -> None:
        """コンシューマタスクを起動する。二重起動は無視する。"""
        if self._task is not None:
            logger.debug("セッションは既に起動しています")
            return
        if self._state != SessionState.IDLE:
            raise SessionHaltedError(f"セッションは {self._state.value} 状態のため起動できません")

        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        self._state = SessionState.RECORDING
        self._task = asyncio.create_task(self.run())
        logger.info("記録を開始しました")

    async def run(self) -> None:
        """キューを消費し続ける（stop() まで）。

        シグナル待ち窓の期限はキュー待機のタイムアウトで駆動する。
        処理中の例外はセッションを FAILED にして消費を終了する。
        """
        while True:
            timeout = self._time_until_deadline()
            try:
                item = await asyncio.wait_for(self._queue.get(), timeout)
            except asyncio.TimeoutError:
                try:
                    self._publish(self._merger.tick(self._clock()))
                except Exception as exc:
                    self._fail(exc)
                    return
                continue

            try:
                if item is _STOP:
                    return
                self._handle(item)
            except Exception as exc:
                self._fail(exc)
                return
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """投入済みのイベントが全て処理されるまで待機する。

        コンシューマが異常終了した場合はその時点で戻る。
        """
        if self._task is None or self._task.done():
            return
        join = asyncio.ensure_future(self._queue.join())
        await asyncio.wait({join, self._task}, return_when=asyncio.FIRST_COMPLETED)
        if not join.done():
            join.cancel()

    async def stop(self) -> None:
        """記録を停止する。

        未確定の操作を確定し、ログと出力を凍結する。
        複数回呼んでも安全。FAILED のセッションは状態を保ったまま出力を凍結する。
        """
        if self._state in (SessionState.STOPPED, SessionState.STOPPING):
            return

        if self._state == SessionState.FAILED:
            self._log.freeze()
            self._output.freeze()
            return

        self._state = SessionState.STOPPING
        if self._task is not None:
            self._queue.put_nowait(_STOP)
            await self._task
        else:
            # start() されずに投入されたイベントをここで処理する
            while not self._queue.empty():
                item = self._queue.get_nowait()
                self._queue.task_done()
                try:
                    self._handle(item)
                except Exception as exc:
                    self._fail(exc)
                    break

        if self._state != SessionState.FAILED:
            try:
                self._publish(self._merger.flush())
            except Exception as exc:
                self._fail(exc)
            else:
                self._state = SessionState.STOPPED

        self._log.freeze()
        self._output.freeze()
        logger.info("記録を停止しました（%d 件のアクション）", len(self._log))

    # -------------------------------------------------------------------
    # 内部処理
    # -------------------------------------------------------------------

    def _handle(self, event: RawEvent) -> None:
        now = self._clock()
        committed: list[Action] = []
        for candidate in self._normalizer.normalize(event):
            committed += self._merger.feed(candidate, now)
        committed += self._merger.tick(now)
        self._publish(committed)

    def _publish(self, committed: list[Action]) -> None:
        """確定したアクションをログに追記し、全言語を再生成する。"""
        if not committed:
            return
        for action in committed:
            appended = self._log.append(self._registry.bind(action))
            logger.info(
                "操作を記録しました: #%d %s (%s)", appended.sequence, appended.kind_name, appended.page_alias,
            )
        self._output.update(self._log.snapshot(), self._registry.snapshot())

    def _time_until_deadline(self) -> Optional[float]:
        deadline = self._merger.next_deadline()
        if deadline is None:
            return None
        return max(0.0, deadline - self._clock())

    def _warn(self, message: str) -> None:
        self._warnings.append(message)
        if self._on_warning is not None:
            self._on_warning(message)

    def _fail(self, exc: BaseException) -> None:
        logger.exception("記録セッションが異常終了しました: %s", exc, exc_info=exc)
        self._error = exc
        self._state = SessionState.FAILED
