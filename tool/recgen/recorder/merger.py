"""
ActionMerger — 候補アクションのマージと同期シグナルの付与

EventNormalizer が生成した候補を受け取り、確定した Action を返す。

主な機能:
  - 同一要素への連続した入力を1つの fill にまとめる（フォーカス移動では区切らない）
  - 操作直後の popup / download / dialog / navigation をその操作に付与する
  - 同期シグナル待ち（awaiting）中は後続の候補を保留し、順序を維持する
  - 待ち時間切れの場合は incomplete_signals 付きで確定し警告を通知する

時刻は呼び出し側が now 引数で渡す。本クラスは時計を参照しない。
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from ..model.actions import Action, ActionKind, SignalKind
from .normalizer import ActionCandidate, Candidate, SignalCandidate

logger = logging.getLogger(__name__)

# シグナルを付与できる操作種別
_SIGNAL_BEARING_KINDS = frozenset({
    ActionKind.NAVIGATE,
    ActionKind.CLICK,
    ActionKind.CHECK,
    ActionKind.UNCHECK,
    ActionKind.SET_INPUT_FILES,
    ActionKind.SELECT_OPTION,
    ActionKind.PRESS,
})

WarningHook = Callable[[str], None]


@dataclass
class _OpenAction:
    """シグナル受付中の操作。"""

    action: Action
    deadline: float
    awaiting: Optional[SignalKind] = None


class ActionMerger:
    """候補をマージし、確定した Action を順に返す。

    使用例::

        merger = ActionMerger(signal_window=0.5, sync_timeout=5.0)
        committed = merger.feed(candidate, now=time.monotonic())
        committed += merger.tick(now=time.monotonic())
        committed += merger.flush()
    """

    def __init__(
        self,
        signal_window: float = 0.5,
        sync_timeout: float = 5.0,
        on_warning: Optional[WarningHook] = None,
    ) -> None:
        """ActionMerger を初期化する。

        Args:
            signal_window: 操作後にシグナルを受け付ける時間（秒）
            sync_timeout: awaiting 指定時に待機する最大時間（秒）
            on_warning: 同期待ちの打ち切り時に呼ばれるフック
        """
        if signal_window < 0 or sync_timeout < 0:
            raise ValueError("signal_window と sync_timeout は 0 以上で指定してください")
        self._signal_window = signal_window
        self._sync_timeout = sync_timeout
        self._on_warning = on_warning

        self._pending_fill: Optional[ActionCandidate] = None
        self._open: Optional[_OpenAction] = None
        self._backlog: deque[Candidate] = deque()
        self._last_now = 0.0

    # -------------------------------------------------------------------
    # パブリック API
    # -------------------------------------------------------------------

    @property
    def has_pending(self) -> bool:
        """未確定の操作があるかを返す。"""
        return self._pending_fill is not None or self._open is not None or bool(self._backlog)

    def next_deadline(self) -> Optional[float]:
        """次に tick() が必要になる時刻を返す。不要なら None。"""
        return self._open.deadline if self._open is not None else None

    def feed(self, candidate: Candidate, now: float) -> list[Action]:
        """候補を1件処理する。

        Args:
            candidate: EventNormalizer が生成した候補
            now: 現在時刻（秒）

        Returns:
            この呼び出しで確定した Action のリスト（コミット順）
        """
        committed = self.tick(now)

        if self._awaiting() and not isinstance(candidate, SignalCandidate):
            logger.debug("同期シグナル待ちのため候補を保留します: %s", type(candidate).__name__)
            self._backlog.append(candidate)
            return committed

        committed += self._process(candidate, now)
        return committed

    def tick(self, now: float) -> list[Action]:
        """時刻を進め、期限切れの操作を確定する。

        Args:
            now: 現在時刻（秒）

        Returns:
            確定した Action のリスト
        """
        self._last_now = max(self._last_now, now)
        committed: list[Action] = []
        while self._open is not None and now >= self._open.deadline:
            committed.append(self._close_open(self._open))
            committed += self._drain_backlog(now)
        return committed

    def flush(self) -> list[Action]:
        """全ての未確定操作を確定する（録画停止時）。

        Returns:
            確定した Action のリスト
        """
        committed: list[Action] = []
        while True:
            committed += self._commit_all()
            if not self._backlog:
                break
            committed += self._process(self._backlog.popleft(), self._last_now)
        return committed

    # -------------------------------------------------------------------
    # 候補の処理
    # -------------------------------------------------------------------

    def _process(self, candidate: Candidate, now: float) -> list[Action]:
        if isinstance(candidate, ActionCandidate):
            return self._process_action(candidate, now)
        if isinstance(candidate, SignalCandidate):
            return self._process_signal(candidate, now)
        raise TypeError(f"未知の候補です: {candidate!r}")

    def _process_action(self, candidate: ActionCandidate, now: float) -> list[Action]:
        pending = self._pending_fill
        if candidate.mergeable and pending is not None and pending.key == candidate.key:
            # 同一要素への入力は値を置き換える
            self._pending_fill = candidate
            return []

        committed = self._commit_all()
        if candidate.mergeable:
            self._pending_fill = candidate
        elif candidate.action.kind in _SIGNAL_BEARING_KINDS:
            window = self._sync_timeout if candidate.awaiting else self._signal_window
            self._open = _OpenAction(candidate.action, now + window, candidate.awaiting)
        else:
            committed.append(candidate.action)
        return committed

    def _process_signal(self, candidate: SignalCandidate, now: float) -> list[Action]:
        open_ = self._open
        if (
            open_ is not None
            and open_.action.page_alias == candidate.page_id
            and now <= open_.deadline
            and open_.action.signal(candidate.signal.kind) is None
        ):
            open_.action = open_.action.with_signal(candidate.signal)
            logger.debug(
                "シグナル %s を操作 %s に付与しました", candidate.signal.kind.value, open_.action.kind_name,
            )
            if open_.awaiting == candidate.signal.kind:
                open_.awaiting = None
                return self._commit_all() + self._drain_backlog(now)
            return []

        if self._awaiting():
            # 別ページ由来のシグナルは待機中の操作の後に並べる
            self._backlog.append(candidate)
            return []

        committed = self._commit_all()
        committed.append(candidate.standalone)
        return committed

    # -------------------------------------------------------------------
    # 確定処理
    # -------------------------------------------------------------------

    def _awaiting(self) -> bool:
        return self._open is not None and self._open.awaiting is not None

    def _commit_all(self) -> list[Action]:
        committed: list[Action] = []
        if self._pending_fill is not None:
            committed.append(self._pending_fill.action)
            self._pending_fill = None
        if self._open is not None:
            committed.append(self._close_open(self._open))
        return committed

    def _close_open(self, open_: _OpenAction) -> Action:
        self._open = None

        action = open_.action
        if open_.awaiting is not None:
            action = action.model_copy(
                update={"incomplete_signals": action.incomplete_signals + (open_.awaiting,)}
            )
            message = (
                f"{open_.awaiting.value} を待機しましたが発生しませんでした "
                f"({action.page_alias} の {action.kind_name})。同期なしで記録します"
            )
            logger.warning(message)
            if self._on_warning is not None:
                self._on_warning(message)
        return action

    def _drain_backlog(self, now: float) -> list[Action]:
        committed: list[Action] = []
        while self._backlog and not self._awaiting():
            committed += self._process(self._backlog.popleft(), now)
        return committed

