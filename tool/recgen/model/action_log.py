"""
ActionLog — 確定済みアクションの追記専用ログ

記録セッションにおける唯一の正（single source of truth）。
全エミッタはこのログのスナップショットからソースコードを生成する。

主な機能:
  - アクションの追記と sequence 採番
  - sequence 単調増加の検証（違反は致命的エラー）
  - 記録終了時の凍結
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from .actions import Action

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# エラー定義
# ---------------------------------------------------------------------------

class InvariantViolation(Exception):
    """ActionLog の内部不変条件が破られた場合のエラー。

    ユーザー操作起因の異常と異なり、記録セッションを停止させるべき欠陥を示す。
    """


# ---------------------------------------------------------------------------
# ActionLog 本体
# ---------------------------------------------------------------------------

class ActionLog:
    """確定済みアクションの追記専用ログ。

    使用例::

        log = ActionLog()
        committed = log.append(action)
        snapshot = log.snapshot()
    """

    def __init__(self) -> None:
        """空のログを初期化する。"""
        self._actions: list[Action] = []
        self._next_sequence = 0
        self._frozen = False

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[Action]:
        return iter(list(self._actions))

    @property
    def frozen(self) -> bool:
        """凍結済みかどうかを返す。"""
        return self._frozen

    @property
    def last(self) -> Optional[Action]:
        """最後に追加されたアクションを返す。空の場合は None。"""
        return self._actions[-1] if self._actions else None

    def append(self, action: Action) -> Action:
        """アクションを追記し、sequence を採番した Action を返す。

        既に sequence を持つアクション（読み込み済みログ等）は、その値が
        直前の sequence より大きい場合に限りそのまま受け入れる。

        Args:
            action: 追記するアクション

        Returns:
            sequence 採番済みの Action

        Raises:
            InvariantViolation: 凍結済み、または sequence が後退した場合
        """
        if self._frozen:
            raise InvariantViolation("凍結済みの ActionLog に追記しようとしました")

        if action.is_committed:
            if action.sequence < self._next_sequence:
                raise InvariantViolation(
                    f"sequence が後退しました: {action.sequence} < {self._next_sequence}"
                )
            committed = action
        else:
            committed = action.model_copy(update={"sequence": self._next_sequence})

        self._actions.append(committed)
        self._next_sequence = committed.sequence + 1
        logger.debug(
            "アクションを追記しました: #%d %s (%s)",
            committed.sequence, committed.kind_name, committed.page_alias,
        )
        return committed

    def snapshot(self) -> tuple[Action, ...]:
        """現時点の確定済みアクション列を不変タプルで返す。"""
        return tuple(self._actions)

    def freeze(self) -> None:
        """ログを凍結する。以降の append() は InvariantViolation となる。"""
        if not self._frozen:
            self._frozen = True
            logger.info("ActionLog を凍結しました（%d 件）", len(self._actions))
