"""
recorder パッケージ — 生イベントから確定アクションまでの記録パイプライン

主な構成:
  - events: ブラウザ側から受け取る生イベントのモデル
  - snapshot: イベント発生時点の DOM スナップショット
  - selector: 要素から最も安定したセレクタを選ぶ SelectorResolver
  - pages: ページエイリアスの割り当て（PageAliasRegistry）
  - normalizer: 生イベント → 操作候補（EventNormalizer）
  - merger: 入力の統合とシグナルの付与（ActionMerger）
  - session: キュー・状態・出力を束ねる RecordingSession
"""

from __future__ import annotations

from .events import RawEvent, parse_event
from .merger import ActionMerger
from .normalizer import EventNormalizer
from .pages import PageAliasRegistry
from .selector import SelectorResolver
from .session import RecordingSession, SessionHaltedError, SessionState

__all__ = [
    "ActionMerger",
    "EventNormalizer",
    "PageAliasRegistry",
    "RawEvent",
    "RecordingSession",
    "SelectorResolver",
    "SessionHaltedError",
    "SessionState",
    "parse_event",
]
