"""
model パッケージ — アクションモデルとセレクタ記述子

主要エクスポート:
  - Action / ActionKind / Signal / SignalKind: 確定した操作の表現
  - ActionLog: 追記専用のアクションログ
  - AliasTable: ページエイリアス表のスナップショット
  - 各種セレクタ記述子
"""

from __future__ import annotations

from .action_log import ActionLog, InvariantViolation
from .actions import Action, ActionKind, Signal, SignalKind, normalize_modifiers
from .aliases import ROOT_ALIAS, AliasTable
from .selectors import (
    CssSelector,
    LabelSelector,
    PlaceholderSelector,
    RoleSelector,
    Selector,
    TestIdSelector,
    TextSelector,
    describe_selector,
)

__all__ = [
    "Action",
    "ActionKind",
    "ActionLog",
    "AliasTable",
    "CssSelector",
    "InvariantViolation",
    "LabelSelector",
    "PlaceholderSelector",
    "ROOT_ALIAS",
    "RoleSelector",
    "Selector",
    "Signal",
    "SignalKind",
    "TestIdSelector",
    "TextSelector",
    "describe_selector",
    "normalize_modifiers",
]
