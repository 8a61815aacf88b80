"""
アクションモデル — 記録された操作の正規表現

イベント正規化・マージを経て確定した1操作を表す。
コミット後は不変（frozen）であり、全エミッタが同じ値を参照する。

主な構成:
  - ActionKind: 操作種別
  - SignalKind / Signal: 操作に付随する同期シグナル（popup, download, dialog, navigation）
  - Action: 確定した操作本体
"""

from __future__ import annotations

import enum
from typing import Iterable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .selectors import DiscriminatedSelector


# ---------------------------------------------------------------------------
# 操作種別
# ---------------------------------------------------------------------------

class ActionKind(str, enum.Enum):
    """記録対象の操作種別。値は外部に公開される安定した識別子。"""

    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    CHECK = "check"
    UNCHECK = "uncheck"
    SET_INPUT_FILES = "setInputFiles"
    SELECT_OPTION = "selectOption"
    PRESS = "press"
    OPEN_PAGE = "openPage"
    CLOSE_PAGE = "closePage"
    WAIT_FOR_POPUP = "waitForPopup"
    WAIT_FOR_DOWNLOAD = "waitForDownload"
    HANDLE_DIALOG = "handleDialog"


# マージ対象外（到着時点で確定）の種別
NON_MERGEABLE_KINDS = frozenset({
    ActionKind.NAVIGATE,
    ActionKind.CLICK,
    ActionKind.CHECK,
    ActionKind.UNCHECK,
    ActionKind.SET_INPUT_FILES,
    ActionKind.SELECT_OPTION,
    ActionKind.PRESS,
    ActionKind.OPEN_PAGE,
    ActionKind.CLOSE_PAGE,
    ActionKind.WAIT_FOR_POPUP,
    ActionKind.WAIT_FOR_DOWNLOAD,
    ActionKind.HANDLE_DIALOG,
})

# 修飾キーの正規順序（出力はこの順に並べる）
MODIFIER_ORDER = ("Alt", "Control", "Meta", "Shift")


# ---------------------------------------------------------------------------
# 同期シグナル
# ---------------------------------------------------------------------------

class SignalKind(str, enum.Enum):
    """操作に付随して発生する非同期イベントの種別。"""

    POPUP = "popup"
    DOWNLOAD = "download"
    DIALOG = "dialog"
    NAVIGATION = "navigation"


class Signal(BaseModel):
    """操作に付随する同期シグナル。

    Attributes:
        kind: シグナル種別
        popup_alias: popup で開いたページのエイリアス
        download_alias: ダウンロードを受け取る変数名
        dismiss: dialog を閉じる（True）か受け入れる（False）か
        url: navigation の遷移先 URL（出力はしない）
    """

    model_config = ConfigDict(frozen=True)

    kind: SignalKind
    popup_alias: Optional[str] = None
    download_alias: Optional[str] = None
    dismiss: bool = True
    url: Optional[str] = None


# ---------------------------------------------------------------------------
# Action 本体
# ---------------------------------------------------------------------------

class Action(BaseModel):
    """確定した1操作。

    sequence は ActionLog.append() 時に採番される。未コミットの候補は
    sequence = -1 を持つ。

    Attributes:
        kind: 操作種別。新しいバージョンで追加された未知の種別は文字列のまま保持する
        page_alias: 操作対象ページのエイリアス（page, page1, ...）。コミット前の候補ではページ ID
        selector: 操作対象要素のセレクタ（ページ操作では None）
        frame_path: iframe の CSS セレクタ列（メインフレームは空）
        url: navigate / openPage の URL
        text: fill の入力値
        files: setInputFiles のファイル名リスト（空リストも有効）
        options: selectOption の値リスト
        key: press のキー（修飾キー込み、例: "Control+a"）
        button: click のボタン（left / middle / right）
        click_count: click の回数
        modifiers: 押下されていた修飾キー
        signals: 付随する同期シグナル
        incomplete_signals: 待機したが発生しなかったシグナル
        sequence: コミット順の通し番号
    """

    model_config = ConfigDict(frozen=True)

    kind: Union[ActionKind, str] = Field(union_mode="left_to_right")
    page_alias: str
    selector: Optional[DiscriminatedSelector] = None
    frame_path: tuple[str, ...] = ()
    url: Optional[str] = None
    text: Optional[str] = None
    files: Optional[tuple[str, ...]] = None
    options: Optional[tuple[str, ...]] = None
    key: Optional[str] = None
    button: str = "left"
    click_count: int = 1
    modifiers: tuple[str, ...] = ()
    signals: tuple[Signal, ...] = ()
    incomplete_signals: tuple[SignalKind, ...] = ()
    sequence: int = Field(default=-1, description="コミット順の通し番号")

    @property
    def kind_name(self) -> str:
        """操作種別の識別子を返す（未知の種別ではその文字列）。"""
        return self.kind.value if isinstance(self.kind, ActionKind) else self.kind

    @property
    def is_committed(self) -> bool:
        """ActionLog に追加済みかどうかを返す。"""
        return self.sequence >= 0

    def signal(self, kind: SignalKind) -> Optional[Signal]:
        """指定種別のシグナルを返す。無ければ None。"""
        for sig in self.signals:
            if sig.kind == kind:
                return sig
        return None

    def with_signal(self, signal: Signal) -> Action:
        """シグナルを追加した新しい Action を返す。"""
        return self.model_copy(update={"signals": self.signals + (signal,)})


def normalize_modifiers(modifiers: Optional[Iterable[str]]) -> tuple[str, ...]:
    """修飾キーを正規順序のタプルに変換する。

    未知のキー名は無視する。

    Args:
        modifiers: 修飾キー名のイテラブル

    Returns:
        MODIFIER_ORDER 順に並べた修飾キーのタプル
    """
    if not modifiers:
        return ()
    given = set(modifiers)
    return tuple(m for m in MODIFIER_ORDER if m in given)
