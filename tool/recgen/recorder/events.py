"""
生イベント定義 — ブラウザ制御側から受け取るイベントのモデル

ブラウザブリッジ（またはテスト）が RecordingSession.post() に渡す
型付きイベント。type フィールドで判別する。
"""

from __future__ import annotations

import time
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..model.actions import SignalKind
from .snapshot import DomSnapshot


# ---------------------------------------------------------------------------
# 共通基底
# ---------------------------------------------------------------------------

class BaseEvent(BaseModel):
    """全イベント共通のフィールド。

    Attributes:
        page_id: イベント発生元ページの内部 ID
        timestamp: 発生時刻（秒）
        synthetic: 内部プローブ等による合成イベントか
    """

    page_id: str
    timestamp: float = Field(default_factory=time.monotonic)
    synthetic: bool = False


class ElementEvent(BaseEvent):
    """要素を対象とするイベントの共通フィールド。

    Attributes:
        element: 対象要素の ref
        snapshot: 発生時点の DOM スナップショット
        frame_path: 要素を含む iframe の CSS セレクタ列
        modifiers: 押下中の修飾キー
    """

    element: Optional[str] = None
    snapshot: Optional[DomSnapshot] = None
    frame_path: list[str] = Field(default_factory=list)
    modifiers: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# 要素操作イベント
# ---------------------------------------------------------------------------

class ClickEvent(ElementEvent):
    """クリック。awaiting は同期待ちが予想されるシグナル（download 属性付きリンク等）。"""

    type: Literal["click"] = "click"
    button: Literal["left", "middle", "right"] = "left"
    click_count: int = 1
    awaiting: Optional[SignalKind] = None


class InputEvent(ElementEvent):
    """テキスト入力。value は入力後の要素の値全体。"""

    type: Literal["input"] = "input"
    value: Optional[str] = None


class ChangeEvent(ElementEvent):
    """change イベント（file input / select の確定）。"""

    type: Literal["change"] = "change"


class KeydownEvent(ElementEvent):
    """キー押下。"""

    type: Literal["keydown"] = "keydown"
    key: str


class FocusEvent(ElementEvent):
    """フォーカス取得。"""

    type: Literal["focus"] = "focus"


class BlurEvent(ElementEvent):
    """フォーカス喪失。"""

    type: Literal["blur"] = "blur"


class MouseMoveEvent(ElementEvent):
    """マウス移動。正規化で常に破棄される。"""

    type: Literal["mousemove"] = "mousemove"


# ---------------------------------------------------------------------------
# ページ・ライフサイクルイベント
# ---------------------------------------------------------------------------

class NavigateEvent(BaseEvent):
    """メインフレームのナビゲーション。"""

    type: Literal["navigate"] = "navigate"
    url: str


class PageOpenedEvent(BaseEvent):
    """新しいページ（opener なし）が開かれた。"""

    type: Literal["pageOpened"] = "pageOpened"
    url: Optional[str] = None


class PopupEvent(BaseEvent):
    """page_id のページから popup が開かれた。"""

    type: Literal["popup"] = "popup"
    popup_page_id: str
    url: Optional[str] = None


class PageClosedEvent(BaseEvent):
    """ページが閉じられた。"""

    type: Literal["pageClosed"] = "pageClosed"


class DownloadEvent(BaseEvent):
    """ダウンロードが開始された。"""

    type: Literal["download"] = "download"
    suggested_filename: Optional[str] = None


class DialogEvent(BaseEvent):
    """ダイアログが表示され、ハンドラで処理された。"""

    type: Literal["dialog"] = "dialog"
    dialog_type: str = "alert"
    message: str = ""
    dismissed: bool = True


RawEvent = Annotated[
    Union[
        ClickEvent,
        InputEvent,
        ChangeEvent,
        KeydownEvent,
        FocusEvent,
        BlurEvent,
        MouseMoveEvent,
        NavigateEvent,
        PageOpenedEvent,
        PopupEvent,
        PageClosedEvent,
        DownloadEvent,
        DialogEvent,
    ],
    Field(discriminator="type"),
]
"""全イベントの判別付き Union。"""

_RAW_EVENT_ADAPTER: TypeAdapter[RawEvent] = TypeAdapter(RawEvent)


def parse_event(data: dict) -> RawEvent:
    """辞書（ブリッジから受け取った JSON 等）をイベントモデルに変換する。

    Raises:
        pydantic.ValidationError: 形式が不正な場合
    """
    return _RAW_EVENT_ADAPTER.validate_python(data)
