"""
EventNormalizer — 生イベントのフィルタリングと候補アクションへの変換

ブラウザから届いた生イベントのうち、操作推定に無関係なもの
（合成イベント、マウス移動、消えた要素への操作等）を破棄し、
残りをセレクタ解決済みの候補として ActionMerger へ渡す。

候補の Action はページをページ ID で指す（page_alias, popup_alias にページ ID が入る）。
エイリアスへの置き換えはコミット時に PageAliasRegistry.bind() が行う。

本クラスは例外を送出しない。要素が消えていた場合は候補を破棄して記録を続ける。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ..model.actions import Action, ActionKind, Signal, SignalKind, normalize_modifiers
from .events import (
    BlurEvent,
    ChangeEvent,
    ClickEvent,
    DialogEvent,
    DownloadEvent,
    ElementEvent,
    FocusEvent,
    InputEvent,
    KeydownEvent,
    MouseMoveEvent,
    NavigateEvent,
    PageClosedEvent,
    PageOpenedEvent,
    PopupEvent,
    RawEvent,
)
from .selector import SelectorResolver
from .snapshot import DomElement

logger = logging.getLogger(__name__)

# 単独では操作にならない修飾キー
_MODIFIER_KEYS = frozenset({"Alt", "Control", "Meta", "Shift", "AltGraph", "CapsLock"})

# テキスト欄では input イベントで値が取れるため記録しないキー
_EDITING_KEYS = frozenset({"Backspace", "Delete"})

# 要素を一意に識別するキー（ページ ID, フレームパス, 要素 ref）
ElementKey = tuple[str, tuple[str, ...], str]


# ---------------------------------------------------------------------------
# 候補データクラス
# ---------------------------------------------------------------------------

@dataclass
class ActionCandidate:
    """確定前の操作候補。

    Attributes:
        action: 未コミットの Action（sequence = -1）
        key: 対象要素のキー（ページ操作では None）
        awaiting: 発生が予想される同期シグナル
        timestamp: 元イベントの発生時刻
    """

    action: Action
    key: Optional[ElementKey] = None
    awaiting: Optional[SignalKind] = None
    timestamp: float = 0.0

    @property
    def mergeable(self) -> bool:
        """後続の入力で上書きされ得る候補（fill）かどうかを返す。"""
        return self.action.kind == ActionKind.FILL


@dataclass
class SignalCandidate:
    """同期シグナル候補。

    直前の操作のシグナル待ち窓内であればその操作に付与され、
    そうでなければ standalone の Action として単独で確定する。

    Attributes:
        page_id: シグナル発生元ページの ID
        signal: 付与するシグナル
        standalone: 付与先が無い場合に確定させる Action
        timestamp: 元イベントの発生時刻
    """

    page_id: str
    signal: Signal
    standalone: Action
    timestamp: float = 0.0


Candidate = Union[ActionCandidate, SignalCandidate]


# ---------------------------------------------------------------------------
# EventNormalizer 本体
# ---------------------------------------------------------------------------

class EventNormalizer:
    """生イベントを候補アクションに変換する。

    開いているページを ID で追跡する。エイリアスは扱わない。
    """

    def __init__(self, resolver: SelectorResolver) -> None:
        """EventNormalizer を初期化する。

        Args:
            resolver: セレクタリゾルバ
        """
        self._resolver = resolver
        self._urls: dict[str, Optional[str]] = {}
        self._closed: set[str] = set()
        # 最初の読み込みが opener の操作の結果である popup
        self._popup_loads: set[str] = set()

    def is_open(self, page_id: str) -> bool:
        """ページが開かれていて、まだ close されていないかを返す。"""
        return page_id in self._urls and page_id not in self._closed

    def normalize(self, event: RawEvent) -> list[Candidate]:
        """生イベントを候補のリストに変換する。

        Args:
            event: ブラウザから受け取った生イベント

        Returns:
            候補のリスト（破棄された場合は空リスト）
        """
        if event.synthetic:
            logger.debug("合成イベントを破棄しました: %s", event.type)
            return []
        if isinstance(event, MouseMoveEvent):
            return []
        if isinstance(event, (FocusEvent, BlurEvent)):
            # フォーカス移動は入力マージ窓を区切らない
            logger.debug("フォーカスイベントを破棄しました: %s", event.type)
            return []

        if isinstance(event, PageOpenedEvent):
            return self._on_page_opened(event)
        if isinstance(event, PopupEvent):
            return self._on_popup(event)

        if not self.is_open(event.page_id):
            logger.debug("未登録または close 済みページのイベントを破棄しました: %s (%s)", event.type, event.page_id)
            return []

        if isinstance(event, PageClosedEvent):
            return self._on_page_closed(event)
        if isinstance(event, NavigateEvent):
            return self._on_navigate(event)
        if isinstance(event, DownloadEvent):
            return self._on_download(event)
        if isinstance(event, DialogEvent):
            return self._on_dialog(event)
        if isinstance(event, ElementEvent):
            return self._on_element_event(event)

        logger.debug("未対応のイベントを破棄しました: %s", event.type)
        return []

    # -------------------------------------------------------------------
    # ページ・ライフサイクル
    # -------------------------------------------------------------------

    def _on_page_opened(self, event: PageOpenedEvent) -> list[Candidate]:
        """opener の無いページを登録し、openPage 候補を生成する。"""
        if event.page_id in self._urls:
            logger.debug("登録済みページの pageOpened を破棄しました: %s", event.page_id)
            return []

        self._urls[event.page_id] = event.url
        action = Action(kind=ActionKind.OPEN_PAGE, page_alias=event.page_id, url=_meaningful_url(event.url))
        return [ActionCandidate(action=action, timestamp=event.timestamp)]

    def _on_popup(self, event: PopupEvent) -> list[Candidate]:
        """popup を登録し、opener の操作に付与するシグナル候補を生成する。"""
        if event.popup_page_id in self._urls:
            logger.debug("登録済みページの popup を破棄しました: %s", event.popup_page_id)
            return []

        if not self.is_open(event.page_id):
            # opener が追跡外の場合は独立したページとして扱う
            return self._on_page_opened(PageOpenedEvent(
                page_id=event.popup_page_id, url=event.url, timestamp=event.timestamp,
            ))

        self._urls[event.popup_page_id] = event.url
        if _meaningful_url(event.url) is None:
            self._popup_loads.add(event.popup_page_id)

        signal = Signal(kind=SignalKind.POPUP, popup_alias=event.popup_page_id)
        standalone = Action(
            kind=ActionKind.WAIT_FOR_POPUP, page_alias=event.page_id, signals=(signal,),
        )
        return [SignalCandidate(event.page_id, signal, standalone, event.timestamp)]

    def _on_page_closed(self, event: PageClosedEvent) -> list[Candidate]:
        """ページを close 済みにし、closePage 候補を生成する。"""
        self._closed.add(event.page_id)
        action = Action(kind=ActionKind.CLOSE_PAGE, page_alias=event.page_id)
        return [ActionCandidate(action=action, timestamp=event.timestamp)]

    def _on_navigate(self, event: NavigateEvent) -> list[Candidate]:
        """同一 URL への遷移を破棄し、navigation シグナル候補を生成する。"""
        if self._urls.get(event.page_id) == event.url:
            logger.debug("同一 URL へのナビゲーションを破棄しました: %s", event.url)
            return []
        self._urls[event.page_id] = event.url
        if event.page_id in self._popup_loads:
            self._popup_loads.discard(event.page_id)
            logger.debug("popup の最初の読み込みを破棄しました: %s", event.url)
            return []

        signal = Signal(kind=SignalKind.NAVIGATION, url=event.url)
        standalone = Action(kind=ActionKind.NAVIGATE, page_alias=event.page_id, url=event.url)
        return [SignalCandidate(event.page_id, signal, standalone, event.timestamp)]

    def _on_download(self, event: DownloadEvent) -> list[Candidate]:
        """download シグナル候補を生成する。エイリアスはコミット時に採番される。"""
        signal = Signal(kind=SignalKind.DOWNLOAD)
        standalone = Action(kind=ActionKind.WAIT_FOR_DOWNLOAD, page_alias=event.page_id, signals=(signal,))
        return [SignalCandidate(event.page_id, signal, standalone, event.timestamp)]

    def _on_dialog(self, event: DialogEvent) -> list[Candidate]:
        """dialog シグナル候補を生成する。"""
        signal = Signal(kind=SignalKind.DIALOG, dismiss=event.dismissed)
        standalone = Action(kind=ActionKind.HANDLE_DIALOG, page_alias=event.page_id, signals=(signal,))
        return [SignalCandidate(event.page_id, signal, standalone, event.timestamp)]

    # -------------------------------------------------------------------
    # 要素イベント
    # -------------------------------------------------------------------

    def _on_element_event(self, event: ElementEvent) -> list[Candidate]:
        """要素イベントを候補に変換する。対象要素が消えていれば破棄する。"""
        snapshot = event.snapshot
        element = snapshot.get(event.element) if snapshot is not None else None
        if snapshot is None or element is None:
            logger.debug("対象要素が見つからないためイベントを破棄しました: %s (%s)", event.type, event.element)
            return []

        key: ElementKey = (event.page_id, tuple(event.frame_path), element.ref)
        kind, payload = self._classify(event, element)
        if kind is None:
            return []

        selector = self._resolver.resolve(element, snapshot)
        action = Action(
            kind=kind,
            page_alias=event.page_id,
            selector=selector,
            frame_path=tuple(event.frame_path),
            **payload,
        )
        awaiting = event.awaiting if isinstance(event, ClickEvent) else None
        return [ActionCandidate(action=action, key=key, awaiting=awaiting, timestamp=event.timestamp)]

    def _classify(self, event: ElementEvent, element: DomElement) -> tuple[Optional[ActionKind], dict]:
        """要素イベントの操作種別とペイロードを決定する。

        Returns:
            (操作種別, Action に渡す追加フィールド)。破棄する場合は種別が None
        """
        modifiers = normalize_modifiers(event.modifiers)

        if isinstance(event, ClickEvent):
            if element.is_file_input or element.is_select:
                # change イベントで setInputFiles / selectOption として記録する
                return None, {}
            if element.is_toggle:
                kind = ActionKind.CHECK if element.checked else ActionKind.UNCHECK
                return kind, {}
            return ActionKind.CLICK, {
                "button": event.button,
                "click_count": event.click_count,
                "modifiers": modifiers,
            }

        if isinstance(event, InputEvent):
            if not element.is_text_field:
                return None, {}
            value = event.value if event.value is not None else (element.value or "")
            return ActionKind.FILL, {"text": value}

        if isinstance(event, ChangeEvent):
            if element.is_file_input:
                return ActionKind.SET_INPUT_FILES, {"files": tuple(element.files)}
            if element.is_select:
                return ActionKind.SELECT_OPTION, {"options": tuple(element.selected)}
            return None, {}

        if isinstance(event, KeydownEvent):
            key = event.key
            if key in _MODIFIER_KEYS:
                return None, {}
            command_modifiers = [m for m in modifiers if m != "Shift"]
            if len(key) == 1 and not command_modifiers:
                # 印字可能文字は input イベントで fill として記録する
                return None, {}
            if key in _EDITING_KEYS and element.is_text_field and not command_modifiers:
                return None, {}
            combo = "+".join([*modifiers, key])
            return ActionKind.PRESS, {"key": combo}

        return None, {}


def _meaningful_url(url: Optional[str]) -> Optional[str]:
    """空ページ（about:blank 等）の URL を None に変換する。"""
    if not url or url in ("about:blank", "chrome://newtab/"):
        return None
    return url
