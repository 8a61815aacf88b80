"""
PlaywrightBridge — Playwright の BrowserContext と記録セッションの接続

BrowserContext のイベント（ページの開閉、popup、download、dialog、
メインフレームのナビゲーション）と、注入スクリプトから binding 経由で届く
要素イベントを生イベントに変換して RecordingSession へ投入する。

主な機能:
  - ページへの内部 ID 付与（page-1, page-2, ...）
  - popup と通常のページ生成の判別
  - 注入スクリプトのペイロード検証（不正なものは破棄）
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from pydantic import ValidationError

from ..recorder.events import (
    DialogEvent,
    DownloadEvent,
    NavigateEvent,
    PageClosedEvent,
    PageOpenedEvent,
    PopupEvent,
    RawEvent,
    parse_event,
)
from ..recorder.session import RecordingSession, SessionHaltedError

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Dialog, Download, Frame, Page

logger = logging.getLogger(__name__)

# 注入スクリプトのパス
INJECTED_JS_PATH = Path(__file__).parent / "injected.js"

# 注入スクリプトが呼び出す binding 名
BINDING_NAME = "__recgenReport"


class PlaywrightBridge:
    """BrowserContext のイベントを RecordingSession に中継する。

    使用例::

        bridge = PlaywrightBridge(session)
        await bridge.attach(context)
        page = await context.new_page()
    """

    def __init__(self, session: RecordingSession) -> None:
        """PlaywrightBridge を初期化する。

        Args:
            session: イベントの投入先
        """
        self._session = session
        self._page_ids: dict[Any, str] = {}
        self._pending_open: set[str] = set()
        self._counter = 0
        self._context: Optional[BrowserContext] = None

    # -------------------------------------------------------------------
    # 接続
    # -------------------------------------------------------------------

    async def attach(self, context: BrowserContext) -> None:
        """BrowserContext にリスナー・binding・注入スクリプトを設定する。

        既に開いているページは opener なしのページとして登録する。
        """
        if self._context is not None:
            raise RuntimeError("PlaywrightBridge は既に BrowserContext に接続されています")
        self._context = context

        await context.expose_binding(BINDING_NAME, self._on_binding)
        await context.add_init_script(path=str(INJECTED_JS_PATH))
        context.on("page", self._on_page)

        for page in context.pages:
            page_id = self._track(page)
            self._post(PageOpenedEvent(page_id=page_id, url=page.url))
            try:
                await page.evaluate(INJECTED_JS_PATH.read_text(encoding="utf-8"))
            except Exception as exc:
                logger.debug("既存ページへのスクリプト注入をスキップ: %s", exc)

        logger.info("BrowserContext に接続しました（既存ページ %d 件）", len(context.pages))

    def page_id(self, page: Page) -> Optional[str]:
        """ページの内部 ID を返す。未追跡なら None。"""
        return self._page_ids.get(page)

    # -------------------------------------------------------------------
    # ページ・ライフサイクル
    # -------------------------------------------------------------------

    def _track(self, page: Page) -> str:
        """ページに内部 ID を付与し、ページ単位のリスナーを設定する。"""
        page_id = self._page_ids.get(page)
        if page_id is not None:
            return page_id

        self._counter += 1
        page_id = f"page-{self._counter}"
        self._page_ids[page] = page_id

        page.on("popup", lambda popup: self._on_popup(page_id, popup))
        page.on("close", lambda _: self._post(PageClosedEvent(page_id=page_id)))
        page.on("framenavigated", lambda frame: self._on_frame_navigated(page, page_id, frame))
        page.on("download", lambda download: self._on_download(page_id, download))
        page.on("dialog", lambda dialog: self._on_dialog(page_id, dialog))
        logger.debug("ページを追跡します: %s", page_id)
        return page_id

    def _on_page(self, page: Page) -> None:
        """新しいページ。popup かどうかは同じ処理の中で続く popup イベントで判明する。"""
        page_id = self._track(page)
        self._pending_open.add(page_id)
        asyncio.get_running_loop().call_soon(self._announce_open, page, page_id)

    def _announce_open(self, page: Page, page_id: str) -> None:
        if page_id in self._pending_open:
            self._pending_open.discard(page_id)
            self._post(PageOpenedEvent(page_id=page_id, url=page.url))

    def _on_popup(self, opener_id: str, popup: Page) -> None:
        popup_id = self._track(popup)
        self._pending_open.discard(popup_id)
        self._post(PopupEvent(page_id=opener_id, popup_page_id=popup_id, url=popup.url))

    def _on_frame_navigated(self, page: Page, page_id: str, frame: Frame) -> None:
        if frame != page.main_frame:
            return
        self._post(NavigateEvent(page_id=page_id, url=frame.url))

    def _on_download(self, page_id: str, download: Download) -> None:
        self._post(DownloadEvent(page_id=page_id, suggested_filename=download.suggested_filename))

    async def _on_dialog(self, page_id: str, dialog: Dialog) -> None:
        self._post(DialogEvent(page_id=page_id, dialog_type=dialog.type, message=dialog.message))
        try:
            await dialog.dismiss()
        except Exception as exc:
            # 他のハンドラが先に処理した場合
            logger.debug("ダイアログは既に処理済みです: %s", exc)

    # -------------------------------------------------------------------
    # 注入スクリプトからの要素イベント
    # -------------------------------------------------------------------

    def _on_binding(self, source: dict, payload: Any) -> None:
        """注入スクリプトからのペイロードを生イベントに変換して投入する。"""
        page = source.get("page") if isinstance(source, dict) else None
        page_id = self._page_ids.get(page)
        if page_id is None:
            logger.debug("未追跡ページからのペイロードを破棄しました")
            return
        if not isinstance(payload, dict):
            logger.warning("不正なペイロードを破棄しました: %r", payload)
            return

        try:
            event = parse_event({**payload, "page_id": page_id})
        except ValidationError as exc:
            logger.warning("ペイロードの検証に失敗したため破棄しました: %s", exc)
            return
        self._post(event)

    def _post(self, event: RawEvent) -> None:
        try:
            self._session.post(event)
        except SessionHaltedError:
            logger.debug("記録停止後のイベントを破棄しました: %s", event.type)
