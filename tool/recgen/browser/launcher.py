"""
RecordingBrowser — 記録用ブラウザの起動・終了と成果物の保存

Chromium を起動して BrowserContext を生成し、PlaywrightBridge で
記録セッションに接続する。終了時にトレース・storage state・HAR を保存する。

主な機能:
  - ブラウザの起動（headed/headless、ビューポート指定）
  - HAR 記録・トレース記録の有効化
  - 終了時の成果物保存とリソースの安全なクリーンアップ
"""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from ..config import RecorderConfig
from ..recorder.session import RecordingSession
from .bridge import PlaywrightBridge

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page

logger = logging.getLogger(__name__)


class BrowserState(enum.Enum):
    """記録用ブラウザの状態。"""

    IDLE = "idle"
    LAUNCHING = "launching"
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class RecordingBrowser:
    """記録用ブラウザのライフサイクル管理クラス。

    使用例::

        browser = RecordingBrowser(session, save_trace=Path("trace.zip"))
        page = await browser.launch()
        await page.goto("https://example.com")
        ...
        await browser.close()
    """

    def __init__(
        self,
        session: RecordingSession,
        *,
        save_trace: Optional[Path] = None,
        save_storage: Optional[Path] = None,
        save_har: Optional[Path] = None,
    ) -> None:
        """RecordingBrowser を初期化する。

        Args:
            session: 接続する記録セッション
            save_trace: トレースの保存先（None で記録しない）
            save_storage: storage state の保存先（None で保存しない）
            save_har: HAR の保存先（None で記録しない）
        """
        self._session = session
        self._save_trace = save_trace
        self._save_storage = save_storage
        self._save_har = save_har

        self._state = BrowserState.IDLE
        self._pw_instance: Optional[Any] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._bridge: Optional[PlaywrightBridge] = None

    @property
    def state(self) -> BrowserState:
        """現在の状態を返す。"""
        return self._state

    @property
    def context(self) -> Optional[BrowserContext]:
        return self._context

    @property
    def bridge(self) -> Optional[PlaywrightBridge]:
        return self._bridge

    # -------------------------------------------------------------------
    # 起動
    # -------------------------------------------------------------------

    def _context_options(self, config: RecorderConfig) -> dict:
        options: dict = {
            "viewport": {"width": config.viewport_width, "height": config.viewport_height},
        }
        if self._save_har is not None:
            options["record_har_path"] = str(self._save_har)
            logger.info("HAR 記録を有効化: %s", self._save_har)
        return options

    async def launch(self) -> Page:
        """ブラウザを起動し、記録セッションに接続した最初のページを返す。

        Raises:
            RuntimeError: 既に起動済みの場合
        """
        if self._state != BrowserState.IDLE:
            raise RuntimeError(
                f"ブラウザは {self._state.value} 状態のため起動できません"
            )

        config = self._session.config
        self._state = BrowserState.LAUNCHING
        logger.info("ブラウザを起動しています... (headed=%s)", config.headed)

        try:
            from playwright.async_api import async_playwright

            pw = await async_playwright().start()
            self._pw_instance = pw

            self._browser = await pw.chromium.launch(headless=not config.headed)
            self._context = await self._browser.new_context(**self._context_options(config))

            if self._save_trace is not None:
                await self._context.tracing.start(screenshots=True, snapshots=True, sources=True)
                logger.info("トレース記録を開始しました")

            self._bridge = PlaywrightBridge(self._session)
            await self._bridge.attach(self._context)

            page = await self._context.new_page()
            self._state = BrowserState.ACTIVE
            logger.info("ブラウザを起動しました")
            return page

        except Exception:
            logger.exception("ブラウザの起動に失敗しました")
            await self._cleanup()
            self._state = BrowserState.IDLE
            raise

    # -------------------------------------------------------------------
    # 終了
    # -------------------------------------------------------------------

    async def close(self) -> None:
        """成果物を保存してブラウザを終了する。複数回呼んでも安全。"""
        if self._state in (BrowserState.CLOSED, BrowserState.CLOSING, BrowserState.IDLE):
            return

        self._state = BrowserState.CLOSING
        logger.info("ブラウザを終了しています...")

        context = self._context
        if context is not None:
            if self._save_trace is not None:
                try:
                    await context.tracing.stop(path=str(self._save_trace))
                    logger.info("トレースを保存しました: %s", self._save_trace)
                except Exception:
                    logger.exception("トレースの保存に失敗しました")
            if self._save_storage is not None:
                try:
                    await context.storage_state(path=str(self._save_storage))
                    logger.info("storage state を保存しました: %s", self._save_storage)
                except Exception:
                    logger.exception("storage state の保存に失敗しました")

        await self._cleanup()
        if self._save_har is not None:
            logger.info("HAR を保存しました: %s", self._save_har)
        self._state = BrowserState.CLOSED
        logger.info("ブラウザを終了しました")

    async def _cleanup(self) -> None:
        """context（HAR の書き出しを含む）・browser・playwright を順に閉じる。"""
        try:
            if self._context is not None:
                await self._context.close()
            if self._browser is not None:
                await self._browser.close()
            if self._pw_instance is not None and hasattr(self._pw_instance, "stop"):
                await self._pw_instance.stop()
        except Exception:
            logger.exception("ブラウザの終了中にエラーが発生しました")
        finally:
            self._context = None
            self._browser = None
            self._pw_instance = None
