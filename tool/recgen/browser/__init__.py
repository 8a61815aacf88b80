"""
browser パッケージ — Playwright と記録セッションの接続

主な構成:
  - bridge: BrowserContext のイベントを生イベントとして中継する PlaywrightBridge
  - launcher: 記録用ブラウザの起動・終了と成果物保存（RecordingBrowser）
  - injected.js: ページに注入する操作検出スクリプト
"""

from __future__ import annotations

from .bridge import PlaywrightBridge
from .launcher import BrowserState, RecordingBrowser

__all__ = ["BrowserState", "PlaywrightBridge", "RecordingBrowser"]
