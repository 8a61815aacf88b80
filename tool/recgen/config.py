"""
レコーダー設定 — 環境変数・CLI 引数からの設定読み込み

環境変数または CLI 引数で記録・コード生成の動作を制御する。
CLI 引数 > 環境変数 > デフォルト値 の優先順位で適用される。

環境変数一覧:
  RECGEN_TARGET            : 表示する出力言語タグ（デフォルト: python）
  RECGEN_SIGNAL_WINDOW_MS  : 操作後にシグナルを受け付ける時間（デフォルト: 500）
  RECGEN_SYNC_TIMEOUT_MS   : 同期シグナル待ちの最大時間（デフォルト: 5000）
  RECGEN_TEST_ID_ATTRIBUTE : テスト ID 属性名（デフォルト: data-testid）
  RECGEN_HEADED            : ブラウザ表示モード（true/false, デフォルト: true）
  RECGEN_VIEWPORT_WIDTH    : ビューポート幅（デフォルト: 1280）
  RECGEN_VIEWPORT_HEIGHT   : ビューポート高さ（デフォルト: 720）
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# 環境変数キー定数
# ---------------------------------------------------------------------------

_ENV_TARGET = "RECGEN_TARGET"
_ENV_SIGNAL_WINDOW_MS = "RECGEN_SIGNAL_WINDOW_MS"
_ENV_SYNC_TIMEOUT_MS = "RECGEN_SYNC_TIMEOUT_MS"
_ENV_TEST_ID_ATTRIBUTE = "RECGEN_TEST_ID_ATTRIBUTE"
_ENV_HEADED = "RECGEN_HEADED"
_ENV_VIEWPORT_WIDTH = "RECGEN_VIEWPORT_WIDTH"
_ENV_VIEWPORT_HEIGHT = "RECGEN_VIEWPORT_HEIGHT"


# ---------------------------------------------------------------------------
# 設定データクラス
# ---------------------------------------------------------------------------

@dataclass
class RecorderConfig:
    """記録セッションの実行時設定。

    Attributes:
        target: 表示する出力言語タグ
        signal_window_ms: 操作後に popup / download 等を受け付ける時間（ミリ秒）
        sync_timeout_ms: 同期シグナル待ちの最大時間（ミリ秒）
        test_id_attribute: テスト ID として扱う属性名
        headed: ブラウザ表示モード
        viewport_width: ビューポート幅
        viewport_height: ビューポート高さ
    """

    target: str = "python"
    signal_window_ms: int = 500
    sync_timeout_ms: int = 5000
    test_id_attribute: str = "data-testid"
    headed: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720

    @property
    def signal_window(self) -> float:
        """signal_window_ms を秒で返す。"""
        return self.signal_window_ms / 1000

    @property
    def sync_timeout(self) -> float:
        """sync_timeout_ms を秒で返す。"""
        return self.sync_timeout_ms / 1000


# ---------------------------------------------------------------------------
# 環境変数からの読み込み
# ---------------------------------------------------------------------------

def _parse_bool(value: str) -> bool:
    """文字列を bool に変換する。

    Args:
        value: "true", "1", "yes" → True、それ以外 → False

    Returns:
        変換結果
    """
    return value.lower() in ("true", "1", "yes")


def _parse_non_negative_int(env: Mapping[str, str], key: str) -> Optional[int]:
    """環境変数を 0 以上の整数として読む。不正値は警告して None を返す。"""
    raw = env[key]
    try:
        value = int(raw)
    except ValueError:
        logger.warning("%s の値が不正です: %s", key, raw)
        return None
    if value < 0:
        logger.warning("%s には 0 以上を指定してください: %s", key, raw)
        return None
    return value


def load_config_from_env(env: Optional[Mapping[str, str]] = None) -> RecorderConfig:
    """環境変数から RecorderConfig を生成する。

    設定されていない環境変数はデフォルト値を使用する。

    Args:
        env: 参照する環境変数（省略時は os.environ）

    Returns:
        環境変数から読み込んだ設定
    """
    env = os.environ if env is None else env
    config = RecorderConfig()

    if _ENV_TARGET in env:
        config.target = env[_ENV_TARGET]

    if _ENV_TEST_ID_ATTRIBUTE in env and env[_ENV_TEST_ID_ATTRIBUTE]:
        config.test_id_attribute = env[_ENV_TEST_ID_ATTRIBUTE]

    if _ENV_HEADED in env:
        config.headed = _parse_bool(env[_ENV_HEADED])

    int_fields = (
        (_ENV_SIGNAL_WINDOW_MS, "signal_window_ms"),
        (_ENV_SYNC_TIMEOUT_MS, "sync_timeout_ms"),
        (_ENV_VIEWPORT_WIDTH, "viewport_width"),
        (_ENV_VIEWPORT_HEIGHT, "viewport_height"),
    )
    for key, attr in int_fields:
        if key in env:
            value = _parse_non_negative_int(env, key)
            if value is not None:
                setattr(config, attr, value)

    logger.info("設定を読み込みました: %s", config)
    return config


def apply_cli_args(
    config: RecorderConfig,
    *,
    target: Optional[str] = None,
    test_id_attribute: Optional[str] = None,
    headed: Optional[bool] = None,
    viewport: Optional[str] = None,
) -> RecorderConfig:
    """CLI 引数を RecorderConfig に適用する。

    CLI 引数が指定されている場合のみ上書きする。

    Args:
        config: ベースとなる設定（環境変数から読み込み済み）
        target: --target の値
        test_id_attribute: --test-id-attribute の値
        headed: --headed / --headless の値
        viewport: --viewport の値（WIDTHxHEIGHT）

    Returns:
        CLI 引数が適用された設定
    """
    if target is not None:
        config.target = target
    if test_id_attribute is not None:
        config.test_id_attribute = test_id_attribute
    if headed is not None:
        config.headed = headed

    if viewport is not None:
        try:
            w, h = viewport.lower().split("x")
            config.viewport_width = int(w)
            config.viewport_height = int(h)
        except ValueError:
            logger.warning("--viewport の形式が不正です: %s (WIDTHxHEIGHT)", viewport)

    return config
