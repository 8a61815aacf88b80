"""
BaseEmitter — 言語エミッタ共通の生成処理

アクション列からソースコードを組み立てる手順（ヘッダー → 各アクション → フッター）と、
全言語で共通の判断（ダイアログハンドラの前置き、同期待ちの有無、
未対応アクションのプレースホルダー等）を提供する。
言語ごとの構文はサブクラスが実装する。

生成ルール:
  - dialog シグナルを持つアクションは、操作の前にハンドラ登録を出力する
  - popup / download シグナルを持つアクションは、言語ごとの待機構文で包む
  - incomplete_signals を持つアクションは、欠けたシグナルを示すコメントを前置する
  - ルートページがある場合、その用意はヘッダーが行う（openPage はナビゲーションのみ出力する）
  - ルートページが無い場合、テストランナー形式は context フィクスチャからページを開く
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..model.actions import Action, ActionKind, Signal, SignalKind
from ..model.aliases import AliasTable
from ..model.selectors import Selector

logger = logging.getLogger(__name__)

# 待機構文で包むシグナル（外側から順）
_WAIT_SIGNAL_KINDS = (SignalKind.POPUP, SignalKind.DOWNLOAD)


@dataclass
class RenderState:
    """1回の render() 内で共有する状態。

    Attributes:
        root: ヘッダーで用意済みのルートページのエイリアス（無ければ None）
        dialog_count: 登録済みのダイアログハンドラ数
    """

    root: Optional[str] = None
    dialog_count: int = 0

    @property
    def has_root(self) -> bool:
        return self.root is not None

    def next_dialog(self) -> int:
        self.dialog_count += 1
        return self.dialog_count


class BaseEmitter(abc.ABC):
    """言語エミッタの基底クラス。

    Attributes:
        tag: 安定した識別タグ
        name: 表示名
        body_indent: アクション行のインデント
        block_indent: 待機ブロック等の入れ子1段分のインデント
        uses_page_fixture: ルートページをテストフィクスチャから受け取る形式か
        empty_body: アクションが無い場合に本体へ置く文（関数本体が空にできない言語用）
    """

    tag: str = ""
    name: str = ""
    body_indent: str = ""
    block_indent: str = "  "
    uses_page_fixture: bool = False
    empty_body: Optional[str] = None

    # -------------------------------------------------------------------
    # パブリック API
    # -------------------------------------------------------------------

    def render(self, actions: Sequence[Action], aliases: AliasTable) -> str:
        """アクション列からソースコード全体を生成する。"""
        state = RenderState(root=aliases.root)
        body: list[str] = []
        for action in actions:
            body.extend(self.render_action(action, state))
        if not body and self.empty_body:
            body.append(self.empty_body)

        lines = self.header(aliases)
        lines.extend(self._indent(body, self.body_indent))
        lines.extend(self.footer(aliases))
        return "\n".join(lines) + "\n"

    def render_action(self, action: Action, state: RenderState) -> list[str]:
        """1アクション分の行（body_indent なし）を生成する。"""
        lines: list[str] = []
        for missing in action.incomplete_signals:
            lines.append(self.comment(
                f"expected {_kind_value(missing)} did not occur; recorded without synchronization"
            ))

        kind = action.kind
        if kind == ActionKind.OPEN_PAGE:
            return lines + self._open_page(action, state)
        if kind == ActionKind.CLOSE_PAGE:
            return lines + self.statement(self.close_page_expression(action))

        dialog = action.signal(SignalKind.DIALOG)
        if dialog is not None:
            lines.extend(self.dialog_handler(action.page_alias, dialog, state))
        if kind == ActionKind.HANDLE_DIALOG:
            return lines

        waits = [s for k in _WAIT_SIGNAL_KINDS for s in action.signals if s.kind == k]
        if kind in (ActionKind.WAIT_FOR_POPUP, ActionKind.WAIT_FOR_DOWNLOAD):
            for signal in waits:
                lines.extend(self.standalone_wait(action.page_alias, signal))
            return lines

        expression = self.action_expression(action)
        if expression is None:
            logger.warning("未対応のアクションです（%s）: %s", self.tag, _kind_value(kind))
            lines.append(self.comment(f"unsupported action: {_kind_value(kind)}"))
            return lines

        if waits:
            lines.extend(self.wrap_waits(action.page_alias, waits, expression))
        else:
            lines.extend(self.statement(expression))
        return lines

    # -------------------------------------------------------------------
    # 共通処理
    # -------------------------------------------------------------------

    def _open_page(self, action: Action, state: RenderState) -> list[str]:
        alias = action.page_alias
        lines: list[str] = []
        if alias != state.root:
            lines.extend(self.open_page(alias, state))
        if action.url and action.url != "about:blank":
            lines.extend(self.statement([self.navigate_expression(alias, action.url)]))
        return lines

    def root_page_setup(self, aliases: AliasTable) -> list[str]:
        """ヘッダー末尾でルートページを用意する行（body_indent 付き）。

        フィクスチャ形式ではルートページを引数で受け取るため空。
        """
        if self.uses_page_fixture or not aliases.has_root:
            return []
        state = RenderState(root=aliases.root)
        return self._indent(self.open_page(aliases.root, state), self.body_indent)

    def action_expression(self, action: Action) -> Optional[list[str]]:
        """アクション本体の式（複数行可）を返す。未対応の種別は None。"""
        kind = action.kind
        if kind == ActionKind.NAVIGATE and action.url is not None:
            return [self.navigate_expression(action.page_alias, action.url)]
        if action.selector is None:
            return None

        locator = self.locator(action.page_alias, action.frame_path, action.selector)
        if kind == ActionKind.CLICK:
            return self.click_expression(locator, action)
        if kind == ActionKind.FILL:
            return [self.fill_expression(locator, action.text or "")]
        if kind == ActionKind.CHECK:
            return [self.check_expression(locator, True)]
        if kind == ActionKind.UNCHECK:
            return [self.check_expression(locator, False)]
        if kind == ActionKind.PRESS and action.key:
            return [self.press_expression(locator, action.key)]
        if kind == ActionKind.SET_INPUT_FILES:
            return [self.set_input_files_expression(locator, list(action.files or ()))]
        if kind == ActionKind.SELECT_OPTION:
            return [self.select_option_expression(locator, list(action.options or ()))]
        return None

    def locator(self, page_alias: str, frame_path: Sequence[str], selector: Selector) -> str:
        """ページ → フレーム → 要素のロケータ式を組み立てる。"""
        parts = [page_alias]
        parts.extend(self.frame_locator(css) for css in frame_path)
        parts.append(self.selector_call(selector, in_frame=bool(frame_path)))
        return ".".join(parts)

    def _indent(self, lines: Sequence[str], prefix: str) -> list[str]:
        return [prefix + line if line else line for line in lines]

    def indent_block(self, lines: Sequence[str]) -> list[str]:
        """入れ子1段分インデントした行を返す。"""
        return self._indent(lines, self.block_indent)

    # -------------------------------------------------------------------
    # 言語ごとの実装
    # -------------------------------------------------------------------

    @abc.abstractmethod
    def header(self, aliases: AliasTable) -> list[str]:
        """ファイル先頭からアクション直前までの行。"""

    @abc.abstractmethod
    def footer(self, aliases: AliasTable) -> list[str]:
        """最後のアクション以降の行。"""

    @abc.abstractmethod
    def comment(self, text: str) -> str:
        """1行コメント。"""

    @abc.abstractmethod
    def quote(self, value: str) -> str:
        """文字列リテラル。"""

    @abc.abstractmethod
    def statement(self, expression: Sequence[str]) -> list[str]:
        """式を文にする（await / セミコロンの付与）。"""

    @abc.abstractmethod
    def open_page(self, alias: str, state: RenderState) -> list[str]:
        """新しいページを開く文。"""

    @abc.abstractmethod
    def close_page_expression(self, action: Action) -> list[str]:
        """ページを閉じる式。"""

    @abc.abstractmethod
    def navigate_expression(self, alias: str, url: str) -> str:
        """URL へ遷移する式。"""

    @abc.abstractmethod
    def frame_locator(self, css: str) -> str:
        """iframe を指すロケータ呼び出し。"""

    @abc.abstractmethod
    def selector_call(self, selector: Selector, in_frame: bool) -> str:
        """セレクタ記述子に対応するロケータ呼び出し。"""

    @abc.abstractmethod
    def click_expression(self, locator: str, action: Action) -> list[str]:
        """クリックの式。"""

    @abc.abstractmethod
    def fill_expression(self, locator: str, text: str) -> str:
        """テキスト入力の式。"""

    @abc.abstractmethod
    def check_expression(self, locator: str, checked: bool) -> str:
        """チェック / チェック解除の式。"""

    @abc.abstractmethod
    def press_expression(self, locator: str, key: str) -> str:
        """キー押下の式。"""

    @abc.abstractmethod
    def set_input_files_expression(self, locator: str, files: list[str]) -> str:
        """ファイル選択の式。"""

    @abc.abstractmethod
    def select_option_expression(self, locator: str, options: list[str]) -> str:
        """select の選択の式。"""

    @abc.abstractmethod
    def dialog_handler(self, alias: str, signal: Signal, state: RenderState) -> list[str]:
        """ダイアログを1回だけ処理するハンドラ登録文。"""

    @abc.abstractmethod
    def wrap_waits(self, alias: str, waits: Sequence[Signal], expression: Sequence[str]) -> list[str]:
        """popup / download の待機構文で式を包んだ文。"""

    @abc.abstractmethod
    def standalone_wait(self, alias: str, signal: Signal) -> list[str]:
        """トリガー操作なしで popup / download を待つ文。"""


def _kind_value(kind: object) -> str:
    return str(getattr(kind, "value", kind))


def download_variable(signal: Signal) -> str:
    """download シグナルの変数名を返す。"""
    return signal.download_alias or "download"


def popup_variable(signal: Signal) -> str:
    """popup シグナルの変数名を返す。"""
    return signal.popup_alias or "popup"
