"""
Python エミッタ — playwright の Python API 向けコード生成

主な構成:
  - PythonEmitter: 同期 API（sync_playwright）のスクリプト
  - PythonAsyncEmitter: asyncio API（async_playwright）のスクリプト
  - PytestEmitter: pytest-playwright の page フィクスチャを使うテスト関数
"""

from __future__ import annotations

from typing import Sequence

from ..model.actions import Action, Signal, SignalKind
from ..model.aliases import AliasTable
from ..model.selectors import (
    CssSelector,
    LabelSelector,
    PlaceholderSelector,
    RoleSelector,
    Selector,
    TestIdSelector,
    TextSelector,
)
from .base import BaseEmitter, RenderState, download_variable, popup_variable
from .quoting import quote_python


class PythonEmitter(BaseEmitter):
    """同期 API のスクリプトを生成する。"""

    tag = "python"
    name = "Python"
    body_indent = "    "
    block_indent = "    "

    # 非同期版は await を付ける
    awaits = False

    # -------------------------------------------------------------------
    # ファイル構造
    # -------------------------------------------------------------------

    def header(self, aliases: AliasTable) -> list[str]:
        return [
            "import re",
            "from playwright.sync_api import Playwright, sync_playwright, expect",
            "",
            "",
            "def run(playwright: Playwright) -> None:",
            "    browser = playwright.chromium.launch(headless=False)",
            "    context = browser.new_context()",
        ] + self.root_page_setup(aliases)

    def footer(self, aliases: AliasTable) -> list[str]:
        return [
            "",
            "    # ---------------------",
            "    context.close()",
            "    browser.close()",
            "",
            "",
            "with sync_playwright() as playwright:",
            "    run(playwright)",
        ]

    def comment(self, text: str) -> str:
        return f"# {text}"

    def quote(self, value: str) -> str:
        return quote_python(value)

    def statement(self, expression: Sequence[str]) -> list[str]:
        lines = list(expression)
        if self.awaits and lines:
            lines[0] = "await " + lines[0]
        return lines

    def _await(self) -> str:
        return "await " if self.awaits else ""

    # -------------------------------------------------------------------
    # ページ操作
    # -------------------------------------------------------------------

    def open_page(self, alias: str, state: RenderState) -> list[str]:
        return [f"{alias} = {self._await()}context.new_page()"]

    def close_page_expression(self, action: Action) -> list[str]:
        return [f"{action.page_alias}.close()"]

    def navigate_expression(self, alias: str, url: str) -> str:
        return f"{alias}.goto({self.quote(url)})"

    # -------------------------------------------------------------------
    # ロケータ
    # -------------------------------------------------------------------

    def frame_locator(self, css: str) -> str:
        return f"frame_locator({self.quote(css)})"

    def selector_call(self, selector: Selector, in_frame: bool) -> str:
        q = self.quote
        if isinstance(selector, TestIdSelector):
            return f"get_by_test_id({q(selector.test_id)})"
        if isinstance(selector, RoleSelector):
            args = [q(selector.role)]
            if selector.name is not None:
                args.append(f"name={q(selector.name)}")
            if selector.exact:
                args.append("exact=True")
            return f"get_by_role({', '.join(args)})"
        if isinstance(selector, LabelSelector):
            return f"get_by_label({q(selector.label)})"
        if isinstance(selector, PlaceholderSelector):
            return f"get_by_placeholder({q(selector.placeholder)})"
        if isinstance(selector, TextSelector):
            return f"get_by_text({q(selector.text)})"
        if isinstance(selector, CssSelector):
            return f"locator({q(selector.css)})"
        raise TypeError(f"未知のセレクタです: {selector!r}")

    # -------------------------------------------------------------------
    # 要素操作
    # -------------------------------------------------------------------

    def click_expression(self, locator: str, action: Action) -> list[str]:
        method = "dblclick" if action.click_count == 2 else "click"
        options: list[str] = []
        if action.button != "left":
            options.append(f"button={self.quote(action.button)}")
        if action.modifiers:
            options.append(f"modifiers={self._list(action.modifiers)}")
        if action.click_count > 2:
            options.append(f"click_count={action.click_count}")
        return [f"{locator}.{method}({', '.join(options)})"]

    def fill_expression(self, locator: str, text: str) -> str:
        return f"{locator}.fill({self.quote(text)})"

    def check_expression(self, locator: str, checked: bool) -> str:
        return f"{locator}.{'check' if checked else 'uncheck'}()"

    def press_expression(self, locator: str, key: str) -> str:
        return f"{locator}.press({self.quote(key)})"

    def set_input_files_expression(self, locator: str, files: list[str]) -> str:
        value = self.quote(files[0]) if len(files) == 1 else self._list(files)
        return f"{locator}.set_input_files({value})"

    def select_option_expression(self, locator: str, options: list[str]) -> str:
        value = self.quote(options[0]) if len(options) == 1 else self._list(options)
        return f"{locator}.select_option({value})"

    def _list(self, values: Sequence[str]) -> str:
        return "[" + ", ".join(self.quote(v) for v in values) + "]"

    # -------------------------------------------------------------------
    # 同期シグナル
    # -------------------------------------------------------------------

    def dialog_handler(self, alias: str, signal: Signal, state: RenderState) -> list[str]:
        method = "dismiss" if signal.dismiss else "accept"
        return [f'{alias}.once("dialog", lambda dialog: dialog.{method}())']

    def wrap_waits(self, alias: str, waits: Sequence[Signal], expression: Sequence[str]) -> list[str]:
        lines = self.statement(expression)
        with_keyword = "async with" if self.awaits else "with"
        for signal in reversed(waits):
            variable, method = _wait_target(signal)
            info = f"{variable}_info"
            lines = (
                [f"{with_keyword} {alias}.{method}() as {info}:"]
                + self.indent_block(lines)
                + [f"{variable} = {self._await()}{info}.value"]
            )
        return lines

    def standalone_wait(self, alias: str, signal: Signal) -> list[str]:
        variable, _ = _wait_target(signal)
        return [f"{variable} = {self._await()}{alias}.wait_for_event({self.quote(signal.kind.value)})"]


class PythonAsyncEmitter(PythonEmitter):
    """asyncio API のスクリプトを生成する。"""

    tag = "python-async"
    name = "Python Async"
    awaits = True

    def header(self, aliases: AliasTable) -> list[str]:
        return [
            "import asyncio",
            "import re",
            "from playwright.async_api import Playwright, async_playwright, expect",
            "",
            "",
            "async def run(playwright: Playwright) -> None:",
            "    browser = await playwright.chromium.launch(headless=False)",
            "    context = await browser.new_context()",
        ] + self.root_page_setup(aliases)

    def footer(self, aliases: AliasTable) -> list[str]:
        return [
            "",
            "    # ---------------------",
            "    await context.close()",
            "    await browser.close()",
            "",
            "",
            "async def main() -> None:",
            "    async with async_playwright() as playwright:",
            "        await run(playwright)",
            "",
            "",
            "asyncio.run(main())",
        ]


class PytestEmitter(PythonEmitter):
    """pytest-playwright のテスト関数を生成する。

    ルートページがあれば page フィクスチャ、無ければ context フィクスチャを受け取る。
    """

    tag = "python-pytest"
    name = "Pytest"
    uses_page_fixture = True
    empty_body = "pass"

    def header(self, aliases: AliasTable) -> list[str]:
        if aliases.has_root:
            return [
                "import re",
                "from playwright.sync_api import Page, expect",
                "",
                "",
                f"def test_example({aliases.root}: Page) -> None:",
            ]
        return [
            "import re",
            "from playwright.sync_api import BrowserContext, expect",
            "",
            "",
            "def test_example(context: BrowserContext) -> None:",
        ]

    def footer(self, aliases: AliasTable) -> list[str]:
        return []

    def open_page(self, alias: str, state: RenderState) -> list[str]:
        context = f"{state.root}.context" if state.has_root else "context"
        return [f"{alias} = {context}.new_page()"]


def _wait_target(signal: Signal) -> tuple[str, str]:
    """待機シグナルの (変数名, expect_* メソッド名) を返す。"""
    if signal.kind == SignalKind.POPUP:
        return popup_variable(signal), "expect_popup"
    return download_variable(signal), "expect_download"
