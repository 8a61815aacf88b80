"""
JavaScript エミッタ — Node.js 向け Playwright コード生成

主な構成:
  - JavaScriptEmitter: playwright ライブラリを require するスクリプト
  - PlaywrightTestEmitter: @playwright/test のテスト
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
from .quoting import quote_js


class JavaScriptEmitter(BaseEmitter):
    """playwright ライブラリを使う Node.js スクリプトを生成する。"""

    tag = "javascript"
    name = "JavaScript"
    body_indent = "  "
    block_indent = "  "

    # -------------------------------------------------------------------
    # ファイル構造
    # -------------------------------------------------------------------

    def header(self, aliases: AliasTable) -> list[str]:
        return [
            "const { chromium } = require('playwright');",
            "",
            "(async () => {",
            "  const browser = await chromium.launch({",
            "    headless: false",
            "  });",
            "  const context = await browser.newContext();",
        ] + self.root_page_setup(aliases)

    def footer(self, aliases: AliasTable) -> list[str]:
        return [
            "",
            "  // ---------------------",
            "  await context.close();",
            "  await browser.close();",
            "})();",
        ]

    def comment(self, text: str) -> str:
        return f"// {text}"

    def quote(self, value: str) -> str:
        return quote_js(value)

    def statement(self, expression: Sequence[str]) -> list[str]:
        lines = list(expression)
        if lines:
            lines[0] = "await " + lines[0]
            lines[-1] = lines[-1] + ";"
        return lines

    # -------------------------------------------------------------------
    # ページ操作
    # -------------------------------------------------------------------

    def open_page(self, alias: str, state: RenderState) -> list[str]:
        return [f"const {alias} = await context.newPage();"]

    def close_page_expression(self, action: Action) -> list[str]:
        return [f"{action.page_alias}.close()"]

    def navigate_expression(self, alias: str, url: str) -> str:
        return f"{alias}.goto({self.quote(url)})"

    # -------------------------------------------------------------------
    # ロケータ
    # -------------------------------------------------------------------

    def frame_locator(self, css: str) -> str:
        return f"frameLocator({self.quote(css)})"

    def selector_call(self, selector: Selector, in_frame: bool) -> str:
        q = self.quote
        if isinstance(selector, TestIdSelector):
            return f"getByTestId({q(selector.test_id)})"
        if isinstance(selector, RoleSelector):
            options: list[str] = []
            if selector.name is not None:
                options.append(f"name: {q(selector.name)}")
            if selector.exact:
                options.append("exact: true")
            if not options:
                return f"getByRole({q(selector.role)})"
            return f"getByRole({q(selector.role)}, {{ {', '.join(options)} }})"
        if isinstance(selector, LabelSelector):
            return f"getByLabel({q(selector.label)})"
        if isinstance(selector, PlaceholderSelector):
            return f"getByPlaceholder({q(selector.placeholder)})"
        if isinstance(selector, TextSelector):
            return f"getByText({q(selector.text)})"
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
            options.append(f"button: {self.quote(action.button)}")
        if action.modifiers:
            options.append(f"modifiers: {self._array(action.modifiers)}")
        if action.click_count > 2:
            options.append(f"clickCount: {action.click_count}")
        if not options:
            return [f"{locator}.{method}()"]
        body = [f"  {option}," for option in options[:-1]] + [f"  {options[-1]}"]
        return [f"{locator}.{method}({{", *body, "})"]

    def fill_expression(self, locator: str, text: str) -> str:
        return f"{locator}.fill({self.quote(text)})"

    def check_expression(self, locator: str, checked: bool) -> str:
        return f"{locator}.{'check' if checked else 'uncheck'}()"

    def press_expression(self, locator: str, key: str) -> str:
        return f"{locator}.press({self.quote(key)})"

    def set_input_files_expression(self, locator: str, files: list[str]) -> str:
        value = self.quote(files[0]) if len(files) == 1 else self._array(files)
        return f"{locator}.setInputFiles({value})"

    def select_option_expression(self, locator: str, options: list[str]) -> str:
        value = self.quote(options[0]) if len(options) == 1 else self._array(options)
        return f"{locator}.selectOption({value})"

    def _array(self, values: Sequence[str]) -> str:
        return "[" + ", ".join(self.quote(v) for v in values) + "]"

    # -------------------------------------------------------------------
    # 同期シグナル
    # -------------------------------------------------------------------

    def dialog_handler(self, alias: str, signal: Signal, state: RenderState) -> list[str]:
        method = "dismiss" if signal.dismiss else "accept"
        return [
            f"{alias}.once('dialog', dialog => {{",
            "  console.log(`Dialog message: ${dialog.message()}`);",
            f"  dialog.{method}().catch(() => {{}});",
            "});",
        ]

    def wrap_waits(self, alias: str, waits: Sequence[Signal], expression: Sequence[str]) -> list[str]:
        variables = ", ".join(_variable(signal) for signal in waits)
        events = [f"  {alias}.waitForEvent({self.quote(signal.kind.value)})," for signal in waits]
        return [
            f"const [{variables}] = await Promise.all([",
            *events,
            *self.indent_block(expression),
            "]);",
        ]

    def standalone_wait(self, alias: str, signal: Signal) -> list[str]:
        return [f"const {_variable(signal)} = await {alias}.waitForEvent({self.quote(signal.kind.value)});"]


class PlaywrightTestEmitter(JavaScriptEmitter):
    """@playwright/test のテストを生成する。

    ルートページがあれば page フィクスチャ、無ければ context フィクスチャを受け取る。
    """

    tag = "playwright-test"
    name = "Playwright Test"
    uses_page_fixture = True

    def header(self, aliases: AliasTable) -> list[str]:
        fixture = aliases.root if aliases.has_root else "context"
        return [
            "import { test, expect } from '@playwright/test';",
            "",
            f"test('test', async ({{ {fixture} }}) => {{",
        ]

    def footer(self, aliases: AliasTable) -> list[str]:
        return ["});"]

    def open_page(self, alias: str, state: RenderState) -> list[str]:
        context = f"{state.root}.context()" if state.has_root else "context"
        return [f"const {alias} = await {context}.newPage();"]


def _variable(signal: Signal) -> str:
    if signal.kind == SignalKind.POPUP:
        return popup_variable(signal)
    return download_variable(signal)
