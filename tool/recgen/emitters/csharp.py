"""
C# エミッタ — Microsoft.Playwright 向けコード生成（async Task API）
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
from .quoting import quote_csharp


class CSharpEmitter(BaseEmitter):
    """Main メソッドを持つ C# クラスを生成する。"""

    tag = "csharp"
    name = "C#"
    body_indent = "        "
    block_indent = "    "

    def header(self, aliases: AliasTable) -> list[str]:
        return [
            "using Microsoft.Playwright;",
            "using System;",
            "using System.Threading.Tasks;",
            "",
            "class Program",
            "{",
            "    public static async Task Main()",
            "    {",
            "        using var playwright = await Playwright.CreateAsync();",
            "        await using var browser = await playwright.Chromium.LaunchAsync(new BrowserTypeLaunchOptions",
            "        {",
            "            Headless = false,",
            "        });",
            "        var context = await browser.NewContextAsync();",
        ] + self.root_page_setup(aliases)

    def footer(self, aliases: AliasTable) -> list[str]:
        return [
            "    }",
            "}",
        ]

    def comment(self, text: str) -> str:
        return f"// {text}"

    def quote(self, value: str) -> str:
        return quote_csharp(value)

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
        return [f"var {alias} = await context.NewPageAsync();"]

    def close_page_expression(self, action: Action) -> list[str]:
        return [f"{action.page_alias}.CloseAsync()"]

    def navigate_expression(self, alias: str, url: str) -> str:
        return f"{alias}.GotoAsync({self.quote(url)})"

    # -------------------------------------------------------------------
    # ロケータ
    # -------------------------------------------------------------------

    def frame_locator(self, css: str) -> str:
        return f"FrameLocator({self.quote(css)})"

    def selector_call(self, selector: Selector, in_frame: bool) -> str:
        q = self.quote
        if isinstance(selector, TestIdSelector):
            return f"GetByTestId({q(selector.test_id)})"
        if isinstance(selector, RoleSelector):
            role = f"AriaRole.{selector.role[:1].upper()}{selector.role[1:].lower()}"
            options: list[str] = []
            if selector.name is not None:
                options.append(f"NameString = {q(selector.name)}")
            if selector.exact:
                options.append("Exact = true")
            if not options:
                return f"GetByRole({role})"
            return f"GetByRole({role}, new() {{ {', '.join(options)} }})"
        if isinstance(selector, LabelSelector):
            return f"GetByLabel({q(selector.label)})"
        if isinstance(selector, PlaceholderSelector):
            return f"GetByPlaceholder({q(selector.placeholder)})"
        if isinstance(selector, TextSelector):
            return f"GetByText({q(selector.text)})"
        if isinstance(selector, CssSelector):
            return f"Locator({q(selector.css)})"
        raise TypeError(f"未知のセレクタです: {selector!r}")

    # -------------------------------------------------------------------
    # 要素操作
    # -------------------------------------------------------------------

    def click_expression(self, locator: str, action: Action) -> list[str]:
        double = action.click_count == 2
        method = "DblClickAsync" if double else "ClickAsync"
        options: list[str] = []
        if action.button != "left":
            options.append(f"Button = MouseButton.{action.button.capitalize()}")
        if action.modifiers:
            modifiers = ", ".join(f"KeyboardModifier.{m}" for m in action.modifiers)
            options.append(f"Modifiers = new[] {{ {modifiers} }}")
        if action.click_count > 2:
            options.append(f"ClickCount = {action.click_count}")
        if not options:
            return [f"{locator}.{method}()"]
        options_class = "LocatorDblClickOptions" if double else "LocatorClickOptions"
        return [
            f"{locator}.{method}(new {options_class}",
            "{",
            *(f"    {option}," for option in options),
            "})",
        ]

    def fill_expression(self, locator: str, text: str) -> str:
        return f"{locator}.FillAsync({self.quote(text)})"

    def check_expression(self, locator: str, checked: bool) -> str:
        return f"{locator}.{'CheckAsync' if checked else 'UncheckAsync'}()"

    def press_expression(self, locator: str, key: str) -> str:
        return f"{locator}.PressAsync({self.quote(key)})"

    def set_input_files_expression(self, locator: str, files: list[str]) -> str:
        return f"{locator}.SetInputFilesAsync({self._array(files)})"

    def select_option_expression(self, locator: str, options: list[str]) -> str:
        return f"{locator}.SelectOptionAsync({self._array(options)})"

    def _array(self, values: Sequence[str]) -> str:
        return "new[] { " + ", ".join(self.quote(v) for v in values) + " }"

    # -------------------------------------------------------------------
    # 同期シグナル
    # -------------------------------------------------------------------

    def dialog_handler(self, alias: str, signal: Signal, state: RenderState) -> list[str]:
        method = "DismissAsync" if signal.dismiss else "AcceptAsync"
        handler = f"{alias}_Dialog{state.next_dialog()}_EventHandler"
        return [
            f"void {handler}(object sender, IDialog dialog)",
            "{",
            '    Console.WriteLine($"Dialog message: {dialog.Message}");',
            f"    dialog.{method}();",
            f"    {alias}.Dialog -= {handler};",
            "}",
            f"{alias}.Dialog += {handler};",
        ]

    def wrap_waits(self, alias: str, waits: Sequence[Signal], expression: Sequence[str]) -> list[str]:
        lines = self.statement(expression)
        for signal in reversed(waits):
            method = "RunAndWaitForPopupAsync" if signal.kind == SignalKind.POPUP else "RunAndWaitForDownloadAsync"
            lines = (
                [f"var {_variable(signal)} = await {alias}.{method}(async () =>", "{"]
                + self.indent_block(lines)
                + ["});"]
            )
        return lines

    def standalone_wait(self, alias: str, signal: Signal) -> list[str]:
        method = "WaitForPopupAsync" if signal.kind == SignalKind.POPUP else "WaitForDownloadAsync"
        return [f"var {_variable(signal)} = await {alias}.{method}();"]


def _variable(signal: Signal) -> str:
    """C# の変数名を返す。ダウンロードは download1 から番号を振る。"""
    if signal.kind == SignalKind.POPUP:
        return popup_variable(signal)
    name = download_variable(signal)
    stem = name.rstrip("0123456789")
    number = int(name[len(stem):] or 0) + 1
    return f"{stem}{number}"
