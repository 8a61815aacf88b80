"""
Java エミッタ — com.microsoft.playwright 向けコード生成（同期 API）
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
from .quoting import quote_java


class JavaEmitter(BaseEmitter):
    """main メソッドを持つ Java クラスを生成する。"""

    tag = "java"
    name = "Java"
    body_indent = "      "
    block_indent = "  "

    def header(self, aliases: AliasTable) -> list[str]:
        return [
            "import com.microsoft.playwright.*;",
            "import com.microsoft.playwright.options.*;",
            "import static com.microsoft.playwright.assertions.PlaywrightAssertions.assertThat;",
            "import java.nio.file.Path;",
            "import java.nio.file.Paths;",
            "import java.util.*;",
            "",
            "public class Example {",
            "  public static void main(String[] args) {",
            "    try (Playwright playwright = Playwright.create()) {",
            "      Browser browser = playwright.chromium().launch(new BrowserType.LaunchOptions()",
            "        .setHeadless(false));",
            "      BrowserContext context = browser.newContext();",
        ] + self.root_page_setup(aliases)

    def footer(self, aliases: AliasTable) -> list[str]:
        return [
            "    }",
            "  }",
            "}",
        ]

    def comment(self, text: str) -> str:
        return f"// {text}"

    def quote(self, value: str) -> str:
        return quote_java(value)

    def statement(self, expression: Sequence[str]) -> list[str]:
        lines = list(expression)
        if lines:
            lines[-1] = lines[-1] + ";"
        return lines

    # -------------------------------------------------------------------
    # ページ操作
    # -------------------------------------------------------------------

    def open_page(self, alias: str, state: RenderState) -> list[str]:
        return [f"Page {alias} = context.newPage();"]

    def close_page_expression(self, action: Action) -> list[str]:
        return [f"{action.page_alias}.close()"]

    def navigate_expression(self, alias: str, url: str) -> str:
        return f"{alias}.navigate({self.quote(url)})"

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
            role = f"AriaRole.{selector.role.upper()}"
            setters = ""
            if selector.name is not None:
                setters += f".setName({q(selector.name)})"
            if selector.exact:
                setters += ".setExact(true)"
            if not setters:
                return f"getByRole({role})"
            owner = "FrameLocator" if in_frame else "Page"
            return f"getByRole({role}, new {owner}.GetByRoleOptions(){setters})"
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
        double = action.click_count == 2
        method = "dblclick" if double else "click"
        setters: list[str] = []
        if action.button != "left":
            setters.append(f".setButton(MouseButton.{action.button.upper()})")
        if action.modifiers:
            modifiers = ", ".join(f"KeyboardModifier.{m.upper()}" for m in action.modifiers)
            setters.append(f".setModifiers(Arrays.asList({modifiers}))")
        if action.click_count > 2:
            setters.append(f".setClickCount({action.click_count})")
        if not setters:
            return [f"{locator}.{method}()"]
        options = "DblclickOptions" if double else "ClickOptions"
        lines = [f"{locator}.{method}(new Locator.{options}()"]
        lines.extend(f"  {setter}" for setter in setters)
        lines[-1] += ")"
        return lines

    def fill_expression(self, locator: str, text: str) -> str:
        return f"{locator}.fill({self.quote(text)})"

    def check_expression(self, locator: str, checked: bool) -> str:
        return f"{locator}.{'check' if checked else 'uncheck'}()"

    def press_expression(self, locator: str, key: str) -> str:
        return f"{locator}.press({self.quote(key)})"

    def set_input_files_expression(self, locator: str, files: list[str]) -> str:
        if len(files) == 1:
            value = f"Paths.get({self.quote(files[0])})"
        elif not files:
            value = "new Path[0]"
        else:
            value = "new Path[] {" + ", ".join(f"Paths.get({self.quote(f)})" for f in files) + "}"
        return f"{locator}.setInputFiles({value})"

    def select_option_expression(self, locator: str, options: list[str]) -> str:
        if len(options) == 1:
            value = self.quote(options[0])
        elif not options:
            value = "new String[0]"
        else:
            value = "new String[] {" + ", ".join(self.quote(o) for o in options) + "}"
        return f"{locator}.selectOption({value})"

    # -------------------------------------------------------------------
    # 同期シグナル
    # -------------------------------------------------------------------

    def dialog_handler(self, alias: str, signal: Signal, state: RenderState) -> list[str]:
        method = "dismiss" if signal.dismiss else "accept"
        return [
            f"{alias}.onceDialog(dialog -> {{",
            '  System.out.println(String.format("Dialog message: %s", dialog.message()));',
            f"  dialog.{method}();",
            "});",
        ]

    def wrap_waits(self, alias: str, waits: Sequence[Signal], expression: Sequence[str]) -> list[str]:
        lines = self.statement(expression)
        for signal in reversed(waits):
            lines = (
                [f"{_declaration(signal)} = {alias}.{_wait_method(signal)}(() -> {{"]
                + self.indent_block(lines)
                + ["});"]
            )
        return lines

    def standalone_wait(self, alias: str, signal: Signal) -> list[str]:
        return [f"{_declaration(signal)} = {alias}.{_wait_method(signal)}(() -> {{}});"]


def _declaration(signal: Signal) -> str:
    if signal.kind == SignalKind.POPUP:
        return f"Page {popup_variable(signal)}"
    return f"Download {download_variable(signal)}"


def _wait_method(signal: Signal) -> str:
    return "waitForPopup" if signal.kind == SignalKind.POPUP else "waitForDownload"
