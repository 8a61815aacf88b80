"""
JavaScript エミッタテスト — Node.js スクリプトと @playwright/test の生成結果
"""

from __future__ import annotations

from recgen.emitters.javascript import JavaScriptEmitter, PlaywrightTestEmitter
from recgen.model.actions import Action, ActionKind, Signal, SignalKind
from recgen.model.aliases import AliasTable
from recgen.model.selectors import CssSelector, PlaceholderSelector, RoleSelector, TextSelector


class TestJavaScriptEmitter:
    """Node.js スクリプトのテスト。"""

    def test_empty_document(self):
        """アクションが無い場合はヘッダーとフッターだけを出力すること。"""
        text = JavaScriptEmitter().render([], AliasTable())
        assert text == (
            "const { chromium } = require('playwright');\n"
            "\n"
            "(async () => {\n"
            "  const browser = await chromium.launch({\n"
            "    headless: false\n"
            "  });\n"
            "  const context = await browser.newContext();\n"
            "\n"
            "  // ---------------------\n"
            "  await context.close();\n"
            "  await browser.close();\n"
            "})();\n"
        )

    def test_dialog_handler(self, root_aliases):
        """ダイアログを伴うクリックの前に once ハンドラを出力すること。"""
        actions = [
            Action(kind=ActionKind.OPEN_PAGE, page_alias="page"),
            Action(kind=ActionKind.CLICK, page_alias="page",
                   selector=RoleSelector(role="button", name="click me"),
                   signals=(Signal(kind=SignalKind.DIALOG),)),
        ]
        text = JavaScriptEmitter().render(actions, root_aliases)
        assert (
            "\n  const page = await context.newPage();\n"
            "  page.once('dialog', dialog => {\n"
            "    console.log(`Dialog message: ${dialog.message()}`);\n"
            "    dialog.dismiss().catch(() => {});\n"
            "  });\n"
            "  await page.getByRole('button', { name: 'click me' }).click();\n"
        ) in text

    def test_accepted_dialog(self, root_aliases):
        """dismiss=False のダイアログは accept すること。"""
        action = Action(kind=ActionKind.HANDLE_DIALOG, page_alias="page",
                        signals=(Signal(kind=SignalKind.DIALOG, dismiss=False),))
        text = JavaScriptEmitter().render([action], root_aliases)
        assert "    dialog.accept().catch(() => {});\n" in text

    def test_download_promise_all(self, root_aliases):
        """ダウンロードは Promise.all で待機とクリックを並べること。"""
        action = Action(kind=ActionKind.CLICK, page_alias="page",
                        selector=RoleSelector(role="link", name="Download"),
                        signals=(Signal(kind=SignalKind.DOWNLOAD, download_alias="download"),))
        text = JavaScriptEmitter().render([action], root_aliases)
        assert (
            "\n  const [download] = await Promise.all([\n"
            "    page.waitForEvent('download'),\n"
            "    page.getByRole('link', { name: 'Download' }).click()\n"
            "  ]);\n"
        ) in text

    def test_popup_and_download_share_promise_all(self, root_aliases):
        """popup と download の両方を持つ場合は1つの Promise.all にまとめること。"""
        action = Action(kind=ActionKind.CLICK, page_alias="page", selector=TextSelector(text="Both"),
                        signals=(Signal(kind=SignalKind.DOWNLOAD, download_alias="download"),
                                 Signal(kind=SignalKind.POPUP, popup_alias="page1")))
        text = JavaScriptEmitter().render([action], root_aliases)
        assert (
            "  const [page1, download] = await Promise.all([\n"
            "    page.waitForEvent('popup'),\n"
            "    page.waitForEvent('download'),\n"
        ) in text

    def test_click_with_modifiers(self, root_aliases):
        """修飾キー付きクリックはオプションオブジェクトを複数行で出力すること。"""
        action = Action(kind=ActionKind.CLICK, page_alias="page", selector=TextSelector(text="Open"),
                        modifiers=("Control",), button="middle")
        text = JavaScriptEmitter().render([action], root_aliases)
        assert (
            "  await page.getByText('Open').click({\n"
            "    button: 'middle',\n"
            "    modifiers: ['Control']\n"
            "  });\n"
        ) in text

    def test_tricky_fill_text(self, root_aliases):
        """入力値のクォートと改行はエスケープすること。"""
        action = Action(kind=ActionKind.FILL, page_alias="page",
                        selector=PlaceholderSelector(placeholder="Note"), text="Hello'\"`\nWorld")
        text = JavaScriptEmitter().render([action], root_aliases)
        assert "  await page.getByPlaceholder('Note').fill('Hello\\'\"`\\nWorld');\n" in text

    def test_new_page_with_url(self, root_aliases):
        """URL 付きで開いたページは newPage の後に goto すること。"""
        action = Action(kind=ActionKind.OPEN_PAGE, page_alias="page1", url="about:blank?foo")
        text = JavaScriptEmitter().render([action], root_aliases)
        assert (
            "  const page1 = await context.newPage();\n"
            "  await page1.goto('about:blank?foo');\n"
        ) in text

    def test_root_page_opened_in_header(self, root_aliases):
        """ルートページはヘッダーで開き、openPage の URL は goto で出力すること。"""
        action = Action(kind=ActionKind.OPEN_PAGE, page_alias="page", url="https://example.com/")
        text = JavaScriptEmitter().render([action], root_aliases)
        assert (
            "  const context = await browser.newContext();\n"
            "  const page = await context.newPage();\n"
            "  await page.goto('https://example.com/');\n"
        ) in text
        assert text.count("newPage()") == 1

    def test_unsupported_kind_placeholder(self, root_aliases):
        """未知の操作種別はプレースホルダーのコメントとして出力すること。"""
        action = Action(kind="hover", page_alias="page", selector=TextSelector(text="Menu"))
        text = JavaScriptEmitter().render([action], root_aliases)
        assert "  // unsupported action: hover\n" in text

    def test_close_page(self, root_aliases):
        """closePage は close() を出力すること。"""
        action = Action(kind=ActionKind.CLOSE_PAGE, page_alias="page1")
        assert "  await page1.close();\n" in JavaScriptEmitter().render([action], root_aliases)

    def test_select_multiple_options(self, root_aliases):
        """複数選択は配列で出力すること。"""
        action = Action(kind=ActionKind.SELECT_OPTION, page_alias="page",
                        selector=CssSelector(css="#color"), options=("red", "blue"))
        text = JavaScriptEmitter().render([action], root_aliases)
        assert "  await page.locator('#color').selectOption(['red', 'blue']);\n" in text


class TestPlaywrightTestEmitter:
    """@playwright/test 形式のテスト。"""

    def test_empty_document(self, root_aliases):
        """test ブロックだけを出力すること。"""
        text = PlaywrightTestEmitter().render([], root_aliases)
        assert text == (
            "import { test, expect } from '@playwright/test';\n"
            "\n"
            "test('test', async ({ page }) => {\n"
            "});\n"
        )

    def test_root_page_navigation(self, root_aliases):
        """ルートページはフィクスチャを使い、goto だけを出力すること。"""
        actions = [
            Action(kind=ActionKind.OPEN_PAGE, page_alias="page", url="https://example.com/"),
            Action(kind=ActionKind.PRESS, page_alias="page", selector=RoleSelector(role="textbox"),
                   key="Enter"),
        ]
        text = PlaywrightTestEmitter().render(actions, root_aliases)
        assert text.endswith(
            "  await page.goto('https://example.com/');\n"
            "  await page.getByRole('textbox').press('Enter');\n"
            "});\n"
        )

    def test_additional_page(self, root_aliases):
        """2ページ目以降は page.context().newPage() で開くこと。"""
        action = Action(kind=ActionKind.OPEN_PAGE, page_alias="page1")
        text = PlaywrightTestEmitter().render([action], root_aliases)
        assert "  const page1 = await page.context().newPage();\n" in text

    def test_without_root_uses_context_fixture(self):
        """ルートページが無い場合は context フィクスチャからページを開くこと。"""
        aliases = AliasTable(pages={"p2": "page1"})
        action = Action(kind=ActionKind.OPEN_PAGE, page_alias="page1")
        text = PlaywrightTestEmitter().render([action], aliases)
        assert text == (
            "import { test, expect } from '@playwright/test';\n"
            "\n"
            "test('test', async ({ context }) => {\n"
            "  const page1 = await context.newPage();\n"
            "});\n"
        )
