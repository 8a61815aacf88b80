"""
C# エミッタテスト — Microsoft.Playwright 向け生成結果
"""

from __future__ import annotations

from recgen.emitters.csharp import CSharpEmitter
from recgen.model.actions import Action, ActionKind, Signal, SignalKind
from recgen.model.aliases import AliasTable
from recgen.model.selectors import CssSelector, RoleSelector, TestIdSelector

FILE_INPUT = CssSelector(css='input[type="file"]')


def dialog_click(name: str) -> Action:
    return Action(kind=ActionKind.CLICK, page_alias="page",
                  selector=RoleSelector(role="button", name=name),
                  signals=(Signal(kind=SignalKind.DIALOG),))


class TestCSharpEmitter:
    """C# の構文のテスト。"""

    def test_empty_document(self):
        """アクションが無い場合は Main メソッドの骨組みだけを出力すること。"""
        text = CSharpEmitter().render([], AliasTable())
        assert text == (
            "using Microsoft.Playwright;\n"
            "using System;\n"
            "using System.Threading.Tasks;\n"
            "\n"
            "class Program\n"
            "{\n"
            "    public static async Task Main()\n"
            "    {\n"
            "        using var playwright = await Playwright.CreateAsync();\n"
            "        await using var browser = await playwright.Chromium.LaunchAsync(new BrowserTypeLaunchOptions\n"
            "        {\n"
            "            Headless = false,\n"
            "        });\n"
            "        var context = await browser.NewContextAsync();\n"
            "    }\n"
            "}\n"
        )

    def test_dialog_handler(self, root_aliases):
        """一度だけ実行されるイベントハンドラを登録すること。"""
        text = CSharpEmitter().render([dialog_click("click me")], root_aliases)
        assert (
            "        void page_Dialog1_EventHandler(object sender, IDialog dialog)\n"
            "        {\n"
            '            Console.WriteLine($"Dialog message: {dialog.Message}");\n'
            "            dialog.DismissAsync();\n"
            "            page.Dialog -= page_Dialog1_EventHandler;\n"
            "        }\n"
            "        page.Dialog += page_Dialog1_EventHandler;\n"
            '        await page.GetByRole(AriaRole.Button, new() { NameString = "click me" }).ClickAsync();\n'
        ) in text

    def test_dialog_handlers_numbered(self, root_aliases):
        """ハンドラ名は1つのファイル内で連番にすること。"""
        text = CSharpEmitter().render([dialog_click("a"), dialog_click("b")], root_aliases)
        assert "page.Dialog += page_Dialog1_EventHandler;" in text
        assert "page.Dialog += page_Dialog2_EventHandler;" in text

    def test_download_numbered_from_one(self, root_aliases):
        """ダウンロード変数は download1 から番号を振ること。"""
        first = Action(kind=ActionKind.CLICK, page_alias="page",
                       selector=RoleSelector(role="link", name="Download"),
                       signals=(Signal(kind=SignalKind.DOWNLOAD, download_alias="download"),))
        second = first.model_copy(update={"signals": (Signal(kind=SignalKind.DOWNLOAD, download_alias="download1"),)})
        text = CSharpEmitter().render([first, second], root_aliases)
        assert (
            "        var download1 = await page.RunAndWaitForDownloadAsync(async () =>\n"
            "        {\n"
            '            await page.GetByRole(AriaRole.Link, new() { NameString = "Download" }).ClickAsync();\n'
            "        });\n"
        ) in text
        assert "        var download2 = await page.RunAndWaitForDownloadAsync(async () =>\n" in text

    def test_set_input_files(self, root_aliases):
        """ファイルは常に配列で渡し、空の場合は new[] {  } とすること。"""
        emitter = CSharpEmitter()

        def render(*files: str) -> str:
            action = Action(kind=ActionKind.SET_INPUT_FILES, page_alias="page",
                            selector=FILE_INPUT, files=files)
            return emitter.render([action], root_aliases)

        assert (
            'await page.Locator("input[type=\\"file\\"]").SetInputFilesAsync(new[] { "file-to-upload.txt" });'
        ) in render("file-to-upload.txt")
        assert '.SetInputFilesAsync(new[] { "a.txt", "b.txt" });' in render("a.txt", "b.txt")
        assert ".SetInputFilesAsync(new[] {  });" in render()

    def test_click_options_block(self, root_aliases):
        """オプション付きクリックはオブジェクト初期化子で出力すること。"""
        action = Action(kind=ActionKind.CLICK, page_alias="page", selector=TestIdSelector(test_id="menu"),
                        button="right", modifiers=("Alt", "Shift"))
        text = CSharpEmitter().render([action], root_aliases)
        assert (
            '        await page.GetByTestId("menu").ClickAsync(new LocatorClickOptions\n'
            "        {\n"
            "            Button = MouseButton.Right,\n"
            "            Modifiers = new[] { KeyboardModifier.Alt, KeyboardModifier.Shift },\n"
            "        });\n"
        ) in text

    def test_page_lifecycle(self, root_aliases):
        """ページの生成・遷移・クローズの構文を使うこと。"""
        actions = [
            Action(kind=ActionKind.OPEN_PAGE, page_alias="page1", url="https://example.com/"),
            Action(kind=ActionKind.CLOSE_PAGE, page_alias="page1"),
        ]
        text = CSharpEmitter().render(actions, root_aliases)
        assert (
            "        var page1 = await context.NewPageAsync();\n"
            '        await page1.GotoAsync("https://example.com/");\n'
            "        await page1.CloseAsync();\n"
        ) in text

    def test_root_page_opened_in_header(self, root_aliases):
        """ルートページはヘッダーで開き、openPage の URL は GotoAsync で出力すること。"""
        action = Action(kind=ActionKind.OPEN_PAGE, page_alias="page", url="https://example.com/")
        text = CSharpEmitter().render([action], root_aliases)
        assert (
            "        var context = await browser.NewContextAsync();\n"
            "        var page = await context.NewPageAsync();\n"
            '        await page.GotoAsync("https://example.com/");\n'
        ) in text
        assert text.count("NewPageAsync()") == 1

    def test_numbered_download_variable(self, root_aliases):
        """download3 は download4 として出力すること。"""
        action = Action(kind=ActionKind.WAIT_FOR_DOWNLOAD, page_alias="page",
                        signals=(Signal(kind=SignalKind.DOWNLOAD, download_alias="download3"),))
        text = CSharpEmitter().render([action], root_aliases)
        assert "var download4 = await page.WaitForDownloadAsync();" in text

    def test_unsupported_kind_placeholder(self, root_aliases):
        """未知の操作種別はプレースホルダーのコメントとして出力すること。"""
        action = Action(kind="hover", page_alias="page", selector=TestIdSelector(test_id="menu"))
        text = CSharpEmitter().render([action], root_aliases)
        assert "        // unsupported action: hover\n" in text
