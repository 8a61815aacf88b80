"""
Java エミッタテスト — com.microsoft.playwright 向け生成結果
"""

from __future__ import annotations

from recgen.emitters.java import JavaEmitter
from recgen.model.actions import Action, ActionKind, Signal, SignalKind
from recgen.model.aliases import AliasTable
from recgen.model.selectors import CssSelector, RoleSelector, TextSelector

FILE_INPUT = CssSelector(css='input[type="file"]')


def test_empty_document():
    """アクションが無い場合はクラス定義だけを出力すること。"""
    text = JavaEmitter().render([], AliasTable())
    assert text == (
        "import com.microsoft.playwright.*;\n"
        "import com.microsoft.playwright.options.*;\n"
        "import static com.microsoft.playwright.assertions.PlaywrightAssertions.assertThat;\n"
        "import java.nio.file.Path;\n"
        "import java.nio.file.Paths;\n"
        "import java.util.*;\n"
        "\n"
        "public class Example {\n"
        "  public static void main(String[] args) {\n"
        "    try (Playwright playwright = Playwright.create()) {\n"
        "      Browser browser = playwright.chromium().launch(new BrowserType.LaunchOptions()\n"
        "        .setHeadless(false));\n"
        "      BrowserContext context = browser.newContext();\n"
        "    }\n"
        "  }\n"
        "}\n"
    )


class TestJavaEmitter:
    """Java の構文のテスト。"""

    def test_dialog_handler(self, root_aliases):
        """onceDialog ハンドラをクリックの前に出力すること。"""
        actions = [
            Action(kind=ActionKind.OPEN_PAGE, page_alias="page"),
            Action(kind=ActionKind.CLICK, page_alias="page",
                   selector=RoleSelector(role="button", name="click me"),
                   signals=(Signal(kind=SignalKind.DIALOG),)),
        ]
        text = JavaEmitter().render(actions, root_aliases)
        assert (
            "\n      Page page = context.newPage();\n"
            "      page.onceDialog(dialog -> {\n"
            '        System.out.println(String.format("Dialog message: %s", dialog.message()));\n'
            "        dialog.dismiss();\n"
            "      });\n"
            '      page.getByRole(AriaRole.BUTTON, new Page.GetByRoleOptions().setName("click me")).click();\n'
        ) in text

    def test_download_wrapped(self, root_aliases):
        """ダウンロードは waitForDownload のラムダで包むこと。"""
        action = Action(kind=ActionKind.CLICK, page_alias="page",
                        selector=RoleSelector(role="link", name="Download"),
                        signals=(Signal(kind=SignalKind.DOWNLOAD, download_alias="download"),))
        text = JavaEmitter().render([action], root_aliases)
        assert (
            "\n      Download download = page.waitForDownload(() -> {\n"
            '        page.getByRole(AriaRole.LINK, new Page.GetByRoleOptions().setName("Download")).click();\n'
            "      });\n"
        ) in text

    def test_role_in_frame_uses_frame_options(self, root_aliases):
        """iframe 内のロールは FrameLocator.GetByRoleOptions を使うこと。"""
        action = Action(kind=ActionKind.CLICK, page_alias="page", frame_path=("iframe",),
                        selector=RoleSelector(role="button", name="Go", exact=True))
        text = JavaEmitter().render([action], root_aliases)
        assert (
            'page.frameLocator("iframe").getByRole(AriaRole.BUTTON, '
            'new FrameLocator.GetByRoleOptions().setName("Go").setExact(true)).click();'
        ) in text

    def test_set_input_files(self, root_aliases):
        """ファイル数に応じて Paths.get / Path 配列を使い分けること。"""
        emitter = JavaEmitter()

        def render(*files: str) -> str:
            action = Action(kind=ActionKind.SET_INPUT_FILES, page_alias="page",
                            selector=FILE_INPUT, files=files)
            return emitter.render([action], root_aliases)

        assert 'page.locator("input[type=\\"file\\"]").setInputFiles(Paths.get("file-to-upload.txt"));' in render(
            "file-to-upload.txt"
        )
        assert '.setInputFiles(new Path[] {Paths.get("a.txt"), Paths.get("b.txt")});' in render("a.txt", "b.txt")
        assert ".setInputFiles(new Path[0]);" in render()

    def test_click_options(self, root_aliases):
        """修飾キー付きクリックは ClickOptions のセッターを連ねること。"""
        action = Action(kind=ActionKind.CLICK, page_alias="page", selector=TextSelector(text="Open"),
                        modifiers=("Shift",))
        text = JavaEmitter().render([action], root_aliases)
        assert (
            '      page.getByText("Open").click(new Locator.ClickOptions()\n'
            "        .setModifiers(Arrays.asList(KeyboardModifier.SHIFT)));\n"
        ) in text

    def test_navigate(self, root_aliases):
        """遷移は navigate() を使うこと。"""
        action = Action(kind=ActionKind.NAVIGATE, page_alias="page", url="https://example.com/")
        assert '      page.navigate("https://example.com/");\n' in JavaEmitter().render([action], root_aliases)

    def test_standalone_popup(self, root_aliases):
        """トリガー操作のない popup は空のラムダで待つこと。"""
        action = Action(kind=ActionKind.WAIT_FOR_POPUP, page_alias="page",
                        signals=(Signal(kind=SignalKind.POPUP, popup_alias="page1"),))
        text = JavaEmitter().render([action], root_aliases)
        assert "      Page page1 = page.waitForPopup(() -> {});\n" in text

    def test_root_page_opened_in_header(self, root_aliases):
        """ルートページはヘッダーで開き、openPage の URL は navigate で出力すること。"""
        action = Action(kind=ActionKind.OPEN_PAGE, page_alias="page", url="https://example.com/")
        text = JavaEmitter().render([action], root_aliases)
        assert (
            "      BrowserContext context = browser.newContext();\n"
            "      Page page = context.newPage();\n"
            '      page.navigate("https://example.com/");\n'
        ) in text
        assert text.count("newPage()") == 1

    def test_unsupported_kind_placeholder(self, root_aliases):
        """未知の操作種別はプレースホルダーのコメントとして出力すること。"""
        action = Action(kind="hover", page_alias="page", selector=TextSelector(text="Menu"))
        text = JavaEmitter().render([action], root_aliases)
        assert "      // unsupported action: hover\n" in text
