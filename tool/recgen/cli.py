"""
CLI エントリポイント — Typer ベースのコマンドラインインターフェース

recgen コマンドとして以下のサブコマンドを提供する:
  - record: ブラウザを開いて操作を記録し、指定言語のコードを出力
  - render: 保存済みのアクションログ（YAML）を任意の言語で再生成
  - targets: 出力可能な言語タグの一覧
"""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path
from typing import Callable, Mapping, Optional

import typer

from .config import RecorderConfig, apply_cli_args, load_config_from_env
from .emitters import UnknownTargetError, create_default_registry
from .model.yaml_io import LogFileError, load_log, save_log
from .output import GeneratedSource
from .recorder import RecordingSession

logger = logging.getLogger(__name__)

# SIGINT で中断した場合の終了コード
EXIT_INTERRUPTED = 130

# ---------------------------------------------------------------------------
# Typer アプリ定義
# ---------------------------------------------------------------------------

app = typer.Typer(
    help=(
        "recgen — ブラウザ操作を記録し、Playwright の自動化コードを生成するツール\n\n"
        "基本の流れ:\n"
        "  1. recgen record URL -o test.py   操作を記録（Chromium が開きます）\n"
        "  2. recgen render log.yaml -t java  保存したログを別の言語で再生成\n\n"
        "詳しくは各コマンドに --help を付けてください。"
    ),
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="デバッグログを表示する"),
) -> None:
    """ログ出力を設定する。"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _write_source(path: Optional[Path], text: str) -> None:
    """生成コードをファイルへ書き出す。path が None なら標準出力へ出す。"""
    if path is None:
        typer.echo(text, nl=False)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


# ---------------------------------------------------------------------------
# record コマンド
# ---------------------------------------------------------------------------

async def _wait_until_closed(context: object, stop: asyncio.Event, interval: float = 0.5) -> None:
    """BrowserContext の全ページが閉じられるか、stop がセットされるまで待機する。"""
    while getattr(context, "pages", None) and not stop.is_set():
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass


def _install_interrupt_handler(stop: asyncio.Event) -> bool:
    """SIGINT で stop をセットするハンドラを登録する。登録できた場合は True。"""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, stop.set)
    except (NotImplementedError, RuntimeError, ValueError) as exc:
        # Windows やメインスレッド以外では KeyboardInterrupt として届く
        logger.debug("SIGINT ハンドラを登録できませんでした: %s", exc)
        return False
    return True


async def _record(
    url: Optional[str],
    config: RecorderConfig,
    *,
    output: Optional[Path] = None,
    save_trace: Optional[Path] = None,
    save_storage: Optional[Path] = None,
    save_har: Optional[Path] = None,
    on_started: Optional[Callable[[RecordingSession], None]] = None,
):
    """記録セッションを実行し、(セッション, 中断されたか) を返す。

    output が指定されている場合は、コードが再生成されるたびにファイルを書き換える。
    on_started には開始したセッションが渡される。KeyboardInterrupt で
    このコルーチンが戻らなかった場合でも、呼び出し側が記録結果を保存できる。
    """
    from .browser import RecordingBrowser

    session = RecordingSession(
        config, on_warning=lambda message: typer.echo(f"警告: {message}", err=True),
    )
    if output is not None:
        target = config.target

        def _on_update(sources: Mapping[str, GeneratedSource]) -> None:
            _write_source(output, sources[target].text)

        session.output.subscribe(_on_update)

    browser = RecordingBrowser(
        session, save_trace=save_trace, save_storage=save_storage, save_har=save_har,
    )

    stop = asyncio.Event()
    handler_installed = _install_interrupt_handler(stop)
    interrupted = False
    await session.start()
    if on_started is not None:
        on_started(session)
    try:
        page = await browser.launch()
        if url:
            await page.goto(url)
        await _wait_until_closed(browser.context, stop)
        interrupted = stop.is_set()
    except (KeyboardInterrupt, asyncio.CancelledError):
        interrupted = True
    finally:
        if handler_installed:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
        # トレース・録画はブラウザを閉じたときに保存される
        await browser.close()
        await session.drain()
        await session.stop()

    if interrupted:
        logger.info("記録が中断されました")
    return session, interrupted


@app.command()
def record(
    url: Optional[str] = typer.Argument(None, help="最初に開く URL"),
    target: Optional[str] = typer.Option(
        None, "--target", "-t", help="出力する言語タグ（recgen targets で一覧表示）",
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="生成コードの出力先（省略時は終了後に標準出力へ表示）",
    ),
    save_log_path: Optional[Path] = typer.Option(
        None, "--save-log", help="アクションログ（YAML）の保存先",
    ),
    save_trace: Optional[Path] = typer.Option(None, "--save-trace", help="トレース（zip）の保存先"),
    save_storage: Optional[Path] = typer.Option(None, "--save-storage", help="storage state（JSON）の保存先"),
    save_har: Optional[Path] = typer.Option(None, "--save-har", help="HAR の保存先"),
    headed: Optional[bool] = typer.Option(
        None, "--headed/--headless", help="ブラウザ表示モード（デフォルト: 表示）",
    ),
    viewport: Optional[str] = typer.Option(None, "--viewport", help="ビューポートサイズ (WIDTHxHEIGHT)"),
    test_id_attribute: Optional[str] = typer.Option(
        None, "--test-id-attribute", help="テスト ID として扱う属性名",
    ),
) -> None:
    """ブラウザ操作を記録し、自動化コードを生成する。

    ブラウザを閉じるか Ctrl+C で記録が終了します。
    """
    config = apply_cli_args(
        load_config_from_env(),
        target=target,
        test_id_attribute=test_id_attribute,
        headed=headed,
        viewport=viewport,
    )

    registry = create_default_registry()
    if config.target not in registry:
        typer.echo(f"エラー: {UnknownTargetError(config.target, registry.tags())}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"出力言語: {registry.get(config.target).name}", err=True)
    typer.echo("ブラウザを閉じるか Ctrl+C で記録が終了します。", err=True)

    started: list[RecordingSession] = []
    try:
        session, interrupted = asyncio.run(_record(
            url,
            config,
            output=output,
            save_trace=save_trace,
            save_storage=save_storage,
            save_har=save_har,
            on_started=started.append,
        ))
    except KeyboardInterrupt:
        if not started:
            typer.echo("記録が中断されました。", err=True)
            raise typer.Exit(code=EXIT_INTERRUPTED)
        # 記録済みの操作は保存してから終了する
        session, interrupted = started[0], True
    except Exception as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)

    if interrupted:
        typer.echo("記録が中断されました。", err=True)
    if session.error is not None:
        typer.echo(f"エラー: 記録セッションが異常終了しました: {session.error}", err=True)

    _write_source(output, session.output.get_output(config.target).text)
    if output is not None:
        typer.echo(f"記録完了: {output} ({len(session.log)} 件の操作)", err=True)

    if save_log_path is not None:
        save_log(save_log_path, session.log.snapshot(), session.aliases)
        typer.echo(f"アクションログを保存しました: {save_log_path}", err=True)

    if interrupted:
        raise typer.Exit(code=EXIT_INTERRUPTED)
    if session.error is not None:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# render コマンド
# ---------------------------------------------------------------------------

@app.command()
def render(
    log_file: Path = typer.Argument(..., help="アクションログ（YAML）"),
    target: str = typer.Option("python", "--target", "-t", help="出力する言語タグ"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="出力先（省略時は標準出力）"),
) -> None:
    """保存済みのアクションログから指定言語のコードを生成する。"""
    registry = create_default_registry()
    try:
        emitter = registry.get(target)
        actions, aliases = load_log(log_file)
    except (UnknownTargetError, LogFileError) as exc:
        typer.echo(f"エラー: {exc}", err=True)
        raise typer.Exit(code=1)

    _write_source(output, emitter.render(actions, aliases))
    if output is not None:
        typer.echo(f"生成しました: {output}", err=True)


# ---------------------------------------------------------------------------
# targets コマンド
# ---------------------------------------------------------------------------

@app.command()
def targets() -> None:
    """出力可能な言語タグの一覧を表示する。"""
    registry = create_default_registry()
    for emitter in registry:
        typer.echo(f"  {emitter.tag:<16} {emitter.name}")
    typer.echo(f"\n合計: {len(registry)} 言語")
