"""
ログファイル入出力 — ActionLog の YAML 保存・読み込み

記録結果を YAML として保存し、後から `recgen render` で
任意の言語に再生成できるようにする。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .action_log import ActionLog, InvariantViolation
from .actions import Action
from .aliases import AliasTable

logger = logging.getLogger(__name__)


class LogFileError(Exception):
    """ログファイルの読み込み・検証に失敗した場合のエラー。"""


def to_document(actions: Iterable[Action], aliases: AliasTable) -> dict[str, Any]:
    """アクション列とエイリアス表を YAML 出力用の辞書に変換する。

    Args:
        actions: 確定済みアクション列
        aliases: エイリアス表

    Returns:
        YAML 出力用の辞書
    """
    return {
        "aliases": {
            "pages": dict(aliases.pages),
            "root": aliases.root,
            "released": list(aliases.released),
        },
        "actions": [_dump_action(action) for action in actions],
    }


def _dump_action(action: Action) -> dict[str, Any]:
    """Action を既定値を省いた辞書に変換する。

    セレクタは strategy タグが判別に必要なため、既定値も含めて出力する。
    """
    data = action.model_dump(mode="json", exclude_defaults=True)
    if action.selector is not None:
        data["selector"] = action.selector.model_dump(mode="json")
    return data


def save_log(path: Path, actions: Iterable[Action], aliases: AliasTable) -> None:
    """アクション列を YAML ファイルとして保存する。

    Args:
        path: 出力先ファイルパス
        actions: 確定済みアクション列
        aliases: エイリアス表
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.default_flow_style = False

    document = to_document(actions, aliases)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(document, f)

    logger.info("アクションログを保存しました: %s (%d 件)", path, len(document["actions"]))


def load_log(path: Path) -> tuple[list[Action], AliasTable]:
    """YAML ファイルからアクション列とエイリアス表を読み込む。

    Args:
        path: 入力ファイルパス

    Returns:
        (アクション列, エイリアス表) のタプル

    Raises:
        LogFileError: ファイルが読めない、内容が不正、または sequence が後退している場合
    """
    yaml = YAML(typ="safe")
    try:
        with open(path, encoding="utf-8") as f:
            document = yaml.load(f)
    except (OSError, YAMLError) as exc:
        raise LogFileError(f"ログファイルを読み込めません: {path} — {exc}") from exc

    if not isinstance(document, dict):
        raise LogFileError(f"ログファイルの形式が不正です: {path}")

    alias_doc = document.get("aliases") or {}
    if not isinstance(alias_doc, dict):
        raise LogFileError(f"aliases はマッピングで指定してください: {path}")
    items = document.get("actions") or []
    if not isinstance(items, list):
        raise LogFileError(f"actions はリストで指定してください: {path}")

    log = ActionLog()
    try:
        aliases = AliasTable(
            pages=alias_doc.get("pages") or {},
            root=alias_doc.get("root"),
            released=tuple(alias_doc.get("released") or ()),
        )
        for item in items:
            log.append(Action.model_validate(item))
    except ValidationError as exc:
        raise LogFileError(f"ログファイルの検証に失敗しました: {path}\n{exc}") from exc
    except InvariantViolation as exc:
        raise LogFileError(f"ログファイルのアクション列が不正です: {path} — {exc}") from exc

    actions = list(log.snapshot())
    logger.info("アクションログを読み込みました: %s (%d 件)", path, len(actions))
    return actions, aliases
