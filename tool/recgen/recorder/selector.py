"""
セレクタリゾルバ — 操作対象要素から一意なセレクタ記述子を算出

記録時点の DomSnapshot に対して候補セレクタの一意性を判定し、
優先順位の高い戦略から順に採用する。結果は言語非依存の記述子であり、
構文への変換は各エミッタが行う。

優先順位（最初に一意となったものを採用）:
  1. テスト ID 属性（data-testid 等）
  2. ARIA ロール + アクセシブルネーム
  3. ラベル / プレースホルダー / 可視テキスト
  4. 属性ベースの CSS（name, type, タグ, id）
  5. 構造 CSS パス（常に一意）

上位の戦略が一意でない場合、その戦略は丸ごと破棄して次へ進む。
戦略をまたいだ部分的な組み合わせは行わない。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional

from ..model.selectors import (
    CssSelector,
    LabelSelector,
    PlaceholderSelector,
    RoleSelector,
    Selector,
    TestIdSelector,
    TextSelector,
    describe_selector,
)
from .snapshot import DomElement, DomSnapshot, normalize_whitespace

logger = logging.getLogger(__name__)

# テキストセレクタとして採用する最大文字数
_MAX_TEXT_LENGTH = 80

# テキストセレクタの対象外とするタグ（フォーム要素は label / placeholder で扱う）
_FORM_TAGS = frozenset({"input", "textarea", "select", "option"})

# CSS 識別子としてそのまま # 記法で書ける id
_CSS_IDENT = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")


# ---------------------------------------------------------------------------
# 戦略の試行結果
# ---------------------------------------------------------------------------

@dataclass
class CandidateFailure:
    """一意にならなかった候補の情報（デバッグログ用）。

    Attributes:
        tier: 戦略の優先順位（1始まり）
        selector_desc: セレクタの説明文字列
        reason: 不採用理由
    """

    tier: int
    selector_desc: str
    reason: str


# ---------------------------------------------------------------------------
# SelectorResolver 本体
# ---------------------------------------------------------------------------

class SelectorResolver:
    """操作対象要素から一意なセレクタ記述子を算出する。

    resolve() は例外を送出しない。全戦略が失敗した場合は
    構造 CSS パスを返す。
    """

    def __init__(self, test_id_attribute: str = "data-testid") -> None:
        """SelectorResolver を初期化する。

        Args:
            test_id_attribute: テスト ID として扱う属性名
        """
        self._test_id_attribute = test_id_attribute

    @property
    def test_id_attribute(self) -> str:
        """テスト ID として扱う属性名を返す。"""
        return self._test_id_attribute

    # -------------------------------------------------------------------
    # パブリック API
    # -------------------------------------------------------------------

    def resolve(self, element: DomElement, snapshot: DomSnapshot) -> Selector:
        """要素のセレクタ記述子を算出する。

        Args:
            element: 操作対象要素
            snapshot: 操作時点の DOM スナップショット

        Returns:
            スナップショット内で一意に要素を特定するセレクタ記述子
        """
        failures: list[CandidateFailure] = []
        tiers: list[Callable[[DomElement, DomSnapshot, list[CandidateFailure]], Optional[Selector]]] = [
            self._by_test_id,
            self._by_role,
            self._by_label_or_text,
            self._by_attributes,
        ]

        for tier in tiers:
            try:
                selector = tier(element, snapshot, failures)
            except Exception as exc:  # noqa: BLE001
                logger.debug("セレクタ戦略 %s をスキップ: %s", tier.__name__, exc)
                continue
            if selector is not None:
                logger.debug("セレクタを決定しました: %s", describe_selector(selector))
                return selector

        if failures:
            logger.debug(
                "上位戦略が一意になりませんでした:\n%s",
                "\n".join(f"  [{f.tier}] {f.selector_desc}: {f.reason}" for f in failures),
            )
        return self._structural(element, snapshot)

    # -------------------------------------------------------------------
    # 1. テスト ID
    # -------------------------------------------------------------------

    def _by_test_id(
        self, element: DomElement, snapshot: DomSnapshot, failures: list[CandidateFailure]
    ) -> Optional[Selector]:
        """テスト ID 属性によるセレクタを試行する。"""
        test_id = element.attributes.get(self._test_id_attribute)
        if not test_id:
            return None

        count = snapshot.count(lambda e: e.attributes.get(self._test_id_attribute) == test_id)
        if count == 1:
            return TestIdSelector(test_id=test_id)

        failures.append(CandidateFailure(1, f"testId='{test_id}'", f"{count} 件ヒット"))
        return None

    # -------------------------------------------------------------------
    # 2. ロール + アクセシブルネーム
    # -------------------------------------------------------------------

    def _by_role(
        self, element: DomElement, snapshot: DomSnapshot, failures: list[CandidateFailure]
    ) -> Optional[Selector]:
        """ロール + アクセシブルネームによるセレクタを試行する。

        まず大文字小文字を無視した部分一致で数え、一意でなければ
        同じ戦略内で完全一致（exact）を試す。
        """
        if not element.role or not element.name:
            return None

        name = normalize_whitespace(element.name)
        if not name:
            return None
        needle = name.lower()

        loose = snapshot.count(
            lambda e: e.role == element.role and needle in normalize_whitespace(e.name).lower()
        )
        if loose == 1:
            return RoleSelector(role=element.role, name=name)

        exact = snapshot.count(
            lambda e: e.role == element.role and normalize_whitespace(e.name) == name
        )
        if exact == 1:
            return RoleSelector(role=element.role, name=name, exact=True)

        failures.append(CandidateFailure(
            2, f"role='{element.role}', name='{name}'", f"{loose} 件ヒット（完全一致 {exact} 件）",
        ))
        return None

    # -------------------------------------------------------------------
    # 3. ラベル / プレースホルダー / テキスト
    # -------------------------------------------------------------------

    def _by_label_or_text(
        self, element: DomElement, snapshot: DomSnapshot, failures: list[CandidateFailure]
    ) -> Optional[Selector]:
        """ラベル、プレースホルダー、可視テキストの順に試行する。"""
        if element.label:
            label = normalize_whitespace(element.label)
            needle = label.lower()
            count = snapshot.count(
                lambda e: e.label is not None and needle in normalize_whitespace(e.label).lower()
            )
            if label and count == 1:
                return LabelSelector(label=label)
            failures.append(CandidateFailure(3, f"label='{label}'", f"{count} 件ヒット"))

        placeholder = normalize_whitespace(element.attributes.get("placeholder", ""))
        if placeholder:
            needle = placeholder.lower()
            count = snapshot.count(
                lambda e: needle in normalize_whitespace(e.attributes.get("placeholder", "")).lower()
            )
            if count == 1:
                return PlaceholderSelector(placeholder=placeholder)
            failures.append(CandidateFailure(3, f"placeholder='{placeholder}'", f"{count} 件ヒット"))

        text = normalize_whitespace(element.text)
        if text and len(text) <= _MAX_TEXT_LENGTH and element.tag not in _FORM_TAGS:
            matches = _deepest_text_matches(snapshot, text.lower())
            if len(matches) == 1 and matches[0].ref == element.ref:
                return TextSelector(text=text)
            failures.append(CandidateFailure(3, f"text='{text}'", f"{len(matches)} 件ヒット"))

        return None

    # -------------------------------------------------------------------
    # 4. 属性ベース CSS
    # -------------------------------------------------------------------

    def _by_attributes(
        self, element: DomElement, snapshot: DomSnapshot, failures: list[CandidateFailure]
    ) -> Optional[Selector]:
        """name / type / タグ / id の順に属性ベースの CSS を試行する。"""
        tag = element.tag
        attrs = element.attributes
        candidates: list[tuple[str, Callable[[DomElement], bool]]] = []

        name = attrs.get("name")
        type_ = attrs.get("type")
        if name:
            candidates.append((
                f'{tag}[name={_css_string(name)}]',
                lambda e: e.tag == tag and e.attributes.get("name") == name,
            ))
        if type_:
            candidates.append((
                f'{tag}[type={_css_string(type_)}]',
                lambda e: e.tag == tag and e.attributes.get("type") == type_,
            ))
        if name and type_:
            candidates.append((
                f'{tag}[name={_css_string(name)}][type={_css_string(type_)}]',
                lambda e: e.tag == tag
                and e.attributes.get("name") == name
                and e.attributes.get("type") == type_,
            ))
        candidates.append((tag, lambda e: e.tag == tag))

        element_id = attrs.get("id")
        if element_id:
            css = f"#{element_id}" if _CSS_IDENT.match(element_id) else f"[id={_css_string(element_id)}]"
            candidates.append((css, lambda e: e.attributes.get("id") == element_id))

        for css, predicate in candidates:
            count = snapshot.count(predicate)
            if count == 1:
                return CssSelector(css=css)
            failures.append(CandidateFailure(4, f"css='{css}'", f"{count} 件ヒット"))

        return None

    # -------------------------------------------------------------------
    # 5. 構造パス
    # -------------------------------------------------------------------

    def _structural(self, element: DomElement, snapshot: DomSnapshot) -> Selector:
        """構造 CSS パスを生成する（最終手段）。"""
        try:
            path = snapshot.structural_path(element.ref)
        except KeyError:
            # スナップショット外の要素: タグ名のみで妥協する
            logger.warning("要素 %s がスナップショットに存在しません。タグ名で代替します", element.ref)
            path = element.tag
        return CssSelector(css=path, structural=True)


# ---------------------------------------------------------------------------
# ヘルパー関数
# ---------------------------------------------------------------------------

def _css_string(value: str) -> str:
    """CSS 属性セレクタ用のダブルクォート文字列を生成する。"""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\a ")
    return f'"{escaped}"'


def _deepest_text_matches(snapshot: DomSnapshot, needle: str) -> list[DomElement]:
    """テキストを含む要素のうち、子孫に同じテキストを含まない最深の要素を返す。"""
    matches = [e for e in snapshot.elements if needle in normalize_whitespace(e.text).lower()]
    matched_refs = {e.ref for e in matches}
    parents_of_matches = {e.parent for e in matches if e.parent in matched_refs}
    return [e for e in matches if e.ref not in parents_of_matches]
