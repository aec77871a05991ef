# Copyright (c) 2026 Centillion System, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import re
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from promptdoc.types import (
    ScanState,
    UnresolvedPolicy,
    DEFAULT_INDENT_WIDTH,
    ANNOTATION_MARKER,
    ESCAPE_MARKER,
    STRING_QUOTE,
    COMMENT_MARKER,
    OPEN_BRACKETS,
    CLOSE_BRACKETS,
)
from ..exceptions import PromptSyntaxError, DanglingContinuationError
from ..rules import syntax

# アノテーションの解決関数: 未定義なら None を返す
AnnotationLookup = Callable[[str], Optional[str]]

# 特殊文字を含まない連続区間 (1回の遷移でまとめて出力する)
_BODY_PLAIN_RUN = re.compile(r"[^\n\\@{}\[\]]+")
_LITERAL_PLAIN_RUN = re.compile(r"[^\s\\@{}\[\]\"/]+")
_LITERAL_SPACE_RUN = re.compile(r"[ \t\r\f\v]+")
_STRING_PLAIN_RUN = re.compile(r"[^\"\\@]+")
_COMMENT_PLAIN_RUN = re.compile(r"[^\n\\@]+")


class Transition(NamedTuple):
    """1回の遷移の結果: (次の状態, 出力する文字列, 次のカーソル位置)"""
    state: ScanState
    emitted: str
    cursor: int


class ScanResult(NamedTuple):
    """スキャン結果: (role, content) の列と、定数の副チャネル"""
    sections: List[Tuple[str, str]]
    constants: Dict[str, str]


class Scanner:
    """
    プロンプト文書を1パスで走査する状態機械。

    入力は暗黙の先頭・末尾改行を付与した不変の文字列として保持し、
    カーソル位置を各状態のハンドラが Transition として返す。
    セクションの蓄積 (ラベル・本文) とブラケット深度はスキャナが所有する。
    """

    def __init__(
        self,
        source: str,
        lookup: AnnotationLookup,
        indent_width: int = DEFAULT_INDENT_WIDTH,
        unresolved: UnresolvedPolicy = UnresolvedPolicy.EMPTY,
    ):
        self._text = "\n" + source + "\n"
        self._lookup = lookup
        self._indent_width = indent_width
        self._unresolved = unresolved

        self._sections: List[Tuple[str, str]] = []
        self._constants: Dict[str, str] = {}

        # 現在のセクション
        self._label: Optional[str] = None
        self._body: List[str] = []
        self._body_started = False
        self._pending_newlines = 0
        self._depth = 0
        self._constant_name: Optional[str] = None

        self._handlers: Dict[ScanState, Callable[[int], Transition]] = {
            ScanState.LINE_START: self._scan_line_start,
            ScanState.LABEL: self._scan_label,
            ScanState.CONSTANT: self._scan_constant,
            ScanState.BODY: self._scan_body,
            ScanState.LITERAL: self._scan_literal,
            ScanState.STRING: self._scan_string,
            ScanState.COMMENT: self._scan_comment,
        }

    def scan(self) -> ScanResult:
        state = ScanState.LINE_START
        cursor = 0
        end = len(self._text)

        while cursor < end:
            transition = self._handlers[state](cursor)
            if transition.emitted:
                self._body.append(transition.emitted)
            state, cursor = transition.state, transition.cursor

        if state == ScanState.STRING:
            raise self._syntax_error("Unterminated string literal", end - 1)

        self._flush()
        return ScanResult(sections=self._sections, constants=self._constants)

    # =========================================================
    # Line-level States
    # =========================================================

    def _scan_line_start(self, cursor: int) -> Transition:
        text = self._text
        if text[cursor] == "\n":
            # 空行: セクションは継続する
            if self._body_started and self._depth <= 0:
                self._pending_newlines += 1
            return Transition(ScanState.LINE_START, "", cursor + 1)

        indent_end = syntax.scan_indent(text, cursor)
        indent = text[cursor:indent_end]

        if syntax.is_continuation_indent(indent, self._indent_width):
            if self._label is None:
                raise DanglingContinuationError(
                    "Found continuation line without a label",
                    *self._position(cursor),
                    snippet=self._line_at(cursor),
                )
            return Transition(self._body_state(), "", indent_end)

        if indent and text[indent_end] == "\n":
            # 継続条件を満たさない空白のみの行は空行として扱う
            return Transition(ScanState.LINE_START, "", indent_end)

        # 継続行でない行は、直前のセクションを閉じる
        self._flush()
        return Transition(ScanState.LABEL, "", cursor)

    def _scan_label(self, cursor: int) -> Transition:
        text = self._text
        kind, identifier, delimiter_end = syntax.classify_line_head(text, cursor)

        if kind == "label":
            self._label = identifier
            # コロン直後のスペースは読み飛ばす。残りは本文として扱う
            cursor = delimiter_end
            while text[cursor] == " ":
                cursor += 1
            return Transition(self._body_state(), "", cursor)

        if kind == "constant":
            self._constant_name = identifier
            return Transition(ScanState.CONSTANT, "", delimiter_end)

        if not identifier:
            raise self._syntax_error(
                f"Expected a label or constant identifier, found {text[cursor]!r}", cursor
            )
        found = text[delimiter_end]
        raise self._syntax_error(
            f"Expected ':' or '=' after identifier {identifier!r}, found {found!r}",
            delimiter_end,
        )

    def _scan_constant(self, cursor: int) -> Transition:
        line_end = self._text.index("\n", cursor)
        value = syntax.split_constant_value(self._text[cursor:line_end])
        self._constants[self._constant_name] = value
        return Transition(ScanState.LINE_START, "", line_end)

    # =========================================================
    # Body States
    # =========================================================

    def _scan_body(self, cursor: int) -> Transition:
        text = self._text
        char = text[cursor]

        if char == "\n":
            if self._body_started:
                self._pending_newlines += 1
            return Transition(ScanState.LINE_START, "", cursor + 1)

        self._begin_body_token()

        if char == ESCAPE_MARKER:
            return self._escape(cursor, ScanState.BODY)
        if char == ANNOTATION_MARKER:
            return self._annotation(cursor, ScanState.BODY)
        if char in OPEN_BRACKETS or char in CLOSE_BRACKETS:
            return self._bracket(cursor)

        run = _BODY_PLAIN_RUN.match(text, cursor)
        return Transition(ScanState.BODY, run.group(), run.end())

    def _scan_literal(self, cursor: int) -> Transition:
        text = self._text
        char = text[cursor]

        # 構造リテラル内の改行は空白として除去する (次行のインデントは行頭で除去)
        if char == "\n":
            return Transition(ScanState.LINE_START, "", cursor + 1)

        self._begin_body_token()

        if char == ESCAPE_MARKER:
            return self._escape(cursor, ScanState.LITERAL)
        if char == ANNOTATION_MARKER:
            return self._annotation(cursor, ScanState.LITERAL)
        if char in OPEN_BRACKETS or char in CLOSE_BRACKETS:
            return self._bracket(cursor)
        if char == STRING_QUOTE:
            return Transition(ScanState.STRING, char, cursor + 1)
        if text.startswith(COMMENT_MARKER, cursor):
            return Transition(ScanState.COMMENT, COMMENT_MARKER, cursor + len(COMMENT_MARKER))

        space = _LITERAL_SPACE_RUN.match(text, cursor)
        if space:
            # コメント直前の空白は1文字に畳む
            kept = " " if text.startswith(COMMENT_MARKER, space.end()) else ""
            return Transition(ScanState.LITERAL, kept, space.end())

        run = _LITERAL_PLAIN_RUN.match(text, cursor)
        if run:
            return Transition(ScanState.LITERAL, run.group(), run.end())
        # 単独の '/' など
        return Transition(ScanState.LITERAL, char, cursor + 1)

    def _scan_string(self, cursor: int) -> Transition:
        text = self._text
        char = text[cursor]

        if char == STRING_QUOTE:
            return Transition(self._body_state(), char, cursor + 1)
        if char == ESCAPE_MARKER:
            return self._escape(cursor, ScanState.STRING)
        if char == ANNOTATION_MARKER:
            return self._annotation(cursor, ScanState.STRING)

        # 文字列内の空白・改行・インデントは一切変更しない
        run = _STRING_PLAIN_RUN.match(text, cursor)
        return Transition(ScanState.STRING, run.group(), run.end())

    def _scan_comment(self, cursor: int) -> Transition:
        text = self._text
        char = text[cursor]

        if char == "\n":
            # コメントを閉じる改行は残す
            return Transition(ScanState.LINE_START, "\n", cursor + 1)
        if char == ESCAPE_MARKER:
            return self._escape(cursor, ScanState.COMMENT)
        if char == ANNOTATION_MARKER:
            return self._annotation(cursor, ScanState.COMMENT)

        run = _COMMENT_PLAIN_RUN.match(text, cursor)
        return Transition(ScanState.COMMENT, run.group(), run.end())

    # =========================================================
    # Tokens shared by body states
    # =========================================================

    def _escape(self, cursor: int, state: ScanState) -> Transition:
        # 入力末尾のバックスラッシュは、付与した末尾改行をエスケープせずにそのまま出力する
        if cursor + 1 == len(self._text) - 1:
            return Transition(state, ESCAPE_MARKER, cursor + 1)
        # バックスラッシュは捨て、直後の1文字を特別な意味を持たせずに出力する
        return Transition(state, self._text[cursor + 1], cursor + 2)

    def _annotation(self, cursor: int, state: ScanState) -> Transition:
        start = cursor + len(ANNOTATION_MARKER)
        end = syntax.scan_identifier(self._text, start)
        identifier = self._text[start:end]
        if not identifier:
            return Transition(state, ANNOTATION_MARKER, start)

        value = self._lookup(identifier)
        if value is None:
            if self._unresolved == UnresolvedPolicy.KEEP:
                value = ANNOTATION_MARKER + identifier
            else:
                value = ""
        return Transition(state, value, end)

    def _bracket(self, cursor: int) -> Transition:
        char = self._text[cursor]
        if char in OPEN_BRACKETS:
            self._depth += 1
        else:
            # 負の深度は許容する (構造の検証は行わない)
            self._depth -= 1
        return Transition(self._body_state(), char, cursor + 1)

    # =========================================================
    # Section Accumulator
    # =========================================================

    def _body_state(self) -> ScanState:
        return ScanState.LITERAL if self._depth > 0 else ScanState.BODY

    def _begin_body_token(self) -> None:
        if self._pending_newlines:
            self._body.append("\n" * self._pending_newlines)
            self._pending_newlines = 0
        self._body_started = True

    def _flush(self) -> None:
        if self._label is not None:
            self._sections.append((self._label, "".join(self._body)))
        self._label = None
        self._body = []
        self._body_started = False
        self._pending_newlines = 0
        self._depth = 0

    # =========================================================
    # Diagnostics
    # =========================================================

    def _position(self, cursor: int) -> Tuple[int, int]:
        # 先頭に付与した改行の分だけ行番号がずれるため、改行の数がそのまま1始まりの行番号になる
        line = self._text.count("\n", 0, cursor)
        column = cursor - self._text.rfind("\n", 0, cursor)
        return line, column

    def _line_at(self, cursor: int) -> str:
        start = self._text.rfind("\n", 0, cursor) + 1
        end = self._text.find("\n", cursor)
        return self._text[start:end]

    def _syntax_error(self, message: str, cursor: int) -> PromptSyntaxError:
        line, column = self._position(cursor)
        return PromptSyntaxError(message, line, column, snippet=self._line_at(cursor))


def scan(
    source: str,
    lookup: AnnotationLookup,
    indent_width: int = DEFAULT_INDENT_WIDTH,
    unresolved: UnresolvedPolicy = UnresolvedPolicy.EMPTY,
) -> ScanResult:
    """
    プロンプト文書を走査し、(role, content) の列と定数マップを返す。

    Args:
        source: 文書の全文
        lookup: アノテーションIDを値に解決する関数 (未定義なら None)
        indent_width: 継続行とみなすスペースの最小幅
        unresolved: 未解決アノテーションの扱い

    Raises:
        PromptSyntaxError: 構文違反 (DanglingContinuationError を含む)
    """
    return Scanner(source, lookup, indent_width=indent_width, unresolved=unresolved).scan()
