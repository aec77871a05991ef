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
from typing import Optional, Tuple

from promptdoc.types import COMMENT_MARKER, CONSTANT_DELIMITER, LABEL_DELIMITER

# 識別子に使用できる文字: 英字, 数字, '_', '-'
IDENTIFIER_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyz"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "0123456789"
    "_-"
)
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z0-9_-]+")

# 行頭の空白 (タブ/スペース) の連続
INDENT_PATTERN = re.compile(r"[ \t]*")

# トップレベル行: "identifier:" または "identifier = value"
LINE_HEAD_PATTERN = re.compile(
    rf"(?P<identifier>[A-Za-z0-9_-]*)(?P<gap>[ \t]*)(?P<delimiter>[{LABEL_DELIMITER}{CONSTANT_DELIMITER}]?)"
)


def is_identifier(text: str) -> bool:
    """文字列全体が識別子として妥当か"""
    return bool(text) and IDENTIFIER_PATTERN.fullmatch(text) is not None


def scan_identifier(text: str, start: int) -> int:
    """
    start から識別子文字を貪欲に読み進め、識別子の終端位置 (排他的) を返す。
    識別子が無い場合は start をそのまま返す。
    """
    match = IDENTIFIER_PATTERN.match(text, start)
    return match.end() if match else start


def scan_indent(text: str, start: int) -> int:
    """start から続くタブ/スペースの終端位置を返す。"""
    return INDENT_PATTERN.match(text, start).end()


def is_continuation_indent(indent: str, indent_width: int) -> bool:
    """
    行頭の空白が継続行の条件を満たすか。
    タブを1つ以上含む、または indent_width 以上の幅を持つこと。
    """
    if not indent:
        return False
    return "\t" in indent or len(indent) >= indent_width


def classify_line_head(text: str, start: int = 0) -> Tuple[Optional[str], str, int]:
    """
    text[start:] をトップレベル行の先頭として解析し (kind, identifier, delimiter_end) を返す。

    kind:
        "label"    -> "identifier:" (区切りのコロンは識別子の直後であること)
        "constant" -> "identifier [空白] ="
        None       -> どちらでもない (構文エラー候補)
    delimiter_end は区切り文字の直後の位置 (kind が None の場合は識別子の終端)。

    スキャナと正規表現による定数抽出の双方がこの判定を共有する。
    """
    match = LINE_HEAD_PATTERN.match(text, start)
    identifier = match.group("identifier")
    delimiter = match.group("delimiter")

    if identifier and delimiter == LABEL_DELIMITER and not match.group("gap"):
        return "label", identifier, match.end()
    if identifier and delimiter == CONSTANT_DELIMITER:
        return "constant", identifier, match.end()
    return None, identifier, match.end("identifier")


def split_constant_value(segment: str) -> str:
    """
    定数行の '=' 以降から値を取り出す。行内コメント (//) 以降を除去してトリムする。
    """
    comment_at = segment.find(COMMENT_MARKER)
    if comment_at != -1:
        segment = segment[:comment_at]
    return segment.strip()
