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
from typing import Dict

from ..rules import syntax

# インデントされていない (継続行でない) 行
_TOP_LEVEL_LINE = re.compile(r"^(?![ \t]).+$", re.MULTILINE)


def extract_constants(source: str) -> Dict[str, str]:
    """
    文書全体を正規表現で走査し、トップレベルの "identifier = value" 行を抽出する。

    スキャナ本体を起動せずに定数だけを得たい場合 (コンパイル前のゲート判定など) に使う。
    ラベル行・定数行の判定規則はスキャナと共有 (rules.syntax.classify_line_head) しているため、
    両者の結果は一致する。この関数は例外を送出しない。

    Args:
        source: 文書の全文

    Returns:
        dict: identifier -> トリム済みの生値 (アノテーション未置換)。後勝ち。
    """
    constants: Dict[str, str] = {}
    for match in _TOP_LEVEL_LINE.finditer(source):
        line = match.group()
        kind, identifier, delimiter_end = syntax.classify_line_head(line)
        if kind != "constant":
            continue
        constants[identifier] = syntax.split_constant_value(line[delimiter_end:])
    return constants
