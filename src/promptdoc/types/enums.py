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

from enum import StrEnum


class ScanState(StrEnum):
    """
    スキャナ（状態機械）の状態
    """
    LINE_START = "line_start"  # 行頭: 継続行 / ラベル行 / 定数行 の判定
    LABEL = "label"            # "identifier:" の読み取り
    CONSTANT = "constant"      # "identifier = value" の読み取り
    BODY = "body"              # セクション本文 (構造リテラル外, 空白保持)
    LITERAL = "literal"        # 構造リテラル内 {...} / [...] (空白除去)
    STRING = "string"          # リテラル内のダブルクォート文字列
    COMMENT = "comment"        # リテラル内の // 行コメント


class UnresolvedPolicy(StrEnum):
    """
    未解決アノテーション (@id) の扱い
    """
    EMPTY = "empty"  # 空文字列に置換する (既定)
    KEEP = "keep"    # "@id" のまま残し、後段の置換パスに委ねる

