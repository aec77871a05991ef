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
import yaml
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from promptdoc.types import Document, Message, PROMPT_SUFFIX, TIER_SEPARATOR

# "{tier}_{name}" 形式のファイル名 (tier は非負整数)
_TIER_PREFIX_PATTERN = re.compile(rf"^(?P<tier>\d+){TIER_SEPARATOR}(?P<name>.+)$")

# 後段置換パス用の "@identifier" マーカー
_ANNOTATION_MARKER_PATTERN = re.compile(r"@(?P<identifier>[A-Za-z0-9_-]+)")


def strip_prompt_suffix(filename: str, suffix: str = PROMPT_SUFFIX) -> str:
    """ファイル名から .prompt 拡張子を除去する (無ければそのまま)。"""
    if suffix and filename.endswith(suffix):
        return filename[:-len(suffix)]
    return filename


def parse_document_name(filename: str, suffix: str = PROMPT_SUFFIX) -> Tuple[Optional[int], str]:
    """
    バッチ用のファイル名から Tier 番号とロジカル名を取り出すヘルパー。

    例:
        "0_intro.prompt" -> (0, "intro")
        "12_a_b.prompt"  -> (12, "a_b")
        "skip.txt"       -> (None, "skip.txt")

    Returns:
        (tier, logical_name): 整数の接頭辞が無い場合 tier は None
    """
    match = _TIER_PREFIX_PATTERN.match(filename)
    if not match:
        return None, strip_prompt_suffix(filename, suffix)
    return int(match.group("tier")), strip_prompt_suffix(match.group("name"), suffix)


def logical_name(name: str, suffix: str = PROMPT_SUFFIX) -> str:
    """Tier接頭辞と拡張子を除いたロジカル名を返す。"""
    return parse_document_name(name, suffix)[1]


def group_into_tiers(
    entries: Sequence[Tuple[str, str]],
    suffix: str = PROMPT_SUFFIX,
) -> List[List[Document]]:
    """
    (filename, text) の列を Tier ごとの Document リストに振り分ける。

    Tier 接頭辞を持たないファイルは除外する (エラーではなくフィルタ規則)。
    欠番の Tier は詰めて、昇順の Tier 列として返す。
    Document.name には元のファイル名を保持する。
    """
    tiers: Dict[int, List[Document]] = {}
    for filename, text in entries:
        tier, _ = parse_document_name(filename, suffix)
        if tier is None:
            continue
        tiers.setdefault(tier, []).append(Document(name=filename, text=text))

    return [tiers[index] for index in sorted(tiers)]


def load_annotations(path: Union[str, Path]) -> Dict[str, Any]:
    """
    YAMLファイルからアノテーションの初期値を読み込む。

    Raises:
        ValueError: ルートがマッピングでない場合
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Annotation file must contain a mapping, got {type(data).__name__}")
    return {str(k): v for k, v in data.items()}


def dump_messages(messages: Sequence[Message]) -> str:
    """
    メッセージ列をデバッグ表示用のYAML文字列に変換する。
    """
    data = [message.model_dump() for message in messages]
    # allow_unicode=True: 日本語をそのまま出力
    # sort_keys=False: role -> content の順序を維持
    return yaml.dump(data, allow_unicode=True, sort_keys=False, default_flow_style=False)


def substitute_annotations(text: str, lookup: Callable[[str], Optional[str]]) -> str:
    """
    UnresolvedPolicy.KEEP で残された "@identifier" マーカーを後から置換する正規表現パス。
    解決できない識別子はマーカーのまま残す。

    Args:
        text: 置換対象の文字列
        lookup: 識別子 -> 値 (未定義なら None)。AnnotationStore.lookup など
    """
    def replacer(match: re.Match) -> str:
        value = lookup(match.group("identifier"))
        return match.group(0) if value is None else value

    return _ANNOTATION_MARKER_PATTERN.sub(replacer, text)
