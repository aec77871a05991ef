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

import yaml
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from promptdoc.types import (
    Document,
    Message,
    UnresolvedPolicy,
    DEFAULT_INDENT_WIDTH,
    PROMPT_SUFFIX,
)

# 文書のコンパイル前に呼ばれる。False を返すとその文書をスキップする
BeforeCompileHook = Callable[[Document, Dict[str, str]], bool]
# 文書のコンパイル後に呼ばれる
AfterCompileHook = Callable[[str, List[Message]], None]


class BuilderConfig(BaseModel):
    """
    PromptBuilder の設定 (Value Object)
    データ項目はYAMLから読み込めるが、フック関数はコードからのみ渡せる。
    """
    model_config = ConfigDict(frozen=True)

    annotations: Dict[str, Any] = Field(
        default_factory=dict,
        description="初期アノテーション。同じIDの組み込み既定値を上書きする"
    )
    unresolved: UnresolvedPolicy = Field(
        UnresolvedPolicy.EMPTY,
        description="未解決アノテーションの扱い (empty: 空文字列 / keep: '@id' を残す)"
    )
    indent_width: int = Field(
        DEFAULT_INDENT_WIDTH, ge=1,
        description="継続行とみなす行頭スペースの最小幅 (タブは常に継続行)"
    )
    prompt_suffix: str = Field(PROMPT_SUFFIX, description="プロンプト文書の拡張子")
    max_workers: Optional[int] = Field(
        None, ge=1,
        description="Tier 内の同時実行数の上限。None なら文書数だけワーカーを起動する"
    )

    # --- Hooks (code only) ---
    resolve_hook: Optional[Callable[[str], Optional[Any]]] = Field(
        None, exclude=True,
        description="アノテーション参照時にストアより先に呼ばれる。None を返すとストアの値を使う"
    )
    before_compile: Optional[BeforeCompileHook] = Field(None, exclude=True)
    after_compile: Optional[AfterCompileHook] = Field(None, exclude=True)

    @classmethod
    def from_yaml(cls, path: Union[str, Path], **overrides: Any) -> "BuilderConfig":
        """
        YAMLファイルから設定を読み込む。フック関数は overrides で渡す。

        Raises:
            ValueError: ルートがマッピングでない場合
            pydantic.ValidationError: 値が不正な場合
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file must contain a mapping, got {type(data).__name__}")

        data.update(overrides)
        return cls(**data)
