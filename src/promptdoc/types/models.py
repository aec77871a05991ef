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

from __future__ import annotations
from typing import Dict, List
from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """
    コンパイル結果の1メッセージ (Value Object)
    会話APIにそのまま渡せる {role, content} の組。
    """
    model_config = ConfigDict(frozen=True)

    role: str = Field(..., min_length=1, description="セクションのラベル (e.g. 'system')")
    content: str = Field(
        "",
        description="アノテーション解決・ミニファイ済みの本文。空文字列も有効なメッセージ"
    )


class Document(BaseModel):
    """
    プロンプト文書 (Value Object)
    名前が同一性を表す。読み込み後は不変。
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="文書名 (ファイル名、またはロジカル名)")
    text: str = Field(..., description="文書の全文")


class CompiledPrompt(BaseModel):
    """
    1文書のコンパイル結果
    """
    model_config = ConfigDict(frozen=True)

    messages: List[Message] = Field(
        default_factory=list,
        description="ソース上の出現順に並んだメッセージ"
    )
    constants: Dict[str, str] = Field(
        default_factory=dict,
        description="トップレベルの 'name = value' 行 (未置換の生値)"
    )

    @property
    def roles(self) -> List[str]:
        return [message.role for message in self.messages]
