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

from pydantic import ValidationError

from promptdoc.types import CompiledPrompt, Message
from ..exceptions import PromptCompilationError
from .scanner import ScanResult


def assemble(result: ScanResult) -> CompiledPrompt:
    """
    スキャン結果を CompiledPrompt (Pydantic Model) に変換・確定する。

    Args:
        result: scanner.scan の戻り値

    Returns:
        CompiledPrompt: 出現順のメッセージと定数マップ

    Raises:
        PromptCompilationError: バリデーション失敗時
    """
    try:
        messages = [
            Message(role=role, content=content)
            for role, content in result.sections
        ]
        return CompiledPrompt(messages=messages, constants=dict(result.constants))

    except ValidationError as e:
        raise PromptCompilationError(f"Assembly failed: {str(e)}", stage="Assembler") from e
