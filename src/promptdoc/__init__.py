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

from typing import Any, List

from promptdoc.types import Message, Document, CompiledPrompt, UnresolvedPolicy
from promptdoc.compiler import (
    compile_prompt,
    extract_constants,
    PromptDocError,
    PromptCompilationError,
    PromptSyntaxError,
    DanglingContinuationError,
    SourceUnavailableError,
    BatchAbortedError,
)
from promptdoc.annotations import AnnotationStore, DEFAULT_ANNOTATIONS
from promptdoc.batch import BatchOrchestrator
from promptdoc.config import BuilderConfig
from promptdoc.builder import PromptBuilder


def compile(source: str, annotations: Any = None) -> List[Message]:
    """
    プロンプト文書をコンパイルし、ロール付きメッセージ列を返す。

    Args:
        source: プロンプト文書の全文
        annotations: AnnotationStore / Mapping / 関数 / None
    """
    return compile_prompt(source, annotations).messages
