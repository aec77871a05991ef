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

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from promptdoc.types import CompiledPrompt, Document, Message
from promptdoc.compiler import compile_prompt, extract_constants
from promptdoc.compiler.exceptions import PromptCompilationError
from promptdoc.annotations import AnnotationStore
from promptdoc.batch import BatchOrchestrator, DocumentCallback
from promptdoc.config import BuilderConfig
from promptdoc import sources, utils

logger = logging.getLogger(__name__)


class PromptBuilder:
    """
    プロンプト文書コンパイラの Facade。

    アノテーションストアを所有 (または共有) し、単一文書のコンパイル、
    ファイルからのコンパイル、Tier 単位のバッチコンパイルを提供する。
    """

    def __init__(
        self,
        config: Optional[BuilderConfig] = None,
        store: Optional[AnnotationStore] = None,
    ):
        """
        Args:
            config: 設定。省略時は既定値
            store: 共有するアノテーションストア。config.annotations はこのストアに上書き登録される。
                   解決フックはストアの構築時に渡すこと

        Raises:
            ValueError: store と config.resolve_hook が同時に指定された場合
        """
        self._config = config if config is not None else BuilderConfig()

        if store is not None and self._config.resolve_hook is not None:
            raise ValueError(
                "resolve_hook cannot be applied to a shared AnnotationStore; "
                "pass the hook to AnnotationStore(hook=...) instead."
            )

        if store is None:
            store = AnnotationStore(self._config.annotations, hook=self._config.resolve_hook)
        elif self._config.annotations:
            store.update(self._config.annotations)
        self._store = store

        self._orchestrator = BatchOrchestrator(
            self.process_document,
            max_workers=self._config.max_workers,
            prompt_suffix=self._config.prompt_suffix,
        )

    @property
    def config(self) -> BuilderConfig:
        return self._config

    @property
    def annotations(self) -> AnnotationStore:
        return self._store

    # =========================================================
    # Single Document
    # =========================================================

    def compile(self, text: str) -> CompiledPrompt:
        """文書をコンパイルし、メッセージと定数の両方を返す。"""
        return compile_prompt(
            text,
            self._store,
            indent_width=self._config.indent_width,
            unresolved=self._config.unresolved,
        )

    def process(self, text: str) -> List[Message]:
        """文書をコンパイルし、メッセージ列を返す。"""
        return self.compile(text).messages

    def process_document(self, document: Document) -> Optional[List[Message]]:
        """
        フック付きで1文書をコンパイルする。

        before_compile が False を返した場合はコンパイルせずに None を返す。
        定数はコンパイル前に正規表現で抽出し、before_compile に渡す。
        """
        before = self._config.before_compile
        if before is not None:
            constants = extract_constants(document.text)
            if not before(document, constants):
                logger.info(f"Skipped document '{document.name}' by before_compile hook")
                return None

        messages = self.process(document.text)

        after = self._config.after_compile
        if after is not None:
            after(document.name, messages)
        return messages

    def process_raw(self, name: str, text: str) -> Optional[List[Message]]:
        return self.process_document(Document(name=name, text=text))

    def process_from_file(self, path: Union[str, Path]) -> List[Message]:
        """
        .prompt ファイルを読み込んでコンパイルする。

        Raises:
            PromptCompilationError: 拡張子が不正、またはコンパイル失敗
            SourceUnavailableError: ファイルが読めない
        """
        suffix = self._config.prompt_suffix
        if not str(path).endswith(suffix):
            raise PromptCompilationError(
                f"File must have a '{suffix}' extension: {path}",
                stage="InputGuard"
            )
        return self.process(sources.read_document(path))

    def extract_constants(self, text: str) -> Dict[str, str]:
        return extract_constants(text)

    # =========================================================
    # Batch
    # =========================================================

    def process_batch(
        self,
        tiers: Sequence[Sequence[Document]],
        callback: Optional[DocumentCallback] = None,
    ) -> None:
        """
        Tier 列を順にコンパイルする。callback には Tier 接頭辞と拡張子を除いた名前が渡る。

        Raises:
            BatchAbortedError: 文書のコンパイル・フック・コールバックのいずれかが失敗した場合
        """
        self._orchestrator.run(tiers, callback)

    def process_batch_from_dir(
        self,
        directory: Union[str, Path],
        callback: Optional[DocumentCallback] = None,
    ) -> None:
        """
        ディレクトリ内の "{tier}_{name}" 形式のファイルを Tier ごとにコンパイルする。
        整数の接頭辞を持たないファイルは対象外 (読み込みもしない)。

        Raises:
            SourceUnavailableError: ディレクトリ・ファイルの読み込み失敗 (そのまま伝播)
            BatchAbortedError: 文書の処理に失敗した場合
        """
        suffix = self._config.prompt_suffix
        entries = sources.list_directory(
            directory,
            include=lambda filename: utils.parse_document_name(filename, suffix)[0] is not None,
        )
        tiers = utils.group_into_tiers(entries, suffix)

        self.process_batch(tiers, callback)

    # =========================================================
    # Annotations
    # =========================================================

    def set_annotation(self, identifier: str, value: Any) -> None:
        """アノテーションを設定する。None を渡すと削除する。"""
        self._store.set(identifier, value)

    def get_annotation(self, identifier: str) -> str:
        return self._store.get(identifier)
