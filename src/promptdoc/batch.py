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
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence

from promptdoc.types import Document, Message, PROMPT_SUFFIX
from promptdoc.compiler.exceptions import BatchAbortedError
from promptdoc import utils

logger = logging.getLogger(__name__)

# 1文書をコンパイルする関数。スキップした場合は None を返す
DocumentCompiler = Callable[[Document], Optional[List[Message]]]
# 文書ごとのコールバック: (ロジカル名, メッセージ列)
DocumentCallback = Callable[[str, List[Message]], None]


class BatchOrchestrator:
    """
    Tier に分けられた文書群をコンパイルする。

    - Tier はインデックスの昇順に、厳密に逐次実行する
    - 同一 Tier 内の文書はワーカースレッドで並行にコンパイルする
    - Tier の全ワーカー (コールバックを含む) が終わるまで次の Tier を開始しない。
      この境界により、Tier N のコールバックが更新したアノテーションを Tier N+1 が確実に観測できる
    - 失敗した文書があれば、兄弟文書の完了を待ってから BatchAbortedError を送出し、
      以降の Tier は開始しない (実行中のワーカーのキャンセルはしない)
    """

    def __init__(
        self,
        compile_document: DocumentCompiler,
        max_workers: Optional[int] = None,
        prompt_suffix: str = PROMPT_SUFFIX,
    ):
        self._compile_document = compile_document
        self._max_workers = max_workers
        self._prompt_suffix = prompt_suffix

    def run(
        self,
        tiers: Sequence[Sequence[Document]],
        callback: Optional[DocumentCallback] = None,
    ) -> None:
        """
        全 Tier を順に実行する。

        Raises:
            BatchAbortedError: いずれかの文書のコンパイルまたはコールバックが失敗した場合
        """
        for index, documents in enumerate(tiers):
            self._run_tier(index, documents, callback)
        logger.info(f"Batch completed: {len(tiers)} tiers")

    def _run_tier(
        self,
        index: int,
        documents: Sequence[Document],
        callback: Optional[DocumentCallback],
    ) -> None:
        if not documents:
            return

        workers = len(documents)
        if self._max_workers is not None:
            workers = min(workers, self._max_workers)

        logger.debug(f"Starting tier {index}: {len(documents)} documents on {workers} workers")
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"promptdoc-tier{index}") as executor:
            futures = [
                executor.submit(self._process_document, document, callback)
                for document in documents
            ]
            # Join Barrier: 成否にかかわらず全ワーカーの完了を待つ
            wait(futures)

        # 全結果が揃ってから、Tier 内の文書順で最初の失敗を採用する (完了順には依存しない)
        for document, future in zip(documents, futures):
            error = future.exception()
            if error is None:
                continue
            name = utils.logical_name(document.name, self._prompt_suffix)
            logger.error(f"Tier {index} failed at document '{name}': {error}")
            raise BatchAbortedError(index, name, str(error)) from error

        logger.info(f"Tier {index} completed: {len(documents)} documents")

    def _process_document(self, document: Document, callback: Optional[DocumentCallback]) -> None:
        name = utils.logical_name(document.name, self._prompt_suffix)
        renamed = Document(name=name, text=document.text)

        messages = self._compile_document(renamed)
        if messages is None:
            return
        if callback is not None:
            callback(name, messages)
