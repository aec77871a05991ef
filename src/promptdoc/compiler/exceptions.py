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

from typing import Optional


class PromptDocError(Exception):
    """promptdoc が送出する全ての例外の基底クラス"""


class PromptCompilationError(PromptDocError):
    """
    プロンプト文書のコンパイル失敗。
    stage にはパイプライン上の失敗工程 (InputGuard / Scanner / Assembler ...) が入る。
    """

    def __init__(self, message: str, stage: str = "Unknown"):
        self.message = message
        self.stage = stage
        super().__init__(f"[{stage}] {message}")


class PromptSyntaxError(PromptCompilationError):
    """
    文書の構文違反 (ラベル・定数行の不正、閉じられていない文字列など)。
    位置情報 (1始まりの行・列) と該当行のスニペットを保持する。
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        snippet: Optional[str] = None,
    ):
        self.line = line
        self.column = column
        self.snippet = snippet
        detail = message
        if line is not None:
            detail = f"{message} (line {line}, column {column})"
        if snippet is not None:
            detail = f"{detail}: {snippet!r}"
        super().__init__(detail, stage="Scanner")


class DanglingContinuationError(PromptSyntaxError):
    """ラベルが開かれる前に継続行（インデント行）が現れた"""


class SourceUnavailableError(PromptDocError):
    """文書ソースの読み込み失敗 (ファイル不在・権限・ディレクトリ一覧の失敗)"""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read prompt source '{path}': {reason}")


class BatchAbortedError(PromptDocError):
    """
    バッチ内のある文書 (コンパイルまたはコールバック) が失敗したため、
    以降の Tier を実行せずに中断した。原因は __cause__ に保持される。
    """

    def __init__(self, tier: int, document: str, reason: str):
        self.tier = tier
        self.document = document
        super().__init__(f"Batch aborted at tier {tier} (document '{document}'): {reason}")
