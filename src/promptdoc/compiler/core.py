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
from typing import Any, Callable, Mapping, Optional

from promptdoc.types import CompiledPrompt, UnresolvedPolicy, DEFAULT_INDENT_WIDTH

from .exceptions import PromptCompilationError
from .pipeline import scanner, assembler

logger = logging.getLogger(__name__)


def _as_lookup(annotations: Any) -> Callable[[str], Optional[str]]:
    """
    アノテーションの供給元を lookup 関数 (id -> 値 or None) に正規化する。
    AnnotationStore (lookup メソッドを持つもの)、Mapping、関数のいずれも受け付ける。
    """
    if annotations is None:
        return lambda identifier: None
    if hasattr(annotations, "lookup"):
        return annotations.lookup
    if isinstance(annotations, Mapping):
        def lookup(identifier: str) -> Optional[str]:
            value = annotations.get(identifier)
            return None if value is None else str(value)
        return lookup
    if callable(annotations):
        return annotations
    raise TypeError(f"Unsupported annotation source: {type(annotations).__name__}")


def compile_prompt(
    source: str,
    annotations: Any = None,
    indent_width: int = DEFAULT_INDENT_WIDTH,
    unresolved: UnresolvedPolicy = UnresolvedPolicy.EMPTY,
) -> CompiledPrompt:
    """
    プロンプト文書をコンパイルし、ロール付きメッセージ列と定数マップを生成する。

    Pipeline Sequence:
      1. Input Guard: 文字列以外を拒否
      2. Scan: 1パスの状態機械でセクション・定数を切り出し、
               アノテーション解決と構造リテラルのミニファイを同時に行う
      3. Assemble: (role, content) -> CompiledPrompt (Pydantic Model)

    Args:
        source (str): プロンプト文書の全文
        annotations: アノテーションの供給元 (AnnotationStore / Mapping / 関数 / None)
        indent_width (int): 継続行とみなすスペースの最小幅
        unresolved (UnresolvedPolicy): 未解決アノテーションの扱い

    Returns:
        CompiledPrompt: コンパイル結果。失敗時に部分的な結果を返すことはない

    Raises:
        PromptCompilationError: コンパイル失敗時に送出 (PromptSyntaxError を含む)
    """
    # 0. Input Guard
    if not isinstance(source, str):
        raise PromptCompilationError(
            f"Prompt source must be a string, got {type(source).__name__}",
            stage="InputGuard"
        )

    lookup = _as_lookup(annotations)

    try:
        # Step 1: Scan
        logger.debug("Starting Phase 1: Scan")
        scan_result = scanner.scan(
            source, lookup, indent_width=indent_width, unresolved=unresolved
        )

        # Step 2: Assembly
        logger.debug("Starting Phase 2: Assembly")
        compiled = assembler.assemble(scan_result)

        logger.info(
            f"Prompt compilation completed. Roles: {compiled.roles}, "
            f"Constants: {sorted(compiled.constants)}"
        )
        return compiled

    except PromptCompilationError:
        # 既知のコンパイルエラーはそのまま通過させる
        raise
    except Exception as e:
        # 予期せぬ内部エラー（実装バグや解決フックの例外）をラップする
        logger.error(f"Unexpected compilation error: {str(e)}", exc_info=True)
        raise PromptCompilationError(
            message=f"Internal compilation error: {str(e)}",
            stage="Unknown"
        ) from e
