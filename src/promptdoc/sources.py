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
from typing import Callable, List, Optional, Tuple, Union

from promptdoc.compiler.exceptions import SourceUnavailableError

logger = logging.getLogger(__name__)


def _normalize_newlines(text: str) -> str:
    # 行末を "\n" に統一し、全ての行を1つの改行で終端させる
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    if text and not text.endswith("\n"):
        text += "\n"
    return text


def read_document(path: Union[str, Path]) -> str:
    """
    文書を丸ごと読み込む。

    Raises:
        SourceUnavailableError: ファイルが存在しない・読めない場合 (原因の OSError を連鎖)
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SourceUnavailableError(str(path), str(e)) from e
    return _normalize_newlines(text)


def list_directory(
    path: Union[str, Path],
    include: Optional[Callable[[str], bool]] = None,
) -> List[Tuple[str, str]]:
    """
    ディレクトリ直下のファイルを (filename, text) のリストとしてファイル名順に返す。
    サブディレクトリは無視する。
    include が False を返したファイルは読み込まずに除外する。

    Raises:
        SourceUnavailableError: ディレクトリの一覧取得、またはファイルの読み込みに失敗した場合
    """
    directory = Path(path)
    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise SourceUnavailableError(str(directory), str(e)) from e

    documents = []
    excluded = 0
    for entry in entries:
        if entry.is_dir():
            continue
        if include is not None and not include(entry.name):
            excluded += 1
            continue
        documents.append((entry.name, read_document(entry)))

    if excluded:
        logger.warning(f"Excluded {excluded} files in {directory}")
    logger.debug(f"Listed {len(documents)} documents from {directory}")
    return documents
