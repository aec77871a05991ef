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

from typing import Final

# Prompt Document Source Conventions
# ファイル名の規約: "{tier}_{name}.prompt"
PROMPT_SUFFIX: Final[str] = ".prompt"
TIER_SEPARATOR: Final[str] = "_"

# Continuation Line
# 行頭がタブ、またはこの幅以上の連続スペースで始まる行を本文の継続行とみなす
DEFAULT_INDENT_WIDTH: Final[int] = 4

# Lexical Markers
LABEL_DELIMITER: Final[str] = ":"
CONSTANT_DELIMITER: Final[str] = "="
ANNOTATION_MARKER: Final[str] = "@"
ESCAPE_MARKER: Final[str] = "\\"
STRING_QUOTE: Final[str] = '"'
COMMENT_MARKER: Final[str] = "//"
OPEN_BRACKETS: Final[str] = "{["
CLOSE_BRACKETS: Final[str] = "}]"

# Built-in Annotation IDs
# 識別子は安定したプロトコル。文言はポリシーであり自由に差し替えてよい
ANNOTATION_OUTPUT_SCHEMA: Final[str] = "OutputSchema"
ANNOTATION_JSON_OUTPUT: Final[str] = "JSONOutput"
ANNOTATION_INPUT_LOCKED: Final[str] = "InputLocked"
