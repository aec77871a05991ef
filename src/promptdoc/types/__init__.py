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

from .constants import (
    PROMPT_SUFFIX,
    TIER_SEPARATOR,
    DEFAULT_INDENT_WIDTH,
    LABEL_DELIMITER,
    CONSTANT_DELIMITER,
    ANNOTATION_MARKER,
    ESCAPE_MARKER,
    STRING_QUOTE,
    COMMENT_MARKER,
    OPEN_BRACKETS,
    CLOSE_BRACKETS,
    ANNOTATION_OUTPUT_SCHEMA,
    ANNOTATION_JSON_OUTPUT,
    ANNOTATION_INPUT_LOCKED,
)
from .enums import ScanState, UnresolvedPolicy
from .models import Message, Document, CompiledPrompt
