# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, TypeVar

DocumentType = Dict[str, Any]
BindVarsType = Dict[str, Any]
CallerType = Tuple[Optional[str], Optional[str]]

DOC = TypeVar("DOC")


class OverwriteMode:
    """
    Admitted values for the `overwrite_mode` parameter of the document
    creation methods of a collection.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    IGNORE = "ignore"
    REPLACE = "replace"
    UPDATE = "update"
    CONFLICT = "conflict"


class ProfileLevel:
    """
    Admitted values for the `profile` parameter of a query.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    NONE = 0
    STATISTICS = 1
    PLAN = 2
