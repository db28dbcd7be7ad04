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

import importlib.metadata


def get_version() -> str:
    try:
        return importlib.metadata.version(__package__)

    # If the package is not installed, the version cannot be determined
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


__version__: str = get_version()


import arangopy.constants  # noqa: E402
import arangopy.cursors  # noqa: E402
from arangopy.client import ArangoClient  # noqa: E402
from arangopy.data.collection import AsyncCollection, Collection  # noqa: E402
from arangopy.data.cursors.batch_stream import BatchResultStream  # noqa: E402
from arangopy.data.cursors.cursor import CursorState  # noqa: E402
from arangopy.data.cursors.query_cursor import (  # noqa: E402
    AsyncQueryCursor,
    QueryCursor,
)
from arangopy.data.database import AsyncDatabase, Database  # noqa: E402
from arangopy.results import QueryPlan, ResultEntry  # noqa: E402

__all__ = [
    "ArangoClient",
    "AsyncCollection",
    "AsyncDatabase",
    "AsyncQueryCursor",
    "BatchResultStream",
    "Collection",
    "CursorState",
    "Database",
    "QueryCursor",
    "QueryPlan",
    "ResultEntry",
    "__version__",
]


__pdoc__ = {
    "settings": False,
    "utils": False,
}
