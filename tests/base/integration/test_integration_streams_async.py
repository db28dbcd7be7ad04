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

import pytest

from arangopy import AsyncCollection, AsyncDatabase
from arangopy.cursors import CursorState
from arangopy.exceptions import NoMoreDocumentsException


class TestStreamsAsync:
    @pytest.mark.describe("test of multi-document order and item errors, async")
    @pytest.mark.asyncio
    async def test_bulk_documents_async(
        self, async_empty_collection: AsyncCollection
    ) -> None:
        keys = ["c", "a", "b"]
        created = await async_empty_collection.create_documents(
            [{"_key": key} for key in keys + ["a"]]
        )
        entries = created.to_list()
        assert [entry.key for entry in entries[:3]] == keys
        assert entries[3].is_error
        with pytest.raises(NoMoreDocumentsException):
            created.read_next()

    @pytest.mark.describe("test of query cursors over many batches, async")
    @pytest.mark.asyncio
    async def test_query_cursor_async(
        self,
        async_database: AsyncDatabase,
        async_empty_collection: AsyncCollection,
    ) -> None:
        await async_empty_collection.create_documents(
            [{"_key": f"k{i}", "seq": i} for i in range(12)]
        )
        cursor = await async_database.query(
            "FOR d IN @@coll SORT d.seq RETURN d.seq",
            bind_vars={"@coll": async_empty_collection.name},
            batch_size=5,
        )
        assert [seq async for seq in cursor] == list(range(12))
        assert cursor.batches_retrieved == 3
        assert cursor.state == CursorState.EXHAUSTED
