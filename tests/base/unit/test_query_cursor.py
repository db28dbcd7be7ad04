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

import math
import time
from collections import Counter
from typing import Any

import pytest

from arangopy import Collection, Database
from arangopy.constants import ProfileLevel
from arangopy.cursors import CursorState
from arangopy.exceptions import (
    ArangoHttpException,
    ArangoTimeoutException,
    CursorException,
    InvalidShardIdentifierException,
    NoMoreDocumentsException,
)
from arangopy.info import QueryPlan

COLL_QUERY = "FOR d IN test_coll RETURN d"


def _fill(collection: Collection, how_many: int) -> list[str]:
    keys = [f"k{i:03}" for i in range(how_many)]
    collection.create_documents([{"_key": key, "seq": i} for i, key in enumerate(keys)])
    return keys


class TestQueryCursor:
    @pytest.mark.describe("test of query cursor batch retrieval and ordering, sync")
    def test_query_cursor_batches_sync(
        self, database: Database, collection: Collection, fake_arango: Any
    ) -> None:
        for num_items, batch_size in [(10, 3), (9, 3), (1, 5), (0, 4), (7, 1)]:
            fake_arango.register_query(
                f"RETURN RANGE {num_items}", list(range(num_items))
            )
            requests_before = fake_arango.count_requests("POST", r"/_api/cursor")
            cursor = database.query(
                f"RETURN RANGE {num_items}", batch_size=batch_size
            )
            assert [item for item in cursor] == list(range(num_items))
            assert cursor.state == CursorState.EXHAUSTED
            expected_batches = max(1, math.ceil(num_items / batch_size))
            assert cursor.batches_retrieved == expected_batches
            requests_after = fake_arango.count_requests("POST", r"/_api/cursor")
            assert requests_after - requests_before == expected_batches
            for _ in range(2):
                with pytest.raises(NoMoreDocumentsException):
                    cursor.read_next()

    @pytest.mark.describe("test of query cursor lazy batch retrieval, sync")
    def test_query_cursor_lazy_sync(
        self, database: Database, fake_arango: Any
    ) -> None:
        fake_arango.register_query("RETURN LAZY", [{"n": n} for n in range(5)])
        cursor = database.query("RETURN LAZY", batch_size=2)
        assert cursor.state == CursorState.OPEN
        assert cursor.batches_retrieved == 1
        assert cursor.buffered_count == 2
        assert cursor.cursor_id is not None

        destination: dict[str, Any] = {"stale": True}
        assert cursor.read_next(destination).document == {"n": 0}
        assert destination == {"n": 0}
        cursor.read_next()
        assert cursor.batches_retrieved == 1
        assert cursor.state == CursorState.AWAITING_NEXT_BATCH
        assert cursor.has_next()
        assert cursor.batches_retrieved == 2
        assert cursor.consumed == 2
        assert cursor.consume_buffer(5) == [{"n": 2}, {"n": 3}]
        assert cursor.consumed == 4
        with pytest.raises(ValueError):
            cursor.consume_buffer(-1)
        assert cursor.to_list() == [{"n": 4}]
        assert not cursor.has_next()
        assert cursor.consume_buffer() == []

    @pytest.mark.describe("test of query cursor single-batch results, sync")
    def test_query_cursor_single_batch_sync(
        self, database: Database, fake_arango: Any
    ) -> None:
        fake_arango.register_query("RETURN ONE", [42])
        cursor = database.query("RETURN ONE", count=True)
        assert cursor.cursor_id is None
        assert cursor.count == 1
        assert cursor.read_next().document == 42
        assert cursor.state == CursorState.EXHAUSTED
        cursor.close()
        assert cursor.state == CursorState.CLOSED
        assert fake_arango.count_requests("DELETE", r"/_api/cursor/") == 0

    @pytest.mark.describe("test of closing a query cursor before exhaustion, sync")
    def test_query_cursor_close_sync(
        self, database: Database, fake_arango: Any
    ) -> None:
        fake_arango.register_query("RETURN CLOSE", list(range(10)))
        cursor = database.query("RETURN CLOSE", batch_size=3)
        assert cursor.read_next().document == 0
        cursor.close()
        assert cursor.state == CursorState.CLOSED
        assert cursor.buffered_count == 0
        assert fake_arango.count_requests("DELETE", r"/_api/cursor/") == 1
        for _ in range(2):
            with pytest.raises(NoMoreDocumentsException):
                cursor.read_next()
        assert not cursor.has_next()
        assert cursor.to_list() == []
        cursor.close()
        assert fake_arango.count_requests("DELETE", r"/_api/cursor/") == 1

        with database.query("RETURN CLOSE", batch_size=3) as ctx_cursor:
            assert ctx_cursor.read_next().document == 0
        assert ctx_cursor.state == CursorState.CLOSED
        assert fake_arango.count_requests("DELETE", r"/_api/cursor/") == 2

    @pytest.mark.describe("test of closing a query cursor when disposal fails, sync")
    def test_query_cursor_close_failing_dispose_sync(
        self,
        database: Database,
        fake_arango: Any,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        fake_arango.register_query("RETURN DISPOSE", list(range(10)))
        fake_arango.fail("DELETE", r"/_api/cursor/", status=503)
        cursor = database.query("RETURN DISPOSE", batch_size=3)
        cursor.close()
        assert cursor.state == CursorState.CLOSED
        with pytest.raises(NoMoreDocumentsException):
            cursor.read_next()
        assert "could not dispose of cursor" in caplog.text

    @pytest.mark.describe("test of query cursor failing on a batch retrieval, sync")
    def test_query_cursor_failed_sync(
        self, database: Database, fake_arango: Any
    ) -> None:
        fake_arango.register_query("RETURN FAIL", list(range(6)))
        cursor = database.query("RETURN FAIL", batch_size=2)
        fake_arango.fail("POST", r"/_api/cursor/\d+$", status=503, error_num=503)
        assert cursor.consume_buffer() == [0, 1]
        with pytest.raises(ArangoHttpException) as exc_info:
            cursor.read_next()
        assert exc_info.value.status_code == 503
        assert cursor.state == CursorState.FAILED
        with pytest.raises(CursorException) as cur_exc_info:
            cursor.read_next()
        assert cur_exc_info.value.cursor_state == CursorState.FAILED.value
        with pytest.raises(CursorException):
            cursor.has_next()
        # no retry is attempted
        assert fake_arango.count_requests("POST", r"/_api/cursor/\d+$") == 1
        cursor.close()
        assert cursor.state == CursorState.CLOSED
        with pytest.raises(NoMoreDocumentsException):
            cursor.read_next()

    @pytest.mark.describe("test of query cursor overall timeout, sync")
    def test_query_cursor_overall_timeout_sync(
        self, database: Database, fake_arango: Any
    ) -> None:
        fake_arango.register_query("RETURN SLOW", list(range(4)))
        cursor = database.query("RETURN SLOW", batch_size=2, overall_timeout_ms=200)
        assert cursor.consume_buffer() == [0, 1]
        time.sleep(0.3)
        with pytest.raises(ArangoTimeoutException):
            cursor.read_next()
        assert cursor.state == CursorState.FAILED

    @pytest.mark.describe("test of query errors raised when running the query, sync")
    def test_query_errors_sync(self, database: Database) -> None:
        with pytest.raises(ArangoHttpException) as exc_info:
            database.query("THIS IS NOT A QUERY")
        assert exc_info.value.error_descriptors[0].error_num == 1501
        with pytest.raises(ValueError):
            database.query("RETURN 1", batch_size=0)
        with pytest.raises(ValueError):
            database.query("RETURN 1", optimizer_rules=["use-indexes"])

    @pytest.mark.describe("test of query plans with optimizer rules, sync")
    def test_query_plan_sync(
        self, database: Database, collection: Collection, fake_arango: Any
    ) -> None:
        _fill(collection, 3)
        plain_cursor = database.query(COLL_QUERY)
        assert plain_cursor.plan() is None
        assert plain_cursor.profile is None

        cursor = database.query(
            COLL_QUERY,
            profile=ProfileLevel.PLAN,
            optimizer_rules=["-all", "+use-indexes"],
            full_count=True,
        )
        sent_options = fake_arango.last_request("POST", r"/_api/cursor$").body[
            "options"
        ]
        assert sent_options["optimizer"] == {"rules": ["-all", "+use-indexes"]}
        assert sent_options["profile"] == 2
        plan = cursor.plan()
        assert isinstance(plan, QueryPlan)
        assert plan.rules == ["use-indexes"]
        assert plan.has_rule("use-indexes")
        assert not plan.has_rule("move-filters-up")
        assert plan.estimated_nr_items == 3
        assert cursor.profile is not None
        assert cursor.statistics["fullCount"] == 3

        reversed_cursor = database.query(
            COLL_QUERY,
            profile=ProfileLevel.PLAN,
            optimizer_rules=["+use-indexes", "-all"],
        )
        reversed_plan = reversed_cursor.plan()
        assert reversed_plan is not None
        assert reversed_plan.rules == []

    @pytest.mark.describe("test of query warnings and bind variables, sync")
    def test_query_warnings_sync(
        self,
        database: Database,
        fake_arango: Any,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        fake_arango.register_query(
            "FOR i IN 1..@top RETURN i",
            lambda bind_vars: list(range(1, bind_vars["top"] + 1)),
            warnings=[{"code": 1562, "message": "division by zero"}],
        )
        cursor = database.query("FOR i IN 1..@top RETURN i", bind_vars={"top": 4})
        assert cursor.to_list() == [1, 2, 3, 4]
        assert cursor.warnings == [{"code": 1562, "message": "division by zero"}]
        assert "division by zero" in caplog.text

    @pytest.mark.describe("test of query warnings repeated across batches, sync")
    def test_query_warnings_batches_sync(
        self, database: Database, fake_arango: Any
    ) -> None:
        overflow = {"code": 1562, "message": "division by zero"}
        fake_arango.register_query(
            "RETURN WARNED",
            list(range(7)),
            warnings=[overflow, {"code": 1563, "message": "invalid use of null"}],
        )
        cursor = database.query("RETURN WARNED", batch_size=2)
        assert cursor.to_list() == list(range(7))
        assert cursor.batches_retrieved == 4
        assert cursor.warnings == [
            overflow,
            {"code": 1563, "message": "invalid use of null"},
        ]

    @pytest.mark.describe("test of shard-restricted queries, sync")
    def test_query_shards_sync(
        self, database: Database, collection: Collection, fake_arango: Any
    ) -> None:
        keys = _fill(collection, 30)
        everything = Counter(doc["_key"] for doc in database.query(COLL_QUERY))
        assert everything == Counter(keys)

        s1, s2, s3 = "s1001", "s1002", "s1003"
        only_s1 = database.query(COLL_QUERY, shard_ids=[s1], batch_size=4).to_list()
        assert only_s1
        assert all(fake_arango.shard_of("test_coll", doc["_key"]) == s1 for doc in only_s1)
        sent_options = fake_arango.last_request("POST", r"/_api/cursor$").body[
            "options"
        ]
        assert sent_options["shardIds"] == [s1]

        union: Counter[str] = Counter()
        for shard_id in [s1, s2, s3]:
            union.update(
                doc["_key"] for doc in database.query(COLL_QUERY, shard_ids=[shard_id])
            )
        assert union == everything

        router = collection.shard_router([s3, s2])
        pair = database.query(COLL_QUERY, shard_ids=router).to_list()
        assert {fake_arango.shard_of("test_coll", doc["_key"]) for doc in pair} <= {
            s2,
            s3,
        }
        assert len(pair) == sum(everything.values()) - len(only_s1)

    @pytest.mark.describe("test of queries restricted to unknown shards, sync")
    def test_query_unknown_shard_sync(
        self, database: Database, collection: Collection
    ) -> None:
        _fill(collection, 5)
        with pytest.raises(InvalidShardIdentifierException) as exc_info:
            database.query(COLL_QUERY, shard_ids=["s1001", "s4242"])
        assert exc_info.value.shard_ids == ["s4242"]
        assert isinstance(exc_info.value.__cause__, ArangoHttpException)
        # without shard restrictions, a missing collection is not a shard error
        with pytest.raises(ArangoHttpException):
            database.query("FOR d IN missing_coll RETURN d")

    @pytest.mark.describe("test of per-shard queries, sync")
    def test_query_per_shard_sync(
        self, database: Database, collection: Collection, fake_arango: Any
    ) -> None:
        keys = _fill(collection, 20)
        cursors = database.query_per_shard(
            COLL_QUERY, ["s1001", "s1002", "s1003"], batch_size=2
        )
        assert list(cursors.keys()) == ["s1001", "s1002", "s1003"]
        union: Counter[str] = Counter()
        for shard_id, cursor in cursors.items():
            shard_keys = [doc["_key"] for doc in cursor]
            assert all(
                fake_arango.shard_of("test_coll", key) == shard_id
                for key in shard_keys
            )
            union.update(shard_keys)
        assert union == Counter(keys)

        deletes_before = fake_arango.count_requests("DELETE", r"/_api/cursor/")
        with pytest.raises(InvalidShardIdentifierException):
            database.query_per_shard(
                COLL_QUERY, ["s1001", "s1002", "s9999"], batch_size=2
            )
        # the cursors already created are closed
        assert fake_arango.count_requests("DELETE", r"/_api/cursor/") == (
            deletes_before + 2
        )
        with pytest.raises(ValueError):
            database.query_per_shard(COLL_QUERY, [])
