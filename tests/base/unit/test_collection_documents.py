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

from typing import Any

import pytest

from arangopy import Collection
from arangopy.constants import OverwriteMode
from arangopy.exceptions import (
    ArangoHttpException,
    InvalidShardIdentifierException,
    ItemFailureException,
    NoMoreDocumentsException,
    is_not_found,
)
from arangopy.info import CollectionShardsInfo


class TestCollectionDocuments:
    @pytest.mark.describe("test of single-document create and read, sync")
    def test_collection_single_create_read_sync(self, collection: Collection) -> None:
        created = collection.create_document({"_key": "k1", "a": 1})
        assert created.key == "k1"
        assert created.id == "test_coll/k1"
        assert created.rev is not None
        assert created.document is None

        read = collection.read_document("k1")
        assert read.document["a"] == 1
        assert read.rev == created.rev
        assert collection.read_document({"_key": "k1"}).key == "k1"

        generated = collection.create_document({"b": 2}, return_new=True)
        assert generated.key != ""
        assert generated.new is not None
        assert generated.document == generated.new
        assert generated.document["b"] == 2

        with pytest.raises(ValueError):
            collection.read_document({"a": 1})

    @pytest.mark.describe("test of single-document conflicts and overwrites, sync")
    def test_collection_single_overwrite_sync(self, collection: Collection) -> None:
        collection.create_document({"_key": "k1", "a": 1})
        with pytest.raises(ArangoHttpException) as exc_info:
            collection.create_document({"_key": "k1", "a": 2})
        assert exc_info.value.status_code == 409
        replaced = collection.create_document(
            {"_key": "k1", "a": 3},
            overwrite_mode=OverwriteMode.REPLACE,
            return_old=True,
        )
        assert replaced.old is not None
        assert replaced.old["a"] == 1
        assert replaced.old_rev == replaced.old["_rev"]
        assert collection.read_document("k1").document["a"] == 3

    @pytest.mark.describe("test of single-document update, replace, delete, sync")
    def test_collection_single_writes_sync(
        self, collection: Collection, fake_arango: Any
    ) -> None:
        collection.create_document({"_key": "k1", "a": 1, "b": 1})
        updated = collection.update_document(
            {"_key": "k1", "a": 10}, return_new=True, return_old=True
        )
        assert updated.new == {**updated.new, "a": 10, "b": 1}
        assert updated.old is not None
        assert updated.old["a"] == 1
        assert fake_arango.last_request("PATCH", "/k1$").args == {
            "returnNew": "true",
            "returnOld": "true",
        }

        replaced = collection.replace_document({"_key": "k1", "c": 1}, return_new=True)
        assert replaced.new is not None
        assert "a" not in replaced.new

        deleted = collection.delete_document("k1", return_old=True)
        assert deleted.key == "k1"
        assert deleted.old is not None
        assert deleted.old["c"] == 1

        with pytest.raises(ArangoHttpException) as exc_info:
            collection.read_document("k1")
        assert is_not_found(exc_info.value)
        with pytest.raises(ArangoHttpException):
            collection.delete_document("k1")

    @pytest.mark.describe("test of silent single-document delete, sync")
    def test_collection_single_silent_sync(self, collection: Collection) -> None:
        collection.create_document({"_key": "k1"})
        entry = collection.delete_document("k1", silent=True)
        assert entry.key == ""
        assert not entry.is_error
        assert collection.count() == 0

    @pytest.mark.describe("test of multi-document operations keeping input order, sync")
    def test_collection_bulk_order_sync(self, collection: Collection) -> None:
        keys = [f"k{i:02}" for i in range(20)][::-1]
        stream = collection.create_documents([{"_key": key} for key in keys])
        assert len(stream) == len(keys)
        assert [entry.key for entry in stream] == keys
        for _ in range(3):
            with pytest.raises(NoMoreDocumentsException):
                stream.read_next()

        read_stream = collection.read_documents(keys)
        assert [entry.document["_key"] for entry in read_stream] == keys

    @pytest.mark.describe("test of reading documents with their own error field, sync")
    def test_collection_read_error_field_documents_sync(
        self, collection: Collection
    ) -> None:
        collection.create_documents(
            [
                {"_key": "a", "error": True, "errorMessage": "mine"},
                {"_key": "b", "x": 1},
            ]
        )
        entries = collection.read_documents(["a", "b"]).to_list()
        assert [entry.key for entry in entries] == ["a", "b"]
        assert [entry.is_error for entry in entries] == [False, False]
        assert entries[0].document["error"] is True

        single = collection.read_document("a")
        assert not single.is_error
        assert single.document["error"] is True
        assert single.document["errorMessage"] == "mine"

    @pytest.mark.describe("test of multi-document delete with a missing key, sync")
    def test_collection_bulk_delete_missing_sync(self, collection: Collection) -> None:
        collection.create_documents([{"_key": key} for key in ["k1", "k2", "k4"]])
        stream = collection.delete_documents(["k1", "k2", "k3", "k4"])
        entries = []
        while stream.has_next():
            entries.append(stream.read_next())
        assert [entry.key for entry in entries] == ["k1", "k2", "", "k4"]
        assert [entry.is_error for entry in entries] == [False, False, True, False]
        assert is_not_found(entries[2].as_exception())
        with pytest.raises(ItemFailureException):
            entries[2].raise_for_error()
        with pytest.raises(NoMoreDocumentsException):
            stream.read_next()
        assert collection.count() == 0

    @pytest.mark.describe("test of multi-document reads and writes, sync")
    def test_collection_bulk_writes_sync(self, collection: Collection) -> None:
        collection.create_documents(
            [{"_key": "k1", "a": 1}, {"_key": "k2", "a": 2}],
        )
        conflicting = collection.create_documents(
            [{"_key": "k3", "a": 3}, {"_key": "k1", "a": 0}],
        ).to_list()
        assert [entry.is_error for entry in conflicting] == [False, True]

        updated = collection.update_documents(
            [{"_key": "k2", "b": 2}, {"_key": "nope", "b": 0}, {"_key": "k1", "b": 1}],
            return_new=True,
        ).to_list()
        assert [entry.key for entry in updated] == ["k2", "", "k1"]
        assert updated[0].document == {**updated[0].document, "a": 2, "b": 2}
        assert updated[1].is_error

        replaced = collection.replace_documents(
            [{"_key": "k3", "z": 1}],
            return_old=True,
        ).to_list()
        assert replaced[0].old is not None
        assert replaced[0].old["a"] == 3
        assert replaced[0].document == replaced[0].old

        destination: dict[str, Any] = {}
        read_stream = collection.read_documents(["k3", "missing"])
        read_stream.read_next(destination)
        assert destination["z"] == 1
        read_stream.read_next(destination)
        assert destination["z"] == 1

    @pytest.mark.describe("test of silent multi-document operations, sync")
    def test_collection_bulk_silent_sync(self, collection: Collection) -> None:
        collection.create_document({"_key": "k1"})
        silent_stream = collection.create_documents(
            [{"_key": "k0"}, {"_key": "k1"}, {"_key": "k2"}],
            silent=True,
        )
        assert len(silent_stream) == 1
        assert silent_stream.read_next().is_error
        assert collection.count() == 3
        assert collection.delete_documents(["k0", "k1", "k2"], silent=True).to_list() == []

    @pytest.mark.describe("test of multi-document input validation, sync")
    def test_collection_bulk_validation_sync(
        self, collection: Collection, fake_arango: Any
    ) -> None:
        assert collection.delete_documents([]).to_list() == []
        assert fake_arango.count_requests("DELETE", "/_api/document/") == 0
        with pytest.raises(ValueError):
            collection.delete_documents("k1")
        with pytest.raises(ValueError):
            collection.create_documents({"_key": "k1"})  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            collection.update_documents(["k1"])  # type: ignore[list-item]

    @pytest.mark.describe("test of collection endpoints, sync")
    def test_collection_endpoints_sync(self, collection: Collection) -> None:
        collection.create_documents([{"_key": f"k{i}"} for i in range(5)])
        assert collection.count() == 5
        shards = collection.shards()
        assert isinstance(shards, CollectionShardsInfo)
        assert shards.shard_ids == ["s1001", "s1002", "s1003"]
        detailed = collection.shards(details=True)
        assert detailed.shards["s1001"] == ["PRMR-0"]
        router = collection.shard_router(["s1002", "s1001"])
        assert router.shard_ids == ["s1002", "s1001"]
        with pytest.raises(InvalidShardIdentifierException):
            collection.shard_router(["s1001", "s9999"])
        collection.truncate()
        assert collection.count() == 0

    @pytest.mark.describe("test of keys with special characters, sync")
    def test_collection_special_keys_sync(self, collection: Collection) -> None:
        collection.create_document({"_key": "a:b@c"})
        assert collection.read_document("a:b@c").key == "a:b@c"
        assert collection.delete_document("a:b@c").key == "a:b@c"
