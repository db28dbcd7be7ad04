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

"""
An in-memory stand-in for the ArangoDB HTTP API, served through pytest_httpserver,
with the fixtures built on it.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass
from typing import Any, Callable

import pytest
from pytest_httpserver import HTTPServer
from werkzeug import Request, Response

from arangopy import (
    ArangoClient,
    AsyncCollection,
    AsyncDatabase,
    Collection,
    Database,
)
from arangopy.authentication import UsernamePasswordTokenProvider

TEST_DATABASE_NAME = "test_db"
TEST_COLLECTION_NAME = "test_coll"
TEST_SHARD_IDS = ["s1001", "s1002", "s1003"]

CURSOR_PATH = re.compile(r"^/_db/[^/]+/_api/cursor$")
CURSOR_ID_PATH = re.compile(r"^/_db/[^/]+/_api/cursor/(?P<cursor_id>[^/]+)$")
DOCUMENTS_PATH = re.compile(r"^/_db/[^/]+/_api/document/(?P<coll>[^/]+)$")
DOCUMENT_PATH = re.compile(r"^/_db/[^/]+/_api/document/(?P<coll>[^/]+)/(?P<key>[^/]+)$")
COLLECTION_PATH = re.compile(
    r"^/_db/[^/]+/_api/collection/(?P<coll>[^/]+)/(?P<what>shards|count|truncate)$"
)
SIMPLE_QUERY = re.compile(r"^FOR d IN (?P<coll>\w+) RETURN d$")


@dataclass
class RecordedRequest:
    method: str
    path: str
    args: dict[str, str]
    body: Any


@dataclass
class InjectedFailure:
    method: str
    path_pattern: str
    status: int | None
    error_num: int | None
    message: str
    delay_s: float
    times: int


def _error_response(status: int, error_num: int, message: str) -> Response:
    return Response(
        json.dumps(
            {
                "error": True,
                "errorNum": error_num,
                "errorMessage": message,
                "code": status,
            }
        ),
        status=status,
        content_type="application/json",
    )


def _json_response(body: Any, status: int = 200) -> Response:
    return Response(json.dumps(body), status=status, content_type="application/json")


def _item_error(error_num: int, message: str) -> dict[str, Any]:
    return {"error": True, "errorNum": error_num, "errorMessage": message}


def _is_item_error(entry: dict[str, Any]) -> bool:
    return entry.get("error") is True and isinstance(entry.get("errorNum"), int)


def _flag(request: Request, name: str, default: bool = False) -> bool:
    value = request.args.get(name)
    if value is None:
        return default
    return value == "true"


class FakeArangoServer:
    """
    Just enough of the ArangoDB HTTP API for exercising arangopy: documents
    (single and multi-document operations), query cursors over a few query
    shapes, shards of a collection, count and truncate.

    Failures (and delays) can be injected on the next requests matching a
    method and a path pattern. All requests are recorded.
    """

    AVAILABLE_RULES = [
        "move-calculations-up",
        "move-filters-up",
        "remove-redundant-calculations",
        "remove-unnecessary-filters",
        "use-indexes",
    ]

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.shards: dict[str, list[str]] = {}
        self.queries: dict[str, tuple[Callable[[dict[str, Any]], list[Any]], list[Any]]] = {}
        self.cursors: dict[str, tuple[list[Any], int, list[Any]]] = {}
        self.requests: list[RecordedRequest] = []
        self.failures: list[InjectedFailure] = []
        self._counter = 0

    # setup helpers

    def add_collection(
        self,
        name: str,
        documents: list[dict[str, Any]] = [],
        shard_ids: list[str] | None = None,
    ) -> None:
        self.collections[name] = {}
        if shard_ids is not None:
            self.shards[name] = list(shard_ids)
        for document in documents:
            self._store(name, dict(document))

    def register_query(
        self,
        query: str,
        results: list[Any] | Callable[[dict[str, Any]], list[Any]],
        warnings: list[Any] = [],
    ) -> None:
        if callable(results):
            self.queries[query] = (results, list(warnings))
        else:
            _results = list(results)
            self.queries[query] = (lambda _: list(_results), list(warnings))

    def fail(
        self,
        method: str,
        path_pattern: str,
        *,
        status: int | None = 500,
        error_num: int | None = None,
        message: str = "injected failure",
        delay_s: float = 0,
        times: int = 1,
    ) -> None:
        self.failures.append(
            InjectedFailure(
                method=method,
                path_pattern=path_pattern,
                status=status,
                error_num=error_num,
                message=message,
                delay_s=delay_s,
                times=times,
            )
        )

    def count_requests(self, method: str, path_pattern: str) -> int:
        return len(
            [
                rec
                for rec in self.requests
                if rec.method == method and re.search(path_pattern, rec.path)
            ]
        )

    def last_request(self, method: str, path_pattern: str) -> RecordedRequest:
        matching = [
            rec
            for rec in self.requests
            if rec.method == method and re.search(path_pattern, rec.path)
        ]
        return matching[-1]

    def shard_of(self, collection: str, key: str) -> str:
        shard_ids = self.shards[collection]
        return shard_ids[sum(ord(c) for c in key) % len(shard_ids)]

    # internals

    def _next_id(self) -> str:
        self._counter += 1
        return str(self._counter)

    def _meta(self, collection: str, document: dict[str, Any]) -> dict[str, Any]:
        return {
            "_key": document["_key"],
            "_id": document["_id"],
            "_rev": document["_rev"],
        }

    def _store(self, collection: str, document: dict[str, Any]) -> dict[str, Any]:
        key = document.get("_key") or f"auto{self._next_id()}"
        stored = {
            **document,
            "_key": key,
            "_id": f"{collection}/{key}",
            "_rev": f"_r{self._next_id()}",
        }
        self.collections[collection][key] = stored
        return stored

    def _take_failure(self, request: Request) -> InjectedFailure | None:
        for failure in self.failures:
            if (
                failure.times > 0
                and failure.method == request.method
                and re.search(failure.path_pattern, request.path)
            ):
                failure.times -= 1
                return failure
        return None

    def handle(self, request: Request) -> Response:
        raw_body = request.get_data(as_text=True)
        body = json.loads(raw_body) if raw_body else None
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                args=dict(request.args.items()),
                body=body,
            )
        )
        failure = self._take_failure(request)
        if failure is not None:
            if failure.delay_s:
                time.sleep(failure.delay_s)
            if failure.status is not None:
                return _error_response(
                    failure.status,
                    failure.error_num or 4,
                    failure.message,
                )

        if match := CURSOR_PATH.match(request.path):
            return self._create_cursor(body)
        if match := CURSOR_ID_PATH.match(request.path):
            if request.method == "DELETE":
                return self._dispose_cursor(match["cursor_id"])
            return self._next_batch(match["cursor_id"])
        if match := COLLECTION_PATH.match(request.path):
            return self._collection_endpoint(
                request, match["coll"], match["what"]
            )
        if match := DOCUMENT_PATH.match(request.path):
            if match["coll"] not in self.collections:
                return _error_response(404, 1203, "collection or view not found")
            return self._single_document(request, match["coll"], match["key"], body)
        if match := DOCUMENTS_PATH.match(request.path):
            if match["coll"] not in self.collections:
                return _error_response(404, 1203, "collection or view not found")
            if request.method == "POST" and isinstance(body, dict):
                return self._single_document(request, match["coll"], None, body)
            return self._bulk_documents(request, match["coll"], body)
        return _error_response(404, 404, f"unknown path {request.path}")

    # cursors

    def _apply_rules(self, toggles: list[str]) -> list[str]:
        enabled = {rule_name: True for rule_name in self.AVAILABLE_RULES}
        for toggle in toggles:
            value, rule_name = toggle[0] == "+", toggle[1:]
            if rule_name == "all":
                enabled = {r_name: value for r_name in enabled}
            elif rule_name in enabled:
                enabled[rule_name] = value
        return [rule_name for rule_name, value in enabled.items() if value]

    def _create_cursor(self, body: dict[str, Any]) -> Response:
        query = body["query"]
        bind_vars = body.get("bindVars") or {}
        options = body.get("options") or {}
        batch_size = body.get("batchSize") or 1000
        warnings: list[Any] = []
        collections: list[str] = []
        results: list[Any]
        if query in self.queries:
            results_fn, warnings = self.queries[query]
            results = results_fn(bind_vars)
        elif match := SIMPLE_QUERY.match(query):
            coll = match["coll"]
            if coll not in self.collections:
                return _error_response(
                    404, 1203, f"collection or view not found: {coll}"
                )
            collections = [coll]
            documents = [
                self.collections[coll][key] for key in sorted(self.collections[coll])
            ]
            shard_ids = options.get("shardIds")
            if shard_ids:
                unknown = [
                    shard_id
                    for shard_id in shard_ids
                    if shard_id not in self.shards.get(coll, [])
                ]
                if unknown:
                    return _error_response(
                        404, 1203, f"collection or view not found: {unknown[0]}"
                    )
                documents = [
                    doc
                    for doc in documents
                    if self.shard_of(coll, doc["_key"]) in shard_ids
                ]
            results = documents
        else:
            return _error_response(400, 1501, "syntax error, unexpected query")

        profile = options.get("profile") or 0
        extra: dict[str, Any] = {
            "stats": {
                "writesExecuted": 0,
                "scannedFull": len(results),
                **({"fullCount": len(results)} if options.get("fullCount") else {}),
            },
            "warnings": warnings,
        }
        if profile >= 1:
            extra["profile"] = {"parsing": 0.0001, "executing": 0.0002}
        if profile >= 2:
            extra["plan"] = {
                "rules": self._apply_rules(
                    (options.get("optimizer") or {}).get("rules") or []
                ),
                "nodes": [{"type": "SingletonNode", "id": 1}],
                "collections": [{"name": coll, "type": "read"} for coll in collections],
                "estimatedCost": 3.5,
                "estimatedNrItems": len(results),
            }

        first, rest = results[:batch_size], results[batch_size:]
        response: dict[str, Any] = {
            "result": first,
            "hasMore": bool(rest),
            "cached": False,
            "extra": extra,
            "error": False,
            "code": 201,
        }
        if body.get("count"):
            response["count"] = len(results)
        if rest:
            cursor_id = self._next_id()
            self.cursors[cursor_id] = (rest, batch_size, warnings)
            response["id"] = cursor_id
        return _json_response(response, status=201)

    def _next_batch(self, cursor_id: str) -> Response:
        if cursor_id not in self.cursors:
            return _error_response(404, 1600, "cursor not found")
        remaining, batch_size, warnings = self.cursors[cursor_id]
        batch, rest = remaining[:batch_size], remaining[batch_size:]
        if rest:
            self.cursors[cursor_id] = (rest, batch_size, warnings)
        else:
            del self.cursors[cursor_id]
        return _json_response(
            {
                "id": cursor_id,
                "result": batch,
                "hasMore": bool(rest),
                "cached": False,
                "extra": {"stats": {"writesExecuted": 0}, "warnings": warnings},
                "error": False,
                "code": 200,
            }
        )

    def _dispose_cursor(self, cursor_id: str) -> Response:
        if cursor_id not in self.cursors:
            return _error_response(404, 1600, "cursor not found")
        del self.cursors[cursor_id]
        return _json_response(
            {"id": cursor_id, "error": False, "code": 202}, status=202
        )

    # collections

    def _collection_endpoint(self, request: Request, coll: str, what: str) -> Response:
        if coll not in self.collections:
            return _error_response(404, 1203, "collection or view not found")
        if what == "count":
            return _json_response({"name": coll, "count": len(self.collections[coll])})
        if what == "truncate":
            self.collections[coll] = {}
            return _json_response({"name": coll, "error": False, "code": 200})
        if coll not in self.shards:
            return _error_response(501, 9, "shards API is only available in a cluster")
        if _flag(request, "details"):
            shards: Any = {
                shard_id: [f"PRMR-{index}"]
                for index, shard_id in enumerate(self.shards[coll])
            }
        else:
            shards = list(self.shards[coll])
        return _json_response(
            {"name": coll, "shards": shards, "error": False, "code": 200}
        )

    # documents

    def _write(
        self,
        request: Request,
        coll: str,
        key: str | None,
        item: Any,
    ) -> tuple[int, dict[str, Any]]:
        """
        Perform one document operation. Return a status code and either
        the response entry or an error entry.
        """
        documents = self.collections[coll]
        method = request.method
        if method == "POST":
            if not isinstance(item, dict):
                return 400, _item_error(1227, "invalid document type")
            new_key = item.get("_key")
            old = documents.get(new_key) if new_key else None
            overwrite_mode = request.args.get("overwriteMode")
            if old is not None:
                if overwrite_mode == "ignore":
                    return 202, self._meta(coll, old)
                if overwrite_mode == "replace":
                    new = self._store(coll, dict(item))
                elif overwrite_mode == "update":
                    new = self._store(coll, {**old, **item})
                else:
                    return 409, _item_error(
                        1210,
                        f"unique constraint violated - in index primary of "
                        f"type primary over '_key'; conflicting key: {new_key}",
                    )
            else:
                new = self._store(coll, dict(item))
            return 202, self._entry(request, coll, old, new)

        _key = key
        if _key is None:
            _key = item if isinstance(item, str) else (item or {}).get("_key")
        old = documents.get(_key) if _key else None
        if old is None:
            return 404, _item_error(1202, "document not found")
        if method == "GET" or (method == "PUT" and _flag(request, "onlyget")):
            return 200, old
        if method == "PATCH":
            merged = {**old}
            for f_name, f_value in item.items():
                if f_value is None and not _flag(request, "keepNull", True):
                    merged.pop(f_name, None)
                else:
                    merged[f_name] = f_value
            new = self._store(coll, {**merged, "_key": _key})
            return 202, self._entry(request, coll, old, new)
        if method == "PUT":
            new = self._store(coll, {**item, "_key": _key})
            return 202, self._entry(request, coll, old, new)
        # DELETE
        del documents[_key]
        return 202, self._entry(request, coll, old, None)

    def _entry(
        self,
        request: Request,
        coll: str,
        old: dict[str, Any] | None,
        new: dict[str, Any] | None,
    ) -> dict[str, Any]:
        entry = self._meta(coll, new if new is not None else old)  # type: ignore[arg-type]
        if old is not None and new is not None:
            entry["_oldRev"] = old["_rev"]
        if _flag(request, "returnNew") and new is not None:
            entry["new"] = new
        if _flag(request, "returnOld") and old is not None:
            entry["old"] = old
        return entry

    def _single_document(
        self,
        request: Request,
        coll: str,
        key: str | None,
        body: Any,
    ) -> Response:
        status, entry = self._write(request, coll, key, body)
        if _is_item_error(entry):
            return _error_response(status, entry["errorNum"], entry["errorMessage"])
        if _flag(request, "silent"):
            return _json_response({}, status=status)
        return _json_response(entry, status=status)

    def _bulk_documents(self, request: Request, coll: str, body: Any) -> Response:
        if not isinstance(body, list):
            return _error_response(400, 600, "expecting an array")
        entries = [self._write(request, coll, None, item)[1] for item in body]
        if _flag(request, "silent"):
            entries = [entry for entry in entries if _is_item_error(entry)]
        return _json_response(entries, status=202)


@pytest.fixture
def fake_arango(httpserver: HTTPServer) -> FakeArangoServer:
    fake = FakeArangoServer()
    httpserver.expect_request(re.compile(r"^/_db/.*")).respond_with_handler(
        fake.handle
    )
    return fake


@pytest.fixture
def client(httpserver: HTTPServer) -> ArangoClient:
    return ArangoClient(
        httpserver.url_for("/"),
        token=UsernamePasswordTokenProvider("root", "test_password"),
    )


@pytest.fixture
def database(client: ArangoClient, fake_arango: FakeArangoServer) -> Database:
    return client.get_database(TEST_DATABASE_NAME)


@pytest.fixture
def async_database(client: ArangoClient, fake_arango: FakeArangoServer) -> AsyncDatabase:
    return client.get_async_database(TEST_DATABASE_NAME)


@pytest.fixture
def collection(database: Database, fake_arango: FakeArangoServer) -> Collection:
    fake_arango.add_collection(TEST_COLLECTION_NAME, shard_ids=TEST_SHARD_IDS)
    return database.get_collection(TEST_COLLECTION_NAME)


@pytest.fixture
def async_collection(
    async_database: AsyncDatabase, fake_arango: FakeArangoServer
) -> AsyncCollection:
    fake_arango.add_collection(TEST_COLLECTION_NAME, shard_ids=TEST_SHARD_IDS)
    return async_database.get_collection(TEST_COLLECTION_NAME)
