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
Fixtures for tests against a live ArangoDB. The scratch collection is
created (and dropped) through the collection administration endpoint directly.
"""

from __future__ import annotations

from typing import Iterator

import pytest

from arangopy import ArangoClient, AsyncCollection, AsyncDatabase, Collection, Database
from arangopy.settings.defaults import COLLECTION_API_PATH
from arangopy.utils.request_tools import HttpMethod

INTEGRATION_COLLECTION_NAME = "arangopy_test_collection"
INTEGRATION_NUMBER_OF_SHARDS = 3


@pytest.fixture(scope="session")
def sync_database(
    arango_client: ArangoClient, arango_database_name: str
) -> Database:
    return arango_client.get_database(arango_database_name)


@pytest.fixture(scope="session")
def sync_collection(sync_database: Database, is_cluster: bool) -> Iterator[Collection]:
    commander = sync_database._api_commander
    commander.request(
        http_method=HttpMethod.POST,
        additional_path=COLLECTION_API_PATH,
        payload={
            "name": INTEGRATION_COLLECTION_NAME,
            **({"numberOfShards": INTEGRATION_NUMBER_OF_SHARDS} if is_cluster else {}),
        },
    )
    yield sync_database.get_collection(INTEGRATION_COLLECTION_NAME)
    commander.request(
        http_method=HttpMethod.DELETE,
        additional_path=f"{COLLECTION_API_PATH}/{INTEGRATION_COLLECTION_NAME}",
    )


@pytest.fixture(scope="function")
def sync_empty_collection(sync_collection: Collection) -> Iterator[Collection]:
    sync_collection.truncate()
    yield sync_collection


@pytest.fixture(scope="function")
def async_empty_collection(
    sync_empty_collection: Collection,
) -> Iterator[AsyncCollection]:
    yield sync_empty_collection.to_async()


@pytest.fixture(scope="function")
def async_database(sync_database: Database) -> AsyncDatabase:
    return sync_database.to_async()
