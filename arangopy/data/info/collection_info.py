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

from dataclasses import dataclass
from typing import Any

from arangopy.exceptions import UnexpectedArangoResponseException


@dataclass
class CollectionShardsInfo:
    """
    Represents the shard layout of a collection, as returned by the
    `shards` method of a collection.

    Attributes:
        name: the name of the collection.
        shards: a map from each shard identifier to the list of the servers
            responsible for it (leader first). If the shards were listed
            without details, the server lists are empty.
        raw_info: the raw response from the server.
    """

    name: str
    shards: dict[str, list[str]]
    raw_info: dict[str, Any] | None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, shards={self.shard_ids})"

    @property
    def shard_ids(self) -> list[str]:
        """The shard identifiers of the collection, in server order."""
        return list(self.shards.keys())

    def as_dict(self) -> dict[str, Any]:
        """
        Recast this object into a dictionary.
        """

        return {
            "name": self.name,
            "shards": {
                shard_id: list(servers) for shard_id, servers in self.shards.items()
            },
        }

    @classmethod
    def _from_dict(cls, raw_dict: dict[str, Any]) -> CollectionShardsInfo:
        """
        Create an instance of CollectionShardsInfo from a dictionary
        such as one returned by the collection "shards" endpoint.
        """

        raw_shards = raw_dict.get("shards")
        shards: dict[str, list[str]]
        if isinstance(raw_shards, list):
            shards = {str(shard_id): [] for shard_id in raw_shards}
        elif isinstance(raw_shards, dict):
            shards = {
                str(shard_id): list(servers or [])
                for shard_id, servers in raw_shards.items()
            }
        else:
            raise UnexpectedArangoResponseException(
                text="Faulty response from the collection shards endpoint.",
                raw_response=raw_dict,
            )
        return CollectionShardsInfo(
            name=raw_dict.get("name") or "",
            shards=shards,
            raw_info=raw_dict,
        )
