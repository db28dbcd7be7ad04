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

import logging
from typing import Any, Iterable

from arangopy.exceptions import (
    ArangoHttpException,
    ArangoResponseException,
    InvalidShardIdentifierException,
)
from arangopy.settings.defaults import ARANGO_ERROR_DATA_SOURCE_NOT_FOUND

logger = logging.getLogger(__name__)


class ShardRouter:
    """
    A restriction of a query to an explicit set of shards of a collection.

    The shard identifiers are validated (non-empty strings, at least one of
    them) and de-duplicated, keeping the order in which they are first seen.
    If the full list of shards of the collection is known (see
    `Collection.shards`), any unknown identifier is rejected right away, without
    issuing any request. Otherwise the server is left to reject it: in that
    case `translate_error` recognizes the failure.

    A shard restriction never produces a silently empty result: an unknown
    shard identifier is always an InvalidShardIdentifierException.

    Args:
        shard_ids: the shard identifiers to restrict the query to.
        known_shard_ids: if provided, the complete list of valid shard
            identifiers for the collection being queried.

    Example:
        >>> router = my_collection.shard_router(["s1001", "s1002"])
        >>> cursor = my_database.query(
        ...     "FOR d IN my_collection RETURN d",
        ...     shard_ids=router,
        ... )
    """

    shard_ids: list[str]
    known_shard_ids: list[str] | None

    def __init__(
        self,
        shard_ids: Iterable[str],
        *,
        known_shard_ids: Iterable[str] | None = None,
    ) -> None:
        if isinstance(shard_ids, str):
            raise ValueError(
                "Shard identifiers must be passed as a collection of strings."
            )
        _shard_ids: list[str] = []
        for shard_id in shard_ids:
            if not isinstance(shard_id, str) or not shard_id.strip():
                raise ValueError(f"Invalid shard identifier: {shard_id!r}.")
            if shard_id not in _shard_ids:
                _shard_ids.append(shard_id)
        if not _shard_ids:
            raise ValueError("A shard restriction requires at least one shard.")
        self.shard_ids = _shard_ids

        self.known_shard_ids = (
            None if known_shard_ids is None else list(known_shard_ids)
        )
        if self.known_shard_ids is not None:
            unknown_ids = [
                shard_id
                for shard_id in self.shard_ids
                if shard_id not in self.known_shard_ids
            ]
            if unknown_ids:
                raise InvalidShardIdentifierException(
                    text=f"Unknown shard identifier(s): {', '.join(unknown_ids)}.",
                    shard_ids=unknown_ids,
                )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.shard_ids})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ShardRouter):
            return self.shard_ids == other.shard_ids
        return False

    def __len__(self) -> int:
        return len(self.shard_ids)

    def apply(self, options: dict[str, Any]) -> dict[str, Any]:
        """
        Return a copy of a query options dictionary (the "options" part of
        a query creation payload) with the shard restriction added.
        """
        return {**options, "shardIds": list(self.shard_ids)}

    def split(self) -> list[ShardRouter]:
        """
        Return one single-shard router for each of the shards of this router,
        in order. This is used for retrieving the results one shard at a time.
        """
        return [
            ShardRouter([shard_id], known_shard_ids=self.known_shard_ids)
            for shard_id in self.shard_ids
        ]

    def translate_error(self, exc: Exception) -> Exception:
        """
        Map a server failure caused by the shard restriction to an
        InvalidShardIdentifierException (chained to the original error).
        Any other exception is returned unchanged.

        A failure is attributed to the shard restriction if it carries the
        "data source not found" error number, or an error message mentioning
        one of the shard identifiers of this router.
        """
        if isinstance(exc, (ArangoHttpException, ArangoResponseException)):
            for err_desc in exc.error_descriptors:
                mentioned_ids = [
                    shard_id
                    for shard_id in self.shard_ids
                    if shard_id in (err_desc.message or "")
                ]
                if (
                    err_desc.error_num == ARANGO_ERROR_DATA_SOURCE_NOT_FOUND
                    or mentioned_ids
                ):
                    logger.warning(
                        f"Query rejected because of shard restriction: {err_desc}"
                    )
                    shard_exc = InvalidShardIdentifierException(
                        text=(
                            "Invalid shard identifier(s) in query restriction: "
                            f"{err_desc.summary()}"
                        ),
                        shard_ids=mentioned_ids or self.shard_ids,
                    )
                    shard_exc.__cause__ = exc
                    return shard_exc
        return exc


def coerce_shard_router(
    shard_ids: ShardRouter | Iterable[str] | None,
) -> ShardRouter | None:
    if shard_ids is None or isinstance(shard_ids, ShardRouter):
        return shard_ids
    return ShardRouter(shard_ids)
