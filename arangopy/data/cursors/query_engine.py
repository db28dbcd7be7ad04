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

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from typing_extensions import override

from arangopy.constants import BindVarsType
from arangopy.data.cursors.cursor import logger
from arangopy.data.utils.response_decoder import CursorEnvelope, decode_cursor
from arangopy.data.utils.shard_router import ShardRouter
from arangopy.exceptions import (
    ArangoHttpException,
    ArangoResponseException,
    _TimeoutContext,
)
from arangopy.settings.defaults import CURSOR_API_PATH
from arangopy.utils.request_tools import HttpMethod

if TYPE_CHECKING:
    from arangopy.data.database import AsyncDatabase, Database


class _QueryEngine(ABC):
    @abstractmethod
    def _fetch_batch(
        self,
        *,
        cursor_id: str | None,
        timeout_context: _TimeoutContext,
    ) -> CursorEnvelope:
        """Run the query (if cursor_id is None) or get its next batch."""
        ...

    @abstractmethod
    async def _async_fetch_batch(
        self,
        *,
        cursor_id: str | None,
        timeout_context: _TimeoutContext,
    ) -> CursorEnvelope:
        """Run the query (if cursor_id is None) or get its next batch."""
        ...

    @abstractmethod
    def _dispose(
        self,
        *,
        cursor_id: str,
        timeout_context: _TimeoutContext,
    ) -> None:
        """Ask the server to release a cursor."""
        ...

    @abstractmethod
    async def _async_dispose(
        self,
        *,
        cursor_id: str,
        timeout_context: _TimeoutContext,
    ) -> None:
        """Ask the server to release a cursor."""
        ...


class _DatabaseQueryEngine(_QueryEngine):
    database: Database | None
    async_database: AsyncDatabase | None
    query: str
    bind_vars: BindVarsType | None
    batch_size: int
    shard_router: ShardRouter | None
    q_payload: dict[str, Any]

    def __init__(
        self,
        *,
        database: Database | None,
        async_database: AsyncDatabase | None,
        query: str,
        bind_vars: BindVarsType | None,
        batch_size: int,
        count: bool | None,
        ttl: int | None,
        memory_limit: int | None,
        shard_router: ShardRouter | None,
        optimizer_rules: list[str] | None,
        profile: int | None,
        full_count: bool | None,
        fail_on_warning: bool | None,
    ) -> None:
        self.database = database
        self.async_database = async_database
        self.query = query
        self.bind_vars = bind_vars
        self.batch_size = batch_size
        self.shard_router = shard_router
        q_options = {
            k: v
            for k, v in {
                "optimizer": {"rules": optimizer_rules} if optimizer_rules else None,
                "profile": profile or None,
                "fullCount": full_count,
                "failOnWarning": fail_on_warning,
            }.items()
            if v is not None
        }
        if self.shard_router is not None:
            q_options = self.shard_router.apply(q_options)
        self.q_payload = {
            k: v
            for k, v in {
                "query": self.query,
                "bindVars": self.bind_vars or None,
                "batchSize": self.batch_size,
                "count": count,
                "ttl": ttl,
                "memoryLimit": memory_limit,
                "options": q_options or None,
            }.items()
            if v is not None
        }

    def _translate_creation_error(
        self, exc: ArangoHttpException | ArangoResponseException
    ) -> Exception:
        if self.shard_router is None:
            return exc
        return self.shard_router.translate_error(exc)

    @override
    def _fetch_batch(
        self,
        *,
        cursor_id: str | None,
        timeout_context: _TimeoutContext,
    ) -> CursorEnvelope:
        if self.database is None:
            raise RuntimeError("Query engine has no sync database.")

        _cursor_str = cursor_id if cursor_id else "(new cursor)"
        _db_name = self.database.name
        logger.info(f"cursor fetching a batch: {_cursor_str} from {_db_name}")
        if cursor_id is None:
            try:
                raw_response = self.database._api_commander.request(
                    http_method=HttpMethod.POST,
                    payload=self.q_payload,
                    additional_path=CURSOR_API_PATH,
                    timeout_context=timeout_context,
                )
            except (ArangoHttpException, ArangoResponseException) as exc:
                raise self._translate_creation_error(exc)
        else:
            raw_response = self.database._api_commander.request(
                http_method=HttpMethod.POST,
                additional_path=f"{CURSOR_API_PATH}/{cursor_id}",
                timeout_context=timeout_context,
            )
        logger.info(f"cursor finished fetching a batch: {_cursor_str} from {_db_name}")

        return decode_cursor(raw_response)

    @override
    async def _async_fetch_batch(
        self,
        *,
        cursor_id: str | None,
        timeout_context: _TimeoutContext,
    ) -> CursorEnvelope:
        if self.async_database is None:
            raise RuntimeError("Query engine has no async database.")

        _cursor_str = cursor_id if cursor_id else "(new cursor)"
        _db_name = self.async_database.name
        logger.info(f"cursor fetching a batch: {_cursor_str} from {_db_name}, async")
        if cursor_id is None:
            try:
                raw_response = await self.async_database._api_commander.async_request(
                    http_method=HttpMethod.POST,
                    payload=self.q_payload,
                    additional_path=CURSOR_API_PATH,
                    timeout_context=timeout_context,
                )
            except (ArangoHttpException, ArangoResponseException) as exc:
                raise self._translate_creation_error(exc)
        else:
            raw_response = await self.async_database._api_commander.async_request(
                http_method=HttpMethod.POST,
                additional_path=f"{CURSOR_API_PATH}/{cursor_id}",
                timeout_context=timeout_context,
            )
        logger.info(
            f"cursor finished fetching a batch: {_cursor_str} from {_db_name}, async"
        )

        return decode_cursor(raw_response)

    @override
    def _dispose(
        self,
        *,
        cursor_id: str,
        timeout_context: _TimeoutContext,
    ) -> None:
        if self.database is None:
            raise RuntimeError("Query engine has no sync database.")
        logger.info(f"disposing of cursor {cursor_id} on {self.database.name}")
        self.database._api_commander.request(
            http_method=HttpMethod.DELETE,
            additional_path=f"{CURSOR_API_PATH}/{cursor_id}",
            timeout_context=timeout_context,
        )

    @override
    async def _async_dispose(
        self,
        *,
        cursor_id: str,
        timeout_context: _TimeoutContext,
    ) -> None:
        if self.async_database is None:
            raise RuntimeError("Query engine has no async database.")
        logger.info(
            f"disposing of cursor {cursor_id} on {self.async_database.name}, async"
        )
        await self.async_database._api_commander.async_request(
            http_method=HttpMethod.DELETE,
            additional_path=f"{CURSOR_API_PATH}/{cursor_id}",
            timeout_context=timeout_context,
        )
