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
from types import TracebackType
from typing import TYPE_CHECKING, Any, Iterable
from urllib.parse import quote

from arangopy.constants import BindVarsType
from arangopy.data.cursors.query_cursor import AsyncQueryCursor, QueryCursor
from arangopy.data.cursors.query_engine import _DatabaseQueryEngine
from arangopy.data.utils.optimizer_rules import normalize_optimizer_rules
from arangopy.data.utils.shard_router import ShardRouter, coerce_shard_router
from arangopy.exceptions import _first_valid_timeout
from arangopy.settings.defaults import (
    DATABASE_PATH_TEMPLATE,
    DEFAULT_AUTH_HEADER,
)
from arangopy.utils.api_commander import APICommander
from arangopy.utils.api_options import (
    APIOptions,
    FullAPIOptions,
)
from arangopy.utils.unset import _UNSET, UnsetType

if TYPE_CHECKING:
    from arangopy.authentication import TokenProvider
    from arangopy.data.collection import AsyncCollection, Collection


logger = logging.getLogger(__name__)


def _query_timeouts(
    api_options: FullAPIOptions,
    request_timeout_ms: int | None,
    overall_timeout_ms: int | None,
    timeout_ms: int | None,
) -> tuple[tuple[int, str | None], tuple[int, str | None]]:
    """
    Resolve the (per-request, overall) timeouts, with their labels,
    for the cursor of a query.
    """
    _request = _first_valid_timeout(
        (request_timeout_ms, "request_timeout_ms"),
        (api_options.timeout_options.request_timeout_ms, "request_timeout_ms"),
    )
    _overall = _first_valid_timeout(
        (overall_timeout_ms, "overall_timeout_ms"),
        (timeout_ms, "timeout_ms"),
    )
    return _request, _overall


def _query_engine_kwargs(
    *,
    api_options: FullAPIOptions,
    query: str,
    bind_vars: BindVarsType | None,
    batch_size: int | None,
    count: bool | None,
    ttl: int | None,
    memory_limit: int | None,
    shard_ids: ShardRouter | Iterable[str] | None,
    optimizer_rules: Iterable[str] | None,
    profile: int | None,
    full_count: bool | None,
    fail_on_warning: bool | None,
) -> dict[str, Any]:
    _batch_size = batch_size if batch_size is not None else api_options.query_batch_size
    if _batch_size <= 0:
        raise ValueError("The batch size of a query must be a positive integer.")
    return {
        "query": query,
        "bind_vars": bind_vars,
        "batch_size": _batch_size,
        "count": count,
        "ttl": ttl,
        "memory_limit": memory_limit,
        "shard_router": coerce_shard_router(shard_ids),
        "optimizer_rules": normalize_optimizer_rules(optimizer_rules) or None,
        "profile": profile,
        "full_count": full_count,
        "fail_on_warning": fail_on_warning,
    }


class Database:
    """
    A database on an ArangoDB deployment. This is the object for running
    queries and for obtaining Collection objects.
    This class has a synchronous interface.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_database` of ArangoClient.

    Args:
        api_endpoint: the full URL to reach the server, e.g. "http://localhost:8529".
        name: the name of the database.
        api_options: a complete specification of the API Options for this instance.

    Example:
        >>> from arangopy import ArangoClient
        >>> my_client = ArangoClient("http://localhost:8529")
        >>> my_db = my_client.get_database(
        ...     "my_db",
        ...     token=UsernamePasswordTokenProvider("root", "secret"),
        ... )

    Note:
        creating an instance of Database does not trigger actual creation
        of the database itself, which should exist beforehand.
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        name: str,
        api_options: FullAPIOptions,
    ) -> None:
        self.api_options = api_options
        self.api_endpoint = api_endpoint.strip("/")
        self._name = name
        self._commander_headers = {
            DEFAULT_AUTH_HEADER: self.api_options.token.get_token(),
            **self.api_options.database_additional_headers,
        }
        self._api_commander = self._get_api_commander()

    def __getattr__(self, collection_name: str) -> Collection:
        if collection_name.startswith("_"):
            raise AttributeError(collection_name)
        return self.get_collection(name=collection_name)

    def __getitem__(self, collection_name: str) -> Collection:
        return self.get_collection(name=collection_name)

    def __repr__(self) -> str:
        ep_desc = f'api_endpoint="{self.api_endpoint}"'
        name_desc = f'name="{self._name}"'
        api_options_desc = f"api_options={self.api_options}"
        return f"{self.__class__.__name__}({ep_desc}, {name_desc}, {api_options_desc})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Database):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self._name == other._name,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    def _get_api_commander(self) -> APICommander:
        """Instantiate a new APICommander based on the properties of this class."""

        return APICommander(
            api_endpoint=self.api_endpoint,
            path=DATABASE_PATH_TEMPLATE.format(database=quote(self._name, safe="")),
            headers=self._commander_headers,
            callers=self.api_options.callers,
            redacted_header_names=self.api_options.redacted_header_names,
        )

    def _copy(
        self,
        *,
        name: str | None = None,
        token: str | TokenProvider | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Database:
        arg_api_options = APIOptions(
            token=token,
        )
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return Database(
            api_endpoint=self.api_endpoint,
            name=name or self._name,
            api_options=final_api_options,
        )

    def with_options(
        self,
        *,
        name: str | None = None,
        token: str | TokenProvider | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Database:
        """
        Create a clone of this database with some changed attributes.

        Args:
            name: the name of another database on the same deployment.
            token: a JWT token string or a TokenProvider for the requests.
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            a new `Database` instance.
        """

        return self._copy(
            name=name,
            token=token,
            api_options=api_options,
        )

    def to_async(
        self,
        *,
        name: str | None = None,
        token: str | TokenProvider | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncDatabase:
        """
        Create an AsyncDatabase from this one. Save for the arguments
        explicitly provided as overrides, everything else is kept identical
        to this database in the copy.

        Args:
            name: the name of another database on the same deployment.
            token: a JWT token string or a TokenProvider for the requests.
            api_options: any additional options to set for the result, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            the new copy, an `AsyncDatabase` instance.
        """

        arg_api_options = APIOptions(
            token=token,
        )
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return AsyncDatabase(
            api_endpoint=self.api_endpoint,
            name=name or self._name,
            api_options=final_api_options,
        )

    @property
    def name(self) -> str:
        """
        The name of this database.

        Example:
            >>> my_db.name
            'my_db'
        """

        return self._name

    def get_collection(
        self,
        name: str,
        *,
        spawn_api_options: APIOptions | UnsetType = _UNSET,
    ) -> Collection:
        """
        Spawn a `Collection` object instance representing a collection
        on this database.

        Creating a `Collection` instance does not have any effect on the
        actual state of the database: the collection must exist already.

        Args:
            name: the name of the collection.
            spawn_api_options: a specification - complete or partial - of the
                API Options to override the defaults inherited from the Database.

        Returns:
            a `Collection` instance, representing the desired collection
                (but without any form of validation).

        Example:
            >>> my_col = my_db.get_collection("my_collection")
            >>> my_col.count()
            41

        Note:
            The attribute and indexing syntax forms achieve the same effect
            as this method. In other words, the following are equivalent:
                my_db.get_collection("coll_name")
                my_db.coll_name
                my_db["coll_name"]
        """

        # lazy importing here against circular-import error
        from arangopy.data.collection import Collection

        resulting_api_options = self.api_options.with_override(spawn_api_options)
        return Collection(
            database=self,
            name=name,
            api_options=resulting_api_options,
        )

    def query(
        self,
        query: str,
        *,
        bind_vars: BindVarsType | None = None,
        batch_size: int | None = None,
        count: bool | None = None,
        shard_ids: ShardRouter | Iterable[str] | None = None,
        optimizer_rules: Iterable[str] | None = None,
        profile: int | None = None,
        ttl: int | None = None,
        full_count: bool | None = None,
        fail_on_warning: bool | None = None,
        memory_limit: int | None = None,
        request_timeout_ms: int | None = None,
        overall_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> QueryCursor:
        """
        Run a query and return a cursor over its results.

        The query is sent to the server, and the first batch of results received,
        before this method returns: errors in the query (or an invalid shard
        restriction) are raised here, before any result can be read.

        Args:
            query: the query string.
            bind_vars: a dictionary of values for the bind parameters of the query.
            batch_size: the maximum number of results per round trip. This is fixed
                for the whole life of the cursor. Defaults to the `query_batch_size`
                of the API options.
            count: whether the server should compute the total number of results
                (then available as `cursor.count`).
            shard_ids: restrict the query to these shards of the collection
                being queried. Either a ShardRouter (see `Collection.shard_router`,
                which validates the identifiers right away) or a list of shard
                identifiers. Unknown shard identifiers always result in an
                InvalidShardIdentifierException, never in an empty result.
            optimizer_rules: a list of optimizer rule toggles, such as
                ["-all", "+use-indexes"], evaluated left to right.
            profile: a profiling level (see `arangopy.constants.ProfileLevel`).
                With level 2, the cursor `plan()` returns the query plan.
            ttl: time-to-live, in seconds, for the cursor on the server.
            full_count: whether to compute, for queries with a LIMIT, the
                number of results the query would return without the limit
                (then available in `cursor.statistics`).
            fail_on_warning: whether the query should fail instead of issuing
                warnings.
            memory_limit: the maximum amount of memory, in bytes, for the query.
            request_timeout_ms: a timeout, in milliseconds, for each HTTP request
                issued by the cursor. Defaults to the API options' request timeout.
            overall_timeout_ms: a timeout, in milliseconds, for the whole life of
                the cursor, from the query being run to the last batch being
                retrieved. If not provided, there is no such timeout.
            timeout_ms: an alias for `overall_timeout_ms`.

        Returns:
            a QueryCursor.

        Example:
            >>> cursor = my_db.query(
            ...     "FOR d IN my_collection FILTER d.seq < @top RETURN d.seq",
            ...     bind_vars={"top": 3},
            ...     batch_size=2,
            ... )
            >>> cursor.to_list()
            [0, 1, 2]
        """

        (_request_timeout_ms, _rt_label), (_overall_timeout_ms, _ot_label) = (
            _query_timeouts(
                self.api_options, request_timeout_ms, overall_timeout_ms, timeout_ms
            )
        )
        query_engine = _DatabaseQueryEngine(
            database=self,
            async_database=None,
            **_query_engine_kwargs(
                api_options=self.api_options,
                query=query,
                bind_vars=bind_vars,
                batch_size=batch_size,
                count=count,
                ttl=ttl,
                memory_limit=memory_limit,
                shard_ids=shard_ids,
                optimizer_rules=optimizer_rules,
                profile=profile,
                full_count=full_count,
                fail_on_warning=fail_on_warning,
            ),
        )
        cursor = QueryCursor(
            query_engine=query_engine,
            data_source_name=self.name,
            request_timeout_ms=_request_timeout_ms,
            overall_timeout_ms=_overall_timeout_ms,
            request_timeout_label=_rt_label,
            overall_timeout_label=_ot_label,
        )
        logger.info(f"running query on '{self.name}'")
        cursor._fetch_batch()
        logger.info(f"finished running query on '{self.name}'")
        return cursor

    def query_per_shard(
        self,
        query: str,
        shard_ids: ShardRouter | Iterable[str],
        **kwargs: Any,
    ) -> dict[str, QueryCursor]:
        """
        Run a query once for each of the provided shards, each run being
        restricted to a single shard.

        All queries are run (i.e. their first batch retrieved) before this
        method returns: if any shard identifier is invalid, an
        InvalidShardIdentifierException is raised before any result is
        available, and the cursors already created are closed.

        Args:
            query: the query string.
            shard_ids: the shards to query, as a ShardRouter or a list of
                shard identifiers.
            kwargs: any other parameter accepted by the `query` method,
                except `shard_ids`.

        Returns:
            a dictionary from shard identifier to the QueryCursor of that shard.
            Across shards the results form the same multiset as those of a
            single query over all of them; no ordering across shards is implied.
        """

        router = coerce_shard_router(shard_ids)
        if router is None:
            raise ValueError("Per-shard queries require shard identifiers.")
        cursors: dict[str, QueryCursor] = {}
        try:
            for shard_router in router.split():
                cursors[shard_router.shard_ids[0]] = self.query(
                    query,
                    shard_ids=shard_router,
                    **kwargs,
                )
        except Exception:
            for cursor in cursors.values():
                cursor.close()
            raise
        return cursors


class AsyncDatabase:
    """
    A database on an ArangoDB deployment. This is the object for running
    queries and for obtaining AsyncCollection objects.
    This class has an asynchronous interface.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_async_database`
    of ArangoClient.

    Args:
        api_endpoint: the full URL to reach the server, e.g. "http://localhost:8529".
        name: the name of the database.
        api_options: a complete specification of the API Options for this instance.

    Example:
        >>> from arangopy import ArangoClient
        >>> my_client = ArangoClient("http://localhost:8529")
        >>> my_async_db = my_client.get_async_database("my_db", token="eyJhbGciOi...")
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        name: str,
        api_options: FullAPIOptions,
    ) -> None:
        self.api_options = api_options
        self.api_endpoint = api_endpoint.strip("/")
        self._name = name
        self._commander_headers = {
            DEFAULT_AUTH_HEADER: self.api_options.token.get_token(),
            **self.api_options.database_additional_headers,
        }
        self._api_commander = self._get_api_commander()

    def __getattr__(self, collection_name: str) -> AsyncCollection:
        if collection_name.startswith("_"):
            raise AttributeError(collection_name)
        return self.get_collection(name=collection_name)

    def __getitem__(self, collection_name: str) -> AsyncCollection:
        return self.get_collection(name=collection_name)

    def __repr__(self) -> str:
        ep_desc = f'api_endpoint="{self.api_endpoint}"'
        name_desc = f'name="{self._name}"'
        api_options_desc = f"api_options={self.api_options}"
        return f"{self.__class__.__name__}({ep_desc}, {name_desc}, {api_options_desc})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AsyncDatabase):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self._name == other._name,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    def _get_api_commander(self) -> APICommander:
        """Instantiate a new APICommander based on the properties of this class."""

        return APICommander(
            api_endpoint=self.api_endpoint,
            path=DATABASE_PATH_TEMPLATE.format(database=quote(self._name, safe="")),
            headers=self._commander_headers,
            callers=self.api_options.callers,
            redacted_header_names=self.api_options.redacted_header_names,
        )

    async def __aenter__(self) -> AsyncDatabase:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self._api_commander.__aexit__(
            exc_type=exc_type,
            exc_value=exc_value,
            traceback=traceback,
        )

    def _copy(
        self,
        *,
        name: str | None = None,
        token: str | TokenProvider | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncDatabase:
        arg_api_options = APIOptions(
            token=token,
        )
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return AsyncDatabase(
            api_endpoint=self.api_endpoint,
            name=name or self._name,
            api_options=final_api_options,
        )

    def with_options(
        self,
        *,
        name: str | None = None,
        token: str | TokenProvider | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncDatabase:
        """
        Create a clone of this database with some changed attributes.

        Args:
            name: the name of another database on the same deployment.
            token: a JWT token string or a TokenProvider for the requests.
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            a new `AsyncDatabase` instance.
        """

        return self._copy(
            name=name,
            token=token,
            api_options=api_options,
        )

    def to_sync(
        self,
        *,
        name: str | None = None,
        token: str | TokenProvider | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Database:
        """
        Create a (synchronous) Database from this one. Save for the arguments
        explicitly provided as overrides, everything else is kept identical
        to this database in the copy.

        Args:
            name: the name of another database on the same deployment.
            token: a JWT token string or a TokenProvider for the requests.
            api_options: any additional options to set for the result, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            the new copy, a `Database` instance.
        """

        arg_api_options = APIOptions(
            token=token,
        )
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return Database(
            api_endpoint=self.api_endpoint,
            name=name or self._name,
            api_options=final_api_options,
        )

    @property
    def name(self) -> str:
        """The name of this database."""

        return self._name

    def get_collection(
        self,
        name: str,
        *,
        spawn_api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncCollection:
        """
        Spawn an `AsyncCollection` object instance representing a collection
        on this database.

        Creating an `AsyncCollection` instance does not have any effect on the
        actual state of the database: the collection must exist already.

        Args:
            name: the name of the collection.
            spawn_api_options: a specification - complete or partial - of the
                API Options to override the defaults inherited from the Database.

        Returns:
            an `AsyncCollection` instance, representing the desired collection
                (but without any form of validation).
        """

        # lazy importing here against circular-import error
        from arangopy.data.collection import AsyncCollection

        resulting_api_options = self.api_options.with_override(spawn_api_options)
        return AsyncCollection(
            database=self,
            name=name,
            api_options=resulting_api_options,
        )

    async def query(
        self,
        query: str,
        *,
        bind_vars: BindVarsType | None = None,
        batch_size: int | None = None,
        count: bool | None = None,
        shard_ids: ShardRouter | Iterable[str] | None = None,
        optimizer_rules: Iterable[str] | None = None,
        profile: int | None = None,
        ttl: int | None = None,
        full_count: bool | None = None,
        fail_on_warning: bool | None = None,
        memory_limit: int | None = None,
        request_timeout_ms: int | None = None,
        overall_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> AsyncQueryCursor:
        """
        Run a query and return a cursor over its results.

        The query is sent to the server, and the first batch of results received,
        before this method returns. See the `query` method of the `Database`
        class for a description of the parameters.

        Returns:
            an AsyncQueryCursor.

        Example:
            >>> async def top_seqs(adb: AsyncDatabase) -> list[int]:
            ...     cursor = await adb.query(
            ...         "FOR d IN my_collection SORT d.seq LIMIT 3 RETURN d.seq",
            ...     )
            ...     return await cursor.to_list()
            ...
            >>> asyncio.run(top_seqs(my_async_db))
            [0, 1, 2]
        """

        (_request_timeout_ms, _rt_label), (_overall_timeout_ms, _ot_label) = (
            _query_timeouts(
                self.api_options, request_timeout_ms, overall_timeout_ms, timeout_ms
            )
        )
        query_engine = _DatabaseQueryEngine(
            database=None,
            async_database=self,
            **_query_engine_kwargs(
                api_options=self.api_options,
                query=query,
                bind_vars=bind_vars,
                batch_size=batch_size,
                count=count,
                ttl=ttl,
                memory_limit=memory_limit,
                shard_ids=shard_ids,
                optimizer_rules=optimizer_rules,
                profile=profile,
                full_count=full_count,
                fail_on_warning=fail_on_warning,
            ),
        )
        cursor = AsyncQueryCursor(
            query_engine=query_engine,
            data_source_name=self.name,
            request_timeout_ms=_request_timeout_ms,
            overall_timeout_ms=_overall_timeout_ms,
            request_timeout_label=_rt_label,
            overall_timeout_label=_ot_label,
        )
        logger.info(f"running query on '{self.name}', async")
        await cursor._fetch_batch()
        logger.info(f"finished running query on '{self.name}', async")
        return cursor

    async def query_per_shard(
        self,
        query: str,
        shard_ids: ShardRouter | Iterable[str],
        **kwargs: Any,
    ) -> dict[str, AsyncQueryCursor]:
        """
        Run a query once for each of the provided shards, each run being
        restricted to a single shard. See the `query_per_shard` method
        of the `Database` class.

        Returns:
            a dictionary from shard identifier to the AsyncQueryCursor of that shard.
        """

        router = coerce_shard_router(shard_ids)
        if router is None:
            raise ValueError("Per-shard queries require shard identifiers.")
        cursors: dict[str, AsyncQueryCursor] = {}
        try:
            for shard_router in router.split():
                cursors[shard_router.shard_ids[0]] = await self.query(
                    query,
                    shard_ids=shard_router,
                    **kwargs,
                )
        except Exception:
            for cursor in cursors.values():
                await cursor.close()
            raise
        return cursors
