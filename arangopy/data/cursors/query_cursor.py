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

from types import TracebackType
from typing import Any, MutableMapping

from arangopy.data.cursors.cursor import (
    AbstractCursor,
    CursorState,
    _fill_destination,
    logger,
)
from arangopy.data.cursors.query_engine import _QueryEngine
from arangopy.data.utils.response_decoder import entry_from_query_item
from arangopy.exceptions import (
    MultiCallTimeoutManager,
    NoMoreDocumentsException,
    _TimeoutContext,
)
from arangopy.results import ResultEntry


class QueryCursor(AbstractCursor):
    """
    A synchronous cursor over the results of a query, as returned by the
    `query` method of a Database.

    The first batch of results is retrieved when the query is run; further
    batches are requested to the server (with the cursor handle) only when
    reading past the end of the current one. Items keep the order in which
    the server returns them, within and across batches.

    Reading past the last item raises NoMoreDocumentsException (or ends the
    iteration, when iterating with a for loop), as does reading from a closed
    cursor. If retrieving a batch fails, the error is raised as it is and the
    cursor becomes FAILED: there is no retry, and any further read raises
    CursorException.

    A cursor can be used as a context manager, which closes it on exit.

    Example:
        >>> with my_database.query(
        ...     "FOR d IN my_collection SORT d.seq RETURN d.seq",
        ...     batch_size=2,
        ... ) as cursor:
        ...     for item in cursor:
        ...         print(item)
        ...
        1
        2
        3
    """

    _query_engine: _QueryEngine
    _request_timeout_ms: int | None
    _overall_timeout_ms: int | None
    _request_timeout_label: str | None
    _overall_timeout_label: str | None
    _timeout_manager: MultiCallTimeoutManager
    _data_source_name: str

    def __init__(
        self,
        *,
        query_engine: _QueryEngine,
        data_source_name: str,
        request_timeout_ms: int | None,
        overall_timeout_ms: int | None,
        request_timeout_label: str | None = None,
        overall_timeout_label: str | None = None,
    ) -> None:
        self._query_engine = query_engine
        self._data_source_name = data_source_name
        self._request_timeout_ms = request_timeout_ms
        self._overall_timeout_ms = overall_timeout_ms
        self._request_timeout_label = request_timeout_label
        self._overall_timeout_label = overall_timeout_label
        AbstractCursor.__init__(self)
        self._timeout_manager = MultiCallTimeoutManager(
            overall_timeout_ms=self._overall_timeout_ms,
            timeout_label=self._overall_timeout_label,
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}("{self._data_source_name}", '
            f"{self._state.value}, "
            f"consumed so far: {self.consumed})"
        )

    def __iter__(self) -> QueryCursor:
        return self

    def __next__(self) -> Any:
        try:
            return self.read_next().document
        except NoMoreDocumentsException:
            raise StopIteration

    def __enter__(self) -> QueryCursor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    def _fetch_batch(self) -> None:
        """
        Retrieve the next batch (the first one, if the query is yet to be run)
        and install it as the current one. On any failure, the cursor goes
        to the FAILED state, unless closed meanwhile, and the error propagates.
        """

        self._mark_fetching()
        try:
            envelope = self._query_engine._fetch_batch(
                cursor_id=None if self._needs_first_batch() else self._cursor_id,
                timeout_context=self._timeout_manager.remaining_timeout(
                    cap_time_ms=self._request_timeout_ms,
                    cap_timeout_label=self._request_timeout_label,
                ),
            )
        except BaseException as exc:
            self._mark_failed(exc)
            raise
        self._install_batch(envelope)

    def _ensure_buffer(self) -> None:
        while not self._buffer and self._state == CursorState.AWAITING_NEXT_BATCH:
            self._fetch_batch()

    def read_next(
        self,
        destination: MutableMapping[str, Any] | None = None,
    ) -> ResultEntry:
        """
        Return the next result of the query, retrieving a new batch from the
        server if the current one is drained.

        Args:
            destination: an optional mutable mapping. If the result is a
                document (a JSON object), the mapping is cleared and filled with it.

        Returns:
            a ResultEntry whose `document` is the result item.

        Raises:
            NoMoreDocumentsException: if all results have been read, or the
                cursor is closed.
            CursorException: if the cursor is in the FAILED state.
        """

        self._ensure_readable()
        self._ensure_buffer()
        if not self._buffer:
            raise NoMoreDocumentsException()
        entry = entry_from_query_item(self._pop_item())
        _fill_destination(destination, entry)
        return entry

    def has_next(self) -> bool:
        """
        Whether the cursor actually has more results to return.

        This method can trigger the retrieval of a new batch, if the current
        one is drained. On an EXHAUSTED or CLOSED cursor it returns False.

        Raises:
            CursorException: if the cursor is in the FAILED state.
        """

        if self._state in {CursorState.CLOSED, CursorState.EXHAUSTED}:
            return False
        self._ensure_readable()
        self._ensure_buffer()
        return len(self._buffer) > 0

    def to_list(self) -> list[Any]:
        """
        Materialize all results that remain to be consumed from the cursor
        into a list. Results already read are not included.

        This involves as many batch retrievals as needed: when a large result
        set is anticipated, iterating over the cursor is to be preferred.
        """

        return [item for item in self]

    def close(self) -> None:
        """
        Close the cursor, regardless of its state, discarding the results not
        read yet. If the server may still hold the cursor, it is asked to
        release it: a failure in doing so is logged and otherwise ignored.

        Closing is idempotent, and reading from a closed cursor raises
        NoMoreDocumentsException.
        """

        cursor_id = self._dispose_target()
        if cursor_id is None:
            return
        try:
            self._query_engine._dispose(
                cursor_id=cursor_id,
                timeout_context=_TimeoutContext(
                    request_ms=self._request_timeout_ms,
                    label=self._request_timeout_label,
                ),
            )
        except Exception as exc:
            logger.warning(f"could not dispose of cursor {cursor_id}: {exc!r}")


class AsyncQueryCursor(AbstractCursor):
    """
    An asynchronous cursor over the results of a query, as returned by the
    `query` method of an AsyncDatabase.

    This class behaves like `QueryCursor`, except that all methods that
    may involve API calls are coroutines. If a batch retrieval is cancelled
    (asyncio.CancelledError), the cursor becomes FAILED before the
    cancellation propagates.

    Example:
        >>> cursor = await my_async_database.query(
        ...     "FOR d IN my_collection SORT d.seq RETURN d.seq",
        ...     batch_size=2,
        ... )
        >>> async for item in cursor:
        ...     print(item)
        ...
        1
        2
        3
    """

    _query_engine: _QueryEngine
    _request_timeout_ms: int | None
    _overall_timeout_ms: int | None
    _request_timeout_label: str | None
    _overall_timeout_label: str | None
    _timeout_manager: MultiCallTimeoutManager
    _data_source_name: str

    def __init__(
        self,
        *,
        query_engine: _QueryEngine,
        data_source_name: str,
        request_timeout_ms: int | None,
        overall_timeout_ms: int | None,
        request_timeout_label: str | None = None,
        overall_timeout_label: str | None = None,
    ) -> None:
        self._query_engine = query_engine
        self._data_source_name = data_source_name
        self._request_timeout_ms = request_timeout_ms
        self._overall_timeout_ms = overall_timeout_ms
        self._request_timeout_label = request_timeout_label
        self._overall_timeout_label = overall_timeout_label
        AbstractCursor.__init__(self)
        self._timeout_manager = MultiCallTimeoutManager(
            overall_timeout_ms=self._overall_timeout_ms,
            timeout_label=self._overall_timeout_label,
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}("{self._data_source_name}", '
            f"{self._state.value}, "
            f"consumed so far: {self.consumed})"
        )

    def __aiter__(self) -> AsyncQueryCursor:
        return self

    async def __anext__(self) -> Any:
        try:
            return (await self.read_next()).document
        except NoMoreDocumentsException:
            raise StopAsyncIteration

    async def __aenter__(self) -> AsyncQueryCursor:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self.close()

    async def _fetch_batch(self) -> None:
        """
        Retrieve the next batch (the first one, if the query is yet to be run)
        and install it as the current one. On any failure, cancellation
        included, the cursor goes to the FAILED state (unless closed meanwhile)
        and the error propagates.
        """

        self._mark_fetching()
        try:
            envelope = await self._query_engine._async_fetch_batch(
                cursor_id=None if self._needs_first_batch() else self._cursor_id,
                timeout_context=self._timeout_manager.remaining_timeout(
                    cap_time_ms=self._request_timeout_ms,
                    cap_timeout_label=self._request_timeout_label,
                ),
            )
        except BaseException as exc:
            self._mark_failed(exc)
            raise
        self._install_batch(envelope)

    async def _ensure_buffer(self) -> None:
        while not self._buffer and self._state == CursorState.AWAITING_NEXT_BATCH:
            await self._fetch_batch()

    async def read_next(
        self,
        destination: MutableMapping[str, Any] | None = None,
    ) -> ResultEntry:
        """
        Return the next result of the query, retrieving a new batch from the
        server if the current one is drained.

        Args:
            destination: an optional mutable mapping. If the result is a
                document (a JSON object), the mapping is cleared and filled with it.

        Returns:
            a ResultEntry whose `document` is the result item.

        Raises:
            NoMoreDocumentsException: if all results have been read, or the
                cursor is closed.
            CursorException: if the cursor is in the FAILED state.
        """

        self._ensure_readable()
        await self._ensure_buffer()
        if not self._buffer:
            raise NoMoreDocumentsException()
        entry = entry_from_query_item(self._pop_item())
        _fill_destination(destination, entry)
        return entry

    async def has_next(self) -> bool:
        """
        Whether the cursor actually has more results to return.

        This method can trigger the retrieval of a new batch, if the current
        one is drained. On an EXHAUSTED or CLOSED cursor it returns False.

        Raises:
            CursorException: if the cursor is in the FAILED state.
        """

        if self._state in {CursorState.CLOSED, CursorState.EXHAUSTED}:
            return False
        self._ensure_readable()
        await self._ensure_buffer()
        return len(self._buffer) > 0

    async def to_list(self) -> list[Any]:
        """
        Materialize all results that remain to be consumed from the cursor
        into a list. Results already read are not included.
        """

        return [item async for item in self]

    async def close(self) -> None:
        """
        Close the cursor, regardless of its state, discarding the results not
        read yet. If the server may still hold the cursor, it is asked to
        release it: a failure in doing so is logged and otherwise ignored.

        Closing is idempotent, and reading from a closed cursor raises
        NoMoreDocumentsException.
        """

        cursor_id = self._dispose_target()
        if cursor_id is None:
            return
        try:
            await self._query_engine._async_dispose(
                cursor_id=cursor_id,
                timeout_context=_TimeoutContext(
                    request_ms=self._request_timeout_ms,
                    label=self._request_timeout_label,
                ),
            )
        except Exception as exc:
            logger.warning(f"could not dispose of cursor {cursor_id}: {exc!r}")
