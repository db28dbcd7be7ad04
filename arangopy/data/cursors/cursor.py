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
from abc import ABC
from enum import Enum
from typing import Any, MutableMapping

from arangopy.data.utils.response_decoder import CursorEnvelope
from arangopy.exceptions import CursorException, NoMoreDocumentsException
from arangopy.results import QueryPlan, ResultEntry

logger = logging.getLogger(__name__)


def _fill_destination(
    destination: MutableMapping[str, Any] | None,
    entry: ResultEntry,
) -> None:
    """
    Copy the document payload of an entry, if any, into a caller-supplied
    mapping (cleared first). Entries without a payload leave it untouched.
    """
    if destination is None or not isinstance(entry.document, dict):
        return
    destination.clear()
    destination.update(entry.document)


class CursorState(Enum):
    """
    This enum expresses the possible states for a query cursor.

    Values:
        OPEN: the current batch has unread items.
        AWAITING_NEXT_BATCH: the current batch is drained, but the server
            has more results available (or the query has not been run yet).
        FETCHING: a request for the next batch is in flight.
        EXHAUSTED: all results have been read. Won't return more items.
        CLOSED: explicitly closed by the caller. Won't return more items.
        FAILED: a batch could not be retrieved. Won't return more items
            and any read is an error.
    """

    OPEN = "open"
    AWAITING_NEXT_BATCH = "awaiting_next_batch"
    FETCHING = "fetching"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"
    FAILED = "failed"


class AbstractCursor(ABC):
    """
    A cursor over the results of a query, as obtained from the `query`
    method of a database.

    This class is not meant to be directly instantiated by the user, rather it
    is a superclass capturing the state machine common to sync and async cursors.

    Cursors provide a seamless interface to the caller code, allowing iteration
    over results while batches of new data are retrieved from the server with
    the cursor handle. For this reason, cursors internally manage a local buffer
    that is progressively emptied and re-filled with a new batch in a manner hidden
    from the user -- except, some cursor methods allow to peek into this buffer
    should it be necessary.

    A cursor supports exactly one sequential reader: concurrent reads from
    several threads or tasks on the same cursor are not supported.
    """

    _state: CursorState
    _buffer: list[Any]
    _cursor_id: str | None
    _has_more: bool
    _batches_retrieved: int
    _consumed: int
    _count: int | None
    _cached: bool
    _extra: dict[str, Any]
    _warnings: list[dict[str, Any]]
    _plan: QueryPlan | None

    def __init__(self) -> None:
        self._state = CursorState.AWAITING_NEXT_BATCH
        self._buffer = []
        self._cursor_id = None
        self._has_more = False
        self._batches_retrieved = 0
        self._consumed = 0
        self._count = None
        self._cached = False
        self._extra = {}
        self._warnings = []
        self._plan = None

    def _install_batch(self, envelope: CursorEnvelope) -> None:
        """
        Make a freshly retrieved batch the current one and settle the state.
        A batch arriving after the cursor got closed is discarded.
        """
        if self._state == CursorState.CLOSED:
            return
        self._buffer = list(envelope.result)
        self._cursor_id = envelope.cursor_id or self._cursor_id
        self._has_more = envelope.has_more
        self._batches_retrieved += 1
        if envelope.count is not None:
            self._count = envelope.count
        self._cached = envelope.cached
        self._extra = {**self._extra, **envelope.extra}
        for warning in envelope.extra.get("warnings") or []:
            if warning not in self._warnings:
                self._warnings.append(warning)
        if self._plan is None:
            self._plan = envelope.plan
        self._settle_state()

    def _settle_state(self) -> None:
        if self._state in {CursorState.CLOSED, CursorState.FAILED}:
            return
        if self._needs_first_batch():
            return
        if self._buffer:
            self._state = CursorState.OPEN
        elif self._has_more:
            self._state = CursorState.AWAITING_NEXT_BATCH
        else:
            self._state = CursorState.EXHAUSTED

    def _mark_fetching(self) -> None:
        self._state = CursorState.FETCHING

    def _mark_failed(self, exc: BaseException) -> None:
        logger.warning(f"query cursor {self._cursor_id} failed: {exc!r}")
        # a cursor closed meanwhile stays closed
        if self._state != CursorState.CLOSED:
            self._state = CursorState.FAILED
        self._buffer = []

    def _needs_first_batch(self) -> bool:
        return self._cursor_id is None and self._batches_retrieved == 0

    def _ensure_readable(self) -> None:
        """
        Raise the appropriate exception if no item can ever be read again.
        """
        if self._state == CursorState.FAILED:
            raise CursorException(
                text="Cannot read from a cursor whose batch retrieval failed.",
                cursor_state=self._state.value,
            )
        if self._state == CursorState.FETCHING:
            raise CursorException(
                text="Cannot read from a cursor while a batch is being retrieved.",
                cursor_state=self._state.value,
            )
        if self._state in {CursorState.CLOSED, CursorState.EXHAUSTED}:
            raise NoMoreDocumentsException()

    def _pop_item(self) -> Any:
        item0, rest_buffer = self._buffer[0], self._buffer[1:]
        self._buffer = rest_buffer
        self._consumed += 1
        self._settle_state()
        return item0

    def _dispose_target(self) -> str | None:
        """
        Mark the cursor as closed and return the server-side handle
        to dispose of, if the server may still be holding it.
        """
        to_dispose = (
            self._cursor_id
            if self._has_more and self._state != CursorState.CLOSED
            else None
        )
        self._state = CursorState.CLOSED
        self._buffer = []
        self._has_more = False
        return to_dispose

    @property
    def state(self) -> CursorState:
        """
        The current state of this cursor.

        Returns:
            a value in `arangopy.cursors.CursorState`.
        """

        return self._state

    @property
    def cursor_id(self) -> str | None:
        """
        The server-side handle of this cursor. This is None if the whole result
        set was returned at once (hence the server keeps no cursor) or if the
        query has not been run yet.
        """

        return self._cursor_id

    @property
    def consumed(self) -> int:
        """
        The number of items the cursors has yielded, i.e. how many items
        have been already read by the code consuming the cursor.

        Returns:
            consumed: a non-negative integer, the count of items yielded so far.
        """

        return self._consumed

    @property
    def buffered_count(self) -> int:
        """
        The number of items currently stored in the client-side buffer of this
        cursor. Reading this property never triggers new API calls to re-fill
        the buffer.

        Returns:
            buffered_count: a non-negative integer, the amount of items currently
                stored in the local buffer.
        """

        return len(self._buffer)

    @property
    def batches_retrieved(self) -> int:
        """The number of batches received from the server so far."""

        return self._batches_retrieved

    @property
    def count(self) -> int | None:
        """
        The total number of results of the query, if it was run with `count=True`.
        """

        return self._count

    @property
    def cached(self) -> bool:
        """Whether the results were served from the server query cache."""

        return self._cached

    @property
    def statistics(self) -> dict[str, Any]:
        """
        The execution statistics of the query ("stats" in the "extra" section
        of the responses), as of the most recent batch.
        """

        return dict(self._extra.get("stats") or {})

    @property
    def profile(self) -> dict[str, Any] | None:
        """
        The query profile (duration of each execution phase), present only
        if the query was run with profiling enabled.
        """

        return self._extra.get("profile")

    @property
    def warnings(self) -> list[dict[str, Any]]:
        """All warnings issued by the server for this query so far."""

        return list(self._warnings)

    def plan(self) -> QueryPlan | None:
        """
        The execution plan of the query, including the optimizer rules that
        were applied. The plan is returned by the server only for queries run
        with a profiling level of 2 (`ProfileLevel.PLAN`) or more.

        This method never triggers any API call.

        Returns:
            a QueryPlan, or None if no plan was returned (so far).
        """

        return self._plan

    def consume_buffer(self, n: int | None = None) -> list[Any]:
        """
        Consume (return) up to the requested number of buffered items.
        The returned items are marked as consumed, meaning that subsequently consuming
        the cursor will start after those items.

        This method is an in-place modification of the cursor and only concerns
        the local buffer: it never triggers fetching of new batches from the server.

        This method can be called regardless of the cursor state without exceptions
        being raised.

        Args:
            n: amount of items to return. If omitted, the whole buffer is returned.

        Returns:
            list: a list of items. If there are fewer items than requested,
                the whole buffer is returned without errors: in particular,
                if it is empty (such as when the cursor is closed),
                an empty list is returned.
        """
        _n = n if n is not None else len(self._buffer)
        if _n < 0:
            raise ValueError("A negative amount of items was requested.")
        returned, remaining = self._buffer[:_n], self._buffer[_n:]
        self._buffer = remaining
        self._consumed += len(returned)
        self._settle_state()
        return returned
