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
Conversion of the raw (parsed JSON) responses from the server into typed
envelopes. Which envelope applies is decided by the caller, based on the
operation that was requested, and never guessed from the shape of the payload.

Per-item errors found in multi-document responses are not decoding failures:
they become error-flagged ResultEntry objects. Anything else not matching the
expected shape raises UnexpectedArangoResponseException.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Union

from arangopy.exceptions import (
    ArangoErrorDescriptor,
    UnexpectedArangoResponseException,
)
from arangopy.results import QueryPlan, ResultEntry
from arangopy.utils.str_enum import StrEnum

logger = logging.getLogger(__name__)


class OperationKind(StrEnum):
    """
    The kind of operation a response belongs to. This determines the
    envelope the response is decoded into.
    """

    SINGLE = "single"
    BULK = "bulk"
    QUERY = "query"


@dataclass
class SingleEnvelope:
    """The decoded response to a single-document operation."""

    entry: ResultEntry


@dataclass
class BulkEnvelope:
    """
    The decoded response to a multi-document operation: one entry per item,
    in the order of the items in the request.
    """

    entries: list[ResultEntry]

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class CursorEnvelope:
    """
    The decoded response to a query creation or to a cursor "next batch" request.

    Attributes:
        cursor_id: the server-side cursor handle. None if the whole result
            fit in this response (and no cursor is kept by the server).
        result: the items of this batch, in server order.
        has_more: whether further batches are available with the cursor handle.
        count: the total number of results, if it was requested at query time.
        cached: whether the results come from the server query cache.
        extra: the "extra" section of the response (statistics, profile,
            warnings, plan).
        plan: the query plan found in the extra section, if any.
    """

    cursor_id: str | None
    result: list[Any]
    has_more: bool
    count: int | None = None
    cached: bool = False
    extra: dict[str, Any] = field(default_factory=dict)
    plan: QueryPlan | None = None


Envelope = Union[SingleEnvelope, BulkEnvelope, CursorEnvelope]


def _malformed(text: str, raw_response: Any) -> UnexpectedArangoResponseException:
    return UnexpectedArangoResponseException(text=text, raw_response=raw_response)


def _optional_dict(item: dict[str, Any], field_name: str) -> dict[str, Any] | None:
    value = item.get(field_name)
    if value is not None and not isinstance(value, dict):
        raise _malformed(
            f"Field '{field_name}' of a result entry is not a document.",
            item,
        )
    return value


def _decode_entry(
    item: Any,
    *,
    silent: bool,
    entry_is_document: bool,
) -> ResultEntry:
    if not isinstance(item, dict):
        raise _malformed("A result entry is not a JSON object.", item)

    # a stored document may legitimately carry its own "error" field
    if item.get("error") is True and isinstance(item.get("errorNum"), int):
        return ResultEntry(
            key=item.get("_key") or "",
            error=ArangoErrorDescriptor(item),
            raw=item,
        )

    key = item.get("_key")
    if key is not None and not isinstance(key, str):
        raise _malformed("The document key of a result entry is not a string.", item)
    if not key and not silent:
        raise _malformed("A result entry carries no document key.", item)

    old = _optional_dict(item, "old")
    new = _optional_dict(item, "new")
    document: Any
    if entry_is_document:
        document = item
    elif new is not None:
        document = new
    else:
        document = old

    return ResultEntry(
        key=key or "",
        id=item.get("_id"),
        rev=item.get("_rev"),
        old_rev=item.get("_oldRev"),
        old=old,
        new=new,
        document=document,
        raw=item,
    )


def entry_from_query_item(item: Any) -> ResultEntry:
    """
    Wrap one item of a query result into a ResultEntry. Query items can be
    any JSON value: only objects carry a document key and revision.
    """
    if isinstance(item, dict):
        key = item.get("_key")
        return ResultEntry(
            key=key if isinstance(key, str) else "",
            id=item.get("_id"),
            rev=item.get("_rev"),
            document=item,
            raw=item,
        )
    return ResultEntry(key="", document=item, raw=item)


def decode_single(
    payload: Any,
    *,
    silent: bool = False,
    entry_is_document: bool = False,
) -> SingleEnvelope:
    """
    Decode the response to a single-document operation.

    Args:
        payload: the parsed JSON response.
        silent: whether the operation was requested as silent (in which
            case the server returns an empty object).
        entry_is_document: whether the response is the document itself,
            as for reads.
    """
    if silent and payload in ({}, None):
        return SingleEnvelope(entry=ResultEntry(key="", raw=payload))
    return SingleEnvelope(
        entry=_decode_entry(
            payload,
            silent=silent,
            entry_is_document=entry_is_document,
        )
    )


def decode_bulk(
    payload: Any,
    *,
    expected_count: int | None = None,
    silent: bool = False,
    entry_is_document: bool = False,
) -> BulkEnvelope:
    """
    Decode the response to a multi-document operation, preserving the order
    of the entries.

    Args:
        payload: the parsed JSON response, expected to be a list.
        expected_count: the number of items in the request. Unless the
            operation is silent, a response with a different number of
            entries is malformed.
        silent: whether the operation was requested as silent. Silent
            responses only list the failed items, hence carry no positional
            correspondence with the request and are returned as they are.
        entry_is_document: whether the successful entries are the documents
            themselves, as for reads.
    """
    if silent and payload in ({}, None):
        return BulkEnvelope(entries=[])
    if not isinstance(payload, list):
        raise _malformed(
            "The response to a multi-document operation is not a list.",
            payload,
        )
    if (
        not silent
        and expected_count is not None
        and len(payload) != expected_count
    ):
        raise _malformed(
            f"The response to a multi-document operation has {len(payload)} "
            f"entries, while {expected_count} items were sent.",
            payload,
        )
    return BulkEnvelope(
        entries=[
            _decode_entry(item, silent=silent, entry_is_document=entry_is_document)
            for item in payload
        ]
    )


def decode_cursor(payload: Any) -> CursorEnvelope:
    """
    Decode the response to a query (or to a request for the next batch
    of an existing cursor).

    Server warnings found in the response are logged.
    """
    if not isinstance(payload, dict):
        raise _malformed("The response to a query is not a JSON object.", payload)
    result = payload.get("result")
    if not isinstance(result, list):
        raise _malformed("The response to a query has no 'result' list.", payload)
    has_more = payload.get("hasMore")
    if not isinstance(has_more, bool):
        raise _malformed("The response to a query has no 'hasMore' flag.", payload)
    cursor_id = payload.get("id")
    if cursor_id is not None and not isinstance(cursor_id, str):
        raise _malformed("The cursor identifier is not a string.", payload)
    if has_more and not cursor_id:
        raise _malformed(
            "The response to a query announces more results but no cursor.",
            payload,
        )
    count = payload.get("count")
    if count is not None and not isinstance(count, int):
        raise _malformed("The result count of a query is not an integer.", payload)
    extra = payload.get("extra") or {}
    if not isinstance(extra, dict):
        raise _malformed("The 'extra' section of a query is not an object.", payload)

    for warning in extra.get("warnings") or []:
        logger.warning(f"The server returned a query warning: {warning}")

    raw_plan = extra.get("plan")
    plan = QueryPlan._from_dict(raw_plan) if isinstance(raw_plan, dict) else None

    return CursorEnvelope(
        cursor_id=cursor_id,
        result=result,
        has_more=has_more,
        count=count,
        cached=bool(payload.get("cached", False)),
        extra=extra,
        plan=plan,
    )


def decode_response(
    kind: str | OperationKind,
    payload: Any,
    **kwargs: Any,
) -> Envelope:
    """
    Decode a response according to the kind of operation that produced it.

    Args:
        kind: an OperationKind (or its string value).
        payload: the parsed JSON response.
        kwargs: passed on to the specific decoding function.
    """
    _kind = OperationKind.coerce(kind)
    if _kind == OperationKind.SINGLE:
        return decode_single(payload, **kwargs)
    elif _kind == OperationKind.BULK:
        return decode_bulk(payload, **kwargs)
    else:
        return decode_cursor(payload, **kwargs)
