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
from typing import Sequence

from arangopy.exceptions.arango_api_exceptions import ArangoException
from arangopy.exceptions.error_descriptors import ArangoErrorDescriptor


class NoMoreDocumentsException(Exception):
    """
    Signal that a result stream (a batch result stream or a query cursor)
    has been fully consumed, or closed.

    This is not an error: it is raised by `read_next` each and every time
    it is called on a drained stream. It does not inherit from
    ArangoException: handlers for actual API errors never intercept it.
    """

    def __init__(self, text: str = "no more documents") -> None:
        super().__init__(text)
        self.text = text


@dataclass
class CursorException(ArangoException):
    """
    The cursor operation cannot be invoked in the current state of the
    cursor (for instance, reading from a cursor whose last batch fetch failed).

    Attributes:
        text: a text message about the exception.
        cursor_state: a string description of the current state
            of the cursor. See the documentation for CursorState.
    """

    text: str
    cursor_state: str

    def __init__(
        self,
        text: str,
        *,
        cursor_state: str,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.cursor_state = cursor_state


@dataclass
class InvalidShardIdentifierException(ArangoException):
    """
    A query was restricted to one or more shard identifiers that are not
    valid for the target collection. The request fails as a whole, before
    any result is returned: an unknown shard must never be mistaken for
    a shard without matching documents.

    Attributes:
        text: a text message about the exception.
        shard_ids: the offending shard identifiers (if they could be singled
            out), otherwise all the identifiers supplied with the request.
    """

    text: str
    shard_ids: list[str]

    def __init__(
        self,
        text: str,
        *,
        shard_ids: Sequence[str],
    ) -> None:
        super().__init__(text)
        self.text = text
        self.shard_ids = list(shard_ids)


@dataclass
class ItemFailureException(ArangoException):
    """
    A single item of a multi-document operation failed (e.g. the document
    was not found, or a revision conflict occurred), while the request
    as a whole succeeded.

    Instances of this class are never raised during iteration over a result
    stream: they are produced on demand by `ResultEntry.as_exception()` and
    raised only by `ResultEntry.raise_for_error()`.

    Attributes:
        text: a text message about the exception.
        error_descriptor: the per-item error as returned by the server.
        key: the document key associated to the item, if the server
            returned it (often it is the empty string).
    """

    text: str
    error_descriptor: ArangoErrorDescriptor
    key: str

    def __init__(
        self,
        text: str,
        *,
        error_descriptor: ArangoErrorDescriptor,
        key: str = "",
    ) -> None:
        super().__init__(text)
        self.text = text
        self.error_descriptor = error_descriptor
        self.key = key
