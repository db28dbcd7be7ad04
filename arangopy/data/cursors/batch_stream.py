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

from typing import Any, Iterable, Iterator, MutableMapping

from arangopy.data.cursors.cursor import _fill_destination
from arangopy.data.utils.response_decoder import BulkEnvelope
from arangopy.exceptions import NoMoreDocumentsException
from arangopy.results import ResultEntry


class BatchResultStream:
    """
    An ordered stream over the outcomes of a multi-document operation, as
    returned by the `*_documents` methods of a collection.

    The whole response has already been received when the stream is created:
    reading from it never involves network activity. Entries come in the
    same order as the items (keys or documents) in the request, and item
    errors (such as a key not found) are entries like any other, with their
    `error` attribute set: they never interrupt the stream.

    Once all entries are read, `read_next` raises NoMoreDocumentsException,
    and keeps doing so at every further call.

    Example:
        >>> stream = my_collection.delete_documents(["k1", "missing", "k3"])
        >>> for entry in stream:
        ...     print(entry.key, entry.is_error)
        ...
        k1 False
         True
        k3 False
    """

    _entries: list[ResultEntry]
    _position: int
    _closed: bool

    def __init__(self, entries: Iterable[ResultEntry]) -> None:
        self._entries = list(entries)
        self._position = 0
        self._closed = False

    @classmethod
    def _from_envelope(cls, envelope: BulkEnvelope) -> BatchResultStream:
        return cls(envelope.entries)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({len(self._entries)} entries, "
            f"consumed so far: {self.consumed})"
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ResultEntry]:
        return self

    def __next__(self) -> ResultEntry:
        try:
            return self.read_next()
        except NoMoreDocumentsException:
            raise StopIteration

    @property
    def consumed(self) -> int:
        """The number of entries read so far."""
        return self._position

    @property
    def remaining(self) -> int:
        """The number of entries still to be read."""
        if self._closed:
            return 0
        return len(self._entries) - self._position

    def has_next(self) -> bool:
        return self.remaining > 0

    def read_next(
        self,
        destination: MutableMapping[str, Any] | None = None,
    ) -> ResultEntry:
        """
        Return the next entry of the stream.

        Args:
            destination: an optional mutable mapping. If the entry carries
                a document (a read document, or the `new`/`old` document
                that was requested), the mapping is cleared and filled with it.
                Entries with no document (e.g. item errors) leave it unchanged.

        Returns:
            a ResultEntry.

        Raises:
            NoMoreDocumentsException: if all entries have already been read,
                or the stream was closed.
        """
        if not self.has_next():
            raise NoMoreDocumentsException()
        entry = self._entries[self._position]
        self._position += 1
        _fill_destination(destination, entry)
        return entry

    def to_list(self) -> list[ResultEntry]:
        """
        Consume all entries left in the stream and return them as a list.
        """
        return [entry for entry in self]

    def close(self) -> None:
        """
        Discard the entries not read yet. Closing twice is harmless, and
        reads after closing behave as for a fully-consumed stream.
        """
        self._closed = True
