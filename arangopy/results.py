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

from dataclasses import dataclass, field
from typing import Any

from arangopy.constants import DocumentType
from arangopy.exceptions import ArangoErrorDescriptor, ItemFailureException


@dataclass
class ResultEntry:
    """
    Class that represents one outcome of a single-document or multi-document
    operation, or one item read from a query cursor.

    An entry is either a success or an item error, never both. Item errors
    (e.g. a key not found among many in a bulk delete) are carried as data
    in the `error` attribute and do not interrupt the stream of results.

    Attributes:
        key: the document key ("_key"). Can be the empty string for error
            entries and for entries of silent operations.
        id: the document handle ("_id", i.e. "collection/key"), if returned.
        rev: the document revision ("_rev"), if returned.
        old_rev: the revision before the operation ("_oldRev"), if returned.
        old: the document before the operation, present only if requested
            with `return_old`.
        new: the document after the operation, present only if requested
            with `return_new`.
        document: the document payload associated to this entry, if any:
            for reads (and cursor items) this is the item itself, for writes
            it is `new` if present, else `old` if present, else None.
        error: an ArangoErrorDescriptor if this entry is an item error,
            None otherwise.
        raw: the item exactly as it was found in the response.
    """

    key: str
    id: str | None = None
    rev: str | None = None
    old_rev: str | None = None
    old: DocumentType | None = None
    new: DocumentType | None = None
    document: Any = None
    error: ArangoErrorDescriptor | None = None
    raw: Any = None

    def __repr__(self) -> str:
        pieces = [
            f"key={self.key.__repr__()}",
            f"rev={self.rev.__repr__()}" if self.rev is not None else None,
            f"error={self.error.__repr__()}" if self.error is not None else None,
            "document=..." if self.document is not None else None,
        ]
        return f"{self.__class__.__name__}({', '.join(pc for pc in pieces if pc)})"

    @property
    def is_error(self) -> bool:
        """Whether this entry stands for a failed item."""
        return self.error is not None

    def as_exception(self) -> ItemFailureException | None:
        """
        Return an ItemFailureException describing this entry if it is an
        item error, None otherwise. The exception is not raised.
        """
        if self.error is None:
            return None
        return ItemFailureException(
            text=self.error.summary(),
            error_descriptor=self.error,
            key=self.key,
        )

    def raise_for_error(self) -> ResultEntry:
        """
        Raise an ItemFailureException if this entry is an item error.

        Returns:
            the entry itself, if it is not an error, for chaining.
        """
        exc = self.as_exception()
        if exc is not None:
            raise exc
        return self


@dataclass
class QueryPlan:
    """
    The execution plan of a query, as returned by the server along with the
    query results when the query is run with a profiling level of 2 or more.

    Attributes:
        rules: the names of the optimizer rules applied to the plan.
        nodes: the execution nodes of the plan, as returned by the server.
        collections: the collections involved in the query.
        estimated_cost: the estimated cost of the plan.
        estimated_nr_items: the estimated number of result items.
        raw: the plan exactly as it was returned by the server.
    """

    rules: list[str]
    nodes: list[dict[str, Any]] = field(default_factory=list)
    collections: list[dict[str, Any]] = field(default_factory=list)
    estimated_cost: float | None = None
    estimated_nr_items: int | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rules={self.rules})"

    def has_rule(self, rule_name: str) -> bool:
        return rule_name in self.rules

    @staticmethod
    def _from_dict(raw_dict: dict[str, Any]) -> QueryPlan:
        return QueryPlan(
            rules=list(raw_dict.get("rules") or []),
            nodes=list(raw_dict.get("nodes") or []),
            collections=list(raw_dict.get("collections") or []),
            estimated_cost=raw_dict.get("estimatedCost"),
            estimated_nr_items=raw_dict.get("estimatedNrItems"),
            raw=raw_dict,
        )
