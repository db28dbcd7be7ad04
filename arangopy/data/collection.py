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
from typing import TYPE_CHECKING, Any, Iterable, Union
from urllib.parse import quote

from arangopy.constants import DocumentType
from arangopy.data.cursors.batch_stream import BatchResultStream
from arangopy.data.info.collection_info import CollectionShardsInfo
from arangopy.data.utils.response_decoder import decode_bulk, decode_single
from arangopy.data.utils.shard_router import ShardRouter
from arangopy.exceptions import (
    UnexpectedArangoResponseException,
    _select_singlereq_timeout_gm,
    _TimeoutContext,
)
from arangopy.results import ResultEntry
from arangopy.settings.defaults import (
    COLLECTION_API_PATH,
    DATABASE_PATH_TEMPLATE,
    DOCUMENT_API_PATH,
)
from arangopy.utils.api_commander import APICommander
from arangopy.utils.api_options import APIOptions, FullAPIOptions
from arangopy.utils.request_tools import HttpMethod, to_request_params
from arangopy.utils.unset import _UNSET, UnsetType

if TYPE_CHECKING:
    from arangopy.data.database import AsyncDatabase, Database


logger = logging.getLogger(__name__)

KeyOrDocument = Union[str, DocumentType]


def _document_key(key_or_document: KeyOrDocument) -> str:
    """
    Extract the document key from either a key string or a document
    carrying a "_key" field.
    """
    if isinstance(key_or_document, str):
        key = key_or_document
    elif isinstance(key_or_document, dict):
        key = key_or_document.get("_key")
    else:
        key = None
    if not isinstance(key, str) or not key:
        raise ValueError(
            f"Cannot determine a document key from {key_or_document!r}."
        )
    return key


def _key_path(key_or_document: KeyOrDocument) -> str:
    return quote(_document_key(key_or_document), safe="")


def _bulk_items(
    items: Iterable[KeyOrDocument],
    *,
    documents_only: bool,
) -> list[KeyOrDocument]:
    if isinstance(items, (str, dict)):
        raise ValueError(
            "Multi-document operations require a list of keys or documents."
        )
    _items = list(items)
    for item in _items:
        if documents_only and not isinstance(item, dict):
            raise ValueError(f"Expected a document, found {item!r}.")
        if not documents_only and not isinstance(item, (str, dict)):
            raise ValueError(f"Expected a key or a document, found {item!r}.")
    return _items


def _write_params(
    *,
    return_new: bool | None = None,
    return_old: bool | None = None,
    silent: bool | None = None,
    wait_for_sync: bool | None = None,
    overwrite_mode: str | None = None,
    keep_null: bool | None = None,
    merge_objects: bool | None = None,
    ignore_revs: bool | None = None,
) -> dict[str, Any]:
    return to_request_params(
        returnNew=return_new,
        returnOld=return_old,
        silent=silent,
        waitForSync=wait_for_sync,
        overwriteMode=overwrite_mode,
        keepNull=keep_null,
        mergeObjects=merge_objects,
        ignoreRevs=ignore_revs,
    )


def _count_from_response(response: Any) -> int:
    if isinstance(response, dict) and isinstance(response.get("count"), int):
        return response["count"]
    raise UnexpectedArangoResponseException(
        text="Faulty response from the collection count endpoint.",
        raw_response=response,
    )


def _shards_from_response(response: Any) -> CollectionShardsInfo:
    if not isinstance(response, dict):
        raise UnexpectedArangoResponseException(
            text="Faulty response from the collection shards endpoint.",
            raw_response=response,
        )
    return CollectionShardsInfo._from_dict(response)


class Collection:
    """
    A collection on an ArangoDB database: the object for reading and writing
    documents, one at a time or many in a single request.
    This class has a synchronous interface.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_collection` of Database.

    Single-document methods return a ResultEntry (and raise on failure, e.g.
    an ArangoHttpException for a missing document). Multi-document methods
    return a BatchResultStream with one entry per item, in request order,
    where the failures of individual items are entries with their `error` set.

    Args:
        database: a Database object, instantiated earlier. This represents
            the database the collection belongs to.
        name: the collection name.
        api_options: a complete specification of the API Options for this instance.

    Example:
        >>> my_coll = my_db.get_collection("my_collection")
        >>> my_coll.create_document({"_key": "k1", "seq": 1}).key
        'k1'

    Note:
        creating an instance of Collection does not trigger actual creation
        of the collection on the database. The collection must exist already.
    """

    def __init__(
        self,
        *,
        database: Database,
        name: str,
        api_options: FullAPIOptions,
    ) -> None:
        self.api_options = api_options
        self._name = name
        self._database = database._copy(api_options=self.api_options)
        self._commander_headers = self._database._commander_headers
        self._api_commander = self._get_api_commander()
        self._collection_api_commander = self._get_collection_api_commander()

    def __repr__(self) -> str:
        _db_desc = f'database.name="{self.database.name}"'
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f"{_db_desc}, api_options={self.api_options})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Collection):
            return all(
                [
                    self._name == other._name,
                    self._database == other._database,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    def __call__(self, *pargs: Any, **kwargs: Any) -> None:
        raise TypeError(
            f"'{self.__class__.__name__}' object is not callable. If you "
            f"meant to call the '{self.name}' method on a "
            f"'{self.database.__class__.__name__}' object "
            "it is failing because no such method exists."
        )

    def _get_api_commander(self) -> APICommander:
        """Instantiate a new APICommander for the document endpoints."""

        return APICommander(
            api_endpoint=self._database.api_endpoint,
            path="/".join(
                [
                    DATABASE_PATH_TEMPLATE.format(
                        database=quote(self._database.name, safe="")
                    ),
                    DOCUMENT_API_PATH,
                    quote(self._name, safe=""),
                ]
            ),
            headers=self._commander_headers,
            callers=self.api_options.callers,
            redacted_header_names=self.api_options.redacted_header_names,
        )

    def _get_collection_api_commander(self) -> APICommander:
        """Instantiate a new APICommander for the collection endpoints."""

        return self._api_commander._copy(
            path="/".join(
                [
                    DATABASE_PATH_TEMPLATE.format(
                        database=quote(self._database.name, safe="")
                    ),
                    COLLECTION_API_PATH,
                    quote(self._name, safe=""),
                ]
            ),
        )

    def _copy(
        self,
        *,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Collection:
        final_api_options = self.api_options.with_override(api_options)
        return Collection(
            database=self.database,
            name=self.name,
            api_options=final_api_options,
        )

    def with_options(
        self,
        *,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Collection:
        """
        Create a clone of this collection with some changed attributes.

        Args:
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).

        Returns:
            a new Collection instance.

        Example:
            >>> slow_coll = my_coll.with_options(
            ...     api_options=APIOptions(
            ...         timeout_options=TimeoutOptions(request_timeout_ms=60000),
            ...     ),
            ... )
        """

        return self._copy(api_options=api_options)

    def to_async(
        self,
        *,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncCollection:
        """
        Create an AsyncCollection from this one. Save for the arguments
        explicitly provided as overrides, everything else is kept identical
        to this collection in the copy (the database is converted into
        an async object).

        Args:
            api_options: any additional options to set for the result, in the form of
                an APIOptions instance (where one can set just the needed attributes).

        Returns:
            the new copy, an AsyncCollection instance.
        """

        return AsyncCollection(
            database=self.database.to_async(),
            name=self.name,
            api_options=self.api_options.with_override(api_options),
        )

    @property
    def database(self) -> Database:
        """
        a Database object, the database this collection belongs to.

        Example:
            >>> my_coll.database.name
            'the_application_database'
        """

        return self._database

    @property
    def name(self) -> str:
        """
        The name of this collection.

        Example:
            >>> my_coll.name
            'my_collection'
        """

        return self._name

    @property
    def full_name(self) -> str:
        """
        The fully-qualified collection name within the database,
        in the form "database.collection".
        """

        return f"{self.database.name}.{self.name}"

    def _document_request(
        self,
        *,
        http_method: str,
        payload: Any = None,
        key_or_document: KeyOrDocument | None = None,
        request_params: dict[str, Any] = {},
        timeout_context: _TimeoutContext,
        raise_api_errors: bool = True,
    ) -> Any:
        return self._api_commander.request(
            http_method=http_method,
            payload=payload,
            additional_path=(
                None if key_or_document is None else _key_path(key_or_document)
            ),
            request_params=request_params,
            timeout_context=timeout_context,
            raise_api_errors=raise_api_errors,
        )

    def read_document(
        self,
        key_or_document: KeyOrDocument,
        *,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Read a document by its key.

        Args:
            key_or_document: the document key, or a document with a "_key" field.
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
                (This method issues a single API request, hence all timeout parameters
                are treated the same.)
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            a ResultEntry whose `document` is the document read.

        Raises:
            ArangoHttpException: if the document does not exist (this can be
                checked with `arangopy.exceptions.is_not_found`).

        Example:
            >>> my_coll.read_document("k1").document
            {'_key': 'k1', '_id': 'my_collection/k1', '_rev': '_hV9...', 'seq': 1}
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"read_document on '{self.name}'")
        rd_response = self._document_request(
            http_method=HttpMethod.GET,
            key_or_document=key_or_document,
            raise_api_errors=False,
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished read_document on '{self.name}'")
        return decode_single(rd_response, entry_is_document=True).entry

    def create_document(
        self,
        document: DocumentType,
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        overwrite_mode: str | None = None,
        keep_null: bool | None = None,
        merge_objects: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Create a single document in the collection.

        Args:
            document: the document to create. If it has no "_key", the
                server generates one.
            return_new: whether to return the complete new document (as `new`).
            return_old: whether to return the previous document (as `old`),
                meaningful only when an existing document is overwritten.
            silent: if True, the server returns no metadata at all and the
                resulting entry has an empty key.
            wait_for_sync: whether to wait until the document is synced to disk.
            overwrite_mode: what to do if a document with the same key exists
                (see `arangopy.constants.OverwriteMode`). If not provided,
                the creation fails with a conflict.
            keep_null: for overwrite mode "update", whether null values in the
                document are stored (True) or remove the attribute (False).
            merge_objects: for overwrite mode "update", whether object values
                are merged with the existing ones (True) or replace them (False).
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
                (This method issues a single API request, hence all timeout parameters
                are treated the same.)
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            a ResultEntry with the metadata of the new document.

        Example:
            >>> entry = my_coll.create_document({"seq": 10}, return_new=True)
            >>> entry.new["seq"]
            10
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"create_document on '{self.name}'")
        cd_response = self._document_request(
            http_method=HttpMethod.POST,
            payload=document,
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                overwrite_mode=overwrite_mode,
                keep_null=keep_null,
                merge_objects=merge_objects,
            ),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished create_document on '{self.name}'")
        return decode_single(cd_response, silent=bool(silent)).entry

    def update_document(
        self,
        document: DocumentType,
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        keep_null: bool | None = None,
        merge_objects: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Partially update a document: the attributes in the provided document
        are merged into the stored one.

        Args:
            document: a document with the "_key" of the document to update
                and the attributes to change.
            return_new: whether to return the complete new document (as `new`).
            return_old: whether to return the previous document (as `old`).
            silent: if True, the server returns no metadata at all.
            wait_for_sync: whether to wait until the change is synced to disk.
            keep_null: whether null values are stored (True) or remove the
                attribute (False).
            merge_objects: whether object values are merged with the existing
                ones (True) or replace them (False).
            ignore_revs: if False, a "_rev" in the document must match the
                stored revision for the update to happen.
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
                (This method issues a single API request, hence all timeout parameters
                are treated the same.)
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            a ResultEntry with the metadata of the updated document.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"update_document on '{self.name}'")
        ud_response = self._document_request(
            http_method=HttpMethod.PATCH,
            payload=document,
            key_or_document=document,
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                keep_null=keep_null,
                merge_objects=merge_objects,
                ignore_revs=ignore_revs,
            ),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished update_document on '{self.name}'")
        return decode_single(ud_response, silent=bool(silent)).entry

    def replace_document(
        self,
        document: DocumentType,
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Replace a document entirely with the provided one.

        Args:
            document: the new document, with the "_key" of the document to replace.
            return_new: whether to return the complete new document (as `new`).
            return_old: whether to return the previous document (as `old`).
            silent: if True, the server returns no metadata at all.
            wait_for_sync: whether to wait until the change is synced to disk.
            ignore_revs: if False, a "_rev" in the document must match the
                stored revision for the replacement to happen.
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
                (This method issues a single API request, hence all timeout parameters
                are treated the same.)
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            a ResultEntry with the metadata of the new document.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"replace_document on '{self.name}'")
        rd_response = self._document_request(
            http_method=HttpMethod.PUT,
            payload=document,
            key_or_document=document,
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                ignore_revs=ignore_revs,
            ),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished replace_document on '{self.name}'")
        return decode_single(rd_response, silent=bool(silent)).entry

    def delete_document(
        self,
        key_or_document: KeyOrDocument,
        *,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Delete a document by its key.

        Args:
            key_or_document: the document key, or a document with a "_key" field.
            return_old: whether to return the deleted document (as `old`).
            silent: if True, the server returns no metadata at all.
            wait_for_sync: whether to wait until the deletion is synced to disk.
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
                (This method issues a single API request, hence all timeout parameters
                are treated the same.)
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            a ResultEntry with the metadata of the deleted document.

        Raises:
            ArangoHttpException: if the document does not exist.

        Example:
            >>> my_coll.delete_document("k1", return_old=True).old["seq"]
            1
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"delete_document on '{self.name}'")
        dd_response = self._document_request(
            http_method=HttpMethod.DELETE,
            key_or_document=key_or_document,
            request_params=_write_params(
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
            ),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished delete_document on '{self.name}'")
        return decode_single(dd_response, silent=bool(silent)).entry

    def _bulk_operation(
        self,
        *,
        operation_name: str,
        http_method: str,
        items: list[KeyOrDocument],
        request_params: dict[str, Any],
        silent: bool,
        entry_is_document: bool = False,
        general_method_timeout_ms: int | None,
        request_timeout_ms: int | None,
        timeout_ms: int | None,
    ) -> BatchResultStream:
        if not items:
            return BatchResultStream([])
        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"{operation_name} on '{self.name}' ({len(items)} items)")
        bulk_response = self._document_request(
            http_method=http_method,
            payload=items,
            request_params=request_params,
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished {operation_name} on '{self.name}'")
        return BatchResultStream._from_envelope(
            decode_bulk(
                bulk_response,
                expected_count=len(items),
                silent=silent,
                entry_is_document=entry_is_document,
            )
        )

    def read_documents(
        self,
        keys_or_documents: Iterable[KeyOrDocument],
        *,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Read several documents with a single request.

        Args:
            keys_or_documents: a list of document keys, or of documents
                with a "_key" field.
            ignore_revs: if False, documents with a "_rev" are read only if
                the stored revision matches.
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
                (This method issues a single API request, hence all timeout parameters
                are treated the same.)
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            a BatchResultStream, with one entry per requested key and in
            the same order. Missing documents are error entries.

        Example:
            >>> stream = my_coll.read_documents(["k1", "nope"])
            >>> [entry.is_error for entry in stream]
            [False, True]
        """

        return self._bulk_operation(
            operation_name="read_documents",
            http_method=HttpMethod.PUT,
            items=_bulk_items(keys_or_documents, documents_only=False),
            request_params=to_request_params(onlyget=True, ignoreRevs=ignore_revs),
            silent=False,
            entry_is_document=True,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    def create_documents(
        self,
        documents: Iterable[DocumentType],
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        overwrite_mode: str | None = None,
        keep_null: bool | None = None,
        merge_objects: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Create several documents with a single request.

        The parameters have the same meaning as for `create_document`.
        With `silent=True`, the server reports only the failed items:
        the resulting stream then contains just the error entries.

        Returns:
            a BatchResultStream, with one entry per document and in
            the same order.

        Example:
            >>> stream = my_coll.create_documents([{"_key": "a"}, {"_key": "a"}])
            >>> [entry.is_error for entry in stream]
            [False, True]
        """

        return self._bulk_operation(
            operation_name="create_documents",
            http_method=HttpMethod.POST,
            items=_bulk_items(documents, documents_only=True),
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                overwrite_mode=overwrite_mode,
                keep_null=keep_null,
                merge_objects=merge_objects,
            ),
            silent=bool(silent),
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    def update_documents(
        self,
        documents: Iterable[DocumentType],
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        keep_null: bool | None = None,
        merge_objects: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Partially update several documents with a single request. Each
        document must carry the "_key" of the document to update.

        The parameters have the same meaning as for `update_document`.

        Returns:
            a BatchResultStream, with one entry per document and in
            the same order.
        """

        return self._bulk_operation(
            operation_name="update_documents",
            http_method=HttpMethod.PATCH,
            items=_bulk_items(documents, documents_only=True),
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                keep_null=keep_null,
                merge_objects=merge_objects,
                ignore_revs=ignore_revs,
            ),
            silent=bool(silent),
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    def replace_documents(
        self,
        documents: Iterable[DocumentType],
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Replace several documents with a single request. Each document
        must carry the "_key" of the document to replace.

        The parameters have the same meaning as for `replace_document`.

        Returns:
            a BatchResultStream, with one entry per document and in
            the same order.
        """

        return self._bulk_operation(
            operation_name="replace_documents",
            http_method=HttpMethod.PUT,
            items=_bulk_items(documents, documents_only=True),
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                ignore_revs=ignore_revs,
            ),
            silent=bool(silent),
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    def delete_documents(
        self,
        keys_or_documents: Iterable[KeyOrDocument],
        *,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Delete several documents with a single request.

        Args:
            keys_or_documents: a list of document keys, or of documents
                with a "_key" field.
            return_old: whether to return the deleted documents (as `old`).
            silent: if True, the server reports only the failed items.
            wait_for_sync: whether to wait until the deletions are synced to disk.
            ignore_revs: if False, documents with a "_rev" are deleted only if
                the stored revision matches.
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
                (This method issues a single API request, hence all timeout parameters
                are treated the same.)
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            a BatchResultStream, with one entry per key and in the same order.
            Keys not found are error entries and do not stop the stream.

        Example:
            >>> stream = my_coll.delete_documents(["k1", "missing", "k3"])
            >>> [(entry.key, entry.is_error) for entry in stream]
            [('k1', False), ('', True), ('k3', False)]
        """

        return self._bulk_operation(
            operation_name="delete_documents",
            http_method=HttpMethod.DELETE,
            items=_bulk_items(keys_or_documents, documents_only=False),
            request_params=_write_params(
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                ignore_revs=ignore_revs,
            ),
            silent=bool(silent),
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    def shards(
        self,
        *,
        details: bool = False,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> CollectionShardsInfo:
        """
        Get the shards of this collection. This is available on clusters only.

        Args:
            details: whether to also retrieve the servers responsible for
                each shard.
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
                (This method issues a single API request, hence all timeout parameters
                are treated the same.)
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            a CollectionShardsInfo.

        Example:
            >>> my_coll.shards().shard_ids
            ['s1001', 's1002', 's1003']
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"getting shards for '{self.name}'")
        sh_response = self._collection_api_commander.request(
            http_method=HttpMethod.GET,
            additional_path="shards",
            request_params=to_request_params(details=details),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished getting shards for '{self.name}'")
        return _shards_from_response(sh_response)

    def shard_router(
        self,
        shard_ids: Iterable[str],
        *,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ShardRouter:
        """
        Create a ShardRouter for this collection, validating the shard
        identifiers against the actual shards of the collection (this
        involves an API request).

        Args:
            shard_ids: the shard identifiers to restrict queries to.
            general_method_timeout_ms: a timeout, in milliseconds, for the
                underlying API request.
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            a ShardRouter, to be passed to the `query` method of the database.

        Raises:
            InvalidShardIdentifierException: if any of the identifiers is
                not a shard of this collection.
        """

        shards_info = self.shards(
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        return ShardRouter(shard_ids, known_shard_ids=shards_info.shard_ids)

    def count(
        self,
        *,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> int:
        """
        Count the documents in the collection.

        Args:
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
                (This method issues a single API request, hence all timeout parameters
                are treated the same.)
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.

        Returns:
            the number of documents in the collection.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"counting documents in '{self.name}'")
        ct_response = self._collection_api_commander.request(
            http_method=HttpMethod.GET,
            additional_path="count",
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished counting documents in '{self.name}'")
        return _count_from_response(ct_response)

    def truncate(
        self,
        *,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        """
        Delete all documents in the collection.

        Args:
            general_method_timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.
            request_timeout_ms: an alias for `general_method_timeout_ms`.
            timeout_ms: an alias for `general_method_timeout_ms`.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"truncating '{self.name}'")
        self._collection_api_commander.request(
            http_method=HttpMethod.PUT,
            additional_path="truncate",
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished truncating '{self.name}'")


class AsyncCollection:
    """
    A collection on an ArangoDB database: the object for reading and writing
    documents, one at a time or many in a single request.
    This class has an asynchronous interface.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_collection` of AsyncDatabase.
    Its methods mirror those of `Collection`, as coroutines.

    Args:
        database: an AsyncDatabase object, instantiated earlier. This represents
            the database the collection belongs to.
        name: the collection name.
        api_options: a complete specification of the API Options for this instance.

    Example:
        >>> my_async_coll = my_async_db.get_collection("my_collection")
        >>> asyncio.run(my_async_coll.count())
        41
    """

    def __init__(
        self,
        *,
        database: AsyncDatabase,
        name: str,
        api_options: FullAPIOptions,
    ) -> None:
        self.api_options = api_options
        self._name = name
        self._database = database._copy(api_options=self.api_options)
        self._commander_headers = self._database._commander_headers
        self._api_commander = self._get_api_commander()
        self._collection_api_commander = self._get_collection_api_commander()

    def __repr__(self) -> str:
        _db_desc = f'database.name="{self.database.name}"'
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f"{_db_desc}, api_options={self.api_options})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AsyncCollection):
            return all(
                [
                    self._name == other._name,
                    self._database == other._database,
                    self.api_options == other.api_options,
                ]
            )
        else:
            return False

    def __call__(self, *pargs: Any, **kwargs: Any) -> None:
        raise TypeError(
            f"'{self.__class__.__name__}' object is not callable. If you "
            f"meant to call the '{self.name}' method on a "
            f"'{self.database.__class__.__name__}' object "
            "it is failing because no such method exists."
        )

    def _get_api_commander(self) -> APICommander:
        """Instantiate a new APICommander for the document endpoints."""

        return APICommander(
            api_endpoint=self._database.api_endpoint,
            path="/".join(
                [
                    DATABASE_PATH_TEMPLATE.format(
                        database=quote(self._database.name, safe="")
                    ),
                    DOCUMENT_API_PATH,
                    quote(self._name, safe=""),
                ]
            ),
            headers=self._commander_headers,
            callers=self.api_options.callers,
            redacted_header_names=self.api_options.redacted_header_names,
        )

    def _get_collection_api_commander(self) -> APICommander:
        """Instantiate a new APICommander for the collection endpoints."""

        return self._api_commander._copy(
            path="/".join(
                [
                    DATABASE_PATH_TEMPLATE.format(
                        database=quote(self._database.name, safe="")
                    ),
                    COLLECTION_API_PATH,
                    quote(self._name, safe=""),
                ]
            ),
        )

    async def __aenter__(self) -> AsyncCollection:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        if self._api_commander is not None:
            await self._api_commander.__aexit__(
                exc_type=exc_type,
                exc_value=exc_value,
                traceback=traceback,
            )
        if self._collection_api_commander is not None:
            await self._collection_api_commander.__aexit__(
                exc_type=exc_type,
                exc_value=exc_value,
                traceback=traceback,
            )

    def _copy(
        self,
        *,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncCollection:
        final_api_options = self.api_options.with_override(api_options)
        return AsyncCollection(
            database=self.database,
            name=self.name,
            api_options=final_api_options,
        )

    def with_options(
        self,
        *,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncCollection:
        """
        Create a clone of this collection with some changed attributes.

        Args:
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).

        Returns:
            a new AsyncCollection instance.
        """

        return self._copy(api_options=api_options)

    def to_sync(
        self,
        *,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> Collection:
        """
        Create a Collection from this one. Save for the arguments
        explicitly provided as overrides, everything else is kept identical
        to this collection in the copy (the database is converted into
        a sync object).

        Args:
            api_options: any additional options to set for the result, in the form of
                an APIOptions instance (where one can set just the needed attributes).

        Returns:
            the new copy, a Collection instance.
        """

        return Collection(
            database=self.database.to_sync(),
            name=self.name,
            api_options=self.api_options.with_override(api_options),
        )

    @property
    def database(self) -> AsyncDatabase:
        """a AsyncDatabase object, the database this collection belongs to."""

        return self._database

    @property
    def name(self) -> str:
        """The name of this collection."""

        return self._name

    @property
    def full_name(self) -> str:
        """
        The fully-qualified collection name within the database,
        in the form "database.collection".
        """

        return f"{self.database.name}.{self.name}"

    async def _document_request(
        self,
        *,
        http_method: str,
        payload: Any = None,
        key_or_document: KeyOrDocument | None = None,
        request_params: dict[str, Any] = {},
        timeout_context: _TimeoutContext,
        raise_api_errors: bool = True,
    ) -> Any:
        return await self._api_commander.async_request(
            http_method=http_method,
            payload=payload,
            additional_path=(
                None if key_or_document is None else _key_path(key_or_document)
            ),
            request_params=request_params,
            timeout_context=timeout_context,
            raise_api_errors=raise_api_errors,
        )

    async def read_document(
        self,
        key_or_document: KeyOrDocument,
        *,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Read a document by its key. See `Collection.read_document`.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"read_document on '{self.name}'")
        rd_response = await self._document_request(
            http_method=HttpMethod.GET,
            key_or_document=key_or_document,
            raise_api_errors=False,
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished read_document on '{self.name}'")
        return decode_single(rd_response, entry_is_document=True).entry

    async def create_document(
        self,
        document: DocumentType,
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        overwrite_mode: str | None = None,
        keep_null: bool | None = None,
        merge_objects: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Create a single document in the collection.
        See `Collection.create_document`.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"create_document on '{self.name}'")
        cd_response = await self._document_request(
            http_method=HttpMethod.POST,
            payload=document,
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                overwrite_mode=overwrite_mode,
                keep_null=keep_null,
                merge_objects=merge_objects,
            ),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished create_document on '{self.name}'")
        return decode_single(cd_response, silent=bool(silent)).entry

    async def update_document(
        self,
        document: DocumentType,
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        keep_null: bool | None = None,
        merge_objects: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Partially update a document. See `Collection.update_document`.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"update_document on '{self.name}'")
        ud_response = await self._document_request(
            http_method=HttpMethod.PATCH,
            payload=document,
            key_or_document=document,
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                keep_null=keep_null,
                merge_objects=merge_objects,
                ignore_revs=ignore_revs,
            ),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished update_document on '{self.name}'")
        return decode_single(ud_response, silent=bool(silent)).entry

    async def replace_document(
        self,
        document: DocumentType,
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Replace a document entirely. See `Collection.replace_document`.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"replace_document on '{self.name}'")
        rd_response = await self._document_request(
            http_method=HttpMethod.PUT,
            payload=document,
            key_or_document=document,
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                ignore_revs=ignore_revs,
            ),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished replace_document on '{self.name}'")
        return decode_single(rd_response, silent=bool(silent)).entry

    async def delete_document(
        self,
        key_or_document: KeyOrDocument,
        *,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ResultEntry:
        """
        Delete a document by its key. See `Collection.delete_document`.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"delete_document on '{self.name}'")
        dd_response = await self._document_request(
            http_method=HttpMethod.DELETE,
            key_or_document=key_or_document,
            request_params=_write_params(
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
            ),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished delete_document on '{self.name}'")
        return decode_single(dd_response, silent=bool(silent)).entry

    async def _bulk_operation(
        self,
        *,
        operation_name: str,
        http_method: str,
        items: list[KeyOrDocument],
        request_params: dict[str, Any],
        silent: bool,
        entry_is_document: bool = False,
        general_method_timeout_ms: int | None,
        request_timeout_ms: int | None,
        timeout_ms: int | None,
    ) -> BatchResultStream:
        if not items:
            return BatchResultStream([])
        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"{operation_name} on '{self.name}' ({len(items)} items)")
        bulk_response = await self._document_request(
            http_method=http_method,
            payload=items,
            request_params=request_params,
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished {operation_name} on '{self.name}'")
        return BatchResultStream._from_envelope(
            decode_bulk(
                bulk_response,
                expected_count=len(items),
                silent=silent,
                entry_is_document=entry_is_document,
            )
        )

    async def read_documents(
        self,
        keys_or_documents: Iterable[KeyOrDocument],
        *,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Read several documents with a single request.
        See `Collection.read_documents`.
        """

        return await self._bulk_operation(
            operation_name="read_documents",
            http_method=HttpMethod.PUT,
            items=_bulk_items(keys_or_documents, documents_only=False),
            request_params=to_request_params(onlyget=True, ignoreRevs=ignore_revs),
            silent=False,
            entry_is_document=True,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    async def create_documents(
        self,
        documents: Iterable[DocumentType],
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        overwrite_mode: str | None = None,
        keep_null: bool | None = None,
        merge_objects: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Create several documents with a single request.
        See `Collection.create_documents`.
        """

        return await self._bulk_operation(
            operation_name="create_documents",
            http_method=HttpMethod.POST,
            items=_bulk_items(documents, documents_only=True),
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                overwrite_mode=overwrite_mode,
                keep_null=keep_null,
                merge_objects=merge_objects,
            ),
            silent=bool(silent),
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    async def update_documents(
        self,
        documents: Iterable[DocumentType],
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        keep_null: bool | None = None,
        merge_objects: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Partially update several documents with a single request.
        See `Collection.update_documents`.
        """

        return await self._bulk_operation(
            operation_name="update_documents",
            http_method=HttpMethod.PATCH,
            items=_bulk_items(documents, documents_only=True),
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                keep_null=keep_null,
                merge_objects=merge_objects,
                ignore_revs=ignore_revs,
            ),
            silent=bool(silent),
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    async def replace_documents(
        self,
        documents: Iterable[DocumentType],
        *,
        return_new: bool | None = None,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Replace several documents with a single request.
        See `Collection.replace_documents`.
        """

        return await self._bulk_operation(
            operation_name="replace_documents",
            http_method=HttpMethod.PUT,
            items=_bulk_items(documents, documents_only=True),
            request_params=_write_params(
                return_new=return_new,
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                ignore_revs=ignore_revs,
            ),
            silent=bool(silent),
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    async def delete_documents(
        self,
        keys_or_documents: Iterable[KeyOrDocument],
        *,
        return_old: bool | None = None,
        silent: bool | None = None,
        wait_for_sync: bool | None = None,
        ignore_revs: bool | None = None,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> BatchResultStream:
        """
        Delete several documents with a single request.
        See `Collection.delete_documents`.
        """

        return await self._bulk_operation(
            operation_name="delete_documents",
            http_method=HttpMethod.DELETE,
            items=_bulk_items(keys_or_documents, documents_only=False),
            request_params=_write_params(
                return_old=return_old,
                silent=silent,
                wait_for_sync=wait_for_sync,
                ignore_revs=ignore_revs,
            ),
            silent=bool(silent),
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )

    async def shards(
        self,
        *,
        details: bool = False,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> CollectionShardsInfo:
        """
        Get the shards of this collection. See `Collection.shards`.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"getting shards for '{self.name}'")
        sh_response = await self._collection_api_commander.async_request(
            http_method=HttpMethod.GET,
            additional_path="shards",
            request_params=to_request_params(details=details),
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished getting shards for '{self.name}'")
        return _shards_from_response(sh_response)

    async def shard_router(
        self,
        shard_ids: Iterable[str],
        *,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> ShardRouter:
        """
        Create a ShardRouter for this collection, validating the shard
        identifiers against the actual shards of the collection.
        See `Collection.shard_router`.
        """

        shards_info = await self.shards(
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        return ShardRouter(shard_ids, known_shard_ids=shards_info.shard_ids)

    async def count(
        self,
        *,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> int:
        """
        Count the documents in the collection.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"counting documents in '{self.name}'")
        ct_response = await self._collection_api_commander.async_request(
            http_method=HttpMethod.GET,
            additional_path="count",
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished counting documents in '{self.name}'")
        return _count_from_response(ct_response)

    async def truncate(
        self,
        *,
        general_method_timeout_ms: int | None = None,
        request_timeout_ms: int | None = None,
        timeout_ms: int | None = None,
    ) -> None:
        """
        Delete all documents in the collection.
        """

        _request_timeout_ms, _rt_label = _select_singlereq_timeout_gm(
            timeout_options=self.api_options.timeout_options,
            general_method_timeout_ms=general_method_timeout_ms,
            request_timeout_ms=request_timeout_ms,
            timeout_ms=timeout_ms,
        )
        logger.info(f"truncating '{self.name}'")
        await self._collection_api_commander.async_request(
            http_method=HttpMethod.PUT,
            additional_path="truncate",
            timeout_context=_TimeoutContext(
                request_ms=_request_timeout_ms, label=_rt_label
            ),
        )
        logger.info(f"finished truncating '{self.name}'")
