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
from typing import Iterable, Sequence

from arangopy.authentication import (
    StaticTokenProvider,
    TokenProvider,
    coerce_possible_token_provider,
)
from arangopy.constants import CallerType
from arangopy.settings.defaults import (
    DEFAULT_GENERAL_METHOD_TIMEOUT_MS,
    DEFAULT_QUERY_BATCH_SIZE,
    DEFAULT_REDACTED_HEADER_NAMES,
    DEFAULT_REQUEST_TIMEOUT_MS,
    FIXED_SECRET_PLACEHOLDER,
)
from arangopy.utils.unset import _UNSET, UnsetType


@dataclass
class TimeoutOptions:
    """
    The group of settings for the API Options concerning the configured timeouts
    for the operations toward the database.

    All timeout values are integers expressed in milliseconds. A timeout of zero
    signifies that no timeout is imposed at all on that kind of operation.

    All methods that issue HTTP requests allow for a per-invocation override
    of the relevant timeouts involved (see the method docstring and signature
    for details).

    This class is used to override default settings when creating objects such
    as ArangoClient, Database and Collection. Values that are left
    unspecified will keep the values inherited from the parent "spawner" class.
    See the `APIOptions` master object for more information.

    Attributes:
        request_timeout_ms: the timeout imposed on a single HTTP request,
            including each of the batch fetches of a query cursor.
            Defaults to 10 s.
        general_method_timeout_ms: a timeout to use on the overall duration of a
            method invocation. For single-request methods (such as
            `read_document` or `delete_documents`) this coincides with
            `request_timeout_ms`: in that case, the minimum value of the two is
            used to limit the request duration. Query cursors, which possibly issue
            several HTTP requests, are not bound by it: they accept a separate
            `overall_timeout_ms` at query time. Defaults to 30 s.
    """

    request_timeout_ms: int | UnsetType = _UNSET
    general_method_timeout_ms: int | UnsetType = _UNSET


@dataclass
class FullTimeoutOptions(TimeoutOptions):
    """
    The group of settings for the API Options concerning the configured timeouts
    for the operations toward the database.

    This is the "full" version of the class, with the guarantee that all of its
    members have defined values. As such, this is what classes such as ArangoClient,
    Database and Collection have in their `.api_options` attribute -- as opposed
    to the (non-full) `TimeoutOptions` counterpart class: the latter admits "unset"
    attributes and is used to override specific settings.

    Attributes:
        request_timeout_ms: the timeout imposed on a single HTTP request.
            Defaults to 10 s.
        general_method_timeout_ms: a timeout to use on the overall duration of a
            method invocation. Defaults to 30 s.
    """

    request_timeout_ms: int
    general_method_timeout_ms: int

    def __init__(
        self,
        *,
        request_timeout_ms: int,
        general_method_timeout_ms: int,
    ) -> None:
        TimeoutOptions.__init__(
            self,
            request_timeout_ms=request_timeout_ms,
            general_method_timeout_ms=general_method_timeout_ms,
        )

    def with_override(self, other: TimeoutOptions) -> FullTimeoutOptions:
        """
        Given an "overriding" set of options, possibly not defined in all its
        attributes, apply the override logic and return a new full options object.

        Args:
            other: a not-necessarily-fully-specified options object. All its defined
                settings take precedence.
        """

        return FullTimeoutOptions(
            request_timeout_ms=(
                other.request_timeout_ms
                if not isinstance(other.request_timeout_ms, UnsetType)
                else self.request_timeout_ms
            ),
            general_method_timeout_ms=(
                other.general_method_timeout_ms
                if not isinstance(other.general_method_timeout_ms, UnsetType)
                else self.general_method_timeout_ms
            ),
        )


@dataclass
class APIOptions:
    """
    This class represents all settings that can be configured for how arangopy
    interacts with the database HTTP API. Each object in the abstraction hierarchy
    (ArangoClient, Database, Collection) has a full set of these options that
    determine how it behaves when performing actions toward the API.

    In order to customize the behavior from its preset defaults, one should create
    an `APIOptions` object and pass it as the `api_options` argument to the
    ArangoClient constructor, or as `spawn_api_options` to `get_database` and
    `get_collection`, or to any of the `.with_options` and `.to_[a]sync` methods.
    The APIOptions object passed as argument can define zero, some or all of its
    members, overriding the corresponding settings and keeping, for all unspecified
    settings, the values inherited from the object whose method is invoked.

    With the exception of the "database additional headers" and the "redacted
    header names", which are merged with the inherited ones, the override logic
    is the following: if an override is provided (even if it is None), it
    completely replaces the inherited value.

    Attributes:
        callers: an iterable of (caller_name, caller_version) pairs identifying
            the application, or the stack of applications, using arangopy.
            These are sent as part of the User-Agent header.
        database_additional_headers: free-form dictionary of additional headers
            to send with every request. A None value suppresses the header.
        redacted_header_names: a set of header names (case-insensitive) whose
            value is to be masked when logging. The Authorization header is
            always redacted.
        token: a string (a JWT) or a TokenProvider instance to authenticate
            the requests to the database.
        timeout_options: an instance of `TimeoutOptions`.
        query_batch_size: the batch size for query cursors, used whenever a
            `query` invocation does not specify one. Defaults to 1000.

    Example:
        >>> from arangopy import ArangoClient
        >>> from arangopy.utils.api_options import APIOptions, TimeoutOptions
        >>>
        >>> my_client = ArangoClient(
        ...     "http://localhost:8529",
        ...     api_options=APIOptions(
        ...         callers=[("my_app", "1.0")],
        ...         timeout_options=TimeoutOptions(request_timeout_ms=5000),
        ...     ),
        ... )
        >>> my_database = my_client.get_database(
        ...     "my_db",
        ...     spawn_api_options=APIOptions(query_batch_size=50),
        ... )
    """

    callers: Sequence[CallerType] | UnsetType = _UNSET
    database_additional_headers: dict[str, str | None] | UnsetType = _UNSET
    redacted_header_names: set[str] | UnsetType = _UNSET
    token: TokenProvider | UnsetType = _UNSET
    timeout_options: TimeoutOptions | UnsetType = _UNSET
    query_batch_size: int | UnsetType = _UNSET

    def __init__(
        self,
        *,
        callers: Sequence[CallerType] | UnsetType = _UNSET,
        database_additional_headers: dict[str, str | None] | UnsetType = _UNSET,
        redacted_header_names: Iterable[str] | UnsetType = _UNSET,
        token: str | TokenProvider | UnsetType = _UNSET,
        timeout_options: TimeoutOptions | UnsetType = _UNSET,
        query_batch_size: int | UnsetType = _UNSET,
    ) -> None:
        # Special conversions and type coercions occur here
        self.callers = callers
        self.database_additional_headers = database_additional_headers
        self.redacted_header_names = (
            _UNSET
            if isinstance(redacted_header_names, UnsetType)
            else set(redacted_header_names)
        )
        self.token = coerce_possible_token_provider(token)
        self.timeout_options = timeout_options
        self.query_batch_size = query_batch_size

    def __repr__(self) -> str:
        # special items
        _redacted_header_names = (
            set()
            if isinstance(self.redacted_header_names, UnsetType)
            else {h_n.lower() for h_n in self.redacted_header_names}
        )
        _database_additional_headers: dict[str, str | None] | UnsetType
        if not isinstance(self.database_additional_headers, UnsetType):
            _database_additional_headers = {
                k: v
                if k.lower() not in _redacted_header_names
                else FIXED_SECRET_PLACEHOLDER
                for k, v in self.database_additional_headers.items()
            }
        else:
            _database_additional_headers = _UNSET
        _token_desc: str | None
        if not isinstance(self.token, UnsetType) and self.token:
            _token_desc = f"token={self.token}"
        else:
            _token_desc = None

        non_unset_pieces = [
            pc
            for pc in (
                None
                if isinstance(self.callers, UnsetType)
                else f"callers={self.callers}",
                None
                if isinstance(_database_additional_headers, UnsetType)
                else f"database_additional_headers={_database_additional_headers}",
                None
                if isinstance(self.redacted_header_names, UnsetType)
                else f"redacted_header_names={self.redacted_header_names}",
                _token_desc,
                None
                if isinstance(self.timeout_options, UnsetType)
                else f"timeout_options={self.timeout_options}",
                None
                if isinstance(self.query_batch_size, UnsetType)
                else f"query_batch_size={self.query_batch_size}",
            )
            if pc is not None
        ]
        inner_desc = ", ".join(non_unset_pieces)
        return f"{self.__class__.__name__}({inner_desc})"


@dataclass
class FullAPIOptions(APIOptions):
    """
    This class represents the "full" set of API Options: all its members are
    guaranteed to have a defined value. This is what the objects in the hierarchy
    (ArangoClient, Database, Collection) carry in their `.api_options` attribute.
    See the `APIOptions` class for a description of the individual settings.
    """

    callers: Sequence[CallerType]
    database_additional_headers: dict[str, str | None]
    redacted_header_names: set[str]
    token: TokenProvider
    timeout_options: FullTimeoutOptions
    query_batch_size: int

    def __init__(
        self,
        *,
        callers: Sequence[CallerType],
        database_additional_headers: dict[str, str | None],
        redacted_header_names: set[str],
        token: str | TokenProvider,
        timeout_options: FullTimeoutOptions,
        query_batch_size: int,
    ) -> None:
        APIOptions.__init__(
            self,
            callers=callers,
            database_additional_headers=database_additional_headers,
            redacted_header_names=redacted_header_names,
            token=token,
            timeout_options=timeout_options,
            query_batch_size=query_batch_size,
        )

    def __repr__(self) -> str:
        _token_desc: str | None
        if self.token:
            _token_desc = f"token={self.token}"
        else:
            _token_desc = None

        non_unset_pieces = [
            pc
            for pc in (
                _token_desc,
                f"query_batch_size={self.query_batch_size}",
                "...",
            )
            if pc is not None
        ]
        inner_desc = ", ".join(non_unset_pieces)
        return f"{self.__class__.__name__}({inner_desc})"

    def with_override(self, other: APIOptions | None | UnsetType) -> FullAPIOptions:
        """
        Given an "overriding" set of options, possibly not defined in all its
        attributes, apply the override logic and return a new full options object.

        The override logic is such that defined attributes completely replace the
        pre-existing ones, except for the case of `database_additional_headers`
        and `redacted_header_names`, in which cases merging takes place.

        Args:
            other: a not-necessarily-fully-specified options object. All its defined
                settings take precedence.
        """

        if isinstance(other, UnsetType) or other is None:
            return self

        database_additional_headers: dict[str, str | None]
        redacted_header_names: set[str]
        timeout_options: FullTimeoutOptions

        if isinstance(other.database_additional_headers, UnsetType):
            database_additional_headers = self.database_additional_headers
        else:
            database_additional_headers = {
                **self.database_additional_headers,
                **other.database_additional_headers,
            }
        if isinstance(other.redacted_header_names, UnsetType):
            redacted_header_names = self.redacted_header_names
        else:
            redacted_header_names = (
                self.redacted_header_names | other.redacted_header_names
            )

        if isinstance(other.timeout_options, TimeoutOptions):
            timeout_options = self.timeout_options.with_override(other.timeout_options)
        else:
            timeout_options = self.timeout_options

        return FullAPIOptions(
            callers=(
                other.callers
                if not isinstance(other.callers, UnsetType)
                else self.callers
            ),
            database_additional_headers=database_additional_headers,
            redacted_header_names=redacted_header_names,
            token=other.token if not isinstance(other.token, UnsetType) else self.token,
            timeout_options=timeout_options,
            query_batch_size=(
                other.query_batch_size
                if not isinstance(other.query_batch_size, UnsetType)
                else self.query_batch_size
            ),
        )


defaultTimeoutOptions = FullTimeoutOptions(
    request_timeout_ms=DEFAULT_REQUEST_TIMEOUT_MS,
    general_method_timeout_ms=DEFAULT_GENERAL_METHOD_TIMEOUT_MS,
)


def defaultAPIOptions() -> FullAPIOptions:
    """
    Return the default APIOptions object, based on 'grand defaults'
    hardcoded in arangopy.
    """

    return FullAPIOptions(
        callers=[],
        database_additional_headers={},
        redacted_header_names=set(DEFAULT_REDACTED_HEADER_NAMES),
        token=StaticTokenProvider(None),
        timeout_options=defaultTimeoutOptions,
        query_batch_size=DEFAULT_QUERY_BATCH_SIZE,
    )
