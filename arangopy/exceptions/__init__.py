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

import time
from dataclasses import dataclass

import httpx

from arangopy.exceptions.arango_api_exceptions import (
    ArangoException,
    ArangoHttpException,
    ArangoResponseException,
    ArangoTimeoutException,
    ArangoTransportException,
    UnexpectedArangoResponseException,
)
from arangopy.exceptions.error_descriptors import ArangoErrorDescriptor
from arangopy.exceptions.stream_exceptions import (
    CursorException,
    InvalidShardIdentifierException,
    ItemFailureException,
    NoMoreDocumentsException,
)
from arangopy.settings.defaults import ARANGO_ERROR_DOCUMENT_NOT_FOUND, HTTP_NOT_FOUND
from arangopy.utils.api_options import FullTimeoutOptions


def _min_labeled_timeout(
    *timeouts: tuple[int | None, str | None],
) -> tuple[int, str | None]:
    _non_null: list[tuple[int, str | None]] = [
        to  # type: ignore[misc]
        for to in timeouts
        if to[0] is not None
    ]
    if _non_null:
        min_to, min_lb = min(_non_null, key=lambda p: p[0])
        # min_to is never None, this is for added robustness
        return (min_to or 0, min_lb)
    else:
        return (0, None)


def _select_singlereq_timeout_gm(
    *,
    timeout_options: FullTimeoutOptions,
    general_method_timeout_ms: int | None,
    request_timeout_ms: int | None = None,
    timeout_ms: int | None = None,
) -> tuple[int, str | None]:
    """
    Apply the logic for determining and labeling the timeout for
    single-request methods.

    If no int args are passed, pick (and correctly label) the least of the
    involved parameters.
    If any of the int args are passed, pick (and correctly labeled) the least
    of them, disregarding the options altogether.
    """
    if all(
        iarg is None
        for iarg in (general_method_timeout_ms, request_timeout_ms, timeout_ms)
    ):
        ao_r = timeout_options.request_timeout_ms
        ao_gm = timeout_options.general_method_timeout_ms
        if ao_r < ao_gm:
            return (ao_r, "request_timeout_ms")
        else:
            return (ao_gm, "general_method_timeout_ms")
    else:
        return _min_labeled_timeout(
            (general_method_timeout_ms, "general_method_timeout_ms"),
            (request_timeout_ms, "request_timeout_ms"),
            (timeout_ms, "timeout_ms"),
        )


def _first_valid_timeout(
    *items: tuple[int | None, str | None],
) -> tuple[int, str | None]:
    # items are: (timeout ms, label)
    not_nulls = [itm for itm in items if itm[0] is not None]
    if not_nulls:
        return not_nulls[0]  # type: ignore[return-value]
    else:
        # If no non-nulls provided, return zero
        # (a timeout of zero will stand for 'no timeout' later on to the request).
        return 0, None


def is_no_more_documents(exc: BaseException | None) -> bool:
    """Whether the exception is the exhaustion signal of a result stream."""
    return isinstance(exc, NoMoreDocumentsException)


def is_not_found(exc: BaseException | None) -> bool:
    """
    Whether the exception (or the per-item failure) stands for a document,
    or another resource, that could not be found.
    """
    if isinstance(exc, ItemFailureException):
        return exc.error_descriptor.error_num == ARANGO_ERROR_DOCUMENT_NOT_FOUND
    if isinstance(exc, ArangoHttpException):
        if exc.status_code == HTTP_NOT_FOUND:
            return True
        return any(
            e_d.error_num == ARANGO_ERROR_DOCUMENT_NOT_FOUND
            for e_d in exc.error_descriptors
        )
    if isinstance(exc, ArangoResponseException):
        return any(
            e_d.error_num == ARANGO_ERROR_DOCUMENT_NOT_FOUND
            for e_d in exc.error_descriptors
        )
    return False


def to_arango_timeout_exception(
    httpx_timeout: httpx.TimeoutException,
    timeout_context: _TimeoutContext,
) -> ArangoTimeoutException:
    text: str
    text_0 = str(httpx_timeout) or "timed out"
    timeout_ms = timeout_context.nominal_ms or timeout_context.request_ms
    timeout_label = timeout_context.label
    if timeout_ms:
        if timeout_label:
            text = f"{text_0} (timeout honoured: {timeout_label} = {timeout_ms} ms)"
        else:
            text = f"{text_0} (timeout honoured: {timeout_ms} ms)"
    else:
        text = text_0
    if isinstance(httpx_timeout, httpx.ConnectTimeout):
        timeout_type = "connect"
    elif isinstance(httpx_timeout, httpx.ReadTimeout):
        timeout_type = "read"
    elif isinstance(httpx_timeout, httpx.WriteTimeout):
        timeout_type = "write"
    elif isinstance(httpx_timeout, httpx.PoolTimeout):
        timeout_type = "pool"
    else:
        timeout_type = "generic"
    endpoint: str | None
    raw_payload: str | None
    try:
        request = httpx_timeout.request
        endpoint = str(request.url)
        if isinstance(request.content, bytes):
            raw_payload = request.content.decode()
        else:
            raw_payload = None
    except RuntimeError:
        # the 'request' property raises if no request is attached
        endpoint = None
        raw_payload = None
    return ArangoTimeoutException(
        text=text,
        timeout_type=timeout_type,
        endpoint=endpoint,
        raw_payload=raw_payload,
    )


def to_arango_transport_exception(
    httpx_error: httpx.TransportError,
    request_url: str,
) -> ArangoTransportException:
    text_0 = str(httpx_error) or httpx_error.__class__.__name__
    return ArangoTransportException(
        text=f"{text_0} (while requesting {request_url})",
        endpoint=request_url,
    )


@dataclass
class _TimeoutContext:
    """
    This class encodes standardized "enriched information" attached to a timeout
    value to obey. This makes it possible, in case the timeout is raised, to present
    the user with a better error message detailing the name of the setting responsible
    for the timeout and the "nominal" value (which may not always coincide with the
    actual elapsed number of milliseconds because of cumulative timeouts spanning
    several HTTP requests).

    Args:
        nominal_ms: the original timeout in milliseconds that was ultimately set by
            the user.
        request_ms: the actual number of millisecond a given HTTP request was allowed
            to last. This may be smaller than `nominal_ms` because of timeouts imposed
            on a succession of requests.
        label: a string, providing the name of the timeout setting as known by the user.
    """

    nominal_ms: int | None
    request_ms: int | None
    label: str | None

    def __init__(
        self,
        *,
        request_ms: int | None,
        nominal_ms: int | None = None,
        label: str | None = None,
    ) -> None:
        self.nominal_ms = nominal_ms
        self.request_ms = request_ms
        self.label = label

    def __bool__(self) -> bool:
        return self.nominal_ms is not None or self.request_ms is not None


class MultiCallTimeoutManager:
    """
    A helper class to keep track of timing and timeouts
    in a multi-call method context, such as a query cursor
    fetching several batches in a row.

    Args:
        overall_timeout_ms: an optional max duration to track (milliseconds)
        timeout_label: a string label identifying the `overall_timeout_ms` in a way
            that is understood by the user who can set timeouts.

    Attributes:
        overall_timeout_ms: an optional max duration to track (milliseconds)
        started_ms: timestamp of the instance construction (milliseconds)
        deadline_ms: optional deadline in milliseconds (computed by the class).
        timeout_label: a string label identifying the `overall_timeout_ms` in a way
            that is understood by the user who can set timeouts.
    """

    overall_timeout_ms: int | None
    started_ms: int = -1
    deadline_ms: int | None
    timeout_label: str | None

    def __init__(
        self,
        overall_timeout_ms: int | None,
        timeout_label: str | None = None,
    ) -> None:
        self.started_ms = int(time.time() * 1000)
        self.timeout_label = timeout_label
        # zero timeouts provided internally are mapped to None for deadline mgmt:
        self.overall_timeout_ms = overall_timeout_ms or None
        if self.overall_timeout_ms is not None:
            self.deadline_ms = self.started_ms + self.overall_timeout_ms
        else:
            self.deadline_ms = None

    def remaining_timeout(
        self, cap_time_ms: int | None = None, cap_timeout_label: str | None = None
    ) -> _TimeoutContext:
        """
        Ensure the deadline, if any, is not yet in the past.
        If it is, raise an appropriate timeout error.
        If not, return either None (if no timeout) or the remaining milliseconds.
        For use within the multi-call method.

        Args:
            cap_time_ms: an additional timeout constraint to cap the result of
                this method. If the remaining timeout from this manager exceeds
                the provided cap, the cap is returned.
            cap_timeout_label: the label identifying the "cap timeout" if one is
                set. This is for the purpose of tracing the "lineage" of timeout
                settings in a way that is transparent to the user.

        Returns:
            A _TimeoutContext appropriately detailing the residual time an overall
            operation is allowed to last. Alternatively, the method may not return
            and raise an ArangoTimeoutException directly.
        """

        # a zero 'cap' must be treated as None:
        _cap_time_ms = cap_time_ms or None
        now_ms = int(time.time() * 1000)
        if self.deadline_ms is not None:
            if now_ms < self.deadline_ms:
                remaining = self.deadline_ms - now_ms
                if _cap_time_ms is None:
                    return _TimeoutContext(
                        nominal_ms=self.overall_timeout_ms,
                        request_ms=remaining,
                        label=self.timeout_label,
                    )
                else:
                    if remaining > _cap_time_ms:
                        return _TimeoutContext(
                            nominal_ms=_cap_time_ms,
                            request_ms=_cap_time_ms,
                            label=cap_timeout_label,
                        )
                    else:
                        return _TimeoutContext(
                            nominal_ms=self.overall_timeout_ms,
                            request_ms=remaining,
                            label=self.timeout_label,
                        )
            else:
                err_msg: str
                if self.timeout_label:
                    err_msg = (
                        f"Operation timed out (timeout honoured: {self.timeout_label} "
                        f"= {self.overall_timeout_ms} ms)."
                    )
                else:
                    err_msg = f"Operation timed out (timeout honoured: {self.overall_timeout_ms} ms)."
                raise ArangoTimeoutException(
                    text=err_msg,
                    timeout_type="generic",
                    endpoint=None,
                    raw_payload=None,
                )
        else:
            if _cap_time_ms is None:
                return _TimeoutContext(
                    nominal_ms=self.overall_timeout_ms,
                    request_ms=None,
                    label=self.timeout_label,
                )
            else:
                return _TimeoutContext(
                    nominal_ms=_cap_time_ms,
                    request_ms=_cap_time_ms,
                    label=cap_timeout_label,
                )


__all__ = [
    "ArangoErrorDescriptor",
    "ArangoException",
    "ArangoHttpException",
    "ArangoResponseException",
    "ArangoTimeoutException",
    "ArangoTransportException",
    "CursorException",
    "InvalidShardIdentifierException",
    "ItemFailureException",
    "MultiCallTimeoutManager",
    "NoMoreDocumentsException",
    "UnexpectedArangoResponseException",
    "is_no_more_documents",
    "is_not_found",
]

__pdoc__ = {
    "to_arango_timeout_exception": False,
    "to_arango_transport_exception": False,
    "MultiCallTimeoutManager": False,
}
