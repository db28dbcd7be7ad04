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
from typing import Any

import httpx

from arangopy.exceptions.error_descriptors import ArangoErrorDescriptor


class ArangoException(Exception):
    """
    Any exception occurred while issuing requests to the server
    and specific to it, such as:
      - a document is not found when reading it,
      - the API returns a response flagged as an error,
      - a response cannot be parsed into the expected shape,
      - a request cannot be sent or times out.
    """

    pass


@dataclass
class ArangoResponseException(ArangoException):
    """
    The server returned an HTTP 2xx ("success") response, whose body
    however is flagged as an error (`"error": true`).

    Attributes:
        text: a text message about the exception.
        command: the payload to the API that led to the response.
        raw_response: the full response from the API.
        error_descriptors: a list of ArangoErrorDescriptor found in the response.
    """

    text: str | None
    command: Any
    raw_response: dict[str, Any]
    error_descriptors: list[ArangoErrorDescriptor]

    def __init__(
        self,
        text: str | None,
        *,
        command: Any,
        raw_response: dict[str, Any],
        error_descriptors: list[ArangoErrorDescriptor],
    ) -> None:
        super().__init__(text)
        self.text = text
        self.command = command
        self.raw_response = raw_response
        self.error_descriptors = error_descriptors

    @staticmethod
    def from_response(
        *,
        command: Any,
        raw_response: dict[str, Any],
        **kwargs: Any,
    ) -> ArangoResponseException:
        """Parse a raw response from the API into this exception."""

        error_descriptors = [ArangoErrorDescriptor(raw_response or {})]
        text = error_descriptors[0].summary()

        return ArangoResponseException(
            text,
            command=command,
            raw_response=raw_response,
            error_descriptors=error_descriptors,
            **kwargs,
        )


@dataclass
class ArangoHttpException(ArangoException, httpx.HTTPStatusError):
    """
    A request to the server resulted in an HTTP 4xx or 5xx response.

    In most cases this comes with an error body (error number, message):
    the purpose of this class is to present such information in a structured
    way, while still raising (a subclass of) `httpx.HTTPStatusError`.

    Attributes:
        text: a text message about the exception.
        error_descriptors: a list of all ArangoErrorDescriptor objects
            found in the response.
    """

    text: str | None
    error_descriptors: list[ArangoErrorDescriptor]

    def __init__(
        self,
        text: str | None,
        *,
        httpx_error: httpx.HTTPStatusError,
        error_descriptors: list[ArangoErrorDescriptor],
    ) -> None:
        ArangoException.__init__(self, text)
        httpx.HTTPStatusError.__init__(
            self,
            message=str(httpx_error),
            request=httpx_error.request,
            response=httpx_error.response,
        )
        self.text = text
        self.httpx_error = httpx_error
        self.error_descriptors = error_descriptors

    def __str__(self) -> str:
        return self.text or str(self.httpx_error)

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @classmethod
    def from_httpx_error(
        cls,
        httpx_error: httpx.HTTPStatusError,
        **kwargs: Any,
    ) -> ArangoHttpException:
        """Parse a httpx status error into this exception."""

        raw_response: Any
        # the attempt to extract a response structure cannot afford failure.
        try:
            raw_response = httpx_error.response.json() or {}
        except Exception:
            raw_response = {}
        error_descriptors: list[ArangoErrorDescriptor]
        if isinstance(raw_response, dict) and (
            "errorNum" in raw_response or "errorMessage" in raw_response
        ):
            error_descriptors = [ArangoErrorDescriptor(raw_response)]
        else:
            error_descriptors = []
        if error_descriptors:
            text = f"{error_descriptors[0].summary()}. {str(httpx_error)}"
        else:
            text = str(httpx_error)

        return cls(
            text=text,
            httpx_error=httpx_error,
            error_descriptors=error_descriptors,
            **kwargs,
        )


@dataclass
class ArangoTimeoutException(ArangoException):
    """
    An operation timed out. This can be a request timeout occurring
    during a specific HTTP request, or can happen over the course of a method
    involving several requests in a row, such as reading through a query cursor.

    Attributes:
        text: a textual description of the error
        timeout_type: this denotes the phase of the HTTP request when the event
            occurred ("connect", "read", "write", "pool") or "generic" if there is
            not a specific request associated to the exception.
        endpoint: if the timeout is tied to a specific request, this is the
            URL that the request was targeting.
        raw_payload:  if the timeout is tied to a specific request, this is the
            associated payload (as a string).
    """

    text: str
    timeout_type: str
    endpoint: str | None
    raw_payload: str | None

    def __init__(
        self,
        text: str,
        *,
        timeout_type: str,
        endpoint: str | None,
        raw_payload: str | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.timeout_type = timeout_type
        self.endpoint = endpoint
        self.raw_payload = raw_payload


@dataclass
class ArangoTransportException(ArangoException):
    """
    A request could not be sent, or no response was received for it
    (e.g. connection refused, connection reset by peer).
    Timeouts are reported as ArangoTimeoutException instead.

    Attributes:
        text: a textual description of the error.
        endpoint: the URL that the request was targeting, if known.
    """

    text: str
    endpoint: str | None

    def __init__(
        self,
        text: str,
        *,
        endpoint: str | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.endpoint = endpoint


@dataclass
class UnexpectedArangoResponseException(ArangoException):
    """
    The server response is malformed in that it does not have
    expected field(s), or they are of the wrong type, or it cannot
    be parsed at all.

    Attributes:
        text: a text message about the exception.
        raw_response: the response returned by the API, in whatever form
            it could be obtained.
    """

    text: str
    raw_response: Any

    def __init__(
        self,
        text: str,
        raw_response: Any,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.raw_response = raw_response
