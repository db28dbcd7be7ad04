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

import json
import logging
from types import TracebackType
from typing import Any, Iterable, Sequence

import httpx

from arangopy.constants import CallerType
from arangopy.exceptions import (
    ArangoHttpException,
    ArangoResponseException,
    UnexpectedArangoResponseException,
    _TimeoutContext,
    to_arango_timeout_exception,
    to_arango_transport_exception,
)
from arangopy.settings.defaults import (
    DEFAULT_REDACTED_HEADER_NAMES,
    FIXED_SECRET_PLACEHOLDER,
)
from arangopy.utils.request_tools import (
    HttpMethod,
    log_httpx_request,
    log_httpx_response,
    to_httpx_timeout,
)
from arangopy.utils.user_agents import (
    compose_full_user_agent,
    detect_arangopy_user_agent,
)

user_agent_arangopy = detect_arangopy_user_agent()

logger = logging.getLogger(__name__)


class APICommander:
    """
    The transport gateway toward the database HTTP API: it executes one logical
    request (URL composition, headers, JSON encoding, timeout) and returns the
    parsed JSON body, which can be a dictionary or a list.

    Failures are converted into the arangopy exception hierarchy:
    timeouts become ArangoTimeoutException, other failures to send or receive
    become ArangoTransportException, HTTP 4xx/5xx responses become
    ArangoHttpException, a 2xx response flagged with `"error": true` becomes
    ArangoResponseException and an unparseable body becomes
    UnexpectedArangoResponseException. No request is ever retried here.
    """

    client = httpx.Client()

    def __init__(
        self,
        *,
        api_endpoint: str,
        path: str,
        headers: dict[str, str | None] = {},
        callers: Sequence[CallerType] = [],
        redacted_header_names: Iterable[str] | None = None,
    ) -> None:
        self.async_client = httpx.AsyncClient()
        self.api_endpoint = api_endpoint.rstrip("/")
        self.path = path.lstrip("/")
        self.headers = headers
        self.callers = callers
        self.redacted_header_names = set(redacted_header_names or [])
        self.upper_full_redacted_header_names = {
            header_name.upper()
            for header_name in (
                self.redacted_header_names | DEFAULT_REDACTED_HEADER_NAMES
            )
        }

        full_user_agent_string = compose_full_user_agent(
            list(self.callers) + [user_agent_arangopy]
        )
        self.caller_header: dict[str, str] = (
            {"User-Agent": full_user_agent_string} if full_user_agent_string else {}
        )
        self.full_headers: dict[str, str] = {
            k: v
            for k, v in {
                **{
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                **self.caller_header,
                **self.headers,
            }.items()
            if v is not None
        }
        self._loggable_headers = {
            k: v
            if k.upper() not in self.upper_full_redacted_header_names
            else FIXED_SECRET_PLACEHOLDER
            for k, v in self.full_headers.items()
        }
        self.full_path = ("/".join([self.api_endpoint, self.path])).rstrip("/")

    def __repr__(self) -> str:
        pieces = [
            pc
            for pc in (
                f"api_endpoint={self.api_endpoint}",
                f"path={self.path}",
                f"callers={self.callers}",
            )
            if pc is not None
        ]
        inner_desc = ", ".join(pieces)
        return f"{self.__class__.__name__}({inner_desc})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, APICommander):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.path == other.path,
                    self.headers == other.headers,
                    self.callers == other.callers,
                    self.redacted_header_names == other.redacted_header_names,
                ]
            )
        else:
            return False

    async def __aenter__(self) -> APICommander:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self.async_client.aclose()

    def _copy(
        self,
        api_endpoint: str | None = None,
        path: str | None = None,
        headers: dict[str, str | None] | None = None,
        callers: Sequence[CallerType] | None = None,
        redacted_header_names: Iterable[str] | None = None,
    ) -> APICommander:
        # some care in allowing e.g. {} to override (but not None):
        return APICommander(
            api_endpoint=(
                api_endpoint if api_endpoint is not None else self.api_endpoint
            ),
            path=path if path is not None else self.path,
            headers=headers if headers is not None else self.headers,
            callers=callers if callers is not None else self.callers,
            redacted_header_names=(
                redacted_header_names
                if redacted_header_names is not None
                else self.redacted_header_names
            ),
        )

    def _compose_request_url(self, additional_path: str | None) -> str:
        if additional_path:
            return "/".join([self.full_path.rstrip("/"), additional_path.lstrip("/")])
        else:
            return self.full_path

    def _raw_response_to_json(
        self,
        raw_response: httpx.Response,
        raise_api_errors: bool,
        payload: Any,
        http_method: str,
        additional_path: str | None,
    ) -> Any:
        # try to process the httpx raw response into a JSON or throw a failure
        raw_response_json: Any
        try:
            raw_response_json = self._parse_json_response(raw_response.text)
        except ValueError:
            # json() parsing has failed (e.g., empty body)
            request_desc = f"{http_method} {additional_path or self.path}"
            raise UnexpectedArangoResponseException(
                text=f"Unparseable response from API '{request_desc}' request.",
                raw_response={
                    "raw_response": raw_response.text,
                },
            )

        if (
            raise_api_errors
            and isinstance(raw_response_json, dict)
            and raw_response_json.get("error") is True
        ):
            logger.warning(f"APICommander about to raise from: {raw_response_json}")
            raise ArangoResponseException.from_response(
                command=payload,
                raw_response=raw_response_json,
            )

        return raw_response_json

    @staticmethod
    def _parse_json_response(response_text: str) -> Any:
        return json.loads(response_text)

    @staticmethod
    def _encode_payload(payload: Any) -> str | None:
        if payload is not None:
            return json.dumps(
                payload,
                allow_nan=False,
                separators=(",", ":"),
                ensure_ascii=False,
            )
        else:
            return None

    def raw_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        payload: Any = None,
        additional_path: str | None = None,
        request_params: dict[str, Any] = {},
        timeout_context: _TimeoutContext | None = None,
    ) -> httpx.Response:
        request_url = self._compose_request_url(additional_path)
        _timeout_context = timeout_context or _TimeoutContext(request_ms=None)
        encoded_payload = self._encode_payload(payload)
        log_httpx_request(
            http_method=http_method,
            full_url=request_url,
            request_params=request_params,
            redacted_request_headers=self._loggable_headers,
            encoded_payload=encoded_payload,
            timeout_context=_timeout_context,
        )
        httpx_timeout_s = to_httpx_timeout(_timeout_context)

        try:
            raw_response = self.client.request(
                method=http_method,
                url=request_url,
                content=encoded_payload.encode()
                if encoded_payload is not None
                else None,
                params=request_params,
                timeout=httpx_timeout_s,
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise to_arango_timeout_exception(
                timeout_exc, timeout_context=_timeout_context
            )
        except httpx.TransportError as transport_exc:
            raise to_arango_transport_exception(
                transport_exc, request_url=request_url
            ) from transport_exc

        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            logger.warning(
                f"APICommander got HTTP {raw_response.status_code} "
                f"from {http_method} {request_url}"
            )
            raise ArangoHttpException.from_httpx_error(http_exc)
        log_httpx_response(response=raw_response)
        return raw_response

    async def async_raw_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        payload: Any = None,
        additional_path: str | None = None,
        request_params: dict[str, Any] = {},
        timeout_context: _TimeoutContext | None = None,
    ) -> httpx.Response:
        request_url = self._compose_request_url(additional_path)
        _timeout_context = timeout_context or _TimeoutContext(request_ms=None)
        encoded_payload = self._encode_payload(payload)
        log_httpx_request(
            http_method=http_method,
            full_url=request_url,
            request_params=request_params,
            redacted_request_headers=self._loggable_headers,
            encoded_payload=encoded_payload,
            timeout_context=_timeout_context,
        )
        httpx_timeout_s = to_httpx_timeout(_timeout_context)

        try:
            raw_response = await self.async_client.request(
                method=http_method,
                url=request_url,
                content=encoded_payload.encode()
                if encoded_payload is not None
                else None,
                params=request_params,
                timeout=httpx_timeout_s,
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise to_arango_timeout_exception(
                timeout_exc, timeout_context=_timeout_context
            )
        except httpx.TransportError as transport_exc:
            raise to_arango_transport_exception(
                transport_exc, request_url=request_url
            ) from transport_exc

        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            logger.warning(
                f"APICommander got HTTP {raw_response.status_code} "
                f"from {http_method} {request_url}"
            )
            raise ArangoHttpException.from_httpx_error(http_exc)
        log_httpx_response(response=raw_response)
        return raw_response

    def request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        payload: Any = None,
        additional_path: str | None = None,
        request_params: dict[str, Any] = {},
        raise_api_errors: bool = True,
        timeout_context: _TimeoutContext | None = None,
    ) -> Any:
        raw_response = self.raw_request(
            http_method=http_method,
            payload=payload,
            additional_path=additional_path,
            request_params=request_params,
            timeout_context=timeout_context,
        )
        return self._raw_response_to_json(
            raw_response,
            raise_api_errors=raise_api_errors,
            payload=payload,
            http_method=http_method,
            additional_path=additional_path,
        )

    async def async_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        payload: Any = None,
        additional_path: str | None = None,
        request_params: dict[str, Any] = {},
        raise_api_errors: bool = True,
        timeout_context: _TimeoutContext | None = None,
    ) -> Any:
        raw_response = await self.async_raw_request(
            http_method=http_method,
            payload=payload,
            additional_path=additional_path,
            request_params=request_params,
            timeout_context=timeout_context,
        )
        return self._raw_response_to_json(
            raw_response,
            raise_api_errors=raise_api_errors,
            payload=payload,
            http_method=http_method,
            additional_path=additional_path,
        )
