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


@dataclass
class ArangoErrorDescriptor:
    """
    An object representing a single error, as returned from the server,
    typically with an error number, an HTTP code and a text message.

    This object describes both errors received as HTTP 4xx/5xx responses
    and the per-item errors embedded in an otherwise successful response
    to a multi-document operation (for instance, one document among many
    that could not be found while deleting a list of keys).

    Attributes:
        error_num: the server-specific error number ("errorNum" field).
        code: the HTTP status code reported in the error body ("code" field).
        message: the text found in the error's "errorMessage" field.
        attributes: a dict with any further key-value pairs returned by the API.
    """

    error_num: int | None
    code: int | None
    message: str | None
    attributes: dict[str, Any]

    _known_dict_fields = {
        "error",
        "errorNum",
        "errorMessage",
        "code",
    }

    def __init__(self, error_dict: dict[str, Any] | str) -> None:
        if isinstance(error_dict, str):
            self.message = error_dict
            self.error_num = None
            self.code = None
            self.attributes = {}
        else:
            self.error_num = error_dict.get("errorNum")
            self.code = error_dict.get("code")
            self.message = error_dict.get("errorMessage")
            self.attributes = {
                k: v for k, v in error_dict.items() if k not in self._known_dict_fields
            }

    def __repr__(self) -> str:
        pieces = [
            f"error_num={self.error_num}" if self.error_num is not None else None,
            f"code={self.code}" if self.code is not None else None,
            f"message={self.message.__repr__()}" if self.message else None,
            f"attributes={self.attributes.__repr__()}" if self.attributes else None,
        ]
        return f"{self.__class__.__name__}({', '.join(pc for pc in pieces if pc)})"

    def __str__(self) -> str:
        return self.summary()

    def summary(self) -> str:
        """
        Determine a string succinct description of this descriptor.

        The precise format of this summary is determined by which fields are set.
        """
        if self.error_num is not None:
            if self.message:
                return f"{self.message} (errorNum {self.error_num})"
            else:
                return f"errorNum {self.error_num}"
        else:
            return self.message or ""

    def to_dict(self) -> dict[str, Any]:
        return {
            k: v
            for k, v in {
                "error": True,
                "errorNum": self.error_num,
                "errorMessage": self.message,
                "code": self.code,
                **self.attributes,
            }.items()
            if v is not None
        }
