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

from enum import Enum, EnumMeta
from typing import TypeVar

T = TypeVar("T", bound="StrEnum")


class StrEnumMeta(EnumMeta):
    def _name_lookup(cls, value: str) -> str | None:
        """Return the member name matching a string (name or value), or None."""
        u_value = value.upper()
        for name, member in cls._member_map_.items():
            if u_value in {name.upper(), str(member.value).upper()}:
                return name
        return None

    def __contains__(cls, value: object) -> bool:
        """Return True if the provided string belongs to the enum."""
        if isinstance(value, str):
            return cls._name_lookup(value) is not None
        return isinstance(value, cls)


class StrEnum(Enum, metaclass=StrEnumMeta):
    """
    A string-valued enum whose members can be looked up, case-insensitively,
    by either their name or their value.
    """

    @classmethod
    def coerce(cls: type[T], value: str | T) -> T:
        """
        Accepts either a string or an instance of the Enum itself.
        If a string is passed, it converts it to the corresponding
        Enum member (case-insensitive match on names and values).
        If an Enum instance is passed, it returns it as-is.
        Raises ValueError if the string does not match any enum member.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            norm_name = cls._name_lookup(value)
            if norm_name is not None:
                return cls[norm_name]
        raise ValueError(
            f"Invalid value '{value}' for {cls.__name__}. "
            f"Allowed values are: {[e.value for e in cls]}"
        )
