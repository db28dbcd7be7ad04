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
from typing import TYPE_CHECKING, Any, Sequence
from urllib.parse import urlparse

from arangopy.constants import CallerType
from arangopy.settings.defaults import DEFAULT_DATABASE_NAME
from arangopy.utils.api_options import (
    APIOptions,
    defaultAPIOptions,
)
from arangopy.utils.unset import _UNSET, UnsetType

if TYPE_CHECKING:
    from arangopy.authentication import TokenProvider
    from arangopy.data.database import AsyncDatabase, Database


logger = logging.getLogger(__name__)


def parse_api_endpoint(api_endpoint: str) -> str | None:
    """
    Validate the URL of a server and normalize it to "scheme://host[:port]",
    discarding any trailing slash. Return None if the URL is not usable.
    """
    parsed = urlparse(api_endpoint.strip())
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return None
    if parsed.path.strip("/") or parsed.query or parsed.fragment:
        return None
    return f"{parsed.scheme}://{parsed.netloc}"


class ArangoClient:
    """
    A client for an ArangoDB deployment. This is the entry point, sitting
    at the top of the conceptual "client -> database -> collection" hierarchy.

    Args:
        api_endpoint: the URL of the server (or of a coordinator, for clusters),
            such as "http://localhost:8529".
        token: the credentials for the requests. This can be either a literal
            JWT string or a subclass of `arangopy.authentication.TokenProvider`,
            such as a UsernamePasswordTokenProvider (for basic authentication).
            It can also be supplied, or overridden, when spawning databases.
        callers: a list of caller identities, i.e. applications, or frameworks,
            on behalf of which the requests are performed.
            These end up in the request user-agent.
            Each caller identity is a ("caller_name", "caller_version") pair.
        api_options: a specification - complete or partial - of the API Options
            to override the system defaults. If this is passed alongside
            the named parameters, those will take precedence.

    Example:
        >>> from arangopy import ArangoClient
        >>> from arangopy.authentication import UsernamePasswordTokenProvider
        >>> my_client = ArangoClient(
        ...     "http://localhost:8529",
        ...     token=UsernamePasswordTokenProvider("root", "secret"),
        ... )
        >>> my_db = my_client.get_database("my_db")
        >>> my_db.query("RETURN 1 + 1").to_list()
        [2]
    """

    def __init__(
        self,
        api_endpoint: str,
        *,
        token: str | TokenProvider | UnsetType = _UNSET,
        callers: Sequence[CallerType] | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> None:
        parsed_api_endpoint = parse_api_endpoint(api_endpoint)
        if parsed_api_endpoint is None:
            raise ValueError(
                f"Cannot parse '{api_endpoint}' as a server URL. Expected "
                "something like 'http://localhost:8529'."
            )
        self.api_endpoint = parsed_api_endpoint
        arg_api_options = APIOptions(
            callers=callers,
            token=token,
        )
        self.api_options = (
            defaultAPIOptions().with_override(api_options).with_override(arg_api_options)
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}("{self.api_endpoint}", '
            f"api_options={self.api_options})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, ArangoClient):
            return all(
                [
                    self.api_endpoint == other.api_endpoint,
                    self.api_options.token == other.api_options.token,
                    self.api_options.callers == other.api_options.callers,
                ]
            )
        else:
            return False

    def __getitem__(self, name: str) -> Database:
        return self.get_database(name=name)

    def _copy(
        self,
        *,
        token: str | TokenProvider | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> ArangoClient:
        arg_api_options = APIOptions(token=token)
        final_api_options = self.api_options.with_override(api_options).with_override(
            arg_api_options
        )
        return ArangoClient(
            self.api_endpoint,
            api_options=final_api_options,
        )

    def with_options(
        self,
        *,
        token: str | TokenProvider | UnsetType = _UNSET,
        api_options: APIOptions | UnsetType = _UNSET,
    ) -> ArangoClient:
        """
        Create a clone of this ArangoClient with some changed attributes.

        Args:
            token: the credentials for the requests, as a string (a JWT)
                or a TokenProvider.
            api_options: any additional options to set for the clone, in the form of
                an APIOptions instance (where one can set just the needed attributes).
                In case the same setting is also provided as named parameter,
                the latter takes precedence.

        Returns:
            a new ArangoClient instance.
        """

        return self._copy(
            token=token,
            api_options=api_options,
        )

    def get_database(
        self,
        name: str = DEFAULT_DATABASE_NAME,
        *,
        token: str | TokenProvider | UnsetType = _UNSET,
        spawn_api_options: APIOptions | UnsetType = _UNSET,
    ) -> Database:
        """
        Get a Database object from this client.

        Args:
            name: the name of the database. Defaults to "_system".
                The database must exist already for the resulting object
                to be effectively used: this invocation does not create it.
            token: if supplied, is passed to the Database instead of the client token.
            spawn_api_options: a specification - complete or partial - of the
                API Options to override the defaults inherited from the client.
                If this is passed together with the equivalent named parameters,
                the latter will take precedence in their respective settings.

        Returns:
            a Database object.

        Example:
            >>> my_db = my_client.get_database(
            ...     "my_db",
            ...     token=UsernamePasswordTokenProvider("app_user", "app_pwd"),
            ... )
        """

        # lazy importing here to avoid circular dependency
        from arangopy.data.database import Database

        arg_api_options = APIOptions(token=token)
        resulting_api_options = self.api_options.with_override(
            spawn_api_options
        ).with_override(arg_api_options)
        return Database(
            api_endpoint=self.api_endpoint,
            name=name,
            api_options=resulting_api_options,
        )

    def get_async_database(
        self,
        name: str = DEFAULT_DATABASE_NAME,
        *,
        token: str | TokenProvider | UnsetType = _UNSET,
        spawn_api_options: APIOptions | UnsetType = _UNSET,
    ) -> AsyncDatabase:
        """
        Get an AsyncDatabase object from this client, for doing data-related work.
        The parameters are the same as for `get_database`.

        Returns:
            an AsyncDatabase object.

        Example:
            >>> async def count_docs(cl: ArangoClient) -> int:
            ...     async_db = cl.get_async_database("my_db")
            ...     return await async_db.get_collection("my_collection").count()
            ...
            >>> asyncio.run(count_docs(my_client))
            41
        """

        return self.get_database(
            name=name,
            token=token,
            spawn_api_options=spawn_api_options,
        ).to_async()
