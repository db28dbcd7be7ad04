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

"""
Main conftest for shared fixtures and test-environment settings.
"""

from __future__ import annotations

import os
from typing import Any

import pytest

from arangopy import ArangoClient
from arangopy.authentication import (
    StaticTokenProvider,
    TokenProvider,
    UsernamePasswordTokenProvider,
)
from arangopy.settings.defaults import DEFAULT_DATABASE_NAME


def extended_booleanize_env(env_var_name: str, default: bool = False) -> bool:
    """
    Extended booleanize for environment variables.
    Accepts also "1"/"0", "yes"/"no", "true"/"false" (case insensitive).
    If the variable is not set, returns the default value.
    """
    value = os.environ.get(env_var_name)
    if value is None or value == "":
        return default
    try:
        return int(value) != 0
    except ValueError:
        pass
    return value.lower() in ("yes", "true", "y", "t")


ARANGODB_ENDPOINT = os.environ.get("ARANGODB_ENDPOINT") or None
ARANGODB_USERNAME = os.environ.get("ARANGODB_USERNAME") or "root"
ARANGODB_PASSWORD = os.environ.get("ARANGODB_PASSWORD") or ""
ARANGODB_TOKEN = os.environ.get("ARANGODB_TOKEN") or None
ARANGODB_DATABASE = os.environ.get("ARANGODB_DATABASE") or DEFAULT_DATABASE_NAME
ARANGODB_CLUSTER = extended_booleanize_env("ARANGODB_CLUSTER")

ARANGODB_TOKEN_PROVIDER: TokenProvider = (
    StaticTokenProvider(ARANGODB_TOKEN)
    if ARANGODB_TOKEN
    else UsernamePasswordTokenProvider(ARANGODB_USERNAME, ARANGODB_PASSWORD)
)


def pytest_configure(config: Any) -> None:
    config.addinivalue_line(
        "markers", "describe(text): a human-readable description of the test"
    )


@pytest.fixture(scope="session")
def arango_client() -> ArangoClient:
    if ARANGODB_ENDPOINT is None:
        pytest.skip("ARANGODB_ENDPOINT is not set")
    return ArangoClient(ARANGODB_ENDPOINT, token=ARANGODB_TOKEN_PROVIDER)


@pytest.fixture(scope="session")
def is_cluster() -> bool:
    return ARANGODB_CLUSTER


@pytest.fixture(scope="session")
def arango_database_name() -> str:
    return ARANGODB_DATABASE
