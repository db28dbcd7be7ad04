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

# Defaults/settings for Database addressing
DEFAULT_DATABASE_NAME = "_system"
DATABASE_PATH_TEMPLATE = "_db/{database}"
DOCUMENT_API_PATH = "_api/document"
CURSOR_API_PATH = "_api/cursor"
COLLECTION_API_PATH = "_api/collection"

# Defaults/settings for requests
DEFAULT_REQUEST_TIMEOUT_MS = 10000
DEFAULT_GENERAL_METHOD_TIMEOUT_MS = 30000
DEFAULT_QUERY_BATCH_SIZE = 1000
DEFAULT_AUTH_HEADER = "Authorization"
DEFAULT_JWT_AUTH_PREFIX = "bearer "
DEFAULT_BASIC_AUTH_PREFIX = "Basic "

# Error numbers from the server that the client treats specially
ARANGO_ERROR_CONFLICT = 1200
ARANGO_ERROR_DOCUMENT_NOT_FOUND = 1202
ARANGO_ERROR_DATA_SOURCE_NOT_FOUND = 1203
ARANGO_ERROR_CURSOR_NOT_FOUND = 1600
HTTP_NOT_FOUND = 404

# Settings for redacting secrets in string representations and logging
SECRETS_REDACT_ENDING = "..."
SECRETS_REDACT_CHAR = "*"
SECRETS_REDACT_ENDING_LENGTH = 3
FIXED_SECRET_PLACEHOLDER = "***"
DEFAULT_REDACTED_HEADER_NAMES = {
    DEFAULT_AUTH_HEADER,
}
