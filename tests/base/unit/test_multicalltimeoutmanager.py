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

import pytest

from arangopy.exceptions import (
    ArangoTimeoutException,
    MultiCallTimeoutManager,
    _first_valid_timeout,
    _select_singlereq_timeout_gm,
)
from arangopy.utils.api_options import FullTimeoutOptions


class TestTimeouts:
    @pytest.mark.describe("test MultiCallTimeoutManager")
    def test_multicalltimeoutmanager(self) -> None:
        mgr_n = MultiCallTimeoutManager(overall_timeout_ms=None)
        assert mgr_n.remaining_timeout().request_ms is None
        time.sleep(0.5)
        assert mgr_n.remaining_timeout().request_ms is None

        mgr_1 = MultiCallTimeoutManager(overall_timeout_ms=1000)
        crt_1 = mgr_1.remaining_timeout().request_ms
        assert crt_1 is not None
        time.sleep(0.6)
        crt_2 = mgr_1.remaining_timeout().request_ms
        assert crt_2 is not None
        time.sleep(0.6)
        with pytest.raises(ArangoTimeoutException):
            mgr_1.remaining_timeout().request_ms

    @pytest.mark.describe("test MultiCallTimeoutManager with a cap")
    def test_multicalltimeoutmanager_cap(self) -> None:
        mgr_n = MultiCallTimeoutManager(overall_timeout_ms=None)
        capped_n = mgr_n.remaining_timeout(
            cap_time_ms=300, cap_timeout_label="request_timeout_ms"
        )
        assert capped_n.request_ms == 300
        assert capped_n.label == "request_timeout_ms"

        mgr_1 = MultiCallTimeoutManager(
            overall_timeout_ms=10000, timeout_label="overall_timeout_ms"
        )
        capped_1 = mgr_1.remaining_timeout(
            cap_time_ms=300, cap_timeout_label="request_timeout_ms"
        )
        assert capped_1.request_ms == 300
        assert capped_1.label == "request_timeout_ms"
        uncapped_1 = mgr_1.remaining_timeout(
            cap_time_ms=20000, cap_timeout_label="request_timeout_ms"
        )
        assert uncapped_1.request_ms is not None
        assert uncapped_1.request_ms <= 10000
        assert uncapped_1.label == "overall_timeout_ms"

    @pytest.mark.describe("test of the timeout-labeling utilities")
    def test_timeout_selection(self) -> None:
        options = FullTimeoutOptions(
            request_timeout_ms=1000,
            general_method_timeout_ms=5000,
        )
        assert _select_singlereq_timeout_gm(
            timeout_options=options,
            general_method_timeout_ms=None,
        ) == (1000, "request_timeout_ms")
        assert _select_singlereq_timeout_gm(
            timeout_options=options,
            general_method_timeout_ms=None,
            timeout_ms=200,
        ) == (200, "timeout_ms")
        assert _first_valid_timeout((None, "a"), (10, "b"), (20, "c")) == (10, "b")
        assert _first_valid_timeout((None, "a")) == (0, None)
