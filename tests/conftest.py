# Copyright 2010 New Relic, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import pytest

from telemetra.core.config import global_settings


@pytest.fixture(scope="session", autouse=True)
def disable_harvest_thread():
    # Applications activated through the agent during the tests are only
    # ever harvested explicitly.

    settings = global_settings()
    original = settings.harvest_interval
    settings.harvest_interval = 0
    yield
    settings.harvest_interval = original
