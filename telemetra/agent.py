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

from telemetra.api.application import application_instance as application
from telemetra.api.application import register_application
from telemetra.api.background_task import BackgroundTask, BackgroundTaskWrapper, background_task
from telemetra.api.transaction import (
    current_transaction,
    notice_error,
    record_custom_event,
    set_transaction_name,
)
from telemetra.api.web_transaction import WebTransaction
from telemetra.api.wsgi_application import WSGIApplicationWrapper, wsgi_application
from telemetra.config import initialize
from telemetra.core.agent import register_exporter, shutdown_agent
from telemetra.core.config import global_settings
from telemetra.core.exceptions import DiscardDataForRequest, RetryDataForRequest
from telemetra.core.policy import RemotePolicy

__all__ = [
    "application",
    "register_application",
    "BackgroundTask",
    "BackgroundTaskWrapper",
    "background_task",
    "current_transaction",
    "notice_error",
    "record_custom_event",
    "set_transaction_name",
    "WebTransaction",
    "WSGIApplicationWrapper",
    "wsgi_application",
    "initialize",
    "register_exporter",
    "shutdown_agent",
    "global_settings",
    "DiscardDataForRequest",
    "RetryDataForRequest",
    "RemotePolicy",
]
