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

"""Conditions reported back to callers of the recording API.

The recording calls never raise these. An instance is returned instead so
that instrumentation can not take down the unit of work being monitored.
The module level instances are shared and can be compared by identity.

"""


class AgentError(Exception):
    pass


class ValidationError(AgentError):
    pass


class NilError(ValidationError):
    pass


class EventTypeError(ValidationError):
    pass


class EventAttributesError(ValidationError):
    pass


class PolicyDeniedError(AgentError):
    pass


class HighSecurityError(PolicyDeniedError):
    pass


class LocallyDisabledError(PolicyDeniedError):
    pass


class RemotelyDisabledError(PolicyDeniedError):
    pass


class AlreadyEndedError(AgentError):
    pass


class NoTransactionError(AgentError):
    pass


class ConfigurationError(AgentError):
    pass


# Raised by an exporter to control what happens to the harvest it was
# handed. Neither is ever reported back through the recording API.


class DiscardDataForRequest(AgentError):
    pass


class RetryDataForRequest(AgentError):
    pass


NIL_ERROR = NilError("nil error")
ALREADY_ENDED = AlreadyEndedError("transaction has already ended")
NO_TRANSACTION = NoTransactionError("no transaction running on this thread")

HIGH_SECURITY_ENABLED = HighSecurityError("high security mode is enabled")

ERRORS_LOCALLY_DISABLED = LocallyDisabledError("error collection disabled by local configuration")
ERRORS_REMOTELY_DISABLED = RemotelyDisabledError("error collection disabled by server configuration")

ERROR_EVENTS_LOCALLY_DISABLED = LocallyDisabledError("error events disabled by local configuration")
ERROR_EVENTS_REMOTELY_DISABLED = RemotelyDisabledError("error events disabled by server configuration")

CUSTOM_EVENTS_LOCALLY_DISABLED = LocallyDisabledError("custom events disabled by local configuration")
CUSTOM_EVENTS_REMOTELY_DISABLED = RemotelyDisabledError("custom events disabled by server configuration")

TRANSACTION_EVENTS_LOCALLY_DISABLED = LocallyDisabledError("transaction events disabled by local configuration")
TRANSACTION_EVENTS_REMOTELY_DISABLED = RemotelyDisabledError("transaction events disabled by server configuration")

EVENT_TYPE_INVALID = EventTypeError("event type must match ^[a-zA-Z0-9:_ ]+$ and be at most 255 characters")
EVENT_ATTRIBUTES_INVALID = EventAttributesError("event attributes must be a mapping")
