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

"""This module combines the local settings, the policy pushed down from the
server and the high security flag into a single decision for each feature
which can be recorded. The result is an immutable value. An application
holds a reference to the current one and swaps in a new one whenever the
inputs change, with a transaction capturing the reference in force when it
starts.

"""

from collections import namedtuple

from telemetra.core import exceptions

ERRORS = "errors"
ERROR_EVENTS = "error_events"
CUSTOM_EVENTS = "custom_events"
TRANSACTION_EVENTS = "transaction_events"

FEATURES = (ERRORS, ERROR_EVENTS, CUSTOM_EVENTS, TRANSACTION_EVENTS)

ALLOWED = "allowed"
HIGH_SECURITY_BLOCKED = "high_security_blocked"
LOCALLY_DISABLED = "locally_disabled"
REMOTELY_DISABLED = "remotely_disabled"

_CONDITIONS = {
    (ERRORS, LOCALLY_DISABLED): exceptions.ERRORS_LOCALLY_DISABLED,
    (ERRORS, REMOTELY_DISABLED): exceptions.ERRORS_REMOTELY_DISABLED,
    (ERROR_EVENTS, LOCALLY_DISABLED): exceptions.ERROR_EVENTS_LOCALLY_DISABLED,
    (ERROR_EVENTS, REMOTELY_DISABLED): exceptions.ERROR_EVENTS_REMOTELY_DISABLED,
    (CUSTOM_EVENTS, HIGH_SECURITY_BLOCKED): exceptions.HIGH_SECURITY_ENABLED,
    (CUSTOM_EVENTS, LOCALLY_DISABLED): exceptions.CUSTOM_EVENTS_LOCALLY_DISABLED,
    (CUSTOM_EVENTS, REMOTELY_DISABLED): exceptions.CUSTOM_EVENTS_REMOTELY_DISABLED,
    (TRANSACTION_EVENTS, LOCALLY_DISABLED): exceptions.TRANSACTION_EVENTS_LOCALLY_DISABLED,
    (TRANSACTION_EVENTS, REMOTELY_DISABLED): exceptions.TRANSACTION_EVENTS_REMOTELY_DISABLED,
}

_RemotePolicy = namedtuple(
    "_RemotePolicy", ["collect_errors", "collect_error_events", "collect_custom_events", "collect_analytics_events"]
)


class RemotePolicy(_RemotePolicy):
    """The subset of the server side configuration which can switch off
    recording of a feature. Every flag defaults to allowing collection.

    """

    def __new__(
        cls, collect_errors=True, collect_error_events=True, collect_custom_events=True, collect_analytics_events=True
    ):
        return super().__new__(
            cls,
            bool(collect_errors),
            bool(collect_error_events),
            bool(collect_custom_events),
            bool(collect_analytics_events),
        )

    @classmethod
    def from_server_config(cls, server_config):
        """Builds the policy from the configuration returned by the server
        when the agent connects. Keys which are missing are treated as
        allowing collection.

        """

        if server_config is None:
            return None

        return cls(
            collect_errors=server_config.get("collect_errors", True),
            collect_error_events=server_config.get("collect_error_events", True),
            collect_custom_events=server_config.get("collect_custom_events", True),
            collect_analytics_events=server_config.get("collect_analytics_events", True),
        )


_EffectivePolicy = namedtuple("_EffectivePolicy", ["high_security", "decisions"])


class EffectivePolicy(_EffectivePolicy):
    def decision(self, feature):
        return self.decisions[feature]

    def allowed(self, feature):
        return self.decisions[feature] == ALLOWED

    def error_recording_decision(self):
        return self.decisions[ERRORS]

    def condition(self, feature):
        """Returns the condition to report back to a caller when the
        feature is not allowed, or None if it is.

        """

        return _CONDITIONS.get((feature, self.decisions[feature]))

    @property
    def errors_enabled(self):
        return self.allowed(ERRORS)

    @property
    def error_events_enabled(self):
        return self.allowed(ERROR_EVENTS)

    @property
    def custom_events_enabled(self):
        return self.allowed(CUSTOM_EVENTS)

    @property
    def transaction_events_enabled(self):
        return self.allowed(TRANSACTION_EVENTS)


def _local_then_remote(local_enabled, remote_enabled):
    if not local_enabled:
        return LOCALLY_DISABLED
    if not remote_enabled:
        return REMOTELY_DISABLED
    return ALLOWED


def resolve_policy(settings, remote_policy=None):
    """Works out the effective policy from the local settings and the
    remote policy. A remote policy of None means the server has not yet
    been heard from and nothing is disabled remotely.

    High security mode blocks custom events before local or remote
    settings are consulted. It does not block errors. They are still
    recorded but with the message text removed.

    """

    remote = remote_policy or RemotePolicy()
    high_security = bool(settings.high_security)

    errors = _local_then_remote(settings.error_collector.enabled, remote.collect_errors)

    if errors != ALLOWED:
        error_events = errors
    else:
        error_events = _local_then_remote(settings.error_collector.capture_events, remote.collect_error_events)

    if high_security:
        custom_events = HIGH_SECURITY_BLOCKED
    else:
        custom_events = _local_then_remote(settings.custom_insights_events.enabled, remote.collect_custom_events)

    transaction_events = _local_then_remote(settings.transaction_events.enabled, remote.collect_analytics_events)

    return EffectivePolicy(
        high_security=high_security,
        decisions={
            ERRORS: errors,
            ERROR_EVENTS: error_events,
            CUSTOM_EVENTS: custom_events,
            TRANSACTION_EVENTS: transaction_events,
        },
    )
