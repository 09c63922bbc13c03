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
from wrapt import function_wrapper

from telemetra.api.application import Application
from telemetra.core.application import Application as CoreApplication
from telemetra.core.config import create_settings_snapshot
from telemetra.core.policy import RemotePolicy

TEST_APP_NAME = "Python Agent Test (agent_features)"


def make_application(settings=None, server_config=None, name=TEST_APP_NAME):
    """Creates an application which is not registered with the agent, so
    that nothing else can record against it and it is never harvested by
    the agent. The settings are overrides keyed by dotted setting name.
    The server config, when supplied, is applied as the remote policy.

    """

    overrides = {"app_name": name}
    overrides.update(settings or {})

    core_application = CoreApplication(name, create_settings_snapshot(overrides))

    if server_config is not None:
        core_application.set_remote_policy(RemotePolicy.from_server_config(server_config))

    return Application(name, application=core_application)


@pytest.fixture()
def application_factory():
    return make_application


def live_harvest(application):
    return application.core_application.live_harvest


def expect_metrics(application, expected):
    """Checks the metrics held for the application are exactly those
    expected. Each expected metric is a tuple of name, scope, forced and
    the six stats values, with None for the stats when they are not to
    be checked.

    """

    metrics = live_harvest(application).metrics

    actual = {key for key, _ in metrics}
    wanted = {(name, scope) for name, scope, _, _ in expected}

    assert actual == wanted, (sorted(actual - wanted), sorted(wanted - actual))

    for name, scope, forced, data in expected:
        assert metrics.is_forced(name, scope) == forced, (name, scope, forced)

        if data is not None:
            stats = metrics.get(name, scope)
            assert list(stats) == list(data), (name, list(stats), list(data))


def expect_errors(application, expected):
    """Each expected error is a dictionary of the fields of the traced
    error which are to be checked.

    """

    errors = live_harvest(application).error_data()

    assert len(errors) == len(expected), errors

    for error, want in zip(errors, expected):
        for field, value in want.items():
            assert getattr(error, field) == value, (field, getattr(error, field), value)


def expect_error_events(application, expected):
    events = live_harvest(application).error_event_data()

    assert len(events) == len(expected), events

    for (intrinsics, _), want in zip(events, expected):
        assert intrinsics["type"] == "TransactionError"
        for key, value in want.items():
            assert intrinsics[key] == value, (key, intrinsics[key], value)


def expect_custom_events(application, expected):
    """Each expected custom event is a tuple of the type and attributes."""

    events = live_harvest(application).custom_event_data()

    assert len(events) == len(expected), events

    for (intrinsics, attributes), (event_type, params) in zip(events, expected):
        assert intrinsics["type"] == event_type
        assert isinstance(intrinsics["timestamp"], int)
        assert attributes == params


def expect_transaction_events(application, expected):
    """Each expected transaction event is a tuple of the name and the
    apdex perf zone, the zone being None for a background task.

    """

    events = live_harvest(application).transaction_event_data()

    assert len(events) == len(expected), events

    for (intrinsics, _, _), (name, zone) in zip(events, expected):
        assert intrinsics["type"] == "Transaction"
        assert intrinsics["name"] == name
        assert intrinsics.get("nr.apdexPerfZone") == zone


def validate_no_data_recorded(application):
    """Decorator checking that the wrapped test left the live harvest of
    the application empty.

    """

    @function_wrapper
    def _validate_no_data_recorded(wrapped, instance, args, kwargs):
        result = wrapped(*args, **kwargs)

        harvest = live_harvest(application)

        assert len(harvest.metrics) == 0
        assert harvest.errors.num_samples == 0
        assert harvest.custom_events.num_samples == 0
        assert harvest.error_events.num_samples == 0
        assert harvest.transaction_events.num_samples == 0

        return result

    return _validate_no_data_recorded
