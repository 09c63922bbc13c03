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
from testing_support.fixtures import (
    expect_custom_events,
    live_harvest,
    make_application,
    validate_no_data_recorded,
)

from telemetra.api.transaction import record_custom_event
from telemetra.core import exceptions
from telemetra.core.custom_event import process_event_type


def test_process_event_type_name_is_string():
    name = "string"
    assert process_event_type(name) == name


def test_process_event_type_name_is_not_string():
    name = 42
    assert process_event_type(name) is None


def test_process_event_type_name_ok_length():
    ok_name = "CustomEventType"
    assert process_event_type(ok_name) == ok_name


def test_process_event_type_name_too_long():
    too_long = "a" * 256
    assert process_event_type(too_long) is None


def test_process_event_type_name_valid_chars():
    valid_name = "az09: "
    assert process_event_type(valid_name) == valid_name


def test_process_event_type_name_invalid_chars():
    invalid_name = "&"
    assert process_event_type(invalid_name) is None


def test_record_custom_event_success():
    application = make_application()

    params = {"zip": 1, "zap": 2}

    assert application.record_custom_event("myType", params) is None

    expect_custom_events(application, [("myType", {"zip": 1, "zap": 2})])


def test_record_custom_event_scalar_attributes():
    application = make_application()

    params = {"str": "value", "int": 1, "float": 1.5, "bool": True}

    assert application.record_custom_event("myType", params) is None

    expect_custom_events(application, [("myType", params)])


def test_record_custom_event_drops_invalid_attributes():
    application = make_application()

    params = {"none": None, "list": [1, 2], 42: "bad name", "ok": "value"}

    assert application.record_custom_event("myType", params) is None

    expect_custom_events(application, [("myType", {"ok": "value"})])


def test_record_custom_event_truncates_long_values():
    application = make_application(settings={"custom_insights_events.max_attribute_value": 10})

    assert application.record_custom_event("myType", {"long": "x" * 100}) is None

    expect_custom_events(application, [("myType", {"long": "x" * 10})])


def test_record_custom_event_attribute_limit():
    application = make_application()

    params = {f"attr{i:03d}": i for i in range(100)}

    assert application.record_custom_event("myType", params) is None

    ((_, attributes),) = live_harvest(application).custom_event_data()
    assert len(attributes) == 64


def test_record_custom_event_high_security():
    application = make_application(settings={"high_security": True})

    @validate_no_data_recorded(application)
    def _test():
        assert application.record_custom_event("myType", {"zip": 1}) is exceptions.HIGH_SECURITY_ENABLED

    _test()


def test_record_custom_event_high_security_checked_first():
    application = make_application(
        settings={"high_security": True, "custom_insights_events.enabled": False},
        server_config={"collect_custom_events": False},
    )

    assert application.record_custom_event("????", {"zip": 1}) is exceptions.HIGH_SECURITY_ENABLED


def test_record_custom_event_locally_disabled():
    application = make_application(settings={"custom_insights_events.enabled": False})

    @validate_no_data_recorded(application)
    def _test():
        result = application.record_custom_event("myType", {"zip": 1})
        assert result is exceptions.CUSTOM_EVENTS_LOCALLY_DISABLED

    _test()


def test_record_custom_event_remotely_disabled():
    application = make_application(server_config={"collect_custom_events": False})

    @validate_no_data_recorded(application)
    def _test():
        result = application.record_custom_event("myType", {"zip": 1})
        assert result is exceptions.CUSTOM_EVENTS_REMOTELY_DISABLED

    _test()


def test_record_custom_event_local_checked_before_remote():
    application = make_application(
        settings={"custom_insights_events.enabled": False},
        server_config={"collect_custom_events": False},
    )

    assert application.record_custom_event("myType", {"zip": 1}) is exceptions.CUSTOM_EVENTS_LOCALLY_DISABLED


def test_record_custom_event_remote_checked_before_name():
    application = make_application(server_config={"collect_custom_events": False})

    assert application.record_custom_event("????", {"zip": 1}) is exceptions.CUSTOM_EVENTS_REMOTELY_DISABLED


@pytest.mark.parametrize("event_type", ["????", "", "a" * 256, 42, None])
def test_record_custom_event_invalid_type(event_type):
    application = make_application()

    @validate_no_data_recorded(application)
    def _test():
        assert application.record_custom_event(event_type, {"zip": 1}) is exceptions.EVENT_TYPE_INVALID

    _test()


@pytest.mark.parametrize("params", [None, [("zip", 1)], "zip"])
def test_record_custom_event_invalid_attributes(params):
    application = make_application()

    @validate_no_data_recorded(application)
    def _test():
        assert application.record_custom_event("myType", params) is exceptions.EVENT_ATTRIBUTES_INVALID

    _test()


def test_record_custom_event_not_tied_to_transaction():
    application = make_application()

    transaction = application.start_transaction("myName")
    assert record_custom_event("myType", {"zip": 1}) is None
    transaction.end()

    # The event is recorded against the application of the running
    # transaction straight away, not when the transaction ends.

    expect_custom_events(application, [("myType", {"zip": 1})])


def test_record_custom_event_explicit_application():
    application = make_application()

    assert record_custom_event("myType", {"zip": 1}, application=application) is None

    expect_custom_events(application, [("myType", {"zip": 1})])


def test_record_custom_event_sampled():
    application = make_application(settings={"custom_insights_events.max_samples_stored": 10})

    for i in range(100):
        application.record_custom_event("myType", {"i": i})

    custom_events = live_harvest(application).custom_events

    assert custom_events.num_samples == 10
    assert custom_events.num_seen == 100
