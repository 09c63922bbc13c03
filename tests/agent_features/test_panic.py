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
    expect_error_events,
    expect_errors,
    expect_metrics,
    live_harvest,
    make_application,
)

from telemetra.api.transaction import Transaction, current_transaction
from telemetra.common.object_names import callable_name
from telemetra.core import exceptions
from telemetra.core.error_collector import PANIC_ERROR_CLASS

_ERROR_COUNT = [1, 0.0, 0.0, 0.0, 0.0, 0.0]

_END_CALLER = callable_name(Transaction.end)


class MyError(Exception):
    pass


def test_panic_non_error_value():
    application = make_application()

    with pytest.raises(SystemExit) as excinfo:
        with application.start_transaction("myName"):
            raise SystemExit(22)

    # The exception must reach the caller unchanged.

    assert excinfo.value.code == 22
    assert current_transaction() is None

    expect_metrics(
        application,
        [
            ("OtherTransaction/Pattern/myName", "", True, None),
            ("OtherTransaction/all", "", True, None),
            ("Errors/all", "", True, _ERROR_COUNT),
            ("Errors/allOther", "", True, _ERROR_COUNT),
            ("Errors/OtherTransaction/Pattern/myName", "", True, _ERROR_COUNT),
        ],
    )

    expect_errors(
        application,
        [
            {
                "path": "OtherTransaction/Pattern/myName",
                "message": "22",
                "type": PANIC_ERROR_CLASS,
                "caller": _END_CALLER,
            }
        ],
    )

    expect_error_events(application, [{"error.class": PANIC_ERROR_CLASS, "error.message": "22"}])


def test_panic_error_value():
    application = make_application()

    error = MyError("my msg")

    with pytest.raises(MyError) as excinfo:
        with application.start_transaction("myName"):
            raise error

    assert excinfo.value is error

    expect_errors(application, [{"message": "my msg", "type": callable_name(MyError), "caller": _END_CALLER}])


def test_panic_keyboard_interrupt():
    application = make_application()

    with pytest.raises(KeyboardInterrupt):
        with application.start_transaction("myName"):
            raise KeyboardInterrupt()

    expect_errors(application, [{"message": "", "type": PANIC_ERROR_CLASS}])


def test_panic_value_not_an_exception():
    application = make_application()

    transaction = application.start_transaction("myName")
    transaction.end(None, 22, None)

    expect_errors(application, [{"message": "22", "type": PANIC_ERROR_CLASS}])


def test_panic_string_value():
    application = make_application()

    transaction = application.start_transaction("myName")
    assert transaction.notice_error("something went wrong") is None
    transaction.end()

    expect_errors(application, [{"message": "something went wrong", "type": PANIC_ERROR_CLASS}])


def test_panic_errors_disabled():
    application = make_application(settings={"error_collector.enabled": False})

    with pytest.raises(SystemExit):
        with application.start_transaction("myName"):
            raise SystemExit(22)

    expect_metrics(
        application,
        [
            ("OtherTransaction/Pattern/myName", "", True, None),
            ("OtherTransaction/all", "", True, None),
        ],
    )
    expect_errors(application, [])


def test_panic_high_security():
    application = make_application(settings={"high_security": True})

    with pytest.raises(SystemExit):
        with application.start_transaction("myName"):
            raise SystemExit(22)

    expect_errors(
        application,
        [{"message": "Message removed by high security setting", "type": PANIC_ERROR_CLASS}],
    )


def test_panic_after_notice_error():
    application = make_application()

    with pytest.raises(SystemExit):
        with application.start_transaction("myName") as transaction:
            transaction.notice_error(MyError("my msg"))
            raise SystemExit(22)

    messages = sorted(error.message for error in live_harvest(application).error_data())
    assert messages == ["22", "my msg"]


def test_transaction_used_after_panic():
    application = make_application()

    with pytest.raises(SystemExit):
        with application.start_transaction("myName") as transaction:
            raise SystemExit(22)

    assert transaction.notice_error(MyError("my msg")) is exceptions.ALREADY_ENDED
    assert transaction.set_name("other") is exceptions.ALREADY_ENDED
    assert transaction.end() is exceptions.ALREADY_ENDED