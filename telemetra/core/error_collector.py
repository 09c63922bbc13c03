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

"""Errors noticed during a transaction.

A value handed to the agent as an error is classified once, at the point
it is noticed, as either a typed error or some other value. A typed error
is any instance of Exception and is named after its class. Anything else,
be it an exception outside of the Exception hierarchy such as SystemExit,
or a value which isn't an exception at all, is only known by its textual
representation and is reported against a synthetic class.

"""

from collections import namedtuple

from telemetra.common.object_names import callable_name, exception_type_name
from telemetra.core.stats_engine import SampledDataSet

HIGH_SECURITY_ERROR_MESSAGE = "Message removed by high security setting"


class PanicError(Exception):
    """Stands in as the class of anything recorded as an error which
    isn't an instance of Exception.

    """


PANIC_ERROR_CLASS = callable_name(PanicError)

# The error as staged against a transaction while it is running.

ErrorNode = namedtuple("ErrorNode", ["timestamp", "type", "message", "caller", "stack_trace"])

# The full error record as held in the error log of a harvest.

TracedError = namedtuple("TracedError", ["start_time", "path", "message", "type", "caller", "parameters"])


def _text(value):
    try:
        return str(value)
    except Exception:
        return f"<unprintable {type(value).__name__} object>"


class TypedError(namedtuple("TypedError", ["value"])):
    __slots__ = ()

    @property
    def type_name(self):
        return exception_type_name(self.value)

    @property
    def message(self):
        return _text(self.value)

    @property
    def traceback(self):
        return getattr(self.value, "__traceback__", None)


class OtherValue(namedtuple("OtherValue", ["text", "traceback"])):
    __slots__ = ()

    type_name = PANIC_ERROR_CLASS

    @property
    def message(self):
        return self.text


def classify_error(value):
    """Resolves the value into either a TypedError or an OtherValue."""

    if isinstance(value, Exception):
        return TypedError(value)

    return OtherValue(_text(value), getattr(value, "__traceback__", None))


def error_message(error, high_security=False):
    if high_security:
        return HIGH_SECURITY_ERROR_MESSAGE
    return error.message


class ErrorLog(SampledDataSet):
    """Bounded collection of the full error records for a harvest. When
    more errors are offered than can be held, they are sampled in the same
    way as events so the errors retained are representative of the period.

    """

    def errors(self):
        return sorted(self.samples, key=lambda error: error.start_time)


def create_error_event(error, transaction):
    intrinsics = {
        "type": "TransactionError",
        "error.class": error.type,
        "error.message": error.message,
        "timestamp": error.timestamp,
        "transactionName": transaction.path,
        "duration": transaction.duration,
    }

    return [intrinsics, {}]
