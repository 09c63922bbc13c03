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

import logging
import sys
import threading
import time

from telemetra.common.object_names import callable_name, frame_name
from telemetra.core import exceptions
from telemetra.core.error_collector import ErrorNode, classify_error, error_message
from telemetra.core.policy import ERRORS
from telemetra.core.stack_trace import current_stack, exception_stack
from telemetra.core.transaction_node import TransactionNode, metric_path

_logger = logging.getLogger(__name__)

_transaction_cache = threading.local()


def _active_transactions():
    # Transactions running on this thread, innermost last. An inner
    # transaction ending hands back to the one it was started within.

    try:
        return _transaction_cache.active
    except AttributeError:
        _transaction_cache.active = []
        return _transaction_cache.active


def _save_transaction(transaction):
    _active_transactions().append(transaction)


def _drop_transaction(transaction):
    active = _active_transactions()
    if transaction in active:
        active.remove(transaction)


class Transaction:
    STATE_PENDING = 0
    STATE_RUNNING = 1
    STATE_STOPPED = 2

    transaction_type = "OtherTransaction"
    group = "Pattern"

    def __init__(self, application, name=None, response=None):
        self._application = application

        self._state = self.STATE_PENDING

        # The settings and policy in force for the application are
        # captured when the transaction is created and used for the
        # whole of its life.

        self._settings = application.settings
        self._policy = application.policy

        self._name = name
        self._request_uri = None

        self._response = response
        self._response_code = None

        self.start_time = 0.0
        self.end_time = 0.0

        self._errors = []

    def __enter__(self):
        if self._state == self.STATE_PENDING:
            self.start()

        return self

    def __exit__(self, exc, value, tb):
        # Any exception escaping the block is recorded but never
        # suppressed. Returning False lets it continue on up to the
        # caller unchanged.

        self.end(exc, value, tb)

        return False

    def start(self):
        assert self._state == self.STATE_PENDING

        self._state = self.STATE_RUNNING

        # Cache transaction in thread local storage so that it can be
        # accessed from anywhere in the context of the transaction.

        _save_transaction(self)

        self.start_time = time.time()

        return self

    @property
    def state(self):
        return self._state

    @property
    def settings(self):
        return self._settings

    @property
    def policy(self):
        return self._policy

    @property
    def application(self):
        return self._application

    @property
    def name(self):
        return self._name

    @property
    def is_running(self):
        return self._state == self.STATE_RUNNING

    @property
    def path(self):
        name = self._name

        if name is None:
            name = "<undefined>"

        return f"{self.transaction_type}/{metric_path(self.group, name)}"

    @property
    def response_code(self):
        return self._response_code

    @property
    def errors(self):
        return tuple(self._errors)

    def set_name(self, name):
        """Changes the name the transaction is reported under. Only the
        name in place when the transaction ends is used.

        """

        if not self.is_running:
            return exceptions.ALREADY_ENDED

        self._name = name

    def notice_error(self, error):
        """Records the error against the transaction. Returns None if the
        error was recorded, or the condition explaining why it was not.

        """

        if not self.is_running:
            return exceptions.ALREADY_ENDED

        if error is None:
            return exceptions.NIL_ERROR

        caller = sys._getframe(1)

        return self._record_error(error, frame_name(caller), current_stack(skip=1))

    def _record_error(self, value, caller, stack_trace=None):
        condition = self._policy.condition(ERRORS)

        if condition is not None:
            _logger.debug("Error not recorded for transaction %r: %s.", self.path, condition)
            return condition

        # Only remember up to limit of what can be caught for a
        # single transaction.

        if len(self._errors) >= self._settings.agent_limits.errors_per_transaction:
            return None

        error = classify_error(value)

        message = error_message(error, self._policy.high_security)

        # Check that we have not recorded this error previously for
        # this transaction. Better that we under count errors of the
        # same type and message rather than count the same one
        # multiple times.

        for node in self._errors:
            if node.type == error.type_name and node.message == message:
                return None

        if error.traceback is not None:
            stack_trace = exception_stack(error.traceback)

        node = ErrorNode(
            timestamp=time.time(),
            type=error.type_name,
            message=message,
            caller=caller,
            stack_trace=stack_trace or [],
        )

        self._errors.append(node)

        return None

    def end(self, exc=None, value=None, tb=None):
        """Ends the transaction and records what it collected against the
        application. Where the transaction is being ended because of an
        exception, that exception is first recorded as an error. Returns
        the already ended condition if called a second time.

        """

        if self._state == self.STATE_STOPPED:
            return exceptions.ALREADY_ENDED

        if self._state == self.STATE_PENDING:
            self.start()

        # Record error if one was registered.

        if value is not None:
            if tb is not None and isinstance(value, BaseException) and value.__traceback__ is None:
                value.__traceback__ = tb
            self._record_error(value, _END_CALLER)

        self._state = self.STATE_STOPPED

        _drop_transaction(self)

        # Record the end time for transaction and then calculate the
        # duration. The clock may have been wound backwards so the
        # duration is never allowed to go negative.

        self.end_time = time.time()

        duration = max(0.0, self.end_time - self.start_time)

        node = TransactionNode(
            settings=self._settings,
            policy=self._policy,
            path=self.path,
            type=self.transaction_type,
            group=self.group,
            name=self._name or "<undefined>",
            request_uri=self._request_uri,
            response_code=self._response_code,
            start_time=self.start_time,
            end_time=self.end_time,
            duration=duration,
            exclusive=duration,
            errors=tuple(self._errors),
            apdex_t=self._settings.apdex_t,
        )

        self._application.record_transaction(node)

    # The response operations are passed through to any response object
    # supplied when the transaction was started. The status written is
    # observed along the way and reported with the transaction. Once the
    # transaction has ended the status is no longer observed, but the
    # calls are still passed through so the response is not lost.

    def header(self):
        if self._response is not None:
            return self._response.header()
        return None

    def write_header(self, code):
        if self.is_running:
            self._response_code = code

        if self._response is not None:
            return self._response.write_header(code)

    def write(self, data):
        if self.is_running and self._response_code is None:
            self._response_code = 200

        if self._response is not None:
            return self._response.write(data)

        return len(data)


_END_CALLER = callable_name(Transaction.end)


def current_transaction():
    """Returns the transaction running on the current thread, or None
    if there is no such transaction.

    """

    active = _active_transactions()
    return active[-1] if active else None


def set_transaction_name(name):
    transaction = current_transaction()
    if transaction is None:
        return exceptions.NO_TRANSACTION

    return transaction.set_name(name)


def notice_error(error):
    transaction = current_transaction()
    if transaction is None:
        _logger.debug("No transaction running on this thread. Error %r not recorded.", error)
        return exceptions.NO_TRANSACTION

    if error is None:
        return exceptions.NIL_ERROR

    caller = sys._getframe(1)

    return transaction._record_error(error, frame_name(caller), current_stack(skip=1))


def record_custom_event(event_type, params, application=None):
    """Record a custom event.

    Args:
        event_type (str): The type (name) of the custom event.
        params (dict): Attributes to add to the event.
        application (telemetra.api.Application): Application instance.

    """

    if application is None:
        transaction = current_transaction()
        if transaction:
            application = transaction.application
        else:
            from telemetra.api.application import application_instance

            application = application_instance()

    return application.record_custom_event(event_type, params)
