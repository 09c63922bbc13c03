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

import functools

from wrapt import FunctionWrapper

from telemetra.api.application import Application, application_instance
from telemetra.api.transaction import Transaction, current_transaction
from telemetra.common.object_names import callable_name


class BackgroundTask(Transaction):
    transaction_type = "OtherTransaction"


def BackgroundTaskWrapper(wrapped, application=None, name=None):
    def wrapper(wrapped, instance, args, kwargs):
        transaction = current_transaction()

        if callable(name):
            if instance is not None:
                _name = name(instance, *args, **kwargs)
            else:
                _name = name(*args, **kwargs)

        elif name is None:
            _name = callable_name(wrapped)

        else:
            _name = name

        # If nested in another transaction be it a web transaction or
        # background task, then we don't do anything else and just call
        # the wrapped function.

        if transaction:
            return wrapped(*args, **kwargs)

        # Otherwise treat it as top level transaction.

        if not isinstance(application, Application):
            _application = application_instance(application)
        else:
            _application = application

        with BackgroundTask(_application, _name):
            return wrapped(*args, **kwargs)

    return FunctionWrapper(wrapped, wrapper)


def background_task(application=None, name=None):
    return functools.partial(BackgroundTaskWrapper, application=application, name=name)
