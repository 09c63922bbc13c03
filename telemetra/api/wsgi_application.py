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

# Provide a WSGI application middleware wrapper for initiating a web
# transaction for each request and ensuring that timing is started and
# stopped appropriately. For the WSGI compliant case the latter requires
# attaching to when the 'close()' method of any iterable returned by a
# WSGI application is called. The only way to do this is to wrap the
# response from the WSGI application with an iterable of our own which
# has a 'close()' method which in turn calls the 'close()' method of the
# wrapped iterable when it exists and then ends the transaction.

import functools
import sys

from wrapt import FunctionWrapper

from telemetra.api.application import Application, application_instance
from telemetra.api.transaction import current_transaction
from telemetra.api.web_transaction import WebTransaction

ENVIRON_TRANSACTION_KEY = "telemetra.transaction"


class _WSGIApplicationIterable:
    def __init__(self, transaction, generator):
        self.transaction = transaction
        self.generator = generator

    def __iter__(self):
        try:
            for item in self.generator:
                yield item

        except GeneratorExit:
            raise

        except BaseException:
            self.transaction.end(*sys.exc_info())
            raise

    def close(self):
        try:
            if hasattr(self.generator, "close"):
                self.generator.close()

        except BaseException:
            self.transaction.end(*sys.exc_info())
            raise

        else:
            self.transaction.end()


def WSGIApplicationWrapper(wrapped, application=None, name=None):
    def _wsgi_application_wrapper_(wrapped, instance, args, kwargs):
        def _args(environ, start_response, *args, **kwargs):
            return environ, start_response

        environ, start_response = _args(*args, **kwargs)

        # If nested in another transaction we don't do anything else
        # and just call the wrapped function.

        if current_transaction():
            return wrapped(*args, **kwargs)

        if not isinstance(application, Application):
            _application = application_instance(application)
        else:
            _application = application

        transaction = WebTransaction(_application, name, request=environ)
        transaction.start()

        # Make the transaction available to the WSGI application so it
        # can name the transaction or notice errors against it.

        environ[ENVIRON_TRANSACTION_KEY] = transaction

        def _start_response(status, response_headers, *args):
            transaction.process_response(status, response_headers, *args)
            return start_response(status, response_headers, *args)

        try:
            result = wrapped(environ, _start_response)

        except BaseException:
            transaction.end(*sys.exc_info())
            raise

        return _WSGIApplicationIterable(transaction, result)

    return FunctionWrapper(wrapped, _wsgi_application_wrapper_)


def wsgi_application(application=None, name=None):
    return functools.partial(WSGIApplicationWrapper, application=application, name=name)
