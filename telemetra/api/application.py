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

import threading

import telemetra.core.agent
import telemetra.core.config


class Application:
    _lock = threading.Lock()
    _instances = {}

    @staticmethod
    def _instance(name, settings_overrides=None):
        if name is None:
            name = telemetra.core.config.global_settings().app_name

        # Try first without lock. If we find it we can return.

        instance = Application._instances.get(name, None)

        if not instance:
            with Application._lock:
                # Now try again with lock so that only one gets
                # to create and add it.

                instance = Application._instances.get(name, None)
                if not instance:
                    instance = Application(name, settings_overrides=settings_overrides)
                    Application._instances[name] = instance

        return instance

    def __init__(self, name, application=None, settings_overrides=None):
        """Wraps the internal application object. When no internal
        application object is supplied, the application is activated
        with the agent under the given name.

        """

        self._name = name

        if application is None:
            agent = telemetra.core.agent.agent()
            application = agent.activate_application(name, settings_overrides)

        self._application = application

    @property
    def name(self):
        return self._name

    @property
    def settings(self):
        return self._application.settings

    @property
    def policy(self):
        return self._application.policy

    @property
    def core_application(self):
        return self._application

    def set_remote_policy(self, remote_policy):
        self._application.set_remote_policy(remote_policy)

    def connect(self, server_config):
        self._application.connect(server_config)

    def start_transaction(self, name, response=None, request=None):
        """Starts a transaction with the given name. A transaction started
        with a request is a web transaction, otherwise it is a background
        task. The transaction is returned already running.

        """

        from telemetra.api.background_task import BackgroundTask
        from telemetra.api.web_transaction import WebTransaction

        if request is not None:
            transaction = WebTransaction(self, name, request=request, response=response)
        else:
            transaction = BackgroundTask(self, name, response=response)

        return transaction.start()

    def record_transaction(self, data):
        self._application.record_transaction(data)

    def record_custom_event(self, event_type, params):
        return self._application.record_custom_event(event_type, params)

    def harvest(self, shutdown=False):
        return self._application.harvest(shutdown)


def application_instance(name=None):
    return Application._instance(name)


def register_application(name=None, settings=None):
    """Activates the named application, applying the dictionary of
    setting overrides if this is the first time it is being activated.

    """

    return Application._instance(name, settings_overrides=settings)
