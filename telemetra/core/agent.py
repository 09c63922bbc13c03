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

"""This module holds the Agent class which is the primary interface for
interacting with the agent core.

"""

import atexit
import logging
import threading
import time

import telemetra
import telemetra.core.application
import telemetra.core.config
import telemetra.core.log_file

_logger = logging.getLogger(__name__)


class Agent:
    """Only one instance of the agent should ever exist and that can be
    obtained using the agent() function.

    Each reporting application is activated using the activate_application()
    method of the agent. Application specific settings, consisting of the
    global default configuration settings overlaid with any overrides for
    that application, are snapshotted at the time of activation.

    The agent runs a single background thread which at the end of each
    reporting period rotates out the data collected by every application
    and hands it to the registered exporter. A final harvest is performed
    when the process exits.

    """

    _lock = threading.Lock()
    _instance = None

    @staticmethod
    def agent_singleton():
        """Used by the agent() function to access/create the single
        agent object instance.

        """

        if Agent._instance:
            return Agent._instance

        # Just in case that the main initialisation function
        # wasn't called to read in a configuration file and as
        # such the logging system was not initialised already,
        # we trigger initialisation again here.

        telemetra.core.log_file.initialize()

        _logger.info("Telemetra Python Agent (%s)", telemetra.version)

        with Agent._lock:
            if not Agent._instance:
                _logger.debug("Creating instance of Python agent.")

                settings = telemetra.core.config.global_settings()
                Agent._instance = Agent(settings)

            return Agent._instance

    def __init__(self, config):
        """Initialises the agent. The harvest loop is only started once
        the first application is activated.

        """

        _logger.debug("Initializing Python agent.")

        self._applications = {}
        self._config = config
        self._exporter = None

        self._harvest_thread = threading.Thread(target=self._harvest_loop, name="Telemetra-Harvest-Thread")
        self._harvest_thread.daemon = True
        self._harvest_shutdown = threading.Event()

        self._next_harvest = 0.0

        atexit.register(self._atexit_shutdown)

    def application(self, app_name):
        """Returns the internal application object for the named
        application or None if not created.

        """

        return self._applications.get(app_name, None)

    def activate_application(self, app_name, settings_overrides=None):
        """Creates the internal application object for the named
        application if this has not been done previously and returns it.
        Any settings overrides only apply when the application is first
        created.

        """

        with Agent._lock:
            application = self._applications.get(app_name, None)
            if not application:
                overrides = {"app_name": app_name}
                overrides.update(settings_overrides or {})

                settings = telemetra.core.config.create_settings_snapshot(overrides)

                application = telemetra.core.application.Application(app_name, settings, self._exporter)
                self._applications[app_name] = application

        self.activate_agent()

        return application

    def remove_application(self, app_name):
        """Discards the named application along with any data it has
        collected and not yet exported.

        """

        with Agent._lock:
            return self._applications.pop(app_name, None)

    def register_exporter(self, exporter):
        """Registers the callable which is handed the harvest for each
        application at the end of a reporting period. It is called with
        the name of the application and the rotated out harvest.

        """

        with Agent._lock:
            self._exporter = exporter
            for application in self._applications.values():
                application.exporter = exporter

    def _harvest_loop(self):
        self._next_harvest = time.time()

        interval = self._config.harvest_interval

        while True:
            if self._harvest_shutdown.is_set():
                # We would have just finished a harvest or only
                # just started the agent, so don't bother doing
                # a forced harvest if shutting down anyway.

                self._run_harvest(shutdown=True)

                return

            # We are either going into the loop the first time, or we
            # are overdue already for next harvest. Skip it and wait
            # until the next harvest time instead.

            now = time.time()
            while self._next_harvest <= now:
                self._next_harvest += interval

            # Wait until next harvest period but drop out and force
            # harvest if been notified that process is being shutdown.

            delay = self._next_harvest - now
            self._harvest_shutdown.wait(delay)

            if self._harvest_shutdown.is_set():
                # Force a final harvest on agent shutdown.

                self._run_harvest(shutdown=True)

                return

            self._run_harvest(shutdown=False)

    def _run_harvest(self, shutdown=False):
        if shutdown:
            _logger.debug("Commencing harvest of all application data and forcing a shutdown at the same time.")
        else:
            _logger.debug("Commencing harvest of all application data.")

        start = time.time()

        for application in list(self._applications.values()):
            try:
                application.harvest(shutdown)

            except Exception:
                _logger.exception("Failed to harvest data for %s.", application.name)

        duration = time.time() - start

        _logger.debug("Completed harvest of all application data in %.2f seconds.", duration)

    def activate_agent(self):
        """Starts the main background thread for the agent."""

        with Agent._lock:
            if self._harvest_thread.is_alive() or self._harvest_shutdown.is_set():
                return

            if self._config.harvest_interval <= 0:
                return

            _logger.debug("Start Python Agent main thread.")

            self._harvest_thread.start()

    def shutdown_agent(self, timeout=None):
        if self._harvest_shutdown.is_set():
            return

        if timeout is None:
            timeout = self._config.shutdown_timeout

        _logger.info("Telemetra Python Agent Shutdown")

        self._harvest_shutdown.set()

        if self._harvest_thread.is_alive():
            self._harvest_thread.join(timeout)
        else:
            self._run_harvest(shutdown=True)

    def _atexit_shutdown(self):
        self.shutdown_agent()


def agent():
    """Returns the agent object. This function should always be used and
    instances of the agent object should never be created directly to
    ensure there is only ever one instance.

    """

    return Agent.agent_singleton()


def shutdown_agent(timeout=None):
    agent().shutdown_agent(timeout)


def register_exporter(exporter):
    agent().register_exporter(exporter)
