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

"""This module implements data recording and reporting for an application."""

import logging
import threading
import time

from telemetra.core import exceptions
from telemetra.core.config import create_settings_snapshot
from telemetra.core.custom_event import create_custom_event, process_event_type
from telemetra.core.exceptions import DiscardDataForRequest, RetryDataForRequest
from telemetra.core.harvest import Harvest
from telemetra.core.policy import CUSTOM_EVENTS, RemotePolicy, resolve_policy

_logger = logging.getLogger(__name__)


class Application:
    """Class which maintains recorded data for a single application."""

    def __init__(self, app_name, settings=None, exporter=None):
        _logger.debug("Initializing application with name %r.", app_name)

        self._app_name = app_name

        if settings is None:
            settings = create_settings_snapshot({"app_name": app_name})

        self._settings = settings
        self._exporter = exporter

        self._merge_count = 0

        self._agent_shutdown = False

        # The effective policy is replaced as a whole whenever the
        # remote policy changes. Readers take the reference without
        # locking and will see either the old or the new one.

        self._policy_lock = threading.Lock()
        self._remote_policy = None
        self._policy = resolve_policy(settings)

        self._harvest = Harvest(settings)

    @property
    def name(self):
        return self._app_name

    @property
    def settings(self):
        return self._settings

    @property
    def policy(self):
        return self._policy

    @property
    def remote_policy(self):
        return self._remote_policy

    @property
    def live_harvest(self):
        return self._harvest

    @property
    def exporter(self):
        return self._exporter

    @exporter.setter
    def exporter(self, exporter):
        self._exporter = exporter

    def set_remote_policy(self, remote_policy):
        """Replaces the remote policy. Passing None returns the application
        to the state of the remote policy not being known, which disables
        nothing.

        """

        with self._policy_lock:
            self._remote_policy = remote_policy
            self._policy = resolve_policy(self._settings, remote_policy)

        _logger.debug("Effective policy for %r is now %r.", self._app_name, self._policy)

    def connect(self, server_config):
        """Applies the configuration returned by the server when the agent
        connected.

        """

        self.set_remote_policy(RemotePolicy.from_server_config(server_config))

    def record_transaction(self, data):
        """Record a single transaction against this application."""

        if self._agent_shutdown:
            return

        # We accumulate data into a workarea and only then merge it into
        # the live harvest. Do this to ensure that the process of
        # generating the metrics doesn't unnecessarily hold the lock on
        # the live harvest and lock out another thread.

        try:
            workarea = self._harvest.create_workarea()
            workarea.record_transaction(data)

        except Exception:
            _logger.exception(
                "The generation of transaction data has failed. This would indicate some sort of internal "
                "implementation issue with the agent."
            )
            return

        try:
            self._harvest.merge(workarea)

        except Exception:
            _logger.exception(
                "The merging of transaction data has failed. This would indicate some sort of internal "
                "implementation issue with the agent."
            )

    def record_custom_event(self, event_type, params):
        """Records a custom event. Returns None if the event was offered
        for sampling, or the condition explaining why it was not.

        """

        condition = self._policy.condition(CUSTOM_EVENTS)

        if condition is not None:
            _logger.debug("Custom event %r not recorded: %s.", event_type, condition)
            return condition

        if process_event_type(event_type) is None:
            return exceptions.EVENT_TYPE_INVALID

        event = create_custom_event(event_type, params, settings=self._settings)

        if event is None:
            return exceptions.EVENT_ATTRIBUTES_INVALID

        self._harvest.record_custom_event(event)

    def harvest(self, shutdown=False):
        """Rotates out the data for the current reporting period and hands
        it to the exporter. Returns the rotated out harvest.

        """

        if self._agent_shutdown:
            return None

        start = time.time()

        _logger.debug("Commencing data harvest for %r.", self._app_name)

        snapshot = self._harvest.rotate(start)

        debug = self._settings.debug

        if debug.log_raw_metric_data:
            _logger.info("Raw metric data for harvest of %r is %r.", self._app_name, snapshot.metric_data())

        if debug.log_harvest_snapshot:
            _logger.info(
                "Harvest of %r covering %d transactions holds %d metrics, %d errors, %d custom events, "
                "%d error events and %d transaction events.",
                self._app_name,
                snapshot.transaction_count,
                len(snapshot.metrics),
                snapshot.errors.num_samples,
                snapshot.custom_events.num_samples,
                snapshot.error_events.num_samples,
                snapshot.transaction_events.num_samples,
            )

        if self._exporter is not None:
            try:
                self._exporter(self._app_name, snapshot)

                self._merge_count = 0

            except RetryDataForRequest:
                # A potentially recoverable error occurred. We merge the
                # data back into that for the current period. In order to
                # prevent memory growth we will only merge data up to a
                # set maximum number of successive times.

                self._merge_count += 1

                maximum = self._settings.agent_limits.merge_stats_maximum

                if self._merge_count <= maximum:
                    self._harvest.merge(snapshot, rollback=True)

                else:
                    _logger.error(
                        "Unable to report harvest data after %r successive attempts. Check the log messages "
                        "for the cause of the failures.",
                        maximum,
                    )

                    self._merge_count = 0

            except DiscardDataForRequest:
                # If we retry with same data the same error is likely to
                # occur again so we just throw the data away.

                _logger.debug("Harvest data for %r was discarded by the exporter.", self._app_name)

            except Exception:
                _logger.exception(
                    "Unexpected exception when attempting to export the harvest data for %r.", self._app_name
                )

        if shutdown:
            self._agent_shutdown = True

        duration = time.time() - start

        _logger.debug("Completed harvest for %r in %.2f seconds.", self._app_name, duration)

        return snapshot
