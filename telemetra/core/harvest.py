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

"""The harvest is what collects the accumulated metrics, details of errors
and the sampled events for one reporting period. There is one live harvest
per application. A finished transaction is first distilled into a workarea,
a harvest of its own, which is then merged into the live harvest. At the end
of the reporting period the live harvest is rotated out for export and a
fresh one put in its place.

All the data held is protected by a single lock so that a merge is seen by
a rotation either in full or not at all. The workarea is only ever used by
the one thread and the lock taken on it is never contended.

"""

import logging
import threading
import time

from telemetra.core.config import global_settings
from telemetra.core.error_collector import ErrorLog
from telemetra.core.stats_engine import MetricTable, SampledDataSet

_logger = logging.getLogger(__name__)


class Harvest:
    def __init__(self, settings=None, period_start=None):
        self._lock = threading.Lock()
        self.__settings = settings or global_settings()
        self.period_start = time.time() if period_start is None else period_start
        self._reset()

    def _reset(self):
        settings = self.__settings

        self.__metrics = MetricTable(settings.agent_limits.metrics_per_harvest)
        self.__errors = ErrorLog(settings.agent_limits.errors_per_harvest)
        self.__custom_events = SampledDataSet(settings.custom_insights_events.max_samples_stored)
        self.__error_events = SampledDataSet(settings.error_collector.max_event_samples_stored)
        self.__transaction_events = SampledDataSet(settings.transaction_events.max_samples_stored)
        self.__transaction_count = 0

    @property
    def settings(self):
        return self.__settings

    @property
    def metrics(self):
        return self.__metrics

    @property
    def errors(self):
        return self.__errors

    @property
    def custom_events(self):
        return self.__custom_events

    @property
    def error_events(self):
        return self.__error_events

    @property
    def transaction_events(self):
        return self.__transaction_events

    @property
    def transaction_count(self):
        return self.__transaction_count

    def create_workarea(self):
        """Creates and returns a new empty harvest object. This would be
        used to distill data from a single transaction before then merging
        it back into the parent.

        """

        return Harvest(self.__settings, period_start=self.period_start)

    def record_transaction(self, transaction):
        """Record the apdex and time metrics for the transaction as well as
        any errors and events. What is recorded is subject to the policy
        captured by the transaction when it started.

        """

        policy = transaction.policy

        with self._lock:
            self.__transaction_count += 1

            self.__metrics.record_apdex_metrics(transaction.apdex_metrics())
            self.__metrics.record_time_metrics(transaction.time_metrics())

            # Errors would only have been staged against the transaction
            # if error collection was allowed. The error events are then
            # subject to a policy of their own.

            for error in transaction.error_details():
                self.__errors.add(error)

            if policy.error_events_enabled:
                for event in transaction.error_events():
                    self.__error_events.add(event)

            if policy.transaction_events_enabled:
                self.__transaction_events.add(transaction.transaction_event())

    def record_custom_event(self, event):
        with self._lock:
            self.__custom_events.add(event)

    def merge(self, other, rollback=False):
        """Merges all data from another harvest into this one. This is used
        when merging data from a single transaction into the live harvest.
        It would also be done if the export of a rotated out harvest failed
        and the data is to be carried into the subsequent harvest.

        """

        if rollback:
            _logger.debug("Performing rollback of harvest data into subsequent harvest period.")

        # Taking the lock of the other harvest as well is only safe as
        # long as it is never the live harvest of another application.

        with self._lock, other._lock:
            self.__metrics.merge(other.__metrics)
            self.__errors.merge(other.__errors)
            self.__custom_events.merge(other.__custom_events)
            self.__error_events.merge(other.__error_events)
            self.__transaction_events.merge(other.__transaction_events)
            self.__transaction_count += other.__transaction_count

            if rollback:
                self.period_start = min(self.period_start, other.period_start)

    def rotate(self, now=None):
        """Swaps out all of the accumulated data for fresh empty containers
        with the reporting period starting at now. The prior data is
        returned as a new harvest for export.

        """

        if now is None:
            now = time.time()

        snapshot = Harvest(self.__settings, period_start=self.period_start)

        with self._lock:
            snapshot.__metrics = self.__metrics
            snapshot.__errors = self.__errors
            snapshot.__custom_events = self.__custom_events
            snapshot.__error_events = self.__error_events
            snapshot.__transaction_events = self.__transaction_events
            snapshot.__transaction_count = self.__transaction_count
            snapshot.period_start = self.period_start

            self._reset()
            self.period_start = now

        return snapshot

    def metric_data(self):
        with self._lock:
            return self.__metrics.metric_data()

    def error_data(self):
        with self._lock:
            return self.__errors.errors()

    def custom_event_data(self):
        with self._lock:
            return list(self.__custom_events.samples)

    def error_event_data(self):
        with self._lock:
            return list(self.__error_events.samples)

    def transaction_event_data(self):
        with self._lock:
            return list(self.__transaction_events.samples)
