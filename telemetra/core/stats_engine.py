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

"""The building blocks of a harvest. The metric table accumulates apdex
and time metrics keyed by name and scope. The sampled data set holds a
bounded, uniformly sampled collection of events.

Note that there is no locking performed within any of these classes. It is
assumed the holder of an instance performs adequate external locking to
ensure that multiple threads do not try and update it at the same time.

"""

import copy
import logging
import operator
import random

_logger = logging.getLogger(__name__)

METRICS_DROPPED_METRIC = "Supportability/MetricsDropped"


class ApdexStats(list):
    """Bucket for accumulating apdex metrics."""

    # Is based on a list of length 6 as all metrics are exported as
    # that and list as base class means it encodes direct to JSON. In
    # this case only the first 3 entries are strictly used for the
    # metric. The 4th and 5th entries are set to be the minimum and
    # maximum apdex_t value in use over the period.

    def __init__(self, satisfying=0, tolerating=0, frustrating=0, apdex_t=0.0):
        super().__init__([satisfying, tolerating, frustrating, apdex_t, apdex_t, 0])

    satisfying = property(operator.itemgetter(0))
    tolerating = property(operator.itemgetter(1))
    frustrating = property(operator.itemgetter(2))
    min_apdex_t = property(operator.itemgetter(3))
    max_apdex_t = property(operator.itemgetter(4))

    @property
    def call_count(self):
        return self[0] + self[1] + self[2]

    def merge_stats(self, other):
        """Merge data from another instance of this object."""

        if other[0] or other[1] or other[2]:
            if self[0] or self[1] or self[2]:
                self[3] = min(self[3], other[3])
                self[4] = max(self[4], other[4])
            else:
                self[3] = other[3]
                self[4] = other[4]

        self[0] += other[0]
        self[1] += other[1]
        self[2] += other[2]

    def merge_apdex_metric(self, metric):
        """Merge data from an apdex metric object."""

        self.merge_stats(ApdexStats(metric.satisfying, metric.tolerating, metric.frustrating, metric.apdex_t))


class TimeStats(list):
    """Bucket for accumulating time metrics."""

    # Is based on a list of length 6 as all metrics are exported as
    # that and list as base class means it encodes direct to JSON.

    def __init__(
        self,
        call_count=0,
        total_call_time=0.0,
        total_exclusive_call_time=0.0,
        min_call_time=0.0,
        max_call_time=0.0,
        sum_of_squares=0.0,
    ):
        super().__init__(
            [call_count, total_call_time, total_exclusive_call_time, min_call_time, max_call_time, sum_of_squares]
        )

    call_count = property(operator.itemgetter(0))
    total_call_time = property(operator.itemgetter(1))
    total_exclusive_call_time = property(operator.itemgetter(2))
    min_call_time = property(operator.itemgetter(3))
    max_call_time = property(operator.itemgetter(4))
    sum_of_squares = property(operator.itemgetter(5))

    def merge_stats(self, other):
        """Merge data from another instance of this object."""

        # The minimum of an empty side is meaningless so is only taken
        # into consideration when that side has seen calls.

        if other[0]:
            if self[0]:
                self[3] = min(self[3], other[3])
                self[4] = max(self[4], other[4])
            else:
                self[3] = other[3]
                self[4] = other[4]

        self[1] += other[1]
        self[2] += other[2]
        self[5] += other[5]

        # Must update the call count last as update of the
        # minimum call time is dependent on initial value.

        self[0] += other[0]

    def merge_raw_time_metric(self, duration, exclusive=None):
        """Merge time value."""

        if exclusive is None:
            exclusive = duration

        self.merge_stats(TimeStats(1, duration, exclusive, duration, duration, duration**2))

    def merge_time_metric(self, metric):
        """Merge data from a time metric object."""

        self.merge_raw_time_metric(metric.duration, metric.exclusive)


class MetricTable:
    """Table of apdex and time metrics keyed by the tuple (name, scope).

    Metrics flagged as forced are always kept. Any other metric is only
    added while the number of distinct metrics is below the limit. Once
    the limit is reached, data for metrics not already present is dropped
    with the number of metrics dropped being counted against a forced
    supportability metric.

    """

    def __init__(self, limit=2000):
        self.limit = limit
        self._stats_table = {}
        self._forced = set()

    def __len__(self):
        return len(self._stats_table)

    def __contains__(self, key):
        return self._key(key) in self._stats_table

    def __iter__(self):
        return iter(self._stats_table.items())

    @staticmethod
    def _key(key):
        if isinstance(key, str):
            return (key, "")
        name, scope = key
        return (name, scope or "")

    def get(self, name, scope=""):
        return self._stats_table.get((name, scope or ""))

    def is_forced(self, name, scope=""):
        return (name, scope or "") in self._forced

    def _stats_for(self, key, forced, factory):
        stats = self._stats_table.get(key)

        if stats is not None:
            if forced:
                self._forced.add(key)
            return stats

        if not forced and len(self._stats_table) >= self.limit:
            _logger.debug("Metric table limit of %r reached. Dropping metric %r.", self.limit, key)
            self._count_dropped()
            return None

        stats = factory()
        self._stats_table[key] = stats

        if forced:
            self._forced.add(key)

        return stats

    def _count_dropped(self):
        key = (METRICS_DROPPED_METRIC, "")
        stats = self._stats_table.get(key)
        if stats is None:
            stats = TimeStats()
            self._stats_table[key] = stats
            self._forced.add(key)
        stats.merge_raw_time_metric(0.0)

    def record_time_metric(self, metric):
        """Record a single time metric, merging the data with any data
        from prior time metrics with the same name and scope.

        """

        key = (metric.name, metric.scope or "")
        stats = self._stats_for(key, metric.forced, TimeStats)
        if stats is not None:
            stats.merge_time_metric(metric)
        return key

    def record_time_metrics(self, metrics):
        for metric in metrics:
            self.record_time_metric(metric)

    def record_apdex_metric(self, metric):
        """Record a single apdex metric, merging the data with any data
        from prior apdex metrics with the same name.

        """

        key = (metric.name, "")
        stats = self._stats_for(key, metric.forced, lambda: ApdexStats(apdex_t=metric.apdex_t))
        if stats is not None:
            stats.merge_apdex_metric(metric)
        return key

    def record_apdex_metrics(self, metrics):
        for metric in metrics:
            self.record_apdex_metric(metric)

    def merge(self, other):
        """Merges all the metrics from another table into this one. The
        stats for the same key are combined by pure aggregation so the
        order in which tables are merged does not change the result.

        """

        for key, other_stats in other._stats_table.items():
            forced = key in other._forced
            stats = self._stats_for(key, forced, lambda: type(other_stats)())
            if stats is not None:
                stats.merge_stats(other_stats)

    def metric_data(self):
        """Returns a list containing the metric data for export. This
        consists of tuple pairs where first is dictionary with name and
        scope keys with corresponding values. The second is the list of
        accumulated metric data, the list always being of length 6.

        """

        return [({"name": name, "scope": scope}, copy.copy(stats)) for (name, scope), stats in self._stats_table.items()]


class SampledDataSet:
    """Reservoir of samples. Once full, each further sample offered
    replaces a random existing sample with a probability which decreases
    as more samples are seen. The retained samples are then a uniform
    random subset of all the samples offered.

    """

    def __init__(self, capacity=100):
        self.capacity = capacity
        self.num_seen = 0
        self.pq = []

    @property
    def samples(self):
        return iter(self.pq)

    @property
    def num_samples(self):
        return len(self.pq)

    @property
    def is_sampled(self):
        return self.num_seen > len(self.pq)

    def reset(self):
        self.pq = []
        self.num_seen = 0

    def add(self, sample):
        if self.capacity <= 0:
            self.num_seen += 1
            return

        if len(self.pq) < self.capacity:
            self.pq.append(sample)
        else:
            index = random.randint(0, self.num_seen)
            if index < self.capacity:
                self.pq[index] = sample

        self.num_seen += 1

    def merge(self, other):
        """Merges the samples from another data set into this one.

        Where the other data set kept everything it was offered, the
        samples are offered one at a time which gives the same result as
        if they had been added here directly. Otherwise each side's samples
        stand for more events than they number. In that case the number of
        slots filled from each side is drawn as if picking events without
        replacement from all the events the two sides have seen.

        """

        if not other.is_sampled:
            for sample in other.pq:
                self.add(sample)
            return

        slots = min(self.capacity, len(self.pq) + len(other.pq))

        remaining_self = self.num_seen
        remaining_other = other.num_seen

        from_self = 0

        for _ in range(slots):
            if random.randint(1, remaining_self + remaining_other) <= remaining_self:
                from_self += 1
                remaining_self -= 1
            else:
                remaining_other -= 1

        # A side may have retained fewer samples than it is due. Any
        # shortfall is made up from the other side.

        from_self = min(from_self, len(self.pq))
        from_other = min(slots - from_self, len(other.pq))
        from_self = min(slots - from_other, len(self.pq))

        self.pq = random.sample(self.pq, from_self) + random.sample(other.pq, from_other)
        self.num_seen += other.num_seen
