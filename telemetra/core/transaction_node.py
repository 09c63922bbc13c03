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

"""This module provides class holding data corresponding to a finished
transaction. It is created when the transaction ends and all the metrics,
errors and events recorded against a harvest for the transaction are
derived from it.

"""

from collections import namedtuple

from telemetra.core.error_collector import TracedError, create_error_event
from telemetra.core.metric import ApdexMetric, TimeMetric

_TransactionNode = namedtuple(
    "_TransactionNode",
    [
        "settings",
        "policy",
        "path",
        "type",
        "group",
        "name",
        "request_uri",
        "response_code",
        "start_time",
        "end_time",
        "duration",
        "exclusive",
        "errors",
        "apdex_t",
    ],
)


def metric_path(group, name):
    # A name which already starts with a slash, as a request path would,
    # is not separated from the group with another.

    if name.startswith("/"):
        return f"{group}{name}"
    return f"{group}/{name}"


class TransactionNode(_TransactionNode):
    """Class holding data corresponding to a finished transaction."""

    def __hash__(self):
        return id(self)

    @property
    def is_web_transaction(self):
        return self.type == "WebTransaction"

    def time_metrics(self):
        """Return a generator yielding the timed metrics for the
        transaction, along with the error metrics when any errors
        were recorded.

        """

        if not self.name:
            return

        if self.is_web_transaction:
            # Report time taken by request dispatcher. We don't
            # know upstream time distinct from actual request
            # time so can't report time exclusively in the
            # dispatcher.

            yield TimeMetric(name="HttpDispatcher", scope="", duration=self.duration, exclusive=None, forced=True)

        # Generate the full transaction metric.

        yield TimeMetric(name=self.path, scope="", duration=self.duration, exclusive=self.exclusive, forced=True)

        # Generate the rollup metric.

        if not self.is_web_transaction:
            rollup = f"{self.type}/all"
        else:
            rollup = self.type

        yield TimeMetric(name=rollup, scope="", duration=self.duration, exclusive=self.exclusive, forced=True)

        yield from self.error_metrics()

    def error_metrics(self):
        """Return a generator yielding the error metrics. Each has a count
        of one no matter how many errors the transaction recorded.

        """

        if not self.errors:
            return

        yield TimeMetric(name="Errors/all", scope="", duration=0.0, exclusive=None, forced=True)

        if self.is_web_transaction:
            yield TimeMetric(name="Errors/allWeb", scope="", duration=0.0, exclusive=None, forced=True)
        else:
            yield TimeMetric(name="Errors/allOther", scope="", duration=0.0, exclusive=None, forced=True)

        yield TimeMetric(name=f"Errors/{self.path}", scope="", duration=0.0, exclusive=None, forced=True)

    def apdex_metrics(self):
        """Return a generator yielding the apdex metrics for this node."""

        if not self.name:
            return

        # The apdex metrics are only relevant to web transactions.

        if not self.is_web_transaction:
            return

        zone = self.apdex_perf_zone()

        satisfying = 1 if zone == "S" else 0
        tolerating = 1 if zone == "T" else 0
        frustrating = 1 if zone == "F" else 0

        # Generate the full apdex metric. This is the only one which
        # is allowed to be dropped when the metric table is full.

        yield ApdexMetric(
            name=f"Apdex/{metric_path(self.group, self.name)}",
            satisfying=satisfying,
            tolerating=tolerating,
            frustrating=frustrating,
            apdex_t=self.apdex_t,
            forced=False,
        )

        # Generate the rollup metric. The rollup is forced, like the other
        # rollups, so the overall apdex score survives a full metric table
        # even where the per transaction metric does not.

        yield ApdexMetric(
            name="Apdex",
            satisfying=satisfying,
            tolerating=tolerating,
            frustrating=frustrating,
            apdex_t=self.apdex_t,
            forced=True,
        )

    def apdex_perf_zone(self):
        """Return the single letter representation of an apdex perf zone."""

        # Apdex is only valid for WebTransactions.

        if not self.is_web_transaction:
            return None

        if self.duration <= self.apdex_t:
            return "S"
        elif self.duration <= 4 * self.apdex_t:
            return "T"
        else:
            return "F"

    def error_details(self):
        """Return a generator yielding the details for each unique error
        captured during this transaction.

        """

        for error in self.errors:
            params = {}
            params["request_uri"] = self.request_uri
            params["stack_trace"] = error.stack_trace

            yield TracedError(
                start_time=error.timestamp,
                path=self.path,
                message=error.message,
                type=error.type,
                caller=error.caller,
                parameters=params,
            )

    def error_events(self):
        for error in self.errors:
            yield create_error_event(error, self)

    def transaction_event(self):
        intrinsics = {
            "type": "Transaction",
            "name": self.path,
            "timestamp": self.start_time,
            "duration": self.duration,
            "error": bool(self.errors),
        }

        zone = self.apdex_perf_zone()
        if zone is not None:
            intrinsics["nr.apdexPerfZone"] = zone

        agent_attributes = {}
        if self.response_code:
            agent_attributes["response.status"] = str(self.response_code)

        return [intrinsics, {}, agent_attributes]
