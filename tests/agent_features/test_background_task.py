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

import pytest
from testing_support.fixtures import expect_errors, expect_metrics, live_harvest, make_application

from telemetra.api.background_task import BackgroundTask, background_task
from telemetra.api.transaction import current_transaction


def test_background_task_named_after_function():
    application = make_application()

    @background_task(application=application)
    def task():
        assert isinstance(current_transaction(), BackgroundTask)
        return 42

    assert task() == 42
    assert current_transaction() is None

    name = f"{__name__}:test_background_task_named_after_function.<locals>.task"

    expect_metrics(
        application,
        [
            (f"OtherTransaction/Pattern/{name}", "", True, None),
            ("OtherTransaction/all", "", True, None),
        ],
    )


def test_background_task_explicit_name():
    application = make_application()

    @background_task(application=application, name="myName")
    def task():
        pass

    task()

    assert "OtherTransaction/Pattern/myName" in live_harvest(application).metrics


def test_background_task_name_from_arguments():
    application = make_application()

    @background_task(application=application, name=lambda job: f"job-{job}")
    def task(job):
        pass

    task("one")
    task("two")

    metrics = live_harvest(application).metrics

    assert "OtherTransaction/Pattern/job-one" in metrics
    assert "OtherTransaction/Pattern/job-two" in metrics
    assert metrics.get("OtherTransaction/all").call_count == 2


def test_background_task_method():
    application = make_application()

    class Worker:
        @background_task(application=application, name=lambda self, job: f"{type(self).__name__}-{job}")
        def run(self, job):
            return job

    assert Worker().run("one") == "one"

    assert "OtherTransaction/Pattern/Worker-one" in live_harvest(application).metrics


def test_background_task_nested():
    application = make_application()

    @background_task(application=application, name="inner")
    def inner():
        pass

    @background_task(application=application, name="outer")
    def outer():
        inner()

    outer()

    metrics = live_harvest(application).metrics

    assert "OtherTransaction/Pattern/outer" in metrics
    assert "OtherTransaction/Pattern/inner" not in metrics


def test_background_task_exception():
    application = make_application()

    @background_task(application=application, name="myName")
    def task():
        raise ValueError("failed")

    with pytest.raises(ValueError):
        task()

    expect_errors(
        application,
        [{"path": "OtherTransaction/Pattern/myName", "type": "ValueError", "message": "failed"}],
    )


def test_background_task_context_manager():
    application = make_application()

    with BackgroundTask(application, "myName") as transaction:
        assert transaction.is_running
        assert current_transaction() is transaction

    assert not transaction.is_running
    assert "OtherTransaction/Pattern/myName" in live_harvest(application).metrics
