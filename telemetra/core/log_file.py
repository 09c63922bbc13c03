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

"""This module sets up use of the Python logging module by the agent. As we
don't want to rely exclusively on user having configured the logging module
themselves to capture any logged output we attach our own log file when
enabled from agent configuration. We also provide ability to fallback to
using stdout or stderr.

"""

import logging
import sys
import threading

import telemetra.core.config

_lock = threading.Lock()

_agent_logger = logging.getLogger("telemetra")
_agent_logger.addHandler(logging.NullHandler())

_LOG_FORMAT = "%(asctime)s (%(process)d/%(threadName)s) %(name)s %(levelname)s - %(message)s"

_initialized = False


def _stream_handler(stream):
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    return handler


def initialize():
    global _initialized

    if _initialized:
        return

    with _lock:
        if _initialized:
            return

        settings = telemetra.core.config.global_settings()

        if settings.log_file == "stdout":
            _agent_logger.addHandler(_stream_handler(sys.stdout))
            _agent_logger.setLevel(settings.log_level)

            _agent_logger.debug("Initializing Python agent stdout logging.")

        elif settings.log_file == "stderr":
            _agent_logger.addHandler(_stream_handler(sys.stderr))
            _agent_logger.setLevel(settings.log_level)

            _agent_logger.debug("Initializing Python agent stderr logging.")

        elif settings.log_file:
            try:
                handler = logging.FileHandler(settings.log_file)
                handler.setFormatter(logging.Formatter(_LOG_FORMAT))

                _agent_logger.addHandler(handler)
                _agent_logger.setLevel(settings.log_level)

                _agent_logger.debug("Initializing Python agent logging.")
                _agent_logger.debug('Log file "%s".', settings.log_file)

            except OSError:
                _agent_logger.addHandler(_stream_handler(sys.stderr))
                _agent_logger.setLevel(settings.log_level)

                _agent_logger.exception('Unable to create log file "%s".', settings.log_file)

                _agent_logger.debug("Initializing Python agent stderr logging.")

        _initialized = True
