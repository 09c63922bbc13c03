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

"""Stack traces attached to recorded errors. A trace is a list of lines, a
header followed by one line per frame with the outermost frame first. Only
the innermost frames are kept when the stack is deeper than the limit.

"""

import sys
import traceback

from telemetra.core.config import global_settings

_HEADER = "Traceback (most recent call last):"


def _format_stack_trace(entries):
    return [_HEADER] + [f'File "{entry.filename}", line {entry.lineno}, in {entry.name}' for entry in entries]


def _stack_limit(limit):
    if limit is None:
        return global_settings().agent_limits.max_stack_trace_lines
    return limit


def current_stack(skip=0, limit=None):
    """Returns the stack trace of the caller, leaving out the innermost
    skip frames.

    """

    limit = _stack_limit(limit)

    try:
        frame = sys._getframe(skip + 1)
    except ValueError:
        return [_HEADER]

    return _format_stack_trace(traceback.extract_stack(frame, limit=limit))


def exception_stack(tb, limit=None):
    """Returns the stack trace for where an exception was raised. The
    traceback only covers the frames between where the exception was
    raised and where it was caught, so it is prefixed with the frames
    above the point it was caught.

    """

    if tb is None:
        return []

    limit = _stack_limit(limit)

    raised = traceback.extract_tb(tb, limit=-limit) if limit > 0 else []

    caught = []
    outer = tb.tb_frame.f_back

    if outer is not None and len(raised) < limit:
        caught = traceback.extract_stack(outer, limit=limit - len(raised))

    return _format_stack_trace(list(caught) + list(raised))
