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

from collections.abc import Mapping

from telemetra.api.transaction import Transaction


def _request_uri(request):
    # A WSGI environ dictionary gives the path as the script name
    # followed by the path info. Any other request object is expected
    # to carry the path as an attribute.

    if isinstance(request, Mapping):
        script_name = request.get("SCRIPT_NAME", "")
        path_info = request.get("PATH_INFO", "")
        return (script_name + path_info) or None

    return getattr(request, "path", None)


class WebTransaction(Transaction):
    """A transaction for a web request. When no name is supplied the
    transaction is named after the path of the request.

    """

    transaction_type = "WebTransaction"

    def __init__(self, application, name=None, request=None, response=None):
        super().__init__(application, name, response=response)

        self._request = request
        self._request_uri = _request_uri(request)

        if self._name is None:
            self._name = self._request_uri

    @property
    def request(self):
        return self._request

    @property
    def request_uri(self):
        return self._request_uri

    def process_response(self, status, response_headers, *args):
        """Processes the WSGI response status, extracting the status
        code. The status is expected to be a string. If it is not, the
        response code cannot be determined and is left unset.

        """

        if not self.is_running:
            return

        try:
            self._response_code = int(status.split(" ")[0])
        except (AttributeError, ValueError):
            pass
