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

from testing_support.fixtures import live_harvest, make_application

_HELLO_REQUEST = {"SCRIPT_NAME": "", "PATH_INFO": "/hello"}


class RecordingResponse:
    def __init__(self):
        self.headers = {}
        self.codes = []
        self.body = []

    def header(self):
        return self.headers

    def write_header(self, code):
        self.codes.append(code)

    def write(self, data):
        self.body.append(data)
        return len(data)


def _response_status(application):
    ((_, _, agent_attributes),) = live_harvest(application).transaction_event_data()
    return agent_attributes.get("response.status")


def test_write_header_passed_through():
    application = make_application()
    response = RecordingResponse()

    transaction = application.start_transaction("myName", response=response, request=_HELLO_REQUEST)
    transaction.write_header(404)
    assert transaction.write(b"not found") == 9
    transaction.end()

    assert response.codes == [404]
    assert response.body == [b"not found"]
    assert transaction.response_code == 404
    assert _response_status(application) == "404"


def test_write_implies_ok_status():
    application = make_application()
    response = RecordingResponse()

    transaction = application.start_transaction("myName", response=response, request=_HELLO_REQUEST)
    transaction.write(b"hello")
    transaction.end()

    assert response.codes == []
    assert _response_status(application) == "200"


def test_header_passed_through():
    application = make_application()
    response = RecordingResponse()

    transaction = application.start_transaction("myName", response=response)

    headers = transaction.header()
    headers["Content-Type"] = "text/plain"

    transaction.end()

    assert response.headers == {"Content-Type": "text/plain"}


def test_no_response_object():
    application = make_application()

    transaction = application.start_transaction("myName", request=_HELLO_REQUEST)

    assert transaction.header() is None
    assert transaction.write_header(500) is None
    assert transaction.write(b"hello") == 5

    transaction.end()

    assert _response_status(application) == "500"


def test_write_after_end():
    application = make_application()
    response = RecordingResponse()

    transaction = application.start_transaction("myName", response=response, request=_HELLO_REQUEST)
    transaction.end()

    transaction.write_header(500)
    transaction.write(b"late")

    # The response still gets the data but the status is no longer
    # observed for the transaction which has already been recorded.

    assert response.codes == [500]
    assert response.body == [b"late"]
    assert transaction.response_code is None
    assert _response_status(application) is None
