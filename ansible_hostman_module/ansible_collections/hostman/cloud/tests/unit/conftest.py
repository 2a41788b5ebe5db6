import json
from unittest.mock import MagicMock

import pytest

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    DecodeError,
    TransportError,
)


class FakeClock:
    """A monotonic clock that only advances when `sleep` is called."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


class FakeTransport:
    """
    Scripted stand-in for `Transport`.

    Responses are queued per (method, path). Each queued item is either a
    JSON-serializable document, raw bytes, or an exception to raise. The last
    item of a queue is repeated once the queue is exhausted.
    """

    def __init__(self, module):
        self.module = module
        self.api_url = "https://api.test/api/v1"
        self.calls = []
        self.scripts = {}

    def script(self, method, path, *responses):
        self.scripts.setdefault((method, path), []).extend(responses)
        return self

    def url_for(self, path):
        return f"{self.api_url}/{path.lstrip('/')}"

    def calls_to(self, method, path=None):
        return [
            call
            for call in self.calls
            if call[0] == method and (path is None or call[1] == path)
        ]

    def execute(self, method, path, body=None):
        self.calls.append((method, path, body))
        queue = self.scripts.get((method, path))
        if not queue:
            raise TransportError(404, b'{"error_code": "not_found"}', method, path)
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, bytes):
            return response
        if response is None:
            return b""
        return json.dumps(response).encode()

    def request_json(self, method, path, body=None):
        content = self.execute(method, path, body)
        if not content:
            return None
        try:
            return json.loads(content)
        except ValueError as e:
            raise DecodeError(str(e)) from e


@pytest.fixture
def module():
    mock = MagicMock()
    mock.params = {
        "api_url": "https://api.test/api/v1",
        "access_token": "secret-token",
        "request_timeout": 30,
    }
    mock.check_mode = False
    mock.jsonify.side_effect = json.dumps
    return mock


@pytest.fixture
def transport(module):
    return FakeTransport(module)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_reconciler(transport, clock):
    """Builds a reconciler wired to the fake transport and the fake clock."""

    def factory(reconciler_class, **kwargs):
        return reconciler_class(transport, clock=clock, sleep=clock.sleep, **kwargs)

    return factory
