import pytest
import requests


class StubResponse:
    def __init__(self, status_code: int = 200, body=None, text: str = ""):
        self.status_code = status_code
        self._body = body if body is not None else {}
        self.text = text

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class StubSession:
    """Stands in for ``requests.Session``: records posts, replays queued responses."""

    def __init__(self):
        self.auth = None
        self.requests: list[dict] = []
        self._responses: list = []

    def queue(self, *responses):
        self._responses.extend(responses)
        return self

    def post(self, url, **kwargs):
        self.requests.append({"url": url, **kwargs})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture()
def http_session():
    return StubSession()


@pytest.fixture()
def respond():
    return StubResponse
