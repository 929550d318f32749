"""Canned responses for code under test that uses `HTTPClient`.

`MockAdapter` is a ``requests`` transport adapter that answers from a table
of registered responses instead of the network. Mount it on a session and
hand the session to a client:

```python
client = HTTPClient()
adapter = mount_mock_adapter(client)
add_mocked_response_from_file(adapter, "GET", "https://api.example.com/x", 200, "samples/x.json")
client.get("https://api.example.com/x")
```

A response registered with `add_mocked_response_from_file` answers every
matching call. Responses registered with `add_multiple_mocked_responses`
are consumed in order; once they run out the adapter raises
`ResponseNotFoundError`, which the client reports as a `TransportError`.
"""

from collections import deque
from collections.abc import Iterable, Mapping
from http import HTTPStatus
from pathlib import Path

import attrs
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from .http import HTTPClient


class ResponseNotFoundError(requests.RequestException):
    """No registered response is left for a request."""


@attrs.define(frozen=True, slots=True)
class MockResponse:
    status_code: int
    body: bytes
    headers: Mapping[str, str] = attrs.field(factory=dict)
    repeat: bool = False


def normalize_url(url: str) -> str:
    """Normalize ``url`` the way requests does when preparing a request."""
    prepared = requests.PreparedRequest()
    prepared.prepare_url(url, None)
    return prepared.url or url


class MockAdapter(BaseAdapter):
    """Transport adapter serving registered responses.

    Every request sent through the adapter is recorded in `calls`.
    """

    def __init__(self) -> None:
        super().__init__()
        self._responses: dict[tuple[str, str], deque[MockResponse]] = {}
        self.calls: list[requests.PreparedRequest] = []

    def register(self, method: str, url: str, response: MockResponse) -> None:
        key = (method.upper(), normalize_url(url))
        self._responses.setdefault(key, deque()).append(response)

    def send(
        self,
        request: requests.PreparedRequest,
        stream: bool = False,
        timeout: float | tuple[float, float] | None = None,
        verify: bool | str = True,
        cert: str | tuple[str, str] | None = None,
        proxies: Mapping[str, str] | None = None,
    ) -> requests.Response:
        self.calls.append(request)

        key = ((request.method or "").upper(), request.url or "")
        queue = self._responses.get(key)
        if not queue:
            msg = f"no mocked response for {key[0]} {key[1]}"
            raise ResponseNotFoundError(msg, request=request)

        mocked = queue[0] if queue[0].repeat else queue.popleft()
        return self._build_response(request, mocked)

    def _build_response(self, request: requests.PreparedRequest, mocked: MockResponse) -> requests.Response:
        response = requests.Response()
        response.status_code = mocked.status_code
        response.headers = CaseInsensitiveDict(mocked.headers)
        response._content = mocked.body
        response.encoding = "utf-8"
        response.url = request.url or ""
        response.request = request
        try:
            response.reason = HTTPStatus(mocked.status_code).phrase
        except ValueError:
            response.reason = ""
        return response

    def close(self) -> None:
        self._responses.clear()


def mount_mock_adapter(client: HTTPClient) -> MockAdapter:
    """Give ``client`` a session whose http and https traffic goes to a new `MockAdapter`."""
    adapter = MockAdapter()
    session = requests.Session()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    client.set_session(session)
    return adapter


def add_mocked_response_from_file(
    adapter: MockAdapter,
    method: str,
    url: str,
    status: int,
    path: str | Path,
) -> None:
    """Answer every ``method url`` call with ``status`` and the file's content.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    body = Path(path).read_bytes()
    adapter.register(method, url, MockResponse(status, body, repeat=True))


def add_multiple_mocked_responses(
    adapter: MockAdapter,
    method: str,
    url: str,
    status: int,
    paths: Iterable[str | Path],
) -> None:
    """Answer successive ``method url`` calls with the files' content, in order.

    Raises:
        FileNotFoundError: If any path does not exist. Nothing is registered
            in that case.
    """
    bodies = [Path(path).read_bytes() for path in paths]
    for body in bodies:
        adapter.register(method, url, MockResponse(status, body))
