"""Helpers to test code that sends requests with easyhttp, without a
network."""

from __future__ import annotations

import threading
from typing import Callable, Mapping, Optional, Union

import httpx

__all__ = ["Transport", "respond"]


def respond(
    status_code: int = 200,
    body: Union[bytes, str] = b"",
    headers: Optional[Mapping[str, str]] = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Returns a handler that answers every request with the same response."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=body, headers=headers)

    return handler


class Transport(httpx.MockTransport):
    """Mock transport that records the requests it receives.

    Requests are answered by handler, or with an empty 200 response when no
    handler is given. Wrap it in a client and inject the client in a
    Request, or make it the default with easyhttp.set_default_client:

        transport = Transport(respond(200, b'{"a":1}'))
        easyhttp.set_default_client(transport.client())
    """

    def __init__(
        self, handler: Optional[Callable[[httpx.Request], httpx.Response]] = None
    ):
        super().__init__(handler or respond())
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        request.read()
        with self._lock:
            self.requests.append(request)
        return super().handle_request(request)

    @property
    def last_request(self) -> httpx.Request:
        with self._lock:
            if not self.requests:
                raise AssertionError("no request was sent")
            return self.requests[-1]

    def client(self, **kwargs) -> httpx.Client:
        """Returns a client sending its requests to this transport."""
        return httpx.Client(transport=self, **kwargs)
