from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

import httpx

from easyhttp.client import default_client, proxy_client
from easyhttp.codec import DataType, resolve_body
from easyhttp.error import (
    DecodeError,
    ProxyConfigurationError,
    RequestConstructionError,
    TransportError,
)
from easyhttp.response import Response
from easyhttp.target import Target
from easyhttp.validate import validate_request

logger = logging.getLogger(__name__)

# https://www.rfc-editor.org/rfc/rfc9110#name-tokens
_METHOD_TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

_PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")


@dataclass
class Request:
    """Description of an HTTP request.

    Attributes:
        url: Absolute URL to send the request to.

        method: HTTP method, case-insensitive. Defaults to GET.

        headers: Headers to send. Names are case-insensitive; when two names
            only differ by case, the last one wins.

        data: Request body. Raw bodies (bytes or str) are sent as-is;
            structured values (dicts, lists, dataclasses, pydantic models)
            are marshaled according to request_data_type.

        request_data_type: "json" or "xml" to declare the body's format.

        response_data_type: How to decode the response body into target.

        target: When set, the response body is decoded into it as soon as
            the response is received.

        proxy: Proxy the request is routed through. Use set_proxy to set it
            from a string.

        client: Transport client used to send the request. Defaults to
            easyhttp.client.default_client().
    """

    url: str = ""
    method: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None
    request_data_type: Union[str, DataType, None] = None
    response_data_type: Union[str, DataType, None] = None
    target: Optional[Target] = None
    proxy: Optional[httpx.URL] = None
    client: Optional[httpx.Client] = None

    @property
    def resolved_method(self) -> str:
        if not self.method:
            return "GET"
        return self.method.upper()

    def set_headers(self, headers: Mapping[str, str]):
        """Replace the request headers."""
        self.headers = dict(headers)

    def set_proxy(self, address: str):
        """Route the request through the proxy at address.

        Raises:
            ProxyConfigurationError: if address is not an absolute http,
                https or socks5 URL. The request's proxy is left unchanged.
        """
        try:
            proxy = httpx.URL(address)
        except httpx.InvalidURL as e:
            raise ProxyConfigurationError(f"invalid proxy address: {e}") from e
        if proxy.scheme not in _PROXY_SCHEMES or not proxy.host:
            raise ProxyConfigurationError(
                "invalid proxy address: expected an absolute URL with one of the "
                f"schemes {', '.join(_PROXY_SCHEMES)}"
            )
        self.proxy = proxy

    def execute(self) -> Response:
        """Send the request and return its response.

        The call returns as soon as the response headers are received; the
        body stays open on the returned Response until it is read or closed,
        unless a decode target was set, in which case it is read and decoded
        before returning.

        Raises:
            MissingURLError: if the request has no URL.
            SerializationError: if the body cannot be converted to
                request_data_type.
            RequestConstructionError: if the URL or method is malformed.
            ProxyConfigurationError: if the proxy cannot be used, for example
                a SOCKS proxy without the socksio package installed.
            TransportError: if the request could not be sent or the
                response could not be received.
            DecodeError: if decoding into target failed. The response is
                available as the exception's response attribute.
        """
        validate_request(self)
        method = self.resolved_method
        if not _METHOD_TOKEN.match(method):
            raise RequestConstructionError(f"invalid method: {self.method!r}")
        content = resolve_body(self.request_data_type, self.data)

        owned_client = None
        if self.proxy is not None:
            client = owned_client = proxy_client(self.proxy)
        else:
            client = self.client or default_client()

        try:
            raw = self._send(client, method, content)
        except Exception:
            if owned_client is not None:
                owned_client.close()
            raise

        response = Response(raw, owned_client)
        logger.debug("received %s for %s %s", response.status, method, raw.url)

        if self.target is not None:
            try:
                response.decode(self.response_data_type, self.target)
            except DecodeError as e:
                e.response = response
                raise
        return response

    def _send(
        self, client: httpx.Client, method: str, content: bytes
    ) -> httpx.Response:
        headers = httpx.Headers()
        for name, value in self.headers.items():
            headers[name] = value

        try:
            request = client.build_request(
                method, self.url, content=content or None, headers=headers
            )
        except httpx.InvalidURL as e:
            raise RequestConstructionError(f"invalid url {self.url!r}: {e}") from e
        if request.url.scheme not in ("http", "https") or not request.url.host:
            raise RequestConstructionError(
                f"invalid url {self.url!r}: expected an absolute http or https URL"
            )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "sending %s request to %s (%d byte body)",
                method,
                request.url,
                len(content),
            )
        try:
            return client.send(request, stream=True)
        except httpx.UnsupportedProtocol as e:
            raise RequestConstructionError(f"invalid url {self.url!r}: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"{method} {request.url}: {e}") from e


def new_request(method: str, url: str) -> Request:
    """Create a request for the given method and URL."""
    return Request(url=url, method=method)
