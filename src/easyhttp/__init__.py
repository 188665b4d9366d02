"""easyhttp sends HTTP requests described as plain data and decodes their
responses into Python values."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from easyhttp.client import default_client, set_default_client
from easyhttp.codec import DataType
from easyhttp.error import (
    DecodeError,
    DeserializationError,
    EasyHTTPError,
    FileSystemError,
    InvalidTargetError,
    MissingDecodeSpecError,
    MissingURLError,
    NonStringTargetError,
    ProxyConfigurationError,
    RequestConstructionError,
    SerializationError,
    TransportError,
    UnknownResponseTypeError,
)
from easyhttp.request import Request, new_request
from easyhttp.response import DownloadResult, Response
from easyhttp.target import Target

__all__ = [
    "DataType",
    "DecodeError",
    "DeserializationError",
    "DownloadResult",
    "EasyHTTPError",
    "FileSystemError",
    "InvalidTargetError",
    "MissingDecodeSpecError",
    "MissingURLError",
    "NonStringTargetError",
    "ProxyConfigurationError",
    "Request",
    "RequestConstructionError",
    "Response",
    "SerializationError",
    "Target",
    "TransportError",
    "UnknownResponseTypeError",
    "default_client",
    "delete",
    "get",
    "make",
    "new_request",
    "patch",
    "post",
    "put",
    "set_default_client",
]

__version__ = "0.1.0"


def get(url: str) -> Response:
    """Send a GET request."""
    return Request(url=url, method="GET").execute()


def delete(url: str) -> Response:
    """Send a DELETE request."""
    return Request(url=url, method="DELETE").execute()


def post(url: str, data: Any = None) -> Response:
    """Send a POST request with data as the body."""
    return Request(url=url, method="POST", data=data).execute()


def put(url: str, data: Any = None) -> Response:
    """Send a PUT request with data as the body."""
    return Request(url=url, method="PUT", data=data).execute()


def patch(url: str, data: Any = None) -> Response:
    """Send a PATCH request with data as the body."""
    return Request(url=url, method="PATCH", data=data).execute()


def make(
    method: str,
    url: str,
    data: Any = None,
    request_data_type: Union[str, DataType, None] = None,
    response_data_type: Union[str, DataType, None] = None,
    target: Optional[Target] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Response:
    """Build a request from its parts, send it and return the response.

    This is a shortcut for filling a Request and calling its execute
    method; see Request for the meaning of each argument.
    """
    request = Request(
        url=url,
        method=method,
        headers=dict(headers or {}),
        data=data,
        request_data_type=request_data_type,
        response_data_type=response_data_type,
        target=target,
    )
    return request.execute()
