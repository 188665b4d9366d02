from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from easyhttp.response import Response


class EasyHTTPError(Exception):
    """Base class for easyhttp exceptions."""


class MissingURLError(EasyHTTPError, ValueError):
    """The request has no URL to send to."""


class SerializationError(EasyHTTPError, ValueError):
    """The request body could not be converted to its declared data type."""


class RequestConstructionError(EasyHTTPError, ValueError):
    """The transport request could not be built, usually because of a
    malformed URL or method."""


class ProxyConfigurationError(EasyHTTPError, ValueError):
    """The proxy address is not a usable proxy URL."""


class TransportError(EasyHTTPError, ConnectionError):
    """Generic network error raised by the underlying HTTP client (DNS, TCP,
    TLS, protocol or redirect failures). The original exception is chained
    as __cause__."""


class FileSystemError(EasyHTTPError, OSError):
    """A response body could not be written to disk."""


class DecodeError(EasyHTTPError):
    """Base class for errors raised while decoding a response body.

    Decoding happens after the HTTP exchange succeeded, so when it was
    triggered by Request.execute the response is attached and remains
    usable: its status and headers can still be inspected.
    """

    response: Optional[Response] = None


class DeserializationError(DecodeError, ValueError):
    """The response body could not be unmarshaled into the target type."""


class InvalidTargetError(DecodeError, TypeError):
    """The decode target is not a Target reference."""


class NonStringTargetError(InvalidTargetError):
    """A textual response type was requested for a non-string target."""


class MissingDecodeSpecError(DecodeError, ValueError):
    """Decoding needs both a response data type and a target."""


class UnknownResponseTypeError(DecodeError, ValueError):
    """The response data type is not one of the supported types."""
