from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Iterator, Optional, Union

import httpx

from easyhttp.codec import DataType, unmarshal_json, unmarshal_xml
from easyhttp.error import (
    FileSystemError,
    MissingDecodeSpecError,
    TransportError,
    UnknownResponseTypeError,
)
from easyhttp.target import Target
from easyhttp.validate import validate_decode_target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DownloadResult:
    """Outcome of writing a response body to a file."""

    bytes_copied: int
    download_time: timedelta


class Response:
    """Response to a request sent with easyhttp.

    The status and headers are available as soon as the response is
    returned; the body is streamed and read at most once, either with
    body_stream, read_body, download_to_file or one of the decode methods.

    The response owns the body stream. Nothing closes it automatically:
    call close, or use the response as a context manager, once the body is
    no longer needed. Reading the body of a single response from several
    threads at once is not supported.
    """

    __slots__ = ("_response", "_headers", "_client")

    def __init__(
        self, response: httpx.Response, client: Optional[httpx.Client] = None
    ):
        """Wrap a streamed httpx response.

        Args:
            response: The response returned by the transport.

            client: A client dedicated to this response, closed along with
                it. Used for requests sent through a proxy.
        """
        self._response = response
        self._client = client

        headers: dict[str, list[str]] = {}
        for name, value in response.headers.multi_items():
            headers.setdefault(name, []).append(value)
        self._headers = headers

    def __repr__(self):
        return f"<Response [{self.status}]>"

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @property
    def status_code(self) -> int:
        """Response status code, e.g. 200."""
        return self._response.status_code

    @property
    def status(self) -> str:
        """Response status line, e.g. "200 OK"."""
        return f"{self.status_code} {self._response.reason_phrase}".rstrip()

    @property
    def headers(self) -> dict[str, list[str]]:
        """Response headers, keyed by lower-cased name. Values of repeated
        headers are kept in the order they were received."""
        return {name: list(values) for name, values in self._headers.items()}

    @property
    def raw(self) -> httpx.Response:
        """The underlying httpx response."""
        return self._response

    def body_stream(self, chunk_size: Optional[int] = None) -> Iterator[bytes]:
        """Iterate over the response body as it is received."""
        try:
            yield from self._response.iter_bytes(chunk_size)
        except httpx.RequestError as e:
            # Network failures, and bodies that fail to decompress.
            raise TransportError(f"reading response body: {e}") from e

    def read_body(self) -> bytes:
        """Read the whole response body."""
        try:
            return self._response.read()
        except httpx.RequestError as e:
            raise TransportError(f"reading response body: {e}") from e

    def close(self):
        """Release the body stream, and the connection it uses."""
        self._response.close()
        if self._client is not None:
            self._client.close()

    def download_to_file(self, path: Union[str, os.PathLike]) -> DownloadResult:
        """Write the response body to a new file at path, replacing any
        existing file.

        Raises:
            FileSystemError: if the file cannot be created or written.
            TransportError: if the body cannot be read.
        """
        start = time.monotonic()
        copied = 0
        try:
            with open(path, "wb") as file:
                for chunk in self.body_stream():
                    file.write(chunk)
                    copied += len(chunk)
        except TransportError:
            raise
        except OSError as e:
            raise FileSystemError(f"downloading to {os.fspath(path)}: {e}") from e

        result = DownloadResult(
            bytes_copied=copied,
            download_time=timedelta(seconds=time.monotonic() - start),
        )
        logger.debug(
            "downloaded %d bytes to %s in %s",
            result.bytes_copied,
            os.fspath(path),
            result.download_time,
        )
        return result

    def decode(
        self, data_type: Union[str, DataType, None], target: Optional[Target]
    ) -> Any:
        """Decode the response body into target.

        Args:
            data_type: How the body is decoded: "json", "xml", or one of
                "string", "text" and "html" to keep it as text.

            target: Where the decoded value is stored. Textual data types
                need a Target(str).

        Returns:
            The decoded value, also stored in target.value.

        Raises:
            MissingDecodeSpecError: if data_type or target is missing.
            UnknownResponseTypeError: if data_type is not supported.
            InvalidTargetError: if target is not a Target.
            NonStringTargetError: if a textual data type is decoded into a
                target that does not reference a str.
            DeserializationError: if the body does not match the target type.
            TransportError: if the body cannot be read.
        """
        if not data_type or target is None:
            raise MissingDecodeSpecError(
                "decoding needs both a response data type and a target"
            )
        kind = DataType.parse(data_type)
        if kind is None:
            raise UnknownResponseTypeError(f"unknown response data type: {data_type!r}")
        validate_decode_target(target, textual=kind.textual)

        body = self.read_body()
        match kind:
            case DataType.JSON:
                value = unmarshal_json(body, target.type)
            case DataType.XML:
                value = unmarshal_xml(body, target.type)
            case _:
                value = self._decode_text(body)
        target.value = value
        return value

    def json(self, type_: Any = Any) -> Any:
        """Decode a JSON body as an instance of type_."""
        return self.decode(DataType.JSON, Target(type_))

    def xml(self, type_: Any = Any) -> Any:
        """Decode an XML body as an instance of type_."""
        return self.decode(DataType.XML, Target(type_))

    def text(self) -> str:
        """Decode the body as text, using the charset of its Content-Type."""
        return self.decode(DataType.TEXT, Target(str))

    def _decode_text(self, body: bytes) -> str:
        # surrogateescape keeps bytes that are not valid in the charset, so
        # the original body can always be recovered.
        encoding = self._response.charset_encoding or "utf-8"
        try:
            return body.decode(encoding, errors="surrogateescape")
        except LookupError:
            return body.decode("utf-8", errors="surrogateescape")
