from __future__ import annotations

from typing import TYPE_CHECKING, Any

from easyhttp.error import InvalidTargetError, MissingURLError, NonStringTargetError
from easyhttp.target import Target

if TYPE_CHECKING:
    from easyhttp.request import Request


def validate_request(request: Request):
    """Checks that a request can be sent.

    Raises:
        MissingURLError: if the request has no URL.
    """
    if not request.url:
        raise MissingURLError("no url specified")


def validate_decode_target(target: Any, textual: bool = False):
    """Checks that a response body can be decoded into target.

    Args:
        target: The decode target.

        textual: Whether the body is decoded as text, in which case the
            target must reference a str.

    Raises:
        InvalidTargetError: if target is not a Target.
        NonStringTargetError: if textual is set and target does not
            reference a str.
    """
    if not isinstance(target, Target):
        raise InvalidTargetError(
            f"decode target must be a Target, got {type(target).__name__}"
        )
    if textual and target.type is not str:
        raise NonStringTargetError(
            f"non-string target for textual response type: {target!r}"
        )
