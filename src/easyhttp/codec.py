"""Conversion of request and response bodies to and from their declared
data types.

A body is either raw (bytes-like or str), in which case it is sent as-is, or
a structured Python value (dict, list, dataclass, pydantic model, ...) which
is marshaled with the codec matching the declared data type. Decoding goes
the other way and validates the parsed body against a target type with
pydantic.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import json
import logging
import types
from typing import (
    Annotated,
    Any,
    Callable,
    Optional,
    TypeVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    is_typeddict,
)

from lxml import etree
from pydantic import BaseModel, PydanticUserError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json, to_jsonable_python
from typing_extensions import TypeAlias

from easyhttp.error import DeserializationError, InvalidTargetError, SerializationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RawBody: TypeAlias = Union[bytes, bytearray, memoryview, str]
"""Body values sent without conversion when no codec applies."""

_RAW_TYPES = (bytes, bytearray, memoryview, str)


@enum.unique
class DataType(str, enum.Enum):
    """Data types that can be declared for request and response bodies."""

    JSON = "json"
    XML = "xml"
    STRING = "string"
    TEXT = "text"
    HTML = "html"

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, tag: Union[str, DataType, None]) -> Optional[DataType]:
        """Returns the data type named by tag, matched case-insensitively,
        or None if the tag is empty or unknown."""
        if isinstance(tag, DataType):
            return tag
        if not tag:
            return None
        try:
            return cls(tag.strip().lower())
        except ValueError:
            return None

    @property
    def textual(self) -> bool:
        return self in {DataType.STRING, DataType.TEXT, DataType.HTML}


def is_raw(value: Any) -> bool:
    return isinstance(value, _RAW_TYPES)


def _as_bytes(data: RawBody) -> bytes:
    # surrogateescape restores the bytes of text decoded the same way, such
    # as Response.text() of a body that is not valid UTF-8.
    if isinstance(data, str):
        return data.encode("utf-8", errors="surrogateescape")
    return bytes(data)


def _xml_parser() -> etree.XMLParser:
    # lxml parsers are not safe to share between threads.
    return etree.XMLParser(resolve_entities=False, no_network=True)


def is_json(data: RawBody) -> bool:
    """Returns True if data holds a syntactically valid JSON document."""
    try:
        json.loads(_as_bytes(data))
    except ValueError:
        return False
    return True


def is_xml(data: RawBody) -> bool:
    """Returns True if data holds a well-formed XML document."""
    try:
        etree.fromstring(_as_bytes(data), parser=_xml_parser())
    except (etree.XMLSyntaxError, ValueError):
        return False
    return True


def marshal_json(value: Any) -> bytes:
    """Serializes a structured value to compact JSON."""
    try:
        return to_json(value)
    except PydanticSerializationError as e:
        raise SerializationError(
            f"cannot marshal {type(value).__name__} to json: {e}"
        ) from e


def marshal_xml(value: Any) -> bytes:
    """Serializes a structured value to an XML document.

    Dataclasses, pydantic models and scalars are wrapped in an element named
    after their class. A dict must hold a single key, which names the root
    element. Lists become repeated elements named after their key.
    """
    if isinstance(value, dict):
        if len(value) != 1:
            raise SerializationError(
                f"xml body needs exactly one root key, got {len(value)}"
            )
        ((root, content),) = value.items()
    else:
        root, content = type(value).__name__, value

    try:
        plain = to_jsonable_python(content)
    except PydanticSerializationError as e:
        raise SerializationError(
            f"cannot marshal {type(value).__name__} to xml: {e}"
        ) from e
    if isinstance(plain, list):
        raise SerializationError("xml body needs a single root element, got a list")

    try:
        element = etree.Element(str(root))
        _fill_element(element, plain)
    except SerializationError:
        raise
    except ValueError as e:
        # Invalid tag names and non-XML characters.
        raise SerializationError(
            f"cannot marshal {type(value).__name__} to xml: {e}"
        ) from e
    return etree.tostring(element, encoding="utf-8")


def _fill_element(element: etree._Element, value: Any):
    match value:
        case dict():
            for key, item in value.items():
                items = item if isinstance(item, list) else [item]
                for each in items:
                    if isinstance(each, list):
                        raise SerializationError(
                            f"nested list under {key!r} cannot be represented in xml"
                        )
                    _fill_element(etree.SubElement(element, str(key)), each)
        case None:
            pass
        case bool():
            element.text = "true" if value else "false"
        case _:
            element.text = str(value)


def _element_to_python(element: etree._Element) -> Any:
    children = [child for child in element if isinstance(child.tag, str)]
    text = (element.text or "").strip()
    if not children and not element.attrib:
        return element.text or ""

    result: dict[str, Any] = {
        etree.QName(key).localname: value for key, value in element.attrib.items()
    }
    repeated = set()
    for child in children:
        key = etree.QName(child).localname
        value = _element_to_python(child)
        if key not in result:
            result[key] = value
        elif key in repeated:
            result[key].append(value)
        else:
            result[key] = [result[key], value]
            repeated.add(key)
    if text and not children:
        result["#text"] = text
    return result


_SEQUENCE_TYPES = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
)


def _is_sequence(type_: Any) -> bool:
    return (get_origin(type_) or type_) in _SEQUENCE_TYPES


def _field_types(type_: Any) -> dict[str, Any]:
    if isinstance(type_, type) and issubclass(type_, BaseModel):
        return {
            field.alias or name: field.annotation
            for name, field in type_.model_fields.items()
        }
    if dataclasses.is_dataclass(type_) or is_typeddict(type_):
        try:
            return get_type_hints(type_)
        except (NameError, TypeError):
            return {}
    return {}


def _shape(value: Any, type_: Any) -> Any:
    """Adjusts a value parsed from XML to the shape type_ expects.

    XML cannot tell an empty element from None, nor a single child from a
    one-element list, so empty elements become None where the type allows
    it, and lone children (or missing ones) become lists where the type is
    a sequence.
    """
    origin = get_origin(type_)
    args = get_args(type_)

    if origin is Annotated:
        return _shape(value, args[0])

    if origin is Union or origin is types.UnionType:
        if value == "" and type(None) in args:
            return None
        members = [arg for arg in args if arg is not type(None)]
        if len(members) == 1:
            return _shape(value, members[0])
        return value

    if _is_sequence(type_):
        if isinstance(value, list):
            items = value
        elif value == "":
            items = []
        else:
            items = [value]
        if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
            return items
        item_type = args[0] if args else Any
        return [_shape(item, item_type) for item in items]

    if origin in (dict, collections.abc.Mapping) and len(args) == 2:
        if isinstance(value, dict):
            return {key: _shape(item, args[1]) for key, item in value.items()}
        return value

    fields = _field_types(type_)
    if fields and isinstance(value, dict):
        shaped = dict(value)
        for name, field_type in fields.items():
            if name in shaped:
                shaped[name] = _shape(shaped[name], field_type)
            elif _is_sequence(field_type):
                shaped[name] = []
        return shaped
    return value


def _validate(kind: str, type_: Any, load: Callable[[TypeAdapter], T]) -> T:
    try:
        adapter = TypeAdapter(type_)
        return load(adapter)
    except ValidationError as e:
        raise DeserializationError(
            f"cannot unmarshal {kind} body into {_type_name(type_)}: {e}"
        ) from e
    except PydanticUserError as e:
        raise InvalidTargetError(
            f"cannot decode {kind} into {_type_name(type_)}: {e}"
        ) from e


def _type_name(type_: Any) -> str:
    return getattr(type_, "__name__", None) or repr(type_)


def unmarshal_json(data: RawBody, type_: Any = Any) -> Any:
    """Parses a JSON document and validates it as an instance of type_."""
    body = _as_bytes(data)
    return _validate("json", type_, lambda adapter: adapter.validate_json(body))


def unmarshal_xml(data: RawBody, type_: Any = Any) -> Any:
    """Parses an XML document and validates the content of its root
    element as an instance of type_.

    Child elements map to keys (repeated children to lists), attributes to
    keys and leaf text to values. Where type_ expects a sequence, a single
    child is read as a one-element list; where it allows None, an empty
    element is read as None.
    """
    try:
        root = etree.fromstring(_as_bytes(data), parser=_xml_parser())
    except (etree.XMLSyntaxError, ValueError) as e:
        raise DeserializationError(f"invalid xml body: {e}") from e
    plain = _shape(_element_to_python(root), type_)
    return _validate("xml", type_, lambda adapter: adapter.validate_python(plain))


def resolve_body(data_type: Union[str, DataType, None], value: Any) -> bytes:
    """Returns the bytes to send for a request body declared as data_type.

    Raw values are sent unchanged. With a json or xml data type they must
    already be valid documents of that type; structured values are
    marshaled with the matching codec.

    Raises:
        SerializationError: if the body cannot be converted.
    """
    if value is None:
        return b""

    kind = DataType.parse(data_type)
    if is_raw(value):
        try:
            raw = _as_bytes(value)
        except UnicodeEncodeError as e:
            raise SerializationError(f"request body is not encodable text: {e}") from e
        match kind:
            case DataType.JSON if raw and not is_json(raw):
                raise SerializationError("request body is not valid json")
            case DataType.XML if raw and not is_xml(raw):
                raise SerializationError("request body is not valid xml")
        return raw

    match kind:
        case DataType.JSON:
            body = marshal_json(value)
        case DataType.XML:
            body = marshal_xml(value)
        case _:
            raise SerializationError(
                f"cannot send {type(value).__name__} body without a json or xml "
                "data type"
            )
    logger.debug(
        "marshaled %s body to %s (%d bytes)", type(value).__name__, kind, len(body)
    )
    return body
