import json
from dataclasses import dataclass
from typing import Optional

import pytest
from pydantic import BaseModel

from easyhttp.codec import (
    DataType,
    is_json,
    is_xml,
    marshal_xml,
    resolve_body,
    unmarshal_json,
    unmarshal_xml,
)
from easyhttp.error import DeserializationError, SerializationError


@dataclass
class Item:
    name: str
    count: int


@dataclass
class Parcel:
    weight: Optional[int]
    labels: list[str]


class Order(BaseModel):
    id: int
    items: list[str]
    note: Optional[str] = None


def test_data_type_parse():
    assert DataType.parse("json") is DataType.JSON
    assert DataType.parse(" XML ") is DataType.XML
    assert DataType.parse(DataType.HTML) is DataType.HTML
    assert DataType.parse("") is None
    assert DataType.parse(None) is None
    assert DataType.parse("yaml") is None


def test_data_type_textual():
    assert DataType.STRING.textual
    assert DataType.TEXT.textual
    assert DataType.HTML.textual
    assert not DataType.JSON.textual
    assert not DataType.XML.textual


def test_is_json():
    assert is_json(b'{"a": 1}')
    assert is_json("[1, 2, 3]")
    assert is_json(b"null")
    assert not is_json(b"not json")
    assert not is_json(b"")
    assert not is_json(b"\xff\xfe")


def test_is_xml():
    assert is_xml(b"<a><b>1</b></a>")
    assert is_xml("<?xml version='1.0'?><root/>")
    assert not is_xml(b"<a><b></a>")
    assert not is_xml(b"not xml")
    assert not is_xml(b"")


def test_resolve_body_without_data_type_passes_raw_through():
    assert resolve_body(None, b"\x00\x01raw") == b"\x00\x01raw"
    assert resolve_body("", "text") == b"text"
    assert resolve_body("unknown", bytearray(b"abc")) == b"abc"


def test_resolve_body_none_is_empty():
    assert resolve_body("json", None) == b""
    assert resolve_body(None, None) == b""


def test_resolve_body_structured_without_data_type():
    with pytest.raises(SerializationError):
        resolve_body(None, {"a": 1})


def test_resolve_body_valid_json_is_not_encoded_again():
    body = b'{ "a" : [1, 2] }'
    assert resolve_body("json", body) == body
    assert resolve_body("JSON", body.decode()) == body


def test_resolve_body_marshals_structured_json():
    value = {"a": 1, "b": ["x", None, True]}
    expected = json.dumps(value, separators=(",", ":")).encode()
    assert resolve_body("json", value) == expected


def test_resolve_body_marshals_dataclass_and_model_json():
    assert resolve_body("json", Item("pen", 2)) == b'{"name":"pen","count":2}'
    assert (
        resolve_body(DataType.JSON, Order(id=1, items=["a"]))
        == b'{"id":1,"items":["a"],"note":null}'
    )


def test_resolve_body_rejects_invalid_json_bytes():
    with pytest.raises(SerializationError, match="not valid json"):
        resolve_body("json", b"not json")


def test_resolve_body_rejects_unserializable_json():
    with pytest.raises(SerializationError):
        resolve_body("json", {"a": object()})


def test_resolve_body_valid_xml_is_not_encoded_again():
    body = b"<note><to>you</to></note>"
    assert resolve_body("xml", body) == body


def test_resolve_body_rejects_invalid_xml_bytes():
    with pytest.raises(SerializationError, match="not valid xml"):
        resolve_body("xml", "<open>")


def test_marshal_xml_dataclass_uses_class_name_as_root():
    body = marshal_xml(Item("pen", 2))
    assert body == b"<Item><name>pen</name><count>2</count></Item>"


def test_marshal_xml_dict_with_single_root():
    body = marshal_xml({"order": {"id": 7, "tag": ["a", "b"], "paid": False}})
    assert body == (
        b"<order><id>7</id><tag>a</tag><tag>b</tag><paid>false</paid></order>"
    )


def test_marshal_xml_errors():
    with pytest.raises(SerializationError, match="exactly one root key"):
        marshal_xml({"a": 1, "b": 2})
    with pytest.raises(SerializationError):
        marshal_xml({"not a tag": 1})
    with pytest.raises(SerializationError):
        marshal_xml([1, 2])


def test_unmarshal_json():
    assert unmarshal_json(b'{"name": "pen", "count": 2}', Item) == Item("pen", 2)
    assert unmarshal_json(b"[1, 2]", list[int]) == [1, 2]
    assert unmarshal_json(b'{"a": {"b": null}}') == {"a": {"b": None}}


def test_unmarshal_json_round_trip():
    order = Order(id=3, items=["x", "y"], note="fragile")
    assert unmarshal_json(resolve_body("json", order), Order) == order


def test_unmarshal_json_errors():
    with pytest.raises(DeserializationError):
        unmarshal_json(b"{", Item)
    with pytest.raises(DeserializationError):
        unmarshal_json(b'{"name": "pen", "count": "many"}', Item)
    with pytest.raises(DeserializationError):
        unmarshal_json(b"", dict)


def test_unmarshal_xml():
    body = b"<Item><name>pen</name><count>2</count></Item>"
    assert unmarshal_xml(body, Item) == Item("pen", 2)


def test_unmarshal_xml_repeated_elements_and_attributes():
    body = b'<order id="9"><items>a</items><items>b</items></order>'
    assert unmarshal_xml(body, Order) == Order(id=9, items=["a", "b"])
    assert unmarshal_xml(body) == {"id": "9", "items": ["a", "b"]}


def test_unmarshal_xml_round_trip():
    item = Item("cup", 12)
    assert unmarshal_xml(marshal_xml(item), Item) == item


def test_unmarshal_xml_errors():
    with pytest.raises(DeserializationError, match="invalid xml"):
        unmarshal_xml(b"<a>", dict)
    with pytest.raises(DeserializationError):
        unmarshal_xml(b"<Item><name>pen</name></Item>", Item)


def test_unmarshal_xml_round_trip_none_and_single_item():
    order = Order(id=1, items=["a"], note=None)
    assert unmarshal_xml(marshal_xml(order), Order) == order

    parcel = Parcel(weight=None, labels=["fragile"])
    assert marshal_xml(parcel) == (
        b"<Parcel><weight/><labels>fragile</labels></Parcel>"
    )
    assert unmarshal_xml(marshal_xml(parcel), Parcel) == parcel


def test_unmarshal_xml_round_trip_empty_list():
    parcel = Parcel(weight=3, labels=[])
    assert unmarshal_xml(marshal_xml(parcel), Parcel) == parcel


def test_unmarshal_xml_single_child_into_sequence():
    body = b"<counts><n>1</n></counts>"
    assert unmarshal_xml(body, dict[str, list[int]]) == {"n": [1]}
    # Untyped targets keep the document's own shape.
    assert unmarshal_xml(body) == {"n": "1"}


def test_resolve_body_restores_surrogate_escaped_text():
    # Text decoded with surrogateescape, as Response.text() does for bodies
    # that are not valid UTF-8, is sent back as the original bytes.
    assert resolve_body(None, "caf\udce9") == b"caf\xe9"
    assert resolve_body(None, b"caf\xe9".decode("utf-8", "surrogateescape")) == (
        b"caf\xe9"
    )


def test_resolve_body_rejects_unencodable_text():
    with pytest.raises(SerializationError, match="not encodable"):
        resolve_body(None, "\ud800")
