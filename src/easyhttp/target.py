from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class Target(Generic[T]):
    """A typed reference that a decoded response body is written into.

    Decoding validates the body as an instance of `type` and stores the
    result in `value`:

        target = Target(list[int])
        easyhttp.make("GET", url, response_data_type="json", target=target)
        print(target.value)
    """

    __slots__ = ("type", "value")

    type: Any
    value: Optional[T]

    def __init__(self, type: Any = Any, value: Optional[T] = None):
        self.type = type
        self.value = value

    def __repr__(self):
        name = getattr(self.type, "__name__", None) or repr(self.type)
        return f"Target({name}, value={self.value!r})"
