"""Big-endian wire types used by the consumer protocol structs.

Only the non-flexible encodings are implemented: strings carry an Int16
length, bytes and arrays an Int32 length, and a negative length stands for
null.
"""

import abc
import struct
from collections.abc import Sequence
from io import BytesIO
from struct import error
from typing import (
    Any,
    ClassVar,
    Generic,
    TypeAlias,
    TypeVar,
    Union,
    cast,
    overload,
)

from typing_extensions import Buffer

T = TypeVar("T")


class AbstractType(Generic[T], metaclass=abc.ABCMeta):
    """A type whose values are encoded without per-instance settings."""

    @classmethod
    @abc.abstractmethod
    def encode(cls, value: T) -> bytes: ...

    @classmethod
    @abc.abstractmethod
    def decode(cls, data: BytesIO) -> T: ...

    @classmethod
    def repr(cls, value: T) -> str:
        return repr(value)


ValueT: TypeAlias = Union[type[AbstractType[Any]], "String", "Array", "Schema"]


def _pack(fmt: struct.Struct, value: int) -> bytes:
    try:
        return fmt.pack(value)
    except error as e:
        raise ValueError(f"Cannot encode {value!r} as '{fmt.format}': {e}") from e


def _unpack(fmt: struct.Struct, data: Buffer) -> int:
    try:
        (value,) = fmt.unpack(data)
    except error as e:
        raise ValueError(f"Cannot decode {data!r} as '{fmt.format}': {e}") from e
    return value


class _FixedInt(AbstractType[int]):
    _format: ClassVar[struct.Struct]

    @classmethod
    def encode(cls, value: int) -> bytes:
        return _pack(cls._format, value)

    @classmethod
    def decode(cls, data: BytesIO) -> int:
        return _unpack(cls._format, data.read(cls._format.size))


class Int16(_FixedInt):
    _format = struct.Struct(">h")


class Int32(_FixedInt):
    _format = struct.Struct(">i")


class String:
    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def encode(self, value: str | None) -> bytes:
        if value is None:
            return Int16.encode(-1)
        encoded_value = str(value).encode(self.encoding)
        return Int16.encode(len(encoded_value)) + encoded_value

    def decode(self, data: BytesIO) -> str | None:
        length = Int16.decode(data)
        if length < 0:
            return None
        value = data.read(length)
        if len(value) != length:
            raise ValueError("Buffer underrun decoding string")
        return value.decode(self.encoding)

    @classmethod
    def repr(cls, value: str) -> str:
        return repr(value)


class Bytes(AbstractType[bytes | None]):
    @classmethod
    def encode(cls, value: bytes | None) -> bytes:
        if value is None:
            return Int32.encode(-1)
        return Int32.encode(len(value)) + value

    @classmethod
    def decode(cls, data: BytesIO) -> bytes | None:
        length = Int32.decode(data)
        if length < 0:
            return None
        value = data.read(length)
        if len(value) != length:
            raise ValueError("Buffer underrun decoding Bytes")
        return value

    @classmethod
    def repr(cls, value: bytes | None) -> str:
        return repr(
            value[:100] + b"..." if value is not None and len(value) > 100 else value
        )


class Schema:
    names: tuple[str, ...]
    fields: tuple[ValueT, ...]

    def __init__(self, *fields: tuple[str, ValueT]):
        if fields:
            self.names, self.fields = zip(*fields, strict=True)
        else:
            self.names, self.fields = (), ()

    def encode(self, item: Sequence[Any]) -> bytes:
        if len(item) != len(self.fields):
            raise ValueError("Item field count does not match Schema")
        return b"".join(field.encode(item[i]) for i, field in enumerate(self.fields))

    def decode(self, data: BytesIO) -> tuple[Any, ...]:
        return tuple(field.decode(data) for field in self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def repr(self, value: Any) -> str:
        key_vals: list[str] = []
        try:
            for i in range(len(self)):
                try:
                    field_val = getattr(value, self.names[i])
                except AttributeError:
                    field_val = value[i]
                key_vals.append(f"{self.names[i]}={self.fields[i].repr(field_val)}")
            return "(" + ", ".join(key_vals) + ")"
        except Exception:  # noqa: BLE001
            return repr(value)


class Array:
    array_of: ValueT

    @overload
    def __init__(self, array_of_0: ValueT): ...

    @overload
    def __init__(
        self,
        array_of_0: tuple[str, ValueT],
        *array_of: tuple[str, ValueT],
    ): ...

    def __init__(
        self,
        array_of_0: ValueT | tuple[str, ValueT],
        *array_of: tuple[str, ValueT],
    ) -> None:
        if array_of:
            array_of_0 = cast(tuple[str, ValueT], array_of_0)
            self.array_of = Schema(array_of_0, *array_of)
        else:
            array_of_0 = cast(ValueT, array_of_0)
            if isinstance(array_of_0, String | Array | Schema) or issubclass(
                array_of_0, AbstractType
            ):
                self.array_of = array_of_0
            else:
                raise ValueError("Array instantiated with no array_of type")

    def encode(self, items: Sequence[Any] | None) -> bytes:
        if items is None:
            return Int32.encode(-1)
        return b"".join(
            (Int32.encode(len(items)), *(self.array_of.encode(i) for i in items))
        )

    def decode(self, data: BytesIO) -> list[Any | tuple[Any, ...]] | None:
        length = Int32.decode(data)
        if length == -1:
            return None
        return [self.array_of.decode(data) for _ in range(length)]

    def repr(self, list_of_items: Sequence[Any] | None) -> str:
        if list_of_items is None:
            return "NULL"
        return "[" + ", ".join(self.array_of.repr(item) for item in list_of_items) + "]"
