from io import BytesIO
from typing import Any, ClassVar, Union

from typing_extensions import Self

from .types import Schema


class Struct:
    """A wire structure laid out by ``SCHEMA``.

    Every schema field becomes an attribute of the same name. Values are given
    either all positionally, in schema order, or by keyword with missing ones
    left as ``None``.
    """

    SCHEMA: ClassVar[Schema] = Schema()

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        names = self.SCHEMA.names
        if args:
            if kwargs or len(args) != len(names):
                raise ValueError("Args must be empty or mirror schema")
            values = dict(zip(names, args, strict=True))
        else:
            unknown = set(kwargs).difference(names)
            if unknown:
                raise ValueError(
                    f"Keyword(s) not in schema {list(names)}: "
                    + ", ".join(sorted(unknown))
                )
            values = {name: kwargs.get(name) for name in names}
        self.__dict__.update(values)

    def as_tuple(self) -> tuple[Any, ...]:
        return tuple(self.__dict__[name] for name in self.SCHEMA.names)

    def encode(self) -> bytes:
        return self.SCHEMA.encode(self.as_tuple())

    @classmethod
    def decode(cls, data: Union[BytesIO, bytes]) -> Self:
        if isinstance(data, bytes):
            data = BytesIO(data)
        return cls(*cls.SCHEMA.decode(data))

    def __repr__(self) -> str:
        return self.__class__.__name__ + self.SCHEMA.repr(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Struct):
            return NotImplemented
        return self.SCHEMA is other.SCHEMA and self.as_tuple() == other.as_tuple()

    __hash__ = None  # type: ignore[assignment]
