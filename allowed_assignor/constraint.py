"""Parsing of the ``allowed_partitions`` configuration option.

A member may be configured with a single partition id, a comma separated
string such as ``"0, 2, 5"``, or any collection of integral numbers (ints,
integral floats, :class:`~decimal.Decimal`, numpy integers, numeric strings).
All of them normalize to the same canonical :class:`AllowedPartitions`.
Leaving the option unset means the member may own any partition.
"""

import numbers
import re
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Optional

from allowed_assignor.errors import InvalidConfigurationError
from allowed_assignor.structs import UNRESTRICTED, AllowedPartitions
from allowed_assignor.util import MAX_PARTITION_INDEX

__all__ = [
    "ALLOWED_PARTITIONS",
    "parse_allowed_partitions",
    "format_allowed_partitions",
]

ALLOWED_PARTITIONS = "allowed_partitions"

_INTEGER_TOKEN = re.compile(r"[+-]?[0-9]+")


def parse_allowed_partitions(value: Any) -> AllowedPartitions:
    """Normalize a raw ``allowed_partitions`` value.

    Arguments:
        value: ``None``, a single integral number, a comma separated string
            or an iterable of integral numbers / numeric strings.

    Returns:
        AllowedPartitions: ``UNRESTRICTED`` for ``None``, otherwise the
            deduplicated partition ids in ascending order.

    Raises:
        InvalidConfigurationError: if the value has an unsupported shape or
            holds anything but integers in ``[0, MAX_PARTITION_INDEX]``.
    """
    match value:
        case None:
            return UNRESTRICTED
        case AllowedPartitions():
            return value
        case str():
            text = value.strip()
            items: Iterable[Any] = text.split(",") if text else ()
        case bool() | bytes() | bytearray() | memoryview() | Mapping():
            raise InvalidConfigurationError(
                f"Unsupported allowed partitions value: {value!r}"
            )
        case Iterable():
            items = value
        case _:
            items = (value,)

    return AllowedPartitions(tuple(sorted({_parse_partition(i) for i in items})))


def format_allowed_partitions(allowed: AllowedPartitions) -> Optional[str]:
    """Render the canonical string form, or ``None`` if unrestricted.

    ``parse_allowed_partitions(format_allowed_partitions(x)) == x`` for any
    canonical ``x``.
    """
    if allowed.partitions is None:
        return None
    return str(allowed)


def _parse_partition(item: Any) -> int:
    match item:
        case bool():
            raise InvalidConfigurationError(f"Invalid partition id: {item!r}")
        case str():
            token = item.strip()
            if not _INTEGER_TOKEN.fullmatch(token):
                raise InvalidConfigurationError(f"Invalid partition id: {item!r}")
            partition = int(token)
        case numbers.Integral():
            partition = int(item)
        case Decimal() | numbers.Real():
            try:
                partition = int(item)
            except (ValueError, OverflowError) as exc:
                raise InvalidConfigurationError(
                    f"Invalid partition id: {item!r}"
                ) from exc
            if partition != item:
                raise InvalidConfigurationError(
                    f"Partition id is not an integer: {item!r}"
                )
        case _:
            raise InvalidConfigurationError(f"Invalid partition id: {item!r}")

    if not 0 <= partition <= MAX_PARTITION_INDEX:
        raise InvalidConfigurationError(
            f"Partition id {partition} is out of range [0, {MAX_PARTITION_INDEX}]"
        )
    return partition
