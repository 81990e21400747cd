__all__ = [
    "MAX_PARTITION_INDEX",
    "INT16_MAX_VALUE",
]


INT16_MAX_VALUE = 2**15 - 1

# Allowed partitions travel as Int16 inside the member metadata user data.
MAX_PARTITION_INDEX = INT16_MAX_VALUE
