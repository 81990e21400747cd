from .abstract import AbstractPartitionAssignor
from .allowed_only import AllowedOnlyPartitionAssignor, assign_partitions

__all__ = [
    "AbstractPartitionAssignor",
    "AllowedOnlyPartitionAssignor",
    "assign_partitions",
]
