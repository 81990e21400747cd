__version__ = "0.1.0"

from .cluster import ClusterMetadata
from .constraint import (
    ALLOWED_PARTITIONS,
    format_allowed_partitions,
    parse_allowed_partitions,
)
from .coordinator.assignors import AllowedOnlyPartitionAssignor, assign_partitions
from .coordinator.consumer import GroupAssignmentProtocol
from .errors import InconsistentGroupProtocolError, InvalidConfigurationError
from .structs import (
    UNRESTRICTED,
    AllowedPartitions,
    Member,
    TopicPartition,
    Topology,
)

__all__ = [
    # Assignment API
    "AllowedOnlyPartitionAssignor",
    "GroupAssignmentProtocol",
    "assign_partitions",
    "ClusterMetadata",
    # Configuration
    "ALLOWED_PARTITIONS",
    "parse_allowed_partitions",
    "format_allowed_partitions",
    # Errors
    "InvalidConfigurationError",
    "InconsistentGroupProtocolError",
    # Structs
    "AllowedPartitions",
    "UNRESTRICTED",
    "Member",
    "Topology",
    "TopicPartition",
]
