import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple, Optional

from allowed_assignor.errors import InvalidConfigurationError
from allowed_assignor.util import MAX_PARTITION_INDEX

if TYPE_CHECKING:
    from allowed_assignor.cluster import ClusterMetadata

__all__ = [
    "TopicPartition",
    "AllowedPartitions",
    "UNRESTRICTED",
    "Member",
    "Topology",
]

log = logging.getLogger(__name__)


class TopicPartition(NamedTuple):
    """A topic and partition tuple"""

    topic: str
    "A topic name"

    partition: int
    "A partition id"


@dataclass(frozen=True)
class AllowedPartitions:
    """Partitions a group member is permitted to own.

    Instances are canonical: ``partitions`` is either ``None`` (the member is
    unrestricted) or a strictly ascending tuple without duplicates, which may
    be empty. Use :func:`~allowed_assignor.constraint.parse_allowed_partitions`
    to build one from raw configuration.
    """

    partitions: Optional[tuple[int, ...]] = None
    "Ascending partition ids, or `None` if any partition is allowed"

    def __post_init__(self) -> None:
        if self.partitions is None:
            return
        if not isinstance(self.partitions, tuple):
            raise InvalidConfigurationError(
                f"Allowed partitions must be a tuple, got {self.partitions!r}"
            )
        previous = -1
        for partition in self.partitions:
            if type(partition) is not int:
                raise InvalidConfigurationError(
                    f"Invalid partition id: {partition!r}"
                )
            if not 0 <= partition <= MAX_PARTITION_INDEX:
                raise InvalidConfigurationError(
                    f"Partition id {partition} is out of range"
                    f" [0, {MAX_PARTITION_INDEX}]"
                )
            if partition <= previous:
                raise InvalidConfigurationError(
                    "Allowed partitions must be strictly ascending:"
                    f" {self.partitions!r}"
                )
            previous = partition

    @property
    def unrestricted(self) -> bool:
        return self.partitions is None

    def allows(self, partition: int) -> bool:
        if self.partitions is None:
            return True
        return partition in self.partitions

    def clip(self, partition_count: int) -> "AllowedPartitions":
        """Drop partitions that do not exist in a topology of
        ``partition_count`` partitions.
        """
        if self.partitions is None:
            return self
        clipped = tuple(p for p in self.partitions if p < partition_count)
        if len(clipped) == len(self.partitions):
            return self
        return AllowedPartitions(clipped)

    def cardinality(self, partition_count: int) -> int:
        # Unrestricted never ranks as more constrained than an explicit set
        if self.partitions is None:
            return partition_count
        return len(self.partitions)

    def __str__(self) -> str:
        if self.partitions is None:
            return "*"
        return ",".join(map(str, self.partitions))


UNRESTRICTED = AllowedPartitions()


class Member(NamedTuple):
    """A group member as seen by the assignment round leader"""

    member_id: str
    "The member id handed out by the group coordinator"

    allowed: AllowedPartitions
    "Partitions this member advertised it may own"

    join_order: int
    """Position of the member in the round's member list. Only used to break
    ties, lower wins.
    """


class Topology(NamedTuple):
    """Co-partitioned topics subscribed by the whole group"""

    topics: tuple[str, ...]
    "Subscribed topic names, in assignment order"

    partition_count: int
    "Number of partitions shared by all subscribed topics"

    @classmethod
    def from_cluster(
        cls, cluster: "ClusterMetadata", topics: Iterable[str]
    ) -> "Topology":
        """Resolve the topology of ``topics`` from a cluster snapshot.

        Topics unknown to the snapshot are left out. If the topics do not
        expose the same number of partitions, the largest count wins.
        """
        known_topics = []
        counts = {}
        for topic in sorted(topics):
            partitions = cluster.partitions_for_topic(topic)
            if partitions is None:
                log.warning("No partition metadata for topic %s", topic)
                continue
            known_topics.append(topic)
            counts[topic] = len(partitions)

        if len(set(counts.values())) > 1:
            log.warning(
                "Co-partitioned topics have different partition counts: %s",
                counts,
            )
        return cls(tuple(known_topics), max(counts.values(), default=0))
