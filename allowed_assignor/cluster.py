import logging
import threading
from collections.abc import Iterable, Mapping
from typing import Optional

log = logging.getLogger(__name__)


class ClusterMetadata:
    """
    A snapshot of the topic partitions known to the group leader.

    This class does not perform any IO. Whoever fetches topic metadata feeds
    it here and the assignor reads it while computing a round.

    Arguments:
        topic_partitions (dict of {topic: [partition, ...]}): initial
            partition ids for each topic. Default: empty.
    """

    def __init__(
        self, topic_partitions: Optional[Mapping[str, Iterable[int]]] = None
    ) -> None:
        self._partitions: dict[str, frozenset[int]] = {}
        self._lock = threading.Lock()
        for topic, partitions in (topic_partitions or {}).items():
            self.update_topic(topic, partitions)

    def topics(self) -> set[str]:
        """Get set of known topics.

        Returns:
            set: {topic (str), ...}
        """
        return set(self._partitions)

    def partitions_for_topic(self, topic: str) -> Optional[set[int]]:
        """Return set of all partitions for topic (whether available or not)

        Arguments:
            topic (str): topic to check for partitions

        Returns:
            set: {partition (int), ...} or None if the topic is unknown
        """
        partitions = self._partitions.get(topic)
        if partitions is None:
            return None
        return set(partitions)

    def update_topic(self, topic: str, partitions: Iterable[int]) -> None:
        """Replace the partition ids known for ``topic``."""
        new_partitions = frozenset(partitions)
        if any(p < 0 for p in new_partitions):
            raise ValueError(f"Negative partition id for topic {topic}")
        with self._lock:
            self._partitions[topic] = new_partitions
        log.debug("Updated topic %s to %d partitions", topic, len(new_partitions))

    def remove_topic(self, topic: str) -> None:
        with self._lock:
            self._partitions.pop(topic, None)

    def __str__(self) -> str:
        return f"ClusterMetadata(topics: {len(self._partitions)})"
