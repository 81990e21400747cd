import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from allowed_assignor.cluster import ClusterMetadata
from allowed_assignor.constraint import ALLOWED_PARTITIONS, parse_allowed_partitions
from allowed_assignor.coordinator.assignors.abstract import AbstractPartitionAssignor
from allowed_assignor.coordinator.protocol import (
    AllowedPartitionsUserData,
    ConsumerProtocolMemberAssignment,
    ConsumerProtocolMemberMetadata,
)
from allowed_assignor.errors import (
    IllegalArgumentError,
    InconsistentGroupProtocolError,
)
from allowed_assignor.structs import UNRESTRICTED, AllowedPartitions, Member, Topology

log = logging.getLogger(__name__)


def assign_partitions(
    topology: Topology, members: Sequence[Member]
) -> dict[str, list[int]]:
    """Distribute the partitions of ``topology`` among ``members``.

    Partitions are walked in ascending order. Each one goes to the eligible
    member with the fewest partitions so far; ties go to the member with the
    fewest allowed partitions (unrestricted members count as allowing all of
    them), then to the member that joined first. Partitions nobody is allowed
    to own stay unassigned.

    Allowed partitions beyond ``topology.partition_count`` are ignored, so a
    member configured against a larger topology still takes part.

    Arguments:
        topology (Topology): subscribed topics and their partition count
        members (list of Member): every member of the group

    Returns:
        dict: {member_id: [partition, ...]} in join order, partitions ascending

    Raises:
        IllegalArgumentError: if there are no members or member ids are
            missing or duplicated
    """
    if not members:
        raise IllegalArgumentError("Cannot assign partitions to an empty group")

    partition_count = topology.partition_count
    ordered = sorted(members, key=lambda m: m.join_order)

    seen_ids = set()
    allowed_by_member: list[AllowedPartitions] = []
    for member in ordered:
        if not member.member_id:
            raise IllegalArgumentError(f"Member without id: {member!r}")
        if member.member_id in seen_ids:
            raise IllegalArgumentError(f"Duplicate member id {member.member_id}")
        seen_ids.add(member.member_id)

        allowed = member.allowed.clip(partition_count)
        if allowed is not member.allowed:
            log.warning(
                "Ignoring allowed partitions of member %s that are not in the "
                "topology of %d partitions: %s",
                member.member_id,
                partition_count,
                [p for p in member.allowed.partitions or () if p >= partition_count],
            )
        allowed_by_member.append(allowed)

    cardinality = [a.cardinality(partition_count) for a in allowed_by_member]
    counts = [0] * len(ordered)
    assignment: dict[str, list[int]] = {m.member_id: [] for m in ordered}
    unassigned = []

    for partition in range(partition_count):
        eligible = [
            i for i, allowed in enumerate(allowed_by_member) if allowed.allows(partition)
        ]
        if not eligible:
            unassigned.append(partition)
            continue
        # ``ordered`` is sorted by join order, so the index is the last tiebreak
        chosen = min(eligible, key=lambda i: (counts[i], cardinality[i], i))
        counts[chosen] += 1
        assignment[ordered[chosen].member_id].append(partition)

    if unassigned:
        log.warning(
            "No member is allowed to own partitions %s, they stay unassigned",
            unassigned,
        )
    return assignment


class AllowedOnlyPartitionAssignor(AbstractPartitionAssignor):
    """
    Assigns each member only the partitions it is allowed to own, keeping the
    number of partitions per member as even as the restrictions permit.

    Every member subscribes to the same co-partitioned topics, i.e. topics
    with the same number of partitions. A partition id is always assigned to
    the same member across all of them, so records with matching keys on
    different topics end up on one consumer.

    For example, with 5 partitions per topic, member C0 unrestricted and
    member C1 allowed ``"1,2"``, the assignment will be:
        C0: [p0, p3, p4]
        C1: [p1, p2]

    Keyword Arguments:
        allowed_partitions: partitions this member may own, as an int, a
            comma separated string or a collection of ints. Default: None,
            meaning any partition.

    Raises:
        InvalidConfigurationError: if ``allowed_partitions`` cannot be parsed
    """

    name = "allowed-only"
    version = 0

    def __init__(self, allowed_partitions: Any = None) -> None:
        self._allowed_partitions = parse_allowed_partitions(allowed_partitions)

    @property
    def allowed_partitions(self) -> AllowedPartitions:
        return self._allowed_partitions

    def configure(self, configs: Mapping[str, Any]) -> None:
        """Apply the ``allowed_partitions`` entry of a configuration mapping.

        A missing entry resets the member to unrestricted.
        """
        self._allowed_partitions = parse_allowed_partitions(
            configs.get(ALLOWED_PARTITIONS)
        )

    def metadata(self, topics: Iterable[str]) -> ConsumerProtocolMemberMetadata:
        allowed = self._allowed_partitions.partitions
        user_data = AllowedPartitionsUserData(
            self.version, None if allowed is None else list(allowed)
        )
        return ConsumerProtocolMemberMetadata(
            self.version, sorted(topics), user_data.encode()
        )

    def assign(
        self,
        cluster: ClusterMetadata,
        members: Mapping[str, ConsumerProtocolMemberMetadata],
    ) -> dict[str, ConsumerProtocolMemberAssignment]:
        if not members:
            raise IllegalArgumentError("Cannot assign partitions to an empty group")

        subscriptions = {
            member_id: frozenset(metadata.subscription or ())
            for member_id, metadata in members.items()
        }
        topics = next(iter(subscriptions.values()))
        if any(subscription != topics for subscription in subscriptions.values()):
            raise InconsistentGroupProtocolError(
                f"Members of the {self.name} strategy must subscribe to the same"
                f" topics, got {subscriptions}"
            )

        group = [
            Member(member_id, self._decode_allowed(metadata.user_data), join_order)
            for join_order, (member_id, metadata) in enumerate(members.items())
        ]
        topology = Topology.from_cluster(cluster, topics)
        log.debug(
            "Assigning %d partitions of topics %s among %d members",
            topology.partition_count,
            topology.topics,
            len(group),
        )

        partitions_by_member = assign_partitions(topology, group)

        protocol_assignment = {}
        for member_id, partitions in partitions_by_member.items():
            protocol_assignment[member_id] = ConsumerProtocolMemberAssignment(
                self.version,
                [(topic, list(partitions)) for topic in topology.topics]
                if partitions
                else [],
                b"",
            )
        return protocol_assignment

    def on_assignment(self, assignment: ConsumerProtocolMemberAssignment) -> None:
        log.debug("Received assignment %s", assignment)

    @staticmethod
    def _decode_allowed(user_data: bytes | None) -> AllowedPartitions:
        if not user_data:
            return UNRESTRICTED
        decoded = AllowedPartitionsUserData.decode(user_data)
        if decoded.allowed_partitions is None:
            return UNRESTRICTED
        # peers are validated like local configuration
        return parse_allowed_partitions(decoded.allowed_partitions)
