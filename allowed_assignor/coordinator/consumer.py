import logging
from collections.abc import Iterable, Sequence

from allowed_assignor.cluster import ClusterMetadata
from allowed_assignor.coordinator.assignors.abstract import AbstractPartitionAssignor
from allowed_assignor.coordinator.protocol import ConsumerProtocol
from allowed_assignor.errors import (
    IllegalArgumentError,
    InconsistentGroupProtocolError,
)
from allowed_assignor.structs import TopicPartition

log = logging.getLogger(__name__)


class GroupAssignmentProtocol:
    """
    Glue between the group membership transport and the partition assignors.

    The transport owns the JoinGroup/SyncGroup exchange. This class only
    turns assignors into the metadata a member advertises, runs the chosen
    assignor when the member is elected leader, and decodes the assignment a
    member receives back.

    Arguments:
        assignors (list): assignor instances this member supports, in order
            of preference.
    """

    def __init__(self, assignors: Sequence[AbstractPartitionAssignor]) -> None:
        if not assignors:
            raise ValueError("At least one assignor is required")
        self._assignors = tuple(assignors)

    @property
    def protocol_type(self) -> str:
        return ConsumerProtocol.PROTOCOL_TYPE

    def _lookup_assignor(self, name: str) -> AbstractPartitionAssignor:
        for assignor in self._assignors:
            if assignor.name == name:
                return assignor
        raise InconsistentGroupProtocolError(f"Invalid assignment protocol: {name}")

    def group_protocols(self, topics: Iterable[str]) -> list[tuple[str, bytes]]:
        """Build the ``(name, metadata)`` pairs sent in a JoinGroup request."""
        topics = set(topics)
        group_protocols = []
        for assignor in self._assignors:
            metadata = assignor.metadata(topics)
            if not isinstance(metadata, bytes):
                metadata = metadata.encode()
            group_protocols.append((assignor.name, metadata))
        return group_protocols

    def perform_assignment(
        self,
        group_protocol: str,
        members: Sequence[tuple[str, bytes]],
        cluster: ClusterMetadata,
    ) -> dict[str, bytes]:
        """Compute the assignment of a round on the elected leader.

        Arguments:
            group_protocol (str): strategy name the coordinator selected
            members (list of (member_id, metadata_bytes)): members in join
                order, as returned in the JoinGroup response
            cluster (ClusterMetadata): leader's snapshot of topic partitions

        Returns:
            dict: {member_id: encoded MemberAssignment}

        Raises:
            IllegalArgumentError: if a member id appears more than once
            InconsistentGroupProtocolError: if the strategy is unknown
        """
        assignor = self._lookup_assignor(group_protocol)
        member_metadata = {}
        for member_id, metadata_bytes in members:
            if member_id in member_metadata:
                raise IllegalArgumentError(f"Duplicate member id: {member_id!r}")
            member_metadata[member_id] = ConsumerProtocol.METADATA.decode(
                metadata_bytes
            )

        log.debug(
            "Performing assignment using strategy %s with subscriptions %s",
            assignor.name,
            member_metadata,
        )
        assignments = assignor.assign(cluster, member_metadata)
        log.debug("Finished assignment: %s", assignments)

        return {
            member_id: assignment.encode()
            for member_id, assignment in assignments.items()
        }

    def on_join_complete(
        self, protocol: str, member_assignment_bytes: bytes
    ) -> list[TopicPartition]:
        assignor = self._lookup_assignor(protocol)
        assignment = ConsumerProtocol.ASSIGNMENT.decode(member_assignment_bytes)

        # give the assignor a chance to update internal state
        # based on the received assignment
        assignor.on_assignment(assignment)

        partitions = assignment.partitions()
        log.info("Setting newly assigned partitions %s", set(partitions))
        return partitions
