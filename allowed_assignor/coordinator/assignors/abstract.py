import abc
from collections.abc import Iterable, Mapping

from allowed_assignor.cluster import ClusterMetadata
from allowed_assignor.coordinator.protocol import (
    ConsumerProtocolMemberAssignment,
    ConsumerProtocolMemberMetadata,
)


class AbstractPartitionAssignor(abc.ABC):
    """Interface every partition assignment strategy implements.

    Assignors are configured per member, so the hooks are instance methods:
    the leader calls :meth:`assign` on its own instance, every member calls
    :meth:`metadata` and :meth:`on_assignment` on theirs.
    """

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """.name should be a string identifying the assignor"""

    @abc.abstractmethod
    def assign(
        self,
        cluster: ClusterMetadata,
        members: Mapping[str, ConsumerProtocolMemberMetadata],
    ) -> dict[str, ConsumerProtocolMemberAssignment]:
        """Perform group assignment given cluster metadata and member subscriptions

        Arguments:
            cluster (ClusterMetadata): metadata for use in assignment
            members (dict of {member_id: MemberMetadata}): decoded metadata for
                each member in the group, in join order.

        Returns:
            dict: {member_id: MemberAssignment}
        """

    @abc.abstractmethod
    def metadata(self, topics: Iterable[str]) -> ConsumerProtocolMemberMetadata:
        """Generate ProtocolMetadata to be submitted via JoinGroupRequest.

        Arguments:
            topics (set): a member's subscribed topics

        Returns:
            MemberMetadata struct
        """

    @abc.abstractmethod
    def on_assignment(self, assignment: ConsumerProtocolMemberAssignment) -> None:
        """Callback that runs on each assignment.

        This method can be used to update internal state, if any, of the
        partition assignor.

        Arguments:
            assignment (MemberAssignment): the member's assignment
        """
