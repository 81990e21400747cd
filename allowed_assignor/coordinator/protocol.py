"""Consumer group payloads exchanged while joining an ``allowed-only`` group.

Every member sends a ``ConsumerProtocolMemberMetadata`` whose ``user_data``
holds an encoded ``AllowedPartitionsUserData``::

    version             Int16 (currently 0)
    allowed_partitions  Int32 count, then that many Int16 partition ids in
                        ascending order; a count of -1 marks an
                        unrestricted member

Empty ``user_data`` is read as unrestricted. The leader answers with one
``ConsumerProtocolMemberAssignment`` per member, listing the same partition
ids under every subscribed topic and carrying empty ``user_data``.
"""

from typing import List, NamedTuple, Optional

from allowed_assignor.protocol.struct import Struct
from allowed_assignor.protocol.types import Array, Bytes, Int16, Int32, Schema, String
from allowed_assignor.structs import TopicPartition


class ConsumerProtocolMemberMetadata(Struct):
    version: int
    subscription: List[str]
    user_data: bytes

    SCHEMA = Schema(
        ("version", Int16),
        ("subscription", Array(String("utf-8"))),
        ("user_data", Bytes),
    )


class ConsumerProtocolMemberAssignment(Struct):
    class Assignment(NamedTuple):
        topic: str
        partitions: List[int]

    version: int
    assignment: List[Assignment]
    user_data: bytes

    SCHEMA = Schema(
        ("version", Int16),
        ("assignment", Array(("topic", String("utf-8")), ("partitions", Array(Int32)))),
        ("user_data", Bytes),
    )

    def partitions(self) -> List[TopicPartition]:
        return [
            TopicPartition(topic, partition)
            for topic, partitions in self.assignment
            for partition in partitions
        ]


class AllowedPartitionsUserData(Struct):
    """User data advertised by members of the ``allowed-only`` strategy.

    A null ``allowed_partitions`` array marks an unrestricted member.
    """

    version: int
    allowed_partitions: Optional[List[int]]

    SCHEMA = Schema(
        ("version", Int16),
        ("allowed_partitions", Array(Int16)),
    )


class ConsumerProtocol:
    PROTOCOL_TYPE = "consumer"
    ASSIGNMENT_STRATEGIES = ("allowed-only",)
    METADATA = ConsumerProtocolMemberMetadata
    ASSIGNMENT = ConsumerProtocolMemberAssignment
