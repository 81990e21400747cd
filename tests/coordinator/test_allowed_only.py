import logging
from random import Random

import pytest

from allowed_assignor.cluster import ClusterMetadata
from allowed_assignor.constraint import ALLOWED_PARTITIONS
from allowed_assignor.coordinator.assignors.allowed_only import (
    AllowedOnlyPartitionAssignor,
    assign_partitions,
)
from allowed_assignor.coordinator.protocol import (
    AllowedPartitionsUserData,
    ConsumerProtocolMemberAssignment,
    ConsumerProtocolMemberMetadata,
)
from allowed_assignor.errors import (
    IllegalArgumentError,
    InconsistentGroupProtocolError,
    InvalidConfigurationError,
)
from allowed_assignor.structs import UNRESTRICTED, AllowedPartitions, Member, Topology


def run(cluster, topics, *assignors):
    """Run one round led by the first assignor, check the invariants every
    round must hold and return the partitions of each member in join order.
    """
    member_metadata = {}
    for i, assignor in enumerate(assignors):
        assert assignor.name == assignors[0].name
        # go through the wire format, as the leader would
        metadata = assignor.metadata(set(topics))
        member_metadata[str(i)] = ConsumerProtocolMemberMetadata.decode(
            metadata.encode()
        )

    assignments = assignors[0].assign(cluster, member_metadata)
    assert list(assignments) == [str(i) for i in range(len(assignors))]

    result = []
    seen = set()
    for member_id, assignment in assignments.items():
        assert isinstance(assignment, ConsumerProtocolMemberAssignment)
        assert assignment.user_data == b""

        by_topic = dict(assignment.assignment)
        partitions = by_topic.get(topics[0], [])
        for topic in topics:
            # co-partitioned: same ids for every topic
            assert by_topic.get(topic, []) == partitions
        for tp in assignment.partitions():
            assert tp not in seen
            seen.add(tp)

        allowed = assignors[int(member_id)].allowed_partitions
        assert all(allowed.allows(p) for p in partitions)
        result.append(partitions)
    return result


def assignors_for(*allowed):
    return [AllowedOnlyPartitionAssignor(a) for a in allowed]


@pytest.mark.parametrize(
    "partition_count,allowed,expected",
    [
        (5, [None, [1, 2]], [[0, 3, 4], [1, 2]]),
        (7, [[1, 3, 5], [1, 2]], [[3, 5], [1, 2]]),
        (7, [None, [1, 3, 5], [1, 2]], [[0, 4, 6], [3, 5], [1, 2]]),
        (7, [[6], [1, 3, 5], [1, 2]], [[6], [3, 5], [1, 2]]),
        (7, [[1, 3, 5], [2, 3]], [[1, 5], [2, 3]]),
        (7, [[1, 3], [2, 3]], [[1, 3], [2]]),
        (5, [[1, 3], [1, 3]], [[1], [3]]),
        (5, [[0, 1, 3], [0, 1, 3]], [[0, 3], [1]]),
        (5, [[0, 1, 2, 3], [0, 1, 2, 3]], [[0, 2], [1, 3]]),
        (5, [[0, 1, 2, 3, 4], [0, 1, 2, 3, 4]], [[0, 2, 4], [1, 3]]),
        (5, [[0, 1, 2, 3, 4], [0, 1, 2, 3]], [[1, 3, 4], [0, 2]]),
        # partition 4 does not exist any more
        (4, [[0, 1, 2, 3, 4], [0, 1, 2, 3]], [[0, 2], [1, 3]]),
        (4, [[], [1, 2, 3]], [[], [1, 2, 3]]),
        (4, [[], []], [[], []]),
        (4, [[0, 1, 2, 3], [2, 3]], [[0, 1], [2, 3]]),
        (4, [[0, 1, 3], [1, 2]], [[0, 3], [1, 2]]),
        (4, [[0, 1], [1, 2]], [[0], [1, 2]]),
        (4, [[0, 1, 2], [1, 2, 3]], [[0, 2], [1, 3]]),
        (5, [[2], [1, 2, 3], [0, 1, 3, 4]], [[2], [1, 3], [0, 4]]),
        (5, [[2], [2, 3], [0, 1, 3, 4]], [[2], [3], [0, 1, 4]]),
        (5, [[3], [2, 3], [0, 1, 3, 4]], [[3], [2], [0, 1, 4]]),
        (5, [[3], [2, 3], [0]], [[3], [2], [0]]),
        (5, [[4], [2, 3], [0, 1, 3, 4]], [[4], [2, 3], [0, 1]]),
        (5, [[4], [2, 3], [0, 4]], [[4], [2, 3], [0]]),
        (
            5,
            [[3, 4], [3, 4], [1, 2, 3], [0, 1, 3, 4]],
            [[3], [4], [1, 2], [0]],
        ),
        (
            5,
            [[3, 4], [3, 4], [0, 1, 2, 3], [0, 1, 3, 4]],
            [[3], [4], [0, 2], [1]],
        ),
        (
            6,
            [[3, 4], [3, 4], [0, 1, 2, 3, 5], [0, 1, 3, 4]],
            # 2 and 5 are allowed only to the third member
            [[3], [4], [1, 2, 5], [0]],
        ),
        (5, [[0, 1, 2, 3, 5], [0, 1, 3, 4]], [[0, 2], [1, 3, 4]]),
        (
            20,
            [list(range(0, 20, 2)), None],
            [list(range(0, 20, 2)), list(range(1, 20, 2))],
        ),
    ],
)
def test_assignor(make_cluster, topics, partition_count, allowed, expected) -> None:
    cluster = make_cluster(partition_count)
    assert run(cluster, topics, *assignors_for(*allowed)) == expected


def test_unassigned_partitions_are_reported(make_cluster, topics, caplog) -> None:
    with caplog.at_level(logging.WARNING):
        result = run(make_cluster(7), topics, *assignors_for([1, 3, 5], [1, 2]))
    assert result == [[3, 5], [1, 2]]
    assert sum(map(len, result)) == 4
    assert "partitions [0, 4, 6]" in caplog.text


def test_single_topic(make_cluster) -> None:
    cluster = make_cluster(3, ["t"])
    assert run(cluster, ["t"], *assignors_for(None, None)) == [[0, 2], [1]]


def test_empty_assignment_has_no_topics(make_cluster, topics) -> None:
    assignor, other = assignors_for([], None)
    members = {
        "a": assignor.metadata(topics),
        "b": other.metadata(topics),
    }
    result = assignor.assign(make_cluster(2), members)
    assert result["a"] == ConsumerProtocolMemberAssignment(0, [], b"")
    assert result["b"].assignment == [(topics[0], [0, 1]), (topics[1], [0, 1])]


@pytest.mark.parametrize("members_count", [1, 2, 3, 5, 8])
@pytest.mark.parametrize("partition_count", [0, 1, 7, 16, 100])
def test_unrestricted_members_are_balanced(
    make_cluster, topics, members_count, partition_count
) -> None:
    result = run(
        make_cluster(partition_count),
        topics,
        *assignors_for(*[None] * members_count),
    )
    counts = [len(partitions) for partitions in result]
    assert sum(counts) == partition_count
    assert max(counts) - min(counts) <= 1


@pytest.mark.parametrize("seed", range(10))
def test_random_constraints(seed) -> None:
    rnd = Random(seed)
    partition_count = rnd.randint(1, 40)
    members = []
    for i in range(rnd.randint(1, 10)):
        if rnd.random() < 0.2:
            allowed = UNRESTRICTED
        else:
            k = rnd.randint(0, partition_count + 3)
            allowed = AllowedPartitions(
                tuple(sorted(rnd.sample(range(partition_count + 3), k)))
            )
        members.append(Member(f"C{i}", allowed, i))
    topology = Topology(("t0", "t1"), partition_count)

    assignment = assign_partitions(topology, members)

    assert assignment == assign_partitions(topology, members)
    owners = {}
    for member in members:
        for partition in assignment[member.member_id]:
            assert 0 <= partition < partition_count
            assert member.allowed.allows(partition)
            assert partition not in owners
            owners[partition] = member.member_id
    for partition in range(partition_count):
        eligible = [m for m in members if m.allowed.allows(partition)]
        assert (partition in owners) == bool(eligible)


def test_join_order_not_list_position() -> None:
    topology = Topology(("t",), 4)
    members = [
        Member("late", UNRESTRICTED, 1),
        Member("early", UNRESTRICTED, 0),
    ]
    assignment = assign_partitions(topology, members)
    assert list(assignment) == ["early", "late"]
    assert assignment == {"early": [0, 2], "late": [1, 3]}
    assert assignment == assign_partitions(topology, list(reversed(members)))


def test_unrestricted_loses_ties_to_constrained() -> None:
    topology = Topology(("t",), 3)
    members = [
        Member("any", UNRESTRICTED, 0),
        Member("all", AllowedPartitions((0, 1, 2)), 1),
    ]
    # an explicit set as large as the topology ties with unrestricted
    assert assign_partitions(topology, members) == {"any": [0, 2], "all": [1]}

    members = [
        Member("any", UNRESTRICTED, 0),
        Member("some", AllowedPartitions((0, 1)), 1),
    ]
    assert assign_partitions(topology, members) == {"any": [1, 2], "some": [0]}


def test_smaller_allowed_set_wins_ties() -> None:
    topology = Topology(("t",), 4)
    members = [
        Member("a", AllowedPartitions((1, 2)), 0),
        Member("b", AllowedPartitions((0, 1, 2)), 1),
    ]
    assert assign_partitions(topology, members) == {"a": [1, 2], "b": [0]}
    with pytest.raises(InvalidConfigurationError):
        Member("a", AllowedPartitions((2, 1, 1, 1)), 0)


def test_clipped_partitions_are_reported(caplog) -> None:
    topology = Topology(("t",), 4)
    members = [
        Member("C0", AllowedPartitions((0, 1, 2, 3, 4, 9)), 0),
        Member("C1", AllowedPartitions((0, 1, 2, 3)), 1),
    ]
    with caplog.at_level(logging.WARNING):
        assignment = assign_partitions(topology, members)
    assert assignment == {"C0": [0, 2], "C1": [1, 3]}
    assert "member C0" in caplog.text
    assert "[4, 9]" in caplog.text
    assert "member C1" not in caplog.text


def test_contract_violations() -> None:
    topology = Topology(("t",), 4)
    with pytest.raises(IllegalArgumentError):
        assign_partitions(topology, [])
    with pytest.raises(IllegalArgumentError):
        assign_partitions(topology, [Member("", UNRESTRICTED, 0)])
    with pytest.raises(IllegalArgumentError):
        assign_partitions(
            topology,
            [Member("C0", UNRESTRICTED, 0), Member("C0", UNRESTRICTED, 1)],
        )


def test_assign_empty_group() -> None:
    with pytest.raises(IllegalArgumentError):
        AllowedOnlyPartitionAssignor().assign(ClusterMetadata(), {})


def test_mismatched_subscriptions(make_cluster) -> None:
    assignor = AllowedOnlyPartitionAssignor()
    members = {
        "C0": assignor.metadata({"t1", "t2"}),
        "C1": assignor.metadata({"t1"}),
    }
    with pytest.raises(InconsistentGroupProtocolError):
        assignor.assign(make_cluster(3, ["t1", "t2"]), members)


def test_missing_user_data_is_unrestricted(make_cluster, topics) -> None:
    assignor = AllowedOnlyPartitionAssignor([1])
    members = {
        "C0": ConsumerProtocolMemberMetadata(0, topics, b""),
        "C1": assignor.metadata(topics),
    }
    result = assignor.assign(make_cluster(3), members)
    assert result["C0"].assignment == [(topics[0], [0, 2]), (topics[1], [0, 2])]
    assert result["C1"].assignment == [(topics[0], [1]), (topics[1], [1])]


def test_invalid_peer_user_data(make_cluster, topics) -> None:
    assignor = AllowedOnlyPartitionAssignor()
    bad = AllowedPartitionsUserData(0, [-3]).encode()
    members = {"C0": ConsumerProtocolMemberMetadata(0, topics, bad)}
    with pytest.raises(InvalidConfigurationError):
        assignor.assign(make_cluster(3), members)


def test_metadata(topics) -> None:
    metadata = AllowedOnlyPartitionAssignor(" 3, 1,1").metadata(reversed(topics))
    assert metadata.version == 0
    assert metadata.subscription == sorted(topics)
    user_data = AllowedPartitionsUserData.decode(metadata.user_data)
    assert user_data == AllowedPartitionsUserData(0, [1, 3])

    metadata = AllowedOnlyPartitionAssignor().metadata(topics)
    user_data = AllowedPartitionsUserData.decode(metadata.user_data)
    assert user_data.allowed_partitions is None


def test_configure() -> None:
    assignor = AllowedOnlyPartitionAssignor()
    assert assignor.allowed_partitions is UNRESTRICTED
    assert assignor.name == "allowed-only"

    assignor.configure({ALLOWED_PARTITIONS: "2,0"})
    assert assignor.allowed_partitions == AllowedPartitions((0, 2))

    assignor.configure({"unrelated": 1})
    assert assignor.allowed_partitions is UNRESTRICTED

    with pytest.raises(InvalidConfigurationError):
        assignor.configure({ALLOWED_PARTITIONS: "bla"})


def test_invalid_configuration_fails_fast() -> None:
    with pytest.raises(InvalidConfigurationError):
        AllowedOnlyPartitionAssignor([-1])


def test_on_assignment_keeps_no_state(topics) -> None:
    assignor = AllowedOnlyPartitionAssignor([0])
    assignor.on_assignment(ConsumerProtocolMemberAssignment(0, [(topics[0], [0])], b""))
    assert assignor.allowed_partitions == AllowedPartitions((0,))
