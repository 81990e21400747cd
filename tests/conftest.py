import logging

import pytest

from allowed_assignor.cluster import ClusterMetadata

TOPIC_1 = "testTopic1"
TOPIC_2 = "testTopic2"


def pytest_configure(config):
    """Show the assignor's debug output on failures."""
    logging.getLogger("allowed_assignor").setLevel(logging.DEBUG)


@pytest.fixture
def topics():
    return [TOPIC_1, TOPIC_2]


@pytest.fixture
def make_cluster(topics):
    def factory(partition_count, topic_names=None):
        names = topics if topic_names is None else topic_names
        return ClusterMetadata({t: range(partition_count) for t in names})

    return factory
