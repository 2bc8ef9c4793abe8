import uuid

import pytest
from safecount.pubsub import (
    ALL_AUTHENTICATED_USERS,
    ROLE_EDITOR,
    ROLE_VIEWER,
    AlreadyExistsError,
    ApiError,
    Binding,
    InMemoryTopicAdminClient,
    InvalidArgumentError,
    NotFoundError,
    Policy,
    cleanup,
)

PROJECT = "test-project"
NAME_SUFFIX = uuid.uuid4().hex

TOPICS = [f"topic-1-{NAME_SUFFIX}", f"topic-2-{NAME_SUFFIX}"]
SUBSCRIPTIONS = [f"subscription-1-{NAME_SUFFIX}", f"subscription-2-{NAME_SUFFIX}"]


@pytest.fixture
def client():
    c = InMemoryTopicAdminClient(PROJECT, page_size=1)
    cleanup(c, TOPICS, SUBSCRIPTIONS)
    yield c
    cleanup(c, TOPICS, SUBSCRIPTIONS)


def test_topic_added_is_same_as_retrieved(client):
    added = client.create_topic(TOPICS[0])

    assert added is not None
    assert client.get_topic(TOPICS[0]) == added
    assert added.name == f"projects/{PROJECT}/topics/{TOPICS[0]}"


def test_list_topics_retrieves_added_topics(client):
    added = [client.create_topic(TOPICS[0]), client.create_topic(TOPICS[1])]

    response = client.list_topics()

    assert response is not None
    assert len(response.pages) == 2  # page_size=1
    assert response.next_page_token == "1"
    topics = list(response.iterate_all())
    assert all(t in topics for t in added)


def test_list_topic_subscriptions_retrieves_added_subscriptions(client):
    client.create_topic(TOPICS[0])
    added = [
        client.create_subscription(SUBSCRIPTIONS[0], TOPICS[0]).name,
        client.create_subscription(SUBSCRIPTIONS[1], TOPICS[0]).name,
    ]

    response = client.list_topic_subscriptions(TOPICS[0])

    assert response is not None
    assert list(response) == added


def test_deleted_topic_is_not_retrievable_and_raises(client):
    client.create_topic(TOPICS[0])
    formatted = client.delete_topic(TOPICS[0])

    assert formatted == f"projects/{PROJECT}/topics/{TOPICS[0]}"
    with pytest.raises(ApiError) as exc:
        client.get_topic(TOPICS[0])
    assert exc.value.code == 404


def test_topic_policy_is_retrieved(client):
    client.create_topic(TOPICS[0])

    policy = client.get_iam_policy(TOPICS[0])

    assert policy is not None
    assert policy.bindings == ()


def test_replace_topic_policy_and_test_permissions(client):
    client.create_topic(TOPICS[0])

    policy = client.replace_topic_policy(TOPICS[0])

    assert len(policy.bindings) == 1
    assert policy.bindings[0].role.lower() == ROLE_VIEWER
    assert policy.bindings[0].members[0].lower() == ALL_AUTHENTICATED_USERS.lower()
    granted = client.test_iam_permissions(TOPICS[0], ["pubsub.topics.get", "pubsub.topics.delete"])
    assert granted == ["pubsub.topics.get"]


def test_set_iam_policy_advances_etag(client):
    client.create_topic(TOPICS[0])
    first = client.set_iam_policy(TOPICS[0], Policy((Binding(ROLE_EDITOR, ("user:a@example.com",)),)))
    second = client.set_iam_policy(TOPICS[0], first)

    assert second.etag == first.etag + 1
    assert "pubsub.topics.publish" in client.test_iam_permissions(TOPICS[0], ["pubsub.topics.publish"])


def test_create_duplicate_topic(client):
    client.create_topic(TOPICS[0])

    with pytest.raises(AlreadyExistsError):
        client.create_topic(TOPICS[0])


def test_subscription_on_missing_topic(client):
    with pytest.raises(NotFoundError):
        client.create_subscription(SUBSCRIPTIONS[0], TOPICS[1])


def test_subscription_defaults(client):
    client.create_topic(TOPICS[0])

    sub = client.create_subscription(SUBSCRIPTIONS[0], TOPICS[0])

    assert sub.ack_deadline_seconds == 10
    assert sub.push_endpoint == ""
    assert sub.topic == f"projects/{PROJECT}/topics/{TOPICS[0]}"


def test_deleting_topic_detaches_subscriptions(client):
    client.create_topic(TOPICS[0])
    client.create_subscription(SUBSCRIPTIONS[0], TOPICS[0])
    client.delete_topic(TOPICS[0])

    # subscription survives and can still be deleted
    assert client.delete_subscription(SUBSCRIPTIONS[0]).endswith(SUBSCRIPTIONS[0])
    with pytest.raises(NotFoundError):
        client.delete_subscription(SUBSCRIPTIONS[0])


def test_operations_on_deleted_topic_fail(client):
    client.create_topic(TOPICS[0])
    client.delete_topic(TOPICS[0])

    with pytest.raises(NotFoundError):
        client.get_iam_policy(TOPICS[0])
    with pytest.raises(NotFoundError):
        client.list_topic_subscriptions(TOPICS[0])
    with pytest.raises(NotFoundError):
        client.delete_topic(TOPICS[0])


@pytest.mark.parametrize("bad", ["", "ab", "1topic", "goog-topic", "has space"])
def test_invalid_names_rejected(client, bad):
    with pytest.raises(InvalidArgumentError):
        client.create_topic(bad)


def test_get_topic_by_full_path(client):
    topic = client.create_topic(TOPICS[0])

    assert client.get_topic(topic.name) == topic


def test_full_path_from_another_project_rejected(client):
    client.create_topic(TOPICS[0])

    with pytest.raises(InvalidArgumentError):
        client.get_topic(f"projects/other-project/topics/{TOPICS[0]}")
    with pytest.raises(InvalidArgumentError):
        client.delete_topic(f"projects/other-project/topics/{TOPICS[0]}")


@pytest.mark.parametrize("path", [
    "projects/test-project/topics/1bad",
    "projects/test-project/topics/",
    "projects/test-project/subscriptions/sub-one",
    "projects/test-project/topics/a/b",
])
def test_malformed_full_path_rejected(client, path):
    with pytest.raises(InvalidArgumentError):
        client.get_topic(path)


def test_delete_topic_by_full_path(client):
    topic = client.create_topic(TOPICS[0])

    assert client.delete_topic(topic.name) == topic.name
    with pytest.raises(NotFoundError):
        client.get_topic(TOPICS[0])


@pytest.mark.parametrize("deadline", [-1, 601])
def test_ack_deadline_out_of_range(client, deadline):
    client.create_topic(TOPICS[0])

    with pytest.raises(InvalidArgumentError):
        client.create_subscription(SUBSCRIPTIONS[0], TOPICS[0], ack_deadline_seconds=deadline)
    assert list(client.list_topic_subscriptions(TOPICS[0])) == []
