from __future__ import annotations

import logging
from functools import wraps
from threading import Lock
from typing import Dict, Iterable, List, Optional

from ..observability import PUBSUB_ADMIN_CALLS
from .errors import AlreadyExistsError, ApiError, InvalidArgumentError, NotFoundError
from .paging import PagedResponse
from .resources import (
    ALL_AUTHENTICATED_USERS,
    DEFAULT_ACK_DEADLINE_SECONDS,
    DELETED_TOPIC,
    MAX_ACK_DEADLINE_SECONDS,
    ROLE_VIEWER,
    Binding,
    Policy,
    Subscription,
    Topic,
    TopicState,
    parse_topic_path,
    subscription_path,
    topic_path,
)

logger = logging.getLogger(__name__)


def _tracked(op: str):
    """Count each admin call by outcome; errors still propagate"""
    def decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            try:
                result = f(*args, **kwargs)
            except ApiError as e:
                PUBSUB_ADMIN_CALLS.labels(op=op, outcome=e.name).inc()
                raise
            PUBSUB_ADMIN_CALLS.labels(op=op, outcome="ok").inc()
            return result
        return wrapped
    return decorator


class TopicAdminClient:
    """Topic/subscription control plane used by the service layer.

    Expected methods (stubs here for type/reference only):
      - create_topic(name) -> Topic
      - get_topic(name) -> Topic
      - delete_topic(name) -> str
      - list_topics(page_size) -> PagedResponse[Topic]
      - create_subscription(name, topic, ...) -> Subscription
      - list_topic_subscriptions(topic, page_size) -> PagedResponse[str]
      - get_iam_policy / set_iam_policy / test_iam_permissions
    """

    project_id: str

    def create_topic(self, name: str) -> Topic:  # pragma: no cover - implemented by backends
        raise NotImplementedError

    def get_topic(self, name: str) -> Topic:  # pragma: no cover
        raise NotImplementedError

    def delete_topic(self, name: str) -> str:  # pragma: no cover
        raise NotImplementedError

    def list_topics(self, page_size: Optional[int] = None) -> PagedResponse[Topic]:  # pragma: no cover
        raise NotImplementedError

    def create_subscription(
        self, name: str, topic: str, push_endpoint: str = "", ack_deadline_seconds: int = 0
    ) -> Subscription:  # pragma: no cover
        raise NotImplementedError

    def delete_subscription(self, name: str) -> str:  # pragma: no cover
        raise NotImplementedError

    def list_topic_subscriptions(self, topic: str, page_size: Optional[int] = None) -> PagedResponse[str]:  # pragma: no cover
        raise NotImplementedError

    def get_iam_policy(self, topic: str) -> Policy:  # pragma: no cover
        raise NotImplementedError

    def set_iam_policy(self, topic: str, policy: Policy) -> Policy:  # pragma: no cover
        raise NotImplementedError

    def test_iam_permissions(self, topic: str, permissions: Iterable[str]) -> List[str]:  # pragma: no cover
        raise NotImplementedError

    def replace_topic_policy(self, topic: str) -> Policy:
        """Grant viewer to all authenticated users, replacing existing bindings"""
        current = self.get_iam_policy(topic)
        policy = Policy(bindings=(Binding(ROLE_VIEWER, (ALL_AUTHENTICATED_USERS,)),), etag=current.etag)
        return self.set_iam_policy(topic, policy)


class InMemoryTopicAdminClient(TopicAdminClient):
    """Process-local admin backend. Holds no messages; lifecycle and policy only."""

    def __init__(self, project_id: str, page_size: int = 50):
        self.project_id = project_id
        self.page_size = page_size
        self._topics: Dict[str, TopicState] = {}
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = Lock()

    def close(self) -> None:
        pass

    def __enter__(self) -> "InMemoryTopicAdminClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # --- topics ---
    @_tracked("create_topic")
    def create_topic(self, name: str) -> Topic:
        path = self._topic_path(name)
        with self._lock:
            if path in self._topics:
                raise AlreadyExistsError(f"Topic already exists: {path}")
            topic = Topic(path)
            self._topics[path] = TopicState(topic)
        logger.info("Created topic %s", path)
        return topic

    @_tracked("get_topic")
    def get_topic(self, name: str) -> Topic:
        with self._lock:
            return self._topic_state(name).topic

    @_tracked("delete_topic")
    def delete_topic(self, name: str) -> str:
        path = self._topic_path(name)
        with self._lock:
            state = self._topics.pop(path, None)
            if state is None:
                raise NotFoundError(f"Topic not found: {path}")
            # Subscriptions outlive their topic but are detached from it
            for sub_path in state.subscriptions:
                sub = self._subscriptions.get(sub_path)
                if sub is not None:
                    self._subscriptions[sub_path] = Subscription(
                        sub.name, DELETED_TOPIC, sub.push_endpoint, sub.ack_deadline_seconds
                    )
        logger.info("Deleted topic %s", path)
        return path

    @_tracked("list_topics")
    def list_topics(self, page_size: Optional[int] = None) -> PagedResponse[Topic]:
        with self._lock:
            topics = [self._topics[p].topic for p in sorted(self._topics)]
        return PagedResponse(topics, page_size or self.page_size)

    # --- subscriptions ---
    @_tracked("create_subscription")
    def create_subscription(
        self, name: str, topic: str, push_endpoint: str = "", ack_deadline_seconds: int = 0
    ) -> Subscription:
        if not 0 <= ack_deadline_seconds <= MAX_ACK_DEADLINE_SECONDS:
            raise InvalidArgumentError(
                f"ack_deadline_seconds must be between 0 and {MAX_ACK_DEADLINE_SECONDS}"
            )
        path = subscription_path(self.project_id, name)
        with self._lock:
            state = self._topic_state(topic)
            if path in self._subscriptions:
                raise AlreadyExistsError(f"Subscription already exists: {path}")
            sub = Subscription(
                path,
                state.topic.name,
                push_endpoint,
                ack_deadline_seconds or DEFAULT_ACK_DEADLINE_SECONDS,
            )
            self._subscriptions[path] = sub
            state.subscriptions.append(path)
        logger.info("Created subscription %s on %s", path, sub.topic)
        return sub

    @_tracked("delete_subscription")
    def delete_subscription(self, name: str) -> str:
        path = subscription_path(self.project_id, name)
        with self._lock:
            sub = self._subscriptions.pop(path, None)
            if sub is None:
                raise NotFoundError(f"Subscription not found: {path}")
            state = self._topics.get(sub.topic)
            if state is not None and path in state.subscriptions:
                state.subscriptions.remove(path)
        return path

    @_tracked("list_topic_subscriptions")
    def list_topic_subscriptions(self, topic: str, page_size: Optional[int] = None) -> PagedResponse[str]:
        with self._lock:
            names = list(self._topic_state(topic).subscriptions)
        return PagedResponse(names, page_size or self.page_size)

    # --- access policy ---
    @_tracked("get_iam_policy")
    def get_iam_policy(self, topic: str) -> Policy:
        with self._lock:
            return self._topic_state(topic).policy

    @_tracked("set_iam_policy")
    def set_iam_policy(self, topic: str, policy: Policy) -> Policy:
        with self._lock:
            state = self._topic_state(topic)
            state.policy = Policy(bindings=tuple(policy.bindings), etag=state.policy.etag + 1)
            return state.policy

    @_tracked("test_iam_permissions")
    def test_iam_permissions(self, topic: str, permissions: Iterable[str]) -> List[str]:
        with self._lock:
            granted = set(self._topic_state(topic).policy.permissions())
        return [p for p in permissions if p in granted]

    # --- helpers ---
    def _topic_path(self, name: str) -> str:
        """Full path for a short topic id or a path inside this project"""
        if not name.startswith("projects/"):
            return topic_path(self.project_id, name)
        project, topic = parse_topic_path(name)
        if project != self.project_id:
            raise InvalidArgumentError(
                f"Topic {name!r} belongs to project {project!r}, not {self.project_id!r}"
            )
        return topic_path(project, topic)

    def _topic_state(self, name: str) -> TopicState:
        # Caller holds self._lock
        path = self._topic_path(name)
        state = self._topics.get(path)
        if state is None:
            raise NotFoundError(f"Topic not found: {path}")
        return state


def cleanup(client: TopicAdminClient, topics: Iterable[str], subscriptions: Iterable[str]) -> None:
    """Delete the named topics and subscriptions, skipping ones already gone"""
    for topic in topics:
        try:
            client.delete_topic(topic)
        except NotFoundError:
            logger.debug("Topic %s already absent", topic)
    for sub in subscriptions:
        try:
            client.delete_subscription(sub)
        except NotFoundError:
            logger.debug("Subscription %s already absent", sub)
