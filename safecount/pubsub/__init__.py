"""Pub/sub admin - topic and subscription lifecycle plus access policy (no delivery)"""

from .admin import TopicAdminClient, InMemoryTopicAdminClient, cleanup
from .errors import ApiError, NotFoundError, AlreadyExistsError, InvalidArgumentError
from .paging import PagedResponse
from .resources import (
    Topic,
    Subscription,
    Policy,
    Binding,
    topic_path,
    subscription_path,
    ROLE_VIEWER,
    ROLE_EDITOR,
    ROLE_OWNER,
    ALL_AUTHENTICATED_USERS,
)

__all__ = [
    'TopicAdminClient',
    'InMemoryTopicAdminClient',
    'cleanup',
    'ApiError',
    'NotFoundError',
    'AlreadyExistsError',
    'InvalidArgumentError',
    'PagedResponse',
    'Topic',
    'Subscription',
    'Policy',
    'Binding',
    'topic_path',
    'subscription_path',
    'ROLE_VIEWER',
    'ROLE_EDITOR',
    'ROLE_OWNER',
    'ALL_AUTHENTICATED_USERS',
]
