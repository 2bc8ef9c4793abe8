from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .errors import InvalidArgumentError

ROLE_VIEWER = "roles/viewer"
ROLE_EDITOR = "roles/editor"
ROLE_OWNER = "roles/owner"
ALL_USERS = "allUsers"
ALL_AUTHENTICATED_USERS = "allAuthenticatedUsers"

DELETED_TOPIC = "_deleted-topic_"
DEFAULT_ACK_DEADLINE_SECONDS = 10
MAX_ACK_DEADLINE_SECONDS = 600

# Permissions implied by each role, cumulative from viewer up
ROLE_PERMISSIONS: Dict[str, Tuple[str, ...]] = {
    ROLE_VIEWER: ("pubsub.topics.get",),
    ROLE_EDITOR: (
        "pubsub.topics.get",
        "pubsub.topics.update",
        "pubsub.topics.delete",
        "pubsub.topics.publish",
        "pubsub.topics.attachSubscription",
    ),
    ROLE_OWNER: (
        "pubsub.topics.get",
        "pubsub.topics.update",
        "pubsub.topics.delete",
        "pubsub.topics.publish",
        "pubsub.topics.attachSubscription",
        "pubsub.topics.getIamPolicy",
        "pubsub.topics.setIamPolicy",
    ),
}

_RESOURCE_ID = re.compile(r"^[A-Za-z][A-Za-z0-9\-_.~+%]{2,254}$")
_TOPIC_PATH = re.compile(r"^projects/([^/]+)/topics/([^/]+)$")


def _check_id(kind: str, resource_id: str) -> str:
    if not _RESOURCE_ID.match(resource_id or "") or resource_id.lower().startswith("goog"):
        raise InvalidArgumentError(f"Invalid {kind} name: {resource_id!r}")
    return resource_id


def topic_path(project: str, topic: str) -> str:
    return f"projects/{project}/topics/{_check_id('topic', topic)}"


def subscription_path(project: str, subscription: str) -> str:
    return f"projects/{project}/subscriptions/{_check_id('subscription', subscription)}"


def parse_topic_path(path: str) -> Tuple[str, str]:
    """Split projects/{project}/topics/{topic} into (project, topic)"""
    match = _TOPIC_PATH.match(path or "")
    if not match:
        raise InvalidArgumentError(f"Invalid topic path: {path!r}")
    return match.group(1), _check_id("topic", match.group(2))


@dataclass(frozen=True)
class Topic:
    name: str


@dataclass(frozen=True)
class Subscription:
    name: str
    topic: str
    push_endpoint: str = ""
    ack_deadline_seconds: int = DEFAULT_ACK_DEADLINE_SECONDS


@dataclass(frozen=True)
class Binding:
    role: str
    members: Tuple[str, ...]


@dataclass(frozen=True)
class Policy:
    bindings: Tuple[Binding, ...] = ()
    etag: int = 0

    def permissions(self) -> List[str]:
        granted: List[str] = []
        for binding in self.bindings:
            for perm in ROLE_PERMISSIONS.get(binding.role, ()):
                if perm not in granted:
                    granted.append(perm)
        return granted

    def to_dict(self) -> Dict:
        return {
            "etag": self.etag,
            "bindings": [{"role": b.role, "members": list(b.members)} for b in self.bindings],
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Policy":
        raw_bindings = data.get("bindings", [])
        if not isinstance(raw_bindings, list):
            raise InvalidArgumentError("Malformed policy: bindings must be a list")
        bindings = []
        for b in raw_bindings:
            if not isinstance(b, dict):
                raise InvalidArgumentError("Malformed policy: each binding must be an object")
            role = b.get("role")
            members = b.get("members", [])
            if not isinstance(role, str):
                raise InvalidArgumentError("Malformed policy: binding role must be a string")
            if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
                raise InvalidArgumentError("Malformed policy: members must be a list of strings")
            bindings.append(Binding(role, tuple(members)))
        try:
            etag = int(data.get("etag", 0))
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"Malformed policy: {e}") from e
        return cls(bindings=tuple(bindings), etag=etag)


@dataclass
class TopicState:
    """Mutable store entry for one topic; never handed to callers"""
    topic: Topic
    policy: Policy = field(default_factory=Policy)
    subscriptions: List[str] = field(default_factory=list)
