from __future__ import annotations

import os

from flask import Blueprint, current_app, jsonify, request

from .admin import InMemoryTopicAdminClient, TopicAdminClient
from .errors import ApiError, InvalidArgumentError
from .resources import Policy

bp = Blueprint("pubsub", __name__)


def get_admin_client() -> TopicAdminClient:
    """Admin client stored on the app; created lazily for the configured project"""
    client = current_app.extensions.get("pubsub_admin")
    if client is None:
        project = os.environ.get("APP_PUBSUB_PROJECT", "demo-project")
        client = InMemoryTopicAdminClient(project)
        current_app.extensions["pubsub_admin"] = client
    return client


def _json_object() -> dict:
    """Request body as a dict; a missing body counts as empty"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidArgumentError("Request body must be a JSON object")
    return data


def _page_size():
    raw = request.args.get("page_size")
    if raw is None:
        return None
    try:
        size = int(raw)
    except ValueError:
        raise InvalidArgumentError("page_size must be an integer")
    if size < 1:
        raise InvalidArgumentError("page_size must be >= 1")
    return size


def _page_of(resp):
    """Page named by page_token, plus the token of the page after it"""
    token = request.args.get("page_token")
    try:
        page = resp.page(token)
    except (IndexError, ValueError):
        raise InvalidArgumentError(f"Invalid page_token: {token!r}")
    index = int(token) if token else 0
    next_token = str(index + 1) if index + 1 < len(resp.pages) else None
    return page, next_token


@bp.post("/topics/<name>")
def create_topic(name: str):
    topic = get_admin_client().create_topic(name)
    return jsonify({"name": topic.name}), 201


@bp.get("/topics/<name>")
def get_topic(name: str):
    topic = get_admin_client().get_topic(name)
    return jsonify({"name": topic.name})


@bp.delete("/topics/<name>")
def delete_topic(name: str):
    return jsonify({"deleted": get_admin_client().delete_topic(name)})


@bp.get("/topics")
def list_topics():
    resp = get_admin_client().list_topics(page_size=_page_size())
    page, next_token = _page_of(resp)
    return jsonify({"topics": [t.name for t in page], "next_page_token": next_token})


@bp.post("/topics/<name>/subscriptions/<sub>")
def create_subscription(name: str, sub: str):
    data = _json_object()
    push_endpoint = data.get("push_endpoint", "")
    if not isinstance(push_endpoint, str):
        raise InvalidArgumentError("push_endpoint must be a string")
    deadline = data.get("ack_deadline_seconds", 0)
    if isinstance(deadline, bool):
        raise InvalidArgumentError("ack_deadline_seconds must be an integer")
    try:
        deadline = int(deadline)
    except (TypeError, ValueError):
        raise InvalidArgumentError("ack_deadline_seconds must be an integer")
    subscription = get_admin_client().create_subscription(
        sub,
        name,
        push_endpoint=push_endpoint,
        ack_deadline_seconds=deadline,
    )
    return jsonify({
        "name": subscription.name,
        "topic": subscription.topic,
        "ack_deadline_seconds": subscription.ack_deadline_seconds,
    }), 201


@bp.get("/topics/<name>/subscriptions")
def list_topic_subscriptions(name: str):
    resp = get_admin_client().list_topic_subscriptions(name, page_size=_page_size())
    page, next_token = _page_of(resp)
    return jsonify({"subscriptions": list(page), "next_page_token": next_token})


@bp.get("/topics/<name>/policy")
def get_policy(name: str):
    return jsonify(get_admin_client().get_iam_policy(name).to_dict())


@bp.put("/topics/<name>/policy")
def set_policy(name: str):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidArgumentError("Policy body must be a JSON object")
    policy = get_admin_client().set_iam_policy(name, Policy.from_dict(data))
    return jsonify(policy.to_dict())


@bp.post("/topics/<name>/permissions")
def test_permissions(name: str):
    perms = _json_object().get("permissions", [])
    if not isinstance(perms, list) or not all(isinstance(p, str) for p in perms):
        raise InvalidArgumentError("permissions must be a list of strings")
    return jsonify({"permissions": get_admin_client().test_iam_permissions(name, perms)})


@bp.errorhandler(ApiError)
def api_error_handler(err: ApiError):
    return jsonify({"error": err.name, "details": err.message}), err.code
