import json
from concurrent.futures import ThreadPoolExecutor

import pytest
from safecount.app import create_app


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("APP_COUNTER_INITIAL", "5")
    monkeypatch.setenv("APP_PUBSUB_PROJECT", "app-test")
    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_counter_starts_at_configured_value(client):
    assert client.get("/counter").get_json() == {"value": 5}


def test_increment_endpoint(client):
    assert client.post("/counter/increment").get_json() == {"value": 6}
    assert client.post("/counter/increment").get_json() == {"value": 7}
    assert client.get("/counter").get_json() == {"value": 7}


def test_concurrent_increment_requests(client):
    """Test 40 concurrent requests each see a distinct value"""
    app = client.application

    def bump(_):
        with app.test_client() as c:
            return c.post("/counter/increment").get_json()["value"]

    with ThreadPoolExecutor(max_workers=20) as pool:
        values = list(pool.map(bump, range(40)))

    assert sorted(values) == list(range(6, 46))
    assert client.get("/counter").get_json() == {"value": 45}


def test_load_endpoint(client):
    resp = client.post("/counter/load", data=json.dumps({"total": 40, "workers": 20}), content_type="application/json")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["final"] == 40
    assert body["expected"] == 40
    assert body["lost_updates"] == 0
    # shared counter untouched
    assert client.get("/counter").get_json() == {"value": 5}


@pytest.mark.parametrize("payload", [{"total": -1}, {"workers": 0}, {"total": "many"}])
def test_load_endpoint_rejects_bad_input(client, payload):
    resp = client.post("/counter/load", json=payload)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Bad Request"


def test_unknown_route_is_json_404(client):
    resp = client.get("/nope")

    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Not Found"


def test_topic_lifecycle_over_http(client):
    assert client.post("/topics/orders").status_code == 201
    assert client.get("/topics/orders").get_json() == {"name": "projects/app-test/topics/orders"}

    resp = client.post("/topics/orders/subscriptions/orders-audit", json={"ack_deadline_seconds": 30})
    assert resp.status_code == 201
    assert resp.get_json()["ack_deadline_seconds"] == 30

    subs = client.get("/topics/orders/subscriptions").get_json()
    assert subs == {"subscriptions": ["projects/app-test/subscriptions/orders-audit"], "next_page_token": None}

    assert client.delete("/topics/orders").status_code == 200
    resp = client.get("/topics/orders")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NotFound"


def test_duplicate_topic_is_conflict(client):
    client.post("/topics/orders")

    resp = client.post("/topics/orders")

    assert resp.status_code == 409


def test_list_topics_paged(client):
    for name in ("alpha", "bravo", "charlie"):
        client.post(f"/topics/{name}")

    first = client.get("/topics?page_size=2").get_json()
    assert first["topics"] == ["projects/app-test/topics/alpha", "projects/app-test/topics/bravo"]
    assert first["next_page_token"] == "1"

    second = client.get(f"/topics?page_size=2&page_token={first['next_page_token']}").get_json()
    assert second == {"topics": ["projects/app-test/topics/charlie"], "next_page_token": None}

    assert client.get("/topics?page_size=0").status_code == 400
    assert client.get("/topics?page_token=9").status_code == 400


def test_policy_round_trip_and_permissions(client):
    client.post("/topics/orders")
    policy = {"bindings": [{"role": "roles/viewer", "members": ["allAuthenticatedUsers"]}]}

    resp = client.put("/topics/orders/policy", json=policy)
    assert resp.status_code == 200
    assert resp.get_json()["etag"] == 1

    assert client.get("/topics/orders/policy").get_json()["bindings"] == policy["bindings"]

    perms = client.post("/topics/orders/permissions", json={"permissions": ["pubsub.topics.get", "pubsub.topics.publish"]})
    assert perms.get_json() == {"permissions": ["pubsub.topics.get"]}


def test_malformed_policy_rejected(client):
    client.post("/topics/orders")

    assert client.put("/topics/orders/policy", json=["not", "a", "dict"]).status_code == 400
    assert client.put("/topics/orders/policy", json={"bindings": [{"members": []}]}).status_code == 400


def test_registry_counts_requests(client):
    client.get("/health")

    counts = client.get("/counter/registry").get_json()
    assert counts.get("requests.health", 0) >= 1


@pytest.mark.parametrize("body", [
    {"ack_deadline_seconds": "soon"},
    {"ack_deadline_seconds": -5},
    {"ack_deadline_seconds": 601},
    {"ack_deadline_seconds": True},
    {"push_endpoint": 7},
    ["x"],
])
def test_create_subscription_rejects_bad_input(client, body):
    """Test malformed subscription settings are a 400, not a 500"""
    client.post("/topics/orders")

    resp = client.post("/topics/orders/subscriptions/orders-audit", json=body)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "InvalidArgument"
    assert client.get("/topics/orders/subscriptions").get_json()["subscriptions"] == []


def test_create_subscription_without_body_uses_defaults(client):
    client.post("/topics/orders")

    resp = client.post("/topics/orders/subscriptions/orders-audit")

    assert resp.status_code == 201
    assert resp.get_json()["ack_deadline_seconds"] == 10


@pytest.mark.parametrize("body", [{"permissions": 5}, {"permissions": ["pubsub.topics.get", 3]}, ["x"]])
def test_permissions_rejects_bad_input(client, body):
    client.post("/topics/orders")

    resp = client.post("/topics/orders/permissions", json=body)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "InvalidArgument"


@pytest.mark.parametrize("policy", [
    {"bindings": [{"role": "roles/viewer", "members": "allUsers"}]},
    {"bindings": ["roles/viewer"]},
    {"bindings": {"role": "roles/viewer"}},
    {"bindings": [{"role": 3, "members": []}]},
    {"bindings": [], "etag": "abc"},
])
def test_set_policy_rejects_malformed_bindings(client, policy):
    client.post("/topics/orders")

    resp = client.put("/topics/orders/policy", json=policy)

    assert resp.status_code == 400
    assert client.get("/topics/orders/policy").get_json()["bindings"] == []


def test_list_topic_subscriptions_paged(client):
    client.post("/topics/orders")
    for sub in ("sub-one", "sub-two", "sub-three"):
        client.post(f"/topics/orders/subscriptions/{sub}")

    first = client.get("/topics/orders/subscriptions?page_size=2").get_json()
    assert first == {
        "subscriptions": ["projects/app-test/subscriptions/sub-one", "projects/app-test/subscriptions/sub-two"],
        "next_page_token": "1",
    }

    second = client.get("/topics/orders/subscriptions?page_size=2&page_token=1").get_json()
    assert second == {"subscriptions": ["projects/app-test/subscriptions/sub-three"], "next_page_token": None}

    assert client.get("/topics/orders/subscriptions?page_token=5").status_code == 400
