import pytest
from safecount.pubsub import Binding, InvalidArgumentError, Policy


def test_from_dict_reads_bindings_and_etag():
    policy = Policy.from_dict({
        "etag": 3,
        "bindings": [{"role": "roles/viewer", "members": ["allUsers", "user:a@example.com"]}],
    })

    assert policy == Policy((Binding("roles/viewer", ("allUsers", "user:a@example.com")),), 3)
    assert policy.to_dict()["bindings"][0]["members"] == ["allUsers", "user:a@example.com"]


def test_from_dict_defaults_to_empty_policy():
    assert Policy.from_dict({}) == Policy()


def test_string_members_are_not_split_into_characters():
    with pytest.raises(InvalidArgumentError):
        Policy.from_dict({"bindings": [{"role": "roles/viewer", "members": "allUsers"}]})


@pytest.mark.parametrize("bindings", [["roles/viewer"], [None], "roles/viewer", [{"members": []}]])
def test_malformed_bindings_rejected(bindings):
    with pytest.raises(InvalidArgumentError):
        Policy.from_dict({"bindings": bindings})
