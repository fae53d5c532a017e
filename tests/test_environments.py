"""Tests for environment merging and coercion."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from restload.environments import apply_policy, coerce_environments, merge_by_key
from restload.errors import MalformedDocument


def test_incoming_wins_in_place():
    existing = [{"name": "A", "v": 1}, {"name": "B", "v": 2}]
    merged = merge_by_key(existing, [{"name": "A", "v": 9}])
    assert merged == [{"name": "A", "v": 9}, {"name": "B", "v": 2}]


def test_new_keys_are_appended_in_incoming_order():
    merged = merge_by_key([{"name": "A"}], [{"name": "C"}, {"name": "B"}])
    assert [item["name"] for item in merged] == ["A", "C", "B"]


def test_inputs_are_not_mutated():
    existing = [{"name": "A", "v": 1}]
    incoming = [{"name": "A", "v": 2}]
    merged = merge_by_key(existing, incoming)
    merged[0]["v"] = 3
    assert existing == [{"name": "A", "v": 1}]
    assert incoming == [{"name": "A", "v": 2}]


def test_custom_key():
    merged = merge_by_key([{"id": 1, "x": "a"}], [{"id": 1, "x": "b"}], key="id")
    assert merged == [{"id": 1, "x": "b"}]


def test_replace_policy_bypasses_merge():
    existing = [{"name": "A"}, {"name": "B"}]
    assert apply_policy(existing, [{"name": "C"}], merge=False) == [{"name": "C"}]
    assert apply_policy(existing, [{"name": "C"}], merge=True) == [{"name": "A"}, {"name": "B"}, {"name": "C"}]


_names = st.text(alphabet="ABCD", min_size=1, max_size=2)
_envs = st.lists(st.fixed_dictionaries({"name": _names, "v": st.integers()}), unique_by=lambda e: e["name"])


@given(_envs, _envs)
def test_merge_properties(existing, incoming):
    merged = merge_by_key(existing, incoming)
    by_name = {item["name"]: item for item in merged}

    assert len(merged) == len(by_name)
    assert [item["name"] for item in merged[: len(existing)]] == [item["name"] for item in existing]
    for item in incoming:
        assert by_name[item["name"]] == item
    incoming_names = {item["name"] for item in incoming}
    for item in existing:
        if item["name"] not in incoming_names:
            assert by_name[item["name"]] == item


class TestCoerceEnvironments:
    def test_single_object_is_wrapped(self):
        assert coerce_environments({"name": "Dev", "environment": {"a": "1"}}) == [
            {"name": "Dev", "environment": {"a": "1"}}
        ]

    def test_variables_alias(self):
        result = coerce_environments([{"name": "Prod", "variables": {"host": "x"}, "color": "#f00"}])
        assert result == [{"name": "Prod", "environment": {"host": "x"}, "color": "#f00"}]

    def test_extra_keys_survive(self):
        result = coerce_environments([{"name": "Dev", "id": "e1"}])
        assert result == [{"name": "Dev", "environment": {}, "id": "e1"}]

    @pytest.mark.parametrize("content", [["Dev"], [{"environment": {}}], [{"name": ""}], "text"])
    def test_invalid_entries_raise(self, content):
        with pytest.raises(MalformedDocument):
            coerce_environments(content)
