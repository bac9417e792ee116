"""
test_immutable.py

Tests for the recursive object utilities.

Tests cover:
- Lockable containers
- Clone, including cycles
- Structural equality
- Freeze by copy vs. freeze in place
"""

import copy
import json
import pickle
from dataclasses import dataclass

import pytest

from steptrace.immutable import (
    FrozenDict,
    FrozenList,
    ImmutabilityError,
    deep_clone,
    deep_equal,
    deep_freeze,
    deep_freeze_in_place,
    is_frozen,
)


# =============================================================================
# Containers
# =============================================================================

class TestFrozenContainers:
    """Tests for FrozenDict and FrozenList."""

    def test_dict_mutable_until_frozen(self):
        d = FrozenDict(a=1)
        d["b"] = 2
        assert d == {"a": 1, "b": 2}
        d.freeze()
        with pytest.raises(ImmutabilityError):
            d["c"] = 3

    def test_dict_all_mutators_blocked(self):
        d = FrozenDict(a=1).freeze()
        for mutate in (
            lambda: d.update(b=2),
            lambda: d.pop("a"),
            lambda: d.popitem(),
            lambda: d.setdefault("b", 2),
            lambda: d.clear(),
        ):
            with pytest.raises(ImmutabilityError):
                mutate()
        with pytest.raises(ImmutabilityError):
            del d["a"]
        assert d == {"a": 1}

    def test_list_all_mutators_blocked(self):
        items = FrozenList([3, 1, 2]).freeze()
        for mutate in (
            lambda: items.append(4),
            lambda: items.extend([4]),
            lambda: items.insert(0, 4),
            lambda: items.pop(),
            lambda: items.remove(1),
            lambda: items.sort(),
            lambda: items.reverse(),
            lambda: items.clear(),
        ):
            with pytest.raises(ImmutabilityError):
                mutate()
        with pytest.raises(ImmutabilityError):
            items[0] = 9
        assert items == [3, 1, 2]

    def test_immutability_error_is_type_error(self):
        assert issubclass(ImmutabilityError, TypeError)

    def test_json_serializable(self):
        frozen = deep_freeze({"a": [1, {"b": None}]})
        assert json.dumps(frozen) == '{"a": [1, {"b": null}]}'


# =============================================================================
# Clone / Equality
# =============================================================================

class TestDeepClone:
    """Tests for deep_clone."""

    def test_clone_is_independent(self):
        source = {"a": [1, 2], "b": {"c": 3}}
        clone = deep_clone(source)
        source["a"].append(3)
        source["b"]["c"] = 4
        assert clone == {"a": [1, 2], "b": {"c": 3}}

    def test_clone_uses_lockable_containers(self):
        clone = deep_clone({"a": [1]})
        assert isinstance(clone, FrozenDict)
        assert isinstance(clone["a"], FrozenList)
        assert not clone.frozen

    def test_clone_preserves_cycles(self):
        loop = []
        loop.append(loop)
        clone = deep_clone(loop)
        assert clone[0] is clone

    def test_callables_are_shared(self):
        def fn():
            return None
        clone = deep_clone({"fn": fn})
        assert clone["fn"] is fn

    def test_tuples_and_sets(self):
        clone = deep_clone(({"a": 1}, {2, 3}))
        assert isinstance(clone, tuple)
        assert clone[1] == frozenset({2, 3})

    def test_dataclasses_become_mappings(self):
        @dataclass
        class Point:
            x: int
            tags: list

        point = Point(1, ["a"])
        clone = deep_clone(point)
        assert isinstance(clone, FrozenDict)
        assert clone == {"x": 1, "tags": ["a"]}
        point.tags.append("b")
        assert clone["tags"] == ["a"]


class TestDeepEqual:
    """Tests for deep_equal."""

    def test_nested_equal(self):
        assert deep_equal({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]})

    def test_list_equals_tuple(self):
        assert deep_equal({"a": [1, 2]}, {"a": (1, 2)})

    def test_booleans_are_not_numbers(self):
        assert not deep_equal(True, 1)
        assert not deep_equal({"a": 0}, {"a": False})

    def test_extra_keys_differ(self):
        assert not deep_equal({"a": 1}, {"a": 1, "b": 2})

    def test_none_vs_empty(self):
        assert not deep_equal(None, {})

    def test_sets(self):
        assert deep_equal({1, 2}, frozenset({2, 1}))
        assert not deep_equal({1, 2}, {1, 3})

    def test_cycles(self):
        a = {"x": 1}
        a["self"] = a
        b = {"x": 1}
        b["self"] = b
        assert deep_equal(a, b)


# =============================================================================
# Freezing
# =============================================================================

class TestFreezing:
    """Tests for deep_freeze and deep_freeze_in_place."""

    def test_freeze_copy_leaves_source_mutable(self):
        source = {"a": [1]}
        frozen = deep_freeze(source)
        with pytest.raises(ImmutabilityError):
            frozen["a"].append(2)
        source["a"].append(2)
        assert frozen == {"a": [1]}
        assert source == {"a": [1, 2]}

    def test_freeze_in_place_same_reference(self):
        owned = deep_clone({"a": [1]})
        result = deep_freeze_in_place(owned)
        assert result is owned
        with pytest.raises(ImmutabilityError):
            owned["a"].append(2)
        with pytest.raises(ImmutabilityError):
            owned["b"] = 1

    def test_freeze_in_place_refuses_plain_containers(self):
        with pytest.raises(TypeError):
            deep_freeze_in_place({"a": 1})
        with pytest.raises(TypeError):
            deep_freeze_in_place(FrozenDict(a=[1]))

    def test_scalars_pass_through(self):
        assert deep_freeze(5) == 5
        assert deep_freeze(None) is None
        assert deep_freeze_in_place("x") == "x"

    def test_is_frozen(self):
        assert is_frozen(deep_freeze({"a": [1, (2, {"b": 3})]}))
        assert not is_frozen(deep_clone({"a": 1}))
        assert not is_frozen({"a": 1})
        assert is_frozen((1, "a", None))

    def test_is_frozen_with_cycles(self):
        loop = []
        loop.append(loop)
        frozen = deep_freeze(loop)
        assert frozen[0] is frozen
        assert is_frozen(frozen)


# =============================================================================
# Copying
# =============================================================================

class TestCopying:
    """Tests for copy and pickle support on frozen containers."""

    def test_deepcopy_gives_unlocked_copy(self):
        frozen = deep_freeze({"a": [1, {"b": 2}]})
        copied = copy.deepcopy(frozen)
        assert copied == frozen
        copied["a"].append(3)
        copied["a"][1]["b"] = 9
        copied["c"] = 1
        assert frozen == {"a": [1, {"b": 2}]}

    def test_deepcopy_of_step_list(self):
        steps = deep_freeze([{"step": 1, "loc": {"start": {"line": 1}}}])
        copied = copy.deepcopy(steps)
        copied[0]["step"] = 2
        copied.append({"step": 3})
        assert steps == [{"step": 1, "loc": {"start": {"line": 1}}}]

    def test_shallow_copy_unlocks_top_level_only(self):
        frozen = deep_freeze({"a": [1]})
        copied = copy.copy(frozen)
        copied["b"] = 2
        assert copied["a"] is frozen["a"]
        with pytest.raises(ImmutabilityError):
            copied["a"].append(2)

    def test_pickle_keeps_lock_state(self):
        frozen = deep_freeze({"a": [1, {"b": None}]})
        restored = pickle.loads(pickle.dumps(frozen))
        assert restored == frozen
        assert is_frozen(restored)

        unlocked = pickle.loads(pickle.dumps(deep_clone({"a": [1]})))
        unlocked["a"].append(2)
        assert unlocked == {"a": [1, 2]}
