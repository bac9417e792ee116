"""
immutable.py

Recursive object utilities for steptrace.

Python has no in-place freeze for dict and list, so steptrace builds the data
it hands out from two lockable containers:

- FrozenDict / FrozenList behave exactly like dict / list until freeze() is
  called. After that every mutator raises ImmutabilityError.

Ownership contract:

- deep_freeze(value) is for values steptrace does NOT own (caller config,
  capability output). It clones first, so neither side sees the other's
  later mutation.
- deep_freeze_in_place(value) is for values steptrace just built and that
  nobody else references yet. It locks the same reference.
"""

import dataclasses
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Tuple


class ImmutabilityError(TypeError):
    """Raised when attempting to mutate a frozen container."""

    def __init__(self, operation: str, container: str):
        self.operation = operation
        super().__init__(f"Cannot {operation}: {container} is frozen")


# =============================================================================
# Lockable Containers
# =============================================================================

class FrozenDict(dict):
    """A dict that can be locked against mutation with freeze()."""

    __slots__ = ('_frozen',)

    def __init__(self, *args: Any, **kwargs: Any):
        object.__setattr__(self, '_frozen', False)
        super().__init__(*args, **kwargs)

    @property
    def frozen(self) -> bool:
        return getattr(self, "_frozen", False)

    def freeze(self) -> "FrozenDict":
        object.__setattr__(self, '_frozen', True)
        return self

    def _check(self, operation: str) -> None:
        if getattr(self, "_frozen", False):
            raise ImmutabilityError(operation, "mapping")

    def __setitem__(self, key: Any, value: Any) -> None:
        self._check(f"set key {key!r}")
        super().__setitem__(key, value)

    def __delitem__(self, key: Any) -> None:
        self._check(f"delete key {key!r}")
        super().__delitem__(key)

    def __ior__(self, other: Any) -> "FrozenDict":
        self._check("update")
        return super().__ior__(other)

    def clear(self) -> None:
        self._check("clear")
        super().clear()

    def pop(self, *args: Any) -> Any:
        self._check("pop")
        return super().pop(*args)

    def popitem(self) -> Tuple[Any, Any]:
        self._check("popitem")
        return super().popitem()

    def setdefault(self, key: Any, default: Any = None) -> Any:
        self._check("setdefault")
        return super().setdefault(key, default)

    def update(self, *args: Any, **kwargs: Any) -> None:
        self._check("update")
        super().update(*args, **kwargs)

    def __repr__(self) -> str:
        return f"FrozenDict({dict.__repr__(self)})"

    def __copy__(self) -> "FrozenDict":
        return FrozenDict(self)

    def __deepcopy__(self, memo: Dict[int, Any]) -> "FrozenDict":
        return deep_clone(self)

    def __reduce__(self) -> Tuple[Any, ...]:
        return (_rebuild, (type(self), dict(self), self.frozen))


class FrozenList(list):
    """A list that can be locked against mutation with freeze()."""

    __slots__ = ('_frozen',)

    def __init__(self, *args: Any):
        object.__setattr__(self, '_frozen', False)
        super().__init__(*args)

    @property
    def frozen(self) -> bool:
        return getattr(self, "_frozen", False)

    def freeze(self) -> "FrozenList":
        object.__setattr__(self, '_frozen', True)
        return self

    def _check(self, operation: str) -> None:
        if getattr(self, "_frozen", False):
            raise ImmutabilityError(operation, "sequence")

    def __setitem__(self, index: Any, value: Any) -> None:
        self._check("set item")
        super().__setitem__(index, value)

    def __delitem__(self, index: Any) -> None:
        self._check("delete item")
        super().__delitem__(index)

    def __iadd__(self, other: Any) -> "FrozenList":
        self._check("extend")
        return super().__iadd__(other)

    def __imul__(self, count: Any) -> "FrozenList":
        self._check("repeat")
        return super().__imul__(count)

    def append(self, value: Any) -> None:
        self._check("append")
        super().append(value)

    def extend(self, values: Any) -> None:
        self._check("extend")
        super().extend(values)

    def insert(self, index: Any, value: Any) -> None:
        self._check("insert")
        super().insert(index, value)

    def pop(self, *args: Any) -> Any:
        self._check("pop")
        return super().pop(*args)

    def remove(self, value: Any) -> None:
        self._check("remove")
        super().remove(value)

    def clear(self) -> None:
        self._check("clear")
        super().clear()

    def sort(self, *args: Any, **kwargs: Any) -> None:
        self._check("sort")
        super().sort(*args, **kwargs)

    def reverse(self) -> None:
        self._check("reverse")
        super().reverse()

    def __repr__(self) -> str:
        return f"FrozenList({list.__repr__(self)})"

    def __copy__(self) -> "FrozenList":
        return FrozenList(self)

    def __deepcopy__(self, memo: Dict[int, Any]) -> "FrozenList":
        return deep_clone(self)

    def __reduce__(self) -> Tuple[Any, ...]:
        return (_rebuild, (type(self), list(self), self.frozen))


def _rebuild(cls: type, items: Any, frozen: bool) -> Any:
    container = cls(items)
    return container.freeze() if frozen else container


_LOCKABLE = (FrozenDict, FrozenList)
_SCALARS = (type(None), bool, int, float, complex, str, bytes)


# =============================================================================
# Clone / Equality
# =============================================================================

def deep_clone(value: Any, _memo: Optional[Dict[int, Any]] = None) -> Any:
    """
    Structurally clone a value.

    Mappings become unlocked FrozenDicts and lists become unlocked
    FrozenLists, so the clone is owned by the caller and can later be frozen
    in place. Dataclass instances become unlocked FrozenDicts of their
    fields. Tuples and sets are rebuilt from cloned items. Anything else
    (scalars, callables, arbitrary objects) is shared, not copied.
    """
    if _memo is None:
        _memo = {}

    if isinstance(value, _SCALARS):
        return value

    key = id(value)
    if key in _memo:
        return _memo[key]

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        result: Any = FrozenDict()
        _memo[key] = result
        for field in dataclasses.fields(value):
            dict.__setitem__(result, field.name, deep_clone(getattr(value, field.name), _memo))
        return result

    if isinstance(value, Mapping):
        result = FrozenDict()
        _memo[key] = result
        for k, v in value.items():
            dict.__setitem__(result, k, deep_clone(v, _memo))
        return result

    if isinstance(value, list):
        result = FrozenList()
        _memo[key] = result
        for item in value:
            list.append(result, deep_clone(item, _memo))
        return result

    if isinstance(value, tuple):
        return tuple(deep_clone(item, _memo) for item in value)

    if isinstance(value, (set, frozenset)):
        return frozenset(deep_clone(item, _memo) for item in value)

    return value


def deep_equal(a: Any, b: Any) -> bool:
    """
    Structural equality.

    Mappings compare by keys and values, lists and tuples compare
    item-by-item (a list equals a tuple with equal items), sets compare by
    membership. Booleans never equal numbers. Cycles are tolerated.
    """
    return _deep_equal(a, b, [])


def _deep_equal(a: Any, b: Any, seen: List[Tuple[int, int]]) -> bool:
    if a is b:
        return True

    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b

    if isinstance(a, _SCALARS) or isinstance(b, _SCALARS):
        return a == b

    pair = (id(a), id(b))
    if pair in seen:
        return True
    seen.append(pair)

    try:
        if isinstance(a, Mapping) or isinstance(b, Mapping):
            return (
                isinstance(a, Mapping)
                and isinstance(b, Mapping)
                and len(a) == len(b)
                and all(k in b and _deep_equal(v, b[k], seen) for k, v in a.items())
            )

        if isinstance(a, (list, tuple)) or isinstance(b, (list, tuple)):
            return (
                isinstance(a, (list, tuple))
                and isinstance(b, (list, tuple))
                and len(a) == len(b)
                and all(_deep_equal(x, y, seen) for x, y in zip(a, b))
            )

        if isinstance(a, (set, frozenset)) or isinstance(b, (set, frozenset)):
            return (
                isinstance(a, (set, frozenset))
                and isinstance(b, (set, frozenset))
                and len(a) == len(b)
                and all(any(_deep_equal(x, y, seen) for y in b) for x in a)
            )

        return a == b
    finally:
        seen.pop()


# =============================================================================
# Freezing
# =============================================================================

def deep_freeze_in_place(value: Any, _seen: Optional[set] = None) -> Any:
    """
    Lock every FrozenDict / FrozenList reachable from ``value``.

    Returns the same reference. Only call this on data steptrace built
    itself: a plain dict or list means someone else may hold a reference,
    so it raises TypeError instead of silently leaving it mutable.
    """
    if _seen is None:
        _seen = set()

    if isinstance(value, _SCALARS) or id(value) in _seen:
        return value

    if isinstance(value, _LOCKABLE):
        _seen.add(id(value))
        children = value.values() if isinstance(value, FrozenDict) else value
        for child in children:
            deep_freeze_in_place(child, _seen)
        value.freeze()
    elif isinstance(value, (tuple, frozenset)):
        _seen.add(id(value))
        for child in value:
            deep_freeze_in_place(child, _seen)
    elif isinstance(value, (dict, list, set)):
        raise TypeError(
            f"Cannot freeze a plain {type(value).__name__} in place; "
            "use deep_freeze() for values you do not own"
        )

    return value


def deep_freeze(value: Any) -> Any:
    """Clone ``value`` and freeze the clone. The source stays mutable."""
    return deep_freeze_in_place(deep_clone(value))


def is_frozen(value: Any, _seen: Optional[set] = None) -> bool:
    """Return True if no container reachable from ``value`` can be mutated."""
    if isinstance(value, _SCALARS):
        return True
    if _seen is None:
        _seen = set()
    if id(value) in _seen:
        return True

    if isinstance(value, _LOCKABLE):
        if not value.frozen:
            return False
        children = value.values() if isinstance(value, FrozenDict) else value
    elif isinstance(value, (tuple, frozenset)):
        children = value
    else:
        return False

    _seen.add(id(value))
    for child in children:
        if not is_frozen(child, _seen):
            return False
    return True
