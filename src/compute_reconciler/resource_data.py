"""Configuration reader/writer a controller works on.

``ResourceData`` holds three layers for one resource:

  - ``state``: what was last persisted (the provider's view after the
    previous run),
  - ``config``: the desired configuration for this run,
  - writes made during this run through ``set()``.

``get()`` reads the newest layer that has the field. ``has_change()``
compares persisted state with the current value, so an attribute a
controller just wrote back no longer counts as changed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Protocol

# Fallback when neither the resource nor its type declares a timeout.
DEFAULT_TIMEOUT_SECONDS = 20 * 60

TIMEOUT_OPERATIONS = frozenset({'create', 'read', 'update', 'delete'})

_MISSING = object()


class ResourceAccessor(Protocol):
    """What a controller needs from the configuration layer."""

    @property
    def id(self) -> str: ...

    def set_id(self, value: str) -> None: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    def get_ok(self, key: str) -> tuple[Any, bool]: ...

    def set(self, key: str, value: Any) -> None: ...

    def has_change(self, key: str) -> bool: ...

    def get_change(self, key: str) -> tuple[Any, Any]: ...

    def is_new_resource(self) -> bool: ...

    def set_partial(self, key: str) -> None: ...

    def timeout(self, operation: str) -> float: ...


@dataclass
class ResourceData:
    """In-memory ResourceAccessor.

    Attributes:
        config: Desired configuration for this run.
        state: Previously persisted attributes (empty for a new resource).
        resource_id: Persisted identifier; empty means absent.
        timeouts: Per-operation overrides in seconds.
        default_timeouts: Per-operation defaults declared by the resource type.
    """

    config: Mapping[str, Any] = field(default_factory=dict)
    state: Mapping[str, Any] = field(default_factory=dict)
    resource_id: str = ''
    timeouts: Mapping[str, float] = field(default_factory=dict)
    default_timeouts: Mapping[str, float] = field(default_factory=dict)
    writes: list[tuple[str, Any]] = field(default_factory=list)
    partial_keys: list[str] = field(default_factory=list)
    _values: dict[str, Any] = field(default_factory=dict, init=False, repr=False)
    _new: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        unknown = set(self.timeouts) - TIMEOUT_OPERATIONS
        if unknown:
            raise ValueError(f'unknown timeout operations: {sorted(unknown)}')
        self.config = MappingProxyType(dict(self.config))
        self.state = MappingProxyType(dict(self.state))

    # ── Identifier ──────────────────────────────────────────────────

    @property
    def id(self) -> str:
        return self.resource_id

    def set_id(self, value: str) -> None:
        """Assign the provider identifier; ``''`` marks the resource gone."""
        if value and self.resource_id and value != self.resource_id:
            raise ValueError(
                f'resource id already set to {self.resource_id!r}, refusing {value!r}'
            )
        if value and not self.resource_id:
            self._new = True
        self.resource_id = value

    def is_new_resource(self) -> bool:
        """True when the id was assigned during this run (create chaining)."""
        return self._new

    def mark_new_resource(self) -> None:
        self._new = True

    # ── Values ──────────────────────────────────────────────────────

    def get(self, key: str, default: Any = None) -> Any:
        for layer in (self._values, self.config, self.state):
            if key in layer:
                return layer[key]
        return default

    def get_ok(self, key: str) -> tuple[Any, bool]:
        """Value plus whether it is set to something non-empty."""
        value = self.get(key)
        return value, bool(value)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        self.writes.append((key, value))

    def get_change(self, key: str) -> tuple[Any, Any]:
        """(persisted, desired) pair for ``key``."""
        old = self.state.get(key)
        new = self.config.get(key, _MISSING)
        if new is _MISSING:
            new = self._values.get(key, old)
        return old, new

    def has_change(self, key: str) -> bool:
        old, new = self.get_change(key)
        if key in self._values and self._values[key] == new:
            # Written back by this run already.
            return False
        return _normalize(old) != _normalize(new)

    # ── Partial commits ─────────────────────────────────────────────

    def set_partial(self, key: str) -> None:
        """Record that ``key`` has been applied, for partial-failure reporting."""
        if key not in self.partial_keys:
            self.partial_keys.append(key)

    # ── Timeouts ────────────────────────────────────────────────────

    def timeout(self, operation: str) -> float:
        if operation not in TIMEOUT_OPERATIONS:
            raise ValueError(f'unknown timeout operation {operation!r}')
        if operation in self.timeouts:
            return float(self.timeouts[operation])
        if operation in self.default_timeouts:
            return float(self.default_timeouts[operation])
        return float(DEFAULT_TIMEOUT_SECONDS)

    def snapshot(self) -> dict[str, Any]:
        """Flattened view of all attributes, newest layer winning."""
        merged = {**self.state, **self.config, **self._values}
        merged['id'] = self.resource_id
        return merged


def _normalize(value: Any) -> Any:
    # Unset and zero values ("", False, 0, empty collections) compare equal.
    return value if value else None
