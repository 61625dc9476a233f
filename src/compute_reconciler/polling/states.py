"""State vocabularies and the wait table for every convergence we drive.

Each resource type has its own closed enumeration. Raw provider strings are
coerced through ``coerce_state()``; values outside the enumeration are kept
as plain strings so the waiter rejects them as unexpected instead of the
probe guessing.

``WAIT_SPECS`` is the transition table: for each named wait, the states that
may be observed on the way (pending) and the states that end it (target).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Mapping, TypeVar

DEFAULT_MIN_INTERVAL_SECONDS = 0.1
DEFAULT_MAX_INTERVAL_SECONDS = 10.0
DEFAULT_NOT_FOUND_CHECKS = 20


class PlacementGroupState(str, Enum):
    PENDING = 'pending'
    AVAILABLE = 'available'
    DELETING = 'deleting'
    DELETED = 'deleted'


class SubnetState(str, Enum):
    PENDING = 'pending'
    AVAILABLE = 'available'


class CidrBlockState(str, Enum):
    ASSOCIATING = 'associating'
    ASSOCIATED = 'associated'
    DISASSOCIATING = 'disassociating'
    DISASSOCIATED = 'disassociated'
    FAILING = 'failing'
    FAILED = 'failed'


class SubnetDeletionState(str, Enum):
    """Synthetic states reported by the subnet delete loop."""

    PENDING = 'pending'
    DESTROYED = 'destroyed'
    FAILURE = 'failure'


class NetworkInterfaceState(str, Enum):
    AVAILABLE = 'available'
    ATTACHING = 'attaching'
    IN_USE = 'in-use'
    DETACHING = 'detaching'


StateEnum = TypeVar('StateEnum', bound=Enum)


def coerce_state(enum_cls: type[StateEnum], raw: object) -> StateEnum | str | None:
    """Map a raw provider value onto ``enum_cls``.

    Returns ``None`` for an absent/empty value and the raw string when it is
    not a member of the enumeration.
    """
    if raw is None or raw == '':
        return None
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(raw)
    except ValueError:
        return str(raw)


@dataclass(frozen=True, slots=True)
class WaitSpec:
    """One named convergence: pending -> target within a timeout."""

    name: str
    pending: frozenset[Enum]
    target: frozenset[Enum]
    timeout_seconds: float
    min_interval_seconds: float = DEFAULT_MIN_INTERVAL_SECONDS

    def with_timeout(self, timeout_seconds: float) -> WaitSpec:
        return replace(self, timeout_seconds=timeout_seconds)

    @property
    def expected(self) -> frozenset[Enum]:
        return self.pending | self.target


PLACEMENT_GROUP_CREATE = WaitSpec(
    name='placement_group_create',
    pending=frozenset({PlacementGroupState.PENDING}),
    target=frozenset({PlacementGroupState.AVAILABLE}),
    timeout_seconds=5 * 60,
    min_interval_seconds=1.0,
)

PLACEMENT_GROUP_DELETE = WaitSpec(
    name='placement_group_delete',
    pending=frozenset({PlacementGroupState.DELETING}),
    target=frozenset({PlacementGroupState.DELETED}),
    timeout_seconds=5 * 60,
    min_interval_seconds=1.0,
)

# Timeout comes from the resource data; this is only the declared default.
SUBNET_CREATE = WaitSpec(
    name='subnet_create',
    pending=frozenset({SubnetState.PENDING}),
    target=frozenset({SubnetState.AVAILABLE}),
    timeout_seconds=10 * 60,
)

SUBNET_CIDR_DISASSOCIATE = WaitSpec(
    name='subnet_cidr_disassociate',
    pending=frozenset({CidrBlockState.DISASSOCIATING, CidrBlockState.ASSOCIATED}),
    target=frozenset({CidrBlockState.DISASSOCIATED}),
    timeout_seconds=3 * 60,
)

SUBNET_CIDR_ASSOCIATE = WaitSpec(
    name='subnet_cidr_associate',
    pending=frozenset({CidrBlockState.ASSOCIATING, CidrBlockState.DISASSOCIATED}),
    target=frozenset({CidrBlockState.ASSOCIATED}),
    timeout_seconds=3 * 60,
)

SUBNET_DELETE = WaitSpec(
    name='subnet_delete',
    pending=frozenset({SubnetDeletionState.PENDING}),
    target=frozenset({SubnetDeletionState.DESTROYED}),
    timeout_seconds=32 * 60,
    min_interval_seconds=1.0,
)

NETWORK_INTERFACE_DETACH = WaitSpec(
    name='network_interface_detach',
    pending=frozenset({NetworkInterfaceState.IN_USE, NetworkInterfaceState.DETACHING}),
    target=frozenset({NetworkInterfaceState.AVAILABLE}),
    timeout_seconds=10 * 60,
)

WAIT_SPECS: Mapping[str, WaitSpec] = MappingProxyType(
    {
        spec.name: spec
        for spec in (
            PLACEMENT_GROUP_CREATE,
            PLACEMENT_GROUP_DELETE,
            SUBNET_CREATE,
            SUBNET_CIDR_DISASSOCIATE,
            SUBNET_CIDR_ASSOCIATE,
            SUBNET_DELETE,
            NETWORK_INTERFACE_DETACH,
        )
    }
)
