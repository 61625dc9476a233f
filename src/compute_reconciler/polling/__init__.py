"""State-convergence polling: state vocabularies, the waiter and its probes."""

from .states import (
    WAIT_SPECS,
    CidrBlockState,
    NetworkInterfaceState,
    PlacementGroupState,
    SubnetDeletionState,
    SubnetState,
    WaitSpec,
    coerce_state,
)
from .waiter import Probe, ProbeResult, wait_for_spec, wait_for_state

__all__ = [
    'WAIT_SPECS',
    'CidrBlockState',
    'NetworkInterfaceState',
    'PlacementGroupState',
    'Probe',
    'ProbeResult',
    'SubnetDeletionState',
    'SubnetState',
    'WaitSpec',
    'coerce_state',
    'wait_for_spec',
    'wait_for_state',
]
