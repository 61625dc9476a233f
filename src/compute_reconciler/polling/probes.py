"""Status probes: one describe (or delete) call plus error classification.

Each factory binds a probe to one object identifier and returns a
zero-argument callable for the waiter. Classification rules differ per
operation even for the same resource type, which is why they live here and
not in the waiter:

  placement group, create  zero results        -> ResourceNotFoundError
  placement group, delete  zero results/unknown -> deleted
  subnet, create           not found/empty     -> absent (keep waiting)
  subnet, delete           DependencyViolation -> pending
                           not found           -> destroyed
  CIDR association         missing association -> absent (keep waiting)
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import MalformedResponseError, ResourceNotFoundError
from ..providers.contracts import ComputeAPI
from ..providers.errors import ErrorCode, is_error_code
from .states import (
    CidrBlockState,
    NetworkInterfaceState,
    PlacementGroupState,
    SubnetDeletionState,
    SubnetState,
    coerce_state,
)
from .waiter import Probe, ProbeResult

logger = logging.getLogger(__name__)


def placement_group_create_probe(api: ComputeAPI, name: str) -> Probe:
    """Watch a new placement group; it must be visible from the first probe."""

    def probe() -> ProbeResult:
        groups = api.describe_placement_groups([name])
        if not groups:
            raise ResourceNotFoundError(name, f'placement group not found ({name!r})')
        group = groups[0]
        return ProbeResult(
            coerce_state(PlacementGroupState, _required(group, 'state', name)),
            group,
        )

    return probe


def placement_group_delete_probe(api: ComputeAPI, name: str) -> Probe:
    """Watch a placement group go away; disappearance is success."""

    def probe() -> ProbeResult:
        try:
            groups = api.describe_placement_groups([name])
        except Exception as exc:
            if is_error_code(exc, ErrorCode.PLACEMENT_GROUP_UNKNOWN):
                logger.debug('Placement group %s is unknown, treating as deleted', name)
                return ProbeResult(PlacementGroupState.DELETED)
            raise

        if not groups:
            return ProbeResult(PlacementGroupState.DELETED)
        group = groups[0]
        return ProbeResult(
            coerce_state(PlacementGroupState, _required(group, 'state', name)),
            group,
        )

    return probe


def subnet_state_probe(api: ComputeAPI, subnet_id: str) -> Probe:
    """Watch a subnet's state, tolerating read-after-write lag."""

    def probe() -> ProbeResult:
        subnet = _describe_subnet(api, subnet_id)
        if subnet is None:
            return ProbeResult(None)
        return ProbeResult(
            coerce_state(SubnetState, _required(subnet, 'state', subnet_id)),
            subnet,
        )

    return probe


def subnet_delete_probe(api: ComputeAPI, subnet_id: str) -> Probe:
    """Issue the delete itself on every probe until it sticks.

    A dependency still attached to the subnet surfaces as
    DependencyViolation; that is retried. A subnet that is already gone
    counts as destroyed.
    """

    def probe() -> ProbeResult:
        try:
            api.delete_subnet(subnet_id)
        except Exception as exc:
            if is_error_code(exc, ErrorCode.DEPENDENCY_VIOLATION):
                logger.debug(
                    'Subnet %s still has dependencies, retrying delete',
                    subnet_id,
                    extra={'resource_id': subnet_id},
                )
                return ProbeResult(SubnetDeletionState.PENDING)
            if is_error_code(exc, ErrorCode.SUBNET_NOT_FOUND):
                return ProbeResult(SubnetDeletionState.DESTROYED)
            logger.warning(
                'Subnet %s delete failed: %s',
                subnet_id,
                exc,
                extra={'resource_id': subnet_id, 'state': SubnetDeletionState.FAILURE.value},
            )
            raise
        return ProbeResult(SubnetDeletionState.DESTROYED)

    return probe


def cidr_association_probe(api: ComputeAPI, subnet_id: str, association_id: str) -> Probe:
    """Watch one IPv6 CIDR association of a subnet."""

    def probe() -> ProbeResult:
        subnet = _describe_subnet(api, subnet_id)
        if subnet is None:
            return ProbeResult(None)

        associations = subnet.get('ipv6_cidr_block_association_set')
        if not associations:
            return ProbeResult(None)

        for association in associations:
            if association.get('association_id') == association_id:
                return ProbeResult(
                    coerce_state(
                        CidrBlockState, _required(association, 'state', association_id),
                    ),
                    association,
                )
        return ProbeResult(None)

    return probe


def network_interface_probe(api: ComputeAPI, network_interface_id: str) -> Probe:
    """Watch a network interface's status during detachment."""

    def probe() -> ProbeResult:
        interfaces = api.describe_network_interfaces(
            network_interface_ids=[network_interface_id],
        )
        if not interfaces:
            return ProbeResult(None)
        interface = interfaces[0]
        return ProbeResult(
            coerce_state(
                NetworkInterfaceState,
                _required(interface, 'status', network_interface_id),
            ),
            interface,
        )

    return probe


def _describe_subnet(api: ComputeAPI, subnet_id: str) -> dict[str, Any] | None:
    try:
        subnets = api.describe_subnets([subnet_id])
    except Exception as exc:
        if is_error_code(exc, ErrorCode.SUBNET_NOT_FOUND):
            # Not visible yet (read-after-write lag).
            return None
        raise
    if not subnets:
        return None
    return subnets[0]


def _required(record: Any, key: str, resource_id: str) -> Any:
    if not isinstance(record, dict):
        raise MalformedResponseError(
            f'expected a record for {resource_id!r}, got {type(record).__name__}'
        )
    value = record.get(key)
    if value is None or value == '':
        raise MalformedResponseError(f'record for {resource_id!r} has no {key!r}')
    return value
