"""In-memory ComputeAPI for tests and dry runs.

Objects converge instantly: a created subnet is ``available``, a new CIDR
association is ``associated`` on the next describe. Eventual-consistency
behaviour is scripted per method with ``script()``; scripted responses are
consumed first, then the method falls back to the in-memory store.

A scripted response is returned as-is, raised when it is an exception, or
called with the method's arguments when it is callable.
"""

from __future__ import annotations

import copy
import itertools
from collections import defaultdict, deque
from typing import Any

from .errors import ComputeAPIError, ErrorCode


def api_error(code: ErrorCode | str, message: str = '', status_code: int = 400) -> ComputeAPIError:
    """Shorthand for a provider error carrying ``code``."""
    code = getattr(code, 'value', code)
    return ComputeAPIError(status_code, code, message or code)


class InMemoryComputeAPI:
    """Test compute API that tracks calls."""

    def __init__(self) -> None:
        self.placement_groups: dict[str, dict[str, Any]] = {}
        self.subnets: dict[str, dict[str, Any]] = {}
        self.network_interfaces: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self._scripts: dict[str, deque] = defaultdict(deque)
        self._ids = itertools.count(1)

    # ── Scripting ────────────────────────────────────────────────

    def script(self, method: str, *responses: Any) -> None:
        """Queue responses for ``method`` ahead of the default behaviour."""
        if not hasattr(self, method):
            raise AttributeError(f'unknown compute API method {method!r}')
        self._scripts[method].extend(responses)

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def _record(self, method: str, args: Any) -> tuple[bool, Any]:
        self.calls.append((method, args))
        queue = self._scripts.get(method)
        if not queue:
            return False, None
        response = queue.popleft()
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return True, response(args)
        return True, copy.deepcopy(response)

    def _next_id(self, prefix: str) -> str:
        return f'{prefix}-{next(self._ids):08x}'

    # ── Placement groups ─────────────────────────────────────────

    def create_placement_group(self, name: str, strategy: str) -> dict[str, Any]:
        scripted, value = self._record('create_placement_group', (name, strategy))
        if scripted:
            return value
        if name in self.placement_groups:
            raise api_error('InvalidPlacementGroup.Duplicate', f'placement group {name} already exists')
        self.placement_groups[name] = {
            'group_name': name,
            'strategy': strategy,
            'state': 'available',
        }
        return copy.deepcopy(self.placement_groups[name])

    def describe_placement_groups(self, names: list[str]) -> list[dict[str, Any]]:
        scripted, value = self._record('describe_placement_groups', tuple(names))
        if scripted:
            return value
        return [copy.deepcopy(self.placement_groups[n]) for n in names if n in self.placement_groups]

    def delete_placement_group(self, name: str) -> None:
        scripted, _ = self._record('delete_placement_group', name)
        if scripted:
            return
        if self.placement_groups.pop(name, None) is None:
            raise api_error(ErrorCode.PLACEMENT_GROUP_UNKNOWN, f'placement group {name} is unknown')

    # ── Subnets ──────────────────────────────────────────────────

    def create_subnet(
        self,
        *,
        vpc_id: str,
        cidr_block: str,
        availability_zone: str | None = None,
        availability_zone_id: str | None = None,
        ipv6_cidr_block: str | None = None,
    ) -> dict[str, Any]:
        args = {
            'vpc_id': vpc_id,
            'cidr_block': cidr_block,
            'availability_zone': availability_zone,
            'availability_zone_id': availability_zone_id,
            'ipv6_cidr_block': ipv6_cidr_block,
        }
        scripted, value = self._record('create_subnet', args)
        if scripted:
            return value
        subnet_id = self._next_id('subnet')
        associations = []
        if ipv6_cidr_block:
            associations.append({
                'association_id': self._next_id('subnet-cidr-assoc'),
                'ipv6_cidr_block': ipv6_cidr_block,
                'state': 'associated',
            })
        self.subnets[subnet_id] = {
            'subnet_id': subnet_id,
            'vpc_id': vpc_id,
            'state': 'available',
            'cidr_block': cidr_block,
            'availability_zone': availability_zone or 'zone-a',
            'availability_zone_id': availability_zone_id or 'zone-a-id',
            'map_public_ip_on_launch': False,
            'assign_ipv6_address_on_creation': False,
            'ipv6_cidr_block_association_set': associations,
        }
        created = copy.deepcopy(self.subnets[subnet_id])
        created['state'] = 'pending'
        return created

    def describe_subnets(self, subnet_ids: list[str]) -> list[dict[str, Any]]:
        scripted, value = self._record('describe_subnets', tuple(subnet_ids))
        if scripted:
            return value
        missing = [s for s in subnet_ids if s not in self.subnets]
        if missing:
            raise api_error(ErrorCode.SUBNET_NOT_FOUND, f'subnet {missing[0]} does not exist')
        return [copy.deepcopy(self.subnets[s]) for s in subnet_ids]

    def modify_subnet_attribute(
        self,
        subnet_id: str,
        *,
        map_public_ip_on_launch: bool | None = None,
        assign_ipv6_address_on_creation: bool | None = None,
    ) -> None:
        args = {
            'subnet_id': subnet_id,
            'map_public_ip_on_launch': map_public_ip_on_launch,
            'assign_ipv6_address_on_creation': assign_ipv6_address_on_creation,
        }
        scripted, _ = self._record('modify_subnet_attribute', args)
        if scripted:
            return
        subnet = self._subnet(subnet_id)
        if map_public_ip_on_launch is not None:
            subnet['map_public_ip_on_launch'] = map_public_ip_on_launch
        if assign_ipv6_address_on_creation is not None:
            subnet['assign_ipv6_address_on_creation'] = assign_ipv6_address_on_creation

    def associate_subnet_cidr_block(
        self, subnet_id: str, ipv6_cidr_block: str,
    ) -> dict[str, Any]:
        scripted, value = self._record('associate_subnet_cidr_block', (subnet_id, ipv6_cidr_block))
        if scripted:
            return value
        subnet = self._subnet(subnet_id)
        association = {
            'association_id': self._next_id('subnet-cidr-assoc'),
            'ipv6_cidr_block': ipv6_cidr_block,
            'state': 'associated',
        }
        subnet['ipv6_cidr_block_association_set'].append(association)
        return {**association, 'state': 'associating'}

    def disassociate_subnet_cidr_block(self, association_id: str) -> dict[str, Any]:
        scripted, value = self._record('disassociate_subnet_cidr_block', association_id)
        if scripted:
            return value
        for subnet in self.subnets.values():
            for association in subnet['ipv6_cidr_block_association_set']:
                if association['association_id'] == association_id:
                    association['state'] = 'disassociated'
                    return {**association, 'state': 'disassociating'}
        raise api_error(ErrorCode.ASSOCIATION_NOT_FOUND, f'association {association_id} does not exist')

    def delete_subnet(self, subnet_id: str) -> None:
        scripted, _ = self._record('delete_subnet', subnet_id)
        if scripted:
            return
        self._subnet(subnet_id)
        if any(i['subnet_id'] == subnet_id for i in self.network_interfaces.values()):
            raise api_error(
                ErrorCode.DEPENDENCY_VIOLATION,
                f'subnet {subnet_id} has dependencies and cannot be deleted',
            )
        del self.subnets[subnet_id]

    def _subnet(self, subnet_id: str) -> dict[str, Any]:
        try:
            return self.subnets[subnet_id]
        except KeyError:
            raise api_error(ErrorCode.SUBNET_NOT_FOUND, f'subnet {subnet_id} does not exist') from None

    # ── Network interfaces ───────────────────────────────────────

    def add_network_interface(
        self,
        subnet_id: str,
        *,
        description: str = '',
        attached: bool = False,
    ) -> str:
        """Seed an interface in ``subnet_id``; returns its id."""
        interface_id = self._next_id('eni')
        self.network_interfaces[interface_id] = {
            'network_interface_id': interface_id,
            'subnet_id': subnet_id,
            'description': description,
            'status': 'in-use' if attached else 'available',
            'attachment': (
                {'attachment_id': self._next_id('eni-attach'), 'status': 'attached'}
                if attached else None
            ),
        }
        return interface_id

    def describe_network_interfaces(
        self,
        *,
        subnet_id: str | None = None,
        network_interface_ids: list[str] | None = None,
    ) -> list[dict[str, Any]]:
        args = {'subnet_id': subnet_id, 'network_interface_ids': network_interface_ids}
        scripted, value = self._record('describe_network_interfaces', args)
        if scripted:
            return value
        if network_interface_ids:
            missing = [i for i in network_interface_ids if i not in self.network_interfaces]
            if missing:
                raise api_error(
                    ErrorCode.NETWORK_INTERFACE_NOT_FOUND,
                    f'network interface {missing[0]} does not exist',
                )
        return [
            copy.deepcopy(i)
            for i in self.network_interfaces.values()
            if (subnet_id is None or i['subnet_id'] == subnet_id)
            and (not network_interface_ids or i['network_interface_id'] in network_interface_ids)
        ]

    def detach_network_interface(self, attachment_id: str, *, force: bool = False) -> None:
        scripted, _ = self._record('detach_network_interface', (attachment_id, force))
        if scripted:
            return
        for interface in self.network_interfaces.values():
            attachment = interface.get('attachment')
            if attachment and attachment['attachment_id'] == attachment_id:
                interface['attachment'] = None
                interface['status'] = 'available'
                return
        raise api_error('InvalidAttachmentID.NotFound', f'attachment {attachment_id} does not exist')

    def delete_network_interface(self, network_interface_id: str) -> None:
        scripted, _ = self._record('delete_network_interface', network_interface_id)
        if scripted:
            return
        if self.network_interfaces.pop(network_interface_id, None) is None:
            raise api_error(
                ErrorCode.NETWORK_INTERFACE_NOT_FOUND,
                f'network interface {network_interface_id} does not exist',
            )
