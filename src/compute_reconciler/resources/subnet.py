"""Subnet controller.

Parent lifecycle: absent -> pending -> available -> (deleted).
IPv6 CIDR association sub-lifecycle:
  none -> associating -> associated -> disassociating -> disassociated

Create waits for ``available`` and then runs update, so update has to be
safe right after create: the CIDR reassociation is skipped for a new
subnet because its initial block was set by the create call.

Only one IPv6 block may be associated at a time, so a reassociation fully
disassociates the old block (``disassociated``) before the new one is
requested.

Delete removes lingering managed network interfaces, then repeats the
delete call until it stops failing with DependencyViolation.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..errors import ReconcilerError
from ..observability.logging import operation_context
from ..polling.probes import (
    cidr_association_probe,
    subnet_delete_probe,
    subnet_state_probe,
)
from ..polling.states import (
    SUBNET_CIDR_ASSOCIATE,
    SUBNET_CIDR_DISASSOCIATE,
    SUBNET_CREATE,
    SUBNET_DELETE,
    CidrBlockState,
)
from ..polling.waiter import wait_for_spec
from ..providers.contracts import ComputeAPI
from ..providers.errors import ErrorCode, is_error_code
from ..resource_data import ResourceAccessor, ResourceData
from ..settings import ReconcilerSettings
from .network_interfaces import delete_lingering_network_interfaces

logger = logging.getLogger(__name__)

RESOURCE_TYPE = 'subnet'

DEFAULT_TIMEOUTS: Mapping[str, float] = {
    'create': 10 * 60,
    'delete': 32 * 60,
}

# A configured delete timeout at or below the threshold is replaced by the
# floor. Origin of both values is unconfirmed; see DESIGN.md.
DELETE_TIMEOUT_THRESHOLD_SECONDS = 20 * 60
DELETE_TIMEOUT_FLOOR_SECONDS = 34 * 60


def effective_delete_timeout(configured: float) -> float:
    """Apply the delete timeout floor."""
    if configured <= DELETE_TIMEOUT_THRESHOLD_SECONDS:
        return float(DELETE_TIMEOUT_FLOOR_SECONDS)
    return float(configured)


class SubnetResource:
    """Create, read, update and delete subnets through an injected API."""

    def __init__(
        self,
        api: ComputeAPI,
        *,
        settings: ReconcilerSettings | None = None,
        **wait_overrides: Any,
    ) -> None:
        self._api = api
        self._settings = settings or ReconcilerSettings()
        self._wait_options = {**self._settings.wait_options(), **wait_overrides}

    @staticmethod
    def new_data(
        config: Mapping[str, Any],
        *,
        resource_id: str = '',
        state: Mapping[str, Any] | None = None,
        timeouts: Mapping[str, float] | None = None,
    ) -> ResourceData:
        return ResourceData(
            config=config,
            state=state or {},
            resource_id=resource_id,
            timeouts=timeouts or {},
            default_timeouts=DEFAULT_TIMEOUTS,
        )

    # ── Create ──────────────────────────────────────────────────────

    def create(self, data: ResourceAccessor) -> None:
        vpc_id = data.get('vpc_id')
        cidr_block = data.get('cidr_block')
        if not vpc_id or not cidr_block:
            raise ValueError('subnet vpc_id and cidr_block are required')
        if data.get('availability_zone') and data.get('availability_zone_id'):
            raise ValueError('availability_zone conflicts with availability_zone_id')

        with operation_context(resource=RESOURCE_TYPE, action='create', vpc_id=vpc_id):
            ipv6_cidr_block, has_ipv6 = data.get_ok('ipv6_cidr_block')
            subnet = self._api.create_subnet(
                vpc_id=vpc_id,
                cidr_block=cidr_block,
                availability_zone=data.get('availability_zone') or None,
                availability_zone_id=data.get('availability_zone_id') or None,
                ipv6_cidr_block=ipv6_cidr_block if has_ipv6 else None,
            )
            subnet_id = subnet['subnet_id']
            data.set_id(subnet_id)
            logger.info(
                'Subnet created in vpc %s: %s',
                vpc_id,
                subnet_id,
                extra={'resource_id': subnet_id},
            )

            try:
                wait_for_spec(
                    subnet_state_probe(self._api, subnet_id),
                    SUBNET_CREATE,
                    timeout=data.timeout('create'),
                    resource_id=subnet_id,
                    **self._wait_options,
                )
            except ReconcilerError as exc:
                raise exc.with_context(
                    f'waiting for subnet ({subnet_id}) to become ready'
                ) from exc

            self.update(data)

    # ── Read ────────────────────────────────────────────────────────

    def read(self, data: ResourceAccessor) -> None:
        subnet_id = data.id
        try:
            subnets = self._api.describe_subnets([subnet_id])
        except Exception as exc:
            if is_error_code(exc, ErrorCode.SUBNET_NOT_FOUND):
                logger.warning(
                    'Subnet %s no longer exists, removing from state',
                    subnet_id,
                    extra={'resource_id': subnet_id},
                )
                data.set_id('')
                return
            raise
        if not subnets:
            return

        subnet = subnets[0]
        data.set('vpc_id', subnet.get('vpc_id'))
        data.set('availability_zone', subnet.get('availability_zone'))
        data.set('availability_zone_id', subnet.get('availability_zone_id'))
        data.set('cidr_block', subnet.get('cidr_block'))
        data.set('map_public_ip_on_launch', bool(subnet.get('map_public_ip_on_launch')))
        data.set(
            'assign_ipv6_address_on_creation',
            bool(subnet.get('assign_ipv6_address_on_creation')),
        )

        association_id = ''
        ipv6_cidr_block = ''
        for association in subnet.get('ipv6_cidr_block_association_set') or ():
            # At most one block is associated at a time.
            if association.get('state') == CidrBlockState.ASSOCIATED.value:
                association_id = association.get('association_id', '')
                ipv6_cidr_block = association.get('ipv6_cidr_block', '')
                break
        data.set('ipv6_cidr_block_association_id', association_id)
        data.set('ipv6_cidr_block', ipv6_cidr_block)

    # ── Update ──────────────────────────────────────────────────────

    def update(self, data: ResourceAccessor) -> None:
        subnet_id = data.id
        with operation_context(resource=RESOURCE_TYPE, action='update', resource_id=subnet_id):
            if data.has_change('map_public_ip_on_launch'):
                self._modify_attribute(
                    data, map_public_ip_on_launch=bool(data.get('map_public_ip_on_launch')),
                )
                data.set_partial('map_public_ip_on_launch')

            if data.has_change('ipv6_cidr_block') and not data.is_new_resource():
                _, new_block = data.get_change('ipv6_cidr_block')
                self._reassociate_ipv6_cidr_block(data, new_block)
                data.set_partial('ipv6_cidr_block')

            if data.has_change('assign_ipv6_address_on_creation'):
                self._modify_attribute(
                    data,
                    assign_ipv6_address_on_creation=bool(
                        data.get('assign_ipv6_address_on_creation')
                    ),
                )
                data.set_partial('assign_ipv6_address_on_creation')

            logger.info('Subnet updated: %s', subnet_id, extra={'resource_id': subnet_id})
            self.read(data)

    def _modify_attribute(self, data: ResourceAccessor, **attribute: bool) -> None:
        logger.debug(
            'Modifying subnet %s attributes: %s',
            data.id,
            attribute,
            extra={'resource_id': data.id},
        )
        self._api.modify_subnet_attribute(data.id, **attribute)

    def _reassociate_ipv6_cidr_block(self, data: ResourceAccessor, new_block: str) -> None:
        subnet_id = data.id
        old_association_id, has_association = data.get_ok('ipv6_cidr_block_association_id')

        if has_association:
            logger.info(
                'Disassociating IPv6 CIDR association %s from subnet %s',
                old_association_id,
                subnet_id,
                extra={'resource_id': subnet_id},
            )
            self._api.disassociate_subnet_cidr_block(old_association_id)
            try:
                wait_for_spec(
                    cidr_association_probe(self._api, subnet_id, old_association_id),
                    SUBNET_CIDR_DISASSOCIATE,
                    resource_id=subnet_id,
                    **self._wait_options,
                )
            except ReconcilerError as exc:
                raise exc.with_context(
                    f'waiting for IPv6 CIDR ({subnet_id}) to become disassociated'
                ) from exc

        if not new_block:
            return

        # If this fails the subnet is left without an IPv6 block; the next
        # read records that and a rerun associates again.
        association = self._api.associate_subnet_cidr_block(subnet_id, new_block)
        new_association_id = association['association_id']
        logger.info(
            'Associating IPv6 CIDR %s with subnet %s (association %s)',
            new_block,
            subnet_id,
            new_association_id,
            extra={'resource_id': subnet_id},
        )
        try:
            wait_for_spec(
                cidr_association_probe(self._api, subnet_id, new_association_id),
                SUBNET_CIDR_ASSOCIATE,
                resource_id=subnet_id,
                **self._wait_options,
            )
        except ReconcilerError as exc:
            raise exc.with_context(
                f'waiting for IPv6 CIDR ({subnet_id}) to become associated'
            ) from exc

    # ── Delete ──────────────────────────────────────────────────────

    def delete(self, data: ResourceAccessor) -> None:
        subnet_id = data.id
        with operation_context(resource=RESOURCE_TYPE, action='delete', resource_id=subnet_id):
            logger.info('Deleting subnet: %s', subnet_id, extra={'resource_id': subnet_id})

            try:
                delete_lingering_network_interfaces(
                    self._api, subnet_id, **self._wait_options,
                )
            except ReconcilerError as exc:
                raise exc.with_context('failed to delete lingering network interfaces') from exc

            configured = data.timeout('delete')
            timeout = effective_delete_timeout(configured)
            if timeout != configured:
                logger.debug(
                    'Subnet %s delete timeout raised from %ss to %ss',
                    subnet_id,
                    configured,
                    timeout,
                    extra={'resource_id': subnet_id},
                )

            try:
                wait_for_spec(
                    subnet_delete_probe(self._api, subnet_id),
                    SUBNET_DELETE,
                    timeout=timeout,
                    resource_id=subnet_id,
                    **self._wait_options,
                )
            except ReconcilerError as exc:
                raise exc.with_context(f'error deleting subnet ({subnet_id})') from exc

            logger.info('Subnet deleted: %s', subnet_id, extra={'resource_id': subnet_id})
            data.set_id('')

