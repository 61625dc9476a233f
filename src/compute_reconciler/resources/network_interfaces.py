"""Cleanup of lingering network interfaces that block subnet deletion.

Serverless functions attached to a VPC leave managed interfaces behind in
their subnets for a while after the function goes away. A subnet cannot be
deleted while they exist, so the subnet controller removes them first:
detach (forced) when still attached, wait until the interface is
``available``, then delete. An interface that vanishes on its own along the
way is fine.
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import ReconcilerError, ResourceNotFoundError
from ..polling.probes import network_interface_probe
from ..polling.states import NETWORK_INTERFACE_DETACH
from ..polling.waiter import wait_for_spec
from ..providers.contracts import ComputeAPI
from ..providers.errors import ErrorCode, is_error_code

logger = logging.getLogger(__name__)

LINGERING_INTERFACE_PREFIX = 'AWS Lambda VPC ENI'


def delete_lingering_network_interfaces(
    api: ComputeAPI,
    subnet_id: str,
    *,
    description_prefix: str = LINGERING_INTERFACE_PREFIX,
    **wait_options: Any,
) -> list[str]:
    """Delete managed interfaces left in ``subnet_id``.

    Returns the ids of interfaces that were deleted.
    """
    interfaces = api.describe_network_interfaces(subnet_id=subnet_id)
    deleted: list[str] = []

    for interface in interfaces:
        if not str(interface.get('description') or '').startswith(description_prefix):
            continue
        interface_id = interface['network_interface_id']

        attachment = interface.get('attachment')
        if attachment and attachment.get('status') in ('attaching', 'attached'):
            logger.info(
                'Detaching lingering network interface %s from subnet %s',
                interface_id,
                subnet_id,
                extra={'resource_id': subnet_id, 'network_interface_id': interface_id},
            )
            try:
                api.detach_network_interface(attachment['attachment_id'], force=True)
            except Exception as exc:
                if is_error_code(exc, ErrorCode.NETWORK_INTERFACE_NOT_FOUND):
                    continue
                raise

            try:
                wait_for_spec(
                    network_interface_probe(api, interface_id),
                    NETWORK_INTERFACE_DETACH,
                    resource_id=interface_id,
                    **wait_options,
                )
            except ReconcilerError as exc:
                if isinstance(exc, ResourceNotFoundError) or is_error_code(
                    exc, ErrorCode.NETWORK_INTERFACE_NOT_FOUND,
                ):
                    logger.info(
                        'Network interface %s disappeared while detaching',
                        interface_id,
                        extra={'resource_id': subnet_id, 'network_interface_id': interface_id},
                    )
                    continue
                raise exc.with_context(
                    f'waiting for network interface ({interface_id}) to detach'
                ) from exc

        try:
            api.delete_network_interface(interface_id)
        except Exception as exc:
            if is_error_code(exc, ErrorCode.NETWORK_INTERFACE_NOT_FOUND):
                continue
            raise
        deleted.append(interface_id)
        logger.info(
            'Deleted lingering network interface %s',
            interface_id,
            extra={'resource_id': subnet_id, 'network_interface_id': interface_id},
        )

    return deleted
