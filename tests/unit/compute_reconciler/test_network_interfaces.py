"""Lingering network interface cleanup tests."""

from __future__ import annotations

import pytest

from compute_reconciler.errors import WaitTimeoutError
from compute_reconciler.providers.errors import ErrorCode
from compute_reconciler.providers.in_memory import api_error
from compute_reconciler.resources.network_interfaces import (
    LINGERING_INTERFACE_PREFIX,
    delete_lingering_network_interfaces,
)

LAMBDA_DESCRIPTION = f'{LINGERING_INTERFACE_PREFIX}-worker'


def test_only_matching_interfaces_are_removed(api, wait_overrides):
    lingering = api.add_network_interface('subnet-1', description=LAMBDA_DESCRIPTION)
    other = api.add_network_interface('subnet-1', description='database')
    elsewhere = api.add_network_interface('subnet-2', description=LAMBDA_DESCRIPTION)

    deleted = delete_lingering_network_interfaces(api, 'subnet-1', **wait_overrides)

    assert deleted == [lingering]
    assert other in api.network_interfaces
    assert elsewhere in api.network_interfaces
    assert 'detach_network_interface' not in api.call_names()


def test_attached_interface_is_detached_then_deleted(api, wait_overrides):
    interface_id = api.add_network_interface(
        'subnet-1', description=LAMBDA_DESCRIPTION, attached=True,
    )
    attachment_id = api.network_interfaces[interface_id]['attachment']['attachment_id']

    deleted = delete_lingering_network_interfaces(api, 'subnet-1', **wait_overrides)

    assert deleted == [interface_id]
    assert api.call_names() == [
        'describe_network_interfaces',
        'detach_network_interface',
        'describe_network_interfaces',
        'delete_network_interface',
    ]
    assert api.calls[1][1] == (attachment_id, True)


def test_interface_gone_during_detach_wait_is_skipped(api, wait_overrides):
    api.add_network_interface('subnet-1', description=LAMBDA_DESCRIPTION, attached=True)
    listing = api.describe_network_interfaces(subnet_id='subnet-1')
    api.calls.clear()
    api.script('detach_network_interface', None)
    api.script(
        'describe_network_interfaces',
        listing,
        api_error(ErrorCode.NETWORK_INTERFACE_NOT_FOUND),
    )

    deleted = delete_lingering_network_interfaces(api, 'subnet-1', **wait_overrides)

    assert deleted == []
    assert 'delete_network_interface' not in api.call_names()


def test_interface_missing_from_describe_during_detach_is_skipped(api, wait_overrides):
    interface_id = api.add_network_interface(
        'subnet-1', description=LAMBDA_DESCRIPTION, attached=True,
    )
    listing = api.describe_network_interfaces(subnet_id='subnet-1')
    api.calls.clear()
    api.script('detach_network_interface', None)
    api.script('describe_network_interfaces', listing, *([[]] * 50))

    deleted = delete_lingering_network_interfaces(api, 'subnet-1', **wait_overrides)

    assert deleted == []
    # Listing, 20 tolerated misses, then the miss that ends the wait.
    assert api.count('describe_network_interfaces') == 22
    assert 'delete_network_interface' not in api.call_names()
    assert interface_id in api.network_interfaces


def test_interface_gone_before_delete_is_skipped(api, wait_overrides):
    api.add_network_interface('subnet-1', description=LAMBDA_DESCRIPTION)
    api.script('delete_network_interface', api_error(ErrorCode.NETWORK_INTERFACE_NOT_FOUND))

    assert delete_lingering_network_interfaces(api, 'subnet-1', **wait_overrides) == []


def test_stuck_detach_times_out_with_context(api, wait_overrides):
    interface_id = api.add_network_interface(
        'subnet-1', description=LAMBDA_DESCRIPTION, attached=True,
    )
    api.script('detach_network_interface', None)

    with pytest.raises(WaitTimeoutError) as excinfo:
        delete_lingering_network_interfaces(api, 'subnet-1', **wait_overrides)

    assert excinfo.value.last_state == 'in-use'
    assert str(excinfo.value).startswith(
        f'waiting for network interface ({interface_id}) to detach'
    )
    assert interface_id in api.network_interfaces
