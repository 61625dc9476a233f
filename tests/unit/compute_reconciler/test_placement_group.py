"""Placement group controller tests."""

from __future__ import annotations

import pytest

from compute_reconciler.errors import (
    ResourceNotFoundError,
    UnexpectedStateError,
    WaitTimeoutError,
)
from compute_reconciler.providers.errors import ComputeAPIError, ErrorCode
from compute_reconciler.providers.in_memory import api_error
from compute_reconciler.resources.placement_group import PlacementGroupResource


@pytest.fixture
def resource(api, wait_overrides):
    return PlacementGroupResource(api, **wait_overrides)


def _pg(state, name='pg-1', strategy='cluster'):
    return [{'group_name': name, 'strategy': strategy, 'state': state}]


class TestCreate:
    def test_pending_once_then_available(self, api, resource):
        api.script('describe_placement_groups', _pg('pending'))
        data = PlacementGroupResource.new_data({'name': 'pg-1', 'strategy': 'cluster'})

        resource.create(data)

        assert data.id == 'pg-1'
        assert data.get('name') == 'pg-1'
        assert data.get('strategy') == 'cluster'
        # Two probes (one retry) plus the final read.
        assert api.count('describe_placement_groups') == 3
        assert api.call_names()[0] == 'create_placement_group'

    def test_probe_waits_at_least_one_second(self, api, resource, clock):
        api.script('describe_placement_groups', _pg('pending'), _pg('pending'))
        data = PlacementGroupResource.new_data({'name': 'pg-1', 'strategy': 'cluster'})

        resource.create(data)

        assert clock.sleeps and all(s >= 1.0 for s in clock.sleeps)

    def test_group_missing_during_wait_fails(self, api, resource):
        api.script('create_placement_group', {})
        data = PlacementGroupResource.new_data({'name': 'pg-1', 'strategy': 'cluster'})

        with pytest.raises(ResourceNotFoundError) as excinfo:
            resource.create(data)

        assert 'waiting for placement group (pg-1) to become available' in str(excinfo.value)
        assert data.id == ''

    def test_timeout_after_five_minutes(self, api, resource, clock):
        start = clock.now
        api.script('describe_placement_groups', *([_pg('pending')] * 1000))
        data = PlacementGroupResource.new_data({'name': 'pg-1', 'strategy': 'cluster'})

        with pytest.raises(WaitTimeoutError) as excinfo:
            resource.create(data)

        assert clock.now - start == pytest.approx(300)
        assert excinfo.value.last_state == 'pending'
        assert data.id == ''

    def test_unexpected_state(self, api, resource):
        api.script('describe_placement_groups', _pg('deleted'))
        data = PlacementGroupResource.new_data({'name': 'pg-1', 'strategy': 'cluster'})

        with pytest.raises(UnexpectedStateError):
            resource.create(data)

    def test_create_call_error_propagates_unchanged(self, api, resource):
        error = api_error('InvalidPlacementGroup.Duplicate')
        api.script('create_placement_group', error)
        data = PlacementGroupResource.new_data({'name': 'pg-1', 'strategy': 'cluster'})

        with pytest.raises(ComputeAPIError) as excinfo:
            resource.create(data)

        assert excinfo.value is error
        assert api.count('describe_placement_groups') == 0

    @pytest.mark.parametrize(
        'config',
        [{'strategy': 'cluster'}, {'name': 'pg-1', 'strategy': 'stacked'}],
    )
    def test_invalid_config(self, api, resource, config):
        with pytest.raises(ValueError):
            resource.create(PlacementGroupResource.new_data(config))
        assert api.calls == []


class TestRead:
    def test_read_refreshes_fields(self, api, resource):
        api.placement_groups['pg-1'] = _pg('available', strategy='spread')[0]
        data = PlacementGroupResource.new_data(
            {}, resource_id='pg-1', state={'name': 'pg-1', 'strategy': 'cluster'},
        )

        resource.read(data)

        assert data.get('strategy') == 'spread'

    def test_read_missing_group_is_not_healed(self, api, resource):
        data = PlacementGroupResource.new_data({}, resource_id='pg-1')

        with pytest.raises(ResourceNotFoundError):
            resource.read(data)

        assert data.id == 'pg-1'


class TestDelete:
    def test_deleting_then_gone(self, api, resource):
        api.placement_groups['pg-1'] = _pg('available')[0]
        api.script('describe_placement_groups', _pg('deleting'), _pg('deleting'))
        data = PlacementGroupResource.new_data({}, resource_id='pg-1')

        resource.delete(data)

        assert data.id == ''
        assert api.count('describe_placement_groups') == 3

    def test_unknown_group_during_wait_is_success(self, api, resource):
        api.script('delete_placement_group', None)
        api.script(
            'describe_placement_groups',
            _pg('deleting'),
            api_error(ErrorCode.PLACEMENT_GROUP_UNKNOWN),
        )
        data = PlacementGroupResource.new_data({}, resource_id='pg-1')

        resource.delete(data)

        assert data.id == ''

    def test_reports_deleted_state(self, api, resource):
        api.script('delete_placement_group', None)
        api.script('describe_placement_groups', _pg('deleted'))
        data = PlacementGroupResource.new_data({}, resource_id='pg-1')

        resource.delete(data)

        assert api.count('describe_placement_groups') == 1

    def test_other_error_during_wait_fails_with_context(self, api, resource):
        api.script('delete_placement_group', None)
        api.script('describe_placement_groups', api_error('InternalError', status_code=400))
        data = PlacementGroupResource.new_data({}, resource_id='pg-1')

        with pytest.raises(ComputeAPIError) as excinfo:
            resource.delete(data)

        assert excinfo.value.code == 'InternalError'
        assert str(excinfo.value).startswith('waiting for placement group (pg-1) to be deleted')
        assert data.id == 'pg-1'
