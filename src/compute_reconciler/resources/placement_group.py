"""Placement group controller.

Lifecycle: absent -> pending -> available -> deleting -> deleted.

Both ``name`` and ``strategy`` force replacement, so there is no update:
create waits for ``available``, delete waits for ``deleted`` (an unknown
group during that wait is already deleted), read refreshes both fields.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ..errors import ReconcilerError, ResourceNotFoundError
from ..observability.logging import operation_context
from ..polling.probes import placement_group_create_probe, placement_group_delete_probe
from ..polling.states import PLACEMENT_GROUP_CREATE, PLACEMENT_GROUP_DELETE
from ..polling.waiter import wait_for_spec
from ..providers.contracts import ComputeAPI
from ..resource_data import ResourceAccessor, ResourceData
from ..settings import ReconcilerSettings

logger = logging.getLogger(__name__)

RESOURCE_TYPE = 'placement_group'
STRATEGIES = frozenset({'cluster', 'partition', 'spread'})


class PlacementGroupResource:
    """Create, read and delete placement groups through an injected API."""

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
    ) -> ResourceData:
        return ResourceData(config=config, state=state or {}, resource_id=resource_id)

    def create(self, data: ResourceAccessor) -> None:
        name = data.get('name')
        strategy = data.get('strategy')
        if not name:
            raise ValueError('placement group name is required')
        if strategy not in STRATEGIES:
            raise ValueError(
                f'placement group strategy must be one of {sorted(STRATEGIES)}, got {strategy!r}'
            )

        with operation_context(resource=RESOURCE_TYPE, action='create', resource_id=name):
            logger.info(
                'Creating placement group: name=%s strategy=%s',
                name,
                strategy,
                extra={'resource_id': name},
            )
            self._api.create_placement_group(name, strategy)

            try:
                wait_for_spec(
                    placement_group_create_probe(self._api, name),
                    PLACEMENT_GROUP_CREATE,
                    resource_id=name,
                    **self._wait_options,
                )
            except ReconcilerError as exc:
                raise exc.with_context(
                    f'waiting for placement group ({name}) to become available'
                ) from exc

            logger.info('Placement group created: name=%s', name, extra={'resource_id': name})
            data.set_id(name)
            self.read(data)

    def read(self, data: ResourceAccessor) -> None:
        group_name = data.id
        groups = self._api.describe_placement_groups([group_name])
        if not groups:
            raise ResourceNotFoundError(
                group_name, f'placement group not found ({group_name!r})',
            )
        group = groups[0]
        data.set('name', group.get('group_name'))
        data.set('strategy', group.get('strategy'))

    def delete(self, data: ResourceAccessor) -> None:
        group_name = data.id
        with operation_context(resource=RESOURCE_TYPE, action='delete', resource_id=group_name):
            logger.info(
                'Deleting placement group: name=%s',
                group_name,
                extra={'resource_id': group_name},
            )
            self._api.delete_placement_group(group_name)

            try:
                wait_for_spec(
                    placement_group_delete_probe(self._api, group_name),
                    PLACEMENT_GROUP_DELETE,
                    resource_id=group_name,
                    **self._wait_options,
                )
            except ReconcilerError as exc:
                raise exc.with_context(
                    f'waiting for placement group ({group_name}) to be deleted'
                ) from exc

            logger.info(
                'Placement group deleted: name=%s',
                group_name,
                extra={'resource_id': group_name},
            )
            data.set_id('')
