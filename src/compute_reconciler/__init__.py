"""Placement group and subnet controllers for a compute API.

Each controller turns a declarative configuration into create, read,
update and delete calls and waits out eventual consistency with a bounded
polling loop.
"""

from .errors import (
    MalformedResponseError,
    ReconcilerError,
    ResourceNotFoundError,
    UnexpectedStateError,
    WaitError,
    WaitTimeoutError,
)
from .resource_data import ResourceData
from .resources import PlacementGroupResource, SubnetResource
from .settings import ReconcilerSettings

__all__ = [
    'MalformedResponseError',
    'PlacementGroupResource',
    'ReconcilerError',
    'ReconcilerSettings',
    'ResourceData',
    'ResourceNotFoundError',
    'SubnetResource',
    'UnexpectedStateError',
    'WaitError',
    'WaitTimeoutError',
]
