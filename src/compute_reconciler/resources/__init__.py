"""Resource lifecycle controllers."""

from .placement_group import PlacementGroupResource
from .subnet import SubnetResource, effective_delete_timeout

__all__ = [
    'PlacementGroupResource',
    'SubnetResource',
    'effective_delete_timeout',
]
