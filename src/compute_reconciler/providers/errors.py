"""Compute API error hierarchy.

Provider errors carry a stable ``code`` string; probes classify on that code
(never on the message), so the set they care about lives in ``ErrorCode``.
"""

from __future__ import annotations

from enum import Enum
from ..errors import ReconcilerError


class ErrorCode(str, Enum):
    """Provider error codes the reconciler classifies."""

    SUBNET_NOT_FOUND = 'InvalidSubnetID.NotFound'
    PLACEMENT_GROUP_UNKNOWN = 'InvalidPlacementGroup.Unknown'
    DEPENDENCY_VIOLATION = 'DependencyViolation'
    NETWORK_INTERFACE_NOT_FOUND = 'InvalidNetworkInterfaceID.NotFound'
    ASSOCIATION_NOT_FOUND = 'InvalidAssociationID.NotFound'


class ComputeAPIError(ReconcilerError):
    """Error returned by the compute API."""

    def __init__(
        self,
        status_code: int,
        code: str = '',
        message: str = '',
    ) -> None:
        self.status_code = status_code
        self.code = code
        detail = f'{code}: {message}' if code else message
        super().__init__(f'compute API error {status_code}: {detail}')

    def has_code(self, *codes: ErrorCode | str) -> bool:
        return any(self.code == getattr(c, 'value', c) for c in codes)


class ComputeTimeoutError(ComputeAPIError):
    """Request to the compute API timed out."""

    def __init__(self, message: str = 'Request timed out') -> None:
        super().__init__(0, '', message)


def is_error_code(exc: BaseException, *codes: ErrorCode | str) -> bool:
    """True when ``exc`` is a ComputeAPIError carrying one of ``codes``."""
    return isinstance(exc, ComputeAPIError) and exc.has_code(*codes)

