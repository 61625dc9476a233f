"""Compute API providers for the reconciler."""

from .contracts import ComputeAPI
from .ec2_client import Ec2ComputeClient
from .errors import (
    ComputeAPIError,
    ComputeTimeoutError,
    ErrorCode,
    is_error_code,
)
from .in_memory import InMemoryComputeAPI

__all__ = [
    "ComputeAPI",
    "ComputeAPIError",
    "ComputeTimeoutError",
    "Ec2ComputeClient",
    "ErrorCode",
    "InMemoryComputeAPI",
    "is_error_code",
]
