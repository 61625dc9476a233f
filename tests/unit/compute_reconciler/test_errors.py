"""Tests for the error hierarchy."""

from __future__ import annotations

import pytest

from compute_reconciler.errors import (
    ReconcilerError,
    ResourceNotFoundError,
    UnexpectedStateError,
    WaitError,
    WaitTimeoutError,
)
from compute_reconciler.polling.states import SubnetState
from compute_reconciler.providers.errors import (
    ComputeAPIError,
    ComputeTimeoutError,
    ErrorCode,
    is_error_code,
)


class TestWithContext:
    def test_keeps_class_and_attributes(self):
        error = WaitTimeoutError(last_state='pending', timeout_seconds=45, target=['available'])

        wrapped = error.with_context('waiting for subnet (subnet-1) to become ready')

        assert type(wrapped) is WaitTimeoutError
        assert wrapped.last_state == 'pending'
        assert wrapped.timeout_seconds == 45
        assert wrapped.__cause__ is error
        assert str(wrapped).startswith('waiting for subnet (subnet-1) to become ready: timeout')

    def test_original_is_untouched(self):
        error = ReconcilerError('boom')
        error.with_context('outer')
        assert str(error) == 'boom'
        assert error.context is None

    def test_contexts_stack_outermost_first(self):
        error = ResourceNotFoundError('subnet-1').with_context('inner').with_context('outer')
        assert str(error) == "outer: inner: resource not found ('subnet-1')"

    def test_provider_error_keeps_code(self):
        error = ComputeAPIError(400, ErrorCode.DEPENDENCY_VIOLATION.value, 'in use')
        wrapped = error.with_context('error deleting subnet (subnet-1)')
        assert is_error_code(wrapped, ErrorCode.DEPENDENCY_VIOLATION)


class TestWaitErrors:
    def test_hierarchy(self):
        assert issubclass(WaitTimeoutError, WaitError)
        assert issubclass(UnexpectedStateError, WaitError)
        assert issubclass(ResourceNotFoundError, WaitError)
        assert issubclass(ComputeAPIError, ReconcilerError)
        assert not issubclass(ComputeAPIError, WaitError)

    def test_enum_states_are_reported_as_plain_strings(self):
        error = UnexpectedStateError('failed', [SubnetState.PENDING, SubnetState.AVAILABLE])
        assert error.expected == ('available', 'pending')
        assert str(error) == "unexpected state 'failed', wanted one of 'available, pending'"

    def test_timeout_message(self):
        error = WaitTimeoutError(
            last_state=SubnetState.PENDING, timeout_seconds=600, target=[SubnetState.AVAILABLE],
        )
        assert str(error) == (
            "timeout while waiting for state to become 'available' "
            "(last state: 'pending', timeout: 600s)"
        )


class TestProviderErrors:
    def test_message_carries_code(self):
        error = ComputeAPIError(400, 'InvalidSubnetID.NotFound', 'no such subnet')
        assert error.has_code(ErrorCode.SUBNET_NOT_FOUND)
        assert str(error) == 'compute API error 400: InvalidSubnetID.NotFound: no such subnet'

    def test_message_without_code(self):
        assert str(ComputeAPIError(500, '', 'internal')) == 'compute API error 500: internal'

    @pytest.mark.parametrize('exc', [RuntimeError('x'), ComputeTimeoutError()])
    def test_is_error_code_rejects_other_errors(self, exc):
        assert not is_error_code(exc, ErrorCode.SUBNET_NOT_FOUND)

    def test_has_code_accepts_strings(self):
        error = ComputeAPIError(400, 'DependencyViolation')
        assert error.has_code('Other', 'DependencyViolation')
