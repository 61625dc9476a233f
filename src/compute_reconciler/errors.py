"""Reconciler error hierarchy.

Taxonomy:
  - Transient conditions never reach this module; probes absorb them as a
    pending (or absent) state.
  - ``WaitError`` subclasses are the waiter's own failure modes: timeout,
    unexpected state, resource never became visible.
  - ``MalformedResponseError`` flags a provider record the probes cannot
    interpret.

Controllers re-raise these with operation context via ``with_context()``,
which keeps the exception class so callers can still branch on kind.
"""

from __future__ import annotations

from typing import Iterable


class ReconcilerError(Exception):
    """Base error for the reconciler core."""

    def __init__(self, message: str = '') -> None:
        self.message = message
        self.context: str | None = None
        super().__init__(message)

    def with_context(self, context: str) -> ReconcilerError:
        """Return a copy of this error, same class, prefixed with ``context``."""
        clone = type(self).__new__(type(self))
        clone.__dict__.update(self.__dict__)
        clone.args = self.args
        clone.context = f'{context}: {self.context}' if self.context else context
        clone.__cause__ = self
        return clone

    def __str__(self) -> str:
        if self.context:
            return f'{self.context}: {self.message}'
        return self.message


class MalformedResponseError(ReconcilerError):
    """Provider returned a record missing required fields."""


class WaitError(ReconcilerError):
    """Base for waiter failures."""


class WaitTimeoutError(WaitError):
    """Deadline passed before the resource converged."""

    def __init__(
        self,
        *,
        last_state: str | None,
        timeout_seconds: float,
        target: Iterable[str] = (),
    ) -> None:
        self.last_state = _plain(last_state)
        self.timeout_seconds = timeout_seconds
        self.target = tuple(sorted(_plain(s) for s in target))
        super().__init__(
            f'timeout while waiting for state to become {_join(self.target)!r} '
            f'(last state: {self.last_state!r}, timeout: {timeout_seconds:g}s)'
        )


class UnexpectedStateError(WaitError):
    """Probe reported a state outside the pending and target sets."""

    def __init__(self, state: str, expected: Iterable[str]) -> None:
        self.state = _plain(state)
        self.expected = tuple(sorted(_plain(s) for s in expected))
        super().__init__(
            f'unexpected state {self.state!r}, wanted one of {_join(self.expected)!r}'
        )


class ResourceNotFoundError(WaitError):
    """Resource is absent where the operation requires it to exist."""

    def __init__(self, resource_id: str, message: str = '') -> None:
        self.resource_id = resource_id
        super().__init__(message or f'resource not found ({resource_id!r})')


def _join(states: Iterable[str]) -> str:
    return ', '.join(states)


def _plain(state):
    return getattr(state, 'value', state)
