"""Bounded state-convergence loop.

The waiter drives a probe until the resource it watches reaches a target
state, the deadline passes, or the probe fails. It has no opinion on which
provider errors are transient: probes absorb recoverable conditions (by
reporting a pending or absent state) and raise for everything else.

Outcomes of one probe:
  - state in target       -> converged, return the payload
  - state in pending      -> sleep, probe again
  - state is None         -> resource not visible yet; probe again, bounded
                             by ``not_found_checks`` consecutive misses
  - any other state       -> UnexpectedStateError, no further probes
  - probe raises          -> the exception propagates unchanged

Sleeps follow a doubling backoff that starts at ``min_interval``, is capped
at ``max_interval`` and is clipped to the time left before the deadline.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Collection

from ..errors import ResourceNotFoundError, UnexpectedStateError, WaitTimeoutError
from ..observability.metrics import PROBES_TOTAL, WAIT_DURATION_SECONDS, WAITS_TOTAL
from .states import (
    DEFAULT_MAX_INTERVAL_SECONDS,
    DEFAULT_MIN_INTERVAL_SECONDS,
    DEFAULT_NOT_FOUND_CHECKS,
    WaitSpec,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProbeResult:
    """What one probe observed.

    ``state`` is ``None`` when the resource is not visible (yet).
    """

    state: Any
    payload: Any = None


Probe = Callable[[], ProbeResult]


def wait_for_state(
    probe: Probe,
    *,
    pending: Collection[Any],
    target: Collection[Any],
    timeout: float,
    min_interval: float = DEFAULT_MIN_INTERVAL_SECONDS,
    max_interval: float = DEFAULT_MAX_INTERVAL_SECONDS,
    delay: float = 0.0,
    not_found_checks: int = DEFAULT_NOT_FOUND_CHECKS,
    continuous_target_occurrence: int = 1,
    name: str = 'wait',
    resource_id: str = '',
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """Probe until the observed state is in ``target``.

    Args:
        probe: Zero-argument callable returning a ``ProbeResult``.
        pending: States that mean "keep waiting".
        target: States that end the wait successfully.
        timeout: Seconds before giving up with ``WaitTimeoutError``.
        min_interval: Shortest pause between probes.
        max_interval: Longest pause between probes.
        delay: Pause before the first probe.
        not_found_checks: Consecutive absent results tolerated before
            ``ResourceNotFoundError``.
        continuous_target_occurrence: Consecutive target observations
            required before the wait succeeds.
        name: Wait name used for metrics and logs.
        resource_id: Identifier of the watched object, for logs and errors.
        clock: Monotonic clock, injectable for tests.
        sleep: Sleep function, injectable for tests.

    Returns:
        The payload of the final (target) probe.

    Raises:
        WaitTimeoutError: Deadline passed without convergence.
        UnexpectedStateError: Probe reported a state outside pending/target.
        ResourceNotFoundError: Resource stayed absent too many times in a row.
    """
    if timeout <= 0:
        raise ValueError('timeout must be > 0')
    if min_interval <= 0:
        raise ValueError('min_interval must be > 0')
    if continuous_target_occurrence < 1:
        raise ValueError('continuous_target_occurrence must be >= 1')

    pending = frozenset(pending)
    target = frozenset(target)
    started = clock()
    deadline = started + timeout
    interval = min_interval
    last_state: Any = None
    not_found = 0
    target_hits = 0

    if delay > 0:
        sleep(min(delay, timeout))

    try:
        while True:
            result = probe()
            state = result.state
            PROBES_TOTAL.labels(wait=name, state=_metric_label(state, pending, target)).inc()
            logger.debug(
                'Probe %s for %s observed state %r',
                name,
                resource_id,
                _label(state),
                extra={'wait': name, 'resource_id': resource_id},
            )

            if state is None:
                not_found += 1
                target_hits = 0
                if not_found > not_found_checks:
                    raise ResourceNotFoundError(
                        resource_id,
                        f'resource {resource_id!r} not found after '
                        f'{not_found_checks} checks',
                    )
            else:
                not_found = 0
                last_state = state
                if _is_member(state, target):
                    target_hits += 1
                    if target_hits >= continuous_target_occurrence:
                        _record(name, 'converged', clock() - started)
                        logger.info(
                            'Wait %s converged for %s at state %r',
                            name,
                            resource_id,
                            _label(state),
                            extra={'wait': name, 'resource_id': resource_id},
                        )
                        return result.payload
                elif _is_member(state, pending):
                    target_hits = 0
                else:
                    raise UnexpectedStateError(state, pending | target)

            remaining = deadline - clock()
            if remaining <= 0:
                raise WaitTimeoutError(
                    last_state=last_state,
                    timeout_seconds=timeout,
                    target=target,
                )
            sleep(min(interval, remaining))
            interval = max(min_interval, min(interval * 2, max_interval))
    except WaitTimeoutError:
        _record(name, 'timeout', clock() - started)
        raise
    except UnexpectedStateError:
        _record(name, 'unexpected_state', clock() - started)
        raise
    except ResourceNotFoundError:
        _record(name, 'not_found', clock() - started)
        raise
    except Exception:
        _record(name, 'error', clock() - started)
        raise


def wait_for_spec(
    probe: Probe,
    spec: WaitSpec,
    *,
    timeout: float | None = None,
    resource_id: str = '',
    **kwargs: Any,
) -> Any:
    """Run ``wait_for_state`` with the pending/target sets of ``spec``."""
    return wait_for_state(
        probe,
        pending=spec.pending,
        target=spec.target,
        timeout=timeout if timeout is not None else spec.timeout_seconds,
        min_interval=kwargs.pop('min_interval', spec.min_interval_seconds),
        name=spec.name,
        resource_id=resource_id,
        **kwargs,
    )


def _record(name: str, outcome: str, elapsed: float) -> None:
    WAITS_TOTAL.labels(wait=name, outcome=outcome).inc()
    WAIT_DURATION_SECONDS.labels(wait=name).observe(max(elapsed, 0.0))


def _label(state: Any) -> str:
    if state is None:
        return ''
    return str(getattr(state, 'value', state))


def _is_member(state: Any, states: frozenset) -> bool:
    # Vocabularies are str enums, so equal values from different resource
    # types compare equal; membership also requires the same type.
    return any(type(s) is type(state) and s == state for s in states)


def _metric_label(state: Any, pending: frozenset, target: frozenset) -> str:
    # Raw provider strings stay out of label values.
    if state is None:
        return 'absent'
    if _is_member(state, pending) or _is_member(state, target):
        return _label(state)
    return 'unexpected'
