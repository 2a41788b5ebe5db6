"""
Blocking pollers for asynchronous remote operations.

Both pollers are bounded loops driven by an injectable clock and sleep
function, so they can be exercised in tests without wall-clock waits.
"""

import time

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    HostmanError,
    ReadinessError,
    ReadinessTimeout,
    TransportError,
)


class WaitConfig:
    """Terminal-state vocabulary and timing for one kind of wait."""

    def __init__(
        self,
        success_states=("ready",),
        failure_states=("error", "failed", "deleted"),
        interval: float = 10,
        timeout: float = 1800,
    ):
        self.success_states = tuple(success_states)
        self.failure_states = tuple(failure_states)
        self.interval = interval
        self.timeout = timeout

    def override(self, success_states=None, failure_states=None, interval=None, timeout=None):
        """Returns a copy with the given non-None values replaced."""
        return WaitConfig(
            success_states=success_states or self.success_states,
            failure_states=failure_states or self.failure_states,
            interval=self.interval if interval is None else interval,
            timeout=self.timeout if timeout is None else timeout,
        )


def status_field(observed):
    return observed.get("status") if observed else None


def wait_until_ready(
    read_fn,
    success_states,
    failure_states,
    interval: float,
    timeout: float,
    status_of=status_field,
    clock=time.monotonic,
    sleep=time.sleep,
    resource_id: str = "",
):
    """
    Polls `read_fn` until the observed status is terminal.

    The first read happens immediately. Errors raised by `read_fn` propagate
    unchanged; polling is a wait for convergence, not a retry.

    Returns:
        The last value returned by `read_fn` (the one in a success state).

    Raises:
        ReadinessError: As soon as a failure state is observed.
        ReadinessTimeout: When `timeout` seconds pass without a terminal state.
    """
    deadline = clock() + timeout
    last_status = None

    while True:
        observed = read_fn()
        last_status = status_of(observed)

        if last_status in success_states:
            return observed
        if last_status in failure_states:
            raise ReadinessError(last_status, resource_id=resource_id)

        if clock() >= deadline:
            raise ReadinessTimeout(timeout, last_status, resource_id=resource_id)
        sleep(interval)


def wait_until_gone(
    read_fn,
    interval: float,
    timeout: float,
    lenient: bool = False,
    on_error=None,
    clock=time.monotonic,
    sleep=time.sleep,
    resource_id: str = "",
):
    """
    Polls `read_fn` until the resource can no longer be read.

    By default only a not-found answer (404/410) confirms the deletion; any
    other error is reported to `on_error` and polling continues. With
    `lenient=True` any engine error counts as "gone". That mode cannot tell a
    deleted resource from a transient read failure.

    Raises:
        ReadinessTimeout: When the resource is still readable at the deadline.
    """
    deadline = clock() + timeout
    last_status = "present"

    while True:
        try:
            read_fn()
            last_status = "present"
        except TransportError as e:
            if e.is_not_found or lenient:
                return
            last_status = f"error {e.status}"
            if on_error:
                on_error(e)
        except HostmanError as e:
            if lenient:
                return
            last_status = "error"
            if on_error:
                on_error(e)

        if clock() >= deadline:
            raise ReadinessTimeout(timeout, last_status, resource_id=resource_id)
        sleep(interval)
