"""Readiness polling for orbstack-provider."""

from __future__ import annotations

import time
from typing import Callable, Optional

from orbstack_provider.constants import READY_POLL_INTERVAL, READY_TIMEOUT
from orbstack_provider.exceptions import MachineNotReady
from orbstack_provider.utils import log


class ReadinessPoller:
    """Poll ``orb info`` until a machine reports ``running``.

    A machine the engine cannot show yet, or whose info has no status, is
    simply polled again. Engine failures (timeouts, missing binary) are not
    retried and propagate to the caller.
    """

    def __init__(
        self,
        engine,
        interval: float = READY_POLL_INTERVAL,
        timeout: float = READY_TIMEOUT,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.engine = engine
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep or time.sleep
        self._clock = clock or time.time

    def wait_for_ready(self, identifier: str) -> bool:
        log("INFO", f"Waiting for {identifier} to accept SSH connections...")
        start = self._clock()
        elapsed = 0.0
        while elapsed < self.timeout:
            info = self.engine.machine_info(identifier)
            if info is not None and info.running:
                log("SUCCESS", f"{identifier} is ready")
                return True
            self._sleep(self.interval)
            elapsed = self._clock() - start
            log("INFO", f"  Still waiting... ({int(elapsed)} seconds elapsed)")
        raise MachineNotReady(
            f"Machine '{identifier}' did not become ready within {int(self.timeout)}s",
            machine=identifier,
            verb="wait",
        )
