"""Machine lifecycle orchestration for orbstack-provider."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from orbstack_provider.cache import StateCache
from orbstack_provider.config import ProviderConfig
from orbstack_provider.constants import (
    MACHINE_ID_RE,
    METADATA_SCHEMA_VERSION,
    ORBSTACK_HELPER_PATH,
    SSH_PRIVATE_KEY_PATH,
    SSH_PROXY_HOST,
    SSH_PROXY_PORT,
)
from orbstack_provider.engine import OrbStackCLI
from orbstack_provider.exceptions import (
    CommandExecutionError,
    CommandTimeoutError,
    EngineNotInstalled,
    EngineNotRunning,
    MachineNotReady,
    PreconditionFailure,
)
from orbstack_provider.models import MachineMetadata, MachineState, MachineStatus, SSHInfo
from orbstack_provider.naming import MachineNamer
from orbstack_provider.readiness import ReadinessPoller
from orbstack_provider.storage import MachineDataDir
from orbstack_provider.utils import log

# Failures tolerated while deleting the remote machine during destroy.
# Local cleanup runs regardless; narrowing this to "not found" is still open.
DESTROY_TOLERATED_ERRORS = (CommandExecutionError, CommandTimeoutError)


class Provider:
    """Drive one logical machine through its lifecycle.

    State is read through a short TTL cache keyed by the machine identity;
    every mutating verb that succeeds drops the cached entry so the next
    query goes back to the engine.
    """

    def __init__(
        self,
        logical_name: str,
        data_dir: Path,
        config: Optional[ProviderConfig] = None,
        engine=None,
        cache: Optional[StateCache] = None,
        namer: Optional[MachineNamer] = None,
        poller: Optional[ReadinessPoller] = None,
        status_callback: Optional[Callable[[MachineState], None]] = None,
        provisioner: Optional[Callable[["Provider"], None]] = None,
    ) -> None:
        self.logical_name = logical_name
        self.cfg = config or ProviderConfig()
        self.data = MachineDataDir(data_dir)
        self.engine = engine or OrbStackCLI(binary=self.cfg.binary)
        self.cache = cache or StateCache(ttl=self.cfg.cache_ttl)
        self.namer = namer or MachineNamer(self.engine, prefix=self.cfg.name_prefix)
        self.poller = poller or ReadinessPoller(self.engine)
        self.status_callback = status_callback
        self.provisioner = provisioner

    def __str__(self) -> str:
        return "OrbStack"

    # -- persisted identity --------------------------------------------

    @property
    def machine_id(self) -> Optional[str]:
        return self.data.read_machine_id()

    @property
    def metadata(self) -> Optional[MachineMetadata]:
        return self.data.read_metadata()

    def _require_machine_id(self, verb: str) -> str:
        machine_id = self.machine_id
        if not machine_id:
            raise PreconditionFailure(f"Cannot {verb} machine: machine ID is missing or empty", verb=verb)
        return machine_id

    def invalidate_state_cache(self) -> None:
        machine_id = self.machine_id
        if machine_id:
            self.cache.invalidate(machine_id)

    # -- status ---------------------------------------------------------

    def status(self) -> MachineState:
        machine_id = self.machine_id
        if not machine_id:
            state = MachineState.of(MachineStatus.NOT_CREATED)
        else:
            cached = self.cache.lookup(machine_id)
            if cached.hit:
                state = cached.value
            else:
                state = self._query_state(machine_id)
                self.cache.set(machine_id, state)
        if self.status_callback is not None:
            self.status_callback(state)
        return state

    def _query_state(self, machine_id: str) -> MachineState:
        for entry in self.engine.list_machines():
            if entry.name != machine_id:
                continue
            if entry.status == MachineStatus.RUNNING.value:
                return MachineState.of(MachineStatus.RUNNING)
            return MachineState.of(MachineStatus.STOPPED)
        return MachineState.of(MachineStatus.NOT_CREATED)

    # -- lifecycle verbs ------------------------------------------------

    def ensure_running(self) -> None:
        current = self.status()
        if current.status is MachineStatus.RUNNING:
            log("INFO", "Machine is already running")
        elif current.status is MachineStatus.STOPPED:
            log("INFO", "Starting stopped machine...")
            self.start()
        else:
            self._create()

    def _create(self) -> str:
        log("INFO", "Creating new machine...")
        machine_name = self.namer.generate(self.cfg.machine_name or self.logical_name)
        distribution = self.cfg.distribution
        self.engine.create_machine(distribution, machine_name)

        # Only reached when create succeeded.
        self.data.write_machine_id(machine_name)
        self.data.write_metadata(
            MachineMetadata(
                machine_name=machine_name,
                distribution=distribution,
                created_at=datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
                schema_version=METADATA_SCHEMA_VERSION,
            )
        )
        self.cache.invalidate(machine_name)
        log("SUCCESS", f"Machine '{machine_name}' created successfully")
        return machine_name

    def start(self) -> None:
        machine_id = self._require_machine_id("start")
        log("INFO", f"Starting machine '{machine_id}'...")
        self.engine.start_machine(machine_id)
        self.cache.invalidate(machine_id)

    def ensure_stopped(self) -> None:
        machine_id = self._require_machine_id("halt")
        log("INFO", f"Halting machine '{machine_id}'...")
        self.engine.stop_machine(machine_id)
        self.cache.invalidate(machine_id)

    def destroy(self) -> bool:
        machine_id = self.machine_id
        if machine_id is None:
            log("INFO", "Machine is already destroyed or was never created.")
            return True
        if not machine_id:
            raise PreconditionFailure("Cannot destroy machine: machine ID is empty", verb="destroy")

        log("INFO", f"Destroying machine '{machine_id}'...")
        if not MACHINE_ID_RE.match(machine_id):
            log("WARN", f"Persisted machine ID '{machine_id}' is not a valid OrbStack name; skipping engine delete")
        else:
            try:
                self.engine.delete_machine(machine_id)
            except DESTROY_TOLERATED_ERRORS as exc:
                log("WARN", f"Error deleting machine from OrbStack: {exc}")
                log("WARN", "Continuing with local cleanup...")

        self.data.clear()
        self.cache.invalidate(machine_id)
        return True

    def reload(self, provision: bool = False) -> None:
        self.ensure_stopped()
        self.start()
        if provision:
            if self.provisioner is None:
                log("WARN", "Provisioning requested but no provisioner is configured")
            else:
                self.provisioner(self)

    def wait_for_ready(self) -> bool:
        return self.poller.wait_for_ready(self._require_machine_id("wait for"))

    def validate_ssh_ready(self) -> str:
        machine_id = self._require_machine_id("ssh into")
        if self.status().status is not MachineStatus.RUNNING:
            raise MachineNotReady(
                f"Machine '{machine_id}' is not running; run 'up' first", machine=machine_id, verb="ssh"
            )
        return machine_id

    def verify_engine(self) -> None:
        if not self.engine.available():
            raise EngineNotInstalled(
                f"OrbStack CLI '{self.cfg.binary}' is not installed or not on PATH", verb="probe"
            )
        if not self.engine.running():
            raise EngineNotRunning("OrbStack is installed but not running; start OrbStack first", verb="probe")
        version = self.engine.version()
        log("DEBUG", f"OrbStack version: {version or 'unknown'}")

    # -- connection info ------------------------------------------------

    def connection_info(self) -> Optional[SSHInfo]:
        """Describe how to reach the machine through OrbStack's local SSH proxy.

        The shape is fixed: the proxy routes on the machine identity used as
        the SSH username, so no per-machine engine query is needed.
        """
        if self.status().status is not MachineStatus.RUNNING:
            return None
        machine_id = self._require_machine_id("connect to")
        return SSHInfo(
            host=SSH_PROXY_HOST,
            port=SSH_PROXY_PORT,
            username=machine_id,
            private_key_path=SSH_PRIVATE_KEY_PATH.expanduser(),
            proxy_command=f"'{ORBSTACK_HELPER_PATH}' ssh-proxy-fdpass {os.getuid()}",
            forward_agent=self.cfg.forward_agent,
        )
