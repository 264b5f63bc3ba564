"""Process execution and OrbStack CLI wrapper for orbstack-provider."""

from __future__ import annotations

import json
import shutil
import subprocess
from typing import List, Optional, Sequence

from orbstack_provider.constants import (
    CREATE_TIMEOUT,
    DEFAULT_BINARY,
    DISTRIBUTION_RE,
    MACHINE_ID_RE,
    MUTATE_TIMEOUT,
    QUERY_TIMEOUT,
    VERSION_RE,
)
from orbstack_provider.exceptions import (
    CommandExecutionError,
    CommandTimeoutError,
    EngineNotInstalled,
    PreconditionFailure,
)
from orbstack_provider.models import CommandResult, MachineInfo, MachineListEntry
from orbstack_provider.utils import log


class ProcessExecutor:
    """Run engine commands with a deadline and capture their output.

    A non-zero exit is reported through ``success=False`` so callers can decide
    per operation whether it is fatal. Spawn failures and timeouts raise.
    """

    def execute(
        self,
        command: Sequence[str],
        timeout: float = QUERY_TIMEOUT,
        machine: Optional[str] = None,
        verb: Optional[str] = None,
    ) -> CommandResult:
        cmd = list(command)
        printable = " ".join(cmd)
        log("DEBUG", f"Running: {printable}")
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=False)
        except subprocess.TimeoutExpired as exc:
            log("ERROR", f"Command timed out after {timeout}s: {printable}")
            raise CommandTimeoutError(
                f"Command timed out after {timeout}s: {printable}",
                machine=machine,
                verb=verb,
                timeout=timeout,
            ) from exc
        except FileNotFoundError as exc:
            log("ERROR", f"Command not found: {cmd[0]}")
            raise EngineNotInstalled(
                f"'{cmd[0]}' was not found; is OrbStack installed and on PATH?",
                machine=machine,
                verb=verb,
            ) from exc
        except OSError as exc:
            log("ERROR", f"Could not run {printable}: {exc}")
            raise CommandExecutionError(
                f"Could not run {printable}: {exc}", machine=machine, verb=verb, stderr=str(exc)
            ) from exc

        stdout = (proc.stdout or "").strip()
        stderr = (proc.stderr or "").strip()
        success = proc.returncode == 0
        if success:
            log("DEBUG", f"Command succeeded: {printable}")
        else:
            log("ERROR", f"Command failed (exit {proc.returncode}): {printable}, stderr: {stderr}")
        return CommandResult(stdout, stderr, success)


class OrbStackCLI:
    """Verb-level access to the ``orb`` command line.

    Instances double as the engine capability object handed to the provider,
    so tests can substitute any object with the same methods.
    """

    def __init__(self, executor: Optional[ProcessExecutor] = None, binary: str = DEFAULT_BINARY) -> None:
        self.executor = executor or ProcessExecutor()
        self.binary = binary

    # -- probes ---------------------------------------------------------

    def available(self) -> bool:
        return shutil.which(self.binary) is not None

    def version(self) -> Optional[str]:
        result = self.executor.execute([self.binary, "--version"], timeout=QUERY_TIMEOUT, verb="version")
        if not result.success:
            return None
        match = VERSION_RE.search(result.stdout)
        return match.group(1) if match else None

    def running(self) -> bool:
        result = self.executor.execute([self.binary, "status"], timeout=QUERY_TIMEOUT, verb="status")
        return result.success and "running" in result.stdout.lower()

    # -- queries --------------------------------------------------------

    def list_machines(self) -> List[MachineListEntry]:
        """Return every machine the engine knows about.

        Output columns are ``NAME STATUS DISTRO IP``. A failed listing raises:
        callers must not mistake an engine error for an empty namespace.
        """
        result = self.executor.execute([self.binary, "list"], timeout=QUERY_TIMEOUT, verb="list")
        if not result.success:
            raise CommandExecutionError(
                f"Failed to list machines: {result.stderr}", verb="list", stderr=result.stderr
            )
        machines: List[MachineListEntry] = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) < 2:
                continue
            if parts[0].upper() == "NAME":
                continue
            machines.append(MachineListEntry(name=parts[0], status=parts[1].lower()))
        return machines

    def machine_info(self, name: str) -> Optional[MachineInfo]:
        """Return typed info for ``name``, or None if the engine cannot show it yet."""
        _validate_machine_id(name, "info")
        result = self.executor.execute(
            [self.binary, "info", name], timeout=QUERY_TIMEOUT, machine=name, verb="info"
        )
        if not result.success:
            return None
        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            log("WARN", f"Failed to parse machine info JSON for {name}: {exc}")
            return None
        return MachineInfo.from_payload(payload)

    # -- mutations ------------------------------------------------------

    def create_machine(self, distribution: str, name: str, timeout: float = CREATE_TIMEOUT) -> None:
        _validate_machine_id(name, "create")
        if not distribution or not DISTRIBUTION_RE.match(distribution):
            raise PreconditionFailure(
                f"Invalid distribution '{distribution}'", machine=name, verb="create"
            )
        self._mutate("create", [distribution, name], name, timeout)

    def start_machine(self, name: str, timeout: float = MUTATE_TIMEOUT) -> None:
        _validate_machine_id(name, "start")
        self._mutate("start", [name], name, timeout)

    def stop_machine(self, name: str, timeout: float = MUTATE_TIMEOUT) -> None:
        _validate_machine_id(name, "stop")
        self._mutate("stop", [name], name, timeout)

    def delete_machine(self, name: str, timeout: float = MUTATE_TIMEOUT) -> None:
        _validate_machine_id(name, "delete")
        self._mutate("delete", [name], name, timeout)

    def _mutate(self, verb: str, args: List[str], name: str, timeout: float) -> None:
        result = self.executor.execute([self.binary, verb, *args], timeout=timeout, machine=name, verb=verb)
        if not result.success:
            raise CommandExecutionError(
                f"Failed to {verb} machine '{name}': {result.stderr}",
                machine=name,
                verb=verb,
                stderr=result.stderr,
            )


def _validate_machine_id(name: str, verb: str) -> None:
    if not name or not MACHINE_ID_RE.match(name):
        raise PreconditionFailure(f"Cannot {verb} machine: invalid machine ID '{name}'", machine=name, verb=verb)
