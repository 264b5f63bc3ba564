"""Data models for orbstack-provider."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional


class CommandResult(NamedTuple):
    stdout: str
    stderr: str
    success: bool


class MachineStatus(str, Enum):
    RUNNING = "running"
    STOPPED = "stopped"
    NOT_CREATED = "not_created"


_DESCRIPTIONS = {
    MachineStatus.RUNNING: ("running", "The machine is running in OrbStack."),
    MachineStatus.STOPPED: ("stopped", "The machine exists in OrbStack but is stopped."),
    MachineStatus.NOT_CREATED: ("not created", "The machine does not exist in OrbStack."),
}


@dataclass(frozen=True)
class MachineState:
    status: MachineStatus
    short_description: str
    long_description: str

    @classmethod
    def of(cls, status: MachineStatus) -> "MachineState":
        short, long = _DESCRIPTIONS[status]
        return cls(status=status, short_description=short, long_description=long)

    @property
    def id(self) -> str:
        return self.status.value


class MachineListEntry(NamedTuple):
    name: str
    status: str


@dataclass
class MachineInfo:
    """Typed view over the JSON printed by ``orb info``.

    Newer engine releases nest the state under ``record.state``; a flat
    ``status`` key is accepted too. Anything missing or of the wrong type is
    left as ``None``.
    """

    name: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "MachineInfo":
        if not isinstance(payload, dict):
            return cls()
        record = payload.get("record")
        if not isinstance(record, dict):
            record = {}
        status = payload.get("status", record.get("state"))
        name = payload.get("name", record.get("name"))
        return cls(
            name=name if isinstance(name, str) else None,
            status=status.lower() if isinstance(status, str) else None,
        )

    @property
    def running(self) -> bool:
        return self.status == MachineStatus.RUNNING.value


@dataclass(frozen=True)
class MachineMetadata:
    machine_name: str
    distribution: str
    created_at: str
    schema_version: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MachineMetadata":
        return cls(
            machine_name=str(data["machine_name"]),
            distribution=str(data["distribution"]),
            created_at=str(data["created_at"]),
            schema_version=int(data.get("schema_version", 1)),
        )


@dataclass(frozen=True)
class SSHInfo:
    host: str
    port: int
    username: str
    private_key_path: Path
    proxy_command: str
    forward_agent: bool = False
