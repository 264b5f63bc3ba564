"""Per-machine identity and metadata files for orbstack-provider."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from orbstack_provider.constants import ID_FILE_NAME, METADATA_FILE_NAME
from orbstack_provider.models import MachineMetadata
from orbstack_provider.utils import ensure_directory, log


class MachineDataDir:
    """The front-end's data directory for one logical machine.

    Missing files read as "not created yet". Read errors degrade to the same
    answer with a warning; write errors are logged and re-raised.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @property
    def id_file(self) -> Path:
        return self.path / ID_FILE_NAME

    @property
    def metadata_file(self) -> Path:
        return self.path / METADATA_FILE_NAME

    def read_machine_id(self) -> Optional[str]:
        if not self.id_file.exists():
            return None
        try:
            return self.id_file.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            log("WARN", f"Could not read machine ID from {self.id_file}: {exc}")
            return None

    def write_machine_id(self, machine_id: str) -> None:
        try:
            ensure_directory(self.path)
            self.id_file.write_text(machine_id + "\n", encoding="utf-8")
        except OSError as exc:
            log("ERROR", f"Could not write machine ID to {self.id_file}: {exc}")
            raise

    def read_metadata(self) -> Optional[MachineMetadata]:
        if not self.metadata_file.exists():
            return None
        try:
            data = json.loads(self.metadata_file.read_text(encoding="utf-8"))
            return MachineMetadata.from_dict(data)
        except (OSError, UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
            log("WARN", f"Could not read metadata from {self.metadata_file}: {exc}")
            return None

    def write_metadata(self, metadata: MachineMetadata) -> None:
        try:
            ensure_directory(self.path)
            self.metadata_file.write_text(json.dumps(metadata.to_dict(), indent=2) + "\n", encoding="utf-8")
        except OSError as exc:
            log("ERROR", f"Could not write metadata to {self.metadata_file}: {exc}")
            raise

    def clear(self) -> None:
        for path in (self.id_file, self.metadata_file):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                log("WARN", f"Failed to remove {path}: {exc}")
