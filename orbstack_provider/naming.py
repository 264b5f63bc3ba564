"""Unique machine name generation for orbstack-provider."""

from __future__ import annotations

import re
import secrets
from typing import Callable, Optional

from orbstack_provider.constants import (
    DEFAULT_LOGICAL_NAME,
    DEFAULT_NAME_PREFIX,
    MAX_MACHINE_NAME_LENGTH,
    MAX_NAME_ATTEMPTS,
    NAME_SUFFIX_BYTES,
)
from orbstack_provider.exceptions import MachineNameCollision
from orbstack_provider.utils import log

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def sanitize_name(name: Optional[str]) -> str:
    """Return a DNS-label-safe form of ``name``: lowercase alphanumerics joined by single hyphens."""
    if name is None:
        return DEFAULT_LOGICAL_NAME
    sanitized = _NON_ALNUM_RE.sub("-", str(name).lower()).strip("-")
    return sanitized or DEFAULT_LOGICAL_NAME


def _random_suffix() -> str:
    return secrets.token_hex(NAME_SUFFIX_BYTES)


class MachineNamer:
    """Generate ``<prefix>-<name>-<hex>`` identifiers that the engine does not already use."""

    def __init__(
        self,
        engine,
        prefix: str = DEFAULT_NAME_PREFIX,
        token_source: Optional[Callable[[], str]] = None,
        max_attempts: int = MAX_NAME_ATTEMPTS,
    ) -> None:
        self.engine = engine
        self.prefix = prefix
        self._token_source = token_source or _random_suffix
        self.max_attempts = max_attempts

    def compose(self, sanitized: str, suffix: str) -> str:
        # Only the name segment is shortened; prefix and suffix are kept whole.
        budget = MAX_MACHINE_NAME_LENGTH - len(self.prefix) - len(suffix) - 2
        segment = sanitized[: max(budget, 1)].rstrip("-")
        return f"{self.prefix}-{segment}-{suffix}"

    def generate(self, logical_name: Optional[str]) -> str:
        sanitized = sanitize_name(logical_name)
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.compose(sanitized, self._token_source())
            taken = {entry.name for entry in self.engine.list_machines()}
            if candidate not in taken:
                return candidate
            log("DEBUG", f"Machine name {candidate} already exists (attempt {attempt}/{self.max_attempts})")
        raise MachineNameCollision(
            f"Failed to generate unique machine name after {self.max_attempts} attempts "
            f"(machine: {logical_name})",
            machine=logical_name,
            verb="create",
        )
