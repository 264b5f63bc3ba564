"""Custom exceptions for orbstack-provider."""

from __future__ import annotations

from typing import Optional


class ProviderError(RuntimeError):
    """Base class for every error raised by the provider.

    ``machine`` and ``verb`` identify the machine and the attempted operation so
    the message can be surfaced to the user without further lookup.
    """

    def __init__(self, message: str, machine: Optional[str] = None, verb: Optional[str] = None) -> None:
        super().__init__(message)
        self.machine = machine
        self.verb = verb


class CommandExecutionError(ProviderError):
    """An engine command exited non-zero or could not be spawned."""

    def __init__(
        self,
        message: str,
        machine: Optional[str] = None,
        verb: Optional[str] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message, machine=machine, verb=verb)
        self.stderr = stderr


class EngineNotInstalled(CommandExecutionError):
    """The engine binary is missing from PATH or cannot be executed."""


class EngineNotRunning(CommandExecutionError):
    """The engine is installed but its daemon is not running."""


class CommandTimeoutError(ProviderError):
    """An engine command exceeded its allotted time."""

    def __init__(
        self,
        message: str,
        machine: Optional[str] = None,
        verb: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__(message, machine=machine, verb=verb)
        self.timeout = timeout


class MachineNotReady(ProviderError):
    """The machine did not become ready for remote commands in time."""


class MachineNameCollision(ProviderError):
    """A unique machine name could not be generated."""


class PreconditionFailure(ProviderError):
    """A caller-side invariant was violated before any engine call."""


class ConfigError(ProviderError):
    """Raised on invalid provider configuration."""
