"""Shared test fixtures: an in-memory OrbStack engine and clean environment."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from orbstack_provider.cache import StateCache
from orbstack_provider.config import ProviderConfig
from orbstack_provider.exceptions import CommandExecutionError
from orbstack_provider.models import MachineInfo, MachineListEntry
from orbstack_provider.naming import MachineNamer
from orbstack_provider.provider import Provider
from orbstack_provider.readiness import ReadinessPoller


class FakeEngine:
    """Stateful stand-in for OrbStackCLI that records every call."""

    def __init__(self, machines: Optional[Dict[str, str]] = None) -> None:
        self.machines: Dict[str, str] = dict(machines or {})
        self.calls: List[tuple] = []
        self.installed = True
        self.daemon_running = True
        self.fail: Dict[str, Exception] = {}

    def _record(self, *call) -> None:
        self.calls.append(call)
        verb = call[0]
        if verb in self.fail:
            raise self.fail[verb]

    def verbs(self) -> List[str]:
        return [call[0] for call in self.calls]

    def available(self) -> bool:
        return self.installed

    def running(self) -> bool:
        return self.daemon_running

    def version(self) -> Optional[str]:
        return "1.7.0"

    def list_machines(self) -> List[MachineListEntry]:
        self._record("list")
        return [MachineListEntry(name, status) for name, status in self.machines.items()]

    def machine_info(self, name: str) -> Optional[MachineInfo]:
        self._record("info", name)
        if name not in self.machines:
            return None
        return MachineInfo(name=name, status=self.machines[name])

    def create_machine(self, distribution: str, name: str) -> None:
        self._record("create", distribution, name)
        self.machines[name] = "running"

    def start_machine(self, name: str) -> None:
        self._record("start", name)
        if name not in self.machines:
            raise CommandExecutionError(f"Failed to start machine '{name}': not found", machine=name, verb="start")
        self.machines[name] = "running"

    def stop_machine(self, name: str) -> None:
        self._record("stop", name)
        if name in self.machines:
            self.machines[name] = "stopped"

    def delete_machine(self, name: str) -> None:
        self._record("delete", name)
        if name not in self.machines:
            raise CommandExecutionError(f"Failed to delete machine '{name}': not found", machine=name, verb="delete")
        del self.machines[name]


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(distro="ubuntu", version="noble")


@pytest.fixture
def make_provider(engine, clock, provider_config, tmp_path):
    """Build a Provider wired to the fake engine, a fake clock and a tmp data dir."""

    def _make(suffixes=("a3b2c1", "d4e5f6", "0a0b0c"), **kwargs) -> Provider:
        tokens = iter(suffixes)
        kwargs.setdefault("config", provider_config)
        kwargs.setdefault("engine", engine)
        kwargs.setdefault("cache", StateCache(ttl=5, clock=clock))
        kwargs.setdefault("namer", MachineNamer(kwargs["engine"], token_source=lambda: next(tokens)))
        kwargs.setdefault(
            "poller", ReadinessPoller(kwargs["engine"], sleep=clock.advance, clock=clock)
        )
        return Provider("default", tmp_path / "machines" / "default", **kwargs)

    return _make


@pytest.fixture
def mock_env(monkeypatch):
    """Helper to set environment variables for tests."""

    def _set(**kwargs):
        for key, value in kwargs.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, str(value))

    return _set


# All environment variables that load_config() reads, used to ensure a clean slate.
_CONFIG_ENV_VARS = [
    "ORBSTACK_DISTRO",
    "ORBSTACK_VERSION",
    "ORBSTACK_MACHINE_NAME",
    "ORBSTACK_SSH_USERNAME",
    "ORBSTACK_FORWARD_AGENT",
    "ORBSTACK_BINARY",
    "ORBSTACK_NAME_PREFIX",
    "ORBSTACK_CACHE_TTL",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Clear all environment variables that load_config() reads."""
    for key in _CONFIG_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
