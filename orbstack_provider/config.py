"""Configuration loading and environment variable parsing for orbstack-provider."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from orbstack_provider.constants import (
    DEFAULT_BINARY,
    DEFAULT_CACHE_TTL,
    DEFAULT_DISTRO,
    DEFAULT_NAME_PREFIX,
    MACHINE_NAME_CONFIG_RE,
    TRUTHY,
)
from orbstack_provider.exceptions import ConfigError
from orbstack_provider.utils import get_env, get_env_bool, log, parse_int_env

DISTRO_EMPTY_ERROR = "distro cannot be empty"
MACHINE_NAME_FORMAT_ERROR = "machine_name must contain only alphanumeric characters and hyphens"
SSH_USERNAME_EMPTY_ERROR = "ssh_username cannot be empty"

_KNOWN_KEYS = {
    "distro",
    "version",
    "machine_name",
    "ssh_username",
    "forward_agent",
    "binary",
    "name_prefix",
    "cache_ttl",
}


@dataclass
class ProviderConfig:
    distro: str = DEFAULT_DISTRO
    version: Optional[str] = None
    machine_name: Optional[str] = None
    ssh_username: Optional[str] = None
    forward_agent: bool = False
    binary: str = DEFAULT_BINARY
    name_prefix: str = DEFAULT_NAME_PREFIX
    cache_ttl: int = DEFAULT_CACHE_TTL

    @property
    def distribution(self) -> str:
        """Distribution argument for ``orb create``, e.g. ``ubuntu:noble``."""
        if self.version:
            return f"{self.distro}:{self.version}"
        return self.distro

    def validate(self) -> List[str]:
        errors: List[str] = []
        if self.distro is None or not str(self.distro).strip():
            errors.append(DISTRO_EMPTY_ERROR)
        if self.machine_name is not None and not MACHINE_NAME_CONFIG_RE.match(str(self.machine_name)):
            errors.append(MACHINE_NAME_FORMAT_ERROR)
        if self.ssh_username is not None and not str(self.ssh_username).strip():
            errors.append(SSH_USERNAME_EMPTY_ERROR)
        return errors


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in TRUTHY


def load_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Provider config missing: {path}")
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Provider config {path} contains invalid YAML: {exc}")
    if not isinstance(data, dict):
        raise ConfigError(f"Provider config {path} must contain a YAML mapping")
    section = data.get("orbstack", {})
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise ConfigError(f"'orbstack' in {path} must be a mapping")
    unknown = sorted(set(section) - _KNOWN_KEYS)
    if unknown:
        log("WARN", f"Ignoring unknown provider settings in {path}: {', '.join(unknown)}")
    return {key: value for key, value in section.items() if key in _KNOWN_KEYS}


def load_config(path: Optional[Path] = None) -> ProviderConfig:
    """Build a ProviderConfig from an optional YAML file, then ORBSTACK_* environment overrides."""
    settings: Dict[str, Any] = load_config_file(path) if path is not None else {}
    cfg = ProviderConfig()

    if "distro" in settings:
        cfg.distro = settings["distro"]
    if settings.get("version") is not None:
        cfg.version = str(settings["version"])
    if settings.get("machine_name") is not None:
        cfg.machine_name = str(settings["machine_name"])
    if "ssh_username" in settings:
        cfg.ssh_username = settings["ssh_username"]
    if "forward_agent" in settings:
        cfg.forward_agent = _coerce_bool(settings["forward_agent"])
    if settings.get("binary"):
        cfg.binary = str(settings["binary"])
    if settings.get("name_prefix"):
        cfg.name_prefix = str(settings["name_prefix"])
    if "cache_ttl" in settings:
        try:
            cfg.cache_ttl = int(settings["cache_ttl"])
        except (TypeError, ValueError):
            raise ConfigError(f"cache_ttl must be an integer (got '{settings['cache_ttl']}')")

    distro_env = get_env("ORBSTACK_DISTRO")
    if distro_env is not None:
        cfg.distro = distro_env.strip()
    version_env = get_env("ORBSTACK_VERSION")
    if version_env is not None:
        cfg.version = version_env.strip() or None
    machine_name_env = get_env("ORBSTACK_MACHINE_NAME")
    if machine_name_env is not None:
        cfg.machine_name = machine_name_env.strip() or None
    ssh_username_env = get_env("ORBSTACK_SSH_USERNAME")
    if ssh_username_env is not None:
        cfg.ssh_username = ssh_username_env
    cfg.forward_agent = get_env_bool("ORBSTACK_FORWARD_AGENT", cfg.forward_agent)
    cfg.binary = (get_env("ORBSTACK_BINARY") or cfg.binary).strip()
    cfg.name_prefix = (get_env("ORBSTACK_NAME_PREFIX") or cfg.name_prefix).strip()
    cfg.cache_ttl = parse_int_env("ORBSTACK_CACHE_TTL", str(cfg.cache_ttl), min_val=0)

    errors = cfg.validate()
    if errors:
        raise ConfigError("Invalid OrbStack provider configuration:\n  " + "\n  ".join(errors))
    return cfg
