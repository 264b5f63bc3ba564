"""CLI entry points for orbstack-provider."""

from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path
from typing import List, Optional

from orbstack_provider.config import ProviderConfig, load_config
from orbstack_provider.constants import DEFAULT_DATA_ROOT, DEFAULT_LOGICAL_NAME
from orbstack_provider.exceptions import ProviderError
from orbstack_provider.models import SSHInfo
from orbstack_provider.provider import Provider
from orbstack_provider.utils import log


def show_config(cfg: ProviderConfig) -> None:
    """Print the resolved provider configuration."""
    for field in dataclasses.fields(cfg):
        print(f"  {field.name}: {getattr(cfg, field.name)}")


def render_ssh_config(host_alias: str, info: SSHInfo) -> str:
    """Render an OpenSSH ``Host`` block for the given connection info."""
    lines = [
        f"Host {host_alias}",
        f"  HostName {info.host}",
        f"  Port {info.port}",
        f"  User {info.username}",
        f"  IdentityFile {info.private_key_path}",
        f"  ProxyCommand {info.proxy_command}",
        f"  ForwardAgent {'yes' if info.forward_agent else 'no'}",
        "  StrictHostKeyChecking no",
        "  UserKnownHostsFile /dev/null",
    ]
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage OrbStack machines for a development environment")
    parser.add_argument("--name", default=DEFAULT_LOGICAL_NAME, help="Logical machine name (default: %(default)s)")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help=f"Per-machine state directory (default: {DEFAULT_DATA_ROOT}/<name>)",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML file with an 'orbstack:' section")
    parser.add_argument("--show-config", action="store_true", help="Show resolved provider configuration and exit")

    sub = parser.add_subparsers(dest="command")
    up = sub.add_parser("up", help="Create or start the machine")
    up.add_argument("--no-wait", action="store_true", help="Do not wait for SSH readiness")
    sub.add_parser("halt", help="Stop the machine")
    sub.add_parser("destroy", help="Delete the machine and its local state")
    reload_cmd = sub.add_parser("reload", help="Halt then start the machine")
    reload_cmd.add_argument("--provision", action="store_true", help="Run the provisioner after restart")
    sub.add_parser("status", help="Show machine state")
    sub.add_parser("ssh-config", help="Print an OpenSSH config block for the machine")
    return parser


def _needs_engine(command: str, provider: Provider) -> bool:
    # destroy cleans up local state even when OrbStack is unavailable
    if command == "destroy":
        return False
    if command == "status" and provider.machine_id is None:
        return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ProviderError as exc:
        log("ERROR", str(exc))
        return 1

    if args.show_config:
        show_config(cfg)
        return 0

    if args.command is None:
        parser.print_help()
        return 2

    data_dir = args.data_dir or DEFAULT_DATA_ROOT / args.name
    provider = Provider(args.name, data_dir, config=cfg)

    try:
        if _needs_engine(args.command, provider):
            provider.verify_engine()
        if args.command == "up":
            provider.ensure_running()
            if not args.no_wait:
                provider.wait_for_ready()
        elif args.command == "halt":
            provider.ensure_stopped()
        elif args.command == "destroy":
            provider.destroy()
        elif args.command == "reload":
            provider.reload(provision=args.provision)
        elif args.command == "status":
            state = provider.status()
            print(f"{args.name}: {state.short_description}")
            print(f"  {state.long_description}")
        elif args.command == "ssh-config":
            info = provider.connection_info()
            if info is None:
                log("ERROR", f"Machine '{args.name}' is not running; SSH info unavailable")
                return 1
            print(render_ssh_config(args.name, info))
        return 0
    except ProviderError as exc:
        log("ERROR", str(exc))
        return 1
