"""Global constants for orbstack-provider."""

from __future__ import annotations

import os
import re
from pathlib import Path

DEFAULT_BINARY = "orb"
DEFAULT_DISTRO = "ubuntu"
DEFAULT_NAME_PREFIX = "vagrant"
DEFAULT_LOGICAL_NAME = "default"
DEFAULT_DATA_ROOT = Path(".orbstack") / "machines"

# Engine command timeouts (seconds). Creation may download an image and boot it.
QUERY_TIMEOUT = 30
MUTATE_TIMEOUT = 60
CREATE_TIMEOUT = 120

DEFAULT_CACHE_TTL = 5

MAX_NAME_ATTEMPTS = 3
MAX_MACHINE_NAME_LENGTH = 63
NAME_SUFFIX_BYTES = 3

READY_POLL_INTERVAL = 2
READY_TIMEOUT = 120

ID_FILE_NAME = "id"
METADATA_FILE_NAME = "metadata.json"
METADATA_SCHEMA_VERSION = 1

# OrbStack routes SSH through a local proxy; the VM's own address is never used.
SSH_PROXY_HOST = "127.0.0.1"
SSH_PROXY_PORT = 32222
SSH_PRIVATE_KEY_PATH = Path("~/.orbstack/ssh/id_ed25519")
ORBSTACK_HELPER_PATH = (
    "/Applications/OrbStack.app/Contents/Frameworks/OrbStack Helper.app/Contents/MacOS/OrbStack Helper"
)

MACHINE_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
DISTRIBUTION_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._:-]*$")
MACHINE_NAME_CONFIG_RE = re.compile(r"^[a-zA-Z0-9]+(-[a-zA-Z0-9]+)*$")
VERSION_RE = re.compile(r"(\d+\.\d+\.\d+)")

TRUTHY = {"1", "true", "yes", "on"}

_LOG_VERBOSE = os.environ.get("ORBSTACK_LOG_VERBOSE", "").lower() in TRUTHY
