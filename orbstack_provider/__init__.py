"""orbstack-provider package."""

__version__ = "0.1.0"

__all__ = [
    "cache",
    "cli",
    "config",
    "constants",
    "engine",
    "exceptions",
    "models",
    "naming",
    "provider",
    "readiness",
    "storage",
    "utils",
]
