"""Configuration — Settings loading and the connection defaults registry."""

from indexsync.config.registry import ConfigRegistry
from indexsync.config.settings import Settings

__all__ = ["ConfigRegistry", "Settings"]
