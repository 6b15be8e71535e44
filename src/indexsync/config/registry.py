"""Config Registry — Process-wide default connection options.

One registry is constructed at process start and handed to every component
that needs connection defaults. It is mutated only by explicit
``configure()`` calls; every other access is a read.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from indexsync.adapters.base.exceptions import ConfigurationError
from indexsync.models.options import OPTION_KEYS, ConnectionOptions

if TYPE_CHECKING:
    from indexsync.config.settings import ConnectionSettings

logger = logging.getLogger(__name__)

REQUIRED_KEYS: tuple[str, ...] = ("host", "port")

OptionsLike = ConnectionOptions | Mapping[str, Any]


def as_options(options: OptionsLike | None) -> ConnectionOptions:
    """Coerce a mapping (or None) to ``ConnectionOptions``, rejecting unknown keys."""
    if options is None:
        return ConnectionOptions()
    if isinstance(options, ConnectionOptions):
        return options
    unknown = set(options) - set(OPTION_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown connection option(s): {sorted(unknown)}")
    return ConnectionOptions(**options)


class ConfigRegistry:
    """Holds the last-configured default ``ConnectionOptions``.

    Example:
        >>> registry = ConfigRegistry()
        >>> registry.configure({"host": "http://localhost", "port": 9200, "prefix": "qa"})
        >>> registry.resolve({"index": "users"}).index
        'users'
    """

    def __init__(self, defaults: OptionsLike | None = None) -> None:
        self._defaults = ConnectionOptions()
        if defaults is not None:
            self.configure(defaults)

    @classmethod
    def from_settings(cls, settings: ConnectionSettings) -> ConfigRegistry:
        """Create a registry seeded with the built-in connection settings."""
        return cls(
            ConnectionOptions(
                host=settings.host,
                port=settings.port,
                prefix=settings.prefix,
            )
        )

    @property
    def defaults(self) -> ConnectionOptions:
        """A copy of the current defaults."""
        return self._defaults.model_copy()

    @property
    def is_configured(self) -> bool:
        return all(k in self._defaults.present() for k in REQUIRED_KEYS)

    def configure(self, options: OptionsLike) -> None:
        """Update the defaults.

        Only keys present (and non-empty) in ``options`` are overwritten; all
        other stored defaults are left untouched.

        Raises:
            ConfigurationError: On unknown option keys.
        """
        update = as_options(options).present()
        if not update:
            return
        self._defaults = self._defaults.model_copy(update=update)
        logger.info("Search connection defaults updated: %s", sorted(update))

    def merge(self, overrides: OptionsLike | None = None) -> ConnectionOptions:
        """Merge per-call overrides over the defaults without validating."""
        return self._defaults.model_copy(update=as_options(overrides).present())

    def resolve(self, overrides: OptionsLike | None = None) -> ConnectionOptions:
        """Merge per-call overrides over the defaults.

        For each key a present, non-empty override wins; otherwise the stored
        default is used.

        Raises:
            ConfigurationError: If host or port is still missing.
        """
        merged = self.merge(overrides)
        present = merged.present()
        missing = [k for k in REQUIRED_KEYS if k not in present]
        if missing:
            raise ConfigurationError(
                f"Missing required connection option(s): {', '.join(missing)}. "
                "Call ConfigRegistry.configure() or pass them per call."
            )
        return merged
