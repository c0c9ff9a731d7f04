"""
Driver registry.

Each driver module calls ``register()`` at import time.  ``main.py`` then
imports every module in ``drivers/`` via ``pkgutil.iter_modules``, so adding
a platform means dropping a file into ``drivers/``.
"""

from __future__ import annotations

_REGISTRY: dict[str, tuple[type, type]] = {}


def register(name: str, config_cls: type, driver_cls: type) -> None:
    """Register a driver under *name*.

    Args:
        name:       Platform key used in the config file (e.g. ``"telegram"``).
        config_cls: ``ChannelAdapterConfig`` subclass validating one instance block.
        driver_cls: ``BaseDriver`` subclass to instantiate.
    """
    _REGISTRY[name] = (config_cls, driver_cls)


def all_drivers() -> dict[str, tuple[type, type]]:
    """Return a snapshot of ``{name: (config_cls, driver_cls)}``."""
    return dict(_REGISTRY)
