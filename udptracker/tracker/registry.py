"""Scheme-keyed registry of tracker client constructors."""

from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import urlparse

from udptracker.tracker.base import TrackerClient
from udptracker.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], TrackerClient]


class ClientRegistry:
    """Maps URL schemes to tracker client constructors.

    Registration is explicit; host applications call
    :func:`register_default_clients` once at startup.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._factories: dict[str, ClientFactory] = {}

    def register(self, scheme: str, factory: ClientFactory) -> None:
        """Register ``factory`` for URLs with ``scheme``."""
        key = scheme.lower()
        if key in self._factories:
            logger.debug("Replacing tracker client for scheme %s", key)
        self._factories[key] = factory

    def unregister(self, scheme: str) -> None:
        """Remove the factory for ``scheme`` if present."""
        self._factories.pop(scheme.lower(), None)

    def schemes(self) -> list[str]:
        """Registered schemes, sorted."""
        return sorted(self._factories)

    def __contains__(self, scheme: object) -> bool:
        return isinstance(scheme, str) and scheme.lower() in self._factories

    def client_for_url(self, url: str) -> TrackerClient:
        """Construct a client for ``url`` using the factory for its scheme."""
        scheme = urlparse(url).scheme.lower()
        factory = self._factories.get(scheme)
        if factory is None:
            msg = f"No tracker client registered for scheme {scheme!r}"
            raise ConfigurationError(msg, {"url": url})
        return factory(url)


def register_default_clients(registry: ClientRegistry) -> ClientRegistry:
    """Register the clients shipped with this package."""
    from udptracker.client import UDPTrackerClient

    registry.register("udp", UDPTrackerClient)
    return registry
