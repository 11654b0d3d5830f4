# src/loglayer/hookspecs.py
"""pluggy hook specifications for transport and extension discovery.

Packages providing transports or extensions implement these hooks so that
loglayer.factory can build loggers from declarative settings.

Usage (implementing a transport plugin):
    from loglayer.hookspecs import hookimpl

    class MyTransportPlugin:
        @hookimpl
        def loglayer_get_transports(self):
            return [MyTransport]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from loglayer.extensions import Extension
    from loglayer.transports.base import Transport

PROJECT_NAME = "loglayer"

# Hook specification marker
hookspec = pluggy.HookspecMarker(PROJECT_NAME)

# Hook implementation marker (for transport/extension plugins to use)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class LogLayerDiscoverySpec:
    """Hook specifications for discovery plugins."""

    @hookspec
    def loglayer_get_transports(self) -> list[type["Transport"]]:  # type: ignore[empty-body]
        """Return transport classes.

        Each class must carry a non-empty ``_name`` class attribute, the name
        used in TransportSettings, and accept its options as keyword
        arguments.
        """

    @hookspec
    def loglayer_get_extensions(self) -> list["Extension"]:  # type: ignore[empty-body]
        """Return Extension bundles available by name in LogLayerSettings.extensions."""
