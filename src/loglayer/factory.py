# src/loglayer/factory.py
"""Build LogLayer instances from declarative settings.

This module is the glue between LogLayerSettings and a runtime LogLayer:
1. Discover transport classes and extensions via pluggy hooks
2. Instantiate the configured transports
3. Resolve the group filter (settings, else the LOGLAYER_GROUPS variable)
4. Construct the LogLayer

Usage:
    from loglayer.config import load_settings
    from loglayer.factory import create_log_layer

    log = create_log_layer(load_settings(Path("logging.yaml")), plugins=[redact])
"""

import os
from collections.abc import Iterable, Mapping
from typing import Any

import pluggy

from loglayer.config import GROUP_FILTER_ENV_VAR, LogLayerConfig, LogLayerSettings
from loglayer.diagnostics import get_logger
from loglayer.errors import ExtensionError, TransportConfigurationError
from loglayer.extensions import Extension, ExtensionRegistry
from loglayer.hookspecs import PROJECT_NAME, LogLayerDiscoverySpec
from loglayer.loglayer import LogLayer
from loglayer.transports import BuiltinTransportsPlugin
from loglayer.transports.base import Transport

logger = get_logger(__name__)


def _resolve_transport_name(transport_class: type[Transport]) -> str:
    """Read the registered name from the class ``_name`` attribute.

    Raises:
        TransportConfigurationError: If the attribute is missing or not a
            non-empty string.
    """
    class_name = getattr(transport_class, "__name__", repr(transport_class))
    name = transport_class.__dict__.get("_name")
    if type(name) is not str or name == "":
        raise TransportConfigurationError(
            class_name,
            f"Transport class attribute _name must be a non-empty string, got {name!r}",
        )
    return name


def _build_plugin_manager(discovery_plugins: Iterable[Any]) -> pluggy.PluginManager:
    plugin_manager = pluggy.PluginManager(PROJECT_NAME)
    plugin_manager.add_hookspecs(LogLayerDiscoverySpec)

    for plugin in [BuiltinTransportsPlugin(), *discovery_plugins]:
        try:
            plugin_manager.register(plugin)
            plugin_manager.check_pending()
        except (pluggy.PluginValidationError, ValueError) as e:
            # PluginValidationError: hook spec mismatch
            # ValueError: duplicate plugin object or name
            if isinstance(e, pluggy.PluginValidationError):
                plugin_manager.unregister(plugin=plugin)
            raise TransportConfigurationError(
                "discovery_plugins",
                f"Invalid discovery plugin {type(plugin).__name__}: {e}",
            ) from e
    return plugin_manager


def _collect(results: Any, hook_name: str, plugin_name: str) -> list[Any]:
    if results is None or isinstance(results, str | bytes):
        raise TransportConfigurationError(
            "discovery_plugins",
            f"{hook_name} in plugin {plugin_name} returned {type(results).__name__}; expected an iterable",
        )
    try:
        return list(results)
    except TypeError as e:
        raise TransportConfigurationError(
            "discovery_plugins",
            f"{hook_name} in plugin {plugin_name} returned {type(results).__name__}; expected an iterable",
        ) from e


def discover_transports(discovery_plugins: Iterable[Any] = ()) -> dict[str, type[Transport]]:
    """Return the registered name -> transport class registry.

    Raises:
        TransportConfigurationError: If plugin registration fails, a name is
            invalid, or two classes claim the same name.
    """
    plugin_manager = _build_plugin_manager(discovery_plugins)

    registry: dict[str, type[Transport]] = {}
    for hook_impl in plugin_manager.hook.loglayer_get_transports.get_hookimpls():
        plugin_name = type(hook_impl.plugin).__name__
        try:
            results = hook_impl.function()
        except Exception as e:
            raise TransportConfigurationError(
                "discovery_plugins",
                f"Plugin {plugin_name} failed in loglayer_get_transports: {e}",
            ) from e

        for transport_class in _collect(results, "loglayer_get_transports", plugin_name):
            name = _resolve_transport_name(transport_class)
            if name in registry:
                raise TransportConfigurationError(
                    name,
                    f"Duplicate transport name '{name}' discovered: "
                    f"{registry[name].__name__} and {transport_class.__name__}",
                )
            registry[name] = transport_class
    return registry


def discover_extensions(discovery_plugins: Iterable[Any] = ()) -> dict[str, Extension]:
    """Return the name -> Extension registry from loglayer_get_extensions hooks.

    Raises:
        ExtensionError: If a hook returns something other than Extensions, or
            two extensions share a name.
    """
    plugin_manager = _build_plugin_manager(discovery_plugins)

    registry: dict[str, Extension] = {}
    for hook_impl in plugin_manager.hook.loglayer_get_extensions.get_hookimpls():
        plugin_name = type(hook_impl.plugin).__name__
        for extension in _collect(hook_impl.function(), "loglayer_get_extensions", plugin_name):
            if not isinstance(extension, Extension):
                raise ExtensionError(repr(extension), f"plugin {plugin_name} returned a non-Extension object")
            if extension.name in registry:
                raise ExtensionError(extension.name, "duplicate extension name discovered")
            registry[extension.name] = extension
    return registry


def create_log_layer(
    settings: LogLayerSettings,
    *,
    plugins: Iterable[Any] = (),
    discovery_plugins: Iterable[Any] = (),
    environ: Mapping[str, str] | None = None,
) -> LogLayer:
    """Create a LogLayer from settings.

    Args:
        settings: Declarative logger description
        plugins: LogLayer plugins (hook objects), in invocation order
        discovery_plugins: Additional pluggy plugins implementing
            loglayer_get_transports / loglayer_get_extensions
        environ: Environment used for LOGLAYER_GROUPS (defaults to os.environ)

    Raises:
        TransportConfigurationError: If a transport name is unknown or a
            transport rejects its options
        ExtensionError: If a configured extension name is unknown
    """
    discovery_plugins = list(discovery_plugins)
    transport_registry = discover_transports(discovery_plugins)

    transports: list[Transport] = []
    for transport_settings in settings.transports:
        try:
            transport_class = transport_registry[transport_settings.name]
        except KeyError:
            available = sorted(transport_registry.keys())
            raise TransportConfigurationError(
                transport_settings.name,
                f"Unknown transport. Available transports: {available}",
            ) from None
        try:
            transport = transport_class(**transport_settings.options)
        except TypeError as e:
            raise TransportConfigurationError(transport_settings.name, f"Invalid options: {e}") from e
        transports.append(transport)
        logger.debug(
            "Transport configured",
            transport=transport_settings.name,
            options_keys=list(transport_settings.options.keys()),
        )

    extensions = ExtensionRegistry()
    if settings.extensions:
        available_extensions = discover_extensions(discovery_plugins)
        for name in settings.extensions:
            if name not in available_extensions:
                raise ExtensionError(name, f"Unknown extension. Available: {sorted(available_extensions)}")
            extensions.register(available_extensions[name])

    group_filter = settings.group_filter
    if group_filter is None:
        group_filter = (environ if environ is not None else os.environ).get(GROUP_FILTER_ENV_VAR) or None

    if not transports:
        logger.warning("LogLayer created without transports", message="No transports configured")

    config = LogLayerConfig(
        **settings.model_dump(exclude={"transports", "extensions", "group_filter", "groups"}),
        groups=settings.groups,
        group_filter=group_filter,
        plugins=list(plugins),
        transport=transports,
    )
    return LogLayer(config, extensions=extensions)
