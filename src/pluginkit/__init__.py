# -*- coding: utf-8 -*-
"""
PluginKit: A Database-Backed Plugin Registry
"""

__author__ = "PluginKit"
__version__ = "1.0.0"

from .config import RegistrySettings, load_settings

# 核心组件
from .core.bootstrap import build_registry
from .core.event_bus import EventBus
from .core.events import PluginEvents, RegistryEvent
from .core.factories import FactoryMap
from .core.plugin_registry import PluginRegistry
from .db.store import PluginRecord, PluginStore

# 异常
from .exceptions import (
    ConfigurationError,
    ManifestError,
    PluginActivationError,
    PluginAlreadyActiveError,
    PluginClassNotFoundError,
    PluginDeactivationError,
    PluginEntryFileMissingError,
    PluginError,
    PluginInitError,
    PluginInterfaceError,
    PluginKitException,
    PluginLifecycleError,
    PluginNotActiveError,
    PluginRegistrationError,
    PluginStoreError,
)

# 插件系统
from .plugins.base import BasePlugin, PluginIface, PluginState
from .plugins.manifest import PluginDescriptor

__all__ = [
    # 核心组件
    "PluginRegistry",
    "FactoryMap",
    "EventBus",
    "RegistryEvent",
    "PluginEvents",
    "PluginStore",
    "PluginRecord",
    "build_registry",
    # 配置
    "RegistrySettings",
    "load_settings",
    # 插件系统
    "BasePlugin",
    "PluginIface",
    "PluginState",
    "PluginDescriptor",
    # 异常
    "PluginKitException",
    "PluginError",
    "PluginAlreadyActiveError",
    "PluginNotActiveError",
    "PluginClassNotFoundError",
    "PluginInterfaceError",
    "PluginEntryFileMissingError",
    "PluginRegistrationError",
    "PluginLifecycleError",
    "PluginInitError",
    "PluginActivationError",
    "PluginDeactivationError",
    "ManifestError",
    "PluginStoreError",
    "ConfigurationError",
]
