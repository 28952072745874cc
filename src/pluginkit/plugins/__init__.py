# -*- coding: utf-8 -*-
"""
插件接口和描述符
"""

from .base import BasePlugin, PluginIface, PluginState
from .manifest import AutoloadInfo, ManifestLoader, PluginDescriptor

__all__ = [
    "BasePlugin",
    "PluginIface",
    "PluginState",
    "AutoloadInfo",
    "ManifestLoader",
    "PluginDescriptor",
]
