# -*- coding: utf-8 -*-
"""
PluginKit 核心框架
"""

from .bootstrap import build_registry
from .event_bus import EventBus
from .factories import FactoryMap
from .plugin_registry import PluginRegistry, clean_plugin_name

__all__ = [
    "EventBus",
    "FactoryMap",
    "PluginRegistry",
    "build_registry",
    "clean_plugin_name",
]
