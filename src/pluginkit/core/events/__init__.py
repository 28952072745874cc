# -*- coding: utf-8 -*-
"""
PluginKit 事件模型
"""

from .contracts import PluginEvents
from .registry_event import RegistryEvent

__all__ = ["PluginEvents", "RegistryEvent"]
