# -*- coding: utf-8 -*-
"""
插件表持久化
"""

from .store import PluginRecord, PluginStore
from .tables import make_plugin_table

__all__ = ["PluginRecord", "PluginStore", "make_plugin_table"]
