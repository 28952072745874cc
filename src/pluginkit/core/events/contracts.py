# -*- coding: utf-8 -*-
"""
插件注册表事件契约

定义注册表发布的事件类型和负载格式，监听方应依赖这些常量而不是
手写事件名。
"""

from typing import Any, Dict, Optional


class PluginEvents:
    """插件注册表事件类型常量"""

    SOURCE = "plugin_registry"

    # 插件表创建完成
    INSTALL = "com.pluginkit.plugin.install"
    # 激活前（写入持久化记录之前）
    ACTIVATE = "com.pluginkit.plugin.activate"
    # 停用前（删除持久化记录之前）
    DEACTIVATE = "com.pluginkit.plugin.deactivate"
    # 启动时已激活插件完成初始化
    INIT = "com.pluginkit.plugin.init"

    ALL = (INSTALL, ACTIVATE, DEACTIVATE, INIT)

    # 插件事件通配模式
    PATTERN = "com.pluginkit.plugin.*"


def install_payload(registry: Any, table: str) -> Dict[str, Any]:
    """插件表创建事件负载"""
    return {"plugin_registry": registry, "table": table}


def activate_payload(plugin_name: str, descriptor: Any) -> Dict[str, Any]:
    """激活事件负载"""
    return {"plugin_name": plugin_name, "info": descriptor}


def deactivate_payload(plugin_name: str, plugin: Optional[Any]) -> Dict[str, Any]:
    """停用事件负载，孤立记录时 plugin 为 None"""
    return {"plugin_name": plugin_name, "plugin": plugin}


def init_payload(plugin_name: str, plugin: Any) -> Dict[str, Any]:
    """初始化事件负载"""
    return {"plugin_name": plugin_name, "plugin": plugin}
