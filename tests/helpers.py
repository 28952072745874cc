# -*- coding: utf-8 -*-
"""
测试辅助工具
在临时插件根目录下生成插件目录、入口文件和清单
"""

import json
import textwrap
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

# 标准入口文件：定义 Plugin 类，钩子调用记录在实例的 calls 列表中
PLUGIN_SOURCE = textwrap.dedent(
    """
    from pluginkit.plugins.base import BasePlugin


    class Plugin(BasePlugin):
        def __init__(self, plugin_id, name):
            super().__init__(plugin_id, name)
            self.calls = []

        def _on_init(self):
            self.calls.append("init")

        def _on_activate(self):
            self.calls.append("activate")

        def _on_deactivate(self):
            self.calls.append("deactivate")
    """
)

# 通过 register(factories) 约定注册实现
REGISTER_SOURCE = textwrap.dedent(
    """
    from pluginkit.plugins.base import BasePlugin


    class MailerPlugin(BasePlugin):
        def _on_init(self):
            pass

        def _on_activate(self):
            pass

        def _on_deactivate(self):
            pass


    def register(factories):
        factories.register("{symbol}", MailerPlugin)
    """
)

# register(factories) 本身抛出普通异常
FAILING_REGISTER_SOURCE = textwrap.dedent(
    """
    def register(factories):
        raise RuntimeError("settings table missing")
    """
)

# 实现类不满足插件接口
NOT_A_PLUGIN_SOURCE = textwrap.dedent(
    """
    class Plugin:
        def __init__(self, plugin_id, name):
            self.plugin_id = plugin_id
            self.name = name
    """
)

# 入口文件存在但没有提供任何实现
EMPTY_SOURCE = "VALUE = 1\n"


def write_plugin(
    plugin_dir: Path,
    name: str,
    source: Optional[str] = PLUGIN_SOURCE,
    manifest: Optional[Dict[str, Any]] = None,
    manifest_file: str = "plugin.yaml",
    entry_file: str = "plugin.py",
) -> Path:
    """
    在插件根目录下创建一个插件目录

    Args:
        plugin_dir: 插件根目录
        name: 插件目录名
        source: 入口文件源码，为None时不创建入口文件
        manifest: 清单内容，为None时不创建清单
        manifest_file: 清单文件名
        entry_file: 入口文件名

    Returns:
        插件目录路径
    """
    path = plugin_dir / name
    path.mkdir(parents=True, exist_ok=True)

    if source is not None:
        entry_path = path / entry_file
        entry_path.parent.mkdir(parents=True, exist_ok=True)
        entry_path.write_text(source, encoding="utf-8")

    if manifest is not None:
        with open(path / manifest_file, "w", encoding="utf-8") as f:
            if manifest_file.endswith(".json"):
                json.dump(manifest, f)
            else:
                yaml.safe_dump(manifest, f)

    return path
