# -*- coding: utf-8 -*-
"""
全局测试配置
提供插件目录、SQLite 数据库和事件总线等共享fixture
"""

from typing import Any, Optional

import pytest

from pluginkit.config import RegistrySettings
from pluginkit.core.event_bus import EventBus
from pluginkit.core.factories import FactoryMap
from pluginkit.core.plugin_registry import PluginRegistry
from pluginkit.db.store import PluginStore


@pytest.fixture
def plugin_dir(tmp_path):
    """临时插件根目录"""
    path = tmp_path / "plugins"
    path.mkdir()
    return path


@pytest.fixture
def db_url(tmp_path):
    """基于文件的 SQLite 数据库URL"""
    return f"sqlite:///{tmp_path / 'registry.sqlite3'}"


@pytest.fixture
def store(db_url):
    """插件表存储，测试结束后释放连接池"""
    plugin_store = PluginStore(db_url)
    yield plugin_store
    plugin_store.engine.dispose()


@pytest.fixture
def event_bus():
    """提供一个 EventBus 实例，并在测试结束后自动关闭"""
    bus = EventBus()
    yield bus
    bus.shutdown()


@pytest.fixture
def make_registry(store, plugin_dir, event_bus):
    """
    注册表工厂

    同一个测试中多次调用共享同一个数据库，用于模拟进程重启。
    """

    def _make(
        factories: Optional[FactoryMap] = None, **settings: Any
    ) -> PluginRegistry:
        registry_settings = RegistrySettings(plugin_path=str(plugin_dir), **settings)
        return PluginRegistry(
            store,
            plugin_dir,
            event_bus=event_bus,
            factories=factories,
            settings=registry_settings,
        )

    return _make


@pytest.fixture
def registry(make_registry):
    """默认注册表"""
    return make_registry()
