# -*- coding: utf-8 -*-
"""
注册表装配

根据配置创建数据库引擎、插件表存储和注册表。
"""

import logging
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.exc import ArgumentError

from ..config import RegistrySettings
from ..db.store import PluginStore
from ..exceptions import ConfigurationError
from .event_bus import EventBus
from .factories import FactoryMap
from .plugin_registry import PluginRegistry

logger = logging.getLogger(__name__)


def build_registry(
    settings: RegistrySettings,
    event_bus: Optional[EventBus] = None,
    factories: Optional[FactoryMap] = None,
) -> PluginRegistry:
    """
    按配置创建插件注册表

    Args:
        settings: 注册表配置
        event_bus: 事件总线，可选
        factories: 预先注册的插件工厂，可选

    Returns:
        已完成初始化的插件注册表

    Raises:
        ConfigurationError: 数据库URL无效时抛出
    """
    try:
        engine = sa.create_engine(settings.database_url)
    except (ArgumentError, ImportError) as e:
        raise ConfigurationError(f"无效的数据库URL {settings.database_url}: {e}") from e

    store = PluginStore(engine, table_name=settings.table_name)
    logger.debug(
        f"Building plugin registry: path={settings.plugin_path}, db={engine.url!r}"
    )
    return PluginRegistry(
        store,
        settings.plugin_path,
        event_bus=event_bus,
        factories=factories,
        settings=settings,
    )
