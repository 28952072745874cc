# -*- coding: utf-8 -*-
"""
PluginKit 插件注册表
提供插件发现、激活状态持久化、实例化和生命周期调用

每个插件名只有两种持久化状态：INACTIVE（插件表中无记录）和
ACTIVE（插件表中有记录）。激活、停用都是"写数据库 + 调用钩子"两步操作，
钩子失败时回滚数据库写入，把插件恢复到操作之前的状态。
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import sqlalchemy as sa

from ..config import RegistrySettings
from ..db.store import PluginRecord, PluginStore
from ..exceptions import (
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
    PluginNotActiveError,
)
from ..plugins.base import PluginIface
from ..plugins.manifest import ManifestLoader, PluginDescriptor
from .event_bus import EventBus, EventPublishError
from .events import contracts
from .events.contracts import PluginEvents
from .factories import FactoryMap

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]")
_SYMBOL_SEPARATORS = re.compile(r"[^a-z0-9]")
_HIDDEN_ENTRY = re.compile(r"^(\.|_)")


def clean_plugin_name(plugin_name: str) -> str:
    """
    清理插件名

    去掉路径部分（"/" 或 "\\" 之前的内容），再删除字母、数字、下划线和
    连字符以外的字符。结果可以重复清理而不变。

    Args:
        plugin_name: 原始插件名

    Returns:
        清理后的插件名
    """
    plugin_name = str(plugin_name or "")
    plugin_name = re.split(r"[/\\]", plugin_name)[-1]
    return _INVALID_NAME_CHARS.sub("", plugin_name)


class PluginRegistry:
    """
    插件注册表

    负责扫描插件目录、根据插件表判断激活状态、创建并持有激活插件的实例，
    以及执行激活和停用操作。注册表显式构造并通过依赖注入传递，
    不提供全局单例；它不支持多线程并发修改。
    """

    def __init__(
        self,
        store: Union[PluginStore, sa.Engine, str],
        plugin_path: Union[str, Path],
        event_bus: Optional[EventBus] = None,
        factories: Optional[FactoryMap] = None,
        settings: Optional[RegistrySettings] = None,
    ):
        """
        初始化插件注册表

        构造时会在插件表不存在时创建它，然后初始化所有已激活插件。

        Args:
            store: 插件表存储，或用于创建存储的 SQLAlchemy 引擎 / 数据库URL
            plugin_path: 插件根目录
            event_bus: 事件总线，可选
            factories: 插件工厂映射，可选
            settings: 注册表配置，可选
        """
        self._settings = settings or RegistrySettings(plugin_path=str(plugin_path))
        if not isinstance(store, PluginStore):
            store = PluginStore(store, table_name=self._settings.table_name)

        self._store = store
        self._plugin_path = Path(plugin_path)
        self._event_bus = event_bus
        self._factories = factories if factories is not None else FactoryMap()
        self._manifest_loader = ManifestLoader(
            manifest_files=self._settings.manifest_files,
            name_prefix=self._settings.name_prefix,
            placeholder_version=self._settings.placeholder_version,
        )
        self._active_plugins: Dict[str, PluginIface] = {}
        self._failed_plugins: Dict[str, PluginKitException] = {}
        # 符号 -> 通过入口文件提供它的插件名
        self._symbol_owners: Dict[str, str] = {}
        self._logger = logging.getLogger(__name__)

        self.install()
        self.init_active_plugins()

    @property
    def store(self) -> PluginStore:
        return self._store

    @property
    def event_bus(self) -> Optional[EventBus]:
        """获取事件总线"""
        return self._event_bus

    @property
    def factories(self) -> FactoryMap:
        return self._factories

    @property
    def settings(self) -> RegistrySettings:
        return self._settings

    @property
    def failed_plugins(self) -> Dict[str, PluginKitException]:
        """宽松模式下启动初始化失败的插件"""
        return dict(self._failed_plugins)

    def clean_plugin_name(self, plugin_name: str) -> str:
        """清理插件名，见模块函数 clean_plugin_name"""
        return clean_plugin_name(plugin_name)

    def install(self) -> bool:
        """
        插件表不存在时创建插件表

        Returns:
            本次是否创建了插件表
        """
        created = self._store.install()
        if created:
            self._publish(
                PluginEvents.INSTALL,
                contracts.install_payload(self, self._store.table_name),
            )
        return created

    def list_available(self) -> List[str]:
        """
        列出插件根目录下的候选插件

        排除以 "." 或 "_" 开头的条目和非目录条目。

        Returns:
            排序后的插件目录名列表
        """
        if not self._plugin_path.is_dir():
            return []

        return sorted(
            entry.name
            for entry in self._plugin_path.iterdir()
            if not _HIDDEN_ENTRY.match(entry.name) and entry.is_dir()
        )

    def is_active(self, plugin_name: str) -> bool:
        """
        检查插件是否已激活

        Args:
            plugin_name: 插件名

        Returns:
            插件表中是否存在该插件的记录
        """
        plugin_name = self.clean_plugin_name(plugin_name)
        if not plugin_name:
            return False
        return self._store.exists(plugin_name)

    def get_db_plugin(self, plugin_name: str) -> Optional[PluginRecord]:
        """获取插件的持久化记录"""
        plugin_name = self.clean_plugin_name(plugin_name)
        if not plugin_name:
            return None
        return self._store.fetch(plugin_name)

    def get_plugin(self, plugin_name: str) -> Optional[PluginIface]:
        """
        获取插件实例

        只返回已持有的实例，不会触发实例化。

        Returns:
            插件实例，未激活或未加载时返回None
        """
        return self._active_plugins.get(self.clean_plugin_name(plugin_name))

    def get_active_plugins(self) -> Dict[str, PluginIface]:
        """获取所有已持有的插件实例"""
        return dict(self._active_plugins)

    def get_plugin_path(self, plugin_name: str = "") -> Path:
        """
        获取插件目录

        Args:
            plugin_name: 插件名，为空时返回插件根目录
        """
        plugin_name = self.clean_plugin_name(plugin_name)
        if not plugin_name:
            return self._plugin_path
        return self._plugin_path / plugin_name

    def get_plugin_info(self, plugin_name: str) -> PluginDescriptor:
        """
        获取插件描述符

        读取插件目录中的清单文件，缺失时合成默认描述符。
        """
        plugin_name = self.clean_plugin_name(plugin_name)
        return self._manifest_loader.load(self.get_plugin_path(plugin_name), plugin_name)

    def activate(self, plugin_name: str) -> PluginIface:
        """
        激活插件

        写入插件表后创建实例并调用 activate 钩子；钩子失败时删除记录。

        Args:
            plugin_name: 插件名

        Returns:
            激活后的插件实例

        Raises:
            PluginAlreadyActiveError: 插件已激活
            PluginActivationError: activate 钩子失败（记录已回滚）
            PluginError: 实例化失败（记录已回滚）
        """
        plugin_name = self._require_name(plugin_name)
        if self.is_active(plugin_name):
            raise PluginAlreadyActiveError(
                f"Plugin {plugin_name} is currently active", plugin_name=plugin_name
            )

        info = self.get_plugin_info(plugin_name)
        version = info.resolved_version(self._settings.default_version)

        self._publish(
            PluginEvents.ACTIVATE,
            contracts.activate_payload(plugin_name, info),
            subject=plugin_name,
        )

        self._store.insert(plugin_name, version)

        try:
            plugin = self.make_plugin_instance(plugin_name)
        except Exception as e:
            self._rollback_activation(plugin_name)
            self._logger.error(f"Failed to instantiate plugin {plugin_name}: {e}")
            if isinstance(e, PluginError):
                raise
            raise PluginError(
                f"Failed to instantiate plugin {plugin_name}: {e}", plugin_name=plugin_name
            ) from e

        try:
            plugin.activate()
        except Exception as e:
            self._rollback_activation(plugin_name)
            self._logger.error(f"Failed to activate plugin {plugin_name}: {e}")
            raise PluginActivationError(
                f"Failed to activate plugin {plugin_name}: {e}", plugin_name=plugin_name
            ) from e

        self._active_plugins[plugin_name] = plugin
        self._failed_plugins.pop(plugin_name, None)
        self._logger.info(f"Activated plugin: {plugin_name} ({version})")
        return plugin

    def deactivate(self, plugin_name: str) -> bool:
        """
        停用插件

        调用 deactivate 钩子后删除插件表记录；失败时恢复记录。

        Args:
            plugin_name: 插件名

        Returns:
            成功时返回True

        Raises:
            PluginNotActiveError: 插件未激活
            PluginDeactivationError: 钩子或删除失败（记录已恢复）
        """
        plugin_name = self._require_name(plugin_name)
        if not self.is_active(plugin_name):
            raise PluginNotActiveError(
                f"Plugin {plugin_name} is currently inactive", plugin_name=plugin_name
            )

        plugin = self._active_plugins.get(plugin_name)

        self._publish(
            PluginEvents.DEACTIVATE,
            contracts.deactivate_payload(plugin_name, plugin),
            subject=plugin_name,
        )

        if plugin is None:
            # 孤立记录：插件目录已删除或实例化失败，直接清理记录
            self._logger.warning(
                f"Plugin {plugin_name} has no loaded instance, removing its record only"
            )
            self._store.delete(plugin_name)
            return True

        record = self._store.fetch(plugin_name)
        version = record.version if record else self._settings.default_version

        try:
            plugin.deactivate()
            self._store.delete(plugin_name)
        except Exception as e:
            self._restore_record(plugin_name, version)
            self._logger.error(f"Failed to deactivate plugin {plugin_name}: {e}")
            raise PluginDeactivationError(
                f"Failed to deactivate plugin {plugin_name}: {e}", plugin_name=plugin_name
            ) from e

        del self._active_plugins[plugin_name]
        self._logger.info(f"Deactivated plugin: {plugin_name}")
        return True

    def init_active_plugins(self) -> Dict[str, PluginIface]:
        """
        根据插件表重建激活插件集合

        对每个已激活的候选插件创建实例并调用 init 钩子（不调用 activate）。

        Returns:
            插件名到实例的映射

        Raises:
            PluginError: 严格模式下第一个失败的插件
            ManifestError: 严格模式下清单文件无效
        """
        self._active_plugins = {}
        self._failed_plugins = {}

        for plugin_name in self.list_available():
            if not self.is_active(plugin_name):
                continue

            try:
                plugin = self.make_plugin_instance(plugin_name)
                try:
                    plugin.init()
                except Exception as e:
                    raise PluginInitError(
                        f"Failed to initialize plugin {plugin_name}: {e}",
                        plugin_name=plugin_name,
                    ) from e
            except (PluginError, ManifestError) as e:
                if self._settings.strict_init:
                    raise
                self._failed_plugins[plugin_name] = e
                self._logger.error(f"Skipping plugin {plugin_name}: {e}")
                continue

            self._active_plugins[plugin_name] = plugin
            self._logger.info(f"Initialized plugin: {plugin_name}")
            self._publish(
                PluginEvents.INIT,
                contracts.init_payload(plugin_name, plugin),
                subject=plugin_name,
            )

        return dict(self._active_plugins)

    def make_plugin_symbol(self, plugin_name: str) -> str:
        """
        生成插件实现符号

        清单声明了 autoload.namespace 且该符号已注册时使用它；
        否则由插件名推导：小写化，非字母数字替换为 "-"，取最后一段。
        例如 "ttek-blog" -> "blog.Plugin"。

        "ttek-blog" 和 "my-blog" 会推导出同一个符号，后激活的插件复用先注册的
        实现并记录警告；需要区分时在清单中声明 autoload.namespace。
        """
        plugin_name = self.clean_plugin_name(plugin_name)
        namespace_symbol, default_symbol = self._candidate_symbols(
            plugin_name, self.get_plugin_info(plugin_name)
        )
        if namespace_symbol and namespace_symbol in self._factories:
            return namespace_symbol
        return default_symbol

    def make_plugin_instance(self, plugin_name: str) -> PluginIface:
        """
        创建插件实例

        Raises:
            PluginNotActiveError: 插件未激活
            PluginEntryFileMissingError: 入口文件不存在（插件已被强制停用）
            PluginClassNotFoundError: 找不到实现
            PluginInterfaceError: 实现不满足插件接口
        """
        plugin_name = self.clean_plugin_name(plugin_name)
        record = self.get_db_plugin(plugin_name)
        if record is None:
            raise PluginNotActiveError(
                f"Cannot instantiate an inactive plugin: {plugin_name}",
                plugin_name=plugin_name,
            )

        symbol = self._resolve_symbol(plugin_name)
        factory = self._factories.get(symbol)
        if factory is None:
            raise PluginClassNotFoundError(
                f"Plugin implementation {symbol} not found", plugin_name=plugin_name
            )

        try:
            plugin = factory(record.id, plugin_name)
        except Exception as e:
            raise PluginError(
                f"Failed to construct plugin {plugin_name} from {symbol}: {e}",
                plugin_name=plugin_name,
            ) from e

        if not isinstance(plugin, PluginIface):
            raise PluginInterfaceError(
                f"Plugin class uses the incorrect interface: {symbol}",
                plugin_name=plugin_name,
            )

        plugin.set_registry(self)
        return plugin

    def get_status(self) -> List[Dict[str, Any]]:
        """
        获取所有插件的状态摘要

        包含目录中的候选插件和插件表中的孤立记录。
        """
        records = {record.name: record for record in self._store.list_records()}
        names = sorted(set(self.list_available()) | set(records))

        status = []
        for name in names:
            record = records.get(name)
            status.append(
                {
                    "name": name,
                    "version": record.version if record else None,
                    "active": record is not None,
                    "loaded": name in self._active_plugins,
                    "created": record.created if record else None,
                    "error": str(self._failed_plugins[name])
                    if name in self._failed_plugins
                    else None,
                }
            )
        return status

    def _resolve_symbol(self, plugin_name: str) -> str:
        """解析实现符号，必要时执行入口文件"""
        info = self.get_plugin_info(plugin_name)
        namespace_symbol, default_symbol = self._candidate_symbols(plugin_name, info)
        for symbol in (namespace_symbol, default_symbol):
            if symbol and symbol in self._factories:
                owner = self._symbol_owners.get(symbol)
                if owner and owner != plugin_name:
                    # 默认符号只取插件名最后一段，不同目录可能推导出同一个符号
                    self._logger.warning(
                        f"Plugin {plugin_name} resolves to {symbol}, "
                        f"which was already provided by plugin {owner}"
                    )
                return symbol

        entry_name = self._settings.entry_file
        if info.autoload and info.autoload.entry_point:
            entry_name = info.autoload.entry_point
        entry_file = self.get_plugin_path(plugin_name) / entry_name

        if not entry_file.is_file():
            self._force_deactivate(plugin_name)
            raise PluginEntryFileMissingError(
                f"Cannot locate plugin file {entry_file}", plugin_name=plugin_name
            )

        target = namespace_symbol or default_symbol
        known = set(self._factories.symbols())
        self._factories.load_entry_file(entry_file, target, self._startup_class(info))
        for symbol in set(self._factories.symbols()) - known:
            self._symbol_owners[symbol] = plugin_name

        if default_symbol in self._factories and target not in self._factories:
            return default_symbol
        return target

    def _candidate_symbols(
        self, plugin_name: str, info: PluginDescriptor
    ) -> Tuple[Optional[str], str]:
        """返回 (命名空间符号, 默认符号)"""
        startup_class = self._startup_class(info)

        namespace_symbol = None
        if info.autoload and info.autoload.namespace:
            namespace_symbol = f"{info.autoload.namespace}.{startup_class}"

        namespace = _SYMBOL_SEPARATORS.sub("-", plugin_name.lower())
        namespace = namespace.rsplit("-", 1)[-1]
        return namespace_symbol, f"{namespace}.{startup_class}"

    def _startup_class(self, info: PluginDescriptor) -> str:
        if info.autoload and info.autoload.startup_class:
            return info.autoload.startup_class
        return self._settings.startup_class

    def _require_name(self, plugin_name: str) -> str:
        cleaned = self.clean_plugin_name(plugin_name)
        if not cleaned:
            raise PluginError(f"Invalid plugin name: {plugin_name!r}")
        return cleaned

    def _force_deactivate(self, plugin_name: str) -> None:
        """入口文件丢失时强制停用，避免损坏的插件保持激活状态"""
        self._active_plugins.pop(plugin_name, None)
        if self._store.delete(plugin_name):
            self._logger.warning(
                f"Plugin {plugin_name} entry file is missing, plugin deactivated"
            )

    def _rollback_activation(self, plugin_name: str) -> None:
        self._store.delete(plugin_name)
        self._logger.info(f"Rolled back activation record of plugin {plugin_name}")

    def _restore_record(self, plugin_name: str, version: str) -> None:
        if not self._store.exists(plugin_name):
            self._store.insert(plugin_name, version)
            self._logger.info(f"Restored activation record of plugin {plugin_name}")

    def _publish(
        self, event_type: str, data: Dict[str, Any], subject: Optional[str] = None
    ) -> None:
        """发布事件（如果事件总线可用）"""
        if not self._event_bus:
            return
        try:
            self._event_bus.publish(
                event_type,
                data=data,
                source=PluginEvents.SOURCE,
                subject=subject,
            )
        except EventPublishError as e:
            self._logger.warning(f"Failed to publish {event_type}: {e}")

    def __contains__(self, plugin_name: object) -> bool:
        return isinstance(plugin_name, str) and self.get_plugin(plugin_name) is not None

    def __repr__(self) -> str:
        return (
            f"PluginRegistry(path='{self._plugin_path}', "
            f"active={sorted(self._active_plugins)})"
        )
