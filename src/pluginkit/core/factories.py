# -*- coding: utf-8 -*-
"""
插件工厂映射

注册表不做运行时符号查找，而是通过显式的 符号 -> 构造函数 映射创建插件。
宿主应用可以在启动时预先注册工厂；没有注册的符号在需要时执行插件入口文件，
由入口文件完成注册。

入口文件约定（二选一）：
1. 定义模块级函数 ``register(factories)``，在其中调用 ``factories.register``；
2. 定义与启动类同名的类（默认 ``Plugin``），由加载器以目标符号注册。
"""

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..exceptions import PluginClassNotFoundError, PluginRegistrationError
from ..plugins.base import PluginIface

PluginFactory = Callable[[int, str], PluginIface]

# 入口模块在 sys.modules 中的命名前缀
MODULE_PREFIX = "pluginkit_plugins"

logger = logging.getLogger(__name__)


class FactoryMap:
    """插件符号到构造函数的映射"""

    def __init__(self, factories: Optional[Dict[str, PluginFactory]] = None):
        self._factories: Dict[str, PluginFactory] = {}
        for symbol, factory in (factories or {}).items():
            self.register(symbol, factory)

    def register(self, symbol: str, factory: PluginFactory, replace: bool = False) -> None:
        """
        注册插件工厂

        Args:
            symbol: 实现符号，例如 "blog.Plugin"
            factory: 接收 (plugin_id, name) 并返回插件实例的可调用对象
            replace: 是否允许覆盖已有注册

        Raises:
            PluginRegistrationError: 工厂不可调用或符号已注册时抛出
        """
        if not symbol:
            raise PluginRegistrationError("Factory symbol must not be empty")
        if not callable(factory):
            raise PluginRegistrationError(f"Factory for {symbol} must be callable")
        if symbol in self._factories and not replace:
            raise PluginRegistrationError(f"Factory {symbol} is already registered")

        self._factories[symbol] = factory
        logger.debug(f"Registered plugin factory: {symbol}")

    def unregister(self, symbol: str) -> bool:
        """取消注册，返回是否存在"""
        return self._factories.pop(symbol, None) is not None

    def get(self, symbol: str) -> Optional[PluginFactory]:
        return self._factories.get(symbol)

    def symbols(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def load_entry_file(
        self, entry_file: Path, symbol: str, startup_class: str = "Plugin"
    ) -> None:
        """
        执行插件入口文件并完成注册

        Args:
            entry_file: 入口文件路径
            symbol: 期望注册的符号
            startup_class: 入口类名

        Raises:
            PluginClassNotFoundError: 入口文件执行失败时抛出
            PluginRegistrationError: 入口文件的 register 函数失败时抛出
        """
        module_name = f"{MODULE_PREFIX}.{entry_file.parent.name.replace('-', '_')}"
        spec = importlib.util.spec_from_file_location(module_name, entry_file)
        if not spec or not spec.loader:
            raise PluginClassNotFoundError(f"Cannot load plugin entry file: {entry_file}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise PluginClassNotFoundError(
                f"Failed to execute plugin entry file {entry_file}: {e}"
            ) from e

        register = getattr(module, "register", None)
        if callable(register) and not inspect.isclass(register):
            try:
                register(self)
            except PluginRegistrationError:
                raise
            except Exception as e:
                raise PluginRegistrationError(
                    f"register() in plugin entry file {entry_file} failed: {e}"
                ) from e

        if symbol in self:
            return

        plugin_class = getattr(module, startup_class, None)
        if inspect.isclass(plugin_class):
            self.register(symbol, plugin_class)
            logger.info(f"Registered {startup_class} from {entry_file} as {symbol}")
