# -*- coding: utf-8 -*-
"""
PluginKit 插件基类
提供插件接口标准和生命周期钩子
"""

import abc
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..exceptions import PluginLifecycleError
from .manifest import PluginDescriptor

if TYPE_CHECKING:
    from ..core.plugin_registry import PluginRegistry


class PluginState(Enum):
    """插件实例状态枚举"""

    CREATED = "created"
    INITIALIZED = "initialized"
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
    ERROR = "error"


class PluginIface(abc.ABC):
    """
    插件能力接口

    注册表只与满足此接口的对象打交道：每个实例持有自己的持久化ID、
    插件名以及对注册表的反向引用。
    """

    @property
    @abc.abstractmethod
    def plugin_id(self) -> int:
        """持久化记录ID"""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """清理后的插件名"""

    @abc.abstractmethod
    def set_registry(self, registry: "PluginRegistry") -> None:
        """注入注册表反向引用"""

    @abc.abstractmethod
    def init(self) -> None:
        """每次进程启动时对已激活插件调用"""

    @abc.abstractmethod
    def activate(self) -> None:
        """插件被激活时调用一次"""

    @abc.abstractmethod
    def deactivate(self) -> None:
        """插件被停用时调用一次"""

    @abc.abstractmethod
    def get_info(self) -> PluginDescriptor:
        """获取插件描述符（包含版本信息）"""


class BasePlugin(PluginIface):
    """
    插件基类

    插件入口文件中的实现类通常继承此类，只需实现 _on_init、
    _on_activate 和 _on_deactivate 三个钩子。
    """

    def __init__(self, plugin_id: int, name: str):
        """
        初始化插件

        Args:
            plugin_id: 持久化记录ID
            name: 清理后的插件名
        """
        self._plugin_id = plugin_id
        self._name = name
        self._registry: Optional["PluginRegistry"] = None
        self._state = PluginState.CREATED
        self._logger = logging.getLogger(f"plugin.{name}")
        self._error_count = 0
        self._last_error: Optional[Exception] = None
        self._activated_at: Optional[float] = None

    @property
    def plugin_id(self) -> int:
        return self._plugin_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def registry(self) -> Optional["PluginRegistry"]:
        """获取注册表"""
        return self._registry

    @property
    def state(self) -> PluginState:
        """获取插件状态"""
        return self._state

    @property
    def logger(self) -> logging.Logger:
        """获取插件日志记录器"""
        return self._logger

    def set_registry(self, registry: "PluginRegistry") -> None:
        self._registry = registry

    def get_info(self) -> PluginDescriptor:
        """
        获取插件描述符

        有注册表时读取插件目录中的清单，否则返回最小描述符。
        """
        if self._registry is not None:
            return self._registry.get_plugin_info(self._name)
        return PluginDescriptor(name=self._name)

    def get_status(self) -> Dict[str, Any]:
        """
        获取插件状态信息

        Returns:
            包含插件状态、错误信息等的字典
        """
        return {
            "id": self._plugin_id,
            "name": self._name,
            "state": self._state.value,
            "error_count": self._error_count,
            "last_error": str(self._last_error) if self._last_error else None,
            "activated_at": self._activated_at,
        }

    def init(self) -> None:
        """
        初始化插件

        Raises:
            PluginLifecycleError: 初始化失败时抛出
        """
        self._run_hook("init", self._on_init, PluginState.INITIALIZED)

    def activate(self) -> None:
        """
        激活插件

        Raises:
            PluginLifecycleError: 激活失败时抛出
        """
        self._run_hook("activate", self._on_activate, PluginState.ACTIVATED)
        self._activated_at = time.time()

    def deactivate(self) -> None:
        """
        停用插件

        Raises:
            PluginLifecycleError: 停用失败时抛出
        """
        self._run_hook("deactivate", self._on_deactivate, PluginState.DEACTIVATED)
        self._activated_at = None

    def _run_hook(self, stage: str, hook: Any, next_state: PluginState) -> None:
        try:
            self._logger.debug(f"Running {stage} hook for plugin {self._name}")
            hook()
            self._state = next_state
        except Exception as e:
            self._state = PluginState.ERROR
            self._last_error = e
            self._error_count += 1
            self._logger.error(f"Plugin {self._name} {stage} failed: {e}")
            raise PluginLifecycleError(
                f"Plugin {stage} failed: {e}", plugin_name=self._name
            ) from e

    # 抽象方法 - 子类必须实现

    @abc.abstractmethod
    def _on_init(self) -> None:
        """
        进程启动时调用
        在这里注册路由、监听器等运行时资源
        """
        pass

    @abc.abstractmethod
    def _on_activate(self) -> None:
        """
        插件激活时调用
        在这里执行安装逻辑，例如创建插件自己的数据表
        """
        pass

    @abc.abstractmethod
    def _on_deactivate(self) -> None:
        """
        插件停用时调用
        在这里执行卸载逻辑
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._plugin_id}, name='{self._name}')"
