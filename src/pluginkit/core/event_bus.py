# -*- coding: utf-8 -*-
"""
PluginKit 事件总线

注册表在安装插件表、激活、停用和启动初始化时发布通知。处理函数在发布者的
调用栈中同步执行，抛出的异常只记录日志，不影响注册表操作。
"""

import fnmatch
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..exceptions import PluginKitException
from .events.registry_event import RegistryEvent

EventHandler = Callable[[RegistryEvent], Any]


class EventBusError(PluginKitException):
    """事件总线相关异常"""

    pass


class EventSubscriptionError(EventBusError):
    """事件订阅异常"""

    pass


class EventPublishError(EventBusError):
    """事件发布异常"""

    pass


class EventBus:
    """
    同步事件总线

    订阅的事件类型支持 fnmatch 通配（如 ``com.pluginkit.plugin.*``），
    处理函数按优先级执行，1 最先，同优先级按订阅顺序。
    """

    def __init__(self) -> None:
        # 订阅ID -> (事件类型模式, 优先级, 处理函数)
        self._handlers: Dict[str, Tuple[str, int, EventHandler]] = {}
        self._ids = itertools.count(1)
        self._logger = logging.getLogger(__name__)
        self._running = True

    def subscribe(self, event_type: str, handler: EventHandler, priority: int = 5) -> str:
        """
        订阅事件

        Args:
            event_type: 事件类型或通配模式
            handler: 接收 RegistryEvent 的处理函数
            priority: 优先级 (1-10)

        Returns:
            订阅ID

        Raises:
            EventSubscriptionError: 处理函数不可调用或优先级越界时抛出
        """
        if not callable(handler):
            raise EventSubscriptionError("Handler must be callable")
        if not 1 <= priority <= 10:
            raise EventSubscriptionError("Priority must be between 1 and 10")

        subscription_id = f"sub_{next(self._ids)}"
        self._handlers[subscription_id] = (event_type, priority, handler)
        self._logger.debug(f"Subscribed {subscription_id} to {event_type}")
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        """取消订阅，返回订阅是否存在"""
        return self._handlers.pop(subscription_id, None) is not None

    def publish(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        source: str = "pluginkit",
        subject: Optional[str] = None,
    ) -> List[Any]:
        """
        发布事件

        Returns:
            各处理函数的返回值，失败的处理函数对应 None

        Raises:
            EventPublishError: 事件总线已关闭时抛出
        """
        if not self._running:
            raise EventPublishError("Event bus is not running")

        event = RegistryEvent(type=event_type, source=source, subject=subject, data=data or {})
        # dict 保持订阅顺序，sorted 是稳定排序
        matched = sorted(
            (
                (priority, subscription_id, handler)
                for subscription_id, (pattern, priority, handler) in self._handlers.items()
                if fnmatch.fnmatchcase(event_type, pattern)
            ),
            key=lambda item: item[0],
        )

        results: List[Any] = []
        for _, subscription_id, handler in matched:
            try:
                results.append(handler(event))
            except Exception as e:
                self._logger.error(
                    f"Handler {subscription_id} failed on {event_type}: {e}", exc_info=True
                )
                results.append(None)
        return results

    def shutdown(self) -> None:
        """关闭事件总线并清空订阅"""
        self._running = False
        self._handlers.clear()
        self._logger.info("Event bus shut down")

    @property
    def is_running(self) -> bool:
        return self._running

    def __enter__(self) -> "EventBus":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
