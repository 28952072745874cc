# -*- coding: utf-8 -*-
"""
日志配置模块
"""
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    配置 pluginkit 及插件日志

    重复调用只会替换之前安装的处理器。

    Args:
        level: 日志级别名
        log_file: 额外写入的日志文件

    Returns:
        pluginkit 根日志记录器
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"无效的日志级别: {level}")

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    root = logging.getLogger("pluginkit")
    # 插件日志使用 plugin.<name> 命名空间
    plugin_root = logging.getLogger("plugin")

    for logger in (root, plugin_root):
        for handler in list(logger.handlers):
            if getattr(handler, "_pluginkit_handler", False):
                logger.removeHandler(handler)
                handler.close()
        for handler in handlers:
            handler.setFormatter(formatter)
            handler._pluginkit_handler = True  # type: ignore[attr-defined]
            logger.addHandler(handler)
        logger.setLevel(numeric_level)

    return root
