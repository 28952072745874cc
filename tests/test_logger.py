# -*- coding: utf-8 -*-
"""
日志配置测试
"""

import logging

import pytest

from pluginkit.logger import DATE_FORMAT, LOG_FORMAT, setup_logging


@pytest.fixture(autouse=True)
def restore_loggers():
    """测试结束后移除安装的处理器并恢复日志级别"""
    loggers = [logging.getLogger("pluginkit"), logging.getLogger("plugin")]
    levels = [logger.level for logger in loggers]
    yield
    for logger, level in zip(loggers, levels):
        for handler in list(logger.handlers):
            if getattr(handler, "_pluginkit_handler", False):
                logger.removeHandler(handler)
                handler.close()
        logger.setLevel(level)


def _installed(logger):
    return [h for h in logger.handlers if getattr(h, "_pluginkit_handler", False)]


def test_setup_logging_configures_both_namespaces():
    """测试同时配置 pluginkit 和插件日志"""
    root = setup_logging("debug")

    assert root.name == "pluginkit"
    assert root.level == logging.DEBUG
    assert logging.getLogger("plugin").level == logging.DEBUG

    handler = _installed(root)[0]
    assert handler.formatter._fmt == LOG_FORMAT
    assert handler.formatter.datefmt == DATE_FORMAT


def test_setup_logging_replaces_handlers():
    """测试重复调用不会叠加处理器"""
    setup_logging("INFO")
    setup_logging("WARNING")

    assert len(_installed(logging.getLogger("pluginkit"))) == 1
    assert logging.getLogger("pluginkit").level == logging.WARNING


def test_setup_logging_file(tmp_path):
    """测试写入日志文件"""
    log_file = tmp_path / "pluginkit.log"
    setup_logging("INFO", log_file=str(log_file))

    logging.getLogger("pluginkit.core.plugin_registry").info("Activated plugin: blog")
    for handler in _installed(logging.getLogger("pluginkit")):
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "INFO - pluginkit.core.plugin_registry - Activated plugin: blog" in content


def test_setup_logging_invalid_level():
    """测试无效的日志级别"""
    with pytest.raises(ValueError, match="无效的日志级别"):
        setup_logging("LOUD")
