# -*- coding: utf-8 -*-
"""
异常层次测试
"""

import pytest

from pluginkit import exceptions
from pluginkit.exceptions import (
    ConfigurationError,
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
    PluginLifecycleError,
    PluginNotActiveError,
    PluginRegistrationError,
    PluginStoreError,
)


@pytest.mark.parametrize(
    "exc_class",
    [
        PluginAlreadyActiveError,
        PluginNotActiveError,
        PluginClassNotFoundError,
        PluginInterfaceError,
        PluginEntryFileMissingError,
        PluginRegistrationError,
        PluginLifecycleError,
        PluginInitError,
        PluginActivationError,
        PluginDeactivationError,
    ],
)
def test_plugin_errors_carry_plugin_name(exc_class):
    """测试插件异常携带插件名"""
    error = exc_class("something went wrong", plugin_name="blog")

    assert isinstance(error, PluginError)
    assert isinstance(error, PluginKitException)
    assert error.plugin_name == "blog"
    assert str(error) == "something went wrong"


def test_plugin_name_defaults_to_empty():
    """测试插件名默认为空"""
    assert PluginError("boom").plugin_name == ""


@pytest.mark.parametrize(
    "exc_class, builtin",
    [
        (PluginClassNotFoundError, LookupError),
        (PluginInterfaceError, TypeError),
        (PluginEntryFileMissingError, FileNotFoundError),
        (ManifestError, ValueError),
        (ConfigurationError, ValueError),
    ],
)
def test_builtin_compatibility(exc_class, builtin):
    """测试异常可以按内置异常类型捕获"""
    with pytest.raises(builtin):
        raise exc_class("boom")


def test_lifecycle_hierarchy():
    """测试生命周期异常层次"""
    for exc_class in (PluginInitError, PluginActivationError, PluginDeactivationError):
        assert issubclass(exc_class, PluginLifecycleError)


def test_store_error_is_not_plugin_error():
    """测试存储异常独立于插件异常"""
    assert issubclass(PluginStoreError, PluginKitException)
    assert not issubclass(PluginStoreError, PluginError)


def test_all_exceptions_derive_from_base():
    """测试模块中所有异常都继承自基类"""
    for name in dir(exceptions):
        obj = getattr(exceptions, name)
        if isinstance(obj, type) and issubclass(obj, Exception):
            assert issubclass(obj, PluginKitException), name
