# -*- coding: utf-8 -*-
"""
PluginKit 核心异常
"""


class PluginKitException(Exception):
    """所有 PluginKit 自定义异常的基类。"""

    pass


# region 插件异常


class PluginError(PluginKitException):
    """与插件相关的错误的基类。"""

    def __init__(self, message: str, plugin_name: str = ""):
        super().__init__(message)
        self.plugin_name = plugin_name


class PluginAlreadyActiveError(PluginError):
    """当激活一个已处于激活状态的插件时引发。"""

    pass


class PluginNotActiveError(PluginError):
    """当停用或实例化一个未激活的插件时引发。"""

    pass


class PluginClassNotFoundError(PluginError, LookupError):
    """当无法解析插件的实现类时引发。"""

    pass


class PluginInterfaceError(PluginError, TypeError):
    """当插件实现没有满足生命周期接口时引发。"""

    pass


class PluginEntryFileMissingError(PluginError, FileNotFoundError):
    """当插件入口文件不存在时引发。"""

    pass


class PluginRegistrationError(PluginError):
    """当插件工厂注册失败时引发。"""

    pass


class PluginLifecycleError(PluginError):
    """插件生命周期钩子执行失败的基类。"""

    pass


class PluginInitError(PluginLifecycleError):
    """当插件 init 钩子失败时引发。"""

    pass


class PluginActivationError(PluginLifecycleError):
    """当插件 activate 钩子失败时引发，此时持久化记录已回滚。"""

    pass


class PluginDeactivationError(PluginLifecycleError):
    """当插件 deactivate 钩子失败时引发，此时持久化记录已恢复。"""

    pass


# endregion

# region 清单、存储和配置异常


class ManifestError(PluginKitException, ValueError):
    """当插件清单文件无法读取或无效时引发。"""

    pass


class PluginStoreError(PluginKitException):
    """在插件表读写过程中发生数据库错误时引发。"""

    pass


class ConfigurationError(PluginKitException, ValueError):
    """当注册表配置无效时引发。"""

    pass


# endregion
