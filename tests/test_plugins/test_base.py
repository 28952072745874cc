# -*- coding: utf-8 -*-
"""
插件基类测试
"""

import pytest

from pluginkit.exceptions import PluginLifecycleError
from pluginkit.plugins.base import BasePlugin, PluginIface, PluginState

from ..helpers import write_plugin


class SamplePlugin(BasePlugin):
    """记录钩子调用的插件"""

    def __init__(self, plugin_id, name, fail_on=None):
        super().__init__(plugin_id, name)
        self.fail_on = fail_on
        self.calls = []

    def _hook(self, stage):
        if stage == self.fail_on:
            raise RuntimeError(f"{stage} failed")
        self.calls.append(stage)

    def _on_init(self):
        self._hook("init")

    def _on_activate(self):
        self._hook("activate")

    def _on_deactivate(self):
        self._hook("deactivate")


def test_base_plugin_is_abstract():
    """测试不能直接实例化基类"""
    with pytest.raises(TypeError):
        BasePlugin(1, "blog")


def test_plugin_iface_is_abstract():
    """测试接口不能直接实例化"""
    with pytest.raises(TypeError):
        PluginIface()


class TestLifecycle:
    """测试生命周期钩子"""

    def test_initial_state(self):
        """测试初始状态"""
        plugin = SamplePlugin(3, "blog")
        assert plugin.plugin_id == 3
        assert plugin.name == "blog"
        assert plugin.state == PluginState.CREATED
        assert plugin.registry is None
        assert plugin.logger.name == "plugin.blog"
        assert repr(plugin) == "SamplePlugin(id=3, name='blog')"

    def test_hooks_update_state(self):
        """测试钩子调用后状态变化"""
        plugin = SamplePlugin(1, "blog")

        plugin.init()
        assert plugin.state == PluginState.INITIALIZED
        plugin.activate()
        assert plugin.state == PluginState.ACTIVATED
        assert plugin.get_status()["activated_at"] is not None
        plugin.deactivate()
        assert plugin.state == PluginState.DEACTIVATED
        assert plugin.get_status()["activated_at"] is None

        assert plugin.calls == ["init", "activate", "deactivate"]

    @pytest.mark.parametrize("stage", ["init", "activate", "deactivate"])
    def test_hook_failure(self, stage):
        """测试钩子失败时进入错误状态"""
        plugin = SamplePlugin(1, "blog", fail_on=stage)

        with pytest.raises(PluginLifecycleError, match=f"Plugin {stage} failed") as exc_info:
            getattr(plugin, stage)()

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert exc_info.value.plugin_name == "blog"
        assert plugin.state == PluginState.ERROR

        status = plugin.get_status()
        assert status["state"] == "error"
        assert status["error_count"] == 1
        assert status["last_error"] == f"{stage} failed"


class TestInfo:
    """测试描述符访问"""

    def test_get_info_without_registry(self):
        """测试没有注册表时返回最小描述符"""
        info = SamplePlugin(1, "blog").get_info()
        assert info.name == "blog"
        assert info.version is None

    def test_get_info_from_registry(self, registry, plugin_dir):
        """测试通过注册表读取清单"""
        write_plugin(plugin_dir, "blog", manifest={"name": "ttek/blog", "version": "4.0.0"})
        plugin = registry.activate("blog")

        info = plugin.get_info()
        assert info.name == "ttek/blog"
        assert info.version == "4.0.0"
