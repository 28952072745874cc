# -*- coding: utf-8 -*-
"""
插件表存储测试
"""

import datetime

import pytest
import sqlalchemy as sa

from pluginkit.db.store import PluginRecord, PluginStore
from pluginkit.db.tables import NAME_LENGTH, VERSION_LENGTH, make_plugin_table
from pluginkit.exceptions import PluginStoreError


@pytest.fixture
def installed_store(store):
    store.install()
    return store


class TestPluginTable:
    """测试插件表结构"""

    def test_table_columns(self):
        """测试列定义"""
        table = make_plugin_table(sa.MetaData(), "extensions")

        assert table.name == "extensions"
        assert list(table.c.keys()) == ["id", "name", "version", "created"]
        assert table.c.id.primary_key is True
        assert table.c.name.type.length == NAME_LENGTH == 128
        assert table.c.version.type.length == VERSION_LENGTH == 16
        assert table.c.created.server_default is not None

    def test_name_is_unique(self):
        """测试插件名唯一约束"""
        table = make_plugin_table(sa.MetaData())
        unique_columns = [
            [column.name for column in constraint.columns]
            for constraint in table.constraints
            if isinstance(constraint, sa.UniqueConstraint)
        ]
        assert ["name"] in unique_columns


class TestInstall:
    """测试建表"""

    def test_install_creates_table_once(self, store):
        """测试只在表不存在时创建"""
        assert store.table_exists() is False
        assert store.install() is True
        assert store.table_exists() is True
        assert store.install() is False

    def test_store_from_url(self, db_url):
        """测试通过数据库URL创建存储"""
        plugin_store = PluginStore(db_url, table_name="extensions")
        assert plugin_store.dialect == "sqlite"
        assert plugin_store.table_name == "extensions"
        assert plugin_store.install() is True
        plugin_store.engine.dispose()


class TestRecords:
    """测试记录读写"""

    def test_insert_and_fetch(self, installed_store):
        """测试写入后读取"""
        inserted = installed_store.insert("blog", "1.2.0")

        record = installed_store.fetch("blog")

        assert isinstance(record, PluginRecord)
        assert record.id == inserted.id
        assert record.name == "blog"
        assert record.version == "1.2.0"
        assert isinstance(record.created, datetime.datetime)
        assert installed_store.exists("blog") is True

    def test_fetch_missing(self, installed_store):
        """测试读取不存在的记录"""
        assert installed_store.fetch("missing") is None
        assert installed_store.exists("missing") is False

    def test_insert_default_version(self, installed_store):
        """测试默认版本"""
        assert installed_store.insert("blog").version == "0.0.0"

    def test_insert_truncates_long_version(self, installed_store, caplog):
        """测试超长版本被截断"""
        record = installed_store.insert("blog", "1.0.0-alpha.1+build.20240301")

        assert record.version == "1.0.0-alpha.1+bu"
        assert installed_store.fetch("blog").version == "1.0.0-alpha.1+bu"
        assert "truncating" in caplog.text

    def test_insert_duplicate_fails(self, installed_store):
        """测试插件名重复写入失败"""
        installed_store.insert("blog")
        with pytest.raises(PluginStoreError, match="Failed to insert plugin blog"):
            installed_store.insert("blog")

    def test_delete(self, installed_store):
        """测试删除记录"""
        installed_store.insert("blog")

        assert installed_store.delete("blog") is True
        assert installed_store.delete("blog") is False
        assert installed_store.exists("blog") is False

    def test_list_records_sorted(self, installed_store):
        """测试按名称列出记录"""
        installed_store.insert("shop")
        installed_store.insert("blog")

        assert [record.name for record in installed_store.list_records()] == ["blog", "shop"]

    def test_query_without_table_fails(self, store):
        """测试表不存在时的数据库错误被包装"""
        with pytest.raises(PluginStoreError, match="Failed to query plugin blog"):
            store.fetch("blog")
