# -*- coding: utf-8 -*-
"""
插件表定义

表中存在某个名称的行即表示该插件处于激活状态。
DDL 由 SQLAlchemy 按数据库方言生成（SQLite、MySQL、PostgreSQL 等）。
"""

import sqlalchemy as sa

DEFAULT_TABLE_NAME = "plugin"
NAME_LENGTH = 128
VERSION_LENGTH = 16


def make_plugin_table(metadata: sa.MetaData, table_name: str = DEFAULT_TABLE_NAME) -> sa.Table:
    """
    创建插件表对象

    Args:
        metadata: 所属的 MetaData
        table_name: 表名

    Returns:
        插件表
    """
    return sa.Table(
        table_name,
        metadata,
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(NAME_LENGTH), nullable=False),
        sa.Column("version", sa.String(VERSION_LENGTH), nullable=False),
        sa.Column(
            "created", sa.DateTime, nullable=False, server_default=sa.func.now()
        ),
        sa.UniqueConstraint("name", name=f"uq_{table_name}_name"),
    )
