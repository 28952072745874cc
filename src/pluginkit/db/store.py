# -*- coding: utf-8 -*-
"""
插件持久化状态存储

基于 SQLAlchemy Core 对插件表做最基本的增删查。
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from ..exceptions import PluginStoreError
from .tables import DEFAULT_TABLE_NAME, VERSION_LENGTH, make_plugin_table

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PluginRecord:
    """插件表中的一行"""

    id: int
    name: str
    version: str
    created: Optional[datetime] = None


class PluginStore:
    """
    插件表存储

    每个操作都在独立事务中完成，调用方负责在失败时做补偿写入。
    """

    def __init__(
        self,
        engine: Union[sa.Engine, str],
        table_name: str = DEFAULT_TABLE_NAME,
    ):
        """
        Args:
            engine: SQLAlchemy 引擎或数据库 URL
            table_name: 插件表名
        """
        if isinstance(engine, str):
            engine = sa.create_engine(engine)
        self._engine = engine
        self._metadata = sa.MetaData()
        self._table = make_plugin_table(self._metadata, table_name)

    @property
    def engine(self) -> sa.Engine:
        return self._engine

    @property
    def table(self) -> sa.Table:
        return self._table

    @property
    def table_name(self) -> str:
        return self._table.name

    @property
    def dialect(self) -> str:
        """数据库方言名，例如 sqlite、mysql、postgresql"""
        return self._engine.dialect.name

    def table_exists(self) -> bool:
        """检查插件表是否存在"""
        try:
            return sa.inspect(self._engine).has_table(self._table.name)
        except SQLAlchemyError as e:
            raise PluginStoreError(f"Failed to inspect table {self._table.name}: {e}") from e

    def install(self) -> bool:
        """
        插件表不存在时创建

        Returns:
            本次调用是否创建了表
        """
        if self.table_exists():
            return False

        try:
            self._table.create(self._engine, checkfirst=True)
        except SQLAlchemyError as e:
            raise PluginStoreError(f"Failed to create table {self._table.name}: {e}") from e

        logger.info(f"Created plugin table '{self._table.name}' ({self.dialect})")
        return True

    def exists(self, name: str) -> bool:
        """检查某个插件是否有持久化记录"""
        return self.fetch(name) is not None

    def fetch(self, name: str) -> Optional[PluginRecord]:
        """
        读取插件记录

        Returns:
            插件记录，不存在时返回None
        """
        stmt = sa.select(self._table).where(self._table.c.name == name)
        try:
            with self._engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as e:
            raise PluginStoreError(f"Failed to query plugin {name}: {e}") from e

        if row is None:
            return None
        return PluginRecord(
            id=row["id"], name=row["name"], version=row["version"], created=row["created"]
        )

    def insert(self, name: str, version: str = "0.0.0") -> PluginRecord:
        """
        写入插件记录

        Raises:
            PluginStoreError: 写入失败（包括重名）时抛出
        """
        if len(version) > VERSION_LENGTH:
            logger.warning(
                f"Version '{version}' of plugin {name} exceeds {VERSION_LENGTH} chars, truncating"
            )
            version = version[:VERSION_LENGTH]

        stmt = sa.insert(self._table).values(name=name, version=version)
        try:
            with self._engine.begin() as conn:
                result = conn.execute(stmt)
                plugin_id = result.inserted_primary_key[0]
        except SQLAlchemyError as e:
            raise PluginStoreError(f"Failed to insert plugin {name}: {e}") from e

        logger.debug(f"Inserted plugin record {name} ({version}) with id {plugin_id}")
        return PluginRecord(id=plugin_id, name=name, version=version)

    def delete(self, name: str) -> bool:
        """
        删除插件记录

        Returns:
            是否删除了记录
        """
        stmt = sa.delete(self._table).where(self._table.c.name == name)
        try:
            with self._engine.begin() as conn:
                result = conn.execute(stmt)
        except SQLAlchemyError as e:
            raise PluginStoreError(f"Failed to delete plugin {name}: {e}") from e

        logger.debug(f"Deleted plugin record {name}")
        return result.rowcount > 0

    def list_records(self) -> List[PluginRecord]:
        """按名称列出所有插件记录"""
        stmt = sa.select(self._table).order_by(self._table.c.name)
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            raise PluginStoreError(f"Failed to list plugin records: {e}") from e

        return [
            PluginRecord(
                id=row["id"], name=row["name"], version=row["version"], created=row["created"]
            )
            for row in rows
        ]
