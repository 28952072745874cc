# -*- coding: utf-8 -*-
"""
插件描述符模型

每个插件目录可以带一个清单文件（plugin.yaml / plugin.yml / plugin.json），
描述插件名称、版本和自动加载信息。没有清单时根据目录信息合成默认描述符。
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import ManifestError

logger = logging.getLogger(__name__)

DEFAULT_MANIFEST_FILES = ("plugin.yaml", "plugin.yml", "plugin.json")


class AutoloadInfo(BaseModel):
    """自动加载信息"""

    namespace: Optional[str] = Field(default=None, description="实现类所在的命名空间（点分路径）")
    entry_point: Optional[str] = Field(default=None, description="插件入口文件，相对插件目录")
    startup_class: Optional[str] = Field(default=None, description="入口类名，默认使用注册表配置")

    model_config = ConfigDict(extra="allow")

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: Optional[str]) -> Optional[str]:
        """去掉首尾的分隔符"""
        if v is None:
            return v
        v = v.strip().strip(".").replace("\\", ".").strip(".")
        return v or None


class PluginDescriptor(BaseModel):
    """
    插件描述符

    只读，字段全部可选并显式给出默认值；清单中的未知字段原样保留。
    """

    name: str = Field(..., description="插件名称")
    version: Optional[str] = Field(default=None, description="插件版本")
    description: str = Field(default="", description="插件描述")
    time: Optional[str] = Field(default=None, description="发布时间或目录创建时间 (ISO日期)")
    autoload: Optional[AutoloadInfo] = Field(default=None, description="自动加载信息")
    synthesized: bool = Field(default=False, description="是否由目录信息合成")

    model_config = ConfigDict(extra="allow", frozen=True)

    @field_validator("version", mode="before")
    @classmethod
    def validate_version(cls, v: Any) -> Optional[str]:
        """
        检查版本格式，空值视为未声明

        无法解析的版本只记录警告并原样保留，插件表按字符串存储版本。
        """
        if v is None:
            return None
        v = str(v).strip()
        if not v:
            return None

        from packaging import version

        try:
            version.parse(v.lstrip("vV"))
        except version.InvalidVersion:
            logger.warning(f"Plugin manifest declares a non-standard version: {v}")
        return v

    @field_validator("time", mode="before")
    @classmethod
    def validate_time(cls, v: Any) -> Optional[str]:
        """YAML 中的日期会被解析成 date 对象，统一转换为字符串"""
        if isinstance(v, (date, datetime)):
            return v.isoformat()
        return v

    def resolved_version(self, default: str = "0.0.0") -> str:
        """获取版本，未声明时返回默认值"""
        return self.version or default


class ManifestLoader:
    """
    插件清单加载器

    负责定位、解析清单文件以及在缺省时合成描述符。
    """

    def __init__(
        self,
        manifest_files: Sequence[str] = DEFAULT_MANIFEST_FILES,
        name_prefix: str = "pluginkit/",
        placeholder_version: str = "0.0.1",
    ):
        self.manifest_files = tuple(manifest_files)
        self.name_prefix = name_prefix
        self.placeholder_version = placeholder_version

    def find_manifest(self, plugin_dir: Path) -> Optional[Path]:
        """按顺序查找第一个可读的清单文件"""
        for file_name in self.manifest_files:
            candidate = plugin_dir / file_name
            if candidate.is_file():
                return candidate
        return None

    def load(self, plugin_dir: Path, plugin_name: str) -> PluginDescriptor:
        """
        加载插件描述符

        Args:
            plugin_dir: 插件目录
            plugin_name: 清理后的插件名

        Returns:
            插件描述符

        Raises:
            ManifestError: 清单文件格式错误时抛出
        """
        manifest_path = self.find_manifest(plugin_dir)
        if manifest_path is None:
            return self.synthesize(plugin_dir, plugin_name)
        return self.load_from_file(manifest_path)

    @staticmethod
    def load_from_file(manifest_path: Path) -> PluginDescriptor:
        """从文件加载描述符"""
        suffix = manifest_path.suffix.lower()
        try:
            with open(manifest_path, "r", encoding="utf-8") as f:
                if suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                elif suffix == ".json":
                    data = json.load(f)
                else:
                    raise ManifestError(f"不支持的清单文件格式: {manifest_path.suffix}")
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ManifestError(f"读取插件清单失败 {manifest_path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(f"插件清单必须是映射结构: {manifest_path}")

        data = dict(data)
        data.setdefault("name", manifest_path.parent.name)
        data.pop("synthesized", None)

        try:
            return PluginDescriptor(**data)
        except ValidationError as e:
            raise ManifestError(f"插件清单无效 {manifest_path}: {e}") from e

    def synthesize(self, plugin_dir: Path, plugin_name: str) -> PluginDescriptor:
        """根据目录信息合成默认描述符"""
        created = date.today()
        if plugin_dir.is_dir():
            created = datetime.fromtimestamp(plugin_dir.stat().st_ctime).date()

        return PluginDescriptor(
            name=f"{self.name_prefix}{plugin_name}",
            version=self.placeholder_version,
            time=created.isoformat(),
            synthesized=True,
        )

    @staticmethod
    def save_to_file(
        descriptor: PluginDescriptor, manifest_path: Path, format: str = "yaml"
    ) -> None:
        """保存描述符到清单文件"""
        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        data: Dict[str, Any] = descriptor.model_dump(
            exclude_none=True, exclude={"synthesized"}
        )

        with open(manifest_path, "w", encoding="utf-8") as f:
            if format.lower() == "yaml":
                yaml.safe_dump(data, f, default_flow_style=False, allow_unicode=True)
            elif format.lower() == "json":
                json.dump(data, f, ensure_ascii=False, indent=2)
            else:
                raise ManifestError(f"不支持的保存格式: {format}")
