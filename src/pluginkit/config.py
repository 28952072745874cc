# -*- coding: utf-8 -*-
"""
PluginKit 注册表配置
提供基于 Pydantic 的配置验证机制，支持环境变量解析和多环境配置
"""

import copy
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import ConfigurationError
from .plugins.manifest import DEFAULT_MANIFEST_FILES

# 环境变量匹配模式: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\${([A-Za-z0-9_]+)}")


class RegistrySettings(BaseModel):
    """
    注册表配置

    1. **严格模式验证**：禁止额外字段，防止配置错误
    2. **环境变量解析**：自动解析 "${VAR_NAME}" 格式的环境变量
    3. **多环境配置**：根据 APP_ENV 环境变量加载不同环境的配置
    """

    plugin_path: str = Field(default="plugins", description="插件根目录")
    database_url: str = Field(default="sqlite:///pluginkit.sqlite3", description="SQLAlchemy 数据库URL")
    table_name: str = Field(default="plugin", description="插件表名")
    startup_class: str = Field(default="Plugin", description="插件入口类名")
    entry_file: str = Field(default="plugin.py", description="插件入口文件名")
    manifest_files: Tuple[str, ...] = Field(default=DEFAULT_MANIFEST_FILES, description="清单文件名，按顺序查找")
    default_version: str = Field(default="0.0.0", description="描述符缺少版本时写入插件表的版本")
    placeholder_version: str = Field(default="0.0.1", description="合成描述符的占位版本")
    name_prefix: str = Field(default="pluginkit/", description="合成描述符的名称前缀")
    strict_init: bool = Field(default=True, description="启动初始化失败时是否直接抛出")
    log_level: str = Field(default="INFO", description="日志级别")

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @model_validator(mode="before")
    @classmethod
    def _resolve_env_vars(cls, data: Any) -> Any:
        """
        在其他验证执行前递归解析环境变量

        Raises:
            ValueError: 当环境变量未设置时抛出
        """
        if not isinstance(data, dict):
            return data

        def _resolve(value: Any) -> Any:
            if isinstance(value, str):
                def _replace(match: "re.Match[str]") -> str:
                    env_var_name = match.group(1)
                    env_var_value = os.getenv(env_var_name)
                    if env_var_value is None:
                        raise ValueError(f"环境变量 '{env_var_name}' 未设置")
                    return env_var_value

                return ENV_VAR_PATTERN.sub(_replace, value)
            elif isinstance(value, dict):
                return {k: _resolve(v) for k, v in value.items()}
            elif isinstance(value, (list, tuple)):
                return [_resolve(v) for v in value]
            return value

        return _resolve(data)

    @classmethod
    def load_from_dict(
        cls, config_data: Dict[str, Any], env: Optional[str] = None
    ) -> "RegistrySettings":
        """
        从字典加载配置，支持环境特定的配置覆盖

        配置结构示例：
        {
            "default": {"plugin_path": "plugins"},
            "production": {"database_url": "${DATABASE_URL}"}
        }

        没有 "default" 段时整个字典视为配置本身。

        Args:
            config_data: 配置字典
            env: 目标环境，为 None 时使用 os.getenv("APP_ENV", "development")
        """
        if "default" not in config_data:
            return cls(**config_data)

        if env is None:
            env = os.getenv("APP_ENV", "development")

        base_config = config_data.get("default") or {}
        env_config = config_data.get(env) or {}

        return cls(**_deep_merge(base_config, env_config))


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """深度合并两个字典，overrides 中的值会覆盖 base 中的值"""
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    env: Optional[str] = None,
    **overrides: Any,
) -> RegistrySettings:
    """
    加载注册表配置

    Args:
        config_path: YAML 或 JSON 配置文件路径，为 None 时使用默认配置
        env: 目标环境
        **overrides: 覆盖项，值为 None 的项被忽略

    Returns:
        注册表配置

    Raises:
        ConfigurationError: 配置文件不存在或内容无效时抛出
    """
    data: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(f"配置文件不存在: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f) or {}
                else:
                    data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"读取配置文件失败 {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"配置文件必须是映射结构: {path}")

    try:
        settings = RegistrySettings.load_from_dict(data, env=env)
        updates = {k: v for k, v in overrides.items() if v is not None}
        if updates:
            settings = RegistrySettings(**{**settings.model_dump(), **updates})
    except ValidationError as e:
        error_details = []
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            error_details.append(f"{field}: {error['msg']}")
        raise ConfigurationError(f"配置验证失败: {'; '.join(error_details)}") from e

    return settings
