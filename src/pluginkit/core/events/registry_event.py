# -*- coding: utf-8 -*-
"""
注册表事件模型

字段沿用 CloudEvents 的属性名，方便转发到外部消息系统。
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class RegistryEvent(BaseModel):
    """插件注册表发出的一次通知"""

    specversion: str = Field(default="1.0", description="CloudEvents 属性版本")
    type: str = Field(..., min_length=1, description="事件类型，见 PluginEvents")
    source: str = Field(..., min_length=1, description="发布方")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    subject: Optional[str] = Field(default=None, description="相关插件名")
    data: Dict[str, Any] = Field(default_factory=dict)

    # 负载里会带注册表、描述符和插件实例
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @field_serializer("time")
    def serialize_time(self, value: datetime) -> str:
        return value.isoformat()

    def get(self, key: str, default: Any = None) -> Any:
        """读取负载字段"""
        return self.data.get(key, default)
