"""Event 出站数据模型

事件构造完成后不可变，仅序列化一次。
字段名即线上 JSON 名（snake_case），值为 None 的字段在序列化时省略。
"""

from pydantic import BaseModel, ConfigDict, Field, JsonValue

# 事件属性：字符串 key -> JSON 可表示的值
EventProperties = dict[str, JsonValue]


class DeviceMetadata(BaseModel):
    """设备/应用元数据 -- 每个会话只从 MetadataProvider 读取一次"""

    language: str | None = Field(default=None, description="界面语言（如 en）")
    app_version: str | None = Field(default=None, description="宿主应用版本")
    app_install_date: str | None = Field(default=None, description="宿主应用安装日期")
    os_name: str | None = Field(default=None, description="操作系统名称")
    os_version: str | None = Field(
        default=None,
        description="操作系统主版本号（出于隐私只保留主版本）",
    )
    device_manufacturer: str | None = Field(default=None, description="设备厂商")
    device_model: str | None = Field(default=None, description="设备型号")


class Event(BaseModel):
    """出站事件

    previous_event / previous_event_datetime_utc 在同一会话链路的第一个事件上缺省。
    first_of_hour 等字段仅在开启唯一事件统计时出现。
    """

    model_config = ConfigDict(frozen=True)

    # 身份
    event: str = Field(min_length=1, description="事件名称")
    datetime_utc: str = Field(description="UTC 时间，格式 YYYY-MM-DD HH:MM:SS")
    datetime_local: str | None = Field(default=None, description="本地时间")
    timezone: str | None = Field(default=None, description="本地时区名称")

    # 属性（合并 super properties 后的紧凑 JSON 字符串）
    properties: str | None = Field(default=None, description="事件属性 JSON 字符串")

    # 客户端描述
    client_type: str = Field(description="客户端类型标签")
    client_version: str = Field(description="客户端库版本")
    client_config: str = Field(description="配置指纹，如 110")

    # 元数据
    language: str | None = None
    app_version: str | None = None
    app_install_date: str | None = None
    os_name: str | None = None
    os_version: str | None = None
    device_manufacturer: str | None = None
    device_model: str | None = None

    # 唯一性标记
    first_of_session: bool | None = None
    first_of_hour: bool | None = None
    first_of_day: bool | None = None
    first_of_week: bool | None = None
    first_of_month: bool | None = None
    first_of_quarter: bool | None = None

    # 前序事件链路
    previous_event: str | None = None
    previous_event_datetime_utc: str | None = None

    def to_wire_json(self) -> str:
        """序列化为线上 JSON（省略 None 字段）"""
        return self.model_dump_json(exclude_none=True)
