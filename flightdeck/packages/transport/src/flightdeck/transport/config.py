"""TransportConfig -- 事件出口配置加载

从环境变量加载配置，不硬编码采集端地址以外的任何值。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()

DEFAULT_API_URL = "https://api.flightdeck.cc/v0/events"
DEFAULT_TIMEOUT_S = 10


class TransportConfig(BaseModel):
    """Transport 包配置 -- 从环境变量加载

    环境变量:
        FLIGHTDECK_API_URL: 事件采集端地址
        FLIGHTDECK_SINK_MODE: 出口模式（http/log）
        FLIGHTDECK_TIMEOUT_S: 请求超时（秒，默认 10）
    """

    api_url: str = Field(
        default=DEFAULT_API_URL,
        description="事件采集端地址",
    )
    sink_mode: Literal["http", "log"] = Field(
        default="http",
        description="出口模式：http 发送到采集端 / log 只写日志",
    )
    timeout_s: int = Field(
        default=DEFAULT_TIMEOUT_S,
        ge=1,
        description="请求超时（秒）",
    )


def load_transport_config() -> TransportConfig:
    """从环境变量加载 Transport 配置

    环境变量映射:
        FLIGHTDECK_API_URL -> api_url (默认 https://api.flightdeck.cc/v0/events)
        FLIGHTDECK_SINK_MODE -> sink_mode (默认 "http")
        FLIGHTDECK_TIMEOUT_S -> timeout_s (默认 10)

    Returns:
        TransportConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("FLIGHTDECK_API_URL"):
        kwargs["api_url"] = val

    if val := os.environ.get("FLIGHTDECK_SINK_MODE"):
        kwargs["sink_mode"] = val

    if val := os.environ.get("FLIGHTDECK_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="FLIGHTDECK_TIMEOUT_S",
                value=val,
                fallback=DEFAULT_TIMEOUT_S,
            )

    return TransportConfig(**kwargs)
