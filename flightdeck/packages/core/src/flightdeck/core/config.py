"""Tracker 配置 -- 从环境变量加载，可通过构造参数覆盖

配置是 create_tracker() 的必填参数，不存在"未初始化就使用"的全局单例。
缺少 project_id / project_token 时 Pydantic 校验失败，这是唯一允许的硬错误。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, SecretStr, field_validator

from .models.enums import PERSISTED_PERIODS, Period

log = structlog.get_logger()

# 客户端描述
CLIENT_TYPE = "Pythonlib"
CLIENT_VERSION = "1.0.0"

# 自动事件保留前缀（用户事件不允许使用）
AUTOMATIC_EVENTS_PREFIX = "(FD) "
SESSION_START_EVENT = "Session start"
SESSION_END_EVENT = "Session end"

# 唯一性状态持久化 key
STATE_STORAGE_KEY = "flightdeck.events_tracked_before"

# 后台超过该秒数后回到前台视为新会话
DEFAULT_SESSION_TIMEOUT_S = 60


class TrackerConfig(BaseModel):
    """Tracker 配置

    环境变量:
        FLIGHTDECK_PROJECT_ID: 项目 ID（作为请求 query 参数）
        FLIGHTDECK_PROJECT_TOKEN: 项目写入 token（Bearer 认证）
        FLIGHTDECK_ADD_EVENT_METADATA: 是否附加设备/应用元数据（默认 true）
        FLIGHTDECK_TRACK_AUTOMATIC_EVENTS: 是否发送自动事件（默认 true）
        FLIGHTDECK_TRACK_UNIQUE_EVENTS: 是否开启多周期唯一性统计（默认 false）
        FLIGHTDECK_UNIQUE_PERIODS: 开启的统计周期，逗号分隔
        FLIGHTDECK_SESSION_TIMEOUT_S: 会话超时（秒，默认 60）
    """

    project_id: str = Field(min_length=1, description="项目 ID")
    project_token: SecretStr = Field(description="项目写入 token")
    add_event_metadata: bool = Field(default=True, description="附加设备/应用元数据")
    track_automatic_events: bool = Field(default=True, description="发送自动事件")
    track_unique_events: bool = Field(
        default=False,
        description="开启 hour/day/week/month/quarter 唯一性统计及持久化",
    )
    unique_periods: list[Period] = Field(
        default_factory=lambda: list(PERSISTED_PERIODS),
        description="开启的统计周期（session 始终开启，不在此列）",
    )
    session_timeout_s: int = Field(
        default=DEFAULT_SESSION_TIMEOUT_S,
        ge=0,
        description="后台超时阈值（秒）",
    )

    @field_validator("project_token")
    @classmethod
    def _token_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("project_token 不能为空")
        return value

    @field_validator("unique_periods")
    @classmethod
    def _normalize_periods(cls, value: list[Period]) -> list[Period]:
        # 去重、去掉 session，按周期长度排序
        requested = set(value)
        return [p for p in PERSISTED_PERIODS if p in requested]

    @property
    def client_config(self) -> str:
        """配置指纹

        位 1: add_event_metadata
        位 2: track_automatic_events
        位 3: track_unique_events
        """
        flags = (
            self.add_event_metadata,
            self.track_automatic_events,
            self.track_unique_events,
        )
        return "".join("1" if flag else "0" for flag in flags)


_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(env_var: str, val: str) -> bool | None:
    normalized = val.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    log.warning("invalid_bool_config", env_var=env_var, value=val)
    return None


def load_tracker_config(**overrides) -> TrackerConfig:
    """从环境变量加载 Tracker 配置

    环境变量映射:
        FLIGHTDECK_PROJECT_ID -> project_id
        FLIGHTDECK_PROJECT_TOKEN -> project_token
        FLIGHTDECK_ADD_EVENT_METADATA -> add_event_metadata (默认 true)
        FLIGHTDECK_TRACK_AUTOMATIC_EVENTS -> track_automatic_events (默认 true)
        FLIGHTDECK_TRACK_UNIQUE_EVENTS -> track_unique_events (默认 false)
        FLIGHTDECK_UNIQUE_PERIODS -> unique_periods (默认 hour,day,week,month,quarter)
        FLIGHTDECK_SESSION_TIMEOUT_S -> session_timeout_s (默认 60)

    无效值记录 warning 并回退默认值，不阻塞启动。

    Args:
        **overrides: 显式参数，优先于环境变量

    Returns:
        TrackerConfig 实例

    Raises:
        pydantic.ValidationError: 缺少 project_id / project_token
    """
    kwargs: dict = {}

    if val := os.environ.get("FLIGHTDECK_PROJECT_ID"):
        kwargs["project_id"] = val

    if val := os.environ.get("FLIGHTDECK_PROJECT_TOKEN"):
        kwargs["project_token"] = SecretStr(val)

    for field_name, env_var in (
        ("add_event_metadata", "FLIGHTDECK_ADD_EVENT_METADATA"),
        ("track_automatic_events", "FLIGHTDECK_TRACK_AUTOMATIC_EVENTS"),
        ("track_unique_events", "FLIGHTDECK_TRACK_UNIQUE_EVENTS"),
    ):
        if val := os.environ.get(env_var):
            parsed = _parse_bool(env_var, val)
            if parsed is not None:
                kwargs[field_name] = parsed

    if val := os.environ.get("FLIGHTDECK_UNIQUE_PERIODS"):
        try:
            kwargs["unique_periods"] = [
                Period(item.strip().lower()) for item in val.split(",") if item.strip()
            ]
        except ValueError:
            log.warning(
                "invalid_periods_config",
                env_var="FLIGHTDECK_UNIQUE_PERIODS",
                value=val,
            )

    if val := os.environ.get("FLIGHTDECK_SESSION_TIMEOUT_S"):
        try:
            kwargs["session_timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="FLIGHTDECK_SESSION_TIMEOUT_S",
                value=val,
                fallback=DEFAULT_SESSION_TIMEOUT_S,
            )

    kwargs.update(overrides)
    return TrackerConfig(**kwargs)


def get_db_path() -> str:
    """获取唯一性状态 SQLite 数据库路径"""
    return os.environ.get(
        "FLIGHTDECK_DB_PATH",
        str(Path(os.environ.get("FLIGHTDECK_DATA_DIR", "data")) / "sqlite" / "flightdeck.db"),
    )
