"""Flightdeck Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    NESTED_IN,
    PERIOD_ORDER,
    PERSISTED_PERIODS,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    LifecycleSignal,
    Period,
    SessionState,
    SessionTransition,
    validate_transition,
)
from .event import DeviceMetadata, Event, EventProperties
from .tracking import PeriodTrackingSet

__all__ = [
    # 枚举
    "Period",
    "LifecycleSignal",
    "SessionState",
    "SessionTransition",
    "PERIOD_ORDER",
    "PERSISTED_PERIODS",
    "NESTED_IN",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    # Event
    "Event",
    "EventProperties",
    "DeviceMetadata",
    # 唯一性统计
    "PeriodTrackingSet",
]
