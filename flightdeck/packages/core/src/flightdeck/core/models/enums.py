"""枚举定义

包含统计周期 Period、生命周期信号 LifecycleSignal、会话状态 SessionState，
以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。
"""

from enum import StrEnum


class Period(StrEnum):
    """唯一性统计周期，按时长从短到长排列"""

    SESSION = "session"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


# 从短到长的周期顺序（压缩/重建依赖此顺序）
PERIOD_ORDER: tuple[Period, ...] = tuple(Period)

# 需要持久化的周期（session 仅驻留内存）
PERSISTED_PERIODS: tuple[Period, ...] = tuple(p for p in Period if p is not Period.SESSION)

# 周期 -> 完整包含它的更长周期
# ISO 周可以跨月/跨季度，因此 week 不嵌套在 month、quarter 中
NESTED_IN: dict[Period, tuple[Period, ...]] = {
    Period.HOUR: (Period.DAY, Period.WEEK, Period.MONTH, Period.QUARTER),
    Period.DAY: (Period.WEEK, Period.MONTH, Period.QUARTER),
    Period.WEEK: (),
    Period.MONTH: (Period.QUARTER,),
    Period.QUARTER: (),
}


class LifecycleSignal(StrEnum):
    """宿主应用生命周期信号"""

    BACKGROUNDED = "backgrounded"
    FOREGROUNDED = "foregrounded"
    TERMINATED = "terminated"


class SessionState(StrEnum):
    """会话状态机"""

    ACTIVE = "ACTIVE"
    BACKGROUNDED = "BACKGROUNDED"

    # 终态
    TERMINATED = "TERMINATED"


class SessionTransition(StrEnum):
    """处理一个生命周期信号后的结果"""

    NONE = "none"
    BACKGROUNDED = "backgrounded"
    RESUMED = "resumed"
    SESSION_RESTARTED = "session_restarted"
    TERMINATED = "terminated"
    IGNORED = "ignored"


# 合法状态流转
VALID_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.ACTIVE: {SessionState.BACKGROUNDED, SessionState.TERMINATED},
    SessionState.BACKGROUNDED: {
        SessionState.ACTIVE,
        SessionState.BACKGROUNDED,
        SessionState.TERMINATED,
    },
    # 终态不可再流转
    SessionState.TERMINATED: set(),
}

TERMINAL_STATES: set[SessionState] = {SessionState.TERMINATED}


def validate_transition(from_state: SessionState, to_state: SessionState) -> bool:
    """验证状态流转是否合法

    Args:
        from_state: 当前状态
        to_state: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_state, set())
    return to_state in allowed
