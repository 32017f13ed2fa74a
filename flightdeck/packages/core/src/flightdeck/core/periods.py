"""时钟与周期序号计算

周期序号在跨年时依旧唯一（包含年份信息），通过"不相等"判断周期翻转，
不依赖经过的时长。所有周期按本地时间计算。

系统时钟使用本地 IANA 时区（zoneinfo.ZoneInfo），按顺序解析：
1. TZ 环境变量
2. /etc/localtime 指向的 zoneinfo 文件
3. 都无法解析时退回系统给出的固定偏移时区
"""

import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models.enums import Period

# 返回当前时间（带时区）的可注入时钟
Clock = Callable[[], datetime]

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOCALTIME_PATH = Path("/etc/localtime")


def _zone_from_key(key: str) -> ZoneInfo | None:
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError):
        return None


def _localtime_key() -> str | None:
    if not _LOCALTIME_PATH.is_symlink():
        return None
    target = str(_LOCALTIME_PATH.resolve())
    _, sep, key = target.partition("zoneinfo/")
    return key if sep else None


@lru_cache(maxsize=1)
def local_timezone() -> tzinfo:
    """解析本地时区，优先返回带 IANA 名称的 ZoneInfo"""
    tz_env = os.environ.get("TZ", "").lstrip(":")
    for key in (tz_env, _localtime_key()):
        if key:
            zone = _zone_from_key(key)
            if zone is not None:
                return zone
    return datetime.now().astimezone().tzinfo or UTC


def system_clock() -> datetime:
    """系统本地时间（带本地时区）"""
    return datetime.now(local_timezone())


def _as_local(now: datetime) -> datetime:
    # naive 时间按本地时间解释
    return now if now.tzinfo is not None else now.astimezone()


def current_ordinal(period: Period, now: datetime) -> int:
    """计算 now 所处周期实例的序号

    session 没有序号，恒为 0（只通过显式会话重置失效）。

    hour 序号计入 fold：夏令时回拨时同一个本地小时出现两次，
    ZoneInfo 把第二次标记为 fold=1，两次得到不同的序号，仍属于同一天。
    """
    local = _as_local(now)
    if period is Period.SESSION:
        return 0
    if period is Period.HOUR:
        return (local.date().toordinal() * 24 + local.hour) * 2 + local.fold
    if period is Period.DAY:
        return local.date().toordinal()
    if period is Period.WEEK:
        iso_year, iso_week, _ = local.isocalendar()
        return iso_year * 53 + iso_week
    if period is Period.MONTH:
        return local.year * 12 + local.month - 1
    if period is Period.QUARTER:
        return local.year * 4 + (local.month - 1) // 3
    raise ValueError(f"未知周期: {period}")


@dataclass(frozen=True)
class CurrentDateTime:
    """一次事件捕获的时间字段"""

    datetime_utc: str
    datetime_local: str
    timezone: str


def _timezone_name(local: datetime) -> str:
    tzinfo = local.tzinfo
    # zoneinfo.ZoneInfo 提供 IANA 名称
    key = getattr(tzinfo, "key", None)
    if key:
        return key
    return local.tzname() or "UTC"


def capture_datetime(now: datetime) -> CurrentDateTime:
    """把同一时刻格式化为 UTC 时间、本地时间和时区名"""
    local = _as_local(now)
    return CurrentDateTime(
        datetime_utc=local.astimezone(UTC).strftime(DATETIME_FORMAT),
        datetime_local=local.strftime(DATETIME_FORMAT),
        timezone=_timezone_name(local),
    )
