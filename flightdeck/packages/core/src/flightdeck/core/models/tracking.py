"""PeriodTrackingSet -- 单个统计周期内已出现的事件名集合

period_ordinal 标识"当前是该周期的哪一个实例"（不是时间戳），
与新计算出的序号不相等即视为过期。
"""

from pydantic import BaseModel, Field, field_serializer


class PeriodTrackingSet(BaseModel):
    """某个周期实例内已追踪过的事件名"""

    period_ordinal: int = Field(default=0, description="周期实例序号")
    events: set[str] = Field(default_factory=set, description="本周期内已出现的事件名")

    @field_serializer("events")
    def _serialize_events(self, events: set[str]) -> list[str]:
        # 排序保证持久化内容稳定
        return sorted(events)
