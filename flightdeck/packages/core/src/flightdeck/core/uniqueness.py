"""UniquenessTracker -- 多周期"首次出现"判定

每个周期维护一个 PeriodTrackingSet（周期序号 + 事件名集合）：
- 序号与当前计算值不同 -> 周期已翻转，集合重置为只含本事件，判定为首次
- 序号相同 -> 查询并插入是一个原子步骤

持久化协议：
- 包含关系只存在于相互嵌套的周期之间（见 NESTED_IN）：hour ⊂ day ⊂ week，
  day ⊂ month ⊂ quarter；ISO 周会跨月，week 与 month/quarter 之间没有包含关系
- 保存前先淘汰已过期的周期，再压缩：每个周期减去嵌套在其中的更短周期集合的并集
- 加载时先按序号过滤，再从短到长把每个周期并入包含它的更长周期（撤销压缩）

注意：加载时序号不匹配的周期从空集合开始，不会从仍然匹配的更长周期回填。
保存时被压缩掉的事件因此会在该周期过期时丢失，这是有意保留的加载行为。
"""

from collections.abc import Iterable

import structlog
from pydantic import TypeAdapter, ValidationError

from .config import STATE_STORAGE_KEY
from .exceptions import StateBlobError
from .models.enums import NESTED_IN, PERSISTED_PERIODS, Period
from .models.tracking import PeriodTrackingSet
from .periods import Clock, current_ordinal, system_clock
from .store.protocols import KeyValueStore

log = structlog.get_logger()

# 持久化形态：周期名 -> {period_ordinal, events[]}
_STATE_ADAPTER = TypeAdapter(dict[str, PeriodTrackingSet])


def decode_state(blob: bytes | str) -> dict[Period, PeriodTrackingSet]:
    """解析持久化 blob，忽略未知周期名与 session

    Raises:
        StateBlobError: blob 不是合法的状态 JSON
    """
    try:
        raw = _STATE_ADAPTER.validate_json(blob)
    except ValidationError as e:
        raise StateBlobError(e) from e
    decoded: dict[Period, PeriodTrackingSet] = {}
    for name, tracked in raw.items():
        try:
            period = Period(name)
        except ValueError:
            log.debug("unknown_period_in_state", period=name)
            continue
        if period in PERSISTED_PERIODS:
            decoded[period] = tracked
    return decoded


def encode_state(sets: dict[Period, PeriodTrackingSet]) -> bytes:
    """序列化为持久化 blob"""
    return _STATE_ADAPTER.dump_json({period.value: tracked for period, tracked in sets.items()})


def compact(sets: dict[Period, PeriodTrackingSet]) -> dict[Period, PeriodTrackingSet]:
    """存储压缩：每个周期减去所有嵌套在其中的更短周期集合的并集

    只处理持久化周期（session 不参与），不修改入参。
    """
    compacted: dict[Period, PeriodTrackingSet] = {}
    for period in PERSISTED_PERIODS:
        tracked = sets.get(period)
        if tracked is None:
            continue
        nested: set[str] = set()
        for shorter in PERSISTED_PERIODS:
            if period in NESTED_IN[shorter] and shorter in sets:
                nested |= sets[shorter].events
        compacted[period] = PeriodTrackingSet(
            period_ordinal=tracked.period_ordinal,
            events=tracked.events - nested,
        )
    return compacted


def reconstruct(sets: dict[Period, PeriodTrackingSet]) -> dict[Period, PeriodTrackingSet]:
    """撤销压缩：从短到长把每个周期的集合并入包含它的更长周期"""
    rebuilt = {p: sets[p].model_copy(deep=True) for p in PERSISTED_PERIODS if p in sets}
    for shorter in PERSISTED_PERIODS:
        if shorter not in rebuilt:
            continue
        for longer in NESTED_IN[shorter]:
            if longer in rebuilt:
                rebuilt[longer].events |= rebuilt[shorter].events
    return rebuilt


class UniquenessTracker:
    """多周期唯一性追踪器

    session 周期始终开启且只驻留内存，其余周期由 periods 参数决定。
    """

    def __init__(
        self,
        periods: Iterable[Period] = PERSISTED_PERIODS,
        clock: Clock = system_clock,
    ) -> None:
        """
        Args:
            periods: 开启的持久化周期（hour/day/week/month/quarter 的子集）
            clock: 当前时间来源
        """
        self._clock = clock
        enabled = set(periods)
        self._periods: tuple[Period, ...] = (
            Period.SESSION,
            *(p for p in PERSISTED_PERIODS if p in enabled),
        )
        now = clock()
        self._sets: dict[Period, PeriodTrackingSet] = {
            period: PeriodTrackingSet(period_ordinal=current_ordinal(period, now))
            for period in self._periods
        }

    @property
    def periods(self) -> tuple[Period, ...]:
        """已开启的周期（含 session），从短到长"""
        return self._periods

    def record_and_check(
        self,
        event_name: str,
        periods: Iterable[Period] | None = None,
    ) -> dict[Period, bool]:
        """记录事件并返回每个周期是否首次出现

        Args:
            event_name: 事件名称
            periods: 需要判定的周期，None 表示全部已开启周期；未开启的周期被忽略

        Returns:
            周期 -> 是否为本周期首次出现
        """
        if periods is None:
            requested = self._periods
        else:
            wanted = set(periods)
            requested = tuple(p for p in self._periods if p in wanted)

        now = self._clock()
        return {period: self._record(period, event_name, now) for period in requested}

    def _record(self, period: Period, event_name: str, now) -> bool:
        ordinal = current_ordinal(period, now)
        tracked = self._sets[period]

        if tracked.period_ordinal != ordinal:
            # 周期已翻转：换成新实例
            self._sets[period] = PeriodTrackingSet(period_ordinal=ordinal, events={event_name})
            return True

        if event_name in tracked.events:
            return False
        tracked.events.add(event_name)
        return True

    def reset_session(self) -> None:
        """会话结束：清空 session 周期集合"""
        self._sets[Period.SESSION] = PeriodTrackingSet()

    def snapshot(self) -> dict[Period, PeriodTrackingSet]:
        """当前各周期状态的深拷贝"""
        return {period: tracked.model_copy(deep=True) for period, tracked in self._sets.items()}

    def dump_state(self) -> bytes:
        """淘汰过期周期、压缩后序列化持久化周期"""
        now = self._clock()
        current: dict[Period, PeriodTrackingSet] = {}
        for period, tracked in self._sets.items():
            ordinal = current_ordinal(period, now)
            # 过期集合与更长周期不再满足包含关系，不能参与压缩
            if tracked.period_ordinal != ordinal:
                tracked = PeriodTrackingSet(period_ordinal=ordinal)
            current[period] = tracked
        return encode_state(compact(current))

    def load_state(self, blob: bytes | str | None) -> None:
        """从持久化 blob 恢复

        只采用序号与当前一致的周期，之后执行重建；blob 损坏时记录日志并保持空集合。
        """
        if not blob:
            return
        try:
            stored = decode_state(blob)
        except StateBlobError as e:
            log.warning("unique_state_discarded", error=str(e.original_error))
            return

        now = self._clock()
        matched: dict[Period, PeriodTrackingSet] = {}
        for period, tracked in stored.items():
            if tracked.period_ordinal == current_ordinal(period, now):
                matched[period] = tracked
            else:
                log.debug(
                    "unique_state_period_expired",
                    period=period.value,
                    stored_ordinal=tracked.period_ordinal,
                )

        # 未匹配的已开启周期保持初始化时的空集合；重建后只采用已开启的周期
        candidates = {p: self._sets[p] for p in PERSISTED_PERIODS if p in self._sets}
        candidates.update(matched)
        for period, tracked in reconstruct(candidates).items():
            if period in self._sets:
                self._sets[period] = tracked

    async def persist(self, store: KeyValueStore) -> None:
        """写入持久化存储（在终止信号处理中同步等待完成）"""
        await store.set(STATE_STORAGE_KEY, self.dump_state())
        log.debug("unique_state_persisted", key=STATE_STORAGE_KEY)

    async def restore(self, store: KeyValueStore) -> None:
        """从持久化存储读取并恢复"""
        self.load_state(await store.get(STATE_STORAGE_KEY))
