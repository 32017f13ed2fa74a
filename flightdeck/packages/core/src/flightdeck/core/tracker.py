"""Tracker -- 宿主应用使用的追踪入口

create_tracker() 接收必填配置并完成启动：恢复唯一性状态、发送自动 "Session start"。
所有可变状态由 Tracker 独占，宿主负责串行调用（单个事件循环内），内部不加锁。
"""

import asyncio

import structlog

from .config import SESSION_END_EVENT, SESSION_START_EVENT, TrackerConfig
from .enricher import EventEnricher
from .exceptions import EventRejectedError
from .metadata import PlatformMetadataProvider
from .models.enums import LifecycleSignal, SessionState, SessionTransition
from .models.event import Event, EventProperties
from .periods import Clock, system_clock
from .session import SessionStateMachine
from .store.protocols import EventSink, KeyValueStore, MetadataProvider
from .uniqueness import UniquenessTracker

log = structlog.get_logger()


class Tracker:
    """事件追踪器

    组合 EventEnricher、UniquenessTracker、SessionStateMachine，
    把组装好的事件交给 EventSink（fire-and-forget）。
    """

    def __init__(
        self,
        config: TrackerConfig,
        sink: EventSink,
        store: KeyValueStore | None = None,
        metadata_provider: MetadataProvider | None = None,
        clock: Clock = system_clock,
    ) -> None:
        """
        Args:
            config: Tracker 配置
            sink: 事件出口
            store: 唯一性状态持久化存储，None 表示不跨重启保留
            metadata_provider: 元数据来源，None 时使用 PlatformMetadataProvider
            clock: 当前时间来源
        """
        self._config = config
        self._sink = sink
        self._store = store

        unique_periods = config.unique_periods if config.track_unique_events else ()
        self._uniqueness = UniquenessTracker(unique_periods, clock=clock)
        self._enricher = EventEnricher(
            config,
            self._uniqueness,
            metadata_provider=metadata_provider or PlatformMetadataProvider(),
            clock=clock,
        )
        self._session = SessionStateMachine(clock=clock, timeout_s=config.session_timeout_s)

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def session_state(self) -> SessionState:
        return self._session.state

    @property
    def uniqueness(self) -> UniquenessTracker:
        return self._uniqueness

    @property
    def enricher(self) -> EventEnricher:
        return self._enricher

    # ============================================================
    # 公开操作
    # ============================================================

    def set_super_properties(self, properties: EventProperties) -> None:
        """设置随后每个事件都携带的属性（整体替换，会话重启时清空）

        同名的 track_event 属性优先。
        """
        self._enricher.set_super_properties(properties)

    def track_event(self, name: str, properties: EventProperties | None = None) -> None:
        """追踪一个用户事件

        以自动事件保留前缀开头或为空的事件名被拒绝：只记录日志，不发送。
        """
        if self._session.is_terminated:
            log.warning("event_dropped_tracker_terminated", event_name=name)
            return
        try:
            event = self._enricher.build_event(name, properties)
        except EventRejectedError as e:
            log.error("event_rejected", event_name=name, reason=e.reason)
            return
        self._dispatch(event)

    def start_session(self) -> None:
        """发送自动 "Session start" 事件"""
        self._track_automatic_event(SESSION_START_EVENT)

    async def handle_signal(self, signal: LifecycleSignal) -> SessionTransition:
        """处理一个生命周期信号

        终止信号：先发送自动 "Session end"，再同步等待唯一性状态写入完成，最后进入终态。
        """
        if signal is LifecycleSignal.TERMINATED and not self._session.is_terminated:
            self._track_automatic_event(SESSION_END_EVENT)
            await self._persist_unique_state()

        transition = self._session.handle(signal)

        if transition is SessionTransition.SESSION_RESTARTED:
            self._restart_session()
        elif transition is SessionTransition.TERMINATED:
            log.info("tracker_terminated", project_id=self._config.project_id)
        return transition

    async def run_lifecycle(self, signals: "asyncio.Queue[LifecycleSignal]") -> None:
        """消费生命周期信号队列，直到收到终止信号"""
        while not self._session.is_terminated:
            signal = await signals.get()
            try:
                await self.handle_signal(signal)
            finally:
                signals.task_done()

    async def aclose(self) -> None:
        """关闭事件出口（如果支持），等待已发出的请求结束"""
        close = getattr(self._sink, "aclose", None)
        if close is not None:
            await close()

    # ============================================================
    # 内部
    # ============================================================

    def _track_automatic_event(self, name: str, properties: EventProperties | None = None) -> None:
        if not self._config.track_automatic_events:
            return
        self._dispatch(self._enricher.build_event(name, properties, is_automatic=True))

    def _restart_session(self) -> None:
        self._uniqueness.reset_session()
        self._enricher.reset_session()
        log.info("session_restarted", project_id=self._config.project_id)
        self.start_session()

    def _dispatch(self, event: Event) -> None:
        try:
            self._sink.send(event)
        except Exception as e:
            # 出口异常不能影响宿主应用
            log.error(
                "event_dispatch_failed",
                event_name=event.event,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def _persist_unique_state(self) -> None:
        if not self._config.track_unique_events or self._store is None:
            return
        try:
            await self._uniqueness.persist(self._store)
        except Exception as e:
            log.error(
                "unique_state_persist_failed",
                error=str(e),
                error_type=type(e).__name__,
            )


async def create_tracker(
    config: TrackerConfig,
    sink: EventSink,
    *,
    store: KeyValueStore | None = None,
    metadata_provider: MetadataProvider | None = None,
    clock: Clock = system_clock,
) -> Tracker:
    """创建并启动 Tracker

    开启唯一事件统计时先从 store 恢复状态，随后发送自动 "Session start"。

    Args:
        config: Tracker 配置
        sink: 事件出口
        store: 唯一性状态持久化存储
        metadata_provider: 元数据来源
        clock: 当前时间来源

    Returns:
        已启动的 Tracker
    """
    tracker = Tracker(
        config,
        sink,
        store=store,
        metadata_provider=metadata_provider,
        clock=clock,
    )

    if config.track_unique_events and store is not None:
        try:
            await tracker.uniqueness.restore(store)
        except Exception as e:
            log.warning(
                "unique_state_restore_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

    tracker.start_session()
    log.info(
        "tracker_initialized",
        project_id=config.project_id,
        client_config=config.client_config,
        unique_periods=[p.value for p in tracker.uniqueness.periods],
    )
    return tracker
