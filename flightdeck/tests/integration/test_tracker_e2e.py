"""Tracker 全链路集成测试

Tracker -> HttpEventSink -> httpx.MockTransport，唯一性状态落盘到 SQLite：
1. 请求格式与事件链路
2. 终止后重启：hour/day 唯一性跨进程保留，session 不保留
3. 采集端错误不影响宿主
"""

from flightdeck.core.config import TrackerConfig
from flightdeck.core.metadata import StaticMetadataProvider
from flightdeck.core.models.enums import LifecycleSignal
from flightdeck.core.models.event import DeviceMetadata
from flightdeck.core.store import create_kv_store
from flightdeck.core.tracker import Tracker, create_tracker
from flightdeck.transport.client import HttpEventSink

_METADATA = StaticMetadataProvider(
    DeviceMetadata(language="en", app_version="2.3.1", os_name="Linux", os_version="6")
)


async def _start(http_client, store, clock) -> Tracker:
    config = TrackerConfig(
        project_id="t1234567890",
        project_token="p1a2b3c4d5e6f7g8h9i0j",
        track_unique_events=True,
    )
    sink = HttpEventSink(
        project_id=config.project_id,
        project_token=config.project_token.get_secret_value(),
        api_url="https://collector.test/v0/events",
        http_client=http_client,
    )
    return await create_tracker(
        config, sink, store=store, metadata_provider=_METADATA, clock=clock
    )


async def _run_session(http_client, db_path, clock, *names: str, terminate: bool = True) -> None:
    store = await create_kv_store(db_path)
    tracker = await _start(http_client, store, clock)
    for name in names:
        tracker.track_event(name)
    if terminate:
        await tracker.handle_signal(LifecycleSignal.TERMINATED)
    await tracker.aclose()
    await store.close()


def _last(collector, name: str) -> dict:
    return [p for p in collector.payloads if p["event"] == name][-1]


class TestTrackerEndToEnd:
    """全链路"""

    async def test_session_flow(self, collector, http_client, kv_store, fake_clock):
        tracker = await _start(http_client, kv_store, fake_clock)
        tracker.set_super_properties({"plan": "pro"})
        tracker.track_event("Opened", {"tab": "home"})
        tracker.track_event("(FD) Forged")
        await tracker.handle_signal(LifecycleSignal.TERMINATED)
        await tracker.aclose()

        assert sorted(collector.names) == ["(FD) Session end", "(FD) Session start", "Opened"]

        for request in collector.requests:
            assert request.method == "POST"
            assert request.url.params["name"] == "t1234567890"
            assert request.headers["authorization"] == "Bearer p1a2b3c4d5e6f7g8h9i0j"
            assert request.headers["content-type"] == "application/json"

        opened = _last(collector, "Opened")
        assert opened["properties"] == '{"plan":"pro","tab":"home"}'
        assert opened["previous_event"] == "(FD) Session start"
        assert opened["client_type"] == "Pythonlib"
        assert opened["client_config"] == "111"
        assert opened["os_name"] == "Linux"
        assert opened["first_of_day"] is True

        assert _last(collector, "(FD) Session end")["previous_event"] == "Opened"

    async def test_uniqueness_survives_restart(self, collector, http_client, db_path, fake_clock):
        await _run_session(http_client, db_path, fake_clock, "Purchase")

        # 同一小时内重启
        fake_clock.advance(minutes=15)
        await _run_session(http_client, db_path, fake_clock, "Purchase", terminate=False)

        purchase = _last(collector, "Purchase")
        assert purchase["first_of_session"] is True
        assert purchase["first_of_hour"] is False
        assert purchase["first_of_day"] is False
        assert purchase["first_of_quarter"] is False

    async def test_next_day_restart(self, collector, http_client, db_path, fake_clock):
        await _run_session(http_client, db_path, fake_clock, "Purchase")

        fake_clock.advance(days=1)
        await _run_session(http_client, db_path, fake_clock, "Purchase", terminate=False)

        purchase = _last(collector, "Purchase")
        assert purchase["first_of_day"] is True
        # 保存时 "Purchase" 被压缩到 hour/day 中，次日二者都已过期；
        # 加载不从更短周期回填，week/month 因此不含该事件
        assert purchase["first_of_week"] is True
        assert purchase["first_of_month"] is True

    async def test_state_not_persisted_without_terminate(
        self, collector, http_client, db_path, fake_clock
    ):
        await _run_session(http_client, db_path, fake_clock, "Purchase", terminate=False)
        await _run_session(http_client, db_path, fake_clock, "Purchase", terminate=False)

        assert _last(collector, "Purchase")["first_of_day"] is True

    async def test_collector_errors_do_not_raise(
        self, collector, http_client, kv_store, fake_clock
    ):
        collector.status_code = 500
        tracker = await _start(http_client, kv_store, fake_clock)
        tracker.track_event("Opened")
        await tracker.aclose()

        assert sorted(collector.names) == ["(FD) Session start", "Opened"]
