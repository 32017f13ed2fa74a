"""全局 pytest 配置 -- 可控时钟、记录型事件出口、内存存储 fixture"""

from datetime import UTC, datetime, timedelta

import pytest
from flightdeck.core.config import TrackerConfig
from flightdeck.core.models.event import DeviceMetadata, Event
from flightdeck.core.store.kv_store import InMemoryKeyValueStore


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.now = now


class RecordingSink:
    """记录所有收到的事件"""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def send(self, event: Event) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [e.event for e in self.events]


class StaticMetadata:
    """固定元数据来源，记录查询次数"""

    def __init__(self) -> None:
        self.calls = 0

    def get_metadata(self) -> DeviceMetadata:
        self.calls += 1
        return DeviceMetadata(
            language="en",
            app_version="2.3.1",
            app_install_date="2026-01-05",
            os_name="Linux",
            os_version="6",
            device_manufacturer="Framework",
            device_model="x86_64",
        )


@pytest.fixture
def fake_clock() -> FakeClock:
    """2026-03-10 09:30:00 UTC"""
    return FakeClock(datetime(2026, 3, 10, 9, 30, 0, tzinfo=UTC))


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def static_metadata() -> StaticMetadata:
    return StaticMetadata()


@pytest.fixture
def memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def tracker_config() -> TrackerConfig:
    """默认开关 + 开启唯一事件统计"""
    return TrackerConfig(
        project_id="t1234567890",
        project_token="p1a2b3c4d5e6f7g8h9i0j",
        track_unique_events=True,
    )
