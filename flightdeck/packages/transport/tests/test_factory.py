"""build_event_sink() 模式切换测试"""

import pytest
from flightdeck.core.config import TrackerConfig
from flightdeck.transport import HttpEventSink, LoggingEventSink, TransportConfig, build_event_sink


@pytest.fixture
def config() -> TrackerConfig:
    return TrackerConfig(project_id="t1234567890", project_token="p1a2b3c4d5e6f7g8h9i0j")


def test_http_mode(config):
    sink = build_event_sink(config, TransportConfig(api_url="http://collector.test/e", timeout_s=4))
    assert isinstance(sink, HttpEventSink)
    assert sink.api_url == "http://collector.test/e"


def test_log_mode(config):
    sink = build_event_sink(config, TransportConfig(sink_mode="log"))
    assert isinstance(sink, LoggingEventSink)


def test_mode_from_env(config, monkeypatch):
    monkeypatch.setenv("FLIGHTDECK_SINK_MODE", "log")
    assert isinstance(build_event_sink(config), LoggingEventSink)
