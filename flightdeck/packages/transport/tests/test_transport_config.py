"""TransportConfig + load_transport_config 单元测试"""

import pytest
from flightdeck.transport.config import TransportConfig, load_transport_config
from pydantic import ValidationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FLIGHTDECK_API_URL", "FLIGHTDECK_SINK_MODE", "FLIGHTDECK_TIMEOUT_S"):
        monkeypatch.delenv(name, raising=False)


class TestTransportConfig:
    """TransportConfig 数据模型测试"""

    def test_default_values(self):
        config = TransportConfig()
        assert config.api_url == "https://api.flightdeck.cc/v0/events"
        assert config.sink_mode == "http"
        assert config.timeout_s == 10

    def test_timeout_min_value(self):
        with pytest.raises(ValidationError):
            TransportConfig(timeout_s=0)

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            TransportConfig(sink_mode="carrier-pigeon")


class TestLoadTransportConfig:
    """load_transport_config() 环境变量映射测试"""

    def test_default_when_no_env(self):
        assert load_transport_config() == TransportConfig()

    def test_all_env_vars(self, monkeypatch):
        monkeypatch.setenv("FLIGHTDECK_API_URL", "http://localhost:8080/events")
        monkeypatch.setenv("FLIGHTDECK_SINK_MODE", "log")
        monkeypatch.setenv("FLIGHTDECK_TIMEOUT_S", "3")

        config = load_transport_config()
        assert config.api_url == "http://localhost:8080/events"
        assert config.sink_mode == "log"
        assert config.timeout_s == 3

    def test_invalid_timeout_falls_back(self, monkeypatch):
        monkeypatch.setenv("FLIGHTDECK_TIMEOUT_S", "not-a-number")
        assert load_transport_config().timeout_s == 10
