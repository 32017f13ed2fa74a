"""Flightdeck Transport -- 事件出口

packages/transport 的公开接口导出。
"""

from .client import HttpEventSink

# 配置
from .config import TransportConfig, load_transport_config

# 异常
from .exceptions import EndpointUnreachableError, TransportError
from .factory import build_event_sink
from .log_sink import LoggingEventSink

__all__ = [
    "HttpEventSink",
    "LoggingEventSink",
    "build_event_sink",
    "TransportConfig",
    "load_transport_config",
    "TransportError",
    "EndpointUnreachableError",
]
