"""按配置选择事件出口"""

import structlog
from flightdeck.core.config import TrackerConfig

from .client import HttpEventSink
from .config import TransportConfig, load_transport_config
from .log_sink import LoggingEventSink

log = structlog.get_logger()


def build_event_sink(
    tracker_config: TrackerConfig,
    transport_config: TransportConfig | None = None,
) -> HttpEventSink | LoggingEventSink:
    """根据 sink_mode 创建事件出口

    Args:
        tracker_config: Tracker 配置（提供 project_id / project_token）
        transport_config: Transport 配置，None 时从环境变量加载

    Returns:
        http 模式返回 HttpEventSink，log 模式返回 LoggingEventSink
    """
    config = transport_config or load_transport_config()

    if config.sink_mode == "log":
        log.info("event_sink_initialized", mode="log")
        return LoggingEventSink(project_id=tracker_config.project_id)

    log.info(
        "event_sink_initialized",
        mode="http",
        api_url=config.api_url,
        timeout_s=config.timeout_s,
    )
    return HttpEventSink(
        project_id=tracker_config.project_id,
        project_token=tracker_config.project_token.get_secret_value(),
        api_url=config.api_url,
        timeout_s=config.timeout_s,
    )
