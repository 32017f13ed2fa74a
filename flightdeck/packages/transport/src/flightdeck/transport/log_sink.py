"""LoggingEventSink -- 只写日志的事件出口

开发/离线模式使用：不发起网络请求，把线上 JSON 写入 structlog。
"""

import structlog
from flightdeck.core.models.event import Event

log = structlog.get_logger()


class LoggingEventSink:
    """把事件写入日志而不发送"""

    def __init__(self, project_id: str = "") -> None:
        self._project_id = project_id
        self._sent_count = 0

    @property
    def sent_count(self) -> int:
        return self._sent_count

    def send(self, event: Event) -> None:
        self._sent_count += 1
        log.info(
            "event_logged",
            project_id=self._project_id,
            event_name=event.event,
            payload=event.to_wire_json(),
        )
