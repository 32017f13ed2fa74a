"""EventEnricher -- 组装出站事件

步骤（顺序固定）:
    1. 捕获 UTC/本地时间与时区
    2. 调用方属性覆盖 super properties 后序列化为紧凑 JSON 字符串
    3. 开启元数据时附加本会话缓存的元数据
    4. 附加前序事件链路，然后用本事件覆盖链路（自动事件同样参与）
    5. session 唯一性始终判定，其余周期仅在开启唯一事件统计时判定
"""

import json
from collections.abc import Mapping
from typing import Any

import structlog

from .config import AUTOMATIC_EVENTS_PREFIX, CLIENT_TYPE, CLIENT_VERSION, TrackerConfig
from .exceptions import EventEncodingError, EventRejectedError
from .models.enums import Period
from .models.event import DeviceMetadata, Event, EventProperties
from .periods import Clock, capture_datetime, system_clock
from .store.protocols import MetadataProvider
from .uniqueness import UniquenessTracker

log = structlog.get_logger()


def stringify_properties(properties: Mapping[str, Any]) -> str:
    """属性序列化为紧凑 JSON 字符串

    Raises:
        EventEncodingError: 属性包含无法序列化的值
    """
    try:
        return json.dumps(
            properties,
            ensure_ascii=False,
            separators=(",", ":"),
            allow_nan=False,
        )
    except (TypeError, ValueError) as e:
        raise EventEncodingError(f"事件属性无法序列化为 JSON: {e}", original_error=e) from e


class EventEnricher:
    """事件组装器，持有 super properties、前序事件链路与元数据缓存"""

    def __init__(
        self,
        config: TrackerConfig,
        uniqueness: UniquenessTracker,
        metadata_provider: MetadataProvider | None = None,
        clock: Clock = system_clock,
    ) -> None:
        self._config = config
        self._uniqueness = uniqueness
        self._metadata_provider = metadata_provider
        self._clock = clock

        self._super_properties: EventProperties = {}
        self._previous_event: str | None = None
        self._previous_event_datetime_utc: str | None = None
        self._metadata: DeviceMetadata | None = None

    @property
    def super_properties(self) -> EventProperties:
        return dict(self._super_properties)

    @property
    def previous_event(self) -> tuple[str, str] | None:
        """前序事件（名称, UTC 时间），会话开始后尚无事件时为 None"""
        if self._previous_event is None or self._previous_event_datetime_utc is None:
            return None
        return self._previous_event, self._previous_event_datetime_utc

    def set_super_properties(self, properties: EventProperties) -> None:
        """整体替换 super properties（不合并）"""
        self._super_properties = dict(properties)

    def reset_session(self) -> None:
        """会话边界：清空前序事件链路、super properties 与元数据缓存"""
        self._previous_event = None
        self._previous_event_datetime_utc = None
        self._super_properties = {}
        self._metadata = None

    @staticmethod
    def check_event_name(name: str) -> None:
        """校验用户提交的事件名

        Raises:
            EventRejectedError: 名称为空或以自动事件前缀开头
        """
        if not name:
            raise EventRejectedError(name, "事件名不能为空")
        if name.startswith(AUTOMATIC_EVENTS_PREFIX):
            raise EventRejectedError(name, f"事件名不能使用保留前缀 {AUTOMATIC_EVENTS_PREFIX!r}")

    def merge_properties(self, properties: EventProperties | None) -> EventProperties | None:
        """调用方属性覆盖 super properties；两者都没有时返回 None"""
        if properties is not None:
            return {**self._super_properties, **properties}
        if self._super_properties:
            return dict(self._super_properties)
        return None

    def build_event(
        self,
        name: str,
        properties: EventProperties | None = None,
        is_automatic: bool = False,
    ) -> Event:
        """组装一个出站事件

        Args:
            name: 事件名称（自动事件不含前缀）
            properties: 调用方属性
            is_automatic: 是否为内部生成的自动事件

        Returns:
            构造完成的 Event

        Raises:
            EventRejectedError: 用户事件名不合法
        """
        if is_automatic:
            event_name = f"{AUTOMATIC_EVENTS_PREFIX}{name}"
        else:
            self.check_event_name(name)
            event_name = name

        current = capture_datetime(self._clock())
        fields: dict[str, Any] = {
            "event": event_name,
            "datetime_utc": current.datetime_utc,
            "client_type": CLIENT_TYPE,
            "client_version": CLIENT_VERSION,
            "client_config": self._config.client_config,
        }

        merged = self.merge_properties(properties)
        if merged is not None:
            try:
                fields["properties"] = stringify_properties(merged)
            except EventEncodingError as e:
                log.error("event_properties_encoding_failed", event_name=event_name, error=str(e))
                fields["properties"] = ""

        if self._config.add_event_metadata:
            fields["datetime_local"] = current.datetime_local
            fields["timezone"] = current.timezone
            fields.update(self._session_metadata().model_dump(exclude_none=True))

        if self.previous_event is not None:
            fields["previous_event"] = self._previous_event
            fields["previous_event_datetime_utc"] = self._previous_event_datetime_utc

        # 本事件成为后续事件的前序事件
        self._previous_event = event_name
        self._previous_event_datetime_utc = current.datetime_utc

        periods = (
            self._uniqueness.periods if self._config.track_unique_events else (Period.SESSION,)
        )
        for period, is_first in self._uniqueness.record_and_check(event_name, periods).items():
            fields[f"first_of_{period.value}"] = is_first

        return Event(**fields)

    def _session_metadata(self) -> DeviceMetadata:
        if self._metadata is None:
            self._metadata = self._load_metadata()
        return self._metadata

    def _load_metadata(self) -> DeviceMetadata:
        if self._metadata_provider is None:
            return DeviceMetadata()
        try:
            return self._metadata_provider.get_metadata()
        except Exception as e:
            # 元数据不可用不影响事件发送
            log.warning("metadata_provider_failed", error=str(e), error_type=type(e).__name__)
            return DeviceMetadata()
