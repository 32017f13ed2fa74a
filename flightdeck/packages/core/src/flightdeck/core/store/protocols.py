"""外部协作方接口定义

KeyValueStore、EventSink、MetadataProvider 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from typing import Protocol

from ..models.event import DeviceMetadata, Event


class KeyValueStore(Protocol):
    """跨进程重启保留的 blob 键值存储

    只用于唯一性统计状态。
    """

    async def get(self, key: str) -> bytes | None:
        """读取 key 对应的 blob，不存在时返回 None"""
        ...

    async def set(self, key: str, value: bytes) -> None:
        """写入 blob（写入完成后才返回）"""
        ...

    async def delete(self, key: str) -> None:
        """删除 key"""
        ...


class EventSink(Protocol):
    """事件出口 -- fire-and-forget

    send() 不得阻塞调用方，结果（成功/失败）只记录日志，不抛出异常。
    """

    def send(self, event: Event) -> None:
        """分发一个已构造完成的事件"""
        ...


class MetadataProvider(Protocol):
    """只读的设备/应用元数据来源，每个会话查询一次"""

    def get_metadata(self) -> DeviceMetadata:
        """返回当前设备/应用元数据"""
        ...
