"""Tracker 异常体系

追踪逻辑不允许让宿主应用崩溃：除配置校验外，这里的异常都在包内被捕获并记录日志。
"""


class TrackerError(Exception):
    """Tracker 基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可以降级继续运行
        """
        super().__init__(message)
        self.recoverable = recoverable


class EventRejectedError(TrackerError):
    """事件名不合法（为空或使用了自动事件保留前缀）

    Tracker.track_event 捕获后记录 error 日志，不发送任何事件。
    """

    def __init__(self, event_name: str, reason: str) -> None:
        super().__init__(f"事件被拒绝: {event_name!r} -- {reason}", recoverable=True)
        self.event_name = event_name
        self.reason = reason


class EventEncodingError(TrackerError):
    """事件或属性无法序列化为 JSON

    属性序列化失败时降级为空字符串；整个事件序列化失败时放弃本次发送。
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, recoverable=True)
        self.original_error = original_error


class StateBlobError(TrackerError):
    """持久化的唯一性状态无法解析

    加载时捕获，所有周期从空集合开始。
    """

    def __init__(self, original_error: Exception) -> None:
        super().__init__(f"唯一性状态解析失败: {original_error}", recoverable=True)
        self.original_error = original_error
