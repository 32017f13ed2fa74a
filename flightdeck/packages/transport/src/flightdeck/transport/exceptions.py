"""Transport 异常体系

这些异常只在 HttpEventSink.deliver() 中抛出；
fire-and-forget 的 send() 捕获后记录日志，不重试。
"""


class TransportError(Exception):
    """Transport 包基础异常"""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        recoverable: bool = True,
    ) -> None:
        """
        Args:
            message: 错误描述
            status_code: 采集端返回的 HTTP 状态码（网络错误时为 None）
            recoverable: 是否为暂时性错误
        """
        super().__init__(message)
        self.status_code = status_code
        self.recoverable = recoverable


class EndpointUnreachableError(TransportError):
    """采集端不可达（连接失败、超时、DNS 解析失败等）"""

    def __init__(self, api_url: str, original_error: Exception) -> None:
        """
        Args:
            api_url: 尝试连接的采集端地址
            original_error: 原始异常
        """
        super().__init__(
            f"事件采集端不可达: {api_url} -- {original_error}",
            recoverable=True,
        )
        self.api_url = api_url
        self.original_error = original_error
