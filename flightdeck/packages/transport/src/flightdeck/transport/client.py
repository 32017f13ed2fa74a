"""HttpEventSink -- 事件采集端 HTTP 出口

POST {api_url}?name={project_id}
Authorization: Bearer {project_token}
Content-Type: application/json

send() 为每个事件创建一个 asyncio 任务后立即返回；
失败（非 2xx 或网络错误）只记录日志，不重试。
"""

import asyncio
import time

import httpx
import structlog
from flightdeck.core.models.event import Event

from .config import DEFAULT_API_URL, DEFAULT_TIMEOUT_S
from .exceptions import EndpointUnreachableError, TransportError

log = structlog.get_logger()

# 连接类异常类型集合（映射为 EndpointUnreachableError）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.TransportError,
)


class HttpEventSink:
    """采集端 HTTP 客户端（fire-and-forget）"""

    def __init__(
        self,
        project_id: str,
        project_token: str,
        api_url: str = DEFAULT_API_URL,
        timeout_s: int = DEFAULT_TIMEOUT_S,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            project_id: 项目 ID（作为 name query 参数）
            project_token: 项目写入 token
            api_url: 采集端地址
            timeout_s: 请求超时（秒）
            http_client: 外部传入的 httpx 客户端，None 时首次发送时创建并由本对象关闭
        """
        self._project_id = project_id
        self._project_token = project_token
        self._api_url = api_url
        self._timeout_s = timeout_s
        self._http_client = http_client
        self._owns_client = http_client is None
        # 持有任务引用，防止发送中的任务被回收
        self._pending: set[asyncio.Task] = set()

    @property
    def api_url(self) -> str:
        return self._api_url

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def send(self, event: Event) -> None:
        """调度发送，立即返回"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("event_dropped_no_event_loop", event_name=event.event)
            return

        task = loop.create_task(self._send_quietly(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def deliver(self, event: Event) -> int:
        """发送单个事件并等待结果

        Returns:
            采集端返回的 HTTP 状态码

        Raises:
            EndpointUnreachableError: 连接失败或超时
            TransportError: 采集端返回非 2xx
        """
        start_time = time.monotonic()
        try:
            resp = await self._get_client().post(
                self._api_url,
                params={"name": self._project_id},
                headers={
                    "Authorization": f"Bearer {self._project_token}",
                    "Content-Type": "application/json",
                },
                content=event.to_wire_json(),
                timeout=self._timeout_s,
            )
        except _CONNECTION_ERROR_TYPES as e:
            raise EndpointUnreachableError(api_url=self._api_url, original_error=e) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        if not 200 <= resp.status_code < 300:
            raise TransportError(
                f"事件采集端返回 {resp.status_code}",
                status_code=resp.status_code,
                recoverable=resp.status_code >= 500,
            )

        log.debug(
            "event_sent",
            event_name=event.event,
            status_code=resp.status_code,
            duration_ms=duration_ms,
        )
        return resp.status_code

    async def drain(self) -> None:
        """等待所有已调度的发送任务结束"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """等待发送结束并关闭自建的 httpx 客户端"""
        await self.drain()
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout_s)
        return self._http_client

    async def _send_quietly(self, event: Event) -> None:
        try:
            await self.deliver(event)
        except TransportError as e:
            log.error(
                "event_send_failed",
                event_name=event.event,
                error=str(e),
                status_code=e.status_code,
            )
        except Exception as e:
            log.error(
                "event_send_failed",
                event_name=event.event,
                error=str(e),
                error_type=type(e).__name__,
            )
